"""
Sports event normalization engine.

Turns provider payloads into the canonical Event/Market/Outcome model:
- EventNormalizer: per-sport field extraction, status mapping, odds shapes
- SyntheticMarketGenerator: fallback markets when a provider has no odds
"""

from src.sports.engine.normalizer import EventNormalizer, map_status
from src.sports.engine.synthetic import SyntheticMarketGenerator

__all__ = [
    "EventNormalizer",
    "SyntheticMarketGenerator",
    "map_status",
]
