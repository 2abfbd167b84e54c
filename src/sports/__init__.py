"""
Resilient multi-provider sports data aggregation.

Calls heterogeneous upstream sports-data providers, survives their individual
unreliability (DNS failures, rate limits, schema drift) and produces one
canonical event/market/odds model regardless of provider or sport.

Architecture:
- registry.py: sports, per-sport market profiles, provider routes, fallback domains
- feeds/: cache store, resilience engine, provider client
- engine/: event normalizer, synthetic market generator
- models/: canonical schemas
- service.py: aggregation interface consumed by the application
"""

__version__ = "0.1.0"
