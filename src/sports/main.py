"""
Sports Data - Command Line Entry Point.

One-shot fetches through the full aggregation stack, printed as canonical
JSON. Useful for smoke-checking credentials and provider reachability.

Usage:
    python -m src.sports.main sports
    python -m src.sports.main live --sport football
    python -m src.sports.main upcoming --sport nba --limit 5
    python -m src.sports.main event 1035037 --sport football
    python -m src.sports.main odds 1035037 --sport football

Environment Variables:
    API_SPORTS_KEY          - Shared API-Sports key (SPORTSDATA_API_KEY also accepted)
    FOOTBALL_API_KEY, ...   - Per-family overrides
    SPORTS_CACHE_TTL        - Default cache freshness in seconds
    LOG_LEVEL               - Logging level (default: INFO)
"""

import argparse
import asyncio
import sys
from typing import Any, Optional

import orjson
import structlog

from config.settings import get_settings
from src.sports.service import SportsDataService
from src.utils.logging import setup_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.sports.main",
        description="Fetch canonical sports events and odds.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("sports", help="List the sport registry.")

    live = commands.add_parser("live", help="Live events.")
    live.add_argument("--sport", default=None, help="Sport id or slug (default: all).")

    upcoming = commands.add_parser("upcoming", help="Upcoming events.")
    upcoming.add_argument("--sport", default=None, help="Sport id or slug (default: all).")
    upcoming.add_argument("--limit", type=int, default=None, help="Max events per sport.")

    event = commands.add_parser("event", help="One event by provider id.")
    event.add_argument("event_id")
    event.add_argument("--sport", default=None, help="Sport id or slug (default: search all).")

    odds = commands.add_parser("odds", help="Bookmaker odds for one event.")
    odds.add_argument("event_id")
    odds.add_argument("--sport", default="football", help="Sport id or slug.")

    return parser


async def run(args: argparse.Namespace) -> Any:
    logger.debug("Running command", command=args.command, sport=getattr(args, "sport", None))
    async with SportsDataService() as service:
        if args.command == "sports":
            return [sport.to_dict() for sport in service.get_sports()]
        if args.command == "live":
            return [e.to_dict() for e in await service.get_live_events(args.sport)]
        if args.command == "upcoming":
            return [e.to_dict() for e in await service.get_upcoming_events(args.sport, limit=args.limit)]
        if args.command == "event":
            found = await service.get_event_by_id(args.event_id, args.sport)
            return found.to_dict() if found else None
        if args.command == "odds":
            return [o.to_dict() for o in await service.get_odds(args.event_id, args.sport)]
    return None


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)

    try:
        result = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted", file=sys.stderr)
        return 130

    sys.stdout.write(orjson.dumps(result, option=orjson.OPT_INDENT_2, default=str).decode())
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
