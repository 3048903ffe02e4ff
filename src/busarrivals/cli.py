"""Command line interface for the bus arrivals tracker."""

import argparse
import logging
import sys
import time
from datetime import datetime, tzinfo
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import Settings, load_settings
from .exceptions import BusArrivalsError, ConfigError
from .feed_client import FeedClient
from .models import DIRECTIONS, StopRequest
from .render import render_html, render_text
from .stop_tracker import StopArrivalTracker

logger = logging.getLogger(__name__)

_CLOCK_FORMATS = ("%H:%M", "%I:%M%p", "%I%p")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="busarrivals", description="Upcoming bus arrivals at your stops")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument("--api-key", default=None, help="API key (overrides config and environment)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    arrivals = subparsers.add_parser("arrivals", help="Show upcoming arrivals for stops")
    arrivals.add_argument("stops", nargs="+", metavar="STOP_ID")
    arrivals.add_argument("--routes", default=None, help="Comma-separated route ids, e.g. 78,62")
    arrivals.add_argument("--direction", choices=DIRECTIONS, default=None)
    arrivals.add_argument("--late", action="store_true", help="Show lateness against the timetable")
    arrivals.add_argument("--schedule-only", action="store_true", help="Skip realtime predictions")
    arrivals.add_argument("--at", default=None, metavar="TIME", help="Timetable at a fixed time today, e.g. 17:30")
    arrivals.add_argument("--html", action="store_true", help="Write an HTML page instead of text")
    arrivals.add_argument("--workers", type=int, default=1, help="Stops to fetch in parallel")

    routes = subparsers.add_parser("routes", help="List routes")
    routes.add_argument("--stop", default=None, metavar="STOP_ID", help="Only routes serving this stop")

    stops = subparsers.add_parser("stops", help="List stops on a route")
    stops.add_argument("route", metavar="ROUTE_ID")
    stops.add_argument("--direction", choices=DIRECTIONS, default=None)

    return parser


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown time zone {name!r}") from e


def parse_clock(text: str, now_epoch: int, tz: Optional[tzinfo] = None) -> int:
    """
    Turn a clock time such as "17:30" or "5:30pm" into an epoch on today's date.

    Raises:
        ValueError: If the text matches none of the accepted formats.
    """
    today = datetime.fromtimestamp(now_epoch, tz)
    for fmt in _CLOCK_FORMATS:
        try:
            clock = datetime.strptime(text.strip().lower(), fmt)
        except ValueError:
            continue
        return int(today.replace(hour=clock.hour, minute=clock.minute, second=0, microsecond=0).timestamp())
    raise ValueError(f"Unrecognized time {text!r}; use HH:MM or H:MMam/pm")


def build_requests(args: argparse.Namespace, settings: Settings, tz: Optional[tzinfo]) -> List[StopRequest]:
    routes = [route.strip() for route in args.routes.split(",")] if args.routes else settings.routes
    routes = [route for route in routes if route]
    if not routes:
        raise ConfigError("No routes given. Pass --routes or set routes in the config file")

    now_epoch = int(time.time())
    fixed_time = None
    if args.at:
        try:
            fixed_time = parse_clock(args.at, now_epoch, tz)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    return [
        StopRequest(
            stop_id=stop_id,
            direction=args.direction or settings.direction,
            interest_routes=frozenset(routes),
            now_epoch=now_epoch,
            show_lateness=args.late,
            schedule_only=args.schedule_only,
            fixed_time=fixed_time,
        )
        for stop_id in args.stops
    ]


def run_arrivals(args: argparse.Namespace, settings: Settings, client: FeedClient) -> str:
    tz = resolve_timezone(settings.timezone)
    stop_requests = build_requests(args, settings, tz)
    tracker = StopArrivalTracker(client, tz=tz)
    blocks = tracker.get_stop_blocks(stop_requests, max_workers=args.workers)
    return render_html(blocks) if args.html else render_text(blocks)


def run_routes(args: argparse.Namespace, client: FeedClient) -> str:
    routes = client.list_routes_for_stop(args.stop) if args.stop else client.list_routes()
    if not routes:
        return "none\n"
    return "".join(f"{route.route_id:<8} {route.route_name}  [{route.mode_name}]\n" for route in routes)


def run_stops(args: argparse.Namespace, client: FeedClient) -> str:
    stops = [stop for stop in client.list_stops(args.route) if not args.direction or stop.direction == args.direction]
    if not stops:
        return "none\n"
    return "".join(f"{stop.stop_order:>3} {stop.stop_id:<8} {stop.direction:<9} {stop.stop_name}\n" for stop in stops)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    if getattr(args, "html", False) and not args.verbose:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args.config, api_key=args.api_key)
        client = FeedClient(settings.require_api_key(), base_url=settings.base_url, timeout=settings.timeout)
        if args.command == "arrivals":
            output = run_arrivals(args, settings, client)
        elif args.command == "routes":
            output = run_routes(args, client)
        else:
            output = run_stops(args, client)
    except BusArrivalsError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
