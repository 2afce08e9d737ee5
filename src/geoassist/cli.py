"""
GeoAssist CLI entrypoint.

Quick local access to the place cache without the HTTP API:
- `refresh`: fetch places (network first, bundled fallback) into the local store
- `nearby`: list cached places nearest first, with category toggles
- `distance`: great-circle distance between two points
- `serve`: run the HTTP API
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from geoassist.config.settings import get_settings
from geoassist.coordinator.places import PlaceCoordinator
from geoassist.core.geo import GeoPoint, format_distance, haversine_m
from geoassist.core.logging import configure_logging
from geoassist.domain.models import KNOWN_CATEGORIES
from geoassist.ingestion.place_fetcher import PlaceFetcher
from geoassist.storage.place_store import PlaceStore


def _build_coordinator() -> PlaceCoordinator:
    settings = get_settings()
    return PlaceCoordinator(PlaceStore.from_settings(settings), PlaceFetcher(settings))


def _cmd_refresh(_: argparse.Namespace) -> int:
    coordinator = _build_coordinator()
    try:
        result = coordinator.refresh()
    finally:
        coordinator.close()
    if not result.ok:
        print(coordinator.error_message)
        return 1
    print(f"Stored {len(result.places)} place(s) from {result.source} source")
    return 0


def _cmd_nearby(args: argparse.Namespace) -> int:
    coordinator = _build_coordinator()
    try:
        if args.refresh or not coordinator.all_places():
            result = coordinator.refresh()
            if not result.ok:
                print(coordinator.error_message)
                if not coordinator.all_places():
                    return 1
        for category in args.hide:
            coordinator.set_category_visible(category, False)
        coordinator.update_user_location(float(args.lat), float(args.lon))
        ranked = coordinator.ranked_places()
    finally:
        coordinator.close()

    if args.limit is not None:
        ranked = ranked[: int(args.limit)]

    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in ranked], ensure_ascii=False, indent=2))
        return 0

    for i, item in enumerate(ranked, start=1):
        place = item.place
        print(f"{i:>2}. {place.name} [{place.category}]  {item.distance_label}")
        print(f"    {place.address}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("geoassist.api.app:app", host=args.host, port=int(args.port), log_config=None)
    return 0


def _cmd_distance(args: argparse.Namespace) -> int:
    meters = haversine_m(
        GeoPoint(lat=float(args.from_lat), lon=float(args.from_lon)),
        GeoPoint(lat=float(args.to_lat), lon=float(args.to_lon)),
    )
    print(format_distance(meters))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the GeoAssist CLI."""
    parser = argparse.ArgumentParser(prog="geoassist")
    sub = parser.add_subparsers(dest="command", required=True)

    ref = sub.add_parser("refresh", help="Fetch places and store them locally.")
    ref.set_defaults(func=_cmd_refresh)

    near = sub.add_parser("nearby", help="List cached places nearest to a position.")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lon", required=True, type=float)
    near.add_argument(
        "--hide",
        action="append",
        default=[],
        choices=list(KNOWN_CATEGORIES),
        help="Repeatable. Category to hide.",
    )
    near.add_argument("--limit", type=int, default=None)
    near.add_argument("--refresh", action="store_true", help="Refresh the local store first.")
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearby)

    dist = sub.add_parser("distance", help="Great-circle distance between two points.")
    dist.add_argument("from_lat", type=float)
    dist.add_argument("from_lon", type=float)
    dist.add_argument("to_lat", type=float)
    dist.add_argument("to_lon", type=float)
    dist.set_defaults(func=_cmd_distance)

    srv = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m geoassist.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
