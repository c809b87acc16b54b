from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from clients.json_rpc import JsonRpcClient, JsonRpcError
from config import config
from db.db import init_db
from db.repositories import ChangeEventRepository
from domain.errors import PriceRouterError
from domain.events import EventSink
from domain.pricing import normalize_asset_id
from services.event_sinks import LoggingEventSink
from services.oracle_config import build_registry, load_oracle_config
from services.price_registry import PriceRegistry
from utils.formatting import format_fixed_point

logger = logging.getLogger(__name__)


def build_rpc_client(rpc_url: str | None) -> JsonRpcClient | None:
    if not rpc_url:
        return None
    settings = config()
    return JsonRpcClient(
        rpc_url,
        timeout=settings.rpc_timeout_seconds,
        retry_attempts=settings.rpc_retry_attempts,
    )


def load_registry(config_path: Path, *, rpc_url: str | None, event_sink: EventSink | None) -> PriceRegistry:
    oracle_config = load_oracle_config(config_path)
    return build_registry(oracle_config, rpc_client=build_rpc_client(rpc_url), event_sink=event_sink)


def run_price(registry: PriceRegistry, asset_ids: Sequence[str]) -> None:
    for asset_id in asset_ids:
        value = registry.price(normalize_asset_id(asset_id))
        print(f"{asset_id}: {format_fixed_point(value)} {registry.base_currency} (raw={value})")


def run_underlying_price(registry: PriceRegistry, token_ref: str) -> None:
    value = registry.underlying_price(token_ref)
    print(f"{token_ref}: {value}")


def run_events(repository: ChangeEventRepository, *, emitter: str | None, asset_id: str | None) -> None:
    events = repository.list(emitter=emitter, asset_id=asset_id)
    for event in events:
        subject = f" [{event.asset_id}]" if event.asset_id else ""
        print(
            f"{event.timestamp.isoformat()} {event.emitter} {event.kind.value}{subject}: "
            f"{event.old_value} -> {event.new_value}"
        )
    print(f"{len(events)} event(s)")


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    parser = argparse.ArgumentParser(description="Resolve asset prices through the configured price registry.")
    parser.add_argument("--config", type=Path, default=settings.oracle_config_path)
    parser.add_argument("--rpc-url", default=settings.rpc_url)
    parser.add_argument("--database-url", default=None, help="persist change events (e.g. sqlite:///events.db)")
    parser.add_argument("--verbose", "-v", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    price_parser = subparsers.add_parser("price", help="price assets in the base currency")
    price_parser.add_argument("asset_ids", nargs="+")

    underlying_parser = subparsers.add_parser("underlying-price", help="price a wrapped token's underlying asset")
    underlying_parser.add_argument("token_ref")

    events_parser = subparsers.add_parser("events", help="list persisted change events")
    events_parser.add_argument("--emitter")
    events_parser.add_argument("--asset-id")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    database_url = args.database_url or (settings.database_url if args.command == "events" else None)
    repository = ChangeEventRepository(init_db(database_url)) if database_url else None

    try:
        if args.command == "events":
            assert repository is not None
            run_events(repository, emitter=args.emitter, asset_id=args.asset_id)
            return 0

        event_sink: EventSink = repository if repository is not None else LoggingEventSink(logging.DEBUG)
        registry = load_registry(args.config, rpc_url=args.rpc_url, event_sink=event_sink)
        if args.command == "price":
            run_price(registry, args.asset_ids)
        else:
            run_underlying_price(registry, args.token_ref)
    except (PriceRouterError, JsonRpcError) as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
