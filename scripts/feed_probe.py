# flake8: noqa E402
# Run via uv for access to dev deps, e.g.:
# uv run scripts/feed_probe.py --rpc-url https://eth.llamarpc.com --feed 0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419
from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from clients.json_rpc import JsonRpcClient
from config import config
from domain.errors import FeedValidationError
from domain.pricing import Address, AssetId
from services.feed_provider import FeedPriceProvider
from services.price_feeds import RpcPriceFeed
from services.price_registry import PriceRegistry
from utils.formatting import format_fixed_point

PROBE_ADMIN = Address("probe")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Read an AggregatorV3 feed and run it through the feed provider checks.")
    parser.add_argument("--rpc-url", default=config().rpc_url, help="JSON-RPC endpoint (default: RPC_URL from .env).")
    parser.add_argument("--feed", required=True, help="Aggregator contract address.")
    parser.add_argument("--asset", default="ETH", help="Asset the feed prices (default: ETH).")
    parser.add_argument("--quote", default="USD", help="Currency the feed quotes in (default: USD).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if not args.rpc_url:
        print("No RPC URL given; pass --rpc-url or set RPC_URL.")
        sys.exit(2)

    client = JsonRpcClient(args.rpc_url, timeout=config().rpc_timeout_seconds)
    feed = RpcPriceFeed(client, args.feed)
    report = feed.latest_round_data()
    decimals = feed.decimals()
    updated = datetime.fromtimestamp(report.updated_at, tz=timezone.utc).isoformat() if report.updated_at else "-"

    print(f"Feed {args.feed}")
    print(f"  round_id:          {report.round_id}")
    print(f"  answered_in_round: {report.answered_in_round}")
    print(f"  answer:            {report.answer} ({format_fixed_point(report.answer, decimals)})")
    print(f"  decimals:          {decimals}")
    print(f"  updated_at:        {updated}")

    quote = AssetId(args.quote)
    asset = AssetId(args.asset)
    feeds = FeedPriceProvider(quote, administrator=PROBE_ADMIN)
    feeds.set_feeds([asset], [feed], quote, caller=PROBE_ADMIN)
    registry = PriceRegistry(quote, administrator=PROBE_ADMIN, providers={asset: feeds})
    try:
        price = registry.price(asset)
    except FeedValidationError as exc:
        print(f"  rejected:          {type(exc).__name__}: {exc}")
        sys.exit(1)
    print(f"  price:             {format_fixed_point(price)} {quote}")


if __name__ == "__main__":
    main()
