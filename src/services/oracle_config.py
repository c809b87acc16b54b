from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from clients.json_rpc import JsonRpcClient
from domain.errors import InvalidArgumentError
from domain.events import EventSink
from domain.pricing import Address, AssetId, TokenMetadata, normalize_asset_id

from .feed_provider import FeedPriceProvider
from .price_feeds import RpcPriceFeed, StaticPriceFeed
from .price_registry import PriceRegistry
from .price_types import PriceFeed
from .token_metadata import RpcTokenMetadata, StaticTokenMetadata

logger = logging.getLogger(__name__)


class FeedConfig(BaseModel):
    """One asset backed by a feed: either an on-chain aggregator or a fixed answer."""

    asset_id: str
    quote_currency: str
    address: str | None = None
    answer: int | None = None
    decimals: int = 8
    description: str | None = None

    @field_validator("asset_id", "quote_currency")
    @classmethod
    def _normalize_ids(cls, value: str) -> str:
        return normalize_asset_id(value)

    @model_validator(mode="after")
    def _validate_source(self) -> FeedConfig:
        if (self.address is None) == (self.answer is None):
            raise ValueError(f"feed for {self.asset_id} needs exactly one of address or answer")
        if self.decimals < 0:
            raise ValueError("decimals must be >= 0")
        return self


class TokenConfig(BaseModel):
    token: str
    underlying: str
    decimals: int = Field(ge=0)

    @field_validator("token", "underlying")
    @classmethod
    def _normalize_ids(cls, value: str) -> str:
        return normalize_asset_id(value)


class OracleConfig(BaseModel):
    name: str = "price-registry"
    base_currency: str
    administrator: str
    guardian: str | None = None
    call_default_first: bool = False
    feeds: list[FeedConfig] = Field(default_factory=list)
    tokens: list[TokenConfig] = Field(default_factory=list)
    default_registry: OracleConfig | None = None

    @field_validator("base_currency")
    @classmethod
    def _normalize_base_currency(cls, value: str) -> str:
        return normalize_asset_id(value)

    @model_validator(mode="after")
    def _validate_fields(self) -> OracleConfig:
        if not self.base_currency:
            raise ValueError("base_currency must be non-empty")
        if not self.administrator:
            raise ValueError("administrator must be non-empty")
        seen: set[str] = set()
        for feed in self.feeds:
            if feed.asset_id in seen:
                raise ValueError(f"duplicate feed for {feed.asset_id}")
            seen.add(feed.asset_id)
        return self


def load_oracle_config(path: Path) -> OracleConfig:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return OracleConfig.model_validate(json.load(handle))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        msg = f"cannot load oracle config {path}: {exc}"
        raise InvalidArgumentError(msg) from exc


def build_registry(
    cfg: OracleConfig,
    *,
    rpc_client: JsonRpcClient | None = None,
    event_sink: EventSink | None = None,
) -> PriceRegistry:
    """Wire a registry (and its nested default registries) from configuration.

    All feeds of one registry share a single FeedPriceProvider; feeds are assigned in
    one batch per quote currency.
    """
    default_provider = (
        build_registry(cfg.default_registry, rpc_client=rpc_client, event_sink=event_sink)
        if cfg.default_registry is not None
        else None
    )

    administrator = Address(cfg.administrator)
    registry = PriceRegistry(
        AssetId(cfg.base_currency),
        administrator=administrator,
        guardian=Address(cfg.guardian) if cfg.guardian else None,
        default_provider=default_provider,
        call_default_first=cfg.call_default_first,
        token_metadata=_build_token_metadata(cfg, rpc_client),
        event_sink=event_sink,
        name=cfg.name,
    )

    if cfg.feeds:
        feed_provider = FeedPriceProvider(
            AssetId(cfg.base_currency),
            administrator=administrator,
            event_sink=event_sink,
            name=f"{cfg.name}/feeds",
        )
        by_quote: dict[str, list[tuple[AssetId, PriceFeed]]] = defaultdict(list)
        for feed_cfg in cfg.feeds:
            by_quote[feed_cfg.quote_currency].append((AssetId(feed_cfg.asset_id), _build_feed(feed_cfg, rpc_client)))
        for quote_currency, entries in by_quote.items():
            asset_ids = [asset_id for asset_id, _ in entries]
            feeds = [feed for _, feed in entries]
            feed_provider.set_feeds(asset_ids, feeds, AssetId(quote_currency), caller=administrator)
        registry.set_providers(
            [AssetId(feed_cfg.asset_id) for feed_cfg in cfg.feeds],
            [feed_provider] * len(cfg.feeds),
            caller=administrator,
        )

    logger.info(
        "Built registry %s base=%s feeds=%d default=%s",
        cfg.name,
        cfg.base_currency,
        len(cfg.feeds),
        default_provider.name if default_provider else None,
    )
    return registry


def _build_feed(feed_cfg: FeedConfig, rpc_client: JsonRpcClient | None) -> PriceFeed:
    if feed_cfg.answer is not None:
        return StaticPriceFeed(
            feed_cfg.answer,
            decimals=feed_cfg.decimals,
            description=feed_cfg.description or f"static:{feed_cfg.asset_id}/{feed_cfg.quote_currency}",
        )
    if rpc_client is None:
        msg = f"feed for {feed_cfg.asset_id} points at {feed_cfg.address} but no RPC client is configured"
        raise InvalidArgumentError(msg)
    assert feed_cfg.address is not None
    return RpcPriceFeed(rpc_client, feed_cfg.address, description=feed_cfg.description)


def _build_token_metadata(cfg: OracleConfig, rpc_client: JsonRpcClient | None) -> TokenMetadata | None:
    if cfg.tokens:
        return StaticTokenMetadata(
            underlyings={token.token: AssetId(token.underlying) for token in cfg.tokens},
            decimals={AssetId(token.underlying): token.decimals for token in cfg.tokens},
        )
    if rpc_client is not None:
        return RpcTokenMetadata(rpc_client)
    return None


__all__ = ["FeedConfig", "OracleConfig", "TokenConfig", "build_registry", "load_oracle_config"]
