from __future__ import annotations

import logging
import threading
from typing import Sequence

from domain.errors import (
    FeedNotFoundError,
    IncompleteRoundError,
    InvalidArgumentError,
    InvalidQuoteError,
    StaleDataError,
)
from domain.events import ChangeEvent, ChangeKind, EventSink
from domain.pricing import WAD, Address, AssetId, PriceProvider, to_wad

from .access_control import require_role
from .price_types import PriceFeed, RoundData

logger = logging.getLogger(__name__)


class FeedPriceProvider(PriceProvider):
    """Prices assets from aggregator-style feeds and rebases them through the caller.

    Each feed quotes its asset in a ``quote currency`` (e.g. ETH/USD quotes in USD).
    The quote currency price is looked up on the resolving ``context`` passed to
    :meth:`price`, so the result ends up in the context's base currency.
    """

    def __init__(
        self,
        base_currency: AssetId,
        *,
        administrator: Address,
        event_sink: EventSink | None = None,
        name: str = "feed-provider",
    ) -> None:
        if not administrator:
            msg = "administrator must be provided"
            raise InvalidArgumentError(msg)
        self._base_currency = base_currency
        self._name = name
        self._administrator: Address = administrator
        self._event_sink = event_sink
        self._lock = threading.RLock()
        self._feeds: dict[AssetId, PriceFeed | None] = {}
        self._quote_currencies: dict[AssetId, AssetId] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def base_currency(self) -> AssetId:
        return self._base_currency

    @property
    def administrator(self) -> Address:
        return self._administrator

    def feed_for(self, asset_id: AssetId) -> tuple[PriceFeed | None, AssetId | None]:
        with self._lock:
            return self._feeds.get(asset_id), self._quote_currencies.get(asset_id)

    def set_feeds(
        self,
        asset_ids: Sequence[AssetId],
        feeds: Sequence[PriceFeed | None],
        quote_currency: AssetId,
        *,
        caller: Address,
    ) -> None:
        require_role(caller, [self._administrator], action="set feeds", emitter=self._name)
        if len(asset_ids) != len(feeds) or not asset_ids:
            msg = "asset_ids and feeds must have the same nonzero length"
            raise InvalidArgumentError(msg)

        changes: list[tuple[AssetId, PriceFeed | None, AssetId | None, PriceFeed | None]] = []
        with self._lock:
            for asset_id, feed in zip(asset_ids, feeds):
                changes.append((asset_id, self._feeds.get(asset_id), self._quote_currencies.get(asset_id), feed))
                self._feeds[asset_id] = feed
                self._quote_currencies[asset_id] = quote_currency
        for asset_id, old_feed, old_quote, feed in changes:
            self._emit(ChangeKind.FEED, _feed_label(old_feed), _feed_label(feed), asset_id=asset_id)
            self._emit(ChangeKind.FEED_QUOTE_CURRENCY, old_quote, quote_currency, asset_id=asset_id)
        logger.info("%s assigned %d feed(s) quoted in %s", self._name, len(asset_ids), quote_currency)

    def set_administrator(self, new_admin: Address, *, caller: Address) -> None:
        require_role(caller, [self._administrator], action="set administrator", emitter=self._name)
        if not new_admin:
            msg = "new administrator must be provided"
            raise InvalidArgumentError(msg)
        with self._lock:
            old_admin = self._administrator
            self._administrator = new_admin
        self._emit(ChangeKind.ADMINISTRATOR, old_admin, new_admin)

    def price(self, asset_id: AssetId, context: PriceProvider | None = None) -> int:
        with self._lock:
            feed = self._feeds.get(asset_id)
            quote_currency = self._quote_currencies.get(asset_id)
        if feed is None or quote_currency is None:
            msg = f"feed not found for {asset_id} in {self._name}"
            raise FeedNotFoundError(msg, asset_id=asset_id)

        report = feed.latest_round_data()
        self._validate(asset_id, report)

        if context is None:
            msg = f"{self._name} needs a resolving context to price {asset_id} in {quote_currency}"
            raise InvalidArgumentError(msg)
        quote_price = context.price(quote_currency)

        scaled_answer = to_wad(report.answer, feed.decimals())
        logger.debug(
            "%s %s answer=%d round=%d quote %s=%d",
            self._name,
            asset_id,
            report.answer,
            report.round_id,
            quote_currency,
            quote_price,
        )
        return scaled_answer * quote_price // WAD

    def _validate(self, asset_id: AssetId, report: RoundData) -> None:
        if report.answered_in_round < report.round_id:
            logger.warning(
                "Stale price for %s: answered in round %d before round %d",
                asset_id,
                report.answered_in_round,
                report.round_id,
            )
            msg = f"stale price for {asset_id}"
            raise StaleDataError(msg, asset_id=asset_id, round_id=report.round_id)
        if report.updated_at == 0:
            logger.warning("Round %d not complete for %s", report.round_id, asset_id)
            msg = f"round not complete for {asset_id}"
            raise IncompleteRoundError(msg, asset_id=asset_id, round_id=report.round_id)
        if report.answer <= 0:
            logger.warning("Invalid price %d for %s in round %d", report.answer, asset_id, report.round_id)
            msg = f"invalid price for {asset_id}"
            raise InvalidQuoteError(msg, asset_id=asset_id, round_id=report.round_id)

    def _emit(
        self,
        kind: ChangeKind,
        old_value: str | None,
        new_value: str | None,
        *,
        asset_id: AssetId | None = None,
    ) -> None:
        if self._event_sink is None:
            return
        self._event_sink.emit(
            ChangeEvent(emitter=self._name, kind=kind, asset_id=asset_id, old_value=old_value, new_value=new_value)
        )


def _feed_label(feed: PriceFeed | None) -> str | None:
    if feed is None:
        return None
    return feed.description


__all__ = ["FeedPriceProvider"]
