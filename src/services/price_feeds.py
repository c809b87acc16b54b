from __future__ import annotations

import threading
import time

from clients.json_rpc import JsonRpcClient, decode_int, decode_uint, split_words

from .price_types import PriceFeed, RoundData

# AggregatorV3Interface selectors
LATEST_ROUND_DATA_SELECTOR = "0xfeaf968c"
DECIMALS_SELECTOR = "0x313ce567"


class RpcPriceFeed(PriceFeed):
    """Reads an AggregatorV3 feed contract through ``eth_call``."""

    def __init__(self, client: JsonRpcClient, address: str, *, description: str | None = None) -> None:
        if not address:
            msg = "address must be provided"
            raise ValueError(msg)
        self.client = client
        self.address = address
        self._description = description or address
        self._decimals: int | None = None

    @property
    def description(self) -> str:
        return self._description

    def latest_round_data(self) -> RoundData:
        raw = self.client.eth_call(self.address, LATEST_ROUND_DATA_SELECTOR)
        round_id, answer, started_at, updated_at, answered_in_round = split_words(raw, 5)
        return RoundData(
            round_id=decode_uint(round_id),
            answer=decode_int(answer),
            started_at=decode_uint(started_at),
            updated_at=decode_uint(updated_at),
            answered_in_round=decode_uint(answered_in_round),
        )

    def decimals(self) -> int:
        # Feed precision is fixed at deployment, so one read is enough.
        if self._decimals is None:
            raw = self.client.eth_call(self.address, DECIMALS_SELECTOR)
            (word,) = split_words(raw, 1)
            self._decimals = decode_uint(word)
        return self._decimals


class StaticPriceFeed(PriceFeed):
    """In-memory feed whose answer is pushed by the owner, like a mock aggregator."""

    def __init__(self, answer: int, *, decimals: int = 8, description: str = "static-feed") -> None:
        if decimals < 0:
            msg = "decimals must be >= 0"
            raise ValueError(msg)
        self._decimals = decimals
        self._description = description
        self._lock = threading.Lock()
        self._round = RoundData(round_id=0, answer=0, started_at=0, updated_at=0, answered_in_round=0)
        self.update_answer(answer)

    @property
    def description(self) -> str:
        return self._description

    def update_answer(self, answer: int, *, timestamp: int | None = None) -> RoundData:
        ts = int(time.time()) if timestamp is None else timestamp
        with self._lock:
            round_id = self._round.round_id + 1
            self._round = RoundData(
                round_id=round_id,
                answer=answer,
                started_at=ts,
                updated_at=ts,
                answered_in_round=round_id,
            )
            return self._round

    def set_round_data(self, round_data: RoundData) -> None:
        with self._lock:
            self._round = round_data

    def latest_round_data(self) -> RoundData:
        with self._lock:
            return self._round

    def decimals(self) -> int:
        return self._decimals


__all__ = ["RpcPriceFeed", "StaticPriceFeed"]
