from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RoundData:
    """Latest report of an aggregator-style feed."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


class PriceFeed(Protocol):
    @property
    def description(self) -> str: ...

    def latest_round_data(self) -> RoundData: ...

    def decimals(self) -> int: ...


__all__ = ["PriceFeed", "RoundData"]
