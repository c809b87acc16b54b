from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import NewType, Protocol
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

ChangeEventId = NewType("ChangeEventId", UUID)


class ChangeKind(StrEnum):
    ADMINISTRATOR = "ADMINISTRATOR"
    GUARDIAN = "GUARDIAN"
    DEFAULT_PROVIDER = "DEFAULT_PROVIDER"
    CALL_DEFAULT_FIRST = "CALL_DEFAULT_FIRST"
    PROVIDER = "PROVIDER"
    FEED = "FEED"
    FEED_QUOTE_CURRENCY = "FEED_QUOTE_CURRENCY"


# Kinds that describe a single asset entry and therefore carry an asset_id.
PER_ASSET_KINDS = frozenset({ChangeKind.PROVIDER, ChangeKind.FEED, ChangeKind.FEED_QUOTE_CURRENCY})


class ChangeEvent(BaseModel):
    """Audit record of one state change on a registry or feed provider.

    ``old_value``/``new_value`` hold labels, not live references: provider names,
    feed descriptions, addresses or ``"true"``/``"false"`` for flags. ``None`` means
    the slot was (or became) unset.
    """

    id: ChangeEventId = ChangeEventId(Field(default_factory=uuid4))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    emitter: str
    kind: ChangeKind
    asset_id: str | None = None
    old_value: str | None = None
    new_value: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> ChangeEvent:
        if not self.emitter:
            raise ValueError("ChangeEvent.emitter must be non-empty")
        if self.kind in PER_ASSET_KINDS and not self.asset_id:
            raise ValueError(f"{self.kind} events must carry an asset_id")
        if self.kind not in PER_ASSET_KINDS and self.asset_id is not None:
            raise ValueError(f"{self.kind} events must not carry an asset_id")
        return self


class EventSink(Protocol):
    def emit(self, event: ChangeEvent) -> None: ...


def flag_label(value: bool) -> str:
    return "true" if value else "false"


__all__ = [
    "ChangeEvent",
    "ChangeEventId",
    "ChangeKind",
    "EventSink",
    "PER_ASSET_KINDS",
    "flag_label",
]
