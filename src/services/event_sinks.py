from __future__ import annotations

import logging

from domain.events import ChangeEvent, EventSink

logger = logging.getLogger(__name__)


class InMemoryEventSink(EventSink):
    def __init__(self) -> None:
        self.events: list[ChangeEvent] = []

    def emit(self, event: ChangeEvent) -> None:
        self.events.append(event)


class LoggingEventSink(EventSink):
    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def emit(self, event: ChangeEvent) -> None:
        logger.log(
            self.level,
            "%s %s%s: %s -> %s",
            event.emitter,
            event.kind.value,
            f"[{event.asset_id}]" if event.asset_id else "",
            event.old_value,
            event.new_value,
        )


__all__ = ["InMemoryEventSink", "LoggingEventSink"]
