from __future__ import annotations

from datetime import timezone

from sqlalchemy.orm import Session

from db import models
from domain.events import ChangeEvent, ChangeKind, EventSink


class ChangeEventRepository(EventSink):
    def __init__(self, session: Session) -> None:
        self._session = session

    def emit(self, event: ChangeEvent) -> None:
        self.create(event)

    def create(self, event: ChangeEvent) -> ChangeEvent:
        orm_event = models.ChangeEventOrm(
            id=event.id,
            timestamp=event.timestamp,
            emitter=event.emitter,
            kind=event.kind.value,
            asset_id=event.asset_id,
            old_value=event.old_value,
            new_value=event.new_value,
        )
        self._session.add(orm_event)
        self._session.commit()
        self._session.refresh(orm_event)
        return self._to_domain(orm_event)

    def list(
        self,
        *,
        emitter: str | None = None,
        asset_id: str | None = None,
        kind: ChangeKind | None = None,
    ) -> list[ChangeEvent]:
        query = self._session.query(models.ChangeEventOrm)
        if emitter is not None:
            query = query.filter(models.ChangeEventOrm.emitter == emitter)
        if asset_id is not None:
            query = query.filter(models.ChangeEventOrm.asset_id == asset_id)
        if kind is not None:
            query = query.filter(models.ChangeEventOrm.kind == kind.value)
        return [self._to_domain(row) for row in query.order_by(models.ChangeEventOrm.seq.asc()).all()]

    @staticmethod
    def _to_domain(orm_event: models.ChangeEventOrm) -> ChangeEvent:
        timestamp = orm_event.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        return ChangeEvent(
            id=orm_event.id,
            timestamp=timestamp,
            emitter=orm_event.emitter,
            kind=ChangeKind(orm_event.kind),
            asset_id=orm_event.asset_id,
            old_value=orm_event.old_value,
            new_value=orm_event.new_value,
        )


__all__ = ["ChangeEventRepository"]
