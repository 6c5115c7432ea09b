"""Write-then-reread helper shared by every mutating CRM handler.

Each operation issues exactly one write statement and commits it. Creates and
updates then read the row back by primary key, so callers always observe the
persisted state, including engine-assigned ids, defaults and timestamps.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Mapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.crm.models import utcnow
from app.metrics import observe_crm_mutation


logger = logging.getLogger("app.crm.mutations")
tracer = trace.get_tracer("app.crm.mutations")


class RecordReconciler:
    def __init__(self, model: type[Any], resource: str, label: str) -> None:
        self.model = model
        self.resource = resource
        self.label = label

    def get(self, session: Session, pk: int) -> Any:
        row = session.scalar(
            select(self.model).where(self.model.id == pk).execution_options(populate_existing=True)
        )
        if row is None:
            raise NotFoundError(self.label)
        return row

    def create(self, session: Session, values: Mapping[str, Any]) -> Any:
        with self._mutation(session, "create") as span:
            result = session.execute(insert(self.model.__table__).values(**values))
            pk = result.inserted_primary_key[0]
            session.commit()
            span.set_attribute("entity_id", pk)
        self._record("create", pk)
        return self.get(session, pk)

    def replace(self, session: Session, pk: int, values: Mapping[str, Any]) -> Any:
        with self._mutation(session, "update", pk):
            self._update(session, pk, dict(values))
        self._record("update", pk)
        return self.get(session, pk)

    def patch(self, session: Session, pk: int, values: Mapping[str, Any], *, fields: Iterable[str]) -> Any:
        allowed = set(fields)
        changes = {key: value for key, value in values.items() if key in allowed}
        with self._mutation(session, "patch", pk):
            self._update(session, pk, changes)
        self._record("patch", pk, changed_fields=sorted(changes))
        return self.get(session, pk)

    def delete(self, session: Session, pk: int) -> dict[str, bool]:
        with self._mutation(session, "delete", pk):
            result = session.execute(delete(self.model).where(self.model.id == pk))
            session.commit()
        self._record("delete", pk, rowcount=result.rowcount)
        return {"success": True}

    def _update(self, session: Session, pk: int, changes: dict[str, Any]) -> None:
        if hasattr(self.model, "updated_at"):
            changes["updated_at"] = utcnow()
        result = session.execute(update(self.model).where(self.model.id == pk).values(**changes))
        if result.rowcount == 0:
            raise NotFoundError(self.label)
        session.commit()

    @contextmanager
    def _mutation(self, session: Session, action: str, pk: int | None = None) -> Generator[trace.Span, None, None]:
        with tracer.start_as_current_span(f"crm.{self.resource}.{action}") as span:
            span.set_attribute("crm.resource", self.resource)
            if pk is not None:
                span.set_attribute("entity_id", pk)
            try:
                yield span
            except Exception as exc:
                session.rollback()
                logger.warning(
                    "crm.mutation_failed",
                    extra={"resource": self.resource, "action": action, "entity_id": pk, "error": str(exc)},
                )
                raise

    def _record(self, action: str, pk: int, **fields: Any) -> None:
        observe_crm_mutation(resource=self.resource, action=action)
        logger.info(
            "crm.mutation",
            extra={"resource": self.resource, "action": action, "entity_id": pk, **fields},
        )
