from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.crm.filters import build_filter_query
from app.crm.models import CRMAccount, CRMActivity, CRMContact, CRMDeal, CRMNote, CRMStage
from app.crm.reconciliation import RecordReconciler
from app.crm.schemas import (
    AccountRead,
    AccountWrite,
    ActivityRead,
    ActivityWrite,
    ContactRead,
    ContactWrite,
    DealRead,
    DealStageUpdate,
    DealWrite,
    NoteCreate,
    NoteRead,
    StageRead,
    StageWrite,
)
from app.metrics import observe_crm_list_query


logger = logging.getLogger("app.crm.queries")


class CRMResourceService:
    resource: ClassVar[str]
    label: ClassVar[str]
    model: ClassVar[type[Any]]
    read_schema: ClassVar[type[BaseModel]]

    def __init__(self) -> None:
        self.records = RecordReconciler(self.model, resource=self.resource, label=self.label)

    def list(self, session: Session, filters: Mapping[str, Any] | None = None) -> list[Any]:
        query = build_filter_query(self.resource, filters or {})
        rows = session.scalars(query.apply(select(self.model))).all()
        observe_crm_list_query(self.resource, len(query.applied_keys))
        logger.debug(
            "crm.list",
            extra={"resource": self.resource, "filters": query.applied_keys, "result_count": len(rows)},
        )
        return [self.read_schema.model_validate(row) for row in rows]

    def get(self, session: Session, pk: int) -> Any:
        return self.read_schema.model_validate(self.records.get(session, pk))

    def create(self, session: Session, dto: BaseModel) -> Any:
        row = self.records.create(session, dto.model_dump())
        return self.read_schema.model_validate(row)

    def replace(self, session: Session, pk: int, dto: BaseModel) -> Any:
        # Full update: every recognized field is written, defaults included.
        row = self.records.replace(session, pk, dto.model_dump())
        return self.read_schema.model_validate(row)

    def delete(self, session: Session, pk: int) -> dict[str, bool]:
        return self.records.delete(session, pk)


class AccountService(CRMResourceService):
    resource = "accounts"
    label = "Account"
    model = CRMAccount
    read_schema = AccountRead

    def create_account(self, session: Session, dto: AccountWrite) -> AccountRead:
        return self.create(session, dto)

    def update_account(self, session: Session, account_id: int, dto: AccountWrite) -> AccountRead:
        return self.replace(session, account_id, dto)


class ContactService(CRMResourceService):
    resource = "contacts"
    label = "Contact"
    model = CRMContact
    read_schema = ContactRead

    def create_contact(self, session: Session, dto: ContactWrite) -> ContactRead:
        return self.create(session, dto)

    def update_contact(self, session: Session, contact_id: int, dto: ContactWrite) -> ContactRead:
        return self.replace(session, contact_id, dto)


class StageService(CRMResourceService):
    resource = "stages"
    label = "Stage"
    model = CRMStage
    read_schema = StageRead

    def create_stage(self, session: Session, dto: StageWrite) -> StageRead:
        return self.create(session, dto)

    def update_stage(self, session: Session, stage_id: int, dto: StageWrite) -> StageRead:
        return self.replace(session, stage_id, dto)


class DealService(CRMResourceService):
    resource = "deals"
    label = "Deal"
    model = CRMDeal
    read_schema = DealRead
    patchable_fields = ("stage_id",)

    def create_deal(self, session: Session, dto: DealWrite) -> DealRead:
        return self.create(session, dto)

    def update_deal(self, session: Session, deal_id: int, dto: DealWrite) -> DealRead:
        return self.replace(session, deal_id, dto)

    def change_stage(self, session: Session, deal_id: int, dto: DealStageUpdate) -> DealRead:
        # Any stage may follow any other; won/lost stages are terminal only by convention.
        row = self.records.patch(session, deal_id, dto.model_dump(), fields=self.patchable_fields)
        return DealRead.model_validate(row)


class ActivityService(CRMResourceService):
    resource = "activities"
    label = "Activity"
    model = CRMActivity
    read_schema = ActivityRead

    def create_activity(self, session: Session, dto: ActivityWrite) -> ActivityRead:
        return self.create(session, dto)

    def update_activity(self, session: Session, activity_id: int, dto: ActivityWrite) -> ActivityRead:
        return self.replace(session, activity_id, dto)


class NoteService(CRMResourceService):
    resource = "notes"
    label = "Note"
    model = CRMNote
    read_schema = NoteRead

    def create_note(self, session: Session, dto: NoteCreate) -> NoteRead:
        return self.create(session, dto)


account_service = AccountService()
contact_service = ContactService()
stage_service = StageService()
deal_service = DealService()
activity_service = ActivityService()
note_service = NoteService()
