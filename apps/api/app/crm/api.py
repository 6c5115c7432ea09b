from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.crm.schemas import (
    AccountRead,
    AccountWrite,
    ActivityRead,
    ActivityWrite,
    ContactRead,
    ContactWrite,
    DataResponse,
    DealRead,
    DealStageUpdate,
    DealWrite,
    NoteCreate,
    NoteRead,
    StageRead,
    StageWrite,
    SuccessRead,
)
from app.crm.service import (
    account_service,
    activity_service,
    contact_service,
    deal_service,
    note_service,
    stage_service,
)


_auth = [Depends(get_current_user)]

accounts_router = APIRouter(prefix="/api/accounts", tags=["crm.accounts"], dependencies=_auth)
contacts_router = APIRouter(prefix="/api/contacts", tags=["crm.contacts"], dependencies=_auth)
stages_router = APIRouter(prefix="/api/stages", tags=["crm.stages"], dependencies=_auth)
deals_router = APIRouter(prefix="/api/deals", tags=["crm.deals"], dependencies=_auth)
activities_router = APIRouter(prefix="/api/activities", tags=["crm.activities"], dependencies=_auth)
notes_router = APIRouter(prefix="/api/notes", tags=["crm.notes"], dependencies=_auth)


@accounts_router.get("", response_model=DataResponse[list[AccountRead]])
def list_accounts(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DataResponse[list[AccountRead]]:
    return DataResponse(data=account_service.list(db, {"search": search}))


@accounts_router.get("/{account_id}", response_model=DataResponse[AccountRead])
def get_account(account_id: int, db: Session = Depends(get_db)) -> DataResponse[AccountRead]:
    return DataResponse(data=account_service.get(db, account_id))


@accounts_router.post("", response_model=DataResponse[AccountRead], status_code=status.HTTP_201_CREATED)
def create_account(dto: AccountWrite, db: Session = Depends(get_db)) -> DataResponse[AccountRead]:
    return DataResponse(data=account_service.create_account(db, dto))


@accounts_router.put("/{account_id}", response_model=DataResponse[AccountRead])
def update_account(account_id: int, dto: AccountWrite, db: Session = Depends(get_db)) -> DataResponse[AccountRead]:
    return DataResponse(data=account_service.update_account(db, account_id, dto))


@accounts_router.delete("/{account_id}", response_model=DataResponse[SuccessRead])
def delete_account(account_id: int, db: Session = Depends(get_db)) -> DataResponse[SuccessRead]:
    return DataResponse(data=SuccessRead(**account_service.delete(db, account_id)))


@contacts_router.get("", response_model=DataResponse[list[ContactRead]])
def list_contacts(
    account_id: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DataResponse[list[ContactRead]]:
    return DataResponse(data=contact_service.list(db, {"account_id": account_id, "search": search}))


@contacts_router.get("/{contact_id}", response_model=DataResponse[ContactRead])
def get_contact(contact_id: int, db: Session = Depends(get_db)) -> DataResponse[ContactRead]:
    return DataResponse(data=contact_service.get(db, contact_id))


@contacts_router.post("", response_model=DataResponse[ContactRead], status_code=status.HTTP_201_CREATED)
def create_contact(dto: ContactWrite, db: Session = Depends(get_db)) -> DataResponse[ContactRead]:
    return DataResponse(data=contact_service.create_contact(db, dto))


@contacts_router.put("/{contact_id}", response_model=DataResponse[ContactRead])
def update_contact(contact_id: int, dto: ContactWrite, db: Session = Depends(get_db)) -> DataResponse[ContactRead]:
    return DataResponse(data=contact_service.update_contact(db, contact_id, dto))


@contacts_router.delete("/{contact_id}", response_model=DataResponse[SuccessRead])
def delete_contact(contact_id: int, db: Session = Depends(get_db)) -> DataResponse[SuccessRead]:
    return DataResponse(data=SuccessRead(**contact_service.delete(db, contact_id)))


@stages_router.get("", response_model=DataResponse[list[StageRead]])
def list_stages(db: Session = Depends(get_db)) -> DataResponse[list[StageRead]]:
    return DataResponse(data=stage_service.list(db))


@stages_router.get("/{stage_id}", response_model=DataResponse[StageRead])
def get_stage(stage_id: int, db: Session = Depends(get_db)) -> DataResponse[StageRead]:
    return DataResponse(data=stage_service.get(db, stage_id))


@stages_router.post("", response_model=DataResponse[StageRead], status_code=status.HTTP_201_CREATED)
def create_stage(dto: StageWrite, db: Session = Depends(get_db)) -> DataResponse[StageRead]:
    return DataResponse(data=stage_service.create_stage(db, dto))


@stages_router.put("/{stage_id}", response_model=DataResponse[StageRead])
def update_stage(stage_id: int, dto: StageWrite, db: Session = Depends(get_db)) -> DataResponse[StageRead]:
    return DataResponse(data=stage_service.update_stage(db, stage_id, dto))


@stages_router.delete("/{stage_id}", response_model=DataResponse[SuccessRead])
def delete_stage(stage_id: int, db: Session = Depends(get_db)) -> DataResponse[SuccessRead]:
    return DataResponse(data=SuccessRead(**stage_service.delete(db, stage_id)))


@deals_router.get("", response_model=DataResponse[list[DealRead]])
def list_deals(
    stage_id: str | None = Query(default=None),
    owner_user_id: str | None = Query(default=None),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DataResponse[list[DealRead]]:
    filters = {
        "stage_id": stage_id,
        "owner_user_id": owner_user_id,
        "start_date": start_date,
        "end_date": end_date,
        "search": search,
    }
    return DataResponse(data=deal_service.list(db, filters))


@deals_router.get("/{deal_id}", response_model=DataResponse[DealRead])
def get_deal(deal_id: int, db: Session = Depends(get_db)) -> DataResponse[DealRead]:
    return DataResponse(data=deal_service.get(db, deal_id))


@deals_router.post("", response_model=DataResponse[DealRead], status_code=status.HTTP_201_CREATED)
def create_deal(dto: DealWrite, db: Session = Depends(get_db)) -> DataResponse[DealRead]:
    return DataResponse(data=deal_service.create_deal(db, dto))


@deals_router.put("/{deal_id}", response_model=DataResponse[DealRead])
def update_deal(deal_id: int, dto: DealWrite, db: Session = Depends(get_db)) -> DataResponse[DealRead]:
    return DataResponse(data=deal_service.update_deal(db, deal_id, dto))


@deals_router.patch("/{deal_id}/stage", response_model=DataResponse[DealRead])
def change_deal_stage(deal_id: int, dto: DealStageUpdate, db: Session = Depends(get_db)) -> DataResponse[DealRead]:
    return DataResponse(data=deal_service.change_stage(db, deal_id, dto))


@deals_router.delete("/{deal_id}", response_model=DataResponse[SuccessRead])
def delete_deal(deal_id: int, db: Session = Depends(get_db)) -> DataResponse[SuccessRead]:
    return DataResponse(data=SuccessRead(**deal_service.delete(db, deal_id)))


@activities_router.get("", response_model=DataResponse[list[ActivityRead]])
def list_activities(
    deal_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DataResponse[list[ActivityRead]]:
    return DataResponse(data=activity_service.list(db, {"deal_id": deal_id}))


@activities_router.get("/{activity_id}", response_model=DataResponse[ActivityRead])
def get_activity(activity_id: int, db: Session = Depends(get_db)) -> DataResponse[ActivityRead]:
    return DataResponse(data=activity_service.get(db, activity_id))


@activities_router.post("", response_model=DataResponse[ActivityRead], status_code=status.HTTP_201_CREATED)
def create_activity(dto: ActivityWrite, db: Session = Depends(get_db)) -> DataResponse[ActivityRead]:
    return DataResponse(data=activity_service.create_activity(db, dto))


@activities_router.put("/{activity_id}", response_model=DataResponse[ActivityRead])
def update_activity(
    activity_id: int,
    dto: ActivityWrite,
    db: Session = Depends(get_db),
) -> DataResponse[ActivityRead]:
    return DataResponse(data=activity_service.update_activity(db, activity_id, dto))


@activities_router.delete("/{activity_id}", response_model=DataResponse[SuccessRead])
def delete_activity(activity_id: int, db: Session = Depends(get_db)) -> DataResponse[SuccessRead]:
    return DataResponse(data=SuccessRead(**activity_service.delete(db, activity_id)))


@notes_router.get("", response_model=DataResponse[list[NoteRead]])
def list_notes(
    deal_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> DataResponse[list[NoteRead]]:
    return DataResponse(data=note_service.list(db, {"deal_id": deal_id}))


@notes_router.get("/{note_id}", response_model=DataResponse[NoteRead])
def get_note(note_id: int, db: Session = Depends(get_db)) -> DataResponse[NoteRead]:
    return DataResponse(data=note_service.get(db, note_id))


@notes_router.post("", response_model=DataResponse[NoteRead], status_code=status.HTTP_201_CREATED)
def create_note(dto: NoteCreate, db: Session = Depends(get_db)) -> DataResponse[NoteRead]:
    return DataResponse(data=note_service.create_note(db, dto))


@notes_router.delete("/{note_id}", response_model=DataResponse[SuccessRead])
def delete_note(note_id: int, db: Session = Depends(get_db)) -> DataResponse[SuccessRead]:
    return DataResponse(data=SuccessRead(**note_service.delete(db, note_id)))


crm_routers = [
    accounts_router,
    contacts_router,
    stages_router,
    deals_router,
    activities_router,
    notes_router,
]
