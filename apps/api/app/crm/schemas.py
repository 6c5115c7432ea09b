from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


T = TypeVar("T")

ActivityStatus = Literal["open", "done"]


def _blank_to_none(value: Any) -> Any:
    if value == "":
        return None
    return value


# Date inputs left empty on a form arrive as "".
OptionalDate = Annotated[date | None, BeforeValidator(_blank_to_none)]


class DataResponse(BaseModel, Generic[T]):
    data: T


class SuccessRead(BaseModel):
    success: bool = True


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str


class AccountWrite(BaseModel):
    name: str = Field(min_length=1)
    industry: str | None = None
    website: str | None = None
    phone: str | None = None
    address: str | None = None


class AccountRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    industry: str | None
    website: str | None
    phone: str | None
    address: str | None
    created_at: datetime
    updated_at: datetime


class ContactWrite(BaseModel):
    account_id: int
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None
    title: str | None = None


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    title: str | None
    created_at: datetime
    updated_at: datetime


class StageWrite(BaseModel):
    name: str = Field(min_length=1)
    order_index: int
    is_won: int = Field(default=0, ge=0, le=1)
    is_lost: int = Field(default=0, ge=0, le=1)


class StageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    order_index: int
    is_won: int
    is_lost: int


class DealWrite(BaseModel):
    account_id: int
    primary_contact_id: int | None = None
    title: str = Field(min_length=1)
    amount: float = Field(ge=0)
    currency: str = Field(default="USD", pattern=r"^[A-Z]{3}$")
    stage_id: int
    owner_user_id: int
    close_date: OptionalDate = None


class DealStageUpdate(BaseModel):
    stage_id: int


class DealRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: int
    primary_contact_id: int | None
    title: str
    amount: float
    currency: str
    stage_id: int
    owner_user_id: int
    close_date: date | None
    created_at: datetime
    updated_at: datetime


class ActivityWrite(BaseModel):
    deal_id: int
    type: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    due_date: OptionalDate = None
    status: ActivityStatus = "open"
    assigned_user_id: int


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deal_id: int
    type: str
    subject: str
    due_date: date | None
    status: str
    assigned_user_id: int
    created_at: datetime
    updated_at: datetime


class NoteCreate(BaseModel):
    deal_id: int
    author_user_id: int
    body: str = Field(min_length=1)


class NoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deal_id: int
    author_user_id: int
    body: str
    created_at: datetime
