"""Filter-query construction for the CRM collection endpoints.

Every collection declares a closed, ordered set of filter fields and a fixed
ordering. ``build_filter_query`` walks the declared fields in declaration
order, so the predicate list and its bound values are stable for a given set
of supplied keys no matter how the caller's mapping is ordered.

Values are bound exactly as received. Search terms are not escaped, so ``%``
and ``_`` keep their LIKE meaning, and numeric filters arriving as strings are
left for the storage engine to coerce.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, literal, or_, true
from sqlalchemy.orm import InstrumentedAttribute

from app.crm.models import CRMAccount, CRMActivity, CRMContact, CRMDeal, CRMNote, CRMStage


class FilterOp(str, enum.Enum):
    EQ = "eq"
    GTE = "gte"
    LTE = "lte"
    CONTAINS = "contains"


@dataclass(frozen=True)
class FilterField:
    key: str
    op: FilterOp
    columns: tuple[InstrumentedAttribute[Any], ...]

    def bound_values(self, value: Any) -> list[Any]:
        if self.op is FilterOp.CONTAINS:
            return [f"%{value}%" for _ in self.columns]
        return [value]

    def predicate(self, bound: list[Any]) -> ColumnElement[bool]:
        """Build the predicate over ``bound``, one value per column for CONTAINS."""
        column = self.columns[0]
        if self.op is FilterOp.EQ:
            return column == literal(bound[0])
        if self.op is FilterOp.GTE:
            return column >= literal(bound[0])
        if self.op is FilterOp.LTE:
            return column <= literal(bound[0])
        matches = [item.like(literal(pattern)) for item, pattern in zip(self.columns, bound)]
        return matches[0] if len(matches) == 1 else or_(*matches)


@dataclass(frozen=True)
class OrderKey:
    column: InstrumentedAttribute[Any]
    descending: bool = False
    nulls_last: bool = False

    def clause(self) -> Any:
        ordered = self.column.desc() if self.descending else self.column.asc()
        return ordered.nulls_last() if self.nulls_last else ordered


@dataclass(frozen=True)
class ResourceFilters:
    resource: str
    fields: tuple[FilterField, ...]
    order_by: OrderKey
    tie_breaker: InstrumentedAttribute[Any]

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in self.fields)

    def order_clauses(self) -> list[Any]:
        tie = self.tie_breaker.desc() if self.order_by.descending else self.tie_breaker.asc()
        return [self.order_by.clause(), tie]


@dataclass
class FilterQuery:
    resource: str
    predicates: list[ColumnElement[bool]] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)
    applied_keys: list[str] = field(default_factory=list)
    order_by: list[Any] = field(default_factory=list)

    @property
    def where_clause(self) -> ColumnElement[bool]:
        if not self.predicates:
            return true()
        if len(self.predicates) == 1:
            return self.predicates[0]
        return and_(*self.predicates)

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        if self.predicates:
            stmt = stmt.where(self.where_clause)
        return stmt.order_by(*self.order_by)


RESOURCE_FILTERS: dict[str, ResourceFilters] = {
    "accounts": ResourceFilters(
        resource="accounts",
        fields=(FilterField("search", FilterOp.CONTAINS, (CRMAccount.name,)),),
        order_by=OrderKey(CRMAccount.name),
        tie_breaker=CRMAccount.id,
    ),
    "contacts": ResourceFilters(
        resource="contacts",
        fields=(
            FilterField("account_id", FilterOp.EQ, (CRMContact.account_id,)),
            FilterField(
                "search",
                FilterOp.CONTAINS,
                (CRMContact.first_name, CRMContact.last_name, CRMContact.email),
            ),
        ),
        order_by=OrderKey(CRMContact.last_name),
        tie_breaker=CRMContact.id,
    ),
    "deals": ResourceFilters(
        resource="deals",
        fields=(
            FilterField("stage_id", FilterOp.EQ, (CRMDeal.stage_id,)),
            FilterField("owner_user_id", FilterOp.EQ, (CRMDeal.owner_user_id,)),
            FilterField("start_date", FilterOp.GTE, (CRMDeal.close_date,)),
            FilterField("end_date", FilterOp.LTE, (CRMDeal.close_date,)),
            FilterField("search", FilterOp.CONTAINS, (CRMDeal.title,)),
        ),
        order_by=OrderKey(CRMDeal.updated_at, descending=True),
        tie_breaker=CRMDeal.id,
    ),
    "activities": ResourceFilters(
        resource="activities",
        fields=(FilterField("deal_id", FilterOp.EQ, (CRMActivity.deal_id,)),),
        order_by=OrderKey(CRMActivity.due_date, nulls_last=True),
        tie_breaker=CRMActivity.id,
    ),
    "notes": ResourceFilters(
        resource="notes",
        fields=(FilterField("deal_id", FilterOp.EQ, (CRMNote.deal_id,)),),
        order_by=OrderKey(CRMNote.created_at, descending=True),
        tie_breaker=CRMNote.id,
    ),
    "stages": ResourceFilters(
        resource="stages",
        fields=(),
        order_by=OrderKey(CRMStage.order_index),
        tie_breaker=CRMStage.id,
    ),
}


def _is_supplied(value: Any) -> bool:
    return value is not None and value != ""


def build_filter_query(resource: str, params: Mapping[str, Any]) -> FilterQuery:
    declaration = RESOURCE_FILTERS[resource]
    query = FilterQuery(resource=resource, order_by=declaration.order_clauses())
    for filter_field in declaration.fields:
        value = params.get(filter_field.key)
        if not _is_supplied(value):
            continue
        bound = filter_field.bound_values(value)
        query.predicates.append(filter_field.predicate(bound))
        query.values.extend(bound)
        query.applied_keys.append(filter_field.key)
    return query
