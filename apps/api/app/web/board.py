"""Pipeline board state kept on the client side.

The board holds the last snapshot read from the server plus a map of
optimistic stage moves that have not been confirmed yet. A failed move is
never undone locally: the pending move is dropped and the whole snapshot is
re-read, so the board always falls back to server state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from app.web.client import ApiClient, ApiRequestError


logger = logging.getLogger("app.web.board")

BOARD_FILTER_KEYS = ("search", "stage_id", "owner_user_id", "start_date", "end_date")


@dataclass
class BoardColumn:
    stage: dict[str, Any]
    deals: list[dict[str, Any]]

    @property
    def total_amount(self) -> float:
        return sum(deal.get("amount") or 0 for deal in self.deals)


@dataclass
class PipelineBoard:
    client: ApiClient
    filters: dict[str, Any] = field(default_factory=dict)
    stages: list[dict[str, Any]] = field(default_factory=list)
    accounts: list[dict[str, Any]] = field(default_factory=list)
    pending_moves: dict[int, int] = field(default_factory=dict)
    last_error: ApiRequestError | None = None
    _deals: list[dict[str, Any]] = field(default_factory=list)

    def set_filters(self, **filters: Any) -> None:
        unknown = set(filters) - set(BOARD_FILTER_KEYS)
        if unknown:
            raise ValueError(f"Unknown board filters: {', '.join(sorted(unknown))}")
        self.filters = {key: value for key, value in filters.items() if value not in (None, "")}

    def refresh(self) -> None:
        deals = self.client.get("/api/deals", **self.filters)
        stages = self.client.get("/api/stages")
        accounts = self.client.get("/api/accounts")
        self._deals = deals
        self.stages = stages
        self.accounts = accounts
        self.pending_moves.clear()

    @property
    def deals(self) -> list[dict[str, Any]]:
        merged: list[dict[str, Any]] = []
        for deal in self._deals:
            pending_stage = self.pending_moves.get(deal["id"])
            merged.append(deal if pending_stage is None else {**deal, "stage_id": pending_stage})
        return merged

    def columns(self) -> list[BoardColumn]:
        grouped: dict[int, list[dict[str, Any]]] = {stage["id"]: [] for stage in self.stages}
        for deal in self.deals:
            grouped.setdefault(deal["stage_id"], []).append(deal)
        ordered = sorted(self.stages, key=lambda stage: (stage["order_index"], stage["id"]))
        return [BoardColumn(stage=stage, deals=grouped[stage["id"]]) for stage in ordered]

    def move_deal(self, deal_id: int, stage_id: int) -> bool:
        self.pending_moves[deal_id] = stage_id
        try:
            confirmed = self.client.patch(f"/api/deals/{deal_id}/stage", {"stage_id": stage_id})
        except ApiRequestError as exc:
            self.last_error = exc
            self.pending_moves.pop(deal_id, None)
            logger.warning(
                "board.move_failed",
                extra={"entity_id": deal_id, "status_code": exc.status_code, "error": exc.message},
            )
            self.refresh()
            return False

        self.last_error = None
        self.pending_moves.pop(deal_id, None)
        self._deals = [confirmed if deal["id"] == deal_id else deal for deal in self._deals]
        return True

    def create_deal(
        self,
        *,
        title: str,
        account_id: int,
        stage_id: int,
        owner_user_id: int,
        amount: float = 0,
        currency: str = "USD",
        close_date: str | None = None,
        primary_contact_id: int | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": title,
            "account_id": account_id,
            "stage_id": stage_id,
            "owner_user_id": owner_user_id,
            "amount": amount,
            "currency": currency,
            "close_date": close_date,
            "primary_contact_id": primary_contact_id,
        }
        created = self.client.post("/api/deals", payload)
        self.refresh()
        return created


@dataclass
class DashboardSummary:
    total_pipeline: float
    deal_count: int
    account_count: int
    stage_count: int

    @classmethod
    def load(cls, client: ApiClient) -> DashboardSummary:
        deals = client.get("/api/deals")
        accounts = client.get("/api/accounts")
        stages = client.get("/api/stages")
        return cls(
            total_pipeline=sum(deal.get("amount") or 0 for deal in deals),
            deal_count=len(deals),
            account_count=len(accounts),
            stage_count=len(stages),
        )
