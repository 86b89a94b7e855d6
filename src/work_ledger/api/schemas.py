"""Pydantic schemas for API request/response models.

Request models check shape only. Numbers arrive as JSON numbers or strings
and are coerced by the services, which own the validation rules.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict

Scalar = int | float | str


# ============================================================================
# Work entry requests
# ============================================================================


class WorkEntryPayload(BaseModel):
    """Fields accepted by create and update."""

    company_id: Scalar | None = None
    worker_id: Scalar | None = None
    job_code: str | None = None
    amount: Scalar | None = None
    job_no1: Scalar | None = None
    job_no2: Scalar | None = None
    work_date: str | None = None
    note: str | None = None
    customer_rate: Scalar | None = None
    customer_total: Scalar | None = None
    fees_collected: Scalar | None = None
    wage_tier_id: Scalar | None = None
    wage_rate: Scalar | None = None
    wage_total: Scalar | None = None
    rate: Scalar | None = None
    pay: Scalar | None = None
    payment_channel: str | None = None
    is_bank: bool | Scalar | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ============================================================================
# Work entry responses
# ============================================================================


class WorkEntryResponse(BaseModel):
    """A stored work entry with its frozen snapshots."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    worker_id: int
    job_id: int
    work_date: date
    job_no1: str
    job_no2: str | None = None
    amount: Decimal
    customer_rate: Decimal
    customer_total: Decimal
    fees_collected: Decimal | None = None
    wage_tier_id: int | None = None
    wage_rate: Decimal
    wage_total: Decimal
    rate: Decimal
    pay: Decimal
    is_bank: bool
    payment_channel: str
    note: str | None = None


class WorkEntryListResponse(BaseModel):
    items: list[WorkEntryResponse]
    total: int


class CreateResponse(BaseModel):
    id: int
    fees_collected: Decimal


class UpdateResponse(BaseModel):
    changes: int
    can_edit_rates: bool
    fees_collected: Decimal


class DeleteResponse(BaseModel):
    changes: int


class MonthTotalResponse(BaseModel):
    worker_id: int
    month: str
    customer_total: Decimal


class ErrorResponse(BaseModel):
    """Rendered WorkLedgerError."""

    model_config = ConfigDict(extra="allow")

    error: str
    detail: str
