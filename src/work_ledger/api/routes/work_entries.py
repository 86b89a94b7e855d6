"""Work entry API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from work_ledger.api.dependencies import CurrentPrincipal, DbSession
from work_ledger.api.schemas import (
    CreateResponse,
    DeleteResponse,
    ErrorResponse,
    MonthTotalResponse,
    UpdateResponse,
    WorkEntryListResponse,
    WorkEntryPayload,
    WorkEntryResponse,
)
from work_ledger.services.work_entry_service import WorkEntryService

router = APIRouter(prefix="/work-entries", tags=["work-entries"])

CompanyQuery = Annotated[str | None, Query()]


@router.get(
    "",
    response_model=WorkEntryListResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_work_entries(
    db: DbSession,
    principal: CurrentPrincipal,
    company_id: CompanyQuery = None,
) -> WorkEntryListResponse:
    """List entries the caller may see, newest first."""
    entries = await WorkEntryService(db).list_work_entries(principal, company_id)
    return WorkEntryListResponse(
        items=[WorkEntryResponse.model_validate(entry) for entry in entries],
        total=len(entries),
    )


@router.get(
    "/worker-month-customer-total",
    response_model=MonthTotalResponse,
    responses={400: {"model": ErrorResponse}},
)
async def worker_month_customer_total(
    db: DbSession,
    principal: CurrentPrincipal,
    worker_id: Annotated[int, Query()],
    month: Annotated[str, Query()],
    company_id: CompanyQuery = None,
) -> MonthTotalResponse:
    """Sum of frozen customer totals for a worker in one month."""
    total = await WorkEntryService(db).worker_month_customer_total(
        principal, worker_id, month, company_id
    )
    return MonthTotalResponse(worker_id=worker_id, month=month, customer_total=total)


@router.post(
    "",
    response_model=CreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_work_entry(
    db: DbSession,
    principal: CurrentPrincipal,
    payload: WorkEntryPayload,
) -> CreateResponse:
    """Create a work entry with explicit rates."""
    result = await WorkEntryService(db).create_work_entry(principal, payload.to_payload())
    return CreateResponse(id=result.id, fees_collected=result.fees_collected)


@router.put(
    "/{entry_id}",
    response_model=UpdateResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_work_entry(
    db: DbSession,
    principal: CurrentPrincipal,
    entry_id: Annotated[int, Path()],
    payload: WorkEntryPayload,
) -> UpdateResponse:
    """Update an entry inside the caller's edit window."""
    result = await WorkEntryService(db).update_work_entry(
        entry_id, principal, payload.to_payload()
    )
    return UpdateResponse(
        changes=result.changes,
        can_edit_rates=result.can_edit_rates,
        fees_collected=result.fees_collected,
    )


@router.delete(
    "/{entry_id}",
    response_model=DeleteResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_work_entry(
    db: DbSession,
    principal: CurrentPrincipal,
    entry_id: Annotated[int, Path()],
    company_id: CompanyQuery = None,
) -> DeleteResponse:
    """Delete an entry inside the caller's edit window."""
    result = await WorkEntryService(db).delete_work_entry(entry_id, principal, company_id)
    return DeleteResponse(changes=result.changes)
