"""Work entry service - create, update, delete and list work entries.

Every mutation runs as one unit of work:
1. Permission and company checks
2. Edit window gate (update/delete)
3. Rate resolution, which decides the frozen customer/wage snapshot
4. A single write; constraint violations map to the error taxonomy

Nothing is written before all checks pass. The caller owns commit/rollback.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from work_ledger.calculators.rate_resolver import (
    RateResolver,
    coerce_decimal,
    detect_rate_change,
    parse_decimal,
)
from work_ledger.errors import (
    BadRequest,
    Forbidden,
    InvalidFees,
    InvalidJobReference,
    InvalidNumber,
    MissingFields,
    NotFound,
    OutOfEditWindow,
    RateEditForbidden,
)
from work_ledger.models import Job, WorkEntry
from work_ledger.services.edit_window import EditWindowPolicy, window_start
from work_ledger.services.permissions import (
    PermissionCode,
    Principal,
    authorize,
    require,
)
from work_ledger.store import LedgerStore, storage_errors

logger = logging.getLogger(__name__)

CREATE_REQUIRED = (
    "worker_id",
    "job_code",
    "amount",
    "job_no1",
    "work_date",
    "customer_rate",
    "customer_total",
    "wage_tier_id",
    "wage_rate",
    "wage_total",
)
UPDATE_REQUIRED = ("worker_id", "job_code", "amount", "job_no1", "work_date")

MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


@dataclass(frozen=True)
class CreateResult:
    id: int
    fees_collected: Decimal


@dataclass(frozen=True)
class UpdateResult:
    changes: int
    can_edit_rates: bool
    fees_collected: Decimal


@dataclass(frozen=True)
class DeleteResult:
    changes: int


def resolve_company_id(principal: Principal, requested: Any = None) -> int:
    """Pick the company a request acts on.

    Non-admins are pinned to their own company. Admins must name one
    explicitly; there is no fallback tenant.
    """
    requested_id = _optional_int(requested, "company_id")

    if not principal.is_admin:
        if principal.company_id is None:
            raise BadRequest("No company context for this user")
        if requested_id is not None and requested_id != principal.company_id:
            raise Forbidden(message="Cross-company access is not allowed")
        return principal.company_id

    if requested_id is None:
        raise BadRequest("company_id is required")
    return requested_id


class WorkEntryService:
    """Orchestrates the work entry lifecycle for one session."""

    def __init__(
        self,
        session: AsyncSession,
        today: Callable[[], date] = date.today,
    ):
        self.session = session
        self.store = LedgerStore(session)
        self.edit_window = EditWindowPolicy(self.store)
        self.rate_resolver = RateResolver(self.store)
        self.today = today

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_work_entry(
        self,
        principal: Principal,
        payload: Mapping[str, Any],
    ) -> CreateResult:
        """Create an entry from explicit rates and totals.

        Creation is gated by WORK_ENTRY_CREATE and always takes the caller's
        rates, like the privileged update path.
        """
        require(principal, PermissionCode.WORK_ENTRY_CREATE)
        company_id = resolve_company_id(principal, payload.get("company_id"))

        _require_fields(payload, CREATE_REQUIRED)

        amount = coerce_decimal(payload["amount"], "amount")
        supplied = {
            name: coerce_decimal(payload[name], name)
            for name in ("customer_rate", "customer_total", "wage_rate", "wage_total")
        }
        work_date = _parse_date(payload["work_date"])

        async with storage_errors("create work entry"):
            job = await self._resolve_job(company_id, payload["job_code"])
            worker_id = await self._resolve_worker(company_id, payload["worker_id"])
            tier_id = await self._resolve_tier(company_id, payload["wage_tier_id"])

            rates = await self.rate_resolver.resolve_rates(
                job,
                tier_id,
                supplied["customer_rate"],
                supplied["wage_rate"],
                True,
                amount,
            )
            for name in ("customer_total", "wage_total"):
                computed = getattr(rates, name)
                if supplied[name] != computed:
                    logger.warning(
                        "Supplied %s %s differs from computed %s; storing computed value",
                        name,
                        supplied[name],
                        computed,
                    )

            fees = parse_decimal(payload.get("fees_collected"))
            fees_collected = rates.customer_total if fees is None or fees < 0 else fees

            values = rates.to_values()
            legacy_rate = parse_decimal(payload.get("rate"))
            legacy_pay = parse_decimal(payload.get("pay"))
            if legacy_rate is not None:
                values["rate"] = legacy_rate
            if legacy_pay is not None:
                values["pay"] = legacy_pay

            entry = WorkEntry(
                company_id=company_id,
                worker_id=worker_id,
                job_id=job.id,
                amount=amount,
                is_bank=_is_bank(payload),
                wage_tier_id=tier_id,
                job_no1=str(payload["job_no1"]).strip(),
                job_no2=_optional_text(payload.get("job_no2")),
                work_date=work_date,
                note=_optional_text(payload.get("note")),
                fees_collected=fees_collected,
                **values,
            )
            await self.store.insert_work_entry(entry)

        logger.info(
            "Work entry %s created in company %s by user %s",
            entry.id,
            company_id,
            principal.user_id,
        )
        return CreateResult(id=entry.id, fees_collected=fees_collected)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_work_entry(
        self,
        entry_id: int,
        principal: Principal,
        payload: Mapping[str, Any],
    ) -> UpdateResult:
        """Update an entry inside the principal's edit window.

        Without WORK_ENTRY_EDIT_RATES, any rate that differs from the stored
        one is refused, and the written rates are recomputed from the job and
        tier rather than taken from the request.
        """
        require(principal, PermissionCode.WORK_ENTRY_EDIT)
        company_id = resolve_company_id(principal, payload.get("company_id"))

        async with storage_errors("update work entry"):
            # Window gate first: an out-of-window entry is refused whatever the payload.
            existing = await self.ensure_row_within_limit(entry_id, company_id, principal)

            _require_fields(payload, UPDATE_REQUIRED)
            hours = coerce_decimal(payload["amount"], "amount")
            if hours <= 0:
                raise InvalidNumber("amount", payload["amount"])
            work_date = _parse_date(payload["work_date"])

            job = await self._resolve_job(company_id, payload["job_code"])

            can_edit_rates = authorize(principal, PermissionCode.WORK_ENTRY_EDIT_RATES)

            if detect_rate_change(
                existing,
                payload.get("customer_rate"),
                payload.get("wage_rate"),
            ) and not can_edit_rates:
                logger.warning(
                    "Rate change on work entry %s refused for user %s",
                    entry_id,
                    principal.user_id,
                )
                raise RateEditForbidden(entry_id)

            requested_tier = payload.get("wage_tier_id")
            if requested_tier not in (None, ""):
                tier_id = await self._resolve_tier(company_id, requested_tier)
            else:
                tier_id = existing.wage_tier_id

            rates = await self.rate_resolver.resolve_rates(
                job,
                tier_id,
                payload.get("customer_rate"),
                payload.get("wage_rate"),
                can_edit_rates,
                hours,
            )

            requested_fees = payload.get("fees_collected")
            fees = parse_decimal(requested_fees)
            if fees is not None and fees < 0:
                raise InvalidFees(requested_fees)
            fees_collected = rates.customer_total if fees is None else fees

            worker_id = await self._resolve_worker(company_id, payload["worker_id"])

            changes = await self.store.update_work_entry(
                entry_id,
                company_id,
                {
                    "job_id": job.id,
                    "amount": hours,
                    "is_bank": _is_bank(payload),
                    "worker_id": worker_id,
                    "wage_tier_id": tier_id,
                    "job_no1": str(payload["job_no1"]).strip(),
                    "job_no2": _optional_text(payload.get("job_no2")),
                    "work_date": work_date,
                    "note": _optional_text(payload.get("note")),
                    "fees_collected": fees_collected,
                    **rates.to_values(),
                },
            )
            if changes == 0:
                raise NotFound("Work entry", entry_id)

        logger.info(
            "Work entry %s updated in company %s by user %s (%s rates)",
            entry_id,
            company_id,
            principal.user_id,
            rates.mode.value,
        )
        return UpdateResult(
            changes=changes,
            can_edit_rates=can_edit_rates,
            fees_collected=fees_collected,
        )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_work_entry(
        self,
        entry_id: int,
        principal: Principal,
        company_id: Any = None,
    ) -> DeleteResult:
        """Permanently delete an entry inside the principal's edit window."""
        require(principal, PermissionCode.WORK_ENTRY_DELETE)
        company = resolve_company_id(principal, company_id)

        async with storage_errors("delete work entry"):
            await self.ensure_row_within_limit(entry_id, company, principal, action="delete")
            changes = await self.store.delete_work_entry(entry_id, company)
            if changes == 0:
                raise NotFound("Work entry", entry_id)

        logger.info(
            "Work entry %s deleted in company %s by user %s",
            entry_id,
            company,
            principal.user_id,
        )
        return DeleteResult(changes=changes)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_work_entries(
        self,
        principal: Principal,
        company_id: Any = None,
    ) -> list[WorkEntry]:
        """Entries of a company, newest first.

        Limited principals only see rows inside their edit window.
        """
        company = resolve_company_id(principal, company_id)
        async with storage_errors("list work entries"):
            window_days = await self.edit_window.edit_window_days(principal)
            return await self.store.list_work_entries(
                company,
                window_start(window_days, self.today()),
            )

    async def worker_month_customer_total(
        self,
        principal: Principal,
        worker_id: Any,
        month: str,
        company_id: Any = None,
    ) -> Decimal:
        """Sum of frozen customer totals for one worker in a YYYY-MM month."""
        company = resolve_company_id(principal, company_id)
        worker = _optional_int(worker_id, "worker_id")
        month = (month or "").strip()
        if worker is None or not MONTH_PATTERN.match(month):
            raise BadRequest("worker_id and month (YYYY-MM) are required")

        year, month_number = (int(part) for part in month.split("-"))
        if not 1 <= month_number <= 12:
            raise BadRequest(f"Invalid month: {month}")
        start = date(year, month_number, 1)
        end = (start + timedelta(days=32)).replace(day=1)

        async with storage_errors("worker month total"):
            return await self.store.sum_customer_total(company, worker, start, end)

    async def ensure_row_within_limit(
        self,
        entry_id: int,
        company_id: int,
        principal: Principal,
        action: str = "edit",
    ) -> WorkEntry:
        """Load an entry only if it is inside the principal's edit window.

        The window is applied in the query. A row that exists but is too old
        raises OutOfEditWindow; a row that does not exist raises NotFound.
        """
        window_days = await self.edit_window.edit_window_days(principal)
        min_date = window_start(window_days, self.today())

        entry = await self.store.find_work_entry(entry_id, company_id, min_date)
        if entry is not None:
            return entry

        if min_date is not None and await self.store.find_work_entry(entry_id, company_id):
            raise OutOfEditWindow(entry_id, window_days, action)
        raise NotFound("Work entry", entry_id)

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    async def _resolve_job(self, company_id: int, job_code: Any) -> Job:
        code = str(job_code).strip()
        job = await self.store.find_job_by_code(company_id, code)
        if job is None:
            raise InvalidJobReference(code, company_id)
        return job

    async def _resolve_worker(self, company_id: int, worker_id: Any) -> int:
        worker = _optional_int(worker_id, "worker_id")
        if worker is None or await self.store.find_worker(company_id, worker) is None:
            raise NotFound("Worker", worker_id)
        return worker

    async def _resolve_tier(self, company_id: int, tier_id: Any) -> int:
        tier = _optional_int(tier_id, "wage_tier_id")
        if tier is None or await self.store.find_wage_tier(company_id, tier) is None:
            raise NotFound("Wage tier", tier_id)
        return tier


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require_fields(payload: Mapping[str, Any], names: tuple[str, ...]) -> None:
    missing = [name for name in names if _is_blank(payload.get(name))]
    if missing:
        raise MissingFields(missing)


def _optional_int(value: Any, field: str) -> int | None:
    if _is_blank(value):
        return None
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        raise InvalidNumber(field, value)
    return int(number)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_bank(payload: Mapping[str, Any]) -> bool:
    channel = payload.get("payment_channel")
    if channel is not None:
        return str(channel).strip().lower() == "bank"
    flag = payload.get("is_bank")
    if isinstance(flag, bool):
        return flag
    return str(flag).strip() in ("1", "true", "True")


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise BadRequest(f"Invalid work_date: {value}") from exc
