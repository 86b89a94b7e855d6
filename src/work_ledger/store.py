"""Storage reads and writes used by the permission, rate and lifecycle code.

``LedgerStore`` wraps one ``AsyncSession``; every component receives the store
(or the session it wraps) through its constructor.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any, AsyncGenerator

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from work_ledger.errors import DuplicateJobReference, InternalError, WorkLedgerError
from work_ledger.models import (
    Job,
    JobWageRate,
    Permission,
    Role,
    RolePermission,
    User,
    UserPermissionOverride,
    UserSettings,
    WageTier,
    WorkEntry,
    Worker,
)

logger = logging.getLogger(__name__)

JOB_NO1_CONSTRAINT = "work_entry_company_job_no1_unique"


def is_job_no1_violation(exc: IntegrityError) -> bool:
    """Whether an IntegrityError came from the (company, job_no1) constraint."""
    message = str(exc.orig)
    return JOB_NO1_CONSTRAINT in message or (
        "UNIQUE constraint failed" in message and "work_entry.job_no1" in message
    )


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncGenerator[None, None]:
    """Surface unexpected storage faults as an opaque InternalError."""
    try:
        yield
    except WorkLedgerError:
        raise
    except SQLAlchemyError as exc:
        logger.exception("Storage failure during %s", operation)
        raise InternalError() from exc


class LedgerStore:
    """Relational reads/writes over a single session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Permission graph
    # ------------------------------------------------------------------

    async def find_user_by_id(self, user_id: int) -> User | None:
        return await self.session.get(User, user_id)

    async def find_role_by_id(self, role_id: int) -> Role | None:
        return await self.session.get(Role, role_id)

    async def find_role_permission_codes(self, role_id: int) -> set[str]:
        """Codes granted to a role, active or not."""
        result = await self.session.execute(
            select(Permission.code)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
        )
        return set(result.scalars().all())

    async def find_user_override(self, user_id: int, code: str) -> UserPermissionOverride | None:
        result = await self.session.execute(
            select(UserPermissionOverride)
            .join(Permission, Permission.id == UserPermissionOverride.permission_id)
            .where(
                UserPermissionOverride.user_id == user_id,
                Permission.code == code,
            )
        )
        return result.scalar_one_or_none()

    async def find_user_overrides(self, user_id: int) -> dict[str, str]:
        """All overrides of a user, keyed by permission code."""
        result = await self.session.execute(
            select(Permission.code, UserPermissionOverride.effect)
            .join(Permission, Permission.id == UserPermissionOverride.permission_id)
            .where(UserPermissionOverride.user_id == user_id)
        )
        return {code: effect for code, effect in result.all()}

    async def find_active_permission_codes(self, codes: set[str]) -> set[str]:
        """Subset of ``codes`` whose permission is currently active."""
        if not codes:
            return set()
        result = await self.session.execute(
            select(Permission.code).where(
                Permission.code.in_(codes),
                Permission.is_active.is_(True),
            )
        )
        return set(result.scalars().all())

    async def find_user_settings(self, user_id: int) -> UserSettings | None:
        return await self.session.get(UserSettings, user_id)

    async def find_permission_by_code(self, code: str) -> Permission | None:
        result = await self.session.execute(select(Permission).where(Permission.code == code))
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Rate sources
    # ------------------------------------------------------------------

    async def find_job_by_code(self, company_id: int, code: str) -> Job | None:
        result = await self.session.execute(
            select(Job).where(Job.company_id == company_id, Job.job_code == code)
        )
        return result.scalar_one_or_none()

    async def find_job_wage_rate(self, job_id: int, tier_id: int) -> JobWageRate | None:
        result = await self.session.execute(
            select(JobWageRate)
            .join(Job, Job.id == JobWageRate.job_id)
            .where(
                JobWageRate.job_id == job_id,
                JobWageRate.tier_id == tier_id,
                JobWageRate.company_id == Job.company_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_wage_tier(self, company_id: int, tier_id: int) -> WageTier | None:
        result = await self.session.execute(
            select(WageTier).where(WageTier.id == tier_id, WageTier.company_id == company_id)
        )
        return result.scalar_one_or_none()

    async def find_worker(self, company_id: int, worker_id: int) -> Worker | None:
        result = await self.session.execute(
            select(Worker).where(Worker.id == worker_id, Worker.company_id == company_id)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Work entries
    # ------------------------------------------------------------------

    async def find_work_entry(
        self,
        entry_id: int,
        company_id: int,
        min_date: date | None = None,
    ) -> WorkEntry | None:
        """Load an entry scoped to a company and, optionally, a minimum work date.

        Rows older than ``min_date`` are excluded by the query itself.
        """
        query = select(WorkEntry).where(
            WorkEntry.id == entry_id,
            WorkEntry.company_id == company_id,
        )
        if min_date is not None:
            query = query.where(WorkEntry.work_date >= min_date)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def list_work_entries(
        self,
        company_id: int,
        min_date: date | None = None,
    ) -> list[WorkEntry]:
        query = select(WorkEntry).where(WorkEntry.company_id == company_id)
        if min_date is not None:
            query = query.where(WorkEntry.work_date >= min_date)
        query = query.order_by(WorkEntry.work_date.desc(), WorkEntry.id.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def insert_work_entry(self, entry: WorkEntry) -> WorkEntry:
        """Insert an entry, mapping the job_no1 constraint to DuplicateJobReference.

        The insert runs in a savepoint so a constraint failure leaves the rest
        of the unit of work intact.
        """
        try:
            async with self.session.begin_nested():
                self.session.add(entry)
        except IntegrityError as exc:
            if is_job_no1_violation(exc):
                raise DuplicateJobReference(entry.company_id, entry.job_no1) from exc
            raise
        return entry

    async def update_work_entry(
        self,
        entry_id: int,
        company_id: int,
        values: dict[str, Any],
    ) -> int:
        """Apply values to one company-scoped entry. Returns rows affected."""
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(
                    update(WorkEntry)
                    .where(WorkEntry.id == entry_id, WorkEntry.company_id == company_id)
                    .values(**values)
                )
        except IntegrityError as exc:
            if is_job_no1_violation(exc):
                raise DuplicateJobReference(company_id, values.get("job_no1", "")) from exc
            raise
        return result.rowcount or 0

    async def delete_work_entry(self, entry_id: int, company_id: int) -> int:
        result = await self.session.execute(
            delete(WorkEntry).where(WorkEntry.id == entry_id, WorkEntry.company_id == company_id)
        )
        return result.rowcount or 0

    async def sum_customer_total(
        self,
        company_id: int,
        worker_id: int,
        start: date,
        end: date,
    ) -> Decimal:
        """Sum of frozen customer totals for a worker in [start, end).

        Summed in Python; SQL SUM over SQLite's text storage goes through float.
        """
        result = await self.session.execute(
            select(WorkEntry.customer_total).where(
                WorkEntry.company_id == company_id,
                WorkEntry.worker_id == worker_id,
                WorkEntry.work_date >= start,
                WorkEntry.work_date < end,
            )
        )
        return sum(result.scalars().all(), Decimal("0"))
