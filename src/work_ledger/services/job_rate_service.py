"""Job price and wage-rate maintenance.

Changing these values affects future restricted-mode writes only. Existing
work entries keep the snapshot taken when they were written.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from work_ledger.calculators.rate_resolver import coerce_decimal, parse_decimal
from work_ledger.errors import InvalidJobReference, NotFound
from work_ledger.models import Job, JobWageRate, WageTier
from work_ledger.store import LedgerStore, storage_errors

logger = logging.getLogger(__name__)


def normalize_wage_rates(rates: Iterable[Mapping[str, Any]] | None) -> list[tuple[int, Decimal]]:
    """Turn [{tier_id, wage_rate}] into (tier_id, rate) pairs.

    Entries without a numeric tier id are dropped; a missing wage rate is 0.
    """
    if not rates:
        return []
    normalized: list[tuple[int, Decimal]] = []
    for item in rates:
        tier_id = parse_decimal(item.get("tier_id"))
        if tier_id is None:
            continue
        wage_rate = parse_decimal(item.get("wage_rate")) or Decimal("0")
        normalized.append((int(tier_id), wage_rate))
    return normalized


class JobRateService:
    """Maintains Job.normal_price and JobWageRate rows."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.store = LedgerStore(session)

    async def set_job_price(self, company_id: int, job_code: str, price: Any) -> Job:
        new_price = coerce_decimal(price, "normal_price")
        async with storage_errors("set job price"):
            job = await self.store.find_job_by_code(company_id, job_code)
            if job is None:
                raise InvalidJobReference(job_code, company_id)
            job.normal_price = new_price
            await self.session.flush()

        logger.info("Job %s price set to %s in company %s", job_code, new_price, company_id)
        return job

    async def upsert_wage_rates(
        self,
        company_id: int,
        job_id: int,
        rates: Iterable[Mapping[str, Any]] | None,
    ) -> list[JobWageRate]:
        """Insert or update the wage rate for each (job, tier) pair given."""
        pairs = normalize_wage_rates(rates)

        async with storage_errors("upsert wage rates"):
            job = await self.session.get(Job, job_id)
            if job is None or job.company_id != company_id:
                raise NotFound("Job", job_id)

            tier_ids = [tier_id for tier_id, _ in pairs]
            result = await self.session.execute(
                select(WageTier.id).where(
                    WageTier.id.in_(tier_ids),
                    WageTier.company_id == company_id,
                )
            )
            known = set(result.scalars().all())
            if any(tier_id not in known for tier_id in tier_ids):
                # Tier from another company (or no tier at all).
                raise InvalidJobReference(job.job_code, company_id)

            existing_result = await self.session.execute(
                select(JobWageRate).where(JobWageRate.job_id == job_id)
            )
            existing = {row.tier_id: row for row in existing_result.scalars().all()}

            saved: list[JobWageRate] = []
            for tier_id, wage_rate in pairs:
                row = existing.get(tier_id)
                if row is None:
                    row = JobWageRate(
                        company_id=company_id,
                        job_id=job_id,
                        tier_id=tier_id,
                        wage_rate=wage_rate,
                    )
                    self.session.add(row)
                    existing[tier_id] = row
                else:
                    row.wage_rate = wage_rate
                saved.append(row)
            await self.session.flush()

        return saved
