"""Tests for job price and wage-rate maintenance."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from work_ledger.errors import InvalidJobReference, InvalidNumber, NotFound
from work_ledger.models import JobWageRate, WageTier
from work_ledger.services.job_rate_service import JobRateService, normalize_wage_rates


class TestNormalizeWageRates:
    def test_drops_entries_without_numeric_tier(self):
        pairs = normalize_wage_rates(
            [
                {"tier_id": "3", "wage_rate": "12.5"},
                {"tier_id": "abc", "wage_rate": "9"},
                {"wage_rate": "9"},
                {"tier_id": 4},
            ]
        )
        assert pairs == [(3, Decimal("12.5")), (4, Decimal("0"))]

    def test_empty_input(self):
        assert normalize_wage_rates(None) == []
        assert normalize_wage_rates([]) == []


class TestJobRateService:
    @pytest.mark.asyncio
    async def test_set_job_price(self, session, world):
        job = await JobRateService(session).set_job_price(
            world["companies"]["A"].id, "CLEAN", "42.50"
        )
        assert job.normal_price == Decimal("42.50")

    @pytest.mark.asyncio
    async def test_set_price_on_unknown_job(self, session, world):
        with pytest.raises(InvalidJobReference):
            await JobRateService(session).set_job_price(world["companies"]["A"].id, "NOPE", "1")

    @pytest.mark.asyncio
    async def test_set_price_rejects_non_numbers(self, session, world):
        with pytest.raises(InvalidNumber):
            await JobRateService(session).set_job_price(world["companies"]["A"].id, "CLEAN", "x")

    @pytest.mark.asyncio
    async def test_upsert_updates_and_inserts(self, session, world):
        company_id = world["companies"]["A"].id
        job = world["jobs"]["A"]
        tier2 = WageTier(company_id=company_id, tier_code="T2", tier_name="Tier 2")
        session.add(tier2)
        await session.flush()

        saved = await JobRateService(session).upsert_wage_rates(
            company_id,
            job.id,
            [
                {"tier_id": world["wage_tiers"]["A"].id, "wage_rate": "14"},
                {"tier_id": tier2.id, "wage_rate": "16"},
            ],
        )

        assert len(saved) == 2
        result = await session.execute(
            select(JobWageRate.tier_id, JobWageRate.wage_rate).where(JobWageRate.job_id == job.id)
        )
        rates = dict(result.all())
        assert rates == {
            world["wage_tiers"]["A"].id: Decimal("14"),
            tier2.id: Decimal("16"),
        }

    @pytest.mark.asyncio
    async def test_tier_of_other_company_is_rejected(self, session, world):
        with pytest.raises(InvalidJobReference):
            await JobRateService(session).upsert_wage_rates(
                world["companies"]["A"].id,
                world["jobs"]["A"].id,
                [{"tier_id": world["wage_tiers"]["B"].id, "wage_rate": "10"}],
            )

    @pytest.mark.asyncio
    async def test_job_of_other_company_is_not_found(self, session, world):
        with pytest.raises(NotFound):
            await JobRateService(session).upsert_wage_rates(
                world["companies"]["A"].id,
                world["jobs"]["B"].id,
                [{"tier_id": world["wage_tiers"]["A"].id, "wage_rate": "10"}],
            )
