"""Customer and wage rate resolution for work entries."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from work_ledger.calculators.types import RateMode, ResolvedRates
from work_ledger.errors import InvalidNumber, InvalidRate, RateResolutionFailed

if TYPE_CHECKING:
    from work_ledger.models import Job, WorkEntry
    from work_ledger.store import LedgerStore


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a finite decimal. Blank input and unparseable input give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def coerce_decimal(value: Any, field: str) -> Decimal:
    """Parse a required numeric field, raising InvalidNumber."""
    number = parse_decimal(value)
    if number is None:
        raise InvalidNumber(field, value)
    return number


def compute_total(rate: Decimal, hours: Decimal) -> Decimal:
    """rate x hours, exact."""
    return rate * hours


def detect_rate_change(
    entry: WorkEntry,
    requested_customer_rate: Any,
    requested_wage_rate: Any,
) -> bool:
    """Whether the caller is asking for rates other than the stored ones.

    An absent rate is not a change request. A present value that is not a
    number can never equal the stored rate, so it counts as a change.
    """
    for requested, stored in (
        (requested_customer_rate, entry.customer_rate),
        (requested_wage_rate, entry.wage_rate),
    ):
        if requested is None or (isinstance(requested, str) and not requested.strip()):
            continue
        number = parse_decimal(requested)
        if number is None or number != Decimal(str(stored)):
            return True
    return False


class RateResolver:
    """Resolves the customer and wage rate for a write.

    Privileged mode (can_edit_rates):
    - caller-supplied rates are used as-is
    - each must be finite and > 0, else InvalidRate

    Restricted mode:
    - caller-supplied rates are ignored
    - customer rate = job.normal_price
    - wage rate = JobWageRate for (job, tier), 0 when there is no row
    - each must be > 0, else RateResolutionFailed

    Totals are rate x hours in exact decimal arithmetic.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def resolve_rates(
        self,
        job: Job,
        tier_id: int | None,
        requested_customer_rate: Any,
        requested_wage_rate: Any,
        can_edit_rates: bool,
        hours: Decimal,
    ) -> ResolvedRates:
        if can_edit_rates:
            customer_rate = self._requested_rate(requested_customer_rate, "customer_rate")
            wage_rate = self._requested_rate(requested_wage_rate, "wage_rate")
            mode = RateMode.PRIVILEGED
        else:
            customer_rate, wage_rate = await self._stored_rates(job, tier_id)
            mode = RateMode.RESTRICTED

        return ResolvedRates(
            customer_rate=customer_rate,
            customer_total=compute_total(customer_rate, hours),
            wage_rate=wage_rate,
            wage_total=compute_total(wage_rate, hours),
            mode=mode,
        )

    @staticmethod
    def _requested_rate(value: Any, field: str) -> Decimal:
        rate = parse_decimal(value)
        if rate is None or rate <= 0:
            raise InvalidRate(field, value)
        return rate

    async def _stored_rates(self, job: Job, tier_id: int | None) -> tuple[Decimal, Decimal]:
        customer_rate = parse_decimal(job.normal_price) or Decimal("0")
        if customer_rate <= 0:
            raise RateResolutionFailed(job.id, tier_id, "invalid customer rate for this job")

        wage_rate = Decimal("0")
        if tier_id is not None:
            job_wage = await self.store.find_job_wage_rate(job.id, tier_id)
            if job_wage is not None:
                wage_rate = parse_decimal(job_wage.wage_rate) or Decimal("0")
        if wage_rate <= 0:
            raise RateResolutionFailed(job.id, tier_id, "invalid wage rate for this wage tier")

        return customer_rate, wage_rate
