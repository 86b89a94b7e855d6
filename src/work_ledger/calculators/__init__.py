"""Rate calculation."""

from work_ledger.calculators.rate_resolver import RateResolver, detect_rate_change
from work_ledger.calculators.types import RateMode, ResolvedRates

__all__ = [
    "RateResolver",
    "RateMode",
    "ResolvedRates",
    "detect_rate_change",
]
