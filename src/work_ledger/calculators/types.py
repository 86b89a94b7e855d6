"""Type definitions for rate resolution."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class RateMode(str, Enum):
    """How the rates of a write were chosen."""

    PRIVILEGED = "privileged"  # caller-supplied rates
    RESTRICTED = "restricted"  # recomputed from job/tier data


@dataclass(frozen=True)
class ResolvedRates:
    """Rates and totals to freeze into a work entry."""

    customer_rate: Decimal
    customer_total: Decimal
    wage_rate: Decimal
    wage_total: Decimal
    mode: RateMode

    def to_values(self) -> dict[str, Decimal]:
        """Column values for the entry, including the legacy rate/pay mirrors."""
        return {
            "customer_rate": self.customer_rate,
            "customer_total": self.customer_total,
            "wage_rate": self.wage_rate,
            "wage_total": self.wage_total,
            "rate": self.wage_rate,
            "pay": self.wage_total,
        }
