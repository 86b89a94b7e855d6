"""Job, wage tier and job wage rate models.

These are the live rate sources consulted when a work entry is written.
Work entries copy the values they need; nothing here is joined back for
historical totals.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from work_ledger.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from work_ledger.models.company import Company


class Job(Base, TimestampMixin):
    """Billable service type offered by a company."""

    __tablename__ = "job"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    job_code: Mapped[str] = mapped_column(String, nullable=False)
    job_type: Mapped[str] = mapped_column(String, nullable=False)
    normal_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "job_code", name="job_company_code_unique"),
        Index("idx_job_company", "company_id"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="jobs")
    wage_rates: Mapped[list[JobWageRate]] = relationship(back_populates="job")


class WageTier(Base, TimestampMixin):
    """Per-company pay grade (T1/T2/T3...)."""

    __tablename__ = "wage_tier"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    tier_code: Mapped[str] = mapped_column(String, nullable=False)
    tier_name: Mapped[str] = mapped_column(String, nullable=False)
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "tier_code", name="wage_tier_company_code_unique"),
        Index("idx_wage_tier_company", "company_id"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="wage_tiers")


class JobWageRate(Base, TimestampMixin):
    """Wage paid for a (job, tier) pair, independent of the customer price."""

    __tablename__ = "job_wage_rate"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    job_id: Mapped[int] = mapped_column(
        ForeignKey("job.id", ondelete="CASCADE"),
        nullable=False,
    )
    tier_id: Mapped[int] = mapped_column(
        ForeignKey("wage_tier.id", ondelete="CASCADE"),
        nullable=False,
    )
    wage_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    __table_args__ = (
        UniqueConstraint("job_id", "tier_id", name="job_wage_rate_job_tier_unique"),
        Index("idx_job_wage_rate_job", "job_id"),
        Index("idx_job_wage_rate_tier", "tier_id"),
    )

    # Relationships
    job: Mapped[Job] = relationship(back_populates="wage_rates")
    tier: Mapped[WageTier] = relationship()
