"""Work entry model: the transactional record with frozen money snapshots."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from work_ledger.models.base import Base, TimestampMixin


class WorkEntry(Base, TimestampMixin):
    """A day of paid work by one worker on one job.

    customer_rate/customer_total and wage_tier_id/wage_rate/wage_total are
    copied at write time. Later changes to Job.normal_price or JobWageRate
    never reach rows that already exist.
    """

    __tablename__ = "work_entry"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    worker_id: Mapped[int] = mapped_column(
        ForeignKey("worker.id", ondelete="RESTRICT"),
        nullable=False,
    )
    job_id: Mapped[int] = mapped_column(
        ForeignKey("job.id", ondelete="RESTRICT"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(nullable=False)

    job_no1: Mapped[str] = mapped_column(String, nullable=False)
    job_no2: Mapped[str | None] = mapped_column(String, nullable=True)

    amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Legacy mirrors of wage_rate / wage_total
    rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    pay: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Customer snapshot
    customer_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    customer_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    fees_collected: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Wage snapshot
    wage_tier_id: Mapped[int | None] = mapped_column(
        ForeignKey("wage_tier.id", ondelete="SET NULL"),
        nullable=True,
    )
    wage_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    wage_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    is_bank: Mapped[bool] = mapped_column(default=False, nullable=False)
    note: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "job_no1", name="work_entry_company_job_no1_unique"),
        Index("idx_work_entry_company_date", "company_id", "work_date"),
        Index("idx_work_entry_worker_date", "worker_id", "work_date"),
        Index("idx_work_entry_job_date", "job_id", "work_date"),
    )

    @property
    def payment_channel(self) -> str:
        return "bank" if self.is_bank else "cash"
