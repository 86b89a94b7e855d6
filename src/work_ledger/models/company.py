"""Company (tenant) and worker models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from work_ledger.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from work_ledger.models.jobs import Job, WageTier


class Company(Base, TimestampMixin):
    """Tenant boundary. Every business row belongs to exactly one company."""

    __tablename__ = "company"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    short_code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)

    # Relationships
    jobs: Mapped[list[Job]] = relationship(back_populates="company")
    wage_tiers: Mapped[list[WageTier]] = relationship(back_populates="company")
    workers: Mapped[list[Worker]] = relationship(back_populates="company")


class Worker(Base, TimestampMixin):
    """A person whose daily work is recorded in work entries."""

    __tablename__ = "worker"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    worker_code: Mapped[str] = mapped_column(String, nullable=False)
    worker_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    wage_tier_id: Mapped[int | None] = mapped_column(
        ForeignKey("wage_tier.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("company_id", "worker_code", name="worker_company_code_unique"),
        Index("idx_worker_company", "company_id"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="workers")
