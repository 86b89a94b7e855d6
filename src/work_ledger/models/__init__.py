"""SQLAlchemy models for the work ledger."""

from work_ledger.models.access import (
    OverrideEffect,
    Permission,
    Role,
    RolePermission,
    User,
    UserPermissionOverride,
    UserSettings,
)
from work_ledger.models.base import Base, TimestampMixin
from work_ledger.models.company import Company, Worker
from work_ledger.models.jobs import Job, JobWageRate, WageTier
from work_ledger.models.work_entry import WorkEntry

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Worker",
    "Job",
    "WageTier",
    "JobWageRate",
    "OverrideEffect",
    "Permission",
    "Role",
    "RolePermission",
    "User",
    "UserPermissionOverride",
    "UserSettings",
    "WorkEntry",
]
