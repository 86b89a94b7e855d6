"""Work ledger services."""

from work_ledger.services.access_service import AccessControlService
from work_ledger.services.edit_window import EditWindowPolicy
from work_ledger.services.job_rate_service import JobRateService
from work_ledger.services.permissions import (
    PermissionCode,
    PermissionResolver,
    Principal,
    authorize,
    require,
)
from work_ledger.services.work_entry_service import WorkEntryService

__all__ = [
    "AccessControlService",
    "EditWindowPolicy",
    "JobRateService",
    "PermissionCode",
    "PermissionResolver",
    "Principal",
    "WorkEntryService",
    "authorize",
    "require",
]
