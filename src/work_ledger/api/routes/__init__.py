"""API routes."""

from work_ledger.api.routes.health import router as health_router
from work_ledger.api.routes.work_entries import router as work_entries_router

__all__ = ["health_router", "work_entries_router"]
