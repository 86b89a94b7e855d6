"""HTTP adapter for the work ledger."""

from work_ledger.api.app import create_app

__all__ = ["create_app"]
