"""Edit window policy: how old a record a principal may still change."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from work_ledger.services.permissions import Principal
from work_ledger.store import LedgerStore


def _positive_days(value: Any) -> int | None:
    """Return value as a positive day count, or None if it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number <= 0:
        return None
    return int(number)


def resolve_window_days(
    is_admin: bool,
    personal_override: Any,
    role_limit: Any,
) -> int | None:
    """Combine the personal override and role default into a window.

    None means unlimited. Zero, negative or non-finite values count as "not
    configured" and fall through to the next source.
    """
    if is_admin:
        return None

    days = _positive_days(personal_override)
    if days is not None:
        return days

    return _positive_days(role_limit)


def window_start(window_days: int | None, reference_date: date) -> date | None:
    """Oldest work date still inside the window, or None when unlimited."""
    if window_days is None:
        return None
    return reference_date - timedelta(days=window_days)


def is_within_edit_window(
    entry_date: date,
    window_days: int | None,
    reference_date: date,
) -> bool:
    """Whether entry_date is inside the window (boundary inclusive)."""
    start = window_start(window_days, reference_date)
    return start is None or entry_date >= start


class EditWindowPolicy:
    """Looks up a principal's window from user settings and role."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def edit_window_days(self, principal: Principal) -> int | None:
        if principal.is_admin:
            return None

        settings = await self.store.find_user_settings(principal.user_id)
        personal = settings.edit_window_days_override if settings is not None else None

        role_limit = None
        if principal.role_id is not None:
            role = await self.store.find_role_by_id(principal.role_id)
            if role is not None:
                role_limit = role.edit_window_days

        return resolve_window_days(principal.is_admin, personal, role_limit)
