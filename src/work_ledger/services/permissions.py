"""Permission resolution.

A ``Principal`` is an immutable snapshot of one user's permission graph,
loaded fresh for every request:

- role_codes: codes granted by the user's role
- overrides: per-user ALLOW/DENY effects keyed by code
- active_codes: which of those codes are currently active

``authorize`` is a pure function over that snapshot and is the only place the
administrator bypass is implemented. Snapshots may be reused within a request
but never across requests, since grants can change between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet

from sqlalchemy.exc import SQLAlchemyError

from work_ledger.errors import Forbidden
from work_ledger.models import OverrideEffect
from work_ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class PermissionCode:
    """Capability codes checked by the work-entry lifecycle."""

    WORK_ENTRY_CREATE = "WORK_ENTRY_CREATE"
    WORK_ENTRY_EDIT = "WORK_ENTRY_EDIT"
    WORK_ENTRY_EDIT_RATES = "WORK_ENTRY_EDIT_RATES"
    WORK_ENTRY_DELETE = "WORK_ENTRY_DELETE"


@dataclass(frozen=True)
class Principal:
    """The acting user and their permission graph at load time."""

    user_id: int
    company_id: int | None
    is_admin: bool
    role_id: int | None
    role_codes: FrozenSet[str] = field(default_factory=frozenset)
    overrides: dict[str, str] = field(default_factory=dict)
    active_codes: FrozenSet[str] = field(default_factory=frozenset)

    def has(self, code: str) -> bool:
        return authorize(self, code)


def authorize(principal: Principal | None, code: str) -> bool:
    """Decide whether a principal holds a capability.

    Order of checks:
    1. Admin flag: always allowed, active or not
    2. DENY override: refused, even if the role grants it
    3. Inactive permission: refused for everyone else
    4. ALLOW override: allowed
    5. Role grant: allowed
    """
    if principal is None:
        return False

    if principal.is_admin:
        return True

    effect = principal.overrides.get(code)
    if effect == OverrideEffect.DENY.value:
        return False

    # An ALLOW override does not revive an inactive permission.
    if code not in principal.active_codes:
        return False

    if effect == OverrideEffect.ALLOW.value:
        return True

    return code in principal.role_codes


def require(principal: Principal, code: str) -> None:
    """Raise Forbidden unless the principal holds ``code``."""
    if not authorize(principal, code):
        logger.warning("Permission %s denied for user %s", code, principal.user_id)
        raise Forbidden(code)


class PermissionResolver:
    """Loads principals from storage and answers boundary checks."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def load_principal(self, user_id: int) -> Principal | None:
        """Load a fresh principal snapshot.

        Returns None for unknown or deactivated users.
        """
        user = await self.store.find_user_by_id(user_id)
        if user is None or not user.is_active:
            return None

        role_codes: set[str] = set()
        if user.role_id is not None:
            role_codes = await self.store.find_role_permission_codes(user.role_id)
        overrides = await self.store.find_user_overrides(user.id)
        active_codes = await self.store.find_active_permission_codes(
            role_codes | set(overrides)
        )

        return Principal(
            user_id=user.id,
            company_id=user.company_id,
            is_admin=bool(user.is_admin),
            role_id=user.role_id,
            role_codes=frozenset(role_codes),
            overrides=dict(overrides),
            active_codes=frozenset(active_codes),
        )

    async def authorize(self, user_id: int, code: str) -> bool:
        """Boundary check by user id. Never raises; unknown users are denied."""
        try:
            principal = await self.load_principal(user_id)
        except SQLAlchemyError:
            logger.exception("Permission lookup failed for user %s", user_id)
            return False
        return authorize(principal, code)
