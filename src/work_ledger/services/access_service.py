"""Role, permission and user access administration."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from work_ledger.errors import BadRequest, NotFound
from work_ledger.models import (
    OverrideEffect,
    Permission,
    Role,
    RolePermission,
    User,
    UserPermissionOverride,
    UserSettings,
)
from work_ledger.store import LedgerStore, storage_errors

logger = logging.getLogger(__name__)


class AccessControlService:
    """Maintains the permission graph read by PermissionResolver.

    Operations:
    - create_role / set_role_edit_window
    - replace_role_permissions: delete-all then re-insert, atomically
    - set_user_override / clear_user_override
    - set_permission_active / toggle_permission / delete_permission
    - assign_role / set_user_active / set_user_edit_window
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.store = LedgerStore(session)

    async def create_role(
        self,
        code: str,
        name: str,
        company_id: int | None = None,
        edit_window_days: int | None = None,
        description: str | None = None,
    ) -> Role:
        code = (code or "").strip()
        name = (name or "").strip()
        if not code or not name:
            raise BadRequest("Code & name required")

        async with storage_errors("create role"):
            # NULL company_id is not covered by the unique constraint.
            existing = await self.session.scalar(
                select(Role.id).where(
                    Role.code == code,
                    Role.company_id.is_(None)
                    if company_id is None
                    else Role.company_id == company_id,
                )
            )
            if existing is not None:
                raise BadRequest(f"Role code already exists: {code}")

            role = Role(
                company_id=company_id,
                code=code,
                name=name,
                description=description,
                edit_window_days=edit_window_days,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(role)
            except IntegrityError as exc:
                raise BadRequest(f"Role code already exists: {code}") from exc

        logger.info("Role %s created (company %s)", code, company_id)
        return role

    async def replace_role_permissions(
        self,
        role_id: int,
        permission_codes: list[str],
    ) -> list[str]:
        """Replace every grant of a role in one transaction.

        Unknown codes abort the whole batch; the previous grants survive.
        """
        codes = sorted({c.strip() for c in permission_codes if c and c.strip()})

        async with storage_errors("replace role permissions"):
            role = await self.store.find_role_by_id(role_id)
            if role is None:
                raise NotFound("Role", role_id)

            result = await self.session.execute(
                select(Permission.id, Permission.code).where(Permission.code.in_(codes))
            )
            ids_by_code = {code: pid for pid, code in result.all()}
            unknown = [c for c in codes if c not in ids_by_code]
            if unknown:
                raise NotFound("Permission", ", ".join(unknown))

            await self.session.execute(
                delete(RolePermission).where(RolePermission.role_id == role_id)
            )
            self.session.add_all(
                RolePermission(role_id=role_id, permission_id=ids_by_code[code])
                for code in codes
            )
            await self.session.flush()

        logger.info("Role %s permissions replaced: %s", role_id, codes)
        return codes

    async def set_user_override(self, user_id: int, code: str, effect: str) -> None:
        effect = str(effect).upper()
        if effect not in (OverrideEffect.ALLOW.value, OverrideEffect.DENY.value):
            raise BadRequest(f"Invalid override effect: {effect}")

        async with storage_errors("set user override"):
            await self._require_user(user_id)
            permission = await self._require_permission(code)

            override = await self.store.find_user_override(user_id, code)
            if override is None:
                self.session.add(
                    UserPermissionOverride(
                        user_id=user_id,
                        permission_id=permission.id,
                        effect=effect,
                    )
                )
            else:
                override.effect = effect
            await self.session.flush()

        logger.info("User %s override %s=%s", user_id, code, effect)

    async def clear_user_override(self, user_id: int, code: str) -> bool:
        async with storage_errors("clear user override"):
            override = await self.store.find_user_override(user_id, code)
            if override is None:
                return False
            await self.session.delete(override)
            await self.session.flush()
        return True

    async def set_permission_active(self, code: str, active: bool) -> Permission:
        async with storage_errors("set permission active"):
            permission = await self._require_permission(code)
            permission.is_active = active
            await self.session.flush()
        return permission

    async def toggle_permission(self, code: str) -> Permission:
        async with storage_errors("toggle permission"):
            permission = await self._require_permission(code)
            permission.is_active = not permission.is_active
            await self.session.flush()
        return permission

    async def delete_permission(self, code: str) -> None:
        """Hard delete, refused while any role still grants the permission."""
        async with storage_errors("delete permission"):
            permission = await self._require_permission(code)
            used = await self.session.scalar(
                select(func.count())
                .select_from(RolePermission)
                .where(RolePermission.permission_id == permission.id)
            )
            if used:
                raise BadRequest(
                    "Cannot delete: permission is assigned to roles. Deactivate it instead."
                )
            await self.session.delete(permission)
            await self.session.flush()

    async def assign_role(self, user_id: int, role_id: int | None) -> User:
        async with storage_errors("assign role"):
            user = await self._require_user(user_id)
            if role_id is not None and await self.store.find_role_by_id(role_id) is None:
                raise NotFound("Role", role_id)
            user.role_id = role_id
            await self.session.flush()
        return user

    async def set_user_active(self, user_id: int, active: bool) -> User:
        async with storage_errors("set user active"):
            user = await self._require_user(user_id)
            user.is_active = active
            await self.session.flush()
        return user

    async def set_role_edit_window(self, role_id: int, days: int | None) -> Role:
        async with storage_errors("set role edit window"):
            role = await self.store.find_role_by_id(role_id)
            if role is None:
                raise NotFound("Role", role_id)
            role.edit_window_days = days
            await self.session.flush()
        return role

    async def set_user_edit_window(self, user_id: int, days: int | None) -> UserSettings:
        async with storage_errors("set user edit window"):
            await self._require_user(user_id)
            settings = await self.store.find_user_settings(user_id)
            if settings is None:
                settings = UserSettings(user_id=user_id)
                self.session.add(settings)
            settings.edit_window_days_override = days
            await self.session.flush()
        return settings

    async def _require_user(self, user_id: int) -> User:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    async def _require_permission(self, code: str) -> Permission:
        permission = await self.store.find_permission_by_code(code)
        if permission is None:
            raise NotFound("Permission", code)
        return permission
