"""Users, roles and permission models."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from work_ledger.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from work_ledger.models.company import Company


class OverrideEffect(str, Enum):
    """Effect of a per-user permission override."""

    ALLOW = "ALLOW"
    DENY = "DENY"


class Role(Base, TimestampMixin):
    """Named bundle of permissions.

    A role with no company is global (super_admin, manager, staff); otherwise
    it is specific to one company.
    """

    __tablename__ = "role"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int | None] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=True,
    )
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    edit_window_days: Mapped[int | None] = mapped_column(nullable=True)

    __table_args__ = (UniqueConstraint("company_id", "code", name="role_company_code_unique"),)

    # Relationships
    company: Mapped[Company | None] = relationship()
    grants: Mapped[list[RolePermission]] = relationship(
        back_populates="role",
        cascade="all, delete-orphan",
    )


class Permission(Base):
    """Globally defined capability code."""

    __tablename__ = "permission"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)


class RolePermission(Base):
    """Grant of one permission to one role."""

    __tablename__ = "role_permission"

    role_id: Mapped[int] = mapped_column(
        ForeignKey("role.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission_id: Mapped[int] = mapped_column(
        ForeignKey("permission.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Relationships
    role: Mapped[Role] = relationship(back_populates="grants")
    permission: Mapped[Permission] = relationship()


class User(Base, TimestampMixin):
    """Principal. Deactivated through is_active, never deleted."""

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int | None] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=True,
    )
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_admin: Mapped[bool] = mapped_column(default=False, nullable=False)
    role_id: Mapped[int | None] = mapped_column(
        ForeignKey("role.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("company_id", "email", name="app_user_company_email_unique"),
        Index("idx_app_user_company", "company_id"),
    )

    # Relationships
    role: Mapped[Role | None] = relationship()
    settings: Mapped[UserSettings | None] = relationship(back_populates="user")


class UserPermissionOverride(Base):
    """Per-user ALLOW/DENY exception for a single permission."""

    __tablename__ = "user_permission_override"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    permission_id: Mapped[int] = mapped_column(
        ForeignKey("permission.id", ondelete="CASCADE"),
        primary_key=True,
    )
    effect: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        CheckConstraint("effect IN ('ALLOW', 'DENY')", name="effect"),
    )

    # Relationships
    permission: Mapped[Permission] = relationship()


class UserSettings(Base):
    """Optional per-user settings; currently only the edit window override."""

    __tablename__ = "user_settings"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    edit_window_days_override: Mapped[int | None] = mapped_column(nullable=True)

    # Relationships
    user: Mapped[User] = relationship(back_populates="settings")
