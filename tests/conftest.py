"""Pytest fixtures for work ledger tests."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from work_ledger.database import configure_sqlite
from work_ledger.models import (
    Base,
    Company,
    Job,
    JobWageRate,
    Permission,
    Role,
    RolePermission,
    User,
    WageTier,
    WorkEntry,
    Worker,
)
from work_ledger.services.permissions import PermissionCode, PermissionResolver, Principal
from work_ledger.services.work_entry_service import WorkEntryService
from work_ledger.store import LedgerStore

# One in-memory SQLite database per test, shared by every session of that test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TODAY = date(2024, 6, 30)

ALL_CODES = [
    PermissionCode.WORK_ENTRY_CREATE,
    PermissionCode.WORK_ENTRY_EDIT,
    PermissionCode.WORK_ENTRY_EDIT_RATES,
    PermissionCode.WORK_ENTRY_DELETE,
]


def days_ago(days: int) -> date:
    return TODAY - timedelta(days=days)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def companies(session: AsyncSession) -> dict[str, Company]:
    """Two tenants, A and B."""
    a = Company(name="Alpha Cleaning", short_code="ALPHA")
    b = Company(name="Beta Cleaning", short_code="BETA")
    session.add_all([a, b])
    await session.flush()
    return {"A": a, "B": b}


@pytest.fixture
async def wage_tiers(session: AsyncSession, companies) -> dict[str, WageTier]:
    a = WageTier(company_id=companies["A"].id, tier_code="T1", tier_name="Tier 1")
    b = WageTier(company_id=companies["B"].id, tier_code="T1", tier_name="Tier 1")
    session.add_all([a, b])
    await session.flush()
    return {"A": a, "B": b}


@pytest.fixture
async def jobs(session: AsyncSession, companies, wage_tiers) -> dict[str, Job]:
    """Job CLEAN in both companies; A pays tier 1 at 12/hour."""
    a = Job(
        company_id=companies["A"].id,
        job_code="CLEAN",
        job_type="hourly",
        normal_price=Decimal("30"),
    )
    b = Job(
        company_id=companies["B"].id,
        job_code="CLEAN",
        job_type="hourly",
        normal_price=Decimal("99"),
    )
    session.add_all([a, b])
    await session.flush()

    session.add(
        JobWageRate(
            company_id=companies["A"].id,
            job_id=a.id,
            tier_id=wage_tiers["A"].id,
            wage_rate=Decimal("12"),
        )
    )
    await session.flush()
    return {"A": a, "B": b}


@pytest.fixture
async def workers(session: AsyncSession, companies, wage_tiers) -> dict[str, Worker]:
    a = Worker(
        company_id=companies["A"].id,
        worker_code="W001",
        worker_name="Ana",
        wage_tier_id=wage_tiers["A"].id,
    )
    b = Worker(
        company_id=companies["B"].id,
        worker_code="W001",
        worker_name="Ben",
        wage_tier_id=wage_tiers["B"].id,
    )
    session.add_all([a, b])
    await session.flush()
    return {"A": a, "B": b}


@pytest.fixture
async def permissions(session: AsyncSession) -> dict[str, Permission]:
    perms = {code: Permission(code=code, description=code.lower()) for code in ALL_CODES}
    session.add_all(perms.values())
    await session.flush()
    return perms


@pytest.fixture
async def roles(session: AsyncSession, permissions) -> dict[str, Role]:
    """manager: every work entry code, no window. staff: no rate edits, 30 days."""
    manager = Role(code="manager", name="Manager")
    staff = Role(code="staff", name="Staff", edit_window_days=30)
    session.add_all([manager, staff])
    await session.flush()

    grants = [RolePermission(role_id=manager.id, permission_id=p.id) for p in permissions.values()]
    grants += [
        RolePermission(role_id=staff.id, permission_id=permissions[code].id)
        for code in (
            PermissionCode.WORK_ENTRY_CREATE,
            PermissionCode.WORK_ENTRY_EDIT,
            PermissionCode.WORK_ENTRY_DELETE,
        )
    ]
    session.add_all(grants)
    await session.flush()
    return {"manager": manager, "staff": staff}


@pytest.fixture
async def users(session: AsyncSession, companies, roles) -> dict[str, User]:
    a = companies["A"].id
    users = {
        "admin": User(username="admin", password_hash="x", is_admin=True),
        "manager": User(
            username="manager", password_hash="x", company_id=a, role_id=roles["manager"].id
        ),
        "staff": User(
            username="staff", password_hash="x", company_id=a, role_id=roles["staff"].id
        ),
        "inactive": User(
            username="inactive",
            password_hash="x",
            company_id=a,
            role_id=roles["manager"].id,
            is_active=False,
        ),
        "norole": User(username="norole", password_hash="x", company_id=a),
        "beta": User(
            username="beta",
            password_hash="x",
            company_id=companies["B"].id,
            role_id=roles["manager"].id,
        ),
    }
    session.add_all(users.values())
    await session.flush()
    return users


@pytest.fixture
async def world(session, companies, wage_tiers, jobs, workers, permissions, roles, users):
    """Every seed fixture, flushed in one session."""
    return {
        "companies": companies,
        "wage_tiers": wage_tiers,
        "jobs": jobs,
        "workers": workers,
        "permissions": permissions,
        "roles": roles,
        "users": users,
    }


@pytest.fixture
def principal_for(session: AsyncSession, users) -> Callable[[str], Awaitable[Principal]]:
    """Load a fresh principal snapshot for one of the seeded users."""
    resolver = PermissionResolver(LedgerStore(session))

    async def load(name: str) -> Principal:
        principal = await resolver.load_principal(users[name].id)
        assert principal is not None
        return principal

    return load


@pytest.fixture
def make_entry(session: AsyncSession, world) -> Callable[..., Awaitable[WorkEntry]]:
    """Insert a work entry in company A with a 50/20 snapshot."""
    counter = iter(range(1, 1000))

    async def make(
        work_date: date = TODAY,
        amount: str = "3",
        customer_rate: str = "50",
        wage_rate: str = "20",
        job_no1: str | None = None,
    ) -> WorkEntry:
        hours = Decimal(amount)
        entry = WorkEntry(
            company_id=world["companies"]["A"].id,
            worker_id=world["workers"]["A"].id,
            job_id=world["jobs"]["A"].id,
            work_date=work_date,
            job_no1=job_no1 or f"SEED-{next(counter)}",
            amount=hours,
            customer_rate=Decimal(customer_rate),
            customer_total=Decimal(customer_rate) * hours,
            fees_collected=Decimal(customer_rate) * hours,
            wage_tier_id=world["wage_tiers"]["A"].id,
            wage_rate=Decimal(wage_rate),
            wage_total=Decimal(wage_rate) * hours,
            rate=Decimal(wage_rate),
            pay=Decimal(wage_rate) * hours,
        )
        session.add(entry)
        await session.flush()
        return entry

    return make


@pytest.fixture
def service(session: AsyncSession) -> WorkEntryService:
    """Work entry service pinned to TODAY."""
    return WorkEntryService(session, today=lambda: TODAY)
