"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from work_ledger.database import session_scope
from work_ledger.errors import Unauthenticated
from work_ledger.services.permissions import PermissionResolver, Principal
from work_ledger.store import LedgerStore


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request; committed when the handler succeeds."""
    async with session_scope(request.app.state.session_factory) as session:
        yield session


async def get_current_principal(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> Principal:
    """Load the acting user's permission snapshot from the X-User-Id header."""
    if not x_user_id:
        raise Unauthenticated()
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise Unauthenticated("Invalid X-User-Id header")

    principal = await PermissionResolver(LedgerStore(db)).load_principal(user_id)
    if principal is None:
        raise Unauthenticated()
    return principal


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
