"""Liveness and database reachability."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from work_ledger.api.dependencies import DbSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    dialect: str
    checked_at: datetime


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, db: DbSession) -> HealthResponse:
    """Report "ok" when the database answers, "degraded" otherwise."""
    reachable = True
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database unreachable from health check")
        reachable = False

    return HealthResponse(
        status="ok" if reachable else "degraded",
        version=request.app.version,
        database="up" if reachable else "down",
        dialect=db.bind.dialect.name,
        checked_at=datetime.now(timezone.utc),
    )
