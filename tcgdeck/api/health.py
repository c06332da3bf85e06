"""
Health check endpoints for the deck service.

/health answers as long as the process serves requests. /ready also reads
the key-value table that holds every user's deck, favorites and custom
cards, so it fails when that storage is unreachable or not yet created.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tcgdeck.db.database import get_session
from tcgdeck.models.db import KeyValueEntryDB

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status, plus deck storage status for readiness."""

    status: str
    database: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness of the deck service. Touches no storage."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """Ready once the deck storage table answers a query; 503 otherwise."""
    try:
        await session.execute(select(KeyValueEntryDB.id).limit(1))
        return HealthResponse(status="ready", database="connected")
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
