"""
Shared FastAPI dependencies and error conversion for the routers.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tcgdeck.config import settings
from tcgdeck.db.database import get_session
from tcgdeck.models.failure import KnownError
from tcgdeck.services.catalog_client import CatalogClient
from tcgdeck.services.storage import DeckStorage, SqlKeyValueStore


CatalogClientFactory = Callable[[], CatalogClient]


def get_catalog_factory() -> CatalogClientFactory:
    """
    How routes open a catalog client.

    Routes call the factory only when they need the catalog and close the
    client themselves, so requests that never resolve cards open no HTTP
    connection pool.
    """
    return CatalogClient


def get_deck_storage(
    user_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckStorage:
    """Storage for the user in the path, one database namespace per user."""
    store = SqlKeyValueStore(session, namespace=user_id, capacity=settings.storage_capacity_bytes)
    return DeckStorage(store)


def http_error(error: KnownError) -> HTTPException:
    """Convert a KnownError into an HTTPException carrying its FailureDetail."""
    return HTTPException(
        status_code=error.status_code,
        detail=error.to_detail().model_dump(mode="json"),
    )
