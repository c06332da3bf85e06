"""FastAPI application: deck, custom card and health routers over per-user storage."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tcgdeck.api import custom_cards_router, decks_router, health_router
from tcgdeck.config import settings
from tcgdeck.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the storage table before serving requests."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("tcgdeck"),
    lifespan=lifespan,
)

app.include_router(custom_cards_router)
app.include_router(decks_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
