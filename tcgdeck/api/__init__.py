from tcgdeck.api.custom_cards import router as custom_cards_router
from tcgdeck.api.decks import router as decks_router
from tcgdeck.api.health import router as health_router

__all__ = [
    "custom_cards_router",
    "decks_router",
    "health_router",
]
