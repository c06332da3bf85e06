"""
TCG Deck Builder services.

Image resolution, custom card compression, the card catalog client and
per-user persistence.
"""

from tcgdeck.services.autosave import AutosaveScheduler
from tcgdeck.services.catalog_client import CatalogClient, build_query
from tcgdeck.services.compression import (
    COMPRESSION_VERSION,
    compress_card,
    compress_cards,
    decompress_card,
    decompress_cards,
    expand_card,
    new_custom_card_id,
    validate_custom_card,
)
from tcgdeck.services.images import placeholder_image, resolve_image_url
from tcgdeck.services.storage import (
    DeckStorage,
    KeyValueStore,
    MemoryKeyValueStore,
    SqlKeyValueStore,
)

__all__ = [
    "AutosaveScheduler",
    "COMPRESSION_VERSION",
    "CatalogClient",
    "DeckStorage",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqlKeyValueStore",
    "build_query",
    "compress_card",
    "compress_cards",
    "decompress_card",
    "decompress_cards",
    "expand_card",
    "new_custom_card_id",
    "placeholder_image",
    "resolve_image_url",
    "validate_custom_card",
]
