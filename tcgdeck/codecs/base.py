"""
Shared pieces of the deck codecs.

Every codec is a pair of plain functions:
    encode_<fmt>(deck, options=None) -> str
    decode_<fmt>(text, resolver=None) -> Deck

Decoders always build and return a fresh Deck. They never touch a deck the
caller already holds, so a failed import cannot leave a half-written deck.
"""

import re
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from tcgdeck.models.card import Card, CatalogCard, CustomCard, supertype_category
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.identity import (
    CardShape,
    card_fields_from_dict,
    card_from_dict,
    classify_card,
)
from tcgdeck.services.images import catalog_images_from_url, is_catalog_image_url


class DeckFormat(str, Enum):
    """Serialization formats understood by the importer/exporter."""

    CSV = "csv"
    XML = "xml"
    TEXT = "text"
    JSON = "json"
    UNKNOWN = "unknown"


FILE_EXTENSIONS: dict[DeckFormat, str] = {
    DeckFormat.CSV: ".csv",
    DeckFormat.XML: ".xml",
    DeckFormat.TEXT: ".txt",
    DeckFormat.JSON: ".json",
}

MEDIA_TYPES: dict[DeckFormat, str] = {
    DeckFormat.CSV: "text/csv",
    DeckFormat.XML: "application/xml",
    DeckFormat.TEXT: "text/plain",
    DeckFormat.JSON: "application/json",
}

# Looks a card up by its printing; returns None when it cannot be found.
# Arguments: (name, set_code, collector_number)
CardResolver = Callable[[str, str, str], Card | None]

_INVALID_FILENAME_CHARS = re.compile(r'[/:*?"<>|]')


def export_filename(name: str, fmt: DeckFormat) -> str:
    """Strip characters browsers reject in download names and add the extension."""
    cleaned = _INVALID_FILENAME_CHARS.sub("", name.strip()) or "my_deck"
    return cleaned + FILE_EXTENSIONS[fmt]


def resolve_options(options: ExportOptions | None) -> ExportOptions:
    return options if options is not None else ExportOptions.standard()


def build_card(
    name: str,
    supertype: str,
    *,
    image: str = "",
    card_id: str = "",
    set_code: str = "",
    number: str = "",
    **fields: object,
) -> Card:
    """
    Build the right card variant for an imported record.

    A record gets catalog identity only when its image URL follows a known
    catalog layout (which yields the distinct small/large image pair).
    Everything else becomes a CustomCard.
    """
    category = supertype_category(supertype)
    normalized = category.value if category else supertype

    if image and is_catalog_image_url(image):
        derived = catalog_images_from_url(image)
        if derived is not None:
            derived_id, images = derived
            return CatalogCard(
                id=card_id or derived_id,
                name=name,
                supertype=normalized,
                set_code=set_code,
                number=number,
                images=images,
                **fields,  # type: ignore[arg-type]
            )

    return CustomCard(
        id=card_id,
        name=name,
        supertype=normalized,
        set_code=set_code,
        number=number,
        image=image,
        **fields,  # type: ignore[arg-type]
    )


def resolve_or_build(
    resolver: CardResolver | None,
    name: str,
    supertype: str,
    set_code: str,
    number: str,
    **fields: object,
) -> Card:
    """Ask the resolver for the catalog printing first, then fall back to build_card."""
    if resolver is not None and set_code and number:
        resolved = resolver(name, set_code, number)
        if resolved is not None:
            return resolved
    return build_card(name, supertype, set_code=set_code, number=number, **fields)


def card_from_record(record: Mapping[str, Any], resolver: CardResolver | None = None) -> Card:
    """
    Turn a decoded card record (card_to_dict shape) into a card.

    Records that still carry catalog images or a flat image / custom flag go
    through the ingestion boundary unchanged. Stripped-down records (images
    not exported) are resolved against the catalog or rebuilt from their
    remaining fields.
    """
    if classify_card(record) is not CardShape.UNKNOWN:
        return card_from_dict(record)

    fields = card_fields_from_dict(record)
    name = fields.pop("name")
    supertype = fields.pop("supertype")
    set_code = fields.pop("set_code")
    number = fields.pop("number")
    card_id = fields.pop("id")
    return resolve_or_build(resolver, name, supertype, set_code, number, card_id=card_id, **fields)


def parse_quantity(value: str | None) -> int | None:
    """Parse a positive copy count; None for anything else."""
    if value is None:
        return None
    try:
        quantity = int(str(value).strip())
    except ValueError:
        return None
    return quantity if quantity > 0 else None
