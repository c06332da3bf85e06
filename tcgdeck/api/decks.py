"""
Deck API endpoints.

The working deck of each user is stored as a work-in-progress snapshot.
Imports parse into a new deck first and only replace the stored deck when
parsing succeeded.
"""

import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from tcgdeck.api.dependencies import CatalogClientFactory, get_catalog_factory, get_deck_storage, http_error
from tcgdeck.codecs import MEDIA_TYPES, DeckFormat, decode_deck, detect_format, encode_deck, export_filename
from tcgdeck.models.deck import Deck, validate_deck_size
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import KnownError
from tcgdeck.models.identity import card_from_dict, card_to_dict
from tcgdeck.services.storage import DeckStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/decks", tags=["decks"])

ImportFormat = Literal["auto", "csv", "xml", "text", "json"]
ExportFormat = Literal["csv", "xml", "text", "json"]


class DetectRequest(BaseModel):
    text: str = Field(..., description="Raw deck text")


class DetectResponse(BaseModel):
    format: str


class VariantResponse(BaseModel):
    card: dict[str, Any]
    count: int


class EntryResponse(BaseModel):
    name: str
    total_count: int
    variants: list[VariantResponse] = Field(default_factory=list)


class DeckResponse(BaseModel):
    """The stored working deck with its counts."""

    user_id: str
    entries: list[EntryResponse] = Field(default_factory=list)
    total_cards: int = 0
    unique_cards: int = 0
    supertype_counts: dict[str, int] = Field(default_factory=dict)
    is_legal_size: bool = Field(
        default=False,
        description="True when the deck holds exactly 60 cards",
    )


class CardRequest(BaseModel):
    card: dict[str, Any] = Field(
        ...,
        description="Card record in catalog JSON shape, or a custom card with an image",
    )


class CardChangeResponse(BaseModel):
    changed: bool = Field(
        ...,
        description="False when nothing changed (copy limit reached, or card not in deck)",
    )
    deck: DeckResponse


class ImportRequest(BaseModel):
    text: str = Field(..., description="Deck file contents")
    format: ImportFormat = Field(
        default="auto",
        description="Format of the text; auto sniffs it",
    )
    resolve_cards: bool = Field(
        default=False,
        description="Look Text/XML/JSON cards up in the card catalog",
    )


class ImportResponse(BaseModel):
    format: str
    deck: DeckResponse


class ExportOptionsModel(BaseModel):
    """Advanced export switches; all on by default."""

    include_full_metadata: bool = True
    include_pokemon_cards: bool = True
    include_trainer_cards: bool = True
    include_energy_cards: bool = True
    export_card_images: bool = True
    include_abilities: bool = True
    include_attacks: bool = True
    include_rules: bool = True
    include_weaknesses: bool = True
    include_resistances: bool = True
    include_retreat_cost: bool = True


class ExportRequest(BaseModel):
    format: ExportFormat
    name: str = Field(default="my_deck", description="Deck name used for the file name")
    options: ExportOptionsModel | None = Field(
        default=None,
        description="Advanced options; omit for a standard export",
    )


class ExportResponse(BaseModel):
    format: str
    filename: str
    media_type: str
    content: str


def _deck_response(user_id: str, deck: Deck) -> DeckResponse:
    counts = deck.supertype_counts()
    return DeckResponse(
        user_id=user_id,
        entries=[
            EntryResponse(
                name=entry.card_name,
                total_count=entry.total_count,
                variants=[VariantResponse(card=card_to_dict(v.card), count=v.count) for v in entry.variants],
            )
            for entry in deck
        ],
        total_cards=deck.total_cards(),
        unique_cards=deck.unique_cards(),
        supertype_counts={"pokemon": counts.pokemon, "trainer": counts.trainer, "energy": counts.energy},
        is_legal_size=validate_deck_size(deck).is_legal,
    )


async def _save(storage: DeckStorage, deck: Deck) -> None:
    if not await storage.save_work_in_progress(deck):
        raise HTTPException(
            status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
            detail="Storage is full. Remove favorites or custom cards you no longer need.",
        )


@router.post("/detect", response_model=DetectResponse)
async def detect_deck_format(request: DetectRequest) -> DetectResponse:
    """Sniff the format of deck text without importing it."""
    return DetectResponse(format=detect_format(request.text).value)


@router.get("/{user_id}", response_model=DeckResponse)
async def get_deck(
    user_id: str,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> DeckResponse:
    """Get the user's working deck. Users without a saved deck get an empty one."""
    return _deck_response(user_id, await storage.load_work_in_progress())


@router.delete("/{user_id}", response_model=DeckResponse)
async def clear_deck(
    user_id: str,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> DeckResponse:
    """Remove every card from the working deck."""
    await storage.clear_work_in_progress()
    return _deck_response(user_id, Deck())


@router.post("/{user_id}/cards", response_model=CardChangeResponse)
async def add_card(
    user_id: str,
    request: CardRequest,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> CardChangeResponse:
    """
    Add one copy of a card.

    Reaching the per-name copy limit is not an error: the response reports
    changed=false and the deck is unchanged.
    """
    try:
        card = card_from_dict(request.card)
    except KnownError as e:
        raise http_error(e) from e

    deck = await storage.load_work_in_progress()
    changed = deck.add_copy(card)
    if changed:
        await _save(storage, deck)
    return CardChangeResponse(changed=changed, deck=_deck_response(user_id, deck))


@router.post("/{user_id}/cards/remove", response_model=CardChangeResponse)
async def remove_card(
    user_id: str,
    request: CardRequest,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> CardChangeResponse:
    """Remove one copy of a card; changed=false when the card is not in the deck."""
    try:
        card = card_from_dict(request.card)
    except KnownError as e:
        raise http_error(e) from e

    deck = await storage.load_work_in_progress()
    changed = deck.remove_copy(card)
    if changed:
        await _save(storage, deck)
    return CardChangeResponse(changed=changed, deck=_deck_response(user_id, deck))


@router.post("/{user_id}/import", response_model=ImportResponse)
async def import_deck(
    user_id: str,
    request: ImportRequest,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
    catalog_factory: Annotated[CatalogClientFactory, Depends(get_catalog_factory)],
) -> ImportResponse:
    """
    Replace the working deck with an imported one.

    Supported formats: CSV (TCG Simulator), XML, Text (PTCG Live), JSON.
    With format=auto the text is sniffed; text that cannot be classified is
    rejected rather than tried against every decoder.

    INVARIANT: A failed import leaves the stored deck untouched.
    """
    if not request.text or not request.text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Import text cannot be empty",
        )

    fmt = detect_format(request.text) if request.format == "auto" else DeckFormat(request.format)
    try:
        if request.resolve_cards:
            with catalog_factory() as catalog:
                deck = await run_in_threadpool(decode_deck, request.text, fmt, catalog.find_card)
        else:
            deck = await run_in_threadpool(decode_deck, request.text, fmt)
    except KnownError as e:
        logger.info("Import for %s rejected: %s", user_id, e.message)
        raise http_error(e) from e

    await _save(storage, deck)
    logger.info("Imported %d cards (%s) for %s", deck.total_cards(), fmt.value, user_id)
    return ImportResponse(format=fmt.value, deck=_deck_response(user_id, deck))


@router.post("/{user_id}/export", response_model=ExportResponse)
async def export_deck(
    user_id: str,
    request: ExportRequest,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> ExportResponse:
    """Serialize the working deck in the requested format."""
    options = ExportOptions(**request.options.model_dump()) if request.options is not None else None
    fmt = DeckFormat(request.format)
    deck = await storage.load_work_in_progress()

    return ExportResponse(
        format=fmt.value,
        filename=export_filename(request.name, fmt),
        media_type=MEDIA_TYPES[fmt],
        content=encode_deck(deck, fmt, options),
    )
