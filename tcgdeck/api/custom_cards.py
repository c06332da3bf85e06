"""
Custom card API endpoints.

Custom cards are authored by the user, validated, given an id and stored
compressed alongside the user's deck.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from tcgdeck.api.dependencies import get_deck_storage, http_error
from tcgdeck.models.failure import KnownError
from tcgdeck.models.identity import card_from_dict, card_to_dict
from tcgdeck.services.compression import new_custom_card_id, validate_custom_card
from tcgdeck.services.storage import DeckStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/custom-cards", tags=["custom-cards"])


class CustomCardRequest(BaseModel):
    card: dict[str, Any] = Field(
        ...,
        description="Card fields in catalog JSON shape plus imageUrl",
        examples=[{"name": "Sparky", "supertype": "Pokémon", "hp": "70", "imageUrl": "https://example.com/s.png"}],
    )


class CustomCardListResponse(BaseModel):
    user_id: str
    cards: list[dict[str, Any]] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    user_id: str
    card_id: str
    deleted: bool


@router.get("/{user_id}", response_model=CustomCardListResponse)
async def list_custom_cards(
    user_id: str,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> CustomCardListResponse:
    cards = await storage.load_custom_cards()
    return CustomCardListResponse(user_id=user_id, cards=[card_to_dict(card) for card in cards])


@router.post("/{user_id}", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_custom_card(
    user_id: str,
    request: CustomCardRequest,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> dict[str, Any]:
    """
    Validate and store a new custom card.

    Returns the stored card record, including its generated id.
    """
    errors = validate_custom_card(request.card)
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

    record = dict(request.card)
    record["id"] = record.get("id") or new_custom_card_id()
    record["image"] = record.get("imageUrl") or record.get("image")
    record["isCustom"] = True

    try:
        card = card_from_dict(record)
    except KnownError as e:
        raise http_error(e) from e

    if not await storage.add_custom_card(card):
        raise HTTPException(
            status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
            detail="Storage limit reached. Delete some existing custom cards to make room for new ones.",
        )

    logger.info("Custom card %s created for %s", card.id, user_id)
    return card_to_dict(card)


@router.delete("/{user_id}/{card_id}", response_model=DeleteResponse)
async def delete_custom_card(
    user_id: str,
    card_id: str,
    storage: Annotated[DeckStorage, Depends(get_deck_storage)],
) -> DeleteResponse:
    deleted = await storage.remove_custom_card(card_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No custom card with id {card_id}",
        )
    return DeleteResponse(user_id=user_id, card_id=card_id, deleted=True)
