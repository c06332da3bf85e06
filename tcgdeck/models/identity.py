"""
Card identity: ingestion-boundary classification and variant equality.

Raw card records arrive as JSON-like mappings from three places: the card
catalog, this application's own custom-card authoring flow, and previous
exports/snapshots. classify_card() inspects the shape exactly once and
card_from_dict() turns the record into the matching tagged variant.

are_cards_equal() is the equality used for deck aggregation. Codecs that
narrow identity (the CSV decoder groups by image URL) document it locally.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from tcgdeck.models.card import (
    Ability,
    Attack,
    BaseCard,
    Card,
    CardImages,
    CatalogCard,
    CustomCard,
    Resistance,
    Weakness,
    supertype_category,
)
from tcgdeck.models.failure import CardShapeError


class CardShape(str, Enum):
    """Shape of a raw card record."""

    CATALOG = "catalog"
    FORMATTED = "formatted"
    UNKNOWN = "unknown"


def is_database_card(raw: Any) -> bool:
    """
    True iff the record exposes the catalog's nested image structure.

    Catalog records carry distinct small and large image URIs. Custom cards
    mirror the structure with identical URIs and an isCustom flag, so both
    conditions are checked.
    """
    if not isinstance(raw, Mapping) or raw.get("isCustom") is True:
        return False
    images = raw.get("images")
    if not isinstance(images, Mapping):
        return False
    small = images.get("small")
    large = images.get("large")
    return isinstance(small, str) and isinstance(large, str) and bool(small) and bool(large) and small != large


def is_formatted_deck_card(raw: Any) -> bool:
    """True iff the record has a flat image field or an explicit custom flag."""
    if not isinstance(raw, Mapping) or is_database_card(raw):
        return False
    if raw.get("isCustom") is True:
        return True
    return isinstance(raw.get("image"), str) or isinstance(raw.get("imageUrl"), str)


def classify_card(raw: Any) -> CardShape:
    """Classify a raw record as catalog, formatted (custom) or neither."""
    if is_database_card(raw):
        return CardShape.CATALOG
    if is_formatted_deck_card(raw):
        return CardShape.FORMATTED
    return CardShape.UNKNOWN


# --- Raw record -> tagged variant ---


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list | tuple):
        return ()
    return tuple(_str(item) for item in value if item is not None)


def _records(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list | tuple):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def card_fields_from_dict(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Parse the fields shared by both card variants; absent sub-records become empty tuples."""
    set_info = raw.get("set") if isinstance(raw.get("set"), Mapping) else {}
    return {
        "id": _str(raw.get("id")),
        "name": _str(raw.get("name")),
        "supertype": _str(raw.get("supertype")),
        "subtypes": _str_tuple(raw.get("subtypes")),
        "types": _str_tuple(raw.get("types")),
        "hp": _str(raw.get("hp")),
        "rules": _str_tuple(raw.get("rules")),
        "abilities": tuple(
            Ability(name=_str(a.get("name")), text=_str(a.get("text")), type=_str(a.get("type")))
            for a in _records(raw.get("abilities"))
        ),
        "attacks": tuple(
            Attack(
                name=_str(a.get("name")),
                cost=_str_tuple(a.get("cost")),
                damage=_str(a.get("damage")),
                text=_str(a.get("text")),
            )
            for a in _records(raw.get("attacks"))
        ),
        "weaknesses": tuple(
            Weakness(type=_str(w.get("type")), value=_str(w.get("value")))
            for w in _records(raw.get("weaknesses"))
        ),
        "resistances": tuple(
            Resistance(type=_str(r.get("type")), value=_str(r.get("value")))
            for r in _records(raw.get("resistances"))
        ),
        "retreat_cost": _str_tuple(raw.get("retreatCost")),
        "rarity": _str(raw.get("rarity")),
        "set_id": _str(set_info.get("id")),
        "set_name": _str(set_info.get("name")),
        "set_code": _str(set_info.get("ptcgoCode")),
        "number": _str(raw.get("number")),
    }


def card_from_dict(raw: Any) -> Card:
    """
    Convert a raw record to a CatalogCard or CustomCard.

    Raises:
        CardShapeError: If the record is neither shape or has no name
    """
    shape = classify_card(raw)
    if shape is CardShape.UNKNOWN:
        raise CardShapeError("record has neither catalog images nor a flat image field")

    fields = card_fields_from_dict(raw)
    if not fields["name"]:
        raise CardShapeError("record has no name")

    if shape is CardShape.CATALOG:
        images = raw["images"]
        return CatalogCard(
            **fields,
            images=CardImages(small=images["small"], large=images["large"]),
        )

    image = raw.get("image") or raw.get("imageUrl")
    if not image and isinstance(raw.get("images"), Mapping):
        image = raw["images"].get("large") or raw["images"].get("small")
    return CustomCard(**fields, image=_str(image))


# --- Tagged variant -> raw record ---


def card_to_dict(card: Card) -> dict[str, Any]:
    """
    Convert a card to the catalog-compatible camelCase record.

    card_from_dict(card_to_dict(card)) == card for every card.
    """
    data: dict[str, Any] = {
        "id": card.id,
        "name": card.name,
        "supertype": card.supertype,
        "subtypes": list(card.subtypes),
        "types": list(card.types),
        "hp": card.hp,
        "rules": list(card.rules),
        "abilities": [{"name": a.name, "text": a.text, "type": a.type} for a in card.abilities],
        "attacks": [
            {
                "name": a.name,
                "cost": list(a.cost),
                "convertedEnergyCost": a.converted_energy_cost,
                "damage": a.damage,
                "text": a.text,
            }
            for a in card.attacks
        ],
        "weaknesses": [{"type": w.type, "value": w.value} for w in card.weaknesses],
        "resistances": [{"type": r.type, "value": r.value} for r in card.resistances],
        "retreatCost": list(card.retreat_cost),
        "convertedRetreatCost": card.converted_retreat_cost,
        "rarity": card.rarity,
        "number": card.number,
        "set": {"id": card.set_id, "name": card.set_name, "ptcgoCode": card.set_code},
    }

    if isinstance(card, CatalogCard):
        data["images"] = {"small": card.images.small, "large": card.images.large}
    else:
        data["image"] = card.image
        data["imageUrl"] = card.image
        data["isCustom"] = True
        data["images"] = {"small": card.image, "large": card.image}

    return data


# --- Equality ---


def _structural_key(card: BaseCard) -> tuple[str, str, str, str, str]:
    category = supertype_category(card.supertype)
    return (
        card.name,
        category.value if category else card.supertype.strip().lower(),
        card.image_reference,  # type: ignore[attr-defined]
        card.set_code.upper(),
        card.number,
    )


def are_cards_equal(a: Card, b: Card) -> bool:
    """
    Decide whether two cards are the same printing for deck aggregation.

    Same variant with both ids present: compare ids.
    Otherwise: compare (name, supertype category, image reference,
    set code, collector number).
    """
    if type(a) is type(b) and a.id and b.id:
        return a.id == b.id
    return _structural_key(a) == _structural_key(b)
