"""
Compact persisted form of custom cards.

Custom cards are stored under single-letter keys to stay well inside the
per-user storage quota:

    v   schema version (absent in legacy records, read as 1)
    i   id              n   name           s   supertype
    t   types           st  subtypes       h   hp
    im  image           no  number         ru  rules
    a   abilities  [{n, t, x}]
    at  attacks    [{n, c, d, x}]
    w   weaknesses [{t, v}]
    r   resistances [{t, v}]
    rt  retreat cost (count only)
    ra  rarity (only when set)
    c   custom flag

Favorited catalog cards carry two more keys so they come back with
catalog identity: sm (small image) and se ({i, n, p} set id/name/code).

The transform is lossy in two documented ways: retreat cost keeps only its
length and re-expands as that many "Colorless" symbols, and custom cards get
the fixed custom-set placeholder for their set fields.
"""

import logging
import secrets
import time
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlparse

from tcgdeck.models.card import (
    Ability,
    Attack,
    Card,
    CardImages,
    CatalogCard,
    CustomCard,
    Resistance,
    Supertype,
    Weakness,
    supertype_category,
)
from tcgdeck.models.failure import CompressionVersionError

logger = logging.getLogger(__name__)

COMPRESSION_VERSION = 1

CUSTOM_SET_ID = "custom"
CUSTOM_SET_NAME = "Custom Cards"
RETREAT_SYMBOL = "Colorless"

MAX_CUSTOM_HP = 340


def new_custom_card_id() -> str:
    """Generate an id like "custom-1718000000000-k3j9x2a"."""
    millis = int(time.time() * 1000)
    return f"custom-{millis}-{secrets.token_hex(4)[:7]}"


def _number_from_id(card_id: str) -> str:
    return card_id.rsplit("-", 1)[-1] if card_id else ""


def compress_card(card: Card) -> dict[str, Any]:
    """Shrink a card to the compact custom-card record."""
    image = card.image_reference
    record: dict[str, Any] = {
        "v": COMPRESSION_VERSION,
        "i": card.id,
        "n": card.name,
        "s": card.supertype,
        "t": list(card.types),
        "st": list(card.subtypes),
        "h": card.hp,
        "im": image,
        "a": [{"n": a.name, "t": a.type, "x": a.text} for a in card.abilities],
        "at": [{"n": a.name, "c": list(a.cost), "d": a.damage, "x": a.text} for a in card.attacks],
        "w": [{"t": w.type, "v": w.value} for w in card.weaknesses],
        "r": [{"t": r.type, "v": r.value} for r in card.resistances],
        "rt": len(card.retreat_cost),
        "c": not isinstance(card, CatalogCard),
    }
    if card.rules:
        record["ru"] = list(card.rules)
    if card.rarity:
        record["ra"] = card.rarity
    if card.number and card.number != _number_from_id(card.id):
        record["no"] = card.number
    if isinstance(card, CatalogCard):
        record["sm"] = card.images.small
        record["se"] = {"i": card.set_id, "n": card.set_name, "p": card.set_code}
    return record


def _items(data: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item is not None)


def _check_version(data: Mapping[str, Any]) -> None:
    version = data.get("v", 1)
    if not isinstance(version, int) or version > COMPRESSION_VERSION:
        raise CompressionVersionError(version if isinstance(version, int) else -1, COMPRESSION_VERSION)


def _common_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    try:
        retreat = max(0, int(data.get("rt") or 0))
    except (TypeError, ValueError):
        retreat = 0

    return {
        "id": str(data.get("i") or ""),
        "name": str(data.get("n") or ""),
        "supertype": str(data.get("s") or ""),
        "types": _strings(data.get("t")),
        "subtypes": _strings(data.get("st")),
        "hp": str(data.get("h") or ""),
        "rules": _strings(data.get("ru")),
        "abilities": tuple(
            Ability(name=str(a.get("n") or ""), type=str(a.get("t") or ""), text=str(a.get("x") or ""))
            for a in _items(data, "a")
        ),
        "attacks": tuple(
            Attack(
                name=str(a.get("n") or ""),
                cost=_strings(a.get("c")),
                damage=str(a.get("d") or ""),
                text=str(a.get("x") or ""),
            )
            for a in _items(data, "at")
        ),
        "weaknesses": tuple(
            Weakness(type=str(w.get("t") or ""), value=str(w.get("v") or "")) for w in _items(data, "w")
        ),
        "resistances": tuple(
            Resistance(type=str(r.get("t") or ""), value=str(r.get("v") or "")) for r in _items(data, "r")
        ),
        "retreat_cost": (RETREAT_SYMBOL,) * retreat,
        "rarity": str(data.get("ra") or ""),
    }


def decompress_card(data: Mapping[str, Any]) -> CustomCard:
    """
    Expand a compact record back into a CustomCard.

    Raises:
        CompressionVersionError: If the record was written by a newer schema
    """
    _check_version(data)
    fields = _common_fields(data)
    return CustomCard(
        **fields,
        image=str(data.get("im") or ""),
        number=str(data.get("no") or _number_from_id(fields["id"])),
        set_id=CUSTOM_SET_ID,
        set_name=CUSTOM_SET_NAME,
    )


def expand_card(data: Mapping[str, Any]) -> Card:
    """
    Expand a compact record into whichever variant it was written from.

    Records with the custom flag, or without a distinct small image, come
    back as CustomCard via decompress_card().
    """
    large = str(data.get("im") or "")
    small = str(data.get("sm") or "")
    if data.get("c") is not False or not small or not large or small == large:
        return decompress_card(data)

    _check_version(data)
    fields = _common_fields(data)
    set_info = data.get("se") if isinstance(data.get("se"), Mapping) else {}
    return CatalogCard(
        **fields,
        images=CardImages(small=small, large=large),
        number=str(data.get("no") or _number_from_id(fields["id"])),
        set_id=str(set_info.get("i") or ""),
        set_name=str(set_info.get("n") or ""),
        set_code=str(set_info.get("p") or ""),
    )


def compress_cards(cards: Iterable[Card]) -> list[dict[str, Any]]:
    return [compress_card(card) for card in cards]


def decompress_cards(records: Iterable[Any]) -> list[Card]:
    """Expand a list of compact records, dropping entries that are not mappings."""
    cards: list[Card] = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            logger.warning("Skipping compressed card %d: not an object", index)
            continue
        cards.append(expand_card(record))
    return cards


# --- Authoring validation ---


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_custom_card(data: Mapping[str, Any]) -> list[str]:
    """
    Check a custom card record before it is saved.

    Returns:
        Human-readable problems; empty when the card is valid
    """
    errors: list[str] = []

    if not str(data.get("name") or "").strip():
        errors.append("Card name is required")

    supertype = str(data.get("supertype") or "")
    category = supertype_category(supertype)
    if category is None:
        errors.append("Supertype must be Pokémon, Trainer or Energy")

    image = str(data.get("imageUrl") or data.get("image") or "").strip()
    if not image:
        errors.append("Please enter an image URL")
    elif not _is_absolute_url(image):
        errors.append("Please enter a valid URL (e.g., https://example.com/image.jpg)")

    hp = data.get("hp")
    if category is Supertype.POKEMON and hp not in (None, ""):
        try:
            hp_value = int(str(hp))
        except ValueError:
            errors.append("HP must be a number")
        else:
            if not 0 <= hp_value <= MAX_CUSTOM_HP:
                errors.append(f"HP must be between 0 and {MAX_CUSTOM_HP}")

    attacks = data.get("attacks") or []
    if isinstance(attacks, list):
        for index, attack in enumerate(attacks, start=1):
            if not isinstance(attack, Mapping):
                errors.append(f"Attack {index} is not an object")
                continue
            if not str(attack.get("name") or "").strip():
                errors.append(f"Attack {index} needs a name")
            if not str(attack.get("damage") or "").strip() and not str(attack.get("text") or "").strip():
                errors.append(f"Attack {index} needs damage or text")

    return errors
