"""
JSON deck format.

    {
      "meta": {"format": "tcg-deck-builder", "version": "1.0"},
      "cards": [
        {"name": "Pikachu", "quantity": 4, "supertype": "Pokémon", ...}
      ]
    }

One element per variant. Card fields use the catalog's camelCase names, so
an advanced export with every option on reproduces each card exactly.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from tcgdeck.codecs.base import CardResolver, card_from_record, parse_quantity, resolve_options
from tcgdeck.models.card import Card, CatalogCard
from tcgdeck.models.deck import Deck
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import DeckParseError
from tcgdeck.models.identity import card_to_dict

logger = logging.getLogger(__name__)

JSON_FORMAT_NAME = "tcg-deck-builder"
JSON_FORMAT_VERSION = "1.0"


def _card_entry(name: str, card: Card, quantity: int, options: ExportOptions) -> dict[str, Any]:
    record = card_to_dict(card)
    entry: dict[str, Any] = {
        "name": name,
        "quantity": quantity,
        "supertype": card.supertype,
    }
    if card.id:
        entry["id"] = card.id
    entry["number"] = card.number
    entry["set"] = {"ptcgoCode": card.set_code}

    if isinstance(card, CatalogCard):
        if options.export_card_images:
            entry["images"] = record["images"]
    else:
        entry["isCustom"] = True
        if options.export_card_images and card.image:
            entry["image"] = card.image

    if options.include_full_metadata:
        entry["set"].update(id=card.set_id, name=card.set_name)
        for key in ("subtypes", "types", "hp", "rarity"):
            entry[key] = record[key]

    if options.include_rules:
        entry["rules"] = record["rules"]
    if options.include_abilities:
        entry["abilities"] = record["abilities"]
    if options.include_attacks:
        entry["attacks"] = record["attacks"]
    if options.include_weaknesses:
        entry["weaknesses"] = record["weaknesses"]
    if options.include_resistances:
        entry["resistances"] = record["resistances"]
    if options.include_retreat_cost:
        entry["retreatCost"] = record["retreatCost"]
        entry["convertedRetreatCost"] = record["convertedRetreatCost"]

    return entry


def encode_json(deck: Deck, options: ExportOptions | None = None) -> str:
    """Serialize a deck as a JSON document."""
    options = resolve_options(options)
    cards = [
        _card_entry(name, variant.card, variant.count, options)
        for name, variant in deck.iter_variants()
        if options.includes_supertype(variant.card.supertype)
    ]

    meta: dict[str, Any] = {"format": JSON_FORMAT_NAME, "version": JSON_FORMAT_VERSION}
    if options.include_full_metadata:
        counts = deck.supertype_counts()
        meta.update(
            totalCards=sum(card["quantity"] for card in cards),
            uniqueCards=len({card["name"] for card in cards}),
            supertypeCounts={
                "pokemon": counts.pokemon,
                "trainer": counts.trainer,
                "energy": counts.energy,
            },
        )

    return json.dumps({"meta": meta, "cards": cards}, indent=2, ensure_ascii=False)


def decode_json(text: str, resolver: CardResolver | None = None) -> Deck:
    """
    Parse a JSON deck document into a new Deck.

    A bare list of card objects is accepted as well. Entries without a name
    or with an invalid quantity are skipped.

    Raises:
        DeckParseError: If the text is not JSON or has no cards array
    """
    if not text or not text.strip():
        raise DeckParseError("json", "input is empty")

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise DeckParseError("json", f"invalid JSON at line {e.lineno}: {e.msg}") from e

    if isinstance(document, list):
        entries: Any = document
    elif isinstance(document, Mapping):
        entries = document.get("cards")
        meta = document.get("meta")
        if isinstance(meta, Mapping) and meta.get("format") not in (None, JSON_FORMAT_NAME):
            logger.info("JSON import from foreign format %s", meta.get("format"))
    else:
        raise DeckParseError("json", "document is neither an object nor an array")

    if not isinstance(entries, list):
        raise DeckParseError("json", "document has no cards array")

    deck = Deck()
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping) or not entry.get("name"):
            logger.warning("JSON card %d skipped: not an object with a name", index)
            continue

        quantity = parse_quantity(entry.get("quantity", 1))
        if quantity is None:
            logger.warning("JSON card %d (%s) skipped: invalid quantity", index, entry.get("name"))
            continue

        deck.add_copies(card_from_record(entry, resolver), quantity)

    return deck
