"""
XML deck format (TCG Simulator style).

    <?xml version="1.0" encoding="UTF-8"?>
    <deck version="1.0">
      <meta>
        <game>pokemon_tcg</game>
      </meta>
      <superzone name="Pokémon">
        <card>
          <name>Pikachu</name>
          <set>SVI</set>
          <number>63</number>
          <quantity>4</quantity>
        </card>
      </superzone>
    </deck>

One <superzone> per supertype; cards with an unrecognized supertype go to a
zone named "Deck". On import a card's supertype comes from its <supertype>
child first, then from the zone name.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from typing import Any

from tcgdeck.codecs.base import CardResolver, card_from_record, parse_quantity, resolve_options
from tcgdeck.models.card import SUPERTYPE_ORDER, Card, CatalogCard, supertype_category
from tcgdeck.models.deck import Deck, VariantCount
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import DeckParseError

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
XML_VERSION = "1.0"
GAME_ID = "pokemon_tcg"
FALLBACK_ZONE = "Deck"


# --- Encoding ---


def _text_element(parent: ET.Element, tag: str, value: object) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = str(value)
    return element


def _list_element(parent: ET.Element, tag: str, item_tag: str, values: Iterable[str]) -> None:
    container = ET.SubElement(parent, tag)
    for value in values:
        _text_element(container, item_tag, value)


def _card_element(zone: ET.Element, name: str, variant: VariantCount, options: ExportOptions) -> None:
    card = variant.card
    element = ET.SubElement(zone, "card")
    _text_element(element, "name", name)
    _text_element(element, "set", card.set_code)
    _text_element(element, "number", card.number)
    _text_element(element, "quantity", variant.count)
    _text_element(element, "supertype", card.supertype)
    if card.id:
        _text_element(element, "id", card.id)

    if isinstance(card, CatalogCard):
        if options.export_card_images:
            images = ET.SubElement(element, "images")
            _text_element(images, "small", card.images.small)
            _text_element(images, "large", card.images.large)
    else:
        _text_element(element, "isCustom", "true")
        if options.export_card_images and card.image:
            _text_element(element, "image", card.image)

    if options.include_full_metadata:
        _text_element(element, "setId", card.set_id)
        _text_element(element, "setName", card.set_name)
        _text_element(element, "hp", card.hp)
        _text_element(element, "rarity", card.rarity)
        _list_element(element, "subtypes", "subtype", card.subtypes)
        _list_element(element, "types", "type", card.types)

    if options.include_rules:
        _list_element(element, "rules", "rule", card.rules)

    if options.include_abilities:
        abilities = ET.SubElement(element, "abilities")
        for ability in card.abilities:
            node = ET.SubElement(abilities, "ability")
            _text_element(node, "name", ability.name)
            _text_element(node, "type", ability.type)
            _text_element(node, "text", ability.text)

    if options.include_attacks:
        attacks = ET.SubElement(element, "attacks")
        for attack in card.attacks:
            node = ET.SubElement(attacks, "attack")
            _text_element(node, "name", attack.name)
            _list_element(node, "cost", "energy", attack.cost)
            _text_element(node, "damage", attack.damage)
            _text_element(node, "text", attack.text)

    if options.include_weaknesses:
        weaknesses = ET.SubElement(element, "weaknesses")
        for weakness in card.weaknesses:
            node = ET.SubElement(weaknesses, "weakness")
            _text_element(node, "type", weakness.type)
            _text_element(node, "value", weakness.value)

    if options.include_resistances:
        resistances = ET.SubElement(element, "resistances")
        for resistance in card.resistances:
            node = ET.SubElement(resistances, "resistance")
            _text_element(node, "type", resistance.type)
            _text_element(node, "value", resistance.value)

    if options.include_retreat_cost:
        _list_element(element, "retreatCost", "energy", card.retreat_cost)


def encode_xml(deck: Deck, options: ExportOptions | None = None) -> str:
    """Serialize a deck as an XML document."""
    options = resolve_options(options)
    root = ET.Element("deck", version=XML_VERSION)
    meta = ET.SubElement(root, "meta")
    _text_element(meta, "game", GAME_ID)

    zones: dict[str, list[tuple[str, VariantCount]]] = {s.value: [] for s in SUPERTYPE_ORDER}
    zones[FALLBACK_ZONE] = []
    for name, variant in deck.iter_variants():
        if not options.includes_supertype(variant.card.supertype):
            continue
        category = supertype_category(variant.card.supertype)
        zones[category.value if category else FALLBACK_ZONE].append((name, variant))

    if options.include_full_metadata:
        counts = deck.supertype_counts()
        _text_element(meta, "totalCards", sum(v.count for items in zones.values() for _, v in items))
        _text_element(meta, "pokemonCount", counts.pokemon)
        _text_element(meta, "trainerCount", counts.trainer)
        _text_element(meta, "energyCount", counts.energy)

    for zone_name, items in zones.items():
        if not items:
            continue
        zone = ET.SubElement(root, "superzone", name=zone_name)
        for name, variant in items:
            _card_element(zone, name, variant, options)

    ET.indent(root, space="  ")
    return XML_DECLARATION + "\n" + ET.tostring(root, encoding="unicode")


# --- Decoding ---


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _child_list(element: ET.Element, tag: str, item_tag: str) -> list[str]:
    container = element.find(tag)
    if container is None:
        return []
    return [(item.text or "").strip() for item in container.findall(item_tag)]


def _child_records(element: ET.Element, tag: str, item_tag: str, fields: Iterable[str]) -> list[dict[str, Any]]:
    container = element.find(tag)
    if container is None:
        return []
    return [{field: _child_text(item, field) for field in fields} for item in container.findall(item_tag)]


def _card_record(element: ET.Element, zone_supertype: str) -> dict[str, Any]:
    """Rebuild a card_to_dict-shaped record from a <card> element."""
    record: dict[str, Any] = {
        "id": _child_text(element, "id"),
        "name": _child_text(element, "name"),
        "supertype": _child_text(element, "supertype") or zone_supertype,
        "number": _child_text(element, "number"),
        "hp": _child_text(element, "hp"),
        "rarity": _child_text(element, "rarity"),
        "set": {
            "ptcgoCode": _child_text(element, "set"),
            "id": _child_text(element, "setId"),
            "name": _child_text(element, "setName"),
        },
        "subtypes": _child_list(element, "subtypes", "subtype"),
        "types": _child_list(element, "types", "type"),
        "rules": _child_list(element, "rules", "rule"),
        "abilities": _child_records(element, "abilities", "ability", ("name", "type", "text")),
        "weaknesses": _child_records(element, "weaknesses", "weakness", ("type", "value")),
        "resistances": _child_records(element, "resistances", "resistance", ("type", "value")),
        "retreatCost": _child_list(element, "retreatCost", "energy"),
    }

    attacks = element.find("attacks")
    record["attacks"] = [
        {
            "name": _child_text(attack, "name"),
            "cost": _child_list(attack, "cost", "energy"),
            "damage": _child_text(attack, "damage"),
            "text": _child_text(attack, "text"),
        }
        for attack in (attacks.findall("attack") if attacks is not None else [])
    ]

    images = element.find("images")
    if images is not None:
        record["images"] = {"small": _child_text(images, "small"), "large": _child_text(images, "large")}
    if element.find("image") is not None:
        record["image"] = _child_text(element, "image")
    if _child_text(element, "isCustom").lower() == "true":
        record["isCustom"] = True

    return record


def decode_xml(text: str, resolver: CardResolver | None = None) -> Deck:
    """
    Parse an XML deck document into a new Deck.

    Cards without a name or with an invalid quantity are skipped; a missing
    <quantity> counts as one copy.

    Raises:
        DeckParseError: If the text is not well-formed XML or the root is not <deck>
    """
    if not text or not text.strip():
        raise DeckParseError("xml", "input is empty")

    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise DeckParseError("xml", f"malformed XML: {e}") from e

    if root.tag != "deck":
        raise DeckParseError("xml", f"root element is <{root.tag}>, expected <deck>")

    deck = Deck()
    for zone in root.iter("superzone"):
        zone_category = supertype_category(zone.get("name"))
        zone_supertype = zone_category.value if zone_category else ""

        for element in zone.findall("card"):
            record = _card_record(element, zone_supertype)
            if not record["name"]:
                logger.warning("XML card without a name skipped in zone %s", zone.get("name"))
                continue

            quantity_text = _child_text(element, "quantity")
            quantity = parse_quantity(quantity_text) if quantity_text else 1
            if quantity is None:
                logger.warning("XML card %s skipped: invalid quantity %r", record["name"], quantity_text)
                continue

            card: Card = card_from_record(record, resolver)
            deck.add_copies(card, quantity)

    return deck
