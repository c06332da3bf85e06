"""
Plain-text deck format (Pokémon TCG Live / PTCGO).

    Pokémon: 6
    4 Pikachu SVI 63
    2 Raichu SVI 64

    Trainer: 4
    4 Professor's Research SVI 189

    Energy: 12
    12 Lightning Energy SVE 4

    Total Cards: 22

Sections use the catalog supertype strings; empty sections are omitted.
Cards with an unrecognized supertype have no section and are not exported.
"""

import logging
import re

from tcgdeck.codecs.base import CardResolver, resolve_options, resolve_or_build
from tcgdeck.models.card import SUPERTYPE_ORDER, Card, Supertype, supertype_category
from tcgdeck.models.deck import Deck
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import DeckParseError

logger = logging.getLogger(__name__)

# "Pokémon: 20", "Trainer:", "Energy: 12"
SECTION_PATTERN = re.compile(r"^(Pokémon|Pokemon|Trainer|Energy)\s*:\s*(\d+)?\s*$", re.IGNORECASE)

# "Total Cards: 60"
TOTAL_PATTERN = re.compile(r"^Total\s+Cards\s*:\s*(\d+)\s*$", re.IGNORECASE)

# "4 Pikachu SVI 63" - set code is an upper-case PTCGO code ("SVI", "PR-SV"),
# collector number must contain a digit ("TG12", "63a")
# Groups: (quantity, name, set_code, number)
CARD_FULL_PATTERN = re.compile(r"^(\d+)\s+(.+?)\s+([A-Z0-9]{2,4}(?:-[A-Z0-9]+)?)\s+(\S*\d\S*)$")

# "4 Pikachu" (no set info)
# Groups: (quantity, name)
CARD_SIMPLE_PATTERN = re.compile(r"^(\d+)\s+(.+)$")


def _set_code(card: Card) -> str:
    return card.set_code or ""


def _format_card_line(quantity: int, name: str, card: Card) -> str:
    set_code = _set_code(card)
    if set_code and card.number:
        return f"{quantity} {name} {set_code} {card.number}"
    return f"{quantity} {name}"


def encode_text(deck: Deck, options: ExportOptions | None = None) -> str:
    """Serialize a deck as PTCG Live text."""
    options = resolve_options(options)
    sections: dict[Supertype, list[tuple[int, str]]] = {s: [] for s in SUPERTYPE_ORDER}

    for name, variant in deck.iter_variants():
        category = supertype_category(variant.card.supertype)
        if category is None:
            logger.warning("Skipping %s in text export: unrecognized supertype", name)
            continue
        if not options.includes_supertype(category.value):
            continue
        sections[category].append((variant.count, _format_card_line(variant.count, name, variant.card)))

    blocks: list[str] = []
    total = 0
    for supertype in SUPERTYPE_ORDER:
        lines = sections[supertype]
        if not lines:
            continue
        count = sum(quantity for quantity, _ in lines)
        total += count
        blocks.append("\n".join([f"{supertype.value}: {count}", *(line for _, line in lines)]))

    blocks.append(f"Total Cards: {total}")
    return "\n\n".join(blocks)


def decode_text(text: str, resolver: CardResolver | None = None) -> Deck:
    """
    Parse PTCG Live text into a new Deck.

    Handles:
        - Section headers with or without counts, "Pokemon" spelling
        - "* " bullets in front of card lines
        - Lines without set code / collector number
        - Blank lines, the trailing "Total Cards" line

    Raises:
        DeckParseError: If no section header and no card line is found
    """
    if not text or not text.strip():
        raise DeckParseError("text", "input is empty")

    deck = Deck()
    current: Supertype | None = None
    saw_section = False
    parsed_lines = 0
    declared_total: int | None = None

    for line_number, raw_line in enumerate(text.strip().splitlines(), start=1):
        line = raw_line.strip()
        if line.startswith("*"):
            line = line.lstrip("*").strip()
        if not line:
            continue

        section = SECTION_PATTERN.match(line)
        if section:
            current = supertype_category(section.group(1))
            saw_section = True
            continue

        total = TOTAL_PATTERN.match(line)
        if total:
            declared_total = int(total.group(1))
            continue

        full = CARD_FULL_PATTERN.match(line)
        simple = None if full else CARD_SIMPLE_PATTERN.match(line)
        if full:
            quantity_str, name, set_code, number = full.groups()
        elif simple:
            quantity_str, name = simple.groups()
            set_code, number = "", ""
        else:
            logger.warning("Text line %d not recognized: %s", line_number, line)
            continue

        quantity = int(quantity_str)
        if quantity <= 0:
            continue

        supertype = current.value if current else ""
        card = resolve_or_build(resolver, name.strip(), supertype, set_code, number)
        deck.add_copies(card, quantity)
        parsed_lines += 1

    if not saw_section and parsed_lines == 0:
        raise DeckParseError("text", "no section headers or card lines found")

    if declared_total is not None and declared_total != deck.total_cards():
        logger.info(
            "Text import declared %d cards, imported %d", declared_total, deck.total_cards()
        )

    return deck
