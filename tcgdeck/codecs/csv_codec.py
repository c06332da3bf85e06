"""
CSV deck format (TCG Simulator).

    QTY,Name,Type,URL
    4,Pikachu,Pokémon,https://images.pokemontcg.io/sv1/63_hires.png
    2,Professor's Research,Trainer,https://images.pokemontcg.io/sv1/189_hires.png

One row per variant. Fields are quoted RFC-4180 style when they contain
commas, quotes or newlines; plain rows are byte-identical to the unquoted
legacy output.

A row only carries name, type and image URL, so variant identity on import
reduces to the image URL within a card name.
"""

import csv
import logging
from io import StringIO

from tcgdeck.codecs.base import build_card, parse_quantity, resolve_options
from tcgdeck.models.deck import Deck
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import DeckParseError
from tcgdeck.services.images import placeholder_image, resolve_image_url

logger = logging.getLogger(__name__)

CSV_HEADER = "QTY,Name,Type,URL"
_REQUIRED_COLUMNS = ("QTY", "NAME", "TYPE", "URL")


def encode_csv(deck: Deck, options: ExportOptions | None = None) -> str:
    """Serialize a deck as TCG Simulator CSV."""
    options = resolve_options(options)
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    for name, variant in deck.iter_variants():
        card = variant.card
        if not options.includes_supertype(card.supertype):
            continue

        url = resolve_image_url(card) if options.export_card_images else placeholder_image(card.supertype)
        if not (name and card.supertype and url) or variant.count <= 0:
            logger.warning("Skipping %s in CSV export: missing name, type or URL", name)
            continue

        writer.writerow([variant.count, name, card.supertype, url])

    rows = buffer.getvalue().rstrip("\n")
    return f"{CSV_HEADER}\n{rows}" if rows else CSV_HEADER


def decode_csv(text: str) -> Deck:
    """
    Parse TCG Simulator CSV into a new Deck.

    Header columns are matched case-insensitively and may appear in any order.
    Malformed rows are skipped; copies beyond the per-name limit are dropped.

    Raises:
        DeckParseError: If the input is empty or the header lacks a column
    """
    if not text or not text.strip():
        raise DeckParseError("csv", "input is empty")

    try:
        rows = list(csv.reader(StringIO(text.strip())))
    except csv.Error as e:
        raise DeckParseError("csv", str(e)) from e

    header = [column.strip().upper() for column in rows[0]]
    missing = [column for column in _REQUIRED_COLUMNS if column not in header]
    if missing:
        raise DeckParseError("csv", f"header is missing {', '.join(missing)}")

    qty_index, name_index, type_index, url_index = (header.index(c) for c in _REQUIRED_COLUMNS)
    min_fields = max(qty_index, name_index, type_index, url_index) + 1

    deck = Deck()
    for line_number, row in enumerate(rows[1:], start=2):
        if not any(field.strip() for field in row):
            continue
        if len(row) < min_fields:
            logger.warning("CSV line %d: expected %d fields, got %d", line_number, min_fields, len(row))
            continue

        quantity = parse_quantity(row[qty_index])
        name = row[name_index].strip()
        supertype = row[type_index].strip()
        url = row[url_index].strip()
        if quantity is None or not name or not supertype or not url:
            logger.warning("CSV line %d: skipping row with invalid data", line_number)
            continue

        card = build_card(name, supertype, image=url)
        added = deck.add_copies(card, quantity)
        if added < quantity:
            logger.info("CSV line %d: kept %d of %d copies of %s", line_number, added, quantity, name)

    return deck
