"""
Format detection and codec dispatch.

detect_format() is a cheap heuristic, not a parser. Checks run in a fixed
order and the first match wins:
    1. starts with "<?xml" or "<deck"      -> XML
    2. starts with the CSV header          -> CSV
    3. starts with "{"                     -> JSON
    4. contains a supertype section header -> Text
    5. otherwise                           -> UNKNOWN

UNKNOWN is surfaced to the caller as UnknownFormatError. No decoder is tried
speculatively.
"""

import logging
from collections.abc import Callable

from tcgdeck.codecs.base import CardResolver, DeckFormat
from tcgdeck.codecs.csv_codec import CSV_HEADER, decode_csv, encode_csv
from tcgdeck.codecs.json_codec import decode_json, encode_json
from tcgdeck.codecs.text_codec import decode_text, encode_text
from tcgdeck.codecs.xml_codec import decode_xml, encode_xml
from tcgdeck.models.deck import Deck
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import UnknownFormatError

logger = logging.getLogger(__name__)

TEXT_SECTION_MARKERS = ("Pokémon:", "Pokemon:", "Trainer:", "Energy:")

_ENCODERS: dict[DeckFormat, Callable[[Deck, ExportOptions | None], str]] = {
    DeckFormat.CSV: encode_csv,
    DeckFormat.XML: encode_xml,
    DeckFormat.TEXT: encode_text,
    DeckFormat.JSON: encode_json,
}


def detect_format(text: str) -> DeckFormat:
    """Classify raw deck text. Leading whitespace is ignored."""
    stripped = text.lstrip()
    if stripped.startswith("<?xml") or stripped.startswith("<deck"):
        return DeckFormat.XML
    if stripped.startswith(CSV_HEADER):
        return DeckFormat.CSV
    if stripped.startswith("{"):
        return DeckFormat.JSON
    if any(marker in stripped for marker in TEXT_SECTION_MARKERS):
        return DeckFormat.TEXT
    return DeckFormat.UNKNOWN


def decode_deck(
    text: str,
    format_hint: DeckFormat | str = DeckFormat.UNKNOWN,
    resolver: CardResolver | None = None,
) -> Deck:
    """
    Decode deck text with an explicit format or by sniffing.

    Args:
        text: Raw deck text
        format_hint: A DeckFormat value, or "auto"/UNKNOWN to sniff
        resolver: Optional catalog lookup for Text/XML/JSON imports

    Returns:
        A new Deck

    Raises:
        UnknownFormatError: If the format cannot be determined
        DeckParseError: If the text does not parse as the chosen format
    """
    hint = str(format_hint.value if isinstance(format_hint, DeckFormat) else format_hint).lower()
    if hint in ("auto", "", DeckFormat.UNKNOWN.value):
        fmt = detect_format(text)
        logger.debug("Sniffed deck format: %s", fmt.value)
    else:
        try:
            fmt = DeckFormat(hint)
        except ValueError as e:
            raise UnknownFormatError() from e

    if fmt is DeckFormat.CSV:
        return decode_csv(text)
    if fmt is DeckFormat.XML:
        return decode_xml(text, resolver)
    if fmt is DeckFormat.TEXT:
        return decode_text(text, resolver)
    if fmt is DeckFormat.JSON:
        return decode_json(text, resolver)
    raise UnknownFormatError()


def encode_deck(deck: Deck, fmt: DeckFormat | str, options: ExportOptions | None = None) -> str:
    """
    Encode a deck in the given format.

    Raises:
        UnknownFormatError: If fmt is not one of the four codecs
    """
    try:
        encoder = _ENCODERS[DeckFormat(fmt)]
    except (KeyError, ValueError) as e:
        raise UnknownFormatError() from e
    return encoder(deck, options)
