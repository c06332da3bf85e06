from tcgdeck.codecs.base import (
    FILE_EXTENSIONS,
    MEDIA_TYPES,
    CardResolver,
    DeckFormat,
    build_card,
    export_filename,
)
from tcgdeck.codecs.csv_codec import CSV_HEADER, decode_csv, encode_csv
from tcgdeck.codecs.json_codec import decode_json, encode_json
from tcgdeck.codecs.sniffer import decode_deck, detect_format, encode_deck
from tcgdeck.codecs.text_codec import decode_text, encode_text
from tcgdeck.codecs.xml_codec import decode_xml, encode_xml

__all__ = [
    "CSV_HEADER",
    "CardResolver",
    "DeckFormat",
    "FILE_EXTENSIONS",
    "MEDIA_TYPES",
    "build_card",
    "decode_csv",
    "decode_deck",
    "decode_json",
    "decode_text",
    "decode_xml",
    "detect_format",
    "encode_csv",
    "encode_deck",
    "encode_json",
    "encode_text",
    "encode_xml",
    "export_filename",
]
