from tcgdeck.models.card import (
    SUPERTYPE_ORDER,
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
from tcgdeck.models.deck import (
    DEFAULT_MAX_COPIES,
    ENERGY_MAX_COPIES,
    STANDARD_DECK_SIZE,
    Deck,
    DeckEntry,
    DeckSizeReport,
    SupertypeCounts,
    VariantCount,
    deck_from_snapshot,
    deck_to_snapshot,
    max_copies_for,
    validate_deck_size,
)
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import (
    CardShapeError,
    CatalogError,
    CompressionVersionError,
    DeckParseError,
    FailureDetail,
    FailureKind,
    KnownError,
    StorageFullError,
    UnknownFormatError,
)
from tcgdeck.models.identity import (
    CardShape,
    are_cards_equal,
    card_from_dict,
    card_to_dict,
    classify_card,
    is_database_card,
    is_formatted_deck_card,
)

__all__ = [
    "Ability",
    "Attack",
    "Card",
    "CardImages",
    "CardShape",
    "CardShapeError",
    "CatalogCard",
    "CatalogError",
    "CompressionVersionError",
    "CustomCard",
    "DEFAULT_MAX_COPIES",
    "Deck",
    "DeckEntry",
    "DeckParseError",
    "DeckSizeReport",
    "ENERGY_MAX_COPIES",
    "ExportOptions",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "Resistance",
    "STANDARD_DECK_SIZE",
    "SUPERTYPE_ORDER",
    "StorageFullError",
    "Supertype",
    "SupertypeCounts",
    "UnknownFormatError",
    "VariantCount",
    "Weakness",
    "are_cards_equal",
    "card_from_dict",
    "card_to_dict",
    "classify_card",
    "deck_from_snapshot",
    "deck_to_snapshot",
    "is_database_card",
    "is_formatted_deck_card",
    "max_copies_for",
    "supertype_category",
    "validate_deck_size",
]
