"""
Deck aggregation model.

A Deck maps card name -> DeckEntry. Each entry groups the printings
(variants) sharing that name, with a copy counter per variant.

INVARIANTS:
- entry.total_count == sum(v.count for v in entry.variants)
- no entry with total_count == 0 or empty variants exists
- no two variants of an entry are equal under are_cards_equal
- total_count never exceeds max_copies_for(supertype) via add_copy

The per-name cap is enforced at insertion only. There is no whole-deck cap
here; validate_deck_size() reports deck size legality separately.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from tcgdeck.models.card import Card, Supertype, supertype_category
from tcgdeck.models.failure import CardShapeError
from tcgdeck.models.identity import are_cards_equal, card_from_dict, card_to_dict

logger = logging.getLogger(__name__)

DEFAULT_MAX_COPIES = 4
ENERGY_MAX_COPIES = 60
STANDARD_DECK_SIZE = 60


def max_copies_for(supertype: str | None) -> int:
    """Per-name copy limit: 60 for Energy, 4 for everything else."""
    if supertype_category(supertype) is Supertype.ENERGY:
        return ENERGY_MAX_COPIES
    return DEFAULT_MAX_COPIES


@dataclass
class VariantCount:
    """One printing of a card and how many copies of it are in the deck."""

    card: Card
    count: int = 1


@dataclass
class DeckEntry:
    """All variants sharing a card name."""

    card_name: str
    variants: list[VariantCount] = field(default_factory=list)
    total_count: int = 0

    def find_variant(self, card: Card) -> VariantCount | None:
        for variant in self.variants:
            if are_cards_equal(variant.card, card):
                return variant
        return None


@dataclass(frozen=True)
class SupertypeCounts:
    """Copy counts per supertype category (unrecognized supertypes excluded)."""

    pokemon: int = 0
    trainer: int = 0
    energy: int = 0

    def total(self) -> int:
        return self.pokemon + self.trainer + self.energy

    def for_supertype(self, supertype: Supertype) -> int:
        return {
            Supertype.POKEMON: self.pokemon,
            Supertype.TRAINER: self.trainer,
            Supertype.ENERGY: self.energy,
        }[supertype]


@dataclass
class Deck:
    """The user's deck: card name -> DeckEntry, in insertion order."""

    entries: dict[str, DeckEntry] = field(default_factory=dict)

    def __contains__(self, card_name: object) -> bool:
        return card_name in self.entries

    def __getitem__(self, card_name: str) -> DeckEntry:
        return self.entries[card_name]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DeckEntry]:
        return iter(list(self.entries.values()))

    def get(self, card_name: str) -> DeckEntry | None:
        return self.entries.get(card_name)

    def add_copy(self, card: Card) -> bool:
        """
        Add one copy of a card.

        Returns False (deck unchanged) when the name is missing or the
        per-name limit is already reached. Never raises.
        """
        return self.add_copies(card, 1) == 1

    def add_copies(self, card: Card, quantity: int) -> int:
        """
        Add up to `quantity` copies of a card, honouring the per-name limit.

        Returns:
            Number of copies actually added (0 when the limit is reached)
        """
        if not card.name or quantity <= 0:
            return 0

        max_count = max_copies_for(card.supertype)
        entry = self.entries.get(card.name)
        current = entry.total_count if entry else 0
        to_add = min(quantity, max_count - current)
        if to_add <= 0:
            logger.debug("Maximum of %d copies reached for %s", max_count, card.name)
            return 0

        if entry is None:
            entry = DeckEntry(card_name=card.name)
            self.entries[card.name] = entry

        variant = entry.find_variant(card)
        if variant is not None:
            variant.count += to_add
        else:
            entry.variants.append(VariantCount(card=card, count=to_add))
        entry.total_count += to_add
        return to_add

    def remove_copy(self, card: Card) -> bool:
        """
        Remove one copy of a card.

        Returns False (deck unchanged) when the name or variant is absent.
        Deletes the entry once its last copy is gone.
        """
        entry = self.entries.get(card.name)
        if entry is None:
            return False

        for index, variant in enumerate(entry.variants):
            if are_cards_equal(variant.card, card):
                variant.count -= 1
                if variant.count <= 0:
                    del entry.variants[index]
                break
        else:
            return False

        entry.total_count -= 1
        if entry.total_count <= 0 or not entry.variants:
            del self.entries[card.name]
        return True

    def clear(self) -> None:
        self.entries.clear()

    def iter_variants(self) -> Iterator[tuple[str, VariantCount]]:
        """Yield (card name, variant counter) for every variant in the deck."""
        for name, entry in self.entries.items():
            for variant in entry.variants:
                yield name, variant

    def supertype_counts(self) -> SupertypeCounts:
        """Fold every variant counter into per-supertype totals."""
        totals = {Supertype.POKEMON: 0, Supertype.TRAINER: 0, Supertype.ENERGY: 0}
        for _, variant in self.iter_variants():
            category = supertype_category(variant.card.supertype)
            if category is not None:
                totals[category] += variant.count
        return SupertypeCounts(
            pokemon=totals[Supertype.POKEMON],
            trainer=totals[Supertype.TRAINER],
            energy=totals[Supertype.ENERGY],
        )

    def total_cards(self) -> int:
        return sum(entry.total_count for entry in self.entries.values())

    def unique_cards(self) -> int:
        return len(self.entries)

    def name_counts(self) -> dict[str, int]:
        """Card name -> total copies."""
        return {name: entry.total_count for name, entry in self.entries.items()}


@dataclass(frozen=True)
class DeckSizeReport:
    total_cards: int
    required: int

    @property
    def is_legal(self) -> bool:
        return self.total_cards == self.required

    @property
    def missing(self) -> int:
        return max(0, self.required - self.total_cards)

    @property
    def excess(self) -> int:
        return max(0, self.total_cards - self.required)


def validate_deck_size(deck: Deck, required: int = STANDARD_DECK_SIZE) -> DeckSizeReport:
    """Report whether the deck has exactly `required` cards. Does not modify the deck."""
    return DeckSizeReport(total_cards=deck.total_cards(), required=required)


# --- Work-in-progress snapshot ---


def deck_to_snapshot(deck: Deck) -> dict[str, Any]:
    """
    Serialize a deck to the work-in-progress snapshot shape.

    {name: {"cards": [{"data": card_record, "count": n}], "totalCount": n}}
    """
    return {
        name: {
            "cards": [
                {"data": card_to_dict(variant.card), "count": variant.count}
                for variant in entry.variants
            ],
            "totalCount": entry.total_count,
        }
        for name, entry in deck.entries.items()
    }


def deck_from_snapshot(data: Any) -> Deck:
    """
    Rebuild a deck from a snapshot.

    Counts are replayed through add_copies so every invariant is re-applied;
    unreadable variants are dropped with a warning.
    """
    deck = Deck()
    if not isinstance(data, Mapping):
        return deck

    for name, entry in data.items():
        if not isinstance(entry, Mapping):
            logger.warning("Dropping malformed snapshot entry for %s", name)
            continue
        for item in entry.get("cards") or []:
            if not isinstance(item, Mapping):
                continue
            try:
                card = card_from_dict(item.get("data"))
                count = int(item.get("count", 0))
            except (CardShapeError, TypeError, ValueError) as e:
                logger.warning("Dropping unreadable variant of %s: %s", name, e)
                continue
            deck.add_copies(card, count)

    return deck
