"""
Card models.

A card is either catalog-sourced (CatalogCard) or user-authored (CustomCard).
The variant is decided once, when a raw record crosses the ingestion
boundary (see tcgdeck.models.identity.card_from_dict). Downstream code
dispatches on the type, never on the shape of a dict.

All models are frozen; sub-records are tuples so cards stay hashable.
"""

from dataclasses import dataclass, field
from enum import Enum


class Supertype(str, Enum):
    """The three supertype categories, using the catalog display strings."""

    POKEMON = "Pokémon"
    TRAINER = "Trainer"
    ENERGY = "Energy"


# Case-insensitive spellings accepted for each category
_SUPERTYPE_ALIASES: dict[str, Supertype] = {
    "pokémon": Supertype.POKEMON,
    "pokemon": Supertype.POKEMON,
    "trainer": Supertype.TRAINER,
    "energy": Supertype.ENERGY,
}

# Canonical section order used by every exporter
SUPERTYPE_ORDER: tuple[Supertype, ...] = (
    Supertype.POKEMON,
    Supertype.TRAINER,
    Supertype.ENERGY,
)


def supertype_category(value: str | None) -> Supertype | None:
    """Map a raw supertype string to its category, or None if unrecognized."""
    if not value:
        return None
    return _SUPERTYPE_ALIASES.get(value.strip().lower())


@dataclass(frozen=True, slots=True)
class Ability:
    name: str
    text: str = ""
    type: str = ""


@dataclass(frozen=True, slots=True)
class Attack:
    name: str
    cost: tuple[str, ...] = ()
    damage: str = ""
    text: str = ""

    @property
    def converted_energy_cost(self) -> int:
        return len(self.cost)


@dataclass(frozen=True, slots=True)
class Weakness:
    type: str
    value: str = ""


@dataclass(frozen=True, slots=True)
class Resistance:
    type: str
    value: str = ""


@dataclass(frozen=True, slots=True)
class CardImages:
    """Catalog image pair. Catalog records always carry distinct URIs."""

    small: str = ""
    large: str = ""


@dataclass(frozen=True, slots=True)
class BaseCard:
    """
    Fields shared by every card variant.

    Attributes:
        id: Catalog id (e.g. "sv1-196") or generated custom id; may be empty
        name: Display name, the deck aggregation key
        supertype: Raw supertype string as received (see supertype_category)
        set_code: PTCGO set code used by text exports (e.g. "SVI")
        number: Collector number within the set
    """

    id: str
    name: str
    supertype: str
    subtypes: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    hp: str = ""
    rules: tuple[str, ...] = ()
    abilities: tuple[Ability, ...] = ()
    attacks: tuple[Attack, ...] = ()
    weaknesses: tuple[Weakness, ...] = ()
    resistances: tuple[Resistance, ...] = ()
    retreat_cost: tuple[str, ...] = ()
    rarity: str = ""
    set_id: str = ""
    set_name: str = ""
    set_code: str = ""
    number: str = ""

    @property
    def category(self) -> Supertype | None:
        return supertype_category(self.supertype)

    @property
    def converted_retreat_cost(self) -> int:
        return len(self.retreat_cost)


@dataclass(frozen=True, slots=True)
class CatalogCard(BaseCard):
    """A card record from the remote card catalog."""

    images: CardImages = field(default_factory=CardImages)

    @property
    def image_reference(self) -> str:
        return self.images.large


@dataclass(frozen=True, slots=True)
class CustomCard(BaseCard):
    """
    A user-authored card, or an imported record without catalog identity.

    The image is a single flat reference: an https URL or a local asset path.
    """

    image: str = ""

    @property
    def image_reference(self) -> str:
        return self.image


Card = CatalogCard | CustomCard
