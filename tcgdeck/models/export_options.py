from dataclasses import dataclass, replace

from tcgdeck.models.card import Supertype, supertype_category


@dataclass(frozen=True, slots=True)
class ExportOptions:
    """
    Which optional content an exporter writes.

    Defaults match the advanced export (everything on). Supertype filters and
    export_card_images apply to every format; the sub-record flags only to
    formats with room for them (XML, JSON).
    """

    include_full_metadata: bool = True
    include_pokemon_cards: bool = True
    include_trainer_cards: bool = True
    include_energy_cards: bool = True
    export_card_images: bool = True
    include_abilities: bool = True
    include_attacks: bool = True
    include_rules: bool = True
    include_weaknesses: bool = True
    include_resistances: bool = True
    include_retreat_cost: bool = True

    @classmethod
    def standard(cls) -> "ExportOptions":
        """Plain export: every card with its image, no sub-records or extra metadata."""
        return cls(
            include_full_metadata=False,
            include_abilities=False,
            include_attacks=False,
            include_rules=False,
            include_weaknesses=False,
            include_resistances=False,
            include_retreat_cost=False,
        )

    def with_changes(self, **changes: bool) -> "ExportOptions":
        return replace(self, **changes)

    def includes_supertype(self, supertype: str | None) -> bool:
        """Cards with an unrecognized supertype are always exported."""
        category = supertype_category(supertype)
        if category is Supertype.POKEMON:
            return self.include_pokemon_cards
        if category is Supertype.TRAINER:
            return self.include_trainer_cards
        if category is Supertype.ENERGY:
            return self.include_energy_cards
        return True
