"""Tests for the PTCG Live text codec."""

import pytest

from tcgdeck.codecs.text_codec import decode_text, encode_text
from tcgdeck.models.card import CatalogCard, CustomCard
from tcgdeck.models.deck import Deck
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import DeckParseError


class TestEncodeText:
    def test_sample_deck(self, sample_deck: Deck, sample_ptcgl_text: str) -> None:
        assert encode_text(sample_deck) == sample_ptcgl_text

    def test_empty_deck(self) -> None:
        assert encode_text(Deck()) == "Total Cards: 0"

    def test_empty_sections_are_omitted(self, pikachu) -> None:
        deck = Deck()
        deck.add_copies(pikachu, 2)

        assert encode_text(deck) == "Pokémon: 2\n2 Pikachu SVI 63\n\nTotal Cards: 2"

    def test_card_without_set_info(self, make_custom_card) -> None:
        deck = Deck()
        deck.add_copy(make_custom_card(name="Sparky"))

        assert "1 Sparky\n" in encode_text(deck)

    def test_supertype_filter_changes_total(self, sample_deck: Deck) -> None:
        options = ExportOptions.standard().with_changes(include_trainer_cards=False)

        text = encode_text(sample_deck, options)

        assert "Trainer:" not in text
        assert "Professor's Research" not in text
        assert text.endswith("Total Cards: 18")

    def test_unrecognized_supertype_is_not_exported(self, pikachu, make_custom_card) -> None:
        deck = Deck()
        deck.add_copy(pikachu)
        deck.add_copy(make_custom_card(name="Mystery", supertype="Stadium"))

        text = encode_text(deck)

        assert "Mystery" not in text
        assert text.endswith("Total Cards: 1")

    def test_sections_follow_canonical_order(self, make_catalog_card) -> None:
        deck = Deck()
        deck.add_copy(make_catalog_card(name="Lightning Energy", supertype="Energy", set_id="sve", number="4"))
        deck.add_copy(make_catalog_card(name="Nest Ball", supertype="Trainer", number="181"))
        deck.add_copy(make_catalog_card())

        text = encode_text(deck)

        assert text.index("Pokémon:") < text.index("Trainer:") < text.index("Energy:")


class TestDecodeText:
    def test_sample_text(self, sample_ptcgl_text: str) -> None:
        deck = decode_text(sample_ptcgl_text)

        assert deck.name_counts() == {
            "Pikachu": 4,
            "Raichu": 2,
            "Professor's Research": 4,
            "Lightning Energy": 12,
        }
        card = deck["Pikachu"].variants[0].card
        assert isinstance(card, CustomCard)
        assert card.supertype == "Pokémon"
        assert card.set_code == "SVI"
        assert card.number == "63"
        assert deck["Lightning Energy"].variants[0].card.supertype == "Energy"

    def test_decoded_deck_encodes_back(self, sample_ptcgl_text: str) -> None:
        assert encode_text(decode_text(sample_ptcgl_text)) == sample_ptcgl_text

    def test_resolver_supplies_catalog_cards(self, pikachu) -> None:
        calls = []

        def resolver(name: str, set_code: str, number: str):
            calls.append((name, set_code, number))
            return pikachu if name == "Pikachu" else None

        deck = decode_text("Pokémon: 5\n4 Pikachu SVI 63\n1 Raichu SVI 64", resolver)

        assert calls == [("Pikachu", "SVI", "63"), ("Raichu", "SVI", "64")]
        assert isinstance(deck["Pikachu"].variants[0].card, CatalogCard)
        assert deck["Pikachu"].variants[0].card == pikachu
        assert isinstance(deck["Raichu"].variants[0].card, CustomCard)

    def test_resolver_skipped_without_set_info(self) -> None:
        def resolver(name: str, set_code: str, number: str):
            raise AssertionError("resolver should not be called")

        deck = decode_text("Energy:\n10 Basic Fire Energy", resolver)

        assert deck.name_counts() == {"Basic Fire Energy": 10}

    def test_bullets_and_pokemon_spelling(self) -> None:
        text = "Pokemon: 3\n* 3 Pikachu SVI 63\n\nTrainer:\n* 2 Nest Ball SVI 181"

        deck = decode_text(text)

        assert deck.name_counts() == {"Pikachu": 3, "Nest Ball": 2}
        assert deck["Pikachu"].variants[0].card.supertype == "Pokémon"
        assert deck["Nest Ball"].variants[0].card.supertype == "Trainer"

    def test_alphanumeric_collector_numbers(self) -> None:
        deck = decode_text("Pokémon: 1\n1 Pikachu VMAX SWSH TG17")

        card = deck["Pikachu VMAX"].variants[0].card
        assert card.set_code == "SWSH"
        assert card.number == "TG17"

    def test_promo_set_code(self) -> None:
        deck = decode_text("Pokémon: 1\n1 Pikachu PR-SV 27")

        card = deck["Pikachu"].variants[0].card
        assert card.set_code == "PR-SV"
        assert card.number == "27"

    def test_lowercase_word_is_not_a_set_code(self) -> None:
        deck = decode_text("Trainer: 2\n2 Super Rod 2")

        assert deck.name_counts() == {"Super Rod 2": 2}
        card = deck["Super Rod 2"].variants[0].card
        assert card.set_code == ""
        assert card.number == ""

    def test_name_ending_in_digit_round_trips(self, make_custom_card) -> None:
        deck = Deck()
        deck.add_copies(make_custom_card(name="Super Rod 2", supertype="Trainer"), 2)

        text = encode_text(deck)

        assert text == "Trainer: 2\n2 Super Rod 2\n\nTotal Cards: 2"
        assert decode_text(text).name_counts() == {"Super Rod 2": 2}

    def test_multi_word_names_without_set(self) -> None:
        deck = decode_text("Trainer: 4\n4 Professor's Research")

        card = deck["Professor's Research"].variants[0].card
        assert card.set_code == ""
        assert card.number == ""

    def test_per_name_limit(self) -> None:
        deck = decode_text("Pokémon: 6\n4 Pikachu SVI 63\n2 Pikachu PAL 62")

        assert deck["Pikachu"].total_count == 4
        assert len(deck["Pikachu"].variants) == 1

    def test_printings_become_variants(self) -> None:
        deck = decode_text("Pokémon: 3\n2 Pikachu SVI 63\n1 Pikachu PAL 62")

        entry = deck["Pikachu"]
        assert [(v.card.set_code, v.count) for v in entry.variants] == [("SVI", 2), ("PAL", 1)]

    def test_unrecognized_lines_are_skipped(self) -> None:
        deck = decode_text("Pokémon: 1\n1 Pikachu SVI 63\nnot a card line\n\nTotal Cards: 1")

        assert deck.name_counts() == {"Pikachu": 1}

    def test_mismatched_total_is_tolerated(self) -> None:
        deck = decode_text("Pokémon: 1\n1 Pikachu SVI 63\n\nTotal Cards: 60")

        assert deck.total_cards() == 1

    def test_empty_input_raises(self) -> None:
        with pytest.raises(DeckParseError) as exc_info:
            decode_text("")

        assert exc_info.value.format_name == "text"

    def test_unrecognizable_text_raises(self) -> None:
        with pytest.raises(DeckParseError):
            decode_text("hello\nworld")
