"""Tests for compact card records and custom-card validation."""

import re
from dataclasses import replace

import pytest

from tcgdeck.models.card import CatalogCard, CustomCard
from tcgdeck.models.failure import CompressionVersionError
from tcgdeck.services.compression import (
    COMPRESSION_VERSION,
    CUSTOM_SET_ID,
    CUSTOM_SET_NAME,
    compress_card,
    compress_cards,
    decompress_card,
    decompress_cards,
    expand_card,
    new_custom_card_id,
    validate_custom_card,
)


class TestCompressCard:
    def test_short_keys(self, full_custom_card) -> None:
        record = compress_card(full_custom_card)

        assert record["v"] == COMPRESSION_VERSION
        assert record["i"] == "custom-1718000000000-abc1234"
        assert record["n"] == "Sparky"
        assert record["s"] == "Pokémon"
        assert record["im"] == "https://example.com/sparky.png"
        assert record["at"][1] == {
            "n": "Thunder",
            "c": ["Lightning", "Lightning", "Colorless"],
            "d": "90",
            "x": "Flip a coin.",
        }
        assert record["w"] == [{"t": "Fighting", "v": "×2"}]
        assert record["rt"] == 2
        assert record["c"] is True

    def test_number_matching_id_suffix_is_omitted(self, full_custom_card) -> None:
        assert "no" not in compress_card(full_custom_card)

    def test_other_number_is_kept(self, make_custom_card) -> None:
        record = compress_card(make_custom_card(number="7"))

        assert record["no"] == "7"

    def test_empty_rules_omitted(self, make_custom_card) -> None:
        assert "ru" not in compress_card(make_custom_card())

    def test_catalog_card_extra_keys(self, make_catalog_card) -> None:
        record = compress_card(make_catalog_card(rarity="Common"))

        assert record["c"] is False
        assert record["im"] == "https://images.pokemontcg.io/sv1/63_hires.png"
        assert record["sm"] == "https://images.pokemontcg.io/sv1/63.png"
        assert record["se"] == {"i": "sv1", "n": "", "p": "SVI"}
        assert record["ra"] == "Common"

    def test_custom_card_has_no_catalog_keys(self, make_custom_card) -> None:
        record = compress_card(make_custom_card())

        assert not {"sm", "se", "ra"} & set(record)

    def test_custom_card_rarity_is_kept(self, make_custom_card) -> None:
        record = compress_card(make_custom_card(rarity="Rare Holo"))

        assert record["ra"] == "Rare Holo"
        assert record["c"] is True


class TestDecompressCard:
    def test_round_trip(self, full_custom_card) -> None:
        assert decompress_card(compress_card(full_custom_card)) == full_custom_card

    def test_round_trip_with_rarity(self, full_custom_card) -> None:
        card = replace(full_custom_card, rarity="Rare Holo")

        restored = decompress_card(compress_card(card))

        assert restored.rarity == "Rare Holo"
        assert restored == card

    def test_retreat_cost_expands_as_colorless(self, make_custom_card) -> None:
        card = make_custom_card(retreat_cost=("Lightning", "Water", "Fire"))

        restored = decompress_card(compress_card(card))

        assert restored.retreat_cost == ("Colorless", "Colorless", "Colorless")
        assert restored.converted_retreat_cost == 3

    def test_custom_set_placeholder(self, make_custom_card) -> None:
        card = make_custom_card(set_id="mine", set_name="My Set", set_code="MYS")

        restored = decompress_card(compress_card(card))

        assert restored.set_id == CUSTOM_SET_ID
        assert restored.set_name == CUSTOM_SET_NAME
        assert restored.set_code == ""

    def test_number_from_id_suffix(self) -> None:
        card = decompress_card({"i": "custom-1718000000000-zz9x8y7", "n": "Sparky", "s": "Pokémon", "im": "x"})

        assert card.number == "zz9x8y7"

    def test_legacy_record_without_version(self) -> None:
        legacy = {"i": "custom-1-a", "n": "Old Card", "s": "Trainer", "im": "https://x/o.png", "rt": 1}

        card = decompress_card(legacy)

        assert isinstance(card, CustomCard)
        assert card.name == "Old Card"
        assert card.retreat_cost == ("Colorless",)
        assert card.attacks == ()
        assert card.rules == ()

    def test_newer_version_raises(self) -> None:
        with pytest.raises(CompressionVersionError) as exc_info:
            decompress_card({"v": COMPRESSION_VERSION + 1, "n": "Future Card"})

        assert exc_info.value.version == COMPRESSION_VERSION + 1

    def test_malformed_sub_records_are_ignored(self) -> None:
        card = decompress_card({"n": "Sparky", "a": "nope", "at": [1, {"n": "Zap", "d": "10"}], "rt": "x"})

        assert card.abilities == ()
        assert [a.name for a in card.attacks] == ["Zap"]
        assert card.retreat_cost == ()


class TestExpandCard:
    def test_catalog_card_round_trip(self, make_catalog_card) -> None:
        card = make_catalog_card(rarity="Common", hp="60", types=("Lightning",))

        restored = expand_card(compress_card(card))

        assert isinstance(restored, CatalogCard)
        assert restored == card

    def test_custom_card_stays_custom(self, full_custom_card) -> None:
        assert expand_card(compress_card(full_custom_card)) == full_custom_card

    def test_identical_images_are_custom(self) -> None:
        record = {"c": False, "n": "Sparky", "im": "https://x/a.png", "sm": "https://x/a.png"}

        assert isinstance(expand_card(record), CustomCard)

    def test_decompress_cards_skips_non_objects(self, pikachu, full_custom_card) -> None:
        records = [compress_card(pikachu), "garbage", None, compress_card(full_custom_card)]

        assert decompress_cards(records) == [pikachu, full_custom_card]

    def test_compress_cards(self, pikachu, full_custom_card) -> None:
        assert [r["n"] for r in compress_cards([pikachu, full_custom_card])] == ["Pikachu", "Sparky"]


class TestNewCustomCardId:
    def test_shape(self) -> None:
        assert re.fullmatch(r"custom-\d{13}-[0-9a-f]{7}", new_custom_card_id())

    def test_unique(self) -> None:
        assert len({new_custom_card_id() for _ in range(50)}) == 50


class TestValidateCustomCard:
    def test_valid_card(self) -> None:
        data = {
            "name": "Sparky",
            "supertype": "Pokémon",
            "imageUrl": "https://example.com/sparky.png",
            "hp": "70",
            "attacks": [{"name": "Zap", "damage": "20"}],
        }

        assert validate_custom_card(data) == []

    def test_missing_name_and_image(self) -> None:
        errors = validate_custom_card({"name": "  ", "supertype": "Trainer"})

        assert "Card name is required" in errors
        assert "Please enter an image URL" in errors

    def test_invalid_url(self) -> None:
        errors = validate_custom_card({"name": "Sparky", "supertype": "Trainer", "image": "sparky.png"})

        assert errors == ["Please enter a valid URL (e.g., https://example.com/image.jpg)"]

    def test_unknown_supertype(self) -> None:
        errors = validate_custom_card({"name": "Sparky", "supertype": "Stadium", "image": "https://x/s.png"})

        assert errors == ["Supertype must be Pokémon, Trainer or Energy"]

    @pytest.mark.parametrize(
        ("hp", "expected"),
        [
            ("abc", ["HP must be a number"]),
            ("350", ["HP must be between 0 and 340"]),
            ("-10", ["HP must be between 0 and 340"]),
            ("340", []),
            ("", []),
        ],
    )
    def test_hp_range(self, hp: str, expected: list[str]) -> None:
        data = {"name": "Sparky", "supertype": "Pokémon", "image": "https://x/s.png", "hp": hp}

        assert validate_custom_card(data) == expected

    def test_hp_ignored_for_trainers(self) -> None:
        data = {"name": "Ball", "supertype": "Trainer", "image": "https://x/b.png", "hp": "abc"}

        assert validate_custom_card(data) == []

    def test_attack_problems(self) -> None:
        data = {
            "name": "Sparky",
            "supertype": "Pokémon",
            "image": "https://x/s.png",
            "attacks": [{"name": "Zap"}, {"damage": "30"}, "Thunder"],
        }

        assert validate_custom_card(data) == [
            "Attack 1 needs damage or text",
            "Attack 2 needs a name",
            "Attack 3 is not an object",
        ]
