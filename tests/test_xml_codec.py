"""Tests for the XML deck codec."""

import xml.etree.ElementTree as ET

import pytest

from tcgdeck.codecs.xml_codec import FALLBACK_ZONE, GAME_ID, XML_DECLARATION, decode_xml, encode_xml
from tcgdeck.models.card import CatalogCard, CustomCard
from tcgdeck.models.deck import Deck
from tcgdeck.models.export_options import ExportOptions
from tcgdeck.models.failure import DeckParseError


def _parse(text: str) -> ET.Element:
    assert text.startswith(XML_DECLARATION)
    return ET.fromstring(text[len(XML_DECLARATION) :].strip())


class TestEncodeXml:
    def test_standard_layout(self, sample_deck: Deck) -> None:
        root = _parse(encode_xml(sample_deck))

        assert root.tag == "deck"
        assert root.get("version") == "1.0"
        assert root.findtext("meta/game") == GAME_ID
        assert root.find("meta/totalCards") is None
        assert [zone.get("name") for zone in root.findall("superzone")] == ["Pokémon", "Trainer", "Energy"]

        first = root.find("superzone/card")
        assert first is not None
        assert first.findtext("name") == "Pikachu"
        assert first.findtext("set") == "SVI"
        assert first.findtext("number") == "63"
        assert first.findtext("quantity") == "4"
        assert first.findtext("id") == "sv1-63"
        assert first.findtext("images/large") == "https://images.pokemontcg.io/sv1/63_hires.png"
        assert first.find("attacks") is None

    def test_full_metadata_counts(self, sample_deck: Deck) -> None:
        root = _parse(encode_xml(sample_deck, ExportOptions()))

        assert root.findtext("meta/totalCards") == "22"
        assert root.findtext("meta/pokemonCount") == "6"
        assert root.findtext("meta/trainerCount") == "4"
        assert root.findtext("meta/energyCount") == "12"

    def test_sub_records_written(self, full_custom_card) -> None:
        deck = Deck()
        deck.add_copy(full_custom_card)

        card = _parse(encode_xml(deck, ExportOptions())).find("superzone/card")

        assert card is not None
        assert card.findtext("isCustom") == "true"
        assert card.findtext("image") == "https://example.com/sparky.png"
        assert [a.findtext("name") for a in card.findall("attacks/attack")] == ["Zap", "Thunder"]
        assert [e.text for e in card.findall("attacks/attack/cost/energy")][:1] == ["Lightning"]
        assert card.findtext("weaknesses/weakness/type") == "Fighting"
        assert [e.text for e in card.findall("retreatCost/energy")] == ["Colorless", "Colorless"]

    def test_unrecognized_supertype_goes_to_fallback_zone(self, make_custom_card) -> None:
        deck = Deck()
        deck.add_copy(make_custom_card(name="Mystery", supertype="Stadium"))

        root = _parse(encode_xml(deck))

        assert [zone.get("name") for zone in root.findall("superzone")] == [FALLBACK_ZONE]

    def test_images_off(self, pikachu, make_custom_card) -> None:
        deck = Deck()
        deck.add_copy(pikachu)
        deck.add_copy(make_custom_card())
        options = ExportOptions.standard().with_changes(export_card_images=False)

        text = encode_xml(deck, options)

        assert "<images>" not in text
        assert "<image>" not in text

    def test_special_characters_are_escaped(self, make_custom_card) -> None:
        deck = Deck()
        deck.add_copy(make_custom_card(name="Pokémon Center Lady & <Friends>", supertype="Trainer"))

        text = encode_xml(deck)

        assert "&amp; &lt;Friends&gt;" in text
        assert "Pokémon Center Lady & <Friends>" in decode_xml(text)


class TestDecodeXml:
    def test_minimal_document(self) -> None:
        text = """<deck>
          <superzone name="Pokémon">
            <card><name>Pikachu</name><set>SVI</set><number>63</number><quantity>3</quantity></card>
          </superzone>
          <superzone name="Energy">
            <card><name>Basic Lightning Energy</name><quantity>14</quantity></card>
          </superzone>
        </deck>"""

        deck = decode_xml(text)

        assert deck.name_counts() == {"Pikachu": 3, "Basic Lightning Energy": 14}
        pikachu = deck["Pikachu"].variants[0].card
        assert pikachu.supertype == "Pokémon"
        assert pikachu.set_code == "SVI"
        assert deck["Basic Lightning Energy"].variants[0].card.supertype == "Energy"

    def test_missing_quantity_counts_as_one(self) -> None:
        deck = decode_xml('<deck><superzone name="Trainer"><card><name>Nest Ball</name></card></superzone></deck>')

        assert deck.name_counts() == {"Nest Ball": 1}

    def test_invalid_cards_are_skipped(self) -> None:
        text = """<deck><superzone name="Trainer">
            <card><quantity>2</quantity></card>
            <card><name>Nest Ball</name><quantity>many</quantity></card>
            <card><name>Ultra Ball</name><quantity>2</quantity></card>
        </superzone></deck>"""

        assert decode_xml(text).name_counts() == {"Ultra Ball": 2}

    def test_resolver_used_for_stripped_cards(self, pikachu) -> None:
        def resolver(name: str, set_code: str, number: str):
            return pikachu if (name, set_code, number) == ("Pikachu", "SVI", "63") else None

        deck = Deck()
        deck.add_copies(pikachu, 2)
        options = ExportOptions.standard().with_changes(export_card_images=False)

        restored = decode_xml(encode_xml(deck, options), resolver)

        assert restored["Pikachu"].variants[0].card == pikachu
        assert restored["Pikachu"].total_count == 2

    def test_empty_document(self) -> None:
        assert len(decode_xml("<deck></deck>")) == 0

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(DeckParseError) as exc_info:
            decode_xml("<deck><superzone>")

        assert exc_info.value.format_name == "xml"

    def test_wrong_root_raises(self) -> None:
        with pytest.raises(DeckParseError):
            decode_xml("<cards></cards>")

    def test_empty_input_raises(self) -> None:
        with pytest.raises(DeckParseError):
            decode_xml("  ")


class TestXmlRoundTrip:
    def test_advanced_export_reproduces_cards(self, sample_deck: Deck, full_custom_card) -> None:
        sample_deck.add_copies(full_custom_card, 2)

        restored = decode_xml(encode_xml(sample_deck, ExportOptions()))

        assert restored.name_counts() == sample_deck.name_counts()
        for name, variant in sample_deck.iter_variants():
            restored_variant = restored[name].variants[0]
            assert restored_variant.card == variant.card
            assert restored_variant.count == variant.count

    def test_card_types_survive(self, pikachu, full_custom_card) -> None:
        deck = Deck()
        deck.add_copy(pikachu)
        deck.add_copy(full_custom_card)

        restored = decode_xml(encode_xml(deck))

        assert isinstance(restored["Pikachu"].variants[0].card, CatalogCard)
        assert isinstance(restored["Sparky"].variants[0].card, CustomCard)
