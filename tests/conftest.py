import pytest

from tcgdeck.models.card import Ability, Attack, CardImages, CatalogCard, CustomCard, Resistance, Weakness
from tcgdeck.models.deck import Deck


def catalog_card(
    name: str = "Pikachu",
    supertype: str = "Pokémon",
    set_id: str = "sv1",
    number: str = "63",
    set_code: str = "SVI",
    **fields,
) -> CatalogCard:
    """A catalog card with pokemontcg.io style images and id."""
    base = f"https://images.pokemontcg.io/{set_id}/{number}"
    return CatalogCard(
        id=f"{set_id}-{number}",
        name=name,
        supertype=supertype,
        set_id=set_id,
        set_code=set_code,
        number=number,
        images=CardImages(small=f"{base}.png", large=f"{base}_hires.png"),
        **fields,
    )


def custom_card(
    name: str = "Sparky",
    supertype: str = "Pokémon",
    image: str = "https://example.com/sparky.png",
    card_id: str = "custom-1718000000000-abc1234",
    **fields,
) -> CustomCard:
    return CustomCard(id=card_id, name=name, supertype=supertype, image=image, **fields)


@pytest.fixture
def pikachu() -> CatalogCard:
    return catalog_card()


@pytest.fixture
def catalog_record() -> dict:
    """A pokemontcg.io v2 card record."""
    return {
        "id": "sv1-63",
        "name": "Pikachu",
        "supertype": "Pokémon",
        "subtypes": ["Basic"],
        "hp": "60",
        "types": ["Lightning"],
        "attacks": [{"name": "Gnaw", "cost": ["Lightning"], "convertedEnergyCost": 1, "damage": "20", "text": ""}],
        "weaknesses": [{"type": "Fighting", "value": "×2"}],
        "retreatCost": ["Colorless"],
        "convertedRetreatCost": 1,
        "set": {"id": "sv1", "name": "Scarlet & Violet", "ptcgoCode": "SVI"},
        "number": "63",
        "rarity": "Common",
        "images": {
            "small": "https://images.pokemontcg.io/sv1/63.png",
            "large": "https://images.pokemontcg.io/sv1/63_hires.png",
        },
    }


@pytest.fixture
def full_custom_card() -> CustomCard:
    """Custom card with every optional sub-record filled in."""
    return custom_card(
        types=("Lightning",),
        subtypes=("Basic",),
        hp="70",
        rules=("This card is a prototype.",),
        abilities=(Ability(name="Static Charge", text="Once per turn, draw a card.", type="Ability"),),
        attacks=(
            Attack(name="Zap", cost=("Lightning",), damage="20", text=""),
            Attack(name="Thunder", cost=("Lightning", "Lightning", "Colorless"), damage="90", text="Flip a coin."),
        ),
        weaknesses=(Weakness(type="Fighting", value="×2"),),
        resistances=(Resistance(type="Metal", value="-30"),),
        retreat_cost=("Colorless", "Colorless"),
        number="abc1234",
        set_id="custom",
        set_name="Custom Cards",
    )


@pytest.fixture
def sample_deck() -> Deck:
    """4 Pikachu, 2 Raichu, 4 Professor's Research, 12 Lightning Energy."""
    deck = Deck()
    deck.add_copies(catalog_card(), 4)
    deck.add_copies(catalog_card(name="Raichu", number="64"), 2)
    deck.add_copies(catalog_card(name="Professor's Research", supertype="Trainer", number="189"), 4)
    deck.add_copies(
        catalog_card(name="Lightning Energy", supertype="Energy", set_id="sve", number="4", set_code="SVE"),
        12,
    )
    return deck


@pytest.fixture
def sample_ptcgl_text() -> str:
    """Sample PTCG Live export for testing."""
    return """Pokémon: 6
4 Pikachu SVI 63
2 Raichu SVI 64

Trainer: 4
4 Professor's Research SVI 189

Energy: 12
12 Lightning Energy SVE 4

Total Cards: 22"""


@pytest.fixture
def make_catalog_card():
    """Factory for catalog cards; see catalog_card()."""
    return catalog_card


@pytest.fixture
def make_custom_card():
    """Factory for custom cards; see custom_card()."""
    return custom_card
