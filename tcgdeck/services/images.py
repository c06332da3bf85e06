"""
Card image URL resolution.

resolve_image_url() picks the URL written to exports:
    1. Catalog card: the large catalog image
    2. Flat https image that is not a local asset path
    3. Local "/assets/..." path: prefixed with ASSET_BASE_URL
    4. Whatever the raw image field holds (already-hosted asset URLs included)
    5. Per-supertype placeholder when all of the above are empty
"""

import logging
import re

from tcgdeck.models.card import Card, CardImages, CatalogCard, Supertype, supertype_category

logger = logging.getLogger(__name__)

ASSET_BASE_URL = "https://tishinator.github.io/PTCGDeckBuilder"
ASSET_MARKER = "/assets/"

PLACEHOLDER_IMAGES: dict[Supertype, str] = {
    Supertype.POKEMON: "https://images.pokemontcg.io/sv5/4/high.png",
    Supertype.TRAINER: "https://images.pokemontcg.io/sv1/196/high.png",
    Supertype.ENERGY: "https://images.pokemontcg.io/sve/8/high.png",
}

# Hosts whose image URLs identify a catalog printing
CATALOG_IMAGE_HOSTS = ("images.pokemontcg.io", "api.pokemontcg.io", "assets.tcgdex.net")

# https://images.pokemontcg.io/sv1/196_hires.png (large) / .../sv1/196.png (small)
_POKEMONTCG_IMAGE = re.compile(
    r"^https://images\.pokemontcg\.io/(?P<set>[A-Za-z0-9.]+)/(?P<number>[A-Za-z0-9]+?)(?P<hires>_hires)?\.png$"
)

# https://assets.tcgdex.net/en/sv/sv01/196/high.png (large) / .../low.png (small)
_TCGDEX_IMAGE = re.compile(
    r"^(?P<base>https://assets\.tcgdex\.net/[a-z-]+/[A-Za-z0-9.]+/(?P<set>[A-Za-z0-9.]+)/(?P<number>[A-Za-z0-9]+))/(?:high|low)\.(?P<ext>png|webp|jpg)$"
)


def placeholder_image(supertype: str | None) -> str:
    """Placeholder for a supertype; the Pokémon placeholder when unrecognized."""
    category = supertype_category(supertype) or Supertype.POKEMON
    return PLACEHOLDER_IMAGES[category]


def _is_usable_https(url: str) -> bool:
    return url.startswith("https://") and ASSET_MARKER not in url


def resolve_image_url(card: Card) -> str:
    """Return the export/display URL for a card, never empty."""
    if isinstance(card, CatalogCard) and card.images.large:
        return card.images.large

    image = "" if isinstance(card, CatalogCard) else card.image
    if image.startswith("data:"):
        image = ""

    if image and _is_usable_https(image):
        return image

    if image.startswith(ASSET_MARKER):
        return ASSET_BASE_URL + image

    if image:
        return image

    logger.warning(
        "No image URL for %s (supertype %s), using placeholder",
        card.name or "unknown card",
        card.supertype or "unknown",
    )
    return placeholder_image(card.supertype)


def is_catalog_image_url(url: str) -> bool:
    return any(f"//{host}/" in url for host in CATALOG_IMAGE_HOSTS)


def catalog_images_from_url(url: str) -> tuple[str, CardImages] | None:
    """
    Derive (catalog id, image pair) from a catalog image URL.

    Returns None when the URL does not follow a known catalog layout; such
    cards cannot be given catalog identity and are imported as custom cards.
    """
    match = _POKEMONTCG_IMAGE.match(url)
    if match:
        set_id, number = match.group("set"), match.group("number")
        base = f"https://images.pokemontcg.io/{set_id}/{number}"
        return f"{set_id}-{number}", CardImages(small=f"{base}.png", large=f"{base}_hires.png")

    match = _TCGDEX_IMAGE.match(url)
    if match:
        base, ext = match.group("base"), match.group("ext")
        card_id = f"{match.group('set')}-{match.group('number')}"
        return card_id, CardImages(small=f"{base}/low.{ext}", large=f"{base}/high.{ext}")

    return None
