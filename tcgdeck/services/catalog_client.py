"""
Client for the remote card catalog (pokemontcg.io v2 API).

The client is constructed explicitly and passed to whatever needs it; there
is no module-level instance. find_card() satisfies the CardResolver
signature used by the Text/XML/JSON decoders.

Search parameters map onto the catalog query language:
    {"name": "Pikachu"}                  -> name:Pikachu
    {"types": ["Fire", "Water"]}         -> (types:"Fire" OR types:"Water")
    {"set.id": ["sv1"]}                  -> (set.id:"sv1")
    {"legalities": {"standard": "Legal"}} -> legalities.standard:"Legal"
"""

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from tcgdeck.config import settings
from tcgdeck.models.card import Card
from tcgdeck.models.failure import CardShapeError, CatalogError
from tcgdeck.models.identity import CardShape, card_from_dict, classify_card

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 150
DEFAULT_ORDER_BY = "-set.releaseDate,number"


def build_query(params: Mapping[str, Any]) -> str:
    """Build a catalog query string; empty and None values are ignored."""
    parts: list[str] = []
    for key, value in params.items():
        if value is None:
            continue
        if key == "legalities" and isinstance(value, Mapping):
            for fmt, status in value.items():
                if status:
                    parts.append(f'legalities.{fmt}:"{status}"')
        elif isinstance(value, list | tuple):
            if value:
                parts.append("(" + " OR ".join(f'{key}:"{item}"' for item in value) + ")")
        elif isinstance(value, str):
            if value.strip():
                parts.append(f"{key}:{value}")
        else:
            parts.append(f"{key}:{value}")
    return " ".join(parts)


class CatalogClient:
    """Synchronous catalog client with a simple linear retry policy."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"User-Agent": "tcgdeck/1.0"}
        key = settings.catalog_api_key if api_key is None else api_key
        if key:
            headers["X-Api-Key"] = key

        self.max_retries = settings.catalog_max_retries if max_retries is None else max_retries
        self.backoff_seconds = backoff_seconds
        self._client = httpx.Client(
            base_url=(base_url or settings.catalog_base_url).rstrip("/"),
            headers=headers,
            timeout=settings.catalog_timeout if timeout is None else timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, path: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """
        GET a JSON document, retrying transport errors and 5xx responses.

        Raises:
            CatalogError: On 4xx, exhausted retries, or a non-JSON body
        """
        attempt = 0
        while True:
            try:
                response = self._client.get(path, params=params)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status < 500 or attempt >= self.max_retries:
                    raise CatalogError(
                        f"Card catalog request failed: HTTP {status}",
                        detail=f"GET {path}",
                    ) from e
            except httpx.RequestError as e:
                if attempt >= self.max_retries:
                    raise CatalogError("Card catalog is unreachable.", detail=str(e)) from e
            except ValueError as e:
                raise CatalogError("Card catalog returned invalid JSON.", detail=f"GET {path}") from e
            else:
                if not isinstance(data, dict):
                    raise CatalogError("Card catalog returned an unexpected document.", detail=f"GET {path}")
                return data

            attempt += 1
            delay = attempt * self.backoff_seconds
            logger.info("Retrying %s (attempt %d of %d) in %.1fs", path, attempt, self.max_retries, delay)
            time.sleep(delay)

    @staticmethod
    def _cards(records: Any) -> list[Card]:
        cards: list[Card] = []
        if not isinstance(records, list):
            return cards
        for record in records:
            if classify_card(record) is CardShape.UNKNOWN:
                logger.warning("Catalog returned a record without card images, skipped")
                continue
            try:
                cards.append(card_from_dict(record))
            except CardShapeError as e:
                logger.warning("Catalog record rejected: %s", e.detail)
        return cards

    def search_cards(
        self,
        params: Mapping[str, Any],
        page_size: int = DEFAULT_PAGE_SIZE,
        order_by: str = DEFAULT_ORDER_BY,
    ) -> list[Card]:
        """Run a catalog search; an empty query returns no cards without a request."""
        query = build_query(params)
        if not query:
            return []
        data = self._get("/cards", params={"q": query, "orderBy": order_by, "pageSize": page_size})
        return self._cards(data.get("data"))

    def get_card(self, card_id: str) -> Card | None:
        """Fetch one card by catalog id; None when the catalog has no such card."""
        try:
            data = self._get(f"/cards/{card_id}")
        except CatalogError as e:
            if isinstance(e.__cause__, httpx.HTTPStatusError) and e.__cause__.response.status_code == 404:
                return None
            raise
        cards = self._cards([data.get("data")])
        return cards[0] if cards else None

    def find_card(self, name: str, set_code: str, number: str) -> Card | None:
        """
        Look a printing up by name, PTCGO set code and collector number.

        Catalog failures are logged and reported as "not found" so a deck
        import can fall back to unresolved cards.
        """
        params = {"name": f'"{name}"', "set.ptcgoCode": [set_code], "number": [number]}
        try:
            cards = self.search_cards(params, page_size=1)
        except CatalogError as e:
            logger.warning("Catalog lookup for %s %s %s failed: %s", name, set_code, number, e.message)
            return None
        return cards[0] if cards else None
