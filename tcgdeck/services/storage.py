"""
Per-user persistence of the working deck, favorites, custom cards and
search history.

Everything is stored as JSON strings in a KeyValueStore, the same contract
as browser local storage. Two backends exist: MemoryKeyValueStore (tests,
single process) and SqlKeyValueStore (one namespace per user in the
key_value_entries table).

INVARIANTS:
- Every load returns a usable default (empty deck or list) when the stored
  value is absent or corrupt. Problems are logged, never raised.
- Collections are capped at their retention ceiling, oldest entries first
  out, before they are written.
- A write that hits StorageFullError drops the oldest half of a collection
  and retries once. The working deck cannot be trimmed and reports failure.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from tcgdeck.config import MAX_CUSTOM_CARDS, MAX_FAVORITES, MAX_SEARCH_HISTORY, settings
from tcgdeck.db import operations
from tcgdeck.models.card import Card
from tcgdeck.models.deck import Deck, deck_from_snapshot, deck_to_snapshot
from tcgdeck.models.failure import CardShapeError, KnownError, StorageFullError
from tcgdeck.models.identity import are_cards_equal, card_from_dict
from tcgdeck.services.compression import compress_cards, decompress_cards

logger = logging.getLogger(__name__)

KEY_PREFIX = "tcg-deck-builder"
WORK_IN_PROGRESS_KEY = f"{KEY_PREFIX}-wip"
FAVORITES_KEY = f"{KEY_PREFIX}-favorites"
CUSTOM_CARDS_KEY = f"{KEY_PREFIX}-custom-cards"
SEARCH_HISTORY_KEY = f"{KEY_PREFIX}-search-history"


def chunk_key(generation: int, index: int) -> str:
    return f"{CUSTOM_CARDS_KEY}-chunk-{generation}-{index}"


class KeyValueStore(Protocol):
    """String key-value store with a capacity limit."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None:
        """Store a value. Raises StorageFullError when capacity would be exceeded."""
        ...

    async def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process store. Size is counted in characters of keys plus values."""

    def __init__(self, capacity: int | None = None) -> None:
        self.capacity = settings.storage_capacity_bytes if capacity is None else capacity
        self._data: dict[str, str] = {}

    def usage(self, exclude_key: str | None = None) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items() if k != exclude_key)

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        required = self.usage(exclude_key=key) + len(key) + len(value)
        if required > self.capacity:
            raise StorageFullError(key, required, self.capacity)
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqlKeyValueStore:
    """Database-backed store scoped to one namespace."""

    def __init__(self, session: AsyncSession, namespace: str, capacity: int | None = None) -> None:
        self.session = session
        self.namespace = namespace
        self.capacity = settings.storage_capacity_bytes if capacity is None else capacity

    async def get(self, key: str) -> str | None:
        entry = await operations.get_entry(self.session, self.namespace, key)
        return entry.value if entry is not None else None

    async def set(self, key: str, value: str) -> None:
        used = await operations.namespace_usage(self.session, self.namespace, exclude_key=key)
        required = used + len(key) + len(value)
        if required > self.capacity:
            raise StorageFullError(key, required, self.capacity)
        await operations.upsert_entry(self.session, self.namespace, key, value)

    async def delete(self, key: str) -> None:
        await operations.delete_entry(self.session, self.namespace, key)


def _timestamp() -> int:
    return int(time.time() * 1000)


class DeckStorage:
    """Typed access to everything one user persists."""

    def __init__(self, store: KeyValueStore, chunk_size: int | None = None) -> None:
        self.store = store
        self.chunk_size = settings.custom_card_chunk_bytes if chunk_size is None else chunk_size

    # --- Raw JSON helpers ---

    async def _load_json(self, key: str) -> Any:
        raw = await self.store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupt data under %s: %s", key, e)
            return None

    @staticmethod
    def _wrap_compressed(cards: Sequence[Card]) -> str:
        return json.dumps(
            {"_isCompressed": True, "data": compress_cards(cards), "timestamp": _timestamp()},
            ensure_ascii=False,
        )

    @staticmethod
    def _unwrap_cards(key: str, payload: Any) -> list[Card]:
        """Decode a stored card list: compressed wrapper, or a bare list of full records."""
        compressed = isinstance(payload, dict) and payload.get("_isCompressed") is True
        records = payload.get("data") if compressed else payload
        if not isinstance(records, list):
            if payload is not None:
                logger.error("Unexpected card list shape under %s", key)
            return []

        if compressed:
            try:
                return decompress_cards(records)
            except KnownError as e:
                logger.error("Could not read cards under %s: %s", key, e.message)
                return []

        cards: list[Card] = []
        for record in records:
            try:
                cards.append(card_from_dict(record))
            except CardShapeError as e:
                logger.warning("Dropping unreadable card under %s: %s", key, e.detail)
        return cards

    # --- Work in progress ---

    async def save_work_in_progress(self, deck: Deck) -> bool:
        """Persist the working deck. Returns False when storage is full."""
        try:
            await self.store.set(WORK_IN_PROGRESS_KEY, json.dumps(deck_to_snapshot(deck), ensure_ascii=False))
        except StorageFullError as e:
            logger.error("Could not save work in progress: %s", e.detail)
            return False
        return True

    async def load_work_in_progress(self) -> Deck:
        return deck_from_snapshot(await self._load_json(WORK_IN_PROGRESS_KEY))

    async def clear_work_in_progress(self) -> None:
        await self.store.delete(WORK_IN_PROGRESS_KEY)

    # --- Trim-and-retry writes ---

    async def _write_collection(
        self, key: str, items: list[Any], encode: Callable[[list[Any]], Awaitable[None]]
    ) -> bool:
        try:
            await encode(items)
        except StorageFullError:
            trimmed = items[len(items) // 2 :]
            logger.warning("Storage full writing %s, keeping newest %d of %d", key, len(trimmed), len(items))
            try:
                await encode(trimmed)
            except StorageFullError as e:
                logger.error("Storage still full writing %s: %s", key, e.detail)
                return False
        return True

    # --- Favorites ---

    async def load_favorites(self) -> list[Card]:
        return self._unwrap_cards(FAVORITES_KEY, await self._load_json(FAVORITES_KEY))

    async def save_favorites(self, favorites: Sequence[Card]) -> bool:
        items = list(favorites)[-MAX_FAVORITES:]

        async def encode(cards: list[Card]) -> None:
            await self.store.set(FAVORITES_KEY, self._wrap_compressed(cards))

        return await self._write_collection(FAVORITES_KEY, items, encode)

    async def add_favorite(self, card: Card) -> bool:
        favorites = await self.load_favorites()
        if any(are_cards_equal(card, existing) for existing in favorites):
            return True
        favorites.append(card)
        return await self.save_favorites(favorites)

    async def remove_favorite(self, card: Card) -> bool:
        favorites = await self.load_favorites()
        remaining = [existing for existing in favorites if not are_cards_equal(card, existing)]
        if len(remaining) == len(favorites):
            return False
        return await self.save_favorites(remaining)

    # --- Custom cards ---

    @staticmethod
    def _chunk_layout(stored: Any) -> tuple[int, int]:
        """(generation, chunk count) of a stored custom card index; (0, 0) when not chunked."""
        if isinstance(stored, dict) and stored.get("_chunked") is True:
            try:
                return int(stored.get("generation", 0)), int(stored.get("chunks", 0))
            except (TypeError, ValueError):
                return 0, 0
        return 0, 0

    async def _write_custom_cards(self, cards: list[Card]) -> None:
        """
        Write custom cards, splitting large payloads into chunks.

        New chunks go under a fresh generation and the index is switched
        only once all of them are stored, so a failed write leaves the
        previous cards readable.
        """
        payload = self._wrap_compressed(cards)
        previous_generation, previous_chunks = self._chunk_layout(await self._load_json(CUSTOM_CARDS_KEY))

        if len(payload) <= self.chunk_size:
            await self.store.set(CUSTOM_CARDS_KEY, payload)
        else:
            generation = previous_generation + 1
            pieces = [payload[i : i + self.chunk_size] for i in range(0, len(payload), self.chunk_size)]
            written = 0
            try:
                for index, piece in enumerate(pieces):
                    await self.store.set(chunk_key(generation, index), piece)
                    written += 1
                await self.store.set(
                    CUSTOM_CARDS_KEY,
                    json.dumps(
                        {"_chunked": True, "chunks": len(pieces), "generation": generation, "timestamp": _timestamp()}
                    ),
                )
            except StorageFullError:
                for index in range(written):
                    await self.store.delete(chunk_key(generation, index))
                raise
            logger.info("Custom cards split into %d chunks", len(pieces))

        for index in range(previous_chunks):
            await self.store.delete(chunk_key(previous_generation, index))

    async def load_custom_cards(self) -> list[Card]:
        stored = await self._load_json(CUSTOM_CARDS_KEY)
        if isinstance(stored, dict) and stored.get("_chunked") is True:
            generation, chunks = self._chunk_layout(stored)
            pieces: list[str] = []
            for index in range(chunks):
                piece = await self.store.get(chunk_key(generation, index))
                if piece is None:
                    logger.error("Custom card chunk %d is missing", index)
                    return []
                pieces.append(piece)
            try:
                stored = json.loads("".join(pieces))
            except json.JSONDecodeError as e:
                logger.error("Corrupt custom card chunks: %s", e)
                return []
        return self._unwrap_cards(CUSTOM_CARDS_KEY, stored)

    async def save_custom_cards(self, cards: Sequence[Card]) -> bool:
        items = list(cards)
        if len(items) > MAX_CUSTOM_CARDS:
            logger.info("Custom cards exceed limit (%d/%d), trimming oldest", len(items), MAX_CUSTOM_CARDS)
            items = items[-MAX_CUSTOM_CARDS:]
        return await self._write_collection(CUSTOM_CARDS_KEY, items, self._write_custom_cards)

    async def add_custom_card(self, card: Card) -> bool:
        cards = [existing for existing in await self.load_custom_cards() if existing.id != card.id or not card.id]
        cards.append(card)
        return await self.save_custom_cards(cards)

    async def remove_custom_card(self, card_id: str) -> bool:
        """Returns False when no custom card has this id."""
        cards = await self.load_custom_cards()
        remaining = [card for card in cards if card.id != card_id]
        if len(remaining) == len(cards):
            return False
        return await self.save_custom_cards(remaining)

    # --- Search history ---

    async def load_search_history(self) -> list[str]:
        stored = await self._load_json(SEARCH_HISTORY_KEY)
        if not isinstance(stored, list):
            return []
        return [str(term) for term in stored if isinstance(term, str)]

    async def save_search_history(self, history: Sequence[str]) -> bool:
        items = list(history)[-MAX_SEARCH_HISTORY:]

        async def encode(terms: list[str]) -> None:
            await self.store.set(SEARCH_HISTORY_KEY, json.dumps(terms, ensure_ascii=False))

        return await self._write_collection(SEARCH_HISTORY_KEY, items, encode)

    async def add_search(self, term: str) -> bool:
        """Record a search term as the most recent; repeats move to the end."""
        term = term.strip()
        if not term:
            return False
        history = [existing for existing in await self.load_search_history() if existing != term]
        history.append(term)
        return await self.save_search_history(history)

    # --- Everything ---

    async def clear_all(self) -> None:
        generation, chunks = self._chunk_layout(await self._load_json(CUSTOM_CARDS_KEY))
        for index in range(chunks):
            await self.store.delete(chunk_key(generation, index))
        for key in (WORK_IN_PROGRESS_KEY, FAVORITES_KEY, CUSTOM_CARDS_KEY, SEARCH_HISTORY_KEY):
            await self.store.delete(key)
