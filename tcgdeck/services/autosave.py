"""
Debounced autosave of the working deck.

Every schedule() call restarts the countdown; only the deck passed last is
written, and it is written as it is when the countdown fires.

Once a countdown has fired its write is never cancelled. Writes run one at
a time, so a deck scheduled during a write is saved after it.
"""

import asyncio
import logging

from tcgdeck.config import settings
from tcgdeck.models.deck import Deck
from tcgdeck.services.storage import DeckStorage

logger = logging.getLogger(__name__)


class AutosaveScheduler:
    """Debounces work-in-progress writes on the running event loop."""

    def __init__(self, storage: DeckStorage, delay: float | None = None) -> None:
        self.storage = storage
        self.delay = settings.autosave_delay if delay is None else delay
        self.pending: Deck | None = None
        self.timer_task: asyncio.Task[bool] | None = None
        self.write_task: asyncio.Task[bool] | None = None
        self.write_lock = asyncio.Lock()
        self.saves = 0

    @property
    def is_pending(self) -> bool:
        return any(task is not None and not task.done() for task in (self.timer_task, self.write_task))

    def schedule(self, deck: Deck) -> None:
        """Queue a save of `deck`, replacing any save not yet written."""
        self.pending = deck
        self.cancel_timer()
        self.timer_task = asyncio.create_task(self._save_after_delay())

    async def _save_after_delay(self) -> bool:
        await asyncio.sleep(self.delay)
        # Countdown over: from here on this task is a write, not a timer
        self.write_task, self.timer_task = asyncio.current_task(), None
        return await self._write()

    async def _write(self) -> bool:
        async with self.write_lock:
            deck = self.pending
            if deck is None:
                return True
            saved = await self.storage.save_work_in_progress(deck)
            if self.pending is deck:
                self.pending = None
        if saved:
            self.saves += 1
            logger.debug("Autosaved deck with %d cards", deck.total_cards())
        else:
            logger.error("Autosave failed; deck kept in memory only")
        return saved

    async def flush(self) -> bool:
        """Write the pending deck now. Returns False if the write failed."""
        self.cancel_timer()
        saved = True
        if self.write_task is not None and not self.write_task.done():
            saved = await self.write_task
        if self.pending is not None:
            saved = await self._write()
        return saved

    def cancel_timer(self) -> None:
        """Stop a countdown that has not fired yet. A write already started keeps running."""
        if self.timer_task and not self.timer_task.done():
            self.timer_task.cancel()
        self.timer_task = None

    def cancel(self) -> None:
        """Drop the pending save without writing it."""
        self.cancel_timer()
        self.pending = None
