"""
Dependency injection container for CLI commands.

Each command builds a fresh context; services are created lazily so that
`--help` never touches the database.
"""
from __future__ import annotations

import random

from config import get_settings
from flipset.content import ContentExchange
from flipset.db.database import get_session_factory, init_db
from flipset.review import ReviewEngine, SessionStore
from flipset.store import CardStore


class CLIContext:
    """Lazily initialized services shared by the command groups."""

    def __init__(self):
        self.settings = get_settings()
        self._card_store: CardStore | None = None
        self._engine: ReviewEngine | None = None
        self._exchange: ContentExchange | None = None
        self._tables_ready = False

    def _ensure_tables(self) -> None:
        if not self._tables_ready:
            init_db()
            self._tables_ready = True

    @property
    def card_store(self) -> CardStore:
        """Lazy load CardStore."""
        if self._card_store is None:
            self._ensure_tables()
            self._card_store = CardStore(get_session_factory())
        return self._card_store

    @property
    def engine(self) -> ReviewEngine:
        """Lazy load ReviewEngine (session not loaded yet)."""
        if self._engine is None:
            self._engine = ReviewEngine(
                card_store=self.card_store,
                session_store=SessionStore(self.settings.session_file),
                rng=random.Random(self.settings.shuffle_seed),
            )
        return self._engine

    @property
    def exchange(self) -> ContentExchange:
        """Lazy load ContentExchange."""
        if self._exchange is None:
            self._ensure_tables()
            self._exchange = ContentExchange(get_session_factory())
        return self._exchange

    def reconcile_session(self, deleted_card_ids: list[str]) -> None:
        """Drop deleted cards from the active session, if any."""
        if not deleted_card_ids:
            return
        engine = self.engine
        if engine.load() is not None:
            engine.remove_cards_from_session(deleted_card_ids)
