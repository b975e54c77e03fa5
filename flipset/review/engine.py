"""
Review Engine: single owner of the active review session.

Wires the pure round transitions to the card store and the session slot.
Every mutation persists the new state first and only then replaces the
in-memory session, so a failed write leaves memory and disk in agreement.

State machine:
    no-session --start--> in-progress
    in-progress --mark/skip/remove--> in-progress | complete
    complete --reset--> in-progress
    any --end--> no-session (also: removing the last remaining card)
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from typing import Optional

from loguru import logger

from flipset.review import rounds
from flipset.review.progress import SessionProgress, get_progress
from flipset.review.session_store import (
    OrderMode,
    ReviewSession,
    SessionStore,
    create_review_session,
)
from flipset.store.card_store import Card, CardStore


class ReviewEngine:
    """
    Drives a review session through its rounds.

    Callers must funnel all mutations through one engine instance; the
    engine does no locking of its own.
    """

    def __init__(
        self,
        card_store: CardStore,
        session_store: SessionStore,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            card_store: Source of cards for new sessions and card lookups
            session_store: Single persisted session slot
            rng: Shuffle source; pass a seeded Random for reproducible order
        """
        self.card_store = card_store
        self.session_store = session_store
        self.rng = rng or random.Random()
        self._session: Optional[ReviewSession] = None
        self._current_card: Optional[Card] = None

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def session(self) -> Optional[ReviewSession]:
        return self._session

    @property
    def has_active_session(self) -> bool:
        return self._session is not None and not self._session.is_complete

    @property
    def current_card_id(self) -> Optional[str]:
        return self._session.current_card_id if self._session else None

    @property
    def current_card(self) -> Optional[Card]:
        """The card under the pointer, fetched from the store when it changes."""
        card_id = self.current_card_id
        if card_id is None:
            return None
        if self._current_card is None or self._current_card.id != card_id:
            return self.refresh_current_card()
        return self._current_card

    def get_progress(self) -> Optional[SessionProgress]:
        return get_progress(self._session)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load(self) -> Optional[ReviewSession]:
        """Restore the persisted session (call once at startup)."""
        self._session = self.session_store.load()
        self._current_card = None
        if self._session:
            logger.debug(
                f"Resumed session {self._session.id} at round {self._session.current_round}"
            )
        return self._session

    def _commit(self, session: ReviewSession) -> ReviewSession:
        self.session_store.save(session)
        self._session = session
        return session

    def start_session(
        self,
        category_ids: Iterable[str],
        order_mode: OrderMode | str = OrderMode.RANDOM,
    ) -> Optional[ReviewSession]:
        """
        Start a new session over the cards of the given categories.

        Replaces any existing session. Returns None, persisting nothing,
        when the categories hold no cards.
        """
        category_ids = list(dict.fromkeys(category_ids))
        if not category_ids:
            raise ValueError("At least one category is required to start a session")
        order_mode = OrderMode(order_mode)

        cards = self.card_store.get_cards_by_categories(category_ids)
        if not cards:
            logger.info(f"No cards in categories {category_ids}; session not started")
            return None

        card_ids = [card.id for card in cards]
        session = create_review_session(
            card_ids,
            rounds.round_order(card_ids, order_mode, self.rng),
            order_mode,
            category_ids,
        )
        self._commit(session)
        self._current_card = None

        logger.info(f"Started session {session.id}: {len(card_ids)} card(s), {order_mode.value}")
        return session

    def end_session(self) -> None:
        """Clear the slot; no session exists afterwards."""
        self.session_store.clear()
        if self._session:
            logger.info(f"Ended session {self._session.id}")
        self._session = None
        self._current_card = None

    # =========================================================================
    # Answers
    # =========================================================================

    def _answerable(self) -> Optional[ReviewSession]:
        session = self._session
        if session is None or session.current_card_id is None:
            return None
        return session

    def _advance(self, before: ReviewSession, after: ReviewSession) -> ReviewSession:
        self._commit(after)
        if after.is_complete and not before.is_complete:
            logger.info(
                f"Session {after.id} complete after {after.current_round} round(s)"
            )
        elif after.current_round > before.current_round:
            logger.info(
                f"Round {after.current_round} started with "
                f"{len(after.current_round_cards)} card(s)"
            )
        return after

    def mark_correct(self) -> Optional[ReviewSession]:
        """Answer the current card correctly. No-op without an unanswered card."""
        session = self._answerable()
        if session is None:
            return self._session
        return self._advance(session, rounds.mark_correct(session, self.rng))

    def mark_wrong(self) -> Optional[ReviewSession]:
        """Answer the current card wrong; it returns next round."""
        session = self._answerable()
        if session is None:
            return self._session
        return self._advance(session, rounds.mark_wrong(session, self.rng))

    def skip_card(self) -> Optional[ReviewSession]:
        """Ask the current card again later in this round."""
        session = self._answerable()
        if session is None:
            return self._session
        return self._commit(rounds.skip_card(session))

    def reset_session(self) -> Optional[ReviewSession]:
        """Restart from round 1 with all original cards."""
        if self._session is None:
            return None
        session = self._commit(rounds.reset(self._session, self.rng))
        logger.info(f"Reset session {session.id}")
        return session

    # =========================================================================
    # Reconciliation with the card store
    # =========================================================================

    def remove_card_from_session(self, card_id: str) -> Optional[ReviewSession]:
        """
        Forget a card that was deleted from the store.

        Call only after the store deletion has completed. Unknown card ids
        are ignored. Removing the last remaining card ends the session.
        """
        session = self._session
        if session is None:
            return None

        updated = rounds.remove_card(session, card_id, self.rng)
        if updated is session:
            return session
        if updated is None:
            logger.info(f"Last card {card_id} removed; ending session {session.id}")
            self.end_session()
            return None

        self._commit(updated)
        logger.debug(f"Removed card {card_id} from session {session.id}")
        return updated

    def remove_cards_from_session(self, card_ids: Iterable[str]) -> Optional[ReviewSession]:
        """Apply remove_card_from_session for each id (e.g. after a category delete)."""
        for card_id in card_ids:
            self.remove_card_from_session(card_id)
        return self._session

    def delete_card(self, card_id: str) -> bool:
        """Delete a card from the store, then from the session."""
        deleted = self.card_store.delete_card(card_id)
        self.remove_card_from_session(card_id)
        return deleted

    def delete_current_card(self) -> bool:
        card_id = self.current_card_id
        if card_id is None:
            return False
        return self.delete_card(card_id)

    def refresh_current_card(self) -> Optional[Card]:
        """Re-read the current card from the store without touching progress."""
        card_id = self.current_card_id
        self._current_card = self.card_store.get_card_by_id(card_id) if card_id else None
        return self._current_card
