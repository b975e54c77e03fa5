"""Display-ready progress metrics derived from a review session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flipset.review.session_store import ReviewSession


@dataclass(frozen=True)
class SessionProgress:
    round: int
    current_position: int  # 1-based position within the round
    total_in_round: int
    total_cards: int
    correct_count: int
    remaining_in_session: int

    @property
    def fraction(self) -> float:
        """Share of the session's cards answered correctly (0.0 - 1.0)."""
        if self.total_cards == 0:
            return 0.0
        return self.correct_count / self.total_cards


def get_progress(session: Optional[ReviewSession]) -> Optional[SessionProgress]:
    if session is None:
        return None

    total_cards = len(session.original_card_ids)
    correct_count = len(session.correct_bucket)
    return SessionProgress(
        round=session.current_round,
        current_position=session.current_index + 1,
        total_in_round=len(session.current_round_cards),
        total_cards=total_cards,
        correct_count=correct_count,
        remaining_in_session=total_cards - correct_count,
    )
