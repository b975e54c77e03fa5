"""
Round transitions for review sessions.

Pure functions: each takes a ReviewSession and returns a new one, leaving
the input untouched. Persistence and ownership live in ReviewEngine.

Two buckets drive the rounds. Cards answered correctly go to the correct
bucket for the rest of the session; cards answered wrong go to the wrong
bucket and become the next round. The session completes when a round ends
with an empty wrong bucket.
"""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Optional

from flipset.review.session_store import OrderMode, ReviewSession


def shuffled(card_ids: list[str], rng: random.Random) -> list[str]:
    """Uniform Fisher-Yates shuffle of a copy."""
    ids = list(card_ids)
    rng.shuffle(ids)
    return ids


def round_order(card_ids: list[str], order_mode: OrderMode, rng: random.Random) -> list[str]:
    if order_mode is OrderMode.RANDOM:
        return shuffled(card_ids, rng)
    return list(card_ids)


def next_round(session: ReviewSession, pending: list[str], rng: random.Random) -> ReviewSession:
    """Start the following round with the given cards."""
    return replace(
        session,
        current_round=session.current_round + 1,
        current_index=0,
        wrong_bucket=[],
        current_round_cards=round_order(pending, session.order_mode, rng),
    )


def mark_correct(session: ReviewSession, rng: random.Random) -> ReviewSession:
    card_id = session.current_round_cards[session.current_index]
    correct_bucket = [*session.correct_bucket, card_id]
    new_index = session.current_index + 1

    if new_index < len(session.current_round_cards):
        return replace(session, current_index=new_index, correct_bucket=correct_bucket)

    if not session.wrong_bucket:
        # Index and round cards are left as they are; nothing reads them once complete
        return replace(session, correct_bucket=correct_bucket, is_complete=True)

    return next_round(replace(session, correct_bucket=correct_bucket), session.wrong_bucket, rng)


def mark_wrong(session: ReviewSession, rng: random.Random) -> ReviewSession:
    """
    Queue the current card for the next round.

    A round ending here always rolls over, since the wrong bucket now holds
    at least this card. A session never completes through mark_wrong.
    """
    card_id = session.current_round_cards[session.current_index]
    wrong_bucket = [*session.wrong_bucket, card_id]
    new_index = session.current_index + 1

    if new_index < len(session.current_round_cards):
        return replace(session, current_index=new_index, wrong_bucket=wrong_bucket)

    return next_round(session, wrong_bucket, rng)


def skip_card(session: ReviewSession) -> ReviewSession:
    """Move the current card to the end of the round; the next card slides in."""
    round_cards = list(session.current_round_cards)
    card_id = round_cards.pop(session.current_index)
    round_cards.append(card_id)
    return replace(session, current_round_cards=round_cards)


def reset(session: ReviewSession, rng: random.Random) -> ReviewSession:
    """Back to round 1 with every original card, keeping id and category filter."""
    return replace(
        session,
        current_round=1,
        current_index=0,
        correct_bucket=[],
        wrong_bucket=[],
        current_round_cards=round_order(session.original_card_ids, session.order_mode, rng),
        is_complete=False,
    )


def remove_card(
    session: ReviewSession, card_id: str, rng: random.Random
) -> Optional[ReviewSession]:
    """
    Drop a card from every part of the session.

    Returns:
        The same session object when the card is not part of it, None when
        no cards remain and the session should end, otherwise the updated
        session.
    """
    if card_id not in session.original_card_ids:
        return session

    def without(ids: list[str]) -> list[str]:
        return [cid for cid in ids if cid != card_id]

    original_card_ids = without(session.original_card_ids)
    correct_bucket = without(session.correct_bucket)
    wrong_bucket = without(session.wrong_bucket)
    round_cards = session.current_round_cards
    remaining_round = without(round_cards)

    index = session.current_index
    if card_id in round_cards and round_cards.index(card_id) < index:
        index -= 1

    trimmed = replace(
        session,
        original_card_ids=original_card_ids,
        correct_bucket=correct_bucket,
        wrong_bucket=wrong_bucket,
        current_round_cards=remaining_round,
        current_index=index,
    )

    if index < len(remaining_round):
        # The pointer still lands on a card pending this round
        return trimmed

    # Nothing left to answer this round; close it the way mark_correct does
    if wrong_bucket:
        return next_round(trimmed, wrong_bucket, rng)
    if not original_card_ids:
        return None
    return replace(trimmed, current_index=max(0, len(remaining_round) - 1), is_complete=True)
