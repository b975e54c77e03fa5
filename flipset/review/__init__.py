"""
Review sessions: round-based study with correct/wrong buckets.

Components:
- rounds: pure state transitions (mark, skip, reset, remove)
- engine: ReviewEngine, the single owner of the active session
- session_store: ReviewSession value and its single-slot JSON persistence
- progress: SessionProgress projection for display
"""

from .engine import ReviewEngine
from .progress import SessionProgress, get_progress
from .session_store import OrderMode, ReviewSession, SessionStore, create_review_session

__all__ = [
    "OrderMode",
    "ReviewEngine",
    "ReviewSession",
    "SessionProgress",
    "SessionStore",
    "create_review_session",
    "get_progress",
]
