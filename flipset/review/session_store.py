"""
Review session persistence.

A single slot holds the active session so it survives restarts. The slot
is a JSON file (default ~/.flipset/session.json); absence means no session.
Writes go to a temporary sibling that is atomically renamed over the slot,
so a crash mid-write never leaves a truncated session behind.
"""

from __future__ import annotations

import json
import os
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from config import get_settings


class OrderMode(str, Enum):
    RANDOM = "random"
    ORDERED = "ordered"


class SessionRecord(BaseModel):
    """Schema of the persisted slot; JSON keys are camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    id: StrictStr
    original_card_ids: list[StrictStr] = Field(alias="originalCardIds")
    current_round: StrictInt = Field(alias="currentRound", ge=1)
    current_index: StrictInt = Field(alias="currentIndex", ge=0)
    order_mode: OrderMode = Field(alias="orderMode")
    correct_bucket: list[StrictStr] = Field(alias="correctBucket")
    wrong_bucket: list[StrictStr] = Field(alias="wrongBucket")
    current_round_cards: list[StrictStr] = Field(alias="currentRoundCards")
    is_complete: StrictBool = Field(alias="isComplete")
    selected_category_ids: list[StrictStr] = Field(alias="selectedCategoryIds")

    @model_validator(mode="after")
    def _index_within_round(self) -> "SessionRecord":
        if (
            not self.is_complete
            and self.current_round_cards
            and self.current_index >= len(self.current_round_cards)
        ):
            raise ValueError(
                f"currentIndex {self.current_index} is outside a round of "
                f"{len(self.current_round_cards)} card(s)"
            )
        return self


@dataclass
class ReviewSession:
    """
    Serializable review session state.

    Treated as a value: transitions build a new instance instead of
    mutating this one.
    """

    id: str
    original_card_ids: list[str]
    current_round_cards: list[str]
    order_mode: OrderMode
    selected_category_ids: list[str]
    current_round: int = 1
    current_index: int = 0
    correct_bucket: list[str] = field(default_factory=list)
    wrong_bucket: list[str] = field(default_factory=list)
    is_complete: bool = False

    @property
    def current_card_id(self) -> Optional[str]:
        """Card under the pointer, or None when complete or the round is empty."""
        if self.is_complete or not self.current_round_cards:
            return None
        return self.current_round_cards[self.current_index]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        record = SessionRecord.model_validate(asdict(self))
        return record.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewSession":
        """
        Create from a persisted dictionary.

        Raises:
            ValueError: when keys are missing, mistyped, or the index
                points outside the round
        """
        try:
            record = SessionRecord.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid session record: {e}") from e
        return cls(**record.model_dump())


class SessionStore:
    """
    Manages the single persisted session slot.

    Only one session exists per installation; saving replaces whatever
    was stored before.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_settings().session_file
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, session: ReviewSession) -> Path:
        """Persist the session. Errors propagate; the old slot stays intact on failure."""
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, self.path)

        return self.path

    def load(self) -> Optional[ReviewSession]:
        """Load the stored session, or None when the slot is empty or unreadable."""
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ReviewSession.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None

    def clear(self) -> bool:
        """Remove the slot. Returns False when there was nothing to remove."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False


def create_review_session(
    card_ids: list[str],
    round_cards: list[str],
    order_mode: OrderMode,
    category_ids: list[str],
) -> ReviewSession:
    """Create round 1 of a new session."""
    return ReviewSession(
        id=str(uuid.uuid4()),
        original_card_ids=list(card_ids),
        current_round_cards=list(round_cards),
        order_mode=OrderMode(order_mode),
        selected_category_ids=list(category_ids),
    )
