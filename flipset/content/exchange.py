"""
Content exchange - JSON export and import of cards and categories.

Export format (version 1):
    {
      "version": 1,
      "exported_at": "2024-01-01T00:00:00+00:00",
      "categories": [{"id": "...", "name": "..."}],
      "cards": [{"id": "...", "front_content": "...", "back_content": "...",
                 "category_ids": ["..."]}]
    }

Imports are validated in full before the database is touched. Imported
cards and new categories always get fresh ids. A category whose name
already exists (ignoring case) is a conflict, resolved per name:
- merge: imported cards join the existing category, its cards stay
- overwrite: cards owned only by the existing category are deleted first
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Union

from loguru import logger
from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr, ValidationError, field_validator
from sqlalchemy import func, select, text
from sqlalchemy.orm import Session, selectinload, sessionmaker

from flipset.db.database import session_scope
from flipset.db.models import CardModel, CategoryModel
from flipset.db.queries import DELETE_CATEGORY_ASSOCIATIONS
from flipset.store.card_store import UNCATEGORIZED_NAME, delete_cards_owned_by

EXPORT_VERSION = 1


class ImportValidationError(ValueError):
    """Raised when an import file is not valid JSON or lacks required fields."""


class ConflictResolution(str, Enum):
    MERGE = "merge"
    OVERWRITE = "overwrite"


# ========================================
# File Models
# ========================================


class ExportedCategory(BaseModel):
    id: StrictStr
    name: StrictStr

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("category name cannot be blank")
        return value


class ExportedCard(BaseModel):
    id: StrictStr
    front_content: StrictStr
    back_content: StrictStr
    category_ids: list[StrictStr]


class ExportData(BaseModel):
    version: Union[StrictInt, StrictFloat]
    exported_at: StrictStr | None = None
    categories: list[ExportedCategory]
    cards: list[ExportedCard]


@dataclass
class ImportResult:
    """Result of an import operation."""

    cards_imported: int = 0
    categories_imported: int = 0
    cards_deleted: list[str] = field(default_factory=list)  # removed by overwrite


# ========================================
# Parsing
# ========================================


def parse_export(raw: str | bytes | Mapping) -> ExportData:
    """
    Parse and validate an export document.

    Raises:
        ImportValidationError: on malformed JSON or missing/mistyped fields
    """
    try:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except json.JSONDecodeError as e:
        raise ImportValidationError(f"Not valid JSON: {e}") from e

    if not isinstance(payload, Mapping):
        raise ImportValidationError("Export file must contain a JSON object")

    try:
        return ExportData.model_validate(payload)
    except ValidationError as e:
        raise ImportValidationError(f"Not a valid export file: {e}") from e


def read_export(path: Path | str) -> ExportData:
    """Read and validate an export file."""
    return parse_export(Path(path).read_text(encoding="utf-8"))


def write_export(data: ExportData, path: Path | str) -> Path:
    path = Path(path)
    path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Exported {len(data.cards)} card(s) to {path}")
    return path


# ========================================
# Exchange
# ========================================


class ContentExchange:
    """Moves cards and categories between the store and export documents."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def export_data(self) -> ExportData:
        with session_scope(self._session_factory) as session:
            categories = session.scalars(
                select(CategoryModel).order_by(func.lower(CategoryModel.name))
            ).all()
            cards = session.scalars(
                select(CardModel)
                .options(selectinload(CardModel.categories))
                .order_by(CardModel.created_at, CardModel.id)
            ).all()

            return ExportData(
                version=EXPORT_VERSION,
                exported_at=datetime.now(timezone.utc).isoformat(),
                categories=[ExportedCategory(id=c.id, name=c.name) for c in categories],
                cards=[
                    ExportedCard(
                        id=card.id,
                        front_content=card.front_content,
                        back_content=card.back_content,
                        category_ids=[c.id for c in card.categories],
                    )
                    for card in cards
                ],
            )

    @staticmethod
    def _find_existing(session: Session, name: str) -> CategoryModel | None:
        return session.scalars(
            select(CategoryModel).where(func.lower(CategoryModel.name) == name.strip().lower())
        ).first()

    def find_import_conflicts(self, data: ExportData) -> list[str]:
        """Names of imported categories that already exist (case-insensitive)."""
        with session_scope(self._session_factory) as session:
            return [
                category.name
                for category in data.categories
                if self._find_existing(session, category.name) is not None
            ]

    def import_data(
        self,
        data: ExportData,
        resolutions: Mapping[str, ConflictResolution | str] | None = None,
    ) -> ImportResult:
        """
        Import validated export data in a single transaction.

        Args:
            data: Parsed export (see parse_export)
            resolutions: Conflict resolution per category name; names are
                matched ignoring case and unlisted conflicts merge

        Returns:
            ImportResult with counts and the ids of cards removed by overwrite
        """
        by_name = {
            name.strip().lower(): ConflictResolution(value)
            for name, value in (resolutions or {}).items()
        }
        result = ImportResult()
        now = datetime.now()

        with session_scope(self._session_factory) as session:
            category_map: dict[str, CategoryModel] = {}

            for category in data.categories:
                if category.name.strip().lower() == UNCATEGORIZED_NAME.lower():
                    # Reserved; its cards simply stay uncategorized
                    continue

                existing = self._find_existing(session, category.name)
                if existing is not None:
                    resolution = by_name.get(category.name.strip().lower(), ConflictResolution.MERGE)
                    if resolution is ConflictResolution.OVERWRITE:
                        result.cards_deleted.extend(delete_cards_owned_by(session, existing.id))
                        session.execute(
                            text(DELETE_CATEGORY_ASSOCIATIONS), {"category_id": existing.id}
                        )
                        session.expire(existing)
                    category_map[category.id] = existing
                    continue

                model = CategoryModel(
                    id=str(uuid.uuid4()),
                    name=category.name.strip(),
                    created_at=now,
                    updated_at=now,
                )
                session.add(model)
                session.flush()
                category_map[category.id] = model
                result.categories_imported += 1

            for card in data.cards:
                targets = {
                    category_map[cid].id: category_map[cid]
                    for cid in card.category_ids
                    if cid in category_map
                }
                session.add(
                    CardModel(
                        id=str(uuid.uuid4()),
                        front_content=card.front_content,
                        back_content=card.back_content,
                        created_at=now,
                        updated_at=now,
                        categories=list(targets.values()),
                    )
                )
                result.cards_imported += 1

        logger.info(
            f"Imported {result.cards_imported} card(s), {result.categories_imported} new "
            f"category(ies); overwrite removed {len(result.cards_deleted)} card(s)"
        )
        return result
