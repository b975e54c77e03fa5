"""
Card/Category Store.

Relational persistence for cards, categories and their many-to-many
associations. Every public method runs in its own transaction and returns
plain dataclass records, so callers never hold live ORM objects.

The Uncategorized category is synthetic: it is never stored, it stands for
"cards with no category", and it is injected first into every listing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger
from sqlalchemy import delete, func, or_, select, text
from sqlalchemy.orm import Session, selectinload, sessionmaker

from flipset.db.database import session_scope
from flipset.db.models import CardModel, CategoryModel, card_categories
from flipset.db.queries import (
    CARDS_OWNED_ONLY_BY_CATEGORY,
    COUNT_CARDS_PER_CATEGORY,
    COUNT_UNCATEGORIZED_CARDS,
    MOVE_CATEGORY_ASSOCIATIONS,
)

UNCATEGORIZED_ID = "__uncategorized__"
UNCATEGORIZED_NAME = "Uncategorized"


class CategoryExistsError(ValueError):
    """Raised when a category name is taken (case-insensitive) or reserved."""


class CategoryNotFoundError(LookupError):
    """Raised when a category id does not exist."""


class CardNotFoundError(LookupError):
    """Raised when a card id does not exist."""


class CardFate(str, Enum):
    """What happens to a category's cards when the category is deleted."""

    MOVE = "move"
    UNCATEGORIZE = "uncategorize"
    DELETE = "delete"


class SortField(str, Enum):
    ALPHABETICAL = "alphabetical"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# =============================================================================
# Records
# =============================================================================


@dataclass
class SortOptions:
    """Card listing order."""

    field: SortField = SortField.ALPHABETICAL
    direction: SortDirection = SortDirection.ASC


@dataclass
class Category:
    id: str
    name: str
    created_at: datetime | None = None  # None for the synthetic category
    updated_at: datetime | None = None

    @property
    def is_uncategorized(self) -> bool:
        return self.id == UNCATEGORIZED_ID


@dataclass
class CategorySummary(Category):
    """A category plus the number of cards in it."""

    card_count: int = 0


@dataclass
class Card:
    id: str
    front_content: str
    back_content: str
    created_at: datetime
    updated_at: datetime
    categories: list[Category] = field(default_factory=list)


def uncategorized_category() -> Category:
    return Category(id=UNCATEGORIZED_ID, name=UNCATEGORIZED_NAME)


def _new_id() -> str:
    return str(uuid.uuid4())


def _category_record(model: CategoryModel) -> Category:
    return Category(
        id=model.id,
        name=model.name,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _card_record(model: CardModel, with_categories: bool = True) -> Card:
    categories = []
    if with_categories:
        categories = [
            _category_record(c) for c in sorted(model.categories, key=lambda c: c.name.lower())
        ]
    return Card(
        id=model.id,
        front_content=model.front_content,
        back_content=model.back_content,
        created_at=model.created_at,
        updated_at=model.updated_at,
        categories=categories,
    )


def _real_category_ids(category_ids: list[str]) -> list[str]:
    """Drop the Uncategorized sentinel and duplicates, keeping order."""
    return list(dict.fromkeys(cid for cid in category_ids if cid != UNCATEGORIZED_ID))


def delete_cards_owned_by(session: Session, category_id: str) -> list[str]:
    """Delete cards whose only category is category_id. Returns their ids."""
    card_ids = [
        row[0]
        for row in session.execute(text(CARDS_OWNED_ONLY_BY_CATEGORY), {"category_id": category_id})
    ]
    if card_ids:
        session.execute(delete(CardModel).where(CardModel.id.in_(card_ids)))
    return card_ids


# =============================================================================
# Store
# =============================================================================


class CardStore:
    """
    SQLAlchemy-backed card and category persistence.

    Handles:
    - Category CRUD with case-insensitive unique names
    - Category deletion with an explicit fate for its cards
    - Card CRUD, search and sorted listing
    - Card lookup by category set for review sessions
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        """
        Initialize the store.

        Args:
            session_factory: Custom session factory (defaults to the configured database)
        """
        self._session_factory = session_factory

    def _scope(self):
        return session_scope(self._session_factory)

    # =========================================================================
    # Categories
    # =========================================================================

    def list_categories(self) -> list[CategorySummary]:
        """All categories by name, with Uncategorized first."""
        with self._scope() as session:
            counts = dict(session.execute(text(COUNT_CARDS_PER_CATEGORY)).all())
            uncategorized_count = session.execute(text(COUNT_UNCATEGORIZED_CARDS)).scalar_one()
            models = session.scalars(
                select(CategoryModel).order_by(func.lower(CategoryModel.name))
            ).all()

            summaries = [
                CategorySummary(
                    id=UNCATEGORIZED_ID,
                    name=UNCATEGORIZED_NAME,
                    card_count=uncategorized_count,
                )
            ]
            for model in models:
                summaries.append(
                    CategorySummary(
                        id=model.id,
                        name=model.name,
                        created_at=model.created_at,
                        updated_at=model.updated_at,
                        card_count=counts.get(model.id, 0),
                    )
                )
            return summaries

    def get_category(self, category_id: str) -> Category | None:
        if category_id == UNCATEGORIZED_ID:
            return uncategorized_category()

        with self._scope() as session:
            model = session.get(CategoryModel, category_id)
            return _category_record(model) if model else None

    def category_name_exists(self, name: str, exclude_id: str | None = None) -> bool:
        """Check a name against existing categories, ignoring case. Reserved names count."""
        normalized = name.strip().lower()
        if normalized == UNCATEGORIZED_NAME.lower():
            return True

        with self._scope() as session:
            return self._name_taken(session, normalized, exclude_id)

    @staticmethod
    def _name_taken(session: Session, normalized: str, exclude_id: str | None = None) -> bool:
        stmt = select(CategoryModel.id).where(func.lower(CategoryModel.name) == normalized)
        if exclude_id:
            stmt = stmt.where(CategoryModel.id != exclude_id)
        return session.execute(stmt.limit(1)).first() is not None

    def _validate_name(self, name: str, exclude_id: str | None = None) -> str:
        trimmed = name.strip()
        if not trimmed:
            raise ValueError("Category name cannot be empty")
        if self.category_name_exists(trimmed, exclude_id=exclude_id):
            raise CategoryExistsError(f"Category already exists: {trimmed}")
        return trimmed

    def create_category(self, name: str) -> Category:
        trimmed = self._validate_name(name)
        now = datetime.now()
        model = CategoryModel(id=_new_id(), name=trimmed, created_at=now, updated_at=now)

        with self._scope() as session:
            session.add(model)

        logger.debug(f"Created category {model.id} ({trimmed})")
        return _category_record(model)

    def rename_category(self, category_id: str, name: str) -> Category:
        if category_id == UNCATEGORIZED_ID:
            raise ValueError("The Uncategorized category cannot be renamed")
        trimmed = self._validate_name(name, exclude_id=category_id)

        with self._scope() as session:
            model = session.get(CategoryModel, category_id)
            if model is None:
                raise CategoryNotFoundError(category_id)
            model.name = trimmed
            model.updated_at = datetime.now()
            session.flush()
            return _category_record(model)

    def delete_category(
        self,
        category_id: str,
        fate: CardFate,
        target_category_id: str | None = None,
    ) -> list[str]:
        """
        Delete a category after resolving what happens to its cards.

        Args:
            category_id: Category to delete
            fate: MOVE (to target_category_id), UNCATEGORIZE, or DELETE
            target_category_id: Destination for MOVE; the Uncategorized
                sentinel behaves like UNCATEGORIZE

        Returns:
            Ids of cards deleted along with the category (only for DELETE).
            Cards shared with another category are never deleted.
        """
        if category_id == UNCATEGORIZED_ID:
            raise ValueError("The Uncategorized category cannot be deleted")

        fate = CardFate(fate)
        if fate is CardFate.MOVE:
            if target_category_id is None:
                raise ValueError("Moving cards requires a target category")
            if target_category_id == UNCATEGORIZED_ID:
                fate = CardFate.UNCATEGORIZE
            elif target_category_id == category_id:
                raise ValueError("Cannot move cards into the category being deleted")

        deleted_cards: list[str] = []
        with self._scope() as session:
            if session.get(CategoryModel, category_id) is None:
                raise CategoryNotFoundError(category_id)

            if fate is CardFate.MOVE:
                if session.get(CategoryModel, target_category_id) is None:
                    raise CategoryNotFoundError(target_category_id)
                session.execute(
                    text(MOVE_CATEGORY_ASSOCIATIONS),
                    {"from_category_id": category_id, "to_category_id": target_category_id},
                )
            elif fate is CardFate.DELETE:
                deleted_cards = delete_cards_owned_by(session, category_id)

            # Remaining associations go with the category (ON DELETE CASCADE)
            session.execute(delete(CategoryModel).where(CategoryModel.id == category_id))

        logger.info(
            f"Deleted category {category_id} (cards: {fate.value}, "
            f"{len(deleted_cards)} card(s) deleted)"
        )
        return deleted_cards

    # =========================================================================
    # Cards
    # =========================================================================

    def list_cards(
        self,
        sort: SortOptions | None = None,
        search: str | None = None,
    ) -> list[Card]:
        """
        List cards with their categories.

        Args:
            sort: Field and direction (defaults to alphabetical ascending)
            search: Case-insensitive substring matched against front and back
        """
        sort = sort or SortOptions()
        column = {
            SortField.ALPHABETICAL: func.lower(CardModel.front_content),
            SortField.CREATED_AT: CardModel.created_at,
            SortField.UPDATED_AT: CardModel.updated_at,
        }[SortField(sort.field)]
        order = column.desc() if SortDirection(sort.direction) is SortDirection.DESC else column.asc()

        stmt = select(CardModel).options(selectinload(CardModel.categories)).order_by(order)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(CardModel.front_content.ilike(pattern), CardModel.back_content.ilike(pattern))
            )

        with self._scope() as session:
            return [_card_record(model) for model in session.scalars(stmt).all()]

    def get_card_by_id(self, card_id: str) -> Card | None:
        with self._scope() as session:
            model = session.get(CardModel, card_id, options=[selectinload(CardModel.categories)])
            return _card_record(model) if model else None

    def get_cards_by_categories(self, category_ids: list[str]) -> list[Card]:
        """
        Union of the cards in the given categories, without duplicates.

        The Uncategorized sentinel contributes every card that has no
        category. Order is alphabetical by front, then creation time.
        """
        real_ids = _real_category_ids(category_ids)
        conditions = []
        if real_ids:
            conditions.append(
                CardModel.id.in_(
                    select(card_categories.c.card_id).where(
                        card_categories.c.category_id.in_(real_ids)
                    )
                )
            )
        if UNCATEGORIZED_ID in category_ids:
            conditions.append(CardModel.id.not_in(select(card_categories.c.card_id)))
        if not conditions:
            return []

        stmt = (
            select(CardModel)
            .where(or_(*conditions))
            .order_by(func.lower(CardModel.front_content), CardModel.created_at, CardModel.id)
        )
        with self._scope() as session:
            return [_card_record(model, with_categories=False) for model in session.scalars(stmt)]

    @staticmethod
    def _load_categories(session: Session, category_ids: list[str]) -> list[CategoryModel]:
        real_ids = _real_category_ids(category_ids)
        if not real_ids:
            return []
        models = session.scalars(select(CategoryModel).where(CategoryModel.id.in_(real_ids))).all()
        missing = set(real_ids) - {m.id for m in models}
        if missing:
            raise CategoryNotFoundError(", ".join(sorted(missing)))
        return list(models)

    def create_card(
        self, front_content: str, back_content: str, category_ids: list[str] | None = None
    ) -> Card:
        now = datetime.now()
        with self._scope() as session:
            model = CardModel(
                id=_new_id(),
                front_content=front_content,
                back_content=back_content,
                created_at=now,
                updated_at=now,
            )
            model.categories = self._load_categories(session, category_ids or [])
            session.add(model)
            session.flush()
            logger.debug(f"Created card {model.id} in {len(model.categories)} category(ies)")
            return _card_record(model)

    def update_card(
        self,
        card_id: str,
        front_content: str,
        back_content: str,
        category_ids: list[str] | None = None,
    ) -> Card:
        """Replace a card's content and its category set."""
        with self._scope() as session:
            model = session.get(CardModel, card_id)
            if model is None:
                raise CardNotFoundError(card_id)
            model.front_content = front_content
            model.back_content = back_content
            model.updated_at = datetime.now()
            model.categories = self._load_categories(session, category_ids or [])
            session.flush()
            return _card_record(model)

    def delete_card(self, card_id: str) -> bool:
        """Delete a card. Returns False when it did not exist."""
        with self._scope() as session:
            result = session.execute(delete(CardModel).where(CardModel.id == card_id))
            deleted = result.rowcount > 0

        if deleted:
            logger.debug(f"Deleted card {card_id}")
        return deleted
