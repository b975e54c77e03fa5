"""
Card and category tables.

Cards and categories are linked many-to-many through card_categories.
Deleting either side cascades to the association rows only; a category
delete never removes cards on its own.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Table, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

card_categories = Table(
    "card_categories",
    Base.metadata,
    Column("card_id", Text, ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "category_id", Text, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    ),
    Index("idx_card_categories_card", "card_id"),
    Index("idx_card_categories_category", "category_id"),
)


class CategoryModel(Base):
    """A user-defined category. The Uncategorized bucket is never stored here."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    cards: Mapped[list[CardModel]] = relationship(
        secondary=card_categories, back_populates="categories", passive_deletes=True
    )


class CardModel(Base):
    """A flashcard. Front and back hold rich-text markup stored verbatim."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    front_content: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    back_content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    categories: Mapped[list[CategoryModel]] = relationship(
        secondary=card_categories, back_populates="cards", passive_deletes=True
    )
