# SQLAlchemy models
from .base import Base
from .cards import CardModel, CategoryModel, card_categories

__all__ = [
    "Base",
    "CardModel",
    "CategoryModel",
    "card_categories",
]
