"""
Card and category persistence.

The review engine only needs get_cards_by_categories and get_card_by_id;
everything else serves the command line and import/export.
"""

from .card_store import (
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
    Card,
    CardFate,
    CardNotFoundError,
    CardStore,
    Category,
    CategoryExistsError,
    CategoryNotFoundError,
    CategorySummary,
    SortDirection,
    SortField,
    SortOptions,
)

__all__ = [
    "UNCATEGORIZED_ID",
    "UNCATEGORIZED_NAME",
    "Card",
    "CardFate",
    "CardNotFoundError",
    "CardStore",
    "Category",
    "CategoryExistsError",
    "CategoryNotFoundError",
    "CategorySummary",
    "SortDirection",
    "SortField",
    "SortOptions",
]
