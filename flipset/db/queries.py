"""
Centralized SQL Queries for the card store.

Raw SQL used where the ORM would need several round trips. All queries
take named parameters.

Usage:
    from flipset.db.queries import CARDS_OWNED_ONLY_BY_CATEGORY

    rows = session.execute(text(CARDS_OWNED_ONLY_BY_CATEGORY), {"category_id": cid})
"""

from __future__ import annotations

# =============================================================================
# CATEGORY OWNERSHIP
# =============================================================================

# Cards whose only association is the given category
CARDS_OWNED_ONLY_BY_CATEGORY = """
    SELECT c.id
    FROM cards c
    JOIN card_categories cc ON c.id = cc.card_id
    WHERE cc.category_id = :category_id
      AND c.id NOT IN (
          SELECT card_id FROM card_categories WHERE category_id != :category_id
      )
"""

# Re-point every association of one category to another, skipping duplicates
MOVE_CATEGORY_ASSOCIATIONS = """
    INSERT OR IGNORE INTO card_categories (card_id, category_id)
    SELECT card_id, :to_category_id
    FROM card_categories
    WHERE category_id = :from_category_id
"""

DELETE_CATEGORY_ASSOCIATIONS = """
    DELETE FROM card_categories WHERE category_id = :category_id
"""

# =============================================================================
# COUNTS
# =============================================================================

COUNT_CARDS_PER_CATEGORY = """
    SELECT category_id, COUNT(card_id) AS card_count
    FROM card_categories
    GROUP BY category_id
"""

COUNT_UNCATEGORIZED_CARDS = """
    SELECT COUNT(*)
    FROM cards
    WHERE id NOT IN (SELECT DISTINCT card_id FROM card_categories)
"""
