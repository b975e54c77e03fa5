"""
Flipset: flashcard study with round-based review sessions.

Packages:
- db: SQLAlchemy engine, session scope and ORM models
- store: card/category persistence (CardStore)
- content: JSON import/export
- review: review session engine, persistence and progress
- cli: typer command line
"""

__version__ = "1.0.0"
