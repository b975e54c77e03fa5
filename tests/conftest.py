"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Every test gets its own SQLite file and session slot under tmp_path.
"""
import random
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from flipset.db.database import create_db_engine, init_db, make_session_factory  # noqa: E402
from flipset.review import ReviewEngine, SessionStore  # noqa: E402
from flipset.store import Card, CardStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (temporary SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture
def db_engine(tmp_path):
    """Fresh SQLite database with all tables."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'flipset-test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def card_store(session_factory):
    return CardStore(session_factory)


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(tmp_path / "session.json")


def make_card(card_id: str) -> Card:
    now = datetime(2024, 1, 1)
    return Card(
        id=card_id,
        front_content=f"front {card_id}",
        back_content=f"back {card_id}",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def fake_card_store():
    """Mock card store serving cards A, B and C."""
    cards = {cid: make_card(cid) for cid in ("A", "B", "C")}
    store = Mock(spec=CardStore)
    store.get_cards_by_categories.side_effect = lambda ids: list(cards.values())
    store.get_card_by_id.side_effect = lambda cid: cards.get(cid)
    store.delete_card.side_effect = lambda cid: cards.pop(cid, None) is not None
    store.cards = cards
    return store


@pytest.fixture
def review_engine(fake_card_store, session_store):
    """Engine over the mock store with a seeded shuffle source."""
    return ReviewEngine(fake_card_store, session_store, rng=random.Random(42))
