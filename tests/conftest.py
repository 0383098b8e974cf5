"""
Pytest configuration for the transactions API.

Provides fixtures for:
- an app bound to a fresh in-memory SQLite store
- a Flask test client
- seeding the store directly, bypassing the upstream fetch
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from app import create_app
from models import Transaction


@pytest.fixture
def app():
    app = create_app(database_url="sqlite://", source_url="https://example.test/data.json")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_factory(app):
    return app.extensions["session_factory"]


@pytest.fixture
def this_year() -> int:
    return datetime.now(timezone.utc).year


@pytest.fixture
def seed(session_factory):
    """Insert transactions given as dicts of column values."""

    def _seed(*rows):
        session = session_factory()
        try:
            for row in rows:
                values = {"title": "", "description": "", "price": 0, "category": ""}
                values.update(row)
                session.add(Transaction(**values))
            session.commit()
        finally:
            session.close()

    return _seed


@pytest.fixture
def count_rows(session_factory):
    def _count():
        session = session_factory()
        try:
            return session.query(Transaction).count()
        finally:
            session.close()

    return _count


def upstream_response(payload):
    """Stand-in for requests.get(...) returning `payload` as JSON."""
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def upstream():
    """Patched requests.get used by the ingestor."""
    with patch("ingest.requests.get") as get:
        yield get
