"""
Pytest configuration and shared fixtures for the Sentiflow tests.

This module provides:
- A scripted stand-in for the Workers AI client (see fakes.py)
- An in-memory SQLite database and session
"""

import pytest
import pytest_asyncio

from fakes import FakeClassifier
from sentiflow.db.session import Database


@pytest.fixture
def fake_classifier():
    return FakeClassifier()


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite://")
    await db.ensure_ready()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session
