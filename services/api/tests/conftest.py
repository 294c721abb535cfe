"""Shared fixtures: a throwaway SQLite database per test."""

import pytest

from leaderboard.services.ranking import RankingStore
from leaderboard.stores.database import Database


@pytest.fixture
async def db(tmp_path):
    """Fresh database with the schema created."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'ranking.db'}")
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def store(db: Database) -> RankingStore:
    return RankingStore(db)
