"""SQLAlchemy ORM models.

Models represent database tables:
- score_entries: best score per player identity
"""

from leaderboard.models.score_entry import ScoreEntry

__all__ = ["ScoreEntry"]
