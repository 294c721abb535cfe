"""Score entry model.

One row per player identity (CPF) holding that player's best score.
Rows are soft-deleted by clearing the ranking; cleared rows keep their id
and timestamps but are invisible to reads.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from leaderboard.stores.database import Base


class ScoreEntry(Base):
    """Best score submitted for an identity."""

    __tablename__ = "score_entries"
    # Ids are never handed out twice, even after the highest row is removed.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(Text)
    identity: Mapped[str] = mapped_column("cpf", Text)
    score: Mapped[int] = mapped_column(BigInteger, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"<ScoreEntry {self.identity} {self.name}={self.score}>"


# At most one live row per identity; cleared rows do not count.
Index(
    "uq_score_entries_cpf_active",
    ScoreEntry.identity,
    unique=True,
    postgresql_where=ScoreEntry.deleted_at.is_(None),
    sqlite_where=ScoreEntry.deleted_at.is_(None),
)
