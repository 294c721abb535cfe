"""Ranking service: best-score-per-identity leaderboard.

Merge policy (Submit):
1. Validate input before touching storage
2. Look up the live entry for the identity
3. Absent -> insert (CREATED)
4. Present with a lower score -> raise score, refresh name (UPDATED)
5. Present with an equal or higher score -> no write (UNCHANGED)

Ordering (List):
- score DESC, then id ASC (earlier submitter wins ties)

Concurrency:
- The partial unique index on live identities arbitrates racing inserts.
  The losing insert is rolled back and the merge is retried, which then
  takes the update path.
- Updates are conditional on the stored score being lower, so concurrent
  raises can never lower a score.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leaderboard.models import ScoreEntry
from leaderboard.stores.database import Database

logger = logging.getLogger("uvicorn.error")

# Largest value a BIGINT score column holds.
MAX_SCORE = 2**63 - 1


class SubmitOutcome(Enum):
    """Result of a submit call."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ScoreRecord:
    """Live ranking entry as seen by callers."""

    id: int
    name: str
    identity: str
    score: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RankingError(RuntimeError):
    """Base class for ranking service failures."""


class ValidationError(RankingError):
    """Submitted data violates a precondition."""


class ConflictError(RankingError):
    """Identity uniqueness race was not resolved within the retry budget."""


class StorageError(RankingError):
    """The database is unavailable or returned an unexpected fault."""


class ClearDisabledError(RankingError):
    """Clearing the ranking is turned off by configuration."""


def validate_submission(name: object, identity: object, score: object) -> None:
    """Reject submissions that can never be stored.

    Raises:
        ValidationError: On empty name/identity, or a score that is not an
            integer in [0, MAX_SCORE].
    """
    if not isinstance(name, str) or not name:
        raise ValidationError("name must be a non-empty string")
    if not isinstance(identity, str) or not identity:
        raise ValidationError("cpf must be a non-empty string")
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError("score must be an integer")
    if score < 0:
        raise ValidationError("score must be >= 0")
    if score > MAX_SCORE:
        raise ValidationError(f"score must be <= {MAX_SCORE}")


def _to_record(entry: ScoreEntry) -> ScoreRecord:
    return ScoreRecord(
        id=entry.id,
        name=entry.name,
        identity=entry.identity,
        score=entry.score,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


class RankingStore:
    """Leaderboard operations over a `Database` handle."""

    def __init__(
        self,
        db: Database,
        *,
        clear_enabled: bool = True,
        conflict_retries: int = 1,
    ) -> None:
        self.db = db
        self.clear_enabled = clear_enabled
        self.conflict_retries = max(0, int(conflict_retries))

    async def submit(self, name: str, identity: str, score: int) -> SubmitOutcome:
        """Insert or raise the best score for an identity.

        Args:
            name: Display name (replaces the stored one on UPDATED).
            identity: Unique player key (CPF).
            score: Non-negative integer score.

        Returns:
            CREATED, UPDATED or UNCHANGED.

        Raises:
            ValidationError: Input rejected; storage untouched.
            ConflictError: Lost the uniqueness race on every attempt.
            StorageError: Database fault; the transaction was rolled back.
        """
        validate_submission(name, identity, score)

        attempt = 0
        while True:
            try:
                outcome = await self._merge(name=name, identity=identity, score=score)
            except IntegrityError as e:
                if attempt >= self.conflict_retries:
                    logger.warning(
                        "[ranking] conflict unresolved cpf=%s attempts=%s", identity, attempt + 1
                    )
                    raise ConflictError(f"Concurrent submit for cpf {identity}, retry") from e
                attempt += 1
                logger.warning(
                    "[ranking] lost insert race cpf=%s, retrying as update (attempt %s)",
                    identity,
                    attempt,
                )
                continue
            except (SQLAlchemyError, OSError) as e:
                logger.exception("[ranking] submit failed cpf=%s", identity)
                raise StorageError("Failed to save score") from e

            if outcome is not SubmitOutcome.UNCHANGED:
                logger.info(f"[ranking] {outcome.value} cpf={identity} score={score}")
            return outcome

    async def list(self) -> list[ScoreRecord]:
        """Return every live entry, best score first.

        Raises:
            StorageError: Database fault.
        """
        query = (
            select(ScoreEntry)
            .where(ScoreEntry.deleted_at.is_(None))
            .order_by(ScoreEntry.score.desc(), ScoreEntry.id.asc())
        )
        try:
            async with self.db.session() as session:
                result = await session.execute(query)
                return [_to_record(entry) for entry in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            logger.exception("[ranking] list failed")
            raise StorageError("Failed to load ranking") from e

    async def clear(self) -> int:
        """Soft-delete every live entry in one statement.

        Returns:
            Number of entries removed (0 when already empty).

        Raises:
            ClearDisabledError: Clearing is turned off.
            StorageError: Database fault; nothing was removed.
        """
        if not self.clear_enabled:
            raise ClearDisabledError("Clearing the ranking is disabled")

        stmt = (
            update(ScoreEntry)
            .where(ScoreEntry.deleted_at.is_(None))
            .values(deleted_at=func.now())
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.db.session() as session:
                result = await session.execute(stmt)
                removed = result.rowcount or 0
        except (SQLAlchemyError, OSError) as e:
            logger.exception("[ranking] clear failed")
            raise StorageError("Failed to clear ranking") from e

        logger.info(f"[ranking] cleared entries={removed}")
        return removed

    async def _find_active(self, session: AsyncSession, identity: str) -> ScoreEntry | None:
        result = await session.execute(
            select(ScoreEntry)
            .where(ScoreEntry.identity == identity)
            .where(ScoreEntry.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def _merge(self, *, name: str, identity: str, score: int) -> SubmitOutcome:
        """One lookup plus at most one write, in a single transaction."""
        async with self.db.session() as session:
            existing = await self._find_active(session, identity)

            if existing is None:
                session.add(ScoreEntry(name=name, identity=identity, score=score))
                await session.flush()
                return SubmitOutcome.CREATED

            if score <= existing.score:
                return SubmitOutcome.UNCHANGED

            result = await session.execute(
                update(ScoreEntry)
                .where(ScoreEntry.id == existing.id)
                .where(ScoreEntry.deleted_at.is_(None))
                .where(ScoreEntry.score < score)
                .values(name=name, score=score, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            # A concurrent raise or clear got there first.
            if not result.rowcount:
                return SubmitOutcome.UNCHANGED
            return SubmitOutcome.UPDATED
