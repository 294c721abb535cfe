"""Pydantic schemas for API request/response validation."""

from leaderboard.schemas.common import ErrorDetail, ErrorResponse
from leaderboard.schemas.ranking import (
    ClearResponse,
    RankingEntry,
    ScoreSubmission,
    SubmitResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "ClearResponse",
    "RankingEntry",
    "ScoreSubmission",
    "SubmitResponse",
]
