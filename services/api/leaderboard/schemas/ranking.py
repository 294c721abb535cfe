"""Schemas for the ranking resource (/csbc by default).

Wire field names (`name`, `cpf`, `score`) are kept for existing clients.
"""

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt


class ScoreSubmission(BaseModel):
    """Request body for submitting a score.

    Only types are checked here (no coercion of booleans or numeric
    strings); the ranking service owns the value rules.
    """

    name: str
    cpf: str
    score: StrictInt


class SubmitResponse(BaseModel):
    """Response for a score submission."""

    outcome: str
    message: str


class RankingEntry(BaseModel):
    """A single row of the ranking."""

    id: int
    name: str
    cpf: str
    score: int
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True}


class ClearResponse(BaseModel):
    """Response for clearing the ranking."""

    message: str
    removed: int = Field(ge=0)
