"""API routes."""

from fastapi import APIRouter

from leaderboard.routes import ranking


def build_api_router(ranking_path: str = "/csbc") -> APIRouter:
    """Assemble API routers under their configured prefixes."""
    api_router = APIRouter()

    # Ranking resource (path kept configurable for existing clients)
    api_router.include_router(ranking.router, prefix=ranking_path, tags=["ranking"])

    return api_router
