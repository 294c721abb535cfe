"""Ranking endpoints.

POST   /csbc - submit a score (keeps the best score per CPF)
GET    /csbc - ranking, best score first
DELETE /csbc - clear the ranking

Routers are thin: decode the payload, call the ranking service, encode the
result. Service errors are mapped to responses by the app's exception
handlers.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from leaderboard.schemas import ClearResponse, RankingEntry, ScoreSubmission, SubmitResponse
from leaderboard.services.ranking import RankingStore, SubmitOutcome

router = APIRouter()

_OUTCOME_MESSAGES = {
    SubmitOutcome.CREATED: "Score created",
    SubmitOutcome.UPDATED: "Score updated",
    SubmitOutcome.UNCHANGED: "Score is not higher than the stored one. Nothing changed.",
}


def get_ranking_store(request: Request) -> RankingStore:
    """Ranking service attached to the app at startup."""
    store = getattr(request.app.state, "ranking_store", None)
    if store is None:
        raise RuntimeError("Ranking store not initialized.")
    return store


@router.post(
    "",
    response_model=SubmitResponse,
    status_code=201,
    responses={200: {"model": SubmitResponse, "description": "Existing entry updated or unchanged"}},
)
async def submit_score(
    payload: ScoreSubmission,
    store: RankingStore = Depends(get_ranking_store),
) -> JSONResponse:
    """Submit a score. 201 when the CPF is new, 200 otherwise."""
    outcome = await store.submit(name=payload.name, identity=payload.cpf, score=payload.score)
    body = SubmitResponse(outcome=outcome.value, message=_OUTCOME_MESSAGES[outcome])
    status_code = 201 if outcome is SubmitOutcome.CREATED else 200
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.get("", response_model=list[RankingEntry])
async def get_ranking(store: RankingStore = Depends(get_ranking_store)) -> list[RankingEntry]:
    """Return the ranking sorted by score (desc), ties by first submission."""
    records = await store.list()
    return [
        RankingEntry(
            id=r.id,
            name=r.name,
            cpf=r.identity,
            score=r.score,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )
        for r in records
    ]


@router.delete("", response_model=ClearResponse)
async def clear_ranking(store: RankingStore = Depends(get_ranking_store)) -> ClearResponse:
    """Remove every entry from the ranking."""
    removed = await store.clear()
    return ClearResponse(message="Ranking cleared", removed=removed)
