"""Tests for the ranking merge policy, ordering and clear."""

import asyncio

import pytest

from leaderboard.services.ranking import (
    MAX_SCORE,
    ClearDisabledError,
    ConflictError,
    RankingStore,
    StorageError,
    SubmitOutcome,
    ValidationError,
)
from leaderboard.stores.database import Database


@pytest.mark.asyncio
async def test_submit_new_identity_creates_entry(store: RankingStore) -> None:
    outcome = await store.submit(name="Ann", identity="111", score=50)
    assert outcome is SubmitOutcome.CREATED

    records = await store.list()
    assert [(r.name, r.identity, r.score) for r in records] == [("Ann", "111", 50)]
    assert records[0].id > 0
    assert records[0].created_at is not None


@pytest.mark.asyncio
async def test_submit_higher_score_updates_score_and_name(store: RankingStore) -> None:
    await store.submit(name="Ann", identity="111", score=50)
    first = (await store.list())[0]

    outcome = await store.submit(name="Ann B.", identity="111", score=75)
    assert outcome is SubmitOutcome.UPDATED

    records = await store.list()
    assert len(records) == 1
    assert records[0].score == 75
    assert records[0].name == "Ann B."
    assert records[0].id == first.id


@pytest.mark.asyncio
@pytest.mark.parametrize("resubmitted", [50, 10, 0])
async def test_submit_lower_or_equal_score_is_unchanged(store: RankingStore, resubmitted: int) -> None:
    await store.submit(name="Ann", identity="111", score=50)

    outcome = await store.submit(name="Someone Else", identity="111", score=resubmitted)
    assert outcome is SubmitOutcome.UNCHANGED

    records = await store.list()
    assert [(r.name, r.score) for r in records] == [("Ann", 50)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "identity", "score"),
    [
        ("", "123", 10),
        ("Ann", "", 10),
        ("Ann", "123", -1),
        ("Ann", "123", True),
        ("Ann", "123", 1.5),
        ("Ann", "123", 2**63),
    ],
)
async def test_submit_rejects_invalid_input_without_side_effects(
    store: RankingStore, name, identity, score
) -> None:
    await store.submit(name="Bob", identity="222", score=80)

    with pytest.raises(ValidationError):
        await store.submit(name=name, identity=identity, score=score)

    records = await store.list()
    assert [(r.name, r.identity, r.score) for r in records] == [("Bob", "222", 80)]


@pytest.mark.asyncio
async def test_list_sorted_by_score_desc_ties_by_first_submission(store: RankingStore) -> None:
    await store.submit(name="Cara", identity="333", score=70)
    await store.submit(name="Ann", identity="111", score=90)
    await store.submit(name="Dan", identity="444", score=70)
    await store.submit(name="Bob", identity="222", score=10)

    records = await store.list()
    assert [r.name for r in records] == ["Ann", "Cara", "Dan", "Bob"]
    for a, b in zip(records, records[1:]):
        assert a.score >= b.score


@pytest.mark.asyncio
async def test_clear_is_idempotent(store: RankingStore) -> None:
    await store.submit(name="Ann", identity="111", score=50)
    await store.submit(name="Bob", identity="222", score=80)

    assert await store.clear() == 2
    assert await store.list() == []

    assert await store.clear() == 0
    assert await store.list() == []


@pytest.mark.asyncio
async def test_identity_can_return_after_clear_with_new_id(store: RankingStore) -> None:
    await store.submit(name="Ann", identity="111", score=90)
    old_id = (await store.list())[0].id
    await store.clear()

    outcome = await store.submit(name="Ann", identity="111", score=5)
    assert outcome is SubmitOutcome.CREATED

    records = await store.list()
    assert [(r.identity, r.score) for r in records] == [("111", 5)]
    assert records[0].id > old_id


@pytest.mark.asyncio
async def test_clear_disabled(db: Database) -> None:
    store = RankingStore(db, clear_enabled=False)
    await store.submit(name="Ann", identity="111", score=50)

    with pytest.raises(ClearDisabledError):
        await store.clear()
    assert len(await store.list()) == 1


@pytest.mark.asyncio
async def test_end_to_end_scenario(store: RankingStore) -> None:
    assert await store.submit("Ann", "111", 50) is SubmitOutcome.CREATED
    assert await store.submit("Bob", "222", 80) is SubmitOutcome.CREATED
    assert await store.submit("Ann", "111", 40) is SubmitOutcome.UNCHANGED
    assert await store.submit("Ann", "111", 90) is SubmitOutcome.UPDATED

    records = await store.list()
    assert [(r.name, r.identity, r.score) for r in records] == [
        ("Ann", "111", 90),
        ("Bob", "222", 80),
    ]

    await store.clear()
    assert await store.list() == []


@pytest.mark.asyncio
async def test_lost_insert_race_is_retried_as_update(
    store: RankingStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    await store.submit(name="Ann", identity="111", score=50)

    # First lookup misses the row a concurrent writer just committed.
    real_find = store._find_active
    calls = {"n": 0}

    async def stale_find(session, identity):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_find(session, identity)

    monkeypatch.setattr(store, "_find_active", stale_find)

    outcome = await store.submit(name="Ann", identity="111", score=90)
    assert outcome is SubmitOutcome.UPDATED
    assert calls["n"] == 2

    records = await store.list()
    assert [(r.identity, r.score) for r in records] == [("111", 90)]


@pytest.mark.asyncio
async def test_lost_insert_race_without_retries_raises_conflict(
    db: Database, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = RankingStore(db, conflict_retries=0)
    await store.submit(name="Ann", identity="111", score=50)

    async def stale_find(session, identity):
        return None

    monkeypatch.setattr(store, "_find_active", stale_find)

    with pytest.raises(ConflictError):
        await store.submit(name="Ann", identity="111", score=90)

    records = await store.list()
    assert [(r.identity, r.score) for r in records] == [("111", 50)]


@pytest.mark.asyncio
async def test_concurrent_submits_for_same_new_identity_keep_one_entry(store: RankingStore) -> None:
    outcomes = await asyncio.gather(
        store.submit(name="Ann", identity="111", score=40),
        store.submit(name="Ann", identity="111", score=60),
    )
    assert outcomes.count(SubmitOutcome.CREATED) == 1

    records = await store.list()
    assert len(records) == 1
    assert records[0].score == 60


@pytest.mark.asyncio
async def test_storage_fault_on_lookup_is_not_treated_as_absent(db: Database, store: RankingStore) -> None:
    await db.drop_tables()

    with pytest.raises(StorageError):
        await store.submit(name="Ann", identity="111", score=50)
    with pytest.raises(StorageError):
        await store.list()
    with pytest.raises(StorageError):
        await store.clear()


@pytest.mark.asyncio
async def test_largest_storable_score_round_trips(store: RankingStore) -> None:
    assert await store.submit(name="Ann", identity="111", score=MAX_SCORE) is SubmitOutcome.CREATED

    records = await store.list()
    assert [(r.identity, r.score) for r in records] == [("111", MAX_SCORE)]


@pytest.mark.asyncio
@pytest.mark.parametrize(("name", "identity"), [(" ", "111"), ("Ann", " "), ("A" * 500, "1" * 200)])
async def test_any_non_empty_name_and_identity_is_accepted(store: RankingStore, name: str, identity: str) -> None:
    assert await store.submit(name=name, identity=identity, score=1) is SubmitOutcome.CREATED

    records = await store.list()
    assert [(r.name, r.identity) for r in records] == [(name, identity)]
