"""Comprehensive tests for ContributionStore.

Tests cover:
- Add and retrieve (by id, by charger, by user)
- First-contribution detection per charger
- Vote commits and validation history filtering
- Snapshot and restore of a charger under its lock
- Persistence round trip and failed writes leaving state unchanged
- Stats calculation
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from sharaspot_engine.data_management.contribution_store import ContributionStore
from sharaspot_engine.data_management.schemas import (
    Contribution,
    ContributionType,
    ValidationRecord,
)
from sharaspot_engine.errors import ContributionNotFoundError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> ContributionStore:
    return ContributionStore()


def make_contribution(
    contribution_id: str,
    charger_id: str = "chg-1",
    user_id: str = "u-1",
    hours_ago: float = 0,
) -> Contribution:
    return Contribution(
        id=contribution_id,
        charger_id=charger_id,
        user_id=user_id,
        type=ContributionType.REVIEW,
        rating=4.0,
        timestamp=NOW - timedelta(hours=hours_ago),
    )


# ── Add / get ─────────────────────────────────────────────────────────────


class TestAddAndGet:
    @pytest.mark.asyncio
    async def test_add_and_get(self, store: ContributionStore) -> None:
        contribution = make_contribution("c-1")
        await store.add(contribution)

        assert await store.get("c-1") == contribution
        assert await store.exists("c-1")

    @pytest.mark.asyncio
    async def test_unknown_id_raises(self, store: ContributionStore) -> None:
        with pytest.raises(ContributionNotFoundError):
            await store.get("missing")

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store: ContributionStore) -> None:
        await store.add(make_contribution("c-1"))
        with pytest.raises(ValueError, match="already exists"):
            await store.add(make_contribution("c-1"))

    @pytest.mark.asyncio
    async def test_list_for_charger_newest_first(self, store: ContributionStore) -> None:
        await store.add(make_contribution("old", hours_ago=5))
        await store.add(make_contribution("new", hours_ago=1))
        await store.add(make_contribution("other", charger_id="chg-2"))

        listed = await store.list_for_charger("chg-1")
        assert [c.id for c in listed] == ["new", "old"]
        assert await store.list_for_charger("unknown") == []

    @pytest.mark.asyncio
    async def test_list_for_user(self, store: ContributionStore) -> None:
        await store.add(make_contribution("c-1", user_id="u-1"))
        await store.add(make_contribution("c-2", charger_id="chg-2", user_id="u-1"))
        await store.add(make_contribution("c-3", user_id="u-2"))

        assert {c.id for c in await store.list_for_user("u-1")} == {"c-1", "c-2"}

    @pytest.mark.asyncio
    async def test_add_locked_reports_first_contribution(self, store: ContributionStore) -> None:
        async with store.charger_lock("chg-1"):
            assert store.add_locked(make_contribution("c-1")) is True
            assert store.add_locked(make_contribution("c-2")) is False

        assert await store.has_contributions("chg-1")
        assert not await store.has_contributions("chg-2")
        assert await store.charger_ids() == ["chg-1"]


# ── Votes ─────────────────────────────────────────────────────────────────


class TestVotes:
    @pytest.mark.asyncio
    async def test_commit_vote_replaces_contribution(self, store: ContributionStore) -> None:
        await store.add(make_contribution("c-1"))
        updated = (await store.get("c-1")).model_copy(
            update={"validated_by": {"u-2"}, "confidence_score": 0.25}
        )
        record = ValidationRecord(
            user_id="u-2",
            contribution_id="c-1",
            charger_id="chg-1",
            is_validation=True,
            timestamp=NOW,
        )

        async with store.charger_lock("chg-1"):
            store.commit_vote_locked(updated, record)

        stored = await store.get("c-1")
        assert stored.validated_by == {"u-2"}
        assert stored.confidence_score == 0.25
        assert await store.validation_history() == [record]

    @pytest.mark.asyncio
    async def test_commit_vote_unknown_contribution(self, store: ContributionStore) -> None:
        with pytest.raises(ContributionNotFoundError):
            store.commit_vote_locked(make_contribution("ghost"))

    @pytest.mark.asyncio
    async def test_validation_history_filters(self, store: ContributionStore) -> None:
        await store.add(make_contribution("c-1"))
        contribution = await store.get("c-1")
        for user_id, hours_ago in [("u-2", 48), ("u-3", 1), ("u-2", 0.5)]:
            store.commit_vote_locked(
                contribution,
                ValidationRecord(
                    user_id=user_id,
                    contribution_id="c-1",
                    charger_id="chg-1",
                    is_validation=True,
                    timestamp=NOW - timedelta(hours=hours_ago),
                ),
            )

        assert len(await store.validation_history()) == 3
        assert len(await store.validation_history(user_id="u-2")) == 2
        recent = await store.validation_history(since=NOW - timedelta(hours=2))
        assert {r.user_id for r in recent} == {"u-2", "u-3"}
        assert len(recent) == 2


    @pytest.mark.asyncio
    async def test_restore_undoes_first_contribution(self, tmp_path) -> None:
        path = str(tmp_path / "contributions.json")
        store = ContributionStore(path)
        await store.add(make_contribution("c-0", charger_id="chg-2", user_id="u-2"))

        async with store.charger_lock("chg-1"):
            snapshot = store.snapshot_locked("chg-1")
            store.add_locked(make_contribution("c-1"))
            store.restore_locked("chg-1", snapshot)

        assert not await store.exists("c-1")
        assert await store.charger_ids() == ["chg-2"]
        assert await store.list_for_user("u-1") == []
        reloaded = ContributionStore(path)
        assert await reloaded.charger_ids() == ["chg-2"]

    @pytest.mark.asyncio
    async def test_restore_undoes_vote(self, store: ContributionStore) -> None:
        await store.add(make_contribution("c-1"))
        original = await store.get("c-1")
        updated = original.model_copy(update={"validated_by": {"u-2"}})
        record = ValidationRecord(
            user_id="u-2",
            contribution_id="c-1",
            charger_id="chg-1",
            is_validation=True,
            timestamp=NOW,
        )

        async with store.charger_lock("chg-1"):
            snapshot = store.snapshot_locked("chg-1")
            store.commit_vote_locked(updated, record)
            store.restore_locked("chg-1", snapshot)

        assert await store.get("c-1") == original
        assert await store.validation_history() == []


# ── Persistence ───────────────────────────────────────────────────────────


class TestPersistence:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path) -> None:
        path = tmp_path / "contributions.json"
        store = ContributionStore(str(path))
        await store.add(make_contribution("c-1"))
        await store.add(make_contribution("c-2", charger_id="chg-2", user_id="u-9"))

        reloaded = ContributionStore(str(path))
        assert (await reloaded.get("c-1")).rating == 4.0
        assert [c.id for c in await reloaded.list_for_user("u-9")] == ["c-2"]

    @pytest.mark.asyncio
    async def test_failed_write_leaves_store_unchanged(self, tmp_path) -> None:
        store = ContributionStore(str(tmp_path / "contributions.json"))
        with patch(
            "sharaspot_engine.data_management.contribution_store.write_json_atomic",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(OSError, match="disk full"):
                await store.add(make_contribution("c-1"))

        assert not await store.exists("c-1")
        assert not await store.has_contributions("chg-1")


class TestStats:
    @pytest.mark.asyncio
    async def test_storage_stats(self, store: ContributionStore) -> None:
        await store.add(make_contribution("c-1"))
        await store.add(make_contribution("c-2", charger_id="chg-2", user_id="u-2"))

        stats = await store.get_storage_stats()
        assert stats["total_chargers"] == 2
        assert stats["total_contributions"] == 2
        assert stats["total_contributors"] == 2
        assert stats["persistence_enabled"] is False
