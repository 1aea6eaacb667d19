"""Tests for ReliabilityStore."""

from unittest.mock import patch

import pytest

from sharaspot_engine.data_management.reliability_store import ReliabilityStore
from sharaspot_engine.data_management.schemas import ReliabilityScore, TrustBadge


class TestReliabilityStore:
    @pytest.mark.asyncio
    async def test_save_replaces_previous(self) -> None:
        store = ReliabilityStore()
        await store.save_score(ReliabilityScore(charger_id="chg-1", total_score=10.0))
        await store.save_score(ReliabilityScore(charger_id="chg-1", total_score=85.0))

        stored = await store.get_score("chg-1")
        assert stored.total_score == 85.0
        assert stored.trust_badge == TrustBadge.EXCELLENT
        assert len(await store.all_scores()) == 1

    @pytest.mark.asyncio
    async def test_unknown_charger(self) -> None:
        assert await ReliabilityStore().get_score("chg-x") is None

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path) -> None:
        path = tmp_path / "reliability.json"
        score = ReliabilityScore(
            charger_id="chg-1", photo_score=20.0, review_score=12.0, total_score=32.0
        )
        await ReliabilityStore(str(path)).save_score(score)

        restored = await ReliabilityStore(str(path)).get_score("chg-1")
        assert restored.same_scores(score)
        assert restored.trust_badge == TrustBadge.FAIR

    def test_persistence_path(self, tmp_path) -> None:
        path = tmp_path / "reliability.json"
        assert ReliabilityStore(str(path)).persistence_path == path
        assert ReliabilityStore().persistence_path is None

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_score(self, tmp_path) -> None:
        store = ReliabilityStore(str(tmp_path / "reliability.json"))
        await store.save_score(ReliabilityScore(charger_id="chg-1", total_score=40.0))

        with patch(
            "sharaspot_engine.data_management.reliability_store.write_json_atomic",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(OSError, match="disk full"):
                await store.save_score(ReliabilityScore(charger_id="chg-1", total_score=90.0))

        assert (await store.get_score("chg-1")).total_score == 40.0
