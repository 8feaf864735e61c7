import asyncio
from dataclasses import replace

import pytest

from benchmarks.aggregator import build_scorecard, build_scorecards
from benchmarks.recorder import BenchmarkJob, BenchmarkRecorder, build_context
from benchmarks.scorer import (
    BenchmarkContext,
    get_accuracy_summary,
    resolve_ground_truth,
    score_all_votes,
    score_vote,
)
from benchmarks.store import BenchmarkStore
from config.settings import BenchmarkConfig
from consensus.engine import calculate_consensus
from consensus.models import AuthorityData, Stage, StagedVotes
from services.exceptions import GroundTruthUnavailable

CONFIG = BenchmarkConfig(queue_size=10, enabled=True)


def context(truth=None, **kwargs) -> BenchmarkContext:
    return BenchmarkContext(analysis_id="a1", item_name="Morgan Dollar", ground_truth_price=truth, **kwargs)


@pytest.fixture
def store(tmp_path):
    store = BenchmarkStore(tmp_path / "benchmarks.db")
    yield store
    store.close()


@pytest.fixture
def staged(make_vote):
    return StagedVotes(
        vision=[make_vote("BUY", 44, provider_id="openai", stage=Stage.VISION)],
        text=[make_vote("SELL", 20, provider_id="groq", stage=Stage.TEXT)],
        tiebreaker=[make_vote("BUY", 41, provider_id="deepseek", stage=Stage.TIEBREAKER)],
    )


# ============================================================
# SCORER
# ============================================================

@pytest.mark.parametrize(
    ("price", "direction", "error_percent"),
    [(44, "accurate", 10.0), (44.5, "over", 11.25), (35, "under", 12.5), (40, "accurate", 0.0)],
)
def test_price_direction_boundary(make_vote, price, direction, error_percent) -> None:
    record = score_vote(make_vote("BUY", price), context(40.0), config=CONFIG)
    assert record.price_error_percent == error_percent
    assert record.price_direction == direction
    assert (record.price_direction == "accurate") == (record.price_error_percent <= 10)


def test_decision_correctness_uses_buy_floor(make_vote) -> None:
    assert score_vote(make_vote("BUY", 3), context(2.00), config=CONFIG).decision_correct is True
    assert score_vote(make_vote("SELL", 3), context(2.00), config=CONFIG).decision_correct is False
    assert score_vote(make_vote("SELL", 1), context(1.99), config=CONFIG).decision_correct is True


@pytest.mark.parametrize("truth", [None, 0, -5.0])
def test_missing_ground_truth_leaves_fields_undefined(make_vote, truth) -> None:
    record = score_vote(make_vote("BUY", 10), context(truth, ground_truth_source="confirmed"), config=CONFIG)
    assert record.ground_truth_price is None
    assert record.ground_truth_source is None
    assert record.price_error_dollars is None
    assert record.price_error_percent is None
    assert record.price_direction is None
    assert record.decision_correct is None
    assert not record.has_ground_truth


def test_score_all_votes_tags_every_bucket(staged) -> None:
    records = score_all_votes(staged, context(40.0), CONFIG)
    assert [(r.provider_id, r.stage) for r in records] == [
        ("openai", "vision"), ("groq", "text"), ("deepseek", "tiebreaker"),
    ]
    assert all(r.item_name == "Morgan Dollar" for r in records)


def test_accuracy_summary(staged) -> None:
    summary = get_accuracy_summary(score_all_votes(staged, context(40.0), CONFIG), CONFIG)
    assert summary["scoredCount"] == 3
    assert summary["meanAbsoluteError"] == pytest.approx((4 + 20 + 1) / 3, abs=0.01)
    assert summary["within10Percent"] == pytest.approx(2 / 3, abs=1e-4)
    assert summary["decisionAccuracy"] == pytest.approx(2 / 3, abs=1e-4)


def test_accuracy_summary_without_truth(staged) -> None:
    summary = get_accuracy_summary(score_all_votes(staged, context(None), CONFIG), CONFIG)
    assert summary["count"] == 3
    assert summary["scoredCount"] == 0
    assert summary["meanAbsoluteError"] is None
    assert summary["decisionAccuracy"] is None


def test_ground_truth_prefers_authority_price() -> None:
    authority = AuthorityData(source="pokemon_tcg", verified=True, price_data={"market": 350.0})
    market = {"median": 300.0, "sampleSize": 12}
    assert resolve_ground_truth(authority, market) == {"price": 350.0, "source": "authority:pokemon_tcg"}


def test_ground_truth_falls_back_to_market_median() -> None:
    identity_only = AuthorityData(source="nhtsa", verified=True)
    market = {"median": 300.0, "sampleSize": 12}
    assert resolve_ground_truth(identity_only, market) == {"price": 300.0, "source": "marketplace_sold_median"}


def test_ground_truth_unavailable() -> None:
    with pytest.raises(GroundTruthUnavailable):
        resolve_ground_truth(None, {"median": None, "sampleSize": 0}, "a1")


# ============================================================
# JOB CONTEXT
# ============================================================

def test_confirmed_price_overrides_resolution(staged) -> None:
    authority = AuthorityData(source="numista", verified=True, price_data={"market": 50.0})
    job = BenchmarkJob("a1", "Morgan Dollar", staged, authority=authority, ground_truth_price=42.0)
    ctx = build_context(job)
    assert ctx.ground_truth_price == 42.0
    assert ctx.ground_truth_source == "confirmed"
    assert ctx.authority_price == 50.0


def test_context_copies_consensus(staged) -> None:
    consensus = calculate_consensus(staged.flatten())
    job = BenchmarkJob("a1", "Morgan Dollar", staged, consensus=consensus, market_summary={"median": 40.0, "sampleSize": 5})
    ctx = build_context(job)
    assert ctx.ground_truth_source == "marketplace_sold_median"
    assert ctx.total_votes == 3
    assert ctx.consensus_decision == consensus.decision.value


# ============================================================
# STORE
# ============================================================

def test_store_round_trip_keeps_none_and_bools(store, staged) -> None:
    scored = score_all_votes(staged, context(40.0, had_image=True), CONFIG)
    unscored = score_all_votes(staged, context(None), CONFIG)
    assert store.save_records(scored + unscored) == 6
    assert store.count() == 6

    loaded = store.fetch_records()
    assert loaded[0] == scored[0]
    assert loaded[0].decision_correct is True
    assert loaded[0].had_image is True
    assert loaded[3].decision_correct is None
    assert loaded[3].price_direction is None


def test_store_filters(store, staged) -> None:
    records = score_all_votes(staged, context(40.0), CONFIG)
    old = replace(records[0], created_at="2020-01-01T00:00:00")
    store.save_records([old, *records])

    assert len(store.fetch_records(provider="openai")) == 2
    assert len(store.fetch_records(provider="openai", since="2021-01-01")) == 1
    assert len(store.fetch_records(limit=2)) == 2
    assert store.save_records([]) == 0


# ============================================================
# RECORDER
# ============================================================

class FlakyStore:
    """Fails on the first save, then delegates"""

    def __init__(self, inner):
        self.inner = inner
        self.calls = 0

    def save_records(self, records):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("disk full")
        return self.inner.save_records(records)


def test_recorder_persists_jobs(store, staged) -> None:
    async def run():
        recorder = BenchmarkRecorder(store, CONFIG)
        recorder.start()
        assert recorder.submit(BenchmarkJob("a1", "Morgan Dollar", staged, ground_truth_price=40.0))
        await recorder.stop()
        return recorder

    recorder = asyncio.run(run())
    assert recorder.processed == 1
    assert store.count() == 3
    assert all(r.ground_truth_source == "confirmed" for r in store.fetch_records())


def test_recorder_failure_is_isolated(store, staged) -> None:
    async def run():
        recorder = BenchmarkRecorder(FlakyStore(store), CONFIG)
        recorder.start()
        first = recorder.submit(BenchmarkJob("a1", "Morgan Dollar", staged))
        second = recorder.submit(BenchmarkJob("a2", "Morgan Dollar", staged))
        await recorder.stop()
        return recorder, first, second

    recorder, first, second = asyncio.run(run())
    assert first and second
    assert recorder.failed == 1
    assert recorder.processed == 1
    assert store.count() == 3
    assert recorder.get_stats()["running"] is False


def test_submit_never_raises_when_not_running(store, staged) -> None:
    recorder = BenchmarkRecorder(store, CONFIG)
    assert recorder.submit(BenchmarkJob("a1", "x", staged)) is False
    assert recorder.dropped == 1

    disabled = BenchmarkRecorder(store, BenchmarkConfig(enabled=False))
    assert disabled.submit(BenchmarkJob("a1", "x", staged)) is False
    assert disabled.dropped == 0


def test_submit_drops_when_queue_full(store, staged) -> None:
    async def run():
        recorder = BenchmarkRecorder(store, BenchmarkConfig(queue_size=1, enabled=True))
        recorder.start()
        # Worker has not run yet: the first job fills the queue
        results = [recorder.submit(BenchmarkJob(f"a{i}", "x", staged)) for i in range(3)]
        await recorder.stop()
        return recorder, results

    recorder, results = asyncio.run(run())
    assert results == [True, False, False]
    assert recorder.dropped == 2


# ============================================================
# SCORECARDS
# ============================================================

def test_scorecard_figures(make_vote) -> None:
    votes = [make_vote("BUY", 44, response_time_ms=100), make_vote("BUY", 60, response_time_ms=300)]
    records = [score_vote(v, context(40.0, detected_category="coins"), config=CONFIG) for v in votes]
    card = build_scorecard("openai", records)

    assert card["totalVotes"] == 2
    assert card["scoredVotes"] == 2
    assert card["meanAbsoluteError"] == 12.0
    assert card["meanAbsolutePercentError"] == 30.0
    assert card["accuracyRate10"] == 0.5
    assert card["overPredictions"] == 1
    assert card["accuratePredictions"] == 1
    assert card["decisionAccuracy"] == 1.0
    assert card["avgResponseMs"] == 200
    assert card["categoryScores"]["coins"]["votes"] == 2
    assert card["bestCategory"] is None


def test_scorecards_rank_by_error(make_vote) -> None:
    records = [
        score_vote(make_vote("BUY", 60, provider_id="groq"), context(40.0), config=CONFIG),
        score_vote(make_vote("BUY", 41, provider_id="openai"), context(40.0), config=CONFIG),
        score_vote(make_vote("BUY", 41, provider_id="xai"), context(None), config=CONFIG),
    ]
    cards = build_scorecards(records)
    assert [c["providerId"] for c in cards] == ["openai", "groq", "xai"]
    assert cards[-1]["scoredVotes"] == 0
