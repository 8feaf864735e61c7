"""
Benchmark Vote Scorer

Grades every vote of a finished analysis against ground truth once it
is known. One immutable BenchmarkRecord per vote.

Scoring rules:
- price_error_dollars = |vote price - ground truth|
- price_error_percent = error / ground truth * 100
- price_direction: "accurate" when error% <= 10, else "over"/"under" by sign
- decision_correct: BUY is right when ground truth >= $2.00, SELL otherwise

Without ground truth the four scored fields stay None (never False).
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional

from config.settings import BENCHMARKS, BenchmarkConfig
from consensus.models import Vote, Stage, Decision, AuthorityData, StagedVotes
from services.exceptions import GroundTruthUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkContext:
    """Analysis-level facts copied onto every record"""
    analysis_id: str
    item_name: str
    detected_category: str = "general"
    category_confidence: Optional[float] = None
    ground_truth_price: Optional[float] = None
    ground_truth_source: Optional[str] = None
    authority_source: Optional[str] = None
    authority_price: Optional[float] = None
    market_median_price: Optional[float] = None
    market_listing_count: Optional[int] = None
    consensus_price: Optional[float] = None
    consensus_decision: Optional[str] = None
    consensus_confidence: Optional[int] = None
    total_votes: Optional[int] = None
    analysis_quality: Optional[str] = None
    had_image: bool = False


@dataclass(frozen=True)
class BenchmarkRecord:
    analysis_id: str
    provider_id: str
    stage: str
    provider_price: float
    provider_decision: str
    provider_confidence: float
    provider_item_name: str
    provider_category: str
    response_time_ms: int
    item_name: str
    detected_category: str

    ground_truth_price: Optional[float] = None
    ground_truth_source: Optional[str] = None
    price_error_dollars: Optional[float] = None
    price_error_percent: Optional[float] = None
    price_direction: Optional[str] = None
    decision_correct: Optional[bool] = None

    category_confidence: Optional[float] = None
    authority_source: Optional[str] = None
    authority_price: Optional[float] = None
    market_median_price: Optional[float] = None
    market_listing_count: Optional[int] = None
    consensus_price: Optional[float] = None
    consensus_decision: Optional[str] = None
    consensus_confidence: Optional[int] = None
    total_votes: Optional[int] = None
    analysis_quality: Optional[str] = None
    had_image: bool = False
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def has_ground_truth(self) -> bool:
        return self.ground_truth_price is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def score_vote(
    vote: Vote,
    context: BenchmarkContext,
    stage: Optional[Stage] = None,
    config: BenchmarkConfig = None,
) -> BenchmarkRecord:
    """Score one vote. Ground truth <= 0 is treated as absent."""
    config = config or BENCHMARKS
    stage = stage or vote.stage
    truth = context.ground_truth_price

    error_dollars = error_percent = direction = correct = None
    if truth is not None and truth > 0:
        # Direction is judged on the stored (rounded) figure
        error_dollars = round(abs(vote.estimated_value - truth), 2)
        error_percent = round(error_dollars / truth * 100, 2)

        if error_percent <= config.accurate_threshold_percent:
            direction = "accurate"
        elif vote.estimated_value > truth:
            direction = "over"
        else:
            direction = "under"

        market_supports_buy = truth >= config.buy_price_floor
        correct = (vote.decision == Decision.BUY) == market_supports_buy
    else:
        truth = None

    return BenchmarkRecord(
        analysis_id=context.analysis_id,
        provider_id=vote.provider_id,
        stage=Stage(stage).value,
        provider_price=vote.estimated_value,
        provider_decision=vote.decision.value,
        provider_confidence=vote.confidence,
        provider_item_name=vote.item_name,
        provider_category=vote.category,
        response_time_ms=vote.response_time_ms,
        item_name=context.item_name,
        detected_category=context.detected_category,
        ground_truth_price=truth,
        ground_truth_source=context.ground_truth_source if truth is not None else None,
        price_error_dollars=error_dollars,
        price_error_percent=error_percent,
        price_direction=direction,
        decision_correct=correct,
        category_confidence=context.category_confidence,
        authority_source=context.authority_source,
        authority_price=context.authority_price,
        market_median_price=context.market_median_price,
        market_listing_count=context.market_listing_count,
        consensus_price=context.consensus_price,
        consensus_decision=context.consensus_decision,
        consensus_confidence=context.consensus_confidence,
        total_votes=context.total_votes,
        analysis_quality=context.analysis_quality,
        had_image=context.had_image,
    )


def score_all_votes(
    staged: StagedVotes,
    context: BenchmarkContext,
    config: BenchmarkConfig = None,
) -> List[BenchmarkRecord]:
    """Score every vote of an analysis, bucket by bucket"""
    records = []
    buckets = (
        (Stage.VISION, staged.vision),
        (Stage.TEXT, staged.text),
        (Stage.MARKET_SEARCH, staged.market_search),
        (Stage.TIEBREAKER, staged.tiebreaker),
    )
    for stage, votes in buckets:
        for vote in votes:
            records.append(score_vote(vote, context, stage, config))
    return records


def get_accuracy_summary(records: List[BenchmarkRecord], config: BenchmarkConfig = None) -> Dict[str, Any]:
    """Aggregate error figures over the records that have ground truth"""
    config = config or BENCHMARKS
    scored = [r for r in records if r.has_ground_truth]
    summary = {
        "count": len(records),
        "scoredCount": len(scored),
        "meanAbsoluteError": None,
        "meanAbsolutePercentError": None,
        "within10Percent": None,
        "decisionAccuracy": None,
    }
    if not scored:
        return summary

    n = len(scored)
    summary["meanAbsoluteError"] = round(sum(r.price_error_dollars for r in scored) / n, 2)
    summary["meanAbsolutePercentError"] = round(sum(r.price_error_percent for r in scored) / n, 2)
    within = sum(1 for r in scored if r.price_error_percent <= config.accurate_threshold_percent)
    summary["within10Percent"] = round(within / n, 4)
    summary["decisionAccuracy"] = round(sum(1 for r in scored if r.decision_correct) / n, 4)
    return summary


def resolve_ground_truth(
    authority: Optional[AuthorityData] = None,
    market_summary: Optional[Dict[str, Any]] = None,
    analysis_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Pick the ground-truth price for an analysis.

    Order: authority reference price, then marketplace sold median.

    Raises:
        GroundTruthUnavailable: neither source has a positive price
    """
    if authority is not None:
        price = authority.reference_price()
        if price:
            return {"price": price, "source": f"authority:{authority.source}"}

    if market_summary:
        median_price = market_summary.get("median")
        if median_price and median_price > 0 and market_summary.get("sampleSize", 0) > 0:
            return {"price": float(median_price), "source": "marketplace_sold_median"}

    raise GroundTruthUnavailable(analysis_id)
