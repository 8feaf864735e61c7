"""
Vote Collection and Tallying

Normalizes provider analyses into uniform votes, assigns trust weights
and tallies weighted BUY/SELL support.

Weight = base provider reliability x reported confidence, then scaled
by specialty and stage multipliers:
    - pricing specialists (perplexity): x1.3
    - market search stage: x1.2
    - tiebreaker stage: x0.6

Usage:
    from consensus.voting import create_vote, tally_votes, calculate_vote_stats

    vote = create_vote("openai", analysis, stage=Stage.VISION, response_time_ms=840)
    tally = tally_votes([vote, ...])
"""

import math
import logging
from collections import defaultdict
from typing import Dict, Any, List, Optional

from config.settings import WEIGHTS, WeightConfig, TIEBREAKER, TiebreakerConfig
from consensus.models import (
    Vote,
    VoteTally,
    VoteStats,
    Decision,
    Stage,
    coerce_decision,
)

logger = logging.getLogger(__name__)

UNKNOWN_ITEM = "Unknown Item"


# ============================================================
# WEIGHT CALCULATION
# ============================================================

def get_base_weight(provider_id: str, config: WeightConfig = None) -> float:
    config = config or WEIGHTS
    return config.base_weights.get(provider_id.lower(), config.default_weight)


def calculate_vote_weight(
    provider_id: str,
    confidence: float,
    stage: Stage = Stage.TEXT,
    config: WeightConfig = None,
) -> float:
    """
    Trust weight for one vote.

    Args:
        provider_id: Provider key into the base reliability table
        confidence: Provider's own reported confidence (0-1)
        stage: Stage the vote was cast in
        config: Weight table override

    Returns:
        Non-negative weight
    """
    config = config or WEIGHTS
    weight = get_base_weight(provider_id, config)

    if config.scale_by_confidence:
        weight *= max(0.0, min(1.0, confidence))

    specialty = config.specialties.get(provider_id.lower())
    if specialty and specialty in config.multipliers:
        weight *= config.multipliers[specialty]

    if stage == Stage.MARKET_SEARCH:
        weight *= config.multipliers.get('market_search', 1.0)
    elif stage == Stage.TIEBREAKER:
        weight *= config.multipliers.get('tiebreaker', 1.0)

    return weight


def create_vote(
    provider_id: str,
    analysis: Dict[str, Any],
    stage: Stage = Stage.TEXT,
    response_time_ms: int = 0,
    fallback_item_name: Optional[str] = None,
    weights: WeightConfig = None,
    tiebreaker: TiebreakerConfig = None,
) -> Vote:
    """
    Build a weighted Vote from a parsed provider analysis.

    The analysis dict uses the canonical keys produced by
    providers.parsers.parse_analysis_response (itemName, category,
    estimatedValue, decision, confidence).
    """
    tiebreaker = tiebreaker or TIEBREAKER
    confidence = _safe_float(analysis.get("confidence"), 0.5)
    value = _safe_float(analysis.get("estimatedValue"), 0.0)

    weight = calculate_vote_weight(provider_id, confidence, stage, weights)

    # Tiebreaker votes carry discounted confidence
    adjusted_confidence = confidence
    if stage == Stage.TIEBREAKER:
        adjusted_confidence *= tiebreaker.confidence_scale

    return Vote(
        provider_id=provider_id,
        stage=stage,
        item_name=analysis.get("itemName") or fallback_item_name or UNKNOWN_ITEM,
        category=analysis.get("category") or "general",
        estimated_value=value,
        decision=coerce_decision(analysis.get("decision", Decision.SELL)),
        confidence=adjusted_confidence,
        response_time_ms=response_time_ms,
        raw_response=analysis,
        weight=weight,
    )


def _safe_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


# ============================================================
# TALLY
# ============================================================

def tally_votes(votes: List[Vote], close_vote_threshold: float = 0.15) -> VoteTally:
    """
    Weighted BUY/SELL tally.

    BUY wins only on strictly greater weight; ties go to SELL.
    A vote is close when |buy - sell| / total < threshold.
    """
    if not votes:
        return VoteTally(
            decision=Decision.SELL,
            buy_weight=0.0,
            sell_weight=0.0,
            total_weight=0.0,
            weight_difference=0.0,
            is_close_vote=False,
        )

    buy_votes = [v for v in votes if v.decision == Decision.BUY]
    sell_votes = [v for v in votes if v.decision == Decision.SELL]

    buy_weight = sum(v.weight for v in buy_votes)
    sell_weight = sum(v.weight for v in sell_votes)
    total_weight = buy_weight + sell_weight

    weight_difference = abs(buy_weight - sell_weight) / total_weight if total_weight > 0 else 0.0

    return VoteTally(
        decision=Decision.BUY if buy_weight > sell_weight else Decision.SELL,
        buy_weight=buy_weight,
        sell_weight=sell_weight,
        total_weight=total_weight,
        weight_difference=weight_difference,
        is_close_vote=weight_difference < close_vote_threshold,
        buy_count=len(buy_votes),
        sell_count=len(sell_votes),
    )


# ============================================================
# STATISTICS
# ============================================================

def calculate_value_agreement(values: List[float]) -> float:
    """1 - coefficient of variation over positive values, floored at 0"""
    positive = [v for v in values if v > 0]
    if len(positive) <= 1:
        return 1.0

    mean = sum(positive) / len(positive)
    variance = sum((v - mean) ** 2 for v in positive) / len(positive)
    cv = math.sqrt(variance) / mean if mean > 0 else 1.0
    return max(0.0, 1.0 - cv)


def calculate_weighted_value(votes: List[Vote]) -> float:
    total_weight = sum(v.weight for v in votes)
    if total_weight <= 0:
        # All-zero weights: plain mean
        if not votes:
            return 0.0
        return sum(v.estimated_value for v in votes) / len(votes)
    return sum(v.estimated_value * v.weight for v in votes) / total_weight


def calculate_vote_stats(votes: List[Vote], close_vote_threshold: float = 0.15) -> VoteStats:
    if not votes:
        return VoteStats(
            avg_confidence=0.0,
            weighted_value=0.0,
            value_agreement=0.0,
            decision_agreement=0.0,
            total_votes=0,
        )

    tally = tally_votes(votes, close_vote_threshold)
    decision_agreement = (
        max(tally.buy_weight, tally.sell_weight) / tally.total_weight
        if tally.total_weight > 0 else 0.0
    )

    return VoteStats(
        avg_confidence=sum(v.confidence for v in votes) / len(votes),
        weighted_value=calculate_weighted_value(votes),
        value_agreement=calculate_value_agreement([v.estimated_value for v in votes]),
        decision_agreement=decision_agreement,
        total_votes=len(votes),
    )


def select_consensus_name(votes: List[Vote]) -> str:
    """
    Item name with the most weight x confidence behind it.

    Vision votes saw the item itself, so when any exist only they are
    considered; market search votes are consulted last.
    """
    if not votes:
        return UNKNOWN_ITEM

    vision = [v for v in votes if v.stage == Stage.VISION]
    non_market = [v for v in votes if v.stage != Stage.MARKET_SEARCH]
    candidates = vision or non_market or votes

    scores: Dict[str, float] = defaultdict(float)
    for vote in candidates:
        name = vote.item_name or UNKNOWN_ITEM
        scores[name] += vote.weight * vote.confidence

    # max() keeps first-seen order on ties
    return max(scores, key=lambda name: scores[name])


def summarize_votes(votes: List[Vote]) -> Dict[str, Any]:
    """Compact per-vote summary for logs and diagnostics"""
    return {
        "count": len(votes),
        "providers": [v.provider_id for v in votes],
        "byStage": {
            stage.value: sum(1 for v in votes if v.stage == stage)
            for stage in Stage
        },
        "avgResponseTimeMs": (
            round(sum(v.response_time_ms for v in votes) / len(votes)) if votes else 0
        ),
    }
