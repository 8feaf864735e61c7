"""
Confidence Calculator

Derives a 0-100 confidence score and a quality tier from four agreement
signals plus optional authority data.

Signals:
    avg_confidence      mean of each provider's reported confidence
    decision_agreement  weighted share of support behind the majority decision
    value_agreement     1 - coefficient of variation of estimated values
    participation       votes / target AI count, capped at 1

Hard rules, independent of the blend coefficients:
    - verified authority data adds a fixed bonus
    - fewer than min_votes_for_full_consensus votes caps the score at low_vote_cap
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from config.settings import CONSENSUS, ConsensusConfig
from consensus.models import (
    Vote,
    AuthorityData,
    AnalysisQuality,
    ConsensusMetrics,
)
from consensus.voting import calculate_vote_stats

logger = logging.getLogger(__name__)

# Flat point adjustments on the 0-100 scale
PENALTIES = {
    'low_votes': 25,
    'high_variance': 15,
    'single_provider': 50,
    'tiebreaker_used': 5,
}

BONUSES = {
    'authority_verified': 5,
    'high_agreement': 3,
    'many_votes': 2,
}

MINIMUM_CONFIDENCE = 30


@dataclass
class ConfidenceResult:
    confidence: int
    quality: AnalysisQuality
    metrics: ConsensusMetrics
    breakdown: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence": self.confidence,
            "quality": self.quality.value,
            "metrics": self.metrics.to_dict(),
            "breakdown": {k: round(v, 4) for k, v in self.breakdown.items()},
        }


def _empty_result() -> ConfidenceResult:
    return ConfidenceResult(
        confidence=0,
        quality=AnalysisQuality.FALLBACK,
        metrics=ConsensusMetrics(
            avg_ai_confidence=0.0,
            decision_agreement=0.0,
            value_agreement=0.0,
            participation_rate=0.0,
            authority_verified=False,
        ),
        breakdown={},
    )


def calculate_confidence(
    votes: List[Vote],
    authority: Optional[AuthorityData] = None,
    config: ConsensusConfig = None,
) -> ConfidenceResult:
    """
    Compute confidence, quality tier and per-signal breakdown for a vote set.

    Always recomputes every signal from the full vote list.
    """
    config = config or CONSENSUS

    if not votes:
        return _empty_result()

    critically_low = len(votes) < config.min_votes_for_full_consensus
    stats = calculate_vote_stats(votes, config.close_vote_threshold)
    participation = min(1.0, len(votes) / config.target_ai_count) if config.target_ai_count > 0 else 1.0
    authority_verified = bool(authority and authority.verified)

    blend = config.blend
    contributions = {
        'ai_score': stats.avg_confidence * blend['avg_confidence'],
        'decision_agreement': stats.decision_agreement * blend['decision_agreement'],
        'value_agreement': stats.value_agreement * blend['value_agreement'],
        'participation': participation * blend['participation'],
    }
    base = sum(contributions.values())
    authority_boost = config.authority_bonus if authority_verified else 0.0

    final = min(config.max_confidence, round((base + authority_boost) * 100))
    if critically_low:
        final = min(final, config.low_vote_cap)
    final = max(0, int(final))

    quality = determine_quality(final, critically_low, config)

    breakdown = {
        'aiScoreContribution': contributions['ai_score'],
        'decisionAgreementContribution': contributions['decision_agreement'],
        'valueAgreementContribution': contributions['value_agreement'],
        'participationContribution': contributions['participation'],
        'authorityBoost': authority_boost,
        'baseConfidence': base,
        'finalConfidence': final,
    }

    logger.debug(
        f"[CONFIDENCE] {final}% ({quality.value}) votes={len(votes)} "
        f"avg={stats.avg_confidence:.2f} decision={stats.decision_agreement:.2f} "
        f"value={stats.value_agreement:.2f} participation={participation:.2f} "
        f"authority={authority_verified}"
    )

    return ConfidenceResult(
        confidence=final,
        quality=quality,
        metrics=ConsensusMetrics(
            avg_ai_confidence=stats.avg_confidence,
            decision_agreement=stats.decision_agreement,
            value_agreement=stats.value_agreement,
            participation_rate=participation,
            authority_verified=authority_verified,
        ),
        breakdown=breakdown,
    )


# ============================================================
# QUALITY TIERS
# ============================================================

def determine_quality(
    confidence: int,
    critically_low_votes: bool,
    config: ConsensusConfig = None,
) -> AnalysisQuality:
    config = config or CONSENSUS
    if critically_low_votes:
        return AnalysisQuality.FALLBACK
    if confidence >= config.optimal_threshold:
        return AnalysisQuality.OPTIMAL
    if confidence >= config.degraded_threshold:
        return AnalysisQuality.DEGRADED
    return AnalysisQuality.FALLBACK


def meets_minimum(confidence: int, threshold: int = MINIMUM_CONFIDENCE) -> bool:
    return confidence >= threshold


def is_optimal(confidence: int, threshold: int = None) -> bool:
    if threshold is None:
        threshold = CONSENSUS.optimal_threshold
    return confidence >= threshold


# ============================================================
# ADJUSTMENTS
# ============================================================

def apply_penalty(confidence: int, reason: str, severity: int = 10) -> int:
    """Subtract a named penalty (or `severity` for unknown reasons), floored at 0"""
    return max(0, confidence - PENALTIES.get(reason, severity))


def apply_bonus(confidence: int, reason: str, bonus: int = 5) -> int:
    """Add a named bonus, capped at the maximum confidence"""
    return min(CONSENSUS.max_confidence, confidence + BONUSES.get(reason, bonus))


def cap_by_vote_count(
    confidence: int,
    vote_count: int,
    min_votes: int = None,
    cap: int = None,
) -> int:
    min_votes = CONSENSUS.min_votes_for_full_consensus if min_votes is None else min_votes
    cap = CONSENSUS.low_vote_cap if cap is None else cap
    if vote_count < min_votes:
        return min(confidence, cap)
    return confidence


def estimate_confidence(
    available_provider_count: int,
    has_authority_source: bool,
    config: ConsensusConfig = None,
) -> Dict[str, Any]:
    """
    Predict the confidence a run could reach before any provider is called.

    Assumes average provider confidence of 0.75 and 0.80 agreement on both
    decision and value.
    """
    config = config or CONSENSUS
    assumed_confidence = 0.75
    assumed_agreement = 0.80
    participation = min(1.0, available_provider_count / config.target_ai_count)

    blend = config.blend
    base = (
        assumed_confidence * blend['avg_confidence']
        + assumed_agreement * blend['decision_agreement']
        + assumed_agreement * blend['value_agreement']
        + participation * blend['participation']
    )
    estimated = round(base * 100)
    if has_authority_source:
        estimated += round(config.authority_bonus * 100)
    estimated = min(config.max_confidence, estimated)

    critically_low = available_provider_count < config.min_votes_for_full_consensus
    if critically_low:
        estimated = min(estimated, config.low_vote_cap)
    quality = determine_quality(estimated, critically_low, config)

    if quality == AnalysisQuality.OPTIMAL:
        recommendation = "Good to proceed with analysis"
    elif quality == AnalysisQuality.DEGRADED:
        recommendation = "Analysis may have reduced accuracy"
    else:
        recommendation = "Consider adding more providers or authority sources"

    return {
        "estimatedConfidence": estimated,
        "quality": quality.value,
        "recommendation": recommendation,
    }
