"""
Consensus Engine

Pure composition of voting, confidence and tiebreaker evaluation over a
vote set. No I/O, no exceptions for any vote-set shape.

Call shapes:
    calculate_consensus(votes, authority)                plain ConsensusResult
    calculate_consensus_with_details(votes, authority)   result + tally, stats, breakdown, trigger
    calculate_staged_consensus(staged, authority)        flattens stage buckets first

Degenerate cases:
    0 votes -> fixed empty result (SELL, confidence 0, FALLBACK)
    1 vote  -> mirrors that vote, confidence capped at 50, FALLBACK
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Optional

from config.settings import CONSENSUS, ConsensusConfig, TIEBREAKER, TiebreakerConfig
from consensus.models import (
    Vote,
    VoteTally,
    VoteStats,
    Decision,
    AnalysisQuality,
    AuthorityData,
    ConsensusMetrics,
    ConsensusResult,
    StagedVotes,
)
from consensus.voting import (
    UNKNOWN_ITEM,
    tally_votes,
    calculate_vote_stats,
    select_consensus_name,
)
from consensus.confidence import calculate_confidence
from consensus.tiebreaker import TiebreakerTrigger, should_trigger_tiebreaker

logger = logging.getLogger(__name__)


@dataclass
class DetailedConsensus:
    """Consensus result plus the intermediate values that produced it"""
    result: ConsensusResult
    tally: VoteTally
    stats: VoteStats
    confidence_breakdown: Dict[str, float]
    tiebreaker: TiebreakerTrigger

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.result.to_dict(),
            "tally": self.tally.to_dict(),
            "stats": {
                "avgConfidence": round(self.stats.avg_confidence, 4),
                "weightedValue": round(self.stats.weighted_value, 2),
                "valueAgreement": round(self.stats.value_agreement, 4),
                "decisionAgreement": round(self.stats.decision_agreement, 4),
            },
            "confidenceBreakdown": {k: round(v, 4) for k, v in self.confidence_breakdown.items()},
            "tiebreaker": self.tiebreaker.to_dict(),
        }


def _as_votes(votes) -> List[Vote]:
    return [v if isinstance(v, Vote) else Vote.from_dict(v) for v in (votes or [])]


# ============================================================
# DEGENERATE RESULTS
# ============================================================

def empty_consensus() -> ConsensusResult:
    return ConsensusResult(
        item_name=UNKNOWN_ITEM,
        estimated_value=0.0,
        decision=Decision.SELL,
        confidence=0,
        total_votes=0,
        analysis_quality=AnalysisQuality.FALLBACK,
        consensus_metrics=ConsensusMetrics(
            avg_ai_confidence=0.0,
            decision_agreement=0.0,
            value_agreement=0.0,
            participation_rate=0.0,
            authority_verified=False,
        ),
    )


def single_vote_consensus(
    vote: Vote,
    authority: Optional[AuthorityData] = None,
    config: ConsensusConfig = None,
) -> ConsensusResult:
    config = config or CONSENSUS
    return ConsensusResult(
        item_name=vote.item_name or UNKNOWN_ITEM,
        estimated_value=round(vote.estimated_value, 2),
        decision=vote.decision,
        confidence=max(0, min(config.single_vote_cap, round(vote.confidence * 100))),
        total_votes=1,
        analysis_quality=AnalysisQuality.FALLBACK,
        consensus_metrics=ConsensusMetrics(
            avg_ai_confidence=vote.confidence,
            decision_agreement=1.0,
            value_agreement=1.0,
            participation_rate=min(1.0, 1 / config.target_ai_count) if config.target_ai_count > 0 else 1.0,
            authority_verified=bool(authority and authority.verified),
        ),
    )


# ============================================================
# CONSENSUS
# ============================================================

def calculate_consensus(
    votes: List[Vote],
    authority: Optional[AuthorityData] = None,
    config: ConsensusConfig = None,
) -> ConsensusResult:
    """
    Reduce a vote set to one ConsensusResult.

    Args:
        votes: All votes folded into this result, any stage
        authority: Optional reference data; only `verified` affects confidence
        config: Threshold/cap overrides

    Returns:
        ConsensusResult with total_votes == len(votes)
    """
    config = config or CONSENSUS
    votes = _as_votes(votes)

    if not votes:
        logger.info("[CONSENSUS] No votes - returning empty result")
        return empty_consensus()

    if len(votes) == 1:
        logger.info(f"[CONSENSUS] Single vote from {votes[0].provider_id} - fallback result")
        return single_vote_consensus(votes[0], authority, config)

    tally = tally_votes(votes, config.close_vote_threshold)
    stats = calculate_vote_stats(votes, config.close_vote_threshold)
    confidence = calculate_confidence(votes, authority, config)

    result = ConsensusResult(
        item_name=select_consensus_name(votes),
        estimated_value=round(stats.weighted_value, 2),
        decision=tally.decision,
        confidence=confidence.confidence,
        total_votes=len(votes),
        analysis_quality=confidence.quality,
        consensus_metrics=confidence.metrics,
    )

    logger.info(
        f"[CONSENSUS] {result.decision.value} ${result.estimated_value:.2f} "
        f"@ {result.confidence}% ({result.analysis_quality.value}, {result.total_votes} votes"
        f"{', close' if tally.is_close_vote else ''})"
    )
    return result


def calculate_consensus_with_details(
    votes: List[Vote],
    authority: Optional[AuthorityData] = None,
    config: ConsensusConfig = None,
    tiebreaker_config: TiebreakerConfig = None,
) -> DetailedConsensus:
    config = config or CONSENSUS
    tiebreaker_config = tiebreaker_config or TIEBREAKER
    votes = _as_votes(votes)

    result = calculate_consensus(votes, authority, config)
    confidence = calculate_confidence(votes, authority, config)

    breakdown = confidence.breakdown
    if len(votes) == 1:
        breakdown = {"singleVoteCap": float(config.single_vote_cap), "finalConfidence": float(result.confidence)}

    return DetailedConsensus(
        result=result,
        tally=tally_votes(votes, config.close_vote_threshold),
        stats=calculate_vote_stats(votes, config.close_vote_threshold),
        confidence_breakdown=breakdown,
        tiebreaker=should_trigger_tiebreaker(votes, tiebreaker_config),
    )


def calculate_staged_consensus(
    staged: StagedVotes,
    authority: Optional[AuthorityData] = None,
    config: ConsensusConfig = None,
) -> ConsensusResult:
    return calculate_consensus(staged.flatten(), authority, config)


# ============================================================
# HELPERS
# ============================================================

def merge_and_recalculate(
    existing: List[Vote],
    new_votes: List[Vote],
    authority: Optional[AuthorityData] = None,
    config: ConsensusConfig = None,
) -> ConsensusResult:
    """Fold additional votes in and recompute everything from the full set"""
    return calculate_consensus([*existing, *new_votes], authority, config)


def quick_consensus_check(votes: List[Vote], config: ConsensusConfig = None) -> Dict[str, Any]:
    """Majority decision and closeness without computing confidence"""
    config = config or CONSENSUS
    tally = tally_votes(votes, config.close_vote_threshold)
    return {
        "decision": tally.decision.value,
        "isCloseVote": tally.is_close_vote,
        "weightDifference": round(tally.weight_difference, 4),
        "voteCount": len(votes),
    }


def is_consensus_acceptable(result: ConsensusResult, config: ConsensusConfig = None) -> bool:
    config = config or CONSENSUS
    return (
        result.confidence >= config.acceptable_confidence
        and result.analysis_quality != AnalysisQuality.FALLBACK
        and result.total_votes >= config.min_votes_for_full_consensus
    )
