"""
Consensus Module - Weighted Multi-Provider Voting

Reduces independent provider votes to one confidence-scored result:
- voting: trust weights, weighted tally, agreement statistics
- confidence: 0-100 score and OPTIMAL/DEGRADED/FALLBACK tier
- tiebreaker: close-vote trigger and single-arbiter merge state machine
- engine: composition and degenerate-case handling

Usage:
    from consensus import calculate_consensus, Vote
    result = calculate_consensus(votes, authority)
"""

from .models import (
    Vote,
    VoteTally,
    Decision,
    Stage,
    AnalysisQuality,
    AuthorityData,
    ConsensusMetrics,
    ConsensusResult,
    StagedVotes,
)
from .voting import calculate_vote_weight, create_vote, tally_votes, calculate_vote_stats
from .confidence import calculate_confidence
from .tiebreaker import (
    TiebreakerState,
    TiebreakerSession,
    should_trigger_tiebreaker,
    merge_with_tiebreaker,
)
from .engine import (
    calculate_consensus,
    calculate_consensus_with_details,
    calculate_staged_consensus,
    is_consensus_acceptable,
)

__all__ = [
    'Vote',
    'VoteTally',
    'Decision',
    'Stage',
    'AnalysisQuality',
    'AuthorityData',
    'ConsensusMetrics',
    'ConsensusResult',
    'StagedVotes',
    'calculate_vote_weight',
    'create_vote',
    'tally_votes',
    'calculate_vote_stats',
    'calculate_confidence',
    'TiebreakerState',
    'TiebreakerSession',
    'should_trigger_tiebreaker',
    'merge_with_tiebreaker',
    'calculate_consensus',
    'calculate_consensus_with_details',
    'calculate_staged_consensus',
    'is_consensus_acceptable',
]
