"""
Tiebreaker Trigger & Merge

Small state machine that requests one arbitration vote when the primary
vote is too close to call.

States:
    NO_TIEBREAKER          initial
    REQUESTED              trigger held and an arbiter is available
    MERGED                 arbitration vote folded in (terminal)
    RESOLVED_NO_TIEBREAKER trigger did not hold, no arbiter, or the call failed (terminal)

After a merge the caller recomputes consensus from the enlarged vote set;
nothing here patches a previous result.

Usage:
    session = TiebreakerSession()
    trigger = session.evaluate(votes, arbiter_available=bool(arbiters))
    if session.state == TiebreakerState.REQUESTED:
        vote = await call_arbiter(...)
        if vote:
            votes = session.merge(votes, vote)
        else:
            session.abandon("arbiter failed")
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Any, List, Optional

from config.settings import TIEBREAKER, TiebreakerConfig
from consensus.models import Vote, VoteTally, Stage, PRIMARY_STAGES
from consensus.voting import tally_votes
from services.exceptions import TiebreakerStateError

logger = logging.getLogger(__name__)


class TiebreakerState(Enum):
    NO_TIEBREAKER = "no_tiebreaker"
    REQUESTED = "requested"
    MERGED = "merged"
    RESOLVED_NO_TIEBREAKER = "resolved_no_tiebreaker"


TERMINAL_STATES = (TiebreakerState.MERGED, TiebreakerState.RESOLVED_NO_TIEBREAKER)


@dataclass
class TiebreakerTrigger:
    should_trigger: bool
    reason: str
    tally: VoteTally
    weight_difference: float
    primary_vote_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shouldTrigger": self.should_trigger,
            "reason": self.reason,
            "weightDifference": round(self.weight_difference, 4),
            "primaryVoteCount": self.primary_vote_count,
            "tally": self.tally.to_dict(),
        }


def primary_votes(votes: List[Vote]) -> List[Vote]:
    return [v for v in votes if v.stage in PRIMARY_STAGES]


def should_trigger_tiebreaker(
    votes: List[Vote],
    config: TiebreakerConfig = None,
) -> TiebreakerTrigger:
    """
    Trigger only when the weighted margin is below threshold AND enough
    primary-stage votes exist. Tiebreaker-stage votes are not counted.
    """
    config = config or TIEBREAKER
    primary = primary_votes(votes)
    tally = tally_votes(primary, config.threshold)
    count = len(primary)

    if count < config.min_primary_votes:
        return TiebreakerTrigger(
            should_trigger=False,
            reason=f"Insufficient votes for tiebreaker ({count} < {config.min_primary_votes})",
            tally=tally,
            weight_difference=tally.weight_difference,
            primary_vote_count=count,
        )

    if not tally.is_close_vote:
        return TiebreakerTrigger(
            should_trigger=False,
            reason=f"Clear majority ({tally.weight_difference * 100:.1f}% margin)",
            tally=tally,
            weight_difference=tally.weight_difference,
            primary_vote_count=count,
        )

    return TiebreakerTrigger(
        should_trigger=True,
        reason=(
            f"Close vote: {tally.weight_difference * 100:.1f}% margin "
            f"(threshold {config.threshold * 100:.0f}%)"
        ),
        tally=tally,
        weight_difference=tally.weight_difference,
        primary_vote_count=count,
    )


def is_tiebreaker_provider(provider_id: str, config: TiebreakerConfig = None) -> bool:
    config = config or TIEBREAKER
    return provider_id.lower() in config.providers


def merge_with_tiebreaker(votes: List[Vote], tiebreaker_vote: Vote) -> List[Vote]:
    """New vote list with the arbitration vote appended, tagged stage=tiebreaker"""
    if tiebreaker_vote.stage != Stage.TIEBREAKER:
        tiebreaker_vote = replace(tiebreaker_vote, stage=Stage.TIEBREAKER)
    return [*votes, tiebreaker_vote]


def analyze_tiebreaker_impact(
    before: List[Vote],
    after: List[Vote],
    threshold: float = None,
) -> Dict[str, Any]:
    threshold = TIEBREAKER.threshold if threshold is None else threshold
    previous = tally_votes(before, threshold)
    new = tally_votes(after, threshold)
    return {
        "changedDecision": previous.decision != new.decision,
        "previousDecision": previous.decision.value,
        "newDecision": new.decision.value,
        "weightShift": round(
            (new.buy_weight - new.sell_weight) - (previous.buy_weight - previous.sell_weight), 4
        ),
        "newWeightDifference": round(new.weight_difference, 4),
    }


class TiebreakerSession:
    """
    One analysis' pass through the tiebreaker state machine.

    Transitions:
        NO_TIEBREAKER -> REQUESTED | RESOLVED_NO_TIEBREAKER   (evaluate)
        REQUESTED     -> MERGED                               (merge)
        REQUESTED     -> RESOLVED_NO_TIEBREAKER               (abandon)
    """

    def __init__(self, config: TiebreakerConfig = None):
        self.config = config or TIEBREAKER
        self.state = TiebreakerState.NO_TIEBREAKER
        self.trigger: Optional[TiebreakerTrigger] = None
        self.resolution_reason: Optional[str] = None
        self.impact: Optional[Dict[str, Any]] = None

    def _move(self, target: TiebreakerState):
        allowed = {
            TiebreakerState.NO_TIEBREAKER: (
                TiebreakerState.REQUESTED,
                TiebreakerState.RESOLVED_NO_TIEBREAKER,
            ),
            TiebreakerState.REQUESTED: (
                TiebreakerState.MERGED,
                TiebreakerState.RESOLVED_NO_TIEBREAKER,
            ),
        }
        if target not in allowed.get(self.state, ()):
            raise TiebreakerStateError(self.state.value, target.value)
        self.state = target

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def evaluate(self, votes: List[Vote], arbiter_available: bool = True) -> TiebreakerTrigger:
        self.trigger = should_trigger_tiebreaker(votes, self.config)

        if not self.trigger.should_trigger:
            self.resolution_reason = self.trigger.reason
            self._move(TiebreakerState.RESOLVED_NO_TIEBREAKER)
            return self.trigger

        if not self.config.enabled or not arbiter_available:
            self.resolution_reason = "No tiebreaker provider available"
            logger.warning(
                f"[TIEBREAKER] {self.trigger.reason} but no tiebreaker provider available - "
                f"proceeding with original votes"
            )
            self._move(TiebreakerState.RESOLVED_NO_TIEBREAKER)
            return self.trigger

        logger.info(f"[TIEBREAKER] Requested: {self.trigger.reason}")
        self._move(TiebreakerState.REQUESTED)
        return self.trigger

    def merge(self, votes: List[Vote], tiebreaker_vote: Vote) -> List[Vote]:
        self._move(TiebreakerState.MERGED)
        merged = merge_with_tiebreaker(votes, tiebreaker_vote)
        self.impact = analyze_tiebreaker_impact(votes, merged, self.config.threshold)
        self.resolution_reason = f"Merged vote from {tiebreaker_vote.provider_id}"
        logger.info(
            f"[TIEBREAKER] {tiebreaker_vote.provider_id} voted {tiebreaker_vote.decision.value} - "
            f"{self.impact['previousDecision']} -> {self.impact['newDecision']}"
        )
        return merged

    def abandon(self, reason: str) -> None:
        self._move(TiebreakerState.RESOLVED_NO_TIEBREAKER)
        self.resolution_reason = reason
        logger.warning(f"[TIEBREAKER] Abandoned: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "reason": self.resolution_reason,
            "trigger": self.trigger.to_dict() if self.trigger else None,
            "impact": self.impact,
        }
