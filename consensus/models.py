"""
Consensus Data Model

Votes, tallies and results shared by the voting, confidence, tiebreaker
and engine modules. A vote from any pipeline stage uses the same Vote
type, tagged by its `stage`, so tally and confidence logic never branch
on where a vote came from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, List


class Decision(str, Enum):
    """A vote's buy/sell call. Exactly one of two values."""
    BUY = "BUY"
    SELL = "SELL"


class Stage(str, Enum):
    """Pipeline stage a vote was cast in"""
    VISION = "vision"
    TEXT = "text"
    MARKET_SEARCH = "market_search"
    TIEBREAKER = "tiebreaker"


class AnalysisQuality(str, Enum):
    OPTIMAL = "OPTIMAL"
    DEGRADED = "DEGRADED"
    FALLBACK = "FALLBACK"


PRIMARY_STAGES = (Stage.VISION, Stage.TEXT, Stage.MARKET_SEARCH)


def coerce_decision(value: Any) -> Decision:
    """Map any decision-like value onto BUY/SELL. Anything not BUY is SELL."""
    if isinstance(value, Decision):
        return value
    return Decision.BUY if str(value).strip().upper() == "BUY" else Decision.SELL


def coerce_stage(value: Any) -> Stage:
    if isinstance(value, Stage):
        return value
    try:
        return Stage(str(value).strip().lower())
    except ValueError:
        return Stage.TEXT


@dataclass
class Vote:
    """One provider's independent opinion about an item"""
    provider_id: str
    stage: Stage
    item_name: str
    category: str
    estimated_value: float
    decision: Decision
    confidence: float  # 0-1
    response_time_ms: int = 0
    raw_response: Any = None
    weight: float = 1.0

    def __post_init__(self):
        self.stage = coerce_stage(self.stage)
        self.decision = coerce_decision(self.decision)
        self.confidence = max(0.0, min(1.0, float(self.confidence or 0)))
        self.estimated_value = float(self.estimated_value or 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "providerId": self.provider_id,
            "stage": self.stage.value,
            "itemName": self.item_name,
            "category": self.category,
            "estimatedValue": self.estimated_value,
            "decision": self.decision.value,
            "confidence": self.confidence,
            "responseTimeMs": self.response_time_ms,
            "weight": round(self.weight, 4),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vote":
        """Build a vote from a camelCase or snake_case payload"""
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            provider_id=pick("providerId", "provider_id", "provider", default="unknown"),
            stage=pick("stage", default=Stage.TEXT),
            item_name=pick("itemName", "item_name", default="Unknown Item"),
            category=pick("category", default="general"),
            estimated_value=pick("estimatedValue", "estimated_value", default=0),
            decision=pick("decision", default=Decision.SELL),
            confidence=pick("confidence", default=0),
            response_time_ms=int(pick("responseTimeMs", "response_time_ms", default=0)),
            raw_response=pick("rawResponse", "raw_response"),
            weight=float(pick("weight", default=1.0)),
        )


@dataclass
class VoteTally:
    """Weighted BUY/SELL support for a vote set"""
    decision: Decision
    buy_weight: float
    sell_weight: float
    total_weight: float
    weight_difference: float  # |buy - sell| / total
    is_close_vote: bool
    buy_count: int = 0
    sell_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision": self.decision.value,
            "buyWeight": round(self.buy_weight, 4),
            "sellWeight": round(self.sell_weight, 4),
            "totalWeight": round(self.total_weight, 4),
            "weightDifference": round(self.weight_difference, 4),
            "isCloseVote": self.is_close_vote,
            "votes": {"BUY": self.buy_count, "SELL": self.sell_count},
        }


@dataclass
class VoteStats:
    """Aggregate agreement signals used by the confidence calculator"""
    avg_confidence: float
    weighted_value: float
    value_agreement: float
    decision_agreement: float
    total_votes: int


@dataclass
class AuthorityData:
    """Structured reference data from a trusted catalog source"""
    source: str
    verified: bool = False
    item_details: Dict[str, Any] = field(default_factory=dict)
    price_data: Optional[Dict[str, Any]] = None

    def reference_price(self) -> Optional[float]:
        """Best single price from the source's price ranges, if any"""
        if not self.price_data:
            return None
        for key in ("market", "median", "average", "mid", "value"):
            value = self.price_data.get(key)
            if isinstance(value, (int, float)) and value > 0:
                return float(value)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "verified": self.verified,
            "itemDetails": self.item_details,
            "priceData": self.price_data,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["AuthorityData"]:
        if not data:
            return None
        return cls(
            source=data.get("source", "unknown"),
            verified=bool(data.get("verified", False)),
            item_details=data.get("itemDetails") or data.get("item_details") or {},
            price_data=data.get("priceData") or data.get("price_data"),
        )


@dataclass(frozen=True)
class ConsensusMetrics:
    avg_ai_confidence: float
    decision_agreement: float
    value_agreement: float
    participation_rate: float
    authority_verified: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgAIConfidence": round(self.avg_ai_confidence, 4),
            "decisionAgreement": round(self.decision_agreement, 4),
            "valueAgreement": round(self.value_agreement, 4),
            "participationRate": round(self.participation_rate, 4),
            "authorityVerified": self.authority_verified,
        }


@dataclass(frozen=True)
class ConsensusResult:
    """Final blended result. Immutable once built."""
    item_name: str
    estimated_value: float
    decision: Decision
    confidence: int  # 0-100
    total_votes: int
    analysis_quality: AnalysisQuality
    consensus_metrics: ConsensusMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemName": self.item_name,
            "estimatedValue": self.estimated_value,
            "decision": self.decision.value,
            "confidence": self.confidence,
            "totalVotes": self.total_votes,
            "analysisQuality": self.analysis_quality.value,
            "consensusMetrics": self.consensus_metrics.to_dict(),
        }


@dataclass
class StagedVotes:
    """Votes bucketed by pipeline stage"""
    vision: List[Vote] = field(default_factory=list)
    text: List[Vote] = field(default_factory=list)
    market_search: List[Vote] = field(default_factory=list)
    tiebreaker: List[Vote] = field(default_factory=list)

    def flatten(self) -> List[Vote]:
        return [*self.vision, *self.text, *self.market_search, *self.tiebreaker]

    def primary(self) -> List[Vote]:
        return [*self.vision, *self.text, *self.market_search]

    @classmethod
    def from_votes(cls, votes: List[Vote]) -> "StagedVotes":
        staged = cls()
        for vote in votes:
            getattr(staged, vote.stage.value).append(vote)
        return staged
