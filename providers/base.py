"""
Inference Provider Base Class

Every provider adapter answers one question: given item text and/or
images, return a canonical analysis dict or raise ProviderFailure.
Timeouts and fan-out live in pipeline.fanout, not here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from consensus.models import Stage


DEFAULT_PROMPT = """You are an expert appraiser for resale items.
Identify the item and estimate its current resale value.

Respond with ONLY a JSON object:
{
  "itemName": "specific item name",
  "category": "category key (e.g. coins, lego, pokemon_cards, vinyl_records, sneakers)",
  "estimatedValue": 0.00,
  "decision": "BUY or SELL",
  "confidence": 0.0,
  "summaryReasoning": "one or two sentences",
  "valuationFactors": ["factor", "factor"]
}
"""

TIEBREAKER_PROMPT = """Several appraisers disagree about this item.
Weigh their estimates and give your own independent call.
"""


@dataclass
class AnalysisRequest:
    """What every provider in a stage is asked about"""
    item_text: str = ""
    images: List[Dict[str, Any]] = field(default_factory=list)  # {"media_type", "data"} base64
    prompt: str = DEFAULT_PROMPT
    category_hint: Optional[str] = None
    context: Optional[str] = None  # prior votes summary for arbiters

    def user_message(self) -> str:
        parts = []
        if self.item_text:
            parts.append(f"Item: {self.item_text}")
        if self.category_hint:
            parts.append(f"Category hint: {self.category_hint}")
        if self.context:
            parts.append(self.context)
        if not parts:
            parts.append("Identify and appraise the item in the attached image(s).")
        return "\n".join(parts)


class InferenceProvider(ABC):
    """
    Base class for AI inference providers.

    Subclasses implement `analyze`. Any failure must surface as
    services.exceptions.ProviderFailure (or a subclass).
    """

    provider_id: str = "base"
    stage: Stage = Stage.TEXT
    supports_vision: bool = False
    timeout: float = 30.0

    @abstractmethod
    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        """Return a canonical analysis dict (see providers.parsers)"""
        pass

    def accepts(self, request: AnalysisRequest) -> bool:
        """Whether this provider can answer the request at all"""
        if request.images and not request.item_text:
            return self.supports_vision
        return True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.provider_id} stage={self.stage.value}>"
