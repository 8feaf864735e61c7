"""
Stage Fan-out

Calls every provider of a stage concurrently, each under its own
timeout, and waits for all of them to settle. A provider that fails or
times out contributes zero votes and an outcome entry; nothing it does
can cancel its siblings.

Usage:
    votes, outcomes = await collect_stage_votes(providers, request, Stage.VISION)
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

from config.settings import WeightConfig, TiebreakerConfig
from consensus.models import Vote, Stage
from consensus.voting import create_vote
from providers.base import InferenceProvider, AnalysisRequest
from services.exceptions import ProviderFailure, ProviderTimeout

logger = logging.getLogger(__name__)


@dataclass
class ProviderOutcome:
    """How one provider call ended"""
    provider_id: str
    ok: bool
    elapsed_ms: int
    error: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"ok": self.ok, "elapsedMs": self.elapsed_ms}
        if self.error:
            result["error"] = self.error
            result["code"] = self.code
        return result


async def _call_provider(
    provider: InferenceProvider,
    request: AnalysisRequest,
    stage: Stage,
    weights: Optional[WeightConfig],
    tiebreaker: Optional[TiebreakerConfig],
) -> Tuple[Optional[Vote], ProviderOutcome]:
    start = time.time()
    try:
        try:
            analysis = await asyncio.wait_for(provider.analyze(request), timeout=provider.timeout)
        except asyncio.TimeoutError:
            raise ProviderTimeout(provider.provider_id, provider.timeout)
    except ProviderFailure as e:
        elapsed = int((time.time() - start) * 1000)
        logger.warning(f"[FANOUT] {e}")
        return None, ProviderOutcome(provider.provider_id, False, elapsed, e.message, e.code)
    except Exception as e:
        # Adapter bug or SDK surprise; same treatment as a provider failure
        elapsed = int((time.time() - start) * 1000)
        logger.error(f"[FANOUT] {provider.provider_id} raised {type(e).__name__}: {e}")
        return None, ProviderOutcome(provider.provider_id, False, elapsed, str(e), "PROVIDER_FAILURE")

    elapsed = int((time.time() - start) * 1000)
    vote = create_vote(
        provider.provider_id,
        analysis,
        stage=stage,
        response_time_ms=elapsed,
        fallback_item_name=request.item_text or None,
        weights=weights,
        tiebreaker=tiebreaker,
    )
    logger.info(
        f"[FANOUT] {provider.provider_id}: {vote.decision.value} ${vote.estimated_value:.2f} "
        f"conf={vote.confidence:.2f} ({elapsed}ms)"
    )
    return vote, ProviderOutcome(provider.provider_id, True, elapsed)


async def collect_stage_votes(
    providers: List[InferenceProvider],
    request: AnalysisRequest,
    stage: Stage,
    weights: WeightConfig = None,
    tiebreaker: TiebreakerConfig = None,
) -> Tuple[List[Vote], Dict[str, ProviderOutcome]]:
    """
    Fan a request out to every provider that accepts it.

    Returns:
        (votes, outcomes) - votes in provider order, one outcome per
        provider called
    """
    eligible = [p for p in providers if p.accepts(request)]
    if not eligible:
        logger.info(f"[FANOUT] No eligible providers for stage {stage.value}")
        return [], {}

    results = await asyncio.gather(
        *[_call_provider(p, request, stage, weights, tiebreaker) for p in eligible]
    )

    votes = [vote for vote, _ in results if vote is not None]
    outcomes = {outcome.provider_id: outcome for _, outcome in results}

    logger.info(f"[FANOUT] Stage {stage.value}: {len(votes)}/{len(eligible)} providers voted")
    return votes, outcomes
