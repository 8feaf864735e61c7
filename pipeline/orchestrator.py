"""
Pipeline Orchestrator

Single entry point for one item analysis.

Flow:
1. Identify: vision + text providers fan out concurrently
2. Categorize: AI vote category -> request hint -> name overrides -> keywords -> general
3. Evidence: market-search providers, reference-source cascade and
   marketplace search run concurrently for the identified item
4. Consensus over every vote collected so far
5. Tiebreaker: at most one gated arbitration call, then consensus is
   recomputed from the enlarged vote set
6. Benchmark job handed to the recorder (fire-and-forget)

No stage failure escapes: provider errors become outcome entries, an
empty stage or unknown category becomes a warning, and the caller always
gets a well-formed ConsensusResult.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from benchmarks.recorder import BenchmarkJob
from categories.detector import CategoryDetection, detect_item_category, SOURCE_DEFAULT
from config.settings import CONSENSUS, TIEBREAKER, ROUTER, ConsensusConfig, TiebreakerConfig, RouterConfig
from consensus.engine import calculate_consensus
from consensus.models import Vote, Stage, StagedVotes, AuthorityData, ConsensusResult
from consensus.tiebreaker import TiebreakerSession, TiebreakerState, is_tiebreaker_provider
from consensus.voting import select_consensus_name
from providers.base import InferenceProvider, AnalysisRequest, TIEBREAKER_PROMPT
from services.exceptions import HydraException, ExternalServiceError, NoVotesAvailable, AmbiguousCategory
from services.reference_sources import (
    ReferenceSource,
    MarketplaceSearchSource,
    extract_identifiers,
    run_cascade,
)
from .fanout import collect_stage_votes, ProviderOutcome

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Final result from the analysis pipeline"""
    analysis_id: str
    consensus: ConsensusResult
    category: CategoryDetection
    votes: StagedVotes
    authority: Optional[AuthorityData] = None
    market_summary: Optional[Dict[str, Any]] = None
    tiebreaker: Dict[str, Any] = field(default_factory=dict)
    provider_outcomes: Dict[str, ProviderOutcome] = field(default_factory=dict)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    benchmark_queued: bool = False

    # Timing
    total_time_ms: int = 0
    identify_time_ms: int = 0
    evidence_time_ms: int = 0
    tiebreaker_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysisId": self.analysis_id,
            **self.consensus.to_dict(),
            "category": self.category.to_dict(),
            "authority": self.authority.to_dict() if self.authority else None,
            "marketSummary": self.market_summary,
            "tiebreaker": self.tiebreaker,
            "votes": [v.to_dict() for v in self.votes.flatten()],
            "providers": {pid: o.to_dict() for pid, o in self.provider_outcomes.items()},
            "warnings": self.warnings,
            "benchmarkQueued": self.benchmark_queued,
            "timing": {
                "totalMs": self.total_time_ms,
                "identifyMs": self.identify_time_ms,
                "evidenceMs": self.evidence_time_ms,
                "tiebreakerMs": self.tiebreaker_time_ms,
            },
        }


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def _leading_vote(votes: List[Vote]) -> Optional[Vote]:
    if not votes:
        return None
    return max(votes, key=lambda v: v.weight * v.confidence)


def _arbiter_context(votes: List[Vote]) -> str:
    lines = [TIEBREAKER_PROMPT.strip(), "Appraiser votes:"]
    for v in votes:
        lines.append(f"- {v.provider_id}: {v.decision.value} at ${v.estimated_value:.2f} (confidence {v.confidence:.2f})")
    return "\n".join(lines)


class AnalysisPipeline:
    """
    Wires providers, reference sources and the benchmark recorder
    around the pure consensus core.
    """

    def __init__(
        self,
        providers: List[InferenceProvider],
        reference_sources: Dict[str, ReferenceSource] = None,
        marketplace: Optional[MarketplaceSearchSource] = None,
        recorder=None,
        consensus_config: ConsensusConfig = None,
        tiebreaker_config: TiebreakerConfig = None,
        router_config: RouterConfig = None,
    ):
        self.providers = providers
        self.reference_sources = reference_sources or {}
        self.marketplace = marketplace
        self.recorder = recorder
        self.consensus_config = consensus_config or CONSENSUS
        self.tiebreaker_config = tiebreaker_config or TIEBREAKER
        self.router_config = router_config or ROUTER

    def _by_stage(self, stage: Stage) -> List[InferenceProvider]:
        return [p for p in self.providers if p.stage == stage]

    def _arbiters(self) -> List[InferenceProvider]:
        """Tiebreaker-stage providers plus any provider named in the tiebreaker config"""
        return [
            p for p in self.providers
            if p.stage == Stage.TIEBREAKER or is_tiebreaker_provider(p.provider_id, self.tiebreaker_config)
        ]

    # ----------------------------------------------------------
    # Stage 1: identify
    # ----------------------------------------------------------

    async def _identify(self, request: AnalysisRequest, result: PipelineResult):
        (vision, vision_out), (text, text_out) = await asyncio.gather(
            collect_stage_votes(self._by_stage(Stage.VISION), request, Stage.VISION),
            collect_stage_votes(self._by_stage(Stage.TEXT), request, Stage.TEXT),
        )
        result.votes.vision.extend(vision)
        result.votes.text.extend(text)
        result.provider_outcomes.update(vision_out)
        result.provider_outcomes.update(text_out)

        if not vision and not text:
            attempted = len(vision_out) + len(text_out)
            warning = NoVotesAvailable("identify", attempted)
            logger.warning(f"[PIPELINE] {warning.message}")
            result.warnings.append(warning.to_dict())

    # ----------------------------------------------------------
    # Stage 3: evidence
    # ----------------------------------------------------------

    async def _market_search(self, item_name: str, result: PipelineResult) -> Optional[Dict[str, Any]]:
        if not self.marketplace:
            return None
        try:
            found = await self.marketplace.search(item_name)
        except HydraException as e:
            logger.warning(f"[PIPELINE] Marketplace search failed: {e}")
            result.warnings.append(e.to_dict())
            return None
        except Exception as e:
            logger.warning(f"[PIPELINE] Marketplace search raised {type(e).__name__}: {e}")
            result.warnings.append(ExternalServiceError("marketplace", "Marketplace search failed", cause=e).to_dict())
            return None
        return (found or {}).get("priceAnalysis")

    async def _gather_evidence(
        self,
        request: AnalysisRequest,
        item_name: str,
        category: str,
        result: PipelineResult,
    ):
        search_request = AnalysisRequest(
            item_text=item_name,
            prompt=request.prompt,
            category_hint=category,
        )
        identifiers = extract_identifiers(item_name, request.item_text)

        (market_votes, market_out), authority, summary = await asyncio.gather(
            collect_stage_votes(self._by_stage(Stage.MARKET_SEARCH), search_request, Stage.MARKET_SEARCH),
            run_cascade(category, self.reference_sources, identifiers, self.router_config),
            self._market_search(item_name, result),
        )
        result.votes.market_search.extend(market_votes)
        result.provider_outcomes.update(market_out)
        result.authority = authority
        result.market_summary = summary

    # ----------------------------------------------------------
    # Stage 5: tiebreaker
    # ----------------------------------------------------------

    async def _run_tiebreaker(self, request: AnalysisRequest, result: PipelineResult) -> List[Vote]:
        votes = result.votes.flatten()
        arbiters = self._arbiters()
        session = TiebreakerSession(self.tiebreaker_config)
        session.evaluate(votes, arbiter_available=bool(arbiters))

        if session.state == TiebreakerState.REQUESTED:
            arbiter_request = AnalysisRequest(
                item_text=request.item_text or result.consensus.item_name,
                prompt=request.prompt,
                category_hint=result.category.category,
                context=_arbiter_context(votes),
            )
            # Single gated call: first configured arbiter only
            arbiter_votes, outcomes = await collect_stage_votes(
                arbiters[:1], arbiter_request, Stage.TIEBREAKER, tiebreaker=self.tiebreaker_config
            )
            result.provider_outcomes.update(outcomes)
            if arbiter_votes:
                votes = session.merge(votes, arbiter_votes[0])
                result.votes.tiebreaker.append(votes[-1])
            else:
                session.abandon(f"{arbiters[0].provider_id} returned no vote")

        result.tiebreaker = session.to_dict()
        return votes

    # ----------------------------------------------------------
    # Entry point
    # ----------------------------------------------------------

    async def analyze(self, request: AnalysisRequest) -> PipelineResult:
        start = time.time()
        analysis_id = uuid.uuid4().hex[:12]
        result = PipelineResult(
            analysis_id=analysis_id,
            consensus=calculate_consensus([]),
            category=CategoryDetection("general", 0.3),
            votes=StagedVotes(),
        )
        logger.info(f"[PIPELINE] {analysis_id}: '{request.item_text[:60]}' ({len(request.images)} images)")

        # 1. identify
        stage_start = time.time()
        await self._identify(request, result)
        result.identify_time_ms = _elapsed_ms(stage_start)

        primary = result.votes.primary()
        item_name = select_consensus_name(primary) if primary else (request.item_text or "Unknown Item")

        # 2. categorize
        leading = _leading_vote(primary)
        result.category = detect_item_category(
            item_name,
            category_hint=request.category_hint,
            ai_category=leading.category if leading else None,
            description=request.item_text if request.item_text != item_name else "",
        )
        if result.category.source == SOURCE_DEFAULT:
            result.warnings.append(AmbiguousCategory(item_name).to_dict())

        # 3. evidence
        stage_start = time.time()
        await self._gather_evidence(request, item_name, result.category.category, result)
        result.evidence_time_ms = _elapsed_ms(stage_start)

        # 4. consensus
        result.consensus = calculate_consensus(result.votes.flatten(), result.authority, self.consensus_config)

        # 5. tiebreaker, then recompute from the full vote set
        stage_start = time.time()
        votes = await self._run_tiebreaker(request, result)
        result.tiebreaker_time_ms = _elapsed_ms(stage_start)
        if result.tiebreaker.get("state") == TiebreakerState.MERGED.value:
            result.consensus = calculate_consensus(votes, result.authority, self.consensus_config)

        # 6. benchmark (never awaited, never raises)
        if self.recorder is not None:
            result.benchmark_queued = self.recorder.submit(BenchmarkJob(
                analysis_id=analysis_id,
                item_name=result.consensus.item_name,
                votes=result.votes,
                category=result.category.category,
                category_confidence=result.category.confidence,
                consensus=result.consensus,
                authority=result.authority,
                market_summary=result.market_summary,
                had_image=bool(request.images),
            ))

        result.total_time_ms = _elapsed_ms(start)
        logger.info(
            f"[PIPELINE] {analysis_id}: {result.consensus.decision.value} "
            f"${result.consensus.estimated_value:.2f} @ {result.consensus.confidence}% "
            f"[{result.category.category}] in {result.total_time_ms}ms"
        )
        return result
