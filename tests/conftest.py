import asyncio
from collections.abc import Callable
from typing import Any, Dict, List, Optional

import pytest

from consensus.models import AuthorityData, Stage, Vote
from providers.base import AnalysisRequest, InferenceProvider
from services.reference_sources import MarketplaceSearchSource, ReferenceSource, summarize_prices


class ScriptedProvider(InferenceProvider):
    """Provider double that returns a fixed analysis, sleeps, or raises"""

    def __init__(
        self,
        provider_id: str,
        stage: Stage = Stage.TEXT,
        analysis: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        timeout: float = 1.0,
        supports_vision: bool = True,
    ) -> None:
        self.provider_id = provider_id
        self.stage = stage
        self.analysis = analysis or {}
        self.error = error
        self.delay = delay
        self.timeout = timeout
        self.supports_vision = supports_vision
        self.requests: List[AnalysisRequest] = []

    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return dict(self.analysis)


class ScriptedSource(ReferenceSource):
    """Reference source double with a fixed lookup outcome"""

    def __init__(
        self,
        source_id: str,
        authority: Optional[AuthorityData] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        configured: bool = True,
    ) -> None:
        self.source_id = source_id
        self.authority = authority
        self.error = error
        self.delay = delay
        self._configured = configured
        self.calls: List[Dict[str, str]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    async def lookup(self, identifiers: Dict[str, str], category: str) -> AuthorityData:
        self.calls.append(identifiers)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.authority


class ScriptedMarketplace(MarketplaceSearchSource):
    def __init__(self, prices: Optional[List[float]] = None, error: Optional[Exception] = None) -> None:
        self.prices = prices or []
        self.error = error
        self.queries: List[str] = []

    async def search(self, item_name: str) -> Dict[str, Any]:
        self.queries.append(item_name)
        if self.error is not None:
            raise self.error
        return {"listings": [], "priceAnalysis": summarize_prices(self.prices)}


class RecordingRecorder:
    """Stands in for BenchmarkRecorder at the pipeline seam"""

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.jobs: List[Any] = []

    def submit(self, job: Any) -> bool:
        self.jobs.append(job)
        return self.accept


@pytest.fixture
def make_source() -> Callable[..., ScriptedSource]:
    def _make_source(source_id: str, **kwargs: Any) -> ScriptedSource:
        return ScriptedSource(source_id, **kwargs)

    return _make_source


@pytest.fixture
def make_marketplace() -> Callable[..., ScriptedMarketplace]:
    def _make_marketplace(**kwargs: Any) -> ScriptedMarketplace:
        return ScriptedMarketplace(**kwargs)

    return _make_marketplace


@pytest.fixture
def recorder() -> RecordingRecorder:
    return RecordingRecorder()


@pytest.fixture
def make_vote() -> Callable[..., Vote]:
    def _make_vote(
        decision: str = "BUY",
        value: float = 20.0,
        *,
        provider_id: str = "openai",
        confidence: float = 0.8,
        stage: Stage = Stage.TEXT,
        weight: float = 1.0,
        item_name: str = "Test Item",
        category: str = "general",
        response_time_ms: int = 500,
    ) -> Vote:
        return Vote(
            provider_id=provider_id,
            stage=stage,
            item_name=item_name,
            category=category,
            estimated_value=value,
            decision=decision,
            confidence=confidence,
            response_time_ms=response_time_ms,
            weight=weight,
        )

    return _make_vote


@pytest.fixture
def make_analysis() -> Callable[..., Dict[str, Any]]:
    def _make_analysis(
        decision: str = "BUY",
        value: float = 20.0,
        *,
        item_name: str = "Test Item",
        category: str = "general",
        confidence: float = 0.8,
    ) -> Dict[str, Any]:
        return {
            "itemName": item_name,
            "category": category,
            "estimatedValue": value,
            "decision": decision,
            "confidence": confidence,
        }

    return _make_analysis


@pytest.fixture
def make_provider() -> Callable[..., ScriptedProvider]:
    def _make_provider(provider_id: str, **kwargs: Any) -> ScriptedProvider:
        return ScriptedProvider(provider_id, **kwargs)

    return _make_provider
