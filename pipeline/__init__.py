"""
Pipeline Module - Staged Multi-Provider Analysis

Stages:
- Identify: vision + text providers, fanned out concurrently
- Evidence: market-search providers + reference-source cascade
- Consensus, then an optional single tiebreaker call
- Benchmark hand-off (fire-and-forget)

Usage:
    from pipeline import AnalysisPipeline
    result = await AnalysisPipeline(providers).analyze(request)
"""

from .fanout import collect_stage_votes, ProviderOutcome
from .orchestrator import AnalysisPipeline, PipelineResult

__all__ = [
    'collect_stage_votes',
    'ProviderOutcome',
    'AnalysisPipeline',
    'PipelineResult',
]
