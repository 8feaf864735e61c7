"""
Benchmarks Module - Ground-Truth Scoring of Provider Votes

Usage:
    from benchmarks import BenchmarkRecorder, BenchmarkJob, BenchmarkStore
"""

from .scorer import (
    BenchmarkContext,
    BenchmarkRecord,
    score_vote,
    score_all_votes,
    get_accuracy_summary,
    resolve_ground_truth,
)
from .store import BenchmarkStore
from .recorder import BenchmarkRecorder, BenchmarkJob
from .aggregator import build_scorecards

__all__ = [
    'BenchmarkContext',
    'BenchmarkRecord',
    'score_vote',
    'score_all_votes',
    'get_accuracy_summary',
    'resolve_ground_truth',
    'BenchmarkStore',
    'BenchmarkRecorder',
    'BenchmarkJob',
    'build_scorecards',
]
