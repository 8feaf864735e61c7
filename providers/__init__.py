"""
Providers Module - AI Inference Provider Boundary

Each provider is a black box that returns one canonical analysis or
raises ProviderFailure.
"""

from .base import InferenceProvider, AnalysisRequest
from .parsers import parse_analysis_response, normalize_decision

__all__ = [
    'InferenceProvider',
    'AnalysisRequest',
    'parse_analysis_response',
    'normalize_decision',
]
