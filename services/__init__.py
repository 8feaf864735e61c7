"""
Services Package

Error types, reference-source adapters, application state and the
FastAPI app factory.
"""

from .exceptions import (
    HydraException,
    ProviderFailure,
    ProviderTimeout,
    MalformedResponse,
    NoVotesAvailable,
    AmbiguousCategory,
    ReferenceSourceMiss,
    GroundTruthUnavailable,
    ValidationError,
    ConfigurationError,
)

__all__ = [
    'HydraException',
    'ProviderFailure',
    'ProviderTimeout',
    'MalformedResponse',
    'NoVotesAvailable',
    'AmbiguousCategory',
    'ReferenceSourceMiss',
    'GroundTruthUnavailable',
    'ValidationError',
    'ConfigurationError',
]
