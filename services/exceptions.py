"""
Custom Exception Hierarchy for Hydra Consensus

Failures local to one provider or one reference source are raised at
that boundary and absorbed by the caller (fan-out, cascade, benchmark
worker). None of them escape the consensus path: uncertainty reaches
the caller as low confidence and a FALLBACK quality tier.

Usage:
    from services.exceptions import ProviderFailure, ReferenceSourceMiss

    try:
        authority = await source.lookup(identifiers, category)
    except ReferenceSourceMiss:
        continue  # next source in the cascade
"""

from typing import Optional, Dict, Any


class HydraException(Exception):
    """
    Base exception for all Hydra errors.

    Carries a machine-readable code and details dict so the API layer
    can render any subclass uniformly.
    """

    def __init__(
        self,
        message: str,
        code: str = "HYDRA_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# ============================================================
# Provider Errors
# ============================================================

class ProviderFailure(HydraException):
    """One inference provider failed. Contributes zero votes; never fatal."""

    def __init__(
        self,
        provider: str,
        reason: str = "request failed",
        code: str = "PROVIDER_FAILURE",
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"Provider {provider} failed: {reason}",
            code=code,
            details={"provider": provider, "reason": reason},
            cause=cause,
        )
        self.provider = provider


class ProviderTimeout(ProviderFailure):
    """Provider did not answer within its per-call timeout."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(
            provider=provider,
            reason=f"timed out after {timeout:.1f}s",
            code="PROVIDER_TIMEOUT",
        )
        self.details["timeout_seconds"] = timeout


class MalformedResponse(ProviderFailure):
    """Provider answered but the payload could not be parsed into an analysis."""

    def __init__(self, provider: str, reason: str = "unparseable response", raw: Optional[str] = None):
        super().__init__(provider=provider, reason=reason, code="MALFORMED_RESPONSE")
        if raw:
            self.details["raw"] = raw[:200]


class NoVotesAvailable(HydraException):
    """Every provider in a stage failed."""

    def __init__(self, stage: str, attempted: int = 0):
        super().__init__(
            message=f"No usable votes from stage '{stage}' ({attempted} providers attempted)",
            code="NO_VOTES_AVAILABLE",
            details={"stage": stage, "attempted": attempted},
        )


# ============================================================
# Category & Reference Source Errors
# ============================================================

class AmbiguousCategory(HydraException):
    """No override or keyword matched an item name."""

    def __init__(self, item_name: str):
        super().__init__(
            message=f"Could not detect category for item: {item_name[:50]}",
            code="AMBIGUOUS_CATEGORY",
            details={"item_name": item_name},
        )


class ReferenceSourceMiss(HydraException):
    """A reference source had no match. The cascade moves to the next source."""

    def __init__(
        self,
        source: str,
        category: str,
        reason: str = "no match",
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"Reference source {source} returned {reason} for {category}",
            code="REFERENCE_SOURCE_MISS",
            details={"source": source, "category": category, "reason": reason},
            cause=cause,
        )
        self.source = source


class ExternalServiceError(HydraException):
    """Upstream HTTP service returned an error status."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        details = {"service": service}
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", details, cause)


# ============================================================
# Benchmark Errors
# ============================================================

class GroundTruthUnavailable(HydraException):
    """No confirmed price is known for an analysis yet."""

    def __init__(self, analysis_id: Optional[str] = None, reason: str = "no confirmed price"):
        details = {"reason": reason}
        if analysis_id:
            details["analysis_id"] = analysis_id
        super().__init__(
            message=f"Ground truth unavailable: {reason}",
            code="GROUND_TRUTH_UNAVAILABLE",
            details=details,
        )


# ============================================================
# State & Validation Errors
# ============================================================

class TiebreakerStateError(HydraException):
    """Illegal tiebreaker state transition."""

    def __init__(self, current: str, attempted: str):
        super().__init__(
            message=f"Cannot move tiebreaker from {current} to {attempted}",
            code="TIEBREAKER_STATE_ERROR",
            details={"current": current, "attempted": attempted},
        )


class ValidationError(HydraException):
    """Request payload is invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, "VALIDATION_ERROR", details)


class ConfigurationError(HydraException):
    """Configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
        )
