"""
Application State for the Hydra API

One dataclass holding the long-lived collaborators (pipeline, benchmark
recorder and store, shared HTTP client) plus session counters, so routes
get them by injection rather than module globals.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def _fresh_stats() -> Dict[str, Any]:
    return {
        "total_requests": 0,
        "consensus_requests": 0,
        "analyses": 0,
        "buy_count": 0,
        "sell_count": 0,
        "fallback_count": 0,
        "tiebreakers_merged": 0,
        "session_start": datetime.now().isoformat(),
    }


@dataclass
class AppState:
    """Centralized application state, injected into create_app()"""

    debug_mode: bool = False

    # Collaborators (None when not configured)
    pipeline: Optional[Any] = None
    recorder: Optional[Any] = None
    store: Optional[Any] = None
    http_client: Optional[Any] = None

    stats: Dict[str, Any] = field(default_factory=_fresh_stats)

    def increment_stat(self, key: str, amount: int = 1) -> None:
        """Safely increment a statistics counter."""
        if key in self.stats:
            self.stats[key] += amount

    def record_result(self, result: Dict[str, Any]) -> None:
        """Count one consensus outcome (ConsensusResult.to_dict() shape)"""
        self.stats["total_requests"] += 1
        if result.get("decision") == "BUY":
            self.stats["buy_count"] += 1
        else:
            self.stats["sell_count"] += 1
        if result.get("analysisQuality") == "FALLBACK":
            self.stats["fallback_count"] += 1

    def get_session_duration(self) -> float:
        """Get session duration in seconds."""
        start = datetime.fromisoformat(self.stats["session_start"])
        return (datetime.now() - start).total_seconds()
