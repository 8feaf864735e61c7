"""
Centralized Configuration Settings for Hydra Consensus

All tunable constants are consolidated here: provider trust weights,
consensus thresholds, confidence blend coefficients, tiebreaker gating,
reference-source routing limits and benchmark storage.

Every engine entry point accepts one of these config objects as an
optional argument and falls back to the module constants below, so
tests can inject their own values.

Usage:
    from config.settings import CONSENSUS, TIEBREAKER, WEIGHTS

    result = calculate_consensus(votes, config=CONSENSUS)
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ============================================================
# ENVIRONMENT LOADING
# ============================================================
BASE_DIR = Path(__file__).parent.parent
ENV_PATH = BASE_DIR / ".env"

if ENV_PATH.exists():
    load_dotenv(ENV_PATH)
    logger.info(f"[CONFIG] Loaded .env from {ENV_PATH}")


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


# ============================================================
# SERVER SETTINGS
# ============================================================
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ============================================================
# CONSENSUS SETTINGS
# ============================================================

# Blend coefficients for the base confidence score. Must sum to 1.0.
CONFIDENCE_BLEND = {
    'avg_confidence': 0.35,
    'decision_agreement': 0.25,
    'value_agreement': 0.25,
    'participation': 0.15,
}

assert abs(sum(CONFIDENCE_BLEND.values()) - 1.0) < 1e-9, "Confidence blend must sum to 1.0"


@dataclass
class ConsensusConfig:
    """Thresholds and caps for tally and confidence computation"""
    target_ai_count: int = _env_int("HYDRA_TARGET_AI_COUNT", 10)
    min_votes_for_full_consensus: int = _env_int("HYDRA_MIN_VOTES", 3)
    low_vote_cap: int = _env_int("HYDRA_LOW_VOTE_CAP", 75)
    close_vote_threshold: float = _env_float("HYDRA_CLOSE_VOTE_THRESHOLD", 0.15)
    authority_bonus: float = 0.05
    blend: Dict[str, float] = field(default_factory=lambda: dict(CONFIDENCE_BLEND))
    optimal_threshold: int = 97
    degraded_threshold: int = 90
    single_vote_cap: int = 50
    max_confidence: int = 99
    acceptable_confidence: int = 70


# ============================================================
# PROVIDER TRUST WEIGHTS
# ============================================================

# Base reliability per provider. Tuned from benchmark scorecards.
PROVIDER_BASE_WEIGHTS = {
    'openai': 1.0,
    'anthropic': 1.0,
    'google': 1.0,
    'mistral': 0.75,
    'groq': 0.75,
    'xai': 0.80,
    'perplexity': 0.85,
    'deepseek': 0.6,
}


@dataclass
class WeightConfig:
    """Per-provider trust weights and stage/specialty multipliers"""
    base_weights: Dict[str, float] = field(default_factory=lambda: dict(PROVIDER_BASE_WEIGHTS))
    default_weight: float = 0.75
    specialties: Dict[str, str] = field(default_factory=lambda: {'perplexity': 'pricing'})
    multipliers: Dict[str, float] = field(default_factory=lambda: {
        'pricing': 1.3,
        'market_search': 1.2,
        'tiebreaker': 0.6,
    })
    scale_by_confidence: bool = True


# ============================================================
# TIEBREAKER SETTINGS
# ============================================================

@dataclass
class TiebreakerConfig:
    """Gating for the single arbitration call on close votes"""
    threshold: float = _env_float("HYDRA_TIEBREAKER_THRESHOLD", 0.15)
    min_primary_votes: int = _env_int("HYDRA_TIEBREAKER_MIN_VOTES", 4)
    providers: List[str] = field(default_factory=lambda: _env_list("HYDRA_TIEBREAKER_PROVIDERS", ['deepseek']))
    confidence_scale: float = 0.8
    timeout: float = _env_float("HYDRA_TIEBREAKER_TIMEOUT", 20.0)
    enabled: bool = os.getenv("HYDRA_TIEBREAKER_ENABLED", "true").lower() == "true"


# ============================================================
# REFERENCE SOURCE ROUTING
# ============================================================

@dataclass
class RouterConfig:
    """Reference-source cascade limits"""
    max_cascade_length: int = _env_int("HYDRA_MAX_CASCADE", 3)
    default_source: str = "ebay"
    lookup_timeout: float = _env_float("HYDRA_LOOKUP_TIMEOUT", 8.0)


# ============================================================
# AI PROVIDER SETTINGS
# ============================================================

@dataclass
class ProviderSettings:
    """Connection settings for one inference provider"""
    provider_id: str
    model: str
    api_key_env: str
    stage: str = "vision"
    base_url: Optional[str] = None
    timeout: float = 30.0
    supports_vision: bool = True
    max_tokens: int = 800

    @property
    def api_key(self) -> Optional[str]:
        key = os.getenv(self.api_key_env)
        if not key or key.startswith("YOUR_"):
            return None
        return key


PROVIDERS: Dict[str, ProviderSettings] = {
    'openai': ProviderSettings(
        provider_id='openai',
        model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        api_key_env="OPENAI_API_KEY",
    ),
    'anthropic': ProviderSettings(
        provider_id='anthropic',
        model=os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
        api_key_env="ANTHROPIC_API_KEY",
    ),
    'mistral': ProviderSettings(
        provider_id='mistral',
        model="mistral-small-latest",
        api_key_env="MISTRAL_API_KEY",
        stage="text",
        base_url="https://api.mistral.ai/v1",
        timeout=25.0,
        supports_vision=False,
    ),
    'groq': ProviderSettings(
        provider_id='groq',
        model="llama-3.1-8b-instant",
        api_key_env="GROQ_API_KEY",
        stage="text",
        base_url="https://api.groq.com/openai/v1",
        timeout=15.0,
        supports_vision=False,
    ),
    'xai': ProviderSettings(
        provider_id='xai',
        model="grok-3",
        api_key_env="XAI_API_KEY",
        stage="text",
        base_url="https://api.x.ai/v1",
        timeout=25.0,
        supports_vision=False,
    ),
    'perplexity': ProviderSettings(
        provider_id='perplexity',
        model="sonar",
        api_key_env="PERPLEXITY_API_KEY",
        stage="market_search",
        base_url="https://api.perplexity.ai",
        timeout=30.0,
        supports_vision=False,
    ),
    'deepseek': ProviderSettings(
        provider_id='deepseek',
        model="deepseek-chat",
        api_key_env="DEEPSEEK_API_KEY",
        stage="tiebreaker",
        base_url="https://api.deepseek.com",
        timeout=20.0,
        supports_vision=False,
    ),
}

# ============================================================
# BENCHMARK SETTINGS
# ============================================================

@dataclass
class BenchmarkConfig:
    """Ground-truth scoring rules and storage"""
    db_path: Path = Path(os.getenv("HYDRA_BENCHMARK_DB", str(BASE_DIR / "benchmarks.db")))
    accurate_threshold_percent: float = 10.0
    buy_price_floor: float = 2.00
    queue_size: int = _env_int("HYDRA_BENCHMARK_QUEUE_SIZE", 500)
    enabled: bool = os.getenv("HYDRA_BENCHMARKS_ENABLED", "true").lower() == "true"


# ============================================================
# MODULE CONSTANTS
# ============================================================
CONSENSUS = ConsensusConfig()
WEIGHTS = WeightConfig()
TIEBREAKER = TiebreakerConfig()
ROUTER = RouterConfig()
BENCHMARKS = BenchmarkConfig()
