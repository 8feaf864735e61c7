"""
Consensus Routes - Voting, category routing and benchmark endpoints

This module contains:
- /api/consensus endpoints (votes in, ConsensusResult out)
- /api/category/* endpoints for detection and reference-source routing
- /api/analyze endpoint running the full provider pipeline
- /api/benchmarks/* endpoints for ground-truth scoring and scorecards
"""

import logging
import math
from typing import Dict, Any, List

from fastapi import APIRouter, Request

from benchmarks.aggregator import build_scorecards
from benchmarks.recorder import BenchmarkJob
from categories.detector import detect_item_category
from categories.normalizer import normalize_category
from categories.router import get_sources_for_category, has_authority_source
from consensus.engine import calculate_consensus, calculate_consensus_with_details, quick_consensus_check
from consensus.models import Vote, StagedVotes, AuthorityData
from consensus.voting import calculate_vote_weight
from providers.base import AnalysisRequest
from services.exceptions import ValidationError, ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["consensus"])

# ============================================================
# MODULE-LEVEL DEPENDENCIES (Set via configure_consensus)
# ============================================================

_config: Dict = {
    "state": None,
}


def configure_consensus(state):
    """Configure the consensus routes with the application state."""
    global _config

    _config["state"] = state

    logger.info("[CONSENSUS ROUTES] Module configured")


# ============================================================
# PAYLOAD HELPERS
# ============================================================

async def _read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _non_finite(value: Any) -> bool:
    return isinstance(value, float) and not math.isfinite(value)


def _vote_from_payload(data: Any, index: int) -> Vote:
    if not isinstance(data, dict):
        raise ValidationError(f"Vote {index} must be an object", field=f"votes[{index}]")
    try:
        vote = Vote.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Vote {index} is invalid: {e}", field=f"votes[{index}]")
    if not (math.isfinite(vote.estimated_value) and math.isfinite(vote.weight)) or _non_finite(data.get("confidence")):
        raise ValidationError(f"Vote {index} has a non-finite number", field=f"votes[{index}]")
    # Weight not supplied: derive it from provider, confidence and stage
    if data.get("weight") is None:
        vote.weight = calculate_vote_weight(vote.provider_id, vote.confidence, vote.stage)
    return vote


def _votes_from_body(body: Dict[str, Any]) -> List[Vote]:
    votes = body.get("votes")
    if votes is None:
        raise ValidationError("Missing 'votes' list", field="votes")
    if not isinstance(votes, list):
        raise ValidationError("'votes' must be a list", field="votes")
    return [_vote_from_payload(v, i) for i, v in enumerate(votes)]


def _authority_from_body(body: Dict[str, Any]):
    authority = body.get("authority")
    if authority is not None and not isinstance(authority, dict):
        raise ValidationError("'authority' must be an object", field="authority")
    return AuthorityData.from_dict(authority)


# ============================================================
# CONSENSUS ENDPOINTS
# ============================================================

@router.post("/api/consensus")
async def api_consensus(request: Request):
    """
    Compute consensus from a set of votes.
    Body: {"votes": [...], "authority": {...}?, "detailed": false}
    """
    body = await _read_json(request)
    votes = _votes_from_body(body)
    authority = _authority_from_body(body)

    if body.get("detailed"):
        result = calculate_consensus_with_details(votes, authority).to_dict()
    else:
        result = calculate_consensus(votes, authority).to_dict()

    state = _config["state"]
    if state is not None:
        state.increment_stat("consensus_requests")
        state.record_result(result)
    return result


@router.post("/api/consensus/quick")
async def api_consensus_quick(request: Request):
    """Majority decision and closeness only (no confidence)"""
    body = await _read_json(request)
    return quick_consensus_check(_votes_from_body(body))


# ============================================================
# CATEGORY ENDPOINTS
# ============================================================

@router.post("/api/category/detect")
async def api_category_detect(request: Request):
    """
    Detect an item's category and its reference-source cascade.
    Body: {"itemName": "...", "categoryHint"?, "aiCategory"?, "description"?}
    """
    body = await _read_json(request)
    item_name = body.get("itemName") or body.get("item_name")
    if not item_name or not isinstance(item_name, str):
        raise ValidationError("Missing 'itemName'", field="itemName")

    detection = detect_item_category(
        item_name,
        category_hint=body.get("categoryHint"),
        ai_category=body.get("aiCategory"),
        description=body.get("description") or "",
    )
    return {
        **detection.to_dict(),
        "sources": get_sources_for_category(detection.category),
    }


@router.get("/api/category/sources/{category}")
async def api_category_sources(category: str):
    """Ordered reference sources for a (possibly unnormalized) category"""
    normalized = normalize_category(category)
    return {
        "category": normalized,
        "sources": get_sources_for_category(normalized),
        "hasAuthority": has_authority_source(normalized),
    }


# ============================================================
# PIPELINE ENDPOINT
# ============================================================

@router.post("/api/analyze")
async def api_analyze(request: Request):
    """
    Run the full multi-provider analysis.
    Body: {"itemText": "...", "images": [{"media_type", "data"}]?, "categoryHint"?}
    """
    state = _config["state"]
    if state is None or state.pipeline is None:
        raise ConfigurationError("Analysis pipeline is not configured", config_key="providers")

    body = await _read_json(request)
    item_text = body.get("itemText") or body.get("item_text") or ""
    images = body.get("images") or []
    if not item_text and not images:
        raise ValidationError("Provide 'itemText' or 'images'", field="itemText")
    if not isinstance(images, list) or any(
        not isinstance(img, dict) or "data" not in img or "media_type" not in img for img in images
    ):
        raise ValidationError("'images' must be a list of {media_type, data}", field="images")

    result = await state.pipeline.analyze(AnalysisRequest(
        item_text=item_text,
        images=images,
        category_hint=body.get("categoryHint"),
    ))
    payload = result.to_dict()
    state.increment_stat("analyses")
    if result.tiebreaker.get("state") == "merged":
        state.increment_stat("tiebreakers_merged")
    state.record_result(payload)
    return payload


# ============================================================
# BENCHMARK ENDPOINTS
# ============================================================

@router.post("/api/benchmarks/score")
async def api_benchmarks_score(request: Request):
    """
    Queue votes for scoring against a confirmed price.
    Body: {"analysisId", "itemName", "votes": [...], "groundTruthPrice"?,
           "groundTruthSource"?, "category"?, "authority"?, "marketSummary"?}
    """
    state = _config["state"]
    if state is None or state.recorder is None:
        raise ConfigurationError("Benchmark recorder is not configured", config_key="benchmarks")

    body = await _read_json(request)
    analysis_id = body.get("analysisId")
    if not analysis_id:
        raise ValidationError("Missing 'analysisId'", field="analysisId")

    truth = body.get("groundTruthPrice")
    if truth is not None:
        try:
            truth = float(truth)
        except (TypeError, ValueError):
            raise ValidationError("'groundTruthPrice' must be a number", field="groundTruthPrice")

    votes = _votes_from_body(body)
    queued = state.recorder.submit(BenchmarkJob(
        analysis_id=str(analysis_id),
        item_name=body.get("itemName") or (votes[0].item_name if votes else "Unknown Item"),
        votes=StagedVotes.from_votes(votes),
        category=normalize_category(body.get("category") or "general"),
        authority=_authority_from_body(body),
        market_summary=body.get("marketSummary"),
        ground_truth_price=truth,
        ground_truth_source=body.get("groundTruthSource"),
    ))
    return {"queued": queued, "votes": len(votes)}


@router.get("/api/benchmarks/scorecards")
async def api_benchmarks_scorecards(provider: str = None, since: str = None):
    """
    Per-provider accuracy scorecards over stored benchmark records.
    Usage: /api/benchmarks/scorecards?provider=openai&since=2025-01-01
    """
    state = _config["state"]
    if state is None or state.store is None:
        raise ConfigurationError("Benchmark store is not configured", config_key="benchmarks")

    records = state.store.fetch_records(provider=provider, since=since)
    return {
        "records": len(records),
        "scorecards": build_scorecards(records),
        "recorder": state.recorder.get_stats() if state.recorder else None,
    }
