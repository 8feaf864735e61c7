"""
Provider Scorecards

Turns stored BenchmarkRecords into per-provider accuracy and speed
figures. Only records with ground truth count toward accuracy; every
record counts toward volume and latency.
"""

import logging
from collections import defaultdict
from typing import Dict, Any, List

from benchmarks.scorer import BenchmarkRecord

logger = logging.getLogger(__name__)

MIN_CATEGORY_VOTES = 3


def _percentile(sorted_values: List[int], pct: float) -> int:
    if not sorted_values:
        return 0
    index = min(int(len(sorted_values) * pct), len(sorted_values) - 1)
    return sorted_values[index]


def _median(sorted_values: List[float]) -> float:
    if not sorted_values:
        return 0.0
    return sorted_values[len(sorted_values) // 2]


def build_scorecard(provider_id: str, records: List[BenchmarkRecord]) -> Dict[str, Any]:
    """Scorecard for one provider's records"""
    scored = [r for r in records if r.has_ground_truth]
    n = len(scored) or 1

    errors_pct = sorted(r.price_error_percent for r in scored)
    mae = sum(r.price_error_dollars for r in scored) / n
    mape = sum(errors_pct) / n
    within_10 = sum(1 for e in errors_pct if e <= 10)
    within_25 = sum(1 for e in errors_pct if e <= 25)
    correct = sum(1 for r in scored if r.decision_correct)

    directions = defaultdict(int)
    for r in scored:
        directions[r.price_direction] += 1

    times = sorted(r.response_time_ms for r in records if r.response_time_ms and r.response_time_ms > 0)

    categories: Dict[str, Dict[str, Any]] = {}
    by_category = defaultdict(list)
    for r in scored:
        by_category[r.detected_category].append(r)
    for category, cat_records in by_category.items():
        cat_n = len(cat_records)
        categories[category] = {
            "votes": cat_n,
            "mape": round(sum(r.price_error_percent for r in cat_records) / cat_n, 2),
            "accuracy10": round(sum(1 for r in cat_records if r.price_error_percent <= 10) / cat_n, 4),
        }

    ranked = sorted(
        ((c, s) for c, s in categories.items() if s["votes"] >= MIN_CATEGORY_VOTES),
        key=lambda item: item[1]["mape"],
    )

    return {
        "providerId": provider_id,
        "totalVotes": len(records),
        "scoredVotes": len(scored),
        "meanAbsoluteError": round(mae, 2),
        "meanAbsolutePercentError": round(mape, 2),
        "medianErrorPercent": round(_median(errors_pct), 2),
        "accuracyRate10": round(within_10 / n, 4),
        "accuracyRate25": round(within_25 / n, 4),
        "overPredictions": directions["over"],
        "underPredictions": directions["under"],
        "accuratePredictions": directions["accurate"],
        "correctDecisions": correct,
        "decisionAccuracy": round(correct / n, 4),
        "avgResponseMs": round(sum(times) / len(times)) if times else 0,
        "p50ResponseMs": _percentile(times, 0.5),
        "p95ResponseMs": _percentile(times, 0.95),
        "categoryScores": categories,
        "bestCategory": ranked[0][0] if len(ranked) >= 2 else None,
        "worstCategory": ranked[-1][0] if len(ranked) >= 2 else None,
    }


def build_scorecards(records: List[BenchmarkRecord]) -> List[Dict[str, Any]]:
    """One scorecard per provider, most accurate (lowest MAPE) first"""
    by_provider = defaultdict(list)
    for r in records:
        by_provider[r.provider_id].append(r)

    cards = [build_scorecard(pid, recs) for pid, recs in by_provider.items()]
    # Providers with nothing scored sort last
    cards.sort(key=lambda c: (c["scoredVotes"] == 0, c["meanAbsolutePercentError"]))
    logger.info(f"[BENCHMARK] Built {len(cards)} scorecards from {len(records)} records")
    return cards
