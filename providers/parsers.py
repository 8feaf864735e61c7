"""
Provider Response Parsing

Turns raw model text into the canonical analysis dict that
consensus.voting.create_vote consumes:

    {itemName, category, estimatedValue, decision, confidence,
     summaryReasoning, valuationFactors}

Handles markdown fences, smart quotes, prose around the JSON object,
provider-specific field names and free-form decision wording.
"""

import json
import re
import logging
from typing import Dict, Any, Optional

from services.exceptions import MalformedResponse

logger = logging.getLogger(__name__)

# Canonical field -> aliases seen across providers
FIELD_MAPPINGS = {
    'itemName': ['item_name', 'item', 'name', 'product_name', 'productName', 'title', 'product'],
    'estimatedValue': ['estimated_value', 'value', 'price', 'estimated_price', 'estimatedPrice',
                       'market_value', 'marketValue'],
    'decision': ['recommendation', 'action', 'buy_sell', 'buySell', 'verdict', 'assessment'],
    'valuationFactors': ['valuation_factors', 'factors', 'reasons', 'valuation_reasons',
                         'key_factors', 'keyFactors', 'pricing_factors'],
    'summaryReasoning': ['summary_reasoning', 'summary', 'reasoning', 'explanation', 'analysis',
                         'rationale'],
    'confidence': ['confidence_score', 'confidenceScore', 'certainty'],
    'category': ['item_category', 'itemCategory', 'type', 'product_category', 'productCategory'],
}

DECISION_MAPPINGS = {
    'BUY': 'BUY',
    'BUY IT': 'BUY',
    'PURCHASE': 'BUY',
    'ACQUIRE': 'BUY',
    'YES': 'BUY',
    'GOOD DEAL': 'BUY',
    'RECOMMENDED': 'BUY',
    'SELL': 'SELL',
    'PASS': 'SELL',
    'SKIP': 'SELL',
    'AVOID': 'SELL',
    'NO': 'SELL',
    'OVERPRICED': 'SELL',
    'NOT RECOMMENDED': 'SELL',
}

_SMART_CHARS = {
    "\u2018": "'", "\u2019": "'", "\u201c": '"', "\u201d": '"', "\u00a0": " ",
}

_TRAILING_COMMA = re.compile(r',\s*([}\]])')
_PRICE_CHARS = re.compile(r'[^\d.\-]')


def clean_json_response(text: str) -> str:
    """Strip code fences and smart quotes, then cut to the outermost {...}"""
    text = (text or "").strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    text = text.replace("```json", "").replace("```", "")

    for old, new in _SMART_CHARS.items():
        text = text.replace(old, new)

    start = text.find('{')
    end = text.rfind('}') + 1
    if start != -1 and start < end:
        text = text[start:end]
    return text.strip()


def _load(text: str) -> Optional[Dict[str, Any]]:
    for candidate in (text, _TRAILING_COMMA.sub(r'\1', text)):
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def normalize_decision(value: Any) -> str:
    """Map free-form decision wording to BUY or SELL. Unknown -> SELL."""
    if isinstance(value, bool):
        return 'BUY' if value else 'SELL'
    key = str(value or '').strip().upper().replace('_', ' ')
    if key in DECISION_MAPPINGS:
        return DECISION_MAPPINGS[key]
    if key.startswith('BUY'):
        return 'BUY'
    return 'SELL'


def normalize_confidence(value: Any, default: float = 0.5) -> float:
    """Confidence as 0-1. Values above 1 are read as percentages."""
    if isinstance(value, str):
        value = value.strip().rstrip('%')
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return default
    if conf > 1:
        conf = conf / 100
    return max(0.0, min(1.0, conf))


def parse_price(value: Any) -> float:
    """"$1,250.00" -> 1250.0; unparseable -> 0.0"""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(0.0, float(value))
    if isinstance(value, dict):
        # Some providers return a range; take its midpoint
        low = parse_price(value.get('low', value.get('min', 0)))
        high = parse_price(value.get('high', value.get('max', 0)))
        if low and high:
            return round((low + high) / 2, 2)
        return low or high
    cleaned = _PRICE_CHARS.sub('', str(value or ''))
    try:
        return max(0.0, float(cleaned))
    except ValueError:
        return 0.0


def apply_field_mappings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy aliased fields onto their canonical names (canonical wins)"""
    mapped = dict(data)
    for canonical, aliases in FIELD_MAPPINGS.items():
        if mapped.get(canonical) not in (None, ""):
            continue
        for alias in aliases:
            if data.get(alias) not in (None, ""):
                mapped[canonical] = data[alias]
                break
    return mapped


def parse_analysis_response(
    raw: Optional[str],
    provider: str = "unknown",
    fallback_item_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Parse a provider's raw text into a canonical analysis dict.

    Raises:
        MalformedResponse: empty text, no JSON object, or neither an
            item name nor a decision could be recovered
    """
    if not raw or not raw.strip():
        raise MalformedResponse(provider, "empty response")

    cleaned = clean_json_response(raw)
    data = _load(cleaned)
    if data is None:
        logger.warning(f"[PARSER] {provider}: no JSON object in response: {cleaned[:120]}")
        raise MalformedResponse(provider, "no JSON object in response", raw=raw)

    data = apply_field_mappings(data)

    if not data.get('itemName') and 'decision' not in data:
        raise MalformedResponse(provider, "missing itemName and decision", raw=raw)

    factors = data.get('valuationFactors') or []
    if isinstance(factors, str):
        factors = [factors]

    return {
        'itemName': str(data.get('itemName') or fallback_item_name or 'Unknown Item').strip(),
        'category': str(data.get('category') or 'general').strip(),
        'estimatedValue': parse_price(data.get('estimatedValue')),
        'decision': normalize_decision(data.get('decision')),
        'confidence': normalize_confidence(data.get('confidence')),
        'summaryReasoning': str(data.get('summaryReasoning') or ''),
        'valuationFactors': list(factors)[:10],
    }
