import pytest

from providers.parsers import (
    apply_field_mappings,
    clean_json_response,
    normalize_confidence,
    normalize_decision,
    parse_analysis_response,
    parse_price,
)
from services.exceptions import MalformedResponse


def test_parses_fenced_json_with_aliases() -> None:
    raw = """```json
{"item_name": "Morgan Silver Dollar", "price": "$45.00", "recommendation": "buy it",
 "confidence_score": 85, "item_category": "coins", "reasons": "silver content"}
```"""
    analysis = parse_analysis_response(raw, "openai")
    assert analysis["itemName"] == "Morgan Silver Dollar"
    assert analysis["estimatedValue"] == 45.0
    assert analysis["decision"] == "BUY"
    assert analysis["confidence"] == 0.85
    assert analysis["category"] == "coins"
    assert analysis["valuationFactors"] == ["silver content"]


def test_parses_json_embedded_in_prose_with_smart_quotes() -> None:
    raw = (
        'Here is my answer: {“itemName”: “Lamp”, '
        '“decision”: “PASS”, “estimatedValue”: 8,} Thanks!'
    )
    analysis = parse_analysis_response(raw, "groq")
    assert analysis["itemName"] == "Lamp"
    assert analysis["decision"] == "SELL"
    assert analysis["confidence"] == 0.5
    assert analysis["category"] == "general"


def test_decision_only_response_uses_fallback_name() -> None:
    analysis = parse_analysis_response('{"decision": "BUY"}', "xai", fallback_item_name="Vase")
    assert analysis["itemName"] == "Vase"


@pytest.mark.parametrize("raw", ["", "   ", None, "no json here", '["a list"]', '{"value": 3}'])
def test_unusable_responses_raise(raw) -> None:
    with pytest.raises(MalformedResponse) as exc_info:
        parse_analysis_response(raw, "mistral")
    assert exc_info.value.provider == "mistral"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("BUY", "BUY"), ("buy_now", "BUY"), ("good deal", "BUY"), (True, "BUY"),
        ("SELL", "SELL"), ("avoid", "SELL"), ("hold", "SELL"), (None, "SELL"), (False, "SELL"),
    ],
)
def test_normalize_decision(value, expected) -> None:
    assert normalize_decision(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.7, 0.7), (70, 0.7), ("85%", 0.85), ("high", 0.5), (-3, 0.0), (None, 0.5)],
)
def test_normalize_confidence(value, expected) -> None:
    assert normalize_confidence(value) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("$1,250.00", 1250.0), (12, 12.0), ("about $30", 30.0), ("free", 0.0),
        ({"low": 10, "high": 20}, 15.0), ({"max": 9}, 9.0), (None, 0.0),
    ],
)
def test_parse_price(value, expected) -> None:
    assert parse_price(value) == expected


def test_canonical_field_wins_over_alias() -> None:
    mapped = apply_field_mappings({"itemName": "Real", "name": "Alias"})
    assert mapped["itemName"] == "Real"


def test_clean_json_response_strips_fences() -> None:
    assert clean_json_response('```\n{"a": 1}\n```') == '{"a": 1}'
