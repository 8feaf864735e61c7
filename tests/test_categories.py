import pytest

from categories.detector import (
    NO_MATCH_CONFIDENCE,
    SOURCE_AI_VOTE,
    SOURCE_AUTHORITY,
    SOURCE_DEFAULT,
    SOURCE_KEYWORD,
    SOURCE_NAME_OVERRIDE,
    SOURCE_USER_HINT,
    detect_category_by_keywords,
    detect_category_from_name,
    detect_item_category,
    detection_from_authority,
)
from categories.overrides import get_sorted_overrides
from categories.router import (
    CATEGORY_SOURCE_MAP,
    get_primary_source,
    get_sources_for_category,
    has_authority_source,
)
from config.settings import RouterConfig


# ============================================================
# DETECTION PRIORITY
# ============================================================

def test_ai_category_wins_over_hint_and_name() -> None:
    detection = detect_item_category(
        "Supreme Box Logo Hoodie", category_hint="apparel", ai_category="Vinyl Records"
    )
    assert detection.category == "vinyl_records"
    assert detection.confidence == 0.95
    assert detection.source == SOURCE_AI_VOTE


def test_non_category_ai_vote_falls_through_to_hint() -> None:
    detection = detect_item_category("mystery box", category_hint="Home Goods", ai_category="unknown")
    assert detection.category == "household"
    assert detection.confidence == 0.9
    assert detection.source == SOURCE_USER_HINT


def test_streetwear_override_beats_general_apparel() -> None:
    detection = detect_item_category("Supreme Box Logo Hoodie")
    assert detection.category == "streetwear"
    assert detection.source == SOURCE_NAME_OVERRIDE
    assert detection.keywords == ["supreme"]


def test_vinyl_override_outranks_vin_rule() -> None:
    detection = detect_item_category("Beatles vinyl LP first pressing")
    assert detection.category == "vinyl_records"


def test_vin_in_name_routes_to_vehicles() -> None:
    detection = detect_item_category("2015 Honda Civic 1HGCM82633A004352")
    assert detection.category == "vehicles"
    assert detection.keywords == ["1hgcm82633a004352"]


def test_barcode_routes_to_household() -> None:
    detection = detect_category_from_name("keurig coffee maker 611247373064")
    assert detection is not None
    assert detection.category == "household"


def test_keyword_detection_scores_phrase_length() -> None:
    detection = detect_item_category("buffalo nickel")
    assert detection.category == "coins"
    assert detection.source == SOURCE_KEYWORD
    assert set(detection.keywords) == {"nickel", "buffalo nickel"}
    assert detection.confidence == pytest.approx(0.8)


def test_nothing_matches_defaults_to_general() -> None:
    detection = detect_item_category("qwzx")
    assert detection.category == "general"
    assert detection.confidence == NO_MATCH_CONFIDENCE
    assert detection.keywords == []
    assert detection.source == SOURCE_DEFAULT


def test_empty_name_never_raises() -> None:
    assert detect_item_category("").category == "general"


def test_authority_detection_is_normalized() -> None:
    detection = detection_from_authority("Vinyl Records")
    assert detection.category == "vinyl_records"
    assert detection.source == SOURCE_AUTHORITY


# ============================================================
# KEYWORD SCORING
# ============================================================

def test_multi_word_phrase_outweighs_single_word() -> None:
    table = {"metals": ["silver"], "coins": ["silver dollar", "silver"]}
    detection = detect_category_by_keywords("morgan silver dollar", table)
    assert detection.category == "coins"
    assert detection.confidence == pytest.approx(0.8)


def test_score_tie_goes_to_longer_category_key() -> None:
    table = {"ab": ["gold"], "abcd": ["gold"]}
    assert detect_category_by_keywords("gold ring", table).category == "abcd"


def test_keyword_confidence_is_capped() -> None:
    table = {"coins": ["a b c d e", "f g h i j"]}
    detection = detect_category_by_keywords("a b c d e f g h i j", table)
    assert detection.confidence == 0.95


def test_overrides_are_sorted_by_priority() -> None:
    priorities = [o.priority for o in get_sorted_overrides()]
    assert priorities == sorted(priorities, reverse=True)


# ============================================================
# SOURCE ROUTING
# ============================================================

def test_known_category_routes_primary_first() -> None:
    assert get_sources_for_category("pokemon_cards") == ["pokemon_tcg", "psa", "ebay"]
    assert get_primary_source("vehicles") == "nhtsa"


def test_route_is_capped_by_config() -> None:
    config = RouterConfig(max_cascade_length=2)
    assert get_sources_for_category("pokemon_cards", config) == ["pokemon_tcg", "psa"]


def test_every_route_respects_default_cap() -> None:
    for category in CATEGORY_SOURCE_MAP:
        sources = get_sources_for_category(category)
        assert 1 <= len(sources) <= 3


def test_unknown_category_gets_default_source() -> None:
    assert get_sources_for_category("qwzx") == ["ebay"]
    assert get_sources_for_category("") == ["ebay"]
    assert get_sources_for_category("qwzx", RouterConfig(default_source="marketplace")) == ["marketplace"]


def test_containment_match_for_unmapped_key() -> None:
    assert get_sources_for_category("rare_books") == ["google_books", "ebay"]


def test_containment_prefers_closest_mapped_key() -> None:
    assert get_sources_for_category("toy") == CATEGORY_SOURCE_MAP["toys"]
    assert get_sources_for_category("toy") != CATEGORY_SOURCE_MAP["kids_meal_toys"]
    assert get_sources_for_category("vintage_sports_cards") == CATEGORY_SOURCE_MAP["sports_cards"][:3]


def test_unnormalized_label_is_cleaned_before_lookup() -> None:
    assert get_sources_for_category("Pokemon Cards") == ["pokemon_tcg", "psa", "ebay"]


def test_has_authority_source() -> None:
    assert has_authority_source("vehicles")
    assert not has_authority_source("general")
    assert not has_authority_source("watches")
