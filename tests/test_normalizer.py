import pytest

from categories.normalizer import NORMALIZATION_RULES, clean_category, normalize_category


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("vinyl records", "vinyl_records"),
        ("Vinyl Records", "vinyl_records"),
        ("vinyl", "vinyl_records"),
        ("Pokemon TCG", "pokemon_cards"),
        ("pokémon", "pokemon_cards"),
        ("trading-cards", "trading_cards"),
        ("cards", "trading_cards"),
        ("Home Goods", "household"),
        ("kitchen appliance", "household"),
        ("vehicle", "vehicles"),
        ("auto parts", "vehicles"),
        ("vin decode", "vehicles"),
        ("rare coins", "coins"),
        ("LEGO Sets", "lego"),
        ("video game", "video_games"),
        ("manga", "comics"),
        ("comic books", "comics"),
        ("rare books", "books"),
        ("Air Jordan sneakers", "sneakers"),
        ("consumer electronics", "electronics"),
    ],
)
def test_normalize_category_maps_labels(raw: str, expected: str) -> None:
    assert normalize_category(raw) == expected


def test_vinyl_never_routes_to_vehicles() -> None:
    assert normalize_category("vinyl records") == "vinyl_records"
    assert normalize_category("vinyl") != "vehicles"
    assert normalize_category("vintage vinyl record") == "vinyl_records"


def test_pokemon_card_with_vehicle_word_stays_cards() -> None:
    assert normalize_category("pokemon truck card") == "pokemon_cards"


def test_unmatched_label_is_cleaned_not_rewritten() -> None:
    assert normalize_category("  Fine  Art ") == "fine_art"
    assert normalize_category("") == ""


@pytest.mark.parametrize(
    "raw",
    [
        "vinyl records", "Pokemon TCG", "home goods", "vin", "Rare Coins",
        "sneakers", "watches", "Fine-Art", "", "comic books", "music", "gaming",
    ],
)
def test_normalize_category_is_idempotent(raw: str) -> None:
    once = normalize_category(raw)
    assert normalize_category(once) == once


def test_every_canonical_output_maps_to_itself() -> None:
    for _, canonical in NORMALIZATION_RULES:
        assert normalize_category(canonical) == canonical


def test_clean_category_collapses_separators() -> None:
    assert clean_category("Sports - Cards") == "sports_cards"
    assert clean_category(None) == ""
