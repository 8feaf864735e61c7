"""
Reference-Source Router

Pure lookup: canonical category -> ordered reference sources, primary
first, never more than the configured cascade length. Executing the
cascade (try source 1, fall through on a miss) is the caller's job;
see services.reference_sources.run_cascade.
"""

from typing import Dict, List, Optional

from config.settings import ROUTER, RouterConfig
from categories.normalizer import clean_category

CATEGORY_SOURCE_MAP: Dict[str, List[str]] = {
    # Coins & currency
    'coins': ['numista', 'ebay'],
    'banknotes': ['numista', 'ebay'],
    'currency': ['numista', 'ebay'],
    'tokens': ['numista', 'colnect', 'ebay'],
    'medals': ['numista', 'colnect', 'ebay'],

    # Catalog collectibles
    'stamps': ['colnect', 'ebay'],
    'postcards': ['colnect', 'ebay'],
    'phonecards': ['colnect', 'ebay'],
    'pins': ['colnect', 'ebay'],
    'patches': ['colnect', 'ebay'],
    'beer_coasters': ['colnect', 'ebay'],
    'bottlecaps': ['colnect', 'ebay'],
    'kids_meal_toys': ['colnect', 'ebay'],
    'keychains': ['colnect', 'ebay'],
    'magnets': ['colnect', 'ebay'],
    'stickers': ['colnect', 'ebay'],
    'tickets': ['colnect', 'ebay'],

    # LEGO
    'lego': ['brickset', 'ebay'],

    # Trading cards
    'trading_cards': ['pokemon_tcg', 'psa', 'ebay'],
    'pokemon_cards': ['pokemon_tcg', 'psa', 'ebay'],
    'sports_cards': ['psa', 'ebay'],
    'graded_cards': ['psa', 'ebay'],

    # Books & comics
    'books': ['google_books', 'ebay'],
    'comics': ['comicvine', 'psa', 'ebay'],
    'manga': ['comicvine', 'ebay'],

    # Music
    'vinyl_records': ['discogs', 'ebay'],

    # Sneakers & apparel
    'sneakers': ['retailed', 'ebay'],
    'streetwear': ['retailed', 'ebay'],
    'apparel': ['ebay'],

    # Vehicles & retail
    'vehicles': ['nhtsa', 'ebay'],
    'household': ['upcitemdb', 'ebay'],
    'electronics': ['upcitemdb', 'ebay'],

    # General
    'video_games': ['ebay'],
    'watches': ['ebay'],
    'jewelry': ['ebay'],
    'toys': ['ebay'],
    'action_figures': ['ebay'],
    'collectibles': ['ebay'],
    'antiques': ['ebay'],
    'vintage': ['ebay'],
    'general': ['ebay'],
}


def _containment_match(key: str) -> Optional[List[str]]:
    """
    Closest mapped key by containment.

    A mapped key that contains the input wins first, shortest one (so "toy"
    lands on toys, not kids_meal_toys). Otherwise the longest mapped key
    found inside the input ("rare_books" -> books).
    """
    candidates = [m for m in CATEGORY_SOURCE_MAP if m != 'general']
    wider = [m for m in candidates if key in m]
    if wider:
        return CATEGORY_SOURCE_MAP[min(wider, key=len)]
    narrower = [m for m in candidates if m in key]
    if narrower:
        return CATEGORY_SOURCE_MAP[max(narrower, key=len)]
    return None


def get_sources_for_category(category: str, config: RouterConfig = None) -> List[str]:
    """
    Ordered reference sources for a category.

    Exact key first, then a containment match against mapped keys
    ("rare_books" -> books), then the default general-purpose source.
    """
    config = config or ROUTER
    key = clean_category(category)
    limit = max(1, config.max_cascade_length)

    sources = CATEGORY_SOURCE_MAP.get(key)
    if sources is None and key:
        sources = _containment_match(key)

    if not sources:
        sources = [config.default_source]

    return list(sources[:limit])


def get_primary_source(category: str, config: RouterConfig = None) -> str:
    return get_sources_for_category(category, config)[0]


def has_authority_source(category: str, config: RouterConfig = None) -> bool:
    """True when something other than the default marketplace is routed"""
    config = config or ROUTER
    return any(s != config.default_source for s in get_sources_for_category(category, config))
