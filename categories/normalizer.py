"""
Category Normalizer

Canonicalizes free-text category labels ("Vinyl Records", "pokemon-tcg",
"Home Goods") into one routing key.

Rules are an ordered list of (predicate, category) pairs, evaluated most
specific first. Order is load-bearing: the vinyl rule must run before the
vehicle rule, since "vinyl" contains "vin".

normalize_category is pure and idempotent: every rule's output maps to
itself when fed back in.
"""

import re
from typing import Callable, List, Tuple

_SEPARATORS = re.compile(r'[_\s-]+')


def clean_category(category: str) -> str:
    """Lowercase, trim, collapse separators to underscores"""
    return _SEPARATORS.sub('_', (category or '').lower().strip())


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda c: any(n in c for n in needles)


def _equals(*values: str) -> Callable[[str], bool]:
    return lambda c: c in values


def _any(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda c: any(p(c) for p in predicates)


def _is_vin_token(c: str) -> bool:
    # "vin" only as a whole underscore-delimited token, never inside "vinyl"
    return c == 'vin' or c.startswith('vin_') or c.endswith('_vin') or '_vin_' in c


def _is_vehicle(c: str) -> bool:
    if not (_contains('vehicle', 'auto', 'truck', 'motorcycle')(c) or _is_vin_token(c)):
        return False
    return not _contains('card', 'pokemon', 'tcg', 'vinyl')(c)


def _is_book(c: str) -> bool:
    return 'book' in c and 'comic' not in c


NORMALIZATION_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_contains('pokemon', 'pokémon'), 'pokemon_cards'),
    (_any(_contains('trading_card', 'tcg'), _equals('cards')), 'trading_cards'),
    # vinyl before vehicles
    (_any(_contains('vinyl', 'record', 'discogs'), _equals('music', 'album')), 'vinyl_records'),
    (_contains('household', 'appliance', 'kitchen', 'home_goods'), 'household'),
    (_is_vehicle, 'vehicles'),
    (_contains('coin', 'numismatic', 'currency'), 'coins'),
    (_contains('lego', 'brick'), 'lego'),
    (_any(_contains('video_game', 'videogame'), _equals('gaming')), 'video_games'),
    (_contains('comic', 'manga'), 'comics'),
    (_is_book, 'books'),
    (_contains('sneaker', 'jordan', 'yeezy', 'shoe', 'footwear'), 'sneakers'),
    (_contains('electronic', 'gadget', 'tech'), 'electronics'),
]


def normalize_category(category: str) -> str:
    """
    Map a raw category label to its canonical key.

    Unmatched labels come back cleaned but otherwise unchanged.

    >>> normalize_category("Vinyl Records")
    'vinyl_records'
    """
    cleaned = clean_category(category)
    for predicate, canonical in NORMALIZATION_RULES:
        if predicate(cleaned):
            return canonical
    return cleaned
