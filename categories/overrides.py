"""
Name Pattern Overrides

Patterns that decide an item's category straight from its name, ahead of
keyword scoring. Checked highest priority first.

Priority guide:
    120  catalog-unique collectibles (stamps, banknotes, postcards)
    115  niche collectibles
    110  hype/streetwear brands (before general apparel)
    100  general apparel
    90-95 specific high-confidence items
    80-94 structural identifiers (VIN, barcode)

Pattern types:
    plain strings      substring match against the lowercased name
    r"\\b..." strings  regex with word boundaries, for short tokens that
                       appear inside other words ("lp" inside "dlp projector")
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern


@dataclass
class NamePatternOverride:
    patterns: List[str]
    category: str
    priority: int
    regex: Optional[Pattern] = None  # set for structural rules

    def match(self, name_lower: str) -> Optional[str]:
        """Return the first matching pattern, or None"""
        if self.regex is not None:
            found = self.regex.search(name_lower)
            return found.group(0) if found else None
        for pattern in self.patterns:
            if pattern.startswith("\\b"):
                if re.search(pattern, name_lower):
                    return pattern
            elif pattern in name_lower:
                return pattern
        return None


NAME_PATTERN_OVERRIDES = [
    # ============================================================
    # CATALOG-UNIQUE (120)
    # ============================================================
    NamePatternOverride(['stamp', 'postage', 'philately', 'philatelic', 'first day cover'], 'stamps', 120),
    NamePatternOverride(['banknote', 'bank note', 'paper money', 'paper currency'], 'banknotes', 120),
    NamePatternOverride(['postcard', 'post card', 'rppc'], 'postcards', 120),

    # ============================================================
    # NICHE COLLECTIBLES (115)
    # ============================================================
    NamePatternOverride(['medal', 'medallion'], 'medals', 115),
    NamePatternOverride(['enamel pin', 'lapel pin', 'pin badge', 'collector pin', 'disney pin', 'olympic pin'], 'pins', 115),
    NamePatternOverride(['embroidered patch', 'iron-on patch', 'morale patch', 'military patch', 'scout patch'], 'patches', 115),
    NamePatternOverride(['phone card', 'phonecard', 'calling card', 'telecarte'], 'phonecards', 115),
    NamePatternOverride(['beer coaster', 'beermat', 'beer mat'], 'beer_coasters', 115),
    NamePatternOverride(['bottle cap', 'bottlecap', 'crown cap'], 'bottlecaps', 115),
    NamePatternOverride(['happy meal', 'mcdonalds toy', 'kids meal toy', 'kinder surprise', 'kinder egg'], 'kids_meal_toys', 115),
    NamePatternOverride(['arcade token', 'transit token', 'casino chip', 'casino token', 'parking token'], 'tokens', 110),

    # ============================================================
    # STREETWEAR (110) - before general apparel
    # ============================================================
    NamePatternOverride(['supreme', 'box logo', '\\bbogo\\b'], 'streetwear', 110),
    NamePatternOverride(['bape', 'bathing ape', 'baby milo'], 'streetwear', 110),
    NamePatternOverride(['off-white', 'off white', 'offwhite', 'virgil abloh'], 'streetwear', 110),
    NamePatternOverride(['fear of god', 'fog essentials', 'essentials hoodie'], 'streetwear', 110),
    NamePatternOverride(['palace skate', 'tri-ferg'], 'streetwear', 110),
    NamePatternOverride(['travis scott', 'cactus jack', 'astroworld', 'utopia merch'], 'streetwear', 110),
    NamePatternOverride(['anti social social club', '\\bassc\\b'], 'streetwear', 110),
    NamePatternOverride(['vlone', 'chrome hearts', 'gallery dept', 'rhude', 'amiri'], 'streetwear', 110),
    NamePatternOverride(['stussy', '\\bkith\\b', 'undefeated', 'undftd'], 'streetwear', 110),
    NamePatternOverride(['yeezy gap', 'yzy gap', 'yeezy season'], 'streetwear', 110),
    NamePatternOverride(['sp5der', 'spider worldwide', 'hellstar', 'eric emanuel'], 'streetwear', 110),
    NamePatternOverride(['drew house', 'human made', 'billionaire boys club'], 'streetwear', 110),
    NamePatternOverride(['corteiz', 'crtz', 'broken planet'], 'streetwear', 110),

    # ============================================================
    # GENERAL APPAREL (100)
    # ============================================================
    NamePatternOverride(['hoodie', 'hoody', 'sweatshirt', 'sweater', 'pullover', 'crewneck'], 'apparel', 100),
    NamePatternOverride(['jacket', 'windbreaker', 'parka', 'blazer', '\\bcoat\\b', '\\bvest\\b'], 'apparel', 100),
    NamePatternOverride(['team jersey', 'nfl jersey', 'nba jersey', 'nhl jersey', 'mlb jersey', '\\bjersey\\b'], 'apparel', 100),
    NamePatternOverride(['t-shirt', 'tee shirt', 'polo shirt', 'button up', 'flannel shirt'], 'apparel', 100),
    NamePatternOverride(['sweatpants', 'joggers', 'trousers', '\\bjeans\\b', '\\bpants\\b', '\\bshorts\\b'], 'apparel', 100),
    NamePatternOverride(['beanie', 'snapback', 'fitted cap', 'bucket hat', 'trucker hat', '\\bhat\\b'], 'apparel', 100),

    # ============================================================
    # SPECIFIC ITEMS (90-95)
    # ============================================================
    NamePatternOverride(['vinyl', 'record', '\\blp\\b', '33 rpm', '45 rpm', 'album'], 'vinyl_records', 95),
    NamePatternOverride(['pokemon', 'pokémon', 'pikachu', 'charizard', 'mewtwo'], 'pokemon_cards', 90),
    NamePatternOverride(['lego', 'minifig', 'minifigure'], 'lego', 90),
    NamePatternOverride(['psa 10', 'psa 9', 'bgs 10', 'bgs 9.5', 'cgc 9.8'], 'graded_cards', 90),
]

# ============================================================
# STRUCTURAL IDENTIFIERS
# ============================================================

# 17-char VIN alphabet excludes I, O, Q. Below vinyl so "vinyl" never routes to vehicles.
VIN_OVERRIDE = NamePatternOverride(
    patterns=['vin'],
    category='vehicles',
    priority=94,
    regex=re.compile(r'\b(?:[a-hj-npr-z0-9]{17}|vin)\b'),
)

# UPC/EAN barcodes route to retail product lookup
BARCODE_OVERRIDE = NamePatternOverride(
    patterns=['barcode'],
    category='household',
    priority=80,
    regex=re.compile(r'\b\d{8,13}\b'),
)


def get_sorted_overrides() -> List[NamePatternOverride]:
    """All overrides, highest priority first. Ties keep declaration order."""
    return sorted(
        [*NAME_PATTERN_OVERRIDES, VIN_OVERRIDE, BARCODE_OVERRIDE],
        key=lambda o: o.priority,
        reverse=True,
    )
