"""
Category Detector

Picks an item's category when none is supplied, in priority order:
    1. AI-provided category (normalized, bypasses everything else)
    2. User/request hint (normalized)
    3. Name-pattern overrides, highest priority first
    4. Keyword scoring
    5. Default "general"

Keyword scoring: each matched phrase adds its word count, so "silver
dollar" beats "silver". Ties go to the longer category key.

Usage:
    from categories.detector import detect_item_category

    detection = detect_item_category("1921 Morgan Silver Dollar", ai_category="coins")
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from categories.keywords import CATEGORY_KEYWORDS
from categories.normalizer import normalize_category
from categories.overrides import get_sorted_overrides

logger = logging.getLogger(__name__)

GENERAL = 'general'
NON_CATEGORIES = ('', GENERAL, 'unknown', 'other', 'none')

# Confidence per detection source
AI_VOTE_CONFIDENCE = 0.95
USER_HINT_CONFIDENCE = 0.9
NAME_OVERRIDE_CONFIDENCE = 0.92
NO_MATCH_CONFIDENCE = 0.3

# Detection sources
SOURCE_NAME_OVERRIDE = 'name_override'
SOURCE_KEYWORD = 'keyword_detection'
SOURCE_AI_VOTE = 'ai_vote'
SOURCE_USER_HINT = 'user_hint'
SOURCE_AUTHORITY = 'authority_data'
SOURCE_DEFAULT = 'default'


@dataclass
class CategoryDetection:
    category: str
    confidence: float
    keywords: List[str] = field(default_factory=list)
    source: str = SOURCE_DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "confidence": round(self.confidence, 4),
            "keywords": self.keywords,
            "source": self.source,
        }


def detect_category_by_keywords(name_lower: str, table: Dict[str, List[str]] = None) -> CategoryDetection:
    """
    Score every category's keywords against the text.

    Returns general/0.3/[] when nothing matches.
    """
    table = table or CATEGORY_KEYWORDS
    text = (name_lower or '').lower()

    scored = []
    for category, phrases in table.items():
        matches = [p for p in phrases if p in text]
        if matches:
            score = sum(len(p.split()) for p in matches)
            scored.append((score, category, matches))

    if not scored:
        return CategoryDetection(GENERAL, NO_MATCH_CONFIDENCE, [], SOURCE_KEYWORD)

    # Highest score, then longest key. sorted() is stable for full ties.
    scored.sort(key=lambda s: (s[0], len(s[1])), reverse=True)
    best_score, best_category, best_matches = scored[0]

    if len(scored) > 1:
        runners = ", ".join(f"{c}:{s}" for s, c, _ in scored[1:3])
        logger.debug(f"[CATEGORY] Keyword winner {best_category}:{best_score} (runners-up {runners})")

    return CategoryDetection(
        category=best_category,
        confidence=min(0.5 + 0.1 * best_score, 0.95),
        keywords=best_matches,
        source=SOURCE_KEYWORD,
    )


def detect_category_from_name(name_lower: str) -> Optional[CategoryDetection]:
    """First override (by priority) whose patterns hit the name, or None"""
    text = (name_lower or '').lower()
    for override in get_sorted_overrides():
        matched = override.match(text)
        if matched:
            return CategoryDetection(
                category=override.category,
                confidence=NAME_OVERRIDE_CONFIDENCE,
                keywords=[matched],
                source=SOURCE_NAME_OVERRIDE,
            )
    return None


def _usable(category: Optional[str]) -> Optional[str]:
    if not category or category.strip().lower() in NON_CATEGORIES:
        return None
    normalized = normalize_category(category)
    return None if normalized in NON_CATEGORIES else normalized


def detect_item_category(
    item_name: str,
    category_hint: Optional[str] = None,
    ai_category: Optional[str] = None,
    description: str = "",
) -> CategoryDetection:
    """
    Resolve one canonical category for an item.

    Never raises; an item nothing recognizes resolves to "general".
    """
    ai = _usable(ai_category)
    if ai:
        logger.info(f"[CATEGORY] AI vote accepted: {ai}")
        return CategoryDetection(ai, AI_VOTE_CONFIDENCE, ['ai_detection'], SOURCE_AI_VOTE)

    hint = _usable(category_hint)
    if hint:
        logger.info(f"[CATEGORY] Category hint used: {hint}")
        return CategoryDetection(hint, USER_HINT_CONFIDENCE, ['category_hint'], SOURCE_USER_HINT)

    text = f"{item_name or ''} {description or ''}".lower().strip()

    override = detect_category_from_name(text)
    if override:
        logger.info(f"[CATEGORY] Name override: {override.category} ('{override.keywords[0]}')")
        return override

    keyword = detect_category_by_keywords(text)
    if keyword.category != GENERAL:
        logger.info(
            f"[CATEGORY] Keyword detection: {keyword.category} "
            f"({keyword.confidence:.2f}, {', '.join(keyword.keywords)})"
        )
        return keyword

    logger.info(f"[CATEGORY] No category detected for '{(item_name or '')[:50]}' - defaulting to general")
    return CategoryDetection(GENERAL, NO_MATCH_CONFIDENCE, [], SOURCE_DEFAULT)


def detection_from_authority(category: str) -> CategoryDetection:
    """Category confirmed by a reference source lookup"""
    return CategoryDetection(normalize_category(category), 0.98, ['authority_match'], SOURCE_AUTHORITY)
