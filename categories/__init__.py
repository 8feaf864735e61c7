"""
Categories Module - Detection, Normalization and Source Routing

Usage:
    from categories import detect_item_category, get_sources_for_category

    detection = detect_item_category(item_name, ai_category=vote.category)
    sources = get_sources_for_category(detection.category)
"""

from .normalizer import normalize_category
from .detector import (
    CategoryDetection,
    detect_item_category,
    detect_category_by_keywords,
    detect_category_from_name,
)
from .router import CATEGORY_SOURCE_MAP, get_sources_for_category

__all__ = [
    'normalize_category',
    'CategoryDetection',
    'detect_item_category',
    'detect_category_by_keywords',
    'detect_category_from_name',
    'CATEGORY_SOURCE_MAP',
    'get_sources_for_category',
]
