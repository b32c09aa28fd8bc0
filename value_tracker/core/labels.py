"""
Display glyphs and category names.

Fixed, read-only lookup tables.
"""

from types import MappingProxyType
from typing import Mapping

SUBSCRIPTION_GLYPHS: Mapping[str, str] = MappingProxyType({
    "gym": "🏋️",
    "netflix": "🎬",
    "youtube": "📺",
    "book": "📚",
    "ebook": "📖",
    "music": "🎵",
    "game": "🎮",
    "coffee": "☕",
    "swim": "🏊",
    "pilates": "🧘",
    "language": "🗣️",
    "default": "📌",
})

INVESTMENT_GLYPHS: Mapping[str, str] = MappingProxyType({
    "ereader": "📱",
    "tablet": "📲",
    "laptop": "💻",
    "annual_pass": "🎫",
    "equipment": "🔧",
    "camera": "📷",
    "headphone": "🎧",
    "default": "📦",
})

INVESTMENT_CATEGORIES: Mapping[str, str] = MappingProxyType({
    "E_READER": "이북 리더기",
    "ANNUAL_PASS": "연간 이용권",
    "EQUIPMENT": "장비",
    "OTHER": "기타",
})


def subscription_glyph(code: str) -> str:
    return SUBSCRIPTION_GLYPHS.get(code, SUBSCRIPTION_GLYPHS["default"])


def investment_glyph(code: str) -> str:
    return INVESTMENT_GLYPHS.get(code, INVESTMENT_GLYPHS["default"])


def category_name(code: str) -> str:
    return INVESTMENT_CATEGORIES.get(code, INVESTMENT_CATEGORIES["OTHER"])
