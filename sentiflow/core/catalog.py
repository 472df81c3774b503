# sentiflow/core/catalog.py
"""Closed vocabularies shared by the normalizer, the schemas and the store."""

THEME_OTHER = "Other"

THEMES = (
    "API Performance Issues",
    "Authentication Issues",
    "Billing UI Confusion",
    "Customer Support Praise",
    "Dark Mode Requests",
    "Documentation Gaps",
    "Feature Requests",
    "Mobile App Bugs",
    "Performance Improvements",
    "Product Praise",
    "TypeScript SDK Feature Request",
    "Workers AI Praise",
    "UI/UX Improvements",
    THEME_OTHER,
)

EMOTION_NEUTRAL = "neutral"

EMOTIONS = ("frustrated", "excited", "confused", "angry", "happy", EMOTION_NEUTRAL)

POSITIVE_EMOTIONS = ("happy", "excited")
NEGATIVE_EMOTIONS = ("angry", "frustrated")
# Emotions a neutral request keeps instead of being flattened to neutral
STRONG_EMOTIONS = ("frustrated", "angry", "excited", "happy")

SENTIMENTS = ("positive", "negative", "neutral")


def coerce_theme(value: str | None) -> str:
    if value is None:
        return THEME_OTHER
    value = value.strip()
    return value if value in THEMES else THEME_OTHER


def coerce_emotion(value: str | None) -> str:
    if value is None:
        return EMOTION_NEUTRAL
    value = value.strip().lower()
    return value if value in EMOTIONS else EMOTION_NEUTRAL
