import itertools

import pytest

from fakes import raw_scores
from sentiflow.core.catalog import EMOTIONS, THEMES
from sentiflow.core.sentiment import (
    BasePolarity,
    EmotionTheme,
    build_reasoning,
    compute_base_polarity,
    default_result,
    detect_neutral_request,
    normalize,
    parse_emotion_theme,
)
from sentiflow.services.workers_ai import FALLBACK_CLASSIFICATION


# ---------------------------------------------------------------------------
# Stage A: base polarity
# ---------------------------------------------------------------------------
def test_close_scores_force_neutral_even_when_positive_wins():
    base = compute_base_polarity(raw_scores(0.55, 0.5))
    assert base.sentiment == "neutral"
    assert base.score == 0
    # Confidence keeps the raw winning score
    assert base.confidence == pytest.approx(0.55)


def test_low_winning_score_forces_neutral():
    base = compute_base_polarity(raw_scores(0.65, 0.0))
    assert base.sentiment == "neutral"
    assert base.score == 0


def test_confident_negative_is_negated():
    base = compute_base_polarity(raw_scores(0.1, 0.85))
    assert base == BasePolarity("negative", -0.85, 0.85)


def test_fallback_classification_is_neutral():
    base = compute_base_polarity(FALLBACK_CLASSIFICATION)
    assert base.sentiment == "neutral"
    assert base.confidence == 0.5


# ---------------------------------------------------------------------------
# Stage B: neutral request detection
# ---------------------------------------------------------------------------
def test_request_without_strong_emotion_is_neutral_request():
    base = compute_base_polarity(raw_scores(0.9, 0.1))
    assert detect_neutral_request("Can you add dark mode support?", base)


def test_error_words_override_request_phrasing():
    base = compute_base_polarity(raw_scores(0.5, 0.5))
    assert not detect_neutral_request("Can you add a fix for the 404 page?", base)


def test_confident_positive_without_request_is_not_neutral_request():
    base = compute_base_polarity(raw_scores(0.95, 0.05))
    assert not detect_neutral_request("Really enjoying the product", base)


def test_would_love_counts_as_strong_emotion():
    # "would love" contains "love", which is on the strong-emotion list
    base = compute_base_polarity(raw_scores(0.5, 0.5))
    assert not detect_neutral_request("Would love dark mode support, can you add it?", base)


# ---------------------------------------------------------------------------
# Stage C: emotion/theme parsing
# ---------------------------------------------------------------------------
def test_parse_emotion_theme_reads_both_lines():
    parsed = parse_emotion_theme("Emotion: Happy\nTheme: Product Praise")
    assert parsed == EmotionTheme("happy", "Product Praise")


def test_parse_emotion_theme_strips_theme_whitespace():
    parsed = parse_emotion_theme("emotion: confused\ntheme:   Documentation Gaps  \n")
    assert parsed == EmotionTheme("confused", "Documentation Gaps")


@pytest.mark.parametrize("text", [
    "",
    "I think the user is unhappy.",
    "emotion: thrilled\ntheme: Cool Stuff",
])
def test_parse_emotion_theme_falls_back(text):
    assert parse_emotion_theme(text) == EmotionTheme("neutral", "Other")


# ---------------------------------------------------------------------------
# Stage D: final decision
# ---------------------------------------------------------------------------
def test_happy_emotion_with_resolution_beats_negative_leaning_classifier():
    result = normalize(
        "Issue resolved, thanks!",
        raw_scores(0.3, 0.6),
        EmotionTheme("happy", "Customer Support Praise"),
    )
    assert result.sentiment == "positive"
    assert result.score > 0
    assert result.score == pytest.approx(0.8)
    assert result.theme == "Customer Support Praise"


def test_positive_emotion_trusts_emotion_over_negative_score():
    result = normalize(
        "The update changed the layout",
        raw_scores(0.05, 0.9),
        EmotionTheme("excited", "Other"),
    )
    assert result.sentiment == "positive"
    assert result.score == pytest.approx(0.9)


def test_positive_emotion_with_neutral_score_uses_fallback_score():
    result = normalize(
        "The update changed the layout",
        raw_scores(0.5, 0.5),
        EmotionTheme("happy", "Other"),
    )
    assert result.sentiment == "positive"
    assert result.score == pytest.approx(0.7)


def test_error_keywords_force_strong_negative():
    result = normalize(
        "API returns 504 timeout, blocking deployment",
        raw_scores(0.9, 0.05),
        EmotionTheme("neutral", "API Performance Issues"),
    )
    assert result.sentiment == "negative"
    assert result.score == -0.9


def test_error_keywords_keep_a_more_negative_base_score():
    result = normalize(
        "API returns 504 timeout, blocking deployment",
        raw_scores(0.02, 0.98),
        EmotionTheme("frustrated", "API Performance Issues"),
    )
    assert result.sentiment == "negative"
    assert result.score == pytest.approx(-0.98)


def test_neutral_request_flattens_sentiment_and_mild_emotion():
    result = normalize(
        "Can you add dark mode support?",
        raw_scores(0.9, 0.1),
        EmotionTheme("confused", "Dark Mode Requests"),
    )
    assert result.sentiment == "neutral"
    assert result.score == 0
    assert result.emotion == "neutral"


def test_neutral_request_keeps_strong_emotion():
    result = normalize(
        "Can you add dark mode support?",
        raw_scores(0.9, 0.1),
        EmotionTheme("frustrated", "Dark Mode Requests"),
    )
    assert result.sentiment == "neutral"
    assert result.emotion == "frustrated"


def test_request_with_love_is_neutral_when_classifier_is_unsure():
    result = normalize(
        "Would love dark mode support, can you add it?",
        raw_scores(0.6, 0.4),
        EmotionTheme("neutral", "Dark Mode Requests"),
    )
    assert result.sentiment == "neutral"
    assert result.score == 0


def test_uncertain_classifier_yields_neutral():
    result = normalize(
        "The meeting moved to Tuesday",
        raw_scores(0.55, 0.5),
        EmotionTheme("neutral", "Other"),
    )
    assert result.sentiment == "neutral"
    assert result.score == 0
    assert result.confidence == pytest.approx(0.55)


def test_angry_emotion_flips_positive_score():
    result = normalize(
        "The export finished",
        raw_scores(0.9, 0.1),
        EmotionTheme("angry", "Other"),
    )
    assert result.sentiment == "negative"
    assert result.score == pytest.approx(-0.9)


def test_confident_positive_passes_threshold():
    result = normalize(
        "The new release is solid",
        raw_scores(0.95, 0.05),
        EmotionTheme("neutral", "Product Praise"),
    )
    assert result.sentiment == "positive"
    assert result.score == pytest.approx(0.95)
    assert result.urgency == 1
    assert result.reasoning == (
        "Sentiment analysis detected positive sentiment (score: 0.95) "
        "with neutral emotion. Confidence: 95%."
    )


def test_normalize_is_deterministic():
    args = ("Thanks for the quick fix", raw_scores(0.8, 0.15), EmotionTheme("happy", "Product Praise"))
    assert normalize(*args) == normalize(*args)


def test_invalid_emotion_and_theme_are_coerced():
    result = normalize(
        "The new release is solid",
        raw_scores(0.95, 0.05),
        EmotionTheme("ecstatic", "Marketing"),
    )
    assert result.emotion == "neutral"
    assert result.theme == "Other"


def test_invariants_hold_across_signal_combinations():
    contents = [
        "Issue resolved, thanks!",
        "API returns 504 timeout, blocking deployment",
        "Can you add dark mode support?",
        "The meeting moved to Tuesday",
        "I hate the new billing page",
    ]
    score_pairs = [(0.95, 0.05), (0.05, 0.95), (0.55, 0.5), (0.3, 0.6), (0.75, 0.2)]
    for content, scores, emotion in itertools.product(contents, score_pairs, EMOTIONS):
        result = normalize(content, raw_scores(*scores), EmotionTheme(emotion, "Feature Requests"))
        if result.sentiment == "neutral":
            assert result.score == 0
        assert -1 <= result.score <= 1
        assert result.emotion in EMOTIONS
        assert result.theme in THEMES


# ---------------------------------------------------------------------------
# Reasoning and defaults
# ---------------------------------------------------------------------------
def test_reasoning_rounds_half_up():
    assert build_reasoning("negative", -0.9, "angry", 0.125) == (
        "Sentiment analysis detected negative sentiment (score: -0.90) "
        "with angry emotion. Confidence: 13%."
    )


def test_default_result_is_neutral_and_explains_error():
    result = default_result("upstream unavailable")
    assert result.sentiment == "neutral"
    assert result.score == 0
    assert result.confidence == 0
    assert result.emotion == "neutral"
    assert result.urgency == 1
    assert result.theme == "Other"
    assert result.reasoning == "Error during analysis: upstream unavailable"
