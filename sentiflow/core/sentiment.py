# sentiflow/core/sentiment.py
import logging
import re
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sentiflow.core import keywords
from sentiflow.core.catalog import (
    EMOTION_NEUTRAL,
    NEGATIVE_EMOTIONS,
    POSITIVE_EMOTIONS,
    STRONG_EMOTIONS,
    THEME_OTHER,
    coerce_emotion,
    coerce_theme,
)
from sentiflow.core.prompts import EMOTION_THEME_SYSTEM_PROMPT, build_emotion_theme_prompt
from sentiflow.exceptions import ParseError
from sentiflow.metrics import ANALYSES_TOTAL, ANALYSIS_FAILURES_TOTAL, ITEM_ANALYSIS_LATENCY
from sentiflow.schemas.feedback_schema import FeedbackItem
from sentiflow.schemas.sentiment_schema import SentimentAnalysisResult
from sentiflow.services.workers_ai import LABEL_NEGATIVE, LABEL_POSITIVE, RawClassification

logger = logging.getLogger(__name__)

# Scores closer than this, or a winner below MIN_WINNING_SCORE, mean the classifier is unsure
UNCERTAINTY_MARGIN = 0.3
MIN_WINNING_SCORE = 0.7
CONFIDENT_POSITIVE_CONFIDENCE = 0.8
CONFIDENT_POSITIVE_SCORE = 0.7
POLARITY_THRESHOLD = 0.4
ERROR_SCORE = -0.9
POSITIVE_CONTEXT_SCORE = 0.8
POSITIVE_EMOTION_SCORE = 0.7
DEFAULT_URGENCY = 1

_EMOTION_LINE = re.compile(r"emotion:\s*(\w+)", re.IGNORECASE | re.ASCII)
_THEME_LINE = re.compile(r"theme:\s*([^\n]+)", re.IGNORECASE)


@dataclass(frozen=True)
class BasePolarity:
    sentiment: str
    score: float
    confidence: float


@dataclass(frozen=True)
class EmotionTheme:
    emotion: str = EMOTION_NEUTRAL
    theme: str = THEME_OTHER


def compute_base_polarity(raw: RawClassification) -> BasePolarity:
    """Stage A: polarity from the binary classifier alone."""
    difference = abs(raw.positive_score - raw.negative_score)
    max_score = max(raw.positive_score, raw.negative_score)
    confidence = abs(raw.score)

    if difference < UNCERTAINTY_MARGIN or max_score < MIN_WINNING_SCORE:
        return BasePolarity("neutral", 0.0, confidence)
    if raw.label == LABEL_POSITIVE:
        return BasePolarity("positive", raw.score, confidence)
    if raw.label == LABEL_NEGATIVE:
        return BasePolarity("negative", -raw.score, confidence)
    return BasePolarity("neutral", 0.0, confidence)


def detect_neutral_request(content: str, base: BasePolarity) -> bool:
    """Stage B: is this a feature ask rather than an opinion?"""
    if keywords.has_error_signal(content) or keywords.has_urgent_signal(content):
        return False

    has_request = keywords.has_request_signal(content)
    if (
        base.sentiment == "positive"
        and base.confidence > CONFIDENT_POSITIVE_CONFIDENCE
        and base.score > CONFIDENT_POSITIVE_SCORE
        and not has_request
    ):
        return False

    return has_request and not keywords.has_strong_emotion_signal(content)


def _read_field(pattern: re.Pattern, text: str, field: str) -> str:
    match = pattern.search(text)
    if match is None:
        raise ParseError(f"No {field} line in chat reply")
    return match.group(1)


def parse_emotion_theme(text: str) -> EmotionTheme:
    """Stage C: read the 'emotion:' and 'theme:' lines; anything unusable falls back."""
    emotion = EMOTION_NEUTRAL
    theme = THEME_OTHER
    if not text:
        return EmotionTheme(emotion, theme)

    try:
        emotion = coerce_emotion(_read_field(_EMOTION_LINE, text, "emotion"))
    except ParseError as e:
        logger.debug(f"{e}, using {emotion}")

    try:
        theme = coerce_theme(_read_field(_THEME_LINE, text, "theme"))
    except ParseError as e:
        logger.debug(f"{e}, using {theme}")

    return EmotionTheme(emotion, theme)


def _fixed(value: float, places: int) -> str:
    # Half-up on the exact binary value; negative zero prints as zero
    if value == 0:
        value = 0.0
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def build_reasoning(sentiment: str, score: float, emotion: str, confidence: float) -> str:
    return (
        f"Sentiment analysis detected {sentiment} sentiment (score: {_fixed(score, 2)}) "
        f"with {emotion} emotion. Confidence: {_fixed(confidence * 100, 0)}%."
    )


def normalize(content: str, raw: RawClassification, emotion_theme: EmotionTheme) -> SentimentAnalysisResult:
    """
    Combine classifier output, keyword signals and the detected emotion into one result.

    The final decision is an ordered chain of guards; the first branch that
    matches decides the sentiment, so the order below is significant:

    1. a happy/excited emotion always yields positive
    2. error vocabulary without positive context yields negative
    3. neutral feature requests yield neutral
    4. an uncertain classifier yields neutral
    5. otherwise the classifier score decides, cross-checked by angry/frustrated
    """
    base = compute_base_polarity(raw)
    is_neutral_request = detect_neutral_request(content, base)
    emotion = coerce_emotion(emotion_theme.emotion)
    theme = coerce_theme(emotion_theme.theme)

    score = max(-1.0, min(1.0, base.score))
    final_emotion = emotion
    has_positive_context = keywords.has_positive_context_signal(content)

    if emotion in POSITIVE_EMOTIONS:
        sentiment = "positive"
        if has_positive_context or score > 0:
            score = abs(score) or POSITIVE_CONTEXT_SCORE
        elif score < 0:
            score = abs(score)
        else:
            score = POSITIVE_EMOTION_SCORE
    elif keywords.has_error_keywords_narrow(content) and not has_positive_context:
        sentiment = "negative"
        if score >= 0:
            score = ERROR_SCORE
    elif is_neutral_request:
        sentiment = "neutral"
        score = 0.0
        if emotion not in STRONG_EMOTIONS:
            final_emotion = EMOTION_NEUTRAL
    elif base.sentiment == "neutral":
        sentiment = "neutral"
        score = 0.0
    elif emotion in NEGATIVE_EMOTIONS and score > 0:
        sentiment = "negative"
        score = -abs(score)
    elif score > POLARITY_THRESHOLD:
        sentiment = "positive"
    elif score < -POLARITY_THRESHOLD:
        sentiment = "negative"
    else:
        sentiment = "neutral"
        score = 0.0

    return SentimentAnalysisResult(
        sentiment=sentiment,
        score=score,
        confidence=base.confidence,
        emotion=final_emotion,
        urgency=DEFAULT_URGENCY,
        theme=theme,
        reasoning=build_reasoning(sentiment, score, final_emotion, base.confidence),
    )


def default_result(message: str) -> SentimentAnalysisResult:
    """The result substituted for an item whose analysis failed."""
    return SentimentAnalysisResult(
        sentiment="neutral",
        score=0.0,
        confidence=0.0,
        emotion=EMOTION_NEUTRAL,
        urgency=DEFAULT_URGENCY,
        theme=THEME_OTHER,
        reasoning=f"Error during analysis: {message or 'Unknown error'}",
    )


class SentimentAnalyzer:
    """Runs the two remote calls for one feedback item and normalizes the outcome."""

    def __init__(self, classifier):
        # classifier provides classify_binary_sentiment() and chat_complete()
        self.classifier = classifier

    async def detect_emotion_theme(self, content: str) -> EmotionTheme:
        try:
            response_text = await self.classifier.chat_complete(
                EMOTION_THEME_SYSTEM_PROMPT, build_emotion_theme_prompt(content)
            )
        except Exception as e:
            ANALYSIS_FAILURES_TOTAL.labels(stage="emotion_theme").inc()
            logger.warning(f"Error detecting emotion/theme, using neutral fallback: {e}")
            return EmotionTheme()
        return parse_emotion_theme(response_text)

    async def analyze_sentiment(self, item: FeedbackItem) -> SentimentAnalysisResult:
        """
        Analyze one feedback item.

        Never raises: any failure while classifying yields the default result
        so that a batch can carry on with the next item.
        """
        start = time.perf_counter()
        try:
            raw = await self.classifier.classify_binary_sentiment(item.content)
            emotion_theme = await self.detect_emotion_theme(item.content)
            result = normalize(item.content, raw, emotion_theme)
        except Exception as e:
            ANALYSIS_FAILURES_TOTAL.labels(stage="item").inc()
            logger.error(f"Error in sentiment analysis for feedback {item.id}: {e}")
            return default_result(str(e))
        finally:
            ITEM_ANALYSIS_LATENCY.labels(source=item.source.value).observe(time.perf_counter() - start)

        ANALYSES_TOTAL.labels(source=item.source.value, sentiment=result.sentiment).inc()
        return result
