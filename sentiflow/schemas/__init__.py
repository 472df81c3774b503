# sentiflow/schemas/__init__.py
# This file makes the 'schemas' directory a Python package.

from .sentiment_schema import (
    SentimentAnalysisResult,
    StoredAnalysis,
    SentimentStats,
    SourceBreakdown,
    TrendPoint,
    ThemeRequest,
    ThemeResponse,
)
from .feedback_schema import (
    AnalyzedFeedback,
    AnalyzeResponse,
    BatchAnalyzeRequest,
    Feedback,
    FeedbackIn,
    FeedbackItem,
    FeedbackSource,
    ResultResponse,
)
