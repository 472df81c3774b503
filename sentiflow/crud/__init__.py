# sentiflow/crud/__init__.py
from .crud_feedback import get_all_feedback, get_feedback, upsert_feedback, upsert_feedback_batch
from .crud_sentiment import (
    get_analysis_for_feedback,
    get_sentiment_stats,
    upsert_analysis,
    upsert_analysis_batch,
)
