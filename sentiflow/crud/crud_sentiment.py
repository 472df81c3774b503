# sentiflow/crud/crud_sentiment.py
import datetime
from collections import defaultdict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from typing import Optional, Sequence

from sentiflow.core.catalog import SENTIMENTS
from sentiflow.db.models import AnalysisResult, Feedback
from sentiflow.metrics import DATABASE_OPERATIONS_TOTAL
from sentiflow.schemas.feedback_schema import FeedbackItem
from sentiflow.schemas.sentiment_schema import SentimentAnalysisResult, SentimentStats, SourceBreakdown, TrendPoint


def _to_row(feedback_id: str, analysis: SentimentAnalysisResult) -> AnalysisResult:
    return AnalysisResult(
        feedback_id=feedback_id,
        sentiment=analysis.sentiment,
        score=analysis.score,
        confidence=analysis.confidence,
        emotion=analysis.emotion,
        urgency=analysis.urgency,
        theme=analysis.theme,
        reasoning=analysis.reasoning,
        analyzed_at=datetime.datetime.now(datetime.timezone.utc),
    )


async def upsert_analysis(db: AsyncSession, feedback_id: str, analysis: SentimentAnalysisResult) -> AnalysisResult:
    """
    Store the analysis for a feedback item, replacing any earlier one.
    """
    db_analysis = await db.merge(_to_row(feedback_id, analysis))
    await db.commit()
    DATABASE_OPERATIONS_TOTAL.labels(operation="upsert_analysis", status="success").inc()
    return db_analysis


async def upsert_analysis_batch(
    db: AsyncSession,
    items: Sequence[FeedbackItem],
    analyses: Sequence[SentimentAnalysisResult],
) -> int:
    """
    Store analyses paired positionally with their feedback items.
    """
    if len(items) != len(analyses):
        raise ValueError(f"Got {len(analyses)} analyses for {len(items)} feedback items")
    for item, analysis in zip(items, analyses):
        await db.merge(_to_row(item.id, analysis))
    await db.commit()
    DATABASE_OPERATIONS_TOTAL.labels(operation="upsert_analysis_batch", status="success").inc()
    return len(items)


async def get_analysis_for_feedback(db: AsyncSession, feedback_id: str) -> Optional[AnalysisResult]:
    result = await db.execute(select(AnalysisResult).where(AnalysisResult.feedback_id == feedback_id))
    return result.scalars().first()


async def get_sentiment_stats(db: AsyncSession) -> SentimentStats:
    """
    Aggregate stored analyses into sentiment, theme, source and daily-trend counts.
    """
    stats = SentimentStats()

    rows = await db.execute(
        select(AnalysisResult.sentiment, func.count()).group_by(AnalysisResult.sentiment)
    )
    for sentiment, count in rows.all():
        if sentiment in SENTIMENTS:
            setattr(stats, sentiment, count)
        stats.total += count

    rows = await db.execute(
        select(AnalysisResult.theme, func.count())
        .group_by(AnalysisResult.theme)
        .order_by(func.count().desc(), AnalysisResult.theme)
    )
    stats.themes = {theme: count for theme, count in rows.all()}

    rows = await db.execute(
        select(Feedback.source, AnalysisResult.sentiment, func.count())
        .join(AnalysisResult, AnalysisResult.feedback_id == Feedback.id)
        .group_by(Feedback.source, AnalysisResult.sentiment)
        .order_by(Feedback.source)
    )
    by_source = defaultdict(dict)
    for source, sentiment, count in rows.all():
        by_source[source][sentiment] = count
    stats.sources = [SourceBreakdown(source=source, **counts) for source, counts in by_source.items()]

    day = func.date(Feedback.timestamp)
    rows = await db.execute(
        select(day, AnalysisResult.sentiment, func.count())
        .join(AnalysisResult, AnalysisResult.feedback_id == Feedback.id)
        .group_by(day, AnalysisResult.sentiment)
        .order_by(day)
    )
    by_day = defaultdict(dict)
    for date, sentiment, count in rows.all():
        by_day[date][sentiment] = count
    stats.trend = [TrendPoint(date=date, **counts) for date, counts in by_day.items()]

    return stats
