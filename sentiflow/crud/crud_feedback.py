# sentiflow/crud/crud_feedback.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Iterable, List, Optional

from sentiflow.db.models import Feedback
from sentiflow.metrics import DATABASE_OPERATIONS_TOTAL
from sentiflow.schemas.feedback_schema import FeedbackItem


def _to_row(item: FeedbackItem) -> Feedback:
    return Feedback(
        id=item.id,
        source=item.source.value,
        content=item.content,
        author=item.author,
        timestamp=item.timestamp,
        metadata_=item.metadata,
    )


async def upsert_feedback(db: AsyncSession, item: FeedbackItem) -> Feedback:
    """
    Insert or replace a feedback row by id.
    """
    db_feedback = await db.merge(_to_row(item))
    await db.commit()
    DATABASE_OPERATIONS_TOTAL.labels(operation="upsert_feedback", status="success").inc()
    return db_feedback


async def upsert_feedback_batch(db: AsyncSession, items: Iterable[FeedbackItem]) -> int:
    """
    Insert or replace many feedback rows in one transaction. Returns the number written.
    """
    count = 0
    for item in items:
        await db.merge(_to_row(item))
        count += 1
    await db.commit()
    DATABASE_OPERATIONS_TOTAL.labels(operation="upsert_feedback_batch", status="success").inc()
    return count


async def get_feedback(db: AsyncSession, feedback_id: str) -> Optional[Feedback]:
    """
    Retrieve a feedback entry, with its analysis, by id.
    """
    result = await db.execute(
        select(Feedback).where(Feedback.id == feedback_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_all_feedback(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Feedback]:
    """
    Retrieve feedback entries with their analysis, newest first.
    """
    result = await db.execute(
        select(Feedback)
        .order_by(Feedback.timestamp.desc())
        .offset(skip)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
