# sentiflow/api/v1/endpoints/feedback_router.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from sentiflow import crud
from sentiflow import schemas
from sentiflow.api.deps import get_analyzer
from sentiflow.core.sentiment import SentimentAnalyzer
from sentiflow.db.session import get_db

router = APIRouter()


@router.get("/feedback", response_model=List[schemas.Feedback])
async def read_all_feedback(
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    """
    Retrieve stored feedback with its latest analysis, newest first.
    """
    return await crud.get_all_feedback(db=db, skip=offset, limit=limit)


@router.get("/feedback/{feedback_id}", response_model=schemas.Feedback)
async def read_feedback(
    feedback_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Retrieve feedback by ID.
    """
    db_feedback = await crud.get_feedback(db=db, feedback_id=feedback_id)
    if db_feedback is None:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return db_feedback


@router.get("/results/{feedback_id}", response_model=schemas.ResultResponse)
async def reanalyze_feedback(
    feedback_id: str,
    db: AsyncSession = Depends(get_db),
    analyzer: SentimentAnalyzer = Depends(get_analyzer),
):
    """
    Re-analyze stored feedback; the new result replaces the stored one.
    """
    db_feedback = await crud.get_feedback(db=db, feedback_id=feedback_id)
    if db_feedback is None:
        raise HTTPException(status_code=404, detail="Feedback not found")

    item = schemas.Feedback.model_validate(db_feedback).to_item()
    result = await analyzer.analyze_sentiment(item)
    await crud.upsert_analysis(db=db, feedback_id=item.id, analysis=result)
    return schemas.ResultResponse(id=item.id, feedback=item, sentiment=result)


@router.get("/stats", response_model=schemas.SentimentStats)
async def read_stats(db: AsyncSession = Depends(get_db)):
    """
    Sentiment, theme, source and daily-trend aggregates over stored analyses.
    """
    return await crud.get_sentiment_stats(db)
