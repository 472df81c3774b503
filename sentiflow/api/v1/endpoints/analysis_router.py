# sentiflow/api/v1/endpoints/analysis_router.py
import logging
from fastapi import APIRouter, Depends
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from sentiflow import crud
from sentiflow import schemas
from sentiflow.api.deps import get_analyzer, get_orchestrator, get_remote_classifier
from sentiflow.core.batch import BatchOrchestrator
from sentiflow.core.sentiment import SentimentAnalyzer
from sentiflow.core.themes import classify_theme
from sentiflow.db.session import get_optional_db
from sentiflow.exceptions import ValidationError
from sentiflow.metrics import DATABASE_OPERATIONS_TOTAL
from sentiflow.services.workers_ai import WorkersAIClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=schemas.AnalyzeResponse)
async def analyze_feedback(
    feedback_in: schemas.FeedbackIn,
    analyzer: SentimentAnalyzer = Depends(get_analyzer),
):
    """
    Analyze a single feedback item without storing it.
    """
    if not feedback_in.content or not feedback_in.content.strip():
        raise ValidationError("Missing required field: content")
    item = feedback_in.to_item()
    result = await analyzer.analyze_sentiment(item)
    return schemas.AnalyzeResponse(feedback=item, sentiment=result)


@router.post("/batch", response_model=List[schemas.AnalyzedFeedback], response_model_by_alias=True)
async def analyze_feedback_batch(
    batch_in: schemas.BatchAnalyzeRequest,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
    db: Optional[AsyncSession] = Depends(get_optional_db),
):
    """
    Analyze a batch of feedback items and store the results.

    Only as many items as the outbound call ceiling allows are analyzed and
    returned; the caller resubmits the rest.
    """
    if batch_in.feedback is None:
        raise ValidationError("Missing or invalid feedback array")
    # Entries past the admission cap are dropped unvalidated
    admitted = orchestrator.admit(batch_in.feedback)
    try:
        items = [schemas.FeedbackIn.model_validate(entry).to_item() for entry in admitted]
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid feedback item: {e.errors()[0]['msg']}") from e

    logger.info(f"Processing {len(items)} feedback items for analysis...")
    outcome = await orchestrator.run(items, dropped=len(batch_in.feedback) - len(admitted))

    if db is not None:
        try:
            await crud.upsert_feedback_batch(db, outcome.items)
            await crud.upsert_analysis_batch(db, outcome.items, outcome.results)
            logger.info("Stored feedback and analysis results in database")
        except SQLAlchemyError as e:
            await db.rollback()
            DATABASE_OPERATIONS_TOTAL.labels(operation="store_batch", status="error").inc()
            logger.error(f"Error storing in database (continuing anyway): {e}")

    return [
        schemas.AnalyzedFeedback.combine(item, result)
        for item, result in zip(outcome.items, outcome.results)
    ]


@router.post("/theme", response_model=schemas.ThemeResponse)
async def analyze_theme(
    theme_in: schemas.ThemeRequest,
    classifier: WorkersAIClient = Depends(get_remote_classifier),
):
    """
    Classify the theme of a piece of feedback with a single model call.
    """
    theme = await classify_theme(classifier, theme_in.content)
    return schemas.ThemeResponse(theme=theme)
