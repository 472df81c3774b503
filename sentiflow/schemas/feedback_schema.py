# sentiflow/schemas/feedback_schema.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List
import datetime
import enum
import uuid

from .sentiment_schema import SentimentAnalysisResult, StoredAnalysis


class FeedbackSource(str, enum.Enum):
    GITHUB = "github"      # issue tracker
    GMAIL = "gmail"        # email
    DISCORD = "discord"    # chat
    TWITTER = "twitter"    # social
    OTHER = "other"


SOURCE_ALIASES = {
    "issue-tracker": FeedbackSource.GITHUB,
    "email": FeedbackSource.GMAIL,
    "chat": FeedbackSource.DISCORD,
    "social": FeedbackSource.TWITTER,
}


def coerce_source(value) -> FeedbackSource:
    if isinstance(value, FeedbackSource):
        return value
    if not value:
        return FeedbackSource.OTHER
    key = str(value).strip().lower()
    if key in SOURCE_ALIASES:
        return SOURCE_ALIASES[key]
    try:
        return FeedbackSource(key)
    except ValueError:
        return FeedbackSource.OTHER


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class FeedbackItem(BaseModel):
    """A single piece of feedback as handed to the analysis pipeline. Read-only."""

    id: str
    source: FeedbackSource = FeedbackSource.OTHER
    content: str = Field(min_length=1)
    author: Optional[str] = None
    timestamp: datetime.datetime = Field(default_factory=utcnow)
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("source", mode="before")
    @classmethod
    def _normalize_source(cls, value):
        return coerce_source(value)

    @property
    def theme_hint(self) -> Optional[str]:
        if self.metadata:
            return self.metadata.get("theme")
        return None


class FeedbackIn(BaseModel):
    """Inbound feedback payload; every field but content is optional."""

    id: Optional[str] = None
    source: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    timestamp: Optional[datetime.datetime] = None
    metadata: Optional[Dict[str, Any]] = None
    theme: Optional[str] = None

    def to_item(self) -> FeedbackItem:
        metadata = self.metadata
        if metadata is None and self.theme is not None:
            metadata = {"theme": self.theme}
        return FeedbackItem(
            id=self.id or f"temp-{uuid.uuid4()}",
            source=self.source,
            content=self.content,
            author=self.author,
            timestamp=self.timestamp or utcnow(),
            metadata=metadata,
        )


class BatchAnalyzeRequest(BaseModel):
    # Entries are validated as FeedbackIn only once admitted
    feedback: Optional[List[Any]] = None


class AnalyzeResponse(BaseModel):
    feedback: FeedbackItem
    sentiment: SentimentAnalysisResult


class ResultResponse(AnalyzeResponse):
    id: str


class AnalyzedFeedback(BaseModel):
    """Feedback fields flattened together with their analysis, as the dashboard consumes them."""

    id: str
    source: FeedbackSource
    content: str
    sentiment: str
    sentiment_score: float = Field(serialization_alias="sentimentScore")
    author: str
    timestamp: datetime.datetime
    theme: str
    emotion: str
    urgency: int
    confidence: float
    reasoning: str

    @classmethod
    def combine(cls, item: FeedbackItem, result: SentimentAnalysisResult) -> "AnalyzedFeedback":
        return cls(
            id=item.id,
            source=item.source,
            content=item.content,
            sentiment=result.sentiment,
            sentiment_score=result.score,
            author=item.author or "Unknown",
            timestamp=item.timestamp,
            theme=result.theme,
            emotion=result.emotion,
            urgency=result.urgency,
            confidence=result.confidence,
            reasoning=result.reasoning,
        )


class Feedback(BaseModel):
    """Stored feedback with its latest analysis, if any."""

    id: str
    source: FeedbackSource
    content: str
    author: Optional[str] = None
    timestamp: datetime.datetime
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="metadata_")
    created_at: datetime.datetime
    updated_at: datetime.datetime
    analysis: Optional[StoredAnalysis] = None

    # Pydantic V2 config for ORM mode
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    def to_item(self) -> FeedbackItem:
        return FeedbackItem(
            id=self.id,
            source=self.source,
            content=self.content,
            author=self.author,
            timestamp=self.timestamp,
            metadata=self.metadata,
        )
