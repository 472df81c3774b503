# sentiflow/schemas/sentiment_schema.py
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Dict, List, Literal
import datetime

from sentiflow.core.catalog import THEME_OTHER, coerce_emotion, coerce_theme

SentimentLabel = Literal["positive", "negative", "neutral"]


class SentimentAnalysisResult(BaseModel):
    sentiment: SentimentLabel
    score: float = Field(ge=-1.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    emotion: str = "neutral"
    urgency: int = Field(default=1, ge=1, le=10)
    theme: str = THEME_OTHER
    reasoning: str

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("emotion", mode="before")
    @classmethod
    def _emotion_in_catalog(cls, value):
        return coerce_emotion(value)

    @field_validator("theme", mode="before")
    @classmethod
    def _theme_in_catalog(cls, value):
        return coerce_theme(value)

    @model_validator(mode="after")
    def _neutral_has_zero_score(self):
        if self.sentiment == "neutral" and self.score != 0:
            raise ValueError("neutral sentiment must carry a score of 0")
        return self


class StoredAnalysis(SentimentAnalysisResult):
    feedback_id: str
    analyzed_at: datetime.datetime


class TrendPoint(BaseModel):
    date: datetime.date
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class SourceBreakdown(BaseModel):
    source: str
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class SentimentStats(BaseModel):
    total: int = 0
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    themes: Dict[str, int] = {}
    sources: List[SourceBreakdown] = []
    trend: List[TrendPoint] = []


class ThemeRequest(BaseModel):
    content: str = Field(min_length=1)


class ThemeResponse(BaseModel):
    theme: str
