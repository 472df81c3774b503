# sentiflow/db/models.py
import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Float, JSON, ForeignKey
from sqlalchemy.orm import relationship

from sentiflow.db.base_class import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String(255), primary_key=True)
    source = Column(String(50), nullable=False, index=True)  # github, gmail, discord, twitter, other
    content = Column(Text, nullable=False)
    author = Column(String(255), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    metadata_ = Column("metadata", JSON, nullable=True)  # Source-specific extras, e.g. a theme hint

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # One analysis row per feedback item; re-analysis replaces it
    analysis = relationship(
        "AnalysisResult",
        back_populates="feedback_item",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Feedback(id={self.id}, source='{self.source}', text='{self.content[:30]}...')>"


class AnalysisResult(Base):
    __tablename__ = "analysis_results"

    feedback_id = Column(String(255), ForeignKey("feedback.id", ondelete="CASCADE"), primary_key=True)

    sentiment = Column(String(20), nullable=False, index=True)  # positive, negative, neutral
    score = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    emotion = Column(String(20), nullable=False)
    urgency = Column(Integer, nullable=False, default=1)
    theme = Column(String(100), nullable=False, default="Other", index=True)
    reasoning = Column(Text, nullable=True)

    analyzed_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    feedback_item = relationship("Feedback", back_populates="analysis")

    def __repr__(self):
        return f"<AnalysisResult(feedback_id={self.feedback_id}, sentiment='{self.sentiment}', theme='{self.theme}')>"
