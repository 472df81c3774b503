# sentiflow/core/batch.py
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from sentiflow.core.sentiment import SentimentAnalyzer, default_result
from sentiflow.exceptions import CallBudgetExceeded
from sentiflow.metrics import ANALYSIS_FAILURES_TOTAL, BATCH_ITEMS_ADMITTED, BATCH_ITEMS_DROPPED
from sentiflow.schemas.feedback_schema import FeedbackItem
from sentiflow.schemas.sentiment_schema import SentimentAnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_CALL_CEILING = 50
DEFAULT_CALLS_PER_ITEM = 2  # one classification call + one combined emotion/theme call
DEFAULT_CHUNK_SIZE = 10


class CallBudget:
    """Counts outbound calls for a single orchestrator run."""

    def __init__(self, ceiling: int):
        self.ceiling = ceiling
        self.spent = 0

    @property
    def remaining(self) -> int:
        return self.ceiling - self.spent

    def spend(self) -> None:
        if self.spent >= self.ceiling:
            raise CallBudgetExceeded(self.ceiling)
        self.spent += 1


class BudgetedClassifier:
    """Wraps a remote classifier so every outbound call is charged to a CallBudget first."""

    def __init__(self, classifier, budget: CallBudget):
        self._classifier = classifier
        self.budget = budget

    async def classify_binary_sentiment(self, text: str):
        self.budget.spend()
        return await self._classifier.classify_binary_sentiment(text)

    async def chat_complete(self, system_prompt: str, user_prompt: str) -> str:
        self.budget.spend()
        return await self._classifier.chat_complete(system_prompt, user_prompt)


@dataclass
class BatchOutcome:
    items: List[FeedbackItem]
    results: List[SentimentAnalysisResult]
    dropped: int = 0
    calls_made: int = 0
    failed_chunks: List[int] = field(default_factory=list)


class BatchOrchestrator:
    """
    Runs sentiment analysis over a list of feedback items within an outbound call ceiling.

    Only the first ``call_ceiling // calls_per_item`` items are admitted; the
    rest are dropped from this request and the caller resubmits them. Admitted
    items are analyzed one at a time in fixed-size chunks, and results come
    back in admission order.
    """

    def __init__(
        self,
        classifier,
        call_ceiling: int = DEFAULT_CALL_CEILING,
        calls_per_item: int = DEFAULT_CALLS_PER_ITEM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if calls_per_item < 1:
            raise ValueError("calls_per_item must be at least 1")
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.classifier = classifier
        self.call_ceiling = call_ceiling
        self.calls_per_item = calls_per_item
        self.chunk_size = chunk_size

    @classmethod
    def from_settings(cls, classifier, config) -> "BatchOrchestrator":
        return cls(
            classifier,
            call_ceiling=config.OUTBOUND_CALL_CEILING,
            calls_per_item=config.CALLS_PER_ITEM,
            chunk_size=config.BATCH_CHUNK_SIZE,
        )

    @property
    def max_items(self) -> int:
        return max(0, self.call_ceiling // self.calls_per_item)

    def admit(self, items: Sequence) -> list:
        """Keep the first max_items entries, of any type, in order."""
        admitted = list(items[: self.max_items])
        if len(items) > len(admitted):
            logger.warning(
                f"Processing only first {len(admitted)} items ({len(items)} total). "
                f"Remaining items must be resubmitted in a separate request."
            )
        return admitted

    def chunks(self, items: Sequence[FeedbackItem]) -> List[List[FeedbackItem]]:
        return [list(items[start:start + self.chunk_size]) for start in range(0, len(items), self.chunk_size)]

    async def _analyze_chunk(self, analyzer: SentimentAnalyzer, chunk: List[FeedbackItem]) -> List[SentimentAnalysisResult]:
        results = []
        for item in chunk:
            results.append(await analyzer.analyze_sentiment(item))
        return results

    async def run(self, items: Sequence[FeedbackItem], dropped: int = 0) -> BatchOutcome:
        """
        Analyze the admitted prefix of ``items``.

        ``dropped`` counts items the caller already cut off by calling admit()
        on its raw input before building FeedbackItems.
        """
        admitted = self.admit(items)
        dropped += len(items) - len(admitted)
        BATCH_ITEMS_ADMITTED.inc(len(admitted))
        if dropped:
            BATCH_ITEMS_DROPPED.inc(dropped)

        budget = CallBudget(self.call_ceiling)
        analyzer = SentimentAnalyzer(BudgetedClassifier(self.classifier, budget))
        chunks = self.chunks(admitted)
        outcome = BatchOutcome(items=admitted, results=[], dropped=dropped)

        logger.info(f"Starting batch analysis of {len(admitted)} items in {len(chunks)} chunks")
        for index, chunk in enumerate(chunks, start=1):
            logger.info(f"Processing chunk {index}/{len(chunks)} ({len(chunk)} items)")
            try:
                chunk_results = await self._analyze_chunk(analyzer, chunk)
            except Exception as e:
                ANALYSIS_FAILURES_TOTAL.labels(stage="chunk").inc()
                logger.error(f"Error processing chunk {index}: {e}")
                chunk_results = [default_result(str(e)) for _ in chunk]
                outcome.failed_chunks.append(index)
            outcome.results.extend(chunk_results)

        outcome.calls_made = budget.spent
        logger.info(
            f"Completed batch analysis: {len(outcome.results)}/{len(admitted)} items, "
            f"{budget.spent}/{self.call_ceiling} outbound calls"
        )
        return outcome

    async def analyze_batch(self, items: Sequence[FeedbackItem]) -> List[SentimentAnalysisResult]:
        outcome = await self.run(items)
        return outcome.results
