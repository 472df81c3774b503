# sentiflow/api/deps.py
from fastapi import Depends

from sentiflow.config import Settings, settings
from sentiflow.core.batch import BatchOrchestrator
from sentiflow.core.sentiment import SentimentAnalyzer
from sentiflow.services.workers_ai import WorkersAIClient


def get_settings() -> Settings:
    return settings


def get_remote_classifier(config: Settings = Depends(get_settings)) -> WorkersAIClient:
    """Raises ConfigurationError when Workers AI credentials are missing."""
    return WorkersAIClient.from_settings(config)


def get_analyzer(classifier: WorkersAIClient = Depends(get_remote_classifier)) -> SentimentAnalyzer:
    return SentimentAnalyzer(classifier)


def get_orchestrator(
    classifier: WorkersAIClient = Depends(get_remote_classifier),
    config: Settings = Depends(get_settings),
) -> BatchOrchestrator:
    # A fresh orchestrator per request: budgets are never shared between requests
    return BatchOrchestrator.from_settings(classifier, config)
