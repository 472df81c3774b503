# sentiflow/services/workers_ai.py
import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from sentiflow.config import Settings, settings as default_settings
from sentiflow.exceptions import RemoteClassifierError
from sentiflow.metrics import REMOTE_CALLS_TOTAL

logger = logging.getLogger(__name__)

LABEL_POSITIVE = "POSITIVE"
LABEL_NEGATIVE = "NEGATIVE"
LABEL_NEUTRAL = "NEUTRAL"


class ResponseShape(str, enum.Enum):
    """Which classifier response variant a RawClassification was decoded from."""

    SCORE_LIST = "score_list"            # [{label, score}, ...]
    WRAPPED_SCORE_LIST = "wrapped_list"  # {data: [{label, score}, ...]}
    SINGLE_LABEL = "single_label"        # {label, score}
    FALLBACK = "fallback"                # anything else


@dataclass(frozen=True)
class RawClassification:
    label: str
    score: float
    positive_score: float
    negative_score: float
    shape: ResponseShape


FALLBACK_CLASSIFICATION = RawClassification(
    label=LABEL_NEUTRAL,
    score=0.5,
    positive_score=0.5,
    negative_score=0.5,
    shape=ResponseShape.FALLBACK,
)


def _score_of(entry: dict) -> float:
    value = entry.get("score")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _label_score(entries: list[dict], label: str) -> float:
    for entry in entries:
        if entry.get("label") == label:
            return _score_of(entry)
    return 0.0


def _from_score_list(entries: list, shape: ResponseShape) -> RawClassification:
    entries = [entry for entry in entries if isinstance(entry, dict)]
    if not entries:
        raise RemoteClassifierError("Empty classification response")

    # Highest score wins; the first entry wins ties
    winner = entries[0]
    for entry in entries[1:]:
        if _score_of(entry) > _score_of(winner):
            winner = entry

    return RawClassification(
        label=str(winner.get("label", LABEL_NEUTRAL)),
        score=_score_of(winner),
        positive_score=_label_score(entries, LABEL_POSITIVE),
        negative_score=_label_score(entries, LABEL_NEGATIVE),
        shape=shape,
    )


def decode_classification(payload: Any) -> RawClassification:
    """
    Decode a binary classifier response into a RawClassification.

    The classifier may answer with a list of label/score pairs, an object
    wrapping that list under ``data``, or a single label/score object.
    Any other shape decodes to the NEUTRAL/0.5 fallback variant.
    """
    if isinstance(payload, list):
        return _from_score_list(payload, ResponseShape.SCORE_LIST)
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return _from_score_list(payload["data"], ResponseShape.WRAPPED_SCORE_LIST)
    if isinstance(payload, dict) and "label" in payload:
        label = str(payload["label"])
        score = _score_of(payload)
        return RawClassification(
            label=label,
            score=score,
            positive_score=score if label == LABEL_POSITIVE else 0.0,
            negative_score=score if label == LABEL_NEGATIVE else 0.0,
            shape=ResponseShape.SINGLE_LABEL,
        )
    logger.warning(f"Unexpected classification response shape, using fallback: {type(payload).__name__}")
    return FALLBACK_CLASSIFICATION


def decode_chat_text(payload: Any) -> str:
    """Extract the generated text from a chat model response."""
    if isinstance(payload, dict) and payload.get("response"):
        return str(payload["response"])
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("choices"), list) and payload["choices"]:
        first = payload["choices"][0]
        if isinstance(first, str):
            return first
        if isinstance(first, dict):
            message = first.get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
            if isinstance(first.get("text"), str):
                return first["text"]
    # Unrecognised shapes are handed to the line parser as JSON text
    return json.dumps(payload)


class WorkersAIClient:
    """Async client for the Workers AI REST API (binary classifier and chat model)."""

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str = None,
        sentiment_model: str = None,
        chat_model: str = None,
        timeout: float = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_id = account_id
        self.api_token = api_token
        self.base_url = (base_url if base_url is not None else default_settings.WORKERS_AI_BASE_URL).rstrip("/")
        self.sentiment_model = sentiment_model if sentiment_model is not None else default_settings.SENTIMENT_MODEL
        self.chat_model = chat_model if chat_model is not None else default_settings.CHAT_MODEL
        self.timeout = timeout if timeout is not None else default_settings.WORKERS_AI_TIMEOUT
        self._client = client

    @classmethod
    def from_settings(cls, config: Settings = None, client: Optional[httpx.AsyncClient] = None) -> "WorkersAIClient":
        """Build a client from settings; raises ConfigurationError when credentials are missing."""
        config = config or default_settings
        account_id, api_token = config.ai_credentials()
        return cls(
            account_id=account_id,
            api_token=api_token,
            base_url=config.WORKERS_AI_BASE_URL,
            sentiment_model=config.SENTIMENT_MODEL,
            chat_model=config.CHAT_MODEL,
            timeout=config.WORKERS_AI_TIMEOUT,
            client=client,
        )

    def run_url(self, model: str) -> str:
        return f"{self.base_url}/accounts/{self.account_id}/ai/run/{model}"

    async def _post(self, url: str, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_token}"}
        if self._client is not None:
            return await self._client.post(url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, json=payload, headers=headers)

    async def _make_request(self, model: str, payload: dict, endpoint: str) -> Any:
        """POST to a model and return the unwrapped ``result`` of the response body."""
        url = self.run_url(model)
        try:
            logger.debug(f"Sending request to Workers AI model: {model}")
            response = await self._post(url, payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            REMOTE_CALLS_TOTAL.labels(endpoint=endpoint, status="http_error").inc()
            logger.error(f"HTTP error occurred: {e.response.status_code} - {e.response.text}")
            raise RemoteClassifierError(e.response.text, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            REMOTE_CALLS_TOTAL.labels(endpoint=endpoint, status="request_error").inc()
            logger.error(f"Request error occurred: {e}")
            raise RemoteClassifierError(str(e) or e.__class__.__name__) from e

        try:
            body = response.json()
        except ValueError as e:
            REMOTE_CALLS_TOTAL.labels(endpoint=endpoint, status="malformed").inc()
            logger.error(f"Malformed response body from {model}: {response.text[:200]}")
            raise RemoteClassifierError("Malformed response body", status_code=response.status_code) from e

        REMOTE_CALLS_TOTAL.labels(endpoint=endpoint, status="success").inc()
        # Workers AI wraps model output as {"result": ...}
        if isinstance(body, dict) and body.get("result"):
            return body["result"]
        return body

    async def classify_binary_sentiment(self, text: str) -> RawClassification:
        payload = await self._make_request(self.sentiment_model, {"text": text}, endpoint="classification")
        return decode_classification(payload)

    async def chat_complete(self, system_prompt: str, user_prompt: str) -> str:
        payload = await self._make_request(
            self.chat_model,
            {
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ]
            },
            endpoint="chat",
        )
        return decode_chat_text(payload)
