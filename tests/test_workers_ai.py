import json

import httpx
import pytest

from fakes import make_item
from sentiflow.config import Settings
from sentiflow.core.sentiment import SentimentAnalyzer
from sentiflow.exceptions import ConfigurationError, RemoteClassifierError
from sentiflow.services.workers_ai import (
    FALLBACK_CLASSIFICATION,
    ResponseShape,
    WorkersAIClient,
    decode_chat_text,
    decode_classification,
)


def _client(handler) -> WorkersAIClient:
    transport = httpx.MockTransport(handler)
    return WorkersAIClient(
        account_id="acct-123",
        api_token="token-abc",
        base_url="https://ai.example.test/client/v4/",
        sentiment_model="@cf/test/sentiment",
        chat_model="@cf/test/chat",
        client=httpx.AsyncClient(transport=transport),
    )


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------
def test_decode_score_list_picks_highest_score():
    raw = decode_classification([
        {"label": "NEGATIVE", "score": 0.2},
        {"label": "POSITIVE", "score": 0.8},
    ])
    assert raw.label == "POSITIVE"
    assert raw.score == 0.8
    assert raw.positive_score == 0.8
    assert raw.negative_score == 0.2
    assert raw.shape is ResponseShape.SCORE_LIST


def test_decode_score_list_first_entry_wins_ties():
    raw = decode_classification([
        {"label": "NEGATIVE", "score": 0.5},
        {"label": "POSITIVE", "score": 0.5},
    ])
    assert raw.label == "NEGATIVE"


def test_decode_wrapped_score_list():
    raw = decode_classification({"data": [{"label": "NEGATIVE", "score": 0.9}, {"label": "POSITIVE", "score": 0.1}]})
    assert raw.label == "NEGATIVE"
    assert raw.shape is ResponseShape.WRAPPED_SCORE_LIST


def test_decode_single_label_fills_only_its_own_score():
    raw = decode_classification({"label": "NEGATIVE", "score": 0.8})
    assert raw.shape is ResponseShape.SINGLE_LABEL
    assert raw.negative_score == 0.8
    assert raw.positive_score == 0.0


@pytest.mark.parametrize("payload", [{"unexpected": True}, "POSITIVE", None, 42])
def test_decode_unknown_shape_uses_fallback(payload):
    assert decode_classification(payload) == FALLBACK_CLASSIFICATION


def test_decode_empty_score_list_is_an_error():
    with pytest.raises(RemoteClassifierError):
        decode_classification([])


@pytest.mark.parametrize("payload, expected", [
    ({"response": "emotion: happy\ntheme: Other"}, "emotion: happy\ntheme: Other"),
    ("plain text reply", "plain text reply"),
    ({"choices": [{"message": {"content": "Feature Requests"}}]}, "Feature Requests"),
    ({"choices": [{"text": "Documentation Gaps"}]}, "Documentation Gaps"),
])
def test_decode_chat_text_variants(payload, expected):
    assert decode_chat_text(payload) == expected


def test_decode_chat_text_serializes_unknown_shapes():
    assert decode_chat_text({"weird": 1}) == json.dumps({"weird": 1})


# ---------------------------------------------------------------------------
# HTTP behaviour
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_classify_posts_text_and_unwraps_result():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "success": True,
            "result": [{"label": "POSITIVE", "score": 0.97}, {"label": "NEGATIVE", "score": 0.03}],
        })

    raw = await _client(handler).classify_binary_sentiment("Love the new dashboard")

    assert seen["url"] == "https://ai.example.test/client/v4/accounts/acct-123/ai/run/@cf/test/sentiment"
    assert seen["auth"] == "Bearer token-abc"
    assert seen["body"] == {"text": "Love the new dashboard"}
    assert raw.label == "POSITIVE"
    assert raw.score == 0.97


@pytest.mark.asyncio
async def test_chat_complete_sends_system_and_user_messages():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"result": {"response": "emotion: confused\ntheme: Documentation Gaps"}})

    reply = await _client(handler).chat_complete("be terse", "classify this")

    assert seen["body"]["messages"] == [
        {"role": "system", "content": "be terse"},
        {"role": "user", "content": "classify this"},
    ]
    assert reply == "emotion: confused\ntheme: Documentation Gaps"


@pytest.mark.asyncio
async def test_non_success_status_raises_with_status_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="rate limited")

    with pytest.raises(RemoteClassifierError) as exc_info:
        await _client(handler).classify_binary_sentiment("anything")

    assert exc_info.value.status_code == 429
    assert "rate limited" in str(exc_info.value)


@pytest.mark.asyncio
async def test_malformed_body_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>gateway</html>")

    with pytest.raises(RemoteClassifierError, match="Malformed response body"):
        await _client(handler).chat_complete("system", "user")


@pytest.mark.asyncio
async def test_transport_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteClassifierError) as exc_info:
        await _client(handler).classify_binary_sentiment("anything")

    assert exc_info.value.status_code is None


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
def test_from_settings_requires_credentials(monkeypatch):
    monkeypatch.delenv("CLOUDFLARE_ACCOUNT_ID", raising=False)
    monkeypatch.delenv("CLOUDFLARE_API_TOKEN", raising=False)

    with pytest.raises(ConfigurationError):
        WorkersAIClient.from_settings(Settings())


def test_from_settings_uses_configured_models(monkeypatch):
    monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acct-9")
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "secret")
    monkeypatch.setenv("SENTIMENT_MODEL", "@cf/custom/sst")

    client = WorkersAIClient.from_settings(Settings())

    assert client.account_id == "acct-9"
    assert client.run_url(client.sentiment_model).endswith("/accounts/acct-9/ai/run/@cf/custom/sst")


@pytest.mark.parametrize("payload, expected", [
    ({"choices": ["emotion: happy"]}, "emotion: happy"),
    ({"choices": [42]}, json.dumps({"choices": [42]})),
    ({"choices": [{"message": "not an object"}]}, json.dumps({"choices": [{"message": "not an object"}]})),
    ({"choices": "emotion: happy"}, json.dumps({"choices": "emotion: happy"})),
])
def test_decode_chat_text_tolerates_odd_choices(payload, expected):
    assert decode_chat_text(payload) == expected


@pytest.mark.asyncio
async def test_odd_chat_shape_keeps_the_classification():
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url).endswith("/sentiment"):
            return httpx.Response(200, json={"result": [{"label": "POSITIVE", "score": 0.95}, {"label": "NEGATIVE", "score": 0.05}]})
        return httpx.Response(200, json={"result": {"choices": [{"message": [42]}]}})

    analyzer = SentimentAnalyzer(_client(handler))

    result = await analyzer.analyze_sentiment(make_item("The new release is solid"))

    assert result.sentiment == "positive"
    assert result.score == pytest.approx(0.95)
    assert result.emotion == "neutral"
    assert result.theme == "Other"


@pytest.mark.asyncio
async def test_unexpected_chat_error_keeps_the_classification(fake_classifier, monkeypatch):
    async def broken_chat(system_prompt, user_prompt):
        raise AttributeError("'str' object has no attribute 'get'")

    monkeypatch.setattr(fake_classifier, "chat_complete", broken_chat)

    result = await SentimentAnalyzer(fake_classifier).analyze_sentiment(make_item("The new release is solid"))

    assert result.sentiment == "positive"
    assert result.emotion == "neutral"
