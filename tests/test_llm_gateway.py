"""Tests for the model gateway (provider adapters mocked)."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from deposim.core.config import Settings
from deposim.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorCode,
    NetworkError,
    ProviderError,
    RateLimitError,
)
from deposim.core.llm import LLMConfig, ModelGateway, _map_sdk_error, _split_system
from deposim.core.schemas_session import ChatMessage

REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat")

MESSAGES = [
    ChatMessage(role="system", content="SYS"),
    ChatMessage(role="user", content="Where were you?"),
]


def _settings(**overrides) -> Settings:
    values = {
        "OPENAI_API_KEY": None,
        "ANTHROPIC_API_KEY": None,
        "GEMINI_API_KEY": None,
        "LLM_MAX_RETRIES": 3,
        "LLM_RETRY_INITIAL_DELAY": 0.0,
    }
    values.update(overrides)
    return Settings(**values)


def _openai_response(content="At home.", prompt_tokens=12, completion_tokens=4):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


def _openai_client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


# =========================
# Key resolution
# =========================


def test_session_key_wins_over_environment_key():
    gateway = ModelGateway(settings=_settings(OPENAI_API_KEY="env-key"))

    assert gateway.resolve_api_key(LLMConfig(provider_id="openai", api_key=" user-key ")) == "user-key"
    assert gateway.resolve_api_key(LLMConfig(provider_id="openai")) == "env-key"


def test_missing_key_raises_configuration_error():
    gateway = ModelGateway(settings=_settings())

    with pytest.raises(ConfigurationError) as exc_info:
        gateway.resolve_api_key(LLMConfig(provider_id="anthropic"))

    assert exc_info.value.code == ErrorCode.API_KEY_MISSING
    assert "Anthropic" in exc_info.value.user_message


def test_ollama_needs_no_key():
    gateway = ModelGateway(settings=_settings())

    assert gateway.resolve_api_key(LLMConfig(provider_id="ollama")) is None


@pytest.mark.asyncio
async def test_unknown_provider_is_rejected():
    gateway = ModelGateway(settings=_settings())

    with pytest.raises(ConfigurationError) as exc_info:
        await gateway.invoke(MESSAGES, LLMConfig(provider_id="bogus"))

    assert exc_info.value.code == ErrorCode.INVALID_PROVIDER


# =========================
# Message shaping and error mapping
# =========================


def test_split_system_merges_turns_and_starts_with_user():
    system, turns = _split_system(
        [
            {"role": "system", "content": "A"},
            {"role": "assistant", "content": "Summary."},
            {"role": "user", "content": "Q1"},
            {"role": "user", "content": "Q2"},
        ]
    )

    assert system == "A"
    assert turns == [
        {"role": "user", "content": "Begin."},
        {"role": "assistant", "content": "Summary."},
        {"role": "user", "content": "Q1\n\nQ2"},
    ]


@pytest.mark.parametrize(
    "error,expected",
    [
        (openai.APITimeoutError(request=REQUEST), NetworkError),
        (openai.APIConnectionError(request=REQUEST), NetworkError),
        (
            openai.AuthenticationError(
                "bad key", response=httpx.Response(401, request=REQUEST), body=None
            ),
            AuthenticationError,
        ),
        (
            openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None),
            RateLimitError,
        ),
        (
            openai.InternalServerError(
                "overloaded", response=httpx.Response(500, request=REQUEST), body=None
            ),
            ProviderError,
        ),
        (anthropic.APITimeoutError(request=REQUEST), NetworkError),
        (
            anthropic.PermissionDeniedError(
                "forbidden", response=httpx.Response(403, request=REQUEST), body=None
            ),
            AuthenticationError,
        ),
        (
            anthropic.RateLimitError(
                "slow down", response=httpx.Response(429, request=REQUEST), body=None
            ),
            RateLimitError,
        ),
    ],
)
def test_map_sdk_error(error, expected):
    assert isinstance(_map_sdk_error(error, "openai"), expected)


def test_map_sdk_error_keeps_status_code():
    error = openai.BadRequestError(
        "context too long", response=httpx.Response(400, request=REQUEST), body=None
    )

    mapped = _map_sdk_error(error, "openai")

    assert isinstance(mapped, ProviderError)
    assert mapped.status_code == 400


# =========================
# OpenAI / Ollama
# =========================


@pytest.mark.asyncio
async def test_openai_invoke_returns_text_and_usage():
    create = AsyncMock(return_value=_openai_response())
    gateway = ModelGateway(settings=_settings())

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)) as client_cls:
        response = await gateway.invoke(
            MESSAGES, LLMConfig(provider_id="openai", model="gpt-4o-mini", api_key="sk-test")
        )

    assert response.content == "At home."
    assert response.usage.input_tokens == 12
    assert response.usage.output_tokens == 4
    assert response.model == "gpt-4o-mini"
    assert client_cls.call_args.kwargs["api_key"] == "sk-test"
    assert client_cls.call_args.kwargs["max_retries"] == 0
    sent = create.call_args.kwargs
    assert sent["messages"] == [m.to_api() for m in MESSAGES]
    assert sent["model"] == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_openai_default_model_is_used():
    create = AsyncMock(return_value=_openai_response())
    gateway = ModelGateway(settings=_settings())

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)):
        response = await gateway.invoke(MESSAGES, LLMConfig(provider_id="openai", api_key="k"))

    assert response.model == "gpt-4.1-mini"


@pytest.mark.asyncio
async def test_transient_errors_are_retried():
    create = AsyncMock(side_effect=[openai.APIConnectionError(request=REQUEST), _openai_response()])
    gateway = ModelGateway(settings=_settings())

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)):
        response = await gateway.invoke(MESSAGES, LLMConfig(provider_id="openai", api_key="k"))

    assert response.content == "At home."
    assert create.await_count == 2


@pytest.mark.asyncio
async def test_authentication_errors_are_not_retried():
    create = AsyncMock(
        side_effect=openai.AuthenticationError(
            "bad key", response=httpx.Response(401, request=REQUEST), body=None
        )
    )
    gateway = ModelGateway(settings=_settings())

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)):
        with pytest.raises(AuthenticationError):
            await gateway.invoke(MESSAGES, LLMConfig(provider_id="openai", api_key="k"))

    assert create.await_count == 1


@pytest.mark.asyncio
async def test_rate_limit_surfaces_after_all_attempts():
    create = AsyncMock(
        side_effect=openai.RateLimitError(
            "slow down", response=httpx.Response(429, request=REQUEST), body=None
        )
    )
    gateway = ModelGateway(settings=_settings(LLM_MAX_RETRIES=2))

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)):
        with pytest.raises(RateLimitError):
            await gateway.invoke(MESSAGES, LLMConfig(provider_id="openai", api_key="k"))

    assert create.await_count == 2


@pytest.mark.asyncio
async def test_empty_completion_is_a_provider_error():
    create = AsyncMock(return_value=_openai_response(content=""))
    gateway = ModelGateway(settings=_settings())

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)):
        with pytest.raises(ProviderError, match="Empty response"):
            await gateway.invoke(MESSAGES, LLMConfig(provider_id="openai", api_key="k"))


@pytest.mark.asyncio
async def test_ollama_uses_local_openai_compatible_endpoint():
    create = AsyncMock(return_value=_openai_response())
    gateway = ModelGateway(settings=_settings(OLLAMA_BASE_URL="http://gpu-box:11434/"))

    with patch("deposim.core.llm.AsyncOpenAI", return_value=_openai_client(create)) as client_cls:
        response = await gateway.invoke(MESSAGES, LLMConfig(provider_id="ollama"))

    assert response.provider == "ollama"
    assert response.model == "llama3:latest"
    assert client_cls.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"


# =========================
# Anthropic
# =========================


@pytest.mark.asyncio
async def test_anthropic_sends_system_separately():
    create = AsyncMock(
        return_value=SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Objection, form.")],
            usage=SimpleNamespace(input_tokens=100, output_tokens=20),
            stop_reason="end_turn",
        )
    )
    client = MagicMock()
    client.messages.create = create
    gateway = ModelGateway(settings=_settings())

    with patch("deposim.core.llm.AsyncAnthropic", return_value=client):
        response = await gateway.invoke(
            MESSAGES, LLMConfig(provider_id="anthropic", api_key="sk-ant-test")
        )

    assert response.content == "Objection, form."
    assert response.usage.total == 120
    sent = create.call_args.kwargs
    assert sent["system"] == "SYS"
    assert sent["messages"] == [{"role": "user", "content": "Where were you?"}]
    assert sent["model"] == "claude-sonnet-4-5-20250929"


# =========================
# Gemini (REST via httpx)
# =========================


def _gemini_gateway(handler, **overrides) -> ModelGateway:
    return ModelGateway(settings=_settings(**overrides), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_gemini_request_shape_and_response():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "candidates": [{"content": {"parts": [{"text": "I was "}, {"text": "at home."}]}}],
                "usageMetadata": {"promptTokenCount": 30, "candidatesTokenCount": 6},
            },
        )

    history = [
        *MESSAGES,
        ChatMessage(role="assistant", content="Home."),
        ChatMessage(role="user", content="Sure?"),
    ]
    response = await _gemini_gateway(handler).invoke(
        history, LLMConfig(provider_id="gemini", api_key="g-key")
    )

    assert response.content == "I was at home."
    assert response.usage.input_tokens == 30
    assert seen["url"].endswith("/models/gemini-2.5-flash:generateContent")
    assert seen["key"] == "g-key"
    assert seen["body"]["systemInstruction"] == {"parts": [{"text": "SYS"}]}
    assert [c["role"] for c in seen["body"]["contents"]] == ["user", "model", "user"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,expected",
    [(401, AuthenticationError), (403, AuthenticationError), (429, RateLimitError), (500, ProviderError)],
)
async def test_gemini_http_errors_are_mapped(status, expected):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status, json={"error": {"message": "request failed"}})

    gateway = _gemini_gateway(handler, LLM_MAX_RETRIES=1)

    with pytest.raises(expected):
        await gateway.invoke(MESSAGES, LLMConfig(provider_id="gemini", api_key="g-key"))

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_gemini_timeout_is_a_retryable_network_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    gateway = _gemini_gateway(handler, LLM_MAX_RETRIES=2)

    with pytest.raises(NetworkError):
        await gateway.invoke(MESSAGES, LLMConfig(provider_id="gemini", api_key="g-key"))

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_gemini_empty_candidates_is_a_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(ProviderError, match="Empty response"):
        await _gemini_gateway(handler).invoke(
            MESSAGES, LLMConfig(provider_id="gemini", api_key="g-key")
        )
