"""Model gateway: one async call shape over every supported provider.

OpenAI and Ollama (OpenAI-compatible endpoint) go through AsyncOpenAI,
Anthropic through AsyncAnthropic, and Gemini through its REST API with httpx.
SDK and HTTP failures are mapped onto the simulator's error taxonomy so the
retry policy in ``with_retry`` sees NetworkError / RateLimitError only.
"""

import time
from collections.abc import Sequence
from typing import Any

import anthropic
import httpx
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from deposim.core.config import Settings, get_settings
from deposim.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorCode,
    NetworkError,
    ProviderError,
    RateLimitError,
    with_retry,
)
from deposim.core.llm_usage import log_llm_usage
from deposim.core.logging import get_logger
from deposim.core.providers import get_provider
from deposim.core.schemas_session import ChatMessage, TokenUsage

logger = get_logger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class LLMConfig(BaseModel):
    """Per-call provider selection."""

    provider_id: str = "openai"
    model: str | None = None
    api_key: str | None = None
    max_tokens: int | None = None
    temperature: float = 0.7


class LLMResponse(BaseModel):
    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    provider: str
    model: str


def _as_api_messages(messages: Sequence[ChatMessage | dict[str, Any]]) -> list[dict[str, str]]:
    result = []
    for message in messages:
        if isinstance(message, ChatMessage):
            result.append(message.to_api())
        else:
            result.append({"role": message["role"], "content": message["content"]})
    return result


def _split_system(messages: list[dict[str, str]]) -> tuple[str, list[dict[str, str]]]:
    """Separate system text from the turn list; merge consecutive same-role turns."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    turns: list[dict[str, str]] = []
    for message in messages:
        if message["role"] == "system":
            continue
        if turns and turns[-1]["role"] == message["role"]:
            turns[-1] = {
                "role": message["role"],
                "content": f"{turns[-1]['content']}\n\n{message['content']}",
            }
        else:
            turns.append(dict(message))

    # Providers with a separate system field require the first turn to be the user
    if not turns or turns[0]["role"] != "user":
        turns.insert(0, {"role": "user", "content": "Begin."})
    return "\n\n".join(system_parts), turns


def _map_sdk_error(error: Exception, provider: str) -> Exception:
    """Translate an OpenAI/Anthropic SDK exception into the error taxonomy."""
    # Timeout classes subclass the connection error classes, check them first
    if isinstance(error, (openai.APITimeoutError, anthropic.APITimeoutError)):
        return NetworkError(f"{provider} request timed out", provider)
    if isinstance(error, (openai.APIConnectionError, anthropic.APIConnectionError)):
        return NetworkError(f"Could not reach {provider}: {error}", provider)
    if isinstance(
        error,
        (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            anthropic.AuthenticationError,
            anthropic.PermissionDeniedError,
        ),
    ):
        return AuthenticationError(f"{provider} rejected the API key", provider, error.status_code)
    if isinstance(error, (openai.RateLimitError, anthropic.RateLimitError)):
        return RateLimitError(f"{provider} rate limit exceeded", provider)
    if isinstance(error, (openai.APIStatusError, anthropic.APIStatusError)):
        return ProviderError(str(error.message), provider, error.status_code)
    return ProviderError(str(error), provider)


def _map_http_status(response: httpx.Response, provider: str) -> Exception:
    try:
        payload = response.json()
        message = payload.get("error", {}).get("message") or response.text
    except ValueError:
        message = response.text

    if response.status_code in (401, 403):
        return AuthenticationError(f"{provider} rejected the API key", provider, response.status_code)
    if response.status_code == 429:
        return RateLimitError(f"{provider} rate limit exceeded", provider)
    return ProviderError(message or f"HTTP {response.status_code}", provider, response.status_code)


class ModelGateway:
    """
    Sends a message list to the configured provider and returns text + usage.

    Args:
        settings: Settings override (defaults to the cached settings)
        transport: httpx transport for REST providers (tests inject a mock)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    def resolve_api_key(self, config: LLMConfig) -> str | None:
        """
        API key for the call: the per-session key, else the environment key.

        Raises:
            ConfigurationError: If the provider needs a key and none is set
        """
        provider = get_provider(config.provider_id)
        if not provider.requires_api_key:
            return None

        env_keys = {
            "openai": self.settings.OPENAI_API_KEY,
            "anthropic": self.settings.ANTHROPIC_API_KEY,
            "gemini": self.settings.GEMINI_API_KEY,
        }
        key = (config.api_key or env_keys.get(provider.id) or "").strip()
        if not key:
            raise ConfigurationError(
                f"API key missing for provider {provider.id}",
                setting="api_key",
                code=ErrorCode.API_KEY_MISSING,
                user_message=f"Please enter your {provider.name} API key in the settings to continue.",
            )
        return key

    async def invoke(
        self,
        messages: Sequence[ChatMessage | dict[str, Any]],
        config: LLMConfig,
        workflow: str = "deposition",
        session_id: str | None = None,
    ) -> LLMResponse:
        """
        Call the provider with retries on transient failures.

        Raises:
            ConfigurationError: Unknown provider or missing key
            AuthenticationError: Key rejected
            RateLimitError: Throttled after all retries
            NetworkError: Unreachable or timed out after all retries
            ProviderError: Any other provider failure
        """
        provider = get_provider(config.provider_id)
        model = config.model or provider.default_model
        api_key = self.resolve_api_key(config)
        api_messages = _as_api_messages(messages)

        dispatch = {
            "openai": self._invoke_openai,
            "ollama": self._invoke_ollama,
            "anthropic": self._invoke_anthropic,
            "gemini": self._invoke_gemini,
        }[provider.id]

        async def _call() -> LLMResponse:
            return await dispatch(api_messages, config, model, api_key)

        t0 = time.monotonic()
        response = await with_retry(
            _call,
            max_attempts=self.settings.LLM_MAX_RETRIES,
            initial_delay=self.settings.LLM_RETRY_INITIAL_DELAY,
        )
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        log_llm_usage(
            workflow,
            provider.id,
            model,
            response.usage.input_tokens,
            response.usage.output_tokens,
            duration_ms=elapsed_ms,
            session_id=session_id,
        )
        return response

    def _max_tokens(self, config: LLMConfig) -> int:
        return config.max_tokens or self.settings.LLM_MAX_TOKENS

    # =========================
    # Provider adapters
    # =========================

    async def _invoke_openai_compatible(
        self,
        client: AsyncOpenAI,
        provider_id: str,
        messages: list[dict[str, str]],
        config: LLMConfig,
        model: str,
    ) -> LLMResponse:
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self._max_tokens(config),
                temperature=config.temperature,
            )
        except openai.OpenAIError as e:
            raise _map_sdk_error(e, provider_id) from e

        if not response.choices or not response.choices[0].message.content:
            raise ProviderError("Empty response from model", provider_id)

        usage = TokenUsage()
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
            )
        return LLMResponse(
            content=response.choices[0].message.content,
            usage=usage,
            provider=provider_id,
            model=model,
        )

    async def _invoke_openai(
        self, messages: list[dict[str, str]], config: LLMConfig, model: str, api_key: str | None
    ) -> LLMResponse:
        client = AsyncOpenAI(
            api_key=api_key,
            timeout=self.settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )
        return await self._invoke_openai_compatible(client, "openai", messages, config, model)

    async def _invoke_ollama(
        self, messages: list[dict[str, str]], config: LLMConfig, model: str, api_key: str | None
    ) -> LLMResponse:
        # Ollama serves an OpenAI-compatible API; the key is ignored but required by the SDK
        client = AsyncOpenAI(
            api_key="ollama",
            base_url=f"{self.settings.OLLAMA_BASE_URL.rstrip('/')}/v1",
            timeout=self.settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )
        return await self._invoke_openai_compatible(client, "ollama", messages, config, model)

    async def _invoke_anthropic(
        self, messages: list[dict[str, str]], config: LLMConfig, model: str, api_key: str | None
    ) -> LLMResponse:
        client = AsyncAnthropic(
            api_key=api_key,
            timeout=self.settings.LLM_TIMEOUT_SECONDS,
            max_retries=0,
        )
        system, turns = _split_system(messages)

        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": self._max_tokens(config),
            "messages": turns,
            "temperature": config.temperature,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await client.messages.create(**kwargs)
        except anthropic.AnthropicError as e:
            raise _map_sdk_error(e, "anthropic") from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise ProviderError(
                f"Empty response from model (stop_reason={response.stop_reason})", "anthropic"
            )
        return LLMResponse(
            content=text,
            usage=TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            ),
            provider="anthropic",
            model=model,
        )

    async def _invoke_gemini(
        self, messages: list[dict[str, str]], config: LLMConfig, model: str, api_key: str | None
    ) -> LLMResponse:
        system, turns = _split_system(messages)
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if turn["role"] == "assistant" else "user",
                    "parts": [{"text": turn["content"]}],
                }
                for turn in turns
            ],
            "generationConfig": {
                "maxOutputTokens": self._max_tokens(config),
                "temperature": config.temperature,
            },
        }
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.LLM_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{GEMINI_API_BASE}/models/{model}:generateContent",
                    headers={"x-goog-api-key": api_key or ""},
                    json=body,
                )
        except httpx.TimeoutException as e:
            raise NetworkError("gemini request timed out", "gemini") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Could not reach gemini: {e}", "gemini") from e

        if resp.status_code >= 400:
            raise _map_http_status(resp, "gemini")

        data = resp.json()
        candidates = data.get("candidates") or []
        parts = []
        if candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            raise ProviderError("Empty response from model", "gemini", resp.status_code)

        usage_meta = data.get("usageMetadata") or {}
        return LLMResponse(
            content=text,
            usage=TokenUsage(
                input_tokens=usage_meta.get("promptTokenCount", 0),
                output_tokens=usage_meta.get("candidatesTokenCount", 0),
            ),
            provider="gemini",
            model=model,
        )


_gateway: ModelGateway | None = None


def get_gateway() -> ModelGateway:
    """Process-wide gateway for the API layer (stateless, safe to share)."""
    global _gateway
    if _gateway is None:
        _gateway = ModelGateway()
    return _gateway
