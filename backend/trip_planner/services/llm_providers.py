# backend/trip_planner/services/llm_providers.py
"""
Named model backends behind one dispatch call.

Both providers speak the chat-completion envelope
``{"choices": [{"message": {"content": ..., "tool_calls": [...]}}]}``:

- "chat":   general chat-completion model on an OpenAI-compatible gateway
            (openai SDK, SDK retries disabled so our transport owns backoff)
- "search": web-search-augmented model (Perplexity-style endpoint, requests)

Callers sanitize every free-text field before building the payload; nothing
here touches message content.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import openai
import requests
from openai import OpenAI

from trip_planner.core.config_loader import settings
from trip_planner.core.errors import (
    ConfigurationError,
    InsufficientCredits,
    MalformedOutputError,
    NetworkError,
    ProviderError,
    RateLimited,
    UnsupportedProviderError,
)
from trip_planner.core.logger import get_logger
from trip_planner.utils.retry import RetryableTransport, RetryOptions

log = get_logger("providers")

CHAT_PROVIDER = "chat"
SEARCH_PROVIDER = "search"

_BODY_LOG_LIMIT = 500


@dataclass
class ModelReply:
    content: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    message: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# CHAT-COMPLETION GATEWAY (openai SDK)
# ---------------------------------------------------------------------------
class ChatCompletionProvider:
    name = CHAT_PROVIDER
    network_errors = (openai.APIConnectionError,)   # includes APITimeoutError

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.LOVABLE_API_KEY
        self.base_url = base_url or settings.chat_base_url
        self.model = model or settings.chat_model
        self.timeout = timeout or settings.provider_timeout_seconds
        self._client: Optional[OpenAI] = None

    def check_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("LOVABLE_API_KEY is not configured")

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def post(self, payload: Dict[str, Any]):
        """One HTTP round trip; returns the httpx response whatever its status."""
        try:
            raw = self.client.chat.completions.with_raw_response.create(model=self.model, **payload)
            return raw.http_response
        except openai.APIStatusError as e:
            return e.response


# ---------------------------------------------------------------------------
# SEARCH-AUGMENTED MODEL (plain HTTP)
# ---------------------------------------------------------------------------
class SearchProvider:
    name = SEARCH_PROVIDER
    network_errors = (requests.RequestException,)

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.PERPLEXITY_API_KEY
        self.url = url or settings.search_url
        self.model = model or settings.search_model
        self.timeout = timeout or settings.provider_timeout_seconds

    def check_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("PERPLEXITY_API_KEY is not configured")

    def post(self, payload: Dict[str, Any]) -> requests.Response:
        return requests.post(
            self.url,
            json={"model": self.model, **payload},
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )


# ---------------------------------------------------------------------------
# DISPATCH
# ---------------------------------------------------------------------------
class ProviderDispatch:
    def __init__(
        self,
        providers: Dict[str, Any],
        retry_options: Optional[RetryOptions] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.providers = providers
        self.retry_options = retry_options or RetryOptions()
        self.sleep = sleep

    @classmethod
    def from_settings(cls) -> "ProviderDispatch":
        return cls(
            providers={
                CHAT_PROVIDER: ChatCompletionProvider(),
                SEARCH_PROVIDER: SearchProvider(),
            },
            retry_options=RetryOptions.from_settings(),
        )

    def _provider(self, name: str):
        provider = self.providers.get(name)
        if provider is None:
            raise UnsupportedProviderError(name)
        return provider

    def _transport(self, provider) -> RetryableTransport:
        kwargs = {"options": self.retry_options, "network_errors": provider.network_errors}
        if self.sleep is not None:
            kwargs["sleep"] = self.sleep
        return RetryableTransport(**kwargs)

    def complete(self, name: str, payload: Dict[str, Any]) -> ModelReply:
        provider = self._provider(name)
        provider.check_configured()

        log.info(f"Dispatching to provider={name} messages={len(payload.get('messages', []))}")
        try:
            response = self._transport(provider).execute(lambda: provider.post(payload))
        except provider.network_errors as e:
            log.error(f"Provider {name} unreachable: {e}")
            raise NetworkError(f"Provider {name} unreachable: {e}") from e

        self._raise_for_status(name, response)

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedOutputError(f"Provider {name} returned non-JSON body", response.text) from e

        choices = body.get("choices") if isinstance(body, dict) else None
        if not choices:
            log.error(f"Provider {name} response has no choices: {response.text[:_BODY_LOG_LIMIT]}")
            raise MalformedOutputError(f"Provider {name} response has no choices", response.text)

        message = choices[0].get("message") or {}
        return ModelReply(
            content=message.get("content") or "",
            tool_calls=message.get("tool_calls") or [],
            message=message,
        )

    def send_to_provider(self, name: str, payload: Dict[str, Any]) -> str:
        return self.complete(name, payload).content

    def _raise_for_status(self, name: str, response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        if status == 429:
            log.warning(f"Provider {name} rate limited")
            raise RateLimited(f"Provider {name} returned 429")
        if status == 402:
            log.warning(f"Provider {name} reports insufficient credits")
            raise InsufficientCredits(f"Provider {name} returned 402")

        log.error(f"Provider {name} error {status}: {response.text[:_BODY_LOG_LIMIT]}")
        raise ProviderError(status)
