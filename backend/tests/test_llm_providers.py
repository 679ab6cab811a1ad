"""
Unit tests for trip_planner/services/llm_providers.py

Providers are replaced by in-memory fakes so status classification and the
retry interplay can be checked without any network access.
"""
import json

import openai
import pytest
import requests
from unittest.mock import MagicMock, patch

from trip_planner.core.errors import (
    ConfigurationError,
    InsufficientCredits,
    MalformedOutputError,
    NetworkError,
    ProviderError,
    RateLimited,
    UnsupportedProviderError,
)
from trip_planner.services.llm_providers import (
    CHAT_PROVIDER,
    SEARCH_PROVIDER,
    ChatCompletionProvider,
    ProviderDispatch,
    SearchProvider,
)
from trip_planner.utils.retry import RetryOptions


class FakeResponse:
    def __init__(self, status_code, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            return json.loads(self.text)
        return self._body


class FakeProvider:
    network_errors = (ConnectionError,)

    def __init__(self, *outcomes, configured=True):
        self.outcomes = list(outcomes)
        self.configured = configured
        self.payloads = []

    def check_configured(self):
        if not self.configured:
            raise ConfigurationError("key missing")

    def post(self, payload):
        self.payloads.append(payload)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def _ok(content, **message):
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content, **message}}]})


def _dispatch(provider, max_retries=3):
    sleep = MagicMock()
    dispatch = ProviderDispatch({CHAT_PROVIDER: provider}, RetryOptions(max_retries=max_retries), sleep=sleep)
    return dispatch, sleep


# ---------------------------------------------------------------------------
# Dispatch: success paths
# ---------------------------------------------------------------------------

class TestDispatchSuccess:
    def test_returns_content(self):
        provider = FakeProvider(_ok("Olá!"))
        dispatch, _ = _dispatch(provider)
        assert dispatch.send_to_provider(CHAT_PROVIDER, {"messages": []}) == "Olá!"
        assert provider.payloads == [{"messages": []}]

    def test_tool_calls_exposed(self):
        call = {"id": "c1", "function": {"name": "add_program", "arguments": "{}"}}
        dispatch, _ = _dispatch(FakeProvider(_ok(None, tool_calls=[call])))
        reply = dispatch.complete(CHAT_PROVIDER, {"messages": []})
        assert reply.content == ""
        assert reply.tool_calls == [call]
        assert reply.message["tool_calls"] == [call]

    def test_transient_503_absorbed_by_transport(self):
        dispatch, sleep = _dispatch(FakeProvider(FakeResponse(503, {}), FakeResponse(503, {}), _ok("ok")))
        assert dispatch.send_to_provider(CHAT_PROVIDER, {}) == "ok"
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_transient_429_absorbed_by_transport(self):
        dispatch, _ = _dispatch(FakeProvider(FakeResponse(429, {}), _ok("ok")))
        assert dispatch.send_to_provider(CHAT_PROVIDER, {}) == "ok"


# ---------------------------------------------------------------------------
# Dispatch: error classification
# ---------------------------------------------------------------------------

class TestDispatchErrors:
    def test_unknown_provider(self):
        dispatch, _ = _dispatch(FakeProvider())
        with pytest.raises(UnsupportedProviderError):
            dispatch.complete("gpt-17", {})

    def test_missing_key(self):
        dispatch, _ = _dispatch(FakeProvider(configured=False))
        with pytest.raises(ConfigurationError):
            dispatch.complete(CHAT_PROVIDER, {})

    def test_429_after_exhaustion_is_rate_limited(self):
        provider = FakeProvider(*[FakeResponse(429, {}) for _ in range(4)])
        dispatch, sleep = _dispatch(provider)
        with pytest.raises(RateLimited) as exc:
            dispatch.complete(CHAT_PROVIDER, {})
        assert exc.value.status_code == 429
        assert sleep.call_count == 3

    def test_402_is_insufficient_credits_without_retry(self):
        provider = FakeProvider(FakeResponse(402, {}))
        dispatch, sleep = _dispatch(provider)
        with pytest.raises(InsufficientCredits) as exc:
            dispatch.complete(CHAT_PROVIDER, {})
        assert exc.value.status_code == 402
        sleep.assert_not_called()

    @pytest.mark.parametrize("status", [400, 401, 404])
    def test_other_client_errors(self, status):
        dispatch, _ = _dispatch(FakeProvider(FakeResponse(status, {"error": "bad"})))
        with pytest.raises(ProviderError) as exc:
            dispatch.complete(CHAT_PROVIDER, {})
        assert exc.value.status == status

    def test_persistent_500(self):
        dispatch, _ = _dispatch(FakeProvider(*[FakeResponse(500, {}) for _ in range(2)]), max_retries=1)
        with pytest.raises(ProviderError) as exc:
            dispatch.complete(CHAT_PROVIDER, {})
        assert exc.value.status == 500

    def test_network_failure_after_retries(self):
        provider = FakeProvider(*[ConnectionError("down") for _ in range(4)])
        dispatch, sleep = _dispatch(provider)
        with pytest.raises(NetworkError) as exc:
            dispatch.complete(CHAT_PROVIDER, {})
        assert isinstance(exc.value.__cause__, ConnectionError)
        assert sleep.call_count == 3

    def test_non_json_body(self):
        dispatch, _ = _dispatch(FakeProvider(FakeResponse(200, text="<html>oops</html>")))
        with pytest.raises(MalformedOutputError) as exc:
            dispatch.complete(CHAT_PROVIDER, {})
        assert "oops" in exc.value.excerpt

    def test_missing_choices(self):
        dispatch, _ = _dispatch(FakeProvider(FakeResponse(200, {"choices": []})))
        with pytest.raises(MalformedOutputError):
            dispatch.complete(CHAT_PROVIDER, {})


# ---------------------------------------------------------------------------
# Concrete providers
# ---------------------------------------------------------------------------

class TestSearchProvider:
    def test_posts_model_and_bearer(self):
        provider = SearchProvider(api_key="pplx-key", url="https://search.example/chat", model="sonar-pro", timeout=5)
        with patch("trip_planner.services.llm_providers.requests.post") as mock_post:
            provider.post({"messages": [{"role": "user", "content": "hi"}], "temperature": 0.2})

        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        assert args[0] == "https://search.example/chat"
        assert kwargs["json"]["model"] == "sonar-pro"
        assert kwargs["json"]["temperature"] == 0.2
        assert kwargs["headers"]["Authorization"] == "Bearer pplx-key"
        assert kwargs["timeout"] == 5

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            SearchProvider(api_key="").check_configured()

    def test_network_errors_are_requests_exceptions(self):
        assert issubclass(requests.ConnectionError, SearchProvider.network_errors)


class TestChatCompletionProvider:
    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            ChatCompletionProvider(api_key="").check_configured()

    def test_client_has_sdk_retries_disabled(self):
        provider = ChatCompletionProvider(api_key="k", base_url="https://gateway.example/v1", timeout=7)
        assert provider.client.max_retries == 0
        assert str(provider.client.base_url).startswith("https://gateway.example/v1")

    def test_status_error_response_is_returned(self):
        provider = ChatCompletionProvider(api_key="k")
        error_response = MagicMock(status_code=429, headers={})
        fake_client = MagicMock()
        fake_client.chat.completions.with_raw_response.create.side_effect = openai.APIStatusError(
            "rate limited", response=error_response, body=None
        )
        provider._client = fake_client

        assert provider.post({"messages": []}) is error_response

    def test_connection_errors_are_network_errors(self):
        assert issubclass(openai.APITimeoutError, ChatCompletionProvider.network_errors)


class TestFromSettings:
    def test_registers_both_providers(self):
        dispatch = ProviderDispatch.from_settings()
        assert set(dispatch.providers) == {CHAT_PROVIDER, SEARCH_PROVIDER}
