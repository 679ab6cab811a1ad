import json

import pytest
from fastapi.testclient import TestClient

from trip_planner.api import deps
from trip_planner.core.security import create_access_token
from trip_planner.db.storage import SQLiteStorage
from trip_planner.services.attractions_cache import AttractionsCache
from trip_planner.services.llm_providers import ModelReply


class ScriptedDispatch:
    """
    Stands in for ProviderDispatch: hands out queued replies in order and
    records every (provider, payload) it was asked to send.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def complete(self, name, payload):
        self.calls.append((name, payload))
        if not self.replies:
            raise AssertionError(f"Unexpected call to provider {name}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, ModelReply):
            return reply
        return ModelReply(content=reply, message={"role": "assistant", "content": reply})

    def send_to_provider(self, name, payload):
        return self.complete(name, payload).content


def tool_call_reply(name, arguments, call_id="call_1"):
    """A model reply asking for one tool call, as the chat gateway returns it."""
    tool_call = {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": json.dumps(arguments)},
    }
    return ModelReply(
        content="",
        tool_calls=[tool_call],
        message={"role": "assistant", "content": None, "tool_calls": [tool_call]},
    )


def attraction(name, **extra):
    record = {
        "name": name,
        "type": "museu",
        "address": f"{name} St, New York",
        "hours": "10:00-17:00",
        "description": f"About {name}",
        "estimatedDuration": 90,
        "rating": "4.5",
        "reviewCount": "1200",
        "whyRecommended": "Popular",
        "verificationUrl": "https://maps.google.com/?q=x",
    }
    record.update(extra)
    return record


@pytest.fixture
def storage():
    store = SQLiteStorage(":memory:")
    yield store
    store.close()


@pytest.fixture
def dispatch():
    return ScriptedDispatch()


@pytest.fixture
def cache():
    return AttractionsCache(ttl_seconds=60)


@pytest.fixture
def user_id():
    return "user-1"


@pytest.fixture
def make_program(storage, user_id):
    def _make(title="Visita ao MoMA", date="2025-06-15", **fields):
        record = {"user_id": user_id, "title": title, "date": date}
        record.update(fields)
        return storage.insert("programs", record)
    return _make


@pytest.fixture
def client(storage, dispatch, cache):
    from main import app

    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_dispatch] = lambda: dispatch
    app.dependency_overrides[deps.get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
