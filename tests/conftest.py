"""Shared fixtures: a scripted HTTP session and a wired sync engine."""

import json
import threading
from collections import deque
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import pytest
import requests

from tasksync.adapters.connectivity import ManualConnectivity
from tasksync.adapters.http import ApiClient, ConditionalFetchClient
from tasksync.adapters.store import SQLiteLocalStore
from tasksync.application.service import TaskSyncService
from tasksync.application.sync import MutationQueue
from tasksync.core.domain.events import EventBus
from tasksync.core.ports.token_provider import StaticTokenProvider


API_URL = "http://api.test"


def make_response(
    status: int = 200,
    body: Any = None,
    headers: Optional[dict[str, str]] = None,
) -> requests.Response:
    """Build a real ``requests.Response`` with a JSON body."""
    response = requests.Response()
    response.status_code = status
    response._content = b"" if body is None else json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    return response


class FakeSession:
    """
    Stand-in for ``requests.Session`` that records calls.

    Responses come from ``responder(method, path, kwargs)`` when set,
    otherwise from the scripted queue; an exception in the queue is raised.
    An empty queue answers 200 with no body.
    """

    def __init__(self, responder: Optional[Callable[..., Any]] = None):
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self.responder = responder
        self._script: deque = deque()
        self._lock = threading.Lock()
        self.closed = False

    def script(self, *items: Any) -> "FakeSession":
        self._script.extend(items)
        return self

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        with self._lock:
            self.calls.append({
                "method": method,
                "url": url,
                "path": urlparse(url).path,
                "headers": dict(kwargs.get("headers") or {}),
                "json": kwargs.get("json"),
            })
            if self.responder is not None:
                item = self.responder(method, urlparse(url).path, kwargs)
            elif self._script:
                item = self._script.popleft()
            else:
                item = make_response(200)

        if isinstance(item, BaseException):
            raise item
        return item

    def calls_for(self, method: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def connectivity():
    return ManualConnectivity(online=True)


@pytest.fixture
def store(tmp_path):
    local_store = SQLiteLocalStore(tmp_path / "tasksync.db")
    local_store.open()
    yield local_store
    local_store.close()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def api(session):
    return ApiClient(API_URL, token_provider=StaticTokenProvider("secret"), session=session)


@pytest.fixture
def fetcher(api, store, connectivity, event_bus):
    return ConditionalFetchClient(api, store, connectivity, event_bus)


@pytest.fixture
def queue(store, api, connectivity, event_bus):
    return MutationQueue(store, api, connectivity, event_bus)


@pytest.fixture
def service(store, api, connectivity, event_bus):
    engine = TaskSyncService(store, api, connectivity, event_bus)
    yield engine
    engine.close()
