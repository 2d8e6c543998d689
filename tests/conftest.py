# tests/conftest.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

import pytest

from core.api import ApiClient
from core.context import build_context
from core.settings import load_settings
from core.storage import SessionStore

ADMIN_USER = {
    "id": "u-admin",
    "firstName": "Asha",
    "lastName": "Rao",
    "email": "admin@institute.test",
    "role": "ADMIN",
}


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, raw: Optional[str] = None):
        self.status_code = status_code
        self._body = body
        self._raw = raw

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._raw is not None:
            raise ValueError("not json")
        return self._body


class FakeHttp:
    """Stands in for requests.Session; replies from a route table and records every call."""

    def __init__(self):
        self.routes: Dict[tuple, Any] = {}
        self.calls: List[Dict[str, Any]] = []

    def reply(self, method: str, path: str, body: Any = None, status: int = 200):
        self.routes[(method, path)] = FakeResponse(status, body)

    def fail(self, method: str, path: str, exc: Exception):
        self.routes[(method, path)] = exc

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = url.split("/api", 1)[1]
        self.calls.append(dict(method=method, url=url, path=path, params=params, json=json,
                               headers=headers or {}, timeout=timeout))
        answer = self.routes.get((method, path), FakeResponse(200, {"success": True, "data": None}))
        if isinstance(answer, Exception):
            raise answer
        return answer

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def settings(tmp_path):
    return load_settings(tmp_path / "missing.yaml", env={})


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def api(http, store):
    return ApiClient("http://backend.test/api", token_provider=store.get_token, timeout=7, http=http)


@pytest.fixture
def ctx(settings, http):
    return build_context(settings, http=http)


@pytest.fixture
def signed_in(store):
    store.set_session("tok-123", dict(ADMIN_USER))
    return store
