import json
from typing import Any

PROJECT_ID = "demo-project"
ISSUER = f"https://securetoken.google.com/{PROJECT_ID}"


class FakeResponse:
    """Just enough of requests.Response for the code under test."""

    def __init__(self, status_code: int = 200, text: str = "", headers: dict[str, str] | None = None):
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400


class FakeSession:
    """
    Minimal requests.Session stub.
    Returns queued responses in order and records every call.
    """

    def __init__(self, *responses: FakeResponse):
        self._responses = list(responses)
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def queue(self, response: FakeResponse) -> None:
        self._responses.append(response)

    def _next(self, method: str, url: str, kwargs: dict[str, Any]) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if not self._responses:
            raise AssertionError(f"unexpected {method} {url}")
        return self._responses.pop(0)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("GET", url, kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("POST", url, kwargs)


def jwks_response(*jwks: dict[str, Any], cache_control: str | None = "public, max-age=3600") -> FakeResponse:
    headers = {"Cache-Control": cache_control} if cache_control else {}
    return FakeResponse(200, json.dumps({"keys": list(jwks)}), headers)


class FakeRedis:
    """
    Minimal redis stub for RedisKeyCache tests.
    Stores bytes under keys and supports get/set.
    """

    def __init__(self):
        self._store: dict[str, bytes] = {}

    def get(self, key: str):
        return self._store.get(key)

    def set(self, key: str, value: str | bytes):
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._store[key] = value

    def keys(self):
        return list(self._store)

