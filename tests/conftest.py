from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from luffa.api_models import encode_msg


@dataclass
class _FakeRest:
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    result: Any = None

    async def receive(self) -> Any:
        self.calls.append(("receive", ()))
        return self.result

    async def send(self, uid: Any, text: str) -> Any:
        self.calls.append(("send", (uid, text)))
        return {"ok": True}

    async def send_group(self, uid: Any, message: Any, kind: int = 1) -> Any:
        self.calls.append(("send_group", (uid, json.loads(encode_msg(message)), kind)))
        return {"ok": True}


@dataclass
class _FakeClient:
    rest: _FakeRest


class _Recorder:
    def __init__(self, responses: list[Any] | None = None) -> None:
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self.responses = list(responses or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.url.path, json.loads(request.content)))
        body: Any = self.responses.pop(0) if self.responses else []
        if isinstance(body, httpx.Response):
            return body
        if isinstance(body, str):
            return httpx.Response(200, text=body, request=request)
        return httpx.Response(200, json=body, request=request)


@pytest.fixture
def fake_rest() -> _FakeRest:
    return _FakeRest()


@pytest.fixture
def fake_client(fake_rest: _FakeRest) -> _FakeClient:
    return _FakeClient(rest=fake_rest)


@pytest.fixture
def recorder() -> Callable[..., _Recorder]:
    def _factory(*responses: Any) -> _Recorder:
        return _Recorder(list(responses))

    return _factory
