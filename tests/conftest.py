"""Shared fixtures for the sensor dashboard test suite.

Provides canonical readings, wire-format records, and stand-ins for the
two network collaborators: a stub ``requests`` session for the history
pull and a scripted WebSocket connection for the push channel.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

import pytest
import requests

from sensor_dashboard.models.reading import Reading


# ---------------------------------------------------------------------------
# Reading fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def three_records() -> list[dict[str, Any]]:
    """Wire-format history: t=100/200/300 ms with rising metrics."""
    return [
        {"timestamp": 100, "temperature": 20, "humidity": 40, "lightLevel": 5},
        {"timestamp": 200, "temperature": 22, "humidity": 42, "lightLevel": 6},
        {"timestamp": 300, "temperature": 25, "humidity": 45, "lightLevel": 7},
    ]


@pytest.fixture()
def three_readings(three_records: list[dict[str, Any]]) -> list[Reading]:
    """``three_records`` as validated ``Reading`` objects."""
    return [Reading.from_dict(record) for record in three_records]


# ---------------------------------------------------------------------------
# HTTP stand-ins
# ---------------------------------------------------------------------------


def make_response(status_code: int = 200, body: Any = None, raw: bytes | None = None) -> requests.Response:
    """Build a real ``requests.Response`` without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    response.url = "http://test/history"
    return response


class StubSession:
    """Minimal ``requests.Session`` replacement that records GET calls."""

    def __init__(self, response: requests.Response | None = None, error: Exception | None = None) -> None:
        self.headers: dict[str, str] = {}
        self.verify = True
        self.response = response
        self.error = error
        self.calls: list[tuple[str, float | None]] = []
        self.closed = False

    def get(self, url: str, timeout: float | None = None) -> requests.Response:
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# WebSocket stand-ins
# ---------------------------------------------------------------------------


class FakeConnection:
    """Scripted WebSocket connection: yields frames, then ends or fails."""

    def __init__(self, frames: Iterable[str | bytes], error: Exception | None = None) -> None:
        self._frames = list(frames)
        self._error = error
        self.closed = False

    def __aiter__(self):
        return self._messages()

    async def _messages(self):
        for frame in self._frames:
            if self.closed:
                return
            yield frame
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        self.closed = True


class ScriptedConnector:
    """Connector returning (or raising) the scripted outcomes in order."""

    def __init__(self, outcomes: Iterable[FakeConnection | Exception]) -> None:
        self._outcomes = list(outcomes)
        self.urls: list[str] = []

    async def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if not self._outcomes:
            raise ConnectionRefusedError("no more scripted connections")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def frame(payload: Any) -> str:
    return json.dumps(payload)


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def session_factory():
    """Build a ``StubSession`` answering with a JSON body or raising."""

    def _make(
        status_code: int = 200,
        body: Any = None,
        raw: bytes | None = None,
        error: Exception | None = None,
    ) -> StubSession:
        if error is not None:
            return StubSession(error=error)
        return StubSession(response=make_response(status_code, body, raw))

    return _make


@pytest.fixture()
def connection_factory():
    """Build a ``FakeConnection`` from JSON-serializable payloads."""

    def _make(payloads: Iterable[Any], error: Exception | None = None) -> FakeConnection:
        frames = [p if isinstance(p, (str, bytes)) else frame(p) for p in payloads]
        return FakeConnection(frames, error=error)

    return _make


@pytest.fixture()
def connector_factory():
    """Build a ``ScriptedConnector`` from connections and exceptions."""

    def _make(*outcomes: FakeConnection | Exception) -> ScriptedConnector:
        return ScriptedConnector(outcomes)

    return _make
