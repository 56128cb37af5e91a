from __future__ import annotations

import json
from typing import Callable, Iterator

import httpx
import pytest
from typer.testing import CliRunner

from codable_fetch.config import FetchSettings
from codable_fetch.fetch import FetchSession, HTTPTransport, RoutingTransport

USER_PAYLOAD = {
    "id": 1,
    "name": "Leanne Graham",
    "username": "Bret",
    "email": "Sincere@april.biz",
    "address": {
        "street": "Kulas Light",
        "suite": "Apt. 556",
        "city": "Gwenborough",
        "zipcode": "92998-3874",
        "geo": {"lat": "-37.3159", "lng": "81.1496"},
    },
    "phone": "1-770-736-8031 x56442",
    "website": "hildegard.org",
    "company": {
        "name": "Romaguera-Crona",
        "catchPhrase": "Multi-layered client-server neural-net",
        "bs": "harness real-time e-markets",
    },
}

POSTS_PAYLOAD = [
    {"userId": 1, "id": 1, "title": "sunt aut facere", "body": "quia et suscipit"},
    {"userId": 1, "id": 2, "title": "qui est esse", "body": "est rerum tempore"},
    {"userId": 2, "id": 11, "title": "et ea vero quia laudantium", "body": "delectus reiciendis"},
]


@pytest.fixture()
def user_payload() -> dict:
    return json.loads(json.dumps(USER_PAYLOAD))


@pytest.fixture()
def posts_payload() -> list:
    return json.loads(json.dumps(POSTS_PAYLOAD))


@pytest.fixture()
def settings() -> FetchSettings:
    return FetchSettings(timeout=2.0, max_attempts=1, max_workers=2)


@pytest.fixture()
def make_session(settings) -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], FetchSession]]:
    """Build sessions whose HTTP traffic is answered by ``handler``."""

    sessions: list[FetchSession] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> FetchSession:
        http = HTTPTransport(settings=settings, transport=httpx.MockTransport(handler))
        session = FetchSession(settings=settings, transport=RoutingTransport(http))
        sessions.append(session)
        return session

    yield _factory
    for session in sessions:
        session.close()


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()
