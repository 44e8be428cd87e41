"""
Shared fixtures for fetch_auth_pipeline tests.
"""
import json
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Union

import pytest

from fetch_auth_pipeline.auth.token_store import MemoryTokenStore
from fetch_auth_pipeline.config import ClientConfig
from fetch_auth_pipeline.core.orchestrator import RequestOrchestrator
from fetch_auth_pipeline.types import HttpMethod, TransportResponse

BASE_URL = "https://api.example.com"
REFRESH_URL = f"{BASE_URL}/v2/auth/refresh-token"


def json_response(status: int, data: Any = None) -> TransportResponse:
    """TransportResponse with a JSON body."""
    content = b"" if data is None else json.dumps(data).encode("utf-8")
    return TransportResponse(status=status, headers={"content-type": "application/json"}, content=content)


@dataclass
class SentRequest:
    url: str
    method: HttpMethod
    headers: Dict[str, str]
    body: Optional[bytes]

    @property
    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


class ScriptedTransport:
    """Transport replaying scripted outcomes per URL, recording every send."""

    def __init__(self) -> None:
        self._script: Dict[str, Deque[Union[TransportResponse, BaseException]]] = defaultdict(deque)
        self.sent: List[SentRequest] = []

    def script(self, url: str, *outcomes: Union[TransportResponse, BaseException]) -> "ScriptedTransport":
        self._script[url].extend(outcomes)
        return self

    def sent_to(self, url: str) -> List[SentRequest]:
        return [request for request in self.sent if request.url == url]

    async def send(self, url, method, headers, body):
        self.sent.append(SentRequest(url=url, method=method, headers=dict(headers), body=body))
        if not self._script[url]:
            raise AssertionError(f"Unscripted request to {url}")
        outcome = self._script[url].popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def client_config():
    """Sample ClientConfig for testing."""
    return ClientConfig(base_url=BASE_URL)


@pytest.fixture
def token_store():
    """Token store holding an (expired) token pair."""
    return MemoryTokenStore(access_token="old-access", refresh_token="old-refresh")


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def orchestrator(client_config, transport, token_store):
    """RequestOrchestrator wired to the scripted transport."""
    return RequestOrchestrator(client_config, transport, token_store)
