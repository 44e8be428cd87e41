"""
Type definitions for fetch_auth_pipeline.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Mapping,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)
from urllib.parse import urlencode

from .urls import build_url

if TYPE_CHECKING:
    from .config import ResolvedConfig


class HttpMethod(str, Enum):
    """HTTP methods understood by the pipeline."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class AuthMode(str, Enum):
    """
    Whether a call carries the bearer token.

    MANDATORY attaches the access token when one is stored.
    SKIP never attaches it; the refresh call itself uses SKIP.
    """

    MANDATORY = "mandatory"
    SKIP = "skip"


class ApiVersion(str, Enum):
    """API version tag of an endpoint."""

    V1 = "v1"
    V2 = "v2"

    @property
    def is_v2(self) -> bool:
        return self is ApiVersion.V2


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair."""

    access_token: str
    refresh_token: Optional[str] = None


@dataclass(frozen=True)
class ResolvedEndpoint:
    """Concrete request target produced from an Endpoint."""

    url: str
    is_v2: bool
    is_shared_store: bool


@dataclass(frozen=True)
class Endpoint:
    """
    Immutable endpoint descriptor.

    The version and shared-store flag decide the response envelope shape:
    v2 and shared-store endpoints return a bare payload, every other
    endpoint wraps its payload in ``{"result": ...}``.
    """

    path: str
    version: ApiVersion = ApiVersion.V1
    is_shared_store: bool = False
    query: Optional[Mapping[str, Union[str, int, bool]]] = None
    base_url: Optional[str] = None

    @property
    def is_v2(self) -> bool:
        return self.version.is_v2

    def resolve(self, config: "ResolvedConfig") -> ResolvedEndpoint:
        """Resolve against a ResolvedConfig into a URL and envelope flags."""
        if self.base_url:
            base_url = self.base_url
        elif self.is_shared_store and config.shared_store_base_url:
            base_url = config.shared_store_base_url
        else:
            base_url = config.base_url

        path = self.path if self.path.startswith("/") else f"/{self.path}"
        url = build_url(base_url, f"/{self.version.value}{path}", self.query)
        return ResolvedEndpoint(
            url=url,
            is_v2=self.is_v2,
            is_shared_store=self.is_shared_store,
        )


@runtime_checkable
class HttpBody(Protocol):
    """Serializable request payload."""

    def http_data(self) -> bytes:
        """Return the raw request bytes."""
        ...


@dataclass(frozen=True)
class JsonBody:
    """JSON request payload."""

    data: Any

    def http_data(self) -> bytes:
        return json.dumps(self.data, ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class FormBody:
    """Form-url-encoded request payload."""

    data: Mapping[str, Union[str, int, bool]]

    def http_data(self) -> bytes:
        return urlencode({k: str(v) for k, v in self.data.items()}).encode("utf-8")


@dataclass(frozen=True)
class RawBody:
    """Pre-encoded request payload."""

    content: bytes

    def http_data(self) -> bytes:
        return self.content


def to_http_body(body: Optional[Union[HttpBody, Mapping[str, Any], bytes]]) -> Optional[HttpBody]:
    """Coerce a caller-supplied body into an HttpBody."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        return RawBody(bytes(body))
    if isinstance(body, HttpBody):
        return body
    if isinstance(body, Mapping):
        return JsonBody(dict(body))
    raise TypeError(f"Unsupported body type: {type(body).__name__}")


@dataclass
class TransportResponse:
    """Raw outcome of a single HTTP attempt."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Transport capability: sends one request, raises on transport failure."""

    async def send(
        self,
        url: str,
        method: HttpMethod,
        headers: Dict[str, str],
        body: Optional[bytes],
    ) -> TransportResponse:
        """Send a request and return the raw response."""
        ...


class TokenStore(Protocol):
    """Token store capability owning the current token pair."""

    def get_access_token(self) -> Optional[str]:
        """Current access token, if any."""
        ...

    def get_refresh_token(self) -> Optional[str]:
        """Current refresh token, if any."""
        ...

    def set_tokens(self, access_token: str, refresh_token: Optional[str]) -> None:
        """Replace the stored token pair."""
        ...
