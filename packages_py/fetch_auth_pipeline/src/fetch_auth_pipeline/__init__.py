"""
Authenticated, typed HTTP request pipeline.

Composes auth headers, decodes typed responses from both envelope shapes,
classifies failures into a closed error taxonomy, and refreshes an expired
access token before replaying the original request once.
"""
from .types import (
    ApiVersion,
    AuthMode,
    Endpoint,
    FormBody,
    HttpBody,
    HttpMethod,
    JsonBody,
    RawBody,
    ResolvedEndpoint,
    TokenPair,
    TokenStore,
    Transport,
    TransportResponse,
)
from .config import (
    ClientConfig,
    PipelineSettings,
    ResolvedConfig,
    TimeoutConfig,
    load_config_from_env,
    resolve_config,
)
from .errors import (
    BadRequest,
    DecodingError,
    Error4xx,
    Error5xx,
    Forbidden,
    NetworkRequestError,
    NotFound,
    ServerError,
    TransportFailed,
    Unauthorized,
    UnknownError,
    classify_exception,
    classify_response,
    http_error,
)
from .auth import MemoryTokenStore, TokenRefresher
from .core import ApiResult, CallState, HttpxTransport, RequestOrchestrator, compose_headers, decode_response
from .retry import RetryConfig, RetryExecutor
from .singleflight import Singleflight
from .factory import create_network_manager

__all__ = [
    # Types
    "ApiVersion",
    "AuthMode",
    "Endpoint",
    "FormBody",
    "HttpBody",
    "HttpMethod",
    "JsonBody",
    "RawBody",
    "ResolvedEndpoint",
    "TokenPair",
    "TokenStore",
    "Transport",
    "TransportResponse",
    # Config
    "ClientConfig",
    "PipelineSettings",
    "ResolvedConfig",
    "TimeoutConfig",
    "load_config_from_env",
    "resolve_config",
    # Errors
    "BadRequest",
    "DecodingError",
    "Error4xx",
    "Error5xx",
    "Forbidden",
    "NetworkRequestError",
    "NotFound",
    "ServerError",
    "TransportFailed",
    "Unauthorized",
    "UnknownError",
    "classify_exception",
    "classify_response",
    "http_error",
    # Auth
    "MemoryTokenStore",
    "TokenRefresher",
    # Core
    "ApiResult",
    "CallState",
    "HttpxTransport",
    "RequestOrchestrator",
    "compose_headers",
    "decode_response",
    # Retry / coalescing
    "RetryConfig",
    "RetryExecutor",
    "Singleflight",
    # Factory
    "create_network_manager",
]

__version__ = "0.1.0"
