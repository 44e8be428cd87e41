"""
Core modules for fetch_auth_pipeline.
"""
from .decoder import ApiResult, build_adapter, decode_response
from .headers import compose_headers, content_type_for, merge_headers
from .orchestrator import CallState, RequestOrchestrator
from .transport import HttpxTransport

__all__ = [
    "ApiResult",
    "build_adapter",
    "decode_response",
    "compose_headers",
    "content_type_for",
    "merge_headers",
    "CallState",
    "RequestOrchestrator",
    "HttpxTransport",
]
