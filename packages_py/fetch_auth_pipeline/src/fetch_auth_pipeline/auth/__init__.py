"""
Token storage and refresh for fetch_auth_pipeline.
"""
from .token_refresher import RefreshTokenResponse, TokenRefresher, refresh_endpoint_for
from .token_store import MemoryTokenStore

__all__ = [
    "MemoryTokenStore",
    "RefreshTokenResponse",
    "TokenRefresher",
    "refresh_endpoint_for",
]
