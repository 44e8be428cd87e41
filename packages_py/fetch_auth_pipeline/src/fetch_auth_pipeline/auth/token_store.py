"""
In-memory token store.
"""
import logging
import threading
from typing import Optional

from ..console import mask_sensitive

logger = logging.getLogger("fetch_auth_pipeline.token_store")


class MemoryTokenStore:
    """Token store keeping the current pair in memory. Last writer wins."""

    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self._lock = threading.Lock()
        self._access_token = access_token
        self._refresh_token = refresh_token

    def get_access_token(self) -> Optional[str]:
        with self._lock:
            return self._access_token

    def get_refresh_token(self) -> Optional[str]:
        with self._lock:
            return self._refresh_token

    def set_tokens(self, access_token: str, refresh_token: Optional[str]) -> None:
        with self._lock:
            self._access_token = access_token
            self._refresh_token = refresh_token
        logger.debug(
            f"MemoryTokenStore.set_tokens: access={mask_sensitive(access_token)}, "
            f"refresh={mask_sensitive(refresh_token)}"
        )

