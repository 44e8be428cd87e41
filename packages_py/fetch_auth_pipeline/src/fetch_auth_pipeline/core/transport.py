"""
httpx-backed transport capability.
"""
import logging
import os
from typing import Dict, Optional

import httpx

from ..config import TimeoutConfig
from ..console import mask_headers
from ..types import HttpMethod, TransportResponse

logger = logging.getLogger("fetch_auth_pipeline.transport")


def _is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


class HttpxTransport:
    """Sends single requests over an httpx.AsyncClient.

    Transport failures surface as httpx.RequestError; status codes are
    returned untouched for the pipeline to classify.
    """

    def __init__(
        self,
        timeout: Optional[TimeoutConfig] = None,
        httpx_client: Optional[httpx.AsyncClient] = None,
    ):
        if httpx_client is not None:
            self._client = httpx_client
        else:
            timeout = timeout or TimeoutConfig()
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    connect=timeout.connect,
                    read=timeout.read,
                    write=timeout.write,
                    pool=timeout.connect,
                ),
                verify=not _is_ssl_verify_disabled_by_env(),
            )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(
        self,
        url: str,
        method: HttpMethod,
        headers: Dict[str, str],
        body: Optional[bytes],
    ) -> TransportResponse:
        """Send one request; cancelling the awaiting task aborts it."""
        if self._closed:
            raise RuntimeError("Client has been closed")

        logger.debug(f"HttpxTransport.send: {method.value} {url} headers={mask_headers(headers)}")
        response = await self._client.request(
            method=method.value,
            url=url,
            headers=headers,
            content=body,
        )
        logger.debug(f"HttpxTransport.send: {method.value} {url} -> {response.status_code}")

        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers),
            content=response.content,
        )

    async def close(self) -> None:
        """Close the underlying client."""
        self._closed = True
        await self._client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
