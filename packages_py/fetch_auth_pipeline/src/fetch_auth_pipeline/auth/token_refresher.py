"""
Access token refresh.
"""
import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..console import mask_sensitive
from ..singleflight import Singleflight
from ..types import ApiVersion, AuthMode, Endpoint, HttpMethod, JsonBody, TokenPair, TokenStore

logger = logging.getLogger("fetch_auth_pipeline.token_refresher")

REFRESH_FLIGHT_KEY = "token-refresh"

# execute(method, endpoint, result_type, *, body=None, headers=None, auth_mode=...)
RequestExecutor = Callable[..., Awaitable[Any]]


class RefreshTokenResponse(BaseModel):
    """Body returned by the refresh endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class TokenRefresher:
    """
    Obtains a new token pair from the refresh endpoint and stores it.

    The refresh request is sent with AuthMode.SKIP, so a 401 from the refresh
    endpoint is terminal instead of triggering another refresh. Concurrent
    refreshes share one physical request. No retries happen here.
    """

    def __init__(
        self,
        execute: RequestExecutor,
        token_store: TokenStore,
        refresh_endpoint: Endpoint,
        singleflight: Optional[Singleflight] = None,
    ):
        self._execute = execute
        self._token_store = token_store
        self._endpoint = refresh_endpoint
        self._singleflight = singleflight or Singleflight()

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def in_flight(self) -> bool:
        return self._singleflight.is_in_flight(REFRESH_FLIGHT_KEY)

    async def refresh(self) -> TokenPair:
        """Refresh the token pair, joining a refresh already in flight."""
        outcome = await self._singleflight.do(REFRESH_FLIGHT_KEY, self._refresh_once)
        if outcome.shared:
            logger.debug(f"TokenRefresher.refresh: joined in-flight refresh ({outcome.subscribers} subscribers)")
        return outcome.value

    async def _refresh_once(self) -> TokenPair:
        # A missing refresh token is sent empty and left for the server to reject
        refresh_token = self._token_store.get_refresh_token() or ""
        logger.info(f"TokenRefresher: refreshing access token with refresh={mask_sensitive(refresh_token)}")

        response: RefreshTokenResponse = await self._execute(
            HttpMethod.POST,
            self._endpoint,
            RefreshTokenResponse,
            body=JsonBody({"refreshToken": refresh_token}),
            auth_mode=AuthMode.SKIP,
        )

        tokens = TokenPair(
            access_token=response.access_token,
            refresh_token=response.refresh_token or refresh_token or None,
        )
        self._token_store.set_tokens(tokens.access_token, tokens.refresh_token)
        logger.info(f"TokenRefresher: stored new access token {mask_sensitive(tokens.access_token)}")
        return tokens


def refresh_endpoint_for(refresh_path: str) -> Endpoint:
    """The fixed refresh endpoint (API v2, bare envelope)."""
    return Endpoint(path=refresh_path, version=ApiVersion.V2)
