"""
Request orchestrator: the authenticated, typed, refreshing request pipeline.

Each call walks its own state machine:

    SENDING --2xx--> SUCCESS (decode, return)
       |
       +--401, auth mandatory--> UNAUTHORIZED --> REFRESHING --ok--> REPLAYING
       |                                              |                  |
       |                                              +--error--> terminal (refresh error)
       |                                                                 |
       |                                REPLAYING --401--> one more attempt, then terminal
       |
       +--anything else, or auth skipped--> OTHER_ERROR (terminal)

At most one refresh and at most three HTTP attempts happen per call.
"""
import itertools
import logging
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from ..auth.token_refresher import TokenRefresher, refresh_endpoint_for
from ..config import MAX_UNAUTHORIZED_RETRY_COUNT, ClientConfig, ResolvedConfig, resolve_config
from ..console import print_request, print_response
from ..errors import NetworkRequestError, Unauthorized, classify_exception, classify_response
from ..retry import RetryConfig, RetryExecutor, RetryOptions
from ..types import (
    AuthMode,
    Endpoint,
    HttpBody,
    HttpMethod,
    ResolvedEndpoint,
    TokenStore,
    Transport,
    to_http_body,
)
from .decoder import build_adapter, decode_response
from .headers import compose_headers

logger = logging.getLogger("fetch_auth_pipeline.orchestrator")

T = TypeVar("T")

BodyInput = Optional[Union[HttpBody, Mapping[str, Any], bytes]]


class CallState(str, Enum):
    SENDING = "sending"
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    REFRESHING = "refreshing"
    REPLAYING = "replaying"
    OTHER_ERROR = "other_error"


def _is_unauthorized(error: Exception, attempt: int) -> bool:
    return isinstance(error, Unauthorized)


class RequestOrchestrator:
    """Executes typed, authenticated requests with single-shot token refresh."""

    def __init__(
        self,
        config: Union[ClientConfig, ResolvedConfig],
        transport: Transport,
        token_store: TokenStore,
        refresher: Optional[TokenRefresher] = None,
        retry_executor: Optional[RetryExecutor] = None,
    ):
        self._config = resolve_config(config) if isinstance(config, ClientConfig) else config
        self._transport = transport
        self._token_store = token_store
        self._refresher = refresher or TokenRefresher(
            self.execute,
            token_store,
            refresh_endpoint_for(self._config.refresh_path),
        )
        self._retry = retry_executor or RetryExecutor(
            RetryConfig(
                max_retries=self._max_unauthorized_retries,
                delay_seconds=self._config.unauthorized_retry_delay,
            )
        )
        self._call_ids = itertools.count(1)

    @property
    def _max_unauthorized_retries(self) -> int:
        return min(self._config.unauthorized_retry_count, MAX_UNAUTHORIZED_RETRY_COUNT)

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    @property
    def token_store(self) -> TokenStore:
        return self._token_store

    @property
    def refresher(self) -> TokenRefresher:
        return self._refresher

    async def execute(
        self,
        method: Union[HttpMethod, str],
        endpoint: Endpoint,
        result_type: Type[T] = Any,
        *,
        body: BodyInput = None,
        headers: Optional[Mapping[str, str]] = None,
        auth_mode: AuthMode = AuthMode.MANDATORY,
    ) -> T:
        """
        Send a request and decode its result as result_type.

        Raises:
            NetworkRequestError: the single terminal error of the call.
        """
        call_id = next(self._call_ids)
        try:
            method = HttpMethod(method.upper() if isinstance(method, str) else method)
            resolved = endpoint.resolve(self._config)
            build_adapter(resolved, result_type)
            http_body = to_http_body(body)
            payload = http_body.http_data() if http_body is not None else None
        except Exception as exc:
            error = classify_exception(exc)
            logger.warning(f"call#{call_id}: request could not be built: {error}")
            if error is exc:
                raise
            raise error from exc

        async def attempt() -> bytes:
            return await self._send(call_id, method, resolved, payload, headers, auth_mode)

        self._transition(call_id, None, CallState.SENDING)
        state = CallState.SENDING
        try:
            content = await attempt()
        except Unauthorized:
            if auth_mode == AuthMode.SKIP:
                self._transition(call_id, state, CallState.OTHER_ERROR)
                raise
            self._transition(call_id, state, CallState.UNAUTHORIZED)
            content = await self._refresh_and_replay(call_id, attempt)
            state = CallState.REPLAYING
        except NetworkRequestError:
            self._transition(call_id, state, CallState.OTHER_ERROR)
            raise

        try:
            value = decode_response(content, resolved, result_type)
        except NetworkRequestError:
            self._transition(call_id, state, CallState.OTHER_ERROR)
            raise
        self._transition(call_id, state, CallState.SUCCESS)
        return value

    async def _refresh_and_replay(self, call_id: int, attempt) -> bytes:
        self._transition(call_id, CallState.UNAUTHORIZED, CallState.REFRESHING)
        try:
            await self._refresher.refresh()
        except NetworkRequestError as error:
            logger.info(f"call#{call_id}: token refresh failed with {error.kind}, not replaying")
            self._transition(call_id, CallState.REFRESHING, CallState.OTHER_ERROR)
            raise

        self._transition(call_id, CallState.REFRESHING, CallState.REPLAYING)
        try:
            outcome = await self._retry.execute(
                attempt,
                RetryOptions(
                    max_retries=self._max_unauthorized_retries,
                    should_retry=_is_unauthorized,
                    metadata={"call_id": call_id},
                ),
            )
        except NetworkRequestError:
            self._transition(call_id, CallState.REPLAYING, CallState.OTHER_ERROR)
            raise

        if outcome.retries:
            logger.info(f"call#{call_id}: replay succeeded after {outcome.retries} unauthorized retry")
        return outcome.result

    async def _send(
        self,
        call_id: int,
        method: HttpMethod,
        endpoint: ResolvedEndpoint,
        payload: Optional[bytes],
        extra_headers: Optional[Mapping[str, str]],
        auth_mode: AuthMode,
    ) -> bytes:
        """One HTTP attempt: compose headers, send, classify. Returns success bytes."""
        # The token is read per attempt so replays pick up a refreshed token
        token = self._token_store.get_access_token() if auth_mode == AuthMode.MANDATORY else None
        request_headers = compose_headers(
            auth_mode,
            method,
            token,
            extra_headers,
            user_agent=self._config.user_agent,
        )

        if self._config.verbose:
            print_request(method.value, endpoint.url, request_headers, payload)

        try:
            response = await self._transport.send(endpoint.url, method, request_headers, payload)
        except NetworkRequestError:
            raise
        except Exception as exc:
            error = classify_exception(exc)
            logger.warning(f"call#{call_id}: {method.value} {endpoint.url} failed: {error}")
            raise error from exc

        if self._config.verbose:
            print_response(endpoint.url, response.status, response.headers, response.content)

        error = classify_response(response.status, response.content)
        if error is not None:
            logger.debug(f"call#{call_id}: {method.value} {endpoint.url} -> {response.status} ({error.kind})")
            raise error
        return response.content

    def _transition(self, call_id: int, current: Optional[CallState], target: CallState) -> None:
        logger.debug(f"call#{call_id}: {current.value if current else 'start'} -> {target.value}")

    async def get(self, endpoint: Endpoint, result_type: Type[T] = Any, **kwargs: Any) -> T:
        """GET request."""
        return await self.execute(HttpMethod.GET, endpoint, result_type, **kwargs)

    async def post(self, endpoint: Endpoint, result_type: Type[T] = Any, **kwargs: Any) -> T:
        """POST request."""
        return await self.execute(HttpMethod.POST, endpoint, result_type, **kwargs)

    async def put(self, endpoint: Endpoint, result_type: Type[T] = Any, **kwargs: Any) -> T:
        """PUT request."""
        return await self.execute(HttpMethod.PUT, endpoint, result_type, **kwargs)

    async def patch(self, endpoint: Endpoint, result_type: Type[T] = Any, **kwargs: Any) -> T:
        """PATCH request."""
        return await self.execute(HttpMethod.PATCH, endpoint, result_type, **kwargs)

    async def delete(self, endpoint: Endpoint, result_type: Type[T] = Any, **kwargs: Any) -> T:
        """DELETE request."""
        return await self.execute(HttpMethod.DELETE, endpoint, result_type, **kwargs)

    async def close(self) -> None:
        """Close the transport if it can be closed."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "RequestOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
