"""
Bounded retry executor.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Literal,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from .errors import Unauthorized

logger = logging.getLogger("fetch_auth_pipeline.retry")

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Retry configuration"""

    max_retries: int = 1
    """Maximum number of retries after the first attempt. Default: 1"""

    delay_seconds: float = 0.0
    """Pause before each retry (seconds). Default: 0 (retry immediately)"""

    retry_on: Tuple[Type[BaseException], ...] = (Unauthorized,)
    """Exception types that trigger a retry"""


@dataclass
class RetryOptions:
    """Options for individual retry operations"""

    max_retries: Optional[int] = None
    """Override max retries for this operation"""

    metadata: Optional[dict] = None
    """Metadata for logging/debugging"""

    should_retry: Optional[Callable[[Exception, int], bool]] = None
    """Custom should-retry predicate for this operation"""


@dataclass
class RetryResult(Generic[T]):
    """Result of a retried operation"""

    result: T
    retries: int
    total_time_seconds: float
    delay_time_seconds: float


EventType = Literal[
    "attempt:start",
    "attempt:success",
    "attempt:fail",
    "retry:wait",
]


@dataclass
class RetryEvent:
    """Event emitted by the retry executor"""

    type: EventType
    attempt: int
    data: dict = field(default_factory=dict)


RetryEventListener = Callable[[RetryEvent], None]


class RetryExecutor:
    """
    Runs an async callable, retrying failures the config or the per-call
    predicate accept, up to max_retries extra attempts.

    Failures that are not retried are re-raised unchanged.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()
        self._listeners: list[RetryEventListener] = []

    @property
    def config(self) -> RetryConfig:
        return self._config

    def _emit(self, event: RetryEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"RetryExecutor listener failed on {event.type}")

    def _should_retry_attempt(
        self,
        error: Exception,
        attempt: int,
        max_retries: int,
        custom_should_retry: Optional[Callable[[Exception, int], bool]] = None,
    ) -> bool:
        if attempt >= max_retries:
            return False
        if custom_should_retry is not None:
            return custom_should_retry(error, attempt)
        return isinstance(error, self._config.retry_on)

    async def execute(
        self,
        fn: Callable[[], Awaitable[T]],
        options: Optional[RetryOptions] = None,
    ) -> RetryResult[T]:
        """
        Execute fn with retry logic.

        Example:
            executor = RetryExecutor(RetryConfig(max_retries=1))
            result = await executor.execute(send_once)
        """
        opts = options or RetryOptions()
        max_retries = opts.max_retries if opts.max_retries is not None else self._config.max_retries
        metadata = opts.metadata or {}

        start_time = time.monotonic()
        delay_time = 0.0
        attempt = 0

        while True:
            self._emit(RetryEvent(type="attempt:start", attempt=attempt, data={"metadata": metadata}))
            attempt_start = time.monotonic()

            try:
                result = await fn()
            except Exception as error:
                will_retry = self._should_retry_attempt(error, attempt, max_retries, opts.should_retry)
                self._emit(RetryEvent(
                    type="attempt:fail",
                    attempt=attempt,
                    data={"error": str(error), "will_retry": will_retry, "metadata": metadata},
                ))
                if not will_retry:
                    raise

                delay = self._config.delay_seconds
                delay_time += delay
                self._emit(RetryEvent(
                    type="retry:wait",
                    attempt=attempt,
                    data={"delay_seconds": delay, "metadata": metadata},
                ))
                logger.debug(f"RetryExecutor.execute: attempt {attempt} failed with {error!r}, retrying in {delay:.3f}s")
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1
                continue

            self._emit(RetryEvent(
                type="attempt:success",
                attempt=attempt,
                data={"duration_seconds": time.monotonic() - attempt_start, "metadata": metadata},
            ))
            return RetryResult(
                result=result,
                retries=attempt,
                total_time_seconds=time.monotonic() - start_time,
                delay_time_seconds=delay_time,
            )

    def on(self, listener: RetryEventListener) -> Callable[[], None]:
        """Add an event listener; returns a function removing it."""
        self._listeners.append(listener)
        return lambda: self.off(listener)

    def off(self, listener: RetryEventListener) -> None:
        """Remove an event listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

