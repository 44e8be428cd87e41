"""
Call coalescing (Singleflight).

When several tasks call ``do`` with the same key while a call is in flight,
only the first one (the leader) runs the function; the others join and
receive the same result or exception.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Set, TypeVar

logger = logging.getLogger("fetch_auth_pipeline.singleflight")

T = TypeVar("T")


class SingleflightEventType(str, Enum):
    LEAD = "singleflight:lead"
    JOIN = "singleflight:join"
    COMPLETE = "singleflight:complete"
    ERROR = "singleflight:error"


@dataclass
class SingleflightEvent:
    """Event emitted by a Singleflight."""

    type: SingleflightEventType
    key: str
    timestamp: float
    metadata: Dict[str, Any] = field(default_factory=dict)


SingleflightEventListener = Callable[[SingleflightEvent], None]


@dataclass
class InFlightCall(Generic[T]):
    """Tracker for the call currently running under a key."""

    task: "asyncio.Task[T]"
    subscribers: int = 1
    started_at: float = 0


@dataclass
class SingleflightResult(Generic[T]):
    """Result of a singleflight operation."""

    value: T
    shared: bool
    subscribers: int


class Singleflight:
    """
    Coalesces concurrent calls under the same key into one execution.

    The shared work runs in its own task and every caller awaits it through
    ``asyncio.shield``: cancelling one caller abandons only that caller,
    the shared call keeps running for the others.

    Example:
        sf = Singleflight()

        async def refresh():
            return await sf.do("token", lambda: client.refresh())

        results = await asyncio.gather(*[refresh() for _ in range(10)])
        # one physical refresh, ten identical values
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, InFlightCall] = {}
        self._listeners: Set[SingleflightEventListener] = set()

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> SingleflightResult[T]:
        """Run fn under key, or join the call already in flight."""
        existing = self._in_flight.get(key)
        if existing is not None:
            existing.subscribers += 1
            self._emit(SingleflightEvent(
                type=SingleflightEventType.JOIN,
                key=key,
                timestamp=time.time(),
                metadata={"subscribers": existing.subscribers},
            ))
            value = await asyncio.shield(existing.task)
            return SingleflightResult(value=value, shared=True, subscribers=existing.subscribers)

        task = asyncio.ensure_future(fn())
        call = InFlightCall(task=task, subscribers=1, started_at=time.time())
        self._in_flight[key] = call
        task.add_done_callback(lambda done: self._finish(key, call, done))

        self._emit(SingleflightEvent(
            type=SingleflightEventType.LEAD,
            key=key,
            timestamp=time.time(),
        ))

        value = await asyncio.shield(task)
        return SingleflightResult(value=value, shared=False, subscribers=call.subscribers)

    def _finish(self, key: str, call: InFlightCall, task: "asyncio.Task[Any]") -> None:
        if self._in_flight.get(key) is call:
            del self._in_flight[key]

        if task.cancelled():
            self._emit(SingleflightEvent(
                type=SingleflightEventType.ERROR,
                key=key,
                timestamp=time.time(),
                metadata={"error": "cancelled"},
            ))
            return

        error = task.exception()
        if error is not None:
            self._emit(SingleflightEvent(
                type=SingleflightEventType.ERROR,
                key=key,
                timestamp=time.time(),
                metadata={"error": str(error), "subscribers": call.subscribers},
            ))
            return

        self._emit(SingleflightEvent(
            type=SingleflightEventType.COMPLETE,
            key=key,
            timestamp=time.time(),
            metadata={
                "subscribers": call.subscribers,
                "duration_seconds": time.time() - call.started_at,
            },
        ))

    def is_in_flight(self, key: str) -> bool:
        """Check if a call is currently in flight under key."""
        return key in self._in_flight

    def on(self, listener: SingleflightEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: SingleflightEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(self, event: SingleflightEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Singleflight listener failed on {event.type.value}")

