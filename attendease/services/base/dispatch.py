"""
Best-effort dispatcher for external side effects.

Every call is bounded by a timeout; failures are logged and recorded in a
``DispatchResult`` and never raised to the caller.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from attendease.config.logging import get_logger
from attendease.models.base import utcnow

logger = get_logger(__name__)


@dataclass
class DispatchedCall:
    """Outcome of one external call."""

    channel: str
    target: str
    dispatched: bool
    error: Optional[str] = None
    duration_ms: float = 0.0
    value: Any = None
    dispatched_at: datetime = field(default_factory=utcnow)


@dataclass
class DispatchResult:
    """Aggregated result of the calls made for one fan-out."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    calls: List[DispatchedCall] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        return (self.successful / self.total * 100) if self.total > 0 else 0.0

    def add(self, call: DispatchedCall) -> None:
        self.calls.append(call)
        self.total += 1
        if call.dispatched:
            self.successful += 1
        else:
            self.failed += 1

    def record_failure(self, channel: str, target: str, error: str) -> None:
        """Record a failure that happened before any call could be made."""
        self.add(DispatchedCall(channel=channel, target=target, dispatched=False, error=error))

    def for_channel(self, channel: str) -> List[DispatchedCall]:
        return [call for call in self.calls if call.channel == channel]


class BestEffortDispatcher:
    """
    Awaits external calls with a per-call timeout.

    ``call`` returns the awaited value on success and ``None`` on failure;
    the outcome is appended to the given ``DispatchResult``. When ``accept``
    is given, a returned value it rejects is recorded as a failed call.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout

    async def call(
        self,
        result: DispatchResult,
        channel: str,
        target: str,
        awaitable: Awaitable[Any],
        accept: Optional[Callable[[Any], bool]] = None,
    ) -> Any:
        started = time.perf_counter()
        try:
            value = await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"{channel} call to {target} timed out after {self.timeout}s",
                extra={"room": target},
            )
            result.add(
                DispatchedCall(
                    channel=channel,
                    target=target,
                    dispatched=False,
                    error=f"timeout after {self.timeout}s",
                    duration_ms=(time.perf_counter() - started) * 1000,
                )
            )
            return None
        except Exception as e:
            logger.error(
                f"{channel} call to {target} failed: {e}",
                exc_info=True,
                extra={"room": target},
            )
            result.add(
                DispatchedCall(
                    channel=channel,
                    target=target,
                    dispatched=False,
                    error=f"{type(e).__name__}: {e}",
                    duration_ms=(time.perf_counter() - started) * 1000,
                )
            )
            return None

        dispatched = accept is None or accept(value)
        if not dispatched:
            logger.warning(
                f"{channel} call to {target} was not delivered: {value!r}",
                extra={"room": target},
            )
        result.add(
            DispatchedCall(
                channel=channel,
                target=target,
                dispatched=dispatched,
                error=None if dispatched else f"not delivered: {value!r}",
                duration_ms=(time.perf_counter() - started) * 1000,
                value=value,
            )
        )
        return value
