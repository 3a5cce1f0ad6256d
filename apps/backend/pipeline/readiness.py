"""
Render-readiness polling for client-side rendered job pages.

The wait is an explicit state machine: Polling(attempt) moves to Ready as
soon as any probe succeeds, or to Exhausted once the attempt budget is
spent. The transition function is pure; the loop around it owns the only
suspension point (the inter-tick sleep), which is injectable so tests can
run without real time passing.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, Union

from .document import DocumentAccessor, DocumentSource
from .monitoring import get_metrics

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_INTERVAL_SECONDS = 0.5


class Polling:
    """Still waiting; attempt is the 1-based number of the next tick."""

    def __init__(self, attempt: int = 1):
        self.attempt = attempt

    def __eq__(self, other):
        return isinstance(other, Polling) and other.attempt == self.attempt

    def __repr__(self):
        return f"Polling(attempt={self.attempt})"


class Ready:
    """A probe succeeded on tick number `ticks`."""

    def __init__(self, ticks: int):
        self.ticks = ticks

    def __eq__(self, other):
        return isinstance(other, Ready) and other.ticks == self.ticks

    def __repr__(self):
        return f"Ready(ticks={self.ticks})"


class Exhausted:
    """No probe succeeded within the budget (or the wait was cancelled)."""

    def __init__(self, ticks: int, cancelled: bool = False):
        self.ticks = ticks
        self.cancelled = cancelled

    def __eq__(self, other):
        return (isinstance(other, Exhausted) and other.ticks == self.ticks
                and other.cancelled == self.cancelled)

    def __repr__(self):
        return f"Exhausted(ticks={self.ticks}, cancelled={self.cancelled})"


WaitState = Union[Polling, Ready, Exhausted]


def next_state(state: Polling, probe_succeeded: bool, max_attempts: int) -> WaitState:
    """Pure transition taken after evaluating the probes on one tick."""
    if probe_succeeded:
        return Ready(state.attempt)
    if state.attempt >= max_attempts:
        return Exhausted(state.attempt)
    return Polling(state.attempt + 1)


class ReadinessProbe:
    """Boolean structural signpost: does anything match the selector?"""

    def __init__(self, name: str, selector: str):
        self.name = name
        self.selector = selector

    def __call__(self, document: DocumentAccessor) -> bool:
        return document.exists(self.selector)

    def __repr__(self):
        return f"ReadinessProbe({self.name!r}, {self.selector!r})"


SleepFunc = Callable[[float], Awaitable[None]]


class RenderReadinessWaiter:
    """Polls a live document until a probe passes or the budget runs out."""

    def __init__(self, probes: Sequence[ReadinessProbe], sleep: SleepFunc = asyncio.sleep):
        self.probes = list(probes)
        self.sleep = sleep

    def evaluate(self, document: DocumentAccessor) -> Optional[ReadinessProbe]:
        """Re-evaluate every probe from scratch; return the first that passes."""
        for probe in self.probes:
            if probe(document):
                return probe
        return None

    async def wait(self, source: DocumentSource, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                   interval: float = DEFAULT_INTERVAL_SECONDS,
                   cancel_event: Optional[asyncio.Event] = None) -> WaitState:
        """
        Run the polling loop and return its terminal state.

        Args:
            source: Page to snapshot on every tick
            max_attempts: Maximum number of ticks
            interval: Seconds to sleep between ticks
            cancel_event: When set between ticks, the wait stops early

        Returns:
            Ready or Exhausted
        """
        if max_attempts <= 0:
            return Exhausted(0)

        state: WaitState = Polling(1)
        while isinstance(state, Polling):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"[readiness] Wait cancelled before tick {state.attempt}")
                return Exhausted(state.attempt - 1, cancelled=True)

            document = await source.snapshot()
            probe = self.evaluate(document)
            state = next_state(state, probe is not None, max_attempts)

            if isinstance(state, Ready):
                logger.debug(f"[readiness] Probe {probe.name} passed on tick {state.ticks}")
            elif isinstance(state, Polling):
                await self.sleep(interval)

        return state

    async def wait_until_ready(self, source: DocumentSource, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                               interval: float = DEFAULT_INTERVAL_SECONDS,
                               cancel_event: Optional[asyncio.Event] = None) -> bool:
        """True when the page became ready; False is a soft timeout, never an error."""
        state = await self.wait(source, max_attempts, interval, cancel_event)
        ready = isinstance(state, Ready)
        get_metrics().record_wait(ready, state.ticks)
        if not ready and not state.cancelled:
            logger.info(
                f"[readiness] No probe passed after {state.ticks} ticks for "
                f"{source.url[:80]}; extracting anyway"
            )
        return ready
