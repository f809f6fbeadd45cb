"""Parallel checker executor.

CheckExecutor is responsible for running all registered checkers
concurrently and collecting how each call settled. It handles timeouts and
fault isolation so the engine does not have to.

The key guarantee: one checker failing or hanging never causes other
checkers to be skipped or delayed past their own timeout. Each checker runs
in its own task with its own exception boundary, and every call yields
exactly one ProbeOutcome.
"""

import asyncio
import logging
import time

from checkers.base import SignalChecker, SignalNotApplicable
from core.config import DEFAULT_CHECK_TIMEOUT_SECONDS
from schemas.evidence import ProbeOutcome, ProbeStatus
from schemas.events import CheckEvent, EventType

logger = logging.getLogger(__name__)


class CheckExecutor:
    """Runs a list of checkers concurrently and returns their outcomes.

    Uses asyncio.TaskGroup to schedule all checkers at once. Each checker
    runs in an isolated task — if one raises or times out, the others
    continue unaffected. If the caller abandons the run, the TaskGroup
    cancels every in-flight checker task.

    Attributes:
        timeout_seconds: Maximum time in seconds to wait for a single checker
            before cancelling it and recording a timeout.
    """

    def __init__(self, timeout_seconds: float = DEFAULT_CHECK_TIMEOUT_SECONDS) -> None:
        """Initialise the executor.

        Args:
            timeout_seconds: Per-checker timeout. Checkers that exceed this
                are cancelled and recorded as TIMED_OUT.
        """
        self.timeout_seconds = timeout_seconds

    async def execute(
        self,
        checkers: list[SignalChecker],
        event_queue: asyncio.Queue | None = None,
    ) -> dict[str, ProbeOutcome]:
        """Run all checkers concurrently and return one outcome per probe.

        The method waits until every checker has returned, raised, or timed
        out. Nothing is filtered — failed calls are part of the result so the
        reasoning trace can report them.

        Args:
            checkers: The checkers to run. Typically CheckerRegistry.get_all().
            event_queue: Optional asyncio.Queue to emit CheckEvents into.
                If None, events are skipped — the run is unaffected by
                whether anything is listening.

        Returns:
            Dict mapping probe name to its ProbeOutcome. Empty if no checkers
            were given.
        """
        if not checkers:
            return {}

        exec_start = time.perf_counter()

        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(
                    self._run_checker_safely(checker, event_queue, exec_start),
                    name=checker.name,
                )
                for checker in checkers
            ]

        return {outcome.probe: outcome for outcome in (t.result() for t in tasks)}

    async def _run_checker_safely(
        self,
        checker: SignalChecker,
        event_queue: asyncio.Queue | None,
        exec_start: float,
    ) -> ProbeOutcome:
        """Run a single checker with timeout and exception handling.

        This method never raises (other than cancellation). All failures are
        caught, logged, and returned as a ProbeOutcome, which is what keeps a
        single failing checker from propagating into the TaskGroup and
        cancelling the others.

        Args:
            checker: The checker to run.
            event_queue: Queue to emit events into. None means no events.
            exec_start: perf_counter() value from when execute() was called.

        Returns:
            The ProbeOutcome for this checker call.
        """
        probe = checker.name
        checker_start = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - checker_start) * 1000

        async def emit(event_type: EventType, message: str) -> None:
            if event_queue is not None:
                ts_ms = (time.perf_counter() - exec_start) * 1000
                await event_queue.put(CheckEvent(
                    probe=probe,
                    event_type=event_type,
                    message=message,
                    timestamp_ms=ts_ms,
                ))

        await emit(EventType.STARTED, "checking...")

        try:
            value = await asyncio.wait_for(checker.check(), timeout=self.timeout_seconds)
            await emit(EventType.COMPLETE, _describe(value))
            return ProbeOutcome(
                probe=probe, status=ProbeStatus.OK, value=value, elapsed_ms=elapsed(),
            )

        except SignalNotApplicable as exc:
            await emit(EventType.SKIPPED, exc.reason)
            logger.info("Checker '%s' not applicable: %s", probe, exc.reason)
            return ProbeOutcome(
                probe=probe, status=ProbeStatus.NOT_APPLICABLE,
                error=exc.reason, elapsed_ms=elapsed(),
            )

        except asyncio.TimeoutError:
            elapsed_ms = elapsed()
            message = f"timed out after {elapsed_ms / 1000:.1f}s"
            await emit(EventType.ERROR, message)
            logger.error(
                "Checker '%s' timed out after %.1fs (limit: %.1fs) — recording as unknown.",
                probe,
                elapsed_ms / 1000,
                self.timeout_seconds,
            )
            return ProbeOutcome(
                probe=probe, status=ProbeStatus.TIMED_OUT, error=message, elapsed_ms=elapsed_ms,
            )

        except Exception as exc:
            elapsed_ms = elapsed()
            await emit(EventType.ERROR, str(exc) or type(exc).__name__)
            logger.error(
                "Checker '%s' raised after %.0fms — recording as unknown. Error: %s",
                probe,
                elapsed_ms,
                exc,
            )
            return ProbeOutcome(
                probe=probe, status=ProbeStatus.FAILED,
                error=str(exc) or type(exc).__name__, elapsed_ms=elapsed_ms,
            )


def _describe(value) -> str:
    """Short event message for a checker's return value."""
    if isinstance(value, list):
        noun = "sample" if len(value) == 1 else "samples"
        return f"{len(value)} {noun} read"
    return f"result: {getattr(value, 'value', value)}"
