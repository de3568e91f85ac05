import asyncio
import inspect
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Final

from loguru import logger
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import PrivateAttr

from imbue.poll_until.data_types import PollOptions
from imbue.poll_until.errors import PollTimeoutError
from imbue.poll_until.primitives import EvaluationOutcome
from imbue.poll_until.primitives import format_milliseconds

Predicate = Callable[[], object | Awaitable[object]]

# Consecutive failures (including one from the immediate evaluation) after which polling gives up.
MAX_CONSECUTIVE_FAILURES: Final[int] = 3


async def _evaluate(predicate: Predicate) -> tuple[EvaluationOutcome, Exception | None]:
    """Run the predicate once, awaiting its result if it returned an awaitable.

    Sync and async predicates (and sync raises vs. async raises) all end up as one of the
    three outcomes here. The result is judged by truthiness, like an `if` would.
    """
    try:
        result = predicate()
        if inspect.isawaitable(result):
            result = await result
        # bool() can raise too (e.g. ambiguous array truthiness), which counts as a failure.
        is_truthy = bool(result)
    except Exception as e:
        return EvaluationOutcome.FAILED, e
    if is_truthy:
        return EvaluationOutcome.SUCCESS, None
    return EvaluationOutcome.PENDING, None


def _create_completion_future() -> asyncio.Future[None]:
    return asyncio.get_running_loop().create_future()


class _PollSession(BaseModel):
    """State for a single poll_until_true call.

    Owns exactly one timer handle at a time and at most one in-flight evaluation task.
    Both are released the moment the session settles, whichever way it settles.
    """

    model_config = ConfigDict(
        frozen=False,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    predicate: Predicate
    options: PollOptions
    # Event loop clock reading taken when the poll was requested
    start_time: float

    _loop: asyncio.AbstractEventLoop = PrivateAttr(default_factory=asyncio.get_running_loop)
    _failure_count: int = PrivateAttr(default=0)
    _completion: asyncio.Future[None] = PrivateAttr(default_factory=_create_completion_future)
    _timer: asyncio.TimerHandle | None = PrivateAttr(default=None)
    # Loop clock time the next tick is due; ticks stay on this grid however late a callback runs.
    _next_tick_at: float = PrivateAttr(default=0.0)
    _evaluation: asyncio.Task[None] | None = PrivateAttr(default=None)

    async def run(self) -> None:
        # The immediate evaluation is awaited inline: the timeout only gates the interval loop.
        outcome, error = await _evaluate(self.predicate)
        if outcome == EvaluationOutcome.SUCCESS:
            return
        if outcome == EvaluationOutcome.FAILED:
            self._failure_count = 1
            logger.trace("Initial evaluation failed, continuing to poll: {}", error)

        self._next_tick_at = self._loop.time() + self.options.delay_seconds
        self._timer = self._loop.call_at(self._next_tick_at, self._on_tick)
        try:
            await self._completion
        finally:
            # Also reached when the caller cancels us.
            self._release()

    def _on_tick(self) -> None:
        self._timer = None
        if self._completion.done():
            return

        elapsed = self._loop.time() - self.start_time
        if elapsed >= self.options.timeout_seconds:
            self._settle(PollTimeoutError(self.options.timeout_ms))
            return

        self._schedule_next_tick()

        if self._evaluation is not None:
            logger.trace("Skipping tick, previous evaluation still in progress")
            return
        self._evaluation = self._loop.create_task(self._evaluate_once())

    def _schedule_next_tick(self) -> None:
        now = self._loop.time()
        self._next_tick_at += self.options.delay_seconds
        # Ticks missed while the loop was blocked are dropped rather than fired in a burst.
        while self._next_tick_at <= now:
            self._next_tick_at += self.options.delay_seconds
        self._timer = self._loop.call_at(self._next_tick_at, self._on_tick)

    async def _evaluate_once(self) -> None:
        try:
            outcome, error = await _evaluate(self.predicate)
        finally:
            self._evaluation = None

        match outcome:
            case EvaluationOutcome.SUCCESS:
                self._settle(None)
            case EvaluationOutcome.PENDING:
                # A falsy result forgives earlier failures.
                self._failure_count = 0
            case EvaluationOutcome.FAILED:
                self._failure_count += 1
                if self._failure_count >= MAX_CONSECUTIVE_FAILURES:
                    self._settle(error)
                else:
                    logger.trace(
                        "Evaluation failed ({}/{}), continuing to poll: {}",
                        self._failure_count,
                        MAX_CONSECUTIVE_FAILURES,
                        error,
                    )

    def _settle(self, error: BaseException | None) -> None:
        # Only the first of success, failure exhaustion or timeout counts.
        if self._completion.done():
            return
        self._release()
        if error is None:
            self._completion.set_result(None)
        else:
            self._completion.set_exception(error)

    def _release(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._evaluation is not None:
            self._evaluation.cancel()
            self._evaluation = None


async def poll_until_true(predicate: Predicate, options: PollOptions | None = None) -> None:
    """Return once the predicate produces a truthy value, evaluating it repeatedly until then.

    The predicate may be sync or async. It is evaluated once immediately, then every
    options.delay_ms until it does. Evaluations never overlap: if an async
    predicate is still running when the next tick fires, that tick is skipped.

    Raises the predicate's own exception once it has raised MAX_CONSECUTIVE_FAILURES times
    without a falsy result in between (a falsy result resets the count), and PollTimeoutError once
    options.timeout_ms has elapsed since this call was made.
    """
    loop = asyncio.get_running_loop()
    start_time = loop.time()
    resolved_options = options if options is not None else PollOptions()
    session = _PollSession(predicate=predicate, options=resolved_options, start_time=start_time)

    predicate_name = getattr(predicate, "__name__", repr(predicate))
    with logger.contextualize(predicate=predicate_name):
        logger.debug(
            "Polling {} every {}ms (timeout {}ms)",
            predicate_name,
            format_milliseconds(resolved_options.delay_ms),
            format_milliseconds(resolved_options.timeout_ms),
        )
        try:
            await session.run()
        except BaseException:
            logger.trace("Polling {} [failed after {:.5f} sec]", predicate_name, loop.time() - start_time)
            raise
        logger.trace("Polling {} [done in {:.5f} sec]", predicate_name, loop.time() - start_time)


def wait_until_true(predicate: Predicate, options: PollOptions | None = None) -> None:
    """Blocking version of poll_until_true, for callers that are not running an event loop."""
    asyncio.run(poll_until_true(predicate, options))
