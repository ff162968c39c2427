import logging
import time
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_any,
    wait_exponential,
)

from errors import GenerationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
INITIAL_DELAY_SECONDS = 5.0


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, GenerationError) and error.retryable


class RetryPolicy:
    """
    Bounded retry with exponential backoff around generation calls.

    Retryable GenerationErrors wait `initial_delay * 2 ** (attempt - 1)`
    seconds before the next attempt; non-retryable ones abort immediately.
    The last error is re-raised once attempts run out, or when the next sleep
    would push the summed delays past the optional `max_total_delay`.
    `sleep` is injectable so tests never actually wait.
    """

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        initial_delay: float = INITIAL_DELAY_SECONDS,
        max_total_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_total_delay = max_total_delay
        self.sleep = sleep

    def _wait(self):
        return wait_exponential(multiplier=self.initial_delay, exp_base=2, min=0)

    def _stop(self, wait):
        stop = stop_after_attempt(self.max_attempts)
        if self.max_total_delay is None:
            return stop
        budget = self.max_total_delay

        # Summed sleeps, including the one about to be taken, never exceed the budget
        def over_budget(state: RetryCallState) -> bool:
            return state.idle_for + wait(state) > budget

        return stop_any(stop, over_budget)

    def _log_retry(self, state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0
        logger.warning(
            "Attempt %d/%d failed (%s) - waiting %.1f seconds before retry",
            state.attempt_number,
            self.max_attempts,
            error,
            delay,
        )

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        """Run `fn` under the policy and return its result or raise the last error."""
        wait = self._wait()
        retrying = Retrying(
            stop=self._stop(wait),
            wait=wait,
            retry=retry_if_exception(_is_retryable),
            sleep=self.sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        return retrying(fn, *args, **kwargs)
