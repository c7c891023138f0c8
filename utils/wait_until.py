import threading
import time
from typing import Callable, Optional


class WaitUntilTimeoutError(Exception):
    pass


class WaitUntilCancelledError(Exception):
    pass


class Clock:
    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float):
        time.sleep(seconds)


SYSTEM_CLOCK = Clock()


def wait_until(
    predicate: Callable[[], bool],
    timeout: Optional[float] = None,
    retry_interval: float = 1.0,
    *,
    check_first: bool = True,
    clock: Clock = SYSTEM_CLOCK,
    cancel: Optional[threading.Event] = None,
):
    """Call ``predicate`` every ``retry_interval`` seconds until it returns True.

    ``timeout=None`` waits forever. ``cancel`` is checked before each sleep and
    after it, so a cancelled wait never calls ``predicate`` again. Exceptions
    raised by ``predicate`` propagate immediately.
    """
    deadline = None if timeout is None else clock.monotonic() + timeout

    if check_first and predicate():
        return

    while True:
        if cancel is not None and cancel.is_set():
            raise WaitUntilCancelledError("wait cancelled")

        clock.sleep(retry_interval)

        if cancel is not None and cancel.is_set():
            raise WaitUntilCancelledError("wait cancelled")
        if deadline is not None and clock.monotonic() > deadline:
            raise WaitUntilTimeoutError(f"condition not met within {timeout}s")

        if predicate():
            return
