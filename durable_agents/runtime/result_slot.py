"""Single-assignment result slot for blocking rendezvous.

A ResultSlot is written once, by whichever thread finishes the work, and
read by the thread that is waiting for it. Readers block on a condition
variable until the slot is assigned.
"""

import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ResultSlot(Generic[T]):
    """A value or an exception, assigned at most once."""

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._done = False
        self._value: Optional[T] = None
        self._error: Optional[BaseException] = None

    def done(self) -> bool:
        with self._condition:
            return self._done

    def set_result(self, value: T) -> bool:
        """Assign a value.

        Args:
            value: The result.

        Returns:
            True if the slot was assigned, False if it was already assigned.
        """
        with self._condition:
            if self._done:
                return False
            self._value = value
            self._done = True
            self._condition.notify_all()
            return True

    def set_exception(self, error: BaseException) -> bool:
        """Assign an exception that ``result()`` will re-raise.

        Returns:
            True if the slot was assigned, False if it was already assigned.
        """
        with self._condition:
            if self._done:
                return False
            self._error = error
            self._done = True
            self._condition.notify_all()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the slot is assigned.

        Args:
            timeout: Seconds to wait. None waits indefinitely.

        Returns:
            True if the slot is assigned.
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._done, timeout=timeout)

    def result(self) -> T:
        """Block until assigned, then return the value or raise the exception.

        The stored exception object itself is raised, so its type, message
        and ``__cause__`` reach the reader unchanged.
        """
        self.wait()
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"ResultSlot({state})"
