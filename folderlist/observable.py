"""Thread-safe published values with change subscribers."""

import logging
import threading
from typing import Any, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObservableValue(Generic[T]):
    """Holds one published value and notifies subscribers on replacement.

    Writes replace the whole value; readers always see either the old or the
    new value, never a partially updated one. Subscribers run on the writer's
    thread, after the lock has been released.
    """

    def __init__(self, initial: T, name: str = "value"):
        self._value = initial
        self._name = name
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[T], Any]] = []

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def set(self, new_value: T) -> bool:
        """Replace the value. Returns False if it was equal to the current one."""
        with self._lock:
            if new_value == self._value:
                return False
            self._value = new_value
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(new_value)
            except Exception as e:
                logger.error(f"Subscriber of '{self._name}' failed: {type(e).__name__}: {e}")
        return True

    def subscribe(self, callback: Callable[[T], Any]) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def __repr__(self) -> str:
        return f"ObservableValue({self._name}={self.value!r})"
