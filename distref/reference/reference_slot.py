import threading
from typing import Generic, TypeVar

V = TypeVar("V")


class ReferenceSlot(Generic[V]):
    """
    Holds the current value of one distributed reference inside a single
    process, along with whether teardown should release that value.

    Replacing a value with ``set()`` never releases the previous one.
    """

    def __init__(self, auto_close: bool = True) -> None:
        self._value: V | None = None
        self._auto_close = auto_close
        self._lock = threading.Lock()

    @property
    def auto_close(self) -> bool:
        return self._auto_close

    @property
    def empty(self) -> bool:
        return self._value is None

    def get(self) -> V | None:
        return self._value

    def set(self, value: V | None):
        with self._lock:
            self._value = value

        return self

    def take(self) -> V | None:
        with self._lock:
            value = self._value
            self._value = None

        return value

    def configure_auto_close(self, enabled: bool):
        self._auto_close = bool(enabled)
        return self
