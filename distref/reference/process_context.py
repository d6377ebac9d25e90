import threading
from typing import Dict

from .reference_slot import ReferenceSlot

CONTROLLER_ID = -1


class ProcessContext:
    """
    Per-process state: the id of the worker this process plays and every
    reference slot living in it. Exactly one exists per process image.
    """

    def __init__(self, worker_id: int = CONTROLLER_ID) -> None:
        self.worker_id = worker_id
        self._slots: Dict[str, ReferenceSlot] = {}
        self._lock = threading.Lock()

    @property
    def is_controller(self) -> bool:
        return self.worker_id == CONTROLLER_ID

    def slot(
        self,
        reference_id: str,
        auto_close: bool = True,
    ) -> ReferenceSlot:
        with self._lock:
            slot = self._slots.get(reference_id)
            if slot is None:
                slot = ReferenceSlot(auto_close=auto_close)
                self._slots[reference_id] = slot

        return slot

    def discard(self, reference_id: str):
        with self._lock:
            self._slots.pop(reference_id, None)

    def reference_ids(self) -> list[str]:
        with self._lock:
            return list(self._slots)


_process_context: ProcessContext | None = None
_process_context_lock = threading.Lock()


def process_context() -> ProcessContext:
    global _process_context

    with _process_context_lock:
        if _process_context is None:
            _process_context = ProcessContext()

        return _process_context


def bind_worker(worker_id: int) -> ProcessContext:
    """
    Give this process a fresh context for the given worker id. Worker
    processes call this once at bootstrap, which also discards any slots
    inherited from a forked parent.
    """
    global _process_context

    with _process_context_lock:
        _process_context = ProcessContext(worker_id=worker_id)
        return _process_context


def current_worker_id() -> int:
    return process_context().worker_id
