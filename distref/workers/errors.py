"""
Errors raised by the worker broadcast layer.

Errors raised by a routine inside a worker are re-raised in the controller
as ``WorkerInvocationError`` with the original exception chained as
``__cause__`` and the remote traceback kept as text.
"""

from typing import Dict


class WorkerError(Exception):
    def __init__(self, worker_id: int, message: str) -> None:
        super().__init__(message)
        self.worker_id = worker_id
        self.message = message

    def __reduce__(self):
        return (
            type(self),
            (
                self.worker_id,
                self.message,
            ),
        )


class WorkerStartError(WorkerError):
    pass


class WorkerTimeoutError(WorkerError):
    pass


class WorkerExitedError(WorkerError):
    pass


class WorkerInvocationError(WorkerError):
    def __init__(
        self,
        worker_id: int,
        message: str,
        remote_traceback: str | None = None,
    ) -> None:
        super().__init__(worker_id, message)
        self.remote_traceback = remote_traceback

    def __reduce__(self):
        return (
            type(self),
            (
                self.worker_id,
                self.message,
                self.remote_traceback,
            ),
        )


class RemoteInvocationError(Exception):
    """
    Stands in for an exception or result that could not be pickled back
    from a worker.
    """

    def __init__(self, type_name: str, message: str) -> None:
        super().__init__(f"{type_name}: {message}")
        self.type_name = type_name
        self.message = message

    def __reduce__(self):
        return (
            type(self),
            (
                self.type_name,
                self.message,
            ),
        )


class BroadcastError(Exception):
    def __init__(self, failures: Dict[int, BaseException]) -> None:
        self.failures = dict(sorted(failures.items()))

        summary = "; ".join(
            f"worker {worker_id}: {error}" for worker_id, error in self.failures.items()
        )

        super().__init__(
            f"Err. - broadcast failed in {len(self.failures)} worker(s) - {summary}"
        )

    @property
    def worker_ids(self) -> list[int]:
        return list(self.failures)

    def __reduce__(self):
        return (
            type(self),
            (self.failures,),
        )
