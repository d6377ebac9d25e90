from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Protocol,
    runtime_checkable,
)

Routine = Callable[[], Any | Awaitable[Any]]


@runtime_checkable
class WorkerInvoker(Protocol):
    async def ensure_workers(self, count: int) -> None:
        ...

    async def invoke_in_every_worker_and_controller(
        self,
        routine: Routine,
    ) -> Dict[int, Any]:
        ...
