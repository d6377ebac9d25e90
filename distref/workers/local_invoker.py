from typing import Any, Dict

from .controller_worker import ControllerWorker
from .errors import BroadcastError, WorkerInvocationError
from .invoker import Routine


class LocalInvoker:
    """
    Invoker for tests that run entirely in the controller. Every broadcast
    runs exactly once, in the current process.
    """

    def __init__(self) -> None:
        self._controller = ControllerWorker()

    async def ensure_workers(self, count: int) -> None:
        return None

    async def invoke_in_every_worker_and_controller(
        self,
        routine: Routine,
    ) -> Dict[int, Any]:
        try:
            result = await self._controller.invoke(routine)

        except WorkerInvocationError as err:
            raise BroadcastError({self._controller.worker_id: err}) from err

        return {self._controller.worker_id: result}
