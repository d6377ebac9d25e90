import inspect
import os
import traceback
from typing import Any

from distref.reference.process_context import CONTROLLER_ID

from .errors import WorkerInvocationError
from .invoker import Routine


class ControllerWorker:
    """
    The controller process, addressed like any other worker. Routines run
    in-process, on the caller's event loop.
    """

    worker_id = CONTROLLER_ID

    @property
    def pid(self) -> int:
        return os.getpid()

    @property
    def is_alive(self) -> bool:
        return True

    async def invoke(self, routine: Routine) -> Any:
        try:
            result = routine()

            if inspect.isawaitable(result):
                result = await result

            return result

        except Exception as err:
            raise WorkerInvocationError(
                self.worker_id,
                f"Err. - routine failed in controller - {err!r}",
                remote_traceback=traceback.format_exc(),
            ) from err

    def __repr__(self) -> str:
        return f"ControllerWorker(pid={self.pid})"
