import asyncio
import ctypes
import inspect
import os
import traceback
from multiprocessing.connection import Connection
from typing import Any

import cloudpickle

from distref.logging import LoggingConfig, Logger, LogLevelName
from distref.logging.distref_logging_models import (
    WorkerDebug,
    WorkerFailure,
)
from distref.reference.process_context import bind_worker

from .errors import RemoteInvocationError
from .models import InvocationResult, WorkerCommand


def set_process_name(worker_id: int):
    try:
        libc = ctypes.CDLL("libc.so.6")
        new_name = f"distref-{worker_id}".encode()

        # Name shown by `top` and in /proc/self/comm.
        buff = ctypes.create_string_buffer(len(new_name) + 1)
        buff.value = new_name
        libc.prctl(15, ctypes.byref(buff), 0, 0, 0)

    except (OSError, AttributeError):
        pass


def encode_result(result: InvocationResult) -> bytes:
    try:
        return cloudpickle.dumps(result)

    except Exception as err:
        # Either the returned value or the raised error cannot be pickled.
        # Replace whichever it is with a description the controller can load.
        failed = result.error if result.error is not None else result.value
        return cloudpickle.dumps(
            InvocationResult(
                worker_id=result.worker_id,
                pid=result.pid,
                error=RemoteInvocationError(
                    type(failed).__qualname__,
                    f"{failed!r} could not be returned to the controller - {err!r}",
                ),
                traceback=result.traceback,
            )
        )


class WorkerRunner:
    def __init__(
        self,
        worker_id: int,
        connection: Connection,
    ) -> None:
        self.worker_id = worker_id
        self._connection = connection
        self._pid = os.getpid()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._logger = Logger()

    async def run(self):
        self._loop = asyncio.get_running_loop()

        async with self._logger.context(
            name=f"worker_{self.worker_id}",
            nested=True,
        ) as ctx:
            await ctx.log(
                WorkerDebug(
                    message=f"Worker {self.worker_id} ready in process {self._pid}",
                    worker_id=self.worker_id,
                    pid=self._pid,
                )
            )

            await self._send(
                InvocationResult(
                    worker_id=self.worker_id,
                    pid=self._pid,
                )
            )

            while True:
                try:
                    payload = await self._loop.run_in_executor(
                        None,
                        self._connection.recv_bytes,
                    )

                except (EOFError, OSError):
                    await ctx.log(
                        WorkerFailure(
                            message=f"Worker {self.worker_id} lost its controller connection, exiting",
                            worker_id=self.worker_id,
                            pid=self._pid,
                        )
                    )

                    break

                result, stop = await self._execute(payload)
                await self._send(result)

                if stop:
                    await ctx.log(
                        WorkerDebug(
                            message=f"Worker {self.worker_id} received stop",
                            worker_id=self.worker_id,
                            pid=self._pid,
                        )
                    )

                    break

        await self._logger.close()

    async def _execute(self, payload: bytes) -> tuple[InvocationResult, bool]:
        try:
            command: WorkerCommand = cloudpickle.loads(payload)

            if command.command == "stop":
                return InvocationResult(
                    worker_id=self.worker_id,
                    pid=self._pid,
                ), True

            value: Any = command.routine()

            if inspect.isawaitable(value):
                value = await value

            return InvocationResult(
                worker_id=self.worker_id,
                pid=self._pid,
                value=value,
            ), False

        except Exception as err:
            return InvocationResult(
                worker_id=self.worker_id,
                pid=self._pid,
                error=err,
                traceback=traceback.format_exc(),
            ), False

    async def _send(self, result: InvocationResult):
        await self._loop.run_in_executor(
            None,
            self._connection.send_bytes,
            encode_result(result),
        )


def run_worker(
    worker_id: int,
    connection: Connection,
    logs_directory: str | None = None,
    log_level: LogLevelName = "error",
):
    set_process_name(worker_id)

    logging_config = LoggingConfig()
    logging_config.update(
        log_directory=logs_directory,
        log_level=log_level,
        log_output="stderr",
    )

    bind_worker(worker_id)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    runner = WorkerRunner(
        worker_id,
        connection,
    )

    try:
        loop.run_until_complete(runner.run())

    except KeyboardInterrupt:
        pass

    finally:
        pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_default_executor())
        loop.close()
        connection.close()
