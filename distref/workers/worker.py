import asyncio
import functools
from multiprocessing.connection import Connection
from multiprocessing.context import BaseContext
from multiprocessing.process import BaseProcess
from typing import Any

import cloudpickle
import psutil

from distref.logging import LoggingConfig, Logger
from distref.logging.distref_logging_models import (
    WorkerDebug,
    WorkerFailure,
)

from .env import TimeParser
from .errors import (
    WorkerExitedError,
    WorkerInvocationError,
    WorkerStartError,
    WorkerTimeoutError,
)
from .invoker import Routine
from .models import Env, InvocationResult, WorkerCommand
from .worker_process import run_worker


class Worker:
    """
    Controller-side handle for one worker process.

    Routines are shipped to the worker with cloudpickle and run there one at
    a time, in the worker's own event loop. Awaitable results are awaited
    in the worker before being sent back.
    """

    def __init__(
        self,
        worker_id: int,
        env: Env,
        context: BaseContext,
    ) -> None:
        self.worker_id = worker_id
        self._env = env
        self._context = context
        self._process: BaseProcess | None = None
        self._connection: Connection | None = None
        self._lock = asyncio.Lock()
        self._logger = Logger()

        time_parser = TimeParser()
        self._start_timeout = time_parser.parse(env.DISTREF_WORKER_START_TIMEOUT)
        self._invoke_timeout = time_parser.parse(env.DISTREF_WORKER_INVOKE_TIMEOUT)
        self._stop_timeout = time_parser.parse(env.DISTREF_WORKER_STOP_TIMEOUT)

    @property
    def pid(self) -> int | None:
        if self._process is None:
            return None

        return self._process.pid

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    async def start(self):
        loop = asyncio.get_running_loop()
        config = LoggingConfig()

        parent_connection, child_connection = self._context.Pipe(duplex=True)

        self._process = self._context.Process(
            target=run_worker,
            args=(
                self.worker_id,
                child_connection,
            ),
            kwargs={
                "logs_directory": self._env.DISTREF_LOGS_DIRECTORY or config.directory,
                "log_level": self._env.DISTREF_LOG_LEVEL,
            },
            name=f"distref-worker-{self.worker_id}",
            daemon=True,
        )

        await loop.run_in_executor(None, self._process.start)
        child_connection.close()

        self._connection = parent_connection

        async with self._logger.context(
            name=f"worker_{self.worker_id}",
        ) as ctx:
            try:
                await loop.run_in_executor(
                    None,
                    self._receive,
                    self._start_timeout,
                )

            except (WorkerTimeoutError, WorkerExitedError) as err:
                await ctx.log(
                    WorkerFailure(
                        message=f"Worker {self.worker_id} failed to start - {err}",
                        worker_id=self.worker_id,
                        pid=self.pid,
                    )
                )

                self.abort()

                raise WorkerStartError(
                    self.worker_id,
                    f"Err. - worker {self.worker_id} failed to start - {err}",
                ) from err

            await ctx.log(
                WorkerDebug(
                    message=f"Started worker {self.worker_id} in process {self.pid}",
                    worker_id=self.worker_id,
                    pid=self.pid,
                )
            )

    async def invoke(self, routine: Routine) -> Any:
        if self._connection is None or not self.is_alive:
            raise WorkerExitedError(
                self.worker_id,
                f"Err. - worker {self.worker_id} is not running",
            )

        payload = cloudpickle.dumps(
            WorkerCommand(
                command="invoke",
                routine=routine,
            )
        )

        loop = asyncio.get_running_loop()

        async with self._lock:
            try:
                result: InvocationResult = await loop.run_in_executor(
                    None,
                    functools.partial(
                        self._roundtrip,
                        payload,
                        self._invoke_timeout,
                    ),
                )

            except WorkerTimeoutError:
                self.abort()
                raise

        if result.ok:
            return result.value

        error = WorkerInvocationError(
            self.worker_id,
            f"Err. - routine failed in worker {self.worker_id} - {result.error!r}",
            remote_traceback=result.traceback,
        )

        raise error from result.error

    async def stop(self):
        if self._process is None:
            return

        loop = asyncio.get_running_loop()

        if self.is_alive and self._connection is not None:
            async with self._lock:
                try:
                    await loop.run_in_executor(
                        None,
                        functools.partial(
                            self._roundtrip,
                            cloudpickle.dumps(WorkerCommand(command="stop")),
                            self._stop_timeout,
                        ),
                    )

                except (WorkerTimeoutError, WorkerExitedError):
                    self.abort()

            await loop.run_in_executor(
                None,
                self._process.join,
                self._stop_timeout,
            )

        if self.is_alive:
            self.abort()

        self._close_connection()

    def abort(self):
        if self._process is not None and self._process.pid is not None:
            try:
                process = psutil.Process(self._process.pid)
                for child in process.children(recursive=True):
                    child.kill()

                process.kill()

            except psutil.NoSuchProcess:
                pass

            self._process.join(self._stop_timeout)

        self._close_connection()

    def _close_connection(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _roundtrip(
        self,
        payload: bytes,
        timeout: float,
    ) -> InvocationResult:
        try:
            self._connection.send_bytes(payload)

        except OSError as err:
            raise WorkerExitedError(
                self.worker_id,
                f"Err. - worker {self.worker_id} exited before receiving the routine - {err!r}",
            ) from err

        return self._receive(timeout)

    def _receive(self, timeout: float) -> InvocationResult:
        try:
            if not self._connection.poll(timeout):
                raise WorkerTimeoutError(
                    self.worker_id,
                    f"Err. - worker {self.worker_id} did not respond within {timeout} seconds",
                )

            return cloudpickle.loads(self._connection.recv_bytes())

        except (EOFError, OSError) as err:
            raise WorkerExitedError(
                self.worker_id,
                f"Err. - worker {self.worker_id} exited unexpectedly - {err!r}",
            ) from err

    def __repr__(self) -> str:
        return f"Worker(worker_id={self.worker_id}, pid={self.pid}, alive={self.is_alive})"
