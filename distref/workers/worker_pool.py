import asyncio
import multiprocessing
from multiprocessing.context import BaseContext
from typing import Any, Dict, List, Sequence

from distref.logging import Logger
from distref.logging.distref_logging_models import (
    PoolDebug,
    PoolFailure,
)

from .controller_worker import ControllerWorker
from .env import load_env
from .errors import BroadcastError
from .invoker import Routine
from .models import Env
from .worker import Worker


class WorkerPool:
    """
    Owns the worker processes of a distributed test plus a handle for the
    controller, and broadcasts routines across them.

    Broadcasts run in every target concurrently and wait for all of them.
    If any target fails, a ``BroadcastError`` carrying every failure is
    raised once all targets have finished.
    """

    def __init__(
        self,
        worker_count: int | None = None,
        env: Env | None = None,
    ) -> None:
        if env is None:
            env = load_env(Env)

        if worker_count is None:
            worker_count = env.DISTREF_WORKER_COUNT

        if worker_count < 0:
            raise ValueError(
                f"Err. - worker count must not be negative, got {worker_count}"
            )

        self._env = env
        self._worker_count = worker_count
        self._context: BaseContext | None = None
        self._workers: List[Worker] = []
        self._controller = ControllerWorker()
        self._start_lock = asyncio.Lock()
        self._logger = Logger()

    @property
    def env(self) -> Env:
        return self._env

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    @property
    def workers(self) -> List[Worker]:
        return list(self._workers)

    def get_worker(self, worker_id: int) -> Worker:
        if worker_id < 0 or worker_id >= len(self._workers):
            raise IndexError(
                f"Err. - no worker {worker_id}, pool has {len(self._workers)} workers"
            )

        return self._workers[worker_id]

    def get_controller(self) -> ControllerWorker:
        return self._controller

    async def start(self):
        await self.ensure_workers(self._worker_count)

    async def ensure_workers(self, count: int) -> None:
        async with self._start_lock:
            if self._context is None:
                self._context = multiprocessing.get_context(
                    self._env.DISTREF_MP_CONTEXT
                )

            if count <= len(self._workers):
                return

            pending = [
                Worker(
                    worker_id,
                    self._env,
                    self._context,
                )
                for worker_id in range(len(self._workers), count)
            ]

            async with self._logger.context(
                name="worker_pool",
            ) as ctx:
                await ctx.log(
                    PoolDebug(
                        message=f"Starting {len(pending)} workers using {self._env.DISTREF_MP_CONTEXT} context",
                        workers=count,
                    )
                )

                results = await asyncio.gather(
                    *[worker.start() for worker in pending],
                    return_exceptions=True,
                )

                failures = {
                    worker.worker_id: result
                    for worker, result in zip(pending, results)
                    if isinstance(result, BaseException)
                }

                if failures:
                    await ctx.log(
                        PoolFailure(
                            message=f"Failed to start {len(failures)} of {len(pending)} workers",
                            workers=count,
                        )
                    )

                    for worker in pending:
                        worker.abort()

                    raise BroadcastError(failures)

            self._workers.extend(pending)

    async def invoke_in_every_worker(self, routine: Routine) -> Dict[int, Any]:
        return await self._broadcast(self._workers, routine)

    async def invoke_in_every_worker_and_controller(
        self,
        routine: Routine,
    ) -> Dict[int, Any]:
        return await self._broadcast(
            [*self._workers, self._controller],
            routine,
        )

    async def _broadcast(
        self,
        targets: Sequence[Worker | ControllerWorker],
        routine: Routine,
    ) -> Dict[int, Any]:
        results = await asyncio.gather(
            *[target.invoke(routine) for target in targets],
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        failures = {
            target.worker_id: result
            for target, result in zip(targets, results)
            if isinstance(result, Exception)
        }

        if failures:
            async with self._logger.context(
                name="worker_pool",
            ) as ctx:
                await ctx.log(
                    PoolFailure(
                        message=f"Broadcast failed in workers {sorted(failures)}",
                        workers=len(self._workers),
                    )
                )

            raise BroadcastError(failures)

        return {
            target.worker_id: result
            for target, result in zip(targets, results)
        }

    async def shutdown(self):
        async with self._logger.context(
            name="worker_pool",
        ) as ctx:
            await ctx.log(
                PoolDebug(
                    message=f"Shutting down {len(self._workers)} workers",
                    workers=len(self._workers),
                )
            )

            await asyncio.gather(
                *[worker.stop() for worker in self._workers],
                return_exceptions=True,
            )

            self._workers.clear()

    def abort(self):
        for worker in self._workers:
            worker.abort()

        self._workers.clear()
        self._logger.abort()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
