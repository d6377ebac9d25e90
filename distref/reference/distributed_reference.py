from __future__ import annotations

import uuid
from typing import Any, Generic, TypeVar

from distref.logging import Logger
from distref.logging.distref_logging_models import (
    ReferenceDebug,
    ReferenceTrace,
)
from distref.workers.invoker import WorkerInvoker
from distref.workers.local_invoker import LocalInvoker

from .dispatch import CapabilityDispatcher
from .models import ShutdownCapability
from .process_context import process_context
from .reference_slot import ReferenceSlot

V = TypeVar("V")

DEFAULT_WORKER_COUNT = 4


def rebind_reference(
    reference_id: str,
    auto_close: bool,
    worker_count: int,
) -> DistributedReference[Any]:
    reference = DistributedReference(
        worker_count=worker_count,
        reference_id=reference_id,
    )

    reference._auto_close = auto_close
    reference._slot().configure_auto_close(auto_close)

    return reference


class DistributedReference(Generic[V]):
    """
    A reference to one value per worker process, torn down in every worker
    and in the controller once the test completes.

    Each process keeps its own value: calling ``set()`` inside a worker
    (through ``WorkerPool.get_worker(idx).invoke(...)``) stores the value in
    that worker only. ``after()`` then runs ``teardown()`` everywhere, which
    clears the value and, unless auto-close is disabled, releases it through
    the ``CapabilityDispatcher``.

    A reference shipped to a worker carries only its id and its auto-close
    setting. It never carries its value or its invoker.

    Example:

        pool = WorkerPool(worker_count=2)
        server = DistributedReference[Server](invoker=pool, worker_count=2)

        async with pool, server:
            for worker in [*pool.workers, pool.get_controller()]:
                await worker.invoke(lambda: server.set(Server()).get().start())

    """

    def __init__(
        self,
        invoker: WorkerInvoker | None = None,
        worker_count: int = DEFAULT_WORKER_COUNT,
        reference_id: str | None = None,
        dispatcher: CapabilityDispatcher | None = None,
    ) -> None:
        if reference_id is None:
            reference_id = uuid.uuid4().hex

        if invoker is None:
            invoker = LocalInvoker()

        self._reference_id = reference_id
        self._worker_count = worker_count
        self._invoker = invoker
        self._auto_close = True
        self._logger = Logger()
        self._dispatcher = dispatcher or CapabilityDispatcher(
            logger=self._logger,
        )

    @property
    def reference_id(self) -> str:
        return self._reference_id

    @property
    def worker_count(self) -> int:
        return self._worker_count

    @property
    def auto_close(self) -> bool:
        return self._slot().auto_close

    def _slot(self) -> ReferenceSlot[V]:
        return process_context().slot(
            self._reference_id,
            auto_close=self._auto_close,
        )

    def configure_auto_close(self, enabled: bool) -> DistributedReference[V]:
        """
        Set False to clear the value during teardown without releasing it.
        Default is True.
        """
        self._auto_close = bool(enabled)
        self._slot().configure_auto_close(enabled)
        return self

    def get(self) -> V | None:
        return self._slot().get()

    def set(self, value: V | None) -> DistributedReference[V]:
        self._slot().set(value)
        return self

    async def before(self):
        await self._invoker.ensure_workers(self._worker_count)

    async def after(self):
        async with self._logger.context(
            name="distributed_reference",
        ) as ctx:
            await ctx.log(
                ReferenceDebug(
                    message=f"Tearing down reference {self._reference_id} in every worker and controller",
                    reference_id=self._reference_id,
                    worker_id=process_context().worker_id,
                )
            )

        await self._invoker.invoke_in_every_worker_and_controller(self.teardown)

    async def teardown(self) -> ShutdownCapability:
        context = process_context()
        slot = self._slot()

        value = slot.take()
        context.discard(self._reference_id)

        if value is None:
            return ShutdownCapability.NONE

        async with self._logger.context(
            name="distributed_reference",
        ) as ctx:
            await ctx.log(
                ReferenceTrace(
                    message=f"Cleared reference {self._reference_id} holding {type(value).__qualname__}",
                    reference_id=self._reference_id,
                    worker_id=context.worker_id,
                )
            )

        if slot.auto_close is False:
            return ShutdownCapability.NONE

        return await self._dispatcher.release(value)

    async def __aenter__(self):
        await self.before()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.after()

    def __reduce__(self):
        return (
            rebind_reference,
            (
                self._reference_id,
                self._auto_close,
                self._worker_count,
            ),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reference_id={self._reference_id!r}, worker_id={process_context().worker_id})"
