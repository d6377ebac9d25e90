import os
import pickle

import pytest

from distref.reference import ReleaseFailedError
from distref.reference.process_context import CONTROLLER_ID, current_worker_id
from distref.workers import (
    BroadcastError,
    ControllerWorker,
    LocalInvoker,
    RemoteInvocationError,
    WorkerInvocationError,
    WorkerInvoker,
    WorkerTimeoutError,
)


def failing_routine():
    raise KeyError("missing")


async def async_routine():
    return current_worker_id()


class TestControllerWorker:
    @pytest.mark.asyncio
    async def test_runs_in_process(self):
        worker = ControllerWorker()

        assert worker.worker_id == CONTROLLER_ID
        assert worker.pid == os.getpid()
        assert await worker.invoke(os.getpid) == os.getpid()

    @pytest.mark.asyncio
    async def test_awaits_async_routines(self):
        assert await ControllerWorker().invoke(async_routine) == CONTROLLER_ID

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self):
        with pytest.raises(WorkerInvocationError) as raised:
            await ControllerWorker().invoke(failing_routine)

        assert raised.value.worker_id == CONTROLLER_ID
        assert isinstance(raised.value.__cause__, KeyError)
        assert "failing_routine" in raised.value.remote_traceback


class TestLocalInvoker:
    def test_satisfies_invoker_protocol(self):
        assert isinstance(LocalInvoker(), WorkerInvoker)

    @pytest.mark.asyncio
    async def test_invokes_controller_once(self):
        calls = []

        results = await LocalInvoker().invoke_in_every_worker_and_controller(
            lambda: calls.append(current_worker_id()) or "done"
        )

        assert calls == [CONTROLLER_ID]
        assert results == {CONTROLLER_ID: "done"}

    @pytest.mark.asyncio
    async def test_failure_raises_broadcast_error(self):
        with pytest.raises(BroadcastError) as raised:
            await LocalInvoker().invoke_in_every_worker_and_controller(failing_routine)

        assert raised.value.worker_ids == [CONTROLLER_ID]


class TestErrorPickling:
    def test_broadcast_error_round_trips_with_failures(self):
        error = BroadcastError(
            {
                1: WorkerTimeoutError(1, "timed out"),
                -1: RemoteInvocationError("Lock", "cannot pickle"),
            }
        )

        restored = pickle.loads(pickle.dumps(error))

        assert restored.worker_ids == [-1, 1]
        assert isinstance(restored.failures[1], WorkerTimeoutError)
        assert restored.failures[1].worker_id == 1
        assert str(restored) == str(error)

    def test_invocation_error_keeps_remote_traceback(self):
        error = WorkerInvocationError(2, "failed", remote_traceback="Traceback ...")

        restored = pickle.loads(pickle.dumps(error))

        assert restored.worker_id == 2
        assert restored.remote_traceback == "Traceback ..."

    def test_teardown_error_keeps_its_fields(self):
        error = ReleaseFailedError.from_error(
            object(),
            "stop",
            RuntimeError("refused"),
        )

        restored = pickle.loads(pickle.dumps(error))

        assert restored.value_type == "object"
        assert restored.method_name == "stop"
        assert "refused" in str(restored)
