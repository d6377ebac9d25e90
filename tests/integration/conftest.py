"""
Integration tests start real worker processes through the ``worker_pool``
fixture. Routines shipped to workers are module-level functions bound with
``functools.partial`` so that workers import them by name.
"""

import os

import pytest

from distref.workers import WorkerPool


@pytest.fixture
def worker_pids(worker_pool: WorkerPool) -> dict[int, int]:
    pids = {worker.worker_id: worker.pid for worker in worker_pool.workers}
    pids[worker_pool.get_controller().worker_id] = os.getpid()
    return pids
