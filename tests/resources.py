"""
Resource classes released by the tests. Each one records the release calls
it receives, in memory and (when given a path) in a file shared across
processes. Every line in the file is ``<pid>:<name>:<call>``.
"""

import asyncio
import os
import pathlib

from distref.reference import Closeable


class RecordingResource:
    def __init__(
        self,
        name: str = "resource",
        record_path: str | None = None,
    ) -> None:
        self.name = name
        self.record_path = record_path
        self.calls: list[str] = []

    def record(self, call: str):
        self.calls.append(call)

        if self.record_path:
            with open(self.record_path, "a") as record_file:
                record_file.write(f"{os.getpid()}:{self.name}:{call}\n")


def read_records(record_path: str | pathlib.Path) -> list[tuple[int, str, str]]:
    path = pathlib.Path(record_path)
    if not path.exists():
        return []

    records: list[tuple[int, str, str]] = []
    for line in path.read_text().splitlines():
        pid, name, call = line.split(":", 2)
        records.append((int(pid), name, call))

    return records


class StoppableServer(RecordingResource):
    def start(self):
        self.record("start")

    def stop(self):
        self.record("stop")


class DisconnectableClient(RecordingResource):
    def disconnect(self):
        self.record("disconnect")

    def stop(self):
        self.record("stop")


class CloseableCache(RecordingResource):
    def close(self):
        self.record("close")

    def disconnect(self):
        self.record("disconnect")

    def stop(self):
        self.record("stop")


class DeclaredCloseable(RecordingResource, Closeable):
    def close(self):
        self.record("close")

    def disconnect(self):
        self.record("disconnect")

    def stop(self):
        self.record("stop")


class AsyncServer(RecordingResource):
    async def close(self):
        await asyncio.sleep(0)
        self.record("close")


class FailingServer(RecordingResource):
    def start(self):
        self.record("start")

    def stop(self):
        self.record("stop")
        raise RuntimeError(f"{self.name} refused to stop")


class StopRequiresTimeout(RecordingResource):
    def stop(self, timeout: float):
        self.record(f"stop:{timeout}")


class StopWithDefaultTimeout(RecordingResource):
    def stop(self, timeout: float = 1.0):
        self.record(f"stop:{timeout}")


class PrivateClose(RecordingResource):
    def _close(self):
        self.record("_close")


class CloseProperty(RecordingResource):
    @property
    def close(self):
        self.record("close-property")
        return lambda: None


class StaticStop:
    stopped = 0

    @staticmethod
    def stop():
        StaticStop.stopped += 1


class GuardedCloseDescriptor:
    def __get__(self, instance, owner=None):
        raise PermissionError("close is not accessible")

    def __call__(self):
        raise AssertionError("descriptor should never be invoked directly")


class GuardedClose:
    close = GuardedCloseDescriptor()


class NoCapability:
    def shutdown(self):
        raise AssertionError("shutdown is not a release capability")
