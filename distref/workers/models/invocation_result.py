from typing import Any

import msgspec


class InvocationResult(msgspec.Struct, kw_only=True):
    worker_id: int
    pid: int
    value: Any = None
    error: Any = None
    traceback: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
