from typing import Any, Literal

import msgspec

WorkerCommandType = Literal["invoke", "stop"]


class WorkerCommand(msgspec.Struct, kw_only=True):
    command: WorkerCommandType
    routine: Any = None
