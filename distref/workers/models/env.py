from typing import Callable, Dict, Literal, Union

from pydantic import BaseModel, StrictInt, StrictStr, field_validator

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    DISTREF_WORKER_COUNT: StrictInt = 4
    DISTREF_WORKER_START_TIMEOUT: StrictStr = "30s"
    DISTREF_WORKER_INVOKE_TIMEOUT: StrictStr = "2m"
    DISTREF_WORKER_STOP_TIMEOUT: StrictStr = "5s"
    DISTREF_MP_CONTEXT: Literal["spawn", "fork", "forkserver"] = "spawn"
    DISTREF_LOG_LEVEL: StrictStr = "error"
    DISTREF_LOGS_DIRECTORY: StrictStr | None = None

    @field_validator("DISTREF_WORKER_COUNT")
    @classmethod
    def validate_worker_count(cls, value: int) -> int:
        if value < 0:
            raise ValueError("DISTREF_WORKER_COUNT must not be negative")

        return value

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "DISTREF_WORKER_COUNT": int,
            "DISTREF_WORKER_START_TIMEOUT": str,
            "DISTREF_WORKER_INVOKE_TIMEOUT": str,
            "DISTREF_WORKER_STOP_TIMEOUT": str,
            "DISTREF_MP_CONTEXT": str,
            "DISTREF_LOG_LEVEL": str,
            "DISTREF_LOGS_DIRECTORY": str,
        }
