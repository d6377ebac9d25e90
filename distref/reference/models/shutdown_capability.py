from __future__ import annotations

from enum import Enum


class ShutdownCapability(Enum):
    NATIVE_CLOSEABLE = "native_closeable"
    CLOSE = "close"
    DISCONNECT = "disconnect"
    STOP = "stop"
    NONE = "none"

    @property
    def method_name(self) -> str | None:
        if self is ShutdownCapability.NONE:
            return None

        if self is ShutdownCapability.NATIVE_CLOSEABLE:
            return "close"

        return self.value

    @classmethod
    def probe_order(cls) -> tuple[ShutdownCapability, ...]:
        return (
            cls.CLOSE,
            cls.DISCONNECT,
            cls.STOP,
        )
