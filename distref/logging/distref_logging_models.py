from .models import Entry, LogLevel


class ReferenceTrace(Entry, kw_only=True):
    reference_id: str
    worker_id: int
    level: LogLevel = LogLevel.TRACE


class ReferenceDebug(Entry, kw_only=True):
    reference_id: str
    worker_id: int
    level: LogLevel = LogLevel.DEBUG


class ReleaseDebug(Entry, kw_only=True):
    value_type: str
    capability: str
    worker_id: int
    level: LogLevel = LogLevel.DEBUG


class ReleaseFailure(Entry, kw_only=True):
    value_type: str
    capability: str
    worker_id: int
    level: LogLevel = LogLevel.ERROR


class WorkerDebug(Entry, kw_only=True):
    worker_id: int
    pid: int | None = None
    level: LogLevel = LogLevel.DEBUG


class WorkerFailure(Entry, kw_only=True):
    worker_id: int
    pid: int | None = None
    level: LogLevel = LogLevel.ERROR


class PoolDebug(Entry, kw_only=True):
    workers: int
    level: LogLevel = LogLevel.DEBUG


class PoolFailure(Entry, kw_only=True):
    workers: int
    level: LogLevel = LogLevel.ERROR
