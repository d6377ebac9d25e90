from .reference import (
    CONTROLLER_ID as CONTROLLER_ID,
    CapabilityDispatcher as CapabilityDispatcher,
    Closeable as Closeable,
    DistributedReference as DistributedReference,
    ProbeInvocationError as ProbeInvocationError,
    ReferenceSlot as ReferenceSlot,
    ReleaseFailedError as ReleaseFailedError,
    ShutdownCapability as ShutdownCapability,
    TeardownError as TeardownError,
    current_worker_id as current_worker_id,
)
from .workers import (
    BroadcastError as BroadcastError,
    Env as Env,
    LocalInvoker as LocalInvoker,
    WorkerInvocationError as WorkerInvocationError,
    WorkerInvoker as WorkerInvoker,
    WorkerPool as WorkerPool,
)
