from .dispatch import CapabilityDispatcher as CapabilityDispatcher
from .distributed_reference import (
    DEFAULT_WORKER_COUNT as DEFAULT_WORKER_COUNT,
    DistributedReference as DistributedReference,
)
from .errors import (
    ProbeInvocationError as ProbeInvocationError,
    ReleaseFailedError as ReleaseFailedError,
    TeardownError as TeardownError,
)
from .models import (
    Closeable as Closeable,
    ShutdownCapability as ShutdownCapability,
)
from .process_context import (
    CONTROLLER_ID as CONTROLLER_ID,
    ProcessContext as ProcessContext,
    bind_worker as bind_worker,
    current_worker_id as current_worker_id,
    process_context as process_context,
)
from .reference_slot import ReferenceSlot as ReferenceSlot
