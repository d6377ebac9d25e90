from .closeable import Closeable as Closeable
from .shutdown_capability import ShutdownCapability as ShutdownCapability
