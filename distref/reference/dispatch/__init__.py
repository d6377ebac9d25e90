from .capability_dispatcher import (
    CapabilityDispatcher as CapabilityDispatcher,
    accepts_no_arguments as accepts_no_arguments,
)
