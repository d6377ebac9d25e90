from .env import Env as Env
from .invocation_result import InvocationResult as InvocationResult
from .worker_command import (
    WorkerCommand as WorkerCommand,
    WorkerCommandType as WorkerCommandType,
)
