from .controller_worker import ControllerWorker as ControllerWorker
from .env import (
    TimeParser as TimeParser,
    load_env as load_env,
)
from .errors import (
    BroadcastError as BroadcastError,
    RemoteInvocationError as RemoteInvocationError,
    WorkerError as WorkerError,
    WorkerExitedError as WorkerExitedError,
    WorkerInvocationError as WorkerInvocationError,
    WorkerStartError as WorkerStartError,
    WorkerTimeoutError as WorkerTimeoutError,
)
from .invoker import (
    Routine as Routine,
    WorkerInvoker as WorkerInvoker,
)
from .local_invoker import LocalInvoker as LocalInvoker
from .models import Env as Env
from .worker import Worker as Worker
from .worker_pool import WorkerPool as WorkerPool
