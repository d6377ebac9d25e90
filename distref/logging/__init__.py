from .config import (
    LoggingConfig as LoggingConfig,
    LogOutput as LogOutput,
)
from .models import (
    Entry as Entry,
    Log as Log,
    LogLevel as LogLevel,
    LogLevelName as LogLevelName,
)
from .streams import (
    Logger as Logger,
    LoggerContext as LoggerContext,
    LoggerStream as LoggerStream,
)
