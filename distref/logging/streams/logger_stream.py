import asyncio
import datetime
import io
import os
import pathlib
import sys
import threading
from collections import defaultdict
from typing import (
    Any,
    Callable,
    Dict,
    TypeVar,
)

import msgspec

from distref.logging.config.logging_config import LoggingConfig
from distref.logging.config.stream_type import StreamType
from distref.logging.models import Entry, Log, LogLevel

T = TypeVar('T', bound=Entry)

DEFAULT_TEMPLATE = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"


class LoggerStream:
    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        filename: str | None = None,
        directory: str | None = None,
        models: dict[
            str,
            tuple[
                type[T],
                dict[str, Any],
            ]
        ] | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._default_template = template
        self._default_logfile = filename
        self._default_log_directory = directory

        self._init_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._files: Dict[str, io.TextIOBase] = {}
        self._file_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._cwd: str | None = None
        self._default_logfile_path: str | None = None

        self._config = LoggingConfig()
        self._initialized: bool = False
        self._closed = False

        self._models: Dict[str, tuple[type[Entry], dict[str, Any]]] = {}

        if models is None:
            models = {}

        for model_name, config in models.items():
            model, defaults = config
            self._models[model_name] = (model, defaults)

        self._models.setdefault(
            'default',
            (
                Entry,
                {
                    'level': LogLevel.INFO
                }
            )
        )

    def update_models(
        self,
        models: dict[
            str,
            tuple[
                type[T],
                dict[str, Any],
            ]
        ],
    ):
        for model_name, config in models.items():
            model, defaults = config
            self._models[model_name] = (model, defaults)

    async def initialize(self):
        async with self._init_lock:
            if self._initialized:
                return

            if self._loop is None:
                self._loop = asyncio.get_event_loop()

            if self._cwd is None:
                self._cwd = await self._loop.run_in_executor(
                    None,
                    os.getcwd,
                )

            self._closed = False
            self._initialized = True

    async def open_file(
        self,
        filename: str,
        directory: str | None = None,
        is_default: bool = False,
    ):
        if self._initialized is False:
            await self.initialize()

        logfile_path = self._to_logfile_path(filename, directory=directory)

        async with self._file_locks[logfile_path]:
            await self._loop.run_in_executor(
                None,
                self._open_file,
                logfile_path,
            )

        if is_default:
            self._default_logfile_path = logfile_path

        return logfile_path

    def _open_file(
        self,
        logfile_path: str,
    ):
        existing = self._files.get(logfile_path)
        if existing and existing.closed is False:
            return

        resolved_path = pathlib.Path(logfile_path).absolute().resolve()
        resolved_path.parent.mkdir(parents=True, exist_ok=True)

        self._files[logfile_path] = open(resolved_path, "a")

    async def close(self):
        if self._loop is None:
            self._closed = True
            return

        await asyncio.gather(
            *[self._close_file(logfile_path) for logfile_path in list(self._files)]
        )

        self._initialized = False
        self._closed = True

    def abort(self):
        for logfile in self._files.values():
            if logfile.closed is False:
                try:
                    logfile.close()

                except OSError:
                    pass

        self._initialized = False
        self._closed = True

    async def _close_file(self, logfile_path: str):
        async with self._file_locks[logfile_path]:
            await self._loop.run_in_executor(
                None,
                self._close_file_at_path,
                logfile_path,
            )

    def _close_file_at_path(self, logfile_path: str):
        if (
            logfile := self._files.get(logfile_path)
        ) and logfile.closed is False:
            logfile.close()

    def _to_logfile_path(
        self,
        filename: str,
        directory: str | None = None,
    ):
        filename_path = pathlib.Path(filename)

        if filename_path.suffix != ".json":
            raise ValueError(
                f"Err. - log file {filename} must be a JSON file."
            )

        if self._config.directory:
            directory = self._config.directory

        elif directory is None:
            directory = self._cwd

        return os.path.join(directory, filename_path)

    async def log_prepared(
        self,
        message: str,
        name: str = 'default',
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        frame = sys._getframe(1)
        code = frame.f_code

        await self.log(
            Log(
                entry=self._to_entry(message, name),
                filename=code.co_filename,
                function_name=code.co_name,
                line_number=frame.f_lineno,
            ),
            template=template,
            path=path,
            filter=filter,
        )

    async def log(
        self,
        entry: T | Log[T],
        template: str | None = None,
        path: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        filename: str | None = None
        directory: str | None = None

        if path:
            logfile_path = pathlib.Path(path)
            is_logfile = len(logfile_path.suffix) > 0

            filename = logfile_path.name if is_logfile else None
            directory = str(logfile_path.parent.absolute()) if is_logfile else str(logfile_path.absolute())

        if template is None:
            template = self._default_template

        if filename is None:
            filename = self._default_logfile

        if filename is None and self._config.directory:
            # A configured logs directory sends every stream to its own file.
            filename = f"{self._name}.json"

        if directory is None:
            directory = self._default_log_directory

        if filename:
            await self._log_to_file(
                entry,
                filename=filename,
                directory=directory,
                filter=filter,
            )

        else:
            await self._log(
                entry,
                template=template,
                filter=filter,
            )

    def _to_entry(
        self,
        message: str,
        name: str,
    ):
        model, defaults = self._models.get(
            name,
            self._models.get('default')
        )

        return model(
            message=message,
            **defaults
        )

    def _should_log(
        self,
        entry: Entry,
        filter: Callable[[T], bool] | None = None,
    ):
        if self._closed:
            return False

        if self._config.enabled(self._name, entry.level) is False:
            return False

        return filter is None or filter(entry)

    async def _log(
        self,
        entry_or_log: T | Log[T],
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        entry = entry_or_log.entry if isinstance(entry_or_log, Log) else entry_or_log

        if self._should_log(entry, filter=filter) is False:
            return

        if self._initialized is False:
            await self.initialize()

        if template is None:
            template = DEFAULT_TEMPLATE

        if isinstance(entry_or_log, Log):
            log_file = entry_or_log.filename
            line_number = entry_or_log.line_number
            function_name = entry_or_log.function_name

        else:
            log_file, line_number, function_name = self._find_caller()

        line = entry.to_template(
            template,
            context={
                "filename": log_file,
                "function_name": function_name,
                "line_number": line_number,
                "thread_id": threading.get_native_id(),
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            },
        )

        stream = sys.stdout if self._config.output == StreamType.STDOUT else sys.stderr

        try:
            stream.write(line + "\n")
            stream.flush()

        except (OSError, ValueError):
            # Stream closed underneath us, usually at interpreter shutdown.
            pass

    async def _log_to_file(
        self,
        entry_or_log: T | Log[T],
        filename: str,
        directory: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        entry = entry_or_log.entry if isinstance(entry_or_log, Log) else entry_or_log

        if self._should_log(entry, filter=filter) is False:
            return

        if self._initialized is False:
            await self.initialize()

        if isinstance(entry_or_log, Log):
            log = entry_or_log

        else:
            log_file, line_number, function_name = self._find_caller()
            log = Log(
                entry=entry,
                filename=log_file,
                function_name=function_name,
                line_number=line_number,
            )

        logfile_path = self._to_logfile_path(filename, directory=directory)
        if self._files.get(logfile_path) is None or self._files[logfile_path].closed:
            await self.open_file(filename, directory=directory)

        async with self._file_locks[logfile_path]:
            await self._loop.run_in_executor(
                None,
                self._write_to_file,
                log,
                logfile_path,
            )

    def _write_to_file(
        self,
        log: Log,
        logfile_path: str,
    ):
        if (
            logfile := self._files.get(logfile_path)
        ) and (
            logfile.closed is False
        ):
            logfile.write(msgspec.json.encode(log).decode() + "\n")
            logfile.flush()

    def _find_caller(self):
        """
        Find the stack frame of the caller so that we can note the source
        file name, line number and function name.
        """
        frame = sys._getframe(3)
        code = frame.f_code

        return (
            code.co_filename,
            frame.f_lineno,
            code.co_name,
        )
