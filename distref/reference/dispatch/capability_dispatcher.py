import inspect
from typing import Any, Callable

from distref.logging import Logger
from distref.logging.distref_logging_models import (
    ReleaseDebug,
    ReleaseFailure,
)
from distref.reference.errors import (
    ProbeInvocationError,
    ReleaseFailedError,
)
from distref.reference.models import Closeable, ShutdownCapability
from distref.reference.process_context import current_worker_id


def accepts_no_arguments(method: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(method)

    except (TypeError, ValueError):
        # Some builtins expose no signature. Their release methods
        # (socket.close, file.close) take no arguments.
        return True

    return all(
        parameter.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ) or parameter.default is not inspect.Parameter.empty
        for parameter in signature.parameters.values()
    )


class CapabilityDispatcher:
    """
    Picks the release operation for a value of unknown type and runs it.

    Values declaring the ``Closeable`` contract are closed directly.
    Otherwise the first public, zero-argument method named ``close``,
    ``disconnect`` or ``stop`` (in that order) is invoked. Values exposing
    none of these are left alone. At most one release operation ever runs
    per value.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        if logger is None:
            logger = Logger()

        self._logger = logger

    def classify(self, value: Any) -> ShutdownCapability:
        capability, _ = self._select(value)
        return capability

    def probe(
        self,
        value: Any,
        method_name: str,
    ) -> Callable[[], Any] | None:
        if method_name.startswith("_"):
            return None

        try:
            attribute = inspect.getattr_static(value, method_name)

        except AttributeError:
            return None

        if inspect.isdatadescriptor(attribute):
            return None

        if not callable(attribute) and not isinstance(
            attribute,
            (staticmethod, classmethod),
        ):
            return None

        try:
            method = getattr(value, method_name)

        except Exception as err:
            raise ProbeInvocationError.from_error(
                value,
                method_name,
                err,
            ) from err

        if not callable(method) or not accepts_no_arguments(method):
            return None

        return method

    def _select(
        self,
        value: Any,
    ) -> tuple[ShutdownCapability, Callable[[], Any] | None]:
        if value is None:
            return ShutdownCapability.NONE, None

        if isinstance(value, Closeable):
            try:
                return ShutdownCapability.NATIVE_CLOSEABLE, value.close

            except Exception as err:
                raise ProbeInvocationError.from_error(
                    value,
                    "close",
                    err,
                ) from err

        for capability in ShutdownCapability.probe_order():
            method = self.probe(value, capability.method_name)
            if method is not None:
                return capability, method

        return ShutdownCapability.NONE, None

    async def release(self, value: Any) -> ShutdownCapability:
        worker_id = current_worker_id()
        value_type = type(value).__qualname__

        async with self._logger.context(
            name="capability_dispatcher",
        ) as ctx:
            capability, method = self._select(value)

            if method is None:
                await ctx.log(
                    ReleaseDebug(
                        message=f"No release capability found for {value_type}, skipping",
                        value_type=value_type,
                        capability=capability.value,
                        worker_id=worker_id,
                    )
                )

                return capability

            await ctx.log(
                ReleaseDebug(
                    message=f"Releasing {value_type} via {capability.method_name}()",
                    value_type=value_type,
                    capability=capability.value,
                    worker_id=worker_id,
                )
            )

            try:
                result = method()

                if inspect.isawaitable(result):
                    await result

            except Exception as err:
                await ctx.log(
                    ReleaseFailure(
                        message=f"Release of {value_type} via {capability.method_name}() failed - {err!r}",
                        value_type=value_type,
                        capability=capability.value,
                        worker_id=worker_id,
                    )
                )

                raise ReleaseFailedError.from_error(
                    value,
                    capability.method_name,
                    err,
                ) from err

            return capability
