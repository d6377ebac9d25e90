"""
Errors raised while tearing down a distributed reference.

A value with no release capability is not an error and never raises. Every
error here is fatal for the test that owns the reference. Each error keeps
the description of its cause in its message, since the chained
``__cause__`` does not survive the trip from a worker process back to the
controller.
"""


class TeardownError(Exception):
    def __init__(
        self,
        message: str,
        value_type: str | None = None,
        method_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.value_type = value_type
        self.method_name = method_name

    def __reduce__(self):
        return (
            type(self),
            (
                self.message,
                self.value_type,
                self.method_name,
            ),
        )


class ReleaseFailedError(TeardownError):
    """
    Raised when the release operation chosen for a value raised.
    """

    @classmethod
    def from_error(
        cls,
        value: object,
        method_name: str,
        error: BaseException,
    ):
        value_type = type(value).__qualname__
        return cls(
            f"Err. - {value_type}.{method_name}() failed during teardown - {error!r}",
            value_type=value_type,
            method_name=method_name,
        )


class ProbeInvocationError(TeardownError):
    """
    Raised when a release operation was found on a value but could not be
    resolved into something invokable, for example when attribute access
    itself raised.
    """

    @classmethod
    def from_error(
        cls,
        value: object,
        method_name: str,
        error: BaseException,
    ):
        value_type = type(value).__qualname__
        return cls(
            f"Err. - could not resolve {value_type}.{method_name} for teardown - {error!r}",
            value_type=value_type,
            method_name=method_name,
        )
