import abc
import io


class Closeable(abc.ABC):
    """
    Declares that a value is released by calling ``close()`` with no
    arguments. ``close()`` may be a coroutine function, in which case the
    dispatcher awaits it.

    Classes opt in either by subclassing or through ``Closeable.register``.
    Values that never declare the contract are still released if they
    expose a public ``close``, ``disconnect`` or ``stop`` method.
    """

    __slots__ = ()

    @abc.abstractmethod
    def close(self):
        ...


Closeable.register(io.IOBase)
