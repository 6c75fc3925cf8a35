from abc import ABC, abstractmethod
from typing import Callable
import importlib
from ..config import ConfigurationError


class MissingWorkerError(ConfigurationError):
    pass


class Worker(ABC):
    """Processes one message body. Any exception it raises fails the run."""

    @abstractmethod
    def work(self, body: str) -> None:
        pass


class CallableWorker(Worker):
    """Adapts a plain function taking the message body."""

    def __init__(self, func: Callable[[str], None]):
        self.func = func

    def work(self, body: str) -> None:
        self.func(body)

    def __repr__(self):
        return f"CallableWorker({getattr(self.func, '__qualname__', self.func)!r})"


def load_worker(reference: str) -> Worker:
    """
    Resolves a worker from a "package.module:attr" reference.

    A Worker subclass is instantiated without arguments, a Worker instance is
    used as is, and any other callable is wrapped in a CallableWorker.

    Args:
        reference (str): Import path of the worker.

    Returns:
        Worker: The resolved worker.

    Raises:
        MissingWorkerError: If the reference is empty, cannot be imported or is not callable.
    """
    if not reference or ":" not in reference:
        raise MissingWorkerError(f"WORKER must look like 'package.module:attr' (got {reference!r})")

    module_name, _, attr = reference.partition(":")
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise MissingWorkerError(f"Could not load worker {reference!r}: {e}") from e

    if isinstance(target, type) and issubclass(target, Worker):
        return target()
    if isinstance(target, Worker):
        return target
    if callable(target):
        return CallableWorker(target)
    raise MissingWorkerError(f"Worker {reference!r} is neither a Worker nor callable")
