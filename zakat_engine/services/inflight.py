"""In-flight de-duplication of identical price requests.

Concurrent callers asking for the same signature share one computation: the
first caller runs it, the rest wait on the same Future and get its result
(or its exception).
"""
import logging
import threading
from concurrent.futures import Future
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class InflightRegistry:
    """Lock-protected map of request signature -> Future."""

    def __init__(self):
        self._futures: dict[str, Future] = {}
        self._lock = threading.Lock()

    def run(self, signature: str, compute: Callable[[], T]) -> T:
        with self._lock:
            future = self._futures.get(signature)
            owner = future is None
            if owner:
                future = Future()
                self._futures[signature] = future

        if not owner:
            logger.debug(f"Joining in-flight request {signature}")
            return future.result()

        try:
            future.set_result(compute())
        except BaseException as e:
            future.set_exception(e)
        finally:
            with self._lock:
                self._futures.pop(signature, None)
        return future.result()

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._futures)
