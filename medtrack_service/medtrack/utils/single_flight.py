import time
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Collapses repeated recomputes of the same key.

    - a call made while a computation is running returns the last result
    - a call with an equal key inside `cooldown_s` of the last finish reuses it
    """

    def __init__(self, cooldown_s: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self.cooldown_s = cooldown_s
        self._clock = clock
        self._in_flight = False
        self._key: Any = None
        self._result: Optional[T] = None
        self._finished_at: Optional[float] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _fresh(self, key: Any) -> bool:
        if self._finished_at is None or not _same_key(key, self._key):
            return False
        return (self._clock() - self._finished_at) < self.cooldown_s

    def run(self, key: Any, fn: Callable[[], T]) -> Optional[T]:
        if self._in_flight or self._fresh(key):
            return self._result

        self._in_flight = True
        try:
            result = fn()
        finally:
            self._in_flight = False
        self._key = key
        self._result = result
        self._finished_at = self._clock()
        return result

    def reset(self) -> None:
        self._key = None
        self._result = None
        self._finished_at = None


def _same_key(a: Any, b: Any) -> bool:
    # tuple keys compare element-wise by identity first (resident lists are replaced, never mutated)
    if isinstance(a, tuple) and isinstance(b, tuple) and len(a) == len(b):
        return all(x is y or x == y for x, y in zip(a, b))
    return a is b or a == b
