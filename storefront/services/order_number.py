"""Human-readable order numbers: ORD<millisecond timestamp><4-digit random>."""
import random
import time
from typing import Callable, Optional


class OrderNumberGenerator:
    """
    Uniqueness is probabilistic. The orders.order_no unique constraint catches
    the residual collision and OrderTransactionManager regenerates once.
    """

    PREFIX = "ORD"

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self._clock = clock
        self._rng = rng or random.SystemRandom()

    def next(self) -> str:
        millis = int(self._clock() * 1000)
        suffix = self._rng.randrange(10000)
        return f"{self.PREFIX}{millis}{suffix:04d}"
