import math
import random

import numpy as np

MAX_INT64 = 2**64 - 1

class RandomNumberGenerator(random.Random):
    """
    A `random.Random` that also carries a numpy generator seeded from it,
    so that a single seed drives both scalar draws and buffer allocation.
    """
    def __init__(self, seed=None):
        super().__init__(seed)
        self.np = np.random.Generator(np.random.PCG64(self.randint(0, MAX_INT64)))

    def fork(self, n : int):
        return [self.__class__(self.randint(0, MAX_INT64)) for _ in range(n)]

    def new_seed(self):
        return self.randint(0, MAX_INT64)

    def standard_exponential(self) -> float:
        # 1 - random() is in (0, 1], so the log is finite
        return -math.log(1.0 - self.random())

    def standard_normal(self) -> float:
        return self.gauss(0.0, 1.0)

    def open_uniform(self) -> float:
        """Uniform on the open interval (0, 1)."""
        u = self.random()
        while u == 0.0:
            u = self.random()
        return u

default_rng = RandomNumberGenerator(None)
