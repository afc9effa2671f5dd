import math
from typing import Sequence

ISCLOSE_RTOL = 1e-5
ISCLOSE_ATOL = 1e-8

# Floor used when clamping shape, scale and rate parameters.
MIN_POSITIVE = 1e-21

# Root finding. Tolerances are relative to the root, with an absolute floor
# small enough for quantiles deep in a density's tail.
ROOT_XTOL = 1e-300
ROOT_RTOL = 1e-12
NEWTON_RTOL = 1e-10
MAX_ROOT_ITERATIONS = 1000
MAX_NEWTON_HALVINGS = 60

# Minimization
MIN_TOL = 3e-8
MAX_MIN_ITERATIONS = 1000

# Integration
INTEGRAL_EPSABS = 1e-10
INTEGRAL_EPSREL = 1e-8
INTEGRAL_LIMIT = 200

# Sampling
MAX_REJECTION_ITERATIONS = 10**9
QUANTILE_SAMPLE_SIZE = 100

def isclose(a, b, *, rtol=ISCLOSE_RTOL, atol=ISCLOSE_ATOL):
    return math.isclose(a, b, rel_tol=rtol, abs_tol=atol)

def is_integer(x) -> bool:
    return math.isfinite(x) and x == math.floor(x)

def sample_mean(sample: Sequence[float]) -> float:
    return math.fsum(sample) / len(sample)

def sample_variance(sample: Sequence[float], mean: float = None) -> float:
    """Biased (maximum-likelihood) sample variance."""
    if mean is None:
        mean = sample_mean(sample)
    return math.fsum((x - mean)**2 for x in sample) / len(sample)

def raw_moment(sample: Sequence[float], k: int) -> float:
    return math.fsum(x**k for x in sample) / len(sample)

def log_mean(sample: Sequence[float]) -> float:
    return math.fsum(math.log(x) for x in sample) / len(sample)
