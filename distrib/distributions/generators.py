"""
Variate generation.

Families with more than one sampling algorithm declare a generator regime
enum whose ``select`` classmethod maps the current parameters to exactly one
algorithm. Distributions store the selected regime alongside their other
derived coefficients and recompute it whenever a parameter changes.

Rejection loops are capped at ``MAX_REJECTION_ITERATIONS``. When the cap is
hit the generator returns ``nan``, which cannot be mistaken for a real draw.
"""

import enum
import logging
import math
import sys

from distrib.distributions.random import RandomNumberGenerator, default_rng
from distrib.tools import MAX_REJECTION_ITERATIONS

log = logging.getLogger(__name__)

GEOMETRIC_TABLE_SIZE = 16
LOG_FLOAT_MAX = math.log(sys.float_info.max)
# largest integer number of trials sampled as a sum of geometric variates
NEGATIVE_BINOMIAL_MAX_SUMMED_NUMBER = 10


def rejection_exhausted(algorithm: str) -> float:
    log.warning(
        f"{algorithm}: no candidate accepted after {MAX_REJECTION_ITERATIONS} "
        "iterations, returning nan"
    )
    return float('nan')


# Gamma

class GammaGenerator(enum.Enum):
    # Erlang shapes 1, 2 and 3: sum of exponentials
    INTEGER_SHAPE = "integer_shape"
    # exponential plus half a squared normal
    ONE_AND_A_HALF_SHAPE = "one_and_a_half_shape"
    # shape < 0.34: Best (1983), or Ahrens-Dieter GS without precomputed constants
    SMALL_SHAPE = "small_shape"
    # 1 < shape < 1.2
    FISHMAN = "fishman"
    # everything else
    MARSAGLIA_TSANG = "marsaglia_tsang"

    @classmethod
    def select(cls, shape: float) -> "GammaGenerator":
        if shape in (1.0, 2.0, 3.0):
            return cls.INTEGER_SHAPE
        if shape == 1.5:
            return cls.ONE_AND_A_HALF_SHAPE
        if shape < 0.34:
            return cls.SMALL_SHAPE
        if 1.0 < shape < 1.2:
            return cls.FISHMAN
        return cls.MARSAGLIA_TSANG


def best_constants(shape: float):
    """The ``(t, b)`` pair used by Best's algorithm for ``shape < 1``."""
    t = 0.07 + 0.75 * math.sqrt(1.0 - shape)
    b = 1.0 + math.exp(-t) * shape / t
    return t, b


def gamma_exponential_sum(shape: int, rng: RandomNumberGenerator = default_rng) -> float:
    product = 1.0
    for _ in range(shape):
        product *= rng.open_uniform()
    return -math.log(product)


def gamma_one_and_a_half(rng: RandomNumberGenerator = default_rng) -> float:
    n = rng.standard_normal()
    return rng.standard_exponential() + 0.5 * n * n


def gamma_best(shape: float, t: float, b: float, rng: RandomNumberGenerator = default_rng) -> float:
    for _ in range(MAX_REJECTION_ITERATIONS):
        v = b * rng.random()
        u = rng.random()
        if v <= 1.0:
            x = t * v**(1.0 / shape)
            if u <= (2.0 - x) / (2.0 + x) or u <= math.exp(-x):
                return x
        else:
            x = -math.log(t * (b - v) / shape)
            y = x / t
            if u * (shape + y * (1.0 - shape)) <= 1.0 or u <= y**(shape - 1.0):
                return x
    return rejection_exhausted("Best")


def gamma_ahrens_dieter(shape: float, rng: RandomNumberGenerator = default_rng) -> float:
    b = (math.e + shape) / math.e
    for _ in range(MAX_REJECTION_ITERATIONS):
        p = b * rng.random()
        u = rng.random()
        if p <= 1.0:
            x = p**(1.0 / shape)
            if u <= math.exp(-x):
                return x
        else:
            x = -math.log((b - p) / shape)
            if u <= x**(shape - 1.0):
                return x
    return rejection_exhausted("Ahrens-Dieter")


def gamma_fishman(shape: float, rng: RandomNumberGenerator = default_rng) -> float:
    for _ in range(MAX_REJECTION_ITERATIONS):
        e1 = rng.standard_exponential()
        e2 = rng.standard_exponential()
        if e1 > 0 and e2 >= (shape - 1.0) * (e1 - math.log(e1) - 1.0):
            return shape * e1
    return rejection_exhausted("Fishman")


def gamma_marsaglia_tsang(shape: float, rng: RandomNumberGenerator = default_rng) -> float:
    d = shape - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)
    # the polynomial squeeze only bounds the target for shape >= 1
    use_squeeze = shape >= 1.0
    for _ in range(MAX_REJECTION_ITERATIONS):
        x = rng.standard_normal()
        v = 1.0 + c * x
        if v <= 0.0:
            continue
        v = v * v * v
        u = rng.open_uniform()
        x2 = x * x
        if use_squeeze and u < 1.0 - 0.0331 * x2 * x2:
            return d * v
        if math.log(u) < 0.5 * x2 + d * (1.0 - v + math.log(v)):
            return d * v
    return rejection_exhausted("Marsaglia-Tsang")


def standard_gamma(shape: float, rng: RandomNumberGenerator = default_rng) -> float:
    """Gamma variate with unit rate, for callers without cached constants."""
    generator = GammaGenerator.select(shape)
    if generator == GammaGenerator.INTEGER_SHAPE:
        return gamma_exponential_sum(int(shape), rng)
    if generator == GammaGenerator.ONE_AND_A_HALF_SHAPE:
        return gamma_one_and_a_half(rng)
    if generator == GammaGenerator.SMALL_SHAPE:
        return gamma_ahrens_dieter(shape, rng)
    if generator == GammaGenerator.FISHMAN:
        return gamma_fishman(shape, rng)
    return gamma_marsaglia_tsang(shape, rng)


# Geometric and negative binomial

class GeometricGenerator(enum.Enum):
    EXPONENTIAL = "exponential"
    TABLE = "table"

    @classmethod
    def select(cls, p: float) -> "GeometricGenerator":
        return cls.EXPONENTIAL if p < 0.08 else cls.TABLE


def geometric_table(p: float) -> tuple:
    """``P(X <= k)`` for ``k < GEOMETRIC_TABLE_SIZE``."""
    q = 1.0 - p
    return tuple(-math.expm1((k + 1) * math.log1p(-p)) if q > 0 else 1.0
                 for k in range(GEOMETRIC_TABLE_SIZE))


def geometric_by_table(table: tuple, rng: RandomNumberGenerator = default_rng) -> int:
    offset = 0
    # past the table the conditional law restarts, as the geometric is memoryless
    for _ in range(MAX_REJECTION_ITERATIONS):
        u = rng.random()
        for k, cumulative in enumerate(table):
            if u <= cumulative:
                return offset + k
        offset += len(table)
    return rejection_exhausted("geometric table")


def geometric_through_exponential(log_q: float, rng: RandomNumberGenerator = default_rng) -> int:
    """``log_q`` is ``log(1 - p)``."""
    return math.floor(rng.standard_exponential() / -log_q)


def geometric_variate(p: float, rng: RandomNumberGenerator = default_rng) -> int:
    """Number of failures before the first success, without cached constants."""
    if p >= 1.0:
        return 0
    if GeometricGenerator.select(p) == GeometricGenerator.EXPONENTIAL:
        return geometric_through_exponential(math.log1p(-p), rng)
    u = rng.random()
    x = 0
    term = cumulative = p
    q = 1.0 - p
    while u > cumulative:
        term *= q
        cumulative += term
        x += 1
        if term == 0.0:
            break
    return x


def geometric_by_log_probability(log_p: float, rng: RandomNumberGenerator = default_rng) -> float:
    """
    Geometric variate for the success probability ``exp(log_p)``, which may
    underflow. Counts beyond the float range are returned as ``inf``.
    """
    p = math.exp(log_p)
    if GeometricGenerator.select(p) == GeometricGenerator.TABLE:
        return geometric_variate(p, rng)
    e = rng.standard_exponential()
    if p >= sys.float_info.min:
        x = e / -math.log1p(-p)
    elif e == 0.0:
        return 0
    else:
        # -log(1 - p) equals p to working precision
        log_x = math.log(e) - log_p
        x = math.exp(log_x) if log_x < LOG_FLOAT_MAX else float('inf')
    return math.floor(x) if math.isfinite(x) else x


class NegativeBinomialGenerator(enum.Enum):
    # integer number of trials, sum of table-driven geometric variates
    TABLE = "table"
    # integer number of trials, sum of exponential-based geometric variates
    EXPONENTIAL = "exponential"
    # Poisson with a gamma distributed mean
    GAMMA_POISSON = "gamma_poisson"

    @classmethod
    def select(cls, number: float, p: float) -> "NegativeBinomialGenerator":
        if number == math.floor(number) and number <= NEGATIVE_BINOMIAL_MAX_SUMMED_NUMBER:
            if GeometricGenerator.select(p) == GeometricGenerator.EXPONENTIAL:
                return cls.EXPONENTIAL
            return cls.TABLE
        return cls.GAMMA_POISSON


# Poisson

class PoissonGenerator(enum.Enum):
    # product of uniforms
    INVERSION = "inversion"
    # Hormann's PTRS
    TRANSFORMED_REJECTION = "transformed_rejection"

    @classmethod
    def select(cls, rate: float) -> "PoissonGenerator":
        return cls.INVERSION if rate < 10 else cls.TRANSFORMED_REJECTION


def poisson_inversion(rate: float, rng: RandomNumberGenerator = default_rng) -> int:
    limit = math.exp(-rate)
    k = 0
    product = rng.random()
    while product > limit:
        k += 1
        product *= rng.random()
    return k


def poisson_transformed_rejection(rate: float, rng: RandomNumberGenerator = default_rng) -> int:
    slam = math.sqrt(rate)
    log_rate = math.log(rate)
    b = 0.931 + 2.53 * slam
    a = -0.059 + 0.02483 * b
    inv_alpha = 1.1239 + 1.1328 / (b - 3.4)
    vr = 0.9277 - 3.6224 / (b - 2)
    for _ in range(MAX_REJECTION_ITERATIONS):
        u = rng.random() - 0.5
        v = rng.random()
        us = 0.5 - abs(u)
        if us == 0.0:
            continue
        k = math.floor((2 * a / us + b) * u + rate + 0.43)
        if us >= 0.07 and v <= vr:
            return k
        if k < 0 or (us < 0.013 and v > us):
            continue
        if v > 0 and (
            math.log(v) + math.log(inv_alpha) - math.log(a / (us * us) + b)
            <= -rate + k * log_rate - math.lgamma(k + 1)
        ):
            return k
    return rejection_exhausted("PTRS")


def poisson_variate(rate: float, rng: RandomNumberGenerator = default_rng) -> int:
    if rate <= 0:
        return 0
    if PoissonGenerator.select(rate) == PoissonGenerator.INVERSION:
        return poisson_inversion(rate, rng)
    return poisson_transformed_rejection(rate, rng)


# Beta

class BetaGenerator(enum.Enum):
    # both shapes below one
    JOHNK = "johnk"
    # equal shapes in [1, 16]
    SYMMETRIC_REJECTION = "symmetric_rejection"
    # X / (X + Y) for independent gamma variates
    GAMMA_RATIO = "gamma_ratio"

    @classmethod
    def select(cls, alpha: float, beta: float) -> "BetaGenerator":
        if alpha < 1.0 and beta < 1.0:
            return cls.JOHNK
        if alpha == beta and 1.0 <= alpha <= 16.0:
            return cls.SYMMETRIC_REJECTION
        return cls.GAMMA_RATIO


def beta_johnk(alpha: float, beta: float, rng: RandomNumberGenerator = default_rng) -> float:
    for _ in range(MAX_REJECTION_ITERATIONS):
        # work in logs so that tiny shapes do not underflow both powers to zero
        log_x = math.log(rng.open_uniform()) / alpha
        log_y = math.log(rng.open_uniform()) / beta
        log_sum = max(log_x, log_y) + math.log1p(math.exp(-abs(log_x - log_y)))
        if log_sum <= 0.0:
            return math.exp(log_x - log_sum)
    return rejection_exhausted("Johnk")


def beta_symmetric_rejection(alpha: float, rng: RandomNumberGenerator = default_rng) -> float:
    for _ in range(MAX_REJECTION_ITERATIONS):
        u = rng.random()
        if rng.random() <= (4.0 * u * (1.0 - u))**(alpha - 1.0):
            return u
    return rejection_exhausted("symmetric beta rejection")


def beta_gamma_ratio(alpha: float, beta: float, rng: RandomNumberGenerator = default_rng) -> float:
    x = standard_gamma(alpha, rng)
    y = standard_gamma(beta, rng)
    if x + y == 0.0:
        return 0.5 if alpha == beta else float(alpha > beta)
    return x / (x + y)


# von Mises

def von_mises_best_fisher(location: float, concentration: float, rng: RandomNumberGenerator = default_rng) -> float:
    """
    Best & Fisher (1979) wrapped-Cauchy envelope. The result lies in
    ``[location - pi, location + pi]``.
    """
    if concentration <= 1e-6:
        return location + math.pi * (2.0 * rng.random() - 1.0)
    s = 0.5 / concentration
    r = s + math.sqrt(1.0 + s * s)
    for _ in range(MAX_REJECTION_ITERATIONS):
        z = math.cos(math.pi * rng.random())
        d = z / (r + z)
        u = rng.random()
        if u < 1.0 - d * d or u <= (1.0 - d) * math.exp(d):
            break
    else:
        return rejection_exhausted("Best-Fisher")
    q = 1.0 / r
    f = (q + z) / (1.0 + q * z)
    angle = math.acos(max(-1.0, min(1.0, f)))
    return location + angle if rng.random() > 0.5 else location - angle
