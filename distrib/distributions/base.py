import abc
import logging
import math
from typing import Sequence, Generic, TypeVar, Callable, MutableSequence, Tuple

import numpy as np

from distrib.distributions.random import RandomNumberGenerator, default_rng
from distrib.distributions.support import Support, SupportType, ClosedInterval, IntegerInterval
from distrib.numerics.integration import expectation
from distrib.numerics.roots import find_root, find_root_newton, find_min
from distrib.tools import isclose, ISCLOSE_RTOL, ISCLOSE_ATOL, QUANTILE_SAMPLE_SIZE

log = logging.getLogger(__name__)

Element = TypeVar("Element")

# Inward nudge applied to an integration bound where the density is not finite
BOUNDARY_EPSILON = 1e-10
# Cap on geometric bracket expansion
MAX_BRACKET_EXPANSIONS = 200
# Mass below which discrete summation is stopped
SUMMATION_TAIL = 1e-15
MAX_SUMMATION_TERMS = 10**7


def _hazard_ratio(density, survival):
    # survival vanishes at a finite maximum or where it underflows in the tail
    if survival > 0:
        return density / survival
    return float('nan') if density == 0 else float('inf')


class Parameter:
    """
    A distribution parameter. Reads come from the private attribute that
    ``set_parameters`` assigns; writes call ``set_parameters`` with the other
    parameters unchanged, so derived coefficients are always recomputed.
    """
    def __set_name__(self, owner, name):
        self.name = name
        self.private_name = "_" + name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return getattr(obj, self.private_name)

    def __set__(self, obj, value):
        if self.name not in obj.parameter_names:
            # e.g. the number of trials of a geometric distribution
            raise AttributeError(
                f"{type(obj).__name__}.{self.name} is fixed by the family and cannot be set"
            )
        values = {name: getattr(obj, name) for name in obj.parameter_names}
        values[self.name] = value
        obj.set_parameters(**values)


class Distribution(Generic[Element]):
    """
    A univariate distribution.

    Concrete families declare ``support_type`` and implement ``min_value``,
    ``max_value``, ``sample`` and ``log_probability``. Parameters are
    changed through ``set_parameters``, which recomputes every derived
    coefficient before assigning any of them.
    """
    support_type : SupportType
    # argument order of set_parameters
    parameter_names : Tuple[str, ...] = ()

    @property
    @abc.abstractmethod
    def min_value(self):
        pass

    @property
    @abc.abstractmethod
    def max_value(self):
        pass

    @property
    def support(self) -> Support:
        return ClosedInterval(self.min_value, self.max_value)

    @property
    def parameters(self) -> tuple:
        return tuple(getattr(self, name) for name in self.parameter_names)

    def prob(self, element : Element) -> float:
        return math.exp(self.log_probability(element))

    @abc.abstractmethod
    def sample(self, rng : RandomNumberGenerator = default_rng) -> Element:
        pass

    def fill(self, out : MutableSequence, rng : RandomNumberGenerator = default_rng) -> MutableSequence:
        """Fill a caller-owned buffer in place with independent variates."""
        for i in range(len(out)):
            out[i] = self.sample(rng)
        return out

    def sample_n(self, n : int, rng : RandomNumberGenerator = default_rng) -> np.ndarray:
        return self.fill(np.empty(n), rng)

    @abc.abstractmethod
    def log_probability(self, element : Element) -> float:
        pass

    def likelihood(self, sample : Sequence[Element]) -> float:
        return math.prod(self.prob(x) for x in sample)

    def log_likelihood(self, sample : Sequence[Element]) -> float:
        return math.fsum(self.log_probability(x) for x in sample)

    def expected_value(self, func: Callable[[Element], float] = lambda v : v) -> float:
        raise NotImplementedError

    def characteristic_function(self, t : float) -> complex:
        """``E[exp(i t X)]``, computed numerically unless a family has a closed form."""
        if t == 0:
            return complex(1.0)
        return complex(
            self.expected_value(lambda x: math.cos(t * x)),
            self.expected_value(lambda x: math.sin(t * x)),
        )

    def isclose(self, other: "Distribution", *, rtol: float=ISCLOSE_RTOL, atol: float=ISCLOSE_ATOL) -> bool:
        if type(self) is not type(other):
            return False
        return all(
            isclose(a, b, rtol=rtol, atol=atol)
            for a, b in zip(self.parameters, other.parameters)
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}{self.parameters}"

    def __bool__(self):
        raise ValueError("Cannot convert distribution to bool")


class ContinuousDistribution(Distribution[float]):
    @abc.abstractmethod
    def pdf(self, x : float) -> float:
        pass

    @abc.abstractmethod
    def cdf(self, x : float) -> float:
        pass

    def log_pdf(self, x : float) -> float:
        y = self.pdf(x)
        return math.log(y) if y > 0 else float('-inf')

    def survival(self, x : float) -> float:
        return 1.0 - self.cdf(x)

    def log_probability(self, element : float) -> float:
        return self.log_pdf(element)

    def prob(self, element : float) -> float:
        return self.pdf(element)

    def quantile(self, p : float) -> float:
        if not 0.0 <= p <= 1.0:
            return float('nan')
        if p == 0.0:
            return self.min_value
        if p == 1.0:
            return self.max_value
        return self._quantile(p)

    def quantile_1m(self, p : float) -> float:
        """The quantile of ``1 - p``, accurate for small ``p``."""
        if not 0.0 <= p <= 1.0:
            return float('nan')
        if p == 0.0:
            return self.max_value
        if p == 1.0:
            return self.min_value
        return self._quantile_1m(p)

    def _quantile(self, p):
        return self._invert(lambda x: self.cdf(x) - p, p, descending=False)

    def _quantile_1m(self, p):
        # survival is decreasing, so its negative has the same orientation as the cdf
        return self._invert(lambda x: p - self.survival(x), p, descending=True)

    def _invert(self, func, p, descending):
        lower, upper = self.min_value, self.max_value
        if self.support_type == SupportType.FINITE:
            return find_root(func, lower, upper)

        guess = self._quantile_guess(p, descending)
        if not lower < guess < upper:
            guess = self._interior_point(guess)
        root = find_root_newton(
            lambda x: (func(x), self.pdf(x)),
            guess,
            lower=lower,
            upper=upper,
        )
        if not math.isnan(root):
            return root
        log.debug(f"{self!r}: Newton quantile search failed for p={p}, bracketing from {guess}")
        return self._bracketed_root(func, guess)

    def _quantile_guess(self, p, descending):
        # order statistic of a small sample
        sample = np.sort(self.sample_n(QUANTILE_SAMPLE_SIZE))
        if descending:
            sample = sample[::-1]
        sample = sample[~np.isnan(sample)]
        if len(sample) == 0:
            return self._interior_point(0.0)
        index = min(int(p * len(sample)), len(sample) - 1)
        return float(sample[index])

    def _interior_point(self, x):
        lower, upper = self.min_value, self.max_value
        if lower < x < upper:
            return x
        if math.isfinite(lower) and math.isfinite(upper):
            return 0.5 * (lower + upper)
        if math.isfinite(lower):
            return lower + max(1.0, abs(lower))
        if math.isfinite(upper):
            return upper - max(1.0, abs(upper))
        return 0.0

    def _bracketed_root(self, func, guess):
        """Expand geometrically around ``guess`` until ``func`` changes sign."""
        lower, upper = self.min_value, self.max_value
        value = func(guess)
        if value == 0:
            return guess
        step = max(1.0, abs(guess))
        a = b = guess
        for _ in range(MAX_BRACKET_EXPANSIONS):
            if value > 0:
                # root lies to the left
                b = a
                a = max(guess - step, lower)
                if func(a) <= 0:
                    return find_root(func, a, b)
                if a == lower:
                    break
            else:
                a = b
                b = min(guess + step, upper)
                if func(b) >= 0:
                    return find_root(func, a, b)
                if b == upper:
                    break
            step *= 2
        log.debug(f"{self!r}: no bracket found around {guess}")
        return float('nan')

    @property
    def median(self) -> float:
        return self.quantile(0.5)

    @property
    def mode(self) -> float:
        guess = self.mean
        if not math.isfinite(guess):
            guess = self.median
        x, _ = find_min(lambda x: -self.pdf(x), guess)
        return x

    def hazard(self, x : float) -> float:
        if x < self.min_value:
            return 0.0
        if x > self.max_value:
            return float('nan')
        return _hazard_ratio(self.pdf(x), self.survival(x))

    def _left_limit(self, x):
        if not math.isfinite(self.pdf(x)):
            x = x + BOUNDARY_EPSILON if abs(x) < 1 else x + abs(x) * 1e-4
        return x

    def _right_limit(self, x):
        if not math.isfinite(self.pdf(x)):
            x = x - BOUNDARY_EPSILON if abs(x) < 1 else x - abs(x) * 1e-4
        return x

    def expected_value(
        self,
        func: Callable[[float], float] = lambda v : v,
        lower: float = float('-inf'),
        upper: float = float('inf'),
    ) -> float:
        """
        ``E[func(X)]`` restricted to ``[lower, upper]``, computed numerically
        over the intersection with the support.
        """
        lower = max(lower, self.min_value)
        upper = min(upper, self.max_value)
        if math.isfinite(lower):
            lower = self._left_limit(lower)
        if math.isfinite(upper):
            upper = self._right_limit(upper)
        def integrand(x):
            density = self.pdf(x)
            return 0.0 if density == 0 else func(x) * density
        return expectation(integrand, lower, upper)

    @property
    def mean(self) -> float:
        return self.expected_value()

    @property
    def variance(self) -> float:
        mean = self.mean
        return self.expected_value(lambda x: (x - mean)**2)

    @property
    def std(self) -> float:
        return math.sqrt(self.variance)

    @property
    def skewness(self) -> float:
        mean, std = self.mean, self.std
        return self.expected_value(lambda x: ((x - mean) / std)**3)

    @property
    def excess_kurtosis(self) -> float:
        mean, variance = self.mean, self.variance
        return self.expected_value(lambda x: (x - mean)**4) / variance**2 - 3


class DiscreteDistribution(Distribution[int]):
    @property
    def support(self) -> IntegerInterval:
        return IntegerInterval(self.min_value, self.max_value)

    @abc.abstractmethod
    def pmf(self, k : int) -> float:
        pass

    @abc.abstractmethod
    def cdf(self, x : float) -> float:
        pass

    def log_pmf(self, k : int) -> float:
        y = self.pmf(k)
        return math.log(y) if y > 0 else float('-inf')

    def survival(self, x : float) -> float:
        return 1.0 - self.cdf(x)

    def log_probability(self, element : int) -> float:
        return self.log_pmf(element)

    def prob(self, element : int) -> float:
        return self.pmf(element)

    def quantile(self, p : float) -> float:
        """Smallest ``k`` in the support with ``cdf(k) >= p``."""
        if not 0.0 <= p <= 1.0:
            return float('nan')
        lower, upper = self.min_value, self.max_value
        if p == 0.0:
            return lower
        if p == 1.0:
            return upper
        if self.cdf(lower) >= p:
            return lower
        # find k with cdf(k) >= p by doubling, then bisect on (a, b]
        a, step = lower, 1
        b = lower + step
        for _ in range(MAX_BRACKET_EXPANSIONS):
            b = min(b, upper)
            if self.cdf(b) >= p:
                break
            if b == upper:
                return upper
            a = b
            step *= 2
            b = a + step
        else:
            log.debug(f"{self!r}: no quantile bracket found for p={p}")
            return float('nan')
        while b - a > 1:
            mid = (a + b) // 2
            if self.cdf(mid) >= p:
                b = mid
            else:
                a = mid
        return b

    @property
    def median(self) -> float:
        return self.quantile(0.5)

    @property
    def mode(self) -> int:
        mean = self.mean
        k = math.floor(mean) if math.isfinite(mean) else self.median
        k = min(max(k, self.min_value), self.max_value)
        current = self.pmf(k)
        while k + 1 <= self.max_value and self.pmf(k + 1) > current:
            k += 1
            current = self.pmf(k)
        while k - 1 >= self.min_value and self.pmf(k - 1) > current:
            k -= 1
            current = self.pmf(k)
        return k

    def hazard(self, x : float) -> float:
        if x < self.min_value:
            return 0.0
        if x > self.max_value:
            return float('nan')
        return _hazard_ratio(self.pmf(x), self.survival(x))

    def expected_value(
        self,
        func: Callable[[int], float] = lambda v : v,
        lower: float = float('-inf'),
        upper: float = float('inf'),
    ) -> float:
        start = max(math.ceil(lower), self.min_value) if lower > float('-inf') else self.min_value
        end = min(math.floor(upper), self.max_value) if upper < float('inf') else self.max_value
        total = []
        k = start
        for _ in range(MAX_SUMMATION_TERMS):
            # survival(k - 1) is the mass not yet summed
            if k > end or self.survival(k - 1) <= SUMMATION_TAIL:
                break
            p = self.pmf(k)
            if p > 0:
                total.append(func(k) * p)
            k += 1
        else:
            log.debug(f"{self!r}: expectation truncated after {MAX_SUMMATION_TERMS} terms")
        return math.fsum(total)

    @property
    def mean(self) -> float:
        return self.expected_value()

    @property
    def variance(self) -> float:
        mean = self.mean
        return self.expected_value(lambda k: (k - mean)**2)

    @property
    def std(self) -> float:
        return math.sqrt(self.variance)
