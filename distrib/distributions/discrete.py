import cmath
import logging
import math
from typing import Sequence, Optional

import numpy as np
from scipy.special import gammainc, gammaincc, betainc, digamma

from distrib.distributions.base import DiscreteDistribution, Parameter
from distrib.distributions.continuous import Gamma, Beta
from distrib.distributions.generators import (
    PoissonGenerator, GeometricGenerator, NegativeBinomialGenerator,
    poisson_inversion, poisson_transformed_rejection, poisson_variate,
    geometric_table, geometric_by_table, geometric_through_exponential,
    geometric_by_log_probability,
)
from distrib.distributions.random import RandomNumberGenerator, default_rng
from distrib.distributions.support import SupportType
from distrib.numerics.roots import find_root
from distrib.tools import MIN_POSITIVE, is_integer, sample_mean, sample_variance

log = logging.getLogger(__name__)

# Cap on doubling while bracketing the Polya number MLE
MAX_NUMBER_BRACKET_STEPS = 100

__all__ = [
    "Poisson",
    "NegativeBinomial",
    "Pascal",
    "Polya",
    "Geometric",
    "Yule",
]


def _all_counts(sample: Sequence[int]) -> bool:
    return len(sample) > 0 and all(x >= 0 and is_integer(x) for x in sample)

def _clamp_probability(p):
    return float(min(max(p, MIN_POSITIVE), 1.0))


class Poisson(DiscreteDistribution):
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0
    max_value = float('inf')
    parameter_names = ("rate",)
    rate = Parameter()

    def __init__(self, rate=1.0):
        self.set_parameters(rate)

    def set_parameters(self, rate):
        rate = float(max(rate, MIN_POSITIVE))
        log_rate = math.log(rate)
        generator = PoissonGenerator.select(rate)
        self._rate = rate
        self._log_rate = log_rate
        self._generator = generator

    def pmf(self, k):
        if k < 0 or not is_integer(k):
            return 0.0
        return math.exp(k * self._log_rate - self.rate - math.lgamma(k + 1))

    def cdf(self, x):
        if x < 0:
            return 0.0
        return float(gammaincc(math.floor(x) + 1, self.rate))

    def survival(self, x):
        if x < 0:
            return 1.0
        return float(gammainc(math.floor(x) + 1, self.rate))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> int:
        if self._generator == PoissonGenerator.INVERSION:
            return poisson_inversion(self.rate, rng)
        return poisson_transformed_rejection(self.rate, rng)

    def characteristic_function(self, t):
        return cmath.exp(self.rate * (cmath.exp(1j * t) - 1))

    @property
    def mean(self):
        return self.rate

    @property
    def variance(self):
        return self.rate

    @property
    def mode(self):
        return math.floor(self.rate)

    @property
    def skewness(self):
        return 1 / math.sqrt(self.rate)

    @property
    def excess_kurtosis(self):
        return 1 / self.rate

    def fit_mle(self, sample: Sequence[int]) -> bool:
        if not _all_counts(sample):
            return False
        self.rate = sample_mean(sample)
        return True

    def fit_bayes(self, sample: Sequence[int], prior: Gamma) -> Optional[Gamma]:
        """Conjugate gamma update of the rate; sets the rate to the posterior mean."""
        if not _all_counts(sample):
            return None
        posterior = Gamma(prior.shape + math.fsum(sample), prior.rate + len(sample))
        self.rate = posterior.mean
        return posterior


class NegativeBinomial(DiscreteDistribution):
    r"""
    Number of failures before the ``number``-th success in Bernoulli trials
    with success probability ``p``.

    .. math::
        P(k) = \frac{\Gamma(k + r)}{k! \Gamma(r)} p^r (1 - p)^k
    """
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0
    max_value = float('inf')
    parameter_names = ("number", "p")
    number = Parameter()
    p = Parameter()

    def __init__(self, number=1, p=0.5):
        self.set_parameters(number, p)

    def _coerce_number(self, number):
        return float(max(number, MIN_POSITIVE))

    def set_parameters(self, number, p):
        number = self._coerce_number(number)
        p = _clamp_probability(p)
        q = 1.0 - p
        generator = NegativeBinomialGenerator.select(number, p)
        table = geometric_table(p) if generator == NegativeBinomialGenerator.TABLE else None
        log_q = math.log1p(-p) if q > 0 else float('-inf')
        mixing = Gamma(number, p / q) if q > 0 else None

        self._number = number
        self._p = p
        self.q = q
        self._log_q = log_q
        self._pmf_coef = number * math.log(p) - math.lgamma(number)
        self._generator = generator
        self._table = table
        self._mixing = mixing

    def pmf(self, k):
        if k < 0 or not is_integer(k):
            return 0.0
        if self.q == 0:
            return 1.0 if k == 0 else 0.0
        return math.exp(
            self._pmf_coef + math.lgamma(k + self.number) - math.lgamma(k + 1)
            + k * self._log_q
        )

    def cdf(self, x):
        if x < 0:
            return 0.0
        if self.q == 0:
            return 1.0
        return float(betainc(self.number, math.floor(x) + 1, self.p))

    def survival(self, x):
        if x < 0:
            return 1.0
        if self.q == 0:
            return 0.0
        return float(betainc(math.floor(x) + 1, self.number, self.q))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> int:
        if self.q == 0:
            return 0
        generator = self._generator
        if generator == NegativeBinomialGenerator.TABLE:
            return sum(geometric_by_table(self._table, rng) for _ in range(int(self.number)))
        if generator == NegativeBinomialGenerator.EXPONENTIAL:
            return sum(geometric_through_exponential(self._log_q, rng) for _ in range(int(self.number)))
        if generator == NegativeBinomialGenerator.GAMMA_POISSON:
            return poisson_variate(self._mixing.sample(rng), rng)
        raise ValueError(f"Unknown negative binomial generator {generator}")

    def characteristic_function(self, t):
        return (self.p / (1 - self.q * cmath.exp(1j * t))) ** self.number

    @property
    def mean(self):
        return self.number * self.q / self.p

    @property
    def variance(self):
        return self.number * self.q / self.p**2

    @property
    def mode(self):
        if self.number <= 1:
            return 0
        return math.floor((self.number - 1) * self.q / self.p)

    @property
    def skewness(self):
        return (1 + self.q) / math.sqrt(self.number * self.q)

    @property
    def excess_kurtosis(self):
        return 6 / self.number + self.p**2 / (self.number * self.q)

    def fit_probability_mm(self, sample: Sequence[int]) -> bool:
        if not _all_counts(sample):
            return False
        self.p = self.number / (sample_mean(sample) + self.number)
        return True

    def fit_probability_bayes(self, sample: Sequence[int], prior: Beta) -> Optional[Beta]:
        """Conjugate beta update of ``p``; sets ``p`` to the posterior mean."""
        if not _all_counts(sample):
            return None
        posterior = Beta(
            prior.alpha + len(sample) * self.number,
            prior.beta + math.fsum(sample)
        )
        self.p = posterior.mean
        return posterior


class Pascal(NegativeBinomial):
    """Negative binomial with an integer number of successes."""
    def _coerce_number(self, number):
        return max(round(number), 1)


class Polya(NegativeBinomial):
    """Negative binomial with a real number of successes."""
    def fit_number_mm(self, sample: Sequence[int]) -> bool:
        if not _all_counts(sample):
            return False
        mean = sample_mean(sample)
        if mean <= 0 or self.q == 0:
            return False
        self.number = self.p * mean / self.q
        return True

    def fit_number_and_probability_mm(self, sample: Sequence[int]) -> bool:
        if not _all_counts(sample):
            return False
        mean = sample_mean(sample)
        variance = sample_variance(sample, mean)
        # the negative binomial is overdispersed
        if mean <= 0 or variance <= mean:
            return False
        self.set_parameters(mean * mean / (variance - mean), mean / variance)
        return True

    def fit_number_and_probability_mle(self, sample: Sequence[int]) -> bool:
        """
        Profile likelihood in the number of successes, with
        ``p = r / (r + mean)`` substituted. The score

        .. math::
            \\sum_i \\psi(x_i + r) - n \\psi(r) + n \\log \\frac{r}{r + \\bar{x}}

        is positive for small ``r`` and negative for large ``r`` when the
        sample is overdispersed.
        """
        if not _all_counts(sample):
            return False
        n = len(sample)
        mean = sample_mean(sample)
        variance = sample_variance(sample, mean)
        if mean <= 0 or variance <= mean:
            return False

        counts = np.asarray(sample, dtype=float)

        def score(r):
            return (
                float(np.sum(digamma(counts + r)))
                - n * float(digamma(r))
                + n * math.log(r / (r + mean))
            )

        guess = mean * mean / (variance - mean)
        lower = upper = guess
        for _ in range(MAX_NUMBER_BRACKET_STEPS):
            if score(lower) > 0:
                break
            lower *= 0.5
        else:
            return False
        for _ in range(MAX_NUMBER_BRACKET_STEPS):
            if score(upper) < 0:
                break
            upper *= 2
        else:
            return False
        number = find_root(score, lower, upper, xtol=1e-10 * guess)
        if math.isnan(number):
            log.debug(f"{self!r}: number MLE did not converge")
            return False
        self.set_parameters(number, number / (number + mean))
        return True


class Geometric(Pascal):
    """Failures before the first success."""
    parameter_names = ("p",)

    def __init__(self, p=0.5):
        self.set_parameters(p)

    def set_parameters(self, p):
        super().set_parameters(1, p)
        self._geometric_generator = GeometricGenerator.select(self.p)

    def pmf(self, k):
        if k < 0 or not is_integer(k):
            return 0.0
        if self.q == 0:
            return 1.0 if k == 0 else 0.0
        return self.p * math.exp(k * self._log_q)

    def cdf(self, x):
        if x < 0:
            return 0.0
        return -math.expm1((math.floor(x) + 1) * self._log_q)

    def survival(self, x):
        if x < 0:
            return 1.0
        return math.exp((math.floor(x) + 1) * self._log_q)

    def sample(self, rng : RandomNumberGenerator = default_rng) -> int:
        if self.q == 0:
            return 0
        if self._geometric_generator == GeometricGenerator.EXPONENTIAL:
            return geometric_through_exponential(self._log_q, rng)
        return geometric_by_table(self._table, rng)

    def hazard(self, x):
        # memoryless: p / q at every count
        if x < 0 or self.q == 0 or not is_integer(x):
            return super().hazard(x)
        return self.p / self.q

    @property
    def mode(self):
        return 0

    @property
    def entropy(self):
        """In nats."""
        if self.q == 0:
            return 0.0
        return -(self.q * self._log_q + self.p * math.log(self.p)) / self.p

    def fit_mle(self, sample: Sequence[int]) -> bool:
        if not _all_counts(sample):
            return False
        self.p = 1 / (sample_mean(sample) + 1)
        return True

    fit_mm = fit_mle

    def fit_bayes(self, sample: Sequence[int], prior: Beta) -> Optional[Beta]:
        return self.fit_probability_bayes(sample, prior)


class Yule(DiscreteDistribution):
    r"""
    Yule-Simon distribution on the positive integers.

    .. math::
        P(k) = \rho B(k, \rho + 1)

    Sampled as a geometric variate whose success probability is
    ``exp(-E / rho)`` for a standard exponential ``E``, plus one. For small
    ``rho`` the probability underflows; draws past the float range are ``inf``.
    """
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 1
    max_value = float('inf')
    parameter_names = ("shape",)
    shape = Parameter()

    def __init__(self, shape=1.0):
        self.set_parameters(shape)

    def set_parameters(self, shape):
        shape = float(max(shape, MIN_POSITIVE))
        log_gamma_shape_1 = math.lgamma(shape + 1)
        self._shape = shape
        self._log_gamma_shape_1 = log_gamma_shape_1

    def _log_beta(self, k):
        # log B(k, shape + 1)
        return math.lgamma(k) + self._log_gamma_shape_1 - math.lgamma(k + self.shape + 1)

    def pmf(self, k):
        if k < 1 or not is_integer(k):
            return 0.0
        return self.shape * math.exp(self._log_beta(k))

    def cdf(self, x):
        if x < 1:
            return 0.0
        return 1.0 - self.survival(x)

    def survival(self, x):
        if x < 1:
            return 1.0
        k = math.floor(x)
        return k * math.exp(self._log_beta(k))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        log_p = -rng.standard_exponential() / self.shape
        return geometric_by_log_probability(log_p, rng) + 1

    @property
    def mean(self):
        return self.shape / (self.shape - 1) if self.shape > 1 else float('inf')

    @property
    def variance(self):
        rho = self.shape
        if rho <= 2:
            return float('inf')
        return rho * rho / ((rho - 1)**2 * (rho - 2))

    @property
    def mode(self):
        return 1

    @property
    def skewness(self):
        rho = self.shape
        if rho <= 3:
            return float('nan')
        return (rho + 1)**2 * math.sqrt(rho - 2) / (rho * (rho - 3))

    @property
    def excess_kurtosis(self):
        rho = self.shape
        if rho <= 4:
            return float('nan')
        return rho + 3 + (11 * rho**3 - 49 * rho - 22) / (rho * (rho - 4) * (rho - 3))
