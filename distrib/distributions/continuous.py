import cmath
import logging
import math
from typing import Sequence, Optional

from scipy.special import (
    gammaln, digamma, polygamma, gammainc, gammaincc, betainc, betaln, erfc, ndtri, i0e
)

from distrib.distributions.base import ContinuousDistribution, Parameter
from distrib.distributions.generators import (
    GammaGenerator, BetaGenerator, best_constants, gamma_exponential_sum,
    gamma_one_and_a_half, gamma_best, gamma_fishman, gamma_marsaglia_tsang,
    standard_gamma, beta_johnk, beta_symmetric_rejection, beta_gamma_ratio,
    von_mises_best_fisher,
)
from distrib.distributions.random import RandomNumberGenerator, default_rng
from distrib.distributions.support import SupportType
from distrib.numerics.integration import integral
from distrib.numerics.roots import find_root, find_root_newton
from distrib.tools import (
    MIN_POSITIVE, sample_mean, sample_variance, raw_moment, log_mean
)

log = logging.getLogger(__name__)

SQRT2 = math.sqrt(2)
SQRT_2PI = math.sqrt(2 * math.pi)
# Cap on doubling while bracketing the gamma shape MLE
MAX_SHAPE_BRACKET_STEPS = 100

__all__ = [
    "Uniform",
    "Normal",
    "Exponential",
    "GammaDistribution",
    "Gamma",
    "ChiSquared",
    "Erlang",
    "Beta",
    "BetaPrime",
    "LogNormal",
    "Cauchy",
    "Nakagami",
    "Chi",
    "MaxwellBoltzmann",
    "Rayleigh",
    "VonMises",
]


def _all_positive(sample: Sequence[float]) -> bool:
    return len(sample) > 0 and all(x > 0 for x in sample)

def _all_non_negative(sample: Sequence[float]) -> bool:
    return len(sample) > 0 and all(x >= 0 for x in sample)


class Uniform(ContinuousDistribution):
    support_type = SupportType.FINITE
    parameter_names = ("low", "high")
    low = Parameter()
    high = Parameter()

    def __init__(self, low=0.0, high=1.0):
        self.set_parameters(low, high)

    def set_parameters(self, low, high):
        low = float(low)
        if not high > low:
            high = low + max(abs(low) * 1e-12, MIN_POSITIVE)
        high = float(high)
        self._low, self._high = low, high
        self._inv_width = 1.0 / (high - low)

    @property
    def min_value(self):
        return self._low

    @property
    def max_value(self):
        return self._high

    def pdf(self, x):
        return self._inv_width if self._low <= x <= self._high else 0.0

    def cdf(self, x):
        if x <= self._low:
            return 0.0
        if x >= self._high:
            return 1.0
        return (x - self._low) * self._inv_width

    def _quantile(self, p):
        return self._low + p * (self._high - self._low)

    def _quantile_1m(self, p):
        return self._high - p * (self._high - self._low)

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return self._low + (self._high - self._low) * rng.random()

    @property
    def mean(self):
        return 0.5 * (self._low + self._high)

    @property
    def variance(self):
        return (self._high - self._low)**2 / 12

    @property
    def median(self):
        return self.mean

    @property
    def mode(self):
        # every point of the support is a mode
        return self.mean

    @property
    def skewness(self):
        return 0.0

    @property
    def excess_kurtosis(self):
        return -1.2

    def fit_mle(self, sample: Sequence[float]) -> bool:
        if len(sample) == 0:
            return False
        self.set_parameters(min(sample), max(sample))
        return True


class Normal(ContinuousDistribution):
    support_type = SupportType.INFINITE
    min_value = float('-inf')
    max_value = float('inf')
    parameter_names = ("mu", "sigma")
    mu = Parameter()
    sigma = Parameter()

    def __init__(self, mu=0.0, sigma=1.0):
        self.set_parameters(mu, sigma)

    def set_parameters(self, mu, sigma):
        sigma = float(max(sigma, MIN_POSITIVE))
        log_norm = math.log(sigma * SQRT_2PI)
        self._mu = float(mu)
        self._sigma = sigma
        self._log_norm = log_norm

    def pdf(self, x):
        return math.exp(self.log_pdf(x))

    def log_pdf(self, x):
        z = (x - self._mu) / self._sigma
        return -0.5 * z * z - self._log_norm

    def cdf(self, x):
        return 0.5 * float(erfc(-(x - self._mu) / (self._sigma * SQRT2)))

    def survival(self, x):
        return 0.5 * float(erfc((x - self._mu) / (self._sigma * SQRT2)))

    def _quantile(self, p):
        return self._mu + self._sigma * float(ndtri(p))

    def _quantile_1m(self, p):
        return self._mu - self._sigma * float(ndtri(p))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return self._mu + self._sigma * rng.standard_normal()

    def characteristic_function(self, t):
        return cmath.exp(complex(-0.5 * (self._sigma * t)**2, self._mu * t))

    @property
    def mean(self):
        return self._mu

    @property
    def variance(self):
        return self._sigma**2

    @property
    def median(self):
        return self._mu

    @property
    def mode(self):
        return self._mu

    @property
    def skewness(self):
        return 0.0

    @property
    def excess_kurtosis(self):
        return 0.0

    def fit_mle(self, sample: Sequence[float]) -> bool:
        if len(sample) == 0:
            return False
        mean = sample_mean(sample)
        self.set_parameters(mean, math.sqrt(sample_variance(sample, mean)))
        return True


class Exponential(ContinuousDistribution):
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0.0
    max_value = float('inf')
    parameter_names = ("rate",)
    rate = Parameter()

    def __init__(self, rate=1.0):
        self.set_parameters(rate)

    def set_parameters(self, rate):
        rate = float(max(rate, MIN_POSITIVE))
        log_rate = math.log(rate)
        self._rate = rate
        self._log_rate = log_rate

    def pdf(self, x):
        return self._rate * math.exp(-self._rate * x) if x >= 0 else 0.0

    def log_pdf(self, x):
        return self._log_rate - self._rate * x if x >= 0 else float('-inf')

    def cdf(self, x):
        return -math.expm1(-self._rate * x) if x > 0 else 0.0

    def survival(self, x):
        return math.exp(-self._rate * x) if x > 0 else 1.0

    def _quantile(self, p):
        return -math.log1p(-p) / self._rate

    def _quantile_1m(self, p):
        return -math.log(p) / self._rate

    def hazard(self, x):
        # constant, so exact even where the survival function underflows
        return self._rate if x >= 0 else 0.0

    def characteristic_function(self, t):
        return self._rate / complex(self._rate, -t)

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return rng.standard_exponential() / self._rate

    @property
    def mean(self):
        return 1.0 / self._rate

    @property
    def variance(self):
        return 1.0 / self._rate**2

    @property
    def median(self):
        return math.log(2) / self._rate

    @property
    def mode(self):
        return 0.0

    @property
    def skewness(self):
        return 2.0

    @property
    def excess_kurtosis(self):
        return 6.0

    def fit_mle(self, sample: Sequence[float]) -> bool:
        if not _all_non_negative(sample):
            return False
        self.rate = 1.0 / sample_mean(sample)
        return True

    def fit_bayes(self, sample: Sequence[float], prior: "Gamma") -> Optional["Gamma"]:
        """
        Conjugate update of a gamma prior on the rate. Returns the posterior
        and sets the rate to the posterior mean.
        """
        if not _all_non_negative(sample):
            return None
        posterior = Gamma(prior.shape + len(sample), prior.rate + math.fsum(sample))
        self.rate = posterior.mean
        return posterior


class GammaDistribution(ContinuousDistribution):
    r"""
    .. math::
        f(x | \alpha, \beta) = \frac{\beta^\alpha}{\Gamma(\alpha)} x^{\alpha-1} e^{-\beta x}

    Subclasses decide which parameters are free and how they are fitted.
    """
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0.0
    max_value = float('inf')
    parameter_names = ("shape", "rate")
    shape = Parameter()
    rate = Parameter()

    def __init__(self, shape=1.0, rate=1.0):
        self.set_parameters(shape, rate)

    def set_parameters(self, shape, rate):
        shape = float(max(shape, MIN_POSITIVE))
        rate = float(max(rate, MIN_POSITIVE))
        log_gamma_shape = float(gammaln(shape))
        log_rate = math.log(rate)
        generator = GammaGenerator.select(shape)
        best = best_constants(shape) if generator == GammaGenerator.SMALL_SHAPE else None

        self._shape = shape
        self._rate = rate
        self._log_gamma_shape = log_gamma_shape
        self._log_rate = log_rate
        self._pdf_coef = shape * log_rate - log_gamma_shape
        self._generator = generator
        self._best_constants = best

    @property
    def scale(self):
        return 1.0 / self._rate

    def pdf(self, x):
        if x < 0:
            return 0.0
        if x == 0:
            if self._shape < 1:
                return float('inf')
            return self._rate if self._shape == 1 else 0.0
        return math.exp(self.log_pdf(x))

    def log_pdf(self, x):
        if x < 0:
            return float('-inf')
        if x == 0:
            y = self.pdf(x)
            return math.log(y) if y > 0 else float('-inf')
        return self._pdf_coef + (self._shape - 1) * math.log(x) - self._rate * x

    def cdf(self, x):
        return float(gammainc(self._shape, self._rate * x)) if x > 0 else 0.0

    def survival(self, x):
        return float(gammaincc(self._shape, self._rate * x)) if x > 0 else 1.0

    def standard_sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        """Variate with unit rate, using the regime selected for the current shape."""
        generator = self._generator
        if generator == GammaGenerator.INTEGER_SHAPE:
            return gamma_exponential_sum(int(self._shape), rng)
        if generator == GammaGenerator.ONE_AND_A_HALF_SHAPE:
            return gamma_one_and_a_half(rng)
        if generator == GammaGenerator.SMALL_SHAPE:
            return gamma_best(self._shape, *self._best_constants, rng)
        if generator == GammaGenerator.FISHMAN:
            return gamma_fishman(self._shape, rng)
        if generator == GammaGenerator.MARSAGLIA_TSANG:
            return gamma_marsaglia_tsang(self._shape, rng)
        raise ValueError(f"Unknown gamma generator {generator}")

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return self.standard_sample(rng) / self._rate

    def characteristic_function(self, t):
        return complex(1.0, -t / self._rate) ** -self._shape

    @property
    def mean(self):
        return self._shape / self._rate

    @property
    def variance(self):
        return self._shape / self._rate**2

    @property
    def mode(self):
        return (self._shape - 1) / self._rate if self._shape > 1 else 0.0

    @property
    def skewness(self):
        return 2.0 / math.sqrt(self._shape)

    @property
    def excess_kurtosis(self):
        return 6.0 / self._shape

    @property
    def log_mean(self) -> float:
        """``E[log X]``"""
        return float(digamma(self._shape)) - self._log_rate


class Gamma(GammaDistribution):
    def fit_rate_mle(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        self.rate = self._shape / sample_mean(sample)
        return True

    def fit_rate_umvu(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        self.rate = (len(sample) * self._shape - 1) / math.fsum(sample)
        return True

    def fit_rate_bayes(self, sample: Sequence[float], prior: "Gamma") -> Optional["Gamma"]:
        """
        Conjugate update of a gamma prior on the rate with the shape held
        fixed. Returns the posterior and sets the rate to its mean.
        """
        if not _all_positive(sample):
            return None
        posterior = Gamma(
            prior.shape + len(sample) * self._shape,
            prior.rate + math.fsum(sample)
        )
        self.rate = posterior.mean
        return posterior

    def fit_shape_mm(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        self.shape = sample_mean(sample) * self._rate
        return True

    def fit_shape_and_rate_mm(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        mean = sample_mean(sample)
        variance = sample_variance(sample, mean)
        if variance <= 0:
            return False
        self.set_parameters(mean * mean / variance, mean / variance)
        return True

    def fit_shape_mle(self, sample: Sequence[float]) -> bool:
        """Solve ``digamma(shape) = mean(log x) + log(rate)`` with the rate held fixed."""
        if not _all_positive(sample):
            return False
        target = log_mean(sample) + self._log_rate
        score = lambda a: float(digamma(a)) - target

        # asymptotic inverse of digamma as a starting point
        if target >= -2.22:
            guess = math.exp(target) + 0.5
        else:
            guess = -1.0 / (target - float(digamma(1)))
        lower = upper = guess
        for _ in range(MAX_SHAPE_BRACKET_STEPS):
            if score(lower) <= 0:
                break
            lower *= 0.5
        else:
            return False
        for _ in range(MAX_SHAPE_BRACKET_STEPS):
            if score(upper) >= 0:
                break
            upper *= 2
        else:
            return False

        shape = find_root(score, lower, upper, xtol=1e-12 * guess)
        if math.isnan(shape):
            log.debug(f"{self!r}: shape MLE did not converge")
            return False
        self.shape = shape
        return True

    def fit_shape_and_rate_mle(self, sample: Sequence[float]) -> bool:
        """Solve ``log(shape) - digamma(shape) = log(mean) - mean(log x)``."""
        if not _all_positive(sample):
            return False
        mean = sample_mean(sample)
        s = math.log(mean) - log_mean(sample)
        if not s > 0:
            return False
        guess = (3 - s + math.sqrt((s - 3)**2 + 24 * s)) / (12 * s)
        shape = find_root_newton(
            lambda a: (
                math.log(a) - float(digamma(a)) - s,
                1.0 / a - float(polygamma(1, a))
            ),
            guess,
            lower=0.0,
        )
        if math.isnan(shape):
            log.debug(f"{self!r}: shape and rate MLE did not converge")
            return False
        self.set_parameters(shape, shape / mean)
        return True


class ChiSquared(GammaDistribution):
    parameter_names = ("degree",)
    degree = Parameter()

    def __init__(self, degree=1):
        self.set_parameters(degree)

    def set_parameters(self, degree):
        degree = max(int(degree), 1)
        super().set_parameters(0.5 * degree, 0.5)
        self._degree = degree


class Erlang(Gamma):
    """Gamma with an integer shape; a sum of ``shape`` exponential variates."""
    def set_parameters(self, shape, rate):
        super().set_parameters(max(round(shape), 1), rate)


class Beta(ContinuousDistribution):
    support_type = SupportType.FINITE
    min_value = 0.0
    max_value = 1.0
    parameter_names = ("alpha", "beta")
    alpha = Parameter()
    beta = Parameter()

    def __init__(self, alpha=1.0, beta=1.0):
        self.set_parameters(alpha, beta)

    def set_parameters(self, alpha, beta):
        alpha = float(max(alpha, MIN_POSITIVE))
        beta = float(max(beta, MIN_POSITIVE))
        log_beta_function = float(betaln(alpha, beta))
        generator = BetaGenerator.select(alpha, beta)

        self._alpha = alpha
        self._beta = beta
        self._log_beta_function = log_beta_function
        self._generator = generator

    def pdf(self, x):
        if x < 0 or x > 1:
            return 0.0
        if x == 0:
            if self._alpha < 1:
                return float('inf')
            return self._beta if self._alpha == 1 else 0.0
        if x == 1:
            if self._beta < 1:
                return float('inf')
            return self._alpha if self._beta == 1 else 0.0
        return math.exp(self.log_pdf(x))

    def log_pdf(self, x):
        if x <= 0 or x >= 1:
            y = self.pdf(x)
            return math.log(y) if y > 0 else float('-inf')
        return (
            (self._alpha - 1) * math.log(x)
            + (self._beta - 1) * math.log1p(-x)
            - self._log_beta_function
        )

    def cdf(self, x):
        if x <= 0:
            return 0.0
        if x >= 1:
            return 1.0
        return float(betainc(self._alpha, self._beta, x))

    def survival(self, x):
        if x <= 0:
            return 1.0
        if x >= 1:
            return 0.0
        return float(betainc(self._beta, self._alpha, 1 - x))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        generator = self._generator
        if generator == BetaGenerator.JOHNK:
            return beta_johnk(self._alpha, self._beta, rng)
        if generator == BetaGenerator.SYMMETRIC_REJECTION:
            return beta_symmetric_rejection(self._alpha, rng)
        if generator == BetaGenerator.GAMMA_RATIO:
            return beta_gamma_ratio(self._alpha, self._beta, rng)
        raise ValueError(f"Unknown beta generator {generator}")

    @property
    def mean(self):
        return self._alpha / (self._alpha + self._beta)

    @property
    def variance(self):
        total = self._alpha + self._beta
        return self._alpha * self._beta / (total * total * (total + 1))

    @property
    def mode(self):
        a, b = self._alpha, self._beta
        if a > 1 and b > 1:
            return (a - 1) / (a + b - 2)
        if a == 1 and b == 1:
            return 0.5
        if a <= 1 and b >= 1:
            return 0.0
        if a >= 1 and b <= 1:
            return 1.0
        # both shapes below one: unbounded at both ends
        return float('nan')

    @property
    def skewness(self):
        a, b = self._alpha, self._beta
        return 2 * (b - a) * math.sqrt(a + b + 1) / ((a + b + 2) * math.sqrt(a * b))

    @property
    def excess_kurtosis(self):
        a, b = self._alpha, self._beta
        numerator = 6 * ((a - b)**2 * (a + b + 1) - a * b * (a + b + 2))
        return numerator / (a * b * (a + b + 2) * (a + b + 3))

    def fit_mm(self, sample: Sequence[float]) -> bool:
        if len(sample) == 0 or not all(0 <= x <= 1 for x in sample):
            return False
        mean = sample_mean(sample)
        variance = sample_variance(sample, mean)
        if variance <= 0 or variance >= mean * (1 - mean):
            return False
        common = mean * (1 - mean) / variance - 1
        self.set_parameters(mean * common, (1 - mean) * common)
        return True


class BetaPrime(ContinuousDistribution):
    r"""
    .. math::
        f(x | \alpha, \beta) = \frac{x^{\alpha-1} (1 + x)^{-\alpha-\beta}}{B(\alpha, \beta)}

    ``X / (1 + X)`` is beta distributed, which is how the CDF and quantiles
    are obtained.
    """
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0.0
    max_value = float('inf')
    parameter_names = ("alpha", "beta")
    alpha = Parameter()
    beta = Parameter()

    def __init__(self, alpha=1.0, beta=1.0):
        self.set_parameters(alpha, beta)

    def set_parameters(self, alpha, beta):
        ratio = Beta(alpha, beta)
        # 1 - X / (1 + X) = 1 / (1 + X)
        reflected = Beta(ratio.beta, ratio.alpha)
        self._ratio = ratio
        self._reflected = reflected
        self._alpha = ratio.alpha
        self._beta = ratio.beta

    def pdf(self, x):
        if x < 0:
            return 0.0
        if x == 0:
            if self._alpha < 1:
                return float('inf')
            return self._beta if self._alpha == 1 else 0.0
        return math.exp(self.log_pdf(x))

    def log_pdf(self, x):
        if x <= 0:
            y = self.pdf(x)
            return math.log(y) if y > 0 else float('-inf')
        return (
            (self._alpha - 1) * math.log(x)
            - (self._alpha + self._beta) * math.log1p(x)
            - self._ratio._log_beta_function
        )

    def cdf(self, x):
        return self._ratio.cdf(x / (1 + x)) if x > 0 else 0.0

    def survival(self, x):
        return self._reflected.cdf(1 / (1 + x)) if x > 0 else 1.0

    def _quantile(self, p):
        if p > 0.5:
            return self._upper_tail(1 - p)
        return self._lower_tail(p)

    def _quantile_1m(self, p):
        if p < 0.5:
            return self._upper_tail(p)
        return self._lower_tail(1 - p)

    def _lower_tail(self, p):
        y = self._ratio.quantile(p)
        return y / (1 - y)

    def _upper_tail(self, p):
        # X / (1 + X) rounds to 1 here, so solve for 1 / (1 + X) instead
        z = self._reflected.quantile(p)
        return (1 - z) / z if z > 0 else float('inf')

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        x = standard_gamma(self._alpha, rng)
        y = standard_gamma(self._beta, rng)
        return x / y if y > 0 else float('inf')

    @property
    def mean(self):
        return self._alpha / (self._beta - 1) if self._beta > 1 else float('inf')

    @property
    def variance(self):
        a, b = self._alpha, self._beta
        if b <= 2:
            return float('inf')
        return a * (a + b - 1) / ((b - 2) * (b - 1)**2)

    @property
    def mode(self):
        return (self._alpha - 1) / (self._beta + 1) if self._alpha >= 1 else 0.0

    @property
    def skewness(self):
        a, b = self._alpha, self._beta
        if b <= 3:
            return float('inf')
        return 2 * (2 * a + b - 1) / (b - 3) * math.sqrt((b - 2) / (a * (a + b - 1)))


class LogNormal(ContinuousDistribution):
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0.0
    max_value = float('inf')
    parameter_names = ("mu", "sigma")
    mu = Parameter()
    sigma = Parameter()

    def __init__(self, mu=0.0, sigma=1.0):
        self.set_parameters(mu, sigma)

    def set_parameters(self, mu, sigma):
        log_x = Normal(mu, sigma)
        self._log_x = log_x
        self._mu = log_x.mu
        self._sigma = log_x.sigma
        self._exp_variance = math.exp(log_x.sigma**2)

    def pdf(self, x):
        return math.exp(self.log_pdf(x)) if x > 0 else 0.0

    def log_pdf(self, x):
        if x <= 0:
            return float('-inf')
        log_x = math.log(x)
        return self._log_x.log_pdf(log_x) - log_x

    def cdf(self, x):
        return self._log_x.cdf(math.log(x)) if x > 0 else 0.0

    def survival(self, x):
        return self._log_x.survival(math.log(x)) if x > 0 else 1.0

    def _quantile(self, p):
        return math.exp(self._log_x.quantile(p))

    def _quantile_1m(self, p):
        return math.exp(self._log_x.quantile_1m(p))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return math.exp(self._log_x.sample(rng))

    @property
    def mean(self):
        return math.exp(self._mu + 0.5 * self._sigma**2)

    @property
    def variance(self):
        return (self._exp_variance - 1) * math.exp(2 * self._mu + self._sigma**2)

    @property
    def median(self):
        return math.exp(self._mu)

    @property
    def mode(self):
        return math.exp(self._mu - self._sigma**2)

    @property
    def skewness(self):
        return (self._exp_variance + 2) * math.sqrt(self._exp_variance - 1)

    @property
    def excess_kurtosis(self):
        e = self._exp_variance
        return e**4 + 2 * e**3 + 3 * e**2 - 6

    def fit_mle(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        logs = [math.log(x) for x in sample]
        mu = sample_mean(logs)
        self.set_parameters(mu, math.sqrt(sample_variance(logs, mu)))
        return True

    def fit_mm(self, sample: Sequence[float]) -> bool:
        """Match the sample mean and variance."""
        if not _all_positive(sample):
            return False
        mean = sample_mean(sample)
        variance = sample_variance(sample, mean)
        sigma_squared = math.log1p(variance / (mean * mean))
        self.set_parameters(math.log(mean) - 0.5 * sigma_squared, math.sqrt(sigma_squared))
        return True

    def fit_mu_mm(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        self.mu = math.log(sample_mean(sample)) - 0.5 * self._sigma**2
        return True

    def fit_sigma_mm(self, sample: Sequence[float]) -> bool:
        if not _all_positive(sample):
            return False
        sigma_squared = 2 * (math.log(sample_mean(sample)) - self._mu)
        if sigma_squared <= 0:
            return False
        self.sigma = math.sqrt(sigma_squared)
        return True


class Cauchy(ContinuousDistribution):
    support_type = SupportType.INFINITE
    min_value = float('-inf')
    max_value = float('inf')
    parameter_names = ("location", "scale")
    location = Parameter()
    scale = Parameter()

    def __init__(self, location=0.0, scale=1.0):
        self.set_parameters(location, scale)

    def set_parameters(self, location, scale):
        scale = float(max(scale, MIN_POSITIVE))
        self._location = float(location)
        self._scale = scale

    def pdf(self, x):
        z = (x - self._location) / self._scale
        return 1.0 / (math.pi * self._scale * (1 + z * z))

    def cdf(self, x):
        return 0.5 + math.atan((x - self._location) / self._scale) / math.pi

    def survival(self, x):
        return 0.5 - math.atan((x - self._location) / self._scale) / math.pi

    def _quantile(self, p):
        return self._location + self._scale * math.tan(math.pi * (p - 0.5))

    def _quantile_1m(self, p):
        return self._location - self._scale * math.tan(math.pi * (p - 0.5))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return self._location + self._scale * math.tan(math.pi * (rng.open_uniform() - 0.5))

    @property
    def mean(self):
        return float('nan')

    @property
    def variance(self):
        return float('inf')

    @property
    def skewness(self):
        return float('nan')

    @property
    def excess_kurtosis(self):
        return float('nan')

    @property
    def median(self):
        return self._location

    @property
    def mode(self):
        return self._location

    @property
    def entropy(self):
        return math.log(4 * math.pi * self._scale)


class Nakagami(ContinuousDistribution):
    """``X**2`` is gamma distributed with shape ``m`` and rate ``m / spread``."""
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0.0
    max_value = float('inf')
    parameter_names = ("shape", "spread")
    shape = Parameter()
    spread = Parameter()

    def __init__(self, shape=0.5, spread=1.0):
        self.set_parameters(shape, spread)

    def set_parameters(self, shape, spread):
        shape = float(max(shape, 0.5))
        spread = float(spread) if spread > 0 else 1.0
        squared = GammaDistribution(shape, shape / spread)
        gamma_ratio = math.exp(float(gammaln(shape + 0.5)) - float(gammaln(shape)))

        self._shape = shape
        self._spread = spread
        self._squared = squared
        self._gamma_ratio = gamma_ratio

    def pdf(self, x):
        return 2 * x * self._squared.pdf(x * x) if x > 0 else 0.0

    def log_pdf(self, x):
        if x <= 0:
            return float('-inf')
        return math.log(2 * x) + self._squared.log_pdf(x * x)

    def cdf(self, x):
        return self._squared.cdf(x * x) if x > 0 else 0.0

    def survival(self, x):
        return self._squared.survival(x * x) if x > 0 else 1.0

    def _quantile(self, p):
        return math.sqrt(self._squared.quantile(p))

    def _quantile_1m(self, p):
        return math.sqrt(self._squared.quantile_1m(p))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return math.sqrt(self._squared.sample(rng))

    @property
    def mean(self):
        return self._gamma_ratio * math.sqrt(self._spread / self._shape)

    @property
    def variance(self):
        return self._spread * (1 - self._gamma_ratio**2 / self._shape)

    @property
    def mode(self):
        return math.sqrt(self._spread - 0.5 * self._spread / self._shape)


class Chi(ContinuousDistribution):
    """Length of a vector of ``degree`` independent normals with standard deviation ``scale``."""
    support_type = SupportType.RIGHT_SEMI_INFINITE
    min_value = 0.0
    max_value = float('inf')
    parameter_names = ("degree", "scale")
    degree = Parameter()
    scale = Parameter()

    def __init__(self, degree=1, scale=1.0):
        self.set_parameters(degree, scale)

    def set_parameters(self, degree, scale):
        degree = max(int(degree), 1)
        scale = float(scale) if scale > 0 else 1.0
        self._nakagami = Nakagami(0.5 * degree, degree * scale * scale)
        self._degree = degree
        self._scale = scale

    def pdf(self, x):
        return self._nakagami.pdf(x)

    def log_pdf(self, x):
        return self._nakagami.log_pdf(x)

    def cdf(self, x):
        return self._nakagami.cdf(x)

    def survival(self, x):
        return self._nakagami.survival(x)

    def _quantile(self, p):
        return self._nakagami.quantile(p)

    def _quantile_1m(self, p):
        return self._nakagami.quantile_1m(p)

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return self._nakagami.sample(rng)

    @property
    def mean(self):
        return self._nakagami.mean

    @property
    def variance(self):
        return self._nakagami.variance

    @property
    def mode(self):
        return self._nakagami.mode

    def _unit_moments(self):
        return self.mean / self._scale, math.sqrt(self.variance) / self._scale

    @property
    def skewness(self):
        mean, std = self._unit_moments()
        return mean * (1 - 2 * std * std) / std**3

    @property
    def excess_kurtosis(self):
        mean, std = self._unit_moments()
        return 2 * (1 - mean * std * self.skewness - std * std) / (std * std)


class MaxwellBoltzmann(Chi):
    parameter_names = ("scale",)

    def __init__(self, scale=1.0):
        self.set_parameters(scale)

    def set_parameters(self, scale):
        super().set_parameters(3, scale)

    def pdf(self, x):
        if x <= 0:
            return 0.0
        z = x / self._scale
        return math.sqrt(2 / math.pi) * z * z * math.exp(-0.5 * z * z) / self._scale

    def cdf(self, x):
        if x <= 0:
            return 0.0
        z = x / self._scale
        return math.erf(z / SQRT2) - math.sqrt(2 / math.pi) * z * math.exp(-0.5 * z * z)

    @property
    def mean(self):
        return 2 * self._scale * math.sqrt(2 / math.pi)

    @property
    def variance(self):
        return self._scale**2 * (3 * math.pi - 8) / math.pi

    @property
    def mode(self):
        return SQRT2 * self._scale

    @property
    def skewness(self):
        return 2 * SQRT2 * (16 - 5 * math.pi) / (3 * math.pi - 8)**1.5

    @property
    def excess_kurtosis(self):
        return 4 * (-96 + 40 * math.pi - 3 * math.pi**2) / (3 * math.pi - 8)**2


class Rayleigh(Chi):
    parameter_names = ("scale",)

    def __init__(self, scale=1.0):
        self.set_parameters(scale)

    def set_parameters(self, scale):
        super().set_parameters(2, scale)

    def pdf(self, x):
        if x <= 0:
            return 0.0
        y = x / self._scale**2
        return y * math.exp(-0.5 * x * y)

    def cdf(self, x):
        return -math.expm1(-0.5 * (x / self._scale)**2) if x > 0 else 0.0

    def survival(self, x):
        return math.exp(-0.5 * (x / self._scale)**2) if x > 0 else 1.0

    def _quantile(self, p):
        return self._scale * math.sqrt(-2 * math.log1p(-p))

    def _quantile_1m(self, p):
        return self._scale * math.sqrt(-2 * math.log(p))

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return self._scale * math.sqrt(2 * rng.standard_exponential())

    @property
    def mean(self):
        return self._scale * math.sqrt(0.5 * math.pi)

    @property
    def variance(self):
        return (2 - 0.5 * math.pi) * self._scale**2

    @property
    def median(self):
        return self._scale * math.sqrt(2 * math.log(2))

    @property
    def mode(self):
        return self._scale

    @property
    def skewness(self):
        return 2 * math.sqrt(math.pi) * (math.pi - 3) / (4 - math.pi)**1.5

    @property
    def excess_kurtosis(self):
        return -(6 * math.pi**2 - 24 * math.pi + 16) / (4 - math.pi)**2

    def fit_scale_mle(self, sample: Sequence[float]) -> bool:
        if not _all_non_negative(sample):
            return False
        self.scale = math.sqrt(0.5 * raw_moment(sample, 2))
        return True

    def fit_scale_umvu(self, sample: Sequence[float]) -> bool:
        """Maximum likelihood scale with the small-sample bias removed."""
        if not _all_non_negative(sample):
            return False
        n = len(sample)
        estimate = math.sqrt(0.5 * raw_moment(sample, 2))
        # Gamma(n) sqrt(n) / Gamma(n + 1/2), about 1 + 1/(8n)
        correction = math.exp(
            float(gammaln(n)) + 0.5 * math.log(n) - float(gammaln(n + 0.5))
        )
        self.scale = correction * estimate
        return True


class VonMises(ContinuousDistribution):
    """
    Circular distribution on ``[location - pi, location + pi]``. The CDF has
    no closed form and is integrated numerically, so quantiles use the
    bracketed root search of finite supports.
    """
    support_type = SupportType.FINITE
    parameter_names = ("location", "concentration")
    location = Parameter()
    concentration = Parameter()

    def __init__(self, location=0.0, concentration=1.0):
        self.set_parameters(location, concentration)

    def set_parameters(self, location, concentration):
        concentration = float(max(concentration, 0.0))
        # i0e(k) = exp(-k) I0(k)
        log_norm = math.log(2 * math.pi * float(i0e(concentration)))
        self._location = float(location)
        self._concentration = concentration
        self._log_norm = log_norm

    @property
    def min_value(self):
        return self._location - math.pi

    @property
    def max_value(self):
        return self._location + math.pi

    def pdf(self, x):
        if x < self.min_value or x > self.max_value:
            return 0.0
        return math.exp(
            self._concentration * (math.cos(x - self._location) - 1) - self._log_norm
        )

    def cdf(self, x):
        if x <= self.min_value:
            return 0.0
        if x >= self.max_value:
            return 1.0
        if x > self._location:
            # symmetric about the location
            return 1.0 - self.cdf(2 * self._location - x)
        return integral(self.pdf, self.min_value, x)

    def sample(self, rng : RandomNumberGenerator = default_rng) -> float:
        return von_mises_best_fisher(self._location, self._concentration, rng)

    @property
    def mean(self):
        return self._location

    @property
    def median(self):
        return self._location

    @property
    def mode(self):
        return self._location
