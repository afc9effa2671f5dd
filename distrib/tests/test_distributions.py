import cmath
import math
import pytest
import numpy as np
from scipy import stats

from distrib.distributions import (
    Distribution, ContinuousDistribution, DiscreteDistribution, RandomNumberGenerator,
    Uniform, Normal, Exponential, Gamma, ChiSquared, Erlang, Beta, BetaPrime,
    LogNormal, Cauchy, Nakagami, Chi, MaxwellBoltzmann, Rayleigh, VonMises,
    Poisson, NegativeBinomial, Pascal, Polya, Geometric, Yule,
)
from distrib.distributions.generators import GammaGenerator, BetaGenerator, GeometricGenerator, PoissonGenerator
from distrib.distributions.support import SupportType, ClosedInterval, IntegerInterval
from distrib.tools import isclose, MIN_POSITIVE

# (distribution, scipy equivalent)
continuous_pairs = [
    (Uniform(-1, 3), stats.uniform(-1, 4)),
    (Normal(1, 2), stats.norm(1, 2)),
    (Exponential(0.5), stats.expon(scale=2)),
    (Gamma(2.5, 2), stats.gamma(2.5, scale=0.5)),
    (Gamma(7.3, 0.5), stats.gamma(7.3, scale=2)),
    (ChiSquared(4), stats.chi2(4)),
    (Erlang(3, 1.5), stats.gamma(3, scale=1/1.5)),
    (Beta(2, 3), stats.beta(2, 3)),
    (BetaPrime(3, 4), stats.betaprime(3, 4)),
    (LogNormal(0.2, 0.5), stats.lognorm(0.5, scale=math.exp(0.2))),
    (Cauchy(1, 2), stats.cauchy(1, 2)),
    (Nakagami(1.5, 2), stats.nakagami(1.5, scale=math.sqrt(2))),
    (Chi(4, 1.5), stats.chi(4, scale=1.5)),
    (MaxwellBoltzmann(2), stats.maxwell(scale=2)),
    (Rayleigh(1.5), stats.rayleigh(scale=1.5)),
]
continuous_dists = [d for d, _ in continuous_pairs] + [VonMises(0.5, 2.0)]

discrete_pairs = [
    (Poisson(4.5), stats.poisson(4.5)),
    (Pascal(3, 0.35), stats.nbinom(3, 0.35)),
    (Polya(2.5, 0.3), stats.nbinom(2.5, 0.3)),
    (Geometric(0.3), stats.nbinom(1, 0.3)),
    (Yule(5.0), stats.yulesimon(5.0)),
]
discrete_dists = [d for d, _ in discrete_pairs]

def _interior_points(dist, n=9):
    return [dist.quantile(p) for p in np.linspace(0.05, 0.95, n)]

@pytest.mark.parametrize("dist, reference", continuous_pairs)
def test_continuous_against_reference(dist, reference):
    for x in reference.ppf([0.01, 0.1, 0.3, 0.5, 0.7, 0.9, 0.99]):
        assert isclose(dist.pdf(x), reference.pdf(x), rtol=1e-8, atol=1e-12)
        assert isclose(dist.cdf(x), reference.cdf(x), rtol=1e-8, atol=1e-12)
        assert isclose(dist.survival(x), reference.sf(x), rtol=1e-8, atol=1e-12)
        assert isclose(dist.log_pdf(x), reference.logpdf(x), rtol=1e-8, atol=1e-10)

@pytest.mark.parametrize("dist, reference", continuous_pairs)
def test_continuous_quantile_against_reference(dist, reference):
    for p in [0.01, 0.25, 0.5, 0.75, 0.99]:
        assert isclose(dist.quantile(p), reference.ppf(p), rtol=1e-6, atol=1e-12)
        assert isclose(dist.quantile_1m(p), reference.isf(p), rtol=1e-6, atol=1e-12)

@pytest.mark.parametrize("dist", continuous_dists)
def test_cdf_is_monotone(dist):
    xs = np.linspace(dist.quantile(0.001), dist.quantile(0.999), 200)
    values = [dist.cdf(x) for x in xs]
    assert all(a <= b for a, b in zip(values, values[1:]))
    assert dist.cdf(dist.min_value) == 0.0 or dist.min_value == float('-inf')

@pytest.mark.parametrize("dist", continuous_dists)
def test_density_integrates_to_one(dist):
    assert isclose(dist.expected_value(lambda x: 1.0), 1.0, rtol=1e-6)

@pytest.mark.parametrize("dist", continuous_dists)
def test_quantile_inverts_cdf(dist):
    for x in _interior_points(dist):
        assert isclose(dist.quantile(dist.cdf(x)), x, rtol=1e-6, atol=1e-12)
        assert isclose(dist.quantile_1m(dist.survival(x)), x, rtol=1e-6, atol=1e-12)

@pytest.mark.parametrize("dist", continuous_dists + discrete_dists)
def test_quantile_edges(dist):
    assert math.isnan(dist.quantile(-0.1))
    assert math.isnan(dist.quantile(1.1))
    assert dist.quantile(0.0) == dist.min_value
    assert dist.quantile(1.0) == dist.max_value

@pytest.mark.parametrize("dist", continuous_dists)
def test_quantile_1m_edges(dist):
    assert math.isnan(dist.quantile_1m(-0.1))
    assert dist.quantile_1m(0.0) == dist.max_value
    assert dist.quantile_1m(1.0) == dist.min_value

@pytest.mark.parametrize("dist", [
    Normal(1, 2), Exponential(0.5), Gamma(2.5, 2), Beta(2, 3), LogNormal(0, 0.25),
    Chi(4, 1.5), MaxwellBoltzmann(2), Rayleigh(1.5), Uniform(-1, 3), BetaPrime(3, 10),
    Nakagami(1.5, 2), ChiSquared(5),
])
def test_closed_form_moments_match_numerical(dist):
    assert isclose(dist.mean, ContinuousDistribution.mean.fget(dist), rtol=1e-6)
    assert isclose(dist.variance, ContinuousDistribution.variance.fget(dist), rtol=1e-6)
    assert isclose(dist.skewness, ContinuousDistribution.skewness.fget(dist), rtol=1e-5, atol=1e-6)
    if type(dist) not in (BetaPrime, Nakagami):
        assert isclose(
            dist.excess_kurtosis,
            ContinuousDistribution.excess_kurtosis.fget(dist),
            rtol=1e-5, atol=1e-6
        )

@pytest.mark.parametrize("dist", [
    Normal(1, 2), Gamma(2.5, 2), Beta(2, 3), LogNormal(0.2, 0.5), Nakagami(1.5, 2),
    Chi(4, 1.5), MaxwellBoltzmann(2), Rayleigh(1.5), BetaPrime(3, 4), Cauchy(1, 2),
    VonMises(0.5, 2.0),
])
def test_closed_form_mode_matches_numerical(dist):
    assert isclose(dist.mode, ContinuousDistribution.mode.fget(dist), rtol=1e-5, atol=1e-6)

def test_cauchy_moments():
    dist = Cauchy(1, 2)
    assert math.isnan(dist.mean)
    assert dist.variance == float('inf')
    assert dist.median == 1
    # numerical mode falls back to the median when the mean is undefined
    assert isclose(ContinuousDistribution.mode.fget(dist), 1.0, rtol=1e-5)

def test_von_mises_cdf():
    dist = VonMises(0.5, 2.0)
    assert isclose(dist.cdf(0.5), 0.5, atol=1e-9)
    assert dist.cdf(dist.min_value) == 0.0
    assert dist.cdf(dist.max_value) == 1.0
    assert isclose(dist.cdf(1.0) + dist.cdf(0.0), 1.0)
    assert isclose(dist.median, 0.5)
    assert isclose(dist.quantile(0.5), 0.5, atol=1e-8)

def test_pdf_boundaries():
    assert Gamma(0.5, 1).pdf(0) == float('inf')
    assert Gamma(1, 3).pdf(0) == 3
    assert Gamma(2, 1).pdf(0) == 0
    assert Gamma(2, 1).pdf(-1) == 0
    assert Beta(0.5, 2).pdf(0) == float('inf')
    assert Beta(1, 3).pdf(0) == 3
    assert Beta(2, 1).pdf(1) == 2
    assert Beta(2, 2).pdf(1.5) == 0
    assert LogNormal().pdf(0) == 0

def test_expected_value_with_singular_density():
    dist = Gamma(0.5, 1)
    assert isclose(dist.expected_value(), 0.5, rtol=1e-4)

def test_expected_value_restricted():
    dist = Exponential(1.0)
    value = dist.expected_value(lambda x: 1.0, lower=1.0, upper=2.0)
    assert isclose(value, math.exp(-1) - math.exp(-2), rtol=1e-8)

def test_continuous_hazard():
    dist = Exponential(0.5)
    assert dist.hazard(-1) == 0.0
    assert isclose(dist.hazard(3.0), 0.5)
    beta = Beta(2, 3)
    assert beta.hazard(-0.5) == 0.0
    assert math.isnan(beta.hazard(1.5))

@pytest.mark.parametrize("dist, reference", discrete_pairs)
def test_discrete_against_reference(dist, reference):
    for k in range(0, 30):
        assert isclose(dist.pmf(k), reference.pmf(k), rtol=1e-8, atol=1e-14)
        assert isclose(dist.cdf(k), reference.cdf(k), rtol=1e-8, atol=1e-14)
        assert isclose(dist.survival(k), reference.sf(k), rtol=1e-7, atol=1e-14)
    assert dist.pmf(2.5) == 0.0
    assert dist.pmf(-1) == 0.0
    assert dist.cdf(2.5) == dist.cdf(2)

@pytest.mark.parametrize("dist, reference", discrete_pairs)
def test_discrete_quantile(dist, reference):
    for p in [0.01, 0.1, 0.5, 0.9, 0.99]:
        assert dist.quantile(p) == reference.ppf(p)
    assert dist.median == reference.median()

@pytest.mark.parametrize("dist, reference", discrete_pairs)
def test_discrete_moments_match_summation(dist, reference):
    assert isclose(dist.mean, reference.mean(), rtol=1e-8)
    assert isclose(dist.variance, reference.var(), rtol=1e-6)
    assert isclose(DiscreteDistribution.mean.fget(dist), dist.mean, rtol=1e-8)
    assert isclose(DiscreteDistribution.variance.fget(dist), dist.variance, rtol=1e-6)
    assert dist.mode == DiscreteDistribution.mode.fget(dist)
    assert isclose(dist.expected_value(lambda k: 1.0), 1.0, rtol=1e-10)

def test_discrete_hazard():
    dist = Geometric(0.25)
    assert dist.hazard(-1) == 0.0
    # memoryless: constant hazard p / q
    assert isclose(dist.hazard(0), 0.25 / 0.75)
    assert isclose(dist.hazard(7), 0.25 / 0.75)

def test_geometric_entropy():
    p = 0.3
    assert isclose(Geometric(p).entropy, stats.geom(p).entropy())

def test_degenerate_negative_binomial():
    dist = Pascal(2, 1.0)
    assert dist.pmf(0) == 1.0
    assert dist.pmf(1) == 0.0
    assert dist.cdf(0) == 1.0
    assert dist.sample() == 0

def test_yule_moments():
    assert Yule(1.0).mean == float('inf')
    assert Yule(2.0).variance == float('inf')
    assert Yule(3.0).variance == 9 / 4

@pytest.mark.parametrize("dist", continuous_dists + discrete_dists)
def test_sample_n_and_fill(dist):
    rng = RandomNumberGenerator(seed=13)
    draws = dist.sample_n(50, rng)
    assert isinstance(draws, np.ndarray)
    assert draws.shape == (50,)
    assert all(dist.min_value <= x <= dist.max_value for x in draws)
    buffer = [None] * 20
    out = dist.fill(buffer, rng)
    assert out is buffer
    assert all(x is not None for x in buffer)

def test_fill_is_reproducible():
    a = Gamma(2.5, 1).fill([0.0] * 10, RandomNumberGenerator(seed=1))
    b = Gamma(2.5, 1).fill([0.0] * 10, RandomNumberGenerator(seed=1))
    assert a == b

def test_setters_recompute_regime():
    dist = Gamma(0.2, 1.0)
    assert dist._generator == GammaGenerator.SMALL_SHAPE
    dist.shape = 5.0
    assert dist._generator == GammaGenerator.MARSAGLIA_TSANG
    assert dist.parameters == (5.0, 1.0)
    assert isclose(dist.mean, 5.0)
    dist.rate = 2.0
    assert isclose(dist.pdf(1.0), stats.gamma(5.0, scale=0.5).pdf(1.0))

    beta = Beta(0.5, 0.5)
    assert beta._generator == BetaGenerator.JOHNK
    beta.alpha = 0.5
    beta.beta = 3.0
    assert beta._generator == BetaGenerator.GAMMA_RATIO

    geometric = Geometric(0.5)
    assert geometric._geometric_generator == GeometricGenerator.TABLE
    geometric.p = 0.01
    assert geometric._geometric_generator == GeometricGenerator.EXPONENTIAL
    assert isclose(geometric.mean, 99.0)

    poisson = Poisson(5)
    assert poisson._generator == PoissonGenerator.INVERSION
    poisson.rate = 50
    assert poisson._generator == PoissonGenerator.TRANSFORMED_REJECTION

def test_subfamily_setters():
    rayleigh = Rayleigh(1.0)
    rayleigh.scale = 2.0
    assert rayleigh.parameters == (2.0,)
    assert isclose(rayleigh.cdf(1.0), stats.rayleigh(scale=2.0).cdf(1.0))
    chi2 = ChiSquared(3)
    chi2.degree = 6
    assert chi2.parameters == (6,)
    assert isclose(chi2.mean, 6.0)
    erlang = Erlang(2.6, 1.0)
    assert erlang.shape == 3

def test_parameter_clamping():
    assert Gamma(-1, 1).shape == MIN_POSITIVE
    assert Exponential(0).rate == MIN_POSITIVE
    assert Normal(0, -1).sigma == MIN_POSITIVE
    assert Nakagami(0.1, 1).shape == 0.5
    assert Nakagami(1, -1).spread == 1.0
    assert Chi(0, 1).degree == 1
    assert VonMises(0, -2).concentration == 0.0
    assert Pascal(3, 1.5).p == 1.0
    assert Pascal(3, -0.5).p == MIN_POSITIVE
    assert Pascal(2.6, 0.5).number == 3
    assert Polya(2.6, 0.5).number == 2.6
    uniform = Uniform(2, 1)
    assert uniform.high > uniform.low

def test_support():
    assert Gamma(2, 1).support == ClosedInterval(0, float('inf'))
    assert Gamma.support_type == SupportType.RIGHT_SEMI_INFINITE
    assert 3 in Poisson(2).support
    assert 2.5 not in Poisson(2).support
    assert isinstance(Poisson(2).support, IntegerInterval)
    assert VonMises(1, 1).support == ClosedInterval(1 - math.pi, 1 + math.pi)
    assert SupportType.from_bounds(0, float('inf')) == SupportType.RIGHT_SEMI_INFINITE
    assert SupportType.from_bounds(float('-inf'), 0) == SupportType.LEFT_SEMI_INFINITE
    assert SupportType.from_bounds(float('-inf'), float('inf')) == SupportType.INFINITE
    assert SupportType.from_bounds(0, 1) == SupportType.FINITE

def test_likelihood():
    dist = Normal(0, 1)
    sample = [-0.5, 0.1, 1.2]
    assert isclose(dist.log_likelihood(sample), sum(stats.norm.logpdf(sample)))
    assert isclose(dist.likelihood(sample), math.exp(sum(stats.norm.logpdf(sample))))
    assert isclose(Poisson(2).log_likelihood([0, 1, 4]), sum(stats.poisson(2).logpmf([0, 1, 4])))

def test_isclose_and_repr():
    assert Gamma(2, 1).isclose(Gamma(2, 1 + 1e-9))
    assert not Gamma(2, 1).isclose(Gamma(2, 1.1))
    assert not Gamma(2, 1).isclose(Erlang(2, 1))
    assert repr(Gamma(2.0, 1.0)) == "Gamma(2.0, 1.0)"

def test_distribution_bool():
    with pytest.raises(ValueError):
        bool(Normal())

def test_log_probability_and_prob():
    assert isclose(Normal(1, 2).log_probability(0.5), stats.norm(1, 2).logpdf(0.5))
    assert isclose(Normal(1, 2).prob(0.5), stats.norm(1, 2).pdf(0.5))
    assert isclose(Poisson(3).log_probability(2), stats.poisson(3).logpmf(2))
    assert isclose(Poisson(3).prob(2), stats.poisson(3).pmf(2))

@pytest.mark.parametrize("dist", [
    Normal(1, 2), Exponential(0.5), Gamma(2.5, 2), ChiSquared(4), Erlang(3, 1.5),
    Poisson(4.5), Pascal(3, 0.35), Polya(2.5, 0.3), Geometric(0.3),
])
def test_closed_form_characteristic_function_matches_numerical(dist):
    assert dist.characteristic_function(0.0) == 1
    for t in [-1.3, 0.4, 1.0]:
        closed = dist.characteristic_function(t)
        numerical = Distribution.characteristic_function(dist, t)
        assert isclose(closed.real, numerical.real, rtol=1e-6, atol=1e-8)
        assert isclose(closed.imag, numerical.imag, rtol=1e-6, atol=1e-8)

def test_numerical_characteristic_function():
    low, high, t = -1.0, 3.0, 0.7
    expected = (cmath.exp(1j * t * high) - cmath.exp(1j * t * low)) / (1j * t * (high - low))
    value = Uniform(low, high).characteristic_function(t)
    assert isclose(value.real, expected.real, atol=1e-9)
    assert isclose(value.imag, expected.imag, atol=1e-9)
    # the derivative at zero is i times the mean
    h = 1e-3
    dist = Beta(2, 3)
    slope = (dist.characteristic_function(h) - dist.characteristic_function(-h)) / (2 * h)
    assert isclose(slope.imag, dist.mean, rtol=1e-5)

def test_hazard_where_survival_vanishes():
    # no density left at the end of a finite support
    assert math.isnan(Beta(2, 3).hazard(1.0))
    assert Uniform(0, 1).hazard(1.0) == float('inf')
    # density and survival both underflow in the tail
    assert math.isnan(Normal(0, 1).hazard(40.0))
    assert math.isnan(Poisson(2).hazard(1000))
    # constant hazards stay exact
    assert Exponential(1.0).hazard(1000.0) == 1.0
    assert Geometric(0.5).hazard(2000) == 1.0
    assert Geometric(0.5).hazard(2.5) == 0.0

@pytest.mark.parametrize("dist, reference, p", [
    (Gamma(0.05, 1), stats.gamma(0.05), 0.3),
    (Gamma(0.3, 1), stats.gamma(0.3), 0.001),
    (Nakagami(0.5, 1), stats.nakagami(0.5), 1e-6),
    (Beta(0.05, 0.3), stats.beta(0.05, 0.3), 0.01),
    (BetaPrime(0.5, 0.5), stats.betaprime(0.5, 0.5), 1e-9),
])
def test_quantile_far_below_one(dist, reference, p):
    x = dist.quantile(p)
    assert isclose(x, reference.ppf(p), rtol=1e-6, atol=0)
    assert isclose(dist.cdf(x), p, rtol=1e-6, atol=0)

def test_quantile_1m_far_below_one():
    assert isclose(Gamma(0.05, 1).quantile_1m(0.9), stats.gamma(0.05).isf(0.9), rtol=1e-6, atol=0)
    assert isclose(Gamma(0.3, 1).quantile_1m(0.999), stats.gamma(0.3).isf(0.999), rtol=1e-6, atol=0)

def test_beta_prime_tail_quantiles():
    # X / (1 + X) is arcsine distributed: P(X <= x) = 2 / pi * atan(sqrt(x))
    def lower(u):
        return math.tan(0.5 * math.pi * u)**2
    def upper(q):
        return 1 / math.tan(0.5 * math.pi * q)**2
    dist = BetaPrime(0.5, 0.5)
    p = 1 - 1e-9
    assert isclose(dist.quantile(p), upper(1 - p), rtol=1e-6)
    assert isclose(dist.quantile_1m(1e-9), upper(1e-9), rtol=1e-6)
    assert isclose(dist.quantile_1m(p), lower(1 - p), rtol=1e-6, atol=0)
    assert isclose(dist.survival(1e17), 2 / math.pi * math.atan(1 / math.sqrt(1e17)), rtol=1e-8)

@pytest.mark.parametrize("dist, name", [
    (Geometric(0.3), "number"),
    (ChiSquared(3), "shape"),
    (ChiSquared(3), "rate"),
    (Rayleigh(2.0), "degree"),
    (MaxwellBoltzmann(2.0), "degree"),
])
def test_parameters_fixed_by_the_family_are_read_only(dist, name):
    before = dist.parameters
    value = getattr(dist, name)
    with pytest.raises(AttributeError):
        setattr(dist, name, 7)
    assert dist.parameters == before
    assert getattr(dist, name) == value
