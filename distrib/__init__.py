import logging

from distrib.distributions import *
from distrib.distributions.random import RandomNumberGenerator, default_rng
from distrib.numerics import find_root, find_root_newton, find_min, integral, expectation

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Core API
    'Distribution',
    'ContinuousDistribution',
    'DiscreteDistribution',
    'RandomNumberGenerator',
    'default_rng',
    'find_root',
    'find_root_newton',
    'find_min',
    'integral',
    'expectation',
    # Continuous
    'Uniform',
    'Normal',
    'Exponential',
    'Gamma',
    'ChiSquared',
    'Erlang',
    'Beta',
    'BetaPrime',
    'LogNormal',
    'Cauchy',
    'Nakagami',
    'Chi',
    'MaxwellBoltzmann',
    'Rayleigh',
    'VonMises',
    # Discrete
    'Poisson',
    'NegativeBinomial',
    'Pascal',
    'Polya',
    'Geometric',
    'Yule',
]
