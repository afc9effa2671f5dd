from distrib.distributions.base import Distribution, ContinuousDistribution, DiscreteDistribution
from distrib.distributions.random import RandomNumberGenerator, default_rng
from distrib.distributions.support import SupportType, ClosedInterval, IntegerInterval
from distrib.distributions.continuous import *
from distrib.distributions.discrete import *
