from distrib.numerics.roots import find_root, find_root_newton, find_min
from distrib.numerics.integration import integral, expectation
