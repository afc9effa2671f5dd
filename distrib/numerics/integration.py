"""
Numerical integration.

``integral`` is a globally adaptive 7/15-point Gauss-Kronrod scheme in the
spirit of QUADPACK's QAG: the subinterval with the largest error estimate is
bisected until the requested tolerance is met. All nodes lie strictly inside
each subinterval, so the integrand is never evaluated at the bounds.

``expectation`` maps semi-infinite and infinite ranges onto finite ones.
"""

import heapq
import logging
import math
from typing import Callable

from distrib.distributions.support import SupportType
from distrib.tools import INTEGRAL_EPSABS, INTEGRAL_EPSREL, INTEGRAL_LIMIT

log = logging.getLogger(__name__)

# Kronrod abscissae on [-1, 1]; the odd-indexed ones are the 7-point Gauss nodes
KRONROD_NODES = (
    0.991455371120812639206854697526329,
    0.949107912342758524526189684047851,
    0.864864423359769072789712788640926,
    0.741531185599394439863864773280788,
    0.586087235467691130294144845693013,
    0.405845151377397166906606412076961,
    0.207784955007898467600689403773245,
    0.000000000000000000000000000000000,
)
KRONROD_WEIGHTS = (
    0.022935322010529224963732008058970,
    0.063092092629978553290700663189204,
    0.104790010322250183839876322541518,
    0.140653259715525918745189590510238,
    0.169004726639267902826583426598550,
    0.190350578064785409913256402421014,
    0.204432940075298892414161999234649,
    0.209482141084727828012999174891714,
)
GAUSS_WEIGHTS = (
    0.129484966168869693270611432679082,
    0.279705391489276667901467771423780,
    0.381830050505118944950369775488975,
    0.417959183673469387755102040816327,
)


def _gauss_kronrod(func, a, b):
    center = 0.5 * (a + b)
    half_length = 0.5 * (b - a)
    f_center = func(center)
    kronrod = f_center * KRONROD_WEIGHTS[7]
    gauss = f_center * GAUSS_WEIGHTS[3]
    for j in range(7):
        dx = half_length * KRONROD_NODES[j]
        pair = func(center - dx) + func(center + dx)
        kronrod += KRONROD_WEIGHTS[j] * pair
        if j % 2 == 1:
            gauss += GAUSS_WEIGHTS[j // 2] * pair
    kronrod *= half_length
    gauss *= half_length
    return kronrod, abs(kronrod - gauss)


def integral(
    func: Callable[[float], float],
    lower: float,
    upper: float,
    *,
    epsabs: float = INTEGRAL_EPSABS,
    epsrel: float = INTEGRAL_EPSREL,
    limit: int = INTEGRAL_LIMIT,
) -> float:
    """
    Definite integral of ``func`` over the finite interval ``[lower, upper]``.

    Parameters
    ----------
    func
        Integrand; it is only evaluated strictly inside the interval
    lower, upper
        Finite bounds. Reversed bounds give the negated integral.
    epsabs, epsrel
        Absolute and relative error targets
    limit
        Maximum number of subintervals

    Returns
    -------
    The integral estimate, or ``nan`` if a bound is not finite. If the
    tolerance is not reached within ``limit`` subintervals the best estimate
    is returned.
    """
    if not (math.isfinite(lower) and math.isfinite(upper)):
        return float('nan')
    if lower == upper:
        return 0.0
    if lower > upper:
        return -integral(func, upper, lower, epsabs=epsabs, epsrel=epsrel, limit=limit)

    value, error = _gauss_kronrod(func, lower, upper)
    heap = [(-error, lower, upper, value)]
    total, total_error = value, error
    while total_error > max(epsabs, epsrel * abs(total)):
        if len(heap) >= limit:
            log.debug(
                f"integral: {limit} subintervals used on [{lower}, {upper}], "
                f"error estimate {total_error:.3g}"
            )
            break
        neg_error, a, b, value = heapq.heappop(heap)
        mid = 0.5 * (a + b)
        if not a < mid < b:
            # interval is below floating point resolution
            heapq.heappush(heap, (neg_error, a, b, value))
            log.debug(f"integral: cannot subdivide [{a}, {b}] further")
            break
        left, left_error = _gauss_kronrod(func, a, mid)
        right, right_error = _gauss_kronrod(func, mid, b)
        heapq.heappush(heap, (-left_error, a, mid, left))
        heapq.heappush(heap, (-right_error, mid, b, right))
        total += left + right - value
        total_error += left_error + right_error + neg_error
    return math.fsum(item[3] for item in heap)


def expectation(
    integrand: Callable[[float], float],
    lower: float,
    upper: float,
    **kws
) -> float:
    """
    Integrate ``integrand`` (typically ``g(x) * f(x)``) over a possibly
    unbounded ``[lower, upper]``.

    The substitution is chosen from the bounds:

    - finite: direct integration
    - bounded below: ``x = lower + t/(1-t)`` over ``t`` in ``[0, 1)``
    - bounded above: ``x = upper - (1-t)/t`` over ``t`` in ``(0, 1]``
    - unbounded: ``x = t/(1-t^2)`` over ``t`` in ``(-1, 1)``

    At the end of the transformed interval that maps to infinity the
    transformed integrand is defined to be exactly 0.
    """
    if lower >= upper:
        return 0.0
    support_type = SupportType.from_bounds(lower, upper)

    if support_type == SupportType.FINITE:
        return integral(integrand, lower, upper, **kws)

    if support_type == SupportType.RIGHT_SEMI_INFINITE:
        def transformed(t):
            if t >= 1.0:
                return 0.0
            denom = 1.0 - t
            y = integrand(lower + t / denom)
            return 0.0 if y == 0 else y / (denom * denom)
        return integral(transformed, 0.0, 1.0, **kws)

    if support_type == SupportType.LEFT_SEMI_INFINITE:
        def transformed(t):
            if t <= 0.0:
                return 0.0
            y = integrand(upper - (1.0 - t) / t)
            return 0.0 if y == 0 else y / (t * t)
        return integral(transformed, 0.0, 1.0, **kws)

    def transformed(t):
        if abs(t) >= 1.0:
            return 0.0
        t2 = t * t
        denom = 1.0 - t2
        y = integrand(t / denom)
        return 0.0 if y == 0 else y * (1.0 + t2) / (denom * denom)
    return integral(transformed, -1.0, 1.0, **kws)
