"""
Root finding and one-dimensional minimization.

All routines report failure with ``nan`` instead of raising, so callers such as
quantile functions can propagate the sentinel directly.
"""

import logging
import math
import sys
from typing import Callable, Tuple

from distrib.tools import (
    ROOT_XTOL, ROOT_RTOL, NEWTON_RTOL, MAX_ROOT_ITERATIONS, MAX_NEWTON_HALVINGS,
    MIN_TOL, MAX_MIN_ITERATIONS,
)

log = logging.getLogger(__name__)

EPSILON = sys.float_info.epsilon
GOLDEN_RATIO = 0.5 * (1 + math.sqrt(5))
# 2 - golden ratio
GOLDEN_SECTION = 0.5 * (3 - math.sqrt(5))
# largest magnification allowed for a parabolic step during bracketing
MAX_PARABOLIC_MAGNIFICATION = 100.0
TINY = 1e-20


def find_root(
    func: Callable[[float], float],
    lower: float,
    upper: float,
    *,
    xtol: float = ROOT_XTOL,
    rtol: float = ROOT_RTOL,
    max_iterations: int = MAX_ROOT_ITERATIONS,
) -> float:
    """
    Find a root of ``func`` inside ``[lower, upper]`` with Brent's method.

    Inverse quadratic interpolation (or the secant step when only two
    points are distinct) is tried first; whenever the interpolated point
    falls outside the current bracket or fails to halve the step taken two
    iterations earlier, a bisection step is taken instead.

    Parameters
    ----------
    func
        Continuous function of one variable
    lower, upper
        The bracket. ``func(lower)`` and ``func(upper)`` must differ in sign
        or one of them must be exactly zero.
    xtol, rtol
        Absolute and relative tolerance on the root. The bracket is narrowed
        until its half-width is below ``xtol + rtol * |root|``.
    max_iterations
        Iteration budget

    Returns
    -------
    The root, or ``nan`` if the bracket is invalid or the budget is exhausted.
    """
    a, b = float(lower), float(upper)
    fa, fb = func(a), func(b)
    if math.isnan(fa) or math.isnan(fb):
        log.debug(f"find_root: function is nan at a bracket end ({a}, {b})")
        return float('nan')
    if fa == 0:
        return a
    if fb == 0:
        return b
    if (fa > 0) == (fb > 0):
        log.debug(f"find_root: [{a}, {b}] does not bracket a root")
        return float('nan')

    c, fc = b, fb
    d = e = b - a
    for _ in range(max_iterations):
        if (fb > 0) == (fc > 0):
            # b and c must always straddle the root
            c, fc = a, fa
            d = e = b - a
        if abs(fc) < abs(fb):
            a, b, c = b, c, b
            fa, fb, fc = fb, fc, fb
        tol = 2 * EPSILON * abs(b) + 0.5 * (xtol + rtol * abs(b))
        half_width = 0.5 * (c - b)
        if abs(half_width) <= tol or fb == 0:
            return b
        if abs(e) >= tol and abs(fa) > abs(fb):
            s = fb / fa
            if a == c:
                p = 2 * half_width * s
                q = 1 - s
            else:
                q = fa / fc
                r = fb / fc
                p = s * (2 * half_width * q * (q - r) - (b - a) * (r - 1))
                q = (q - 1) * (r - 1) * (s - 1)
            if p > 0:
                q = -q
            p = abs(p)
            if 2 * p < min(3 * half_width * q - abs(tol * q), abs(e * q)):
                e, d = d, p / q
            else:
                d = e = half_width
        else:
            d = e = half_width
        a, fa = b, fb
        b += d if abs(d) > tol else math.copysign(tol, half_width)
        fb = func(b)
        if math.isnan(fb):
            log.debug(f"find_root: function is nan at {b}")
            return float('nan')
    log.debug(f"find_root: no convergence after {max_iterations} iterations")
    return float('nan')


def find_root_newton(
    func: Callable[[float], Tuple[float, float]],
    guess: float,
    *,
    lower: float = float('-inf'),
    upper: float = float('inf'),
    xtol: float = NEWTON_RTOL,
    atol: float = ROOT_XTOL,
    max_iterations: int = MAX_ROOT_ITERATIONS,
) -> float:
    """
    Newton's method without a bracket.

    ``func(x)`` returns the pair ``(value, derivative)``. The iterate is kept
    inside the open interval ``(lower, upper)``: a step that would cross a
    domain edge is halved until it lands inside. The search fails when the
    derivative vanishes or is not finite, when halving cannot bring the step
    back inside the domain, or when the iteration budget runs out.
    Convergence is declared once a step is below ``xtol * |x| + atol``.

    Returns
    -------
    The root, or ``nan`` on failure.
    """
    x = float(guess)
    if not lower < x < upper:
        log.debug(f"find_root_newton: initial guess {x} outside ({lower}, {upper})")
        return float('nan')
    for _ in range(max_iterations):
        value, derivative = func(x)
        if value == 0:
            return x
        if not (math.isfinite(value) and math.isfinite(derivative)):
            log.debug(f"find_root_newton: non-finite evaluation at {x}")
            return float('nan')
        if abs(derivative) <= TINY * abs(value):
            log.debug(f"find_root_newton: vanishing derivative at {x}")
            return float('nan')
        step = value / derivative
        candidate = x - step
        for _ in range(MAX_NEWTON_HALVINGS):
            if lower < candidate < upper:
                break
            step *= 0.5
            candidate = x - step
        else:
            log.debug(f"find_root_newton: step from {x} keeps leaving ({lower}, {upper})")
            return float('nan')
        x = candidate
        if abs(step) <= xtol * abs(x) + atol:
            return x
    log.debug(f"find_root_newton: no convergence after {max_iterations} iterations")
    return float('nan')


def _bracket_minimum(func, a, b, max_iterations):
    """
    Walk downhill from ``a`` towards ``b`` with golden-ratio steps and
    parabolic extrapolation until ``f(b)`` is below both neighbours.
    """
    fa, fb = func(a), func(b)
    if fb > fa:
        a, b = b, a
        fa, fb = fb, fa
    c = b + GOLDEN_RATIO * (b - a)
    fc = func(c)
    for _ in range(max_iterations):
        if fb <= fc:
            break
        r = (b - a) * (fb - fc)
        q = (b - c) * (fb - fa)
        denom = 2 * math.copysign(max(abs(q - r), TINY), q - r)
        u = b - ((b - c) * q - (b - a) * r) / denom
        u_limit = b + MAX_PARABOLIC_MAGNIFICATION * (c - b)
        if (b - u) * (u - c) > 0:
            fu = func(u)
            if fu < fc:
                return b, u, c, fb, fu, fc
            if fu > fb:
                return a, b, u, fa, fb, fu
            u = c + GOLDEN_RATIO * (c - b)
            fu = func(u)
        elif (c - u) * (u - u_limit) > 0:
            fu = func(u)
            if fu < fc:
                b, c, u = c, u, u + GOLDEN_RATIO * (u - c)
                fb, fc, fu = fc, fu, func(u)
        elif (u - u_limit) * (u_limit - c) >= 0:
            u = u_limit
            fu = func(u)
        else:
            u = c + GOLDEN_RATIO * (c - b)
            fu = func(u)
        a, b, c = b, c, u
        fa, fb, fc = fb, fc, fu
    return a, b, c, fa, fb, fc


def find_min(
    func: Callable[[float], float],
    guess: float,
    *,
    step: float = None,
    tol: float = MIN_TOL,
    max_iterations: int = MAX_MIN_ITERATIONS,
) -> Tuple[float, float]:
    """
    Local minimum of ``func`` near ``guess``.

    The bracket is first expanded downhill from ``guess``; Brent's
    combination of parabolic interpolation and golden-section search then
    refines it. ``nan`` values are treated as ``+inf``.

    Returns
    -------
    ``(x, func(x))``. If the budget runs out the best point seen is
    returned, and the result is never worse than the starting guess.
    """
    def f(x):
        y = func(x)
        return float('inf') if math.isnan(y) else y

    x0 = float(guess)
    f0 = f(x0)
    if step is None:
        step = 1e-3 * abs(x0) if x0 != 0 else 1e-3
    a, b, c, fa, fb, fc = _bracket_minimum(f, x0, x0 + step, max_iterations)
    x, fx = _brent_minimize(f, a, b, c, fb, tol, max_iterations)
    if fx > f0:
        return x0, f0
    return x, fx


def _brent_minimize(func, a, b, c, fb, tol, max_iterations):
    lo, hi = min(a, c), max(a, c)
    x = w = v = b
    fx = fw = fv = fb
    d = e = 0.0
    for _ in range(max_iterations):
        mid = 0.5 * (lo + hi)
        tol1 = tol * abs(x) + TINY
        tol2 = 2 * tol1
        if abs(x - mid) <= tol2 - 0.5 * (hi - lo):
            return x, fx
        golden = True
        if abs(e) > tol1:
            r = (x - w) * (fx - fv)
            q = (x - v) * (fx - fw)
            p = (x - v) * q - (x - w) * r
            q = 2 * (q - r)
            if q > 0:
                p = -p
            q = abs(q)
            previous_e = e
            e = d
            if abs(p) < abs(0.5 * q * previous_e) and q * (lo - x) < p < q * (hi - x):
                d = p / q
                u = x + d
                if u - lo < tol2 or hi - u < tol2:
                    d = math.copysign(tol1, mid - x)
                golden = False
        if golden:
            e = (lo - x) if x >= mid else (hi - x)
            d = GOLDEN_SECTION * e
        u = x + d if abs(d) >= tol1 else x + math.copysign(tol1, d)
        fu = func(u)
        if fu <= fx:
            if u >= x:
                lo = x
            else:
                hi = x
            v, w, x = w, x, u
            fv, fw, fx = fw, fx, fu
        else:
            if u < x:
                lo = u
            else:
                hi = u
            if fu <= fw or w == x:
                v, w = w, u
                fv, fw = fw, fu
            elif fu <= fv or v == x or v == w:
                v, fv = u, fu
    log.debug(f"find_min: budget of {max_iterations} iterations exhausted near {x}")
    return x, fx
