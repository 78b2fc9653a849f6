"""
Core mathematical functions for fractal iteration.

This module provides the complex arithmetic primitives, the escape and
convergence tests, the sampling grid and the per-kind iteration functions
shared by every escape-time fractal. All arithmetic is plain IEEE-754 double
precision on ``(re, im)`` tuples so results are identical on every platform.
"""

import math
import numpy as np
from typing import Iterator, Optional, Tuple
import logging

from .errors import InvalidBudgetError, InvalidDomainError

logger = logging.getLogger(__name__)

Complex = Tuple[float, float]

# Radius-2 escape threshold, compared against |z|^2
ESCAPE_RADIUS_SQ = 4.0

# Per-component step size below which a Newton iteration has converged
NEWTON_TOLERANCE = 1e-6

# Slack added to (max - min) / step so a bound that is an exact multiple of
# the step is still sampled despite rounding in the division
AXIS_TOLERANCE = 1e-9


def complex_add(a: Complex, b: Complex) -> Complex:
    """Return a + b."""
    return (a[0] + b[0], a[1] + b[1])


def complex_sub(a: Complex, b: Complex) -> Complex:
    """Return a - b."""
    return (a[0] - b[0], a[1] - b[1])


def complex_mul(a: Complex, b: Complex) -> Complex:
    """Return a * b as (ac - bd, ad + bc)."""
    return (a[0] * b[0] - a[1] * b[1], a[0] * b[1] + a[1] * b[0])


def complex_square(z: Complex) -> Complex:
    """Return z * z."""
    return complex_mul(z, z)


def complex_scale(z: Complex, factor: float) -> Complex:
    """Multiply both components of z by a real factor."""
    return (factor * z[0], factor * z[1])


def complex_conj(z: Complex) -> Complex:
    """Return the complex conjugate of z."""
    return (z[0], -z[1])


def complex_div(a: Complex, b: Complex) -> Optional[Complex]:
    """
    Divide a by b.

    Args:
        a: Numerator
        b: Denominator

    Returns:
        The quotient, or None when |b|^2 is exactly zero. Callers treat None
        as a degenerate step and stop iterating rather than failing.
    """
    denom = b[0] * b[0] + b[1] * b[1]
    if denom == 0.0:
        return None
    return ((a[0] * b[0] + a[1] * b[1]) / denom,
            (a[1] * b[0] - a[0] * b[1]) / denom)


def complex_pow(z: Complex, degree: int) -> Complex:
    """
    Raise z to a positive integer power by repeated multiplication.

    The product is built as z * z * ... (degree - 1 multiplications), so the
    rounding matches a left-to-right hand expansion. ``degree`` must be >= 1;
    the Multibrot parameters enforce that before any sampling starts.
    """
    result = z
    for _ in range(degree - 1):
        result = complex_mul(result, z)
    return result


def abs_squared(z: Complex) -> float:
    """Return |z|^2."""
    return z[0] * z[0] + z[1] * z[1]


def is_bounded(z: Complex) -> bool:
    """True while z is still inside the escape radius."""
    return abs_squared(z) <= ESCAPE_RADIUS_SQ


def has_converged(step: Complex, tolerance: float = NEWTON_TOLERANCE) -> bool:
    """True when both components of a Newton step are below tolerance."""
    return abs(step[0]) < tolerance and abs(step[1]) < tolerance


def validate_budget(value, name: str = 'max_iter') -> int:
    """
    Check that an iteration or point budget is a positive integer.

    Args:
        value: Budget to check
        name: Parameter name used in the error message

    Returns:
        The budget as a plain int
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidBudgetError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidBudgetError(f"{name} must be positive, got {value}")
    return int(value)


def _as_finite(value, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise InvalidDomainError(f"{name} must be numeric, got {value!r}") from None
    if not math.isfinite(result):
        raise InvalidDomainError(f"{name} must be finite, got {value!r}")
    return result


def axis_count(lower: float, upper: float, step: float) -> int:
    """Number of samples lower + i * step that do not pass upper."""
    return int(math.floor((upper - lower) / step + AXIS_TOLERANCE)) + 1


class SampleGrid:
    """
    Rectangular sampling domain with fixed step sizes.

    Samples sit at ``xmin + i * dx`` and ``ymin + j * dy``. Coordinates are
    computed by multiplication from the lower bound rather than by repeated
    addition, so the number of samples and their values do not depend on
    accumulated rounding. The upper bound is included when it lies on the
    step lattice (within ``AXIS_TOLERANCE`` of a step).

    For the Lyapunov fractal the axes are the logistic parameters ``a`` and
    ``b`` instead of the complex plane.
    """

    def __init__(self, xmin: float, xmax: float, ymin: float, ymax: float,
                 dx: float, dy: float, columns: Optional[Tuple[int, int]] = None):
        """
        Initialize grid bounds and steps.

        Args:
            xmin, xmax: Horizontal bounds
            ymin, ymax: Vertical bounds
            dx, dy: Step sizes along each axis
            columns: Optional (start, stop) column index range restricting the
                grid to a vertical strip of the full lattice
        """
        self.xmin = _as_finite(xmin, 'xmin')
        self.xmax = _as_finite(xmax, 'xmax')
        self.ymin = _as_finite(ymin, 'ymin')
        self.ymax = _as_finite(ymax, 'ymax')
        self.dx = _as_finite(dx, 'dx')
        self.dy = _as_finite(dy, 'dy')

        if self.xmin >= self.xmax or self.ymin >= self.ymax:
            raise InvalidDomainError("Invalid bounds: min values must be less than max values")
        if self.dx <= 0 or self.dy <= 0:
            raise InvalidDomainError("Step sizes must be positive")

        full_columns = axis_count(self.xmin, self.xmax, self.dx)
        if columns is None:
            columns = (0, full_columns)
        start, stop = columns
        if not 0 <= start < stop <= full_columns:
            raise InvalidDomainError(f"Column range {columns} outside 0..{full_columns}")

        self.column_start = start
        self.column_stop = stop
        self.x_count = stop - start
        self.y_count = axis_count(self.ymin, self.ymax, self.dy)

    @property
    def size(self) -> int:
        """Total number of samples in the grid."""
        return self.x_count * self.y_count

    def x_values(self) -> np.ndarray:
        """Horizontal sample coordinates of this grid (or strip)."""
        indices = np.arange(self.column_start, self.column_stop, dtype=np.float64)
        return self.xmin + indices * self.dx

    def y_values(self) -> np.ndarray:
        """Vertical sample coordinates."""
        return self.ymin + np.arange(self.y_count, dtype=np.float64) * self.dy

    def points(self) -> Iterator[Tuple[float, float]]:
        """Yield every (x, y) sample in row-major order, x outermost."""
        ys = self.y_values().tolist()
        for x in self.x_values().tolist():
            for y in ys:
                yield x, y

    def column_slice(self, start: int, stop: int) -> 'SampleGrid':
        """
        Return the strip of columns [start, stop) of this grid.

        Indices are relative to this grid. The strip shares the parent's
        lattice so its coordinates are bit-identical to the parent's.
        """
        absolute = (self.column_start + start, self.column_start + stop)
        return SampleGrid(self.xmin, self.xmax, self.ymin, self.ymax,
                          self.dx, self.dy, columns=absolute)

    def __repr__(self) -> str:
        return (f"SampleGrid(x=[{self.xmin}, {self.xmax}] step {self.dx}, "
                f"y=[{self.ymin}, {self.ymax}] step {self.dy}, "
                f"{self.x_count}x{self.y_count})")


class FractalIterator:
    """
    Per-point iteration functions for every grid-based fractal.

    Escape-time methods return the number of updates performed before the
    orbit left the radius-2 disc, capped at ``max_iter``. A point that
    escapes on its first update returns 1; a point that never escapes
    returns ``max_iter``.
    """

    def __init__(self, max_iter: int = 100):
        """
        Initialize fractal iterator.

        Args:
            max_iter: Maximum number of iterations per sample
        """
        self.max_iter = validate_budget(max_iter, 'max_iter')

    def _escape_time(self, z: Complex, step) -> int:
        n = 0
        while n < self.max_iter and is_bounded(z):
            z = step(z)
            n += 1
        return n

    def mandelbrot(self, x: float, y: float) -> int:
        """z <- z^2 + c with c = (x, y), z0 = 0."""
        c = (x, y)
        return self._escape_time((0.0, 0.0), lambda z: complex_add(complex_square(z), c))

    def julia(self, x: float, y: float, c: Complex) -> int:
        """z <- z^2 + c with z0 = (x, y)."""
        return self._escape_time((x, y), lambda z: complex_add(complex_square(z), c))

    def burning_ship(self, x: float, y: float) -> int:
        """z <- (|Re z| + i|Im z|)^2 + c."""
        c = (x, y)

        def step(z):
            folded = (abs(z[0]), abs(z[1]))
            return complex_add(complex_square(folded), c)

        return self._escape_time((0.0, 0.0), step)

    def tricorn(self, x: float, y: float) -> int:
        """z <- conj(z)^2 + c."""
        c = (x, y)
        return self._escape_time((0.0, 0.0),
                                 lambda z: complex_add(complex_square(complex_conj(z)), c))

    def buffalo(self, x: float, y: float) -> int:
        """Re' = |Re z|^2 - |Im z|^2 + x, Im' = 2|Re z||Im z| + y."""

        def step(z):
            ar, ai = abs(z[0]), abs(z[1])
            return (ar * ar - ai * ai + x, 2.0 * ar * ai + y)

        return self._escape_time((0.0, 0.0), step)

    def phoenix(self, x: float, y: float, p: float) -> int:
        """
        z <- z^2 + p * z_prev + c, tracking the previous value of z.

        Both z and z_prev start at the origin; c is the sample point.
        """
        c = (x, y)
        z = (0.0, 0.0)
        z_prev = (0.0, 0.0)
        n = 0
        while n < self.max_iter and is_bounded(z):
            z, z_prev = complex_add(complex_add(complex_square(z), complex_scale(z_prev, p)), c), z
            n += 1
        return n

    def magnet(self, x: float, y: float) -> int:
        """
        Magnet type I: z <- ((z^2 + c - 1) / (2z + c - 2))^2.

        A zero denominator ends the orbit early with the current count.
        """
        c = (x, y)
        z = (0.0, 0.0)
        n = 0
        while n < self.max_iter and is_bounded(z):
            numerator = complex_sub(complex_add(complex_square(z), c), (1.0, 0.0))
            denominator = complex_sub(complex_add(complex_scale(z, 2.0), c), (2.0, 0.0))
            quotient = complex_div(numerator, denominator)
            if quotient is None:
                break
            z = complex_square(quotient)
            n += 1
        return n

    def multibrot(self, x: float, y: float, degree: int) -> int:
        """z <- z^degree + c."""
        c = (x, y)
        return self._escape_time((0.0, 0.0), lambda z: complex_add(complex_pow(z, degree), c))

    def newton(self, x: float, y: float) -> int:
        """
        Newton's method on f(z) = z^3 - 1 starting at z0 = (x, y).

        Returns the index of the step that converged (both components of the
        update below ``NEWTON_TOLERANCE``) or whose derivative vanished;
        ``max_iter`` if neither happened.
        """
        z = (x, y)
        for n in range(self.max_iter):
            z_sq = complex_square(z)
            f = complex_sub(complex_mul(z_sq, z), (1.0, 0.0))
            step = complex_div(f, complex_scale(z_sq, 3.0))
            if step is None:
                return n
            z = complex_sub(z, step)
            if has_converged(step):
                return n
        return self.max_iter

    def lyapunov(self, a: float, b: float, x0: float = 0.5,
                 sequence: str = 'AB', penalty: float = -10.0) -> float:
        """
        Estimate the Lyapunov exponent of the forced logistic map.

        Runs exactly ``max_iter`` steps of x <- r x (1 - x), where r cycles
        through ``a`` and ``b`` following ``sequence``, and averages
        log|r (1 - 2x)|. Steps whose derivative is exactly zero contribute
        ``penalty`` instead of -inf.

        Returns:
            Mean log-derivative (unbounded, negative for stable orbits)
        """
        rates = [a if letter == 'A' else b for letter in sequence]
        period = len(rates)
        x = x0
        total = 0.0
        for i in range(self.max_iter):
            r = rates[i % period]
            x = r * x * (1.0 - x)
            derivative = abs(r * (1.0 - 2.0 * x))
            if derivative == 0.0:
                total += penalty
            else:
                total += math.log(derivative)
        return total / self.max_iter
