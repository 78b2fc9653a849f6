"""
Sample record types produced by the sampling drivers.
"""

from typing import NamedTuple, Union


class GridSample(NamedTuple):
    """
    One grid sample.

    ``value`` is the iteration count divided by ``max_iter`` (in [0, 1]) for
    escape-time fractals, or the raw Lyapunov exponent estimate.
    """
    x: float
    y: float
    value: float


class MapPoint(NamedTuple):
    """One point produced by a map-based (IFS / chaos game / piecewise) fractal."""
    x: float
    y: float


SampleRecord = Union[GridSample, MapPoint]
