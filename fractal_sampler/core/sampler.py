"""
Generic sampling drivers.

``EscapeTimeSampler`` walks a ``SampleGrid`` and evaluates a per-point
iteration function; ``MapPointGenerator`` repeatedly applies a point
transition. Fractal kinds plug their own closures into these drivers, so
the loop structure lives in exactly one place.
"""

import numpy as np
from typing import Callable, Iterator, Optional, Tuple
import logging

from .math_functions import SampleGrid, validate_budget
from .records import GridSample, MapPoint

logger = logging.getLogger(__name__)

Point = Tuple[float, float]
IterationFunction = Callable[[float, float], float]
Transition = Callable[[Point, np.random.Generator], Point]


class EscapeTimeSampler:
    """Row-major grid driver for escape-time and parameter-space fractals."""

    def __init__(self, iteration_func: IterationFunction, max_iter: int,
                 normalize: bool = True):
        """
        Initialize the grid driver.

        Args:
            iteration_func: Function mapping a sample point to an iteration
                count (or, with ``normalize=False``, to a raw value)
            max_iter: Iteration budget used to normalize counts
            normalize: Divide each value by ``max_iter``
        """
        self.iteration_func = iteration_func
        self.max_iter = validate_budget(max_iter, 'max_iter')
        self.normalize = normalize

    def sample(self, grid: SampleGrid) -> Iterator[GridSample]:
        """
        Yield one record per grid point, x in the outer loop.

        Args:
            grid: Sampling domain

        Yields:
            GridSample records in row-major order
        """
        func = self.iteration_func
        scale = float(self.max_iter) if self.normalize else 1.0
        for x, y in grid.points():
            yield GridSample(x, y, func(x, y) / scale)

    def sample_list(self, grid: SampleGrid) -> list:
        """Evaluate the whole grid eagerly."""
        return list(self.sample(grid))


class MapPointGenerator:
    """
    Sequential driver for map-based fractals.

    Each emitted point is derived from the previous one, so a sequence can
    never be split across workers. Randomness comes only from the generator
    passed to ``generate``.
    """

    def __init__(self, transition: Transition, seed_point: Point = (0.0, 0.0)):
        """
        Initialize the map driver.

        Args:
            transition: Function (point, rng) -> next point
            seed_point: Starting point; it is not emitted itself
        """
        self.transition = transition
        self.seed_point = (float(seed_point[0]), float(seed_point[1]))

    def generate(self, num_points: int,
                 rng: Optional[np.random.Generator] = None) -> Iterator[MapPoint]:
        """
        Yield exactly ``num_points`` points in generation order.

        Args:
            num_points: Number of points to emit
            rng: Random generator owned by this sequence (a fresh unseeded
                one is created when omitted)
        """
        num_points = validate_budget(num_points, 'num_points')
        if rng is None:
            rng = np.random.default_rng()
        return self._generate(num_points, rng)

    def _generate(self, num_points: int, rng: np.random.Generator) -> Iterator[MapPoint]:
        point = self.seed_point
        for _ in range(num_points):
            point = self.transition(point, rng)
            yield MapPoint(point[0], point[1])
