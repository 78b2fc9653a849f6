"""
Main API classes for fractal sampling.

This module provides the high-level interface: a validated ``SamplingConfig``
and a ``FractalSampler`` that dispatches a fractal to the grid sampler or the
map point generator and returns the caller-facing ``SampleSequence``.
"""

import numpy as np
from typing import Optional, Dict, Any, Tuple, Union
from dataclasses import dataclass, asdict
import logging

from .core.errors import ConfigError, InvalidDomainError, InvalidParameterError
from .core.fractal_types import FractalKind, FractalRegistry, FractalType, GridFractal, MapFractal
from .core.math_functions import SampleGrid, validate_budget
from .output.emitter import RecordEmitter, SampleSequence
from .acceleration.multiprocessing import ParallelGridSampler

logger = logging.getLogger(__name__)


@dataclass
class SamplingConfig:
    """Configuration for fractal sampling."""

    # Domain; None uses the fractal's recommended bounds
    bounds: Optional[Tuple[float, float, float, float]] = None  # xmin, xmax, ymin, ymax
    step: Tuple[float, float] = (0.01, 0.01)  # dx, dy

    # Budgets
    max_iterations: int = 100
    num_points: int = 10000

    # Randomness for map fractals; None draws OS entropy
    seed: Optional[int] = None

    # Performance
    use_multiprocessing: bool = False
    num_processes: Optional[int] = None
    tile_columns: int = 16

    def validate(self):
        """Validate configuration parameters."""
        validate_budget(self.max_iterations, 'max_iterations')
        validate_budget(self.num_points, 'num_points')

        if self.bounds is not None and (not isinstance(self.bounds, (tuple, list))
                                        or len(self.bounds) != 4):
            raise InvalidDomainError("bounds must be (xmin, xmax, ymin, ymax)")

        if not isinstance(self.step, (tuple, list)) or len(self.step) != 2:
            raise InvalidDomainError("step must be (dx, dy)")

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)
                                      or self.seed < 0):
            raise InvalidParameterError(f"seed must be a non-negative integer, got {self.seed!r}")

        if self.num_processes is not None and self.num_processes < 1:
            raise ConfigError("num_processes must be >= 1")

        if self.tile_columns < 1:
            raise ConfigError("tile_columns must be >= 1")

    def to_grid(self, fractal: FractalType) -> SampleGrid:
        """Build the sampling grid for a fractal, validating the domain."""
        bounds = self.bounds if self.bounds is not None else fractal.get_recommended_bounds()
        return SampleGrid(*bounds, *self.step)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FractalSampler:
    """Main fractal sampling engine."""

    def __init__(self, config: Optional[SamplingConfig] = None,
                 emitter: Optional[RecordEmitter] = None):
        """
        Initialize fractal sampler.

        Args:
            config: Sampling configuration (uses defaults if None)
            emitter: Record emitter (uses defaults if None)
        """
        self.config = config or SamplingConfig()
        self.config.validate()
        self.emitter = emitter or RecordEmitter()

    def sample(self, fractal: FractalType) -> SampleSequence:
        """
        Sample a fractal.

        All validation happens here, before the first record is produced.

        Args:
            fractal: Fractal to sample

        Returns:
            Ordered, single-pass sequence of records
        """
        config = self.config
        config.validate()

        if isinstance(fractal, GridFractal):
            grid = config.to_grid(fractal)
            logger.info(f"Sampling {fractal.name}: {grid.x_count}x{grid.y_count} grid, "
                        f"max_iter={config.max_iterations}")
            if config.use_multiprocessing:
                parallel = ParallelGridSampler(config.num_processes, config.tile_columns)
                records = parallel.sample(fractal, grid, config.max_iterations)
            else:
                records = fractal.sample(grid, config.max_iterations)
            return self.emitter.wrap(records, fractal.kind, grid.size)

        if isinstance(fractal, MapFractal):
            logger.info(f"Sampling {fractal.name}: {config.num_points} points")
            rng = fractal.create_rng(config.seed)
            records = fractal.sample(config.num_points, rng)
            return self.emitter.wrap(records, fractal.kind, config.num_points, fractal.color)

        raise InvalidParameterError(f"Cannot sample {type(fractal).__name__}")

    def sample_array(self, fractal: FractalType) -> np.ndarray:
        """Sample a fractal and collect the records into an array."""
        return self.emitter.to_array(self.sample(fractal))

    def update_config(self, **kwargs):
        """Update sampling configuration."""
        for key, value in kwargs.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)
            else:
                raise ConfigError(f"Unknown configuration parameter: {key}")

        self.config.validate()


def sample_fractal(kind: Union[str, FractalKind], params: Optional[Dict[str, Any]] = None,
                   **config_kwargs) -> SampleSequence:
    """
    Sample a fractal by kind in one call.

    Args:
        kind: Fractal kind or name
        params: Fractal parameters for that kind
        **config_kwargs: ``SamplingConfig`` fields

    Returns:
        Ordered, single-pass sequence of records
    """
    fractal = FractalRegistry.create_fractal(kind, **(params or {}))
    return FractalSampler(SamplingConfig(**config_kwargs)).sample(fractal)
