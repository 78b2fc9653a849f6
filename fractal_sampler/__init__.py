"""
Point sampling engine for two-dimensional fractals.

This library computes point samples for escape-time fractals (Mandelbrot,
Julia, Burning Ship, Tricorn, Buffalo, Phoenix, Magnet, Multibrot, Newton),
the Lyapunov parameter-space fractal, and map-generated point clouds
(Barnsley fern, Sierpinski chaos game, Gingerbreadman map), and emits them as
ordered coordinate/metadata records for a plotting front end.

Key Features:
- One generic grid driver and one generic map driver shared by all kinds
- Deterministic grid sampling with an explicit boundary-inclusion policy
- Seedable, per-sequence random generators for the stochastic kinds
- Process-parallel grid sampling that preserves row-major record order

Example usage:
    >>> from fractal_sampler import FractalSampler, SamplingConfig, MandelbrotSet
    >>> sampler = FractalSampler(SamplingConfig(bounds=(-2, 1, -1, 1), step=(0.1, 0.1)))
    >>> for x, y, value in sampler.sample(MandelbrotSet()):
    ...     pass
"""

__version__ = "1.0.0"
__author__ = "Fractal Sampler Team"

from fractal_sampler.core.errors import (
    FractalSamplingError,
    InvalidDomainError,
    InvalidBudgetError,
    UnsupportedDegreeError,
    InvalidParameterError,
    UnknownFractalError,
    SequenceExhaustedError,
    ConfigError,
)
from fractal_sampler.core.fractal_types import (
    FractalKind,
    FractalRegistry,
    MandelbrotSet,
    JuliaSet,
    BurningShip,
    Tricorn,
    Buffalo,
    Phoenix,
    Magnet,
    Multibrot,
    NewtonFractal,
    Lyapunov,
    BarnsleyFern,
    SierpinskiTriangle,
    GingerbreadmanMap,
    JULIA_PRESETS,
)
from fractal_sampler.core.math_functions import FractalIterator, SampleGrid
from fractal_sampler.core.records import GridSample, MapPoint
from fractal_sampler.output.emitter import RecordEmitter, SampleSequence

# Main API classes
from fractal_sampler.api import FractalSampler, SamplingConfig, sample_fractal

__all__ = [
    "FractalSampler",
    "SamplingConfig",
    "sample_fractal",
    "FractalKind",
    "FractalRegistry",
    "MandelbrotSet",
    "JuliaSet",
    "BurningShip",
    "Tricorn",
    "Buffalo",
    "Phoenix",
    "Magnet",
    "Multibrot",
    "NewtonFractal",
    "Lyapunov",
    "BarnsleyFern",
    "SierpinskiTriangle",
    "GingerbreadmanMap",
    "JULIA_PRESETS",
    "FractalIterator",
    "SampleGrid",
    "GridSample",
    "MapPoint",
    "RecordEmitter",
    "SampleSequence",
    "FractalSamplingError",
    "InvalidDomainError",
    "InvalidBudgetError",
    "UnsupportedDegreeError",
    "InvalidParameterError",
    "UnknownFractalError",
    "SequenceExhaustedError",
    "ConfigError",
]
