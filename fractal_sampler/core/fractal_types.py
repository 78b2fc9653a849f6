"""
Fractal type definitions and parameter management.

Each fractal kind is a class carrying its own parameter dataclass. The set of
kinds is closed and enumerated by ``FractalKind``; string identifiers are only
parsed at the API boundary, never inside sampling loops.

Grid kinds (escape-time and Lyapunov) plug an iteration function into
``EscapeTimeSampler``. Map kinds (Barnsley fern, Sierpinski chaos game,
Gingerbreadman) plug a point transition into ``MapPointGenerator``.
"""

import math
import numpy as np
from enum import Enum
from typing import Dict, Any, Iterator, Optional, Tuple, Type, Union
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
import logging

from .errors import InvalidParameterError, UnknownFractalError, UnsupportedDegreeError
from .math_functions import FractalIterator, SampleGrid
from .records import GridSample, MapPoint
from .sampler import EscapeTimeSampler, IterationFunction, MapPointGenerator, Point

logger = logging.getLogger(__name__)


class FractalKind(Enum):
    """Closed set of supported fractal kinds."""

    MANDELBROT = 'mandelbrot'
    JULIA = 'julia'
    BURNING_SHIP = 'burning_ship'
    TRICORN = 'tricorn'
    BUFFALO = 'buffalo'
    PHOENIX = 'phoenix'
    MAGNET = 'magnet'
    MULTIBROT = 'multibrot'
    NEWTON = 'newton'
    LYAPUNOV = 'lyapunov'
    BARNSLEY_FERN = 'barnsley_fern'
    SIERPINSKI_TRIANGLE = 'sierpinski_triangle'
    GINGERBREADMAN = 'gingerbreadman'

    @classmethod
    def parse(cls, name: Union[str, 'FractalKind']) -> 'FractalKind':
        """
        Resolve a kind from its identifier.

        Accepts an existing ``FractalKind`` or a case-insensitive name where
        hyphens and spaces stand for underscores (``"burning-ship"``).
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace('-', '_').replace(' ', '_')
        try:
            return cls(key)
        except ValueError:
            available = ', '.join(kind.value for kind in cls)
            raise UnknownFractalError(f"Unknown fractal type '{name}'. Available: {available}") from None

    @property
    def is_map(self) -> bool:
        """True for point-cloud kinds driven by a map rather than a grid."""
        return self in (FractalKind.BARNSLEY_FERN, FractalKind.SIERPINSKI_TRIANGLE,
                        FractalKind.GINGERBREADMAN)


def _require_number(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidParameterError(f"{name} must be numeric, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    return float(value)


_NUMERIC_FIELD_TYPES = {float: (float,), int: (int, float), Optional[int]: (int, float)}


def _coerce_numeric_text(value, field_type):
    """Read numeric text as the field's type; YAML 1.1 loads ``1e-3`` as a string."""
    converters = _NUMERIC_FIELD_TYPES.get(field_type)
    if converters is None or not isinstance(value, str):
        return value
    for convert in converters:
        try:
            return convert(value.strip())
        except ValueError:
            continue
    return value


@dataclass
class FractalParameters:
    """Base class for fractal parameters with validation."""

    def validate(self) -> None:
        """Validate parameter values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FractalParameters':
        """
        Create parameters from dictionary.

        Raises:
            InvalidParameterError: if ``data`` names a field this kind does
                not define
        """
        field_types = {f.name: f.type for f in fields(cls)}
        unknown = sorted(set(data) - set(field_types))
        if unknown:
            accepted = ', '.join(sorted(field_types)) or 'none'
            raise InvalidParameterError(
                f"{cls.__name__} does not accept {', '.join(unknown)} (accepted: {accepted})")
        return cls(**{key: _coerce_numeric_text(value, field_types[key])
                      for key, value in data.items()})


class FractalType(ABC):
    """Abstract base class for fractal types."""

    kind: FractalKind
    parameter_class: Type[FractalParameters] = FractalParameters

    def __init__(self, name: str, parameters: FractalParameters):
        """
        Initialize fractal type.

        Args:
            name: Human-readable name for the fractal
            parameters: Fractal-specific parameters
        """
        if not isinstance(parameters, self.parameter_class):
            raise InvalidParameterError(
                f"{name} expects {self.parameter_class.__name__}, got {type(parameters).__name__}")
        self.name = name
        self.parameters = parameters
        self.parameters.validate()

    @abstractmethod
    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        """Get recommended viewing bounds (xmin, xmax, ymin, ymax)."""
        pass

    def get_description(self) -> str:
        """Get a description of this fractal type."""
        return f"{self.name} fractal"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.parameters!r})"


class GridFractal(FractalType):
    """Fractal sampled on a rectangular grid by a per-point iteration function."""

    normalize = True

    @abstractmethod
    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        """Return the function mapping one grid point to its raw value."""
        pass

    def sample(self, grid: SampleGrid, max_iter: int) -> Iterator[GridSample]:
        """
        Sample the fractal over a grid.

        Args:
            grid: Sampling domain
            max_iter: Iteration budget per point

        Returns:
            Iterator of GridSample records in row-major order
        """
        iterator = FractalIterator(max_iter)
        sampler = EscapeTimeSampler(self.iteration_function(iterator), iterator.max_iter,
                                    normalize=self.normalize)
        return sampler.sample(grid)


class MapFractal(FractalType):
    """Point-cloud fractal produced by repeatedly applying a map."""

    @abstractmethod
    def transition(self, point: Point, rng: np.random.Generator) -> Point:
        """Map the current point to the next one."""
        pass

    def seed_point(self) -> Point:
        """Starting point of the sequence (not emitted)."""
        return (0.0, 0.0)

    @property
    def color(self) -> str:
        """Color for the whole point cloud."""
        return self.parameters.color

    def create_rng(self, seed: Optional[int] = None) -> np.random.Generator:
        """
        Create the private random generator for one sequence.

        An explicit ``seed`` wins over the parameter seed; with neither the
        generator is seeded from OS entropy.
        """
        if seed is None:
            seed = getattr(self.parameters, 'seed', None)
        return np.random.default_rng(seed)

    def sample(self, num_points: int,
               rng: Optional[np.random.Generator] = None) -> Iterator[MapPoint]:
        """
        Generate ``num_points`` points.

        Args:
            num_points: Number of points to emit
            rng: Random generator for this sequence; created from the
                parameter seed when omitted
        """
        if rng is None:
            rng = self.create_rng()
        generator = MapPointGenerator(self.transition, self.seed_point())
        return generator.generate(num_points, rng)


# ---------------------------------------------------------------------------
# Escape-time kinds
# ---------------------------------------------------------------------------

@dataclass
class MandelbrotParameters(FractalParameters):
    """Mandelbrot takes no parameters; c is the sample point."""


class MandelbrotSet(GridFractal):
    """Mandelbrot set fractal implementation."""

    kind = FractalKind.MANDELBROT
    parameter_class = MandelbrotParameters

    def __init__(self, parameters: Optional[MandelbrotParameters] = None):
        super().__init__("Mandelbrot", parameters or MandelbrotParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        return iterator.mandelbrot

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        """Get recommended viewing bounds for Mandelbrot set."""
        return (-2.5, 1.0, -1.25, 1.25)

    def get_description(self) -> str:
        return "Mandelbrot set: z_{n+1} = z_n^2 + c, where c is the sample point and z_0 = 0"


@dataclass
class JuliaParameters(FractalParameters):
    """Parameters for Julia set generation."""

    c_re: float = -0.8
    c_im: float = 0.156

    def validate(self) -> None:
        """Validate Julia parameters."""
        self.c_re = _require_number(self.c_re, 'c_re')
        self.c_im = _require_number(self.c_im, 'c_im')

    @property
    def c(self) -> Tuple[float, float]:
        """Get the Julia constant as an (re, im) pair."""
        return (self.c_re, self.c_im)


class JuliaSet(GridFractal):
    """Julia set fractal implementation."""

    kind = FractalKind.JULIA
    parameter_class = JuliaParameters

    def __init__(self, parameters: Optional[JuliaParameters] = None):
        super().__init__("Julia", parameters or JuliaParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        c = self.parameters.c
        return lambda x, y: iterator.julia(x, y, c)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        """Get recommended viewing bounds for Julia set."""
        return (-2.0, 2.0, -2.0, 2.0)

    def get_description(self) -> str:
        return (f"Julia set: z_{{n+1}} = z_n^2 + c, where c = {complex(*self.parameters.c)} "
                "and z_0 is the sample point")


@dataclass
class BurningShipParameters(FractalParameters):
    """Burning Ship takes no parameters."""


class BurningShip(GridFractal):
    """Burning Ship fractal implementation."""

    kind = FractalKind.BURNING_SHIP
    parameter_class = BurningShipParameters

    def __init__(self, parameters: Optional[BurningShipParameters] = None):
        super().__init__("Burning Ship", parameters or BurningShipParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        return iterator.burning_ship

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.5, 1.5, -2.0, 1.0)

    def get_description(self) -> str:
        return "Burning Ship: z_{n+1} = (|Re(z_n)| + i|Im(z_n)|)^2 + c"


@dataclass
class TricornParameters(FractalParameters):
    """Tricorn takes no parameters."""


class Tricorn(GridFractal):
    """Tricorn (Mandelbar) fractal."""

    kind = FractalKind.TRICORN
    parameter_class = TricornParameters

    def __init__(self, parameters: Optional[TricornParameters] = None):
        super().__init__("Tricorn", parameters or TricornParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        return iterator.tricorn

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.5, 1.5, -1.5, 1.5)

    def get_description(self) -> str:
        return "Tricorn: z_{n+1} = conj(z_n)^2 + c"


@dataclass
class BuffaloParameters(FractalParameters):
    """Buffalo takes no parameters."""


class Buffalo(GridFractal):
    """Buffalo fractal."""

    kind = FractalKind.BUFFALO
    parameter_class = BuffaloParameters

    def __init__(self, parameters: Optional[BuffaloParameters] = None):
        super().__init__("Buffalo", parameters or BuffaloParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        return iterator.buffalo

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.5, 1.5, -2.0, 2.0)

    def get_description(self) -> str:
        return "Buffalo: Re' = |Re z|^2 - |Im z|^2 + Re c, Im' = 2|Re z||Im z| + Im c"


@dataclass
class PhoenixParameters(FractalParameters):
    """Parameters for the Phoenix fractal."""

    p: float = -0.5

    def validate(self) -> None:
        self.p = _require_number(self.p, 'p')


class Phoenix(GridFractal):
    """Phoenix fractal: z_{n+1} = z_n^2 + p z_{n-1} + c."""

    kind = FractalKind.PHOENIX
    parameter_class = PhoenixParameters

    def __init__(self, parameters: Optional[PhoenixParameters] = None):
        super().__init__("Phoenix", parameters or PhoenixParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        p = self.parameters.p
        return lambda x, y: iterator.phoenix(x, y, p)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.0, 1.0, -1.5, 1.5)

    def get_description(self) -> str:
        return f"Phoenix: z_{{n+1}} = z_n^2 + {self.parameters.p} z_{{n-1}} + c"


@dataclass
class MagnetParameters(FractalParameters):
    """Magnet takes no parameters."""


class Magnet(GridFractal):
    """Magnet type I fractal."""

    kind = FractalKind.MAGNET
    parameter_class = MagnetParameters

    def __init__(self, parameters: Optional[MagnetParameters] = None):
        super().__init__("Magnet", parameters or MagnetParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        return iterator.magnet

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.0, 3.0, -2.5, 2.5)

    def get_description(self) -> str:
        return "Magnet: z_{n+1} = ((z_n^2 + c - 1) / (2 z_n + c - 2))^2"


@dataclass
class MultibrotParameters(FractalParameters):
    """Parameters for Multibrot fractal."""

    degree: int = 3

    def validate(self) -> None:
        """Validate Multibrot parameters."""
        degree = self.degree
        if isinstance(degree, (float, np.floating)) and float(degree).is_integer():
            degree = int(degree)
        if isinstance(degree, bool) or not isinstance(degree, (int, np.integer)):
            raise UnsupportedDegreeError(f"degree must be an integer, got {self.degree!r}")
        if degree < 1:
            raise UnsupportedDegreeError(f"degree must be >= 1, got {degree}")
        self.degree = int(degree)


class Multibrot(GridFractal):
    """Multibrot fractal implementation."""

    kind = FractalKind.MULTIBROT
    parameter_class = MultibrotParameters

    def __init__(self, parameters: Optional[MultibrotParameters] = None):
        super().__init__("Multibrot", parameters or MultibrotParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        degree = self.parameters.degree
        return lambda x, y: iterator.multibrot(x, y, degree)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        """Get recommended viewing bounds for Multibrot."""
        # Bounds depend on the degree
        if self.parameters.degree < 2:
            scale = 3.0
        elif self.parameters.degree > 4:
            scale = 1.5
        else:
            scale = 2.0
        return (-scale, scale, -scale, scale)

    def get_description(self) -> str:
        return f"Multibrot: z_{{n+1}} = z_n^{self.parameters.degree} + c"


@dataclass
class NewtonParameters(FractalParameters):
    """Newton fractal takes no parameters; the polynomial is z^3 - 1."""


class NewtonFractal(GridFractal):
    """Newton fractal for z^3 - 1, colored by convergence speed."""

    kind = FractalKind.NEWTON
    parameter_class = NewtonParameters

    def __init__(self, parameters: Optional[NewtonParameters] = None):
        super().__init__("Newton", parameters or NewtonParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        return iterator.newton

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.0, 2.0, -2.0, 2.0)

    def get_description(self) -> str:
        return "Newton: z_{n+1} = z_n - (z_n^3 - 1) / (3 z_n^2)"


@dataclass
class LyapunovParameters(FractalParameters):
    """
    Parameters for the Lyapunov fractal.

    ``sequence`` is the forcing pattern: ``A`` steps use the horizontal
    parameter a, ``B`` steps the vertical parameter b.
    """

    x0: float = 0.5
    sequence: str = 'AB'
    penalty: float = -10.0

    def validate(self) -> None:
        self.x0 = _require_number(self.x0, 'x0')
        if not 0.0 < self.x0 < 1.0:
            raise InvalidParameterError(f"x0 must lie strictly between 0 and 1, got {self.x0}")
        if not isinstance(self.sequence, str):
            raise InvalidParameterError("sequence must be a string of 'A' and 'B'")
        sequence = self.sequence.strip().upper()
        if not sequence or set(sequence) - {'A', 'B'}:
            raise InvalidParameterError(f"sequence must be a non-empty string of 'A' and 'B', got {self.sequence!r}")
        self.sequence = sequence
        self.penalty = _require_number(self.penalty, 'penalty')


class Lyapunov(GridFractal):
    """Lyapunov fractal over the (a, b) parameter plane of the logistic map."""

    kind = FractalKind.LYAPUNOV
    parameter_class = LyapunovParameters
    normalize = False

    def __init__(self, parameters: Optional[LyapunovParameters] = None):
        super().__init__("Lyapunov", parameters or LyapunovParameters())

    def iteration_function(self, iterator: FractalIterator) -> IterationFunction:
        params = self.parameters
        return lambda a, b: iterator.lyapunov(a, b, params.x0, params.sequence, params.penalty)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (2.0, 4.0, 2.0, 4.0)

    def get_description(self) -> str:
        return (f"Lyapunov: mean log|r (1 - 2x)| of x <- r x (1 - x), "
                f"r forced by sequence {self.parameters.sequence}")


# ---------------------------------------------------------------------------
# Map kinds
# ---------------------------------------------------------------------------

def _validate_map_common(params) -> None:
    if not isinstance(params.color, str) or not params.color:
        raise InvalidParameterError("color must be a non-empty string")


def _validate_seed(seed) -> None:
    if seed is None:
        return
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0:
        raise InvalidParameterError(f"seed must be a non-negative integer or None, got {seed!r}")


# Barnsley's fern: (cumulative threshold, (a, b, c, d, e, f)) with
# x' = a x + b y + e, y' = c x + d y + f
FERN_MAPS = (
    (0.01, (0.0, 0.0, 0.0, 0.16, 0.0, 0.0)),
    (0.86, (0.85, 0.04, -0.04, 0.85, 0.0, 1.6)),
    (0.93, (0.2, -0.26, 0.23, 0.22, 0.0, 1.6)),
    (1.0, (-0.15, 0.28, 0.26, 0.24, 0.0, 0.44)),
)


@dataclass
class BarnsleyFernParameters(FractalParameters):
    """Parameters for Barnsley's fern."""

    color: str = 'green'
    seed: Optional[int] = None

    def validate(self) -> None:
        _validate_map_common(self)
        _validate_seed(self.seed)


class BarnsleyFern(MapFractal):
    """Barnsley's fern: random affine iterated function system."""

    kind = FractalKind.BARNSLEY_FERN
    parameter_class = BarnsleyFernParameters

    def __init__(self, parameters: Optional[BarnsleyFernParameters] = None):
        super().__init__("Barnsley Fern", parameters or BarnsleyFernParameters())

    def transition(self, point: Point, rng: np.random.Generator) -> Point:
        x, y = point
        r = rng.random()
        for threshold, (a, b, c, d, e, f) in FERN_MAPS:
            if r < threshold:
                break
        return (a * x + b * y + e, c * x + d * y + f)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-2.2, 2.7, 0.0, 10.0)

    def get_description(self) -> str:
        return "Barnsley fern: four affine maps chosen with probabilities 0.01, 0.85, 0.07, 0.07"


SIERPINSKI_VERTICES = ((0.0, 0.0), (1.0, 0.0), (0.5, 0.8660254))


@dataclass
class SierpinskiTriangleParameters(FractalParameters):
    """Parameters for the Sierpinski chaos game."""

    color: str = 'black'
    seed: Optional[int] = None

    def validate(self) -> None:
        _validate_map_common(self)
        _validate_seed(self.seed)


class SierpinskiTriangle(MapFractal):
    """Sierpinski triangle by the chaos game."""

    kind = FractalKind.SIERPINSKI_TRIANGLE
    parameter_class = SierpinskiTriangleParameters

    def __init__(self, parameters: Optional[SierpinskiTriangleParameters] = None):
        super().__init__("Sierpinski Triangle", parameters or SierpinskiTriangleParameters())

    def transition(self, point: Point, rng: np.random.Generator) -> Point:
        vx, vy = SIERPINSKI_VERTICES[int(rng.integers(len(SIERPINSKI_VERTICES)))]
        return (0.5 * (point[0] + vx), 0.5 * (point[1] + vy))

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (0.0, 1.0, 0.0, 0.8660254)

    def get_description(self) -> str:
        return "Sierpinski triangle: move halfway toward a random vertex each step"


@dataclass
class GingerbreadmanParameters(FractalParameters):
    """Parameters for the Gingerbreadman map."""

    x0: float = -0.1
    y0: float = 0.1
    color: str = 'brown'

    def validate(self) -> None:
        self.x0 = _require_number(self.x0, 'x0')
        self.y0 = _require_number(self.y0, 'y0')
        _validate_map_common(self)


class GingerbreadmanMap(MapFractal):
    """Gingerbreadman map: deterministic piecewise-linear map."""

    kind = FractalKind.GINGERBREADMAN
    parameter_class = GingerbreadmanParameters

    def __init__(self, parameters: Optional[GingerbreadmanParameters] = None):
        super().__init__("Gingerbreadman", parameters or GingerbreadmanParameters())

    def seed_point(self) -> Point:
        return (self.parameters.x0, self.parameters.y0)

    def transition(self, point: Point, rng: np.random.Generator) -> Point:
        x, y = point
        return (1.0 - y + abs(x), x)

    def get_recommended_bounds(self) -> Tuple[float, float, float, float]:
        return (-3.0, 8.0, -3.0, 8.0)

    def get_description(self) -> str:
        return "Gingerbreadman map: x' = 1 - y + |x|, y' = x"


class FractalRegistry:
    """Registry of the available fractal types, keyed by kind."""

    _fractals: Dict[FractalKind, Type[FractalType]] = {
        cls.kind: cls for cls in (
            MandelbrotSet, JuliaSet, BurningShip, Tricorn, Buffalo, Phoenix, Magnet,
            Multibrot, NewtonFractal, Lyapunov, BarnsleyFern, SierpinskiTriangle,
            GingerbreadmanMap,
        )
    }

    @classmethod
    def get(cls, name: Union[str, FractalKind]) -> Type[FractalType]:
        """
        Get a fractal class by kind or name.

        Args:
            name: Fractal identifier

        Returns:
            Fractal class
        """
        return cls._fractals[FractalKind.parse(name)]

    @classmethod
    def parameter_class(cls, name: Union[str, FractalKind]) -> Type[FractalParameters]:
        """Get the parameter dataclass of a fractal kind."""
        return cls.get(name).parameter_class

    @classmethod
    def list_fractals(cls) -> Dict[str, str]:
        """Get a dictionary of available fractals and their descriptions."""
        return {kind.value: fractal_class().get_description()
                for kind, fractal_class in cls._fractals.items()}

    @classmethod
    def create_fractal(cls, name: Union[str, FractalKind], **kwargs) -> FractalType:
        """
        Create a fractal instance with the given parameters.

        Args:
            name: Fractal kind or name
            **kwargs: Parameters for the fractal; only the fields declared by
                the kind's parameter class are accepted

        Returns:
            Configured fractal instance
        """
        fractal_class = cls.get(name)
        parameters = fractal_class.parameter_class.from_dict(kwargs)
        fractal = fractal_class(parameters)
        logger.debug(f"Created {fractal!r}")
        return fractal


# Predefined interesting Julia set constants
JULIA_PRESETS = {
    'dragon': JuliaParameters(c_re=-0.8, c_im=0.156),
    'spiral': JuliaParameters(c_re=-0.4, c_im=0.6),
    'dendrite': JuliaParameters(c_re=0.0, c_im=1.0),
    'rabbit': JuliaParameters(c_re=-0.123, c_im=0.745),
    'airplane': JuliaParameters(c_re=-1.25, c_im=0.0),
    'san_marco': JuliaParameters(c_re=-0.75, c_im=0.0),
    'siegel_disk': JuliaParameters(c_re=-0.391, c_im=-0.587),
}
