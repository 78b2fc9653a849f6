"""
Configuration file handling.

Sampling jobs can be described in JSON or YAML:

    fractal:
      kind: julia
      parameters: {c_re: -0.4, c_im: 0.6}
    sampling:
      bounds: [-2, 2, -2, 2]
      step: [0.01, 0.01]
      max_iterations: 200

``FRACTAL_SAMPLER_*`` environment variables override the ``sampling``
section.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import logging

import yaml

from ..api import SamplingConfig
from ..core.errors import ConfigError
from ..core.fractal_types import FractalRegistry, FractalType

logger = logging.getLogger(__name__)


def _number_tuple(value: Any, key: str) -> Tuple[float, ...]:
    """Convert a ``bounds``/``step`` list to a tuple, reading numeric text like ``1e-3``."""
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"'sampling.{key}' must be a list of numbers, got {value!r}")
    try:
        return tuple(float(item) if isinstance(item, str) else item for item in value)
    except ValueError:
        raise ConfigError(f"'sampling.{key}' must be a list of numbers, got {value!r}") from None


class EnvironmentConfig:
    """Environment variable overrides for the sampling section."""

    PREFIX = 'FRACTAL_SAMPLER_'

    _converters = {
        'MAX_ITERATIONS': ('max_iterations', int),
        'NUM_POINTS': ('num_points', int),
        'SEED': ('seed', int),
        'PROCESSES': ('num_processes', int),
        'TILE_COLUMNS': ('tile_columns', int),
        'USE_MULTIPROCESSING': ('use_multiprocessing',
                                lambda v: v.strip().lower() in ('1', 'true', 'yes', 'on')),
    }

    @classmethod
    def apply_overrides(cls, sampling: Dict[str, Any],
                        environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """
        Return a copy of ``sampling`` with environment overrides applied.

        Args:
            sampling: Sampling section of a configuration
            environ: Environment mapping (defaults to ``os.environ``)
        """
        environ = os.environ if environ is None else environ
        result = dict(sampling)
        for suffix, (key, convert) in cls._converters.items():
            name = cls.PREFIX + suffix
            if name not in environ:
                continue
            try:
                result[key] = convert(environ[name])
            except ValueError:
                raise ConfigError(f"Invalid value for {name}: {environ[name]!r}") from None
            logger.info(f"Override from environment: {key}={result[key]}")
        return result


class ConfigManager:
    """Load and build sampling jobs from configuration files."""

    def load_config(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a JSON or YAML configuration file.

        Args:
            path: Configuration file path

        Returns:
            Parsed configuration dictionary
        """
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        try:
            if path.suffix.lower() == '.json':
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def build_job(self, data: Dict[str, Any],
                  environ: Optional[Mapping[str, str]] = None) -> Tuple[FractalType, SamplingConfig]:
        """
        Build a fractal and sampling configuration from a config dictionary.

        Returns:
            Tuple of (fractal, sampling config), both validated
        """
        fractal_section = data.get('fractal')
        if not isinstance(fractal_section, dict) or 'kind' not in fractal_section:
            raise ConfigError("Config must contain a 'fractal' section with a 'kind'")

        parameters = fractal_section.get('parameters') or {}
        if not isinstance(parameters, dict):
            raise ConfigError("'fractal.parameters' must be a mapping")
        fractal = FractalRegistry.create_fractal(fractal_section['kind'], **parameters)

        sampling = data.get('sampling') or {}
        if not isinstance(sampling, dict):
            raise ConfigError("'sampling' must be a mapping")
        sampling = EnvironmentConfig.apply_overrides(sampling, environ)

        for key in ('bounds', 'step'):
            if sampling.get(key) is not None:
                sampling[key] = _number_tuple(sampling[key], key)

        try:
            config = SamplingConfig(**sampling)
        except TypeError as e:
            raise ConfigError(f"Invalid sampling section: {e}") from e
        config.validate()
        if not fractal.kind.is_map:
            # Fail on a bad domain now rather than when sampling starts
            config.to_grid(fractal)
        return fractal, config

    def load_job(self, path: Union[str, Path],
                 environ: Optional[Mapping[str, str]] = None) -> Tuple[FractalType, SamplingConfig]:
        """Load a configuration file and build its job."""
        return self.build_job(self.load_config(path), environ)

    def create_template(self, kind: str = 'mandelbrot') -> Dict[str, Any]:
        """Create a configuration template for a fractal kind."""
        fractal = FractalRegistry.create_fractal(kind)
        config = SamplingConfig(bounds=fractal.get_recommended_bounds())
        sampling = config.to_dict()
        sampling['bounds'] = list(sampling['bounds'])
        sampling['step'] = list(sampling['step'])
        return {
            'fractal': {'kind': fractal.kind.value, 'parameters': fractal.parameters.to_dict()},
            'sampling': sampling,
        }
