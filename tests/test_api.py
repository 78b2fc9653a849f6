import numpy as np
import pytest

from fractal_sampler import (
    ConfigError,
    FractalSampler,
    InvalidBudgetError,
    InvalidDomainError,
    MandelbrotSet,
    MapPoint,
    SamplingConfig,
    SierpinskiTriangle,
    sample_fractal,
)
from fractal_sampler.core.fractal_types import FractalKind, FractalRegistry


def test_grid_sample_length_matches_axis_counts():
    config = SamplingConfig(bounds=(-2.0, 1.0, -1.0, 1.0), step=(0.5, 0.5), max_iterations=20)
    sequence = FractalSampler(config).sample(MandelbrotSet())
    assert len(sequence) == 35
    records = list(sequence)
    assert len(records) == 35
    assert sequence.kind is FractalKind.MANDELBROT


def test_default_bounds_come_from_fractal():
    config = SamplingConfig(step=(0.5, 0.5), max_iterations=5)
    fractal = FractalRegistry.create_fractal("newton")
    records = list(FractalSampler(config).sample(fractal))
    assert (records[0].x, records[0].y) == (-2.0, -2.0)
    assert (records[-1].x, records[-1].y) == (2.0, 2.0)


def test_invalid_domain_fails_before_any_record():
    config = SamplingConfig(bounds=(1.0, -1.0, -1.0, 1.0))
    sampler = FractalSampler(config)
    with pytest.raises(InvalidDomainError):
        sampler.sample(MandelbrotSet())


@pytest.mark.parametrize("step", [(0.0, 0.1), (0.1, -0.1)])
def test_non_positive_step(step):
    sampler = FractalSampler(SamplingConfig(bounds=(-1.0, 1.0, -1.0, 1.0), step=step))
    with pytest.raises(InvalidDomainError):
        sampler.sample(MandelbrotSet())


@pytest.mark.parametrize("overrides", [{"step": 0.1}, {"bounds": 2.0}, {"bounds": (0.0, 1.0)}])
def test_malformed_domain_shape(overrides):
    with pytest.raises(InvalidDomainError):
        FractalSampler(SamplingConfig(**overrides))


@pytest.mark.parametrize("field", ["max_iterations", "num_points"])
def test_invalid_budget_fails_fast(field):
    with pytest.raises(InvalidBudgetError):
        FractalSampler(SamplingConfig(**{field: 0}))


def test_map_sampling_uses_num_points_and_color():
    sequence = sample_fractal("gingerbreadman", num_points=5)
    assert len(sequence) == 5
    assert sequence.color == "brown"
    points = list(sequence)
    assert len(points) == 5
    assert all(isinstance(p, MapPoint) for p in points)
    assert points[0].y == -0.1


def test_config_seed_makes_map_sampling_reproducible():
    config = SamplingConfig(num_points=300, seed=123)
    first = list(FractalSampler(config).sample(SierpinskiTriangle()))
    second = list(FractalSampler(config).sample(SierpinskiTriangle()))
    assert first == second


def test_deterministic_kinds_are_idempotent():
    kwargs = dict(bounds=(-2.0, 2.0, -2.0, 2.0), step=(0.2, 0.2), max_iterations=30)
    first = list(sample_fractal("magnet", **kwargs))
    second = list(sample_fractal("magnet", **kwargs))
    assert first == second


def test_multiprocessing_matches_sequential():
    kwargs = dict(bounds=(-2.0, 1.0, -1.0, 1.0), step=(0.1, 0.1), max_iterations=25)
    sequential = list(sample_fractal("burning_ship", **kwargs))
    parallel = list(sample_fractal("burning_ship", use_multiprocessing=True,
                                   num_processes=2, tile_columns=4, **kwargs))
    assert parallel == sequential


def test_sample_array():
    config = SamplingConfig(bounds=(0.0, 1.0, 0.0, 1.0), step=(0.5, 0.5), max_iterations=10)
    array = FractalSampler(config).sample_array(MandelbrotSet())
    assert array.shape == (9, 3)
    assert np.all((array[:, 2] >= 0.0) & (array[:, 2] <= 1.0))


def test_lyapunov_through_facade():
    sequence = sample_fractal("lyapunov", bounds=(2.0, 4.0, 2.0, 4.0), step=(1.0, 1.0),
                              max_iterations=100)
    values = [record.value for record in sequence]
    assert len(values) == 9
    assert values[0] == -10.0
    assert any(value > 0 for value in values)


def test_update_config():
    sampler = FractalSampler()
    sampler.update_config(max_iterations=7)
    assert sampler.config.max_iterations == 7
    with pytest.raises(ConfigError):
        sampler.update_config(width=100)
    with pytest.raises(InvalidBudgetError):
        sampler.update_config(max_iterations=-1)


def test_unknown_parameter_through_facade():
    with pytest.raises(ValueError):
        sample_fractal("mandelbrot", {"c_re": 0.1})
