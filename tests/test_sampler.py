import pytest

from fractal_sampler.core.errors import InvalidBudgetError
from fractal_sampler.core.fractal_types import (
    FractalKind,
    FractalRegistry,
    GingerbreadmanMap,
    Lyapunov,
    MandelbrotSet,
    NewtonFractal,
)
from fractal_sampler.core.math_functions import FractalIterator, SampleGrid
from fractal_sampler.core.records import GridSample, MapPoint
from fractal_sampler.core.sampler import EscapeTimeSampler, MapPointGenerator

ESCAPE_TIME_KINDS = [
    kind for kind in FractalKind
    if not kind.is_map and kind is not FractalKind.LYAPUNOV
]


@pytest.fixture
def grid():
    return SampleGrid(-2.0, 1.0, -1.5, 1.5, 0.25, 0.25)


@pytest.mark.parametrize("kind", ESCAPE_TIME_KINDS, ids=lambda k: k.value)
def test_normalized_values_in_unit_interval(kind, grid):
    fractal = FractalRegistry.create_fractal(kind)
    records = list(fractal.sample(grid, 30))
    assert all(0.0 <= record.value <= 1.0 for record in records)


@pytest.mark.parametrize("kind", ESCAPE_TIME_KINDS + [FractalKind.LYAPUNOV], ids=lambda k: k.value)
def test_record_count_and_row_major_order(kind, grid):
    fractal = FractalRegistry.create_fractal(kind)
    records = list(fractal.sample(grid, 10))
    assert len(records) == grid.x_count * grid.y_count
    assert [(r.x, r.y) for r in records] == list(grid.points())
    assert all(isinstance(r, GridSample) for r in records)


def test_mandelbrot_origin_reaches_full_budget():
    grid = SampleGrid(-0.5, 0.5, -0.5, 0.5, 0.5, 0.5)
    records = {(r.x, r.y): r.value for r in MandelbrotSet().sample(grid, 50)}
    assert records[(0.0, 0.0)] == 1.0


@pytest.mark.parametrize("max_iter", [1, 7, 100])
def test_mandelbrot_far_point_escapes_on_first_iteration(max_iter):
    grid = SampleGrid(2.0, 3.0, 2.0, 3.0, 1.0, 1.0)
    first = next(iter(MandelbrotSet().sample(grid, max_iter)))
    assert (first.x, first.y) == (2.0, 2.0)
    assert first.value == 1.0 / max_iter


def test_newton_near_root_converges_quickly():
    grid = SampleGrid(1.0, 1.5, 0.0, 0.5, 0.5, 0.5)
    first = next(iter(NewtonFractal().sample(grid, 20)))
    assert (first.x, first.y) == (1.0, 0.0)
    assert first.value <= 2 / 20


def test_lyapunov_values_are_not_normalized():
    grid = SampleGrid(2.0, 2.5, 2.0, 2.5, 0.5, 0.5)
    records = list(Lyapunov().sample(grid, 50))
    assert records[0] == GridSample(2.0, 2.0, -10.0)
    assert any(r.value != -10.0 for r in records)


def test_grid_sampling_is_idempotent(grid):
    fractal = FractalRegistry.create_fractal("julia", c_re=-0.4, c_im=0.6)
    assert list(fractal.sample(grid, 40)) == list(fractal.sample(grid, 40))


def test_escape_time_sampler_with_custom_function():
    grid = SampleGrid(0.0, 1.0, 0.0, 1.0, 1.0, 1.0)
    sampler = EscapeTimeSampler(lambda x, y: x + y, max_iter=4)
    assert sampler.sample_list(grid) == [
        GridSample(0.0, 0.0, 0.0),
        GridSample(0.0, 1.0, 0.25),
        GridSample(1.0, 0.0, 0.25),
        GridSample(1.0, 1.0, 0.5),
    ]


def test_escape_time_sampler_raw_values():
    grid = SampleGrid(0.0, 1.0, 0.0, 1.0, 1.0, 1.0)
    sampler = EscapeTimeSampler(lambda x, y: -3.0, max_iter=4, normalize=False)
    assert {r.value for r in sampler.sample(grid)} == {-3.0}


def test_escape_time_sampler_rejects_bad_budget():
    with pytest.raises(InvalidBudgetError):
        EscapeTimeSampler(FractalIterator(5).mandelbrot, max_iter=0)


def test_map_generator_emits_exact_count_without_seed_point():
    generator = MapPointGenerator(lambda p, rng: (p[0] + 1.0, p[1] - 1.0), seed_point=(0.0, 0.0))
    points = list(generator.generate(3))
    assert points == [MapPoint(1.0, -1.0), MapPoint(2.0, -2.0), MapPoint(3.0, -3.0)]


def test_map_generator_validates_before_iteration():
    generator = MapPointGenerator(lambda p, rng: p)
    with pytest.raises(InvalidBudgetError):
        generator.generate(0)


def test_gingerbreadman_through_generic_driver():
    fractal = GingerbreadmanMap()
    points = list(fractal.sample(4))
    assert len(points) == 4
    # x' = 1 - y + |x|, y' = x
    for previous, current in zip(points, points[1:]):
        assert current.y == previous.x
        assert current.x == 1.0 - previous.y + abs(previous.x)
