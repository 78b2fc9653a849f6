import pytest

from fractal_sampler.core.errors import (
    InvalidBudgetError,
    InvalidParameterError,
    UnknownFractalError,
    UnsupportedDegreeError,
)
from fractal_sampler.core.fractal_types import (
    JULIA_PRESETS,
    BarnsleyFern,
    FractalKind,
    FractalRegistry,
    GingerbreadmanMap,
    JuliaSet,
    Lyapunov,
    LyapunovParameters,
    MandelbrotParameters,
    Multibrot,
    MultibrotParameters,
    SierpinskiTriangle,
)


@pytest.mark.parametrize("name, kind", [
    ("mandelbrot", FractalKind.MANDELBROT),
    ("Burning-Ship", FractalKind.BURNING_SHIP),
    ("sierpinski triangle", FractalKind.SIERPINSKI_TRIANGLE),
    (FractalKind.NEWTON, FractalKind.NEWTON),
])
def test_parse_kind(name, kind):
    assert FractalKind.parse(name) is kind


def test_parse_unknown_kind():
    with pytest.raises(UnknownFractalError) as excinfo:
        FractalKind.parse("koch")
    assert "mandelbrot" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)


def test_map_kinds():
    assert FractalKind.BARNSLEY_FERN.is_map
    assert FractalKind.GINGERBREADMAN.is_map
    assert not FractalKind.LYAPUNOV.is_map
    assert not FractalKind.MANDELBROT.is_map


def test_registry_covers_every_kind():
    listed = FractalRegistry.list_fractals()
    assert set(listed) == {kind.value for kind in FractalKind}
    for kind in FractalKind:
        assert FractalRegistry.get(kind).kind is kind


def test_create_fractal_with_parameters():
    fractal = FractalRegistry.create_fractal("julia", c_re=0.1, c_im=0.2)
    assert isinstance(fractal, JuliaSet)
    assert fractal.parameters.c == (0.1, 0.2)


def test_create_fractal_rejects_foreign_parameters():
    with pytest.raises(InvalidParameterError):
        FractalRegistry.create_fractal("mandelbrot", c_re=1.0)
    with pytest.raises(InvalidParameterError):
        FractalRegistry.create_fractal("julia", degree=3)


def test_fractal_rejects_other_kinds_parameters():
    with pytest.raises(InvalidParameterError):
        JuliaSet(MandelbrotParameters())


def test_julia_rejects_non_numeric_constant():
    with pytest.raises(InvalidParameterError):
        FractalRegistry.create_fractal("julia", c_re="abc")


def test_numeric_text_parameters():
    julia = FractalRegistry.create_fractal("julia", c_re="1e-3", c_im="-5e-1")
    assert julia.parameters.c == (0.001, -0.5)

    multibrot = FractalRegistry.create_fractal("multibrot", degree="4")
    assert multibrot.parameters.degree == 4

    fern = FractalRegistry.create_fractal("barnsley_fern", seed="7")
    assert fern.parameters.seed == 7

    with pytest.raises(UnsupportedDegreeError):
        FractalRegistry.create_fractal("multibrot", degree="2.5")
    with pytest.raises(InvalidParameterError):
        FractalRegistry.create_fractal("lyapunov", penalty="low")


@pytest.mark.parametrize("degree", [0, -2, 2.5, "3", True])
def test_multibrot_unsupported_degree(degree):
    with pytest.raises(UnsupportedDegreeError):
        Multibrot(MultibrotParameters(degree=degree))


def test_unsupported_degree_is_budget_class():
    with pytest.raises(InvalidBudgetError):
        Multibrot(MultibrotParameters(degree=0))


def test_multibrot_integral_float_degree():
    fractal = Multibrot(MultibrotParameters(degree=4.0))
    assert fractal.parameters.degree == 4
    assert isinstance(fractal.parameters.degree, int)


def test_lyapunov_parameters():
    fractal = Lyapunov(LyapunovParameters(sequence="aabb"))
    assert fractal.parameters.sequence == "AABB"
    with pytest.raises(InvalidParameterError):
        Lyapunov(LyapunovParameters(sequence="ABC"))
    with pytest.raises(InvalidParameterError):
        Lyapunov(LyapunovParameters(sequence=""))
    with pytest.raises(InvalidParameterError):
        Lyapunov(LyapunovParameters(x0=1.0))


def test_map_fractal_colors():
    assert BarnsleyFern().color == "green"
    assert SierpinskiTriangle().color == "black"
    assert FractalRegistry.create_fractal("gingerbreadman", color="red").color == "red"


def test_map_seed_validation():
    with pytest.raises(InvalidParameterError):
        FractalRegistry.create_fractal("barnsley_fern", seed=-1)
    with pytest.raises(InvalidParameterError):
        FractalRegistry.create_fractal("sierpinski_triangle", seed=1.5)


def test_gingerbreadman_seed_point():
    fractal = GingerbreadmanMap()
    assert fractal.seed_point() == (-0.1, 0.1)


def test_parameters_round_trip_through_dict():
    fractal = FractalRegistry.create_fractal("phoenix", p=-0.25)
    params = fractal.parameters.to_dict()
    assert params == {"p": -0.25}
    rebuilt = FractalRegistry.create_fractal("phoenix", **params)
    assert rebuilt.parameters == fractal.parameters


def test_julia_presets_are_valid():
    for name, params in JULIA_PRESETS.items():
        fractal = FractalRegistry.create_fractal("julia", **params.to_dict())
        assert fractal.parameters.c == params.c, name


def test_descriptions_mention_parameters():
    assert "5" in Multibrot(MultibrotParameters(degree=5)).get_description()
    assert "ABBA" in Lyapunov(LyapunovParameters(sequence="ABBA")).get_description()
