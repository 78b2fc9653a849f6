import pytest
from click.testing import CliRunner

from fractal_sampler.cli.main import main


@pytest.fixture
def runner():
    return CliRunner()


def record_rows(output, width):
    rows = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) != width:
            continue
        try:
            rows.append(tuple(float(p) for p in parts))
        except ValueError:
            continue
    return rows


def test_sample_grid_fractal(runner):
    result = runner.invoke(main, ['sample', 'mandelbrot', '--bounds=-2,1,-1,1',
                                  '--step', '0.5,0.5', '--max-iter', '10'])
    assert result.exit_code == 0, result.output
    rows = record_rows(result.output, 3)
    assert len(rows) == 35
    assert rows[0][:2] == (-2.0, -1.0)
    assert all(0.0 <= row[2] <= 1.0 for row in rows)


def test_sample_map_fractal(runner):
    result = runner.invoke(main, ['sample', 'gingerbreadman', '--num-points', '3'])
    assert result.exit_code == 0, result.output
    rows = record_rows(result.output, 2)
    assert rows[0] == (1.0, -0.1)
    assert len(rows) == 3


def test_sample_with_parameters_and_seed(runner):
    args = ['sample', 'barnsley_fern', '--num-points', '20', '--seed', '4']
    first = runner.invoke(main, args)
    second = runner.invoke(main, args)
    assert first.exit_code == 0, first.output
    assert record_rows(first.output, 2) == record_rows(second.output, 2)

    result = runner.invoke(main, ['sample', 'multibrot', '--param', 'degree=4',
                                  '--bounds=-1,1,-1,1', '--step', '1,1', '--max-iter', '5'])
    assert result.exit_code == 0, result.output
    assert len(record_rows(result.output, 3)) == 9


def test_sample_with_exponent_parameter(runner):
    result = runner.invoke(main, ['sample', 'julia', '--param', 'c_re=1e-3', '--param', 'c_im=-5e-1',
                                  '--bounds=-1,1,-1,1', '--step', '1,1', '--max-iter', '5'])
    assert result.exit_code == 0, result.output
    assert len(record_rows(result.output, 3)) == 9


def test_sample_precision(runner):
    result = runner.invoke(main, ['sample', 'julia', '--julia-preset', 'rabbit',
                                  '--bounds=0,0.5,0,0.5', '--step', '0.5,0.5',
                                  '--max-iter', '3', '--precision', '2'])
    assert result.exit_code == 0, result.output
    assert len(record_rows(result.output, 3)) == 4


def test_invalid_domain_exits_with_error(runner):
    result = runner.invoke(main, ['sample', 'mandelbrot', '--bounds=1,0,0,1'])
    assert result.exit_code == 1
    assert 'Error:' in result.output
    assert record_rows(result.output, 3) == []


def test_unsupported_degree_exits_with_error(runner):
    result = runner.invoke(main, ['sample', 'multibrot', '--param', 'degree=0'])
    assert result.exit_code == 1
    assert 'degree' in result.output


def test_missing_kind_is_usage_error(runner):
    result = runner.invoke(main, ['sample'])
    assert result.exit_code == 2


def test_bad_bounds_format(runner):
    result = runner.invoke(main, ['sample', 'mandelbrot', '--bounds', '1,2'])
    assert result.exit_code == 2


def test_init_config_then_sample(runner, tmp_path):
    path = tmp_path / 'job.yaml'
    result = runner.invoke(main, ['init-config', 'tricorn', '-o', str(path)])
    assert result.exit_code == 0, result.output
    assert path.exists()

    result = runner.invoke(main, ['sample', '--config', str(path), '--step', '0.5,0.5',
                                  '--max-iter', '5'])
    assert result.exit_code == 0, result.output
    # tricorn recommended bounds: 4 wide, 3 tall
    assert len(record_rows(result.output, 3)) == 9 * 7


def test_list_commands(runner):
    result = runner.invoke(main, ['list-fractals'])
    assert result.exit_code == 0
    assert 'gingerbreadman' in result.output
    assert 'degree' in result.output

    result = runner.invoke(main, ['list-presets'])
    assert result.exit_code == 0
    assert 'rabbit' in result.output


def test_version(runner):
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert 'Fractal Sampler' in result.output
