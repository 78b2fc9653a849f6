"""
Command-line interface for fractal sampling.

Prints sample records as whitespace-separated rows on stdout so they can be
piped into a plotting tool.
"""

import click
import sys
import json
from pathlib import Path
from typing import Any, Dict, Tuple
import logging

import yaml

from .. import __version__
from ..api import FractalSampler, SamplingConfig
from ..core.fractal_types import FractalKind, FractalRegistry, JULIA_PRESETS
from ..io.config import ConfigManager
from ..output.emitter import RecordEmitter

logger = logging.getLogger(__name__)

FRACTAL_CHOICES = [kind.value for kind in FractalKind]


def parse_floats(text: str, count: int, label: str) -> Tuple[float, ...]:
    """Parse a comma-separated list of ``count`` floats."""
    try:
        values = tuple(float(part.strip()) for part in text.split(','))
    except ValueError:
        raise click.BadParameter(f"{label} must be {count} comma-separated numbers") from None
    if len(values) != count:
        raise click.BadParameter(f"{label} must be {count} comma-separated numbers")
    return values


def parse_params(items: Tuple[str, ...]) -> Dict[str, Any]:
    """Parse repeated ``key=value`` options; values are read as YAML scalars."""
    params = {}
    for item in items:
        key, sep, raw = item.partition('=')
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got '{item}'")
        params[key.strip()] = yaml.safe_load(raw)
    return params


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    Fractal Sampler - point samples of 2D fractals for plotting.

    Escape-time fractals are sampled on a regular grid and emit
    "x y value" rows; map fractals emit "x y" rows.
    """
    # Setup logging (always to stderr so stdout carries only records)
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Fractal Sampler v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('fractal_type', type=click.Choice(FRACTAL_CHOICES), required=False)
@click.option('--config', 'config_file', type=click.Path(exists=True), help='Job configuration file (JSON or YAML)')
@click.option('--bounds', type=str, help='Domain bounds: "xmin,xmax,ymin,ymax"')
@click.option('--step', type=str, help='Grid steps: "dx,dy"')
@click.option('--max-iter', type=int, help='Maximum iterations per grid point')
@click.option('--num-points', type=int, help='Number of points for map fractals')
@click.option('--param', 'params', multiple=True, help='Fractal parameter as key=value (repeatable)')
@click.option('--julia-preset', type=click.Choice(sorted(JULIA_PRESETS)), help='Julia constant preset')
@click.option('--seed', type=int, help='Random seed for map fractals')
@click.option('--parallel', is_flag=True, help='Sample grid tiles in parallel processes')
@click.option('--processes', type=int, help='Number of processes for parallel sampling')
@click.option('--precision', type=int, help='Significant digits in output rows')
@click.pass_context
def sample(ctx, fractal_type, config_file, bounds, step, max_iter, num_points, params,
           julia_preset, seed, parallel, processes, precision):
    """
    Sample a fractal and print one record per line.

    FRACTAL_TYPE: Kind of fractal (optional when --config names one)
    """
    try:
        if config_file:
            fractal, config = ConfigManager().load_job(config_file)
            if fractal_type and FractalKind.parse(fractal_type) != fractal.kind:
                raise click.UsageError(f"--config describes {fractal.kind.value}, not {fractal_type}")
            fractal_params = fractal.parameters.to_dict()
        elif fractal_type:
            fractal, config = None, SamplingConfig()
            fractal_params = {}
        else:
            raise click.UsageError("Give a FRACTAL_TYPE or --config")

        kind = fractal.kind if fractal is not None else FractalKind.parse(fractal_type)

        # Apply command-line overrides
        if julia_preset:
            if kind != FractalKind.JULIA:
                raise click.UsageError("--julia-preset only applies to julia")
            fractal_params.update(JULIA_PRESETS[julia_preset].to_dict())
        fractal_params.update(parse_params(params))
        if fractal is None or julia_preset or params:
            fractal = FractalRegistry.create_fractal(kind, **fractal_params)

        if bounds:
            config.bounds = parse_floats(bounds, 4, 'bounds')
        if step:
            config.step = parse_floats(step, 2, 'step')
        if max_iter is not None:
            config.max_iterations = max_iter
        if num_points is not None:
            config.num_points = num_points
        if seed is not None:
            config.seed = seed
        if parallel:
            config.use_multiprocessing = True
        if processes is not None:
            config.num_processes = processes

        sampler = FractalSampler(config, RecordEmitter(precision=precision))
        sequence = sampler.sample(fractal)

        if sequence.color is not None:
            logger.info(f"Point color: {sequence.color}")
        for row in sampler.emitter.to_rows(sequence):
            click.echo(row)

    except click.UsageError:
        raise
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
@click.pass_context
def list_fractals(ctx):
    """List available fractal types and their parameters."""
    fractals = FractalRegistry.list_fractals()

    click.echo("Available fractal types:")
    for name, description in fractals.items():
        click.echo(f"  {name}")
        param_names = [key for key in FractalRegistry.parameter_class(name)().to_dict()]
        if param_names:
            click.echo(f"    parameters: {', '.join(param_names)}")
        if ctx.obj.get('verbose'):
            click.echo(f"    {description}")


@main.command()
def list_presets():
    """List Julia set presets."""
    click.echo("Julia set presets:")
    for name, params in JULIA_PRESETS.items():
        click.echo(f"  {name}: c = {complex(*params.c)}")


@main.command()
@click.argument('fractal_type', type=click.Choice(FRACTAL_CHOICES), default='mandelbrot')
@click.option('--output', '-o', type=click.Path(), default='sampling_job.yaml',
              help='Output file path')
@click.option('--format', 'fmt', type=click.Choice(['yaml', 'json']),
              help='Output format (auto-detect if not specified)')
def init_config(fractal_type, output, fmt):
    """Create a job configuration template."""
    try:
        template = ConfigManager().create_template(fractal_type)
        output = Path(output)
        fmt = fmt or ('json' if output.suffix.lower() == '.json' else 'yaml')

        with open(output, 'w', encoding='utf-8') as fh:
            if fmt == 'json':
                json.dump(template, fh, indent=2)
            else:
                yaml.safe_dump(template, fh, sort_keys=False)

        click.echo(f"Configuration template saved: {output}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
