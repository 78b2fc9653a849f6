"""
Multiprocessing backend for parallel fractal sampling.

Grid fractals are split into vertical strips of columns which are sampled in
separate processes and reassembled in column order, so the parallel output is
identical, record for record, to the sequential row-major output. Map
fractals are sequential by nature; only independent sequences run
concurrently, each with its own random stream.
"""

import numpy as np
from typing import List, Optional, Sequence
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor

from ..core.fractal_types import GridFractal, MapFractal
from ..core.math_functions import SampleGrid, validate_budget
from ..core.records import GridSample, MapPoint

logger = logging.getLogger(__name__)


@dataclass
class TileSpec:
    """Specification for a single column strip in parallel sampling."""
    tile_id: int
    column_start: int
    column_stop: int

    @property
    def width(self) -> int:
        return self.column_stop - self.column_start


@dataclass
class TileResult:
    """Result from sampling a single tile."""
    tile_id: int
    records: List[GridSample]
    processing_time: float


def create_tile_grid(x_count: int, tile_columns: int = 16) -> List[TileSpec]:
    """
    Split the grid columns into strips for parallel processing.

    Args:
        x_count: Number of grid columns
        tile_columns: Target number of columns per strip

    Returns:
        List of TileSpec objects in column order
    """
    if tile_columns < 1:
        raise ValueError("tile_columns must be >= 1")

    tiles = []
    for tile_id, start in enumerate(range(0, x_count, tile_columns)):
        tiles.append(TileSpec(tile_id=tile_id, column_start=start,
                              column_stop=min(start + tile_columns, x_count)))

    logger.debug(f"Created {len(tiles)} tiles of up to {tile_columns} columns")
    return tiles


def process_fractal_tile(args) -> TileResult:
    """
    Sample a single tile in a worker process.

    Args:
        args: Tuple of (fractal, grid, tile_spec, max_iter)

    Returns:
        TileResult object
    """
    fractal, grid, tile_spec, max_iter = args
    start_time = time.time()

    strip = grid.column_slice(tile_spec.column_start, tile_spec.column_stop)
    records = list(fractal.sample(strip, max_iter))

    return TileResult(tile_id=tile_spec.tile_id, records=records,
                      processing_time=time.time() - start_time)


def assemble_tiles(tile_results: Sequence[TileResult]) -> List[GridSample]:
    """Concatenate tile records in tile order, restoring row-major order."""
    records = []
    for tile_result in sorted(tile_results, key=lambda tr: tr.tile_id):
        records.extend(tile_result.records)
    return records


class ParallelGridSampler:
    """Multiprocessing-based parallel grid sampling."""

    def __init__(self, num_processes: Optional[int] = None, tile_columns: int = 16):
        """
        Initialize parallel sampler.

        Args:
            num_processes: Number of worker processes (None for CPU count)
            tile_columns: Number of grid columns per tile
        """
        if num_processes is None:
            self.num_processes = get_optimal_process_count()
        else:
            self.num_processes = max(1, num_processes)

        if tile_columns < 1:
            raise ValueError("tile_columns must be >= 1")
        self.tile_columns = tile_columns
        logger.info(f"Parallel sampler: {self.num_processes} processes, {tile_columns}-column tiles")

    def sample(self, fractal: GridFractal, grid: SampleGrid, max_iter: int) -> List[GridSample]:
        """
        Sample a grid fractal using parallel tile-based processing.

        Args:
            fractal: Grid fractal to sample
            grid: Sampling domain
            max_iter: Iteration budget per point

        Returns:
            All records in row-major order. A failure in any tile is raised
            to the caller; no partial result is returned.
        """
        max_iter = validate_budget(max_iter, 'max_iter')
        start_time = time.time()

        tiles = create_tile_grid(grid.x_count, self.tile_columns)
        tile_args = [(fractal, grid, tile, max_iter) for tile in tiles]

        if self.num_processes == 1 or len(tiles) == 1:
            tile_results = [process_fractal_tile(args) for args in tile_args]
        else:
            logger.info(f"Processing {len(tiles)} tiles with {self.num_processes} processes")
            with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
                tile_results = list(executor.map(process_fractal_tile, tile_args))

        records = assemble_tiles(tile_results)

        total_time = time.time() - start_time
        total_processing_time = sum(tr.processing_time for tr in tile_results)
        logger.info(f"Parallel sampling complete: {len(records)} samples, {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")
        return records


def generate_map_sequence(args) -> List[MapPoint]:
    """Generate one complete map sequence in a worker process."""
    fractal, num_points, seed_sequence = args
    rng = np.random.default_rng(seed_sequence)
    return list(fractal.sample(num_points, rng))


def sample_map_sequences(fractals: Sequence[MapFractal], num_points: int,
                         seed: Optional[int] = None,
                         num_processes: Optional[int] = None) -> List[List[MapPoint]]:
    """
    Generate several independent map sequences concurrently.

    Each sequence receives its own random stream spawned from ``seed``, so the
    result is reproducible for a given seed regardless of scheduling.

    Args:
        fractals: Map fractals, one per sequence
        num_points: Points per sequence
        seed: Root seed for the spawned streams (None for OS entropy)
        num_processes: Number of worker processes (None for CPU count)

    Returns:
        One list of points per fractal, in input order
    """
    num_points = validate_budget(num_points, 'num_points')
    streams = np.random.SeedSequence(seed).spawn(len(fractals))
    job_args = list(zip(fractals, [num_points] * len(fractals), streams))

    workers = max(1, min(num_processes or get_optimal_process_count(), len(job_args)))
    if workers == 1:
        return [generate_map_sequence(args) for args in job_args]

    logger.info(f"Generating {len(job_args)} map sequences with {workers} processes")
    with ProcessPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(generate_map_sequence, job_args))


def get_optimal_process_count() -> int:
    """Get optimal number of processes for fractal sampling."""
    # Leave one core for the system
    return max(1, mp.cpu_count() - 1)
