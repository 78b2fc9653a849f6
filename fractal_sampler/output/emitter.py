"""
Record emission for the plotting collaborator.

The sampling drivers produce ``GridSample`` / ``MapPoint`` records; this
module hands them to the caller as a finite, ordered, single-pass
``SampleSequence`` and offers the plain-tuple, array and text-row views the
caller formats from. No record is reordered, dropped or recomputed here.
"""

import numpy as np
from typing import Iterable, Iterator, Optional, Tuple
import logging
import time

from ..core.errors import SequenceExhaustedError
from ..core.fractal_types import FractalKind
from ..core.records import SampleRecord

logger = logging.getLogger(__name__)


class SampleSequence:
    """
    Ordered, finite, non-restartable sequence of sample records.

    Iterating yields the records exactly as the sampler produced them. Once
    the sequence has been exhausted, starting a new iteration raises
    ``SequenceExhaustedError`` instead of silently yielding nothing.
    """

    def __init__(self, records: Iterable[SampleRecord], kind: FractalKind,
                 expected_length: int, color: Optional[str] = None):
        """
        Args:
            records: Record iterator from a sampling driver
            kind: Fractal kind that produced the records
            expected_length: Number of records the sequence will yield
            color: Point-cloud color for map kinds, None for grid kinds
        """
        self._records = iter(records)
        self.kind = kind
        self.expected_length = expected_length
        self.color = color
        self.emitted = 0
        self._exhausted = False
        self._started_at = None

    @property
    def record_width(self) -> int:
        """Number of fields per record: 2 for map kinds, 3 for grid kinds."""
        return 2 if self.kind.is_map else 3

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def __iter__(self) -> 'SampleSequence':
        if self._exhausted:
            raise SequenceExhaustedError(f"{self.kind.value} sample sequence already consumed")
        return self

    def __next__(self) -> SampleRecord:
        if self._exhausted:
            raise StopIteration
        if self._started_at is None:
            self._started_at = time.time()
        try:
            record = next(self._records)
        except StopIteration:
            self._exhausted = True
            logger.info(f"Emitted {self.emitted} {self.kind.value} records in "
                        f"{time.time() - self._started_at:.2f}s")
            raise
        self.emitted += 1
        return record

    def __len__(self) -> int:
        return self.expected_length

    def __repr__(self) -> str:
        return (f"SampleSequence(kind={self.kind.value}, length={self.expected_length}, "
                f"emitted={self.emitted})")


class RecordEmitter:
    """Adapt internal records into the external sequence formats."""

    def __init__(self, precision: Optional[int] = None, separator: str = ' '):
        """
        Initialize record emitter.

        Args:
            precision: Significant digits for text rows; None writes the
                shortest round-tripping representation
            separator: Column separator for text rows
        """
        self.precision = precision
        self.separator = separator

    def wrap(self, records: Iterable[SampleRecord], kind: FractalKind,
             expected_length: int, color: Optional[str] = None) -> SampleSequence:
        """Package a record iterator as the caller-facing sequence."""
        return SampleSequence(records, kind, expected_length, color)

    def emit(self, records: Iterable[SampleRecord]) -> Iterator[Tuple[float, ...]]:
        """Yield each record as a plain tuple, in order."""
        for record in records:
            yield tuple(record)

    def to_array(self, sequence: SampleSequence) -> np.ndarray:
        """
        Collect a sequence into a float64 array.

        Returns:
            Array of shape (N, 3) for grid kinds or (N, 2) for map kinds
        """
        width = sequence.record_width
        data = np.array([tuple(record) for record in sequence], dtype=np.float64)
        return data.reshape(-1, width)

    def format_value(self, value: float) -> str:
        if self.precision is None:
            return repr(float(value))
        return f"{value:.{self.precision}g}"

    def to_rows(self, records: Iterable[SampleRecord]) -> Iterator[str]:
        """Yield one text row per record, fields joined by the separator."""
        for record in self.emit(records):
            yield self.separator.join(self.format_value(v) for v in record)
