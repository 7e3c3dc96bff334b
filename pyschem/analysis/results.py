"""Named signal series produced by the analysis drivers.

Every series is a list of (x, y) samples; x is time, swept value, frequency
or phase depending on the driver. Keys follow the plotting convention:

    V(<node>)             node voltage
    I(<element>)          element current (positive -> negative terminal)
    V(<node>)(amplitude)  AC magnitude (linear or dB)
    V(<node>)(phase)      AC phase in degrees
"""

from __future__ import annotations
import logging
from typing import Callable, NamedTuple

logger = logging.getLogger(__name__)

Signals = dict[str, list[tuple[float, float]]]


def voltage_key(node: str) -> str:
    return f"V({node})"


def current_key(element: str) -> str:
    return f"I({element})"


def amplitude_key(key: str) -> str:
    return f"{key}(amplitude)"


def phase_key(key: str) -> str:
    return f"{key}(phase)"


class AnalysisResult(NamedTuple):
    """
    Output of a sweep or transient run.

    failures lists the x values (e.g. DC sweep points) for which no valid
    solution was found; those points have no samples.
    """
    signals: Signals
    failures: tuple[float, ...] = ()

    def keys(self) -> list[str]:
        return list(self.signals)

    def xs(self, key: str) -> list[float]:
        return [x for x, _ in self.signals[key]]

    def ys(self, key: str) -> list[float]:
        return [y for _, y in self.signals[key]]

    def at(self, key: str, x: float) -> float:
        """Sample of a series whose x is closest to x."""
        series = self.signals[key]
        return min(series, key=lambda s: abs(s[0] - x))[1]


class SignalWriter:
    """
    Buffers samples and flushes them in batches.

    With on_batch set, each flushed batch is handed to the callback and
    dropped, so memory stays bounded by batch_size points; otherwise batches
    are merged into the final result.
    """

    def __init__(self, batch_size: int, on_batch: Callable[[Signals], None] | None = None):
        self.batch_size = batch_size
        self.on_batch = on_batch
        self.signals: Signals = {}
        self._buffer: Signals = {}
        self._pending = 0
        self.batches = 0

    def record(self, x: float, values: dict[str, float]) -> None:
        for key, y in values.items():
            self._buffer.setdefault(key, []).append((x, y))
        self._pending += 1
        if self._pending >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self._pending:
            return
        batch, self._buffer, self._pending = self._buffer, {}, 0
        self.batches += 1
        if self.on_batch is not None:
            self.on_batch(batch)
            return
        for key, samples in batch.items():
            self.signals.setdefault(key, []).extend(samples)

    def result(self, failures=()) -> AnalysisResult:
        self.flush()
        logger.debug(f"Wrote {len(self.signals)} signals in {self.batches} batches")
        return AnalysisResult(self.signals, tuple(failures))
