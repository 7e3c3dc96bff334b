"""Time-varying source waveforms.

Each waveform is an immutable description with an `at(t, dt)` method that
returns the source value at time t. The transient driver passes its step size
as dt; steady-state analyses evaluate at t=0 with dt=0.
"""

from __future__ import annotations
import logging
import math
import re
from pathlib import Path
from typing import NamedTuple, Union

from .errors import InvalidValueError
from .units import parse_value

logger = logging.getLogger(__name__)


class Impulse(NamedTuple):
    """
    Rectangular impulse of a given area.

    The source takes the value area/width for time <= t < time + width and
    zero elsewhere. With width=None the whole area is delivered by the one
    step t whose interval [t - dt, t) contains `time`, so an impulse at t=0
    lands on the first transient step.
    """
    time: float
    area: float
    width: float | None = None

    def at(self, t: float, dt: float = 0.0) -> float:
        if self.width is not None:
            if self.time <= t < self.time + self.width:
                return self.area / self.width
            return 0.0
        if dt <= 0:
            return 0.0
        # Tolerance absorbs the rounding of t = k*dt
        tol = dt * 1e-6
        if t - dt - tol <= self.time < t - tol:
            return self.area / dt
        return 0.0


class Sine(NamedTuple):
    """offset + amplitude * sin(2*pi*frequency*t + phase), phase in degrees."""
    offset: float
    amplitude: float
    frequency: float
    phase: float = 0.0

    def at(self, t: float, dt: float = 0.0) -> float:
        return self.offset + self.amplitude * math.sin(
            2 * math.pi * self.frequency * t + math.radians(self.phase)
        )


class PiecewiseLinear(NamedTuple):
    """
    Breakpoint table of (time, value) pairs.

    Values are linearly interpolated between breakpoints and clamped to the
    first/last value outside the table. An empty table evaluates to zero.
    """
    points: tuple[tuple[float, float], ...] = ()

    def at(self, t: float, dt: float = 0.0) -> float:
        pts = self.points
        if not pts:
            return 0.0
        if t <= pts[0][0]:
            return pts[0][1]
        if t >= pts[-1][0]:
            return pts[-1][1]
        for (t0, v0), (t1, v1) in zip(pts, pts[1:]):
            if t0 <= t <= t1:
                if t1 == t0:
                    return v1
                return v0 + (v1 - v0) * (t - t0) / (t1 - t0)
        return pts[-1][1]

    @classmethod
    def from_points(cls, points) -> PiecewiseLinear:
        """Build a table from (time, value) pairs, sorted by time."""
        table = tuple(sorted((float(t), float(v)) for t, v in points))
        return cls(table)

    @classmethod
    def from_file(cls, path: str | Path) -> PiecewiseLinear:
        """
        Load a table from a text file.

        One breakpoint per line: time and value separated by whitespace or a
        comma, both in engineering notation. Blank lines and lines starting
        with '#' or '*' are skipped. A file that cannot be read or parsed
        yields an empty (zero-valued) table and a warning.
        """
        try:
            text = Path(path).read_text()
        except OSError as e:
            logger.warning(f"Cannot read waveform table {path}: {e}; using zero table")
            return cls()

        points = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line or line[0] in "#*":
                continue
            fields = [f for f in re.split(r"[\s,;]+", line) if f]
            try:
                if len(fields) != 2:
                    raise InvalidValueError(f"{path}:{lineno}", line)
                points.append((
                    parse_value(fields[0], "waveform time"),
                    parse_value(fields[1], "waveform value"),
                ))
            except InvalidValueError as e:
                logger.warning(f"Bad waveform table {path}: {e}; using zero table")
                return cls()
        return cls.from_points(points)


class Pulse(NamedTuple):
    """
    Trapezoidal pulse train.

    After `delay` the waveform rises from `initial` to `on` in `rise`, holds
    for `on_time`, falls back in `fall` and stays at `initial` until the end
    of `period`. With cycles > 0 only that many periods are produced; with
    period=0 a single pulse is produced.
    """
    initial: float
    on: float
    delay: float = 0.0
    rise: float = 0.0
    on_time: float = 0.0
    fall: float = 0.0
    period: float = 0.0
    cycles: int = 0

    def at(self, t: float, dt: float = 0.0) -> float:
        if t < self.delay:
            return self.initial
        tau = t - self.delay
        if self.period > 0:
            cycle = math.floor(tau / self.period)
            if self.cycles > 0 and cycle >= self.cycles:
                return self.initial
            tau -= cycle * self.period

        swing = self.on - self.initial
        if tau < self.rise:
            return self.initial + swing * tau / self.rise
        tau -= self.rise
        if tau < self.on_time:
            return self.on
        tau -= self.on_time
        if tau < self.fall:
            return self.on - swing * tau / self.fall
        return self.initial


Waveform = Union[Impulse, Sine, PiecewiseLinear, Pulse]
