"""Small-signal AC sweep and source phase sweep.

Independent sources become phasors (ac_magnitude at ac_phase degrees),
capacitors and inductors become admittances jwC and 1/(jwL), and diodes are
left out. Each point records, for every active node and every voltage source
or passive element:

    <key>(amplitude)  |phasor| (20*log10|phasor| for the "db" sweep)
    <key>(phase)      angle in degrees
"""

from __future__ import annotations
import cmath
import logging
import math
from typing import Callable, Mapping

from ..config import SimulationOptions
from ..errors import InvalidValueError, TopologyError
from ..linalg import PivotTally, solve_backsub_with_status
from ..mna import AC, Context, NodeIndex, assemble, branch_elements, element_currents, node_voltage
from ..network import Network, Kind
from ..units import parse_value
from .results import (
    AnalysisResult, SignalWriter, Signals,
    amplitude_key, current_key, phase_key, voltage_key,
)
from .validation import linear_points, parse_range, validate

logger = logging.getLogger(__name__)

LINEAR = "linear"
DECADE = "decade"
DB = "db"
SWEEP_TYPES = (LINEAR, DECADE, DB)

# Magnitudes below this are clamped before taking the logarithm
DB_FLOOR = 1e-30


def frequency_points(start: float, stop: float, step: float, sweep: str, tolerance: float = 1e-9) -> list[float]:
    """
    Frequencies visited by an AC sweep.

    linear:      start, start+step, ... <= stop
    decade / db: step points per decade from start up to stop (start > 0)
    """
    if sweep not in SWEEP_TYPES:
        raise InvalidValueError("sweep type", sweep, reason=f"expected one of {', '.join(SWEEP_TYPES)}")
    if start < 0:
        raise InvalidValueError("frequency", start, reason="value must not be negative")
    if stop < start:
        raise InvalidValueError("frequency", stop, reason="stop must not be below start")
    if sweep == LINEAR:
        return linear_points(start, stop, step, tolerance)

    if start <= 0:
        raise InvalidValueError("frequency", start, reason="logarithmic sweeps need a positive start")
    per_decade = int(round(step))
    if per_decade < 1:
        raise InvalidValueError("points per decade", step, reason="value must be at least 1")
    count = int(math.log10(stop / start) * per_decade * (1 + tolerance) + tolerance) + 1
    return [start * 10 ** (k / per_decade) for k in range(count)]


class _AcSolver:
    """Network prepared once for repeated phasor solves."""

    def __init__(self, network: Network, options: SimulationOptions):
        self.network = network
        self.options = options
        self.nodes = validate(network)
        self.index = NodeIndex.build(network, self.nodes)
        self.branches = branch_elements(network, AC, diodes=False)
        self.tally = PivotTally()
        self.probed = tuple(
            e for e in network.elements
            if e.kind in (Kind.V, Kind.VCVS, Kind.CCVS) or e.kind in Kind.PASSIVE
        )

    def solve(self, frequency: float, phase_offsets: Mapping[str, float]) -> dict[str, complex]:
        ctx = Context(AC, omega=2 * math.pi * frequency, phase_offsets=phase_offsets)
        system = assemble(self.network, self.index, self.branches, ctx)
        x, perturbed = solve_backsub_with_status(
            system.matrix(), system.rhs(), epsilon=self.options.pivot_epsilon,
        )
        self.tally.add(perturbed)
        x = x.tolist()
        phasors = {voltage_key(name): node_voltage(x, self.index, name) for name in self.nodes}
        currents = element_currents(self.network, x, self.index, self.branches, ctx, self.probed)
        phasors.update((current_key(name), value) for name, value in currents.items())
        return phasors


def _polar(phasors: dict[str, complex], db: bool) -> dict[str, float]:
    values = {}
    for key, phasor in phasors.items():
        magnitude = abs(phasor)
        if db:
            magnitude = 20 * math.log10(max(magnitude, DB_FLOOR))
        values[amplitude_key(key)] = magnitude
        values[phase_key(key)] = math.degrees(cmath.phase(phasor))
    return values


def ac_sweep(
    network: Network,
    start,
    stop,
    step,
    sweep: str = LINEAR,
    *,
    options: SimulationOptions | None = None,
    on_batch: Callable[[Signals], None] | None = None,
) -> AnalysisResult:
    """
    Solve the phasor network over a frequency range.

    Args:
        network: Circuit to analyse
        start, stop: Frequency range in Hz
        step: Hz increment for "linear"; points per decade for "decade"/"db"
        sweep: "linear", "decade" or "db" (decade spacing, amplitude in dB)
        options: Solver options (ac_batch_size sets the flush interval)
        on_batch: Receives each flushed batch; batches are then not retained

    Returns:
        AnalysisResult with x = frequency in Hz
    """
    options = options or SimulationOptions()
    start, stop, step = parse_range(start, stop, step, "frequency")
    points = frequency_points(start, stop, step, sweep, options.time_epsilon)

    solver = _AcSolver(network, options)
    writer = SignalWriter(options.ac_batch_size, on_batch)
    logger.info(f"AC sweep ({sweep}): {len(points)} points from {start:g}Hz to {stop:g}Hz")
    for frequency in points:
        writer.record(frequency, _polar(solver.solve(frequency, {}), sweep == DB))
    solver.tally.report("AC sweep")
    return writer.result()


def phase_sweep(
    network: Network,
    frequency,
    start,
    stop,
    step,
    *,
    source: str | None = None,
    options: SimulationOptions | None = None,
    on_batch: Callable[[Signals], None] | None = None,
) -> AnalysisResult:
    """
    Solve the phasor network at one frequency while rotating source phase.

    Args:
        network: Circuit to analyse
        frequency: Fixed frequency in Hz (> 0)
        start, stop, step: Phase offset range in degrees
        source: Independent source whose phase is swept; all of them when None
        options: Solver options
        on_batch: Receives each flushed batch; batches are then not retained

    Returns:
        AnalysisResult with x = phase offset in degrees
    """
    options = options or SimulationOptions()
    frequency = parse_value(frequency, "frequency", positive=True)
    start, stop, step = parse_range(start, stop, step, "phase")
    if source is None:
        swept = [e.name for e in network.elements if e.kind in Kind.SOURCES]
    else:
        if network.element(source).kind not in Kind.SOURCES:
            raise TopologyError(f"{source} is not an independent source")
        swept = [source]

    solver = _AcSolver(network, options)
    writer = SignalWriter(options.ac_batch_size, on_batch)
    points = linear_points(start, stop, step, options.time_epsilon)
    logger.info(f"Phase sweep at {frequency:g}Hz: {len(points)} points over {', '.join(swept)}")
    for phase in points:
        offsets = {name: phase for name in swept}
        writer.record(phase, _polar(solver.solve(frequency, offsets), False))
    solver.tally.report("Phase sweep")
    return writer.result()
