"""DC operating point and DC sweep.

Capacitors are open and inductors are 0 V branches. Diode states are found
by exhaustive enumeration (all OFF first), falling back to iteration for
circuits with many diodes.
"""

from __future__ import annotations
import logging
from typing import NamedTuple

from ..config import SimulationOptions
from ..diodes import DiodeProblem, DiodeSolution, enumerate_states
from ..errors import TopologyError
from ..linalg import PivotTally
from ..mna import DC, Context, NodeIndex, branch_elements, element_currents, node_voltage
from ..network import Network, Kind
from .results import AnalysisResult, SignalWriter, current_key, voltage_key
from .validation import linear_points, parse_range, validate

logger = logging.getLogger(__name__)


class OperatingPoint(NamedTuple):
    """DC solution; voltages and currents are empty when converged is False."""
    voltages: dict[str, float]
    currents: dict[str, float]
    converged: bool
    message: str = ""


class _DcSolver:
    """Network prepared once for repeated DC solves."""

    def __init__(self, network: Network, options: SimulationOptions):
        self.network = network
        self.options = options
        self.nodes = validate(network)
        self.index = NodeIndex.build(network, self.nodes)
        self.branches = branch_elements(network, DC)
        self.tally = PivotTally()

    def solve(self, overrides: dict[str, float] | None = None) -> tuple[DiodeSolution, Context]:
        ctx = Context(DC, overrides=overrides or {})
        problem = DiodeProblem(
            self.network, self.index, self.branches, ctx,
            epsilon=self.options.pivot_epsilon, tally=self.tally,
        )
        solution = enumerate_states(
            problem,
            self.options.max_enumerated_diodes,
            fallback_iterations=self.options.max_diode_iterations,
        )
        return solution, ctx._replace(diode_on=solution.states)

    def voltages(self, x: list) -> dict[str, float]:
        return {name: node_voltage(x, self.index, name) for name in self.nodes}

    def currents(self, x: list, ctx: Context) -> dict[str, float]:
        return element_currents(self.network, x, self.index, self.branches, ctx)


def operating_point(network: Network, options: SimulationOptions | None = None) -> OperatingPoint:
    """
    Solve the DC operating point.

    Returns:
        OperatingPoint with node voltages (ground included) and element
        currents; converged=False with a message when no consistent diode
        state exists
    """
    solver = _DcSolver(network, options or SimulationOptions())
    solution, ctx = solver.solve()
    solver.tally.report("Operating point")
    if not solution.converged:
        logger.warning(f"Operating point failed: {solution.message}")
        return OperatingPoint({}, {}, False, solution.message)
    logger.info(f"Operating point found after {solution.iterations} solve(s)")
    return OperatingPoint(solver.voltages(solution.x), solver.currents(solution.x, ctx), True)


def dc_sweep(
    network: Network,
    source: str,
    start,
    stop,
    step,
    options: SimulationOptions | None = None,
) -> AnalysisResult:
    """
    Sweep the value of one independent source and solve DC at each point.

    The sweep includes both end points and runs downwards when stop < start.
    Points without a consistent diode state are listed in failures and
    skipped; the sweep continues.

    Args:
        network: Circuit to analyse
        source: Name of a V or I source
        start, stop, step: Sweep range (numbers or engineering strings)

    Returns:
        AnalysisResult keyed by V(<node>) and I(<element>), x = source value
    """
    options = options or SimulationOptions()
    spec = network.element(source)
    if spec.kind not in Kind.SOURCES:
        raise TopologyError(f"{source} is not an independent source")
    start, stop, step = parse_range(start, stop, step, "sweep")

    solver = _DcSolver(network, options)
    writer = SignalWriter(options.ac_batch_size)
    failures = []
    points = linear_points(start, stop, step, options.time_epsilon)
    logger.info(f"DC sweep of {source}: {len(points)} points")

    for value in points:
        solution, ctx = solver.solve({source: value})
        if not solution.converged:
            logger.warning(f"DC sweep {source}={value:g}: {solution.message}")
            failures.append(value)
            continue
        values = {voltage_key(k): v for k, v in solver.voltages(solution.x).items()}
        values.update((current_key(k), i) for k, i in solver.currents(solution.x, ctx).items())
        writer.record(value, values)

    solver.tally.report(f"DC sweep of {source}")
    return writer.result(failures)
