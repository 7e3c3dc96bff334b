"""Fixed-step backward-Euler transient analysis."""

from __future__ import annotations
import logging

from ..config import SimulationOptions
from ..diodes import DiodeProblem, iterate
from ..errors import ConvergenceError, InvalidValueError
from ..linalg import PivotTally
from ..mna import TRANSIENT, Context, History, NodeIndex, branch_elements, element_currents, node_voltage
from ..network import Network, Kind
from ..units import parse_value
from .results import AnalysisResult, SignalWriter, current_key, voltage_key
from .validation import validate

logger = logging.getLogger(__name__)


def transient(
    network: Network,
    stop,
    step,
    *,
    start=0.0,
    options: SimulationOptions | None = None,
) -> AnalysisResult:
    """
    Simulate from t=0 to stop with a fixed time step.

    Capacitors and inductors start discharged. At each step the diode states
    are seeded from the previous step (ON when the forward voltage reached
    the threshold) and resolved iteratively.

    Args:
        network: Circuit to simulate
        stop: Stop time in seconds (number or string such as "10m")
        step: Time step in seconds
        start: Samples before this time are computed but not recorded
        options: Solver options

    Returns:
        AnalysisResult with V(<node>) for every active node and I(<element>)
        for every element, sampled at t = step, 2*step, ... <= stop

    Raises:
        InvalidValueError: stop, step or start is malformed or out of range,
            or step exceeds stop
        ConvergenceError: diode states did not settle at some time step
    """
    options = options or SimulationOptions()
    stop = parse_value(stop, "stop time", positive=True)
    dt = parse_value(step, "time step", positive=True)
    start = parse_value(start, "start time")
    if dt > stop * (1 + options.time_epsilon):
        raise InvalidValueError("time step", dt, reason="value must not exceed the stop time")
    if not 0 <= start <= stop:
        raise InvalidValueError("start time", start, reason="value must lie between 0 and the stop time")

    nodes = validate(network)
    index = NodeIndex.build(network, nodes)
    branches = branch_elements(network, TRANSIENT)
    history = History(
        {e.name: 0.0 for e in network.elements if e.kind == Kind.C},
        {e.name: 0.0 for e in network.elements if e.kind == Kind.L},
    )
    diode_voltage = {e.name: 0.0 for e in network.elements if e.kind == Kind.D}
    writer = SignalWriter(options.ac_batch_size)
    tally = PivotTally()

    limit = stop * (1 + options.time_epsilon)
    n_steps = int(limit / dt)
    logger.info(f"Transient analysis: {n_steps} steps of {dt:g}s, {len(nodes)} nodes")

    for k in range(1, n_steps + 1):
        t = k * dt
        ctx = Context(TRANSIENT, time=t, dt=dt, history=history)
        problem = DiodeProblem(
            network, index, branches, ctx, epsilon=options.pivot_epsilon, tally=tally,
        )

        if problem.diodes:
            seed = {d.name: diode_voltage[d.name] >= d.value for d in problem.diodes}
            solution = iterate(
                problem, seed, options.max_diode_iterations,
                max_diodes=options.max_enumerated_diodes,
            )
            if not solution.converged:
                raise ConvergenceError(solution.message, time=t)
            x, states = solution.x, solution.states
            for d in problem.diodes:
                diode_voltage[d.name] = problem.voltage(x, d)
        else:
            x, states = problem.solve({}), {}

        ctx = ctx._replace(diode_on=states)
        currents = element_currents(network, x, index, branches, ctx)

        # Companion history for the next step
        history = History(
            {name: _branch_voltage(x, index, network.element(name)) for name in history.cap_voltages},
            {name: currents[name] for name in history.ind_currents},
        )

        if t >= start * (1 - options.time_epsilon):
            values = {voltage_key(name): node_voltage(x, index, name) for name in nodes}
            values.update((current_key(name), value) for name, value in currents.items())
            writer.record(t, values)

    tally.report("Transient analysis")
    logger.info(f"Transient analysis finished at t={n_steps * dt:g}s")
    return writer.result()


def _branch_voltage(x: list, index: NodeIndex, spec) -> float:
    return node_voltage(x, index, spec.nodes[0]) - node_voltage(x, index, spec.nodes[1])
