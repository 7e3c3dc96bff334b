"""Assumed-state resolution of ideal diodes.

Each diode is replaced, for one analysis instant, by a linear companion:
ON is a fixed forward-voltage source (V = threshold), OFF is a zero-current
branch. A state assignment is accepted when it is self-consistent:

    ON  -> branch current >= 0 (within DIODE_CURRENT_TOLERANCE)
    OFF -> V(anode) - V(cathode) < threshold

Two strategies are provided:
    iterate:          flip every inconsistent assumption and re-solve, bounded
    enumerate_states: try all 2**k assignments in a fixed order
Neither raises on failure; the returned DiodeSolution says whether it converged.

Assignments whose matrix is numerically singular (two ON diodes closing a
loop with a voltage source, a node left floating by OFF diodes) are solved
with a perturbed pivot. Their currents are not trustworthy, so both
strategies only accept such an assignment when no well-posed one is
consistent.
"""

from __future__ import annotations
import logging
from typing import Mapping, NamedTuple

from .config import DIODE_CURRENT_TOLERANCE, MAX_ENUMERATED_DIODES, PIVOT_EPSILON
from .linalg import PivotTally, solve_with_status
from .mna import Context, NodeIndex, assemble, node_voltage
from .network import Network, Kind

logger = logging.getLogger(__name__)


class DiodeSolution(NamedTuple):
    """Outcome of a diode state search."""
    x: list | None           # solution vector for the accepted (or last) states
    states: dict[str, bool]  # diode name -> ON
    converged: bool
    iterations: int          # solves performed
    message: str = ""


class DiodeProblem:
    """
    One analysis instant with its diodes left open.

    Binds the network, node index, branch list and context so the search
    strategies only deal with state assignments. `last_perturbed` tells
    whether the most recent solve needed a pivot perturbation; every solve
    is also counted in `tally`.
    """

    def __init__(
        self,
        network: Network,
        index: NodeIndex,
        branches: tuple[str, ...],
        ctx: Context,
        *,
        epsilon: float = PIVOT_EPSILON,
        tally: PivotTally | None = None,
    ):
        self.network = network
        self.index = index
        self.branches = branches
        self.ctx = ctx
        self.epsilon = epsilon
        self.tally = tally if tally is not None else PivotTally()
        self.last_perturbed = False
        self.diodes = tuple(e for e in network.elements if e.kind == Kind.D)
        self.n = len(index)
        self._branch_row = {name: self.n + k for k, name in enumerate(branches)}

    def solve(self, states: Mapping[str, bool]) -> list:
        """Assemble and solve with the given diode assumptions."""
        ctx = self.ctx._replace(diode_on=dict(states))
        system = assemble(self.network, self.index, self.branches, ctx)
        x, perturbed = solve_with_status(system.matrix(), system.rhs(), epsilon=self.epsilon)
        self.last_perturbed = perturbed
        self.tally.add(perturbed)
        return x.tolist()

    def voltage(self, x: list, spec) -> float:
        return float(node_voltage(x, self.index, spec.nodes[0])) - \
            float(node_voltage(x, self.index, spec.nodes[1]))

    def current(self, x: list, spec) -> float:
        return float(x[self._branch_row[spec.name]])

    def violations(self, x: list, states: Mapping[str, bool]) -> list[str]:
        """Names of diodes whose assumed state disagrees with the solution."""
        bad = []
        for spec in self.diodes:
            if states[spec.name]:
                ok = self.current(x, spec) >= -DIODE_CURRENT_TOLERANCE
            else:
                ok = self.voltage(x, spec) < spec.value
            if not ok:
                bad.append(spec.name)
        return bad


def iterate(
    problem: DiodeProblem,
    seed: Mapping[str, bool],
    max_iterations: int,
    *,
    max_diodes: int = MAX_ENUMERATED_DIODES,
) -> DiodeSolution:
    """
    Fixed-point search starting from seed.

    Every inconsistent diode is flipped after each solve. Exceeding
    max_iterations solves returns converged=False with the last states.

    A revisited assignment (the flips cycle) or a near-singular solve hands
    the instant over to enumerate_states when there are at most max_diodes
    diodes. With more diodes a cycle is broken by flipping only the first
    inconsistent diode.
    """
    states = {d.name: bool(seed.get(d.name, False)) for d in problem.diodes}
    can_enumerate = len(problem.diodes) <= max_diodes
    visited = set()
    x = None
    for iteration in range(1, max_iterations + 1):
        key = tuple(states[d.name] for d in problem.diodes)
        cycled = key in visited
        if cycled and can_enumerate:
            logger.debug(f"Diode iteration {iteration}: state cycle, enumerating")
            return _enumerate_from(problem, max_diodes, iteration - 1)
        visited.add(key)

        x = problem.solve(states)
        if problem.last_perturbed and can_enumerate:
            logger.debug(f"Diode iteration {iteration}: near-singular states, enumerating")
            return _enumerate_from(problem, max_diodes, iteration)
        bad = problem.violations(x, states)
        if not bad:
            return DiodeSolution(x, states, True, iteration)
        if cycled:
            bad = bad[:1]
        logger.debug(f"Diode iteration {iteration}: flipping {', '.join(bad)}")
        for name in bad:
            states[name] = not states[name]
    return DiodeSolution(
        x, states, False, max_iterations,
        f"diode states did not converge in {max_iterations} iterations",
    )


def _enumerate_from(problem: DiodeProblem, max_diodes: int, spent: int) -> DiodeSolution:
    solution = enumerate_states(problem, max_diodes)
    return solution._replace(iterations=solution.iterations + spent)


def enumerate_states(
    problem: DiodeProblem,
    max_diodes: int,
    *,
    fallback_iterations: int = 0,
) -> DiodeSolution:
    """
    Exhaustive search over all diode assignments.

    Combination c sets diode i ON iff bit i of c is set, visited for
    c = 0 .. 2**k - 1 (all OFF first). The first assignment for which every
    diode is consistent and whose matrix is well-posed is returned. When
    only near-singular assignments are consistent the first of those is
    returned. At most 2**k solves are performed.

    With more than max_diodes diodes the search falls back to iterate()
    seeded all-OFF when fallback_iterations > 0, otherwise it fails.
    """
    k = len(problem.diodes)
    if k > max_diodes:
        if fallback_iterations > 0:
            logger.warning(
                f"{k} diodes exceed the enumeration limit of {max_diodes}; "
                f"using iterative diode resolution"
            )
            return iterate(problem, {}, fallback_iterations, max_diodes=max_diodes)
        return DiodeSolution(
            None, {}, False, 0,
            f"too many diodes for exhaustive enumeration ({k} > {max_diodes})",
        )

    x = None
    states: dict[str, bool] = {}
    singular = None
    for combination in range(2 ** k):
        states = {d.name: bool(combination >> i & 1) for i, d in enumerate(problem.diodes)}
        x = problem.solve(states)
        if problem.violations(x, states):
            continue
        if not problem.last_perturbed:
            return DiodeSolution(x, states, True, combination + 1)
        if singular is None:
            singular = (x, states)
    if singular is not None:
        return DiodeSolution(singular[0], singular[1], True, 2 ** k)
    return DiodeSolution(x, states, False, 2 ** k, "no valid diode state found")
