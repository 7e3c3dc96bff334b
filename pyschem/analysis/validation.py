"""Structural checks run before any matrix is built."""

from __future__ import annotations
import logging

from ..errors import DisconnectedCircuitError, GroundError, InvalidValueError, TopologyError
from ..mna import active_nodes
from ..network import Network
from ..units import parse_value

logger = logging.getLogger(__name__)


def validate(network: Network) -> list[str]:
    """
    Check ground and connectivity of the active circuit.

    Args:
        network: Circuit to check

    Returns:
        Active node names (ground included), in network order

    Raises:
        GroundError: zero or several ground nodes, or ground not on any element
        DisconnectedCircuitError: some active node is unreachable from ground
        TopologyError: the circuit has no elements
    """
    grounds = network.grounds
    if len(grounds) != 1:
        raise GroundError(len(grounds))
    if not network.elements:
        raise TopologyError("Circuit has no elements")

    nodes = active_nodes(network)
    ground = grounds[0].name
    if not any(ground in e.nodes for e in network.elements):
        raise GroundError(1, f"Ground node {ground!r} is not connected to any element")

    position = {name: i for i, name in enumerate(nodes)}
    size = len(nodes)
    adjacency = [[False] * size for _ in range(size)]
    for e in network.elements:
        a, b = position[e.nodes[0]], position[e.nodes[1]]
        adjacency[a][b] = adjacency[b][a] = True

    # Depth-first traversal from ground
    visited = [False] * size
    stack = [position[ground]]
    while stack:
        i = stack.pop()
        if visited[i]:
            continue
        visited[i] = True
        stack.extend(j for j in range(size) if adjacency[i][j] and not visited[j])

    unreached = [nodes[i] for i in range(size) if not visited[i]]
    if unreached:
        raise DisconnectedCircuitError(unreached)
    logger.debug(f"Validated circuit: {size} nodes, {len(network.elements)} elements")
    return nodes


def parse_range(start, stop, step, field: str, *, positive_step: bool = True) -> tuple[float, float, float]:
    """Parse a start/stop/step triple given as numbers or engineering strings."""
    start = parse_value(start, f"{field} start")
    stop = parse_value(stop, f"{field} stop")
    step = parse_value(step, f"{field} step", positive=positive_step)
    return start, stop, step


def linear_points(start: float, stop: float, step: float, tolerance: float) -> list[float]:
    """Inclusive linear grid from start towards stop (either direction)."""
    if step <= 0:
        raise InvalidValueError("step", step, reason="value must be positive")
    span = stop - start
    count = int(abs(span) / step * (1 + tolerance) + tolerance) + 1
    direction = 1.0 if span >= 0 else -1.0
    return [start + direction * k * step for k in range(count)]
