"""Topology resolution: wires and grid points to electrical nodes.

A schematic is drawn on an integer grid. Every wire owns the ordered
sequence of grid points it passes through; two points belong to the same
electrical node iff an unbroken chain of wire segments connects them.

This module handles:
- Purging wires that are off-canvas, zero-length or dangling
- Breadth-first grouping of wired points into connected components
- Canonical naming (fresh names in discovery order, labels, grid names)
- Ground class detection
"""

from __future__ import annotations
import logging
from collections import defaultdict, deque
from typing import Iterable, Mapping, NamedTuple

from .errors import GroundError
from .network import Network, Node

logger = logging.getLogger(__name__)


class GridPoint(NamedTuple):
    """A point on the schematic grid."""
    x: int
    y: int


class Wire(NamedTuple):
    """
    A drawn wire: the ordered grid points it passes through.

    A point may be None while a wire is still being drawn (dangling end).
    """
    points: tuple[GridPoint | None, ...]


def grid_name(point: GridPoint) -> str:
    """Name of an unwired point, derived from its grid coordinate."""
    return f"N{point.x}_{point.y}"


def _on_canvas(point: GridPoint | None, width: int, height: int) -> bool:
    return point is not None and 0 <= point.x < width and 0 <= point.y < height


def wire_is_valid(wire: Wire, width: int, height: int) -> bool:
    """True when the wire is fully on the canvas, attached at both ends and not zero-length."""
    pts = wire.points
    if len(pts) < 2 or pts[0] is None or pts[-1] is None:
        return False
    if not all(_on_canvas(p, width, height) for p in pts):
        return False
    return len(set(pts)) >= 2


def purge_wires(wires: Iterable[Wire], width: int, height: int) -> tuple[Wire, ...]:
    """Drop wires outside the validity window before topology is recomputed."""
    kept = []
    for wire in wires:
        if wire_is_valid(wire, width, height):
            kept.append(wire)
        else:
            logger.debug(f"Purging invalid wire {wire.points}")
    return tuple(kept)


class Resolution(NamedTuple):
    """
    Result of a topology pass.

    names maps every grid point to its node name; ground is the name of the
    ground class (None if no ground point was given); counter is the number
    of fresh canonical names issued; labels maps user labels to node names.
    """
    names: dict[GridPoint, str]
    ground: str | None
    counter: int
    labels: dict[str, str]

    def name_of(self, point: GridPoint) -> str:
        return self.names[point]

    def partition(self) -> set[frozenset[GridPoint]]:
        """Equivalence classes of grid points (label-order independent)."""
        groups = defaultdict(set)
        for point, name in self.names.items():
            groups[name].add(point)
        return {frozenset(g) for g in groups.values()}

    def to_network(self) -> Network:
        """Create a Network with one Node per resolved name (ground flagged)."""
        seen = {}
        for name in self.names.values():
            if name not in seen:
                seen[name] = Node(name, name == self.ground)
        return Network(nodes=tuple(seen.values()), elements=())


def _adjacency(wires: Iterable[Wire]) -> dict[GridPoint, list[GridPoint]]:
    adjacency: dict[GridPoint, list[GridPoint]] = defaultdict(list)
    for wire in wires:
        for a, b in zip(wire.points, wire.points[1:]):
            if a is None or b is None or a == b:
                continue
            adjacency[a].append(b)
            adjacency[b].append(a)
    return adjacency


def resolve(
    points: Iterable[GridPoint],
    wires: Iterable[Wire],
    *,
    labels: Mapping[str, GridPoint] | None = None,
    grounds: Iterable[GridPoint] = (),
) -> Resolution:
    """
    Partition grid points into electrical nodes.

    Args:
        points: Every grid point of the schematic
        wires: Wire segments (already purged)
        labels: User-chosen names attached to grid points
        grounds: Points carrying a ground symbol

    Returns:
        Resolution with the point -> name map

    Raises:
        GroundError: ground symbols sit on more than one electrical node
    """
    adjacency = _adjacency(wires)
    label_at: dict[GridPoint, str] = {}
    for label, point in (labels or {}).items():
        label_at.setdefault(point, label)

    names: dict[GridPoint, str] = {}
    counter = 0

    # Discovery follows the caller's point order, then wire-only points
    order = list(points)
    known = set(order)
    order.extend(p for p in adjacency if p not in known)

    for start in order:
        if start in names:
            continue
        if start not in adjacency:
            names[start] = label_at.get(start, grid_name(start))
            continue

        component = [start]
        visited = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    component.append(neighbor)
                    queue.append(neighbor)

        name = next((label_at[p] for p in component if p in label_at), None)
        if name is None:
            counter += 1
            name = f"n{counter}"
        for p in component:
            names[p] = name

    label_map = {}
    for label, point in (labels or {}).items():
        if point in names:
            label_map[label] = names[point]
        else:
            logger.warning(f"Label {label!r} is not on the schematic grid")

    ground_names = []
    for point in grounds:
        name = names.get(point)
        if name is None:
            name = grid_name(point)
            names[point] = name
        if name not in ground_names:
            ground_names.append(name)
    if len(ground_names) > 1:
        raise GroundError(
            len(ground_names),
            f"Ground symbols on {len(ground_names)} separate nodes: {', '.join(ground_names)}",
        )

    logger.debug(f"Resolved {len(names)} points into {len(set(names.values()))} nodes")
    return Resolution(
        names=names,
        ground=ground_names[0] if ground_names else None,
        counter=counter,
        labels=label_map,
    )


class Schematic(NamedTuple):
    """
    Wire-level description of a drawing on a width x height grid.

    Example:
        sch = Schematic(4, 4, wires=(Wire((GridPoint(0, 0), GridPoint(0, 3))),),
                        grounds=(GridPoint(0, 3),))
        res = sch.resolve()
    """
    width: int
    height: int
    wires: tuple[Wire, ...] = ()
    grounds: tuple[GridPoint, ...] = ()
    labels: dict[str, GridPoint] = {}

    def grid(self) -> list[GridPoint]:
        return [GridPoint(x, y) for y in range(self.height) for x in range(self.width)]

    def resolve(self) -> Resolution:
        """Purge invalid wires and resolve every grid point."""
        wires = purge_wires(self.wires, self.width, self.height)
        return resolve(self.grid(), wires, labels=self.labels, grounds=self.grounds)
