"""Network, Node and element records for circuit topology (immutable/functional style)."""

from __future__ import annotations
from typing import NamedTuple

from .config import GROUND_NAME
from .errors import TopologyError
from .waveforms import Waveform


class Kind:
    """Closed set of element tags; analysis drivers dispatch on these."""
    R = "R"
    C = "C"
    L = "L"
    V = "V"
    I = "I"  # noqa: E741
    D = "D"
    CCCS = "CCCS"
    CCVS = "CCVS"
    VCCS = "VCCS"
    VCVS = "VCVS"

    ALL = (R, C, L, V, I, D, CCCS, CCVS, VCCS, VCVS)
    SOURCES = (V, I)
    # Elements whose current is an MNA unknown (ideal voltage constraint)
    VOLTAGE_DEFINED = (V, VCVS, CCVS, D)
    PASSIVE = (R, C, L)


class Node(NamedTuple):
    """An electrical node; several grid points may resolve to one node."""
    name: str
    ground: bool = False


class ComponentRef(NamedTuple):
    """Reference to an element for later probing or control."""
    name: str
    kind: str
    index: int  # position in Network.elements


class ElementSpec(NamedTuple):
    """
    One element of the circuit.

    nodes holds the (positive, negative) terminal node names. control holds
    either the arena index of the controlling element (CCCS/CCVS) or the
    (positive, negative) controlling node names (VCCS/VCVS).
    """
    name: str
    kind: str
    nodes: tuple[str, str]
    value: float
    waveform: Waveform | None = None
    control: tuple = ()
    ac_magnitude: float = 0.0
    ac_phase: float = 0.0  # degrees


class Network(NamedTuple):
    """
    Immutable circuit network.

    Build using functional style:
        net = Network()
        net, n1 = net.node("n1")
        net, r1 = R(net, n1, net.gnd, name="R1", value=1e3)
    """
    nodes: tuple[Node, ...] = (Node(GROUND_NAME, True),)
    elements: tuple[ElementSpec, ...] = ()

    @property
    def gnd(self) -> Node:
        """Ground node (reference, always 0V)."""
        for n in self.nodes:
            if n.ground:
                return n
        raise TopologyError("Network has no ground node")

    @property
    def grounds(self) -> tuple[Node, ...]:
        return tuple(n for n in self.nodes if n.ground)

    def node(self, name: str, *, ground: bool = False) -> tuple[Network, Node]:
        """
        Create a new node, or return the existing node with that name.

        Returns (new_network, node).
        """
        for i, n in enumerate(self.nodes):
            if n.name == name:
                if ground and not n.ground:
                    n = n._replace(ground=True)
                    nodes = self.nodes[:i] + (n,) + self.nodes[i + 1:]
                    return self._replace(nodes=nodes), n
                return self, n

        new_node = Node(name, ground)
        return self._replace(nodes=self.nodes + (new_node,)), new_node

    def find(self, name: str) -> Node:
        """Look up a node by name."""
        for n in self.nodes:
            if n.name == name:
                return n
        raise TopologyError(f"Unknown node {name!r}")

    def add_element(self, spec: ElementSpec) -> tuple[Network, ComponentRef]:
        """
        Add an element.

        Returns (new_network, component_ref).
        """
        if any(e.name == spec.name for e in self.elements):
            raise TopologyError(f"Duplicate element name {spec.name!r}")
        known = {n.name for n in self.nodes}
        for name in spec.nodes:
            if name not in known:
                raise TopologyError(f"{spec.name}: unknown node {name!r}")
        ref = ComponentRef(spec.name, spec.kind, len(self.elements))
        return self._replace(elements=self.elements + (spec,)), ref

    def element(self, ref: ComponentRef | str | int) -> ElementSpec:
        """Resolve a reference, name or arena index to its element."""
        if isinstance(ref, int):
            return self.elements[ref]
        name = ref if isinstance(ref, str) else ref.name
        for e in self.elements:
            if e.name == name:
                return e
        raise TopologyError(f"Unknown element {name!r}")

    def replace_element(self, name: str, **changes) -> Network:
        """Return a copy with one element's fields changed (e.g. a swept value)."""
        elements = tuple(
            e._replace(**changes) if e.name == name else e for e in self.elements
        )
        return self._replace(elements=elements)
