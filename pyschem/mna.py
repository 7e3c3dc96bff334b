"""Modified Nodal Analysis (MNA) assembly.

For n non-ground nodes and m voltage-defined branches the system is:

    [ G  B ] [ v ]   [ I ]
    [ C  D ] [ i ] = [ F ]

where:
    G (n x n) holds conductances / admittances
    B (n x m) and C (m x n) hold branch incidence and controlled terms
    D (m x m) holds branch-current couplings (CCVS, OFF diodes)
    I (n) holds independent and companion current injections
    F (m) holds branch voltage targets

Stamps are collected as COO triplets and scattered into dense blocks once.
Ground is index -1 and never stamped.

Sign convention (all modes): an element's current is the current flowing
through it from its positive to its negative terminal.
"""

from __future__ import annotations
import cmath
import logging
import math
from typing import Callable, Iterable, Mapping, NamedTuple

import jax.numpy as jnp
from jax import Array

from .errors import TopologyError
from .network import Network, ElementSpec, Kind

logger = logging.getLogger(__name__)

DC = "dc"
TRANSIENT = "transient"
AC = "ac"
MODES = (DC, TRANSIENT, AC)

# Stand-in angular frequency for inductors at omega = 0
OMEGA_FLOOR = 1e-12


class NodeIndex(NamedTuple):
    """Map from node name to MNA row; ground maps to -1."""
    names: tuple[str, ...]
    ground: str
    rows: dict[str, int]

    @classmethod
    def build(cls, network: Network, nodes: Iterable[str]) -> NodeIndex:
        ground = network.gnd.name
        names = tuple(n for n in nodes if n != ground)
        return cls(names, ground, {name: i for i, name in enumerate(names)})

    def __getitem__(self, name: str) -> int:
        if name == self.ground:
            return -1
        return self.rows[name]

    def __len__(self) -> int:
        return len(self.names)


class History(NamedTuple):
    """Companion-model history of the reactive elements."""
    cap_voltages: dict[str, float]
    ind_currents: dict[str, float]


class Context(NamedTuple):
    """
    Everything a stamp needs besides the element itself.

    mode: DC, TRANSIENT or AC
    time, dt: transient instant and step (waveforms are evaluated at time)
    omega: AC angular frequency (rad/s)
    history: capacitor voltages / inductor currents of the previous step
    diode_on: assumed diode states by name
    overrides: source values forced by a DC sweep
    phase_offsets: extra phasor phase (degrees) per source name
    """
    mode: str
    time: float = 0.0
    dt: float = 0.0
    omega: float = 0.0
    history: History | None = None
    diode_on: Mapping[str, bool] = {}
    overrides: Mapping[str, float] = {}
    phase_offsets: Mapping[str, float] = {}


class MnaSystem(NamedTuple):
    """Assembled MNA blocks."""
    G: Array
    B: Array
    C: Array
    D: Array
    I: Array  # noqa: E741
    F: Array

    @property
    def size(self) -> int:
        return self.G.shape[0] + self.D.shape[0]

    def matrix(self) -> Array:
        return jnp.block([[self.G, self.B], [self.C, self.D]])

    def rhs(self) -> Array:
        return jnp.concatenate([self.I, self.F])


def active_nodes(network: Network) -> list[str]:
    """Names of nodes touched by an element terminal or control input, in network order."""
    used = set()
    for e in network.elements:
        used.update(e.nodes)
        if e.kind in (Kind.VCCS, Kind.VCVS):
            used.update(e.control)
    return [n.name for n in network.nodes if n.name in used or n.ground]


def branch_elements(network: Network, mode: str, *, diodes: bool = True) -> tuple[str, ...]:
    """
    Ordered names of the voltage-defined branches for a mode.

    Independent and dependent voltage sources always; diodes in DC and
    transient when diodes=True; inductors in DC (0 V short circuit).
    """
    branches = []
    for e in network.elements:
        if e.kind in (Kind.V, Kind.VCVS, Kind.CCVS):
            branches.append(e.name)
        elif e.kind == Kind.D and diodes and mode != AC:
            branches.append(e.name)
        elif e.kind == Kind.L and mode == DC:
            branches.append(e.name)
    return tuple(branches)


def source_value(spec: ElementSpec, t: float = 0.0, dt: float = 0.0) -> float:
    """Present value of an independent source."""
    if spec.waveform is not None:
        return spec.waveform.at(t, dt)
    return spec.value


def source_phasor(spec: ElementSpec, phase_offset: float = 0.0) -> complex:
    return spec.ac_magnitude * cmath.exp(1j * math.radians(spec.ac_phase + phase_offset))


# A linear expression over the unknown vector: ([(column, coefficient)], constant)
Terms = tuple[list[tuple[int, complex]], complex]


class _Assembly:
    """COO accumulator plus the lookups shared by the stamp functions."""

    def __init__(self, network: Network, index: NodeIndex, branches: tuple[str, ...], ctx: Context):
        if ctx.mode not in MODES:
            raise ValueError(f"Unknown analysis mode {ctx.mode!r}")
        self.network = network
        self.index = index
        self.ctx = ctx
        self.n = len(index)
        self.m = len(branches)
        self.branch = {name: self.n + k for k, name in enumerate(branches)}
        self.entries: list[tuple[int, int, complex]] = []
        self.rhs: list[tuple[int, complex]] = []

    # --- primitive stamps ---

    def add(self, row: int, col: int, value) -> None:
        if row >= 0 and col >= 0:
            self.entries.append((row, col, value))

    def inject(self, row: int, value) -> None:
        if row >= 0:
            self.rhs.append((row, value))

    def conductance(self, a: int, b: int, g) -> None:
        self.add(a, a, g)
        self.add(b, b, g)
        self.add(a, b, -g)
        self.add(b, a, -g)

    def current_source(self, a: int, b: int, i) -> None:
        """Current i flowing through an element from a to b."""
        self.inject(a, -i)
        self.inject(b, i)

    def incidence(self, k: int, a: int, b: int, *, equation: bool = True) -> None:
        self.add(a, k, 1.0)
        self.add(b, k, -1.0)
        if equation:
            self.add(k, a, 1.0)
            self.add(k, b, -1.0)

    def terminals(self, spec: ElementSpec) -> tuple[int, int]:
        return self.index[spec.nodes[0]], self.index[spec.nodes[1]]

    def controls(self, spec: ElementSpec) -> tuple[int, int]:
        return self.index[spec.control[0]], self.index[spec.control[1]]

    def controller(self, spec: ElementSpec) -> ElementSpec:
        (idx,) = spec.control
        if not 0 <= idx < len(self.network.elements):
            raise TopologyError(f"{spec.name}: controlling element #{idx} does not exist")
        return self.network.elements[idx]

    def value(self, spec: ElementSpec):
        if self.ctx.mode == AC:
            return source_phasor(spec, self.ctx.phase_offsets.get(spec.name, 0.0))
        if spec.name in self.ctx.overrides:
            return self.ctx.overrides[spec.name]
        if self.ctx.mode == DC:
            return source_value(spec, 0.0, 0.0)
        return source_value(spec, self.ctx.time, self.ctx.dt)

    # --- element current as a linear expression ---

    def current_terms(self, spec: ElementSpec, visiting: frozenset = frozenset()) -> Terms:
        if spec.name in visiting:
            raise TopologyError(f"Cyclic current control through {spec.name}")
        if spec.name in self.branch:
            return [(self.branch[spec.name], 1.0)], 0.0
        table = _TERMS[self.ctx.mode]
        if spec.kind not in table:
            return [], 0.0
        return table[spec.kind](self, spec, visiting | {spec.name})

    def build(self) -> MnaSystem:
        dtype = jnp.complex128 if self.ctx.mode == AC else jnp.float64
        n, m = self.n, self.m
        A = jnp.zeros((n + m, n + m), dtype=dtype)
        z = jnp.zeros(n + m, dtype=dtype)
        if self.entries:
            rows, cols, vals = zip(*self.entries)
            A = A.at[jnp.array(rows), jnp.array(cols)].add(jnp.array(vals, dtype=dtype))
        if self.rhs:
            rows, vals = zip(*self.rhs)
            z = z.at[jnp.array(rows)].add(jnp.array(vals, dtype=dtype))
        return MnaSystem(
            G=A[:n, :n], B=A[:n, n:], C=A[n:, :n], D=A[n:, n:],
            I=z[:n], F=z[n:],
        )


# --- stamps shared by all modes ---

def _stamp_resistor(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    asm.conductance(a, b, 1.0 / spec.value)


def _stamp_vsource(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    k = asm.branch[spec.name]
    asm.incidence(k, a, b)
    asm.inject(k, asm.value(spec))


def _stamp_isource(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    asm.current_source(a, b, asm.value(spec))


def _stamp_vccs(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    cp, cn = asm.controls(spec)
    g = spec.value
    asm.add(a, cp, g)
    asm.add(a, cn, -g)
    asm.add(b, cp, -g)
    asm.add(b, cn, g)


def _stamp_vcvs(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    cp, cn = asm.controls(spec)
    k = asm.branch[spec.name]
    asm.incidence(k, a, b)
    asm.add(k, cp, -spec.value)
    asm.add(k, cn, spec.value)


def _stamp_cccs(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    terms, const = asm.current_terms(asm.controller(spec), frozenset({spec.name}))
    for col, coeff in terms:
        asm.add(a, col, spec.value * coeff)
        asm.add(b, col, -spec.value * coeff)
    asm.current_source(a, b, spec.value * const)


def _stamp_ccvs(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    k = asm.branch[spec.name]
    asm.incidence(k, a, b)
    terms, const = asm.current_terms(asm.controller(spec), frozenset({spec.name}))
    for col, coeff in terms:
        asm.add(k, col, -spec.value * coeff)
    asm.inject(k, spec.value * const)


def _stamp_diode(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    k = asm.branch.get(spec.name)
    if k is None:
        return
    if asm.ctx.diode_on.get(spec.name, False):
        # Fixed forward-voltage source
        asm.incidence(k, a, b)
        asm.inject(k, spec.value)
    else:
        # Zero-current branch
        asm.incidence(k, a, b, equation=False)
        asm.add(k, k, 1.0)


# --- mode-specific reactive stamps ---

def _stamp_capacitor_open(asm: _Assembly, spec: ElementSpec) -> None:
    return None


def _stamp_inductor_short(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    asm.incidence(asm.branch[spec.name], a, b)


def _stamp_capacitor_be(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    g = spec.value / asm.ctx.dt
    v_prev = asm.ctx.history.cap_voltages.get(spec.name, 0.0)
    asm.conductance(a, b, g)
    # g * v_prev injected from the negative into the positive terminal
    asm.current_source(a, b, -g * v_prev)


def _stamp_inductor_be(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    g = asm.ctx.dt / spec.value
    i_prev = asm.ctx.history.ind_currents.get(spec.name, 0.0)
    asm.conductance(a, b, g)
    asm.current_source(a, b, i_prev)


def _capacitor_admittance(asm: _Assembly, spec: ElementSpec) -> complex:
    return 1j * asm.ctx.omega * spec.value


def _inductor_admittance(asm: _Assembly, spec: ElementSpec) -> complex:
    omega = asm.ctx.omega if asm.ctx.omega != 0 else OMEGA_FLOOR
    return 1.0 / (1j * omega * spec.value)


def _stamp_capacitor_ac(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    asm.conductance(a, b, _capacitor_admittance(asm, spec))


def _stamp_inductor_ac(asm: _Assembly, spec: ElementSpec) -> None:
    a, b = asm.terminals(spec)
    asm.conductance(a, b, _inductor_admittance(asm, spec))


def _no_stamp(asm: _Assembly, spec: ElementSpec) -> None:
    return None


_COMMON = {
    Kind.R: _stamp_resistor,
    Kind.V: _stamp_vsource,
    Kind.I: _stamp_isource,
    Kind.VCCS: _stamp_vccs,
    Kind.VCVS: _stamp_vcvs,
    Kind.CCCS: _stamp_cccs,
    Kind.CCVS: _stamp_ccvs,
}

_STAMPS: dict[str, dict[str, Callable[[_Assembly, ElementSpec], None]]] = {
    DC: {**_COMMON, Kind.C: _stamp_capacitor_open, Kind.L: _stamp_inductor_short,
         Kind.D: _stamp_diode},
    TRANSIENT: {**_COMMON, Kind.C: _stamp_capacitor_be, Kind.L: _stamp_inductor_be,
                Kind.D: _stamp_diode},
    AC: {**_COMMON, Kind.C: _stamp_capacitor_ac, Kind.L: _stamp_inductor_ac,
         Kind.D: _no_stamp},
}


# --- current expressions (for CCCS/CCVS control and result recording) ---

def _two_node_terms(asm: _Assembly, a: int, b: int, y) -> list[tuple[int, complex]]:
    terms = []
    if a >= 0:
        terms.append((a, y))
    if b >= 0:
        terms.append((b, -y))
    return terms


def _resistor_terms(asm, spec, visiting) -> Terms:
    a, b = asm.terminals(spec)
    return _two_node_terms(asm, a, b, 1.0 / spec.value), 0.0


def _isource_terms(asm, spec, visiting) -> Terms:
    return [], asm.value(spec)


def _vccs_terms(asm, spec, visiting) -> Terms:
    cp, cn = asm.controls(spec)
    return _two_node_terms(asm, cp, cn, spec.value), 0.0


def _cccs_terms(asm, spec, visiting) -> Terms:
    terms, const = asm.current_terms(asm.controller(spec), visiting)
    return [(col, spec.value * c) for col, c in terms], spec.value * const


def _capacitor_be_terms(asm, spec, visiting) -> Terms:
    a, b = asm.terminals(spec)
    g = spec.value / asm.ctx.dt
    v_prev = asm.ctx.history.cap_voltages.get(spec.name, 0.0)
    return _two_node_terms(asm, a, b, g), -g * v_prev


def _inductor_be_terms(asm, spec, visiting) -> Terms:
    a, b = asm.terminals(spec)
    g = asm.ctx.dt / spec.value
    return _two_node_terms(asm, a, b, g), asm.ctx.history.ind_currents.get(spec.name, 0.0)


def _capacitor_ac_terms(asm, spec, visiting) -> Terms:
    a, b = asm.terminals(spec)
    return _two_node_terms(asm, a, b, _capacitor_admittance(asm, spec)), 0.0


def _inductor_ac_terms(asm, spec, visiting) -> Terms:
    a, b = asm.terminals(spec)
    return _two_node_terms(asm, a, b, _inductor_admittance(asm, spec)), 0.0


_COMMON_TERMS = {
    Kind.R: _resistor_terms,
    Kind.I: _isource_terms,
    Kind.VCCS: _vccs_terms,
    Kind.CCCS: _cccs_terms,
}

# Voltage-defined elements are answered from their branch unknown before
# these tables are consulted; open capacitors and AC diodes carry no current.
_TERMS = {
    DC: dict(_COMMON_TERMS),
    TRANSIENT: {**_COMMON_TERMS, Kind.C: _capacitor_be_terms, Kind.L: _inductor_be_terms},
    AC: {**_COMMON_TERMS, Kind.C: _capacitor_ac_terms, Kind.L: _inductor_ac_terms},
}


def assemble(
    network: Network,
    index: NodeIndex,
    branches: tuple[str, ...],
    ctx: Context,
) -> MnaSystem:
    """
    Build the MNA blocks for one analysis instant.

    Args:
        network: Circuit to stamp
        index: Node name -> row map (ground excluded)
        branches: Ordered voltage-defined branch names (see branch_elements)
        ctx: Mode and per-instant state

    Returns:
        MnaSystem with G, B, C, D, I, F

    Raises:
        KeyError: an element terminal is missing from the node index
        TopologyError: cyclic current control or dangling control reference
    """
    asm = _Assembly(network, index, branches, ctx)
    table = _STAMPS[ctx.mode]
    for spec in network.elements:
        table[spec.kind](asm, spec)
    system = asm.build()
    logger.debug(f"Assembled {ctx.mode} system: {len(index)} nodes, {len(branches)} branches")
    return system


def node_voltage(x: Array, index: NodeIndex, name: str):
    """Voltage (or phasor) of a node from a solution vector."""
    row = index[name]
    return x[row] if row >= 0 else 0.0


def element_currents(
    network: Network,
    x: Array,
    index: NodeIndex,
    branches: tuple[str, ...],
    ctx: Context,
    specs: Iterable[ElementSpec] | None = None,
) -> dict[str, complex]:
    """
    Currents through elements (positive -> negative terminal) from a solution vector.

    Args:
        network: Circuit that was solved
        x: Solution vector [v; i]
        index, branches, ctx: The same arguments given to assemble()
        specs: Elements to evaluate (default: all)

    Returns:
        {element_name: current}
    """
    asm = _Assembly(network, index, branches, ctx)
    currents = {}
    for spec in network.elements if specs is None else specs:
        terms, const = asm.current_terms(spec)
        value = const
        for col, coeff in terms:
            value = value + coeff * x[col]
        currents[spec.name] = value
    return currents
