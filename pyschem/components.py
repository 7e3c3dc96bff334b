"""Circuit element factory functions (functional style).

Values may be given as floats or as engineering-notation strings ("4.7k").
"""

from __future__ import annotations

from .config import DEFAULT_DIODE_THRESHOLD
from .errors import TopologyError
from .network import Network, Node, ElementSpec, ComponentRef, Kind
from .units import parse_value
from .waveforms import Sine, Waveform


def _two_terminal(
    net: Network,
    kind: str,
    node_a: Node,
    node_b: Node,
    name: str,
    value: float,
    **extra,
) -> tuple[Network, ComponentRef]:
    spec = ElementSpec(
        name=name,
        kind=kind,
        nodes=(node_a.name, node_b.name),
        value=value,
        **extra,
    )
    return net.add_element(spec)


def R(
    net: Network,
    node_a: Node,
    node_b: Node,
    *,
    name: str,
    value: float | str,
) -> tuple[Network, ComponentRef]:
    """
    Create a resistor.

    Args:
        net: Network to add to
        node_a: First terminal (positive for current reference)
        node_b: Second terminal
        name: Element name (used in result keys, I(name))
        value: Resistance in Ohms

    Returns:
        (new_network, component_ref)

    Example:
        net, r1 = R(net, n1, n2, name="R1", value="1k")
    """
    value = parse_value(value, f"{name} resistance", positive=True)
    return _two_terminal(net, Kind.R, node_a, node_b, name, value)


def C(
    net: Network,
    node_a: Node,
    node_b: Node,
    *,
    name: str,
    value: float | str,
) -> tuple[Network, ComponentRef]:
    """
    Create a capacitor.

    Args:
        net: Network to add to
        node_a: First terminal (positive for voltage reference)
        node_b: Second terminal
        name: Element name
        value: Capacitance in Farads

    Returns:
        (new_network, component_ref)

    Example:
        net, c1 = C(net, n1, net.gnd, name="C1", value=1e-6)  # 1 µF
    """
    value = parse_value(value, f"{name} capacitance", positive=True)
    return _two_terminal(net, Kind.C, node_a, node_b, name, value)


def L(
    net: Network,
    node_a: Node,
    node_b: Node,
    *,
    name: str,
    value: float | str,
) -> tuple[Network, ComponentRef]:
    """
    Create an inductor.

    Args:
        net: Network to add to
        node_a: First terminal (current flows a -> b when positive)
        node_b: Second terminal
        name: Element name
        value: Inductance in Henrys

    Returns:
        (new_network, component_ref)
    """
    value = parse_value(value, f"{name} inductance", positive=True)
    return _two_terminal(net, Kind.L, node_a, node_b, name, value)


def _source(
    net: Network,
    kind: str,
    node_p: Node,
    node_n: Node,
    name: str,
    value: float | str,
    waveform: Waveform | None,
    ac: float | str | None,
    phase: float | str,
) -> tuple[Network, ComponentRef]:
    value = parse_value(value, f"{name} value")
    ac_magnitude = value if ac is None else parse_value(ac, f"{name} AC magnitude")
    if ac is None and isinstance(waveform, Sine):
        ac_magnitude = waveform.amplitude
    return _two_terminal(
        net, kind, node_p, node_n, name, value,
        waveform=waveform,
        ac_magnitude=ac_magnitude,
        ac_phase=parse_value(phase, f"{name} AC phase"),
    )


def VSource(
    net: Network,
    node_p: Node,
    node_n: Node,
    *,
    name: str,
    value: float | str = 0.0,
    waveform: Waveform | None = None,
    ac: float | str | None = None,
    phase: float | str = 0.0,
) -> tuple[Network, ComponentRef]:
    """
    Create an independent voltage source.

    V(node_p) - V(node_n) = value, or waveform.at(t) when a waveform is given.

    Args:
        net: Network to add to
        node_p: Positive terminal
        node_n: Negative terminal
        name: Element name (also the DC sweep key)
        value: DC voltage in Volts
        waveform: Optional time-varying waveform (Impulse, Sine, PiecewiseLinear, Pulse)
        ac: AC phasor magnitude (defaults to the sine amplitude, else value)
        phase: AC phasor phase in degrees

    Returns:
        (new_network, component_ref)

    Example:
        net, vs = VSource(net, n1, net.gnd, name="vs", value=5.0)
    """
    return _source(net, Kind.V, node_p, node_n, name, value, waveform, ac, phase)


def ISource(
    net: Network,
    node_p: Node,
    node_n: Node,
    *,
    name: str,
    value: float | str = 0.0,
    waveform: Waveform | None = None,
    ac: float | str | None = None,
    phase: float | str = 0.0,
) -> tuple[Network, ComponentRef]:
    """
    Create an independent current source.

    The source current flows through the source from node_p to node_n, i.e.
    it is drawn out of node_p and delivered into node_n.

    Args:
        net: Network to add to
        node_p: Positive terminal
        node_n: Negative terminal
        name: Element name
        value: DC current in Amperes
        waveform: Optional time-varying waveform
        ac: AC phasor magnitude (defaults to the sine amplitude, else value)
        phase: AC phasor phase in degrees

    Returns:
        (new_network, component_ref)
    """
    return _source(net, Kind.I, node_p, node_n, name, value, waveform, ac, phase)


def Diode(
    net: Network,
    anode: Node,
    cathode: Node,
    *,
    name: str,
    threshold: float | str = DEFAULT_DIODE_THRESHOLD,
) -> tuple[Network, ComponentRef]:
    """
    Create an ideal diode with a forward-conduction threshold.

    ON: V(anode) - V(cathode) = threshold and the current is >= 0.
    OFF: no current and V(anode) - V(cathode) < threshold.

    Args:
        net: Network to add to
        anode: Positive terminal
        cathode: Negative terminal
        name: Element name
        threshold: Forward voltage in Volts

    Returns:
        (new_network, component_ref)
    """
    threshold = parse_value(threshold, f"{name} threshold")
    return _two_terminal(net, Kind.D, anode, cathode, name, threshold)


def _current_controlled(
    net: Network,
    kind: str,
    out_pos: Node,
    out_neg: Node,
    control: ComponentRef,
    name: str,
    gain: float | str,
) -> tuple[Network, ComponentRef]:
    if not (0 <= control.index < len(net.elements)) or \
            net.elements[control.index].name != control.name:
        raise TopologyError(f"{name}: controlling element {control.name!r} is not in this network")
    gain = parse_value(gain, f"{name} gain")
    return _two_terminal(
        net, kind, out_pos, out_neg, name, gain, control=(control.index,)
    )


def CCCS(
    net: Network,
    out_pos: Node,
    out_neg: Node,
    control: ComponentRef,
    *,
    name: str,
    gain: float | str = 1.0,
) -> tuple[Network, ComponentRef]:
    """
    Create a Current-Controlled Current Source.

    Output current (through the source, out_pos -> out_neg) = gain * I(control).
    The controlling element is referenced, never owned.
    """
    return _current_controlled(net, Kind.CCCS, out_pos, out_neg, control, name, gain)


def CCVS(
    net: Network,
    out_pos: Node,
    out_neg: Node,
    control: ComponentRef,
    *,
    name: str,
    gain: float | str = 1.0,
) -> tuple[Network, ComponentRef]:
    """
    Create a Current-Controlled Voltage Source.

    V(out_pos) - V(out_neg) = gain * I(control), gain in Ohms.
    """
    return _current_controlled(net, Kind.CCVS, out_pos, out_neg, control, name, gain)


def _voltage_controlled(
    net: Network,
    kind: str,
    out_pos: Node,
    out_neg: Node,
    ctrl_pos: Node,
    ctrl_neg: Node,
    name: str,
    gain: float | str,
) -> tuple[Network, ComponentRef]:
    gain = parse_value(gain, f"{name} gain")
    for n in (ctrl_pos, ctrl_neg):
        net.find(n.name)
    return _two_terminal(
        net, kind, out_pos, out_neg, name, gain,
        control=(ctrl_pos.name, ctrl_neg.name),
    )


def VCCS(
    net: Network,
    out_pos: Node,
    out_neg: Node,
    ctrl_pos: Node,
    ctrl_neg: Node,
    *,
    name: str,
    gain: float | str = 1.0,
) -> tuple[Network, ComponentRef]:
    """
    Create a Voltage-Controlled Current Source.

    Output current (through the source, out_pos -> out_neg) =
    gain * (V(ctrl_pos) - V(ctrl_neg)), gain in Siemens.
    """
    return _voltage_controlled(
        net, Kind.VCCS, out_pos, out_neg, ctrl_pos, ctrl_neg, name, gain
    )


def VCVS(
    net: Network,
    out_pos: Node,
    out_neg: Node,
    ctrl_pos: Node,
    ctrl_neg: Node,
    *,
    name: str,
    gain: float | str = 1.0,
) -> tuple[Network, ComponentRef]:
    """
    Create a Voltage-Controlled Voltage Source.

    V(out_pos) - V(out_neg) = gain * (V(ctrl_pos) - V(ctrl_neg))

    Args:
        net: Network to add to
        out_pos: Positive output terminal
        out_neg: Negative output terminal
        ctrl_pos: Positive control input
        ctrl_neg: Negative control input
        name: Element name
        gain: Dimensionless voltage gain

    Returns:
        (new_network, component_ref)
    """
    return _voltage_controlled(
        net, Kind.VCVS, out_pos, out_neg, ctrl_pos, ctrl_neg, name, gain
    )
