"""
Test: RC circuit step response.

A voltage source charges a capacitor through a resistor.
V(t) = V0 * (1 - exp(-t / RC))

This validates:
- Network/Node construction (functional style)
- Resistor and Capacitor companion models (backward Euler)
- MNA assembly and solve (JAX)
- Time stepping and result recording
"""
import math
import pytest


def _rc(value=5.0):
    from pyschem import Network, R, C, VSource

    # Circuit: Vs -- R -- C -- GND
    net = Network()
    net, n1 = net.node("n1")  # between Vs and R
    net, n2 = net.node("n2")  # between R and C

    net, vs = VSource(net, n1, net.gnd, name="vs", value=value)
    net, r1 = R(net, n1, n2, name="R1", value="1k")
    net, c1 = C(net, n2, net.gnd, name="C1", value="1u")
    return net


def test_rc_step_response():
    from pyschem.analysis import transient

    # RC = 1ms, so at t=1ms we expect ~63.2% of final value
    # at t=5ms we expect ~99.3%
    tau = 1e-3
    result = transient(_rc(), 5 * tau, tau / 200)

    v_at_1tau = result.at("V(n2)", tau)
    v_at_5tau = result.ys("V(n2)")[-1]

    expected_1tau = 5.0 * (1 - math.exp(-1))  # ~3.16V
    expected_5tau = 5.0 * (1 - math.exp(-5))  # ~4.97V

    # Allow 2% error (backward Euler is first order)
    assert abs(v_at_1tau - expected_1tau) / expected_1tau < 0.02
    assert abs(v_at_5tau - expected_5tau) / expected_5tau < 0.02


def test_rc_series_current():
    """Capacitor current g*(v - v_prev) equals the resistor current at every step."""
    from pyschem.analysis import transient

    result = transient(_rc(), "2m", "5u")

    i_r = result.ys("I(R1)")
    i_c = result.ys("I(C1)")
    assert i_r == pytest.approx(i_c, abs=1e-12)
    # Initial current ~ V/R, decaying
    assert i_r[0] == pytest.approx(5e-3, rel=1e-2)
    assert i_r[-1] < i_r[0]


def test_time_axis_and_start():
    from pyschem.analysis import transient

    result = transient(_rc(), "1m", "10u", start="0.5m")

    times = result.xs("V(n2)")
    assert times[0] == pytest.approx(0.5e-3)
    assert times[-1] == pytest.approx(1e-3)
    assert len(times) == 51
    # Every node and every element is recorded
    assert set(result.keys()) == {"V(gnd)", "V(n1)", "V(n2)", "I(vs)", "I(R1)", "I(C1)"}


def test_rc_discharge_from_pulse():
    """After the pulse ends the capacitor discharges with the same tau."""
    from pyschem import Network, R, C, VSource, Pulse
    from pyschem.analysis import transient

    net = Network()
    net, n1 = net.node("n1")
    net, n2 = net.node("n2")
    pulse = Pulse(0.0, 1.0, on_time=5e-3)
    net, vs = VSource(net, n1, net.gnd, name="vs", waveform=pulse)
    net, r1 = R(net, n1, n2, name="R1", value=1e3)
    net, c1 = C(net, n2, net.gnd, name="C1", value=1e-6)

    result = transient(net, "6m", "10u")

    v_top = result.at("V(n2)", 5e-3)
    v_end = result.at("V(n2)", 6e-3)
    assert v_top == pytest.approx(1 - math.exp(-5), rel=2e-2)
    assert v_end == pytest.approx(v_top * math.exp(-1), rel=2e-2)


def test_invalid_time_parameters():
    from pyschem import InvalidValueError
    from pyschem.analysis import transient

    net = _rc()
    with pytest.raises(InvalidValueError, match="stop time"):
        transient(net, "0", "1u")
    with pytest.raises(InvalidValueError, match="time step"):
        transient(net, "1m", "abc")
    with pytest.raises(InvalidValueError, match="time step"):
        transient(net, "1m", "-1u")
    with pytest.raises(InvalidValueError, match="start time"):
        transient(net, "1m", "1u", start="2m")
    # A step longer than the run would record nothing
    with pytest.raises(InvalidValueError, match="time step"):
        transient(net, "1m", "2m")
    assert len(transient(net, "1m", "1m").xs("V(n2)")) == 1


def test_network_construction():
    """Basic smoke test for network building."""
    from pyschem import Network, R

    net = Network()
    assert net.gnd is not None

    net, n1 = net.node("test_node")
    assert n1.name == "test_node"

    net, r = R(net, n1, net.gnd, name="R1", value=1.0)
    assert r.name == "R1"
    assert r.index == 0
    assert net.element("R1").nodes == ("test_node", "gnd")
