"""Tests for inductors in the AC sweep."""

import math
import pytest


def test_l_current_lags_voltage():
    """Inductor current lags its voltage by 90 degrees; |I| = |V|/(wL)."""
    from pyschem import Network, L, VSource
    from pyschem.analysis import ac_sweep

    net = Network()
    net, n1 = net.node("n1")
    net, vs = VSource(net, n1, net.gnd, name="vs", ac=1.0)
    net, l1 = L(net, n1, net.gnd, name="L1", value=1e-3)

    result = ac_sweep(net, "1k", "1k", 1)
    omega = 2 * math.pi * 1e3

    assert result.ys("I(L1)(amplitude)")[0] == pytest.approx(1 / (omega * 1e-3))
    assert result.ys("I(L1)(phase)")[0] == pytest.approx(-90.0)


def test_l_impedance_increases_with_frequency():
    from pyschem import Network, L, VSource
    from pyschem.analysis import ac_sweep

    net = Network()
    net, n1 = net.node("n1")
    net, vs = VSource(net, n1, net.gnd, name="vs", ac=1.0)
    net, l1 = L(net, n1, net.gnd, name="L1", value=1e-3)

    result = ac_sweep(net, 100, 10e3, 1, "decade")
    currents = result.ys("I(L1)(amplitude)")

    assert len(currents) == 3
    # Factor of 100 in frequency -> factor of 100 in impedance
    assert currents[0] / currents[-1] == pytest.approx(100.0, rel=1e-6)


def test_rl_highpass_corner():
    """Output across L at w = R/L: 1/sqrt(2) leading by 45 degrees."""
    from pyschem import Network, R, L, VSource
    from pyschem.analysis import ac_sweep

    net = Network()
    net, n1 = net.node("n1")
    net, out = net.node("out")
    net, vs = VSource(net, n1, net.gnd, name="vs", ac=2.0, phase=0.0)
    net, r1 = R(net, n1, out, name="R1", value=100.0)
    net, l1 = L(net, out, net.gnd, name="L1", value=10e-3)

    fc = 100.0 / 10e-3 / (2 * math.pi)
    result = ac_sweep(net, fc, fc, 1)

    assert result.ys("V(out)(amplitude)")[0] == pytest.approx(2 / math.sqrt(2))
    assert result.ys("V(out)(phase)")[0] == pytest.approx(45.0, abs=1e-6)


def test_inductor_shorts_at_zero_frequency():
    """w = 0 is special-cased; the inductor behaves as a short."""
    from pyschem import Network, R, L, VSource
    from pyschem.analysis import ac_sweep

    net = Network()
    net, n1 = net.node("n1")
    net, out = net.node("out")
    net, vs = VSource(net, n1, net.gnd, name="vs", ac=1.0)
    net, r1 = R(net, n1, out, name="R1", value=100.0)
    net, l1 = L(net, out, net.gnd, name="L1", value=10e-3)

    result = ac_sweep(net, 0, 0, 1)
    assert result.ys("V(out)(amplitude)")[0] == pytest.approx(0.0, abs=1e-9)
    assert result.ys("I(L1)(amplitude)")[0] == pytest.approx(0.01)
