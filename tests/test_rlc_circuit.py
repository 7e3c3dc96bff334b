"""
Test: RLC circuit resonance.

A series RLC circuit has resonant frequency f0 = 1/(2*pi*sqrt(LC)).
With low R, it should oscillate. With high R, it should be overdamped.

This validates:
- Inductor and capacitor companion models together
- Series resonance in the AC sweep
"""
import math
import pytest


def _series_rlc(R_val):
    from pyschem import Network, R, C, L, VSource

    # Circuit: Vs -- L -- R -- C -- GND
    # L=1mH, C=1µF -> f0 = 1/(2*pi*sqrt(1e-3 * 1e-6)) ≈ 5033 Hz
    net = Network()
    net, n1 = net.node("n1")  # after Vs
    net, n2 = net.node("n2")  # between L and R
    net, n3 = net.node("n3")  # between R and C (output)

    net, vs = VSource(net, n1, net.gnd, name="vs", value=5.0, ac=1.0)
    net, l1 = L(net, n1, n2, name="L1", value=1e-3)
    net, r1 = R(net, n2, n3, name="R1", value=R_val)
    net, c1 = C(net, n3, net.gnd, name="C1", value=1e-6)
    return net


def test_rlc_underdamped_oscillation():
    """Underdamped RLC should ring at approximately the damped natural frequency."""
    from pyschem.analysis import transient

    L_val, R_val, C_val = 1e-3, 10.0, 1e-6
    alpha = R_val / (2 * L_val)
    omega_0 = 1 / math.sqrt(L_val * C_val)
    f_d = math.sqrt(omega_0 ** 2 - alpha ** 2) / (2 * math.pi)
    T_d = 1 / f_d

    dt = 1e-6
    result = transient(_series_rlc(R_val), 3 * T_d, dt)
    times = result.xs("V(n3)")
    voltages = result.ys("V(n3)")

    # Find crossings of the final value to estimate oscillation period
    crossings = []
    for i in range(1, len(voltages)):
        if (voltages[i - 1] - 5.0) * (voltages[i] - 5.0) < 0:
            crossings.append(times[i])

    assert len(crossings) >= 4, f"Expected oscillation, found {len(crossings)} crossings"
    half_periods = [b - a for a, b in zip(crossings, crossings[1:])]
    period = 2 * sum(half_periods) / len(half_periods)
    assert abs(period - T_d) / T_d < 0.05, f"Period {period*1e6:.1f}µs vs expected {T_d*1e6:.1f}µs"

    # Overshoot above the 5V source
    assert max(voltages) > 5.5


def test_rlc_overdamped_no_overshoot():
    """Heavily damped RLC approaches the source voltage without overshoot."""
    from pyschem.analysis import transient

    result = transient(_series_rlc(1e3), "2m", "2u")
    voltages = result.ys("V(n3)")

    assert max(voltages) <= 5.0 + 1e-9
    assert voltages[-1] > 4.0


def test_rlc_series_resonance_ac():
    """At f0 the reactances cancel: current V/R, in phase with the source."""
    from pyschem.analysis import ac_sweep

    f0 = 1 / (2 * math.pi * math.sqrt(1e-3 * 1e-6))
    result = ac_sweep(_series_rlc(10.0), f0, f0, 1)

    assert result.ys("I(R1)(amplitude)")[0] == pytest.approx(0.1, rel=1e-6)
    assert result.ys("I(R1)(phase)")[0] == pytest.approx(0.0, abs=1e-4)

    # Off resonance the current drops
    off = ac_sweep(_series_rlc(10.0), 2 * f0, 2 * f0, 1)
    assert off.ys("I(R1)(amplitude)")[0] < 0.05
