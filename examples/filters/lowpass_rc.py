"""
Example: RC Low-Pass Filter

Demonstrates first-order RC low-pass filter behavior:
- Cutoff frequency: f_c = 1 / (2 * pi * R * C)
- At f_c: output is -3dB (0.707x) and phase is -45 degrees
- Time constant: tau = R * C

Components used: R, C, VSource
"""
import math

from pyschem import Network, R, C, VSource, setup_logging, format_value
from pyschem.analysis import transient, ac_sweep


def build_lowpass_filter(R_val="1k", C_val="1u", V_step=5.0):
    """Build RC low-pass filter.

    The capacitor starts discharged, so a constant source is a step at t=0.

    Circuit:
        Vin ---[R]---+--- Vout
                     |
                    [C]
                     |
                    GND
    """
    net = Network()
    net, n_in = net.node("in")
    net, n_out = net.node("out")

    net, vs = VSource(net, n_in, net.gnd, name="vs", value=V_step, ac=1.0)
    net, r1 = R(net, n_in, n_out, name="R1", value=R_val)
    net, c1 = C(net, n_out, net.gnd, name="C1", value=C_val)
    return net


def main():
    setup_logging(verbose=1)

    print("=" * 60)
    print("RC Low-Pass Filter Example")
    print("=" * 60)

    R_val = 1000.0
    C_val = 1e-6
    tau = R_val * C_val
    f_c = 1 / (2 * math.pi * tau)
    net = build_lowpass_filter(R_val, C_val)

    print("\nFilter Parameters:")
    print(f"   R = {format_value(R_val, 'Ohm')}")
    print(f"   C = {format_value(C_val, 'F')}")
    print(f"   tau = R*C = {format_value(tau, 's')}")
    print(f"   f_c = 1/(2*pi*tau) = {f_c:.1f} Hz")

    print("\n1. Step Response")
    print("-" * 40)
    result = transient(net, 5 * tau, tau / 100)
    for target_tau in [1, 2, 3, 5]:
        v = result.at("V(out)", target_tau * tau)
        expected = 5.0 * (1 - math.exp(-target_tau))
        print(f"   At t={target_tau}*tau: V_out = {v:.4f} V (expected: {expected:.4f} V)")

    print("\n2. Frequency Response")
    print("-" * 40)
    print(f"   {'Freq':>10s}  {'f/f_c':>8s}  {'dB':>8s}  {'Expected dB':>12s}  {'Phase':>8s}")
    result = ac_sweep(net, f_c / 10, f_c * 10, 5, "db")
    for (freq, db), (_, phase) in zip(result.signals["V(out)(amplitude)"], result.signals["V(out)(phase)"]):
        f_ratio = freq / f_c
        expected_db = -10 * math.log10(1 + f_ratio ** 2)
        print(f"   {freq:10.1f}  {f_ratio:8.3f}  {db:8.3f}  {expected_db:12.3f}  {phase:8.2f}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
