"""
Example: Voltage Divider

Demonstrates the voltage divider rule: V_out = V_in * R2 / (R1 + R2)

Three parts:
1. Simple 2-resistor divider (operating point)
2. 4-resistor divider chain showing multiple tap points
3. DC sweep of the input source

Components used: R, VSource
"""
from pyschem import Network, R, VSource
from pyschem.analysis import operating_point, dc_sweep


def build_simple_divider(R1="10k", R2="10k"):
    """Build a simple 2-resistor voltage divider.

    Circuit:
        Vs ---[R1]---+---[R2]--- GND
                     |
                    Vout
    """
    net = Network()
    net, n_top = net.node("top")      # Top of divider (Vs output)
    net, n_mid = net.node("mid")      # Middle tap point

    net, vs = VSource(net, n_top, net.gnd, name="vs", value=10.0)
    net, r1 = R(net, n_top, n_mid, name="R1", value=R1)
    net, r2 = R(net, n_mid, net.gnd, name="R2", value=R2)
    return net


def build_chain_divider(R_val="10k"):
    """Build a 4-resistor chain divider with multiple taps.

    Circuit:
        Vs ---[R1]---+---[R2]---+---[R3]---+---[R4]--- GND
                     |          |          |
                   tap1       tap2       tap3
    """
    net = Network()
    net, n_top = net.node("top")
    net, tap1 = net.node("tap1")
    net, tap2 = net.node("tap2")
    net, tap3 = net.node("tap3")

    net, vs = VSource(net, n_top, net.gnd, name="vs", value=10.0)
    net, r1 = R(net, n_top, tap1, name="R1", value=R_val)
    net, r2 = R(net, tap1, tap2, name="R2", value=R_val)
    net, r3 = R(net, tap2, tap3, name="R3", value=R_val)
    net, r4 = R(net, tap3, net.gnd, name="R4", value=R_val)
    return net


def main():
    print("=" * 60)
    print("Voltage Divider Example")
    print("=" * 60)

    V_in = 10.0

    print("\n1. Simple Voltage Divider (R1 = R2 = 10k)")
    print("-" * 40)
    op = operating_point(build_simple_divider())
    print(f"   Input voltage:    {V_in:.2f} V")
    print(f"   Output voltage:   {op.voltages['mid']:.4f} V")
    print(f"   Expected (50%):   {V_in * 0.5:.2f} V")
    print(f"   Divider current:  {op.currents['R1'] * 1e3:.4f} mA")

    print("\n2. 4-Resistor Chain (equal 10k resistors)")
    print("-" * 40)
    op = operating_point(build_chain_divider())
    print(f"   Tap 1 (75%):      {op.voltages['tap1']:.4f} V (expected: {V_in*0.75:.2f})")
    print(f"   Tap 2 (50%):      {op.voltages['tap2']:.4f} V (expected: {V_in*0.50:.2f})")
    print(f"   Tap 3 (25%):      {op.voltages['tap3']:.4f} V (expected: {V_in*0.25:.2f})")

    print("\n3. DC Sweep of vs (R1=10k, R2=20k)")
    print("-" * 40)
    result = dc_sweep(build_simple_divider(R2="20k"), "vs", "0", "12", "3")
    for v_in, v_out in result.signals["V(mid)"]:
        print(f"   V_in = {v_in:5.1f} V -> V_out = {v_out:.4f} V (expected: {v_in * 2 / 3:.4f})")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
