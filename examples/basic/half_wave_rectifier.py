"""
Example: Half-Wave Rectifier

A sine source feeds a resistor through an ideal diode with a 0.7 V threshold.
The output follows the input minus the threshold on positive half cycles and
sits at 0 V otherwise.

Components used: VSource (Sine), Diode, R
"""
from pyschem import Network, R, VSource, Diode, Sine
from pyschem.analysis import transient


def build_rectifier(amplitude=5.0, frequency=50.0):
    """Build the rectifier.

    Circuit:
        Vs ---|>|---+--- Vout
              D1    |
                   [R1]
                    |
                   GND
    """
    net = Network()
    net, n_in = net.node("in")
    net, n_out = net.node("out")

    net, vs = VSource(net, n_in, net.gnd, name="vs", waveform=Sine(0.0, amplitude, frequency))
    net, d1 = Diode(net, n_in, n_out, name="D1", threshold=0.7)
    net, r1 = R(net, n_out, net.gnd, name="R1", value="1k")
    return net


def main():
    print("=" * 60)
    print("Half-Wave Rectifier Example")
    print("=" * 60)

    result = transient(build_rectifier(), "40m", "200u")

    print(f"\n   {'t (ms)':>8s}  {'V_in':>8s}  {'V_out':>8s}  {'I(D1) mA':>9s}")
    samples = zip(result.signals["V(in)"], result.signals["V(out)"], result.signals["I(D1)"])
    for k, ((t, v_in), (_, v_out), (_, i_d)) in enumerate(samples):
        if k % 10 == 9:
            print(f"   {t * 1e3:8.2f}  {v_in:8.3f}  {v_out:8.3f}  {i_d * 1e3:9.3f}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
