"""
Test: DC operating point and pre-analysis validation.

This validates:
- Ohm's law through the full MNA path
- Capacitors open and inductors shorted at DC
- Ground and connectivity checks raised before any matrix is built
"""
import pytest


def test_ohms_law():
    from pyschem import Network, R, VSource
    from pyschem.analysis import operating_point

    net = Network()
    net, n1 = net.node("n1")
    net, vs = VSource(net, n1, net.gnd, name="vs", value="5")
    net, r1 = R(net, n1, net.gnd, name="R1", value="1k")

    op = operating_point(net)
    assert op.converged
    assert op.voltages["n1"] == pytest.approx(5.0)
    assert op.voltages["gnd"] == 0.0
    assert op.currents["R1"] == pytest.approx(5e-3)
    # Source current flows through it from + to -, i.e. against the load current
    assert op.currents["vs"] == pytest.approx(-5e-3)


def test_voltage_divider():
    from pyschem import Network, R, VSource
    from pyschem.analysis import operating_point

    net = Network()
    net, n1 = net.node("n1")
    net, out = net.node("out")
    net, vs = VSource(net, n1, net.gnd, name="vs", value=9.0)
    net, r1 = R(net, n1, out, name="R1", value=2e3)
    net, r2 = R(net, out, net.gnd, name="R2", value=1e3)

    op = operating_point(net)
    assert op.voltages["out"] == pytest.approx(3.0)
    assert op.currents["R1"] == pytest.approx(op.currents["R2"])


def test_sourceless_network_is_at_ground():
    """Without sources every node voltage is equal (all zero)."""
    from pyschem import Network, R
    from pyschem.analysis import operating_point

    net = Network()
    net, a = net.node("a")
    net, b = net.node("b")
    net, c = net.node("c")
    net, _ = R(net, a, b, name="R1", value=1e3)
    net, _ = R(net, b, c, name="R2", value=2e3)
    net, _ = R(net, c, net.gnd, name="R3", value=3e3)
    net, _ = R(net, a, c, name="R4", value=4e3)

    op = operating_point(net)
    assert op.converged
    assert set(op.voltages.values()) == {0.0}


def test_current_source_into_resistor():
    from pyschem import Network, R, ISource
    from pyschem.analysis import operating_point

    net = Network()
    net, n1 = net.node("n1")
    net, i1 = ISource(net, n1, net.gnd, name="I1", value="1m")
    net, r1 = R(net, n1, net.gnd, name="R1", value="1k")

    op = operating_point(net)
    # 1 mA drawn out of n1 through the source
    assert op.voltages["n1"] == pytest.approx(-1.0)
    assert op.currents["I1"] == pytest.approx(1e-3)
    assert op.currents["R1"] == pytest.approx(-1e-3)


def test_reactive_elements_at_dc():
    from pyschem import Network, R, C, L, VSource
    from pyschem.analysis import operating_point

    net = Network()
    net, n1 = net.node("n1")
    net, n2 = net.node("n2")
    net, n3 = net.node("n3")
    net, vs = VSource(net, n1, net.gnd, name="vs", value=10.0)
    net, r1 = R(net, n1, n2, name="R1", value=1e3)
    net, l1 = L(net, n2, net.gnd, name="L1", value=1e-3)
    net, r2 = R(net, n1, n3, name="R2", value=1e3)
    net, c1 = C(net, n3, net.gnd, name="C1", value=1e-6)

    op = operating_point(net)
    assert op.voltages["n2"] == pytest.approx(0.0, abs=1e-12)   # inductor short
    assert op.currents["L1"] == pytest.approx(10e-3)
    assert op.voltages["n3"] == pytest.approx(10.0)              # capacitor open
    assert op.currents["C1"] == 0.0


def test_disconnected_circuit():
    from pyschem import Network, R, VSource, DisconnectedCircuitError
    from pyschem.analysis import operating_point, transient

    net = Network()
    net, n1 = net.node("n1")
    net, n3 = net.node("n3")
    net, n4 = net.node("n4")
    net, vs = VSource(net, n1, net.gnd, name="vs", value=1.0)
    net, r1 = R(net, n1, net.gnd, name="R1", value=1e3)
    net, r2 = R(net, n3, n4, name="R2", value=1e3)

    with pytest.raises(DisconnectedCircuitError) as exc:
        operating_point(net)
    assert set(exc.value.nodes) == {"n3", "n4"}

    with pytest.raises(DisconnectedCircuitError):
        transient(net, "1m", "1u")


def test_ground_count():
    from pyschem import Network, Node, R, VSource, GroundError
    from pyschem.analysis import operating_point

    # No ground at all
    net = Network(nodes=())
    net, a = net.node("a")
    net, b = net.node("b")
    net, _ = R(net, a, b, name="R1", value=1e3)
    with pytest.raises(GroundError) as exc:
        operating_point(net)
    assert exc.value.count == 0

    # Two grounds
    net = Network()
    net, n1 = net.node("n1")
    net, g2 = net.node("g2", ground=True)
    net, _ = VSource(net, n1, net.gnd, name="vs", value=1.0)
    net, _ = R(net, n1, g2, name="R1", value=1e3)
    with pytest.raises(GroundError) as exc:
        operating_point(net)
    assert exc.value.count == 2

    # Ground present but not connected to anything
    net = Network()
    net, a = net.node("a")
    net, b = net.node("b")
    net, _ = R(net, a, b, name="R1", value=1e3)
    with pytest.raises(GroundError, match="not connected"):
        operating_point(net)


def test_empty_network():
    from pyschem import Network, TopologyError
    from pyschem.analysis import operating_point

    with pytest.raises(TopologyError):
        operating_point(Network())


def test_duplicate_and_unknown_names():
    from pyschem import Network, R, TopologyError

    net = Network()
    net, n1 = net.node("n1")
    net, _ = R(net, n1, net.gnd, name="R1", value=1e3)
    with pytest.raises(TopologyError, match="Duplicate"):
        R(net, n1, net.gnd, name="R1", value=1e3)
    with pytest.raises(TopologyError):
        net.element("R9")
    with pytest.raises(TopologyError):
        net.find("n9")
