"""
Test: DC sweep of an independent source.
"""
import pytest


def _divider():
    from pyschem import Network, R, VSource

    net = Network()
    net, n1 = net.node("n1")
    net, out = net.node("out")
    net, vs = VSource(net, n1, net.gnd, name="V1", value=0.0)
    net, r1 = R(net, n1, out, name="R1", value=1e3)
    net, r2 = R(net, out, net.gnd, name="R2", value=1e3)
    return net


def test_divider_sweep():
    from pyschem.analysis import dc_sweep

    result = dc_sweep(_divider(), "V1", 0, 10, 2)

    assert result.xs("V(out)") == pytest.approx([0, 2, 4, 6, 8, 10])
    for v, out in result.signals["V(out)"]:
        assert out == pytest.approx(v / 2)
    for v, i in result.signals["I(R1)"]:
        assert i == pytest.approx(v / 2e3)
    assert result.failures == ()


def test_downward_sweep_with_strings():
    from pyschem.analysis import dc_sweep

    result = dc_sweep(_divider(), "V1", "1", "-1", "500m")
    assert result.xs("V(out)") == pytest.approx([1.0, 0.5, 0.0, -0.5, -1.0])


def test_current_source_sweep():
    from pyschem import Network, R, ISource
    from pyschem.analysis import dc_sweep

    net = Network()
    net, n1 = net.node("n1")
    net, i1 = ISource(net, net.gnd, n1, name="I1")
    net, r1 = R(net, n1, net.gnd, name="R1", value="2k")

    result = dc_sweep(net, "I1", "0", "3m", "1m")
    assert result.ys("V(n1)") == pytest.approx([0.0, 2.0, 4.0, 6.0])


def test_sweep_through_diode_clamp():
    from pyschem import Network, R, VSource, Diode
    from pyschem.analysis import dc_sweep

    net = Network()
    net, n1 = net.node("n1")
    net, n2 = net.node("n2")
    net, vs = VSource(net, n1, net.gnd, name="V1")
    net, r1 = R(net, n1, n2, name="R1", value=1e3)
    net, d1 = Diode(net, n2, net.gnd, name="D1", threshold=0.7)

    result = dc_sweep(net, "V1", -1, 2, 0.5)
    for v, out in result.signals["V(n2)"]:
        assert out == pytest.approx(min(v, 0.7), abs=1e-9)


def test_sweep_rejects_non_source():
    from pyschem import TopologyError, InvalidValueError
    from pyschem.analysis import dc_sweep

    net = _divider()
    with pytest.raises(TopologyError):
        dc_sweep(net, "R1", 0, 1, 0.1)
    with pytest.raises(TopologyError):
        dc_sweep(net, "V9", 0, 1, 0.1)
    with pytest.raises(InvalidValueError, match="sweep step"):
        dc_sweep(net, "V1", 0, 1, 0)


def test_sweep_records_failures(monkeypatch):
    """Points without a valid diode state are listed and skipped."""
    from pyschem import Network, R, VSource, Diode
    from pyschem.analysis import dc_sweep
    from pyschem.diodes import DiodeProblem

    net = Network()
    net, n1 = net.node("n1")
    net, n2 = net.node("n2")
    net, vs = VSource(net, n1, net.gnd, name="V1")
    net, r1 = R(net, n1, n2, name="R1", value=1e3)
    net, d1 = Diode(net, n2, net.gnd, name="D1")

    original = DiodeProblem.violations

    def reject_high(self, x, states):
        if self.ctx.overrides.get("V1", 0.0) > 1.5:
            return [d.name for d in self.diodes]
        return original(self, x, states)

    monkeypatch.setattr(DiodeProblem, "violations", reject_high)
    result = dc_sweep(net, "V1", 0, 3, 1)

    assert result.failures == (2.0, 3.0)
    assert result.xs("V(n1)") == pytest.approx([0.0, 1.0])
