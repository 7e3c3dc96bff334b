"""Exception types raised by the analysis engine."""

from __future__ import annotations


class CircuitError(Exception):
    """Base class for every failure reported by pyschem."""


class TopologyError(CircuitError):
    """The circuit structure cannot be turned into an equation system."""


class DisconnectedCircuitError(TopologyError):
    """Some active node is not reachable from the rest of the circuit."""

    def __init__(self, nodes):
        self.nodes = tuple(nodes)
        super().__init__(
            f"Circuit is not connected; unreachable nodes: {', '.join(self.nodes)}"
        )


class GroundError(TopologyError):
    """The circuit does not have exactly one ground node."""

    def __init__(self, count: int, detail: str = ""):
        self.count = count
        if detail:
            message = detail
        elif count == 0:
            message = "Circuit has no ground node"
        else:
            message = f"Circuit has {count} ground nodes, exactly one is required"
        super().__init__(message)


class InvalidValueError(CircuitError, ValueError):
    """A numeric literal is malformed or out of range."""

    def __init__(self, field: str, text, reason: str = "invalid value"):
        self.field = field
        self.text = text
        super().__init__(f"{reason} for {field}: {text!r}")


class ConvergenceError(CircuitError):
    """Diode states could not be made self-consistent."""

    def __init__(self, message: str, time: float | None = None):
        self.time = time
        if time is not None:
            message = f"{message} at t={time:g}s"
        super().__init__(message)
