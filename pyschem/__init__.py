"""pyschem - circuit analysis engine for schematic capture.

This package turns a drawn network of idealized components into Modified
Nodal Analysis (MNA) systems and solves them with JAX:
    - topology: wire/grid resolution into electrical nodes
    - network, components, waveforms: the element model
    - linalg, mna, diodes: dense solvers, matrix assembly, diode states
    - analysis: transient, operating point, DC sweep, AC and phase sweeps

Usage:
    from pyschem import Network, R, C, VSource
    from pyschem.analysis import transient, ac_sweep
"""

import logging

import jax

__version__ = "0.1.0"

logger = logging.getLogger("pyschem")

# Dense systems are small; double precision keeps the pivots meaningful
jax.config.update("jax_enable_x64", True)


def setup_logging(verbose: int = 0, quiet: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if quiet:
        level = logging.WARNING
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


from .errors import (  # noqa: E402
    CircuitError,
    TopologyError,
    DisconnectedCircuitError,
    GroundError,
    InvalidValueError,
    ConvergenceError,
)
from .config import SimulationOptions  # noqa: E402
from .units import parse_value, format_value  # noqa: E402
from .network import Network, Node, ComponentRef, ElementSpec, Kind  # noqa: E402
from .components import (  # noqa: E402
    R, C, L, VSource, ISource, Diode, CCCS, CCVS, VCCS, VCVS,
)
from .waveforms import Impulse, Sine, PiecewiseLinear, Pulse  # noqa: E402
from .topology import GridPoint, Wire, Schematic, Resolution, resolve  # noqa: E402

__all__ = [
    "__version__",
    "setup_logging",
    # Errors
    "CircuitError",
    "TopologyError",
    "DisconnectedCircuitError",
    "GroundError",
    "InvalidValueError",
    "ConvergenceError",
    # Configuration and values
    "SimulationOptions",
    "parse_value",
    "format_value",
    # Network building
    "Network",
    "Node",
    "ComponentRef",
    "ElementSpec",
    "Kind",
    # Components
    "R",
    "C",
    "L",
    "VSource",
    "ISource",
    "Diode",
    "CCCS",
    "CCVS",
    "VCCS",
    "VCVS",
    # Waveforms
    "Impulse",
    "Sine",
    "PiecewiseLinear",
    "Pulse",
    # Topology
    "GridPoint",
    "Wire",
    "Schematic",
    "Resolution",
    "resolve",
]
