"""Default configuration values for pyschem analyses.

This module centralizes the numerical constants used throughout the engine
and the `SimulationOptions` bundle accepted by every analysis driver.
"""

from __future__ import annotations
from dataclasses import dataclass

# Pivots below this magnitude are perturbed instead of failing the solve
PIVOT_EPSILON = 1e-12

# Assumed-state iteration bound for the incremental (transient) diode path
MAX_DIODE_ITERATIONS = 50

# Exhaustive diode enumeration visits 2**k states; refuse beyond this k
MAX_ENUMERATED_DIODES = 16

# AC/phase sweep results are flushed every this many points
AC_BATCH_SIZE = 500

# Relative tolerance on the transient stop time (floating accumulation)
TIME_EPSILON = 1e-9

# A diode assumed ON may carry this much reverse current and stay ON
DIODE_CURRENT_TOLERANCE = 1e-12

# Forward-conduction threshold used when a diode is created without one
DEFAULT_DIODE_THRESHOLD = 0.7

# Name of the reference node created by Network()
GROUND_NAME = "gnd"


@dataclass
class SimulationOptions:
    """Tunables shared by the analysis drivers.

    Invalid values raise ValueError on construction.
    """

    pivot_epsilon: float = PIVOT_EPSILON
    """Diagonal perturbation applied to near-singular pivots."""

    max_diode_iterations: int = MAX_DIODE_ITERATIONS
    """Flip rounds allowed before a transient step is declared non-convergent."""

    max_enumerated_diodes: int = MAX_ENUMERATED_DIODES
    """Largest diode count resolved by exhaustive enumeration."""

    ac_batch_size: int = AC_BATCH_SIZE
    """Sweep points buffered before results are flushed."""

    time_epsilon: float = TIME_EPSILON
    """Relative tolerance on the transient stop time."""

    def __post_init__(self):
        if not self.pivot_epsilon > 0:
            raise ValueError(f"pivot_epsilon must be > 0, got {self.pivot_epsilon}")
        if self.max_diode_iterations < 1:
            raise ValueError(
                f"max_diode_iterations must be >= 1, got {self.max_diode_iterations}"
            )
        if self.max_enumerated_diodes < 0:
            raise ValueError(
                f"max_enumerated_diodes must be >= 0, got {self.max_enumerated_diodes}"
            )
        if self.ac_batch_size < 1:
            raise ValueError(f"ac_batch_size must be >= 1, got {self.ac_batch_size}")
        if self.time_epsilon < 0:
            raise ValueError(f"time_epsilon must be >= 0, got {self.time_epsilon}")
