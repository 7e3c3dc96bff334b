"""Analysis drivers: transient, DC operating point, DC sweep, AC and phase sweeps."""

from .results import (
    AnalysisResult,
    SignalWriter,
    voltage_key,
    current_key,
    amplitude_key,
    phase_key,
)
from .validation import validate
from .transient import transient
from .dc import OperatingPoint, operating_point, dc_sweep
from .frequency import ac_sweep, phase_sweep, frequency_points

__all__ = [
    "AnalysisResult",
    "SignalWriter",
    "voltage_key",
    "current_key",
    "amplitude_key",
    "phase_key",
    "validate",
    "transient",
    "OperatingPoint",
    "operating_point",
    "dc_sweep",
    "ac_sweep",
    "phase_sweep",
    "frequency_points",
]
