"""Engineering-notation values.

Every numeric field entered in the schematic editor arrives as a string such
as "4.7k", "100n" or "2Meg". These helpers convert them to base-SI floats and
back.
"""

from __future__ import annotations
import math
import re

from .errors import InvalidValueError

_SUFFIXES = {
    "f": 1e-15,
    "p": 1e-12,
    "n": 1e-9,
    "u": 1e-6,
    "µ": 1e-6,
    "m": 1e-3,
    "k": 1e3,
    "K": 1e3,
    "M": 1e6,
    "meg": 1e6,
    "G": 1e9,
}

_VALUE_RE = re.compile(
    r"""^\s*
    (?P<number>[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    \s*
    (?P<suffix>[Mm][Ee][Gg]|[fpnuµmkKMG])?
    \s*$""",
    re.VERBOSE,
)

# Rendering prefixes, largest first
_PREFIXES = (
    (1e9, "G"),
    (1e6, "M"),
    (1e3, "k"),
    (1.0, ""),
    (1e-3, "m"),
    (1e-6, "u"),
    (1e-9, "n"),
    (1e-12, "p"),
    (1e-15, "f"),
)


def parse_value(
    text: str | float | int,
    field: str,
    *,
    positive: bool = False,
) -> float:
    """
    Parse an engineering-notation literal to a float.

    Args:
        text: Literal such as "10k", "1.5u", "2Meg", or a number
        field: Semantic name of the field, used in error messages
        positive: Reject zero and negative values

    Returns:
        Value in base SI units

    Raises:
        InvalidValueError: malformed literal, non-finite value, or a
            non-positive value where positive=True

    Example:
        parse_value("4.7k", "resistance", positive=True)  # 4700.0
    """
    if isinstance(text, bool):
        raise InvalidValueError(field, text)
    if isinstance(text, (int, float)):
        value = float(text)
    else:
        match = _VALUE_RE.match(str(text))
        if match is None:
            raise InvalidValueError(field, text)
        value = float(match.group("number"))
        suffix = match.group("suffix")
        if suffix:
            key = "meg" if suffix.lower() == "meg" else suffix
            value *= _SUFFIXES[key]

    if not math.isfinite(value):
        raise InvalidValueError(field, text)
    if positive and value <= 0:
        raise InvalidValueError(field, text, reason="value must be positive")
    return value


def format_value(value: float, unit: str = "") -> str:
    """Render a value with the nearest engineering prefix, e.g. 4700 -> "4.7k"."""
    if value == 0 or not math.isfinite(value):
        return f"{value:g}{unit}"
    magnitude = abs(value)
    for scale, prefix in _PREFIXES:
        if magnitude >= scale:
            return f"{value / scale:g}{prefix}{unit}"
    scale, prefix = _PREFIXES[-1]
    return f"{value / scale:g}{prefix}{unit}"
