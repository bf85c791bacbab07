"""
Resolution of stored excretion colors to renderable hex colors.
"""
from typing import Optional, Tuple, Union

from healthkey.models.event import DirectColor, SeverityColor
from healthkey.services.constants import SEVERITY_COLOR_HIGH, SEVERITY_COLOR_LOW


def _hex_to_rgb(value: str) -> Tuple[int, int, int]:
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def severity_to_hex(severity: int) -> str:
    """
    Map a 0-100 severity onto the pale-yellow to dark-brown gradient.

    Example:
        >>> severity_to_hex(0)
        '#fff59d'
        >>> severity_to_hex(100)
        '#5d4037'
    """
    ratio = max(0, min(100, severity)) / 100
    low = _hex_to_rgb(SEVERITY_COLOR_LOW)
    high = _hex_to_rgb(SEVERITY_COLOR_HIGH)
    channels = [round(lo + (hi - lo) * ratio) for lo, hi in zip(low, high)]
    return "#{:02x}{:02x}{:02x}".format(*channels)


def resolve_color(value: Optional[Union[SeverityColor, DirectColor]]) -> Optional[str]:
    """
    Resolve a stored color value to something a renderer can draw.

    Direct tokens are returned as stored; severities go through the gradient.
    """
    if value is None:
        return None
    if isinstance(value, SeverityColor):
        return severity_to_hex(value.value)
    return value.token
