"""Coordinate and number helpers shared by the SVG and simulator writers."""

from html import escape as html_escape
from typing import NamedTuple


class Point(NamedTuple):
    x: float
    y: float


def as_point(value) -> Point:
    """Coerce an (x, y) pair into a Point."""
    x, y = value
    return Point(x, y)


def num(value: float) -> str:
    """Format an SVG coordinate: two decimals at most, no trailing zeros."""
    rounded = round(float(value), 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return repr(rounded)


def sim_num(value: float) -> str:
    """Format a simulator value at full precision (integers without '.0')."""
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def safe(text) -> str:
    """Escape text for safe SVG embedding."""
    return html_escape(str(text), quote=True)
