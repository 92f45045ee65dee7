"""
SVG plots for calculator results.

Four builders share the same two-phase use: accumulate data with chainable
add_* calls, then call to_svg(). Rendering never mutates the plot, so
to_svg() can be called repeatedly with identical output.

- ResponsePlot: log-frequency vs dB, fixed axes, clamped curves
- WaveformPlot: time-domain traces, y-axis auto-scaled symmetric about zero
- TransferPlot: Vin vs Vout, both axes symmetric about zero
- BarPlot: categorical bars (harmonic spectra), fixed dB range
"""

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple

import numpy as np

from circuitcalc.geometry import Point, as_point, num, safe

DASH = ' stroke-dasharray="4,2"'


class Margin(NamedTuple):
    top: float
    right: float
    bottom: float
    left: float


@dataclass
class Curve:
    points: List[Point]
    color: str
    width: float = 2
    dashed: bool = False
    label: Optional[str] = None


@dataclass
class RefLine:
    value: float
    color: str
    dashed: bool = True
    label: Optional[str] = None


@dataclass
class LegendItem:
    label: str
    color: str
    dashed: bool = False


@dataclass
class Bar:
    category: str
    value: float
    color: str
    label: Optional[str] = None


def nice_step(value_range: float, target_steps: int) -> float:
    """Round range/target_steps to 1, 2 or 5 × 10^n."""
    rough = value_range / target_steps
    mag = 10 ** math.floor(math.log10(rough))
    norm = rough / mag
    if norm < 2:
        return 1 * mag
    if norm < 5:
        return 2 * mag
    return 5 * mag


def format_frequency(f: float) -> str:
    """Axis label for a decade gridline: 10, 100, 1k, 10k, 1M."""
    if f >= 1e6:
        return f"{f / 1e6:g}M"
    if f >= 1e3:
        return f"{f / 1e3:g}k"
    return f"{f:g}"


def generate_response_curve(
    f_min: float,
    f_max: float,
    magnitude_fn: Callable[[float], float],
    num_points: int = 200,
    normalize: bool = False,
) -> List[Point]:
    """
    Sample a magnitude function on a log frequency grid and convert to dB.

    Args:
        f_min, f_max: Frequency range in Hz
        magnitude_fn: f -> linear magnitude (not dB)
        num_points: Number of intervals; num_points + 1 samples are taken
        normalize: Scale so the largest magnitude is 0 dB

    Returns:
        List of Point(frequency, gain_db).
    """
    frequencies = np.logspace(np.log10(f_min), np.log10(f_max), num_points + 1)
    magnitudes = np.array([float(magnitude_fn(f)) for f in frequencies])

    max_mag = magnitudes.max() if magnitudes.size else 0.0
    norm = max_mag if normalize and max_mag > 0 else 1.0

    with np.errstate(divide='ignore'):
        gain_db = 20 * np.log10(magnitudes / norm)

    return [Point(float(f), float(g)) for f, g in zip(frequencies, gain_db)]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class _Plot:
    """Frame, margins, curves and legend shared by all plot kinds."""

    default_color = '#2266cc'

    def __init__(self, width: float, height: float, margin: Tuple[float, float, float, float],
                 x_label: str = '', y_label: str = ''):
        self.width = width
        self.height = height
        self.margin = Margin(*margin)
        self.x_label = x_label
        self.y_label = y_label
        self.curves: List[Curve] = []
        self.legend_items: List[LegendItem] = []

    @property
    def plot_width(self) -> float:
        return self.width - self.margin.left - self.margin.right

    @property
    def plot_height(self) -> float:
        return self.height - self.margin.top - self.margin.bottom

    def add_curve(self, points: Iterable, color: Optional[str] = None, width: float = 2,
                  dashed: bool = False, label: Optional[str] = None):
        """Add a polyline from (x, y) pairs."""
        color = color or self.default_color
        self.curves.append(Curve([as_point(p) for p in points], color, width, dashed, label))
        if label:
            self.legend_items.append(LegendItem(label, color, dashed))
        return self

    def _open_svg(self) -> List[str]:
        m = self.margin
        return [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{num(self.width)}" height="{num(self.height)}" '
            f'viewBox="0 0 {num(self.width)} {num(self.height)}" preserveAspectRatio="xMidYMid meet" '
            f'style="font-family: monospace; font-size: 11px;">',
            f'<rect x="{num(m.left)}" y="{num(m.top)}" width="{num(self.plot_width)}" '
            f'height="{num(self.plot_height)}" fill="#fafafa" stroke="#ccc"/>',
        ]

    def _hline(self, y_pos: float, color: str, dashed: bool = False, width: float = 1) -> str:
        m = self.margin
        return (f'<line x1="{num(m.left)}" y1="{num(y_pos)}" x2="{num(m.left + self.plot_width)}" '
                f'y2="{num(y_pos)}" stroke="{color}" stroke-width="{width}"{DASH if dashed else ""}/>')

    def _vline(self, x_pos: float, color: str, dashed: bool = False, width: float = 1) -> str:
        m = self.margin
        return (f'<line x1="{num(x_pos)}" y1="{num(m.top)}" x2="{num(x_pos)}" '
                f'y2="{num(m.top + self.plot_height)}" stroke="{color}" stroke-width="{width}"'
                f'{DASH if dashed else ""}/>')

    @staticmethod
    def _curve_path(curve: Curve, x_scale, y_scale, y_min: float, y_max: float) -> str:
        d = ' '.join(
            f"{'M' if i == 0 else 'L'} {num(x_scale(p.x))} {num(y_scale(_clamp(p.y, y_min, y_max)))}"
            for i, p in enumerate(curve.points)
        )
        return (f'<path d="{d}" fill="none" stroke="{curve.color}" stroke-width="{curve.width}"'
                f'{DASH if curve.dashed else ""}/>')

    @staticmethod
    def _legend_entry(x: float, y: float, item: LegendItem) -> List[str]:
        return [
            f'<line x1="{num(x)}" y1="{num(y)}" x2="{num(x + 20)}" y2="{num(y)}" stroke="{item.color}" '
            f'stroke-width="2"{DASH if item.dashed else ""}/>',
            f'<text x="{num(x + 25)}" y="{num(y + 4)}">{safe(item.label)}</text>',
        ]


class ResponsePlot(_Plot):
    """
    Frequency response plot: log-frequency x-axis, linear dB y-axis.

    Axis ranges are fixed at construction. Curve points outside the y-range
    are clamped to the plot edge rather than dropped.
    """

    def __init__(
        self,
        width: float = 600,
        height: float = 300,
        margin: Tuple[float, float, float, float] = (20, 30, 40, 50),
        x_min: float = 1,
        x_max: float = 100000,
        y_min: float = -60,
        y_max: float = 20,
        x_log: bool = True,
        x_label: str = 'Frequency',
        y_label: str = 'Gain (dB)',
    ):
        super().__init__(width, height, margin, x_label, y_label)
        if not x_min < x_max or not y_min < y_max:
            raise ValueError(f"Axis ranges must be increasing, got x {x_min}..{x_max}, y {y_min}..{y_max}")
        if x_log and x_min <= 0:
            raise ValueError(f"Log x-axis needs x_min > 0, got {x_min}")
        self.x_min = x_min
        self.x_max = x_max
        self.y_min = y_min
        self.y_max = y_max
        self.x_log = x_log
        self.h_lines: List[RefLine] = []
        self.v_lines: List[RefLine] = []

    def axis_ranges(self) -> Tuple[float, float, float, float]:
        return self.x_min, self.x_max, self.y_min, self.y_max

    def x_scale(self, value: float) -> float:
        if self.x_log:
            span = math.log10(self.x_max) - math.log10(self.x_min)
            return self.margin.left + self.plot_width * (math.log10(value) - math.log10(self.x_min)) / span
        return self.margin.left + self.plot_width * (value - self.x_min) / (self.x_max - self.x_min)

    def y_scale(self, value: float) -> float:
        return self.margin.top + self.plot_height * (self.y_max - value) / (self.y_max - self.y_min)

    def add_hline(self, y: float, color: str = '#f88', label: Optional[str] = None, dashed: bool = True):
        """Horizontal reference line (e.g. -3 dB)."""
        self.h_lines.append(RefLine(y, color, dashed, label))
        if label:
            self.legend_items.append(LegendItem(label, color, True))
        return self

    def add_vline(self, x: float, color: str = '#88f', label: Optional[str] = None, dashed: bool = True):
        """Vertical reference line (e.g. the cutoff frequency)."""
        self.v_lines.append(RefLine(x, color, dashed, label))
        if label:
            self.legend_items.append(LegendItem(label, color, True))
        return self

    def _x_ticks(self) -> List[float]:
        if self.x_log:
            first = math.ceil(math.log10(self.x_min))
            last = math.floor(math.log10(self.x_max))
            return [10.0 ** d for d in range(first, last + 1)]
        step = nice_step(self.x_max - self.x_min, 8)
        return [k * step for k in range(math.ceil(self.x_min / step), math.floor(self.x_max / step) + 1)]

    def to_svg(self) -> str:
        m = self.margin
        parts = self._open_svg()

        for x in self._x_ticks():
            x_pos = self.x_scale(x)
            parts.append(self._vline(x_pos, '#ddd'))
            tick = format_frequency(x) if self.x_log else f'{x:g}'
            parts.append(f'<text x="{num(x_pos)}" y="{num(self.height - 5)}" text-anchor="middle">{tick}</text>')

        y_step = nice_step(self.y_max - self.y_min, 8)
        for k in range(math.ceil(self.y_min / y_step), math.floor(self.y_max / y_step) + 1):
            y = k * y_step
            y_pos = self.y_scale(y)
            parts.append(self._hline(y_pos, '#ddd'))
            parts.append(f'<text x="{num(m.left - 5)}" y="{num(y_pos + 4)}" text-anchor="end">{y:g}</text>')

        for line in self.h_lines:
            parts.append(self._hline(self.y_scale(line.value), line.color, line.dashed))
        for line in self.v_lines:
            parts.append(self._vline(self.x_scale(line.value), line.color, line.dashed))

        for curve in self.curves:
            if curve.points:
                parts.append(self._curve_path(curve, self.x_scale, self.y_scale, self.y_min, self.y_max))

        parts.append(f'<text x="{num(self.width / 2)}" y="{num(self.height - 22)}" '
                     f'text-anchor="middle">{safe(self.x_label)}</text>')
        parts.append(f'<text x="15" y="{num(self.height / 2)}" text-anchor="middle" '
                     f'transform="rotate(-90, 15, {num(self.height / 2)})">{safe(self.y_label)}</text>')

        legend_x = m.left + 10
        for item in self.legend_items:
            parts.extend(self._legend_entry(legend_x, m.top + 12, item))
            legend_x += 25 + len(item.label) * 7 + 15

        parts.append('</svg>')
        return '\n'.join(parts)


class WaveformPlot(_Plot):
    """
    Time-domain waveform plot with auto-scaled axes.

    The x-range follows the data; the y-range is symmetric about zero at
    1.1 × the largest |y| (reference lines included), so bipolar traces
    stay centered.
    """

    def __init__(
        self,
        width: float = 500,
        height: float = 200,
        margin: Tuple[float, float, float, float] = (30, 20, 30, 50),
        x_label: str = '',
        y_label: str = '',
        y_unit: str = 'V',
    ):
        super().__init__(width, height, margin, x_label, y_label)
        self.y_unit = y_unit
        self.h_lines: List[RefLine] = []

    def add_hline(self, y: float, color: str = '#c66', label: Optional[str] = None, dashed: bool = True):
        """Horizontal reference line; its label is drawn at the right edge."""
        self.h_lines.append(RefLine(y, color, dashed, label))
        return self

    def axis_ranges(self) -> Tuple[float, float, float, float]:
        xs = [p.x for c in self.curves for p in c.points]
        ys = [p.y for c in self.curves for p in c.points] + [line.value for line in self.h_lines]

        if xs and max(xs) > min(xs):
            x_min, x_max = min(xs), max(xs)
        elif xs:
            x_min, x_max = xs[0] - 1, xs[0] + 1
        else:
            x_min, x_max = 0.0, 1.0

        y_abs = max((abs(y) for y in ys), default=0.0) * 1.1
        if y_abs == 0:
            y_abs = 1.0
        return x_min, x_max, -y_abs, y_abs

    def to_svg(self) -> str:
        m = self.margin
        x_min, x_max, y_min, y_max = self.axis_ranges()

        def x_scale(v):
            return m.left + self.plot_width * (v - x_min) / (x_max - x_min)

        def y_scale(v):
            return m.top + self.plot_height * (y_max - v) / (y_max - y_min)

        parts = self._open_svg()

        zero_y = y_scale(0)
        parts.append(self._hline(zero_y, '#aaa'))

        for line in self.h_lines:
            y_pos = y_scale(line.value)
            parts.append(self._hline(y_pos, line.color, line.dashed))
            if line.label:
                parts.append(f'<text x="{num(m.left + self.plot_width + 3)}" y="{num(y_pos + 4)}" '
                             f'fill="{line.color}" font-size="9">{safe(line.label)}</text>')

        for curve in self.curves:
            if curve.points:
                parts.append(self._curve_path(curve, x_scale, y_scale, y_min, y_max))

        parts.append(f'<text x="{num(m.left - 5)}" y="{num(m.top + 5)}" text-anchor="end">'
                     f'+{y_max:.2f}{safe(self.y_unit)}</text>')
        parts.append(f'<text x="{num(m.left - 5)}" y="{num(zero_y + 4)}" text-anchor="end">0</text>')
        parts.append(f'<text x="{num(m.left - 5)}" y="{num(m.top + self.plot_height)}" text-anchor="end">'
                     f'{y_min:.2f}{safe(self.y_unit)}</text>')

        if self.x_label:
            parts.append(f'<text x="{num(m.left + self.plot_width / 2)}" y="{num(self.height - 5)}" '
                         f'text-anchor="middle">{safe(self.x_label)}</text>')

        legend_x = m.left + 10
        for item in self.legend_items:
            parts.extend(self._legend_entry(legend_x, m.top - 15, item))
            legend_x += 30 + len(item.label) * 6

        parts.append('</svg>')
        return '\n'.join(parts)


class TransferPlot(_Plot):
    """
    Transfer characteristic (Vin vs Vout) for spotting clipping.

    Both axes are symmetric about zero, scaled independently.
    """

    default_color = '#c33'

    def __init__(
        self,
        width: float = 400,
        height: float = 300,
        margin: Tuple[float, float, float, float] = (20, 20, 40, 50),
        x_label: str = 'Vin',
        y_label: str = 'Vout',
    ):
        super().__init__(width, height, margin, x_label, y_label)
        self.unity_line = False

    def add_unity_line(self):
        """Corner-to-corner linear reference."""
        self.unity_line = True
        self.legend_items.append(LegendItem('Linear', '#aaa', True))
        return self

    def axis_ranges(self) -> Tuple[float, float, float, float]:
        points = [p for c in self.curves for p in c.points]
        x_abs = max((abs(p.x) for p in points), default=0.0) * 1.1 or 1.0
        y_abs = max((abs(p.y) for p in points), default=0.0) * 1.1 or 1.0
        return -x_abs, x_abs, -y_abs, y_abs

    def to_svg(self) -> str:
        m = self.margin
        x_min, x_max, y_min, y_max = self.axis_ranges()

        def x_scale(v):
            return m.left + self.plot_width * (v - x_min) / (x_max - x_min)

        def y_scale(v):
            return m.top + self.plot_height * (y_max - v) / (y_max - y_min)

        parts = self._open_svg()

        center_x = x_scale(0)
        center_y = y_scale(0)
        parts.append(self._hline(center_y, '#999'))
        parts.append(self._vline(center_x, '#999'))

        if self.unity_line:
            parts.append(f'<line x1="{num(x_scale(x_min))}" y1="{num(y_scale(y_min))}" '
                         f'x2="{num(x_scale(x_max))}" y2="{num(y_scale(y_max))}" stroke="#aaa"{DASH}/>')

        for curve in self.curves:
            if curve.points:
                parts.append(self._curve_path(curve, x_scale, y_scale, y_min, y_max))

        bottom = m.top + self.plot_height + 15
        parts.extend([
            f'<text x="{num(m.left - 5)}" y="{num(m.top + 5)}" text-anchor="end">+{y_max:.1f}V</text>',
            f'<text x="{num(m.left - 5)}" y="{num(center_y + 4)}" text-anchor="end">0</text>',
            f'<text x="{num(m.left - 5)}" y="{num(m.top + self.plot_height)}" text-anchor="end">{y_min:.1f}V</text>',
            f'<text x="{num(m.left)}" y="{num(bottom)}">{x_min:.1f}V</text>',
            f'<text x="{num(center_x)}" y="{num(bottom)}" text-anchor="middle">{safe(self.x_label)}</text>',
            f'<text x="{num(m.left + self.plot_width)}" y="{num(bottom)}" text-anchor="end">+{x_max:.1f}V</text>',
            f'<text x="{num(m.left + 5)}" y="{num(m.top + 15)}">{safe(self.y_label)}</text>',
        ])

        legend_x = m.left + self.plot_width - 100
        legend_y = m.top + 10
        for item in self.legend_items:
            parts.extend(self._legend_entry(legend_x, legend_y, item))
            legend_y += 15

        parts.append('</svg>')
        return '\n'.join(parts)


class BarPlot(_Plot):
    """
    Categorical bar chart, e.g. a harmonic spectrum in dB.

    Bars rise from y_min to their (clamped) value. The value is printed on
    the bar only when the bar is tall enough to hold it.
    """

    def __init__(
        self,
        width: float = 500,
        height: float = 250,
        margin: Tuple[float, float, float, float] = (20, 20, 40, 50),
        y_min: float = -60,
        y_max: float = 0,
        y_step: float = 10,
        x_label: str = '',
        y_label: str = 'dB',
    ):
        super().__init__(width, height, margin, x_label, y_label)
        if not y_min < y_max:
            raise ValueError(f"y-range must be increasing, got {y_min}..{y_max}")
        self.y_min = y_min
        self.y_max = y_max
        self.y_step = y_step
        self.bars: List[Bar] = []

    def add_bar(self, category, value: float, color: Optional[str] = None, label: Optional[str] = None):
        """Add one bar; category is its x-axis label (e.g. 'H2')."""
        self.bars.append(Bar(str(category), value, color or self.default_color, label))
        return self

    def add_legend(self, label: str, color: str):
        self.legend_items.append(LegendItem(label, color))
        return self

    def axis_ranges(self) -> Tuple[float, float, float, float]:
        return 0, len(self.bars), self.y_min, self.y_max

    def y_scale(self, value: float) -> float:
        return self.margin.top + self.plot_height * (self.y_max - value) / (self.y_max - self.y_min)

    def to_svg(self) -> str:
        m = self.margin
        parts = self._open_svg()
        bottom = m.top + self.plot_height

        n_lines = int(math.floor((self.y_max - self.y_min) / self.y_step + 1e-9))
        for k in range(n_lines + 1):
            y = self.y_max - k * self.y_step
            y_pos = self.y_scale(y)
            parts.append(self._hline(y_pos, '#ddd'))
            parts.append(f'<text x="{num(m.left - 5)}" y="{num(y_pos + 4)}" text-anchor="end">{y:g}</text>')

        if self.bars:
            slot = self.plot_width / len(self.bars)
            bar_width = max(slot - 4, 1)
            for i, bar in enumerate(self.bars):
                x = m.left + (i + 0.5) * slot - bar_width / 2
                top = self.y_scale(_clamp(bar.value, self.y_min, self.y_max))
                parts.append(f'<rect x="{num(x)}" y="{num(top)}" width="{num(bar_width)}" '
                             f'height="{num(bottom - top)}" fill="{bar.color}" opacity="0.8"/>')
                parts.append(f'<text x="{num(x + bar_width / 2)}" y="{num(bottom + 15)}" '
                             f'text-anchor="middle">{safe(bar.category)}</text>')
                if bar.value > self.y_min + 5:
                    text = bar.label or f'{bar.value:.1f}'
                    parts.append(f'<text x="{num(x + bar_width / 2)}" y="{num(top + 12)}" '
                                 f'text-anchor="middle" font-size="9">{safe(text)}</text>')

        label_x = m.left - 35
        label_y = m.top + self.plot_height / 2
        parts.append(f'<text x="{num(label_x)}" y="{num(label_y)}" text-anchor="middle" '
                     f'transform="rotate(-90 {num(label_x)} {num(label_y)})">{safe(self.y_label)}</text>')
        if self.x_label:
            parts.append(f'<text x="{num(m.left + self.plot_width / 2)}" y="{num(self.height - 5)}" '
                         f'text-anchor="middle">{safe(self.x_label)}</text>')

        legend_x = m.left + self.plot_width - 10
        for item in reversed(self.legend_items):
            legend_x -= len(item.label) * 6 + 20
            parts.append(f'<rect x="{num(legend_x)}" y="{num(m.top + 5)}" width="12" height="12" '
                         f'fill="{item.color}" opacity="0.8"/>')
            parts.append(f'<text x="{num(legend_x + 15)}" y="{num(m.top + 15)}">{safe(item.label)}</text>')

        parts.append('</svg>')
        return '\n'.join(parts)
