"""
Tests for the SVG plot builders.

Validates:
1. Axis range computation (fixed, symmetric, fallback)
2. Clamping of out-of-range points
3. Grid step selection
4. Deterministic, escaped SVG output
"""

import math
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from circuitcalc.plotting import (
    ResponsePlot,
    WaveformPlot,
    TransferPlot,
    BarPlot,
    generate_response_curve,
    nice_step,
    format_frequency,
)


class TestNiceStep:
    """Test 1-2-5 grid step selection."""

    def test_steps(self):
        assert nice_step(80, 8) == pytest.approx(10)
        assert nice_step(100, 8) == pytest.approx(10)
        assert nice_step(30, 8) == pytest.approx(2)
        assert nice_step(70, 8) == pytest.approx(5)
        assert nice_step(0.8, 8) == pytest.approx(0.1)

    def test_frequency_labels(self):
        assert format_frequency(1) == '1'
        assert format_frequency(100) == '100'
        assert format_frequency(1000) == '1k'
        assert format_frequency(1e6) == '1M'


class TestResponsePlot:
    """Test the log-frequency response plot."""

    def test_default_axis_ranges(self):
        assert ResponsePlot().axis_ranges() == (1, 100000, -60, 20)

    def test_svg_header(self):
        svg = ResponsePlot().to_svg()
        assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="600" height="300"')
        assert 'viewBox="0 0 600 300"' in svg
        assert svg.endswith('</svg>')

    def test_decade_labels(self):
        svg = ResponsePlot().to_svg()
        for label in ['1', '10', '100', '1k', '10k', '100k']:
            assert f'>{label}</text>' in svg

    def test_points_clamped_to_plot_area(self):
        """+100dB clamps to the top edge, -200dB to the bottom edge."""
        plot = ResponsePlot().add_curve([(10, 100), (100, -200)])
        assert 'd="M 154 20 L 258 260"' in plot.to_svg()

    def test_render_is_idempotent(self):
        plot = ResponsePlot().add_curve([(10, 0), (1000, -20)], label='LP')
        plot.add_hline(-3, label='-3dB').add_vline(1000)
        assert plot.to_svg() == plot.to_svg()

    def test_text_is_escaped(self):
        svg = ResponsePlot().add_curve([(10, 0)], label='<H&L>').to_svg()
        assert '&lt;H&amp;L&gt;' in svg
        assert '<H&L>' not in svg

    def test_legend_from_labels(self):
        svg = ResponsePlot().add_curve([(10, 0)], label='Stage 1').add_curve([(10, 0)]).to_svg()
        assert svg.count('Stage 1') == 1

    def test_invalid_ranges_raise(self):
        with pytest.raises(ValueError):
            ResponsePlot(y_min=10, y_max=0)
        with pytest.raises(ValueError):
            ResponsePlot(x_min=0)
        with pytest.raises(ValueError):
            ResponsePlot(x_min=100, x_max=10)

    def test_linear_x_axis(self):
        plot = ResponsePlot(x_min=0, x_max=100, x_log=False)
        assert plot.x_scale(50) == pytest.approx(plot.margin.left + plot.plot_width / 2)


class TestGenerateResponseCurve:
    """Test the response curve sampler."""

    def test_sample_count_and_range(self):
        points = generate_response_curve(10, 1000, lambda f: 1.0, num_points=10)
        assert len(points) == 11
        assert points[0].x == pytest.approx(10)
        assert points[-1].x == pytest.approx(1000)

    def test_log_spacing(self):
        points = generate_response_curve(10, 1000, lambda f: 1.0, num_points=2)
        assert points[1].x == pytest.approx(100)

    def test_db_conversion(self):
        points = generate_response_curve(10, 1000, lambda f: 2.0, num_points=4)
        assert all(p.y == pytest.approx(20 * math.log10(2)) for p in points)

    def test_normalize(self):
        points = generate_response_curve(10, 1000, lambda f: 1000.0 / f, num_points=4, normalize=True)
        assert max(p.y for p in points) == pytest.approx(0)
        assert points[-1].y == pytest.approx(-40)

    def test_zero_magnitude_is_minus_inf(self):
        points = generate_response_curve(10, 1000, lambda f: 0.0, num_points=2)
        assert all(p.y == -math.inf for p in points)
        svg = ResponsePlot().add_curve(points).to_svg()
        assert 'inf' not in svg


class TestWaveformPlot:
    """Test auto-scaled waveform plots."""

    def test_symmetric_y_range(self):
        plot = WaveformPlot().add_curve([(0, 0), (1, 2), (2, -1)])
        x_min, x_max, y_min, y_max = plot.axis_ranges()
        assert (x_min, x_max) == (0, 2)
        assert y_max == pytest.approx(2.2)
        assert y_min == pytest.approx(-2.2)

    def test_reference_lines_included(self):
        plot = WaveformPlot().add_curve([(0, 1), (1, -1)]).add_hline(3, label='Vcc')
        assert plot.axis_ranges()[3] == pytest.approx(3.3)

    def test_empty_falls_back(self):
        assert WaveformPlot().axis_ranges() == (0, 1, -1, 1)

    def test_flat_data_falls_back(self):
        _, _, y_min, y_max = WaveformPlot().add_curve([(0, 0), (1, 0)]).axis_ranges()
        assert (y_min, y_max) == (-1, 1)

    def test_zero_baseline_drawn(self):
        """Baseline sits at mid-height for a symmetric range."""
        plot = WaveformPlot().add_curve([(0, 1), (1, -1)])
        mid = plot.margin.top + plot.plot_height / 2
        assert f'y1="{mid:g}"' in plot.to_svg()

    def test_render_empty(self):
        svg = WaveformPlot().to_svg()
        assert 'nan' not in svg
        assert svg.endswith('</svg>')

    def test_hline_label(self):
        svg = WaveformPlot().add_curve([(0, 1)]).add_hline(0.5, label='Vth').to_svg()
        assert '>Vth</text>' in svg


class TestTransferPlot:
    """Test transfer characteristic plots."""

    def test_independent_symmetric_axes(self):
        plot = TransferPlot().add_curve([(-2, -1), (2, 1)])
        ranges = plot.axis_ranges()
        assert ranges == pytest.approx((-2.2, 2.2, -1.1, 1.1))

    def test_unity_line_legend(self):
        svg = TransferPlot().add_curve([(-1, -1), (1, 1)]).add_unity_line().to_svg()
        assert '>Linear</text>' in svg

    def test_default_color(self):
        svg = TransferPlot().add_curve([(-1, -1), (1, 1)]).to_svg()
        assert 'stroke="#c33"' in svg


class TestBarPlot:
    """Test harmonic bar charts."""

    def test_axis_ranges(self):
        plot = BarPlot().add_bar('H2', -20).add_bar('H3', -40)
        assert plot.axis_ranges() == (0, 2, -60, 0)

    def test_value_label_only_on_tall_bars(self):
        svg = BarPlot().add_bar('H2', -20).add_bar('H3', -58).to_svg()
        assert '>-20.0</text>' in svg
        assert '-58.0' not in svg
        assert '>H3</text>' in svg

    def test_bars_clamped_to_floor(self):
        svg = BarPlot().add_bar('H9', -100).to_svg()
        assert 'height="0"' in svg

    def test_bars_rise_from_floor(self):
        plot = BarPlot().add_bar('H1', 0)
        bottom = plot.margin.top + plot.plot_height
        assert f'height="{bottom - plot.margin.top:g}"' in plot.to_svg()

    def test_legend(self):
        svg = BarPlot().add_bar('H2', -20, color='#c33').add_legend('Even', '#c33').to_svg()
        assert '>Even</text>' in svg

    def test_empty_plot_renders(self):
        svg = BarPlot().to_svg()
        assert svg.startswith('<svg')
        assert '<rect x' in svg
