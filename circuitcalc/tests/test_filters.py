"""
Tests for Sallen-Key active filter design.

Validates:
1. Stage component values and back-calculated cutoff, gain and Q
2. Butterworth table order and unsupported orders
3. Chebyshev pole math, stage count and ordering
4. Family dispatch and error cases
5. Magnitude responses
"""

import math
import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from circuitcalc.filters import (
    sallen_key_stage,
    butterworth_filter,
    chebyshev_poles,
    chebyshev_filter,
    design_filter,
    stage_response,
    cascade_response,
    BUTTERWORTH_Q,
)


FC = 1000.0
C = 10e-9


class TestSallenKeyStage:
    """Test a single equal-component stage."""

    def test_resistor_is_rounded(self):
        """R = 1/(2π·1kHz·10nF) = 15.9k rounds to 16k."""
        stage = sallen_key_stage(FC, 0.7071, C)
        assert stage.resistance == pytest.approx(16000)
        assert stage.capacitance == C

    def test_cutoff_from_rounded_parts(self):
        stage = sallen_key_stage(FC, 0.7071, C)
        expected = 1 / (2 * math.pi * stage.resistance * stage.capacitance)
        assert stage.actual_cutoff == pytest.approx(expected)

    def test_gain_and_q_from_rounded_resistors(self):
        """Q = 0.7071 needs K = 1.586; Rb rounds to 5.6k so K = 1.56."""
        stage = sallen_key_stage(FC, 0.7071, C)
        assert stage.resistor_a == pytest.approx(10000)
        assert stage.resistor_b == pytest.approx(5600)
        assert stage.gain == pytest.approx(1.56)
        assert stage.actual_q == pytest.approx(1 / (3 - 1.56))
        assert stage.target_q == 0.7071

    def test_unity_gain_follower(self):
        """Q = 0.5 gives K = 1, no feedback resistor."""
        stage = sallen_key_stage(FC, 0.5, C)
        assert stage.resistor_b == 0
        assert stage.gain == pytest.approx(1.0)
        assert stage.actual_q == pytest.approx(0.5)

    def test_unstable_gain_gives_infinite_q(self):
        """Rb rounding up to 20k gives K = 3 exactly."""
        stage = sallen_key_stage(FC, 20, C)
        assert stage.gain == pytest.approx(3.0)
        assert stage.actual_q == math.inf


class TestButterworth:
    """Test Butterworth cascades."""

    def test_order_4_table_order(self):
        stages = butterworth_filter('lowpass', 4, FC, C)
        assert [s.target_q for s in stages] == [0.5412, 1.3065]
        assert [s.stage_index for s in stages] == [1, 2]

    def test_stage_count_matches_table(self):
        for order, qs in BUTTERWORTH_Q.items():
            stages = butterworth_filter('highpass', order, FC, C)
            assert len(stages) == len(qs)
            assert all(s.filter_type == 'highpass' for s in stages)

    def test_all_stages_share_cutoff(self):
        stages = butterworth_filter('lowpass', 6, FC, C)
        assert len({s.actual_cutoff for s in stages}) == 1

    def test_unsupported_order_returns_none(self):
        assert butterworth_filter('lowpass', 3, FC, C) is None
        assert butterworth_filter('lowpass', 10, FC, C) is None

    def test_unknown_filter_type_raises(self):
        with pytest.raises(ValueError):
            butterworth_filter('bandpass', 4, FC, C)

    def test_non_positive_cutoff_or_capacitance_returns_none(self):
        """Out-of-domain fc or C gives the None sentinel, not an exception."""
        assert butterworth_filter('lowpass', 4, -1000.0, C) is None
        assert butterworth_filter('lowpass', 4, 0.0, C) is None
        assert butterworth_filter('highpass', 4, FC, 0.0) is None
        assert butterworth_filter('lowpass', 4, float('nan'), C) is None


class TestChebyshev:
    """Test Chebyshev Type I pole math and cascades."""

    def test_second_order_1db_pole(self):
        """Textbook 1dB, N=2: w0 = 1.050, Q = 0.957."""
        poles = chebyshev_poles(2, 1.0)
        assert len(poles) == 1
        assert poles[0].w0 == pytest.approx(1.0500, rel=1e-3)
        assert poles[0].q == pytest.approx(0.9565, rel=1e-3)

    def test_poles_sorted_by_q(self):
        qs = [p.q for p in chebyshev_poles(8, 0.5)]
        assert qs == sorted(qs)

    def test_invalid_inputs_give_empty(self):
        assert chebyshev_poles(0, 1.0) == []
        assert chebyshev_poles(4, 0) == []
        assert chebyshev_poles(4, -1) == []

    def test_stage_count_is_half_order(self):
        for order in range(1, 9):
            assert len(chebyshev_filter('lowpass', order, FC, C)) == order // 2

    def test_order_4_sorted_ascending(self):
        stages = chebyshev_filter('lowpass', 4, FC, C, ripple_db=1.0)
        assert stages[0].target_q < stages[1].target_q
        assert stages[0].actual_q < stages[1].actual_q

    def test_stage_cutoff_scaled_by_w0(self):
        stages = chebyshev_filter('lowpass', 4, FC, C)
        for stage in stages:
            r_ideal = 1 / (2 * math.pi * FC * stage.frequency_scale * C)
            assert stage.resistance == pytest.approx(r_ideal, rel=0.06)

    def test_non_positive_cutoff_or_capacitance_returns_empty(self):
        """Out-of-domain fc or C gives an empty cascade, not an exception."""
        assert chebyshev_filter('lowpass', 4, -1000.0, C) == []
        assert chebyshev_filter('lowpass', 4, 0.0, C) == []
        assert chebyshev_filter('lowpass', 4, FC, 0.0) == []
        assert design_filter('chebyshev', 'highpass', 6, FC, -1e-9) == []

    def test_odd_order_logs_warning(self, caplog):
        with caplog.at_level('WARNING', logger='circuitcalc.filters'):
            chebyshev_filter('lowpass', 5, FC, C)
        assert 'odd' in caplog.text


class TestDesignFilter:
    """Test family dispatch."""

    def test_butterworth(self):
        stages = design_filter('butterworth', 'lowpass', 4, FC, C)
        assert len(stages) == 2

    def test_chebyshev_with_ripple(self):
        stages = design_filter('chebyshev', 'lowpass', 6, FC, C, ripple_db=0.5)
        assert len(stages) == 3

    def test_unknown_family_raises(self):
        with pytest.raises(ValueError, match="bessel"):
            design_filter('bessel', 'lowpass', 4, FC, C)


class TestResponse:
    """Test stage and cascade magnitude responses."""

    def test_lowpass_passband_gain(self):
        stage = sallen_key_stage(FC, 0.7071, C)
        mag = stage_response(stage, [stage.actual_cutoff * 1e-3])
        assert mag[0] == pytest.approx(stage.gain, rel=1e-3)

    def test_lowpass_at_cutoff_is_gain_times_q(self):
        stage = sallen_key_stage(FC, 0.7071, C)
        mag = stage_response(stage, [stage.actual_cutoff])
        assert mag[0] == pytest.approx(stage.gain * stage.actual_q)

    def test_highpass_stopband_and_passband(self):
        stage = sallen_key_stage(FC, 0.7071, C, filter_type='highpass')
        mag = stage_response(stage, np.array([stage.actual_cutoff * 1e-3, stage.actual_cutoff * 1e3]))
        assert mag[0] < 1e-5
        assert mag[1] == pytest.approx(stage.gain, rel=1e-3)

    def test_cascade_is_product(self):
        stages = butterworth_filter('lowpass', 4, FC, C)
        freqs = np.logspace(1, 5, 50)
        expected = stage_response(stages[0], freqs) * stage_response(stages[1], freqs)
        np.testing.assert_allclose(cascade_response(stages, freqs), expected)

    def test_cascade_rolls_off(self):
        """4th order lowpass falls about 80dB per decade above cutoff."""
        stages = butterworth_filter('lowpass', 4, FC, C)
        mag = cascade_response(stages, [FC * 100])
        assert 20 * np.log10(mag[0]) < -70
