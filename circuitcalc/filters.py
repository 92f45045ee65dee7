"""
Active filter design as cascaded Sallen-Key stages.

Each 2nd-order stage uses the equal-R, equal-C Sallen-Key topology:
    fc = 1 / (2π·R·C)
    Q  = 1 / (3 − K)     where K = 1 + Rb/Ra is the non-inverting gain

Butterworth stage Qs come from the standard tables; Chebyshev Type I
stages are derived from the pole locations for a given passband ripple.
All resistors are rounded to E24, and the reported gain, cutoff and Q
are back-calculated from the rounded parts.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

import numpy as np

from circuitcalc.components import round_resistance

logger = logging.getLogger(__name__)

# Per-stage Q for maximally-flat response, in table (cascade) order
BUTTERWORTH_Q = {
    2: [0.7071],                           # 1 stage
    4: [0.5412, 1.3065],                   # 2 stages
    6: [0.5176, 0.7071, 1.9319],           # 3 stages
    8: [0.5098, 0.6013, 0.8999, 2.5628],   # 4 stages
}

# Reference gain resistor; Rb is derived from it
GAIN_REFERENCE_RESISTOR = 10000.0

FILTER_TYPES = ('lowpass', 'highpass')


@dataclass(frozen=True)
class FilterStage:
    """One 2nd-order section of a cascaded active filter."""
    resistance: float        # Ohms, E24-rounded
    capacitance: float       # Farads, as supplied by the caller
    gain: float              # actual K from the rounded gain resistors
    resistor_a: float        # Ohms, reference gain resistor
    resistor_b: float        # Ohms, feedback gain resistor (0 = follower)
    actual_cutoff: float     # Hz
    actual_q: float
    target_q: float
    stage_index: int         # 1-based, cascade order
    filter_type: str         # 'lowpass' or 'highpass'
    frequency_scale: float = 1.0   # normalised pole frequency w0


class ChebyshevPole(NamedTuple):
    q: float
    w0: float


def _check_filter_type(filter_type: str) -> None:
    if filter_type not in FILTER_TYPES:
        raise ValueError(f"Unknown filter type '{filter_type}'. Must be one of: {list(FILTER_TYPES)}")


def _stage_realizable(fc: float, capacitance: float) -> bool:
    """True when fc and C give a non-zero rounded R and a finite cutoff."""
    if not (math.isfinite(fc) and math.isfinite(capacitance)) or fc <= 0 or capacitance <= 0:
        return False
    omega_c = 2 * math.pi * fc * capacitance
    if omega_c <= 0:
        return False
    r_round = round_resistance(1.0 / omega_c)
    return 2 * math.pi * r_round * capacitance > 0


def sallen_key_stage(
    fc: float,
    q: float,
    capacitance: float,
    filter_type: str = 'lowpass',
    stage_index: int = 1,
    frequency_scale: float = 1.0,
) -> FilterStage:
    """
    Build one equal-component Sallen-Key stage.

    Args:
        fc: Stage cutoff (natural) frequency in Hz
        q: Target quality factor
        capacitance: Capacitor value in Farads (used as-is for both caps)
        filter_type: 'lowpass' or 'highpass'
        stage_index: Position of the stage in the cascade (1-based)
        frequency_scale: Normalised pole frequency, recorded on the stage

    Returns:
        FilterStage with rounded parts and the gain, cutoff and Q they give.
    """
    r_ideal = 1.0 / (2 * math.pi * fc * capacitance)
    r_round = round_resistance(r_ideal)

    # Q = 1 / (3 - K)  =>  K = 3 - 1/Q
    k_ideal = 3 - (1.0 / q)

    # K = 1 + Rb/Ra with Ra fixed
    ra = round_resistance(GAIN_REFERENCE_RESISTOR)
    rb_ideal = (k_ideal - 1) * GAIN_REFERENCE_RESISTOR
    rb = round_resistance(rb_ideal) if rb_ideal > 0 else 0.0

    k_actual = 1 + rb / ra if rb > 0 else 1.0
    fc_actual = 1.0 / (2 * math.pi * r_round * capacitance)

    if k_actual >= 3:
        logger.warning(
            "Stage %d: rounded gain K=%.3f reaches the stability limit (target Q=%.4f)",
            stage_index, k_actual, q,
        )
        q_actual = math.inf
    else:
        q_actual = 1.0 / (3 - k_actual)

    return FilterStage(
        resistance=r_round,
        capacitance=capacitance,
        gain=k_actual,
        resistor_a=ra,
        resistor_b=rb,
        actual_cutoff=fc_actual,
        actual_q=q_actual,
        target_q=q,
        stage_index=stage_index,
        filter_type=filter_type,
        frequency_scale=frequency_scale,
    )


def butterworth_filter(
    filter_type: str,
    order: int,
    fc: float,
    capacitance: float,
) -> Optional[List[FilterStage]]:
    """
    Design a Butterworth filter of even order 2-8.

    Stages keep the table order of BUTTERWORTH_Q. Returns None when the
    order is not tabulated or fc and capacitance cannot give a stage.
    """
    _check_filter_type(filter_type)

    if not _stage_realizable(fc, capacitance):
        logger.debug("No Butterworth design for fc=%r, C=%r", fc, capacitance)
        return None

    q_values = BUTTERWORTH_Q.get(order)
    if not q_values:
        logger.debug("No Butterworth table for order %r", order)
        return None

    return [
        sallen_key_stage(fc, q, capacitance, filter_type=filter_type, stage_index=i + 1)
        for i, q in enumerate(q_values)
    ]


def chebyshev_poles(order: int, ripple_db: float) -> List[ChebyshevPole]:
    """
    Chebyshev Type I pole Qs and frequency scaling, one per conjugate pair.

    Poles are normalised to a unit passband edge:
        ε = √(10^(ripple/10) − 1),  a = asinh(1/ε) / N
        θk = (2k − 1)π / (2N)
        σk = −sinh(a)·sin(θk),  ωk = cosh(a)·cos(θk)

    Returns stages sorted by ascending Q (low-Q stages first for better
    cascade noise performance).
    """
    if order < 1 or ripple_db <= 0:
        return []

    epsilon = math.sqrt(10 ** (ripple_db / 10) - 1)
    a = math.asinh(1 / epsilon) / order

    poles = []
    for k in range(1, order + 1):
        theta = (2 * k - 1) * math.pi / (2 * order)
        sigma = -math.sinh(a) * math.sin(theta)
        omega = math.cosh(a) * math.cos(theta)
        poles.append((sigma, omega))

    stages = []
    for sigma, omega in poles[:order // 2]:
        w0 = math.sqrt(sigma * sigma + omega * omega)
        stages.append(ChebyshevPole(q=w0 / (-2 * sigma), w0=w0))

    stages.sort(key=lambda p: p.q)
    return stages


def chebyshev_filter(
    filter_type: str,
    order: int,
    fc: float,
    capacitance: float,
    ripple_db: float = 1.0,
) -> List[FilterStage]:
    """
    Design a Chebyshev Type I filter with the given passband ripple (dB).

    Each stage is tuned to fc·w0, fc being the passband edge. For odd
    orders the real pole has no 2nd-order stage and is left out of the
    cascade. Returns an empty list when fc and capacitance cannot give a
    stage.
    """
    _check_filter_type(filter_type)

    poles = chebyshev_poles(order, ripple_db)
    if not all(_stage_realizable(fc * pole.w0, capacitance) for pole in poles):
        logger.debug("No Chebyshev design for fc=%r, C=%r", fc, capacitance)
        return []

    if order % 2:
        logger.warning(
            "Chebyshev order %d is odd: the real pole is omitted, %d stage(s) designed",
            order, order // 2,
        )

    return [
        sallen_key_stage(
            fc * pole.w0, pole.q, capacitance,
            filter_type=filter_type, stage_index=i + 1, frequency_scale=pole.w0,
        )
        for i, pole in enumerate(poles)
    ]


# Registry of filter families
FILTER_FAMILIES: Dict[str, Callable] = {
    'butterworth': butterworth_filter,
    'chebyshev': chebyshev_filter,
}


def design_filter(
    family: str,
    filter_type: str,
    order: int,
    fc: float,
    capacitance: float,
    **kwargs,
) -> Optional[List[FilterStage]]:
    """Design a filter by family name ('butterworth' or 'chebyshev')."""
    if family not in FILTER_FAMILIES:
        raise ValueError(f"Unknown filter family '{family}'. Available: {list(FILTER_FAMILIES.keys())}")
    return FILTER_FAMILIES[family](filter_type, order, fc, capacitance, **kwargs)


def stage_response(stage: FilterStage, frequencies) -> np.ndarray:
    """
    Linear magnitude of one Sallen-Key stage at the given frequencies.

        LP: H = K / (1 − x² + j·x/Q)
        HP: H = −K·x² / (1 − x² + j·x/Q),   x = f / fc
    """
    x = np.asarray(frequencies, dtype=float) / stage.actual_cutoff
    denominator = 1 - x ** 2 + 1j * x / stage.actual_q

    if stage.filter_type == 'highpass':
        H = -stage.gain * x ** 2 / denominator
    else:
        H = stage.gain / denominator

    return np.abs(H)


def cascade_response(stages: Sequence[FilterStage], frequencies) -> np.ndarray:
    """Linear magnitude of the whole cascade (product of the stages)."""
    magnitude = np.ones_like(np.asarray(frequencies, dtype=float))
    for stage in stages:
        magnitude = magnitude * stage_response(stage, frequencies)
    return magnitude
