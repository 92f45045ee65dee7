"""
Standard component values and display formatting.

Provides rounding of ideal resistor and capacitor values to the nearest
preferred value, plus the compact and long value formats used in
schematics and result tables.
"""

import logging
import math

logger = logging.getLogger(__name__)

# E24 resistor series (IEC 60063), mantissas for one decade (1.0 to <10.0)
E24_BASE = [
    1.0, 1.1, 1.2, 1.3, 1.5, 1.6, 1.8, 2.0, 2.2, 2.4, 2.7, 3.0,
    3.3, 3.6, 3.9, 4.3, 4.7, 5.1, 5.6, 6.2, 6.8, 7.5, 8.2, 9.1,
]

# Common capacitor values (E6 with extras), in pF.
# Only entries <= 10 take part in matching; the rest span pF through nF.
CAPACITOR_BASE = [
    1.0, 1.5, 2.2, 3.3, 4.7, 6.8, 10, 15, 22, 33, 47, 68, 100,
    150, 220, 330, 470, 680, 1000,
]

_PF = 1e-12


def _nearest_mantissa(normalized: float, candidates) -> float:
    """Closest candidate by absolute difference, with the next-decade check."""
    closest = candidates[0]
    min_diff = abs(normalized - candidates[0])

    for c in candidates:
        diff = abs(normalized - c)
        if diff < min_diff:
            min_diff = diff
            closest = c

    # 9.6 is closer to 10 (the next decade's 1.0) than to 9.1
    if abs(normalized - 10) < min_diff:
        return 10.0

    return closest


def round_resistance(value: float) -> float:
    """
    Round a resistance (Ohms) to the nearest E24 value.

    Non-positive input returns 0, meaning "no resistor needed".

    Examples:
        round_resistance(47)    → 47
        round_resistance(9.6)   → 10
        round_resistance(16098) → 16000
    """
    if not math.isfinite(value) or value <= 0:
        logger.debug("round_resistance called with %r, returning 0", value)
        return 0.0

    decade = 10 ** math.floor(math.log10(value))
    if decade == 0:
        # Subnormal input: the decade underflows
        logger.debug("round_resistance called with %r, returning 0", value)
        return 0.0
    normalized = value / decade

    return _nearest_mantissa(normalized, E24_BASE) * decade


def round_capacitance(value: float) -> float:
    """
    Round a capacitance (Farads) to the nearest standard capacitor value.

    Matching is done in pF against the 1-10 part of CAPACITOR_BASE.
    Non-positive input returns 0.
    """
    if not math.isfinite(value) or value <= 0:
        logger.debug("round_capacitance called with %r, returning 0", value)
        return 0.0

    pf = value / _PF
    decade = 10 ** math.floor(math.log10(pf))
    if decade == 0:
        logger.debug("round_capacitance called with %r, returning 0", value)
        return 0.0
    normalized = pf / decade

    candidates = [c for c in CAPACITOR_BASE if c <= 10]
    closest = _nearest_mantissa(normalized, candidates)

    # Strip float noise from the pF -> F conversion (1000 pF -> 1e-9 exactly)
    return float(f"{closest * decade * _PF:.12g}")


def parallel(*values: float) -> float:
    """Combine resistances (or impedances) in parallel."""
    if not values:
        raise ValueError("parallel() needs at least one value")
    return 1.0 / sum(1.0 / v for v in values)


def format_value(value: float, unit: str) -> str:
    """
    Compact format for schematics (no space before the unit).

    Examples:
        format_value(4700, 'Ω')    → '4.7kΩ'
        format_value(1e-8, 'F')    → '10nF'
        format_value(0.05, 'V')    → '50mV'
    """
    if unit == 'Ω':
        if value >= 1e6:
            return f"{value / 1e6:.1f}MΩ"
        if value >= 1e3:
            return f"{value / 1e3:.1f}kΩ"
        return f"{value:.0f}Ω"
    if unit == 'F':
        if value >= 1e-6:
            return f"{value * 1e6:.1f}µF"
        if value >= 1e-9:
            return f"{value * 1e9:.0f}nF"
        return f"{value * 1e12:.0f}pF"
    if unit == 'V':
        abs_v = abs(value)
        if abs_v >= 1:
            return f"{value:.2f}V"
        if abs_v >= 0.001:
            return f"{value * 1e3:.0f}mV"
        return f"{value * 1e6:.0f}µV"
    if unit == 'A':
        abs_a = abs(value)
        if abs_a >= 1:
            return f"{value:.2f}A"
        if abs_a >= 0.001:
            return f"{value * 1e3:.2f}mA"
        return f"{value * 1e6:.0f}µA"
    if unit == 'Hz':
        if value >= 1e6:
            return f"{value / 1e6:.2f}MHz"
        if value >= 1e3:
            return f"{value / 1e3:.2f}kHz"
        return f"{value:.1f}Hz"
    if unit == 'mA':
        return f"{value:.2f}mA"
    return f"{value:.2f}{unit}"


def format_value_long(value: float, unit: str) -> str:
    """
    Long format for result tables (space before the unit).

    Examples:
        format_value_long(4700, 'Ω')  → '4.70 kΩ'
        format_value_long(1e-8, 'F')  → '10.0 nF'
    """
    if unit == 'Ω':
        if value >= 1e6:
            return f"{value / 1e6:.2f} MΩ"
        if value >= 1e3:
            return f"{value / 1e3:.2f} kΩ"
        return f"{value:.1f} Ω"
    if unit == 'F':
        if value >= 1e-6:
            return f"{value * 1e6:.2f} µF"
        if value >= 1e-9:
            return f"{value * 1e9:.1f} nF"
        return f"{value * 1e12:.0f} pF"
    if unit == 'V':
        abs_v = abs(value)
        if abs_v >= 1:
            return f"{value:.2f} V"
        if abs_v >= 0.001:
            return f"{value * 1e3:.0f} mV"
        return f"{value * 1e6:.0f} µV"
    if unit == 'A':
        abs_a = abs(value)
        if abs_a >= 1:
            return f"{value:.2f} A"
        if abs_a >= 0.001:
            return f"{value * 1e3:.2f} mA"
        return f"{value * 1e6:.0f} µA"
    if unit == 'Hz':
        if value >= 1e6:
            return f"{value / 1e6:.2f} MHz"
        if value >= 1e3:
            return f"{value / 1e3:.2f} kHz"
        return f"{value:.1f} Hz"
    if unit == 'mA':
        return f"{value:.2f} mA"
    return f"{value:.2f} {unit}"
