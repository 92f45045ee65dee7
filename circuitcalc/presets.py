"""
Device presets for active components.

Op-amp and BJT parameter sets used when exporting schematics to the
circuit simulator (gain-bandwidth for op-amps, current gain for NPNs).
"""

import math
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class OpAmpPreset:
    name: str
    gbw: float            # Hz
    slew_rate: float      # V/s
    noise_voltage: float  # V/√Hz

    @property
    def is_ideal(self) -> bool:
        return math.isinf(self.gbw)


@dataclass(frozen=True)
class BJTPreset:
    name: str
    beta: float
    ft: float        # Hz
    vce_sat: float   # V


OPAMP_PRESETS: Dict[str, OpAmpPreset] = {
    'ideal': OpAmpPreset('Ideal', math.inf, math.inf, 0.0),
    'tl072': OpAmpPreset('TL072', 3e6, 13e6, 18e-9),
    'ne5532': OpAmpPreset('NE5532', 10e6, 9e6, 5e-9),
    'opa2134': OpAmpPreset('OPA2134', 8e6, 20e6, 8e-9),
    'lm358': OpAmpPreset('LM358', 1e6, 0.5e6, 40e-9),
    'ad8066': OpAmpPreset('AD8066', 145e6, 180e6, 7e-9),
}

BJT_PRESETS: Dict[str, BJTPreset] = {
    'ideal': BJTPreset('Ideal', 100000, 1e12, 0.0),
    '2n2222': BJTPreset('2N2222', 150, 300e6, 0.3),
    '2n3904': BJTPreset('2N3904', 200, 300e6, 0.2),
    'bc547': BJTPreset('BC547', 300, 300e6, 0.25),
    '2n5551': BJTPreset('2N5551', 120, 100e6, 0.4),
    'mpsa18': BJTPreset('MPSA18', 1000, 50e6, 0.25),
}


def get_opamp_preset(name: str) -> OpAmpPreset:
    """Get an op-amp preset by name (case-insensitive)."""
    key = name.lower()
    if key not in OPAMP_PRESETS:
        raise ValueError(f"Unknown op-amp preset '{name}'. Available: {list(OPAMP_PRESETS.keys())}")
    return OPAMP_PRESETS[key]


def get_bjt_preset(name: str) -> BJTPreset:
    """Get a BJT preset by name (case-insensitive)."""
    key = name.lower()
    if key not in BJT_PRESETS:
        raise ValueError(f"Unknown BJT preset '{name}'. Available: {list(BJT_PRESETS.keys())}")
    return BJT_PRESETS[key]
