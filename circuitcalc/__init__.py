"""
circuitcalc

Calculation and drawing library for small analog circuit helpers:
preferred-value rounding, Sallen-Key active filter design, SVG plots,
and schematics that render both as SVG and as Falstad CircuitJS circuits.

All math is deterministic and rendering is pure: the same inputs always
produce the same text.
"""

from circuitcalc.components import round_resistance, round_capacitance, format_value, format_value_long, parallel
from circuitcalc.presets import get_opamp_preset, get_bjt_preset, OPAMP_PRESETS, BJT_PRESETS
from circuitcalc.filters import (
    FilterStage, sallen_key_stage, butterworth_filter, chebyshev_poles, chebyshev_filter,
    design_filter, cascade_response,
)
from circuitcalc.plotting import ResponsePlot, WaveformPlot, TransferPlot, BarPlot, generate_response_curve
from circuitcalc.schematic import Schematic
from circuitcalc.symbols import SchematicError
from circuitcalc.falstad import compress_circuit, decompress_circuit, falstad_url

__version__ = "0.1.0"
