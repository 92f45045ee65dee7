"""
Schematic component kinds.

Each kind knows three things:
- its pin offsets relative to the anchor (x, y), once for the SVG drawing
  and once for the Falstad simulator's geometry (the same table unless
  the simulator places a pin elsewhere),
- how to draw itself as SVG,
- optionally, how to describe itself as Falstad circuit text lines.

Kinds are created through COMPONENT_TYPES, keyed by type tag.
"""

from typing import Dict, List, Optional, Type

from circuitcalc.components import format_value
from circuitcalc.geometry import Point, num, safe, sim_num
from circuitcalc.presets import get_bjt_preset, get_opamp_preset

STROKE = 'black'
PROBE_COLOR = '#2266cc'


class SchematicError(ValueError):
    """Structural error in a schematic: unknown type, component, pin or route."""


def _line(x1, y1, x2, y2, width=2, dashed=False) -> str:
    dash = ' stroke-dasharray="4,2"' if dashed else ''
    return (f'<line x1="{num(x1)}" y1="{num(y1)}" x2="{num(x2)}" y2="{num(y2)}" '
            f'stroke="{STROKE}" stroke-width="{width}"{dash}/>')


def _text(x, y, text, anchor='start', extra='') -> str:
    anchor_attr = f' text-anchor="{anchor}"' if anchor != 'start' else ''
    return f'<text x="{num(x)}" y="{num(y)}"{anchor_attr}{extra}>{safe(text)}</text>'


def _side_label(x, y, text, label_pos, offset=15) -> str:
    """Label beside a vertical part, on the right unless label_pos='left'."""
    if label_pos == 'left':
        return _text(x - offset, y + 5, text, anchor='end')
    return _text(x + offset, y + 5, text)


class SchematicComponent:
    """Base for all component kinds; (x, y) is the anchor."""

    type_name = 'component'
    PINS: Dict[str, Point] = {}
    SIM_PINS: Optional[Dict[str, Point]] = None

    def __init__(self, id: str, x: float, y: float, **options):
        self.id = id
        self.x = x
        self.y = y
        self.options = options

    @property
    def label(self) -> str:
        return self.options.get('label') or self.id

    @property
    def value(self):
        return self.options.get('value')

    def pin_offsets(self) -> Dict[str, Point]:
        """Pin offsets used for the SVG drawing."""
        return self.PINS

    def simulator_pin_offsets(self) -> Dict[str, Point]:
        """Pin offsets matching the simulator's geometry."""
        if self.SIM_PINS is not None:
            return self.SIM_PINS
        return self.pin_offsets()

    def render_svg(self) -> str:
        raise NotImplementedError

    def to_falstad(self) -> Optional[List[str]]:
        """Falstad lines for this component, or None if it has no equivalent."""
        return None


# ---------- Amplifiers ----------

class OpAmp(SchematicComponent):
    """Op-amp triangle, anchor at the triangle center. flip swaps + and −."""

    type_name = 'opamp'

    def __init__(self, id, x, y, **options):
        super().__init__(id, x, y, **options)
        self.flip = bool(options.get('flip', False))

    def _pins(self, input_offset: float) -> Dict[str, Point]:
        sign = -1 if self.flip else 1
        return {
            'plus': Point(-40, sign * input_offset),
            'minus': Point(-40, -sign * input_offset),
            'out': Point(40, 0),
            'vpos': Point(0, -30),
            'vneg': Point(0, 30),
        }

    def pin_offsets(self):
        # ±20 keeps the inputs clear of the triangle edges
        return self._pins(20)

    def simulator_pin_offsets(self):
        # Falstad draws op-amp inputs at ±16
        return self._pins(16)

    def render_svg(self) -> str:
        x, y, flip = self.x, self.y, self.flip
        parts = [
            f'<polygon points="{num(x-40)},{num(y-40)} {num(x-40)},{num(y+40)} {num(x+40)},{num(y)}" '
            f'fill="none" stroke="{STROKE}" stroke-width="2"/>',
            _text(x - 30, y + (28 if flip else -12), '−'),
            _text(x - 30, y + (-12 if flip else 28), '+'),
        ]
        vcc = self.options.get('vcc')
        if vcc:
            parts.append(_line(x, y - 30, x, y - 45))
            parts.append(_text(x + 5, y - 48, f'+{vcc}V'))
            parts.append(_line(x, y + 30, x, y + 45))
            parts.append(_text(x + 5, y + 55, f'−{vcc}V'))
        return f'<g class="component opamp">{"".join(parts)}</g>'

    def _gbw(self) -> float:
        if 'gbw' in self.options:
            return self.options['gbw']
        preset = self.options.get('preset')
        if preset:
            opamp = get_opamp_preset(preset)
            return 0 if opamp.is_ideal else opamp.gbw
        return 0

    def to_falstad(self):
        vcc = self.options.get('vcc') or 12
        flags = 1 if self.flip else 0
        # a x1 y1 x2 y2 flags maxOut minOut gbw  (gbw 0 = ideal)
        return [
            f'a {sim_num(self.x - 40)} {sim_num(self.y)} {sim_num(self.x + 40)} {sim_num(self.y)} '
            f'{flags} {sim_num(vcc)} {sim_num(-vcc)} {sim_num(self._gbw())}'
        ]


class Amplifier(SchematicComponent):
    """Gain block triangle with an optional label inside. Diagram only."""

    type_name = 'amplifier'
    PINS = {
        'in': Point(-30, 0),
        'out': Point(30, 0),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = (f'<polygon points="{num(x-30)},{num(y-25)} {num(x-30)},{num(y+25)} {num(x+30)},{num(y)}" '
             f'fill="none" stroke="{STROKE}" stroke-width="2"/>')
        if self.options.get('label'):
            s += _text(x - 20, y + 5, self.options['label'], extra=' font-size="12"')
        return f'<g class="component amplifier">{s}</g>'


# ---------- Passives ----------

class ResistorH(SchematicComponent):
    """Horizontal resistor, 50 wide, anchor at center."""

    type_name = 'resistor-h'
    PINS = {
        'a': Point(-25, 0),
        'b': Point(25, 0),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = (f'<rect x="{num(x-25)}" y="{num(y-10)}" width="50" height="20" '
             f'fill="none" stroke="{STROKE}" stroke-width="2"/>')
        s += _text(x, y - 15, self.label, anchor='middle')
        if self.value is not None:
            s += _text(x, y + 25, format_value(self.value, 'Ω'), anchor='middle')
        return f'<g class="component resistor">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        # r x1 y1 x2 y2 0 <resistance>
        return [f'r {sim_num(self.x - 25)} {sim_num(self.y)} {sim_num(self.x + 25)} {sim_num(self.y)} '
                f'0 {sim_num(self.value)}']


class ResistorV(SchematicComponent):
    """Vertical resistor, 50 tall, anchor at center."""

    type_name = 'resistor-v'
    PINS = {
        'a': Point(0, -25),
        'b': Point(0, 25),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        dashed = ' stroke-dasharray="4,2"' if self.options.get('dashed') else ''
        label_pos = self.options.get('label_pos', 'right')
        s = (f'<rect x="{num(x-10)}" y="{num(y-25)}" width="20" height="50" '
             f'fill="none" stroke="{STROKE}" stroke-width="2"{dashed}/>')
        s += _side_label(x, y, self.label, label_pos)
        if self.value is not None:
            s += _side_label(x, y + 15, format_value(self.value, 'Ω'), label_pos)
        return f'<g class="component resistor">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        return [f'r {sim_num(self.x)} {sim_num(self.y - 25)} {sim_num(self.x)} {sim_num(self.y + 25)} '
                f'0 {sim_num(self.value)}']


class CapacitorH(SchematicComponent):
    """Horizontal capacitor (vertical plates), anchor between the plates."""

    type_name = 'capacitor-h'
    PINS = {
        'a': Point(-4, 0),
        'b': Point(4, 0),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = _line(x - 4, y - 12, x - 4, y + 12) + _line(x + 4, y - 12, x + 4, y + 12)
        s += _text(x, y - 18, self.label, anchor='middle')
        if self.value is not None:
            s += _text(x, y + 28, format_value(self.value, 'F'), anchor='middle')
        return f'<g class="component capacitor">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        # c x1 y1 x2 y2 0 <capacitance> <initial voltage>
        return [f'c {sim_num(self.x - 4)} {sim_num(self.y)} {sim_num(self.x + 4)} {sim_num(self.y)} '
                f'0 {sim_num(self.value)} 0']


class CapacitorV(SchematicComponent):
    """Vertical capacitor (horizontal plates), anchor between the plates."""

    type_name = 'capacitor-v'
    PINS = {
        'a': Point(0, -4),
        'b': Point(0, 4),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        label_pos = self.options.get('label_pos', 'right')
        s = _line(x - 12, y - 4, x + 12, y - 4) + _line(x - 12, y + 4, x + 12, y + 4)
        s += _side_label(x, y, self.label, label_pos, offset=18)
        if self.value is not None:
            s += _side_label(x, y + 15, format_value(self.value, 'F'), label_pos, offset=18)
        return f'<g class="component capacitor">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        return [f'c {sim_num(self.x)} {sim_num(self.y - 4)} {sim_num(self.x)} {sim_num(self.y + 4)} '
                f'0 {sim_num(self.value)} 0']


class InductorH(SchematicComponent):
    """Horizontal inductor, 48 wide, four humps."""

    type_name = 'inductor-h'
    PINS = {
        'a': Point(-24, 0),
        'b': Point(24, 0),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = (f'<path d="M{num(x-24)},{num(y)} a6,6 0 0 1 12,0 a6,6 0 0 1 12,0 '
             f'a6,6 0 0 1 12,0 a6,6 0 0 1 12,0" fill="none" stroke="{STROKE}" stroke-width="2"/>')
        s += _text(x, y - 15, self.label, anchor='middle')
        return f'<g class="component inductor">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        # l x1 y1 x2 y2 0 <inductance> <current>
        return [f'l {sim_num(self.x - 24)} {sim_num(self.y)} {sim_num(self.x + 24)} {sim_num(self.y)} '
                f'0 {sim_num(self.value)} 0']


class InductorV(SchematicComponent):
    """Vertical inductor, 48 tall, four humps."""

    type_name = 'inductor-v'
    PINS = {
        'a': Point(0, -24),
        'b': Point(0, 24),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = (f'<path d="M{num(x)},{num(y-24)} a6,6 0 0 1 0,12 a6,6 0 0 1 0,12 '
             f'a6,6 0 0 1 0,12 a6,6 0 0 1 0,12" fill="none" stroke="{STROKE}" stroke-width="2"/>')
        s += _side_label(x, y, self.label, self.options.get('label_pos', 'right'))
        return f'<g class="component inductor">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        return [f'l {sim_num(self.x)} {sim_num(self.y - 24)} {sim_num(self.x)} {sim_num(self.y + 24)} '
                f'0 {sim_num(self.value)} 0']


# ---------- Diodes ----------

class _Diode(SchematicComponent):
    """Shared Falstad encoding for both diode orientations."""

    def __init__(self, id, x, y, **options):
        super().__init__(id, x, y, **options)
        self.flip = bool(options.get('flip', False))

    def _forward_drop(self) -> Optional[float]:
        vf = self.options.get('vf')
        if vf is None:
            vf = self.value
        return vf

    def to_falstad(self):
        vf = self._forward_drop()
        if vf is None:
            return None
        # d x1 y1 x2 y2 <model> <fwdrop>; model 4 = LED, 1 = standard diode
        model = 4 if self.options.get('led') else 1
        anode = self.pin_offsets()['a']
        cathode = self.pin_offsets()['k']
        return [f'd {sim_num(self.x + anode.x)} {sim_num(self.y + anode.y)} '
                f'{sim_num(self.x + cathode.x)} {sim_num(self.y + cathode.y)} {model} {sim_num(vf or 0.7)}']


class DiodeH(_Diode):
    """Horizontal diode, anode left and cathode right (swapped when flipped)."""

    type_name = 'diode-h'

    def pin_offsets(self):
        if self.flip:
            return {'a': Point(15, 0), 'k': Point(-15, 0)}
        return {'a': Point(-15, 0), 'k': Point(15, 0)}

    def render_svg(self) -> str:
        x, y = self.x, self.y
        if self.flip:
            # Triangle pointing left, cathode bar on the left
            s = (f'<polygon points="{num(x+10)},{num(y-10)} {num(x+10)},{num(y+10)} {num(x-5)},{num(y)}" '
                 f'fill="none" stroke="{STROKE}" stroke-width="2"/>')
            s += _line(x - 5, y - 10, x - 5, y + 10)
        else:
            s = (f'<polygon points="{num(x-10)},{num(y-10)} {num(x-10)},{num(y+10)} {num(x+5)},{num(y)}" '
                 f'fill="none" stroke="{STROKE}" stroke-width="2"/>')
            s += _line(x + 5, y - 10, x + 5, y + 10)
        s += _line(x - 15, y, x - 10, y) + _line(x + 5, y, x + 15, y)
        s += _text(x, y - 15, self.label, anchor='middle')
        return f'<g class="component diode">{s}</g>'


class DiodeV(_Diode):
    """Vertical diode, anode top and cathode bottom (swapped when flipped)."""

    type_name = 'diode-v'

    def pin_offsets(self):
        if self.flip:
            return {'a': Point(0, 15), 'k': Point(0, -15)}
        return {'a': Point(0, -15), 'k': Point(0, 15)}

    def render_svg(self) -> str:
        x, y = self.x, self.y
        if self.flip:
            s = (f'<polygon points="{num(x-10)},{num(y+5)} {num(x+10)},{num(y+5)} {num(x)},{num(y-10)}" '
                 f'fill="none" stroke="{STROKE}" stroke-width="2"/>')
            s += _line(x - 10, y - 10, x + 10, y - 10)
            s += _line(x, y - 15, x, y - 10) + _line(x, y + 5, x, y + 15)
        else:
            s = (f'<polygon points="{num(x-10)},{num(y-5)} {num(x+10)},{num(y-5)} {num(x)},{num(y+10)}" '
                 f'fill="none" stroke="{STROKE}" stroke-width="2"/>')
            s += _line(x - 10, y + 10, x + 10, y + 10)
            s += _line(x, y - 15, x, y - 5) + _line(x, y + 10, x, y + 15)
        s += _side_label(x, y, self.label, self.options.get('label_pos', 'right'))
        return f'<g class="component diode">{s}</g>'


# ---------- Supplies and sources ----------

class Ground(SchematicComponent):
    """Ground symbol, anchor at the top connection point."""

    type_name = 'ground'
    PINS = {'a': Point(0, 0)}

    def render_svg(self) -> str:
        x, y = self.x, self.y
        dashed = bool(self.options.get('dashed'))
        s = (_line(x - 10, y, x + 10, y, dashed=dashed)
             + _line(x - 6, y + 5, x + 6, y + 5, width=1.5, dashed=dashed)
             + _line(x - 3, y + 10, x + 3, y + 10, width=1, dashed=dashed))
        return f'<g class="symbol ground">{s}</g>'

    def to_falstad(self):
        # g x1 y1 x2 y2 0
        return [f'g {sim_num(self.x)} {sim_num(self.y)} {sim_num(self.x)} {sim_num(self.y + 16)} 0']


class Power(SchematicComponent):
    """Supply rail, anchor at the bottom connection point."""

    type_name = 'power'
    PINS = {'a': Point(0, 0)}

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = _line(x, y, x, y - 10) + _text(x, y - 15, self.options.get('label') or 'V+', anchor='middle')
        return f'<g class="symbol power">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        # Rail drawn as a DC source pointing up
        return [f'R {sim_num(self.x)} {sim_num(self.y)} {sim_num(self.x)} {sim_num(self.y - 32)} '
                f'0 0 40 {sim_num(self.value)} 0 0 0.5']


class DCSource(SchematicComponent):
    """Vertical DC source, anchor at the positive terminal, 50 tall."""

    type_name = 'dc-source'
    PINS = {
        'pos': Point(0, 0),
        'neg': Point(0, 50),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        label = self.options.get('label') or (f'{self.value:g}V' if self.value else 'Vdc')
        s = f'<circle cx="{num(x)}" cy="{num(y+25)}" r="15" fill="none" stroke="{STROKE}" stroke-width="2"/>'
        s += _line(x - 5, y + 20, x + 5, y + 20) + _line(x, y + 15, x, y + 25)
        s += _line(x - 5, y + 32, x + 5, y + 32)
        s += _line(x, y, x, y + 10) + _line(x, y + 40, x, y + 50)
        s += _text(x + 20, y + 30, label)
        return f'<g class="component source">{s}</g>'

    def to_falstad(self):
        if self.value is None:
            return None
        # R x1 y1 x2 y2 0 0 40 <voltage> 0 0 0.5
        return [f'R {sim_num(self.x)} {sim_num(self.y)} {sim_num(self.x)} {sim_num(self.y + 50)} '
                f'0 0 40 {sim_num(self.value)} 0 0 0.5']


def _ac_falstad(x1, y1, x2, y2, options) -> List[str]:
    amplitude = options.get('value') or 1
    freq = options.get('freq') or 1000
    # R x1 y1 x2 y2 0 1 <freq> <amplitude> 0 0 0.5
    return [f'R {sim_num(x1)} {sim_num(y1)} {sim_num(x2)} {sim_num(y2)} '
            f'0 1 {sim_num(freq)} {sim_num(amplitude)} 0 0 0.5']


class ACSource(SchematicComponent):
    """Vertical AC source, anchor at the positive terminal, 50 tall."""

    type_name = 'ac-source'
    PINS = {
        'pos': Point(0, 0),
        'neg': Point(0, 50),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = f'<circle cx="{num(x)}" cy="{num(y+25)}" r="15" fill="none" stroke="{STROKE}" stroke-width="2"/>'
        s += (f'<path d="M{num(x-8)},{num(y+25)} Q{num(x-4)},{num(y+18)} {num(x)},{num(y+25)} '
              f'T{num(x+8)},{num(y+25)}" fill="none" stroke="{STROKE}" stroke-width="1.5"/>')
        s += _line(x, y, x, y + 10) + _line(x, y + 40, x, y + 50)
        s += _text(x + 20, y + 30, self.options.get('label') or 'Vac')
        return f'<g class="component source">{s}</g>'

    def to_falstad(self):
        return _ac_falstad(self.x, self.y, self.x, self.y + 50, self.options)


class ACSourceH(SchematicComponent):
    """Horizontal AC source for inline signal injection, 50 wide."""

    type_name = 'ac-source-h'
    PINS = {
        'a': Point(-25, 0),
        'b': Point(25, 0),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = f'<circle cx="{num(x)}" cy="{num(y)}" r="15" fill="none" stroke="{STROKE}" stroke-width="2"/>'
        s += (f'<path d="M{num(x-8)},{num(y)} Q{num(x-4)},{num(y-7)} {num(x)},{num(y)} '
              f'T{num(x+8)},{num(y)}" fill="none" stroke="{STROKE}" stroke-width="1.5"/>')
        s += _line(x - 25, y, x - 15, y) + _line(x + 15, y, x + 25, y)
        s += _text(x, y - 20, self.options.get('label') or 'Vin', anchor='middle')
        return f'<g class="component source">{s}</g>'

    def to_falstad(self):
        # Hot terminal (right pin) first, ground side second
        return _ac_falstad(self.x + 25, self.y, self.x - 25, self.y, self.options)


# ---------- Semiconductors and probes ----------

class NPN(SchematicComponent):
    """NPN transistor, anchor at the base bar center."""

    type_name = 'npn'
    PINS = {
        'base': Point(-15, 0),
        'collector': Point(25, -25),
        'emitter': Point(25, 25),
    }

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = _line(x, y - 20, x, y + 20, width=3)
        s += _line(x - 15, y, x, y)
        s += _line(x, y - 10, x + 25, y - 25)
        s += _line(x, y + 10, x + 25, y + 25)
        s += (f'<polygon points="{num(x+19)},{num(y+18)} {num(x+25)},{num(y+25)} {num(x+17)},{num(y+23)}" '
              f'fill="{STROKE}"/>')
        return f'<g class="component npn">{s}</g>'

    def _beta(self) -> float:
        if 'beta' in self.options:
            return self.options['beta']
        preset = self.options.get('preset')
        if preset:
            return get_bjt_preset(preset).beta
        return 100

    def to_falstad(self):
        # t x1 y1 x2 y2 0 1 <vbe> <vbc> <beta>; x1,y1 = base, x2,y2 = body
        return [f't {sim_num(self.x - 15)} {sim_num(self.y)} {sim_num(self.x + 25)} {sim_num(self.y)} '
                f'0 1 -0.7 0.7 {sim_num(self._beta())}']


class Probe(SchematicComponent):
    """Scope probe point, anchor at the connection point."""

    type_name = 'probe'
    PINS = {'a': Point(0, 0)}

    def render_svg(self) -> str:
        x, y = self.x, self.y
        s = f'<circle cx="{num(x)}" cy="{num(y)}" r="4" fill="{PROBE_COLOR}" stroke="{PROBE_COLOR}"/>'
        if self.options.get('label'):
            s += _text(x + 8, y + 4, self.options['label'], extra=f' fill="{PROBE_COLOR}"')
        return f'<g class="symbol probe">{s}</g>'

    def to_falstad(self):
        # p x1 y1 x2 y2 1 0 0
        return [f'p {sim_num(self.x)} {sim_num(self.y)} {sim_num(self.x + 48)} {sim_num(self.y)} 1 0 0']


# Type tag -> component class (aliases included)
COMPONENT_TYPES: Dict[str, Type[SchematicComponent]] = {
    'opamp': OpAmp,
    'amplifier': Amplifier,
    'amp': Amplifier,
    'buffer': Amplifier,
    'resistor': ResistorH,
    'resistor-h': ResistorH,
    'resistor-v': ResistorV,
    'capacitor': CapacitorH,
    'capacitor-h': CapacitorH,
    'capacitor-v': CapacitorV,
    'inductor': InductorH,
    'inductor-h': InductorH,
    'inductor-v': InductorV,
    'diode': DiodeH,
    'diode-h': DiodeH,
    'diode-v': DiodeV,
    'ground': Ground,
    'gnd': Ground,
    'power': Power,
    'vcc': Power,
    'npn': NPN,
    'dc-source': DCSource,
    'dc-source-v': DCSource,
    'ac-source': ACSource,
    'ac-source-v': ACSource,
    'ac-source-h': ACSourceH,
    'probe': Probe,
    'scope': Probe,
}


def create_component(type_name: str, id: str, x: float, y: float, **options) -> SchematicComponent:
    """Instantiate a component kind by type tag."""
    if type_name not in COMPONENT_TYPES:
        raise SchematicError(
            f"Unknown component type '{type_name}' for '{id}'. Available: {sorted(COMPONENT_TYPES.keys())}"
        )
    return COMPONENT_TYPES[type_name](id, x, y, **options)
