"""
Schematic builder with SVG and Falstad CircuitJS output.

A schematic is described once (place components, wire pins, add junction
nodes and labels) and rendered either as an SVG diagram or as Falstad
circuit text. Pins are referenced as "componentId.pinName" or given as
(x, y) coordinates.

SVG z-order is fixed: wires, components, nodes, labels.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from circuitcalc.config import get_settings
from circuitcalc.falstad import falstad_url
from circuitcalc.geometry import Point, as_point, num, safe, sim_num
from circuitcalc.symbols import SchematicComponent, SchematicError, create_component

logger = logging.getLogger(__name__)

PinRef = Union[str, Point, tuple]

ROUTES = ('direct', 'h-v', 'v-h', 'h-v-h', 'v-h-v')

# $ 1 <timestep> <speed> <voltageRange> <currentSpeed> <powerBrightness> <minCurrent>
FALSTAD_TIMESTEP = '0.000005'
FALSTAD_SPEED = '10.20027730826997'


@dataclass
class Wire:
    start: PinRef
    end: PinRef
    route: str = 'direct'
    mid: Optional[float] = None   # bend x for h-v-h, bend y for v-h-v
    dashed: bool = False


@dataclass
class Label:
    text: str
    x: float
    y: float
    anchor: str = 'start'
    bold: bool = False


@dataclass
class Schematic:
    """Retained-mode schematic; every builder call returns self."""
    width: float = 500
    height: float = 300
    components: Dict[str, SchematicComponent] = field(default_factory=dict)
    wires: List[Wire] = field(default_factory=list)
    nodes: List[Point] = field(default_factory=list)
    labels: List[Label] = field(default_factory=list)
    simulator_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.simulator_options.setdefault('v_max', get_settings().simulator_v_max)

    # ---------- Building ----------

    def set_simulator_options(self, **options) -> 'Schematic':
        """Override Falstad export options (currently v_max)."""
        self.simulator_options.update(options)
        return self

    def place(self, type_name: str, id: str, x: float, y: float, **options) -> 'Schematic':
        """Place a component; (x, y) is its anchor (usually the center)."""
        if id in self.components:
            raise SchematicError(f"Component id '{id}' is already placed")
        self.components[id] = create_component(type_name, id, x, y, **options)
        return self

    def wire(
        self,
        start: PinRef,
        end: PinRef,
        route: str = 'direct',
        mid: Optional[float] = None,
        dashed: bool = False,
    ) -> 'Schematic':
        """
        Connect two pins.

        Both references are resolved immediately, so the components must
        already be placed.

        Args:
            start, end: "componentId.pinName" or (x, y)
            route: 'direct', 'h-v', 'v-h', 'h-v-h' or 'v-h-v'
            mid: Bend coordinate for 3-segment routes (defaults to midpoint)
            dashed: Draw the wire dashed in the SVG
        """
        if route not in ROUTES:
            raise SchematicError(f"Unknown wire route '{route}'. Must be one of: {list(ROUTES)}")
        self.pin(start)
        self.pin(end)
        self.wires.append(Wire(start, end, route, mid, dashed))
        return self

    def node(self, x: float, y: float) -> 'Schematic':
        """Add a junction dot."""
        self.nodes.append(Point(x, y))
        return self

    def label(self, text: str, x: float, y: float, anchor: str = 'start', bold: bool = False) -> 'Schematic':
        """Add a free text label."""
        self.labels.append(Label(text, x, y, anchor, bold))
        return self

    # ---------- Pin resolution ----------

    def _resolve(self, ref: PinRef, for_simulator: bool) -> Point:
        if not isinstance(ref, str):
            return as_point(ref)

        comp_id, sep, pin_name = ref.partition('.')
        if not sep or not comp_id or not pin_name:
            raise SchematicError(f"Pin reference '{ref}' must look like 'componentId.pinName'")

        comp = self.components.get(comp_id)
        if comp is None:
            raise SchematicError(f"Component not found: '{comp_id}' (in '{ref}')")

        pins = comp.simulator_pin_offsets() if for_simulator else comp.pin_offsets()
        offset = pins.get(pin_name)
        if offset is None:
            raise SchematicError(
                f"Pin not found: '{pin_name}' on '{comp_id}' ({comp.type_name}). "
                f"Available: {list(pins.keys())}"
            )
        return Point(comp.x + offset.x, comp.y + offset.y)

    def pin(self, ref: PinRef) -> Point:
        """Absolute position of a pin in the SVG drawing."""
        return self._resolve(ref, for_simulator=False)

    def simulator_pin(self, ref: PinRef) -> Point:
        """Absolute position of a pin in Falstad's geometry."""
        return self._resolve(ref, for_simulator=True)

    # ---------- Routing ----------

    @staticmethod
    def _route_points(start: Point, end: Point, wire: Wire) -> List[Point]:
        """Polyline vertices for a wire, including both endpoints."""
        if wire.route == 'h-v':
            return [start, Point(end.x, start.y), end]
        if wire.route == 'v-h':
            return [start, Point(start.x, end.y), end]
        if wire.route == 'h-v-h':
            mid_x = wire.mid if wire.mid is not None else (start.x + end.x) / 2
            return [start, Point(mid_x, start.y), Point(mid_x, end.y), end]
        if wire.route == 'v-h-v':
            mid_y = wire.mid if wire.mid is not None else (start.y + end.y) / 2
            return [start, Point(start.x, mid_y), Point(end.x, mid_y), end]
        return [start, end]

    # ---------- SVG ----------

    def _wire_svg(self, wire: Wire) -> str:
        points = self._route_points(self.pin(wire.start), self.pin(wire.end), wire)
        dashed = ' stroke-dasharray="4,2"' if wire.dashed else ''
        if len(points) == 2:
            a, b = points
            return (f'<line x1="{num(a.x)}" y1="{num(a.y)}" x2="{num(b.x)}" y2="{num(b.y)}" '
                    f'stroke="black" stroke-width="2"{dashed}/>')
        coords = ' '.join(f'{num(p.x)},{num(p.y)}' for p in points)
        return f'<polyline points="{coords}" fill="none" stroke="black" stroke-width="2"{dashed}/>'

    def to_svg(self) -> str:
        """Render the schematic as an SVG document."""
        svg_parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{num(self.width)}" height="{num(self.height)}" '
            f'viewBox="0 0 {num(self.width)} {num(self.height)}" '
            f'style="font-family: monospace; font-size: 12px;">',
        ]

        svg_parts.extend(self._wire_svg(w) for w in self.wires)
        svg_parts.extend(comp.render_svg() for comp in self.components.values())
        svg_parts.extend(
            f'<circle cx="{num(n.x)}" cy="{num(n.y)}" r="3" fill="black"/>' for n in self.nodes
        )
        for lbl in self.labels:
            style = 'font-weight: bold;' if lbl.bold else ''
            svg_parts.append(
                f'<text x="{num(lbl.x)}" y="{num(lbl.y)}" text-anchor="{lbl.anchor}" '
                f'style="{style}">{safe(lbl.text)}</text>'
            )

        svg_parts.append('</svg>')
        return '\n'.join(svg_parts)

    # ---------- Falstad ----------

    def to_falstad(self) -> str:
        """
        Render the schematic as Falstad CircuitJS circuit text.

        One header line, then one line per exportable component, then one
        'w' line per wire segment (multi-segment routes are split).
        """
        v_max = self.simulator_options['v_max']
        lines = [f'$ 1 {FALSTAD_TIMESTEP} {FALSTAD_SPEED} {sim_num(v_max)} 5 50 5e-11']

        for comp in self.components.values():
            comp_lines = comp.to_falstad()
            if comp_lines:
                lines.extend(comp_lines)
            else:
                logger.debug("Component '%s' (%s) has no simulator line", comp.id, comp.type_name)

        for wire in self.wires:
            points = self._route_points(self.simulator_pin(wire.start), self.simulator_pin(wire.end), wire)
            for a, b in zip(points, points[1:]):
                lines.append(f'w {sim_num(a.x)} {sim_num(a.y)} {sim_num(b.x)} {sim_num(b.y)} 0')

        return '\n'.join(lines)

    def falstad_url(self, base_url: Optional[str] = None) -> str:
        """Link that opens this circuit in the Falstad simulator."""
        return falstad_url(self.to_falstad(), base_url)
