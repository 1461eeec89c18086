"""
Cost roll-up for Bills of Materials.

These functions compute the material, labor and overhead cost of a BOM
from its lines and the unit cost of each component. Scrap (merma) is
applied per line as a percentage over the required quantity.

Numeric input is treated leniently: missing, malformed or NaN values
degrade to 0 and the roll-up never returns NaN. A component that cannot
be found in the catalog contributes 0 to the material cost, but the line
is reported as ``Unresolved`` so callers can flag "cost unknown" instead
of silently understating the total.

The one hard failure is a BOM whose ``batch_size`` is not positive: that
is a configuration defect and explosion by quantity refuses to scale it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Union

from estoque_mrp.domain.models import Bom, BomLine, Component, coerce_number
from estoque_mrp.domain.units import with_scrap


class InvalidBomError(ValueError):
    """BOM em estado inválido (ex.: batch_size zero)."""


@dataclass(frozen=True)
class Resolved:
    cost: float


@dataclass(frozen=True)
class Unresolved:
    component_id: str


CostResolution = Union[Resolved, Unresolved]


@dataclass
class CostLine:
    component_id: str
    quantity: float
    scrap_rate: float
    effective_quantity: float
    resolution: CostResolution
    line_cost: float

    @property
    def resolved(self) -> bool:
        return isinstance(self.resolution, Resolved)


@dataclass
class CostRollup:
    material_cost: float
    labor_cost: float
    overhead_cost: float
    total_cost: float
    lines: List[CostLine] = field(default_factory=list)
    unresolved_component_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, float]:
        return {
            "material_cost": self.material_cost,
            "labor_cost": self.labor_cost,
            "overhead_cost": self.overhead_cost,
            "total_cost": self.total_cost,
        }


@dataclass
class ScaledBom:
    """BOM escalada para uma quantidade-alvo de produção."""
    requested_quantity: float
    batch_size: float
    factor: float
    items: List[BomLine]
    costs: CostRollup


def cost_lookup(components: Iterable[Component]) -> Dict[str, float]:
    """Build the ``id -> unit cost`` lookup from catalog components."""
    return {c.id: c.unit_cost for c in components}


def resolve_unit_cost(component_id: str, lookup: Mapping[str, float]) -> CostResolution:
    """Return ``Resolved(cost)`` when the component is known, else ``Unresolved``."""
    if component_id not in lookup:
        return Unresolved(component_id)
    return Resolved(coerce_number(lookup[component_id]))


def effective_quantity(quantity, scrap_rate) -> float:
    """Compute ``quantity * (1 + scrap_rate / 100)``."""
    return with_scrap(quantity, scrap_rate)


def rollup_costs(
    items: Iterable[BomLine],
    lookup: Mapping[str, float],
    labor_cost=0.0,
    overhead_cost=0.0,
) -> CostRollup:
    """Compute the cost roll-up of a set of BOM lines.

    Parameters
    ----------
    items: Iterable[BomLine]
        Lines of the BOM. They are read, never modified.
    lookup: Mapping[str, float]
        Unit cost per component id.
    labor_cost, overhead_cost:
        Fixed costs added on top of the material cost.

    Returns
    -------
    CostRollup
        ``total_cost`` is always ``material_cost + labor_cost + overhead_cost``.
    """
    lines: List[CostLine] = []
    unresolved: List[str] = []
    material = 0.0
    for item in items:
        qty = coerce_number(item.quantity)
        scrap = coerce_number(item.scrap_rate)
        eff = effective_quantity(qty, scrap)
        resolution = resolve_unit_cost(item.component_id, lookup)
        if isinstance(resolution, Resolved):
            line_cost = coerce_number(eff * resolution.cost)
        else:
            line_cost = 0.0
            unresolved.append(item.component_id)
        material += line_cost
        lines.append(CostLine(item.component_id, qty, scrap, eff, resolution, line_cost))

    material = coerce_number(material)
    labor = coerce_number(labor_cost)
    overhead = coerce_number(overhead_cost)
    return CostRollup(
        material_cost=material,
        labor_cost=labor,
        overhead_cost=overhead,
        total_cost=material + labor + overhead,
        lines=lines,
        unresolved_component_ids=unresolved,
    )


def rollup_bom(bom: Bom, lookup: Mapping[str, float]) -> CostRollup:
    """Shortcut for :func:`rollup_costs` over a whole :class:`Bom`."""
    return rollup_costs(bom.items, lookup, bom.labor_cost, bom.overhead_cost)


def explode_by_quantity(bom: Bom, lookup: Mapping[str, float], quantity) -> ScaledBom:
    """Scale a BOM to produce ``quantity`` units.

    The scale factor is ``quantity / batch_size``; every line quantity and
    every cost is multiplied by it.

    Raises
    ------
    InvalidBomError
        If ``batch_size`` is zero, negative or not a number.
    ValueError
        If ``quantity`` is negative.
    """
    batch = coerce_number(bom.batch_size)
    if batch <= 0:
        raise InvalidBomError(f"batch_size must be positive, got {bom.batch_size!r}")
    qty = coerce_number(quantity)
    if qty < 0:
        raise ValueError("quantity must not be negative")

    factor = qty / batch
    scaled = [replace(item, quantity=coerce_number(item.quantity) * factor) for item in bom.items]
    costs = rollup_costs(
        scaled,
        lookup,
        coerce_number(bom.labor_cost) * factor,
        coerce_number(bom.overhead_cost) * factor,
    )
    return ScaledBom(requested_quantity=qty, batch_size=batch, factor=factor, items=scaled, costs=costs)
