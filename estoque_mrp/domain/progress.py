"""
Progress math for production orders.

Completion, delay and remaining quantity are derived from the planned and
produced quantities of an order. Recording output is validated here, on
the client, before any request is made. Reaching the planned quantity is
only *signalled*: status transitions belong to the external system.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from estoque_mrp.domain.models import ProductionOrder, ProductionOrderStatus, coerce_number


@dataclass(frozen=True)
class ProductionProgress:
    completion_percentage: int
    is_delayed: bool
    remaining_qty: float


@dataclass(frozen=True)
class OutputPreview:
    total_produced: float
    total_remaining: float
    completion_percentage: int
    will_complete: bool


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def completion_percentage(produced_qty, planned_qty) -> int:
    """``round(produced / planned * 100)`` clamped to [0, 100]; 0 when nothing is planned."""
    planned = coerce_number(planned_qty)
    if planned == 0:
        return 0
    pct = _round_half_up(coerce_number(produced_qty) / planned * 100)
    return int(min(100, max(0, pct)))


def remaining_quantity(produced_qty, planned_qty) -> float:
    return max(0.0, coerce_number(planned_qty) - coerce_number(produced_qty))


def _comparable(now: datetime, other: datetime) -> datetime:
    # Naive timestamps are read as UTC when the other side is aware.
    if (now.tzinfo is None) == (other.tzinfo is None):
        return now
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).replace(tzinfo=None)


def is_delayed(order: ProductionOrder, now: Optional[datetime] = None) -> bool:
    if order.status != ProductionOrderStatus.IN_PROGRESS or order.planned_end_date is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _comparable(now, order.planned_end_date) > order.planned_end_date


def order_progress(order: ProductionOrder, now: Optional[datetime] = None) -> ProductionProgress:
    return ProductionProgress(
        completion_percentage=completion_percentage(order.produced_qty, order.planned_qty),
        is_delayed=is_delayed(order, now),
        remaining_qty=remaining_quantity(order.produced_qty, order.planned_qty),
    )


def preview_output(order: ProductionOrder, quantity) -> OutputPreview:
    """What the order would look like after recording ``quantity`` more units."""
    total = coerce_number(order.produced_qty) + coerce_number(quantity)
    return OutputPreview(
        total_produced=total,
        total_remaining=remaining_quantity(total, order.planned_qty),
        completion_percentage=completion_percentage(total, order.planned_qty),
        will_complete=total >= coerce_number(order.planned_qty),
    )


def validate_output(
    order: ProductionOrder,
    quantity,
    operator: Optional[str] = None,
    lot_number: Optional[str] = None,
) -> Dict[str, str]:
    """Per-field errors for a production output; empty dict means valid."""
    errors: Dict[str, str] = {}
    if not (operator or "").strip():
        errors["operator"] = "Debe ingresar el nombre del operador"
    if not (lot_number or "").strip():
        errors["lot_number"] = "Debe ingresar el número de lote"
    qty = coerce_number(quantity)
    remaining = remaining_quantity(order.produced_qty, order.planned_qty)
    if qty <= 0:
        errors["quantity"] = "La cantidad producida debe ser mayor a 0"
    elif qty > remaining:
        errors["quantity"] = f"La cantidad producida no puede exceder {remaining:g} unidades pendientes"
    return errors


def generate_lot_number(today: Optional[date] = None, rng: Optional[random.Random] = None) -> str:
    """``LOT-YYYYMMDD-NNN``"""
    today = today or date.today()
    rng = rng or random.Random()
    return f"LOT-{today:%Y%m%d}-{rng.randrange(1000):03d}"


def validate_schedule(start: Optional[date], end: Optional[date]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if start is None or end is None:
        errors["planned_dates"] = "Las fechas planificadas son requeridas"
    elif start > end:
        errors["planned_end_date"] = "La fecha de fin debe ser posterior a la fecha de inicio"
    return errors


# -------------------------
# Material consumption
# -------------------------

@dataclass
class ConsumptionItem:
    material_id: str
    required_quantity: float
    consumed_quantity: float = 0.0

    @property
    def remaining_quantity(self) -> float:
        return self.required_quantity - self.consumed_quantity


def consumption_items(per_unit: Dict[str, float], planned_qty) -> List[ConsumptionItem]:
    """Required quantity per material is ``per_unit_quantity * planned_qty``."""
    planned = coerce_number(planned_qty)
    return [ConsumptionItem(mid, coerce_number(q) * planned) for mid, q in per_unit.items()]


def set_consumed(item: ConsumptionItem, quantity) -> None:
    """Record consumption; above the required quantity is rejected."""
    qty = coerce_number(quantity)
    if qty < 0:
        raise ValueError("La cantidad no puede ser negativa")
    if qty > item.required_quantity:
        raise ValueError("La cantidad no puede exceder lo requerido")
    item.consumed_quantity = qty


def consumption_progress(items: Iterable[ConsumptionItem]) -> int:
    items = list(items)
    required = sum(i.required_quantity for i in items)
    consumed = sum(i.consumed_quantity for i in items)
    return _round_half_up(consumed / required * 100) if required > 0 else 0
