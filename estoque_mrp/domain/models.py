# estoque_mrp/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os payloads da API chegam como dicionários; cada modelo sabe se montar
  a partir deles via ``from_dict``. Campo obrigatório ausente ou com tipo
  errado levanta ``DecodeError`` (nunca vira lista vazia silenciosamente).
- Os modelos são somente leitura para os motores de cálculo.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class DecodeError(ValueError):
    """Payload da API com formato inesperado."""


def coerce_number(value: Any) -> float:
    """Converte ``value`` para float; None, NaN, infinito ou lixo viram 0.0.

    Aceita vírgula como separador decimal ("5,5" -> 5.5).
    """
    if value is None:
        return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        if not isinstance(value, str):
            return 0.0
        try:
            num = float(value.strip().replace(",", "."))
        except ValueError:
            return 0.0
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def _require(data: Any, key: str, model: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"{model}: esperado objeto, recebido {type(data).__name__}")
    if data.get(key) is None:
        raise DecodeError(f"{model}: campo obrigatório ausente: {key}")
    return data[key]


def _require_number(data: Dict[str, Any], key: str, model: str) -> float:
    raw = _require(data, key, model)
    if isinstance(raw, bool):
        raise DecodeError(f"{model}: campo {key} não é numérico")
    try:
        num = float(raw)
    except (TypeError, ValueError):
        raise DecodeError(f"{model}: campo {key} não é numérico: {raw!r}")
    if math.isnan(num):
        raise DecodeError(f"{model}: campo {key} é NaN")
    return num


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Converte um timestamp ISO-8601 (com ou sem 'Z') em datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        raise DecodeError(f"timestamp inválido: {value!r}")


# -------------------------
# Catálogo e BOM
# -------------------------

@dataclass
class Component:
    """Produto atuando como componente de uma BOM."""
    id: str
    code: Optional[str] = None
    name: Optional[str] = None
    unit_measure: Optional[str] = None
    standard_cost: Optional[float] = None
    average_cost: Optional[float] = None

    @property
    def unit_cost(self) -> float:
        """Custo unitário: standard_cost -> average_cost -> 0."""
        return coerce_number(self.standard_cost) or coerce_number(self.average_cost) or 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Component:
        return cls(
            id=str(_require(data, "id", "Component")),
            code=_opt_str(data.get("code")),
            name=_opt_str(data.get("name")),
            unit_measure=_opt_str(data.get("inventory_unit")) or _opt_str(data.get("unit_measure")),
            standard_cost=data.get("standard_cost"),
            average_cost=data.get("average_cost"),
        )


@dataclass
class BomLine:
    """Linha de uma BOM. ``scrap_rate`` é percentual (10 = 10%)."""
    component_id: str
    quantity: float
    scrap_rate: float = 0.0
    notes: Optional[str] = None
    component: Optional[Component] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BomLine:
        comp = data.get("component") if isinstance(data, dict) else None
        return cls(
            component_id=str(_require(data, "component_id", "BomLine")),
            quantity=_require_number(data, "quantity", "BomLine"),
            scrap_rate=coerce_number(data.get("scrap_rate")),
            notes=_opt_str(data.get("notes")),
            component=Component.from_dict(comp) if isinstance(comp, dict) and comp.get("id") else None,
        )


@dataclass
class Bom:
    """Lista de materiais para um lote de ``batch_size`` unidades."""
    batch_size: float
    labor_cost: float = 0.0
    overhead_cost: float = 0.0
    items: List[BomLine] = field(default_factory=list)
    id: Optional[str] = None
    code: Optional[str] = None
    name: Optional[str] = None
    batch_unit: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Bom:
        items = data.get("items") if isinstance(data, dict) else None
        if items is not None and not isinstance(items, list):
            raise DecodeError("Bom: campo items deve ser uma lista")
        return cls(
            batch_size=_require_number(data, "batch_size", "Bom"),
            labor_cost=coerce_number(data.get("labor_cost")),
            overhead_cost=coerce_number(data.get("overhead_cost")),
            items=[BomLine.from_dict(i) for i in (items or [])],
            id=_opt_str(data.get("id")),
            code=_opt_str(data.get("code")),
            name=_opt_str(data.get("name")),
            batch_unit=_opt_str(data.get("batch_unit")),
        )


@dataclass
class ExplosionRequirement:
    component_code: str
    component_name: Optional[str]
    required_quantity: float
    unit_measure: Optional[str]
    unit_cost: float
    total_cost: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExplosionRequirement:
        return cls(
            component_code=str(_require(data, "component_code", "ExplosionRequirement")),
            component_name=_opt_str(data.get("component_name")),
            required_quantity=_require_number(data, "required_quantity", "ExplosionRequirement"),
            unit_measure=_opt_str(data.get("unit_measure")),
            unit_cost=coerce_number(data.get("unit_cost")),
            total_cost=coerce_number(data.get("total_cost")),
        )


@dataclass
class BomExplosion:
    """Resultado da explosão calculada no servidor (apenas exibido)."""
    requirements: List[ExplosionRequirement]
    total_material_cost: float
    total_labor_cost: float
    total_overhead_cost: float

    @property
    def total_cost(self) -> float:
        return self.total_material_cost + self.total_labor_cost + self.total_overhead_cost

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BomExplosion:
        reqs = _require(data, "requirements", "BomExplosion")
        if not isinstance(reqs, list):
            raise DecodeError("BomExplosion: requirements deve ser uma lista")
        return cls(
            requirements=[ExplosionRequirement.from_dict(r) for r in reqs],
            total_material_cost=_require_number(data, "total_material_cost", "BomExplosion"),
            total_labor_cost=coerce_number(data.get("total_labor_cost")),
            total_overhead_cost=coerce_number(data.get("total_overhead_cost")),
        )


# -------------------------
# Inventário
# -------------------------

class MovementType(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"
    PRODUCTION_ENTRY = "PRODUCTION_ENTRY"
    PRODUCTION_EXIT = "PRODUCTION_EXIT"
    PURCHASE_ENTRY = "PURCHASE_ENTRY"
    SALE_EXIT = "SALE_EXIT"
    RETURN = "RETURN"
    WASTE = "WASTE"


class Effect(str, Enum):
    """Efeito de um movimento sobre o saldo total do produto."""
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    NEUTRAL = "NEUTRAL"
    AMBIGUOUS = "AMBIGUOUS"   # ajuste sem local de origem nem destino


def _user_display(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        nome = " ".join(p for p in (_opt_str(value.get("first_name")), _opt_str(value.get("last_name"))) if p)
        return nome or _opt_str(value.get("email"))
    return _opt_str(value)


def _location_name(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return _opt_str(value.get("name")) or _opt_str(value.get("code"))
    return None


@dataclass(frozen=True)
class InventoryMovement:
    """Movimento de inventário. ``quantity`` é sempre magnitude (>= 0)."""
    id: str
    movement_type: MovementType
    quantity: float
    movement_date: datetime
    from_location_id: Optional[str] = None
    to_location_id: Optional[str] = None
    from_location_name: Optional[str] = None
    to_location_name: Optional[str] = None
    batch_number: Optional[str] = None
    reference_document: Optional[str] = None
    notes: Optional[str] = None
    user: Optional[str] = None
    product_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InventoryMovement:
        raw_type = _require(data, "movement_type", "InventoryMovement")
        try:
            mtype = MovementType(str(raw_type))
        except ValueError:
            raise DecodeError(f"InventoryMovement: tipo de movimento desconhecido: {raw_type!r}")
        quantity = _require_number(data, "quantity", "InventoryMovement")
        if quantity < 0:
            raise DecodeError(f"InventoryMovement: quantidade negativa: {quantity}")
        when = parse_timestamp(_require(data, "movement_date", "InventoryMovement"))
        if when is None:
            raise DecodeError("InventoryMovement: movement_date vazio")
        return cls(
            id=str(_require(data, "id", "InventoryMovement")),
            movement_type=mtype,
            quantity=quantity,
            movement_date=when,
            from_location_id=_opt_str(data.get("from_location_id")),
            to_location_id=_opt_str(data.get("to_location_id")),
            from_location_name=_location_name(data.get("from_location")),
            to_location_name=_location_name(data.get("to_location")),
            batch_number=_opt_str(data.get("batch_number")),
            reference_document=_opt_str(data.get("reference_document")),
            notes=_opt_str(data.get("notes")),
            user=_user_display(data.get("user")),
            product_id=_opt_str(data.get("product_id")),
        )


@dataclass
class MovementPage:
    """Página de movimentos devolvida por ``GET /inventory/movements``."""
    movements: List[InventoryMovement]
    total: int
    total_pages: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MovementPage:
        rows = _require(data, "data", "MovementPage")
        if not isinstance(rows, list):
            raise DecodeError("MovementPage: data deve ser uma lista")
        meta = _require(data, "meta", "MovementPage")
        return cls(
            movements=[InventoryMovement.from_dict(r) for r in rows],
            total=int(_require_number(meta, "total", "MovementPage.meta")),
            total_pages=int(_require_number(meta, "totalPages", "MovementPage.meta")),
        )


@dataclass
class VarianceResult:
    """Resultado da contagem cíclica: diferença = físico - sistema."""
    system_quantity: float
    physical_count: float
    difference: float
    message: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VarianceResult:
        system_qty = _require_number(data, "system_quantity", "VarianceResult")
        physical = _require_number(data, "physical_count", "VarianceResult")
        if data.get("difference") is not None:
            difference = _require_number(data, "difference", "VarianceResult")
        else:
            difference = physical - system_qty
        return cls(
            system_quantity=system_qty,
            physical_count=physical,
            difference=difference,
            message=_opt_str(data.get("message")) or "",
        )


# -------------------------
# Produção
# -------------------------

class ProductionOrderStatus(str, Enum):
    PLANNED = "PLANNED"
    RELEASED = "RELEASED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


@dataclass
class ProductionOrder:
    """Projeção somente leitura de uma ordem de produção."""
    planned_qty: float
    produced_qty: float
    status: ProductionOrderStatus
    planned_end_date: Optional[datetime] = None
    planned_start_date: Optional[datetime] = None
    id: Optional[str] = None
    order_number: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ProductionOrder:
        raw_status = _require(data, "status", "ProductionOrder")
        try:
            status = ProductionOrderStatus(str(raw_status))
        except ValueError:
            raise DecodeError(f"ProductionOrder: status desconhecido: {raw_status!r}")
        return cls(
            planned_qty=_require_number(data, "planned_qty", "ProductionOrder"),
            produced_qty=coerce_number(data.get("produced_qty")),
            status=status,
            planned_end_date=parse_timestamp(data.get("planned_end_date")),
            planned_start_date=parse_timestamp(data.get("planned_start_date")),
            id=_opt_str(data.get("id")),
            order_number=_opt_str(data.get("order_number")),
        )
