# estoque_mrp/domain/reconciliation.py
"""
Regras de conciliação de inventário: ajuste manual assinado e contagem
cíclica.

- Ajuste manual: magnitude + direção (positivo/negativo) + motivo de uma
  lista fixa. O payload enviado leva a quantidade já com sinal.
- Contagem cíclica: contagem física >= 0. A API devolve a variação
  (físico - sistema) e daqui sai a decisão de quanto tempo exibir o
  resultado e se a tela-pai precisa recarregar.

Validações falham antes de qualquer chamada de rede.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional

from estoque_mrp.config import DEFAULTS
from estoque_mrp.domain.models import VarianceResult, coerce_number


ADJUSTMENT_REASONS = [
    "Pérdida por daño",
    "Pérdida por vencimiento",
    "Error de inventario",
    "Ajuste inicial",
    "Donación",
    "Muestra gratis",
    "Consumo interno",
    "Diferencia de recepción",
    "Otro",
]


class ValidationError(ValueError):
    """Erros de validação por campo; bloqueiam o envio."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class Direction(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class AdjustmentField(str, Enum):
    PRODUCT_ID = "product_id"
    QUANTITY = "quantity"
    DIRECTION = "direction"
    REASON = "reason"
    LOCATION_ID = "location_id"
    BATCH_NUMBER = "batch_number"
    NOTES = "notes"


class CycleCountField(str, Enum):
    PRODUCT_ID = "product_id"
    PHYSICAL_COUNT = "physical_count"
    LOCATION_ID = "location_id"
    BATCH_NUMBER = "batch_number"
    NOTES = "notes"


def _opt(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass
class AdjustmentForm:
    product_id: Optional[str] = None
    quantity: float = 0.0
    direction: Direction = Direction.POSITIVE
    reason: Optional[str] = None
    location_id: Optional[str] = None
    batch_number: Optional[str] = None
    notes: Optional[str] = None

    def update(self, fld: AdjustmentField, value: Any) -> None:
        """Atualiza um campo; quantidade inválida vira 0 (como no formulário)."""
        fld = AdjustmentField(fld)
        if fld == AdjustmentField.QUANTITY:
            value = coerce_number(value)
        elif fld == AdjustmentField.DIRECTION:
            value = Direction(value)
        else:
            value = _opt(value)
        setattr(self, fld.value, value)


@dataclass
class CycleCountForm:
    product_id: Optional[str] = None
    physical_count: Optional[float] = 0.0
    location_id: Optional[str] = None
    batch_number: Optional[str] = None
    notes: Optional[str] = None

    def update(self, fld: CycleCountField, value: Any) -> None:
        fld = CycleCountField(fld)
        if fld == CycleCountField.PHYSICAL_COUNT:
            value = None if value is None else coerce_number(value)
        else:
            value = _opt(value)
        setattr(self, fld.value, value)


def validate_adjustment(form: AdjustmentForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.product_id:
        errors["product_id"] = "El producto es requerido"
    if not coerce_number(form.quantity):
        errors["quantity"] = "La cantidad no puede ser 0"
    if not form.reason:
        errors["reason"] = "La razón es requerida"
    elif form.reason not in ADJUSTMENT_REASONS:
        errors["reason"] = "Razón no reconocida"
    return errors


def signed_adjustment_quantity(quantity: float, direction: Direction) -> float:
    """``-|q|`` para ajuste negativo, ``|q|`` para positivo."""
    magnitude = abs(coerce_number(quantity))
    return -magnitude if Direction(direction) == Direction.NEGATIVE else magnitude


def _optional_fields(form, names) -> Dict[str, Any]:
    return {n: getattr(form, n) for n in names if getattr(form, n)}


def adjustment_payload(form: AdjustmentForm) -> Dict[str, Any]:
    """Payload de ``POST /inventory/adjustments``.

    Raises:
        ValidationError: se o formulário for inválido.
    """
    errors = validate_adjustment(form)
    if errors:
        raise ValidationError(errors)
    payload: Dict[str, Any] = {
        "product_id": form.product_id,
        "quantity": signed_adjustment_quantity(form.quantity, form.direction),
        "reason": form.reason,
    }
    payload.update(_optional_fields(form, ("location_id", "batch_number", "notes")))
    return payload


def validate_cycle_count(form: CycleCountForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.product_id:
        errors["product_id"] = "El producto es requerido"
    if form.physical_count is None or coerce_number(form.physical_count) < 0:
        errors["physical_count"] = "El conteo físico debe ser mayor o igual a 0"
    return errors


def cycle_count_payload(form: CycleCountForm) -> Dict[str, Any]:
    """Payload de ``POST /inventory/cycle-count``."""
    errors = validate_cycle_count(form)
    if errors:
        raise ValidationError(errors)
    payload: Dict[str, Any] = {
        "product_id": form.product_id,
        "physical_count": coerce_number(form.physical_count),
    }
    payload.update(_optional_fields(form, ("location_id", "batch_number", "notes")))
    return payload


@dataclass(frozen=True)
class CloseDecision:
    """Quanto tempo exibir o resultado e se a tela-pai deve recarregar."""
    delay_ms: int
    refresh: bool


def decide_close(variance: VarianceResult) -> CloseDecision:
    """Sem diferença: fecha em 2 s sem recarregar. Com diferença a contagem
    gerou um movimento corretivo: fecha em 3 s e recarrega."""
    if variance.difference == 0:
        return CloseDecision(DEFAULTS.close_delay_sem_diferenca_ms, refresh=False)
    return CloseDecision(DEFAULTS.close_delay_com_diferenca_ms, refresh=True)


def form_fields(form) -> Dict[str, Any]:
    """Snapshot do formulário (para logs)."""
    return {f.name: getattr(form, f.name) for f in fields(form)}
