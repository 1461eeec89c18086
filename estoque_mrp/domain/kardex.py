# estoque_mrp/domain/kardex.py
"""
Kardex: livro de movimentos de um produto com saldo acumulado.

Fluxo do cálculo:
1) Ordena os movimentos do mais antigo para o mais recente.
2) Passada para frente acumulando o saldo (cada linha guarda o saldo
   *após* o seu movimento).
3) Inverte a lista para exibição (mais recente primeiro). Os saldos NÃO
   são recalculados na inversão; cada saldo viaja com o seu movimento.

Também contém o estado tipado de filtros/paginação e a exportação CSV.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from estoque_mrp.config import DEFAULTS
from estoque_mrp.domain.models import Effect, InventoryMovement, MovementType, coerce_number
from estoque_mrp.domain.policies import classify, movement_label


CSV_HEADER = ["Fecha", "Tipo", "Cantidad", "Desde", "Hacia", "Lote", "Documento", "Usuario", "Notas"]


@dataclass(frozen=True)
class LedgerEntry:
    movement: InventoryMovement
    effect: Effect
    running_balance: float


@dataclass
class Ledger:
    """Kardex pronto para exibição (mais recente primeiro)."""
    entries: List[LedgerEntry]
    opening_balance: float = 0.0
    final_balance: float = 0.0
    ambiguous_ids: List[str] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [
            f"Ajuste {mid} sem local de origem/destino: saldo não alterado"
            for mid in self.ambiguous_ids
        ]


def _sort_key(movement: InventoryMovement) -> datetime:
    # Timestamps sem fuso são lidos como UTC
    when = movement.movement_date
    return when.replace(tzinfo=timezone.utc) if when.tzinfo is None else when


def build_ledger(movements: Iterable[InventoryMovement], opening_balance: float = 0.0) -> Ledger:
    """Monta o Kardex com saldo acumulado.

    A ordenação é estável por ``movement_date``: movimentos com o mesmo
    timestamp mantêm a ordem recebida (a API entrega em ordem crescente
    de id).
    """
    ordered = sorted(movements, key=_sort_key)
    balance = coerce_number(opening_balance)
    forward: List[LedgerEntry] = []
    ambiguous: List[str] = []
    for mov in ordered:
        effect = classify(mov)
        if effect == Effect.ADD:
            balance += mov.quantity
        elif effect == Effect.SUBTRACT:
            balance -= mov.quantity
        elif effect == Effect.AMBIGUOUS:
            ambiguous.append(mov.id)
        forward.append(LedgerEntry(mov, effect, balance))

    return Ledger(
        entries=list(reversed(forward)),
        opening_balance=coerce_number(opening_balance),
        final_balance=balance,
        ambiguous_ids=ambiguous,
    )


# -------------------------
# Filtros e paginação
# -------------------------

class KardexFilterField(str, Enum):
    MOVEMENT_TYPE = "movement_type"
    START_DATE = "start_date"
    END_DATE = "end_date"


@dataclass(frozen=True)
class KardexFilters:
    movement_type: Optional[MovementType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class Pagination:
    page: int = 1
    limit: int = DEFAULTS.kardex_page_size
    total: int = 0
    total_pages: int = 0


def _check_filter_value(fld: KardexFilterField, value: Any) -> Any:
    if value is None:
        return None
    if fld == KardexFilterField.MOVEMENT_TYPE:
        return value if isinstance(value, MovementType) else MovementType(str(value))
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


@dataclass
class KardexQuery:
    """Estado da consulta do Kardex de um produto (filtros + paginação)."""
    product_id: str
    location_id: Optional[str] = None
    filters: KardexFilters = field(default_factory=KardexFilters)
    pagination: Pagination = field(default_factory=Pagination)

    def set_filter(self, fld: KardexFilterField, value: Any) -> None:
        """Altera um filtro e volta para a página 1."""
        fld = KardexFilterField(fld)
        self.filters = replace(self.filters, **{fld.value: _check_filter_value(fld, value)})
        self.pagination.page = 1

    def clear_filters(self) -> None:
        self.filters = KardexFilters()
        self.pagination.page = 1

    def go_to_page(self, page: int) -> None:
        """Vai para ``page`` (limitado a [1, total_pages] quando conhecido)."""
        page = max(1, int(page))
        if self.pagination.total_pages:
            page = min(page, self.pagination.total_pages)
        self.pagination.page = page

    def update_totals(self, total: int, total_pages: int) -> None:
        self.pagination.total = int(total)
        self.pagination.total_pages = int(total_pages)

    def to_params(self) -> Dict[str, Any]:
        """Parâmetros de query para ``GET /inventory/movements``."""
        params: Dict[str, Any] = {
            "product_id": self.product_id,
            "page": self.pagination.page,
            "limit": self.pagination.limit,
        }
        if self.location_id:
            params["location_id"] = self.location_id
        if self.filters.movement_type:
            params["movement_type"] = self.filters.movement_type.value
        if self.filters.start_date:
            params["start_date"] = self.filters.start_date.isoformat()
        if self.filters.end_date:
            params["end_date"] = self.filters.end_date.isoformat()
        return params


# -------------------------
# Exportação CSV
# -------------------------

def _fmt_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def csv_row(movement: InventoryMovement, placeholder: str = DEFAULTS.placeholder_csv) -> List[str]:
    return [
        _fmt_date(movement.movement_date),
        movement_label(movement.movement_type),
        f"{movement.quantity:.2f}",
        movement.from_location_name or movement.from_location_id or placeholder,
        movement.to_location_name or movement.to_location_id or placeholder,
        movement.batch_number or placeholder,
        movement.reference_document or placeholder,
        movement.user or placeholder,
        movement.notes or placeholder,
    ]


def ledger_to_csv(entries: Iterable[LedgerEntry]) -> str:
    """Serializa as linhas exibidas (mais recente primeiro) em CSV.

    Cabeçalho sem aspas; todos os valores entre aspas duplas; linhas
    separadas por ``\\n`` sem quebra final. Saída estável para a mesma
    entrada.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for entry in entries:
        writer.writerow(csv_row(entry.movement))
    body = buf.getvalue().rstrip("\n")
    header = ",".join(CSV_HEADER)
    return f"{header}\n{body}" if body else header


def kardex_filename(product_id: str, product_code: Optional[str] = None, today: Optional[date] = None) -> str:
    """``kardex_{codigo_ou_id}_{YYYY-MM-DD}.csv``"""
    today = today or date.today()
    return f"kardex_{product_code or product_id}_{today.isoformat()}.csv"
