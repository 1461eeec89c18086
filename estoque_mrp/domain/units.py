# estoque_mrp/domain/units.py
"""
Agregação de quantidades por unidade de medida.

Usado no resumo de componentes de uma BOM: soma as quantidades base e as
quantidades com merma (scrap) de cada unidade. É um auxílio de exibição
("best effort"), não um total autoritativo: entradas sem unidade resolvida
são descartadas sem erro.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from estoque_mrp.domain.models import BomLine, Component, coerce_number


@dataclass
class UnitTotals:
    base_total: float = 0.0
    with_scrap_total: float = 0.0


def with_scrap(quantity, scrap_rate) -> float:
    """Quantidade acrescida da merma: ``quantity * (1 + scrap_rate/100)``."""
    return coerce_number(quantity) * (1.0 + coerce_number(scrap_rate) / 100.0)


def aggregate_by_unit(
    entries: Iterable[Tuple[object, object, Optional[str]]],
) -> Dict[str, UnitTotals]:
    """Agrupa tuplas ``(quantity, scrap_rate, unit)`` por unidade.

    A ordem das chaves segue a primeira ocorrência de cada unidade.
    Tuplas com unidade ``None``/vazia são ignoradas.
    """
    out: Dict[str, UnitTotals] = {}
    for quantity, scrap_rate, unit in entries:
        if not unit:
            continue
        totals = out.setdefault(unit, UnitTotals())
        totals.base_total += coerce_number(quantity)
        totals.with_scrap_total += with_scrap(quantity, scrap_rate)
    return out


def unit_entries(
    items: Iterable[BomLine],
    components: Mapping[str, Component],
) -> List[Tuple[float, float, Optional[str]]]:
    """Monta as tuplas de agregação a partir das linhas de uma BOM.

    A unidade vem do componente no catálogo (ou do embutido na linha);
    componente não encontrado resulta em unidade ``None``.
    """
    rows: List[Tuple[float, float, Optional[str]]] = []
    for item in items:
        comp = components.get(item.component_id) or item.component
        unit = comp.unit_measure if comp else None
        rows.append((item.quantity, item.scrap_rate, unit))
    return rows
