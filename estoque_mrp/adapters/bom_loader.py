# estoque_mrp/adapters/bom_loader.py
"""
Loaders para planilhas de BOM e de catálogo de componentes (XLSX ou CSV).

Essas funções:
- leem a planilha usando pandas (``read_excel`` para .xlsx/.xls, ``read_csv``
  para o resto);
- normalizam cabeçalhos (acentos, variações, sinônimos em PT/ES/EN);
- devolvem modelos do domínio (``BomLine`` / ``Component``).

Observações:
- Linha sem código de componente é ignorada.
- Quantidade pode vir com unidade ("10 KG - Kilogramo"); a unidade vira o
  ``unit_measure`` do componente embutido na linha.
- Custos ilegíveis ficam None (o roll-up trata como custo desconhecido).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from estoque_mrp.adapters.parsers import parse_custo, parse_percentual, parse_quantidade_raw
from estoque_mrp.domain.models import BomLine, Component


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüçñ", "aaaaaeeeeiiiiooooouuuucn"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def _safe_get(row, key) -> Optional[Any]:
    """Lê ``key`` da linha tratando NA/vazio como None."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return val


_ALIASES = {
    "componente": "componente",
    "component": "componente",
    "component id": "componente",
    "component code": "componente",
    "codigo": "componente",
    "codigo componente": "componente",
    "cod": "componente",
    "id": "componente",
    "sku": "componente",

    "nome": "nome",
    "nombre": "nome",
    "name": "nome",
    "descricao": "nome",
    "descripcion": "nome",

    "quantidade": "quantidade",
    "cantidad": "quantidade",
    "quantity": "quantidade",
    "qtd": "quantidade",
    "qtde": "quantidade",

    "merma": "merma",
    "scrap": "merma",
    "scrap rate": "merma",
    "perda": "merma",

    "unidade": "unidade",
    "unidad": "unidade",
    "unit": "unidade",
    "unit measure": "unidade",
    "inventory unit": "unidade",
    "um": "unidade",

    "custo padrao": "custo_padrao",
    "costo estandar": "custo_padrao",
    "standard cost": "custo_padrao",
    "custo": "custo_padrao",
    "costo": "custo_padrao",

    "custo medio": "custo_medio",
    "costo promedio": "custo_medio",
    "average cost": "custo_medio",

    "notas": "notas",
    "observacoes": "notas",
    "notes": "notas",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)
    return df.rename(columns=new_cols)


def _read_sheet(path: str) -> pd.DataFrame:
    if Path(path).suffix.lower() in (".xlsx", ".xls"):
        df = pd.read_excel(path, dtype="string")
    else:
        df = pd.read_csv(path, dtype="string")
    return _normalize_columns(df)


# ---------------------------
# loaders públicos
# ---------------------------

def load_bom_lines(path: str) -> List[BomLine]:
    """Lê as linhas de uma BOM.

    Colunas reconhecidas: componente, quantidade, merma, unidade, nome, notas.
    """
    df = _read_sheet(path)
    out: List[BomLine] = []
    for _, row in df.iterrows():
        code = _safe_get(row, "componente")
        if code is None:
            continue
        code = str(code).strip()
        num, unidade, _desc = parse_quantidade_raw(_safe_get(row, "quantidade"))
        unidade = unidade or _safe_get(row, "unidade")
        unidade = str(unidade).strip().upper() if unidade else None
        nome = _safe_get(row, "nome")
        embedded = None
        if unidade or nome:
            embedded = Component(id=code, code=code, name=nome, unit_measure=unidade)
        out.append(BomLine(
            component_id=code,
            quantity=num or 0.0,
            scrap_rate=parse_percentual(_safe_get(row, "merma")) or 0.0,
            notes=_safe_get(row, "notas"),
            component=embedded,
        ))
    return out


def load_components(path: str) -> List[Component]:
    """Lê o catálogo de componentes com seus custos.

    Colunas reconhecidas: componente, nome, unidade, custo_padrao, custo_medio.
    """
    df = _read_sheet(path)
    out: List[Component] = []
    for _, row in df.iterrows():
        code = _safe_get(row, "componente")
        if code is None:
            continue
        code = str(code).strip()
        unidade = _safe_get(row, "unidade")
        out.append(Component(
            id=code,
            code=code,
            name=_safe_get(row, "nome"),
            unit_measure=str(unidade).strip().upper() if unidade else None,
            standard_cost=parse_custo(_safe_get(row, "custo_padrao")),
            average_cost=parse_custo(_safe_get(row, "custo_medio")),
        ))
    return out
