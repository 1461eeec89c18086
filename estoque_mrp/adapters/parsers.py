"""
Utilidades de parsing para as células das planilhas de BOM e catálogo.

As planilhas exportadas do MRP trazem quantidades com unidade no formato
"<valor> <unidade> - <descrição>" (ex.: "10 KG - Kilogramo"), mermas como
"5%" ou "5,5 %" e custos com símbolo de moeda e separador de milhar
("$ 1.234,50"). As funções abaixo extraem os valores numéricos sem levantar
exceção: o que não puder ser interpretado volta como None.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

_NUM_RE = re.compile(r"[-+]?\d+(?:[.,]\d+)*")


def _to_float(token: str) -> Optional[float]:
    """Converte "1.234,5", "1,234.5", "5,5" ou "5.5" em float."""
    s = token.strip()
    if "," in s and "." in s:
        # o último separador é o decimal
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif s.count(",") == 1:
        s = s.replace(",", ".")
    elif s.count(",") > 1 or s.count(".") > 1:
        s = s.replace(",", "").replace(".", "")
    try:
        return float(s)
    except ValueError:
        return None


def parse_quantidade_raw(txt) -> Tuple[Optional[float], Optional[str], Optional[str]]:
    """Interpreta uma string de quantidade com unidade.

    Exemplos:
        "10 KG - Kilogramo"  → (10.0, "KG", "Kilogramo")
        "2,5 lt - litros"    → (2.5, "LT", "litros")
        "4"                  → (4.0, None, None)

    Returns:
        Tupla (numero, unidade, descricao); o que não puder ser
        determinado vem como None.
    """
    if txt is None:
        return None, None, None
    s = str(txt).strip()
    if not s:
        return None, None, None
    head, desc = (s.split(" - ", 1) + [""])[:2]
    desc = desc.strip() or None
    parts = head.split()
    num = None
    unidade = None
    if parts:
        m = _NUM_RE.match(parts[0])
        if m:
            num = _to_float(m.group(0))
            rest = parts[0][m.end():].strip()
            # "10KG - Kilogramo": unidade colada no número
            if rest:
                unidade = rest.upper()
    if unidade is None and len(parts) >= 2:
        unidade = parts[1].strip().upper() or None
    return num, unidade, desc


def parse_percentual(txt) -> Optional[float]:
    """"5%" → 5.0; "5,5 %" → 5.5; valor numérico passa direto."""
    if txt is None:
        return None
    if isinstance(txt, (int, float)):
        return float(txt)
    m = _NUM_RE.search(str(txt))
    return _to_float(m.group(0)) if m else None


def parse_custo(txt) -> Optional[float]:
    """Custo monetário com ou sem símbolo: "$ 1.234,50" → 1234.5."""
    if txt is None:
        return None
    if isinstance(txt, (int, float)):
        return float(txt)
    s = re.sub(r"[^\d,.\-+]", "", str(txt))
    if not s:
        return None
    m = _NUM_RE.search(s)
    return _to_float(m.group(0)) if m else None
