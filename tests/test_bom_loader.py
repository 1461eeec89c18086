from math import isclose

import pandas as pd

from estoque_mrp.adapters.bom_loader import _normalize_columns, load_bom_lines, load_components
from estoque_mrp.usecases.custo_bom import run_custo_bom_planilha


def _escreve_csv(path, rows):
    pd.DataFrame(rows).to_csv(path, index=False)
    return str(path)


def test_normalize_columns_sinonimos():
    df = pd.DataFrame({"Código": ["A"], "Cantidad": ["1"], "Merma (%)": ["5"], "Costo Estándar": ["2"]})
    cols = list(_normalize_columns(df).columns)
    assert cols[:2] == ["componente", "quantidade"]
    assert cols[3] == "custo_padrao"


def test_load_bom_lines_csv(tmp_path):
    path = _escreve_csv(tmp_path / "bom.csv", {
        "Componente": ["A", "B", None],
        "Cantidad": ["2 KG - Kilogramo", "10", "3"],
        "Merma": ["10%", None, "0"],
        "Unidad": [None, "lt", None],
    })
    lines = load_bom_lines(path)
    assert [l.component_id for l in lines] == ["A", "B"]
    assert lines[0].quantity == 2.0
    assert lines[0].scrap_rate == 10.0
    assert lines[0].component.unit_measure == "KG"
    assert lines[1].scrap_rate == 0.0
    assert lines[1].component.unit_measure == "LT"


def test_load_components_xlsx(tmp_path):
    path = tmp_path / "componentes.xlsx"
    pd.DataFrame({
        "Código": ["A", "B"],
        "Nombre": ["Harina", "Agua"],
        "Unidad": ["kg", "lt"],
        "Costo Estándar": ["$ 5,00", None],
        "Costo Promedio": [None, "2"],
    }).to_excel(path, index=False)
    comps = load_components(str(path))
    assert [c.id for c in comps] == ["A", "B"]
    assert comps[0].unit_cost == 5.0
    assert comps[1].unit_cost == 2.0
    assert comps[1].unit_measure == "LT"


def test_custo_bom_a_partir_de_planilhas(tmp_path):
    bom = _escreve_csv(tmp_path / "bom.csv", {
        "Componente": ["A", "B", "X"],
        "Cantidad": ["2", "10", "1"],
        "Merma": ["10", "0", "0"],
    })
    comps = _escreve_csv(tmp_path / "comp.csv", {
        "Codigo": ["A", "B"],
        "Unidad": ["KG", "KG"],
        "Standard Cost": ["5", "2"],
    })
    rel = run_custo_bom_planilha(bom, comps, labor_cost=20, overhead_cost=4)
    assert isclose(rel["custos"]["total_cost"], 55.0)
    assert rel["componentes_sem_custo"] == ["X"]
    assert isclose(rel["por_unidade"]["KG"]["base_total"], 12.0)


def test_componente_fora_do_catalogo_com_unidade_fica_sem_custo(tmp_path):
    bom = _escreve_csv(tmp_path / "bom.csv", {
        "Componente": ["A", "X"],
        "Cantidad": ["2", "1"],
        "Unidad": ["KG", "KG"],
    })
    comps = _escreve_csv(tmp_path / "comp.csv", {"Codigo": ["A"], "Costo": ["5"]})
    rel = run_custo_bom_planilha(bom, comps)
    assert rel["componentes_sem_custo"] == ["X"]
    linha_x = rel["linhas"][1]
    assert linha_x["custo_unit"] is None
    assert linha_x["custo_linha"] == 0.0
    # a unidade embutida continua valendo para o resumo
    assert isclose(rel["por_unidade"]["KG"]["base_total"], 3.0)
