from math import isclose

import pytest

from estoque_mrp.domain.costing import (
    InvalidBomError,
    Resolved,
    Unresolved,
    cost_lookup,
    explode_by_quantity,
    rollup_bom,
    rollup_costs,
)
from estoque_mrp.domain.models import Bom, BomLine, Component


def _catalogo():
    return [
        Component(id="A", code="MP-A", unit_measure="KG", standard_cost=5.0),
        Component(id="B", code="MP-B", unit_measure="KG", standard_cost=None, average_cost=2.0),
    ]


def test_rollup_exemplo_basico():
    # A: 2 * 1.10 * 5 = 11 ; B: 10 * 1 * 2 = 20 ; material 31 + 20 + 4 = 55
    bom = Bom(batch_size=1, labor_cost=20, overhead_cost=4, items=[
        BomLine("A", 2, scrap_rate=10),
        BomLine("B", 10),
    ])
    res = rollup_bom(bom, cost_lookup(_catalogo()))
    assert isclose(res.material_cost, 31.0)
    assert isclose(res.total_cost, 55.0)
    assert res.unresolved_component_ids == []
    assert all(line.resolved for line in res.lines)


def test_total_e_sempre_a_soma_das_partes():
    res = rollup_costs([BomLine("A", 3, 0)], cost_lookup(_catalogo()), labor_cost=7.5, overhead_cost=1.25)
    assert isclose(res.total_cost, res.material_cost + res.labor_cost + res.overhead_cost)


def test_bom_vazia_custa_so_mao_de_obra_e_overhead():
    res = rollup_costs([], {}, labor_cost=10, overhead_cost=2)
    assert res.material_cost == 0.0
    assert res.total_cost == 12.0


def test_componente_ausente_custo_zero_mas_sinalizado():
    res = rollup_costs([BomLine("A", 1), BomLine("X", 4)], cost_lookup(_catalogo()))
    assert isclose(res.material_cost, 5.0)
    assert res.unresolved_component_ids == ["X"]
    ausente = res.lines[1]
    assert isinstance(ausente.resolution, Unresolved)
    assert ausente.line_cost == 0.0
    assert isinstance(res.lines[0].resolution, Resolved)


def test_custo_padrao_tem_prioridade_sobre_medio():
    comp = Component(id="C", standard_cost=3.0, average_cost=9.0)
    assert comp.unit_cost == 3.0
    assert Component(id="D").unit_cost == 0.0


def test_rollup_nao_altera_as_linhas():
    items = [BomLine("A", 2, 10)]
    rollup_costs(items, cost_lookup(_catalogo()))
    assert items[0].quantity == 2
    assert items[0].scrap_rate == 10


def test_explosao_escala_quantidades_e_custos():
    bom = Bom(batch_size=10, labor_cost=20, overhead_cost=4, items=[BomLine("A", 2, 10)])
    scaled = explode_by_quantity(bom, cost_lookup(_catalogo()), 25)
    assert scaled.factor == 2.5
    assert scaled.items[0].quantity == 5.0
    assert isclose(scaled.costs.labor_cost, 50.0)
    assert isclose(scaled.costs.overhead_cost, 10.0)
    assert isclose(scaled.costs.material_cost, 5.0 * 1.1 * 5.0)
    # a BOM original continua intacta
    assert bom.items[0].quantity == 2


@pytest.mark.parametrize("batch", [0, -1])
def test_explosao_rejeita_batch_invalido(batch):
    bom = Bom(batch_size=batch, items=[BomLine("A", 1)])
    with pytest.raises(InvalidBomError):
        explode_by_quantity(bom, {}, 10)


def test_explosao_rejeita_quantidade_negativa():
    bom = Bom(batch_size=1, items=[BomLine("A", 1)])
    with pytest.raises(ValueError):
        explode_by_quantity(bom, {}, -5)
