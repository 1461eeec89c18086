from datetime import date, datetime, timezone
from math import isclose
from unittest.mock import Mock

import pytest

from estoque_mrp.domain.costing import InvalidBomError
from estoque_mrp.domain.kardex import KardexFilterField
from estoque_mrp.domain.models import (
    Bom, BomLine, Component, InventoryMovement, MovementPage, MovementType,
    ProductionOrder, ProductionOrderStatus,
)
from estoque_mrp.domain.reconciliation import ValidationError
from estoque_mrp.infra.api_client import APIResponse, ErrorKind
from estoque_mrp.usecases.custo_bom import montar_relatorio, run_custo_bom_api
from estoque_mrp.usecases.kardex import KardexSession
from estoque_mrp.usecases.producao import MSG_COMPLETA, MSG_REGISTRADA, run_progresso, run_registrar_producao


def _bom(batch=1):
    return Bom(batch_size=batch, labor_cost=20, overhead_cost=4, id="b1", code="BOM-1", items=[
        BomLine("A", 2, 10),
        BomLine("B", 10),
    ])


def _catalogo():
    return [
        Component(id="A", code="MP-A", unit_measure="KG", standard_cost=5),
        Component(id="B", code="MP-B", unit_measure="KG", average_cost=2),
    ]


# -----------------------
# custo de BOM
# -----------------------

def test_relatorio_de_custo():
    rel = montar_relatorio(_bom(), _catalogo())
    assert isclose(rel["custos"]["total_cost"], 55.0)
    assert rel["linhas"][0]["componente"] == "MP-A"
    assert isclose(rel["por_unidade"]["KG"]["with_scrap_total"], 12.2)
    assert rel["componentes_sem_custo"] == []
    assert "explosao" not in rel


def test_relatorio_com_explosao_local():
    rel = montar_relatorio(_bom(batch=2), _catalogo(), quantidade=4)
    assert rel["explosao"]["fator"] == 2.0
    assert isclose(rel["explosao"]["custos"]["labor_cost"], 40.0)


def test_relatorio_rejeita_lote_invalido_ao_explodir():
    with pytest.raises(InvalidBomError):
        montar_relatorio(_bom(batch=0), _catalogo(), quantidade=4)


def test_custo_via_api_combina_as_duas_buscas():
    client = Mock()
    client.get_bom.return_value = APIResponse(success=True, data=_bom(), status=200)
    client.list_products.return_value = APIResponse(success=True, data=_catalogo()[:1], status=200)
    res = run_custo_bom_api(client, "b1")
    assert res.success
    assert res.data["componentes_sem_custo"] == ["B"]
    assert isclose(res.data["custos"]["material_cost"], 11.0)


def test_custo_via_api_propaga_falha():
    client = Mock()
    client.get_bom.return_value = APIResponse(success=False, error="Recurso no disponible",
                                              kind=ErrorKind.NOT_AVAILABLE, status=404)
    client.list_products.return_value = APIResponse(success=True, data=[])
    res = run_custo_bom_api(client, "b1")
    assert not res.success
    assert res.not_available


# -----------------------
# Kardex
# -----------------------

def _pagina():
    movs = [
        InventoryMovement(id="1", movement_type=MovementType.ENTRY, quantity=100,
                          movement_date=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        InventoryMovement(id="2", movement_type=MovementType.EXIT, quantity=30,
                          movement_date=datetime(2024, 1, 2, tzinfo=timezone.utc)),
    ]
    return MovementPage(movements=movs, total=2, total_pages=1)


def test_sessao_kardex_busca_e_exporta(tmp_path):
    client = Mock()
    client.list_movements.return_value = APIResponse(success=True, data=_pagina())
    session = KardexSession(client, "p1", product_code="SKU-1")
    res = session.fetch()
    assert res.success
    assert [e.running_balance for e in res.data.entries] == [70, 100]
    path = session.export_csv(str(tmp_path), today=date(2024, 2, 1))
    assert path.name == "kardex_SKU-1_2024-02-01.csv"
    content = path.read_text(encoding="utf-8")
    assert content.startswith("Fecha,Tipo,Cantidad")
    assert content.count("\n") == 2


def test_sessao_kardex_filtro_reseta_pagina():
    client = Mock()
    client.list_movements.return_value = APIResponse(success=True, data=MovementPage([], 200, 4))
    session = KardexSession(client, "p1")
    session.fetch()
    session.go_to_page(3)
    session.set_filter(KardexFilterField.MOVEMENT_TYPE, MovementType.WASTE)
    session.fetch()
    params = client.list_movements.call_args[0][0]
    assert params["page"] == 1
    assert params["movement_type"] == "WASTE"


def test_sessao_kardex_erro_limpa_o_livro():
    client = Mock()
    client.list_movements.return_value = APIResponse(success=True, data=_pagina())
    session = KardexSession(client, "p1")
    session.fetch()
    client.list_movements.return_value = APIResponse(success=False, error="boom", kind=ErrorKind.HTTP_ERROR, status=500)
    res = session.fetch()
    assert not res.success
    assert session.ledger.entries == []
    with pytest.raises(ValueError):
        session.export_csv()


def test_sessao_kardex_fechada_cancela_token():
    session = KardexSession(Mock(), "p1")
    session.close()
    assert session.token.cancelled


# -----------------------
# Produção
# -----------------------

def _ordem(produzido=80):
    return ProductionOrder(planned_qty=100, produced_qty=produzido, status=ProductionOrderStatus.IN_PROGRESS,
                           id="po-1", order_number="OP-001")


def test_progresso():
    client = Mock()
    client.get_production_order.return_value = APIResponse(success=True, data=_ordem(120), status=200)
    res = run_progresso(client, "po-1")
    assert res.data["completion_percentage"] == 100
    assert res.data["remaining_qty"] == 0
    assert res.data["ordem"] == "OP-001"


def test_registrar_producao_completa_a_ordem():
    client = Mock()
    client.register_output.return_value = APIResponse(success=True, data={"id": "out-1"}, status=201)
    res = run_registrar_producao(client, _ordem(), 20, "Ana", lote="LOT-1", data_producao=date(2024, 3, 1))
    payload = client.register_output.call_args[0][0]
    assert payload == {
        "production_order_id": "po-1",
        "quantity_produced": 20,
        "output_type": "GOOD",
        "lot_number": "LOT-1",
        "production_date": "2024-03-01",
        "operator": "Ana",
    }
    assert res.data["mensagem"] == MSG_COMPLETA
    assert res.data["previa"]["will_complete"]


def test_registrar_producao_parcial_gera_lote():
    client = Mock()
    client.register_output.return_value = APIResponse(success=True, data={}, status=201)
    res = run_registrar_producao(client, _ordem(), 5, "Ana", data_producao=date(2024, 3, 1))
    assert res.data["mensagem"] == MSG_REGISTRADA
    assert client.register_output.call_args[0][0]["lot_number"].startswith("LOT-20240301-")


def test_registrar_producao_acima_do_pendente():
    client = Mock()
    with pytest.raises(ValidationError) as exc:
        run_registrar_producao(client, _ordem(), 21, "Ana", lote="LOT-1")
    assert "quantity" in exc.value.errors
    client.register_output.assert_not_called()


def test_componente_embutido_com_custo_entra_no_rollup():
    bom = Bom(batch_size=1, items=[
        BomLine("A", 2, component=Component(id="A", unit_measure="KG", standard_cost=4)),
        BomLine("Z", 1, component=Component(id="Z", unit_measure="KG")),
    ])
    rel = montar_relatorio(bom, [])
    assert isclose(rel["custos"]["material_cost"], 8.0)
    assert rel["componentes_sem_custo"] == ["Z"]
