from unittest.mock import Mock

import requests

from estoque_mrp.infra.api_client import ErrorKind, MrpApiClient, fetch_jointly
from estoque_mrp.infra.cancellation import CancellationToken


def _response(status=200, body=None, json_error=False):
    resp = Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if json_error:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


def _client(resp=None, exc=None):
    session = Mock()
    if exc is not None:
        session.request.side_effect = exc
    else:
        session.request.return_value = resp
    return MrpApiClient(base_url="http://api.test/", token="tok", session=session), session


MOVIMENTOS = {
    "data": [
        {"id": "1", "movement_type": "ENTRY", "quantity": 10, "movement_date": "2024-01-01T10:00:00Z"},
    ],
    "meta": {"total": 1, "page": 1, "limit": 50, "totalPages": 1},
}


def test_lista_movimentos_decodifica_pagina():
    client, session = _client(_response(body=MOVIMENTOS))
    res = client.list_movements({"product_id": "p1", "page": 1, "limit": 50})
    assert res.success
    assert res.data.total == 1
    assert res.data.movements[0].quantity == 10
    kwargs = session.request.call_args.kwargs
    assert kwargs["url"] == "http://api.test/inventory/movements"
    assert kwargs["params"]["product_id"] == "p1"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_404_vira_nao_disponivel():
    client, _ = _client(_response(status=404, body={"message": "Not Found"}))
    res = client.get_bom("b1")
    assert not res.success
    assert res.kind == ErrorKind.NOT_AVAILABLE
    assert res.not_available


def test_400_usa_mensagem_do_corpo():
    client, _ = _client(_response(status=400, body={"message": ["quantity must not be 0", "reason required"]}))
    res = client.create_adjustment({"product_id": "p1"})
    assert res.kind == ErrorKind.HTTP_ERROR
    assert res.status == 400
    assert res.error == "quantity must not be 0; reason required"


def test_500_sem_corpo_usa_mensagem_padrao():
    client, _ = _client(_response(status=500, json_error=True))
    res = client.cycle_count({"product_id": "p1", "physical_count": 3})
    assert res.kind == ErrorKind.HTTP_ERROR
    assert res.error == "Error al procesar el conteo cíclico"


def test_corpo_fora_do_esquema_e_erro_de_decodificacao():
    client, _ = _client(_response(body={"data": "não é lista", "meta": {}}))
    res = client.list_movements({"product_id": "p1"})
    assert res.kind == ErrorKind.DECODE

    client, _ = _client(_response(body=[1, 2, 3]))
    assert client.get_production_order("po-1").kind == ErrorKind.DECODE


def test_falha_de_rede():
    client, _ = _client(exc=requests.exceptions.ConnectionError("refused"))
    res = client.list_products()
    assert res.kind == ErrorKind.TRANSPORT
    assert "refused" in res.error


def test_token_cancelado_antes_nao_envia():
    token = CancellationToken()
    token.cancel()
    client, session = _client(_response(body=MOVIMENTOS))
    res = client.list_movements({"product_id": "p1"}, token=token)
    assert res.kind == ErrorKind.CANCELLED
    session.request.assert_not_called()


def test_resposta_depois_do_cancelamento_e_descartada():
    token = CancellationToken()

    def _responde(**kwargs):
        token.cancel()
        return _response(body=MOVIMENTOS)

    client, session = _client()
    session.request.side_effect = _responde
    res = client.list_movements({"product_id": "p1"}, token=token)
    assert res.kind == ErrorKind.CANCELLED
    assert res.data is None


def test_variacao_calculada_quando_ausente():
    client, _ = _client(_response(body={"system_quantity": 100, "physical_count": 95}))
    res = client.cycle_count({"product_id": "p1", "physical_count": 95})
    assert res.data.difference == -5


def test_explosao_e_produtos():
    body = {
        "requirements": [{"component_code": "A", "required_quantity": 4, "unit_cost": 2, "total_cost": 8}],
        "total_material_cost": 8, "total_labor_cost": 2, "total_overhead_cost": 1,
    }
    client, session = _client(_response(body=body))
    res = client.explode_bom("b1", 4)
    assert res.data.total_cost == 11
    assert session.request.call_args.kwargs["json"] == {"quantity": 4}

    client, _ = _client(_response(body={"data": [{"id": "A", "standard_cost": 3}]}))
    assert client.list_products().data[0].unit_cost == 3


def test_busca_conjunta_preserva_ordem():
    a, b = fetch_jointly(lambda: "bom", lambda: "produtos")
    assert (a, b) == ("bom", "produtos")
    assert fetch_jointly() == []
