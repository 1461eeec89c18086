import pytest

from estoque_mrp.domain.models import (
    Bom,
    DecodeError,
    InventoryMovement,
    MovementPage,
    ProductionOrder,
    coerce_number,
)


@pytest.mark.parametrize("valor,esperado", [
    (None, 0.0), ("abc", 0.0), (float("nan"), 0.0), (float("inf"), 0.0), ("5,5", 5.5), (3, 3.0),
])
def test_coerce_number(valor, esperado):
    assert coerce_number(valor) == esperado


def test_bom_com_componente_embutido():
    bom = Bom.from_dict({
        "id": "b1", "code": "BOM-1", "batch_size": "10", "labor_cost": None,
        "items": [{"component_id": "A", "quantity": 2, "scrap_rate": "5",
                   "component": {"id": "A", "code": "MP-A", "inventory_unit": "KG", "standard_cost": 3}}],
    })
    assert bom.batch_size == 10
    assert bom.labor_cost == 0.0
    assert bom.items[0].scrap_rate == 5.0
    assert bom.items[0].component.unit_measure == "KG"


def test_bom_sem_batch_size_e_erro():
    with pytest.raises(DecodeError):
        Bom.from_dict({"items": []})


def test_movimento_com_usuario_e_locais():
    mov = InventoryMovement.from_dict({
        "id": 7, "movement_type": "TRANSFER", "quantity": "4", "movement_date": "2024-01-01T08:00:00Z",
        "from_location_id": "L1", "from_location": {"code": "ALM-1"},
        "user": {"email": "ana@example.com"},
    })
    assert mov.id == "7"
    assert mov.from_location_name == "ALM-1"
    assert mov.user == "ana@example.com"


@pytest.mark.parametrize("payload", [
    {"id": "1", "movement_type": "TELEPORT", "quantity": 1, "movement_date": "2024-01-01"},
    {"id": "1", "movement_type": "ENTRY", "quantity": "x", "movement_date": "2024-01-01"},
    {"id": "1", "movement_type": "ENTRY", "quantity": 1, "movement_date": "ontem"},
    {"id": "1", "movement_type": "ENTRY", "quantity": 1},
])
def test_movimento_invalido(payload):
    with pytest.raises(DecodeError):
        InventoryMovement.from_dict(payload)


def test_pagina_exige_meta():
    with pytest.raises(DecodeError):
        MovementPage.from_dict({"data": []})


def test_ordem_de_producao():
    order = ProductionOrder.from_dict({
        "id": "po-1", "planned_qty": 100, "produced_qty": None, "status": "IN_PROGRESS",
        "planned_end_date": "2024-02-01T00:00:00.000Z",
    })
    assert order.produced_qty == 0.0
    assert order.planned_end_date.year == 2024
    with pytest.raises(DecodeError):
        ProductionOrder.from_dict({"planned_qty": 1, "status": "UNKNOWN"})
