"""
Políticas de classificação de movimentos de inventário.

Este módulo decide o efeito de cada movimento sobre o saldo total de um
produto (somar, subtrair ou não alterar) e fornece os rótulos fixos de
exibição de cada tipo. As funções são usadas pelo montador do Kardex.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from estoque_mrp.domain.models import Effect, InventoryMovement, MovementType


ADDITIVE_TYPES: FrozenSet[MovementType] = frozenset({
    MovementType.ENTRY,
    MovementType.PRODUCTION_ENTRY,
    MovementType.PURCHASE_ENTRY,
    MovementType.RETURN,
})

SUBTRACTIVE_TYPES: FrozenSet[MovementType] = frozenset({
    MovementType.EXIT,
    MovementType.PRODUCTION_EXIT,
    MovementType.SALE_EXIT,
    MovementType.WASTE,
})

MOVEMENT_LABELS: Dict[MovementType, str] = {
    MovementType.ENTRY: "Entrada",
    MovementType.EXIT: "Salida",
    MovementType.TRANSFER: "Transferencia",
    MovementType.ADJUSTMENT: "Ajuste",
    MovementType.PRODUCTION_ENTRY: "Entrada Prod.",
    MovementType.PRODUCTION_EXIT: "Salida Prod.",
    MovementType.PURCHASE_ENTRY: "Compra",
    MovementType.SALE_EXIT: "Venta",
    MovementType.RETURN: "Devolución",
    MovementType.WASTE: "Desperdicio",
}


def classify(movement: InventoryMovement) -> Effect:
    """Classifica o efeito de um movimento sobre o saldo.

    Regras, em ordem:
        - entradas (compra, produção, devolução) → ``ADD``
        - saídas (venda, produção, desperdício) → ``SUBTRACT``
        - ``TRANSFER`` → ``NEUTRAL`` (muda a distribuição entre locais,
          nunca o total do produto)
        - ``ADJUSTMENT`` → ``ADD`` se houver local de destino, senão
          ``SUBTRACT`` se houver local de origem; sem nenhum dos dois,
          ``AMBIGUOUS``

    ``AMBIGUOUS`` não altera o saldo, mas é distinto de ``NEUTRAL`` para
    que o chamador possa sinalizar o provável erro de cadastro upstream.
    """
    mtype = movement.movement_type
    if mtype in ADDITIVE_TYPES:
        return Effect.ADD
    if mtype in SUBTRACTIVE_TYPES:
        return Effect.SUBTRACT
    if mtype == MovementType.TRANSFER:
        return Effect.NEUTRAL
    # ADJUSTMENT
    if movement.to_location_id:
        return Effect.ADD
    if movement.from_location_id:
        return Effect.SUBTRACT
    return Effect.AMBIGUOUS


def signed_quantity(movement: InventoryMovement) -> float:
    """Quantidade com sinal conforme :func:`classify` (0 se não altera saldo)."""
    effect = classify(movement)
    if effect == Effect.ADD:
        return float(movement.quantity)
    if effect == Effect.SUBTRACT:
        return -float(movement.quantity)
    return 0.0


def movement_label(mtype: MovementType) -> str:
    return MOVEMENT_LABELS[mtype]
