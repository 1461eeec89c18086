# estoque_mrp/usecases/producao.py
"""
UC: Progresso de ordens de produção e registro de produção.

- run_progresso(): busca a ordem e deriva % concluído, atraso e saldo.
- run_registrar_producao(): valida no cliente (quantidade não pode
  exceder o pendente) e envia o apontamento. Atingir a quantidade
  planejada só gera o aviso "orden será completada"; a mudança de status
  é responsabilidade do sistema externo.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, Optional

from estoque_mrp.domain.models import ProductionOrder
from estoque_mrp.domain.progress import (
    generate_lot_number,
    order_progress,
    preview_output,
    validate_output,
)
from estoque_mrp.domain.reconciliation import ValidationError
from estoque_mrp.infra.api_client import APIResponse, MrpApiClient
from estoque_mrp.infra.logger import log_system_event, log_transaction

MSG_COMPLETA = "¡Orden de producción completada!"
MSG_REGISTRADA = "Producción registrada exitosamente"


def run_progresso(client: MrpApiClient, order_id: str, now: Optional[datetime] = None) -> APIResponse[Dict[str, Any]]:
    log_system_event("progresso_start", {"order_id": order_id})
    res = client.get_production_order(order_id)
    if not res.success:
        log_system_event("progresso_error", {"order_id": order_id, "error": res.error, "kind": res.kind},
                         level="info" if res.not_available else "error")
        return res
    order: ProductionOrder = res.data
    prog = order_progress(order, now)
    out = {
        "ordem": order.order_number or order_id,
        "status": order.status.value,
        "planejado": order.planned_qty,
        "produzido": order.produced_qty,
        **asdict(prog),
    }
    log_system_event("progresso_success", out)
    return APIResponse(success=True, data=out, status=res.status)


def run_registrar_producao(
    client: MrpApiClient,
    order: ProductionOrder,
    quantidade: float,
    operador: str,
    lote: Optional[str] = None,
    output_type: str = "GOOD",
    data_producao: Optional[date] = None,
    observacoes: Optional[str] = None,
) -> APIResponse[Dict[str, Any]]:
    """Valida e registra a produção de ``quantidade`` unidades.

    Raises:
        ValidationError: quantidade <= 0, acima do pendente, operador ou lote
            ausentes.
    """
    lote = lote or generate_lot_number(data_producao)
    errors = validate_output(order, quantidade, operador, lote)
    if errors:
        log_system_event("registrar_producao_invalid", {"order_id": order.id, "errors": errors}, level="warning")
        raise ValidationError(errors)

    preview = preview_output(order, quantidade)
    payload: Dict[str, Any] = {
        "production_order_id": order.id,
        "quantity_produced": quantidade,
        "output_type": output_type,
        "lot_number": lote,
        "production_date": (data_producao or date.today()).isoformat(),
        "operator": operador,
    }
    if observacoes:
        payload["observations"] = observacoes

    res = client.register_output(payload)
    if not res.success:
        log_transaction("registrar_producao", payload, error=res.error)
        return res

    log_transaction("registrar_producao", payload, result=asdict(preview))
    out = {
        "registro": res.data,
        "previa": asdict(preview),
        "mensagem": MSG_COMPLETA if preview.will_complete else MSG_REGISTRADA,
    }
    return APIResponse(success=True, data=out, status=res.status)
