# estoque_mrp/usecases/ajuste_inventario.py
"""
UC: Ajuste de inventário (manual assinado) e contagem cíclica.

- submit_adjustment(): valida, envia a quantidade com sinal, recarrega a
  tela-pai e fecha a sessão.
- submit_cycle_count(): valida, envia a contagem física e agenda o
  fechamento conforme a variação devolvida:
    * diferença 0  → fecha em 2000 ms, sem recarregar a tela-pai;
    * diferença ≠ 0 → fecha em 3000 ms e recarrega (a contagem gerou um
      movimento corretivo).

Obs.:
- Validações falham antes da rede (ValidationError com erros por campo).
- Fechar a sessão cancela o token: resposta atrasada é descartada.
- Se a sessão for fechada com um recarregamento ainda agendado, ele é
  disparado na hora (uma única vez) e o timer é cancelado.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from estoque_mrp.domain.models import VarianceResult
from estoque_mrp.domain.reconciliation import (
    AdjustmentField,
    AdjustmentForm,
    CloseDecision,
    CycleCountField,
    CycleCountForm,
    ValidationError,
    adjustment_payload,
    cycle_count_payload,
    decide_close,
    form_fields,
    validate_adjustment,
    validate_cycle_count,
)
from estoque_mrp.infra.api_client import APIResponse, MrpApiClient
from estoque_mrp.infra.cancellation import CancellationToken
from estoque_mrp.infra.logger import (
    log_ajuste, log_system_event, log_transaction
)


def thread_timer(delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
    """Agendador padrão: ``threading.Timer`` daemon (tem ``cancel()``)."""
    timer = threading.Timer(delay_ms / 1000.0, callback)
    timer.daemon = True
    timer.start()
    return timer


Scheduler = Callable[[int, Callable[[], None]], Any]


class AdjustmentSession:
    """Uma abertura da tela de ajuste/contagem (vida útil do "modal")."""

    def __init__(
        self,
        client: MrpApiClient,
        on_save: Callable[[], None],
        on_close: Optional[Callable[[], None]] = None,
        scheduler: Scheduler = thread_timer,
        product_id: Optional[str] = None,
        location_id: Optional[str] = None,
        current_quantity: float = 0.0,
    ):
        self.client = client
        self.on_save = on_save
        self.on_close = on_close or (lambda: None)
        self.scheduler = scheduler
        self.token = CancellationToken()
        self.adjustment = AdjustmentForm(product_id=product_id, location_id=location_id)
        self.cycle_count = CycleCountForm(product_id=product_id, location_id=location_id,
                                          physical_count=current_quantity)
        self.errors: dict = {}
        self.result: Optional[VarianceResult] = None
        self.decision: Optional[CloseDecision] = None
        self.closed = False
        self._lock = threading.Lock()
        self._timer = None
        self._refresh_pending = False

    # atualização de campos (setters enumerados)

    def set_adjustment_field(self, fld: AdjustmentField, value: Any) -> None:
        self.adjustment.update(fld, value)
        self.errors.pop(AdjustmentField(fld).value, None)

    def set_cycle_count_field(self, fld: CycleCountField, value: Any) -> None:
        self.cycle_count.update(fld, value)
        self.errors.pop(CycleCountField(fld).value, None)

    # ajuste manual

    def submit_adjustment(self) -> APIResponse:
        """Envia o ajuste. Levanta ValidationError sem tocar na rede."""
        self.errors = validate_adjustment(self.adjustment)
        if self.errors:
            log_ajuste("validation_failed", self.adjustment.product_id, self.adjustment.quantity, errors=self.errors)
            raise ValidationError(self.errors)

        payload = adjustment_payload(self.adjustment)
        log_ajuste("adjustment_submit", payload["product_id"], payload["quantity"], reason=payload["reason"])
        res = self.client.create_adjustment(payload, token=self.token)
        if not res.success:
            log_transaction("ajuste_manual", payload, error=res.error)
            log_system_event("adjustment_error", {"error": res.error, "kind": res.kind},
                             level="info" if res.not_available else "error")
            return res

        log_transaction("ajuste_manual", payload, result=res.data)
        self.on_save()
        self.close()
        return res

    # contagem cíclica

    def submit_cycle_count(self) -> APIResponse[VarianceResult]:
        """Envia a contagem e agenda o fechamento conforme a variação."""
        self.errors = validate_cycle_count(self.cycle_count)
        if self.errors:
            log_ajuste("validation_failed", self.cycle_count.product_id, self.cycle_count.physical_count,
                       errors=self.errors)
            raise ValidationError(self.errors)

        payload = cycle_count_payload(self.cycle_count)
        log_ajuste("cycle_count_submit", payload["product_id"], payload["physical_count"])
        res = self.client.cycle_count(payload, token=self.token)
        if not res.success:
            log_transaction("contagem_ciclica", payload, error=res.error)
            log_system_event("cycle_count_error", {"error": res.error, "kind": res.kind},
                             level="info" if res.not_available else "error")
            return res

        self.result = res.data
        self.decision = decide_close(res.data)
        log_transaction("contagem_ciclica", payload, result=form_fields(res.data))
        log_ajuste("variance", payload["product_id"], res.data.difference,
                   delay_ms=self.decision.delay_ms, refresh=self.decision.refresh)

        with self._lock:
            self._refresh_pending = self.decision.refresh
        timer = self.scheduler(self.decision.delay_ms, self._auto_close)
        if not self.closed:
            self._timer = timer
        return res

    def _fire_refresh(self) -> None:
        with self._lock:
            if not self._refresh_pending:
                return
            self._refresh_pending = False
        self.on_save()

    def _auto_close(self) -> None:
        if self.closed:
            return
        self._fire_refresh()
        self.close()

    def close(self) -> None:
        """Fecha a sessão (idempotente)."""
        with self._lock:
            if self.closed:
                return
            self.closed = True
            timer, self._timer = self._timer, None
        self.token.cancel()
        if timer is not None and hasattr(timer, "cancel"):
            timer.cancel()
        self._fire_refresh()
        log_system_event("adjustment_session_closed", {
            "product_id": self.adjustment.product_id or self.cycle_count.product_id,
        })
        self.adjustment = AdjustmentForm()
        self.cycle_count = CycleCountForm()
        self.errors = {}
        self.on_close()
