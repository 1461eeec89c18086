# estoque_mrp/usecases/kardex.py
"""
UC: Kardex de um produto (histórico de movimentos com saldo).

- KardexSession mantém filtros/paginação tipados, busca a página corrente
  na API, monta o livro com saldo e exporta o CSV.
- Alterar qualquer filtro volta para a página 1 antes da próxima busca.
- Fechar a sessão cancela o token: resposta que chegar depois é descartada.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Optional

from estoque_mrp.domain.kardex import (
    KardexFilterField,
    KardexQuery,
    Ledger,
    build_ledger,
    kardex_filename,
    ledger_to_csv,
)
from estoque_mrp.infra.api_client import APIResponse, ErrorKind, MrpApiClient
from estoque_mrp.infra.cancellation import CancellationToken
from estoque_mrp.infra.logger import (
    log_file_operation, log_kardex, log_system_event
)


class KardexSession:
    """Estado de uma consulta de Kardex enquanto a tela estiver aberta."""

    def __init__(
        self,
        client: MrpApiClient,
        product_id: str,
        location_id: Optional[str] = None,
        product_code: Optional[str] = None,
    ):
        self.client = client
        self.product_code = product_code
        self.query = KardexQuery(product_id=product_id, location_id=location_id)
        self.token = CancellationToken()
        self.ledger: Ledger = build_ledger([])

    # filtros / paginação

    def set_filter(self, fld: KardexFilterField, value: Any) -> None:
        self.query.set_filter(fld, value)
        log_kardex("filter", self.query.product_id, field=KardexFilterField(fld).value, value=str(value))

    def clear_filters(self) -> None:
        self.query.clear_filters()

    def go_to_page(self, page: int) -> None:
        self.query.go_to_page(page)

    # busca

    def fetch(self) -> APIResponse[Ledger]:
        """Busca a página corrente e recalcula o livro com saldo."""
        params = self.query.to_params()
        log_kardex("fetch_start", self.query.product_id, params=params)
        res = self.client.list_movements(params, token=self.token)
        if not res.success:
            level = "info" if res.not_available else "error"
            log_system_event("kardex_fetch_error", {
                "product_id": self.query.product_id, "error": res.error, "kind": res.kind,
            }, level=level)
            if res.kind != ErrorKind.CANCELLED:
                self.ledger = build_ledger([])
            return APIResponse(success=False, error=res.error, kind=res.kind, status=res.status)

        page = res.data
        self.query.update_totals(page.total, page.total_pages)
        self.ledger = build_ledger(page.movements)
        for warning in self.ledger.warnings:
            log_kardex("ambiguous", self.query.product_id, level="warning", warning=warning)
        log_kardex("fetch_success", self.query.product_id,
                   rows=len(self.ledger.entries), total=page.total, page=self.query.pagination.page)
        return APIResponse(success=True, data=self.ledger, status=res.status, meta=res.meta)

    # exportação

    def export_csv(self, dest_dir: str = ".", today: Optional[date] = None) -> Path:
        """Grava o CSV do livro exibido em ``dest_dir`` e devolve o caminho."""
        if not self.ledger.entries:
            raise ValueError("Nenhum movimento para exportar")
        path = Path(dest_dir) / kardex_filename(self.query.product_id, self.product_code, today)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(ledger_to_csv(self.ledger.entries).encode("utf-8"))
        log_file_operation("export", str(path), rows_processed=len(self.ledger.entries))
        return path

    def close(self) -> None:
        self.token.cancel()
        log_kardex("close", self.query.product_id)
