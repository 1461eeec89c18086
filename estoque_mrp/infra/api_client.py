# estoque_mrp/infra/api_client.py
"""
Cliente HTTP (requests) para a API do MRP.

Cada operação devolve um ``APIResponse`` em vez de levantar exceção:
- sucesso → ``success=True`` e ``data`` já decodificado em modelos;
- 404 → ``NOT_AVAILABLE`` (recurso ainda não disponível upstream; só log info);
- outro status não-2xx → ``HTTP_ERROR`` com a mensagem do corpo, ou a
  mensagem padrão da operação;
- falha de rede → ``TRANSPORT``;
- corpo fora do esquema esperado → ``DECODE``;
- resposta chegou depois do cancelamento da sessão → ``CANCELLED``.

Não há retentativas: uma mutação que falhou deve ser reenviada pelo usuário.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

import requests

from estoque_mrp.config import API_BASE_URL, API_TOKEN, DEFAULTS
from estoque_mrp.domain.models import (
    Bom,
    BomExplosion,
    Component,
    DecodeError,
    MovementPage,
    ProductionOrder,
    VarianceResult,
)
from estoque_mrp.infra.cancellation import CancellationToken
from estoque_mrp.infra.logger import log_api_call


T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_AVAILABLE = "NOT_AVAILABLE"
    HTTP_ERROR = "HTTP_ERROR"
    TRANSPORT = "TRANSPORT"
    DECODE = "DECODE"
    CANCELLED = "CANCELLED"


@dataclass
class APIResponse(Generic[T]):
    """Resultado de uma operação na API."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    status: Optional[int] = None
    meta: dict = field(default_factory=dict)

    @property
    def not_available(self) -> bool:
        return self.kind == ErrorKind.NOT_AVAILABLE


def _expect_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise DecodeError(f"esperado objeto JSON, recebido {type(payload).__name__}")
    return payload


def _decode_products(payload: Any) -> List[Component]:
    rows = _expect_object(payload).get("data")
    if not isinstance(rows, list):
        raise DecodeError("resposta de /products sem lista em 'data'")
    return [Component.from_dict(r) for r in rows]


def _error_message(response: requests.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        msg = body.get("message")
        if isinstance(msg, list):
            msg = "; ".join(str(m) for m in msg)
        if msg:
            return str(msg)
    return fallback


class MrpApiClient:
    """
    Cliente da API do MRP.

    Example:
        client = MrpApiClient(base_url="http://localhost:3001", token="...")
        res = client.list_movements({"product_id": "p1", "page": 1, "limit": 50})
        if res.success:
            print(res.data.total)
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: Optional[str] = API_TOKEN,
        timeout: float = DEFAULTS.timeout_segundos,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        endpoint: str,
        decode: Callable[[Any], T],
        fallback_error: str,
        params: Optional[dict] = None,
        json_data: Optional[dict] = None,
        token: Optional[CancellationToken] = None,
    ) -> APIResponse[T]:
        """Faz a requisição e converte o desfecho em ``APIResponse``."""
        if token is not None and token.cancelled:
            log_api_call(method, endpoint, None, outcome="cancelled_before_send")
            return APIResponse(success=False, error="Operación cancelada", kind=ErrorKind.CANCELLED)

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            log_api_call(method, endpoint, None, level="error", error=str(e))
            return APIResponse(success=False, error=str(e) or fallback_error, kind=ErrorKind.TRANSPORT)

        status = response.status_code
        if token is not None and token.cancelled:
            log_api_call(method, endpoint, status, outcome="discarded_after_cancel")
            return APIResponse(success=False, error="Operación cancelada", kind=ErrorKind.CANCELLED, status=status)

        if status == 404:
            log_api_call(method, endpoint, status, outcome="not_available")
            return APIResponse(success=False, error="Recurso no disponible", kind=ErrorKind.NOT_AVAILABLE, status=status)

        if not response.ok:
            message = _error_message(response, fallback_error)
            log_api_call(method, endpoint, status, level="error", error=message)
            return APIResponse(success=False, error=message, kind=ErrorKind.HTTP_ERROR, status=status)

        try:
            payload = response.json()
            data = decode(payload)
        except (ValueError, TypeError) as e:
            # DecodeError é ValueError; JSON inválido também
            log_api_call(method, endpoint, status, level="error", error=f"decode: {e}")
            return APIResponse(success=False, error=f"Respuesta inválida: {e}", kind=ErrorKind.DECODE, status=status)

        log_api_call(method, endpoint, status)
        meta = payload.get("meta", {}) if isinstance(payload, dict) else {}
        return APIResponse(success=True, data=data, status=status, meta=meta if isinstance(meta, dict) else {})

    # -----------------------
    # BOMs e catálogo
    # -----------------------

    def get_bom(self, bom_id: str, token: Optional[CancellationToken] = None) -> APIResponse[Bom]:
        return self._request(
            "GET", f"/boms/{bom_id}",
            decode=lambda p: Bom.from_dict(_expect_object(p)),
            fallback_error="Error al cargar el BOM",
            token=token,
        )

    def list_products(self, token: Optional[CancellationToken] = None) -> APIResponse[List[Component]]:
        return self._request(
            "GET", "/products",
            decode=_decode_products,
            fallback_error="Error al cargar productos",
            token=token,
        )

    def explode_bom(self, bom_id: str, quantity: float, token: Optional[CancellationToken] = None) -> APIResponse[BomExplosion]:
        return self._request(
            "POST", f"/boms/{bom_id}/explode",
            decode=lambda p: BomExplosion.from_dict(_expect_object(p)),
            fallback_error="Error al explotar el BOM",
            json_data={"quantity": quantity},
            token=token,
        )

    # -----------------------
    # Inventário
    # -----------------------

    def list_movements(self, params: Dict[str, Any], token: Optional[CancellationToken] = None) -> APIResponse[MovementPage]:
        return self._request(
            "GET", "/inventory/movements",
            decode=lambda p: MovementPage.from_dict(_expect_object(p)),
            fallback_error="Error al cargar movimientos",
            params=params,
            token=token,
        )

    def create_adjustment(self, payload: Dict[str, Any], token: Optional[CancellationToken] = None) -> APIResponse[Dict[str, Any]]:
        return self._request(
            "POST", "/inventory/adjustments",
            decode=_expect_object,
            fallback_error="Error al crear el ajuste",
            json_data=payload,
            token=token,
        )

    def cycle_count(self, payload: Dict[str, Any], token: Optional[CancellationToken] = None) -> APIResponse[VarianceResult]:
        return self._request(
            "POST", "/inventory/cycle-count",
            decode=lambda p: VarianceResult.from_dict(_expect_object(p)),
            fallback_error="Error al procesar el conteo cíclico",
            json_data=payload,
            token=token,
        )

    # -----------------------
    # Produção
    # -----------------------

    def get_production_order(self, order_id: str, token: Optional[CancellationToken] = None) -> APIResponse[ProductionOrder]:
        return self._request(
            "GET", f"/production-orders/{order_id}",
            decode=lambda p: ProductionOrder.from_dict(_expect_object(p)),
            fallback_error="Error al cargar la orden de producción",
            token=token,
        )

    def register_output(self, payload: Dict[str, Any], token: Optional[CancellationToken] = None) -> APIResponse[Dict[str, Any]]:
        return self._request(
            "POST", "/production-orders/output",
            decode=_expect_object,
            fallback_error="Error al registrar producción",
            json_data=payload,
            token=token,
        )


def fetch_jointly(*calls: Callable[[], APIResponse]) -> List[APIResponse]:
    """Dispara chamadas independentes em paralelo e só devolve quando todas
    terminarem (nenhum resultado parcial é exposto). A ordem do retorno é a
    ordem dos argumentos."""
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(c) for c in calls]
        return [f.result() for f in futures]
