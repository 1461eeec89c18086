# estoque_mrp/usecases/custo_bom.py
"""
UC: Custo de BOM (roll-up de material, mão de obra e overhead).

Fluxo:
1) Obtém a BOM e o catálogo de componentes (planilhas ou API; na API as
   duas buscas saem em paralelo e só são combinadas quando ambas voltam).
2) Calcula o roll-up de custos com merma por linha.
3) Resume as quantidades por unidade de medida.
4) Opcionalmente escala tudo para uma quantidade-alvo (explosão local).

Obs.:
- Componente inexistente no catálogo entra com custo 0, mas é listado em
  ``componentes_sem_custo`` para a interface sinalizar "custo desconhecido".
- BOM com batch_size <= 0 é rejeitada (InvalidBomError) antes de escalar.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from estoque_mrp.adapters.bom_loader import load_bom_lines, load_components
from estoque_mrp.domain.costing import (
    CostRollup,
    InvalidBomError,
    cost_lookup,
    explode_by_quantity,
    rollup_bom,
)
from estoque_mrp.domain.models import Bom, BomExplosion, Component
from estoque_mrp.domain.units import aggregate_by_unit, unit_entries
from estoque_mrp.infra.api_client import APIResponse, MrpApiClient, fetch_jointly
from estoque_mrp.infra.logger import (
    log_custo, log_file_operation, log_system_event, print_system
)


def _nivel(res: APIResponse) -> str:
    # 404 = recurso ainda não disponível upstream: só informativo
    return "info" if res.not_available else "error"


def _linhas(rollup: CostRollup, components: Dict[str, Component]) -> List[Dict[str, Any]]:
    out = []
    for line in rollup.lines:
        comp = components.get(line.component_id)
        out.append({
            "componente": comp.code if comp and comp.code else line.component_id,
            "nome": comp.name if comp else None,
            "quantidade": line.quantity,
            "merma_pct": line.scrap_rate,
            "qtd_efetiva": line.effective_quantity,
            "custo_unit": line.resolution.cost if line.resolved else None,
            "custo_linha": line.line_cost,
        })
    return out


def montar_relatorio(bom: Bom, components: List[Component], quantidade: Optional[float] = None) -> Dict[str, Any]:
    """Roll-up + resumo por unidade (+ explosão local se ``quantidade``).

    Raises:
        InvalidBomError: se ``quantidade`` for informada e a BOM tiver
            batch_size inválido.
    """
    by_id = {c.id: c for c in components}
    priced = list(by_id.values())
    # Componentes embutidos nas linhas completam unidade/nome; só entram no
    # custo se trouxerem custo próprio (senão seguem "sem custo")
    for item in bom.items:
        comp = item.component
        if comp and item.component_id not in by_id:
            by_id[item.component_id] = comp
            if comp.standard_cost is not None or comp.average_cost is not None:
                priced.append(comp)
    lookup = cost_lookup(priced)

    rollup = rollup_bom(bom, lookup)
    por_unidade = aggregate_by_unit(unit_entries(bom.items, by_id))
    log_custo("rollup", bom_id=bom.id, linhas=len(bom.items), **rollup.to_dict())

    if rollup.unresolved_component_ids:
        log_system_event("bom_componentes_sem_custo", {
            "bom_id": bom.id,
            "componentes": rollup.unresolved_component_ids,
        }, level="warning")

    report: Dict[str, Any] = {
        "bom": bom.code or bom.id,
        "custos": rollup.to_dict(),
        "linhas": _linhas(rollup, by_id),
        "por_unidade": {
            u: {"base_total": t.base_total, "with_scrap_total": t.with_scrap_total}
            for u, t in por_unidade.items()
        },
        "componentes_sem_custo": list(rollup.unresolved_component_ids),
    }

    if quantidade is not None:
        scaled = explode_by_quantity(bom, lookup, quantidade)
        log_custo("explode_local", bom_id=bom.id, quantidade=quantidade, fator=scaled.factor)
        report["explosao"] = {
            "quantidade": scaled.requested_quantity,
            "fator": scaled.factor,
            "custos": scaled.costs.to_dict(),
            "linhas": _linhas(scaled.costs, by_id),
        }
    return report


def run_custo_bom_planilha(
    bom_path: str,
    componentes_path: str,
    batch_size: float = 1.0,
    labor_cost: float = 0.0,
    overhead_cost: float = 0.0,
    quantidade: Optional[float] = None,
) -> Dict[str, Any]:
    """Calcula o custo de uma BOM descrita em planilhas (XLSX/CSV)."""
    log_system_event("custo_bom_planilha_start", {"bom": bom_path, "componentes": componentes_path})
    try:
        lines = load_bom_lines(bom_path)
        log_file_operation("import", bom_path, rows_processed=len(lines))
        components = load_components(componentes_path)
        log_file_operation("import", componentes_path, rows_processed=len(components))

        bom = Bom(batch_size=batch_size, labor_cost=labor_cost, overhead_cost=overhead_cost, items=lines, code=bom_path)
        report = montar_relatorio(bom, components, quantidade)
        print_system(f">> Custo total: {report['custos']['total_cost']:.2f}")
        log_system_event("custo_bom_planilha_success", {"bom": bom_path, **report["custos"]})
        return report
    except Exception as e:
        log_system_event("custo_bom_planilha_error", {"bom": bom_path, "error": str(e)}, level="error")
        raise


def run_custo_bom_api(client: MrpApiClient, bom_id: str, quantidade: Optional[float] = None) -> APIResponse[Dict[str, Any]]:
    """Busca BOM e catálogo em paralelo e calcula o custo no cliente."""
    log_system_event("custo_bom_api_start", {"bom_id": bom_id, "quantidade": quantidade})
    bom_res, prod_res = fetch_jointly(
        lambda: client.get_bom(bom_id),
        lambda: client.list_products(),
    )
    if not bom_res.success:
        log_system_event("custo_bom_api_error", {"bom_id": bom_id, "error": bom_res.error, "kind": bom_res.kind}, level=_nivel(bom_res))
        return bom_res
    if not prod_res.success:
        log_system_event("custo_bom_api_error", {"bom_id": bom_id, "error": prod_res.error, "kind": prod_res.kind}, level=_nivel(prod_res))
        return prod_res

    try:
        report = montar_relatorio(bom_res.data, prod_res.data, quantidade)
    except InvalidBomError as e:
        log_system_event("custo_bom_api_invalid_bom", {"bom_id": bom_id, "error": str(e)}, level="error")
        raise
    log_system_event("custo_bom_api_success", {"bom_id": bom_id, **report["custos"]})
    return APIResponse(success=True, data=report, status=bom_res.status)


def run_explosao_bom(client: MrpApiClient, bom_id: str, quantidade: float) -> APIResponse[BomExplosion]:
    """Explosão calculada no servidor; o cliente só exibe o resultado."""
    log_system_event("explosao_bom_start", {"bom_id": bom_id, "quantidade": quantidade})
    res = client.explode_bom(bom_id, quantidade)
    if res.success:
        log_custo("explode_server", bom_id=bom_id, quantidade=quantidade,
                  requisitos=len(res.data.requirements), total=res.data.total_cost)
    else:
        log_system_event("explosao_bom_error", {"bom_id": bom_id, "error": res.error, "kind": res.kind},
                         level=_nivel(res))
    return res
