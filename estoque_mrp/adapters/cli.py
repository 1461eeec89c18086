# estoque_mrp/adapters/cli.py
"""
CLI do núcleo de conciliação MRP (Typer).

Comandos principais:
- custo-bom <bom> --componentes <catalogo>  -> custo de BOM a partir de planilhas
- custo-bom-api <bom_id>                    -> custo de BOM buscando na API
- explodir <bom_id> <quantidade>            -> explosão calculada no servidor
- kardex <product_id>                       -> histórico com saldo (+ exportação CSV)
- ajuste <product_id> <quantidade>          -> ajuste manual assinado
- contagem <product_id> <contagem>          -> contagem cíclica
- progresso <order_id>                      -> progresso da ordem de produção
- registrar-producao <order_id> <qtd>       -> apontamento de produção
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from estoque_mrp.config import API_BASE_URL
from estoque_mrp.domain.costing import InvalidBomError
from estoque_mrp.domain.kardex import KardexFilterField, Ledger
from estoque_mrp.domain.models import MovementType
from estoque_mrp.domain.policies import movement_label
from estoque_mrp.domain.reconciliation import (
    ADJUSTMENT_REASONS,
    AdjustmentField,
    CycleCountField,
    Direction,
    ValidationError,
)
from estoque_mrp.infra.api_client import APIResponse, MrpApiClient
from estoque_mrp.usecases.ajuste_inventario import AdjustmentSession
from estoque_mrp.usecases.custo_bom import run_custo_bom_api, run_custo_bom_planilha, run_explosao_bom
from estoque_mrp.usecases.kardex import KardexSession
from estoque_mrp.usecases.producao import run_progresso, run_registrar_producao


app = typer.Typer(help="Estoque MRP — CLI")
console = Console()


# -----------------------
# util
# -----------------------

def _client() -> MrpApiClient:
    return MrpApiClient(base_url=API_BASE_URL)


def _fmt(val: Any) -> str:
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y %H:%M")
    if val is None:
        return "-"
    return str(val)


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe uma lista de dicts como tabela Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return
    table = Table(title=title, box=box.ROUNDED)
    columns = list(data[0].keys())
    for column in columns:
        if isinstance(data[0].get(column), (int, float)):
            table.add_column(column, justify="right")
        else:
            table.add_column(column)
    for row in data:
        table.add_row(*[_fmt(row.get(c)) for c in columns])
    console.print(table)


def _display_kv(data: Dict[str, Any], title: str) -> None:
    table = Table(title=title, box=box.SIMPLE, show_header=False)
    table.add_column("Campo", style="bold")
    table.add_column("Valor", justify="right")
    for k, v in data.items():
        table.add_row(str(k), _fmt(v))
    console.print(table)


def _fail(res: APIResponse) -> None:
    """Mostra o erro de uma resposta da API e encerra o comando."""
    if res.not_available:
        console.print(f"[dim]Recurso ainda não disponível na API ({res.error}).[/dim]")
        raise typer.Exit(code=0)
    console.print(f"[red]Erro: {res.error}[/red]")
    raise typer.Exit(code=1)


def _fail_validation(e: ValidationError) -> None:
    for campo, msg in e.errors.items():
        console.print(f"[red]{campo}: {msg}[/red]")
    raise typer.Exit(code=1)


def _display_custos(report: Dict[str, Any]) -> None:
    _display_table(report["linhas"], title=f"BOM {report['bom']}")
    _display_kv(report["custos"], title="Custos")
    if report["por_unidade"]:
        _display_table(
            [{"unidade": u, **t} for u, t in report["por_unidade"].items()],
            title="Quantidades por unidade",
        )
    if report["componentes_sem_custo"]:
        console.print(Panel(
            "\n".join(report["componentes_sem_custo"]),
            title="Componentes sem custo (custo desconhecido)",
            border_style="yellow",
        ))
    explosao = report.get("explosao")
    if explosao:
        _display_table(explosao["linhas"], title=f"Explosão para {_fmt(explosao['quantidade'])} (fator {explosao['fator']:g})")
        _display_kv(explosao["custos"], title="Custos escalados")


# -----------------------
# BOM
# -----------------------

@app.command("custo-bom")
def cmd_custo_bom(
    planilha: str = typer.Argument(..., help="XLSX/CSV com as linhas da BOM"),
    componentes: str = typer.Option(..., "--componentes", "-c", help="XLSX/CSV do catálogo de componentes"),
    lote: float = typer.Option(1.0, "--lote", help="Tamanho do lote da BOM"),
    mao_de_obra: float = typer.Option(0.0, "--mao-de-obra", help="Custo de mão de obra do lote"),
    overhead: float = typer.Option(0.0, "--overhead", help="Custo indireto do lote"),
    quantidade: Optional[float] = typer.Option(None, "--quantidade", "-q", help="Explodir para esta quantidade"),
):
    """Calcula o custo de uma BOM descrita em planilhas."""
    try:
        report = run_custo_bom_planilha(planilha, componentes, batch_size=lote, labor_cost=mao_de_obra,
                                        overhead_cost=overhead, quantidade=quantidade)
    except InvalidBomError as e:
        console.print(f"[red]BOM inválida: {e}[/red]")
        raise typer.Exit(code=1)
    except FileNotFoundError as e:
        console.print(f"[red]Arquivo não encontrado: {e.filename}[/red]")
        raise typer.Exit(code=1)
    _display_custos(report)


@app.command("custo-bom-api")
def cmd_custo_bom_api(
    bom_id: str = typer.Argument(..., help="Id da BOM na API"),
    quantidade: Optional[float] = typer.Option(None, "--quantidade", "-q", help="Explodir para esta quantidade"),
):
    """Busca BOM e catálogo na API e calcula o custo no cliente."""
    try:
        res = run_custo_bom_api(_client(), bom_id, quantidade)
    except InvalidBomError as e:
        console.print(f"[red]BOM inválida: {e}[/red]")
        raise typer.Exit(code=1)
    if not res.success:
        _fail(res)
    _display_custos(res.data)


@app.command("explodir")
def cmd_explodir(
    bom_id: str = typer.Argument(..., help="Id da BOM na API"),
    quantidade: float = typer.Argument(..., help="Quantidade a produzir"),
):
    """Explosão de materiais calculada pelo servidor."""
    res = run_explosao_bom(_client(), bom_id, quantidade)
    if not res.success:
        _fail(res)
    exp = res.data
    _display_table([
        {
            "componente": r.component_code,
            "nome": r.component_name,
            "quantidade": r.required_quantity,
            "unidade": r.unit_measure,
            "custo_unit": r.unit_cost,
            "custo_total": r.total_cost,
        }
        for r in exp.requirements
    ], title=f"Explosão da BOM {bom_id} para {_fmt(quantidade)}")
    _display_kv({
        "material": exp.total_material_cost,
        "mão de obra": exp.total_labor_cost,
        "overhead": exp.total_overhead_cost,
        "total": exp.total_cost,
    }, title="Custos")


# -----------------------
# Kardex
# -----------------------

def _ledger_rows(ledger: Ledger) -> List[Dict[str, Any]]:
    rows = []
    for entry in ledger.entries:
        m = entry.movement
        rows.append({
            "data": m.movement_date,
            "tipo": movement_label(m.movement_type),
            "quantidade": m.quantity,
            "efeito": entry.effect.value,
            "saldo": entry.running_balance,
            "origem": m.from_location_name or m.from_location_id,
            "destino": m.to_location_name or m.to_location_id,
            "lote": m.batch_number,
            "referência": m.reference_document,
        })
    return rows


@app.command("kardex")
def cmd_kardex(
    product_id: str = typer.Argument(..., help="Id do produto"),
    local: Optional[str] = typer.Option(None, "--local", help="Filtrar por local"),
    tipo: Optional[str] = typer.Option(None, "--tipo", help="Tipo de movimento: " + " | ".join(t.value for t in MovementType)),
    desde: Optional[str] = typer.Option(None, "--desde", help="Data inicial YYYY-MM-DD"),
    ate: Optional[str] = typer.Option(None, "--ate", help="Data final YYYY-MM-DD"),
    pagina: int = typer.Option(1, "--pagina", help="Página"),
    codigo: Optional[str] = typer.Option(None, "--codigo", help="Código do produto (nome do CSV)"),
    exportar: Optional[str] = typer.Option(None, "--exportar", help="Diretório para gravar o CSV"),
):
    """Histórico de movimentos de um produto com saldo acumulado."""
    session = KardexSession(_client(), product_id, location_id=local, product_code=codigo)
    try:
        session.set_filter(KardexFilterField.MOVEMENT_TYPE, tipo)
        session.set_filter(KardexFilterField.START_DATE, desde)
        session.set_filter(KardexFilterField.END_DATE, ate)
    except ValueError as e:
        console.print(f"[red]Filtro inválido: {e}[/red]")
        raise typer.Exit(code=1)
    session.go_to_page(pagina)
    try:
        res = session.fetch()
        if not res.success:
            _fail(res)
        ledger = res.data
        pag = session.query.pagination
        _display_table(_ledger_rows(ledger),
                       title=f"Kardex {codigo or product_id} (página {pag.page}/{max(pag.total_pages, 1)}, {pag.total} movimentos)")
        console.print(f"Saldo final: [bold]{_fmt(ledger.final_balance)}[/bold]")
        for w in ledger.warnings:
            console.print(f"[yellow]{w}[/yellow]")
        if exportar:
            if not ledger.entries:
                console.print("[yellow]Nenhum movimento para exportar.[/yellow]")
            else:
                path = session.export_csv(exportar)
                console.print(f">> CSV gravado em: {path}")
    finally:
        session.close()


# -----------------------
# Ajuste e contagem
# -----------------------

class _FechamentoAdiado:
    """Agendador da CLI: guarda o fechamento para depois de exibir o resultado."""

    def __init__(self):
        self.pendente = None

    def __call__(self, delay_ms: int, callback) -> None:
        self.pendente = (delay_ms, callback)

    def disparar(self) -> None:
        if self.pendente is None:
            return
        delay_ms, callback = self.pendente
        self.pendente = None
        console.print(f"[dim]Fechando (exibição de {delay_ms} ms).[/dim]")
        callback()


@app.command("ajuste")
def cmd_ajuste(
    product_id: str = typer.Argument(..., help="Id do produto"),
    quantidade: float = typer.Argument(..., help="Magnitude do ajuste"),
    direcao: Direction = typer.Option(Direction.POSITIVE, "--direcao", help="positive | negative"),
    motivo: str = typer.Option(..., "--motivo", help="Motivo: " + " | ".join(ADJUSTMENT_REASONS)),
    local: Optional[str] = typer.Option(None, "--local"),
    lote: Optional[str] = typer.Option(None, "--lote"),
    notas: Optional[str] = typer.Option(None, "--notas"),
):
    """Registra um ajuste manual de inventário."""
    session = AdjustmentSession(
        _client(),
        on_save=lambda: console.print("[green]>> Ajuste registrado.[/green]"),
        product_id=product_id,
        location_id=local,
    )
    session.set_adjustment_field(AdjustmentField.QUANTITY, quantidade)
    session.set_adjustment_field(AdjustmentField.DIRECTION, direcao)
    session.set_adjustment_field(AdjustmentField.REASON, motivo)
    session.set_adjustment_field(AdjustmentField.BATCH_NUMBER, lote)
    session.set_adjustment_field(AdjustmentField.NOTES, notas)
    try:
        res = session.submit_adjustment()
    except ValidationError as e:
        session.close()
        _fail_validation(e)
    if not res.success:
        session.close()
        _fail(res)


@app.command("contagem")
def cmd_contagem(
    product_id: str = typer.Argument(..., help="Id do produto"),
    contagem_fisica: float = typer.Argument(..., help="Quantidade contada"),
    local: Optional[str] = typer.Option(None, "--local"),
    lote: Optional[str] = typer.Option(None, "--lote"),
    notas: Optional[str] = typer.Option(None, "--notas"),
):
    """Registra uma contagem cíclica e mostra a variação."""
    fechamento = _FechamentoAdiado()
    session = AdjustmentSession(
        _client(),
        on_save=lambda: console.print("[green]>> Movimento corretivo gerado; Kardex deve ser recarregado.[/green]"),
        scheduler=fechamento,
        product_id=product_id,
        location_id=local,
    )
    session.set_cycle_count_field(CycleCountField.PHYSICAL_COUNT, contagem_fisica)
    session.set_cycle_count_field(CycleCountField.BATCH_NUMBER, lote)
    session.set_cycle_count_field(CycleCountField.NOTES, notas)
    try:
        res = session.submit_cycle_count()
    except ValidationError as e:
        session.close()
        _fail_validation(e)
    if not res.success:
        session.close()
        _fail(res)
    v = res.data
    _display_kv({
        "sistema": v.system_quantity,
        "físico": v.physical_count,
        "diferença": v.difference,
    }, title="Resultado da contagem")
    if v.message:
        console.print(v.message)
    fechamento.disparar()


# -----------------------
# Produção
# -----------------------

@app.command("progresso")
def cmd_progresso(order_id: str = typer.Argument(..., help="Id da ordem de produção")):
    """Progresso de uma ordem de produção."""
    res = run_progresso(_client(), order_id)
    if not res.success:
        _fail(res)
    data = res.data
    _display_kv({
        "ordem": data["ordem"],
        "status": data["status"],
        "planejado": data["planejado"],
        "produzido": data["produzido"],
        "pendente": data["remaining_qty"],
        "concluído (%)": f"{data['completion_percentage']}%",
    }, title="Progresso")
    if data["is_delayed"]:
        console.print("[red]Ordem atrasada[/red]")


@app.command("registrar-producao")
def cmd_registrar_producao(
    order_id: str = typer.Argument(..., help="Id da ordem de produção"),
    quantidade: float = typer.Argument(..., help="Quantidade produzida"),
    operador: str = typer.Option(..., "--operador", help="Operador responsável"),
    lote: Optional[str] = typer.Option(None, "--lote", help="Lote (gerado se omitido)"),
    observacoes: Optional[str] = typer.Option(None, "--obs"),
):
    """Registra produção para uma ordem."""
    client = _client()
    order_res = client.get_production_order(order_id)
    if not order_res.success:
        _fail(order_res)
    try:
        res = run_registrar_producao(client, order_res.data, quantidade, operador,
                                     lote=lote, observacoes=observacoes)
    except ValidationError as e:
        _fail_validation(e)
    if not res.success:
        _fail(res)
    previa = res.data["previa"]
    _display_kv({
        "total produzido": previa["total_produced"],
        "pendente": previa["total_remaining"],
        "concluído (%)": f"{previa['completion_percentage']}%",
    }, title="Produção registrada")
    console.print(f"[green]{res.data['mensagem']}[/green]")


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
