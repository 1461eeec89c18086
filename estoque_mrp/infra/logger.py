# estoque_mrp/infra/logger.py
"""
Sistema de logging do núcleo de conciliação MRP.

Este módulo configura e fornece loggers para registrar as operações
relevantes: chamadas à API, cálculo de custos de BOM, montagem do Kardex
e ajustes/contagens de inventário.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = False
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove handlers existentes (evita duplicação em reimportações)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)
    logger.propagate = False

    return logger

# Diretório base para logs (na pasta do pacote)
BASE_DIR = Path(__file__).parent.parent
LOGS_DIR = BASE_DIR / "logs"

transaction_logger = setup_logger('estoque_mrp.transactions', str(LOGS_DIR / 'transactions.log'))

api_logger = setup_logger('estoque_mrp.api', str(LOGS_DIR / 'api.log'))

kardex_logger = setup_logger('estoque_mrp.kardex', str(LOGS_DIR / 'kardex.log'))

ajuste_logger = setup_logger('estoque_mrp.ajustes', str(LOGS_DIR / 'ajustes.log'))

custo_logger = setup_logger('estoque_mrp.custos', str(LOGS_DIR / 'custos.log'))

system_logger = setup_logger('estoque_mrp.system', str(LOGS_DIR / 'system.log'))


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa (operação que altera estado na API).

    Args:
        operation: Tipo de operação (ajuste, contagem, producao...)
        data: Payload enviado
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_api_call(method: str, endpoint: str, status: Optional[int] = None, level: str = "info", **kwargs) -> None:
    """
    Log de uma chamada HTTP à API do MRP.

    Args:
        method: Verbo HTTP
        endpoint: Caminho relativo chamado
        status: Código HTTP recebido (None se não houve resposta)
        level: Nível do log (info, warning, error)
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"method": method, "endpoint": endpoint, "status": status, **kwargs}
    log_method = getattr(api_logger, level.lower(), api_logger.info)
    log_method(f"API_{method.upper()}: {log_data}")


def log_kardex(action: str, product_id: str, level: str = "info", **kwargs) -> None:
    """Log específico para montagem/exportação do Kardex."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "product_id": product_id, **kwargs}
    log_method = getattr(kardex_logger, level.lower(), kardex_logger.info)
    log_method(f"KARDEX_{action.upper()}: {log_data}")


def log_ajuste(action: str, product_id: str, quantidade: Any, **kwargs) -> None:
    """
    Log específico para ajustes manuais e contagens cíclicas.

    Args:
        action: Ação realizada (submit, variance, cancel...)
        product_id: Produto ajustado
        quantidade: Quantidade (assinada) ou contagem física
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {"action": action, "product_id": product_id, "quantidade": quantidade, **kwargs}
    ajuste_logger.info(f"AJUSTE_{action.upper()}: {log_data}")


def log_custo(action: str, **kwargs) -> None:
    """Log para cálculos de custo de BOM."""
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    custo_logger.info(f"CUSTO_{action.upper()}: {kwargs}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação de planilhas, exportação CSV).

    Args:
        operation: Tipo de operação (import, export)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        "timestamp": datetime.now().isoformat(),
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, api, kardex, ajustes, custos, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_files = {
        "transactions": LOGS_DIR / "transactions.log",
        "api": LOGS_DIR / "api.log",
        "kardex": LOGS_DIR / "kardex.log",
        "ajustes": LOGS_DIR / "ajustes.log",
        "custos": LOGS_DIR / "custos.log",
        "system": LOGS_DIR / "system.log",
    }

    log_file = log_files.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    try:
        with open(log_file, 'r', encoding='utf-8') as f:
            all_lines = f.readlines()
            recent_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
            return ''.join(recent_lines)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {str(e)}"
