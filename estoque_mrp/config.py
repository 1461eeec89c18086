# estoque_mrp/config.py
"""
Configurações globais e valores padrão do núcleo de conciliação MRP.
"""

import os
from dataclasses import dataclass


# Endereço base da API do MRP e token opcional (Bearer)
API_BASE_URL = os.environ.get("MRP_API_URL", "http://localhost:3001")
API_TOKEN = os.environ.get("MRP_API_TOKEN") or None


@dataclass
class DefaultConfig:
    """Valores padrão usados pelos casos de uso e pelo cliente HTTP."""
    timeout_segundos: float = 30.0          # timeout repassado ao requests
    kardex_page_size: int = 50              # linhas por página do Kardex
    close_delay_sem_diferenca_ms: int = 2000  # contagem sem variação
    close_delay_com_diferenca_ms: int = 3000  # contagem com variação (força refresh)
    placeholder_csv: str = "-"              # campo opcional ausente no CSV


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
