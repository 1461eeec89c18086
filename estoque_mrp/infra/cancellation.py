# estoque_mrp/infra/cancellation.py
"""
Token de cancelamento ligado ao tempo de vida de uma sessão (o "modal").

Depois de cancelado, respostas que ainda cheguem são descartadas pelo
cliente HTTP e timers pendentes não disparam mais.
"""

from __future__ import annotations

import threading


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
