# File: kld/core/history.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-12
# Purpose: Historial deshacer/rehacer acotado, por snapshots profundos del Project.
# Notes: Los snapshots no comparten estructura mutable con el proyecto vivo.
from __future__ import annotations

import copy

from collections import deque
from typing import Callable, Optional

from kld.core.models import Project
from kld.core.settings import env_int
from kld.core.version import HISTORY_DEPTH
from kld.utils.log import get_logger

log = get_logger(__name__)


def snapshot(project: Project) -> Project:
    return copy.deepcopy(project)


class HistoryManager:
    """Dos pilas acotadas (`past`, `future`); al desbordar se descarta la más vieja.

    - commit: snapshot del actual -> past, aplica la mutación, vacía future.
    - undo: past.pop() pasa a ser el actual; el actual va a future.
    - redo: simétrico.
    Deshacer/rehacer sin nada que aplicar devuelve el actual (no-op).
    """

    def __init__(self, depth: Optional[int] = None) -> None:
        if depth is None:
            depth = env_int("KLD_HISTORY_DEPTH", HISTORY_DEPTH, min_value=1, max_value=500)
        self.depth = max(1, int(depth))
        self._past: deque[Project] = deque(maxlen=self.depth)
        self._future: deque[Project] = deque(maxlen=self.depth)

    # ----------------------------
    # Estado
    # ----------------------------
    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def past_depth(self) -> int:
        return len(self._past)

    def future_depth(self) -> int:
        return len(self._future)

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()

    # ----------------------------
    # Transiciones
    # ----------------------------
    def commit(self, current: Project, mutation: Callable[[Project], Project]) -> Project:
        """Aplica `mutation` (pura) registrando el estado previo.

        Si la mutación falla no se toca el historial.
        """
        before = snapshot(current)
        result = mutation(current)
        self._past.append(before)
        self._future.clear()
        return result

    def undo(self, current: Project) -> Project:
        if not self._past:
            return current
        previous = self._past.pop()
        self._future.append(snapshot(current))
        log.debug("undo (past=%d future=%d)", len(self._past), len(self._future))
        return previous

    def redo(self, current: Project) -> Project:
        if not self._future:
            return current
        nxt = self._future.pop()
        self._past.append(snapshot(current))
        log.debug("redo (past=%d future=%d)", len(self._past), len(self._future))
        return nxt
