from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .model import Scope


class ScopeRepository(Protocol):
    def get_by_id(self, scope_id: str, *, for_update: bool = False) -> Optional[Scope]:
        raise NotImplementedError

    def save_timer(
        self,
        *,
        scope_id: str,
        total_hours: float,
        remaining_seconds: int,
        is_running: bool,
        last_updated: Optional[datetime],
    ) -> bool:
        """Persist the countdown anchors. Returns False when the scope is gone."""

        raise NotImplementedError
