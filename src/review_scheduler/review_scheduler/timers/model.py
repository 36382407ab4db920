from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_NUMBER_OF_PHASES
from ..core.enums import TimerState


@dataclass(frozen=True)
class Scope:
    """Domain entity: an academic batch with its review phases and countdown.

    Invariants: remaining_seconds >= 0; is_running implies last_updated is set.
    """

    scope_id: str
    name: str
    number_of_phases: int = DEFAULT_NUMBER_OF_PHASES
    require_guide: bool = False
    require_subject_expert: bool = False
    total_hours: float = 0.0
    remaining_seconds: int = 0
    is_running: bool = False
    last_updated: Optional[datetime] = None
    is_active: bool = True

    @property
    def timer_state(self) -> TimerState:
        return TimerState.RUNNING if self.is_running else TimerState.PAUSED
