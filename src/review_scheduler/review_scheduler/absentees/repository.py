from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import MarkedAbsence


class AbsenceRepository(Protocol):
    def list_marked_absent(self, *, scope_id: Optional[str] = None) -> Sequence[MarkedAbsence]:
        raise NotImplementedError
