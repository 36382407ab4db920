from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import LabSession, Venue


class VenueRepository(Protocol):
    def get_by_id(self, venue_id: str) -> Optional[Venue]:
        raise NotImplementedError


class SessionRepository(Protocol):
    """Repository interface for LabSession and its roster."""

    def get_by_id(self, session_id: str, *, for_update: bool = False) -> Optional[LabSession]:
        raise NotImplementedError

    def find_faculty_overlap(
        self,
        *,
        faculty_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> Optional[LabSession]:
        """Any session of the faculty with ``existing.start < end AND existing.end > start``."""

        raise NotImplementedError

    def create(
        self,
        *,
        venue_id: str,
        faculty_id: str,
        scope_id: Optional[str],
        start_time: datetime,
        end_time: datetime,
        title: Optional[str],
        student_ids: Iterable[str],
    ) -> LabSession:
        raise NotImplementedError

    def update(
        self,
        session_id: str,
        *,
        faculty_id: Optional[str] = None,
        student_ids: Optional[Iterable[str]] = None,
    ) -> bool:
        """Change the faculty and/or replace the roster. ``None`` leaves a field as is."""

        raise NotImplementedError

    def list_between(
        self,
        start: datetime,
        end: datetime,
        *,
        scope_id: Optional[str] = None,
        venue_id: Optional[str] = None,
    ) -> Sequence[LabSession]:
        """Sessions starting in ``[start, end)``, ordered by start time."""

        raise NotImplementedError

    def set_venue(self, session_ids: Sequence[str], venue_id: str) -> int:
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError

    def find_active_for_students(self, student_ids: Iterable[str], at: datetime) -> Optional[LabSession]:
        raise NotImplementedError

    def find_next_for_students(
        self, student_ids: Iterable[str], *, after: datetime, before: datetime
    ) -> Optional[LabSession]:
        raise NotImplementedError

    def find_active_for_faculty(
        self, *, faculty_id: str, scope_id: Optional[str], at: datetime
    ) -> Optional[LabSession]:
        raise NotImplementedError
