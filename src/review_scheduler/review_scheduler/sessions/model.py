from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Venue:
    venue_id: str
    name: str
    capacity: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class LabSession:
    """A booked review slot: one faculty, one venue, a time range and a student roster.

    The roster is a set; a student appears at most once per session.
    """

    session_id: str
    venue_id: str
    faculty_id: str
    scope_id: Optional[str]
    start_time: datetime
    end_time: datetime
    title: Optional[str] = None
    student_ids: frozenset[str] = frozenset()

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open [start, end) overlap test."""
        return self.start_time < end and self.end_time > start

    def covers(self, at: datetime) -> bool:
        return self.start_time <= at <= self.end_time

    @property
    def label(self) -> str:
        return self.title or f"Session {self.start_time:%Y-%m-%d %H:%M}-{self.end_time:%H:%M}"

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "venueId": self.venue_id,
            "facultyId": self.faculty_id,
            "scopeId": self.scope_id,
            "title": self.title,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "studentIds": sorted(self.student_ids),
        }
