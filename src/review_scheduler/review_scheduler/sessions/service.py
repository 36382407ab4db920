from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..assignments.service import AssignmentService
from ..common.batch import BatchResult, ItemOutcome, run_in_chunks
from ..common.datetime_utils import day_bounds
from ..common.transactions import TransactionManager
from ..common.validators import require_non_empty, require_time_range, unique_ids
from ..core.constants import BATCH_CHUNK_SIZE, BATCH_TRANSACTION_TIMEOUT_SECONDS
from ..core.enums import BatchOutcome
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .model import LabSession
from .repository import SessionRepository, VenueRepository

logger = logging.getLogger(__name__)


class SessionScheduler:
    """Books lab sessions and keeps each faculty member free of double bookings.

    Only the faculty is checked for overlap; several faculty may share a venue
    at the same time.
    """

    def __init__(
        self,
        *,
        sessions: SessionRepository,
        venues: VenueRepository,
        engine: AssignmentService,
        transactions: TransactionManager,
        chunk_size: int = BATCH_CHUNK_SIZE,
        batch_timeout_seconds: int = BATCH_TRANSACTION_TIMEOUT_SECONDS,
    ):
        self._sessions = sessions
        self._venues = venues
        self._engine = engine
        self._tx = transactions
        self._chunk_size = chunk_size
        self._batch_timeout = batch_timeout_seconds

    def _ensure_faculty_free(
        self,
        faculty_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_session_id: Optional[str] = None,
    ) -> None:
        clash = self._sessions.find_faculty_overlap(
            faculty_id=faculty_id, start=start, end=end, exclude_session_id=exclude_session_id
        )
        if clash:
            logger.warning(
                "faculty double booking rejected faculty=%s %s-%s clashes with session=%s",
                faculty_id,
                start,
                end,
                clash.session_id,
            )
            raise ConflictError("Faculty is already busy at this time")

    def book_session(
        self,
        *,
        venue_id: str,
        faculty_id: str,
        scope_id: Optional[str],
        start: datetime,
        end: datetime,
        student_ids: Iterable[str] = (),
        title: Optional[str] = None,
    ) -> LabSession:
        venue_id = require_non_empty(venue_id, "venueId")
        faculty_id = require_non_empty(faculty_id, "facultyId")
        if start is None or end is None:
            raise ValidationError("startTime and endTime are required")
        require_time_range(start, end)

        with self._tx.transaction():
            if not self._venues.get_by_id(venue_id):
                raise NotFoundError("Venue", venue_id)
            self._ensure_faculty_free(faculty_id, start, end)
            session = self._sessions.create(
                venue_id=venue_id,
                faculty_id=faculty_id,
                scope_id=scope_id,
                start_time=start,
                end_time=end,
                title=title,
                student_ids=unique_ids(student_ids),
            )
        logger.info(
            "session booked id=%s venue=%s faculty=%s %s-%s students=%s",
            session.session_id,
            venue_id,
            faculty_id,
            start,
            end,
            len(session.student_ids),
        )
        return session

    def update_session(
        self,
        session_id: str,
        *,
        faculty_id: Optional[str] = None,
        student_ids: Optional[Iterable[str]] = None,
        updated_by: Optional[str],
        now: datetime,
    ) -> LabSession:
        """Change the faculty and/or roster, then re-point affected teams' reviews."""
        roster = unique_ids(student_ids) if student_ids is not None else None

        with self._tx.transaction():
            current = self._sessions.get_by_id(session_id, for_update=True)
            if not current:
                raise NotFoundError("Session", session_id)

            if faculty_id and faculty_id != current.faculty_id:
                self._ensure_faculty_free(
                    faculty_id, current.start_time, current.end_time, exclude_session_id=session_id
                )

            self._sessions.update(session_id, faculty_id=faculty_id or None, student_ids=roster)
            updated = self._sessions.get_by_id(session_id)

            if faculty_id or roster is not None:
                affected = roster if roster is not None else tuple(updated.student_ids)
                synced = self._engine.sync_team_reviews_with_session(
                    affected, updated.faculty_id, assigned_by=updated_by, now=now
                )
                logger.info("session %s synced %s team(s) to faculty=%s", session_id, synced, updated.faculty_id)
        return updated

    def cancel_session(self, session_id: str) -> None:
        with self._tx.transaction():
            if not self._sessions.delete(session_id):
                raise NotFoundError("Session", session_id)
        logger.info("session cancelled id=%s", session_id)

    def list_sessions(
        self,
        day: date,
        *,
        scope_id: Optional[str] = None,
        venue_id: Optional[str] = None,
    ) -> Sequence[LabSession]:
        start, end = day_bounds(day)
        return self._sessions.list_between(start, end, scope_id=scope_id, venue_id=venue_id)

    def copy_day(self, from_day: date, to_day: date, *, scope_id: Optional[str] = None) -> BatchResult:
        """Duplicate a day's timetable onto another day, skipping faculty clashes."""
        start, end = day_bounds(from_day)
        source = self._sessions.list_between(start, end, scope_id=scope_id)
        if not source:
            raise NotFoundError("Sessions on source date")

        def copy_one(s: LabSession) -> ItemOutcome:
            new_start = datetime.combine(to_day, s.start_time.time())
            new_end = new_start + (s.end_time - s.start_time)
            clash = self._sessions.find_faculty_overlap(faculty_id=s.faculty_id, start=new_start, end=new_end)
            if clash:
                return ItemOutcome(BatchOutcome.SKIPPED, "faculty is already busy at this time")
            copy = self._sessions.create(
                venue_id=s.venue_id,
                faculty_id=s.faculty_id,
                scope_id=s.scope_id,
                start_time=new_start,
                end_time=new_end,
                title=s.title,
                student_ids=s.student_ids,
            )
            return ItemOutcome(detail={"sessionId": copy.session_id})

        result = run_in_chunks(
            source,
            copy_one,
            transactions=self._tx,
            key=lambda s: s.session_id,
            chunk_size=self._chunk_size,
            timeout_seconds=self._batch_timeout,
        )
        logger.info(
            "copied day %s -> %s copied=%s skipped=%s failed=%s",
            from_day,
            to_day,
            result.succeeded,
            result.skips,
            result.failures,
        )
        return result

    def swap_venues(self, venue_a: str, venue_b: str, day: date) -> dict:
        venue_a = require_non_empty(venue_a, "venueAId")
        venue_b = require_non_empty(venue_b, "venueBId")
        if venue_a == venue_b:
            raise ValidationError("Cannot swap a venue with itself")

        start, end = day_bounds(day)
        with self._tx.transaction():
            for v in (venue_a, venue_b):
                if not self._venues.get_by_id(v):
                    raise NotFoundError("Venue", v)
            # Snapshot both sides before moving anything.
            ids_a = [s.session_id for s in self._sessions.list_between(start, end, venue_id=venue_a)]
            ids_b = [s.session_id for s in self._sessions.list_between(start, end, venue_id=venue_b)]
            self._sessions.set_venue(ids_a, venue_b)
            self._sessions.set_venue(ids_b, venue_a)
        logger.info("venues swapped %s <-> %s on %s (%s/%s sessions)", venue_a, venue_b, day, len(ids_a), len(ids_b))
        return {"movedToB": len(ids_a), "movedToA": len(ids_b)}
