from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.http import admin_required, body_datetime, body_ids, current_principal, json_body
from ..container import Container
from ..core.exceptions import ValidationError


def _date(value: object, name: str) -> date:
    if not value:
        raise ValidationError(f"{name} is required")
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    scheduler = container.session_scheduler

    @app.route("/api/venues/sessions", methods=["GET"], endpoint="list_sessions")
    def list_sessions():
        current_principal()
        day = _date(request.args.get("date") or now_local().date().isoformat(), "date")
        sessions = scheduler.list_sessions(
            day,
            scope_id=request.args.get("scopeId") or None,
            venue_id=request.args.get("venueId") or None,
        )
        return jsonify([s.to_dict() for s in sessions])

    @app.route("/api/venues/sessions", methods=["POST"], endpoint="book_session")
    @admin_required
    def book_session():
        data = json_body()
        session = scheduler.book_session(
            venue_id=data.get("venueId"),
            faculty_id=data.get("facultyId"),
            scope_id=data.get("scopeId") or None,
            start=body_datetime(data, "startTime"),
            end=body_datetime(data, "endTime"),
            student_ids=body_ids(data, "studentIds"),
            title=data.get("title") or None,
        )
        return jsonify(session.to_dict()), 201

    @app.route("/api/venues/sessions/<session_id>", methods=["PUT"], endpoint="update_session")
    @admin_required
    def update_session(session_id: str):
        data = json_body()
        session = scheduler.update_session(
            session_id,
            faculty_id=data.get("facultyId") or None,
            student_ids=body_ids(data, "studentIds") if "studentIds" in data else None,
            updated_by=current_principal().user_id,
            now=now_local(),
        )
        return jsonify(session.to_dict())

    @app.route("/api/venues/sessions/<session_id>", methods=["DELETE"], endpoint="cancel_session")
    @admin_required
    def cancel_session(session_id: str):
        scheduler.cancel_session(session_id)
        return jsonify({"success": True, "message": "Session cancelled"})

    @app.route("/api/venues/sessions/copy", methods=["POST"], endpoint="copy_sessions")
    @admin_required
    def copy_sessions():
        data = json_body()
        result = scheduler.copy_day(
            _date(data.get("fromDate"), "fromDate"),
            _date(data.get("toDate"), "toDate"),
            scope_id=data.get("scopeId") or None,
        )
        return jsonify(
            {
                "message": f"Copy complete: {result.succeeded} sessions copied, {result.skips} skipped due to conflicts.",
                "copied": result.succeeded,
                "skipped": result.skips,
                "failed": result.failures,
                "items": [i.to_dict() for i in result.items],
            }
        )

    @app.route("/api/venues/swap", methods=["POST"], endpoint="swap_venues")
    @admin_required
    def swap_venues():
        data = json_body()
        moved = scheduler.swap_venues(
            data.get("venueAId"),
            data.get("venueBId"),
            _date(data.get("date"), "date"),
        )
        return jsonify({"success": True, "message": "Venues swapped successfully", **moved})
