from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local
from ..common.http import (
    admin_required,
    body_datetime,
    body_float,
    body_ids,
    body_int,
    current_principal,
    json_body,
    roles_required,
)
from ..common.validators import require_enum, require_non_empty
from ..container import Container
from ..core.enums import AssignmentMode, Role
from .model import AccessWindow


def _window(data: dict) -> AccessWindow:
    mode = data.get("mode")
    return AccessWindow(
        starts_at=body_datetime(data, "accessStartsAt"),
        duration_hours=body_float(data, "durationHours"),
        mode=require_enum(AssignmentMode, mode, "mode") if mode else AssignmentMode.ONLINE,
    )


def register(app: Flask, container: Container) -> None:
    engine = container.assignment_service

    @app.route("/api/admin/assignments", methods=["POST"], endpoint="admin_assign_faculty")
    @admin_required
    def admin_assign_faculty():
        data = json_body()
        assignment = engine.assign_faculty(
            project_id=require_non_empty(data.get("projectId"), "projectId"),
            faculty_id=require_non_empty(data.get("facultyId"), "facultyId"),
            review_phase=body_int(data, "reviewPhase") or 1,
            window=_window(data),
            assigned_by=current_principal().user_id,
            now=now_local(),
        )
        return jsonify({"success": True, "assignment": assignment.to_dict()}), 201

    @app.route("/api/admin/assignments/bulk", methods=["POST"], endpoint="admin_bulk_assign_faculty")
    @admin_required
    def admin_bulk_assign_faculty():
        data = json_body()
        result = engine.bulk_assign_faculty(
            project_ids=body_ids(data, "projectIds"),
            faculty_ids=body_ids(data, "facultyIds"),
            review_phase=body_int(data, "reviewPhase") or 1,
            window=_window(data),
            assigned_by=current_principal().user_id,
            now=now_local(),
            distribute_evenly=bool(data.get("distributeEvenly")),
        )
        return jsonify(result.to_dict())

    @app.route("/api/admin/assignments/<assignment_id>/access", methods=["PATCH"], endpoint="admin_update_access")
    @admin_required
    def admin_update_access(assignment_id: str):
        assignment = engine.update_access_window(assignment_id, window=_window(json_body()), now=now_local())
        return jsonify({"success": True, "assignment": assignment.to_dict()})

    @app.route("/api/admin/assignments/access/bulk", methods=["POST"], endpoint="admin_bulk_update_access")
    @admin_required
    def admin_bulk_update_access():
        data = json_body()
        result = engine.bulk_update_access_window(
            body_ids(data, "assignmentIds"), window=_window(data), now=now_local()
        )
        return jsonify(result.to_dict())

    @app.route("/api/admin/assignments/<assignment_id>", methods=["DELETE"], endpoint="admin_unassign")
    @admin_required
    def admin_unassign(assignment_id: str):
        engine.unassign(assignment_id)
        return jsonify({"success": True})

    @app.route("/api/admin/assignments/unassign/bulk", methods=["POST"], endpoint="admin_bulk_unassign")
    @admin_required
    def admin_bulk_unassign():
        return jsonify(engine.bulk_unassign(body_ids(json_body(), "assignmentIds")).to_dict())

    @app.route(
        "/api/admin/assignments/release-guide-reviews", methods=["POST"], endpoint="admin_release_guide_reviews"
    )
    @admin_required
    def admin_release_guide_reviews():
        data = json_body()
        result = engine.release_guide_reviews(
            require_non_empty(data.get("scopeId"), "scopeId"),
            review_phase=body_int(data, "reviewPhase") or 1,
            window=_window(data),
            assigned_by=current_principal().user_id,
            now=now_local(),
        )
        return jsonify(result.to_dict())

    @app.route("/api/admin/assignments/auto-assign", methods=["POST"], endpoint="admin_auto_assign_reviews")
    @admin_required
    def admin_auto_assign_reviews():
        data = json_body()
        result = engine.auto_assign_reviews(
            body_ids(data, "teamIds"),
            assigned_by=current_principal().user_id,
            now=now_local(),
            override_faculty_id=data.get("facultyId") or None,
        )
        return jsonify(result.to_dict())

    @app.route("/api/admin/assignments/reassign/bulk", methods=["POST"], endpoint="admin_bulk_reassign")
    @admin_required
    def admin_bulk_reassign():
        data = json_body()
        result = engine.bulk_reassign(
            body_ids(data, "teamIds"),
            require_non_empty(data.get("facultyId"), "facultyId"),
            assigned_by=current_principal().user_id,
            now=now_local(),
        )
        return jsonify(result.to_dict())

    @app.route("/api/faculty/assignments", methods=["GET"], endpoint="faculty_live_assignments")
    @roles_required(Role.FACULTY)
    def faculty_live_assignments():
        live = engine.list_live_assignments(current_principal().user_id, now=now_local())
        return jsonify([a.to_dict() for a in live])
