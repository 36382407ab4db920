from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local
from ..common.http import admin_required, current_principal, json_body, roles_required
from ..common.validators import require_enum
from ..container import Container
from ..core.enums import FacultyRole, Role, TeamStatus
from ..core.exceptions import ValidationError
from .model import Team


def _team_dict(team: Team) -> dict:
    return {
        "id": team.team_id,
        "scopeId": team.scope_id,
        "projectId": team.project_id,
        "status": team.status.value,
        "submissionPhase": team.submission_phase,
        "guideId": team.guide_id,
        "guideStatus": team.guide_status.value,
        "expertId": team.expert_id,
        "expertStatus": team.expert_status.value,
        "memberIds": list(team.member_ids),
    }


def register(app: Flask, container: Container) -> None:
    teams = container.team_service

    @app.route("/api/teams/<team_id>/guide", methods=["POST"], endpoint="team_select_guide")
    @roles_required(Role.STUDENT)
    def team_select_guide(team_id: str):
        faculty_id = json_body().get("facultyId")
        team = teams.select_guide(team_id, faculty_id, student_id=current_principal().user_id)
        return jsonify({"success": True, "team": _team_dict(team)})

    @app.route("/api/teams/<team_id>/expert", methods=["POST"], endpoint="team_select_expert")
    @roles_required(Role.STUDENT)
    def team_select_expert(team_id: str):
        faculty_id = json_body().get("facultyId")
        team = teams.select_expert(team_id, faculty_id, student_id=current_principal().user_id)
        return jsonify({"success": True, "team": _team_dict(team)})

    @app.route("/api/teams/<team_id>/submit", methods=["POST"], endpoint="team_submit_for_review")
    @roles_required(Role.STUDENT)
    def team_submit_for_review(team_id: str):
        team = teams.submit_for_review(team_id, student_id=current_principal().user_id, now=now_local())
        return jsonify({"success": True, "message": "Project submitted for review", "team": _team_dict(team)})

    @app.route("/api/faculty/teams/<team_id>/respond", methods=["POST"], endpoint="faculty_respond_request")
    @roles_required(Role.FACULTY)
    def faculty_respond_request(team_id: str):
        data = json_body()
        action = str(data.get("action") or "").upper()
        if action not in ("APPROVE", "REJECT"):
            raise ValidationError("action must be APPROVE or REJECT")
        team = teams.respond_to_request(
            team_id,
            require_enum(FacultyRole, data.get("role"), "role"),
            faculty_id=current_principal().user_id,
            approve=action == "APPROVE",
        )
        return jsonify({"success": True, "team": _team_dict(team)})

    @app.route("/api/admin/teams/<team_id>/faculty", methods=["POST"], endpoint="admin_assign_team_faculty")
    @admin_required
    def admin_assign_team_faculty(team_id: str):
        data = json_body()
        team = teams.assign_team_faculty(
            team_id,
            data.get("facultyId"),
            require_enum(FacultyRole, data.get("role"), "role"),
        )
        return jsonify({"success": True, "team": _team_dict(team)})

    @app.route(
        "/api/admin/teams/<team_id>/faculty/<role>", methods=["DELETE"], endpoint="admin_unassign_team_faculty"
    )
    @admin_required
    def admin_unassign_team_faculty(team_id: str, role: str):
        team = teams.unassign_team_faculty(team_id, require_enum(FacultyRole, role, "role"))
        return jsonify({"success": True, "team": _team_dict(team)})

    @app.route("/api/admin/teams/<team_id>/status", methods=["PATCH"], endpoint="admin_set_team_status")
    @admin_required
    def admin_set_team_status(team_id: str):
        status = require_enum(TeamStatus, json_body().get("status"), "status")
        team = teams.set_status(team_id, status, now=now_local())
        return jsonify({"success": True, "team": _team_dict(team)})
