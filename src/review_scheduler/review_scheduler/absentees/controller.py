from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import admin_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/absentees", methods=["GET"], endpoint="admin_absentees")
    @admin_required
    def admin_absentees():
        rows = container.absentee_auditor.report(now=now_local(), scope_id=request.args.get("scopeId") or None)
        return jsonify([r.to_dict() for r in rows])
