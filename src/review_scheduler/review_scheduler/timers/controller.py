from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local
from ..common.http import admin_required, body_float, current_principal, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    timers = container.timer_service

    @app.route("/api/scopes/<scope_id>/timer", methods=["GET"], endpoint="scope_timer_status")
    def scope_timer_status(scope_id: str):
        current_principal()
        return jsonify(timers.status(scope_id, now=now_local()))

    @app.route("/api/scopes/<scope_id>/timer/start", methods=["POST"], endpoint="scope_timer_start")
    @admin_required
    def scope_timer_start(scope_id: str):
        now = now_local()
        timers.start(scope_id, now=now)
        return jsonify(timers.status(scope_id, now=now))

    @app.route("/api/scopes/<scope_id>/timer/pause", methods=["POST"], endpoint="scope_timer_pause")
    @admin_required
    def scope_timer_pause(scope_id: str):
        now = now_local()
        timers.pause(scope_id, now=now)
        return jsonify(timers.status(scope_id, now=now))

    @app.route("/api/scopes/<scope_id>/timer/reset", methods=["POST"], endpoint="scope_timer_reset")
    @admin_required
    def scope_timer_reset(scope_id: str):
        data = json_body()
        timers.reset(scope_id, total_hours=body_float(data, "totalHours"))
        return jsonify(timers.status(scope_id, now=now_local()))
