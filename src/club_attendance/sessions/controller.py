from __future__ import annotations

from flask import Flask, request, send_file

from ..common.auth import current_actor
from ..common.responses import json_body, ok, page_args, pagination
from ..common.validators import require_enum
from ..core.constants import API_PREFIX
from ..core.enums import SessionType
from ..core.exceptions import ValidationError
from ..container import Container
from .qr import render_qr_png

# request body key -> service field
_BODY_FIELDS = {
    "title": "title",
    "description": "description",
    "date": "date",
    "startTime": "start_time",
    "endTime": "end_time",
    "location": "location",
    "type": "type",
    "maxCapacity": "max_capacity",
    "isActive": "is_active",
}


def _session_fields(body: dict) -> dict:
    return {field: body[key] for key, field in _BODY_FIELDS.items() if key in body}


def _upcoming_arg() -> bool | None:
    raw = request.args.get("upcoming")
    if raw is None or raw == "":
        return None
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ValidationError("upcoming must be 'true' or 'false'")


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    def _with_summary(session, summary) -> dict:
        out = session.to_dict()
        out["attendanceSummary"] = summary.to_dict()
        return out

    @app.route(f"{API_PREFIX}/sessions", methods=["GET"], endpoint="sessions_list")
    @guards.login_required
    def list_sessions():
        page, limit = page_args()
        type_s = request.args.get("type")
        sessions, total = container.session_service.list(
            type=require_enum(type_s, SessionType, "session type") if type_s else None,
            upcoming=_upcoming_arg(),
            page=page,
            limit=limit,
        )
        summaries = container.report_service.session_summaries([s.session_id for s in sessions])
        return ok(
            [_with_summary(s, summaries[s.session_id]) for s in sessions],
            pagination=pagination(page=page, limit=limit, total=total),
        )

    @app.route(f"{API_PREFIX}/sessions/<int:session_id>", methods=["GET"], endpoint="sessions_get")
    @guards.login_required
    def get_session(session_id: int):
        session = container.session_service.get(session_id)
        return ok(_with_summary(session, container.report_service.session_summary(session_id)))

    @app.route(f"{API_PREFIX}/sessions", methods=["POST"], endpoint="sessions_create")
    @guards.staff_required
    def create_session():
        session, seeded = container.session_service.create(current_actor(), _session_fields(json_body()))
        out = session.to_dict()
        out["seededRecords"] = seeded
        return ok(out, message="Session created successfully", status=201)

    @app.route(f"{API_PREFIX}/sessions/<int:session_id>", methods=["PUT"], endpoint="sessions_update")
    @guards.staff_required
    def update_session(session_id: int):
        session = container.session_service.update(current_actor(), session_id, _session_fields(json_body()))
        return ok(session.to_dict(), message="Session updated successfully")

    @app.route(f"{API_PREFIX}/sessions/<int:session_id>", methods=["DELETE"], endpoint="sessions_delete")
    @guards.admin_required
    def delete_session(session_id: int):
        container.session_service.delete(current_actor(), session_id)
        return ok(None, message="Session deleted successfully")

    @app.route(f"{API_PREFIX}/sessions/<int:session_id>/register", methods=["POST"], endpoint="sessions_register")
    @guards.login_required
    def register_for_session(session_id: int):
        container.session_service.register(current_actor(), session_id)
        return ok(None, message="Registered for session successfully")

    @app.route(f"{API_PREFIX}/sessions/<int:session_id>/register", methods=["DELETE"], endpoint="sessions_unregister")
    @guards.login_required
    def unregister_from_session(session_id: int):
        container.session_service.unregister(current_actor(), session_id)
        return ok(None, message="Unregistered from session successfully")

    @app.route(f"{API_PREFIX}/sessions/<int:session_id>/qr", methods=["GET"], endpoint="sessions_qr")
    @guards.staff_required
    def session_qr(session_id: int):
        payload = container.session_service.qr_payload(current_actor(), session_id)
        return send_file(render_qr_png(payload), mimetype="image/png")
