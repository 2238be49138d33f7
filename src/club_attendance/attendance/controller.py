from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.auth import current_actor
from ..common.datetime_utils import parse_iso_date
from ..common.responses import json_body, ok
from ..common.validators import require_enum, require_id
from ..core.constants import API_PREFIX
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .service import MarkEntry


def _mark_entry(item: object) -> MarkEntry:
    if not isinstance(item, dict):
        raise ValidationError("Each attendance entry must be an object")
    if item.get("status") in (None, ""):
        raise ValidationError("Status is required")
    return MarkEntry(
        user_id=require_id(item.get("userId"), "user ID"),
        status=require_enum(item.get("status"), AttendanceStatus, "status"),
        notes=item.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    def _write_csv(export):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=export.fieldnames)
        writer.writeheader()
        for row in export.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
        )

    @app.route(f"{API_PREFIX}/attendance/session/<int:session_id>", methods=["GET"], endpoint="attendance_by_session")
    @guards.login_required
    def session_attendance(session_id: int):
        session, rows, summary = container.attendance_service.for_session(session_id)
        return ok(
            {
                "session": {"id": session.session_id, "title": session.title, "date": session.date.isoformat()},
                "attendance": [r.to_dict() for r in rows],
                "summary": summary.to_dict(),
            }
        )

    @app.route(f"{API_PREFIX}/attendance/user/<int:user_id>", methods=["GET"], endpoint="attendance_by_user")
    @guards.login_required
    def user_attendance(user_id: int):
        rows, summary = container.attendance_service.for_user(current_actor(), user_id)
        return ok({"attendance": [r.to_dict() for r in rows], "summary": summary.to_dict()})

    @app.route(f"{API_PREFIX}/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @guards.staff_required
    def mark_attendance():
        body = json_body()
        session_id = require_id(body.get("sessionId"), "session ID")
        record = container.attendance_service.mark(current_actor(), session_id, _mark_entry(body))
        return ok(record.to_dict(), message="Attendance marked successfully")

    @app.route(f"{API_PREFIX}/attendance/bulk", methods=["POST"], endpoint="attendance_bulk")
    @guards.staff_required
    def bulk_mark_attendance():
        body = json_body()
        session_id = require_id(body.get("sessionId"), "session ID")
        items = body.get("attendance")
        if not isinstance(items, list) or not items:
            raise ValidationError("Attendance array is required")

        entries = [_mark_entry(item) for item in items]
        result = container.attendance_service.bulk_mark(current_actor(), session_id, entries)
        return ok(result.to_dict(), message="Bulk attendance marked")

    @app.route(f"{API_PREFIX}/attendance/checkin/<int:session_id>", methods=["POST"], endpoint="attendance_checkin")
    @guards.login_required
    def self_check_in(session_id: int):
        result = container.attendance_service.self_check_in(current_actor(), session_id)
        return ok(result.record.to_dict(), message=result.message)

    @app.route(f"{API_PREFIX}/attendance/checkin/qr", methods=["POST"], endpoint="attendance_checkin_qr")
    @guards.login_required
    def qr_check_in():
        body = json_body()
        qr_data = body.get("qrData")
        if not isinstance(qr_data, str) or not qr_data.strip():
            raise ValidationError("QR data is required")
        result = container.attendance_service.qr_check_in(current_actor(), qr_data)
        return ok(result.record.to_dict(), message=result.message)

    @app.route(f"{API_PREFIX}/attendance/export/<int:session_id>", methods=["GET"], endpoint="attendance_export")
    @guards.staff_required
    def export_attendance(session_id: int):
        return _write_csv(container.report_service.build_export(session_id))

    @app.route(f"{API_PREFIX}/attendance/analytics", methods=["GET"], endpoint="attendance_analytics")
    @guards.staff_required
    def attendance_analytics():
        start_s = request.args.get("startDate")
        end_s = request.args.get("endDate")
        report = container.report_service.analytics(
            start=parse_iso_date(start_s) if start_s else None,
            end=parse_iso_date(end_s) if end_s else None,
        )
        return ok(report.to_dict())
