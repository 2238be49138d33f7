from __future__ import annotations

from flask import Flask, request

from ..common.auth import current_actor
from ..common.datetime_utils import parse_iso_date
from ..common.responses import ok
from ..core.constants import API_PREFIX
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route(f"{API_PREFIX}/dashboard/student", methods=["GET"], endpoint="dashboard_student")
    @guards.roles_required(Role.STUDENT)
    def student_dashboard():
        return ok(container.dashboard_service.student(current_actor()))

    @app.route(f"{API_PREFIX}/dashboard/teacher", methods=["GET"], endpoint="dashboard_teacher")
    @guards.staff_required
    def teacher_dashboard():
        return ok(container.dashboard_service.teacher())

    @app.route(f"{API_PREFIX}/dashboard/analytics", methods=["GET"], endpoint="dashboard_analytics")
    @guards.admin_required
    def admin_analytics():
        start_s = request.args.get("startDate")
        end_s = request.args.get("endDate")
        return ok(
            container.dashboard_service.analytics(
                start=parse_iso_date(start_s) if start_s else None,
                end=parse_iso_date(end_s) if end_s else None,
            )
        )
