from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ConfigurationError, DomainError, LifecycleError
from .model import AttendanceEntry, ClockResult

logger = logging.getLogger(__name__)


def entry_to_dict(e: AttendanceEntry) -> dict:
    return {
        "entry_id": e.entry_id,
        "employee_id": e.employee_id,
        "state": e.state.value,
        "shift_date": e.shift_date.isoformat(),
        "time_in": e.time_in.isoformat(),
        "time_out": e.time_out.isoformat() if e.time_out else None,
        "shift_schedule_id": e.shift_schedule.schedule_id,
        "shift_schedule": e.shift_schedule.name,
        "day_of_week": e.shift_schedule_detail.day_of_week,
        "duration": e.duration,
        "minutes_late": e.minutes_late,
        "minutes_undertime": e.minutes_undertime,
        "minutes_excess": e.minutes_excess,
    }


def result_to_dict(result: ClockResult) -> dict:
    return {
        "ok": True,
        "entry": entry_to_dict(result.entry),
        "superseded": [entry_to_dict(e) for e in result.superseded],
        "warnings": list(result.warnings),
    }


def register(app: Flask, container) -> None:
    service = container.timesheet_service

    @app.errorhandler(DomainError)
    def domain_error(e: DomainError):
        if isinstance(e, LifecycleError):
            status = 409
        elif isinstance(e, ConfigurationError):
            logger.error("Schedule configuration error: %s", e)
            status = 500
        else:
            status = 400
        return jsonify({"ok": False, "error": e.kind, "message": str(e)}), status

    def _payload() -> dict:
        return request.get_json(silent=True) or {}

    @app.route("/api/timesheets/clock-in", methods=["POST"], endpoint="api_clock_in")
    def api_clock_in():
        data = _payload()
        # Only a JSON true forces; "false" or "0" must not close stale entries.
        result = service.clock_in(data.get("employee_id"), force=data.get("force") is True)
        return jsonify(result_to_dict(result)), 201

    @app.route("/api/timesheets/clock-out", methods=["POST"], endpoint="api_clock_out")
    def api_clock_out():
        result = service.clock_out(_payload().get("employee_id"))
        return jsonify(result_to_dict(result))

    @app.route("/api/timesheets/<int:entry_id>/correct", methods=["POST"], endpoint="api_manual_correct")
    def api_manual_correct(entry_id: int):
        data = _payload()
        raw_time = (data.get("time") or "").strip()
        if not raw_time:
            return jsonify({"ok": False, "error": "validation_error", "message": "time is required"}), 400
        try:
            new_time = parse_iso_datetime(raw_time)
        except ValueError:
            return jsonify({"ok": False, "error": "validation_error", "message": "time must be ISO-8601"}), 400

        result = service.manual_correct(entry_id, new_time, data.get("field") or "")
        return jsonify(result_to_dict(result))

    @app.route("/api/timesheets", methods=["GET"], endpoint="api_entries_within")
    def api_entries_within():
        today = service.today()
        try:
            start = parse_iso_date(request.args.get("start") or (today - timedelta(days=today.weekday())).isoformat())
            end = parse_iso_date(request.args.get("end") or today.isoformat())
        except ValueError:
            return jsonify({"ok": False, "error": "validation_error", "message": "Dates must be YYYY-MM-DD"}), 400

        rows = service.entries_within(request.args.get("employee_id"), (start, end))
        return jsonify({"ok": True, "entries": [entry_to_dict(e) for e in rows]})

    @app.route("/api/timesheets/open", methods=["GET"], endpoint="api_open_entry")
    def api_open_entry():
        entry = service.get_open_entry(request.args.get("employee_id"))
        return jsonify({"ok": True, "entry": entry_to_dict(entry) if entry else None})

    @app.route("/api/timesheets/history", methods=["GET"], endpoint="api_history")
    def api_history():
        limit = request.args.get("limit", type=int) or DEFAULT_HISTORY_LIMIT
        rows = service.get_history_ui(request.args.get("employee_id"), limit=limit)
        return jsonify({"ok": True, "rows": rows})
