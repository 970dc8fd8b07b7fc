from io import BytesIO

from flask import Blueprint, jsonify, request, send_file
from werkzeug.exceptions import BadRequest

from .auth import current_actor
from .qr_utils import qr_png_bytes
from .serializers import job_dict, part_dict, scan_log_dict, step_dict, fmt_ts
from .services import assignment, dashboard, jobs, scanning, tailors, workflow

api = Blueprint("api", __name__)


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("JSON object expected")
    return data


def _int_arg(name, default=None):
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise BadRequest(f"{name} must be an integer") from None


def _date_arg(name):
    return jobs.parse_dt(request.args.get(name), name)


# -------------------------------------------------------------------
# Jobs
# -------------------------------------------------------------------
@api.post("/alterations")
def create_job():
    job = jobs.create_job(_json_body())
    return jsonify(job_dict(job)), 201


@api.get("/alterations")
def list_jobs():
    rows, pagination = jobs.list_jobs(
        status=request.args.get("status"),
        part_status=request.args.get("partStatus"),
        customer_id=_int_arg("customerId"),
        party_id=_int_arg("partyId"),
        party_member_id=_int_arg("partyMemberId"),
        tailor_id=_int_arg("tailorId"),
        search=(request.args.get("search") or "").strip() or None,
        page=_int_arg("page", 1),
        limit=_int_arg("limit", 50),
    )
    return jsonify({"jobs": [job_dict(j) for j in rows], "pagination": pagination})


@api.get("/alterations/<int:job_id>")
def get_job(job_id):
    return jsonify(job_dict(jobs.get_job(job_id), with_scans=True))


@api.put("/alterations/<int:job_id>")
def update_job(job_id):
    return jsonify(job_dict(jobs.update_job(job_id, _json_body())))


@api.delete("/alterations/<int:job_id>")
def delete_job(job_id):
    jobs.delete_job(job_id)
    return jsonify({"success": True, "message": "Alteration job deleted successfully"})


@api.get("/alterations/<int:job_id>/ticket")
def job_ticket(job_id):
    return jsonify({"success": True, "ticketData": jobs.job_ticket(job_id)})


@api.get("/alterations/<int:job_id>/qr.png")
def job_qr(job_id):
    job = jobs.get_job(job_id)
    return send_file(BytesIO(qr_png_bytes(job.qr_code)), mimetype="image/png",
                     download_name=f"job_{job.job_number}.png")


@api.get("/alterations/parts/<int:part_id>/qr.png")
def part_qr(part_id):
    part = jobs.get_part(part_id)
    return send_file(BytesIO(qr_png_bytes(part.qr_code)), mimetype="image/png",
                     download_name=f"part_{part.id}.png")


# -------------------------------------------------------------------
# Scanning
# -------------------------------------------------------------------
@api.post("/alterations/scan/<path:qr_code>")
def scan(qr_code):
    actor = current_actor()
    data = _json_body()
    out = scanning.process_scan(
        qr_code,
        data.get("scanType"),
        actor,
        location=data.get("location"),
        notes=data.get("notes"),
    )
    return jsonify({
        "success": True,
        "result": out["result"],
        "changed": out["changed"],
        "part": part_dict(out["part"], with_job=True),
        "scanType": out["scan_type"].value,
        "timestamp": fmt_ts(out["timestamp"]),
    })


@api.get("/alterations/scan-logs")
def scan_logs():
    rows = scanning.list_scan_logs(
        qr_code=(request.args.get("qrCode") or "").strip() or None,
        part_id=_int_arg("partId"),
        user_id=_int_arg("userId"),
        limit=_int_arg("limit"),
    )
    return jsonify([scan_log_dict(r, with_part=True) for r in rows])


# -------------------------------------------------------------------
# Workflow steps
# -------------------------------------------------------------------
@api.put("/alterations/<int:job_id>/workflow/<int:step_id>")
def update_workflow_step(job_id, step_id):
    data = _json_body()
    step = workflow.update_workflow_step(
        job_id,
        step_id,
        completed=data.get("completed", False),
        notes=data.get("notes"),
        actor=current_actor(),
    )
    return jsonify(step_dict(step))


# -------------------------------------------------------------------
# Tailor assignment
# -------------------------------------------------------------------
@api.post("/alterations/<int:job_id>/auto-assign")
def auto_assign(job_id):
    data = _json_body()
    manual = data.get("assignments")
    actor = current_actor()
    if manual is not None and not isinstance(manual, list):
        raise BadRequest("assignments must be a list")
    if manual:
        result = assignment.apply_manual_assignments(job_id, manual, actor=actor)
    else:
        result = assignment.auto_assign_job(job_id, force=bool(data.get("force")), actor=actor)
    return jsonify({"success": True, "assignments": result})


@api.put("/alterations/parts/<int:part_id>/assign")
def assign_part(part_id):
    data = _json_body()
    tailor_id = data.get("tailorId")
    if not isinstance(tailor_id, int):
        raise BadRequest("tailorId is required")
    part = assignment.assign_part(part_id, tailor_id, reason=data.get("reason"), actor=current_actor())
    return jsonify({"success": True, "part": part_dict(part), "message": "Tailor assigned successfully"})


@api.get("/tailors/available")
def available_tailors():
    task_type_id = _int_arg("taskTypeId")
    if task_type_id is None:
        raise BadRequest("taskTypeId is required")
    start = _date_arg("start")
    candidates = tailors.available_tailors(task_type_id, start, duration=_int_arg("duration"))
    return jsonify({"success": True, "candidates": candidates})


# -------------------------------------------------------------------
# Dashboard
# -------------------------------------------------------------------
@api.get("/alterations/dashboard")
def dashboard_stats():
    stats = dashboard.dashboard_stats(
        tailor_id=_int_arg("tailorId"),
        date_from=_date_arg("dateFrom"),
        date_to=_date_arg("dateTo"),
    )
    stats["recentActivity"] = [scan_log_dict(s, with_part=True) for s in stats["recentActivity"]]
    return jsonify(stats)


# -------------------------------------------------------------------
# Admin uploads
# -------------------------------------------------------------------
def _uploaded_table():
    if "file" not in request.files:
        raise BadRequest("No file")
    return tailors.read_table(request.files["file"])


@api.post("/admin/upload_abilities")
def upload_abilities():
    summary = tailors.import_abilities(_uploaded_table())
    return jsonify({"success": True, **summary})


@api.post("/admin/upload_schedules")
def upload_schedules():
    summary = tailors.import_schedules(_uploaded_table())
    return jsonify({"success": True, **summary})
