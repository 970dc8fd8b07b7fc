"""Plain-dict renderings of the models for JSON responses."""


def fmt_ts(v):
    return v.isoformat() if v else None


def _enum(v):
    return v.value if v is not None else None


def user_dict(u):
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email, "role": u.role}


def customer_dict(c):
    if c is None:
        return None
    return {"id": c.id, "name": c.name, "phone": c.phone, "email": c.email}


def party_dict(p):
    if p is None:
        return None
    return {
        "id": p.id,
        "name": p.name,
        "event_date": fmt_ts(p.event_date),
        "customer": customer_dict(p.customer),
    }


def party_member_dict(m):
    if m is None:
        return None
    return {"id": m.id, "party_id": m.party_id, "role": m.role, "notes": m.notes}


def task_dict(t):
    return {
        "id": t.id,
        "part_id": t.part_id,
        "task_name": t.task_name,
        "task_type": _enum(t.task_type),
        "measurements": t.measurements,
        "notes": t.notes,
        "assigned_user": user_dict(t.assigned_user),
    }


def step_dict(s):
    return {
        "id": s.id,
        "job_id": s.job_id,
        "step_name": s.step_name,
        "step_type": _enum(s.step_type),
        "sort_order": s.sort_order,
        "completed": s.completed,
        "completed_at": fmt_ts(s.completed_at),
        "completed_by": user_dict(s.completed_by_user),
        "notes": s.notes,
    }


def job_summary_dict(j):
    return {
        "id": j.id,
        "job_number": j.job_number,
        "qr_code": j.qr_code,
        "status": _enum(j.status),
        "order_status": _enum(j.order_status),
        "due_date": fmt_ts(j.due_date),
        "rush_order": j.rush_order,
        "received_date": fmt_ts(j.received_date),
        "notes": j.notes,
        "customer": customer_dict(j.customer),
        "party": party_dict(j.party),
        "party_member": party_member_dict(j.party_member),
        "created_at": fmt_ts(j.created_at),
    }


def part_dict(p, with_job=False, with_scans=False):
    out = {
        "id": p.id,
        "job_id": p.job_id,
        "part_name": p.part_name,
        "part_type": _enum(p.part_type),
        "qr_code": p.qr_code,
        "priority": _enum(p.priority),
        "status": _enum(p.status),
        "task_type_id": p.task_type_id,
        "duration": p.duration,
        "scheduled_time": fmt_ts(p.scheduled_time),
        "assigned_tailor_id": p.assigned_tailor_id,
        "assigned_tailor": user_dict(p.assigned_tailor),
        "notes": p.notes,
        "tasks": [task_dict(t) for t in p.tasks],
    }
    if with_job:
        out["job"] = job_summary_dict(p.job)
    if with_scans:
        out["scan_logs"] = [scan_log_dict(s) for s in p.scan_logs]
    return out


def job_dict(j, with_scans=False):
    out = job_summary_dict(j)
    out["parts"] = [part_dict(p, with_scans=with_scans) for p in j.parts]
    out["workflow_steps"] = [step_dict(s) for s in j.workflow_steps]
    return out


def scan_log_dict(s, with_part=False):
    out = {
        "id": s.id,
        "qr_code": s.qr_code,
        "part_id": s.part_id,
        "scan_type": _enum(s.scan_type),
        "location": s.location,
        "result": s.result,
        "notes": s.notes,
        "timestamp": fmt_ts(s.timestamp),
        "user": user_dict(s.user),
    }
    if with_part:
        part = s.part
        out["part"] = {
            "id": part.id,
            "part_name": part.part_name,
            "status": _enum(part.status),
            "job": job_summary_dict(part.job),
        }
    return out
