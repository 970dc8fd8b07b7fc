"""Alteration job creation and lookups."""

import math
import random
import string
import time
from datetime import datetime, timezone

from flask import current_app
from werkzeug.exceptions import BadRequest, NotFound

from .. import db
from ..models import (
    AlterationJob,
    AlterationJobPart,
    AlterationStatus,
    AlterationTask,
    Customer,
    OrderStatus,
    Party,
    PartyMember,
    PartPriority,
    PartType,
    TaskKind,
    TaskType,
    utcnow,
)
from ..qr_utils import new_code
from .workflow import build_workflow_steps

PART_TYPE_BY_NAME = {
    "jacket": PartType.JACKET,
    "pants": PartType.PANTS,
    "vest": PartType.VEST,
    "shirt": PartType.SHIRT,
    "dress": PartType.DRESS,
    "skirt": PartType.SKIRT,
}


def generate_job_number() -> str:
    stamp = str(int(time.time() * 1000))[-8:]
    tail = "".join(random.choices(string.ascii_uppercase + string.digits, k=3))
    return f"{stamp}-{tail}"


def guess_part_type(part_name: str) -> PartType:
    return PART_TYPE_BY_NAME.get((part_name or "").strip().lower(), PartType.OTHER)


def parse_dt(value, field):
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise BadRequest(f"{field} must be an ISO 8601 date") from None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_enum(enum_cls, value, field, default):
    if value in (None, ""):
        return default
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise BadRequest(f"Invalid {field}: {value}") from None


def _get_or_404(model, obj_id, label):
    try:
        obj_id = int(obj_id)
    except (TypeError, ValueError):
        raise BadRequest(f"Invalid {label.lower()} id") from None
    obj = db.session.get(model, obj_id)
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


def get_job(job_id) -> AlterationJob:
    return _get_or_404(AlterationJob, job_id, "Alteration job")


def get_part(part_id) -> AlterationJobPart:
    return _get_or_404(AlterationJobPart, part_id, "Alteration job part")


def _check_due_date(due_date, party):
    if due_date and party is not None and party.event_date and due_date > party.event_date:
        raise BadRequest("Due date cannot be after the party/event date")


def _build_part(data):
    if not isinstance(data, dict):
        raise BadRequest("Each part must be an object")
    name = (data.get("partName") or "").strip()
    if not name:
        raise BadRequest("partName is required for every part")
    task_type_id = data.get("taskTypeId")
    if task_type_id is not None:
        task_type_id = _get_or_404(TaskType, task_type_id, "Task type").id
    part = AlterationJobPart(
        part_name=name,
        part_type=parse_enum(PartType, data.get("partType"), "partType", guess_part_type(name)),
        qr_code=new_code("PART"),
        priority=parse_enum(PartPriority, data.get("priority"), "priority", PartPriority.NORMAL),
        status=AlterationStatus.NOT_STARTED,
        task_type_id=task_type_id,
        duration=data.get("estimatedTime"),
        scheduled_time=parse_dt(data.get("scheduledTime"), "scheduledTime"),
        notes=data.get("notes"),
    )
    for t in data.get("tasks") or []:
        if not isinstance(t, dict):
            raise BadRequest("Each task must be an object")
        task_name = (t.get("taskName") or "").strip()
        if not task_name:
            continue
        part.tasks.append(
            AlterationTask(
                task_name=task_name,
                task_type=parse_enum(TaskKind, t.get("taskType"), "taskType", TaskKind.ALTERATION),
                measurements=t.get("measurements"),
                notes=t.get("notes"),
            )
        )
    return part


def create_job(data: dict) -> AlterationJob:
    customer_id = data.get("customerId")
    party_id = data.get("partyId")
    member_id = data.get("partyMemberId")
    if not (customer_id or party_id or member_id):
        raise BadRequest("Either customerId or partyId is required")
    parts = data.get("parts")
    if not isinstance(parts, list) or not parts:
        raise BadRequest("parts must be a non-empty list")

    customer = _get_or_404(Customer, customer_id, "Customer") if customer_id else None
    member = _get_or_404(PartyMember, member_id, "Party member") if member_id else None
    party = _get_or_404(Party, party_id, "Party") if party_id else (member.party if member else None)

    order_status = parse_enum(OrderStatus, data.get("orderStatus"), "orderStatus", OrderStatus.ALTERATION_ONLY)
    due_date = parse_dt(data.get("dueDate"), "dueDate")
    _check_due_date(due_date, party)

    job = AlterationJob(
        job_number=generate_job_number(),
        qr_code=new_code("JOB"),
        customer=customer,
        party=party,
        party_member=member,
        order_status=order_status,
        status=AlterationStatus.NOT_STARTED,
        notes=data.get("notes"),
        due_date=due_date,
        rush_order=bool(data.get("rushOrder", False)),
        received_date=utcnow(),
    )
    job.parts = [_build_part(p) for p in parts]
    job.workflow_steps = build_workflow_steps(order_status)
    db.session.add(job)
    db.session.commit()
    current_app.logger.info("created job %s with %d parts", job.job_number, len(job.parts))
    return job


def list_jobs(status=None, part_status=None, customer_id=None, party_id=None, party_member_id=None,
              tailor_id=None, search=None, page=1, limit=50):
    q = db.select(AlterationJob)
    if status:
        q = q.where(AlterationJob.status == parse_enum(AlterationStatus, status, "status", None))
    if part_status:
        wanted = parse_enum(AlterationStatus, part_status, "partStatus", None)
        q = q.where(AlterationJob.parts.any(AlterationJobPart.status == wanted))
    if customer_id:
        q = q.where(AlterationJob.customer_id == customer_id)
    if party_id:
        q = q.where(AlterationJob.party_id == party_id)
    if party_member_id:
        q = q.where(AlterationJob.party_member_id == party_member_id)
    if tailor_id:
        q = q.where(AlterationJob.parts.any(AlterationJobPart.assigned_tailor_id == tailor_id))
    if search:
        like = f"%{search.lower()}%"
        q = q.where(db.or_(
            db.func.lower(AlterationJob.job_number).like(like),
            db.func.lower(AlterationJob.notes).like(like),
            AlterationJob.customer.has(db.func.lower(Customer.name).like(like)),
            AlterationJob.party.has(db.func.lower(Party.name).like(like)),
        ))

    page = max(1, int(page))
    limit = max(1, min(int(limit), 200))
    total = db.session.execute(db.select(db.func.count()).select_from(q.subquery())).scalar_one()
    jobs = db.session.execute(
        q.order_by(AlterationJob.created_at.desc(), AlterationJob.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return jobs, {
        "total": total,
        "pages": math.ceil(total / limit),
        "current": page,
        "limit": limit,
    }


def update_job(job_id, data: dict) -> AlterationJob:
    job = get_job(job_id)
    if "dueDate" in data:
        due_date = parse_dt(data.get("dueDate"), "dueDate")
        _check_due_date(due_date, job.party)
        job.due_date = due_date
    if "notes" in data:
        job.notes = data.get("notes")
    if "rushOrder" in data:
        job.rush_order = bool(data.get("rushOrder"))
    if "orderStatus" in data:
        job.order_status = parse_enum(OrderStatus, data.get("orderStatus"), "orderStatus", job.order_status)
    db.session.commit()
    return job


def delete_job(job_id) -> None:
    job = get_job(job_id)
    db.session.delete(job)
    db.session.commit()
    current_app.logger.info("deleted job %s", job.job_number)


def job_ticket(job_id) -> dict:
    """Printable ticket data: who the job is for and each part's code."""

    job = get_job(job_id)
    party = job.party
    customer = job.customer or (party.customer if party else None)
    member = job.party_member
    return {
        "jobNumber": job.job_number,
        "qrCode": job.qr_code,
        "customerName": customer.name if customer else None,
        "customerPhone": customer.phone if customer else None,
        "partyName": party.name if party else None,
        "memberRole": member.role if member else "Customer",
        "memberNotes": member.notes if member else None,
        "eventDate": party.event_date.isoformat() if party and party.event_date else None,
        "dueDate": job.due_date.isoformat() if job.due_date else None,
        "rushOrder": job.rush_order,
        "parts": [
            {
                "partName": p.part_name,
                "qrCode": p.qr_code,
                "alterations": [t.task_name for t in p.tasks],
            }
            for p in job.parts
        ],
    }
