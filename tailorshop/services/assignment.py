"""Tailor auto-assignment.

For every part of a job the engine looks up tailors rated at least
``ALTERATIONS_QUALIFIED_PROFICIENCY`` for the part's task type, drops those
whose shift does not cover the proposed work interval or whose same-day
workload would pass ``ALTERATIONS_MAX_DAILY_MINUTES``, and picks the least
loaded (then most skilled) of the rest.  A tailor who just took the previous
part of the job is passed over when someone else is available.

Parts are walked in stored order because the "previous tailor" carries from
one part to the next.  All part updates are committed together at the end.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import BadRequest, NotFound

from .. import db
from ..models import (
    ACTIVE_STATUSES,
    AlterationJob,
    AlterationJobPart,
    AssignmentLog,
    TailorAbility,
    TailorSchedule,
    TaskType,
    User,
)

AVAILABLE = "Available"
OUT_OF_SCHEDULE = "Out of schedule"
MAX_WORKLOAD = "Max workload reached"
NO_TAILOR = "No available tailor"
ALREADY_ASSIGNED = "Already assigned"
LOOKUP_FAILED = "Assignment lookup failed"


@dataclass
class Candidate:
    tailor: User
    proficiency: int
    reason: str
    workload: int | None = None

    def as_dict(self):
        return {
            "tailorId": self.tailor.id,
            "name": self.tailor.name,
            "workload": self.workload,
            "proficiency": self.proficiency,
            "reason": self.reason,
        }


def _cfg(key):
    return current_app.config[key]


def shop_now() -> datetime:
    """Local wall-clock time, the clock shift windows are written in."""

    return datetime.now()


def day_bounds(moment: datetime):
    start = datetime.combine(moment.date(), datetime.min.time())
    return start, start + timedelta(days=1)


def is_within_schedule(schedule, start: datetime, duration: int) -> bool:
    """True when [start, start + duration] sits inside the shift on that date."""

    if schedule is None:
        return False
    shift_start = datetime.combine(start.date(), schedule.start_time)
    shift_end = datetime.combine(start.date(), schedule.end_time)
    end = start + timedelta(minutes=duration)
    return start >= shift_start and end <= shift_end


def part_duration(part) -> int:
    task_type = db.session.get(TaskType, part.task_type_id) if part.task_type_id else None
    if task_type is not None and task_type.default_duration:
        return task_type.default_duration
    return _cfg("ALTERATIONS_DEFAULT_DURATION")


def tailor_workload(tailor_id, day: datetime, exclude_part_id=None) -> int:
    """Minutes of active work already scheduled for ``tailor_id`` on ``day``."""

    start, end = day_bounds(day)
    q = db.select(AlterationJobPart.duration).where(
        AlterationJobPart.assigned_tailor_id == tailor_id,
        AlterationJobPart.status.in_(ACTIVE_STATUSES),
        AlterationJobPart.scheduled_time >= start,
        AlterationJobPart.scheduled_time < end,
    )
    if exclude_part_id is not None:
        q = q.where(AlterationJobPart.id != exclude_part_id)
    default = _cfg("ALTERATIONS_DEFAULT_DURATION")
    return sum(d or default for d in db.session.execute(q).scalars())


def find_candidates(task_type_id, duration, start: datetime, exclude_part_id=None, pending=None):
    """Rate every qualified tailor for one part.

    Returns ``(available, excluded)``; ``available`` is sorted by ascending
    workload then descending proficiency.  ``pending`` maps
    ``(tailor_id, date)`` to minutes handed out earlier in the same run that
    are not yet in the database.
    """

    if task_type_id is None:
        return [], []
    pending = pending or {}
    abilities = db.session.execute(
        db.select(TailorAbility)
        .join(User, TailorAbility.tailor_id == User.id)
        .where(
            TailorAbility.task_type_id == task_type_id,
            TailorAbility.proficiency >= _cfg("ALTERATIONS_QUALIFIED_PROFICIENCY"),
            User.active.is_(True),
        )
        .order_by(TailorAbility.tailor_id)
    ).scalars().all()

    max_minutes = _cfg("ALTERATIONS_MAX_DAILY_MINUTES")
    day_of_week = start.weekday()
    available, excluded = [], []
    for ability in abilities:
        tailor = ability.tailor
        shifts = db.session.execute(
            db.select(TailorSchedule).where(
                TailorSchedule.tailor_id == tailor.id,
                TailorSchedule.day_of_week == day_of_week,
            )
        ).scalars().all()
        if not any(is_within_schedule(s, start, duration) for s in shifts):
            excluded.append(Candidate(tailor, ability.proficiency, OUT_OF_SCHEDULE))
            continue
        workload = tailor_workload(tailor.id, start, exclude_part_id)
        workload += pending.get((tailor.id, start.date()), 0)
        if workload + duration > max_minutes:
            excluded.append(Candidate(tailor, ability.proficiency, MAX_WORKLOAD, workload))
            continue
        available.append(Candidate(tailor, ability.proficiency, AVAILABLE, workload))

    available.sort(key=lambda c: (c.workload, -c.proficiency))
    return available, excluded


def choose(available, previous_tailor_id):
    if not available:
        return None
    for c in available:
        if c.tailor.id != previous_tailor_id:
            return c
    return available[0]


def _log_change(part, new_tailor_id, method, reason, actor=None):
    if part.assigned_tailor_id == new_tailor_id:
        return
    db.session.add(
        AssignmentLog(
            job_id=part.job_id,
            part_id=part.id,
            old_tailor_id=part.assigned_tailor_id,
            new_tailor_id=new_tailor_id,
            user_id=actor.id if actor is not None else None,
            method=method,
            reason=reason,
        )
    )


def _load_job(job_id):
    job = db.session.get(AlterationJob, job_id)
    if job is None:
        raise NotFound("Alteration job not found")
    return job


def auto_assign_job(job_id, force=False, now=None, actor=None):
    """Assign tailors to the parts of a job and return per-part details.

    Parts that already have a tailor are left alone unless ``force`` is set.
    A part nobody can take stays unassigned; that is reported, not raised.
    An unscheduled part that gets a tailor is scheduled at ``now`` so later
    runs count it toward that tailor's day.
    """

    job = _load_job(job_id)
    now = now or shop_now()
    pending = {}
    decisions = []
    details = []
    previous_tailor_id = None

    for part in job.parts:
        if part.assigned_tailor_id is not None and not force:
            previous_tailor_id = part.assigned_tailor_id
            details.append({
                "partId": part.id,
                "assignedTailorId": part.assigned_tailor_id,
                "duration": part.duration,
                "reason": ALREADY_ASSIGNED,
                "candidates": [],
            })
            continue

        start = part.scheduled_time or now
        try:
            with db.session.begin_nested():
                duration = part_duration(part)
                available, excluded = find_candidates(
                    part.task_type_id, duration, start, exclude_part_id=part.id, pending=pending
                )
        except SQLAlchemyError as e:
            current_app.logger.warning("auto-assign lookup failed for part %s: %s", part.id, e)
            previous_tailor_id = None
            details.append({
                "partId": part.id,
                "assignedTailorId": part.assigned_tailor_id,
                "duration": part.duration,
                "reason": LOOKUP_FAILED,
                "candidates": [],
            })
            continue

        chosen = choose(available, previous_tailor_id)
        if chosen is not None:
            tailor_id = chosen.tailor.id
            reason = f"Assigned (workload: {chosen.workload} min, proficiency: {chosen.proficiency})"
            key = (tailor_id, start.date())
            pending[key] = pending.get(key, 0) + duration
        else:
            tailor_id = None
            reason = NO_TAILOR
        previous_tailor_id = tailor_id

        decisions.append((part, tailor_id, duration, reason, start))
        details.append({
            "partId": part.id,
            "assignedTailorId": tailor_id,
            "duration": duration,
            "reason": reason,
            "candidates": [c.as_dict() for c in available + excluded],
        })

    for part, tailor_id, duration, reason, start in decisions:
        _log_change(part, tailor_id, "auto", reason, actor)
        part.assigned_tailor_id = tailor_id
        part.duration = duration
        if tailor_id is not None and part.scheduled_time is None:
            part.scheduled_time = start
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    assigned = sum(1 for d in decisions if d[1] is not None)
    current_app.logger.info(
        "auto-assign job %s: %d of %d parts assigned", job.job_number, assigned, len(decisions)
    )
    return details


def apply_manual_assignments(job_id, assignments, actor=None):
    """Apply ``[{partId, assignedTailorId}]`` verbatim, ``None`` unassigns."""

    job = _load_job(job_id)
    parts = {p.id: p for p in job.parts}
    planned = []
    for item in assignments:
        if not isinstance(item, dict) or "partId" not in item:
            raise BadRequest("Each assignment needs a partId")
        try:
            part_id = int(item["partId"])
        except (TypeError, ValueError):
            raise BadRequest("partId must be an integer") from None
        part = parts.get(part_id)
        if part is None:
            raise BadRequest(f"Part {part_id} does not belong to job {job.id}")
        tailor_id = item.get("assignedTailorId")
        if tailor_id is not None:
            try:
                tailor_id = int(tailor_id)
            except (TypeError, ValueError):
                raise BadRequest("assignedTailorId must be an integer or null") from None
            if db.session.get(User, tailor_id) is None:
                raise BadRequest(f"Unknown tailor {tailor_id}")
        planned.append((part, tailor_id))

    for part, tailor_id in planned:
        _log_change(part, tailor_id, "manual", "Manual override", actor)
        part.assigned_tailor_id = tailor_id
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    current_app.logger.info("manual assignment for job %s: %d parts", job.job_number, len(planned))
    return [{"partId": p.id, "assignedTailorId": t} for p, t in planned]


def assign_part(part_id, tailor_id, reason=None, actor=None):
    part = db.session.get(AlterationJobPart, part_id)
    if part is None:
        raise NotFound("Alteration job part not found")
    if tailor_id is None or db.session.get(User, tailor_id) is None:
        raise BadRequest("A valid tailorId is required")
    _log_change(part, tailor_id, "manual", reason or "Manual assignment", actor)
    part.assigned_tailor_id = tailor_id
    db.session.commit()
    return part
