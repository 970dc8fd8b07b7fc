"""Read-only rollups for the workroom dashboard."""

from flask import current_app

from .. import db
from ..models import (
    DONE_STATUSES,
    AlterationJob,
    AlterationJobPart,
    AlterationStatus,
    QRScanLog,
    utcnow,
)


def _job_filters(tailor_id=None, date_from=None, date_to=None):
    conds = []
    if tailor_id is not None:
        conds.append(
            AlterationJob.parts.any(AlterationJobPart.assigned_tailor_id == tailor_id)
        )
    if date_from is not None:
        conds.append(AlterationJob.created_at >= date_from)
    if date_to is not None:
        conds.append(AlterationJob.created_at <= date_to)
    return conds


def _count(*conds):
    q = db.select(db.func.count(AlterationJob.id))
    if conds:
        q = q.where(*conds)
    return db.session.execute(q).scalar_one()


def parts_by_status(tailor_id=None):
    q = db.select(AlterationJobPart.status, db.func.count(AlterationJobPart.id)).group_by(
        AlterationJobPart.status
    )
    if tailor_id is not None:
        q = q.where(AlterationJobPart.assigned_tailor_id == tailor_id)
    out = {s.value: 0 for s in AlterationStatus}
    for status, n in db.session.execute(q).all():
        out[status.value] = n
    return out


def recent_activity(limit=None):
    limit = limit or current_app.config["DASHBOARD_RECENT_ACTIVITY"]
    return db.session.execute(
        db.select(QRScanLog).order_by(QRScanLog.timestamp.desc(), QRScanLog.id.desc()).limit(limit)
    ).scalars().all()


def dashboard_stats(tailor_id=None, date_from=None, date_to=None, now=None):
    now = now or utcnow()
    base = _job_filters(tailor_id, date_from, date_to)
    summary = {
        "totalJobs": _count(*base),
        "inProgressJobs": _count(*base, AlterationJob.status == AlterationStatus.IN_PROGRESS),
        "completedJobs": _count(*base, AlterationJob.status == AlterationStatus.COMPLETE),
        "pickedUpJobs": _count(*base, AlterationJob.status == AlterationStatus.PICKED_UP),
        "overdueJobs": _count(
            *base,
            AlterationJob.due_date < now,
            AlterationJob.status.not_in(DONE_STATUSES),
        ),
    }
    return {
        "summary": summary,
        "partsByStatus": parts_by_status(tailor_id),
        "recentActivity": recent_activity(),
    }
