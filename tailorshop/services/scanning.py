"""QR scan protocol for garment parts.

A scan pairs a part's QR code with a declared intent.  Each intent is only
valid from one part status; anything else is logged with a descriptive result
and leaves the part untouched:

    NOT_STARTED --START_WORK--> IN_PROGRESS --FINISH_WORK--> COMPLETE --PICKUP--> PICKED_UP

``STATUS_CHECK`` never changes state.  After every scan that moves a part the
job status is recomputed from all of its parts as they currently are in the
database; it only ever moves forward.
"""

from flask import current_app
from werkzeug.exceptions import BadRequest, NotFound, Unauthorized

from .. import db
from ..models import (
    AlterationJob,
    AlterationJobPart,
    AlterationStatus,
    QRScanLog,
    ScanType,
    utcnow,
)

RESULT_OK = "Success"

# scan type -> (required status, new status, result when the part is elsewhere)
TRANSITIONS = {
    ScanType.START_WORK: (
        AlterationStatus.NOT_STARTED,
        AlterationStatus.IN_PROGRESS,
        "Work already started",
    ),
    ScanType.FINISH_WORK: (
        AlterationStatus.IN_PROGRESS,
        AlterationStatus.COMPLETE,
        "Work not in progress",
    ),
    ScanType.PICKUP: (
        AlterationStatus.COMPLETE,
        AlterationStatus.PICKED_UP,
        "Part not ready for pickup",
    ),
    ScanType.STATUS_CHECK: None,
}


def parse_scan_type(raw) -> ScanType:
    try:
        return ScanType(str(raw or "").strip().upper())
    except ValueError:
        raise BadRequest("Invalid scan type") from None


STATUS_RANK = {s: i for i, s in enumerate(AlterationStatus)}


def derive_job_status(statuses, current=AlterationStatus.NOT_STARTED):
    """Job status implied by its parts' statuses.

    All picked up -> PICKED_UP; all complete or picked up -> COMPLETE; any part
    past NOT_STARTED -> IN_PROGRESS.  The job never moves backwards, and with
    no parts the current value stands.
    """

    statuses = list(statuses)
    if not statuses:
        return current
    if all(s == AlterationStatus.PICKED_UP for s in statuses):
        derived = AlterationStatus.PICKED_UP
    elif all(s in (AlterationStatus.COMPLETE, AlterationStatus.PICKED_UP) for s in statuses):
        derived = AlterationStatus.COMPLETE
    elif any(s != AlterationStatus.NOT_STARTED for s in statuses):
        derived = AlterationStatus.IN_PROGRESS
    else:
        derived = AlterationStatus.NOT_STARTED
    return max(derived, current, key=STATUS_RANK.__getitem__)


def refresh_job_status(job_id):
    """Recompute and store the job status from a fresh read of all its parts."""

    statuses = db.session.execute(
        db.select(AlterationJobPart.status).where(AlterationJobPart.job_id == job_id)
    ).scalars().all()
    job = db.session.get(AlterationJob, job_id)
    new_status = derive_job_status(statuses, job.status)
    if job.status != new_status:
        current_app.logger.info(
            "job %s status %s -> %s", job.job_number, job.status.value, new_status.value
        )
        job.status = new_status
    return job.status


def apply_scan(part, scan_type, actor):
    """Move ``part`` for ``scan_type`` if allowed; return (changed, result)."""

    rule = TRANSITIONS[scan_type]
    if rule is None:
        return False, RESULT_OK
    required, target, refusal = rule
    if part.status != required:
        return False, refusal
    part.status = target
    if scan_type == ScanType.START_WORK and part.assigned_tailor_id is None:
        part.assigned_tailor_id = actor.id
    return True, RESULT_OK


def process_scan(qr_code, raw_scan_type, actor, location=None, notes=None):
    if actor is None:
        raise Unauthorized("User authentication required")
    scan_type = parse_scan_type(raw_scan_type)
    qr_code = (qr_code or "").strip()

    part = db.session.execute(
        db.select(AlterationJobPart).where(AlterationJobPart.qr_code == qr_code)
    ).scalar_one_or_none()
    if part is None:
        raise NotFound("Invalid QR code")

    changed, result = apply_scan(part, scan_type, actor)
    db.session.add(
        QRScanLog(
            qr_code=qr_code,
            part_id=part.id,
            scanned_by=actor.id,
            scan_type=scan_type,
            location=location,
            result=result,
            notes=notes,
            timestamp=utcnow(),
        )
    )
    if changed:
        db.session.flush()
        refresh_job_status(part.job_id)
    db.session.commit()

    current_app.logger.info(
        "scan %s on part %s by user %s: %s", scan_type.value, part.id, actor.id, result
    )
    return {
        "part": part,
        "changed": changed,
        "result": result,
        "scan_type": scan_type,
        "timestamp": utcnow(),
    }


def list_scan_logs(qr_code=None, part_id=None, user_id=None, limit=None):
    cfg = current_app.config
    if limit is None:
        limit = cfg["SCAN_LOG_DEFAULT_LIMIT"]
    limit = max(1, min(int(limit), cfg["SCAN_LOG_MAX_LIMIT"]))

    q = db.select(QRScanLog)
    if qr_code:
        q = q.where(QRScanLog.qr_code == qr_code)
    if part_id is not None:
        q = q.where(QRScanLog.part_id == part_id)
    if user_id is not None:
        q = q.where(QRScanLog.scanned_by == user_id)
    q = q.order_by(QRScanLog.timestamp.desc(), QRScanLog.id.desc()).limit(limit)
    return db.session.execute(q).scalars().all()
