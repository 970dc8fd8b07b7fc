"""Database models for the alterations workroom.

A job (``AlterationJob``) is split into garment parts, each part carries its
own QR code and a list of alteration tasks.  Scans of a part's code are kept
in ``QRScanLog`` and drive the part status; the job status is derived from its
parts.  Tailor skills (``TailorAbility``) and shift windows
(``TailorSchedule``) are read by the auto-assignment engine.
"""

import enum
from datetime import datetime, timezone

from . import db


def utcnow():
    # naive UTC; SQLite drops tzinfo on the way back anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AlterationStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"
    PICKED_UP = "PICKED_UP"


DONE_STATUSES = (AlterationStatus.COMPLETE, AlterationStatus.PICKED_UP)
ACTIVE_STATUSES = (AlterationStatus.NOT_STARTED, AlterationStatus.IN_PROGRESS)


class ScanType(str, enum.Enum):
    START_WORK = "START_WORK"
    FINISH_WORK = "FINISH_WORK"
    PICKUP = "PICKUP"
    STATUS_CHECK = "STATUS_CHECK"


class PartPriority(str, enum.Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    RUSH = "RUSH"


class OrderStatus(str, enum.Enum):
    ALTERATION_ONLY = "ALTERATION_ONLY"
    IN_STOCK = "IN_STOCK"
    ORDERED = "ORDERED"


class PartType(str, enum.Enum):
    JACKET = "JACKET"
    PANTS = "PANTS"
    VEST = "VEST"
    SHIRT = "SHIRT"
    DRESS = "DRESS"
    SKIRT = "SKIRT"
    OTHER = "OTHER"


class TaskKind(str, enum.Enum):
    ALTERATION = "ALTERATION"
    BUTTON_WORK = "BUTTON_WORK"
    MEASUREMENT = "MEASUREMENT"
    CUSTOM = "CUSTOM"


class WorkflowStepType(str, enum.Enum):
    MEASURED = "MEASURED"
    SUIT_ORDERED = "SUIT_ORDERED"
    SUIT_ARRIVED = "SUIT_ARRIVED"
    ALTERATIONS_MARKED = "ALTERATIONS_MARKED"
    COMPLETE = "COMPLETE"
    QC_CHECKED = "QC_CHECKED"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    PICKED_UP = "PICKED_UP"


class User(db.Model):
    """A member of staff.  Tailors are users with ``role == "tailor"``."""

    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True)
    role = db.Column(db.String(30), nullable=False, default="staff")
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    abilities = db.relationship("TailorAbility", back_populates="tailor", lazy=True)
    schedules = db.relationship("TailorSchedule", back_populates="tailor", lazy=True)


class Customer(db.Model):
    __tablename__ = "customers"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(50))
    email = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=utcnow)


class Party(db.Model):
    """A wedding party; ``event_date`` caps the due date of its jobs."""

    __tablename__ = "parties"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    event_date = db.Column(db.DateTime)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"))
    created_at = db.Column(db.DateTime, default=utcnow)

    customer = db.relationship("Customer", lazy="joined")
    members = db.relationship("PartyMember", back_populates="party", lazy=True)


class PartyMember(db.Model):
    __tablename__ = "party_members"
    id = db.Column(db.Integer, primary_key=True)
    party_id = db.Column(db.Integer, db.ForeignKey("parties.id"), nullable=False)
    role = db.Column(db.String(100))
    notes = db.Column(db.Text)

    party = db.relationship("Party", back_populates="members")


class TaskType(db.Model):
    """A skill category; parts require one and tailors are rated against it."""

    __tablename__ = "alteration_task_types"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    default_duration = db.Column(db.Integer)  # minutes


class AlterationJob(db.Model):
    __tablename__ = "alteration_jobs"
    id = db.Column(db.Integer, primary_key=True)
    job_number = db.Column(db.String(50), unique=True, nullable=False, index=True)
    qr_code = db.Column(db.String(120), unique=True, nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"))
    party_id = db.Column(db.Integer, db.ForeignKey("parties.id"))
    party_member_id = db.Column(db.Integer, db.ForeignKey("party_members.id"))
    order_status = db.Column(
        db.Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.ALTERATION_ONLY,
    )
    status = db.Column(
        db.Enum(AlterationStatus, name="alteration_status"),
        nullable=False,
        default=AlterationStatus.NOT_STARTED,
        index=True,
    )
    notes = db.Column(db.Text)
    due_date = db.Column(db.DateTime)
    rush_order = db.Column(db.Boolean, nullable=False, default=False)
    received_date = db.Column(db.DateTime, default=utcnow)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    customer = db.relationship("Customer")
    party = db.relationship("Party")
    party_member = db.relationship("PartyMember")
    parts = db.relationship(
        "AlterationJobPart",
        back_populates="job",
        order_by="AlterationJobPart.id",
        cascade="all, delete-orphan",
    )
    workflow_steps = db.relationship(
        "AlterationWorkflowStep",
        back_populates="job",
        order_by="AlterationWorkflowStep.sort_order",
        cascade="all, delete-orphan",
    )


class AlterationJobPart(db.Model):
    """One garment component of a job, tracked by its own QR code."""

    __tablename__ = "alteration_job_parts"
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey("alteration_jobs.id"), nullable=False, index=True)
    part_name = db.Column(db.String(120), nullable=False)
    part_type = db.Column(db.Enum(PartType, name="part_type"), nullable=False, default=PartType.OTHER)
    qr_code = db.Column(db.String(120), unique=True, nullable=False, index=True)
    priority = db.Column(
        db.Enum(PartPriority, name="part_priority"), nullable=False, default=PartPriority.NORMAL
    )
    status = db.Column(
        db.Enum(AlterationStatus, name="alteration_status"),
        nullable=False,
        default=AlterationStatus.NOT_STARTED,
        index=True,
    )
    task_type_id = db.Column(db.Integer, db.ForeignKey("alteration_task_types.id"))
    duration = db.Column(db.Integer)  # estimated minutes
    scheduled_time = db.Column(db.DateTime, index=True)
    assigned_tailor_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    job = db.relationship("AlterationJob", back_populates="parts")
    task_type = db.relationship("TaskType")
    assigned_tailor = db.relationship("User")
    tasks = db.relationship(
        "AlterationTask",
        back_populates="part",
        order_by="AlterationTask.id",
        cascade="all, delete-orphan",
    )
    scan_logs = db.relationship(
        "QRScanLog",
        back_populates="part",
        order_by="QRScanLog.timestamp.desc()",
        cascade="all, delete-orphan",
    )


class AlterationTask(db.Model):
    """Checklist item on a part; informational only, it has no state machine."""

    __tablename__ = "alteration_tasks"
    id = db.Column(db.Integer, primary_key=True)
    part_id = db.Column(db.Integer, db.ForeignKey("alteration_job_parts.id"), nullable=False, index=True)
    task_name = db.Column(db.String(200), nullable=False)
    task_type = db.Column(db.Enum(TaskKind, name="task_kind"), nullable=False, default=TaskKind.ALTERATION)
    measurements = db.Column(db.Text)
    notes = db.Column(db.Text)
    assigned_user_id = db.Column(db.Integer, db.ForeignKey("users.id"))

    part = db.relationship("AlterationJobPart", back_populates="tasks")
    assigned_user = db.relationship("User")


class AlterationWorkflowStep(db.Model):
    __tablename__ = "alteration_workflow_steps"
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey("alteration_jobs.id"), nullable=False, index=True)
    step_name = db.Column(db.String(120), nullable=False)
    step_type = db.Column(db.Enum(WorkflowStepType, name="workflow_step_type"), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime)
    completed_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    notes = db.Column(db.Text)

    job = db.relationship("AlterationJob", back_populates="workflow_steps")
    completed_by_user = db.relationship("User")


class QRScanLog(db.Model):
    """Append-only record of a scan.  Rows are never updated or deleted."""

    __tablename__ = "qr_scan_logs"
    id = db.Column(db.Integer, primary_key=True)
    qr_code = db.Column(db.String(120), nullable=False, index=True)
    part_id = db.Column(db.Integer, db.ForeignKey("alteration_job_parts.id"), nullable=False, index=True)
    scanned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    scan_type = db.Column(db.Enum(ScanType, name="scan_type"), nullable=False)
    location = db.Column(db.String(255))
    result = db.Column(db.String(255), nullable=False)
    notes = db.Column(db.Text)
    timestamp = db.Column(db.DateTime, default=utcnow, index=True, nullable=False)

    part = db.relationship("AlterationJobPart", back_populates="scan_logs")
    user = db.relationship("User")


class TailorAbility(db.Model):
    __tablename__ = "tailor_abilities"
    __table_args__ = (db.UniqueConstraint("tailor_id", "task_type_id"),)
    id = db.Column(db.Integer, primary_key=True)
    tailor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    task_type_id = db.Column(db.Integer, db.ForeignKey("alteration_task_types.id"), nullable=False)
    proficiency = db.Column(db.Integer, nullable=False, default=1)

    tailor = db.relationship("User", back_populates="abilities")
    task_type = db.relationship("TaskType")


class TailorSchedule(db.Model):
    """A shift window.  ``day_of_week`` follows ``date.weekday()`` (Monday is 0)."""

    __tablename__ = "tailor_schedules"
    id = db.Column(db.Integer, primary_key=True)
    tailor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    tailor = db.relationship("User", back_populates="schedules")


class AssignmentLog(db.Model):
    __tablename__ = "assignment_logs"
    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.Integer, db.ForeignKey("alteration_jobs.id", ondelete="CASCADE"), index=True)
    part_id = db.Column(db.Integer, db.ForeignKey("alteration_job_parts.id", ondelete="CASCADE"), index=True)
    old_tailor_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    new_tailor_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    method = db.Column(db.String(20), nullable=False)  # auto/manual
    reason = db.Column(db.String(255))
    timestamp = db.Column(db.DateTime, default=utcnow)
