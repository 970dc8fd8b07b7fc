"""Job-level milestone checklist.

Steps are built from a fixed template when a job is created and are ticked off
independently of part scans.  Completion order is not enforced.
"""

from werkzeug.exceptions import NotFound

from .. import db
from ..models import (
    AlterationJob,
    AlterationWorkflowStep,
    OrderStatus,
    WorkflowStepType,
    utcnow,
)

DEFAULT_WORKFLOW_STEPS = (
    ("Measured", WorkflowStepType.MEASURED, 1),
    ("Suit Ordered", WorkflowStepType.SUIT_ORDERED, 2),
    ("Suit Arrived", WorkflowStepType.SUIT_ARRIVED, 3),
    ("Alterations Marked", WorkflowStepType.ALTERATIONS_MARKED, 4),
    ("Complete", WorkflowStepType.COMPLETE, 5),
    ("QC Checked", WorkflowStepType.QC_CHECKED, 6),
    ("Ready for Pickup", WorkflowStepType.READY_FOR_PICKUP, 7),
    ("Picked Up", WorkflowStepType.PICKED_UP, 8),
)


def build_workflow_steps(order_status, template=DEFAULT_WORKFLOW_STEPS):
    """Return unsaved step rows for a new job.

    For alteration-only orders the garment is already the customer's, so
    "Measured" starts out complete.
    """

    pre_measured = order_status == OrderStatus.ALTERATION_ONLY
    now = utcnow()
    steps = []
    for name, step_type, sort_order in template:
        done = pre_measured and step_type == WorkflowStepType.MEASURED
        steps.append(
            AlterationWorkflowStep(
                step_name=name,
                step_type=step_type,
                sort_order=sort_order,
                completed=done,
                completed_at=now if done else None,
            )
        )
    return steps


def update_workflow_step(job_id, step_id, completed, notes=None, actor=None):
    job = db.session.get(AlterationJob, job_id)
    if job is None:
        raise NotFound("Alteration job not found")
    step = db.session.get(AlterationWorkflowStep, step_id)
    if step is None or step.job_id != job.id:
        raise NotFound("Workflow step not found")

    completed = bool(completed)
    step.completed = completed
    step.completed_at = utcnow() if completed else None
    step.completed_by = actor.id if (completed and actor is not None) else None
    if notes is not None:
        step.notes = notes
    db.session.commit()
    return step
