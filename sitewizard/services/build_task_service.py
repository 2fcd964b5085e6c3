"""Build task service — per-intake, per-type task records.

upsert_task() is keyed by (website_intake_id, task_type). The unique
constraint on build_tasks makes it safe under concurrent admin calls: the
insert runs inside a SAVEPOINT, and if another request inserted the same
pair first the IntegrityError is absorbed and the winner's row updated.

completed_date follows status: stamped when a task becomes "completed",
cleared when it moves to any other status.

Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from sitewizard import repositories
from sitewizard.decorators import ADMIN, authorize
from sitewizard.errors import ValidationError
from sitewizard.extensions import db
from sitewizard.models.build_task import BuildTask
from sitewizard.services.audit_service import log_event

logger = logging.getLogger(__name__)

# Columns a caller may set through upsert_task / update_task.
UPDATABLE_FIELDS = ["status", "assigned_to", "staging_url", "completed_date", "priority"]


def _default_priority(task_type):
    return "high" if task_type == "deploy_live" else "medium"


def _normalize_fields(fields):
    """Validate ``fields`` and derive completed_date from status."""
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown build task field(s): {', '.join(sorted(unknown))}"
        )

    fields = dict(fields)
    status = fields.get("status")
    if status is not None:
        if status not in BuildTask.STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. "
                f"Must be one of: {', '.join(BuildTask.STATUSES)}"
            )
        if status == "completed":
            fields.setdefault("completed_date", datetime.now(timezone.utc))
        else:
            fields["completed_date"] = None

    priority = fields.get("priority")
    if priority is not None and priority not in BuildTask.PRIORITIES:
        raise ValidationError(
            f"Invalid priority '{priority}'. "
            f"Must be one of: {', '.join(BuildTask.PRIORITIES)}"
        )
    return fields


def _validate_task_type(task_type):
    if task_type not in BuildTask.TASK_TYPES:
        raise ValidationError(
            f"Invalid task type '{task_type}'. "
            f"Must be one of: {', '.join(BuildTask.TASK_TYPES)}"
        )


def upsert_task(intake_id, task_type, **fields):
    """Create or update the task for (intake_id, task_type).

    Args:
        intake_id: WebsiteIntake UUID string.
        task_type: One of BuildTask.TASK_TYPES.
        **fields: Any of UPDATABLE_FIELDS.

    Returns:
        The BuildTask (new or updated).

    Raises:
        ValidationError: Unknown task type, field or status.
    """
    _validate_task_type(task_type)
    fields = _normalize_fields(fields)

    task = repositories.find_build_task(intake_id, task_type)
    if task is None:
        new_fields = dict(fields)
        new_fields.setdefault("priority", _default_priority(task_type))
        try:
            with db.session.begin_nested():
                task = BuildTask(
                    website_intake_id=intake_id,
                    task_type=task_type,
                    task_name=BuildTask.TASK_NAMES[task_type],
                    **new_fields,
                )
                db.session.add(task)
            logger.info(f"Created build task {task_type} for intake {intake_id}")
            return task
        except IntegrityError:
            # Lost the insert race; fall through and update the winner's row.
            logger.info(f"Build task {task_type} for intake {intake_id} created concurrently")
            task = repositories.find_build_task(intake_id, task_type)
            if task is None:
                raise

    for key, value in fields.items():
        setattr(task, key, value)
    task.updated_at = datetime.now(timezone.utc)
    db.session.flush()
    return task


def create_task(intake_id, task_type, identity, assigned_to=None):
    """Admin adds a pending task of ``task_type`` to an intake.

    Raises:
        ValidationError: Unknown type, or the intake already has this task.
        NotFoundError: No such intake.
    """
    authorize(identity, ADMIN)
    if not intake_id or not task_type:
        raise ValidationError("intake_id and task_type are required")
    _validate_task_type(task_type)

    intake = repositories.get_intake(intake_id)
    if repositories.find_build_task(intake.id, task_type) is not None:
        raise ValidationError(
            f"Task '{task_type}' already exists for this website"
        )

    task = upsert_task(
        intake.id, task_type, status="pending", assigned_to=assigned_to
    )
    log_event(
        "build_task.created",
        actor=identity,
        intake_id=intake.id,
        task_id=task.id,
        task_type=task_type,
    )
    return task


def update_task_status(task_id, new_status, identity):
    """Admin moves a task to any of BuildTask.STATUSES."""
    authorize(identity, ADMIN)
    if not task_id or not new_status:
        raise ValidationError("task_id and status are required")

    task = repositories.get_build_task(task_id)
    old_status = task.status
    task = upsert_task(task.website_intake_id, task.task_type, status=new_status)

    log_event(
        "build_task.status_changed",
        actor=identity,
        task_id=task.id,
        old_status=old_status,
        new_status=new_status,
    )
    return task


def list_tasks(intake_id, identity):
    authorize(identity, ADMIN)
    intake = repositories.get_intake(intake_id)
    return repositories.list_build_tasks(intake.id)
