"""Audit log helper. Flushes, never commits."""

from sitewizard.extensions import db
from sitewizard.models.audit import AuditEvent


def log_event(action, actor=None, **metadata):
    """Record an AuditEvent.

    Args:
        action: Dotted action name, e.g. "intake.approved".
        actor: Identity of the caller, or None for system-initiated events
               (webhooks, CLI).
        **metadata: Extra context stored as JSON.
    """
    event = AuditEvent(
        actor_user_id=actor.user_id if actor is not None else None,
        action=action,
        metadata_=metadata,
    )
    db.session.add(event)
    db.session.flush()
    return event
