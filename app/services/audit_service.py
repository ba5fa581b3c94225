"""Audit trail helper.

Adds an AuditEvent to the current unit of work; it commits or rolls back
together with the change it describes.
"""

from app.extensions import db
from app.models.audit import AuditEvent


def record(action, actor_user_id=None, subject=None, **metadata):
    """Stage an audit event.

    Args:
        action: Dotted action name, e.g. "transaction.verified".
        actor_user_id: User performing the action (None for system).
        subject: The model instance the event is about, if any. Must already
            have its id (flushed).
        **metadata: JSON-serialisable context.

    Returns:
        The AuditEvent (flushed).
    """
    event = AuditEvent(
        action=action,
        actor_user_id=actor_user_id,
        subject_type=subject.__tablename__ if subject is not None else None,
        subject_id=subject.id if subject is not None else None,
        metadata_=metadata,
    )
    db.session.add(event)
    db.session.flush()
    return event


def history(subject):
    """Audit events for one subject, oldest first."""
    return (
        AuditEvent.query
        .filter_by(subject_type=subject.__tablename__, subject_id=subject.id)
        .order_by(AuditEvent.created_at, AuditEvent.id)
        .all()
    )
