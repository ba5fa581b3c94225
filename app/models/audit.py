"""Audit trail rows.

One row per state change that matters to an admin looking back: account
creation, checkout, payment proof submission, verification / rejection,
catalog edits. Written in the same unit of work as the change itself, so a
rolled-back change leaves no audit row behind.
"""

import uuid
from datetime import datetime, timezone

from app.extensions import db


class AuditEvent(db.Model):
    __tablename__ = "audit_events"
    __table_args__ = (
        db.Index("ix_audit_events_subject", "subject_type", "subject_id"),
    )

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    action = db.Column(db.String(100), nullable=False, index=True)
    actor_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # What the event is about. No FK: deleted recipes keep their history.
    subject_type = db.Column(db.String(50))  # table name, e.g. "transactions"
    subject_id = db.Column(db.String(36))
    metadata_ = db.Column("metadata", db.JSON, default=dict)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    actor = db.relationship("User", back_populates="audit_events")

    def to_dict(self):
        return {
            "action": self.action,
            "actorUserId": self.actor_user_id,
            "metadata": self.metadata_ or {},
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AuditEvent {self.action} {self.subject_type}:{self.subject_id}>"
