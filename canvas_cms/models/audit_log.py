"""
Audit trail of editor logins and frontend builder saves.
"""

from datetime import datetime, timezone
import uuid

from canvas_cms.models import db, DateTimeUTC


class AuditLog(db.Model):
    """
    One audited action.

    Attributes:
        user_id: Acting user, NULL for anonymous or failed logins
        user_email: Email at the time of the action (kept if the user is deleted)
        action: e.g. 'layout_canvas.save', 'auth.login'
        action_category: One of CATEGORIES
        resource_type / resource_id / resource_name: The saved entity, if any
        details: JSON document (canvas ids, langcode, new revision flag...)
    """

    __tablename__ = 'audit_logs'

    CATEGORIES = ('auth', 'layouts')

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True, index=True)
    user_email = db.Column(db.String(255), nullable=False)
    action = db.Column(db.String(100), nullable=False, index=True)
    action_category = db.Column(db.String(50), nullable=False, index=True)
    resource_type = db.Column(db.String(50), nullable=True)
    resource_id = db.Column(db.String(36), nullable=True, index=True)
    resource_name = db.Column(db.String(255), nullable=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc), index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_email': self.user_email,
            'action': self.action,
            'action_category': self.action_category,
            'resource_type': self.resource_type,
            'resource_id': self.resource_id,
            'resource_name': self.resource_name,
            'details': self.details,
            'ip_address': self.ip_address,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<AuditLog {self.action} by {self.user_email}>'
