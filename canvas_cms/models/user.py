"""
Editor account model.

Editors log in to get a bearer token for the frontend builder. The role
decides what they may do with layout canvases:

- viewer: sees published pages like any visitor
- content_manager: edits layout canvases and saves drafts
- project_manager: publishes
- admin / super_admin: archives and restores

Only accounts with status 'active' can log in or use a token.
"""

from datetime import datetime, timezone
import uuid

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from canvas_cms.models import db, DateTimeUTC


# Lowest to highest privilege
ROLES = ('viewer', 'content_manager', 'project_manager', 'admin', 'super_admin')

# Minimum role to open a layout canvas in the frontend builder
EDIT_ROLE = 'content_manager'

USER_STATUSES = ('pending', 'active', 'suspended', 'deactivated')


def level_of(role):
    """Position of a role in ROLES, starting at 1. Unknown roles are 0."""
    return ROLES.index(role) + 1 if role in ROLES else 0


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='viewer')
    status = db.Column(db.String(20), nullable=False, default='active')
    last_login = db.Column(DateTimeUTC(), nullable=True)
    created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc))

    def set_password(self, password):
        self.password_hash = generate_password_hash(password, method="pbkdf2:sha256")

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return self.status == 'active'

    @property
    def role_level(self):
        return level_of(self.role)

    def has_role(self, minimum_role):
        """True when the user's role is minimum_role or above."""
        return self.role_level >= level_of(minimum_role)

    def can_edit_layouts(self):
        return self.is_active and self.has_role(EDIT_ROLE)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'status': self.status,
            'can_edit_layouts': self.can_edit_layouts(),
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'
