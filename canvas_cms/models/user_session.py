"""
Bearer token sessions.

Logging in opens a UserSession. The frontend builder sends its token in
the Authorization header when saving canvases. Sessions last
SESSION_LIFETIME_HOURS and are deleted on logout or on first use after
they expire.
"""

from datetime import datetime, timezone, timedelta
import secrets
import uuid

from flask import current_app

from canvas_cms.models import db, DateTimeUTC


class UserSession(db.Model):
    __tablename__ = 'user_sessions'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    expires_at = db.Column(DateTimeUTC(), nullable=False)
    last_active = db.Column(DateTimeUTC(), nullable=True)
    created_at = db.Column(DateTimeUTC(), default=lambda: datetime.now(timezone.utc))

    user = db.relationship('User', backref=db.backref('sessions', lazy='dynamic', cascade='all, delete-orphan'))

    @classmethod
    def open_for(cls, user, lifetime_hours=None):
        """
        Build a session for a user. The caller adds and commits it.

        Args:
            user: User logging in
            lifetime_hours: Overrides SESSION_LIFETIME_HOURS

        Returns:
            UserSession
        """
        if lifetime_hours is None:
            lifetime_hours = current_app.config.get('SESSION_LIFETIME_HOURS', 8)

        now = datetime.now(timezone.utc)
        return cls(
            user_id=user.id,
            token=secrets.token_urlsafe(32),
            expires_at=now + timedelta(hours=lifetime_hours),
            last_active=now,
        )

    def is_expired(self):
        return datetime.now(timezone.utc) > self.expires_at

    def touch(self):
        self.last_active = datetime.now(timezone.utc)

    def to_dict(self, include_token=False):
        result = {
            'id': self.id,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'last_active': self.last_active.isoformat() if self.last_active else None,
        }
        if include_token:
            result['token'] = self.token
        return result

    def __repr__(self):
        return f'<UserSession {self.id} user={self.user_id}>'
