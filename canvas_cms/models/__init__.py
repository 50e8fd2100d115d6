"""
Canvas CMS Models Package.

SQLAlchemy models for the layout canvas service including:
- Content Types (bundle configuration, revision policy, workflow)
- Content Entities (parent entities that host layout canvases)
- Content Revisions (revisioned field values and moderation state)
- Layout Canvases (child entities storing visual builder JSON)
- Layout Canvas Revisions and Translations
- Users (authentication and authorization)
- User Sessions (session management)
- Audit Logs (activity tracking)
"""

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import DateTime as _SADateTime
from sqlalchemy.types import TypeDecorator


class DateTimeUTC(TypeDecorator):
    """DateTime type that ensures values are always timezone-aware (UTC).

    SQLite stores datetimes as naive strings.  This TypeDecorator adds UTC
    timezone info when reading and strips it when writing, so Python code
    can safely compare with ``datetime.now(timezone.utc)`` without hitting
    "can't compare offset-naive and offset-aware datetimes".
    """

    impl = _SADateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    All models should inherit from db.Model which uses this Base class.
    """
    pass


# Initialize with model_class=Base for proper declarative base setup
db = SQLAlchemy(model_class=Base)


# Import models after db is defined to avoid circular imports
from canvas_cms.models.user import User
from canvas_cms.models.user_session import UserSession
from canvas_cms.models.audit_log import AuditLog
from canvas_cms.models.content import ContentType, ContentEntity, ContentRevision
from canvas_cms.models.layout_canvas import LayoutCanvas, LayoutCanvasRevision, LayoutCanvasTranslation

__all__ = [
    'db',
    'Base',
    'DateTimeUTC',
    'User',
    'UserSession',
    'AuditLog',
    'ContentType',
    'ContentEntity',
    'ContentRevision',
    'LayoutCanvas',
    'LayoutCanvasRevision',
    'LayoutCanvasTranslation',
]
