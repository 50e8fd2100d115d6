"""
Audit trail helpers.

    log_action('layout_canvas.save', 'layouts',
               resource_type='node', resource_id='12', resource_name='About us',
               details={'canvas_ids': [3], 'langcode': 'en'})

The acting user and client address are taken from the current request.
Writing the entry commits the session; a failed write is logged and
rolled back without affecting the audited action, which is already
committed.
"""

import logging
from typing import Optional

from flask import has_request_context

from canvas_cms.models import db, AuditLog
from canvas_cms.utils.auth import get_current_user, get_client_ip


logger = logging.getLogger(__name__)


def log_action(
    action: str,
    action_category: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    resource_name: Optional[str] = None,
    details: Optional[dict] = None,
    user=None,
    user_email: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Record an audited action.

    Args:
        action: e.g. 'layout_canvas.save'
        action_category: One of AuditLog.CATEGORIES
        resource_type, resource_id, resource_name: Affected entity
        details: JSON-serializable dict
        user: Acting user; defaults to the request's authenticated user
        user_email: Email to record when there is no user (failed logins)

    Returns:
        The AuditLog entry, or None if it could not be written

    Raises:
        ValueError: Unknown action_category
    """
    if action_category not in AuditLog.CATEGORIES:
        raise ValueError(f"Invalid action_category '{action_category}'")

    ip_address = None
    if has_request_context():
        user = user or get_current_user()
        ip_address = get_client_ip()

    entry = AuditLog(
        user_id=user.id if user is not None else None,
        user_email=(user.email if user is not None else user_email) or 'anonymous',
        action=action,
        action_category=action_category,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        details=details,
        ip_address=ip_address,
    )

    try:
        db.session.add(entry)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception('Failed to write audit log entry for %s', action)
        return None

    return entry


def log_auth_action(action, email, success, user=None, **details):
    """Record 'auth.<action>' with {'success': ..., **details}."""
    return log_action(
        action=f'auth.{action}',
        action_category='auth',
        details={'success': success, **details},
        user=user,
        user_email=email,
    )
