"""
Role checks for routes and services.

Roles are ordered in canvas_cms.models.user.ROLES; a user holds a role
when theirs is the same or higher.
"""

from functools import wraps

from flask import jsonify, g

from canvas_cms.models.user import EDIT_ROLE, level_of


def has_permission(user, minimum_role):
    if user is None:
        return False
    return level_of(user.role) >= level_of(minimum_role)


def can_edit_entity(user, entity):
    """
    True when the user may edit the entity's layout canvases.

    Every content entity shares the same rule: an active account with
    EDIT_ROLE or higher.
    """
    if user is None or entity is None:
        return False
    return user.is_active and has_permission(user, EDIT_ROLE)


def require_role(minimum_role):
    """
    Reject the request with 403 unless g.current_user holds minimum_role.

    Goes below @login_required, which sets g.current_user.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, 'current_user', None)
            if user is None:
                return jsonify({'error': 'Authentication required', 'code': 'not_authenticated'}), 401

            if not has_permission(user, minimum_role):
                return jsonify({
                    'error': 'Insufficient permissions',
                    'code': 'forbidden',
                    'required_role': minimum_role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
