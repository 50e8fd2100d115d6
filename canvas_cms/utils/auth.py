"""
Request authentication.

A request is authenticated either by the Flask-Login cookie set at login
(editors browsing pages) or by an 'Authorization: Bearer <token>' header
(the frontend builder). Either way the user ends up in g.current_user,
and the bearer session, if any, in g.current_session.
"""

from functools import wraps

from flask import request, jsonify, g
from flask_login import current_user as flask_login_user

from canvas_cms.models import db, User, UserSession


def get_current_user():
    return getattr(g, 'current_user', None)


def get_current_session():
    return getattr(g, 'current_session', None)


def _bearer_token():
    scheme, _, token = request.headers.get('Authorization', '').partition(' ')
    if scheme.lower() != 'bearer' or not token.strip() or ' ' in token.strip():
        return None
    return token.strip()


def _session_for_token(token):
    """
    Look up a live session for a bearer token.

    Expired sessions are deleted. Sessions of users that are no longer
    active are ignored.

    Returns:
        UserSession or None
    """
    session = UserSession.query.filter_by(token=token).first()
    if session is None:
        return None

    if session.is_expired():
        db.session.delete(session)
        db.session.commit()
        return None

    user = db.session.get(User, session.user_id)
    if user is None or not user.is_active:
        return None

    session.touch()
    db.session.commit()
    return session


def authenticate_request():
    """
    Resolve the requesting user and store it on g.

    Returns:
        Tuple of (user, session); both None for anonymous requests. The
        session is None for cookie logins.
    """
    user, session = None, None

    if flask_login_user and flask_login_user.is_authenticated:
        user = flask_login_user._get_current_object()
    else:
        token = _bearer_token()
        session = _session_for_token(token) if token else None
        if session is not None:
            user = session.user

    g.current_user = user
    g.current_session = session
    return user, session


def resolve_optional_user():
    """Authenticate if credentials were sent, without requiring them."""
    user, _ = authenticate_request()
    return user


def login_required(f):
    """
    Reject the request with 401 unless it is authenticated.

    Error codes: 'missing_token' when no credentials were sent,
    'invalid_session' when the token is unknown, expired or belongs to
    an inactive account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user, _ = authenticate_request()
        if user is not None:
            return f(*args, **kwargs)

        if _bearer_token() is None:
            return jsonify({'error': 'Authentication required', 'code': 'missing_token'}), 401
        return jsonify({'error': 'Invalid or expired session', 'code': 'invalid_session'}), 401

    return decorated_function


def get_client_ip():
    """Client address, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.remote_addr
