"""
Editor login for the frontend builder.

- POST /login: check credentials, open a bearer session and the
  Flask-Login cookie session
- POST /logout: close both
- GET /me: current editor and whether they can edit layouts

Registered under /api/v1/auth.
"""

from datetime import datetime, timezone

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user

from canvas_cms.models import db, User, UserSession
from canvas_cms.utils.auth import login_required, get_current_user, get_current_session
from canvas_cms.utils.audit import log_auth_action


auth_bp = Blueprint('auth', __name__)

INVALID_CREDENTIALS = {'error': 'Invalid email or password', 'code': 'invalid_credentials'}


def _credentials(data):
    """
    Pull email and password out of a login body.

    Returns:
        Tuple of (email, password, error message or None)
    """
    if not isinstance(data, dict) or not data:
        return None, None, 'Request body is required'

    values = {}
    for field in ('email', 'password'):
        value = data.get(field)
        if not value:
            return None, None, f'{field} is required'
        if not isinstance(value, str):
            return None, None, f'{field} must be a string'
        values[field] = value

    return values['email'].lower().strip(), values['password'], None


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Log an editor in.

    Request Body:
        {"email": "editor@example.com", "password": "secret"}

    Returns:
        200: {"message": "Login successful", "user": {...},
              "session": {"id", "token", "expires_at", "last_active"}}
        400: Missing or malformed email / password
        401: Unknown email or wrong password (code 'invalid_credentials')
        403: Account not active (code 'account_<status>')
    """
    email, password, error = _credentials(request.get_json(silent=True))
    if error:
        return jsonify({'error': error}), 400

    user = User.query.filter_by(email=email).first()
    if user is None or not user.check_password(password):
        log_auth_action('login', email, success=False, user=user, reason='invalid_credentials')
        return jsonify(INVALID_CREDENTIALS), 401

    if not user.is_active:
        code = f'account_{user.status}'
        log_auth_action('login', email, success=False, user=user, reason=code)
        return jsonify({'error': f'Account {user.status}', 'code': code}), 403

    session = UserSession.open_for(user)
    user.last_login = datetime.now(timezone.utc)
    db.session.add(session)
    db.session.commit()
    login_user(user)

    log_auth_action('login', email, success=True, user=user, session_id=session.id)

    return jsonify({
        'message': 'Login successful',
        'user': user.to_dict(),
        'session': session.to_dict(include_token=True),
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Delete the bearer session, if one was used, and clear the login cookie."""
    user = get_current_user()
    session = get_current_session()

    if session is not None:
        db.session.delete(session)
        db.session.commit()
    logout_user()

    log_auth_action('logout', user.email, success=True, user=user)
    return jsonify({'message': 'Logged out successfully'}), 200


@auth_bp.route('/me', methods=['GET'])
@login_required
def get_me():
    session = get_current_session()
    return jsonify({
        'user': get_current_user().to_dict(),
        'session': session.to_dict() if session else None,
    }), 200
