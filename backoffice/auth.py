from functools import wraps

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from backoffice import limiter, login_manager
from backoffice.data.core.user_info.user import User
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.auth")
auth = Blueprint('auth', __name__)


def _user_payload(user):
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'role': user.role,
    }


@login_manager.unauthorized_handler
def unauthorized():
    logger.debug(f"Unauthenticated request to {request.path}")
    return jsonify({'success': False, 'error': 'Authentication required'}), 401


def require_role(*roles):
    """Allow the view only for authenticated users holding one of ``roles``."""
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if not current_user.has_role(*roles):
                logger.warning(
                    f"User {current_user.username} ({current_user.role}) denied access to {request.path}"
                )
                return jsonify({'success': False, 'error': 'Insufficient permissions'}), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator


@auth.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    data = request.get_json(silent=True) or request.form
    username = data.get('username')
    password = data.get('password')

    logger.debug(f"Login attempt for username: {username}")

    if not username or not password:
        logger.warning(f"Login attempt with missing credentials for username: {username}")
        return jsonify({'success': False, 'error': 'Please enter both username and password'}), 400

    user = User.query.filter_by(username=username).first()

    if user is None or not user.check_password(password):
        logger.warning(f"Failed login attempt for username: {username}")
        return jsonify({'success': False, 'error': 'Invalid username or password'}), 401

    if not user.is_active:
        logger.warning(f"Login attempt for disabled account: {username}")
        return jsonify({'success': False, 'error': 'Account is disabled'}), 403

    login_user(user)
    logger.info(f"Successful login for user: {username}")
    return jsonify({'success': True, 'user': _user_payload(user)})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    username = current_user.username
    logout_user()
    logger.info(f"User logged out: {username}")
    return jsonify({'success': True})


@auth.route('/api/auth/user')
@login_required
def current_user_info():
    return jsonify(_user_payload(current_user))


@auth.route('/api/auth/csrf-token')
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})
