"""Authentication blueprint - login, logout, current user and CSRF tokens."""
from flask import Blueprint, current_app, g, jsonify, request, session
from flask_wtf.csrf import generate_csrf

from retail_pos.exceptions import AuthenticationError, BusinessLogicError
from retail_pos.middleware import get_state, json_response, persist, require_login
from retail_pos.services import auth_service
from retail_pos.services.auth_service import has_permission
from retail_pos.services.storage_service import SESSION_KEYS

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Issue a CSRF token for the X-CSRFToken header."""
    return jsonify({'csrfToken': generate_csrf()})


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Log in with username and password.

    Returns 401 for unknown users, wrong passwords and inactive accounts.
    """
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not username or not password:
        raise BusinessLogicError('Username and password are required')

    state = get_state()
    with state.lock:
        user = auth_service.login(state.users, state.session, username, password)
        if user is None:
            raise AuthenticationError('Invalid username or password')
        saved = persist(*SESSION_KEYS)

    # Bind the login to this client's session cookie
    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    current_app.logger.info(f"User {user.username} logged in")
    return json_response({
        'message': f'Welcome back, {user.name}!',
        'user': user.to_public_dict(),
    }, saved)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    state = get_state()
    with state.lock:
        auth_service.logout(state.session)
        saved = persist(*SESSION_KEYS)
    session.clear()
    g.user = None
    return json_response({'message': 'Logged out'}, saved)


@auth_bp.route('/me', methods=['GET'])
@require_login
def me():
    """Current user with the permission names their role grants."""
    user = g.user
    return jsonify({
        'user': user.to_public_dict(),
        'permissions': [p for p in ('admin', 'manager', 'cashier') if has_permission(user, p)],
    })
