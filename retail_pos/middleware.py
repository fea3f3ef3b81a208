"""Middleware for the login session and state access."""
from datetime import timedelta
from functools import wraps

from flask import current_app, g, jsonify, session

from retail_pos.exceptions import AuthenticationError
from retail_pos.services.auth_service import restore_session
from retail_pos.services.storage_service import StateStore, SESSION_KEYS
from retail_pos.state import AppState

STATE_EXTENSION = 'retail_pos.state'
STORE_EXTENSION = 'retail_pos.store'


def get_state() -> AppState:
    """The application's POS state."""
    return current_app.extensions[STATE_EXTENSION]


def get_store() -> StateStore:
    return current_app.extensions[STORE_EXTENSION]


def session_lifetime() -> timedelta:
    return timedelta(hours=current_app.config.get('SESSION_LIFETIME_HOURS', 8))


def load_current_user():
    """
    Load the logged-in user into g.user.

    Called before each request. The login session only applies to the
    client whose session cookie carries the logged-in user's id. An expired
    session is ended and the cleared session keys are written back.
    """
    g.user = None
    state = get_state()
    with state.lock:
        had_user = state.session.user is not None
        user = restore_session(state.session, lifetime=session_lifetime())
        if had_user and user is None:
            get_store().save(state, SESSION_KEYS)

    if user is not None and session.get('user_id') == user.id:
        g.user = user


def persist(*keys) -> bool:
    """
    Flush the given state keys.

    Returns False when the write failed; the in-memory change stands and the
    caller reports a warning.
    """
    ok = get_store().save(get_state(), keys)
    if not ok:
        current_app.logger.warning(f"Error saving {', '.join(keys)}")
    return ok


def json_response(payload, saved: bool = True, status: int = 200):
    """JSON body with the ``Error saving data`` warning when a flush failed."""
    body = {'status': 'success', **payload}
    if not saved:
        body['warning'] = 'Error saving data'
    return jsonify(body), status


def require_login(f):
    """
    Decorator: Require a logged-in user.

    Raises AuthenticationError (401) when there is no valid session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return decorated_function
