"""
Authentication service - login session, role permissions and user management.

Roles are hierarchical: admin includes manager includes cashier.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from retail_pos.exceptions import BusinessLogicError, NotFoundError, UnauthorizedError
from retail_pos.models import User, UserRole
from retail_pos.state import LoginSession, UserDirectory
from retail_pos.utils.formatters import parse_bool

logger = logging.getLogger(__name__)

SESSION_LIFETIME = timedelta(hours=8)

DEFAULT_ADMIN_USERNAME = 'admin'
DEFAULT_ADMIN_PASSWORD = 'admin123'

# Roles allowed for each permission
PERMISSION_ROLES = {
    UserRole.ADMIN.value: {UserRole.ADMIN.value},
    UserRole.MANAGER.value: {UserRole.ADMIN.value, UserRole.MANAGER.value},
    UserRole.CASHIER.value: {UserRole.ADMIN.value, UserRole.MANAGER.value, UserRole.CASHIER.value},
}


def default_admin(now: Optional[datetime] = None) -> User:
    """The built-in administrator created when no users are stored."""
    user = User(
        id=1,
        name='Administrator',
        username=DEFAULT_ADMIN_USERNAME,
        role=UserRole.ADMIN.value,
        created_at=(now or datetime.now()).isoformat(),
    )
    user.set_password(DEFAULT_ADMIN_PASSWORD)
    return user


def ensure_default_admin(users: UserDirectory) -> bool:
    """Add the default administrator to an empty directory. Returns True if added."""
    if len(users):
        return False
    users.users.append(default_admin())
    logger.info("[AUTH] Default administrator created")
    return True


def has_permission(user: Optional[User], permission: str) -> bool:
    """
    Check a permission against the user's role.

    No user, or a permission name that is not a role, always denies.
    """
    if user is None:
        return False
    return user.role in PERMISSION_ROLES.get(permission, ())


def require_permission(user: Optional[User], permission: str) -> None:
    if not has_permission(user, permission):
        raise UnauthorizedError()


def login(users: UserDirectory, session: LoginSession, username: str, password: str,
          now: Optional[datetime] = None) -> Optional[User]:
    """
    Start a session for an active user with matching credentials.

    Returns:
        The logged-in User, or None when the credentials do not match
    """
    user = users.find_by_username(username or '')
    if user is None or not user.is_active or not user.check_password(password):
        logger.info(f"[AUTH] Failed login for '{username}'")
        return None

    now = now or datetime.now()
    user.last_login = now.isoformat()
    session.start(user, now)
    logger.info(f"[AUTH] {user.username} logged in")
    return user


def logout(session: LoginSession) -> None:
    if session.user:
        logger.info(f"[AUTH] {session.user.username} logged out")
    session.end()


def session_expired(session: LoginSession, now: Optional[datetime] = None,
                    lifetime: timedelta = SESSION_LIFETIME) -> bool:
    """True when there is no login time or it is older than ``lifetime``."""
    if session.login_time is None:
        return True
    return (now or datetime.now()) - session.login_time >= lifetime


def restore_session(session: LoginSession, now: Optional[datetime] = None,
                    lifetime: timedelta = SESSION_LIFETIME) -> Optional[User]:
    """
    Keep a session that is still within its lifetime and whose user is
    still active; end it otherwise.
    """
    if session.user is None:
        session.end()
        return None
    if not session.user.is_active:
        logger.info(f"[AUTH] {session.user.username} was deactivated, ending session")
        session.end()
        return None
    if session_expired(session, now, lifetime):
        logger.info(f"[AUTH] Session for {session.user.username} expired")
        session.end()
        return None
    return session.user


def _validate_role(role: str) -> str:
    if role not in UserRole.values():
        raise BusinessLogicError(f"Role must be one of: {', '.join(UserRole.values())}")
    return role


def add_user(users: UserDirectory, actor: Optional[User], data: Dict[str, Any],
             now: Optional[datetime] = None) -> User:
    """
    Register a user. Admin only.

    Raises:
        UnauthorizedError: actor is not an admin
        BusinessLogicError: missing fields, unknown role or duplicate username
    """
    require_permission(actor, UserRole.ADMIN.value)

    name = (data.get('name') or '').strip()
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    if not name or not username or not password:
        raise BusinessLogicError('Name, username and password are required')
    if users.find_by_username(username):
        raise BusinessLogicError('Username already exists')

    user = User(
        id=users.next_id(),
        name=name,
        username=username,
        role=_validate_role(data.get('role') or UserRole.CASHIER.value),
        email=(data.get('email') or '').strip(),
        created_at=(now or datetime.now()).isoformat(),
    )
    user.set_password(password)
    users.users.append(user)
    logger.info(f"[AUTH] User {username} added by {actor.username}")
    return user


def update_user(users: UserDirectory, actor: Optional[User], user_id: int, data: Dict[str, Any]) -> User:
    """Update a user's fields. Admin only; usernames stay unique."""
    require_permission(actor, UserRole.ADMIN.value)

    user = users.get(user_id)
    if user is None:
        raise NotFoundError('User not found')

    # Validate everything before changing any field
    role = _validate_role(data['role']) if 'role' in data else user.role
    is_active = user.is_active
    if 'isActive' in data:
        try:
            is_active = parse_bool(data['isActive'], 'isActive')
        except ValueError as e:
            raise BusinessLogicError(str(e))

    username = user.username
    if 'username' in data:
        username = (data.get('username') or '').strip()
        if not username:
            raise BusinessLogicError('Username is required')
        other = users.find_by_username(username)
        if other is not None and other.id != user_id:
            raise BusinessLogicError('Username already exists')

    user.username = username
    user.role = role
    user.is_active = is_active
    if 'name' in data:
        user.name = (data.get('name') or '').strip() or user.name
    if 'email' in data:
        user.email = (data.get('email') or '').strip()
    if data.get('password'):
        user.set_password(data['password'])

    return user


def delete_user(users: UserDirectory, actor: Optional[User], user_id: int) -> User:
    """Remove a user. Admin only; admins cannot delete themselves."""
    require_permission(actor, UserRole.ADMIN.value)

    if actor.id == user_id:
        raise BusinessLogicError('Cannot delete your own account')

    user = users.get(user_id)
    if user is None:
        raise NotFoundError('User not found')

    users.users = [u for u in users.users if u.id != user_id]
    logger.info(f"[AUTH] User {user.username} deleted by {actor.username}")
    return user
