"""
Permission decorators for role-based access control.

Permissions are role names and follow the role hierarchy:
- admin: users, settings, external services, backups
- manager: products, inventory, reports, forecast, customers, exports
- cashier: cart, checkout and viewing products and sales
"""
from functools import wraps

from flask import g

from retail_pos.exceptions import AuthenticationError, UnauthorizedError
from retail_pos.services.auth_service import has_permission


def require_permission(permission_name):
    """
    Decorator to check for a role permission.

    Usage:
        @require_permission('manager')
        @require_permission('admin')

    Raises:
        AuthenticationError: nobody is logged in
        UnauthorizedError: the user's role does not grant the permission
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = g.get('user')
            if user is None:
                raise AuthenticationError()
            if not has_permission(user, permission_name):
                raise UnauthorizedError()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
