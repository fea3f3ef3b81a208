"""
Unit tests for login sessions, permissions and user management.
"""

import pytest
from datetime import timedelta

from retail_pos.exceptions import BusinessLogicError, NotFoundError, UnauthorizedError
from retail_pos.services import auth_service
from retail_pos.state import UserDirectory


class TestPermissions:

    @pytest.mark.parametrize('role,permission,allowed', [
        ('admin', 'admin', True),
        ('admin', 'cashier', True),
        ('manager', 'manager', True),
        ('manager', 'admin', False),
        ('cashier', 'cashier', True),
        ('cashier', 'manager', False),
        ('cashier', 'admin', False),
    ])
    def test_role_hierarchy(self, users, role, permission, allowed):
        user = users.find_by_username(role)
        assert auth_service.has_permission(user, permission) is allowed

    def test_no_user_denied(self):
        assert auth_service.has_permission(None, 'cashier') is False

    def test_unknown_permission_denied(self, users):
        assert auth_service.has_permission(users.get(1), 'superuser') is False

    def test_require_permission_raises(self, users):
        with pytest.raises(UnauthorizedError):
            auth_service.require_permission(users.get(3), 'admin')


class TestLogin:

    def test_login_starts_session(self, users, login_session, now):
        user = auth_service.login(users, login_session, 'manager', 'password123', now)

        assert user.username == 'manager'
        assert login_session.user is user
        assert login_session.login_time == now
        assert user.last_login == now.isoformat()

    def test_bad_password(self, users, login_session):
        assert auth_service.login(users, login_session, 'manager', 'nope') is None
        assert login_session.is_logged_in is False

    def test_inactive_user_rejected(self, users, login_session):
        users.get(3).is_active = False
        assert auth_service.login(users, login_session, 'cashier', 'password123') is None

    def test_logout(self, users, login_session):
        auth_service.login(users, login_session, 'admin', 'password123')
        auth_service.logout(login_session)
        assert login_session.user is None
        assert login_session.login_time is None


class TestSessionExpiry:

    def test_session_within_lifetime(self, users, login_session, now):
        auth_service.login(users, login_session, 'admin', 'password123', now)
        later = now + timedelta(hours=7, minutes=59)
        assert auth_service.restore_session(login_session, later) is users.get(1)

    def test_session_expires_after_lifetime(self, users, login_session, now):
        auth_service.login(users, login_session, 'admin', 'password123', now)
        assert auth_service.restore_session(login_session, now + timedelta(hours=8)) is None
        assert login_session.user is None

    def test_deactivated_user_session_ends(self, users, login_session, now):
        auth_service.login(users, login_session, 'cashier', 'password123', now)
        users.get(3).is_active = False

        assert auth_service.restore_session(login_session, now + timedelta(minutes=5)) is None
        assert login_session.user is None
        assert login_session.login_time is None

    def test_missing_login_time_is_expired(self, users, login_session):
        login_session.user = users.get(1)
        assert auth_service.session_expired(login_session) is True


class TestDefaultAdmin:

    def test_created_for_empty_directory(self):
        directory = UserDirectory()
        assert auth_service.ensure_default_admin(directory) is True

        admin = directory.find_by_username('admin')
        assert admin.role == 'admin'
        assert admin.check_password('admin123')

    def test_not_created_when_users_exist(self, users):
        assert auth_service.ensure_default_admin(users) is False
        assert len(users) == 3


class TestUserManagement:

    def test_add_user(self, users, now):
        user = auth_service.add_user(users, users.get(1), {
            'name': 'New Cashier', 'username': 'newbie', 'password': 'secret1', 'role': 'cashier',
        }, now)

        assert users.find_by_username('newbie') is user
        assert user.check_password('secret1')
        assert user.id > 3

    def test_add_requires_admin(self, users):
        with pytest.raises(UnauthorizedError):
            auth_service.add_user(users, users.get(2), {'name': 'X', 'username': 'x', 'password': 'y'})

    def test_duplicate_username(self, users):
        with pytest.raises(BusinessLogicError, match='already exists'):
            auth_service.add_user(users, users.get(1), {'name': 'X', 'username': 'cashier', 'password': 'y'})

    @pytest.mark.parametrize('data', [
        {'username': 'x', 'password': 'y'},
        {'name': 'X', 'password': 'y'},
        {'name': 'X', 'username': 'x'},
        {'name': 'X', 'username': 'x', 'password': 'y', 'role': 'owner'},
    ])
    def test_invalid_user_data(self, users, data):
        with pytest.raises(BusinessLogicError):
            auth_service.add_user(users, users.get(1), data)
        assert len(users) == 3

    def test_update_user(self, users):
        user = auth_service.update_user(users, users.get(1), 3, {'role': 'manager', 'password': 'changed'})
        assert user.role == 'manager'
        assert user.check_password('changed')

    def test_update_to_taken_username(self, users):
        with pytest.raises(BusinessLogicError):
            auth_service.update_user(users, users.get(1), 3, {'username': 'manager'})

    def test_update_missing_user(self, users):
        with pytest.raises(NotFoundError):
            auth_service.update_user(users, users.get(1), 999, {'name': 'Ghost'})

    def test_delete_user(self, users):
        auth_service.delete_user(users, users.get(1), 3)
        assert users.get(3) is None

    def test_cannot_delete_self(self, users):
        with pytest.raises(BusinessLogicError, match='own account'):
            auth_service.delete_user(users, users.get(1), 1)
        assert len(users) == 3

    @pytest.mark.parametrize('value', ['false', 0])
    def test_is_active_must_be_boolean(self, users, value):
        with pytest.raises(BusinessLogicError, match='isActive must be true or false'):
            auth_service.update_user(users, users.get(1), 3, {'isActive': value, 'role': 'manager'})

        cashier = users.get(3)
        assert cashier.is_active is True
        assert cashier.role == 'cashier'

    def test_invalid_role_changes_nothing(self, users):
        with pytest.raises(BusinessLogicError):
            auth_service.update_user(users, users.get(1), 3, {'username': 'renamed', 'role': 'owner'})
        assert users.get(3).username == 'cashier'
