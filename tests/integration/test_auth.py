"""
Integration tests for authentication and authorization.
"""

from datetime import datetime, timedelta

from retail_pos.models import User


class TestLogin:
    """Test the login flow."""

    def test_default_admin_can_log_in(self, client):
        response = client.post('/auth/login', json={'username': 'admin', 'password': 'admin123'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'success'
        assert data['user']['username'] == 'admin'
        assert 'passwordHash' not in data['user']

    def test_wrong_password(self, client, state):
        response = client.post('/auth/login', json={'username': 'admin', 'password': 'nope'})

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Invalid username or password'
        assert state.session.user is None

    def test_missing_fields(self, client):
        response = client.post('/auth/login', json={'username': 'admin'})
        assert response.status_code == 400

    def test_me(self, admin_client):
        data = admin_client.get('/auth/me').get_json()
        assert data['user']['role'] == 'admin'
        assert data['permissions'] == ['admin', 'manager', 'cashier']

    def test_logout(self, admin_client, state):
        response = admin_client.post('/auth/logout')

        assert response.status_code == 200
        assert state.session.user is None
        assert admin_client.get('/auth/me').status_code == 401

    def test_expired_session_requires_login(self, admin_client, state):
        state.session.login_time = datetime.now() - timedelta(hours=9)

        assert admin_client.get('/auth/me').status_code == 401
        assert state.session.user is None

    def test_csrf_token(self, client):
        assert client.get('/auth/csrf-token').get_json()['csrfToken']


class TestAuthorization:
    """Role permissions on routes."""

    def test_login_required(self, client):
        response = client.get('/cart')
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_cashier_cannot_manage_users(self, cashier_client):
        assert cashier_client.get('/users').status_code == 403

    def test_cashier_cannot_edit_products(self, cashier_client):
        response = cashier_client.post('/products', json={'name': 'Tea', 'category': 'Food',
                                                          'price': '3', 'stock': '1'})
        assert response.status_code == 403

    def test_cashier_can_sell(self, cashier_client):
        assert cashier_client.get('/cart').status_code == 200
        assert cashier_client.get('/products').status_code == 200

    def test_manager_cannot_change_settings(self, manager_client):
        assert manager_client.put('/settings/shop', json={'name': 'Shop'}).status_code == 403
        assert manager_client.get('/reports').status_code == 200


class TestUserManagement:

    def test_user_lifecycle(self, admin_client, state):
        response = admin_client.post('/users', json={
            'name': 'Pat', 'username': 'pat', 'password': 'secret1', 'role': 'cashier',
        })
        assert response.status_code == 201
        user_id = response.get_json()['user']['id']

        response = admin_client.put(f'/users/{user_id}', json={'role': 'manager'})
        assert response.get_json()['user']['role'] == 'manager'

        usernames = [u['username'] for u in admin_client.get('/users').get_json()['users']]
        assert usernames == ['admin', 'pat']

        assert admin_client.delete(f'/users/{user_id}').status_code == 200
        assert state.users.get(user_id) is None

    def test_duplicate_username(self, admin_client):
        response = admin_client.post('/users', json={'name': 'A', 'username': 'admin', 'password': 'x'})
        assert response.status_code == 400

    def test_cannot_delete_self(self, admin_client):
        response = admin_client.delete('/users/1')
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Cannot delete your own account'

    def test_new_user_can_log_in(self, admin_client, client):
        admin_client.post('/users', json={'name': 'Pat', 'username': 'pat', 'password': 'secret1'})
        admin_client.post('/auth/logout')

        response = client.post('/auth/login', json={'username': 'pat', 'password': 'secret1'})
        assert response.status_code == 200
        assert response.get_json()['user']['role'] == 'cashier'


class TestSessionCookie:
    """The login applies only to the client that logged in."""

    def test_other_client_is_not_logged_in(self, app, admin_client):
        stranger = app.test_client()

        assert stranger.get('/users').status_code == 401
        assert stranger.get('/cart').status_code == 401
        assert admin_client.get('/users').status_code == 200

    def test_new_login_replaces_the_previous_client(self, app, admin_client, state):
        _add_cashier(state)
        other = app.test_client()
        assert other.post('/auth/login', json={'username': 'till', 'password': 'password123'}).status_code == 200

        assert other.get('/cart').status_code == 200
        assert admin_client.get('/users').status_code == 401

    def test_logout_clears_cookie(self, admin_client, state):
        admin_client.post('/auth/logout')
        with admin_client.session_transaction() as sess:
            assert 'user_id' not in sess

    def test_deactivated_user_loses_access(self, app, admin_client, state):
        user = _add_cashier(state)
        till = app.test_client()
        till.post('/auth/login', json={'username': 'till', 'password': 'password123'})
        assert till.get('/cart').status_code == 200

        user.is_active = False

        assert till.get('/cart').status_code == 401
        assert state.session.user is None


class TestDeactivateThroughApi:

    def test_admin_deactivates_user(self, admin_client, state):
        user = _add_cashier(state)

        response = admin_client.put(f'/users/{user.id}', json={'isActive': False})
        assert response.status_code == 200
        assert state.users.get(user.id).is_active is False

        response = admin_client.put(f'/users/{user.id}', json={'isActive': 'true'})
        assert response.status_code == 400
        assert state.users.get(user.id).is_active is False


def _add_cashier(state):
    user = User(id=500, name='Till', username='till', role='cashier')
    user.set_password('password123')
    state.users.users.append(user)
    return user
