"""
Integration tests for the flask CLI commands.
"""


def test_seed_products(app, state):
    result = app.test_cli_runner().invoke(args=['seed-products'])

    assert 'Seeded 8 sample products' in result.output
    assert len(state.catalog) == 8

    result = app.test_cli_runner().invoke(args=['seed-products'])
    assert 'nothing seeded' in result.output


def test_create_user(app, state):
    result = app.test_cli_runner().invoke(args=[
        'create-user', '--name', 'Pat', '--username', 'pat',
        '--password', 'secret1', '--role', 'manager',
    ])

    assert 'User created' in result.output
    user = state.users.find_by_username('pat')
    assert user.role == 'manager'
    assert user.check_password('secret1')


def test_create_user_short_password(app, state):
    result = app.test_cli_runner().invoke(args=[
        'create-user', '--name', 'Pat', '--username', 'pat', '--password', '123',
    ])

    assert 'at least 6 characters' in result.output
    assert state.users.find_by_username('pat') is None


def test_backup_ignores_setting(app, state):
    result = app.test_cli_runner().invoke(args=['backup'])
    assert 'Backup completed' in result.output


def test_flush_state(app):
    result = app.test_cli_runner().invoke(args=['flush-state'])
    assert 'State saved' in result.output
