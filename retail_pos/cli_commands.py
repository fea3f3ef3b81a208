"""
Flask CLI commands for POS maintenance.

Commands:
- flask seed-products: Load the sample products into an empty catalog
- flask create-user: Register a user
- flask backup: Write a backup (and upload it when S3 is configured)
- flask flush-state: Save the whole in-memory state now
"""
import click

from retail_pos.exceptions import PosError
from retail_pos.middleware import get_state, get_store
from retail_pos.models import User, UserRole
from retail_pos.services.backup_service import perform_cloud_backup
from retail_pos.services.catalog_service import seed_sample_products
from retail_pos.services.storage_service import PRODUCTS, USERS


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('seed-products')
    def seed_products():
        """Load the sample products when the catalog is empty."""
        state = get_state()
        with state.lock:
            added = seed_sample_products(state.catalog)
            if not added:
                click.echo(click.style('Catalog is not empty, nothing seeded.', fg='yellow'))
                return
            ok = get_store().save(state, (PRODUCTS,))

        if ok:
            click.echo(click.style(f'✅ Seeded {added} sample products', fg='green'))
        else:
            click.echo(click.style('❌ Products seeded but could not be saved', fg='red'))

    @app.cli.command('create-user')
    @click.option('--name', prompt=True, help='Full name')
    @click.option('--username', prompt=True, help='Login username')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
    @click.option('--role', type=click.Choice(UserRole.values()), default=UserRole.CASHIER.value,
                  show_default=True, help='User role')
    @click.option('--email', default='', help='Email address')
    def create_user(name, username, password, role, email):
        """Register a POS user."""
        if len(password) < 6:
            click.echo(click.style('❌ Password must be at least 6 characters.', fg='red'))
            return

        state = get_state()
        with state.lock:
            if state.users.find_by_username(username):
                click.echo(click.style(f'❌ Username already exists: {username}', fg='red'))
                return

            user = User(id=state.users.next_id(), name=name, username=username, role=role, email=email)
            user.set_password(password)
            state.users.users.append(user)
            ok = get_store().save(state, (USERS,))

        if not ok:
            click.echo(click.style('❌ Error saving user', fg='red'))
            return
        click.echo(click.style('\n✅ User created!', fg='green', bold=True))
        click.echo(f'   Username: {username}')
        click.echo(f'   Role: {role}')
        click.echo(f'   ID: {user.id}')

    @app.cli.command('backup')
    def backup():
        """Write a backup regardless of the cloud backup setting."""
        try:
            result = perform_cloud_backup(get_state(), get_store(), require_enabled=False)
        except PosError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            return

        click.echo(click.style('✅ Backup completed', fg='green'))
        click.echo(f"   Products: {result['products']}, sales: {result['sales']}")
        if result['object']:
            click.echo(f"   Uploaded: {result['object']}")

    @app.cli.command('flush-state')
    def flush_state():
        """Save every state key now."""
        if get_store().save(get_state()):
            click.echo(click.style('✅ State saved', fg='green'))
        else:
            click.echo(click.style('❌ Error saving state', fg='red'))
