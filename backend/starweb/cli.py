# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/starweb/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-password "Password123"]
#   Idempotent bootstrap: creates tables and the admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with admin flag and active status.
# - python -m flask users create --username clerk --password "Clerk1234" [--admin]
#   Create a user (prompts if options are omitted).
#
# Permission inspection/repair:
# - python -m flask perms grant clerk fleet view
# - python -m flask perms revoke clerk fleet view
# - python -m flask perms check clerk fleet view

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import ACTIONS, MODULES
from .services.auth_service import create_user, PasswordValidationError, UserValidationError
from .services import permission_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', show_default=True, help='Admin username')
@click.option('--admin-password', default='Password123', show_default=True, help='Admin password')
@with_appcontext
def init_system(admin_username, admin_password):
    """
    Create all tables and the admin user if they do not exist.

    SECURITY: Change the admin password immediately in production!
    """
    from . import wait_for_database

    click.echo("START Initializing Starweb...")
    wait_for_database(current_app._get_current_object())
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(username=admin_username).first()
    if existing:
        click.echo(f"PASS Using existing admin user: {existing.username} (ID: {existing.id})")
        return

    try:
        user = create_user(username=admin_username, password=admin_password, is_admin=True)
    except (UserValidationError, PasswordValidationError) as e:
        click.echo(f"FAIL Error: {str(e)}")
        return
    click.echo(f"PASS Created admin user: {user.username} (ID: {user.id})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--admin', 'is_admin', is_flag=True, help='Grant administrator access')
@with_appcontext
def create_user_cli(username, password, is_admin):
    """Create a user. Non-admin users start with no permissions."""
    try:
        user = create_user(username=username, password=password, is_admin=is_admin)
    except (UserValidationError, PasswordValidationError) as e:
        click.echo(f"FAIL Error: {str(e)}")
        return
    click.echo(f"PASS Created user '{user.username}' (ID: {user.id}, admin: {user.is_admin})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.username).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Admin':<7} {'Active':<8} {'Permissions'}")
    click.echo("="*80)

    for user in users:
        perms = ", ".join(f"{m}:{'/'.join(a)}" for m, a in sorted((user.permissions or {}).items())) or "none"
        admin_str = "Yes" if user.is_admin else "No"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {admin_str:<7} {active_str:<8} {perms}")

    click.echo("="*80 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


def _find_user(username):
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        click.echo(f"FAIL User '{username}' not found")
    return user


@perms_group.command('grant')
@click.argument('username')
@click.argument('module', type=click.Choice(MODULES))
@click.argument('action', type=click.Choice(ACTIONS))
@with_appcontext
def grant_permission_cli(username, module, action):
    """Grant an action on a module to a user."""
    user = _find_user(username)
    if not user:
        return
    permission_service.grant(user, module, action)
    click.echo(f"PASS Granted '{module}.{action}' to '{username}'")


@perms_group.command('revoke')
@click.argument('username')
@click.argument('module', type=click.Choice(MODULES))
@click.argument('action', type=click.Choice(ACTIONS))
@with_appcontext
def revoke_permission_cli(username, module, action):
    """Revoke an action on a module from a user."""
    user = _find_user(username)
    if not user:
        return
    had = action in (user.permissions or {}).get(module, [])
    permission_service.revoke(user, module, action)
    if had:
        click.echo(f"PASS Revoked '{module}.{action}' from '{username}'")
    else:
        click.echo(f"WARN  Permission '{module}.{action}' was not granted to '{username}'")


@perms_group.command('check')
@click.argument('username')
@click.argument('module')
@click.argument('action')
@with_appcontext
def check_permission_cli(username, module, action):
    """Check if a user has an action on a module."""
    user = _find_user(username)
    if not user:
        return

    if permission_service.has_permission(user, module, action):
        click.echo(f"PASS User '{username}' HAS permission '{module}.{action}'")
    else:
        click.echo(f"FAIL User '{username}' DOES NOT HAVE permission '{module}.{action}'")

    if user.is_admin:
        click.echo("\nUser is an administrator")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
