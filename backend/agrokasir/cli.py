# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/agrokasir/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet (dev shortcut; use `flask db upgrade` otherwise).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users seed-admin
#   Create or refresh the admin from ADMIN_USERNAME / ADMIN_NAME / ADMIN_PASSWORD.
# - python -m flask users create --username kasir --name "Kasir 1" --role VIEWER
#   Create a user (prompts for the password).
# - python -m flask users list
#
# Ledger:
# - python -m flask ledger reconcile [--product-id 3]
#   Compare stock counters with the movement ledger; exits 1 on mismatch.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ApiError
from .extensions import db
from .models import User
from .permissions import ROLES, DEFAULT_ROLE
from .services import auth_service, inventory_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Database tables created")


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
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('seed-admin')
@click.option('--username', help='Defaults to ADMIN_USERNAME')
@click.option('--name', help='Defaults to ADMIN_NAME')
@click.option('--password', help='Defaults to ADMIN_PASSWORD')
@with_appcontext
def seed_admin_cli(username, name, password):
    """Create the admin account, or reset its password and role if it exists."""
    username = username or current_app.config["ADMIN_USERNAME"]
    name = name or current_app.config["ADMIN_NAME"]
    password = password or current_app.config["ADMIN_PASSWORD"]

    if not password:
        raise click.ClickException("No password given and ADMIN_PASSWORD is not set")

    try:
        user, created = auth_service.seed_admin(username, password, name=name)
    except ApiError as e:
        raise click.ClickException(e.message)

    if created:
        click.echo(f"PASS Created admin: {user.username} (ID: {user.id})")
    else:
        click.echo(f"PASS Updated admin: {user.username} (ID: {user.id})")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--name', default=None, help='Display name (defaults to username)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default=DEFAULT_ROLE, show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, name, password, role):
    """
    Create a new user.

    Password must be at least 8 characters.
    """
    try:
        user = auth_service.create_user(username, password, name=name, role=role)
    except ApiError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.username} with role '{user.role}' (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.username).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<8} {'Active'}")
    click.echo("="*72)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.name:<25} {user.role:<8} {active_str}")

    click.echo("="*72 + "\n")


@click.group('ledger')
def ledger_group():
    """Stock ledger inspection."""


@ledger_group.command('reconcile')
@click.option('--product-id', type=int, default=None, help='Check a single product')
@with_appcontext
def reconcile_cli(product_id):
    """Compare each product's stock counter with the movement ledger."""
    mismatches = inventory_service.reconcile(product_id)

    if not mismatches:
        click.echo("PASS Ledger and stock counters agree")
        return

    for m in mismatches:
        click.echo(
            f"FAIL product {m['productId']} ({m['productName']}): "
            f"stockQty={m['stockQty']} ledger={m['ledgerQty']}"
        )
    raise click.exceptions.Exit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(ledger_group)
