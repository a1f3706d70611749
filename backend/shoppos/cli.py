# Overview: Flask CLI command groups for bootstrap and data maintenance.

# backend/shoppos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and a default admin user if no users exist.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Data management:
# - python -m flask data export --output backup.json
#   Write categories, products, employees, sales and purchase invoices to JSON.
# - python -m flask data import --input backup.json --yes
#   Replace all catalog, staff and transaction data with the file's contents.
# - python -m flask data clear --yes
#   Delete all catalog, staff and transaction data (users are kept).

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import data_service
from .services.user_service import create_user
from .validation import ValidationError


DEFAULT_ADMIN = {"username": "admin", "email": "admin@shoppos.local", "role": "admin"}
DEFAULT_ADMIN_PASSWORD = "admin123"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all tables and a default admin user.

    The admin is only created when the users table is empty.
    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing ShopPOS...")
    db.create_all()
    click.echo("PASS Tables ready")

    if db.session.query(User).first() is not None:
        click.echo("WARN  Users already exist, skipping default admin")
        return

    user = create_user(patch=dict(DEFAULT_ADMIN), password=DEFAULT_ADMIN_PASSWORD)
    click.echo(f"PASS Created user: {user.username} ({user.email}) with role '{user.role}'")
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {user.username} / {DEFAULT_ADMIN_PASSWORD}")


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


@click.group('data')
def data_group():
    """Export, import and clear shop data."""


@data_group.command('export')
@click.option('--output', type=click.Path(dir_okay=False, writable=True), default=None,
              help='File to write (stdout when omitted)')
@with_appcontext
def export_command(output):
    payload = data_service.export_data()
    text = json.dumps(payload, indent=2)
    if output is None:
        click.echo(text)
        return
    with open(output, "w", encoding="utf-8") as fh:
        fh.write(text)
    click.echo(
        f"PASS Exported {len(payload['products'])} products, {len(payload['sales'])} sales, "
        f"{len(payload['purchaseInvoices'])} purchase invoices to {output}"
    )


@data_group.command('import')
@click.option('--input', 'input_path', required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def import_command(input_path, yes):
    """Replace ALL catalog, staff and transaction data with the file's contents."""
    if not yes:
        click.confirm("WARN This will REPLACE all shop data. Are you sure?", abort=True)

    with open(input_path, encoding="utf-8") as fh:
        try:
            payload = json.load(fh)
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Invalid JSON: {exc}")

    try:
        counts = data_service.import_data(payload)
    except ValidationError as exc:
        raise click.ClickException(str(exc))

    for key, count in counts.items():
        click.echo(f"PASS {key}: {count}")


@data_group.command('clear')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def clear_command(yes):
    """Delete all catalog, staff and transaction data. Users are kept."""
    if not yes:
        click.confirm("WARN This will DELETE all shop data. Are you sure?", abort=True)

    counts = data_service.clear_data()
    for table, count in counts.items():
        click.echo(f"DELETE  {table}: {count}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(data_group)
