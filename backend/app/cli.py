# Overview: Flask CLI command groups for bootstrap, configuration and reports.

# backend/app/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Store configuration:
# - python -m flask stores create --id mitho --name "Mitho Kitchen" --timezone Europe/London
# - python -m flask stores set-equipment --store-id mitho --equipment '[{"id":"freezer1","label":"Freezer 1"}]'
# - python -m flask stores list
#
# Items:
# - python -m flask items create --store-id mitho --name Milk --category Dairy --unit litre --threshold 5
# - python -m flask items list --store-id mitho
#
# Users:
# - python -m flask users create --employee-id emp01 --store-id mitho --pin 1234 --name "Sam"
# - python -m flask users create --employee-id boss --role admin
# - python -m flask users list
#
# Reports:
# - python -m flask reports summary --store mitho --mode WEEKLY --anchor 2024-01-17
#   Print the ranked summary as CSV.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import ROLE_ADMIN, ROLE_EMPLOYEE
from .services import employee_service, item_service, reporting_service, store_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete.")


@click.group('stores')
def stores_group():
    """Store configuration commands."""


@stores_group.command('create')
@click.option('--id', 'store_id', required=True, help='Store id slug (3-40 chars, letters/numbers/_-)')
@click.option('--name', default=None, help='Display name (defaults to the id)')
@click.option('--timezone', default=None, help='IANA timezone for day keys')
@with_appcontext
def create_store_cli(store_id, name, timezone):
    """Create a store with no equipment configured."""
    try:
        store = store_service.create_store(store_id, name, timezone=timezone)
    except (store_service.StoreError, ConflictError) as e:
        click.echo(f"FAIL Failed to create store: {e}")
        return
    click.echo(f"PASS Created store: {store.name} (ID: {store.id})")


@stores_group.command('set-equipment')
@click.option('--store-id', required=True, help='Store id')
@click.option('--equipment', 'equipment_json', required=True, help='JSON list of {id, label, min?, max?}')
@with_appcontext
def set_equipment_cli(store_id, equipment_json):
    """Replace the ordered temperature equipment list of a store."""
    try:
        equipment = json.loads(equipment_json)
    except json.JSONDecodeError as e:
        click.echo(f"FAIL Equipment is not valid JSON: {e}")
        return

    try:
        store = store_service.set_temperature_equipment(store_id, equipment)
    except store_service.StoreError as e:
        click.echo(f"FAIL Failed to set equipment: {e}")
        return

    labels = ", ".join(eq["label"] for eq in store.temperature_equipment) or "none"
    click.echo(f"PASS Equipment for {store.id}: {labels}")


@stores_group.command('list')
@with_appcontext
def list_stores_cli():
    """List all stores."""
    stores = store_service.list_stores()
    if not stores:
        click.echo("No stores found.")
        return

    click.echo("\n" + "=" * 70)
    click.echo(f"{'ID':<20} {'Name':<30} {'Active':<8} {'Equipment'}")
    click.echo("=" * 70)
    for store in stores:
        active_str = "Yes" if store.is_active else "No"
        click.echo(f"{store.id:<20} {store.name:<30} {active_str:<8} {len(store.temperature_equipment or [])}")
    click.echo("=" * 70 + "\n")


@click.group('items')
def items_group():
    """Stock item commands."""


@items_group.command('create')
@click.option('--store-id', required=True, help='Store id')
@click.option('--name', required=True, help='Item name')
@click.option('--category', default=None, help='Category (default Uncategorized)')
@click.option('--unit', default=item_service.DEFAULT_UNIT, show_default=True,
              type=click.Choice(item_service.UNIT_OPTIONS), help='Default unit')
@click.option('--threshold', type=float, default=None, help='Low stock threshold')
@with_appcontext
def create_item_cli(store_id, name, category, unit, threshold):
    """Create a stock item at the end of the store's counting order."""
    payload = {"name": name, "default_unit": unit}
    if category:
        payload["category"] = category
    if threshold is not None:
        payload["low_stock_threshold"] = threshold

    try:
        item = item_service.create_item(store_id, payload)
    except (item_service.ItemError, ValidationError) as e:
        click.echo(f"FAIL Failed to create item: {e}")
        return
    click.echo(f"PASS Created item: {item.name} (ID: {item.id}, sort order {item.sort_order})")


@items_group.command('list')
@click.option('--store-id', required=True, help='Store id')
@click.option('--all', 'include_inactive', is_flag=True, help='Include disabled items')
@with_appcontext
def list_items_cli(store_id, include_inactive):
    """List items in counting order."""
    items = item_service.list_items(store_id, include_inactive=include_inactive)
    if not items:
        click.echo("No items found.")
        return
    for item in items:
        threshold = "-" if item.low_stock_threshold is None else item.low_stock_threshold
        flag = "" if item.is_active else " (disabled)"
        click.echo(f"{item.sort_order or '-':<6} {item.name:<30} {item.category:<20} low<={threshold}{flag}")


@click.group('users')
def users_group():
    """User profile commands."""


@users_group.command('create')
@click.option('--employee-id', required=True, help='Employee id (3-20 chars, letters/numbers/_-)')
@click.option('--store-id', default=None, help='Store the employee works at')
@click.option('--name', default=None, help='Display name')
@click.option('--pin', default=None, help='4-digit PIN (employees only)')
@click.option('--role', type=click.Choice([ROLE_EMPLOYEE, ROLE_ADMIN]), default=ROLE_EMPLOYEE, show_default=True)
@with_appcontext
def create_user_cli(employee_id, store_id, name, pin, role):
    """
    Create a user profile.

    Employees need --store-id and --pin. Admins created without --store-id
    can access every store.
    """
    try:
        if role == ROLE_ADMIN:
            user = employee_service.create_admin(
                employee_id=employee_id,
                name=name,
                store_ids=[store_id] if store_id else [],
            )
        else:
            user = employee_service.create_employee(
                store_id=store_id,
                employee_id=employee_id,
                pin=pin,
                name=name,
            )
    except (employee_service.EmployeeError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        return

    click.echo(f"PASS Created {user.role}: {user.employee_id} (ID: {user.id})")
    if user.pin_hash:
        click.echo("SECURITY PIN securely hashed with bcrypt")


@users_group.command('list')
@click.option('--store-id', default=None, help='Only users granted this store')
@with_appcontext
def list_users_cli(store_id):
    """List user profiles."""
    users = employee_service.list_employees(store_id)
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Employee':<20} {'Name':<20} {'Role':<10} {'Active':<8} {'Stores'}")
    click.echo("=" * 80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        stores_str = ", ".join(user.store_ids or []) or ("all" if user.is_admin else "none")
        click.echo(f"{user.id:<5} {user.employee_id:<20} {user.name or '':<20} {user.role:<10} {active_str:<8} {stores_str}")
    click.echo("=" * 80 + "\n")


@click.group('reports')
def reports_group():
    """Stock report commands."""


@reports_group.command('summary')
@click.option('--store', 'store_id', required=True, help='Store id')
@click.option('--mode', type=click.Choice(reporting_service.REPORT_MODES, case_sensitive=False),
              default=reporting_service.MODE_WEEKLY, show_default=True)
@click.option('--anchor', required=True, help='Anchor day, YYYY-MM-DD')
@with_appcontext
def report_summary_cli(store_id, mode, anchor):
    """Print the ranked problem-item summary as CSV."""
    try:
        filename, body = reporting_service.summary_csv(store_id=store_id, mode=mode, anchor=anchor)
    except reporting_service.ReportError as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"# {filename}")
    click.echo(body)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(items_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reports_group)
