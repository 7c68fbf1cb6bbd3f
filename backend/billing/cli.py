# Overview: Flask CLI command groups for bootstrap and balance maintenance.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to billing (PowerShell: $env:FLASK_APP="billing").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Balance maintenance:
# - python -m flask billing recalc-credit [--customer-id 42]
#   Recompute outstanding credit from invoices for one or all customers.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import customer_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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


@click.group('billing')
def billing_group():
    """Invoice ledger maintenance commands."""


@billing_group.command('recalc-credit')
@click.option('--customer-id', type=int, default=None, help='Only this customer')
@with_appcontext
def recalc_credit(customer_id):
    """
    Recompute outstanding credit from unpaid invoices.

    Repairs customers whose stored balance no longer matches their invoices.
    """
    if customer_id is not None:
        credit = customer_service.recalculate_outstanding_credit(customer_id)
        if credit is None:
            db.session.rollback()
            raise click.ClickException(f"Customer {customer_id} not found")
        db.session.commit()
        click.echo(f"customer {customer_id}: {credit}")
        return

    results = customer_service.recalculate_all_outstanding_credit()
    db.session.commit()
    for cid, credit in results.items():
        click.echo(f"customer {cid}: {credit}")
    click.echo(f"PASS Recalculated {len(results)} customer(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(billing_group)
