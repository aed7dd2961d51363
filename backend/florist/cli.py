# Overview: Flask CLI command groups for bootstrap, card fee settings, and reminder sweeps.

# backend/florist/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create missing tables and seed the default card companies (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Card company fee settings:
# - python -m flask cards list [--all]
#   List card companies with fee rate and deposit lag.
# - python -m flask cards create --name "Hyundai" --fee-rate 2.1 --deposit-days 3
#   Add (or reactivate) a card company.
# - python -m flask cards seed
#   Insert any missing default card companies.
#
# Reminder sweeps (same work the cron endpoints do):
# - python -m flask reminders hourly
# - python -m flask reminders daily

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .errors import PushNotConfiguredError, StorageError
from .extensions import db
from .services import fee_schedule_service
from .services import reminder_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create tables and seed default card companies."""
    db.create_all()
    created = fee_schedule_service.seed_default_card_companies()
    click.echo(f"PASS Database ready ({created} card compan{'y' if created == 1 else 'ies'} seeded)")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init-db' to seed defaults.")


@click.group('cards')
def cards_group():
    """Card company fee schedule commands."""


@cards_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include deactivated companies')
@with_appcontext
def list_cards(include_inactive):
    rows = fee_schedule_service.list_card_companies(include_inactive=include_inactive)
    if not rows:
        click.echo("No card companies configured.")
        return

    click.echo(f"{'ID':<5} {'Name':<20} {'Fee %':>7} {'Days':>5} {'Active':>7}")
    click.echo("-" * 48)
    for row in rows:
        active = "yes" if row.is_active else "no"
        click.echo(f"{row.id:<5} {row.name:<20} {row.fee_rate:>7} {row.deposit_days:>5} {active:>7}")


@cards_group.command('create')
@click.option('--name', required=True, help='Card company name (matched exactly on sales)')
@click.option('--fee-rate', type=Decimal, default=fee_schedule_service.DEFAULT_FEE_RATE, show_default=True, help='Fee percent')
@click.option('--deposit-days', type=int, default=fee_schedule_service.DEFAULT_DEPOSIT_DAYS, show_default=True, help='Business days until deposit')
@with_appcontext
def create_card(name, fee_rate, deposit_days):
    try:
        row = fee_schedule_service.create_card_company(name=name, fee_rate=fee_rate, deposit_days=deposit_days)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Saved card company {row.name} (id={row.id}, fee={row.fee_rate}%, days={row.deposit_days})")


@cards_group.command('seed')
@with_appcontext
def seed_cards():
    created = fee_schedule_service.seed_default_card_companies()
    click.echo(f"PASS Seeded {created} card compan{'y' if created == 1 else 'ies'}")


@click.group('reminders')
def reminders_group():
    """Run reservation reminder sweeps manually."""


@reminders_group.command('hourly')
@with_appcontext
def hourly_sweep():
    try:
        result = reminder_service.run_hourly_sweep()
    except (StorageError, PushNotConfiguredError) as e:
        raise click.ClickException(str(e))
    click.echo(f"{result.to_dict()['message']}: reminders={result.reminders} sent={result.sent} failed={result.failed}")


@reminders_group.command('daily')
@with_appcontext
def daily_sweep():
    try:
        result = reminder_service.run_daily_sweep()
    except (StorageError, PushNotConfiguredError) as e:
        raise click.ClickException(str(e))
    click.echo(
        f"Daily reminder sent: today={result.today_reservations} "
        f"advance={result.advance_reminders} sent={result.sent} failed={result.failed}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(cards_group)
    app.cli.add_command(reminders_group)
