"""
Administrative Flask CLI commands

    flask --app backoffice build-db [--demo-data]
    flask --app backoffice expire-quotes
    flask --app backoffice update-overdue
    flask --app backoffice verify-ledger [--item-id N]
"""
from datetime import datetime

import click
from flask import current_app
from flask.cli import with_appcontext

from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.cli")


def register_commands(app):
    app.cli.add_command(build_db_command)
    app.cli.add_command(expire_quotes_command)
    app.cli.add_command(update_overdue_command)
    app.cli.add_command(verify_ledger_command)


@click.command('build-db')
@with_appcontext
@click.option('--demo-data', is_flag=True, help='Insert demo users, inventory and expenses')
def build_db_command(demo_data):
    """Create tables and seed critical data."""
    from backoffice.build import build_database
    build_database(current_app._get_current_object(), demo_data=demo_data)
    click.echo("Database build complete")


@click.command('expire-quotes')
@with_appcontext
def expire_quotes_command():
    """Move open quotes past their validity date to 'expired'."""
    from backoffice.buisness.core.transaction import run_in_transaction
    from backoffice.buisness.quotes.quote_manager import QuoteManager

    manager = QuoteManager()
    expired_ids = run_in_transaction(lambda: manager.check_expired_quotes(datetime.utcnow()))
    logger.info(f"CLI expiry sweep expired {len(expired_ids)} quote(s)")
    click.echo(f"Expired {len(expired_ids)} quote(s)")


@click.command('update-overdue')
@with_appcontext
def update_overdue_command():
    """Mark pending/partial invoices past their due date as overdue."""
    from backoffice.buisness.core.transaction import run_in_transaction
    from backoffice.buisness.finance.invoice_manager import InvoiceManager

    manager = InvoiceManager()
    overdue_ids = run_in_transaction(lambda: manager.mark_overdue_invoices(datetime.utcnow()))
    logger.info(f"CLI overdue sweep marked {len(overdue_ids)} invoice(s)")
    click.echo(f"Marked {len(overdue_ids)} invoice(s) overdue")


@click.command('verify-ledger')
@with_appcontext
@click.option('--item-id', type=int, default=None, help='Check a single inventory item')
def verify_ledger_command(item_id):
    """Check every item's stock against its movement ledger."""
    from backoffice.buisness.inventory.stock_ledger import StockLedger
    from backoffice.data.inventory.inventory_item import InventoryItem

    ledger = StockLedger()
    items = [ledger.get_item(item_id)] if item_id else InventoryItem.query.order_by(InventoryItem.id).all()

    failures = 0
    for item in items:
        report = ledger.verify_ledger(item)
        if report.is_consistent:
            click.echo(f"OK    item {item.id} {item.product_name}: {report.current_stock}")
        else:
            failures += 1
            click.echo(
                f"FAIL  item {item.id} {item.product_name}: stock {report.current_stock}, "
                f"ledger {report.initial_stock + report.ledger_total}, "
                f"{len(report.chain_breaks)} chain break(s)"
            )

    if failures:
        raise click.ClickException(f"{failures} item(s) failed ledger verification")
    click.echo(f"{len(items)} item(s) verified")
