#!/usr/bin/env python3
"""
Database build for the back office
Creates the tables, seeds critical data and optionally loads demo data
"""

from pathlib import Path
import json
from flask import current_app
from backoffice import db
from backoffice.utils.logger import get_logger

logger = get_logger("backoffice.build")

DATA_DIR = Path(__file__).parent / 'data'


def _load_json(path):
    if not path.exists():
        error_msg = f"Build data file not found: {path}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def verify_critical_data():
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if an active admin user exists
    """
    from backoffice.data.core.user_info.user import User, ROLE_ADMIN

    admin_user = User.query.filter_by(username='admin', role=ROLE_ADMIN).first()
    if not admin_user:
        logger.warning("Admin user not found")
        return False

    logger.info("Critical data verification passed")
    return True


def insert_critical_data():
    """
    Insert critical data that must always be present

    Loads data/core/build_data_critical.json. The admin password comes from
    ADMIN_USER_PASSWORD.

    Raises:
        FileNotFoundError: If the critical data file is missing
        RuntimeError: If ADMIN_USER_PASSWORD is not configured or insertion fails
    """
    critical_data = _load_json(DATA_DIR / 'core' / 'build_data_critical.json')

    if verify_critical_data():
        logger.info("Critical data already present, skipping insertion")
        return

    admin_password = current_app.config.get('ADMIN_USER_PASSWORD')
    if not admin_password:
        raise RuntimeError("ADMIN_USER_PASSWORD must be set to create the admin user (run generate_env.py)")

    from backoffice.data.core.user_info.user import User

    try:
        for user_key, user_data in critical_data.get('Essential', {}).get('Users', {}).items():
            user_data = dict(user_data)
            if user_key == 'admin':
                user_data['password'] = admin_password
            User.find_or_create_from_dict(user_data, lookup_fields=['username'])
            logger.info(f"Inserted essential user: {user_data.get('username')}")

        db.session.commit()
        logger.info("Successfully inserted critical data")
    except Exception as e:
        db.session.rollback()
        logger.error(f"Critical data insertion failed: {e}")
        raise RuntimeError(f"Critical data insertion failed: {e}") from e

    if not verify_critical_data():
        raise RuntimeError("Critical data insertion completed but verification failed")


def insert_demo_data():
    """
    Insert demo users, inventory and an expense.

    Skipped when inventory already exists so repeated builds stay idempotent.
    """
    from backoffice.data.core.user_info.user import User
    from backoffice.data.inventory.inventory_item import InventoryItem
    from backoffice.buisness.inventory.inventory_manager import InventoryManager
    from backoffice.buisness.finance.sales_manager import SalesManager

    if InventoryItem.query.first() is not None:
        logger.info("Inventory already present, skipping demo data")
        return

    demo_data = _load_json(DATA_DIR / 'demo' / 'build_data_demo.json')
    admin = User.query.filter_by(username='admin').first()
    admin_id = admin.id if admin else None

    try:
        for user_data in demo_data.get('Users', {}).values():
            User.find_or_create_from_dict(user_data, lookup_fields=['username'])

        inventory = InventoryManager(admin_id)
        for item_data in demo_data.get('Inventory', []):
            inventory.create_item(item_data)

        finance = SalesManager(admin_id)
        for expense_data in demo_data.get('Expenses', []):
            finance.record_expense(expense_data)

        db.session.commit()
        logger.info("Demo data inserted")
    except Exception as e:
        db.session.rollback()
        logger.error(f"Demo data insertion failed: {e}")
        raise


def build_database(app=None, demo_data=False):
    """
    Create all tables and seed critical data.

    Args:
        app: Flask app to build against (default: a new app from the environment)
        demo_data (bool): Also insert demo data
    """
    if app is None:
        from backoffice import create_app
        app = create_app()

    with app.app_context():
        logger.info(f"Starting database build (demo data: {demo_data})")
        db.create_all()
        logger.info("All database tables created")

        insert_critical_data()

        if demo_data:
            insert_demo_data()

        logger.info("Database build completed successfully")
