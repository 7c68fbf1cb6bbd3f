"""
Pytest fixtures for billing backend tests.

Provides test database setup, seed data factories, and test client.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from billing import create_app
from billing.extensions import db
from billing.models import Customer, Invoice, Product, StockQuantity
from billing.services.payment_status import derive_status


BASE_TIME = datetime(2026, 1, 1, 9, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SETTLEMENT_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def cashier():
    return {
        "cashier_id": "C-01",
        "cashier_name": "Asha",
        "counter_num": "2",
        "contact_number": "9000000001",
    }


@pytest.fixture(scope='function')
def customer(db_session):
    """Customer 42 with no balance."""
    cust = Customer(id=42, name="Ravi Kumar", contact="9845000000", outstanding_credit_cents=0)
    db_session.add(cust)
    db_session.commit()
    return cust


@pytest.fixture(scope='function')
def cement(db_session):
    """Cement sold by the bag, stocked in bags (100 on hand)."""
    product = Product(product_code="CEM-01", product_name="Cement", base_unit="bag", conversion_rate=Decimal("1"))
    stock = StockQuantity(product_code="CEM-01", available_quantity=Decimal("100"))
    db_session.add_all([product, stock])
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def tiles(db_session):
    """Tiles stocked in boxes of 12, sold by the piece or by the box."""
    product = Product(product_code="TIL-01", product_name="Floor Tile", base_unit="box", conversion_rate=Decimal("12"))
    stock = StockQuantity(product_code="TIL-01", available_quantity=Decimal("10"))
    db_session.add_all([product, stock])
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def make_invoice(db_session, cashier):
    """
    Factory for persisted invoices with a given unpaid balance.

    Usage: make_invoice(unpaid=50000, days=1) creates an invoice dated
    BASE_TIME + days with grand total paid + unpaid.
    """
    counter = {"n": 0}

    def _make(unpaid: int, paid: int = 0, days: int = 0, customer_id: int = 42, number: str | None = None) -> Invoice:
        counter["n"] += 1
        invoice = Invoice(
            invoice_number=number or f"OLD-{counter['n']:04d}",
            customer_id=customer_id,
            customer_name="Ravi Kumar",
            customer_contact="9845000000",
            cashier_id=cashier["cashier_id"],
            cashier_name=cashier["cashier_name"],
            counter_num=cashier["counter_num"],
            product_subtotal_cents=paid + unpaid,
            current_bill_total_cents=paid + unpaid,
            grand_total_cents=paid + unpaid,
            paid_amount_cents=paid,
            unpaid_amount_cents=unpaid,
            status=derive_status(paid, unpaid),
            payment_method="cash",
            created_at=BASE_TIME + timedelta(days=days),
        )
        db_session.add(invoice)
        db_session.commit()
        return invoice

    return _make


def stock_of(product_code: str) -> Decimal:
    db.session.expire_all()
    stock = db.session.query(StockQuantity).filter_by(product_code=product_code).one()
    return Decimal(str(stock.available_quantity))


def invoice_payload(cashier_details: dict, **overrides) -> dict:
    """Create-invoice request body for customer 42 with one cement line."""
    payload = {
        "customer": {"id": 42, "name": "Ravi Kumar", "contact": "9845000000"},
        "cashier": cashier_details,
        "line_items": [
            {
                "name": "Cement",
                "code": "CEM-01",
                "quantity": 2,
                "unit": "bag",
                "unit_price_cents": 59000,
                "basic_price_cents": 50000,
                "gst_amount_cents": 4500,
                "sgst_amount_cents": 4500,
                "gst_rate_bps": 900,
                "sgst_rate_bps": 900,
                "total_price_cents": 118000,
                "hsn_code": "2523",
            }
        ],
        "transport_charge_cents": 2000,
        "payment": {
            "method": "cash",
            "current_bill_payment_cents": 60000,
            "outstanding_payment_cents": 0,
        },
    }
    payload.update(overrides)
    return payload
