"""
CLI command tests.
"""

from billing.extensions import db
from billing.models import Customer


def test_recalc_credit_single_customer(app, customer, make_invoice):
    make_invoice(unpaid=1200)
    customer.outstanding_credit_cents = 5
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["billing", "recalc-credit", "--customer-id", "42"])

    assert result.exit_code == 0
    assert "customer 42: 1200" in result.output
    db.session.expire_all()
    assert db.session.get(Customer, 42).outstanding_credit_cents == 1200


def test_recalc_credit_unknown_customer(app, db_session):
    result = app.test_cli_runner().invoke(args=["billing", "recalc-credit", "--customer-id", "9"])

    assert result.exit_code != 0
    assert "Customer 9 not found" in result.output


def test_recalc_credit_all(app, db_session, make_invoice):
    db_session.add_all([
        Customer(id=1, name="A", outstanding_credit_cents=0),
        Customer(id=2, name="B", outstanding_credit_cents=900),
    ])
    db_session.commit()
    make_invoice(unpaid=300, customer_id=1)

    result = app.test_cli_runner().invoke(args=["billing", "recalc-credit"])

    assert result.exit_code == 0
    assert "customer 1: 300" in result.output
    assert "customer 2: 0" in result.output
    assert "PASS Recalculated 2 customer(s)." in result.output


def test_init_db_is_idempotent(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init-db"])

    assert result.exit_code == 0
    assert "PASS Tables created." in result.output
