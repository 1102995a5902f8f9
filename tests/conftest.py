"""
Pytest configuration and shared fixtures for the barber booking tests.
"""

import datetime
import os
from decimal import Decimal

os.environ.setdefault("TESTING", "True")
os.environ.setdefault("FLASK_ENV", "testing")

import pytest  # noqa: E402
from main import create_app  # noqa: E402
from barberhub.extensions import db as database  # noqa: E402
from barberhub.models import Base, Barber, Booking, Payment, User  # noqa: E402
from barberhub.services.midtrans_service import MidtransError  # noqa: E402
from barberhub.utils.auth_utils import generate_token, hash_password  # noqa: E402


class FakeGateway:
    """Stands in for the Midtrans client; records every call it receives."""

    def __init__(self):
        self.calls = []
        self.error = None
        self.snap_response = {
            "token": "snap-token-123",
            "redirect_url": "https://app.sandbox.midtrans.com/snap/v2/vtweb/snap-token-123",
        }
        self.charge_response = {
            "status_code": "201",
            "transaction_id": "trx-abc-123",
            "transaction_status": "pending",
            "actions": [{"name": "generate-qr-code", "url": "https://api.sandbox.midtrans.com/qr"}],
        }
        self.status_response = {
            "status_code": "200",
            "transaction_status": "settlement",
            "order_id": "ORDER_1_1",
        }

    def _call(self, name, payload, response):
        self.calls.append((name, payload))
        if self.error is not None:
            raise self.error
        return dict(response)

    def create_snap_transaction(self, payload):
        return self._call("snap", payload, self.snap_response)

    def charge(self, payload):
        return self._call("charge", payload, self.charge_response)

    def transaction_status(self, transaction_id):
        return self._call("status", transaction_id, self.status_response)

    def fail_with(self, message):
        self.error = MidtransError(message, 400)


@pytest.fixture
def app(tmp_path):
    """A fresh app on an in-memory SQLite database."""
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "JWT_SECRET": "test-jwt-secret",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "S3_BUCKET_NAME": None,
            "PUBLIC_BASE_URL": "http://testserver",
        }
    )
    app.extensions["midtrans"] = FakeGateway()

    with app.app_context():
        Base.metadata.create_all(bind=database.engine)

    yield app

    with app.app_context():
        database.session.remove()
        Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateway(app):
    return app.extensions["midtrans"]


def _headers(app, user_id, role):
    with app.app_context():
        token = generate_token(user_id, role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(app):
    return _headers(app, 900, "admin")


@pytest.fixture
def barber_headers(app):
    return _headers(app, 901, "barber")


@pytest.fixture
def user_headers(app):
    return _headers(app, 902, "user")


@pytest.fixture
def customer(app):
    """A registered customer; returns the user id."""
    with app.app_context():
        user = User(
            username="andi",
            email="andi@example.com",
            password=hash_password("password123"),
            role="user",
        )
        database.session.add(user)
        database.session.commit()
        return user.id


@pytest.fixture
def barber(app):
    """A barber with bank payout details; returns the barber id."""
    with app.app_context():
        barber = Barber(
            name="Budi Barber",
            services="Haircut, Shave",
            paket="Basic",
            paket_description="Cut and wash",
            price=Decimal("50000.00"),
            phone_number="081234567890",
            latitude=Decimal("1.000000"),
            longitude=Decimal("2.000000"),
            bank_name="BCA",
            account_number="1234567890",
            payment_method="tf",
        )
        database.session.add(barber)
        database.session.commit()
        return barber.id


@pytest.fixture
def booking(app, barber, customer):
    """A pending booking by the customer with the barber; returns the booking id."""
    with app.app_context():
        booking = Booking(
            email="andi@example.com",
            barber_id=barber,
            appointment_time=datetime.datetime(2024, 1, 1, 10, 0, 0),
            location="barbershop",
            service="Haircut",
            paket="Basic",
            price=Decimal("50000.00"),
            payment_method="tf",
            latitude=Decimal("1.000000"),
            longitude=Decimal("2.000000"),
            bank_name="BCA",
            account_number="1234567890",
        )
        database.session.add(booking)
        database.session.commit()
        return booking.id


@pytest.fixture
def make_payment(app, booking, barber):
    """Factory inserting a payment row for the booking; returns its id."""

    def _make(payment_id="PAYMENT_1_1", order_id="ORDER_1_1", status="pending", token="trx-1"):
        with app.app_context():
            payment = Payment(
                id=payment_id,
                booking_id=booking,
                order_id=order_id,
                amount=Decimal("50000.00"),
                payment_method="tf",
                status=status,
                bank_name="BCA",
                account_number="1234567890",
                barber_id=barber,
                barber_name="Budi Barber",
                barber_phone_number="081234567890",
                user_email="andi@example.com",
                midtrans_token=token,
            )
            database.session.add(payment)
            database.session.commit()
            return payment.id

    return _make
