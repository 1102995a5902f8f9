import io
import json
import os

import pytest

from barberhub.extensions import db
from barberhub.models import Payment, PaymentProof, PaymentStatus
from sqlalchemy import select


def _post(client, path, data):
    return client.post(path, data=json.dumps(data), content_type="application/json")


def _payments(app):
    with app.app_context():
        return db.session.scalars(select(Payment)).all()


@pytest.mark.payment
class TestPaymentStatusKind:
    """Test suite for classifying gateway states."""

    @pytest.mark.parametrize("raw", ["settlement", "PENDING", " expire ", "partial_refund"])
    def test_known_states(self, raw):
        assert PaymentStatus.classify(raw).value == raw.strip().lower()

    @pytest.mark.parametrize("raw", ["paid", "", None, "chargeback"])
    def test_unknown_states(self, raw):
        assert PaymentStatus.classify(raw) is PaymentStatus.OTHER

    def test_known_values_exclude_other(self):
        assert "other" not in PaymentStatus.known_values()
        assert "settlement" in PaymentStatus.known_values()


@pytest.mark.payment
class TestSnapPayment:
    """Test suite for hosted checkout transactions."""

    def test_snap_bank_transfer(self, app, client, gateway, booking):
        response = _post(client, "/api/payments/snap", {
            "bookingId": booking,
            "paymentMethod": "bank_transfer",
        })

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["snapToken"] == "snap-token-123"
        assert data["redirectUrl"].endswith("snap-token-123")
        assert data["booking"]["barberName"] == "Budi Barber"
        assert data["orderId"].startswith(f"ORDER_{booking}_")
        assert data["paymentId"].startswith(f"PAYMENT_{booking}_")

        name, payload = gateway.calls[0]
        assert name == "snap"
        assert payload["enabled_payments"] == ["bank_transfer"]
        assert payload["bank_transfer"] == {"bank": "bca"}
        assert payload["transaction_details"] == {
            "order_id": data["orderId"],
            "gross_amount": 50000,
        }
        assert payload["customer_details"]["email"] == "andi@example.com"
        assert payload["customer_details"]["phone"] == "08123456789"

        [payment] = _payments(app)
        assert payment.status == "pending"
        assert payment.payment_method == "tf"
        assert payment.midtrans_token == "snap-token-123"
        assert payment.bank_name == "BCA"
        assert payment.user_email == "andi@example.com"

    def test_snap_qris(self, app, client, gateway, booking):
        response = _post(client, "/api/payments/snap", {
            "bookingId": booking,
            "paymentMethod": "qris",
            "qrisCode": "00020101021126",
        })

        assert response.status_code == 201
        assert gateway.calls[0][1]["enabled_payments"] == ["other_qris"]
        [payment] = _payments(app)
        assert payment.payment_method == "qris"
        assert payment.qris_code == "00020101021126"

    def test_snap_unknown_booking(self, client, gateway, booking):
        response = _post(client, "/api/payments/snap", {
            "bookingId": 99999,
            "paymentMethod": "qris",
        })

        assert response.status_code == 404
        assert gateway.calls == []

    def test_snap_invalid_method(self, client, booking):
        response = _post(client, "/api/payments/snap", {
            "bookingId": booking,
            "paymentMethod": "cash",
        })
        assert response.status_code == 400

    def test_snap_gateway_failure_stores_nothing(self, app, client, gateway, booking):
        gateway.fail_with("Access denied due to unauthorized transaction")

        response = _post(client, "/api/payments/snap", {
            "bookingId": booking,
            "paymentMethod": "tf",
        })

        assert response.status_code == 500
        assert json.loads(response.data)["error"] == "Access denied due to unauthorized transaction"
        assert _payments(app) == []


@pytest.mark.payment
class TestDirectPayment:
    """Test suite for Core API charges."""

    def test_qris_charge_returns_qr_image(self, app, client, gateway, booking):
        response = _post(client, "/api/payments/pay", {
            "bookingId": booking,
            "paymentMethod": "qris",
            "qrisCode": "00020101021126570011ID.CO.QRIS",
        })

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["qrCodeImage"].startswith("data:image/png;base64,")
        assert data["token"] == "trx-abc-123"
        assert data["redirectUrl"] == "https://api.sandbox.midtrans.com/qr"

        name, payload = gateway.calls[0]
        assert name == "charge"
        assert payload["payment_type"] == "qris"

        [payment] = _payments(app)
        assert payment.midtrans_token == "trx-abc-123"
        assert payment.status == "pending"

    def test_bank_transfer_charge(self, app, client, gateway, booking):
        gateway.charge_response = {
            "status_code": "201",
            "transaction_id": "trx-va-1",
            "va_numbers": [{"bank": "bni", "va_number": "9881234"}],
        }

        response = _post(client, "/api/payments/pay", {
            "bookingId": booking,
            "paymentMethod": "tf",
            "bankName": "BNI",
            "accountNumber": "0011223344",
        })

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["qrCodeImage"] is None
        assert data["vaNumbers"][0]["va_number"] == "9881234"
        assert gateway.calls[0][1]["bank_transfer"] == {"bank": "bni"}

        [payment] = _payments(app)
        assert payment.bank_name == "BNI"
        assert payment.account_number == "0011223344"

    def test_bank_transfer_requires_bank_details(self, client, gateway, booking):
        response = _post(client, "/api/payments/pay", {
            "bookingId": booking,
            "paymentMethod": "tf",
        })

        assert response.status_code == 400
        errors = json.loads(response.data)["errors"]
        assert "bankName" in errors
        assert "accountNumber" in errors
        assert gateway.calls == []

    def test_qris_requires_code(self, client, booking):
        response = _post(client, "/api/payments/pay", {
            "bookingId": booking,
            "paymentMethod": "qris",
        })

        assert response.status_code == 400
        assert "qrisCode" in json.loads(response.data)["errors"]

    def test_charge_failure_leaves_no_payment(self, app, client, gateway, booking):
        gateway.fail_with("Payment channel is not activated")

        response = _post(client, "/api/payments/pay", {
            "bookingId": booking,
            "paymentMethod": "qris",
            "qrisCode": "000201",
        })

        assert response.status_code == 500
        assert _payments(app) == []

    def test_unknown_booking(self, client, booking):
        response = _post(client, "/api/payments/pay", {
            "bookingId": 99999,
            "paymentMethod": "qris",
            "qrisCode": "000201",
        })
        assert response.status_code == 404


@pytest.mark.payment
class TestLiveStatus:
    """Test suite for the live gateway status lookup."""

    def test_missing_transaction_id(self, client):
        response = _post(client, "/api/payments/payment-status-snap", {})
        assert response.status_code == 400

    def test_settled(self, client, gateway):
        response = _post(client, "/api/payments/payment-status-snap", {"transaction_id": "ORDER_1_1"})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["paymentReceipt"]["transaction_status"] == "settlement"
        assert gateway.calls == [("status", "ORDER_1_1")]

    def test_not_settled(self, client, gateway):
        gateway.status_response = {"status_code": "201", "transaction_status": "pending"}

        response = _post(client, "/api/payments/payment-status-snap", {"transaction_id": "ORDER_1_1"})

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["success"] is False
        assert data["paymentReceipt"]["transaction_status"] == "pending"

    def test_lookup_does_not_change_stored_status(self, app, client, make_payment):
        make_payment(order_id="ORDER_1_1")

        _post(client, "/api/payments/payment-status-snap", {"transaction_id": "ORDER_1_1"})

        [payment] = _payments(app)
        assert payment.status == "pending"

    def test_gateway_error(self, client, gateway):
        gateway.fail_with("Transaction doesn't exist.")

        response = _post(client, "/api/payments/payment-status-snap", {"transaction_id": "nope"})

        assert response.status_code == 500
        assert json.loads(response.data)["error"] == "Transaction doesn't exist."


@pytest.mark.payment
class TestPaymentLookups:
    """Test suite for stored payment reads."""

    def test_by_order_id_formats_jakarta_time(self, client, make_payment):
        make_payment(order_id="ORDER_7_1")

        response = client.get("/api/payments/ORDER_7_1")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["payment_identifier"] == "PAYMENT_1_1"
        assert data["barber_name"] == "Budi Barber"
        assert data["user_email"] == "andi@example.com"
        assert data["appointment_time"] == "Monday, 1 January 2024 pukul 17.00.00 PM"

    def test_by_order_id_nonexistent(self, client):
        assert client.get("/api/payments/ORDER_404").status_code == 404

    def test_status_order(self, client, make_payment):
        make_payment(order_id="ORDER_8_1", token="snap-xyz")

        response = client.get("/api/payments/ORDER_8_1/status-order")

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["payment_identifier"] == "snap-xyz"
        assert data["status_kind"] == "pending"

    def test_status_order_without_token(self, client, make_payment):
        make_payment(order_id="ORDER_9_1", token=None)

        response = client.get("/api/payments/ORDER_9_1/status-order")
        assert response.status_code == 400

    def test_payment_status(self, client, make_payment, booking):
        make_payment(payment_id="PAYMENT_X")

        response = client.get("/api/payments/PAYMENT_X/status")

        assert response.status_code == 200
        payment = json.loads(response.data)["payment"]
        assert payment["booking_id"] == booking
        assert payment["service"] == "Haircut"
        assert payment["latitude"] == 1.0

    def test_payments_for_barber(self, client, make_payment, barber):
        make_payment()

        response = client.get(f"/api/payments/barber/{barber}")

        assert response.status_code == 200
        [payment] = json.loads(response.data)["payments"]
        assert payment["proofFile"] == ""

    def test_payments_for_barber_without_payments(self, client, barber):
        response = client.get(f"/api/payments/barber/{barber}")
        assert response.status_code == 404

    def test_all_payments_newest_first(self, client, make_payment):
        make_payment(payment_id="PAYMENT_A", order_id="ORDER_A")
        make_payment(payment_id="PAYMENT_B", order_id="ORDER_B")

        response = client.get("/api/payments/")

        assert response.status_code == 200
        ids = [p["id"] for p in json.loads(response.data)["payments"]]
        assert sorted(ids) == ["PAYMENT_A", "PAYMENT_B"]

    def test_unknown_stored_status_is_classified_other(self, client, make_payment):
        make_payment(status="chargeback")

        payment = client.get("/api/payments/PAYMENT_1_1/status").get_json()["payment"]
        assert payment["status"] == "chargeback"
        assert payment["status_kind"] == "other"


@pytest.mark.payment
class TestPaymentAdmin:
    """Test suite for manual status changes and deletion."""

    def test_update_status(self, client, make_payment, admin_headers):
        make_payment()

        response = client.put(
            "/api/payments/PAYMENT_1_1",
            data=json.dumps({"status": "settlement"}),
            content_type="application/json",
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert json.loads(response.data)["payment"]["status"] == "settlement"

    def test_update_status_rejects_unknown(self, client, make_payment, barber_headers):
        make_payment()

        response = client.put(
            "/api/payments/PAYMENT_1_1",
            data=json.dumps({"status": "paid"}),
            content_type="application/json",
            headers=barber_headers,
        )
        assert response.status_code == 400

    def test_update_status_requires_token(self, client, make_payment):
        make_payment()

        response = client.put(
            "/api/payments/PAYMENT_1_1",
            data=json.dumps({"status": "settlement"}),
            content_type="application/json",
        )
        assert response.status_code == 403

    def test_delete_payment(self, app, client, make_payment, admin_headers):
        make_payment()

        response = client.delete("/api/payments/PAYMENT_1_1", headers=admin_headers)

        assert response.status_code == 200
        assert _payments(app) == []

    def test_delete_nonexistent(self, client, admin_headers):
        response = client.delete("/api/payments/PAYMENT_404", headers=admin_headers)
        assert response.status_code == 404


@pytest.mark.payment
class TestProofUpload:
    """Test suite for proof-of-payment uploads."""

    def _upload(self, client, payment_id, content=b"%PDF-1.4 proof", name="proof.pdf",
                mimetype="application/pdf"):
        return client.post(
            "/api/payments/upload-proof",
            data={"payment_id": payment_id, "proof": (io.BytesIO(content), name, mimetype)},
            content_type="multipart/form-data",
        )

    def test_upload_pdf(self, app, client, make_payment, barber):
        make_payment()

        response = self._upload(client, "PAYMENT_1_1")

        assert response.status_code == 200
        path = json.loads(response.data)["proofPath"]
        assert path.startswith("/uploads/proofs/")
        assert path.endswith("-proof.pdf")
        assert os.path.isfile(os.path.join(app.config["UPLOAD_FOLDER"], path[len("/uploads/"):]))

        with app.app_context():
            [proof] = db.session.scalars(select(PaymentProof)).all()
            assert proof.proof_file == path

        listing = client.get(f"/api/payments/barber/{barber}").get_json()["payments"]
        assert listing[0]["proofFile"] == f"http://testserver{path}"

    def test_rejects_other_types(self, client, make_payment):
        make_payment()

        response = self._upload(client, "PAYMENT_1_1", b"hello", "note.txt", "text/plain")
        assert response.status_code == 400

    def test_rejects_large_files(self, app, client, make_payment):
        make_payment()
        app.config["MAX_PROOF_SIZE"] = 10

        response = self._upload(client, "PAYMENT_1_1", b"x" * 11, "big.png", "image/png")
        assert response.status_code == 400

    def test_requires_file(self, client, make_payment):
        make_payment()

        response = client.post(
            "/api/payments/upload-proof",
            data={"payment_id": "PAYMENT_1_1"},
            content_type="multipart/form-data",
        )
        assert response.status_code == 400

    def test_unknown_payment(self, client, booking):
        response = self._upload(client, "PAYMENT_404")
        assert response.status_code == 404


@pytest.mark.payment
class TestPaymentInputTypes:
    """Test suite for badly typed payment requests."""

    def test_direct_charge_non_string_bank(self, app, client, gateway, booking):
        response = _post(client, "/api/payments/pay", {
            "bookingId": booking,
            "paymentMethod": "tf",
            "bankName": 123,
            "accountNumber": "0011223344",
        })

        assert response.status_code == 400
        assert json.loads(response.data)["errors"]["bankName"] == '"bankName" must be a string'
        assert gateway.calls == []
        assert _payments(app) == []

    def test_snap_non_string_bank(self, app, client, gateway, booking):
        response = _post(client, "/api/payments/snap", {
            "bookingId": booking,
            "paymentMethod": "tf",
            "bankName": 7,
        })

        assert response.status_code == 400
        assert "bankName" in json.loads(response.data)["errors"]
        assert gateway.calls == []

    def test_snap_invalid_booking_id(self, client, gateway, booking):
        response = _post(client, "/api/payments/snap", {
            "bookingId": {"id": booking},
            "paymentMethod": "qris",
        })

        assert response.status_code == 400
        assert "bookingId" in json.loads(response.data)["errors"]

    def test_direct_charge_boolean_booking_id(self, client, gateway, booking):
        response = _post(client, "/api/payments/pay", {
            "bookingId": True,
            "paymentMethod": "qris",
            "qrisCode": "000201",
        })

        assert response.status_code == 400
        assert gateway.calls == []

    @pytest.mark.parametrize("path", ["/api/payments/pay", "/api/payments/snap"])
    def test_body_must_be_an_object(self, client, gateway, path):
        response = client.post(path, data=json.dumps([1, 2]), content_type="application/json")

        assert response.status_code == 400
        assert gateway.calls == []

    def test_live_status_non_string_transaction_id(self, client, gateway):
        response = _post(client, "/api/payments/payment-status-snap", {"transaction_id": 12345})

        assert response.status_code == 400
        assert gateway.calls == []

    def test_manual_status_body_must_be_an_object(self, client, make_payment, admin_headers):
        make_payment()

        response = client.put(
            "/api/payments/PAYMENT_1_1",
            data=json.dumps(["settlement"]),
            content_type="application/json",
            headers=admin_headers,
        )
        assert response.status_code == 400
