# Midtrans payments, status lookups and proof-of-payment uploads
import time

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload
from ..extensions import db
from ..models import Barber, Booking, Payment, PaymentProof, PaymentStatus, User
from ..services.midtrans_service import MidtransError, get_gateway
from ..utils.auth_utils import role_required
from ..utils.formatting import (
    format_appointment_time,
    format_timestamp,
    isoformat,
    to_float,
)
from ..utils.qr_utils import qr_data_url
from ..utils.uploads import file_size, is_allowed_proof, save_upload, unique_proof_name
from ..utils.validation import invalid_body, json_object, parse_id, string_errors

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")

DEFAULT_PHONE = "08123456789"
NO_BARBER_NAME = "No Barber Assigned"
NO_BARBER_PHONE = "No Phone Assigned"
PAYMENT_STRING_FIELDS = ("paymentMethod", "bankName", "accountNumber", "qrisCode", "phone")


def _error(message, code, **extra):
    body = {"status": "error", "message": message}
    body.update(extra)
    return jsonify(body), code


def _new_ids(booking_id):
    stamp = int(time.time() * 1000)
    return f"PAYMENT_{booking_id}_{stamp}", f"ORDER_{booking_id}_{stamp}"


def _load_booking_context(booking_id):
    """Booking with its barber and the customer account behind its email."""
    return db.session.execute(
        select(Booking, Barber, User)
        .join(Barber, Booking.barber_id == Barber.id)
        .join(User, Booking.email == User.email)
        .where(Booking.id == booking_id)
    ).first()


def _gross_amount(amount):
    # IDR amounts are whole numbers on the gateway side
    return int(amount)


def _transaction_payload(order_id, booking_id, amount, barber, user, phone):
    gross = _gross_amount(amount)
    return {
        "transaction_details": {"order_id": order_id, "gross_amount": gross},
        "item_details": [
            {
                "id": f"ITEM_{booking_id}",
                "price": gross,
                "quantity": 1,
                "name": f"Booking #{booking_id}",
            }
        ],
        "customer_details": {
            "first_name": barber.name,
            "email": user.email,
            "phone": phone or DEFAULT_PHONE,
        },
    }


def _proof_url(payment):
    if not payment.proofs:
        return ""
    latest = max(payment.proofs, key=lambda p: p.id)
    if latest.proof_file.startswith("/"):
        return f"{current_app.config['PUBLIC_BASE_URL']}{latest.proof_file}"
    return latest.proof_file


def serialize_payment(payment):
    return {
        "id": payment.id,
        "booking_id": payment.booking_id,
        "order_id": payment.order_id,
        "amount": to_float(payment.amount),
        "payment_method": payment.payment_method,
        "bank_name": payment.bank_name,
        "account_number": payment.account_number,
        "qris_code": payment.qris_code,
        "status": payment.status,
        "status_kind": payment.status_kind.value,
        "barber_id": payment.barber_id,
        "barber_name": payment.barber_name,
        "barber_phone_number": payment.barber_phone_number,
        "user_email": payment.user_email,
        "midtrans_token": payment.midtrans_token,
        "midtrans_url": payment.midtrans_url,
        "created_at": isoformat(payment.created_at),
        "updated_at": isoformat(payment.updated_at),
    }


def _listing_row(payment, booking, barber):
    item = serialize_payment(payment)
    item.update(
        {
            "userEmail": booking.email,
            "barberId": booking.barber_id,
            "paket": booking.paket,
            "appointment_time": isoformat(booking.appointment_time),
            "service": booking.service,
            "barberName": barber.name if barber else None,
            "barberPhoneNumber": barber.phone_number if barber else None,
            "proofFile": _proof_url(payment),
        }
    )
    return item


def _listing_query():
    return (
        select(Payment, Booking, Barber)
        .join(Booking, Payment.booking_id == Booking.id)
        .outerjoin(Barber, Booking.barber_id == Barber.id)
        .options(selectinload(Payment.proofs))
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )


@payments_bp.route("/snap", methods=["POST"])
def create_snap_token():
    """
    Start a hosted-checkout (Snap) transaction for a booking
    The payment is stored as pending with the Snap token and redirect URL.
    A gateway failure stores nothing and passes the gateway's message through.
    ---
    tags:
      - Payments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          $ref: '#/definitions/SnapPaymentPayload'
    responses:
      201:
        description: Snap token created and payment saved
        schema:
          type: object
          properties:
            paymentId:
              type: string
            orderId:
              type: string
            snapToken:
              type: string
            redirectUrl:
              type: string
      400:
        description: Validation error
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Booking, barber or customer not found
        schema:
          $ref: '#/definitions/Error'
      500:
        description: Gateway or server error
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    booking_id = data.get("bookingId")
    payment_method = data.get("paymentMethod")
    bank_name = data.get("bankName")
    account_number = data.get("accountNumber")
    qris_code = data.get("qrisCode")

    if payment_method == "bank_transfer":
        payment_method = "tf"

    errors = string_errors(data, PAYMENT_STRING_FIELDS)
    if booking_id is None:
        errors["bookingId"] = '"bookingId" is required'
    elif parse_id(booking_id) is None:
        errors["bookingId"] = '"bookingId" must be a number'
    if payment_method not in ("tf", "qris"):
        errors["paymentMethod"] = '"paymentMethod" must be one of [tf, bank_transfer, qris]'
    if errors:
        return _error("Validation error", 400, errors=errors)

    try:
        context = _load_booking_context(parse_id(booking_id))
        if not context:
            return _error("Booking not found", 404)
        booking, barber, user = context

        payment_id, order_id = _new_ids(booking.id)
        snap_request = _transaction_payload(
            order_id, booking.id, booking.price, barber, user, data.get("phone")
        )
        if payment_method == "tf":
            snap_request["enabled_payments"] = ["bank_transfer"]
            bank = bank_name or barber.bank_name
            if bank:
                snap_request["bank_transfer"] = {"bank": bank.lower()}
        else:
            snap_request["enabled_payments"] = ["other_qris"]

        snap_response = get_gateway().create_snap_transaction(snap_request)

        payment = Payment(
            id=payment_id,
            booking_id=booking.id,
            order_id=order_id,
            amount=booking.price,
            payment_method=payment_method,
            bank_name=bank_name or barber.bank_name,
            account_number=account_number or barber.account_number,
            qris_code=qris_code if payment_method == "qris" else None,
            status=PaymentStatus.PENDING.value,
            barber_id=barber.id,
            barber_name=barber.name,
            barber_phone_number=barber.phone_number,
            user_email=user.email,
            midtrans_token=snap_response.get("token"),
            midtrans_url=snap_response.get("redirect_url"),
        )
        db.session.add(payment)
        db.session.commit()
        current_app.logger.info(f"Snap payment {payment_id} created for booking {booking.id}")

        return jsonify({
            "status": "success",
            "message": "Snap token created and payment data saved successfully",
            "paymentId": payment_id,
            "orderId": order_id,
            "snapToken": snap_response.get("token"),
            "redirectUrl": snap_response.get("redirect_url"),
            "booking": {
                "userEmail": user.email,
                "barberName": barber.name,
                "barberPhoneNumber": barber.phone_number,
                "barberBankName": barber.bank_name,
                "barberAccountNumber": barber.account_number,
                "amount": to_float(booking.price),
            },
        }), 201

    except MidtransError as e:
        db.session.rollback()
        current_app.logger.error(f"Snap transaction failed for booking {booking_id}: {e.message}")
        return _error("Server error", 500, error=e.message)

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in create_snap_token: {e}")
        return _error("Server error", 500, error=str(e))


def validate_direct_payment(data):
    errors = string_errors(data, PAYMENT_STRING_FIELDS)
    booking_id = data.get("bookingId")
    payment_method = data.get("paymentMethod")

    if booking_id is None or booking_id == "":
        errors["bookingId"] = '"bookingId" is required'
    elif parse_id(booking_id) is None:
        errors["bookingId"] = '"bookingId" must be a number'

    if not payment_method:
        errors["paymentMethod"] = '"paymentMethod" is required'
    elif payment_method not in ("qris", "tf"):
        errors["paymentMethod"] = '"paymentMethod" must be one of [qris, tf]'

    if payment_method == "tf":
        bank_name = data.get("bankName")
        account_number = data.get("accountNumber")
        if not bank_name:
            errors["bankName"] = '"bankName" is required'
        elif "bankName" not in errors and len(bank_name) > 50:
            errors["bankName"] = '"bankName" length must be less than or equal to 50 characters long'
        if not account_number:
            errors["accountNumber"] = '"accountNumber" is required'
        elif "accountNumber" not in errors and len(account_number) > 20:
            errors["accountNumber"] = '"accountNumber" length must be less than or equal to 20 characters long'

    if payment_method == "qris" and not data.get("qrisCode"):
        errors["qrisCode"] = '"qrisCode" is required'

    amount = data.get("amount")
    if amount is not None:
        try:
            if isinstance(amount, bool) or float(amount) <= 0:
                errors["amount"] = '"amount" must be a positive number'
        except (TypeError, ValueError):
            errors["amount"] = '"amount" must be a positive number'

    return errors


@payments_bp.route("/pay", methods=["POST"])
def process_payment():
    """
    Charge a booking directly through the Core API
    For QRIS the response also carries a PNG data URL of the QR code.
    A failed charge leaves no payment row.
    ---
    tags:
      - Payments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          $ref: '#/definitions/DirectPaymentPayload'
    responses:
      201:
        description: Payment initiated
        schema:
          type: object
          properties:
            paymentId:
              type: string
            orderId:
              type: string
            qrCodeImage:
              type: string
              description: PNG data URL, QRIS only
            redirectUrl:
              type: string
            token:
              type: string
      400:
        description: Validation error
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Booking not found
        schema:
          $ref: '#/definitions/Error'
      500:
        description: Gateway or server error
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    errors = validate_direct_payment(data)
    if errors:
        return _error("Validation error", 400, errors=errors)

    booking_id = parse_id(data["bookingId"])
    payment_method = data["paymentMethod"]
    bank_name = data.get("bankName")
    account_number = data.get("accountNumber")
    qris_code = data.get("qrisCode")

    try:
        context = _load_booking_context(booking_id)
        if not context:
            return _error("Booking not found", 404)
        booking, barber, user = context

        payment_id, order_id = _new_ids(booking.id)
        payment = Payment(
            id=payment_id,
            booking_id=booking.id,
            order_id=order_id,
            amount=booking.price,
            payment_method=payment_method,
            bank_name=bank_name if payment_method == "tf" else barber.bank_name,
            account_number=account_number if payment_method == "tf" else barber.account_number,
            qris_code=qris_code,
            status=PaymentStatus.PENDING.value,
            barber_id=barber.id,
            barber_name=barber.name,
            barber_phone_number=barber.phone_number,
            user_email=user.email,
        )
        db.session.add(payment)
        db.session.flush()

        qr_code_image = qr_data_url(qris_code) if payment_method == "qris" else None

        charge_request = _transaction_payload(
            order_id, booking.id, booking.price, barber, user, data.get("phone")
        )
        if payment_method == "qris":
            charge_request["payment_type"] = "qris"
        else:
            charge_request["payment_type"] = "bank_transfer"
            charge_request["bank_transfer"] = {"bank": bank_name.lower()}

        charge_response = get_gateway().charge(charge_request)

        actions = charge_response.get("actions") or []
        payment.midtrans_token = charge_response.get("token") or charge_response.get(
            "transaction_id"
        )
        payment.midtrans_url = charge_response.get("redirect_url") or (
            actions[0].get("url") if actions else None
        )
        db.session.commit()
        current_app.logger.info(f"Direct payment {payment_id} charged for booking {booking.id}")

        return jsonify({
            "status": "success",
            "message": "Payment initiated successfully",
            "paymentId": payment_id,
            "orderId": order_id,
            "bookingId": booking.id,
            "userEmail": user.email,
            "barberId": barber.id,
            "barberName": barber.name,
            "qrCodeImage": qr_code_image,
            "redirectUrl": payment.midtrans_url,
            "token": payment.midtrans_token,
            "vaNumbers": charge_response.get("va_numbers") or [],
        }), 201

    except MidtransError as e:
        db.session.rollback()
        current_app.logger.error(f"Charge failed for booking {booking_id}: {e.message}")
        return _error("Server error", 500, error=e.message)

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in process_payment: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/payment-status-snap", methods=["POST"])
def payment_status_snap():
    """
    Look up a transaction on the gateway
    Live lookup only; the stored payment row is left as is.
    ---
    tags:
      - Payments
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - transaction_id
          properties:
            transaction_id:
              type: string
              description: Gateway order id or transaction id
    responses:
      200:
        description: Transaction is settled
        schema:
          type: object
          properties:
            success:
              type: boolean
            status_kind:
              type: string
            paymentReceipt:
              type: object
      400:
        description: Missing transaction id, or the transaction is not settled
      500:
        description: Gateway error
    """
    data = json_object()
    if data is None:
        return invalid_body()

    transaction_id = data.get("transaction_id")
    if not transaction_id:
        return jsonify({"success": False, "message": "Transaction ID is required."}), 400
    if not isinstance(transaction_id, str):
        return jsonify({"success": False, "message": "Transaction ID must be a string."}), 400

    try:
        receipt = get_gateway().transaction_status(transaction_id)
    except MidtransError as e:
        current_app.logger.error(f"Error fetching payment status for {transaction_id}: {e.message}")
        return jsonify({
            "success": False,
            "message": "Failed to fetch payment status",
            "error": e.message,
        }), 500

    status_kind = PaymentStatus.classify(receipt.get("transaction_status"))
    if status_kind is PaymentStatus.SETTLEMENT:
        return jsonify({
            "success": True,
            "status_kind": status_kind.value,
            "paymentReceipt": receipt,
        }), 200

    return jsonify({
        "success": False,
        "message": "Payment not successful",
        "status_kind": status_kind.value,
        "paymentReceipt": receipt,
    }), 400


def _resolve_barber(payment, booking):
    """The barber behind a payment, falling back to the booking, then coordinates."""
    if payment.barber_id:
        barber = db.session.get(Barber, payment.barber_id)
        if barber:
            return barber
    if booking and booking.barber_id:
        barber = db.session.get(Barber, booking.barber_id)
        if barber:
            return barber
    if booking and booking.latitude is not None and booking.longitude is not None:
        return db.session.scalar(
            select(Barber)
            .where(
                Barber.latitude == booking.latitude,
                Barber.longitude == booking.longitude,
            )
            .limit(1)
        )
    return None


def _payment_by_order(order_id):
    return db.session.execute(
        select(Payment, Booking)
        .join(Booking, Payment.booking_id == Booking.id)
        .where(Payment.order_id == order_id)
    ).first()


@payments_bp.route("/<string:order_id>", methods=["GET"])
def get_payment_by_order_id(order_id):
    """
    Get a payment by gateway order id
    ---
    tags:
      - Payments
    parameters:
      - name: order_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Payment with barber, customer and booking details; appointment time in Asia/Jakarta
      404:
        description: Payment not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        row = _payment_by_order(order_id)
        if not row:
            return _error("Payment not found", 404)
        payment, booking = row

        barber = _resolve_barber(payment, booking)
        user_email = db.session.scalar(select(User.email).where(User.email == booking.email))

        return jsonify({
            "status_code": "200",
            "status_message": "Success, payment found",
            "payment_identifier": payment.id,
            "order_id": payment.order_id,
            "gross_amount": to_float(payment.amount),
            "status": payment.status,
            "status_kind": payment.status_kind.value,
            "bank_name": payment.bank_name,
            "account_number": payment.account_number,
            "barber_id": barber.id if barber else None,
            "barber_name": barber.name if barber else NO_BARBER_NAME,
            "barber_phone_number": (barber.phone_number if barber else None) or NO_BARBER_PHONE,
            "user_email": user_email,
            "booking_price": to_float(booking.price),
            "appointment_time": format_appointment_time(booking.appointment_time),
            "created_at": isoformat(payment.created_at),
        }), 200

    except Exception as e:
        current_app.logger.error(f"Error in get_payment_by_order_id: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/<string:order_id>/status-order", methods=["GET"])
def get_payment_status_order(order_id):
    """
    Stored status for an order, with times shown in Asia/Jakarta
    ---
    tags:
      - Payments
    parameters:
      - name: order_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Stored payment status
      400:
        description: No gateway token stored for this payment
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Payment not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        row = _payment_by_order(order_id)
        if not row:
            return _error("Payment not found", 404)
        payment, booking = row

        if not payment.midtrans_token:
            current_app.logger.warning(f"Payment {payment.id} has no gateway token")
            return _error("Invalid payment data format", 400)

        return jsonify({
            "status_code": "200",
            "status_message": "Success, payment found",
            "payment_identifier": payment.midtrans_token,
            "order_id": payment.order_id,
            "gross_amount": to_float(payment.amount),
            "status": payment.status,
            "status_kind": payment.status_kind.value,
            "bank_name": payment.bank_name,
            "account_number": payment.account_number,
            "midtrans_url": payment.midtrans_url,
            "barber_name": payment.barber_name,
            "user_email": payment.user_email,
            "appointment_time": format_appointment_time(booking.appointment_time),
            "created_at": format_timestamp(payment.created_at),
            "updated_at": format_timestamp(payment.updated_at),
        }), 200

    except Exception as e:
        current_app.logger.error(f"Error in get_payment_status_order: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/<string:payment_id>/status", methods=["GET"])
def get_payment_status(payment_id):
    """
    Get a payment with its booking fields
    ---
    tags:
      - Payments
    parameters:
      - name: payment_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: The payment
        schema:
          type: object
          properties:
            payment:
              $ref: '#/definitions/Payment'
      404:
        description: Payment not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        row = db.session.execute(
            select(Payment, Booking)
            .join(Booking, Payment.booking_id == Booking.id)
            .where(Payment.id == payment_id)
        ).first()
        if not row:
            return _error("Payment not found", 404)
        payment, booking = row

        result = serialize_payment(payment)
        result.update(
            {
                "userEmail": booking.email,
                "barberId": booking.barber_id,
                "paket": booking.paket,
                "appointment_time": isoformat(booking.appointment_time),
                "service": booking.service,
                "latitude": to_float(booking.latitude),
                "longitude": to_float(booking.longitude),
            }
        )
        return jsonify({"payment": result}), 200

    except Exception as e:
        current_app.logger.error(f"Error in get_payment_status: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/barber/<int:barber_id>", methods=["GET"])
def get_payments_by_barber(barber_id):
    """
    List the payments of a barber, newest first
    ---
    tags:
      - Payments
    parameters:
      - name: barber_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Payments with a link to the latest proof
        schema:
          type: object
          properties:
            payments:
              type: array
              items:
                $ref: '#/definitions/Payment'
      404:
        description: No payments for this barber
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        rows = db.session.execute(
            _listing_query().where(Booking.barber_id == barber_id)
        ).all()
        if not rows:
            return _error("No payments for this barber", 404)

        return jsonify({"payments": [_listing_row(p, b, br) for p, b, br in rows]}), 200

    except Exception as e:
        current_app.logger.error(f"Error in get_payments_by_barber: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/", methods=["GET"])
def get_all_payments():
    """
    List all payments, newest first
    ---
    tags:
      - Payments
    responses:
      200:
        description: Payments with a link to the latest proof
        schema:
          type: object
          properties:
            payments:
              type: array
              items:
                $ref: '#/definitions/Payment'
    """
    try:
        rows = db.session.execute(_listing_query()).all()
        return jsonify({"payments": [_listing_row(p, b, br) for p, b, br in rows]}), 200
    except Exception as e:
        current_app.logger.error(f"Error in get_all_payments: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/<string:payment_id>", methods=["PUT"])
@role_required("admin", "barber")
def update_payment_status(payment_id):
    """
    Override a payment's status
    Any known gateway state may replace any other.
    ---
    tags:
      - Payments
    security:
      - Bearer: []
    parameters:
      - name: payment_id
        in: path
        type: string
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - status
          properties:
            status:
              type: string
              example: settlement
    responses:
      200:
        description: Status updated
        schema:
          type: object
          properties:
            payment:
              $ref: '#/definitions/Payment'
      400:
        description: Missing or unknown status
        schema:
          $ref: '#/definitions/Error'
      401:
        description: Invalid token
      403:
        description: Missing token or role not allowed
      404:
        description: Payment not found
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    status = data.get("status")
    if not status:
        return _error("Missing status field", 400)

    status_kind = PaymentStatus.classify(status)
    if status_kind is PaymentStatus.OTHER:
        return _error(
            "Unknown payment status",
            400,
            errors={"status": f"status must be one of {', '.join(PaymentStatus.known_values())}"},
        )

    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return _error("Payment not found", 404)

        previous = payment.status
        payment.status = status_kind.value
        db.session.commit()
        current_app.logger.info(f"Payment {payment_id} status {previous} -> {status_kind.value}")

        return jsonify({
            "status": "success",
            "message": "Payment status updated",
            "payment": serialize_payment(payment),
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in update_payment_status: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/<string:payment_id>", methods=["DELETE"])
@role_required("admin")
def delete_payment(payment_id):
    """
    Delete a payment and its proofs
    ---
    tags:
      - Payments
    security:
      - Bearer: []
    parameters:
      - name: payment_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Payment deleted
        schema:
          $ref: '#/definitions/Success'
      403:
        description: Missing token or not an admin
      404:
        description: Payment not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return _error("Payment not found", 404)

        db.session.execute(delete(PaymentProof).where(PaymentProof.payment_id == payment_id))
        db.session.delete(payment)
        db.session.commit()
        current_app.logger.info(f"Deleted payment {payment_id}")

        return jsonify({"status": "success", "message": "Payment deleted"}), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in delete_payment: {e}")
        return _error("Server error", 500, error=str(e))


@payments_bp.route("/upload-proof", methods=["POST"])
def upload_proof_and_save():
    """
    Upload a proof-of-payment file
    ---
    tags:
      - Payments
    consumes:
      - multipart/form-data
    parameters:
      - name: payment_id
        in: formData
        type: string
        required: true
      - name: proof
        in: formData
        type: file
        required: true
        description: JPEG, PNG or PDF, at most 5 MB
    responses:
      200:
        description: Proof stored
        schema:
          type: object
          properties:
            proofPath:
              type: string
              example: /uploads/proofs/1700000000000-proof.pdf
      400:
        description: Missing file or id, bad type or too large
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Payment not found
        schema:
          $ref: '#/definitions/Error'
    """
    proof = request.files.get("proof")
    if not proof or not proof.filename:
        return _error("No proof of payment file uploaded.", 400)

    payment_id = request.form.get("payment_id")
    if not payment_id:
        return _error("Payment ID is required.", 400)

    if not is_allowed_proof(proof):
        return _error("Invalid file type. Only JPG, PNG, and PDF are allowed.", 400)

    max_size = current_app.config.get("MAX_PROOF_SIZE", 5 * 1024 * 1024)
    if file_size(proof) > max_size:
        return _error("File too large. Maximum size is 5MB.", 400)

    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return _error("Payment not found", 404)

        proof_path = save_upload(proof, "proofs", unique_proof_name(proof.filename))
        db.session.add(PaymentProof(payment_id=payment.id, proof_file=proof_path))
        db.session.commit()
        current_app.logger.info(f"Proof uploaded for payment {payment_id}: {proof_path}")

        return jsonify({
            "status": "success",
            "message": "Proof uploaded successfully.",
            "proofPath": proof_path,
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in upload_proof_and_save: {e}")
        return _error("Server error", 500, error=str(e))
