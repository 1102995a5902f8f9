"""Booking lifecycle: create, list, read, edit, delete and status changes."""
import datetime
import re
from decimal import Decimal, InvalidOperation

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import delete, select
from ..extensions import db
from ..models import (
    Barber,
    Booking,
    Payment,
    PaymentProof,
    BOOKING_LOCATIONS,
    BOOKING_STATUSES,
    PAYOUT_METHODS,
)
from ..utils.formatting import isoformat, to_float
from ..utils.validation import invalid_body, json_object, parse_id, string_errors

bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_SERVICE_LENGTH = 255
STRING_FIELDS = (
    "email",
    "location",
    "address",
    "service",
    "paket",
    "paket_description",
    "payment_method",
    "bank_name",
    "account_number",
)
UPDATE_STRING_FIELDS = (
    "email",
    "status",
    "location",
    "address",
    "service",
    "appointment_time",
    "appointmentTime",
    "paket",
    "paket_description",
)
SERVICE_TOO_LONG = '"service" length must be less than or equal to 255 characters long'


def parse_appointment_time(value):
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def parse_price(value):
    if isinstance(value, bool) or value is None:
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price.quantize(Decimal("0.01"))


def validate_booking(data):
    """Check a booking request body; returns ``(values, errors)``."""
    errors = {}
    values = {}

    email = data.get("email")
    if not email:
        errors["email"] = '"email" is required'
    elif not isinstance(email, str) or not EMAIL_RE.match(email):
        errors["email"] = '"email" must be a valid email'
    else:
        values["email"] = email

    barber_id = data.get("barberId")
    if barber_id is None or barber_id == "":
        errors["barberId"] = '"barberId" is required'
    elif parse_id(barber_id) is None:
        errors["barberId"] = '"barberId" must be a number'
    else:
        values["barber_id"] = parse_id(barber_id)

    appointment_time = parse_appointment_time(data.get("appointmentTime"))
    if data.get("appointmentTime") in (None, ""):
        errors["appointmentTime"] = '"appointmentTime" is required'
    elif appointment_time is None:
        errors["appointmentTime"] = '"appointmentTime" must be an ISO date/time'
    else:
        values["appointment_time"] = appointment_time

    location = data.get("location")
    if not location:
        errors["location"] = '"location" is required'
    elif location not in BOOKING_LOCATIONS:
        errors["location"] = '"location" must be one of [barbershop, home]'
    else:
        values["location"] = location

    address = data.get("address")
    if location == "home" and not address:
        errors["address"] = '"address" is required'
    values["address"] = address or None

    service = data.get("service")
    if not service:
        errors["service"] = '"service" is required'
    elif len(str(service)) > MAX_SERVICE_LENGTH:
        errors["service"] = SERVICE_TOO_LONG
    else:
        values["service"] = str(service)

    values["paket"] = data.get("paket") or None
    values["paket_description"] = data.get("paket_description") or None

    if data.get("price") is None:
        errors["price"] = '"price" is required'
    else:
        price = parse_price(data.get("price"))
        if price is None:
            errors["price"] = '"price" must be a number'
        else:
            values["price"] = price

    payment_method = data.get("payment_method")
    if not payment_method:
        errors["payment_method"] = '"payment_method" is required'
    elif payment_method not in PAYOUT_METHODS:
        errors["payment_method"] = '"payment_method" must be one of [tf, qris]'
    else:
        values["payment_method"] = payment_method

    values["bank_name"] = data.get("bank_name") or None
    values["account_number"] = data.get("account_number") or None

    errors.update(string_errors(data, STRING_FIELDS))
    return values, errors


def serialize_booking(booking, barber=None):
    result = {
        "id": booking.id,
        "email": booking.email,
        "barber_id": booking.barber_id,
        "appointment_time": isoformat(booking.appointment_time),
        "location": booking.location,
        "address": booking.address,
        "latitude": to_float(booking.latitude),
        "longitude": to_float(booking.longitude),
        "service": booking.service,
        "paket": booking.paket,
        "paket_description": booking.paket_description,
        "price": to_float(booking.price),
        "bank_name": booking.bank_name,
        "account_number": booking.account_number,
        "payment_method": booking.payment_method,
        "status": booking.status,
        "created_at": isoformat(booking.created_at),
        "updated_at": isoformat(booking.updated_at),
    }
    if barber is not None:
        result["barberName"] = barber.name
        result["barberPhoneNumber"] = barber.phone_number
    return result


@bookings_bp.route("/", methods=["GET"])
def get_bookings():
    """
    List bookings
    ---
    tags:
      - Bookings
    parameters:
      - name: email
        in: query
        type: string
        required: false
        description: Only bookings made with this email (takes precedence over barberId)
      - name: barberId
        in: query
        type: integer
        required: false
    responses:
      200:
        description: Bookings with barber name, phone and current coordinates
        schema:
          type: array
          items:
            $ref: '#/definitions/Booking'
      400:
        description: barberId is not a number
        schema:
          $ref: '#/definitions/Error'
    """
    email = request.args.get("email")
    raw_barber_id = request.args.get("barberId")
    barber_id = request.args.get("barberId", type=int)

    if raw_barber_id and barber_id is None:
        return jsonify({
            "status": "error",
            "message": "Validation error",
            "errors": {"barberId": '"barberId" must be a number'},
        }), 400

    try:
        stmt = (
            select(Booking, Barber)
            .outerjoin(Barber, Booking.barber_id == Barber.id)
            .order_by(Booking.appointment_time.desc())
        )
        if email:
            stmt = stmt.where(Booking.email == email)
        elif barber_id is not None:
            stmt = stmt.where(Booking.barber_id == barber_id)

        results = []
        for booking, barber in db.session.execute(stmt).all():
            item = serialize_booking(booking, barber)
            item["barberLatitude"] = to_float(barber.latitude) if barber else None
            item["barberLongitude"] = to_float(barber.longitude) if barber else None
            results.append(item)

        return jsonify(results), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching bookings: {e}")
        return jsonify({"status": "error", "message": "Server error", "details": str(e)}), 500


@bookings_bp.route("/<int:booking_id>", methods=["GET"])
def get_booking_by_id(booking_id):
    """
    Get a booking
    ---
    tags:
      - Bookings
    parameters:
      - name: booking_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: The booking with its barber's name and phone
        schema:
          type: object
          properties:
            booking:
              $ref: '#/definitions/Booking'
      404:
        description: Booking not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        row = db.session.execute(
            select(Booking, Barber)
            .outerjoin(Barber, Booking.barber_id == Barber.id)
            .where(Booking.id == booking_id)
        ).first()

        if not row:
            return jsonify({"status": "error", "message": "Booking not found"}), 404

        booking, barber = row
        return jsonify({"booking": serialize_booking(booking, barber)}), 200

    except Exception as e:
        current_app.logger.error(f"Error in get_booking_by_id: {e}")
        return jsonify({"status": "error", "message": "Server error", "details": str(e)}), 500


@bookings_bp.route("/add", methods=["POST"])
def create_booking():
    """
    Book a barber
    The barber's coordinates are copied onto the booking, and the barber's
    bank details fill in any payout fields the request omits.
    ---
    tags:
      - Bookings
    parameters:
      - name: body
        in: body
        required: true
        schema:
          $ref: '#/definitions/BookingPayload'
    responses:
      201:
        description: Booking created
        schema:
          type: object
          properties:
            status:
              type: string
            message:
              type: string
              example: Booking successful!
            bookingId:
              type: integer
      400:
        description: Validation error, with per-field errors
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Barber not found; nothing is inserted
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    values, errors = validate_booking(data)
    if errors:
        return jsonify({
            "status": "error",
            "message": "Validation error",
            "errors": errors,
        }), 400

    try:
        barber = db.session.get(Barber, values["barber_id"])
        if not barber:
            return jsonify({"status": "error", "message": "Barber not found"}), 404

        values["latitude"] = barber.latitude
        values["longitude"] = barber.longitude
        values["bank_name"] = values["bank_name"] or barber.bank_name
        values["account_number"] = values["account_number"] or barber.account_number

        booking = Booking(**values)
        db.session.add(booking)
        db.session.commit()
        current_app.logger.info(
            f"Booking {booking.id} created for barber {barber.id} by <{booking.email}>"
        )

        return jsonify({
            "status": "success",
            "message": "Booking successful!",
            "bookingId": booking.id,
        }), 201

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in create_booking: {e}")
        return jsonify({"status": "error", "message": "Server error", "details": str(e)}), 500


@bookings_bp.route("/<int:booking_id>", methods=["PUT"])
def update_booking(booking_id):
    """
    Edit a booking
    Partial update; omitted fields keep their value. The caller's email must
    match the booking.
    ---
    tags:
      - Bookings
    parameters:
      - name: booking_id
        in: path
        type: integer
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - email
          properties:
            email:
              type: string
            status:
              type: string
              enum: [pending, confirmed, completed, cancelled]
            location:
              type: string
              enum: [barbershop, home]
            address:
              type: string
            service:
              type: string
            appointment_time:
              type: string
              format: date-time
            paket:
              type: string
            paket_description:
              type: string
            price:
              type: number
    responses:
      200:
        description: Booking updated
        schema:
          type: object
          properties:
            booking:
              $ref: '#/definitions/Booking'
      400:
        description: Missing email or invalid field
        schema:
          $ref: '#/definitions/Error'
      404:
        description: No booking with this id and email
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    email = data.get("email")
    if not email:
        return jsonify({"status": "error", "message": "Email is missing"}), 400

    errors = {}
    status = data.get("status")
    if status and status not in BOOKING_STATUSES:
        errors["status"] = '"status" must be one of [pending, confirmed, completed, cancelled]'

    location = data.get("location")
    if location and location not in BOOKING_LOCATIONS:
        errors["location"] = '"location" must be one of [barbershop, home]'

    service = data.get("service")
    if isinstance(service, str) and len(service) > MAX_SERVICE_LENGTH:
        errors["service"] = SERVICE_TOO_LONG

    appointment_raw = data.get("appointment_time") or data.get("appointmentTime")
    appointment_time = None
    if appointment_raw:
        appointment_time = parse_appointment_time(appointment_raw)
        if appointment_time is None:
            errors["appointment_time"] = '"appointment_time" must be an ISO date/time'

    price = None
    if data.get("price") is not None:
        price = parse_price(data.get("price"))
        if price is None:
            errors["price"] = '"price" must be a number'

    errors.update(string_errors(data, UPDATE_STRING_FIELDS))

    if errors:
        return jsonify({
            "status": "error",
            "message": "Invalid status" if "status" in errors else "Validation error",
            "errors": errors,
        }), 400

    try:
        booking = db.session.scalar(
            select(Booking).where(Booking.id == booking_id, Booking.email == email)
        )
        if not booking:
            return jsonify({"status": "error", "message": "Booking not found"}), 404

        new_location = location or booking.location
        new_address = data.get("address") or booking.address
        if new_location == "home" and not new_address:
            return jsonify({
                "status": "error",
                "message": "Validation error",
                "errors": {"address": '"address" is required'},
            }), 400

        booking.status = status or booking.status
        booking.location = new_location
        booking.address = new_address
        booking.service = service or booking.service
        booking.appointment_time = appointment_time or booking.appointment_time
        booking.paket = data.get("paket") or booking.paket
        booking.paket_description = data.get("paket_description") or booking.paket_description
        if price is not None:
            booking.price = price

        db.session.commit()

        return jsonify({
            "status": "success",
            "message": "Booking updated successfully",
            "booking": serialize_booking(booking),
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating booking {booking_id}: {e}")
        return jsonify({"status": "error", "message": "Server error", "details": str(e)}), 500


@bookings_bp.route("/<int:booking_id>", methods=["DELETE"])
def delete_booking(booking_id):
    """
    Delete a booking together with its payments and their proofs
    ---
    tags:
      - Bookings
    parameters:
      - name: booking_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Booking deleted
        schema:
          $ref: '#/definitions/Success'
      404:
        description: Booking not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        booking = db.session.get(Booking, booking_id)
        if not booking:
            return jsonify({"status": "error", "message": "Booking not found"}), 404

        payment_ids = select(Payment.id).where(Payment.booking_id == booking_id)
        db.session.execute(
            delete(PaymentProof).where(PaymentProof.payment_id.in_(payment_ids))
        )
        db.session.execute(delete(Payment).where(Payment.booking_id == booking_id))
        db.session.delete(booking)
        db.session.commit()
        current_app.logger.info(f"Deleted booking {booking_id}")

        return jsonify({"status": "success", "message": "Booking deleted successfully"}), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting booking {booking_id}: {e}")
        return jsonify({"status": "error", "message": "Server error", "details": str(e)}), 500


@bookings_bp.route("/<int:booking_id>/status", methods=["PUT"])
def update_status(booking_id):
    """
    Change a booking's status
    ---
    tags:
      - Bookings
    parameters:
      - name: booking_id
        in: path
        type: integer
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
              enum: [pending, confirmed, completed, cancelled]
    responses:
      200:
        description: The new status
      400:
        description: Missing or unknown status
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Booking not found
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    status = data.get("status")
    if not isinstance(status, str) or status not in BOOKING_STATUSES:
        return jsonify({
            "status": "error",
            "message": "Invalid or missing status",
            "errors": {
                "status": '"status" must be one of [pending, confirmed, completed, cancelled]'
            },
        }), 400

    try:
        booking = db.session.get(Booking, booking_id)
        if not booking:
            return jsonify({"status": "error", "message": "Booking not found"}), 404

        booking.status = status
        db.session.commit()
        current_app.logger.info(f"Booking {booking_id} status -> {status}")

        return jsonify({"status": status}), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error in update_status: {e}")
        return jsonify({"status": "error", "message": "Server error", "details": str(e)}), 500
