from decimal import Decimal, InvalidOperation

from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import delete, select
from ..extensions import db
from ..models import (
    Barber,
    BarberImage,
    Booking,
    GalleryImage,
    Payment,
    PaymentProof,
    Review,
    PAYOUT_METHODS,
)
from ..utils.formatting import isoformat, to_float
from ..utils.auth_utils import role_required
from ..utils.uploads import UploadError, delete_upload, save_images

barbers_bp = Blueprint("barbers", __name__, url_prefix="/api/barbers")

MAX_GALLERY_IMAGES = 5
REQUIRED_FIELDS = ("name", "services", "paket", "price")


def _decimal(value):
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def validate_barber_form(form):
    """
    Validate the multipart fields of a barber add/update.
    Returns ``(values, errors)``; ``errors`` maps field name to message.
    """
    errors = {}
    values = {}

    for field in REQUIRED_FIELDS:
        if not (form.get(field) or "").strip():
            errors[field] = f'"{field}" is required'

    for field in ("name", "services", "paket", "paket_description",
                  "phone_number", "bank_name", "account_number"):
        if form.get(field) is not None:
            values[field] = form.get(field).strip() or None

    if "price" not in errors:
        price = _decimal(form.get("price"))
        if price is None or price < 0:
            errors["price"] = '"price" must be a number'
        else:
            values["price"] = price

    for field in ("latitude", "longitude"):
        raw = form.get(field)
        if raw not in (None, ""):
            number = _decimal(raw)
            if number is None:
                errors[field] = f'"{field}" must be a number'
            else:
                values[field] = number

    payment_method = form.get("payment_method")
    if payment_method:
        if payment_method not in PAYOUT_METHODS:
            errors["payment_method"] = '"payment_method" must be one of [tf, qris]'
        else:
            values["payment_method"] = payment_method

    return values, errors


def serialize_barber(barber, gallery_images=None):
    if gallery_images is None:
        gallery_images = [img.image_url for img in barber.gallery_images]
    return {
        "id": barber.id,
        "name": barber.name,
        "phone_number": barber.phone_number,
        "latitude": to_float(barber.latitude),
        "longitude": to_float(barber.longitude),
        "services": barber.services,
        "paket": barber.paket,
        "paket_description": barber.paket_description,
        "price": to_float(barber.price),
        "profile_image": barber.profile_image,
        "bank_name": barber.bank_name,
        "account_number": barber.account_number,
        "payment_method": barber.payment_method,
        "gallery_images": gallery_images,
        "created_at": isoformat(barber.created_at),
        "updated_at": isoformat(barber.updated_at),
    }


def _store_images(barber):
    """Save uploaded profile/gallery images for ``barber``; returns new gallery URLs."""
    profile_urls = save_images(
        request.files.getlist("profileImage"), "profile", "profileImage", 1
    )
    gallery_urls = save_images(
        request.files.getlist("galleryImages"),
        "gallery",
        "galleryImages",
        MAX_GALLERY_IMAGES,
    )

    if profile_urls:
        barber.profile_image = profile_urls[0]
        db.session.add(BarberImage(barber_id=barber.id, image_url=profile_urls[0]))

    for url in gallery_urls:
        db.session.add(GalleryImage(barber_id=barber.id, image_url=url))

    return gallery_urls


@barbers_bp.route("/add", methods=["POST"])
@role_required("admin", "barber")
def add_barber():
    """
    Add a barber
    Multipart form with barber fields, an optional profileImage and up to
    five galleryImages (JPEG/PNG).
    ---
    tags:
      - Barbers
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - name: name
        in: formData
        type: string
        required: true
      - name: services
        in: formData
        type: string
        required: true
      - name: paket
        in: formData
        type: string
        required: true
      - name: price
        in: formData
        type: number
        required: true
      - name: paket_description
        in: formData
        type: string
      - name: phone_number
        in: formData
        type: string
      - name: latitude
        in: formData
        type: number
      - name: longitude
        in: formData
        type: number
      - name: bank_name
        in: formData
        type: string
      - name: account_number
        in: formData
        type: string
      - name: payment_method
        in: formData
        type: string
        enum: [tf, qris]
      - name: profileImage
        in: formData
        type: file
      - name: galleryImages
        in: formData
        type: file
        description: Up to five images
    responses:
      201:
        description: Barber created
        schema:
          type: object
          properties:
            barber:
              $ref: '#/definitions/Barber'
      400:
        description: Validation error or rejected image
        schema:
          $ref: '#/definitions/Error'
      403:
        description: Missing token or role not allowed
    """
    values, errors = validate_barber_form(request.form)
    if errors:
        return jsonify({
            "status": "error",
            "message": "Validation error",
            "errors": errors,
        }), 400

    try:
        barber = Barber(**values)
        db.session.add(barber)
        db.session.flush()

        gallery_urls = _store_images(barber)
        db.session.commit()
        current_app.logger.info(f"Added barber {barber.id}")

        return jsonify({
            "status": "success",
            "message": "Barber added successfully",
            "barber": serialize_barber(barber, gallery_urls),
        }), 201

    except UploadError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": str(e)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding barber: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@barbers_bp.route("/update/<int:barber_id>", methods=["PUT"])
@role_required("admin", "barber")
def update_barber(barber_id):
    """
    Update a barber
    Same fields as add. The profile image is replaced only when a new one is
    uploaded; new gallery images are appended.
    ---
    tags:
      - Barbers
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - name: barber_id
        in: path
        type: integer
        required: true
      - name: name
        in: formData
        type: string
        required: true
      - name: services
        in: formData
        type: string
        required: true
      - name: paket
        in: formData
        type: string
        required: true
      - name: price
        in: formData
        type: number
        required: true
      - name: profileImage
        in: formData
        type: file
      - name: galleryImages
        in: formData
        type: file
    responses:
      200:
        description: Barber updated
        schema:
          type: object
          properties:
            barber:
              $ref: '#/definitions/Barber'
      400:
        description: Validation error or rejected image
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Barber not found
        schema:
          $ref: '#/definitions/Error'
    """
    values, errors = validate_barber_form(request.form)
    if errors:
        return jsonify({
            "status": "error",
            "message": "Validation error",
            "errors": errors,
        }), 400

    try:
        barber = db.session.get(Barber, barber_id)
        if not barber:
            return jsonify({"status": "error", "message": "Barber not found"}), 404

        for field, value in values.items():
            setattr(barber, field, value)

        _store_images(barber)
        db.session.commit()
        current_app.logger.info(f"Updated barber {barber_id}")

        return jsonify({
            "status": "success",
            "message": "Barber updated successfully",
            "barber": serialize_barber(barber),
        }), 200

    except UploadError as e:
        db.session.rollback()
        return jsonify({"status": "error", "message": str(e)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating barber {barber_id}: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@barbers_bp.route("/<int:barber_id>", methods=["DELETE"])
@role_required("admin")
def delete_barber(barber_id):
    """
    Delete a barber
    Removes its bookings (and their payments and proofs), reviews and images
    in one transaction, then the stored image files.
    ---
    tags:
      - Barbers
    security:
      - Bearer: []
    parameters:
      - name: barber_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Barber deleted
        schema:
          $ref: '#/definitions/Success'
      403:
        description: Missing token or not an admin
      404:
        description: Barber not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        barber = db.session.get(Barber, barber_id)
        if not barber:
            return jsonify({"status": "error", "message": "Barber not found"}), 404

        file_urls = [barber.profile_image]
        file_urls += [img.image_url for img in barber.gallery_images]
        file_urls += [img.image_url for img in barber.barber_images]

        booking_ids = select(Booking.id).where(Booking.barber_id == barber_id)
        payment_ids = select(Payment.id).where(Payment.booking_id.in_(booking_ids))

        db.session.execute(
            delete(PaymentProof).where(PaymentProof.payment_id.in_(payment_ids))
        )
        db.session.execute(delete(Payment).where(Payment.booking_id.in_(booking_ids)))
        db.session.execute(delete(Booking).where(Booking.barber_id == barber_id))
        db.session.execute(delete(GalleryImage).where(GalleryImage.barber_id == barber_id))
        db.session.execute(delete(BarberImage).where(BarberImage.barber_id == barber_id))
        db.session.execute(delete(Review).where(Review.barber_id == barber_id))
        db.session.execute(delete(Barber).where(Barber.id == barber_id))
        db.session.commit()
        db.session.expunge_all()

        for url in set(u for u in file_urls if u):
            try:
                delete_upload(url)
            except Exception as e:
                current_app.logger.warning(f"Could not remove file {url}: {e}")

        current_app.logger.info(f"Deleted barber {barber_id}")
        return jsonify({
            "status": "success",
            "message": "Barber deleted successfully"
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting barber {barber_id}: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error while deleting barber",
            "details": str(e)
        }), 500


@barbers_bp.route("/", methods=["GET"])
def get_all_barbers():
    """
    List all barbers
    ---
    tags:
      - Barbers
    responses:
      200:
        description: Barbers with their gallery image URLs
        schema:
          type: array
          items:
            $ref: '#/definitions/Barber'
    """
    try:
        barbers = db.session.scalars(select(Barber).order_by(Barber.id)).all()
        return jsonify([serialize_barber(b) for b in barbers]), 200
    except Exception as e:
        current_app.logger.error(f"Error fetching barbers: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@barbers_bp.route("/<int:barber_id>", methods=["GET"])
def get_barber_details(barber_id):
    """
    Get a barber
    ---
    tags:
      - Barbers
    parameters:
      - name: barber_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: The barber with its gallery image URLs
        schema:
          $ref: '#/definitions/Barber'
      404:
        description: Barber not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        barber = db.session.get(Barber, barber_id)
        if not barber:
            return jsonify({"status": "error", "message": "Barber not found"}), 404

        return jsonify(serialize_barber(barber)), 200

    except Exception as e:
        current_app.logger.error(f"Error fetching barber {barber_id}: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error while fetching barber details",
            "details": str(e)
        }), 500
