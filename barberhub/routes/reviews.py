from flask import Blueprint, jsonify, current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models import Barber, Review, User
from ..utils.validation import invalid_body, json_object, parse_id, string_errors

reviews_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")

MAX_COMMENT_LENGTH = 500


def _parse_rating(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, (int, str)):
        return None
    try:
        rating = int(str(value).strip())
    except ValueError:
        return None
    return rating if 1 <= rating <= 5 else None


def _text_errors(data):
    errors = string_errors(data, ("comment", "username"))
    comment = data.get("comment")
    if isinstance(comment, str) and len(comment) > MAX_COMMENT_LENGTH:
        errors["comment"] = '"comment" length must be less than or equal to 500 characters long'
    return errors


def _review_query():
    return (
        select(Review, User.username, Barber.name)
        .outerjoin(User, Review.user_id == User.id)
        .outerjoin(Barber, Review.barber_id == Barber.id)
    )


def serialize_review(review, user_name=None, barber_name=None):
    return {
        "id": review.id,
        "barber_id": review.barber_id,
        "user_id": review.user_id,
        "username": review.username,
        "rating": review.rating,
        "comment": review.comment,
        "userName": user_name,
        "barberName": barber_name,
        "created_at": review.created_at.isoformat() if review.created_at else None,
        "updated_at": review.updated_at.isoformat() if review.updated_at else None,
    }


# -------------------------------------------------------------------------
# POST /api/reviews/add
# Purpose: Create a review for a barber. username is optional.
# -------------------------------------------------------------------------
@reviews_bp.route("/add", methods=["POST"])
def add_review():
    """
    Add a review for a barber
    ---
    tags:
      - Reviews
    parameters:
      - name: body
        in: body
        required: true
        schema:
          $ref: '#/definitions/ReviewPayload'
    responses:
      201:
        description: Review created
        schema:
          type: object
          properties:
            review:
              $ref: '#/definitions/Review'
      400:
        description: Missing or invalid field
        schema:
          $ref: '#/definitions/Error'
      404:
        description: Barber not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        data = json_object()
        if data is None:
            return invalid_body()

        barber_id = data.get("barberId")
        rating = data.get("rating")
        comment = data.get("comment")
        username = data.get("username") or None

        if not barber_id or not rating or not comment:
            return jsonify({
                "status": "error",
                "message": "Barber ID, rating, and comment are required"
            }), 400

        errors = _text_errors(data)
        if parse_id(barber_id) is None:
            errors["barberId"] = '"barberId" must be a number'
        parsed_rating = _parse_rating(rating)
        if parsed_rating is None:
            errors["rating"] = "rating must be an integer between 1 and 5"
        if errors:
            return jsonify({
                "status": "error",
                "message": "Validation error",
                "errors": errors,
            }), 400

        barber = db.session.get(Barber, parse_id(barber_id))
        if not barber:
            return jsonify({"status": "error", "message": "Barber not found"}), 404

        user_id = None
        if username:
            user_id = db.session.scalar(select(User.id).where(User.username == username))

        review = Review(
            barber_id=barber.id,
            rating=parsed_rating,
            comment=comment,
            username=username,
            user_id=user_id,
        )
        db.session.add(review)
        db.session.commit()

        return jsonify({
            "status": "success",
            "message": "Review added successfully",
            "review": serialize_review(review, username if user_id else None, barber.name),
        }), 201

    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.error(f"Review post integrity error: {e}")
        return jsonify({"status": "error", "message": "Database error", "details": str(e.orig)}), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to add review: {e}")
        return jsonify({"status": "error", "message": "Failed to add review", "details": str(e)}), 500


@reviews_bp.route("/<int:barber_id>", methods=["PUT"])
def update_reviews_by_barber(barber_id):
    """
    Overwrite every review of a barber
    Sets the same rating, comment and username on all of the barber's reviews.
    ---
    tags:
      - Reviews
    parameters:
      - name: barber_id
        in: path
        type: integer
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - rating
            - comment
          properties:
            rating:
              type: integer
              minimum: 1
              maximum: 5
            comment:
              type: string
            username:
              type: string
    responses:
      200:
        description: Reviews updated
      400:
        description: Missing or invalid rating or comment
        schema:
          $ref: '#/definitions/Error'
      404:
        description: The barber has no reviews
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        data = json_object()
        if data is None:
            return invalid_body()

        rating = data.get("rating")
        comment = data.get("comment")
        username = data.get("username") or None

        parsed_rating = _parse_rating(rating)
        if parsed_rating is None or not comment:
            return jsonify({
                "status": "error",
                "message": "Rating (1-5) and comment are required"
            }), 400

        errors = _text_errors(data)
        if errors:
            return jsonify({
                "status": "error",
                "message": "Validation error",
                "errors": errors,
            }), 400

        count = db.session.scalar(
            select(func.count(Review.id)).where(Review.barber_id == barber_id)
        )
        if not count:
            return jsonify({
                "status": "error",
                "message": "Reviews for this barber not found"
            }), 404

        user_id = None
        if username:
            user_id = db.session.scalar(select(User.id).where(User.username == username))

        db.session.execute(
            update(Review)
            .where(Review.barber_id == barber_id)
            .values(
                rating=parsed_rating,
                comment=comment,
                username=username,
                user_id=user_id,
            )
        )
        db.session.commit()

        return jsonify({
            "status": "success",
            "message": "Review(s) updated successfully",
            "updated": count,
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update reviews for barber {barber_id}: {e}")
        return jsonify({"status": "error", "message": "Error updating review(s)", "details": str(e)}), 500


@reviews_bp.route("/", methods=["GET"])
def get_all_reviews():
    """
    List all reviews, newest first
    ---
    tags:
      - Reviews
    responses:
      200:
        description: Reviews with the reviewer's and barber's names
        schema:
          type: array
          items:
            $ref: '#/definitions/Review'
    """
    try:
        rows = db.session.execute(_review_query().order_by(Review.created_at.desc())).all()
        return jsonify([serialize_review(r, u, b) for r, u, b in rows]), 200
    except Exception as e:
        current_app.logger.error(f"Failed to fetch reviews: {e}")
        return jsonify({"status": "error", "message": "Error retrieving all reviews", "details": str(e)}), 500


@reviews_bp.route("/<int:barber_id>", methods=["GET"])
def get_reviews_for_barber(barber_id):
    """
    List the reviews of a barber
    ---
    tags:
      - Reviews
    parameters:
      - name: barber_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: The barber's reviews
        schema:
          type: array
          items:
            $ref: '#/definitions/Review'
      404:
        description: No reviews for this barber
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        rows = db.session.execute(
            _review_query()
            .where(Review.barber_id == barber_id)
            .order_by(Review.created_at.desc())
        ).all()

        if not rows:
            return jsonify({
                "status": "error",
                "message": "No reviews for this barber."
            }), 404

        return jsonify([serialize_review(r, u, b) for r, u, b in rows]), 200

    except Exception as e:
        current_app.logger.error(f"Failed to fetch reviews for barber {barber_id}: {e}")
        return jsonify({"status": "error", "message": "Failed to fetch reviews", "details": str(e)}), 500


@reviews_bp.route("/review/<int:review_id>", methods=["GET"])
def get_review_by_id(review_id):
    """
    Get a review
    ---
    tags:
      - Reviews
    parameters:
      - name: review_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: The review
        schema:
          $ref: '#/definitions/Review'
      404:
        description: Review not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        row = db.session.execute(_review_query().where(Review.id == review_id)).first()
        if not row:
            return jsonify({
                "status": "error",
                "message": "Review not found"
            }), 404

        review, user_name, barber_name = row
        return jsonify(serialize_review(review, user_name, barber_name)), 200

    except Exception as e:
        current_app.logger.error(f"Failed to fetch review {review_id}: {e}")
        return jsonify({"status": "error", "message": "Failed to fetch review", "details": str(e)}), 500


@reviews_bp.route("/<int:review_id>", methods=["DELETE"])
def delete_review(review_id):
    """
    Delete a review
    ---
    tags:
      - Reviews
    parameters:
      - name: review_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Review deleted
        schema:
          $ref: '#/definitions/Success'
      404:
        description: Review not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        review = db.session.get(Review, review_id)
        if not review:
            return jsonify({"status": "error", "message": "Review not found"}), 404

        db.session.delete(review)
        db.session.commit()

        return jsonify({"status": "success", "message": "Review deleted successfully"}), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error while deleting review {review_id}: {e}")
        return jsonify({"status": "error", "message": "Error deleting review", "details": str(e)}), 500
