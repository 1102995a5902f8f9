from flask import Blueprint, jsonify, current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models import User, USER_ROLES
from ..utils.auth_utils import (
    check_password,
    dummy_password_hash,
    generate_token,
    hash_password,
    role_required,
)
from ..utils.validation import invalid_body, json_object, string_errors

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

ACCOUNT_FIELDS = ("username", "email", "password")


def serialize_user(user):
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


def _register(data, role, success_message):
    try:
        username = data.get("username")
        email = data.get("email")
        password = data.get("password")

        errors = {}
        if not username:
            errors["username"] = "username is required"
        if not email:
            errors["email"] = "email is required"
        if not password:
            errors["password"] = "password is required"
        if errors:
            return jsonify({
                "status": "error",
                "message": "Missing required fields (username, email, password)",
                "errors": errors,
            }), 400

        errors = string_errors(data, ACCOUNT_FIELDS)
        if errors:
            return jsonify({
                "status": "error",
                "message": "Validation error",
                "errors": errors,
            }), 400

        existing = db.session.scalar(select(User).where(User.email == email))
        if existing:
            return jsonify({
                "status": "error",
                "message": "User already exists"
            }), 400

        user = User(
            username=username,
            email=email,
            password=hash_password(password),
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"Registered {role} {user.id} <{email}>")

        return jsonify({
            "status": "success",
            "message": success_message,
            "token": generate_token(user.id, role),
            "user": serialize_user(user),
        }), 201

    except IntegrityError as e:
        db.session.rollback()
        return jsonify({
            "status": "error",
            "message": "User already exists",
            "details": str(e.orig)
        }), 400

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Registration failed: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@auth_bp.route("/register-user", methods=["POST"])
def register_user():
    """
    Register a customer account (role user)
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          $ref: '#/definitions/RegisterPayload'
    responses:
      201:
        description: Account created; the response carries a token
        schema:
          type: object
          properties:
            token:
              type: string
            user:
              $ref: '#/definitions/User'
      400:
        description: Missing field or email already registered
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()
    return _register(data, "user", "User registered successfully")


@auth_bp.route("/register-barber", methods=["POST"])
def register_barber():
    """
    Register a barber account
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          $ref: '#/definitions/RegisterPayload'
    responses:
      201:
        description: Account created
        schema:
          type: object
          properties:
            token:
              type: string
            user:
              $ref: '#/definitions/User'
      400:
        description: Missing field or email already registered
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()
    return _register(data, "barber", "Barber registered successfully")


@auth_bp.route("/register-admin", methods=["POST"])
def register_barber_admin():
    """
    Register a barber or admin account
    Any role other than barber or admin is rejected.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - username
            - email
            - password
            - role
          properties:
            username:
              type: string
            email:
              type: string
            password:
              type: string
            role:
              type: string
              enum: [barber, admin]
    responses:
      201:
        description: Account created
        schema:
          type: object
          properties:
            token:
              type: string
            user:
              $ref: '#/definitions/User'
      400:
        description: Invalid role, missing field or email already registered
        schema:
          $ref: '#/definitions/Error'
    """
    data = json_object()
    if data is None:
        return invalid_body()

    role = data.get("role")
    if role not in ("barber", "admin"):
        return jsonify({
            "status": "error",
            "message": "Invalid role for registration",
            "errors": {"role": "role must be 'barber' or 'admin'"},
        }), 400
    return _register(data, role, "User registered successfully")


@auth_bp.route("/login", methods=["POST"])
def login_user():
    """
    Log in with email and password
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Login successful
        schema:
          type: object
          properties:
            token:
              type: string
            role:
              type: string
      400:
        description: Missing email or password
        schema:
          $ref: '#/definitions/Error'
      401:
        description: Invalid credentials
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        data = json_object()
        if data is None:
            return invalid_body()

        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({
                "status": "error",
                "message": "Email and password required"
            }), 400

        errors = string_errors(data, ("email", "password"))
        if errors:
            return jsonify({
                "status": "error",
                "message": "Validation error",
                "errors": errors,
            }), 400

        user = db.session.scalar(select(User).where(User.email == email))
        # Unknown emails still pay for a bcrypt check
        stored_hash = user.password if user else dummy_password_hash()
        password_ok = check_password(password, stored_hash)
        if not user or not password_ok:
            current_app.logger.warning(f"Failed login for <{email}>")
            return jsonify({
                "status": "error",
                "message": "Invalid credentials"
            }), 401

        return jsonify({
            "status": "success",
            "message": "Login successful",
            "token": generate_token(user.id, user.role),
            "role": user.role,
        }), 200

    except Exception as e:
        current_app.logger.error(f"Login failed: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@auth_bp.route("/", methods=["GET"])
@role_required("admin")
def get_all_users():
    """
    List all users
    ---
    tags:
      - Authentication
    security:
      - Bearer: []
    responses:
      200:
        description: Users without password hashes
        schema:
          type: object
          properties:
            users:
              type: array
              items:
                $ref: '#/definitions/User'
      401:
        description: Invalid token
      403:
        description: Missing token or not an admin
    """
    try:
        users = db.session.scalars(select(User).order_by(User.id)).all()
        return jsonify({"users": [serialize_user(u) for u in users]}), 200
    except Exception as e:
        current_app.logger.error(f"Failed to list users: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@auth_bp.route("/<int:user_id>", methods=["GET"])
def get_user_by_id(user_id):
    """
    Get a user
    ---
    tags:
      - Authentication
    parameters:
      - name: user_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: The user
        schema:
          type: object
          properties:
            user:
              $ref: '#/definitions/User'
      404:
        description: User not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({
                "status": "error",
                "message": "User not found"
            }), 404

        return jsonify({"user": serialize_user(user)}), 200

    except Exception as e:
        current_app.logger.error(f"Failed to fetch user {user_id}: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@auth_bp.route("/<int:user_id>", methods=["PUT"])
def update_user(user_id):
    """
    Update a user
    Partial update: username, email, password and role each keep their
    current value when omitted. A new password is re-hashed.
    ---
    tags:
      - Authentication
    parameters:
      - name: user_id
        in: path
        type: integer
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            username:
              type: string
            email:
              type: string
            password:
              type: string
            role:
              type: string
              enum: [user, barber, admin]
    responses:
      200:
        description: User updated
        schema:
          type: object
          properties:
            user:
              $ref: '#/definitions/User'
      400:
        description: Invalid role or email already taken
        schema:
          $ref: '#/definitions/Error'
      404:
        description: User not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        data = json_object()
        if data is None:
            return invalid_body()

        user = db.session.get(User, user_id)
        if not user:
            return jsonify({
                "status": "error",
                "message": "User not found"
            }), 404

        username = data.get("username")
        email = data.get("email")
        password = data.get("password")
        role = data.get("role")

        errors = string_errors(data, ACCOUNT_FIELDS + ("role",))
        if errors:
            return jsonify({
                "status": "error",
                "message": "Validation error",
                "errors": errors,
            }), 400

        if role and role not in USER_ROLES:
            return jsonify({
                "status": "error",
                "message": f"Role '{role}' is not a valid role",
                "errors": {"role": f"role must be one of {', '.join(USER_ROLES)}"},
            }), 400

        if email and email != user.email:
            taken = db.session.scalar(
                select(User).where(User.email == email, User.id != user_id)
            )
            if taken:
                return jsonify({
                    "status": "error",
                    "message": "User already exists"
                }), 400

        user.username = username or user.username
        user.email = email or user.email
        user.role = role or user.role
        if password:
            user.password = hash_password(password)

        db.session.commit()

        return jsonify({
            "status": "success",
            "message": "User updated successfully",
            "user": serialize_user(user),
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update user {user_id}: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500


@auth_bp.route("/<int:user_id>", methods=["DELETE"])
@role_required("admin")
def delete_user(user_id):
    """
    Delete a user
    ---
    tags:
      - Authentication
    security:
      - Bearer: []
    parameters:
      - name: user_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: User deleted
        schema:
          $ref: '#/definitions/Success'
      403:
        description: Missing token or not an admin
      404:
        description: User not found
        schema:
          $ref: '#/definitions/Error'
    """
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({
                "status": "error",
                "message": "User not found"
            }), 404

        db.session.delete(user)
        db.session.commit()
        current_app.logger.info(f"Deleted user {user_id}")

        return jsonify({
            "status": "success",
            "message": "User deleted successfully"
        }), 200

    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to delete user {user_id}: {e}")
        return jsonify({
            "status": "error",
            "message": "Internal server error",
            "details": str(e)
        }), 500
