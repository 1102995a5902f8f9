import datetime
import functools

import bcrypt
import jwt
from flask import current_app, g, jsonify, request


def hash_password(password):
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode(
        "utf-8"
    )


def check_password(password, stored_hash):
    if not stored_hash:
        return False
    if isinstance(stored_hash, str):
        stored_hash = stored_hash.encode("utf-8")
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash)
    except ValueError:
        # Malformed hash in the store
        return False


@functools.lru_cache(maxsize=1)
def dummy_password_hash():
    """A real bcrypt hash to check against when the email is unknown."""
    return hash_password("barberhub-unknown-account")


def generate_token(user_id, role):
    """Sign an identity token carrying the user id and role."""
    hours = current_app.config.get("JWT_EXPIRES_HOURS", 1)
    payload = {
        "userId": user_id,
        "role": role,
        "exp": datetime.datetime.now(datetime.timezone.utc)
        + datetime.timedelta(hours=hours),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm="HS256")


def decode_token(token):
    return jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=["HS256"])


def _bearer_token():
    header = request.headers.get("Authorization", "")
    parts = header.split(" ")
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
        return parts[1]
    return None


def role_required(*roles):
    """
    Gate a view on a valid Bearer token whose role is in ``roles``.

    - No token: 403
    - Invalid or expired token: 401
    - Role not allowed: 403

    The decoded payload is available to the view as ``g.user``.
    """

    def decorator(view):
        @functools.wraps(view)
        def wrapped_view(*args, **kwargs):
            token = _bearer_token()
            if not token:
                return jsonify({"status": "error", "message": "No token provided"}), 403

            try:
                payload = decode_token(token)
            except jwt.PyJWTError as e:
                current_app.logger.warning(f"Rejected token: {e}")
                return jsonify({"status": "error", "message": "Invalid token"}), 401

            if payload.get("role") not in roles:
                return (
                    jsonify(
                        {"status": "error", "message": "You do not have permission"}
                    ),
                    403,
                )

            g.user = payload
            return view(*args, **kwargs)

        return wrapped_view

    return decorator
