"""Shared checks for JSON request bodies."""
from flask import jsonify, request


def json_object():
    """
    The request's JSON body as a dict.
    A missing or unparsable body reads as ``{}``; a body that is valid JSON but
    not an object (list, number, string) returns ``None``.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return data


def invalid_body():
    return jsonify({
        "status": "error",
        "message": "Request body must be a JSON object",
    }), 400


def string_errors(data, fields):
    """Field errors for every present, non-null value in ``fields`` that is not a string."""
    errors = {}
    for field in fields:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            errors[field] = f'"{field}" must be a string'
    return errors


def parse_id(value):
    """An integer id from JSON or form input, or ``None``. Booleans are not ids."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
