import datetime

import pytz

JAKARTA = pytz.timezone("Asia/Jakarta")


def to_jakarta(value):
    """Interpret naive datetimes as UTC and convert them to Asia/Jakarta."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(JAKARTA)


def format_appointment_time(value):
    # e.g. "Monday, 1 January 2024 pukul 17.00.00 PM"
    local = to_jakarta(value)
    if local is None:
        return None
    return (
        f"{local:%A}, {local.day} {local:%B %Y} pukul {local:%H.%M.%S} {local:%p}"
    )


def format_timestamp(value):
    local = to_jakarta(value)
    if local is None:
        return None
    return f"{local.day} {local:%B %Y %H:%M:%S}"


def isoformat(value):
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value


def to_float(value):
    return float(value) if value is not None else None
