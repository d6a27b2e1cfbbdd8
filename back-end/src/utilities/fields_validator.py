from datetime import datetime

from fastapi import HTTPException

from utilities.exceptions import ValidationException


def validate_password_value(value: str) -> str | HTTPException:
    if not 6 <= len(value) <= 120:
        raise HTTPException(status_code=400, detail="Password must be between 6 and 120 characters")

    has_letter = has_digit = False

    for char in value:
        if not has_letter and char.isalpha():
            has_letter = True
        elif not has_digit and char.isdigit():
            has_digit = True

        if has_letter and has_digit:
            break

    if not has_letter:
        raise HTTPException(status_code=400, detail="Password must contain at least one letter")
    if not has_digit:
        raise HTTPException(status_code=400, detail="Password must contain at least one digit")

    return value


def parse_timestamp(field: str, value: str | datetime) -> datetime:
    """
    Accept a datetime or an ISO 8601 string; anything else is a ValidationException.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationException(field, "a timestamp is required")

    # fromisoformat() on older interpreters rejects the trailing "Z"
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationException(field, f"'{value}' is not a valid ISO 8601 timestamp")
