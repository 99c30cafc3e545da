"""
Contact field validation for the info collection step.
"""
import re
from typing import Dict, Iterable, Optional

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{0,15}$')
PHONE_SEPARATORS = re.compile(r'[\s\-()]')


def validate_name(value: str) -> Optional[str]:
    if len((value or "").strip()) < 2:
        return "Name must be at least 2 characters long"
    return None


def validate_email(value: str) -> Optional[str]:
    if not EMAIL_PATTERN.match((value or "").strip()):
        return "Please enter a valid email address"
    return None


def validate_phone(value: str) -> Optional[str]:
    digits = PHONE_SEPARATORS.sub('', value or "")
    if not PHONE_PATTERN.match(digits):
        return "Please enter a valid phone number"
    return None


VALIDATORS = {
    "name": validate_name,
    "email": validate_email,
    "phone": validate_phone,
}


def validate_info(values: Dict[str, str], fields: Iterable[str] = ("name", "email", "phone")) -> Dict[str, str]:
    """
    Validate the named contact fields. Each is checked independently.

    Returns:
        Mapping of field name to error message, empty when all pass
    """
    to_check = set(fields)
    errors = {}
    for field in VALIDATORS:
        if field not in to_check:
            continue
        error = VALIDATORS[field](values.get(field, ""))
        if error:
            errors[field] = error
    return errors
