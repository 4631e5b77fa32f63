"""Field set merging and the contact validity gate."""

import re

from ..models import FIELD_NAMES, FieldSet
from .vocab import is_valid_email, is_valid_phone


def _pick(field_name: str, primary: str, secondary: str) -> str:
    if not primary or not secondary:
        return primary or secondary
    if field_name == "email":
        if not is_valid_email(primary) and is_valid_email(secondary):
            return secondary
        return primary
    if field_name == "phone":
        if not is_valid_phone(primary) and is_valid_phone(secondary):
            return secondary
        return primary
    return secondary if len(secondary) > len(primary) else primary


def merge_fields(primary: FieldSet, secondary: FieldSet) -> FieldSet:
    """Combine two field sets, preferring the primary unless it is empty or weaker.

    Args:
        primary: The preferred field set (e.g. the vision result)
        secondary: The fallback field set (e.g. the OCR-derived result)

    Returns:
        A new field set with each field chosen independently
    """
    a, b = primary.to_dict(), secondary.to_dict()
    return FieldSet(**{name: _pick(name, a[name], b[name]) for name in FIELD_NAMES})


def is_valid_contact(fields: FieldSet) -> bool:
    """Decide whether a field set carries enough signal to stop the cascade.

    Valid when any of:
    - the name is longer than 3 characters with a letter, plus a valid email or phone
    - both a valid email and a valid phone are present
    - a name is present and the company is longer than 1 character
    """
    has_email = is_valid_email(fields.email)
    has_phone = is_valid_phone(fields.phone)
    solid_name = len(fields.name) > 3 and bool(re.search(r"[A-Za-z]", fields.name))

    if solid_name and (has_email or has_phone):
        return True
    if has_email and has_phone:
        return True
    return bool(fields.name) and len(fields.company) > 1
