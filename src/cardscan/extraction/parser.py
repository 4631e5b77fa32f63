"""Model reply parsing.

Model replies are supposed to be JSON but frequently arrive wrapped in
code fences, surrounded by prose, written with single quotes or with
trailing commas. The parsers below try progressively more lenient
strategies before giving up with ``ResponseParseError``.
"""

import json
import logging
import re
from typing import Any, Callable

from ..errors import ResponseParseError
from ..models import FIELD_NAMES, FieldSet

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")
OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
TRAILING_COMMA_PATTERN = re.compile(r",\s*([}\]])")

PLACEHOLDER_VALUES = frozenset(["n/a", "none", "null", "undefined", "-", '""', "''"])

MIN_REGEX_FIELDS = 2


def strip_code_fences(text: str) -> str:
    return CODE_FENCE_PATTERN.sub("", text).strip()


def repair_json(text: str) -> str:
    """Apply lenient repairs: single quotes to double, drop trailing commas."""
    repaired = text.replace("'", '"')
    return TRAILING_COMMA_PATTERN.sub(r"\1", repaired)


def coerce_field_set(obj: dict[str, Any]) -> FieldSet:
    """Force the ten known keys and collapse placeholder values to empty."""
    values: dict[str, str] = {}
    for name in FIELD_NAMES:
        value = obj.get(name)
        if not isinstance(value, str):
            values[name] = ""
            continue
        value = value.strip()
        values[name] = "" if value.lower() in PLACEHOLDER_VALUES else value
    return FieldSet(**values)


def _loads(text: str | None) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _first_match(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(0) if match else None


def _candidates(text: str, pattern: re.Pattern[str]) -> list[str | None]:
    """Strict candidates first, then their repaired variants."""
    extracted = _first_match(pattern, text)
    return [
        text,
        extracted,
        repair_json(text),
        repair_json(extracted) if extracted else None,
    ]


def _parse_with(candidates: list[str | None], accept: Callable[[Any], Any]) -> Any:
    for candidate in candidates:
        result = accept(_loads(candidate))
        if result is not None:
            return result
    return None


def _as_object(data: Any) -> FieldSet | None:
    if isinstance(data, dict):
        return coerce_field_set(data)
    return None


def _regex_fields(text: str) -> FieldSet | None:
    """Recover ``"field": "value"`` pairs one field at a time."""
    values: dict[str, str] = {}
    for name in FIELD_NAMES:
        match = re.search(rf'"{name}"\s*:\s*"([^"]*)"', text)
        if match:
            values[name] = match.group(1)
    recovered = {k: v for k, v in values.items() if v.strip()}
    if len(recovered) < MIN_REGEX_FIELDS:
        return None
    logger.debug(f"Recovered {len(recovered)} fields via per-field regex")
    return coerce_field_set(values)


def parse_single(response: str) -> FieldSet:
    """Parse a model reply into one field set.

    Raises:
        ResponseParseError: If no strategy produced a field set
    """
    text = strip_code_fences(response or "")

    fields = _parse_with(_candidates(text, OBJECT_PATTERN), _as_object)
    if fields is None:
        fields = _regex_fields(text)
    if fields is None:
        raise ResponseParseError("Could not parse model reply as a contact")

    return fields


def _as_list(data: Any) -> list[FieldSet] | None:
    if isinstance(data, list):
        return [coerce_field_set(item) for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        return [coerce_field_set(data)]
    return None


def parse_multi(response: str) -> list[FieldSet]:
    """Parse a model reply into a list of field sets.

    Accepts a JSON array of objects, or a single object which is wrapped
    into a one-element list.

    Raises:
        ResponseParseError: If no strategy produced any field set
    """
    text = strip_code_fences(response or "")

    array_text = _first_match(ARRAY_PATTERN, text)
    object_text = _first_match(OBJECT_PATTERN, text)
    candidates = [
        text,
        array_text,
        object_text,
        repair_json(text),
        repair_json(array_text) if array_text else None,
        repair_json(object_text) if object_text else None,
    ]

    contacts = _parse_with(candidates, _as_list)
    if contacts is None:
        raise ResponseParseError("Could not parse model reply as a contact list")

    return contacts
