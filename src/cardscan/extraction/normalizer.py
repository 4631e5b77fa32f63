"""Field normalization and cross-field correction.

Cleans each field of a field set on its own, then moves values that
landed in the wrong field (an email in the name, a company in the name)
to where they belong.
"""

import logging
import re
from typing import Callable

from ..models import FIELD_NAMES, FieldSet
from .vocab import (
    ACRONYMS,
    DOMAIN_SUFFIX_PATTERN,
    EMAIL_TOKEN_PATTERN,
    URL_SCHEME_PATTERN,
    has_company_suffix,
    is_plain_personal_name,
    is_valid_email,
    is_valid_phone,
)

logger = logging.getLogger(__name__)

HONORIFIC_PATTERN = re.compile(
    r"^(?:(?:mr|mrs|ms|miss|mx|dr|prof|sir|madam|shri|smt)(?:\.\s*|\s+))+",
    re.IGNORECASE,
)

SOCIAL_PREFIXES: dict[str, re.Pattern[str]] = {
    "linkedin": re.compile(
        r"^(?:https?://)?(?:[a-z]{2,3}\.)?(?:linkedin\.com/(?:in|company|pub)/|lnkd\.in/)",
        re.IGNORECASE,
    ),
    "instagram": re.compile(
        r"^(?:https?://)?(?:www\.)?(?:instagram\.com/|instagr\.am/)",
        re.IGNORECASE,
    ),
    "twitter": re.compile(
        r"^(?:https?://)?(?:www\.|mobile\.)?(?:twitter\.com/|x\.com/)",
        re.IGNORECASE,
    ),
}

TRAILING_PUNCTUATION = ".,;:!?)]}>\"'"


def clean_email(value: str) -> str:
    if not value:
        return ""
    email = re.sub(r"\s+", "", value.lower())
    email = re.sub(r"^mailto:", "", email)
    email = re.sub(r"[\[(]at[\])]", "@", email)
    email = re.sub(r"[\[(]dot[\])]", ".", email)
    return email if is_valid_email(email) else ""


def clean_phone(value: str) -> str:
    if not value:
        return ""
    phone = re.sub(r"[^\d+\-() ]", "", value)
    phone = re.sub(r" {2,}", " ", phone).strip()
    return phone if is_valid_phone(phone) else ""


def clean_website(value: str) -> str:
    if not value:
        return ""
    website = value.strip().rstrip(TRAILING_PUNCTUATION)
    if not website or re.search(r"\s", website):
        return ""
    if not DOMAIN_SUFFIX_PATTERN.search(website):
        return ""
    if not re.match(r"^https?://", website, re.IGNORECASE):
        website = "https://" + website
    return website


def clean_social(value: str, network: str) -> str:
    if not value:
        return ""
    handle = SOCIAL_PREFIXES[network].sub("", value.strip())
    handle = handle.split("?", 1)[0]
    return handle.lstrip("@").rstrip("/").strip()


def clean_name(value: str) -> str:
    if not value:
        return ""
    name = HONORIFIC_PATTERN.sub("", value).strip()
    if len(name) > 2 and name.isupper():
        name = name.title()
    return name


def clean_title(value: str) -> str:
    if not value:
        return ""
    title = value
    if len(title) > 3 and title.isupper():
        title = title.title()
        title = re.sub(
            r"[A-Za-z]+",
            lambda m: m.group(0).upper() if m.group(0).upper() in ACRONYMS else m.group(0),
            title,
        )
    return title


def clean_company(value: str) -> str:
    if not value:
        return ""
    company = value.rstrip(",;:!?|/-– ").strip()
    if len(company) > 6 and company.isupper():
        company = company.title()
    return company


FIELD_CLEANERS: dict[str, Callable[[str], str]] = {
    "email": clean_email,
    "phone": clean_phone,
    "website": clean_website,
    "linkedin": lambda v: clean_social(v, "linkedin"),
    "instagram": lambda v: clean_social(v, "instagram"),
    "twitter": lambda v: clean_social(v, "twitter"),
    "name": clean_name,
    "title": clean_title,
    "company": clean_company,
}


def _move(data: dict[str, str], source: str, target: str) -> None:
    """Move ``source`` into ``target`` when the target is empty, then clear the source.

    Moves into ``email`` carry only the address token found in the source.
    """
    value = data[source]
    if target == "email":
        token = EMAIL_TOKEN_PATTERN.search(value)
        if token:
            value = token.group(0)
    if not data[target]:
        data[target] = FIELD_CLEANERS[target](value)
    data[source] = ""
    logger.debug(f"Moved {source} value into {target}")


def cross_validate(data: dict[str, str]) -> dict[str, str]:
    """Apply the cross-field correction rules in their fixed order."""
    name = data["name"]

    if name and "@" in name:
        _move(data, "name", "email")
    elif name and re.fullmatch(r"[\d\s+\-().\/]{8,}", name):
        _move(data, "name", "phone")
    elif name and URL_SCHEME_PATTERN.match(name):
        _move(data, "name", "website")
    elif name and has_company_suffix(name) and (
        not data["company"] or is_plain_personal_name(data["company"])
    ):
        data["name"], data["company"] = data["company"], name
        logger.debug("Swapped name and company")

    company = data["company"]
    if (
        not data["name"]
        and company
        and not has_company_suffix(company)
        and is_plain_personal_name(company, max_words=3, min_words=1)
    ):
        data["name"] = clean_name(company)
        data["company"] = ""

    if data["title"] and "@" in data["title"]:
        _move(data, "title", "email")

    return data


def normalize_fields(fields: FieldSet) -> FieldSet:
    """Clean every field, cross-correct misplaced values and re-trim."""
    data = fields.to_dict()

    for field_name, cleaner in FIELD_CLEANERS.items():
        data[field_name] = cleaner(data[field_name])

    data = cross_validate(data)

    return FieldSet(**{name: data[name].strip() for name in FIELD_NAMES})
