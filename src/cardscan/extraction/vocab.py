"""Vocabularies and line/string predicates shared by the extractors.

Each vocabulary is a plain word list compiled into one pattern, so it can
be extended in one place and tested on its own.
"""

import re

COMPANY_SUFFIXES = [
    "Inc", "Incorporated", "LLC", "L.L.C", "LLP", "Ltd", "Limited", "Corp",
    "Corporation", "Co", "Company", "PLC", "GmbH", "AG", "Pvt", "Pty",
    "Group", "Holdings", "Technologies", "Technology", "Solutions",
    "Consulting", "Consultants", "Services", "Systems", "Industries",
    "Enterprises", "Partners", "Associates", "Ventures", "Labs",
    "Studios", "Studio", "Agency", "Software", "Capital", "Media",
    "Foundation", "Institute", "International", "Global",
]

TITLE_WORDS = [
    "CEO", "CTO", "CFO", "COO", "CMO", "CIO", "VP", "SVP", "EVP",
    "Vice President", "President", "Director", "Manager", "Engineer",
    "Developer", "Designer", "Founder", "Co-Founder", "Owner", "Head",
    "Lead", "Chief", "Officer", "Consultant", "Analyst", "Associate",
    "Partner", "Advisor", "Adviser", "Specialist", "Coordinator",
    "Executive", "Administrator", "Intern", "Assistant", "Supervisor",
    "Architect", "Scientist", "Professor", "Doctor", "Principal",
    "Representative", "Accountant", "Attorney", "Editor", "Chairman",
    "Secretary", "Strategist", "Recruiter", "Agent", "Broker",
]

ADDRESS_KEYWORDS = [
    "Street", "St", "Avenue", "Ave", "Road", "Rd", "Boulevard", "Blvd",
    "Lane", "Ln", "Drive", "Dr", "Court", "Ct", "Place", "Pl", "Way",
    "Highway", "Hwy", "Parkway", "Pkwy", "Square", "Sq", "Plaza",
    "Floor", "Fl", "Suite", "Ste", "Unit", "Building", "Bldg", "Tower",
    "Block", "Sector", "Phase", "Nagar", "Marg", "Colony", "Complex",
    "Park", "Center", "Centre",
]

ACRONYMS = frozenset(["CEO", "CTO", "CFO", "COO", "VP", "HR", "IT", "PR", "UI", "UX"])

SOCIAL_DOMAINS = ("linkedin.com", "lnkd.in", "instagram.com", "instagr.am", "twitter.com", "x.com")


def _vocabulary_pattern(words: list[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    # A trailing hyphen means a compound word ("Co-Founder"), not a suffix
    return re.compile(rf"\b(?:{alternatives})(?![\w-])\.?", re.IGNORECASE)


COMPANY_SUFFIX_PATTERN = _vocabulary_pattern(COMPANY_SUFFIXES)
TITLE_PATTERN = _vocabulary_pattern(TITLE_WORDS)
ADDRESS_KEYWORD_PATTERN = _vocabulary_pattern(ADDRESS_KEYWORDS)

EMAIL_PATTERN = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}$", re.IGNORECASE)
EMAIL_TOKEN_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}")
PHONE_TOKEN_PATTERN = re.compile(r"(?:\+|\()?\d[\d \t\-().]{7,}\d")
URL_TOKEN_PATTERN = re.compile(r"https?://[^\s]+|www\.[^\s]+", re.IGNORECASE)
URL_SCHEME_PATTERN = re.compile(r"^(?:https?://|www\.)", re.IGNORECASE)
BARE_DOMAIN_PATTERN = re.compile(r"^[a-z0-9\-]+(?:\.[a-z0-9\-]+)*\.[a-z]{2,6}(?:/\S*)?$")
DOMAIN_SUFFIX_PATTERN = re.compile(r"\.[a-z]{2,}(?:[/:?#]|$)", re.IGNORECASE)
ADDRESS_PATTERN = re.compile(
    r"(?:\b(?:suite|ste|unit|floor|fl|no)\.?\s*#?\s*)?\b\d+[^\n]{0,60}?"
    + ADDRESS_KEYWORD_PATTERN.pattern
    + r"[^\n]*",
    re.IGNORECASE,
)
PERSON_TOKEN_PATTERN = re.compile(r"^[A-Z][A-Za-z'’.\-]*$")

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15


def digit_count(value: str) -> int:
    return sum(ch.isdigit() for ch in value)


def is_valid_email(value: str) -> bool:
    """Check that a value is a plain ``local@domain.tld`` address."""
    return bool(value) and bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: str) -> bool:
    """Check that a value carries between 7 and 15 digits."""
    return MIN_PHONE_DIGITS <= digit_count(value) <= MAX_PHONE_DIGITS


def has_company_suffix(value: str) -> bool:
    return bool(COMPANY_SUFFIX_PATTERN.search(value))


def is_title_like(line: str) -> bool:
    return bool(TITLE_PATTERN.search(line))


def is_company_like(line: str) -> bool:
    return has_company_suffix(line)


def has_address_keyword(line: str) -> bool:
    return bool(ADDRESS_KEYWORD_PATTERN.search(line))


def is_address_fragment(line: str) -> bool:
    """A digit-bearing line that mentions a street/floor/suite keyword."""
    return any(ch.isdigit() for ch in line) and has_address_keyword(line)


def is_person_name_like(line: str) -> bool:
    """One to four capitalized tokens, no digits, no company suffix."""
    if any(ch.isdigit() for ch in line) or is_company_like(line):
        return False
    tokens = line.split()
    if not 1 <= len(tokens) <= 4:
        return False
    return all(PERSON_TOKEN_PATTERN.match(token) for token in tokens)


def is_plain_personal_name(value: str, max_words: int = 2, min_words: int = 2) -> bool:
    """Capitalized words with no company suffix, e.g. ``John Smith``."""
    if not value or has_company_suffix(value) or any(ch.isdigit() for ch in value):
        return False
    tokens = value.split()
    if not min_words <= len(tokens) <= max_words:
        return False
    return all(token[0].isupper() and re.match(r"^[A-Za-z'’.\-]+$", token) for token in tokens)


def is_mostly_digits(line: str) -> bool:
    compact = re.sub(r"\s", "", line)
    return bool(compact) and digit_count(compact) * 2 > len(compact)


def looks_like_url(line: str) -> bool:
    return bool(URL_SCHEME_PATTERN.match(line) or BARE_DOMAIN_PATTERN.match(line))


def mentions_social_domain(line: str) -> bool:
    lowered = line.lower()
    return any(re.search(rf"(?<![a-z0-9]){re.escape(domain)}", lowered) for domain in SOCIAL_DOMAINS)
