"""Multi-contact text segmentation.

When several cards are photographed together, OCR returns one block of
text. Each card normally carries exactly one email address, so distinct
emails are used as segment delimiters and every segment is extracted on
its own.
"""

import logging

from ..models import FieldSet
from .deterministic import RuleBasedExtractor, get_rule_based_extractor
from .normalizer import clean_email
from .vocab import EMAIL_TOKEN_PATTERN, is_mostly_digits, looks_like_url, mentions_social_domain

logger = logging.getLogger(__name__)


def find_distinct_emails(text: str) -> list[tuple[str, int, int]]:
    """Distinct email tokens as ``(email, start, end)``, in order of first appearance."""
    seen: set[str] = set()
    found: list[tuple[str, int, int]] = []
    for match in EMAIL_TOKEN_PATTERN.finditer(text):
        key = match.group(0).lower()
        if key in seen:
            continue
        seen.add(key)
        found.append((match.group(0), match.start(), match.end()))
    return found


def _is_contact_detail(line: str) -> bool:
    """Lines that trail an email on the same card (phone, URL, social handle)."""
    stripped = line.strip()
    return bool(stripped) and (
        is_mostly_digits(stripped) or looks_like_url(stripped) or mentions_social_domain(stripped)
    )


def _segment_end(text: str, email_end: int) -> int:
    """End of the segment owning an email: the end of its line plus any
    contact-detail lines directly following it."""
    newline = text.find("\n", email_end)
    if newline == -1:
        return len(text)
    position = newline + 1
    while position < len(text):
        next_newline = text.find("\n", position)
        line_end = len(text) if next_newline == -1 else next_newline
        if not _is_contact_detail(text[position:line_end]):
            break
        position = line_end + 1
    return min(position, len(text))


def split_by_emails(text: str) -> list[tuple[str, str]]:
    """Split text into ``(segment, email)`` pairs, one per distinct email.

    The last segment runs to the end of the text. Returns an empty list
    when fewer than two distinct emails are present.
    """
    emails = find_distinct_emails(text)
    if len(emails) < 2:
        return []

    segments: list[tuple[str, str]] = []
    start = 0
    for index, (email, _, email_end) in enumerate(emails):
        if index == len(emails) - 1:
            end = len(text)
        else:
            next_start = emails[index + 1][1]
            end = min(_segment_end(text, email_end), next_start)
        segments.append((text[start:end], email))
        start = end
    return segments


def extract_contacts_from_text(
    text: str,
    max_contacts: int = 4,
    extractor: RuleBasedExtractor | None = None,
) -> list[FieldSet]:
    """Extract one contact per email-delimited segment.

    Falls back to a single whole-text extraction when fewer than two
    distinct emails are found.
    """
    extractor = extractor or get_rule_based_extractor()
    segments = split_by_emails(text or "")

    if not segments:
        return [extractor.extract(text or "")]

    contacts: list[FieldSet] = []
    for segment, email in segments[:max_contacts]:
        fields = extractor.extract(segment)
        if not fields.email:
            fields = fields.model_copy(update={"email": clean_email(email)})
        contacts.append(fields)

    logger.info(f"Segmented text into {len(contacts)} contacts by email")
    return contacts
