"""Deterministic contact extraction.

Line-classification extraction of a contact from raw card text. This is
the last resort of the cascade: it needs no model or network access and
never raises for string input.
"""

import logging
import re
from dataclasses import dataclass

from ..models import FieldSet
from .normalizer import normalize_fields
from .vocab import (
    ADDRESS_PATTERN,
    EMAIL_TOKEN_PATTERN,
    PHONE_TOKEN_PATTERN,
    URL_TOKEN_PATTERN,
    digit_count,
    is_address_fragment,
    is_company_like,
    is_mostly_digits,
    is_person_name_like,
    is_title_like,
    looks_like_url,
    mentions_social_domain,
)

logger = logging.getLogger(__name__)


@dataclass
class CandidateLine:
    """A line of card text with its classifications."""

    text: str
    is_title: bool
    is_company: bool
    is_person_name: bool
    used: bool = False


class RuleBasedExtractor:
    """Pattern-based contact extractor.

    Extracts from the whole text:
    - Email, phone (9+ digits), website
    - LinkedIn, Instagram and Twitter/X handles
    - Street address

    Then assigns title, company and name by classifying the remaining lines.
    """

    MIN_LINE_LENGTH = 2
    MAX_LINE_LENGTH = 80
    MIN_PHONE_DIGITS = 9

    LINKEDIN_PATTERN = re.compile(r"linkedin\.com/(?:in|company)/([^\s/?]+)", re.IGNORECASE)
    INSTAGRAM_PATTERN = re.compile(r"instagram\.com/([^\s/?]+)", re.IGNORECASE)
    TWITTER_PATTERN = re.compile(r"(?<![a-z0-9])(?:twitter|x)\.com/([^\s/?]+)", re.IGNORECASE)

    def extract(self, text: str) -> FieldSet:
        """Extract a contact from raw text.

        Args:
            text: OCR output or pasted card text

        Returns:
            A normalized field set (possibly empty)
        """
        text = text or ""
        lines = self._split_lines(text)
        values = self._extract_tokens(text)

        candidates = [
            self._classify(line) for line in lines if not self._is_skippable(line)
        ]
        self._assign(candidates, values)

        logger.debug(
            f"Rule-based extraction classified {len(candidates)} of {len(lines)} lines"
        )
        return normalize_fields(FieldSet(**values))

    def _split_lines(self, text: str) -> list[str]:
        lines = (line.strip() for line in text.splitlines())
        return [line for line in lines if len(line) >= self.MIN_LINE_LENGTH]

    def _extract_tokens(self, text: str) -> dict[str, str]:
        values: dict[str, str] = {}

        email = EMAIL_TOKEN_PATTERN.search(text)
        values["email"] = email.group(0) if email else ""

        values["phone"] = next(
            (
                match.group(0)
                for match in PHONE_TOKEN_PATTERN.finditer(text)
                if digit_count(match.group(0)) >= self.MIN_PHONE_DIGITS
            ),
            "",
        )

        values["website"] = next(
            (
                match.group(0)
                for match in URL_TOKEN_PATTERN.finditer(text)
                if not mentions_social_domain(match.group(0))
            ),
            "",
        )

        for field_name, pattern in (
            ("linkedin", self.LINKEDIN_PATTERN),
            ("instagram", self.INSTAGRAM_PATTERN),
            ("twitter", self.TWITTER_PATTERN),
        ):
            match = pattern.search(text)
            values[field_name] = match.group(1) if match else ""

        address = ADDRESS_PATTERN.search(text)
        values["address"] = address.group(0).strip() if address else ""

        return values

    def _is_skippable(self, line: str) -> bool:
        return (
            "@" in line
            or is_mostly_digits(line)
            or looks_like_url(line)
            or mentions_social_domain(line)
            or len(line) <= 2
            or len(line) > self.MAX_LINE_LENGTH
            or is_address_fragment(line)
        )

    def _classify(self, line: str) -> CandidateLine:
        return CandidateLine(
            text=line,
            is_title=is_title_like(line),
            is_company=is_company_like(line),
            is_person_name=is_person_name_like(line),
        )

    def _claim(self, candidates: list[CandidateLine], flag: str) -> str:
        for candidate in candidates:
            if not candidate.used and getattr(candidate, flag):
                candidate.used = True
                return candidate.text
        return ""

    def _assign(self, candidates: list[CandidateLine], values: dict[str, str]) -> None:
        # Fixed order: title, then company, then name
        values["title"] = self._claim(candidates, "is_title")
        values["company"] = self._claim(candidates, "is_company")
        values["name"] = self._claim(candidates, "is_person_name")

        for candidate in candidates:
            if values["name"] and values["company"]:
                break
            if candidate.used:
                continue
            if not values["name"]:
                values["name"] = candidate.text
            elif not values["company"]:
                values["company"] = candidate.text
            candidate.used = True


# Singleton instance
_extractor: RuleBasedExtractor | None = None


def get_rule_based_extractor() -> RuleBasedExtractor:
    """Get the rule-based extractor singleton."""
    global _extractor
    if _extractor is None:
        _extractor = RuleBasedExtractor()
    return _extractor


def extract_from_text(raw_text: str) -> FieldSet:
    """Run the rule-based extractor on text the caller already has."""
    return get_rule_based_extractor().extract(raw_text)
