"""Unit tests for field normalization and cross-field correction.

Run with: pytest tests/unit/test_normalizer.py -v
"""

import pytest

from cardscan.extraction.normalizer import (
    clean_company,
    clean_email,
    clean_name,
    clean_phone,
    clean_social,
    clean_title,
    clean_website,
    normalize_fields,
)
from cardscan.models import FIELD_NAMES, FieldSet


class TestFieldSetShape:
    """Tests for the invariants of normalized field sets."""

    def test_has_exactly_the_ten_fields(self):
        """Test that the key set is exactly the ten known fields."""
        result = normalize_fields(FieldSet(name="  John Smith  "))

        assert tuple(result.to_dict().keys()) == FIELD_NAMES

    def test_values_are_trimmed_or_empty(self):
        """Test that every value is empty or trimmed."""
        result = normalize_fields(
            FieldSet(
                name=" Jane Doe ",
                title="\tDirector\n",
                company=" Globex Corp ",
                email=" jane@globex.com ",
            )
        )

        for value in result.to_dict().values():
            assert value == value.strip()

    def test_non_string_values_become_empty(self):
        """Test that non-string input values are coerced to empty strings."""
        fields = FieldSet(name=None, phone=5551234567)

        assert fields.name == ""
        assert fields.phone == ""

    def test_field_set_is_immutable(self):
        """Test that field sets cannot be mutated after construction."""
        fields = FieldSet(name="John")

        with pytest.raises(Exception):
            fields.name = "Jane"


class TestEmailCleaning:
    """Tests for email normalization."""

    def test_lowercases(self):
        result = normalize_fields(FieldSet(email="JOHN@EXAMPLE.COM"))
        assert result.email == "john@example.com"

    def test_rejects_invalid(self):
        result = normalize_fields(FieldSet(email="not-an-email"))
        assert result.email == ""

    def test_translates_obfuscation(self):
        """Test that "at" and "dot" spellings become an address."""
        assert clean_email("john [at] example [dot] com") == "john@example.com"

    def test_strips_inner_whitespace(self):
        assert clean_email("john @ example.com") == "john@example.com"

    def test_strips_mailto(self):
        assert clean_email("mailto:john@example.com") == "john@example.com"


class TestPhoneCleaning:
    """Tests for phone normalization."""

    def test_keeps_formatted_number(self):
        """Test that a formatted international number is retained."""
        result = normalize_fields(FieldSet(phone="+1 (555) 123-4567"))

        assert result.phone == "+1 (555) 123-4567"
        assert sum(ch.isdigit() for ch in result.phone) == 11

    def test_rejects_too_few_digits(self):
        result = normalize_fields(FieldSet(phone="12"))
        assert result.phone == ""

    def test_rejects_too_many_digits(self):
        assert clean_phone("1234567890123456") == ""

    def test_strips_labels_and_dots(self):
        """Test that phone labels and dot separators are removed."""
        assert clean_phone("Tel: 555.123.4567") == "5551234567"

    def test_collapses_spaces(self):
        assert clean_phone("+91  98765   43210") == "+91 98765 43210"


class TestWebsiteCleaning:
    """Tests for website normalization."""

    def test_prepends_scheme(self):
        result = normalize_fields(FieldSet(website="example.com"))
        assert result.website == "https://example.com"

    def test_rejects_plain_text(self):
        result = normalize_fields(FieldSet(website="just text"))
        assert result.website == ""

    def test_strips_trailing_punctuation(self):
        assert clean_website("www.example.com.") == "https://www.example.com"

    def test_keeps_existing_scheme(self):
        assert clean_website("http://example.org/about") == "http://example.org/about"

    def test_rejects_value_without_domain_suffix(self):
        """Test that a host without a domain suffix is dropped."""
        assert clean_website("localhost") == ""


class TestSocialCleaning:
    """Tests for social handle normalization."""

    def test_strips_linkedin_url(self):
        assert clean_social("https://www.linkedin.com/in/johnsmith/", "linkedin") == "johnsmith"

    def test_strips_linkedin_short_url(self):
        """Test that a scheme-less LinkedIn URL reduces to its handle."""
        assert clean_social("lnkd.in/johnsmith", "linkedin") == "johnsmith"

    def test_strips_instagram_at(self):
        assert clean_social("@janedoe", "instagram") == "janedoe"

    def test_strips_instagram_url(self):
        assert clean_social("https://instagram.com/janedoe/", "instagram") == "janedoe"

    def test_strips_x_url(self):
        assert clean_social("https://x.com/jdoe", "twitter") == "jdoe"

    def test_strips_twitter_url(self):
        assert clean_social("twitter.com/jdoe/", "twitter") == "jdoe"


class TestNameTitleCompanyCleaning:
    """Tests for name, title and company normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Dr. Jane Doe", "Jane Doe"),
            ("mr john smith", "john smith"),
            ("Ms.Jane Doe", "Jane Doe"),
            ("MR. JOHN SMITH", "John Smith"),
            ("Drew Barrymore", "Drew Barrymore"),
            ("JO", "JO"),
        ],
    )
    def test_name(self, raw, expected):
        """Test name cleaning."""
        assert clean_name(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("SENIOR VP OF SALES", "Senior VP Of Sales"),
            ("CHIEF TECHNOLOGY OFFICER", "Chief Technology Officer"),
            ("HR MANAGER", "HR Manager"),
            ("CEO", "CEO"),
            ("Head of UX", "Head of UX"),
        ],
    )
    def test_title(self, raw, expected):
        """Test title cleaning."""
        assert clean_title(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("ACME WIDGETS,", "Acme Widgets"),
            ("IBM", "IBM"),
            ("Example Inc.", "Example Inc."),
            ("Globex Corp;", "Globex Corp"),
        ],
    )
    def test_company(self, raw, expected):
        """Test company cleaning."""
        assert clean_company(raw) == expected


class TestCrossValidation:
    """Tests for cross-field correction rules."""

    def test_email_in_name_moves_to_email(self):
        result = normalize_fields(FieldSet(name="JOHN@EXAMPLE.COM"))

        assert result.name == ""
        assert result.email == "john@example.com"

    def test_email_in_name_does_not_overwrite_email(self):
        """Test that an existing email is kept and the name cleared."""
        result = normalize_fields(FieldSet(name="john@example.com", email="jane@example.com"))

        assert result.name == ""
        assert result.email == "jane@example.com"

    def test_email_in_name_keeps_only_the_address(self):
        """Test that the words around an address in the name are not glued into the email."""
        result = normalize_fields(FieldSet(name="John Smith john@x.com"))

        assert result.name == ""
        assert result.email == "john@x.com"

    def test_phone_in_name_moves_to_phone(self):
        result = normalize_fields(FieldSet(name="+1 555 123 4567"))

        assert result.name == ""
        assert result.phone == "+1 555 123 4567"

    def test_url_in_name_moves_to_website(self):
        result = normalize_fields(FieldSet(name="www.example.com"))

        assert result.name == ""
        assert result.website == "https://www.example.com"

    def test_url_rule_precedes_company_rule(self):
        """Test that a URL-shaped name with a suffix token becomes the website."""
        result = normalize_fields(FieldSet(name="https://acme-corp.com"))

        assert result.website == "https://acme-corp.com"
        assert result.company == ""

    def test_swaps_company_and_personal_name(self):
        """Test that a company in the name field swaps with a personal name."""
        result = normalize_fields(FieldSet(name="Acme Corp LLC", company="John Smith"))

        assert result.name == "John Smith"
        assert result.company == "Acme Corp LLC"

    def test_company_name_moves_to_empty_company(self):
        result = normalize_fields(FieldSet(name="Acme Corp LLC"))

        assert result.name == ""
        assert result.company == "Acme Corp LLC"

    def test_no_swap_when_company_has_suffix(self):
        result = normalize_fields(FieldSet(name="Acme Corp", company="Globex Industries"))

        assert result.name == "Acme Corp"
        assert result.company == "Globex Industries"

    def test_personal_name_in_company_moves_to_empty_name(self):
        """Test that a personal name in the company fills an empty name."""
        result = normalize_fields(FieldSet(company="Jane Doe"))

        assert result.name == "Jane Doe"
        assert result.company == ""

    def test_company_with_suffix_stays_when_name_empty(self):
        result = normalize_fields(FieldSet(company="Acme Widgets Inc"))

        assert result.name == ""
        assert result.company == "Acme Widgets Inc"

    def test_email_in_title_moves_to_email(self):
        result = normalize_fields(FieldSet(name="Jane Doe", title="jane@globex.com"))

        assert result.title == ""
        assert result.email == "jane@globex.com"

    def test_email_in_labelled_title_keeps_only_the_address(self):
        """Test that a label in front of an address in the title is dropped."""
        result = normalize_fields(FieldSet(name="Jane Doe", title="Contact: jane@globex.com"))

        assert result.title == ""
        assert result.email == "jane@globex.com"
