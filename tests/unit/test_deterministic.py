"""Unit tests for rule-based contact extraction."""

from cardscan.extraction.deterministic import (
    RuleBasedExtractor,
    extract_from_text,
    get_rule_based_extractor,
)


class TestRuleBasedExtractor:
    """Tests for RuleBasedExtractor.extract."""

    def setup_method(self):
        self.extractor = RuleBasedExtractor()

    def test_clean_card(self, sample_card_text):
        """Test that a clean card yields all five primary fields."""
        fields = self.extractor.extract(sample_card_text)

        assert fields.name == "John Smith"
        assert fields.title == "Senior Engineer"
        assert fields.company == "Example Inc"
        assert fields.email == "john.smith@example.com"
        assert fields.phone == "+1 555-123-4567"

    def test_address_line(self):
        """Test extracting an address line by keyword."""
        text = "Jane Doe\nDirector\n123 Main Street, Springfield\njane@acme.com\n"

        fields = self.extractor.extract(text)

        assert fields.address == "123 Main Street, Springfield"
        assert fields.name == "Jane Doe"
        assert fields.title == "Director"
        assert fields.email == "jane@acme.com"

    def test_social_handles_and_website(self):
        text = "\n".join(
            [
                "Jane Doe",
                "Product Designer",
                "https://linkedin.com/in/janedoe",
                "instagram.com/jane.doe",
                "twitter.com/janedoe_",
                "www.acme.com",
                "jane@acme.com",
            ]
        )

        fields = self.extractor.extract(text)

        assert fields.linkedin == "janedoe"
        assert fields.instagram == "jane.doe"
        assert fields.twitter == "janedoe_"
        assert fields.website == "https://www.acme.com"
        assert fields.name == "Jane Doe"
        assert fields.title == "Product Designer"

    def test_short_number_is_not_a_phone(self):
        """Test that a number with too few digits is not taken as a phone."""
        text = "John Smith\nExt 1234567\njohn@example.com"

        fields = self.extractor.extract(text)

        assert fields.phone == ""
        assert fields.name == "John Smith"

    def test_unclassified_lines_fill_name_then_company(self):
        """Test that leftover lines fill name first, then company."""
        fields = self.extractor.extract("Zorblax\nQuuxcorp\nfoo@bar.com")

        assert fields.name == "Zorblax"
        assert fields.company == "Quuxcorp"

    def test_empty_text(self):
        assert self.extractor.extract("").is_empty()

    def test_whitespace_only_text(self):
        assert self.extractor.extract("  \n\n \t").is_empty()


class TestModuleHelpers:
    """Tests for the module-level helpers."""

    def test_singleton(self):
        """Test that the module getter returns one shared extractor."""
        assert get_rule_based_extractor() is get_rule_based_extractor()

    def test_extract_from_text(self, sample_card_text):
        fields = extract_from_text(sample_card_text)

        assert fields.email == "john.smith@example.com"
