"""Unit tests for the cardscan command-line interface."""

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from click.testing import CliRunner

from cardscan import __version__
from cardscan.cli import main
from cardscan.models import ExtractionResult, FieldSet, MultiContactResult, ServiceStatus


@pytest.fixture(autouse=True)
def restore_root_handlers():
    """setup_logging() rebinds the root logger to the runner's stderr."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_pipeline(monkeypatch) -> MagicMock:
    pipeline = MagicMock()
    pipeline.extract_single = AsyncMock(
        return_value=ExtractionResult(
            fields=FieldSet(name="John Smith", email="john@example.com"), method="vision"
        )
    )
    pipeline.extract_multi = AsyncMock(
        return_value=MultiContactResult(
            contacts=[FieldSet(name="John Smith"), FieldSet(name="Jane Doe")],
            method="ocr-rules",
        )
    )
    pipeline.status = AsyncMock(
        return_value=ServiceStatus(
            vision_provider="anthropic",
            vision_model="claude-sonnet-4-5",
            vision_configured=True,
            text_provider="ollama",
            text_model="qwen2.5:1.5b",
            text_model_available=False,
            ocr_available=True,
            ocr_version="5.3.0",
        )
    )
    pipeline.aclose = AsyncMock()
    monkeypatch.setattr("cardscan.cli.ExtractionPipeline", lambda: pipeline)
    return pipeline


class TestScanCommand:
    """Tests for `cardscan scan`."""

    def test_scan_prints_fields(self, runner, fake_pipeline, tmp_path, png_bytes):
        """Test that scan prints the method and each field."""
        image = tmp_path / "card.png"
        image.write_bytes(png_bytes)

        result = runner.invoke(main, ["scan", str(image)])

        assert result.exit_code == 0
        assert "Method: vision" in result.output
        assert "name: John Smith" in result.output
        fake_pipeline.extract_single.assert_awaited_once_with(png_bytes)
        fake_pipeline.aclose.assert_awaited_once()

    def test_scan_multi_json(self, runner, fake_pipeline, tmp_path, png_bytes):
        """Test that --multi --json prints the contact list as JSON."""
        image = tmp_path / "cards.png"
        image.write_bytes(png_bytes)

        result = runner.invoke(main, ["scan", str(image), "--multi", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["method"] == "ocr-rules"
        assert [c["name"] for c in data["contacts"]] == ["John Smith", "Jane Doe"]

    def test_scan_invalid_image_exits_1(self, runner, tmp_path):
        """Test that an undecodable image exits with status 1."""
        image = tmp_path / "notes.txt"
        image.write_text("this is not an image")

        result = runner.invoke(main, ["scan", str(image)])

        assert result.exit_code == 1
        assert "Unsupported image encoding" in result.output

    def test_scan_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["scan", str(tmp_path / "missing.png")])

        assert result.exit_code != 0


class TestParseTextCommand:
    """Tests for `cardscan parse-text`."""

    def test_reads_stdin(self, runner, sample_card_text):
        """Test parsing card text piped on stdin."""
        result = runner.invoke(main, ["parse-text", "--json"], input=sample_card_text)

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["name"] == "John Smith"
        assert data["email"] == "john.smith@example.com"

    def test_reads_file(self, runner, tmp_path, sample_card_text):
        source = tmp_path / "card.txt"
        source.write_text(sample_card_text)

        result = runner.invoke(main, ["parse-text", str(source)])

        assert result.exit_code == 0
        assert "company: Example Inc" in result.output


class TestStatusCommand:
    """Tests for `cardscan status`."""

    def test_status_text(self, runner, fake_pipeline):
        """Test the human-readable status report."""
        result = runner.invoke(main, ["status"])

        assert result.exit_code == 0
        assert "anthropic/claude-sonnet-4-5 (configured)" in result.output
        assert "(unavailable)" in result.output
        assert "tesseract 5.3.0" in result.output

    def test_status_json(self, runner, fake_pipeline):
        result = runner.invoke(main, ["status", "--json"])

        data = json.loads(result.stdout)
        assert data["ocr_version"] == "5.3.0"


def test_version(runner):
    result = runner.invoke(main, ["--version"])

    assert __version__ in result.output
