"""Pytest fixtures for cardscan unit tests."""

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from cardscan.config import Settings
from cardscan.extraction.llm import TextModelExtractor, VisionExtractor
from cardscan.extraction.ocr import OCREnginePool


SAMPLE_CARD_TEXT = """John Smith
Senior Engineer
Example Inc
john.smith@example.com
+1 555-123-4567
"""

TWO_CARD_TEXT = """John Smith
Senior Engineer
Example Inc
john@example.com
+1 555 123 4567

Jane Doe
Marketing Director
Globex Corp
jane.doe@globex.com
+1 555 987 6543
"""


@pytest.fixture
def settings() -> Settings:
    """Settings with credentials and short timeouts, independent of the environment."""
    return Settings(
        _env_file=None,
        anthropic_api_key="test-key",
        vision_provider="anthropic",
        text_provider="ollama",
        vision_timeout_seconds=5.0,
        text_timeout_seconds=5.0,
        ocr_idle_timeout_seconds=600.0,
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def mock_vision() -> MagicMock:
    """Vision collaborator with an async ``extract``."""
    vision = MagicMock(spec=VisionExtractor)
    vision.extract = AsyncMock()
    return vision


@pytest.fixture
def mock_text_model() -> MagicMock:
    """Text-completion collaborator with an async ``extract``."""
    text_model = MagicMock(spec=TextModelExtractor)
    text_model.extract = AsyncMock()
    text_model.check_status = AsyncMock(return_value=(True, ["qwen2.5:1.5b"]))
    return text_model


@pytest.fixture
def mock_ocr_pool() -> MagicMock:
    """OCR pool whose ``recognize`` returns the sample card text."""
    pool = MagicMock(spec=OCREnginePool)
    pool.recognize = AsyncMock(return_value=SAMPLE_CARD_TEXT)
    pool.aclose = AsyncMock()
    return pool


@pytest.fixture
def sample_card_text() -> str:
    """OCR text of a single clean card."""
    return SAMPLE_CARD_TEXT


@pytest.fixture
def two_card_text() -> str:
    """OCR text of two cards photographed together."""
    return TWO_CARD_TEXT
