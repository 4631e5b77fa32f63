"""Pydantic models for business card extraction.

This module defines the contact field set and the result envelopes
returned by the extraction cascade.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

FIELD_NAMES: tuple[str, ...] = (
    "name",
    "title",
    "company",
    "phone",
    "email",
    "website",
    "address",
    "linkedin",
    "instagram",
    "twitter",
)


# =============================================================================
# Enumerations
# =============================================================================


class ExtractionMethod(str, Enum):
    """Sub-strategy names composed into a result's method tag."""

    VISION = "vision"
    OCR_LLM = "ocr-llm"
    OCR_RULES = "ocr-rules"
    NONE = "none"
    ERROR = "error"

    @staticmethod
    def compose(*methods: "ExtractionMethod") -> str:
        """Join contributing strategies into a method tag (e.g. ``vision+ocr-llm``)."""
        return "+".join(m.value for m in methods) or ExtractionMethod.NONE.value


class Stage(str, Enum):
    """States of the single-contact cascade."""

    VISION = "vision"
    OCR_TEXT_MODEL = "ocr_text_model"
    OCR_RULES = "ocr_rules"
    DONE = "done"


# =============================================================================
# Field set
# =============================================================================


class FieldSet(BaseModel):
    """The ten-key structured contact record.

    Every value is a string; an empty string means the field is absent.
    Values are trimmed on construction and instances are immutable.
    """

    name: str = ""
    title: str = ""
    company: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    address: str = ""
    linkedin: str = ""
    instagram: str = ""
    twitter: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator(*FIELD_NAMES, mode="before")
    @classmethod
    def coerce_string(cls, value: Any) -> str:
        if not isinstance(value, str):
            return ""
        return value.strip()

    def to_dict(self) -> dict[str, str]:
        """Return a mutable copy of the fields."""
        return self.model_dump()

    def is_empty(self) -> bool:
        """Check whether every field is absent."""
        return not any(self.to_dict().values())


# =============================================================================
# Results
# =============================================================================


class ExtractionResult(BaseModel):
    """Result of a single-contact extraction."""

    fields: FieldSet = Field(default_factory=FieldSet)
    raw_text: str = Field(default="", description="OCR text, when OCR ran")
    method: str = Field(..., description="Provenance tag, e.g. vision+ocr-llm")
    error: str | None = Field(default=None, description="Set only for rejected bulk items")


class MultiContactResult(BaseModel):
    """Result of a multi-contact extraction."""

    contacts: list[FieldSet] = Field(default_factory=list)
    raw_text: str = ""
    method: str


class ServiceStatus(BaseModel):
    """Availability of the extraction collaborators."""

    vision_provider: str
    vision_model: str
    vision_configured: bool
    text_provider: str
    text_model: str
    text_model_available: bool
    text_models_installed: list[str] = Field(default_factory=list)
    ocr_available: bool
    ocr_version: str | None = None
