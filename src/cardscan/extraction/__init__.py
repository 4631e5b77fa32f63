"""Contact extraction for business card images.

Components:
- RuleBasedExtractor: Line-classification extraction from raw text
- VisionExtractor / TextModelExtractor: Model collaborators
- OCREnginePool: Owner of the pooled, idle-closing OCR engine
- normalize_fields / merge_fields / is_valid_contact: Field-set cleaning,
  merging and the validity gate
- parse_single / parse_multi: Tolerant model reply parsing
- ExtractionPipeline: Orchestrates the vision → OCR + text model → rules cascade
"""

from .deterministic import (
    CandidateLine,
    RuleBasedExtractor,
    get_rule_based_extractor,
)
from .llm import (
    TextModelExtractor,
    VisionExtractor,
    get_text_extractor,
    get_vision_extractor,
)
from .merger import is_valid_contact, merge_fields
from .normalizer import cross_validate, normalize_fields
from .ocr import OCREngine, OCREnginePool, TesseractEngine
from .parser import coerce_field_set, parse_multi, parse_single
from .pipeline import (
    ExtractionPipeline,
    extract_from_text,
    extract_multi,
    extract_single,
    get_extraction_pipeline,
)
from .segmentation import extract_contacts_from_text, split_by_emails

__all__ = [
    "CandidateLine",
    "RuleBasedExtractor",
    "get_rule_based_extractor",
    "TextModelExtractor",
    "VisionExtractor",
    "get_text_extractor",
    "get_vision_extractor",
    "is_valid_contact",
    "merge_fields",
    "cross_validate",
    "normalize_fields",
    "OCREngine",
    "OCREnginePool",
    "TesseractEngine",
    "coerce_field_set",
    "parse_multi",
    "parse_single",
    "ExtractionPipeline",
    "extract_from_text",
    "extract_multi",
    "extract_single",
    "get_extraction_pipeline",
    "extract_contacts_from_text",
    "split_by_emails",
]
