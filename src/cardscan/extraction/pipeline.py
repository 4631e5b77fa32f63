"""Contact extraction pipeline.

Orchestrates the extraction cascade for a business card image:

1. Vision model on the image. A gate-valid result finishes the run.
2. OCR on the image, then a text model structures the OCR text.
3. If the text model fails, the rule-based extractor runs on the OCR text.

A partial vision result is merged (vision as primary) with whatever the
OCR stages produced. Every stage failure is absorbed and only moves the
cascade forward; callers only ever see input errors.
"""

import asyncio
import time
from uuid import uuid4

from ..config import Settings, get_settings
from ..errors import InvalidImageError, ResponseParseError
from ..images import ImagePayload, load_image
from ..logging import get_context_logger, log_extraction_complete, log_stage_result
from ..models import (
    ExtractionMethod,
    ExtractionResult,
    FieldSet,
    MultiContactResult,
    ServiceStatus,
    Stage,
)
from .deterministic import RuleBasedExtractor, get_rule_based_extractor
from .llm import TextModelExtractor, VisionExtractor, get_text_extractor, get_vision_extractor
from .merger import is_valid_contact, merge_fields
from .normalizer import normalize_fields
from .ocr import OCREnginePool, tesseract_factory, tesseract_version
from .parser import parse_multi, parse_single
from .segmentation import extract_contacts_from_text

logger = get_context_logger(__name__)


class ExtractionPipeline:
    """Runs the vision → OCR + text model → rules cascade.

    All per-request working state is local to each call; the only state
    shared between concurrent requests is the pooled OCR engine.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        vision: VisionExtractor | None = None,
        text_model: TextModelExtractor | None = None,
        ocr_pool: OCREnginePool | None = None,
        rules: RuleBasedExtractor | None = None,
    ):
        """Initialize the pipeline.

        Args:
            settings: Settings to use; defaults to the cached settings
            vision: Vision collaborator
            text_model: Text-completion collaborator
            ocr_pool: Owner of the OCR engine
            rules: Rule-based extractor
        """
        self.settings = settings or get_settings()
        self._vision = vision
        self._text_model = text_model
        self._ocr_pool = ocr_pool
        self._rules = rules

    @property
    def vision(self) -> VisionExtractor:
        """Get the vision extractor."""
        if self._vision is None:
            self._vision = get_vision_extractor(self.settings)
        return self._vision

    @property
    def text_model(self) -> TextModelExtractor:
        """Get the text model extractor."""
        if self._text_model is None:
            self._text_model = get_text_extractor(self.settings)
        return self._text_model

    @property
    def ocr_pool(self) -> OCREnginePool:
        """Get the OCR engine pool."""
        if self._ocr_pool is None:
            self._ocr_pool = OCREnginePool(
                tesseract_factory(self.settings),
                idle_timeout=self.settings.ocr_idle_timeout_seconds,
            )
        return self._ocr_pool

    @property
    def rules(self) -> RuleBasedExtractor:
        """Get the rule-based extractor."""
        if self._rules is None:
            self._rules = get_rule_based_extractor()
        return self._rules

    # =========================
    # Stages
    # =========================

    async def _vision_reply(self, payload: ImagePayload, request_id: str, multi: bool) -> str | None:
        try:
            return await asyncio.wait_for(
                self.vision.extract(payload.data, payload.media_type, multi=multi),
                timeout=self.settings.vision_timeout_seconds,
            )
        except Exception as e:
            log_stage_result(Stage.VISION.value, request_id, produced=False, error=str(e) or type(e).__name__)
            return None

    async def _run_vision(self, payload: ImagePayload, request_id: str) -> FieldSet | None:
        reply = await self._vision_reply(payload, request_id, multi=False)
        if reply is None:
            return None
        try:
            fields = normalize_fields(parse_single(reply))
        except ResponseParseError as e:
            log_stage_result(Stage.VISION.value, request_id, produced=False, error=str(e))
            return None

        valid = is_valid_contact(fields)
        log_stage_result(Stage.VISION.value, request_id, produced=not fields.is_empty(), gate_valid=valid)
        return None if fields.is_empty() else fields

    async def _run_ocr(self, payload: ImagePayload, request_id: str) -> str | None:
        try:
            text = await self.ocr_pool.recognize(payload.data)
        except Exception as e:
            log_stage_result("ocr", request_id, produced=False, error=str(e) or type(e).__name__)
            return None
        logger.info(f"OCR extracted {len(text)} characters", extra={"request_id": request_id})
        return text

    async def _run_text_model(self, raw_text: str, request_id: str) -> FieldSet | None:
        try:
            reply = await asyncio.wait_for(
                self.text_model.extract(raw_text),
                timeout=self.settings.text_timeout_seconds,
            )
            fields = normalize_fields(parse_single(reply))
        except Exception as e:
            log_stage_result(
                Stage.OCR_TEXT_MODEL.value, request_id, produced=False, error=str(e) or type(e).__name__
            )
            return None

        if fields.is_empty():
            log_stage_result(Stage.OCR_TEXT_MODEL.value, request_id, produced=False)
            return None
        log_stage_result(
            Stage.OCR_TEXT_MODEL.value, request_id, produced=True, gate_valid=is_valid_contact(fields)
        )
        return fields

    # =========================
    # Entry points
    # =========================

    async def extract_single(self, image: bytes | str) -> ExtractionResult:
        """Extract one contact from a card image.

        Args:
            image: Raw bytes, base64 text or a data URL

        Returns:
            ExtractionResult with normalized fields and a method tag

        Raises:
            InvalidImageError: If the image is missing or cannot be decoded
        """
        payload = load_image(image, self.settings.max_image_bytes)
        request_id = uuid4().hex[:12]
        started = time.monotonic()

        vision_fields: FieldSet | None = None
        derived: FieldSet | None = None
        derived_method: ExtractionMethod | None = None
        raw_text = ""

        stage = Stage.VISION
        while stage is not Stage.DONE:
            if stage is Stage.VISION:
                vision_fields = await self._run_vision(payload, request_id)
                if vision_fields is not None and is_valid_contact(vision_fields):
                    stage = Stage.DONE
                else:
                    stage = Stage.OCR_TEXT_MODEL

            elif stage is Stage.OCR_TEXT_MODEL:
                text = await self._run_ocr(payload, request_id)
                if text is None:
                    stage = Stage.DONE
                    continue
                raw_text = text
                derived = await self._run_text_model(raw_text, request_id)
                if derived is not None:
                    derived_method = ExtractionMethod.OCR_LLM
                    stage = Stage.DONE
                else:
                    stage = Stage.OCR_RULES

            elif stage is Stage.OCR_RULES:
                derived = self.rules.extract(raw_text)
                derived_method = ExtractionMethod.OCR_RULES
                log_stage_result(Stage.OCR_RULES.value, request_id, produced=not derived.is_empty())
                stage = Stage.DONE

        result = self._combine(vision_fields, derived, derived_method, raw_text)
        log_extraction_complete(request_id, result.method, 1, time.monotonic() - started)
        return result

    @staticmethod
    def _combine(
        vision_fields: FieldSet | None,
        derived: FieldSet | None,
        derived_method: ExtractionMethod | None,
        raw_text: str,
    ) -> ExtractionResult:
        if vision_fields is not None and derived is not None and derived_method is not None:
            return ExtractionResult(
                fields=normalize_fields(merge_fields(vision_fields, derived)),
                raw_text=raw_text,
                method=ExtractionMethod.compose(ExtractionMethod.VISION, derived_method),
            )
        if vision_fields is not None:
            return ExtractionResult(fields=vision_fields, raw_text=raw_text, method=ExtractionMethod.VISION.value)
        if derived is not None and derived_method is not None:
            return ExtractionResult(fields=derived, raw_text=raw_text, method=derived_method.value)
        return ExtractionResult(fields=FieldSet(), raw_text=raw_text, method=ExtractionMethod.NONE.value)

    def _contacts_from_reply(self, reply: str) -> list[FieldSet]:
        """Gate-valid contacts from a vision reply.

        A reply holding several objects takes the array path; otherwise the
        single-object parse is tried first.
        """
        try:
            contacts = [normalize_fields(c) for c in parse_multi(reply)]
        except ResponseParseError:
            contacts = []

        if len(contacts) <= 1:
            try:
                single = normalize_fields(parse_single(reply))
                if is_valid_contact(single):
                    return [single]
            except ResponseParseError:
                pass

        return [c for c in contacts if is_valid_contact(c)][: self.settings.max_contacts]

    async def extract_multi(self, image: bytes | str) -> MultiContactResult:
        """Extract every contact from an image that may hold several cards.

        Raises:
            InvalidImageError: If the image is missing or cannot be decoded
        """
        payload = load_image(image, self.settings.max_image_bytes)
        request_id = uuid4().hex[:12]
        started = time.monotonic()

        reply = await self._vision_reply(payload, request_id, multi=True)
        if reply is not None:
            contacts = self._contacts_from_reply(reply)
            log_stage_result(Stage.VISION.value, request_id, produced=bool(contacts), gate_valid=bool(contacts))
            if contacts:
                log_extraction_complete(request_id, ExtractionMethod.VISION.value, len(contacts), time.monotonic() - started)
                return MultiContactResult(contacts=contacts, method=ExtractionMethod.VISION.value)

        raw_text = await self._run_ocr(payload, request_id)
        if raw_text is None:
            log_extraction_complete(request_id, ExtractionMethod.NONE.value, 0, time.monotonic() - started)
            return MultiContactResult(contacts=[], method=ExtractionMethod.NONE.value)

        contacts = extract_contacts_from_text(raw_text, self.settings.max_contacts, self.rules)
        log_extraction_complete(request_id, ExtractionMethod.OCR_RULES.value, len(contacts), time.monotonic() - started)
        return MultiContactResult(contacts=contacts, raw_text=raw_text, method=ExtractionMethod.OCR_RULES.value)

    def extract_from_text(self, raw_text: str) -> FieldSet:
        """Run only the rule-based extractor on text the caller already has."""
        return self.rules.extract(raw_text)

    async def extract_bulk(self, images: list[bytes | str]) -> list[ExtractionResult]:
        """Extract one contact per image with bounded concurrency.

        Results keep input order. An invalid image yields a result with
        method ``error`` instead of failing the batch.

        Raises:
            ValueError: If no images are given or the batch is too large
        """
        if not images:
            raise ValueError("Missing images")
        if len(images) > self.settings.max_bulk_images:
            raise ValueError(f"Maximum {self.settings.max_bulk_images} images per batch")

        semaphore = asyncio.Semaphore(self.settings.bulk_concurrency)

        async def run(index: int, image: bytes | str) -> ExtractionResult:
            async with semaphore:
                try:
                    return await self.extract_single(image)
                except InvalidImageError as e:
                    logger.warning(f"Bulk item {index} rejected: {e}")
                    return ExtractionResult(method=ExtractionMethod.ERROR.value, error=str(e))

        return list(await asyncio.gather(*(run(i, image) for i, image in enumerate(images))))

    async def status(self) -> ServiceStatus:
        """Report collaborator availability. Never raises."""
        text_available, text_models = await self.text_model.check_status()
        ocr_version = await asyncio.to_thread(tesseract_version)
        return ServiceStatus(
            vision_provider=self.settings.vision_provider,
            vision_model=self.settings.vision_model,
            vision_configured=self.settings.vision_configured,
            text_provider=self.settings.text_provider,
            text_model=self.settings.text_model,
            text_model_available=text_available,
            text_models_installed=text_models,
            ocr_available=ocr_version is not None,
            ocr_version=ocr_version,
        )

    async def aclose(self) -> None:
        """Release the pooled OCR engine."""
        if self._ocr_pool is not None:
            await self._ocr_pool.aclose()


# Singleton instance
_pipeline: ExtractionPipeline | None = None


def get_extraction_pipeline() -> ExtractionPipeline:
    """Get the extraction pipeline singleton."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ExtractionPipeline()
    return _pipeline


async def extract_single(image: bytes | str) -> ExtractionResult:
    """Full single-contact cascade on an image."""
    return await get_extraction_pipeline().extract_single(image)


async def extract_multi(image: bytes | str) -> MultiContactResult:
    """Full multi-contact cascade on an image."""
    return await get_extraction_pipeline().extract_multi(image)


def extract_from_text(raw_text: str) -> FieldSet:
    """Rule-based extraction on text the caller already has."""
    return get_extraction_pipeline().extract_from_text(raw_text)
