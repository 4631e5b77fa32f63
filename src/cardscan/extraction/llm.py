"""Model collaborators for contact extraction.

Vision extraction sends the card image to a multimodal model; text
extraction sends OCR text to a text-completion model. Both return the
model's raw reply; turning it into a field set is the parser's job.
Supports Anthropic and OpenAI for vision, and Ollama, OpenAI and
Anthropic for text.
"""

import base64
import logging
from typing import Any

import httpx

from ..config import Settings, get_settings
from ..errors import CollaboratorError

logger = logging.getLogger(__name__)

FIELDS_JSON = (
    '{"name":"","title":"","company":"","phone":"","email":"","website":"",'
    '"address":"","linkedin":"","instagram":"","twitter":""}'
)

FIELD_RULES = """Rules:
- name: full person name only
- title: job title/designation
- company: organization name
- phone: include country code if present
- email: full email address
- website: full URL (add https:// if missing)
- address: physical address
- linkedin/instagram/twitter: username or full URL"""

VISION_PROMPT = f"""Extract the contact information from this business card image.
Return ONLY valid JSON with these fields (use empty string if not found):
{FIELDS_JSON}

{FIELD_RULES}"""

VISION_MULTI_PROMPT = f"""This image may contain one or more business cards.
Extract the contact information from every card.
Return ONLY a valid JSON array with one object per card, each with these fields
(use empty string if not found):
[{FIELDS_JSON}]

{FIELD_RULES}"""

TEXT_PROMPT = f"""Extract contact information from this business card text.
Return ONLY valid JSON with these fields (use empty string if not found):
{FIELDS_JSON}

{FIELD_RULES}

Business card text:
"""


class VisionExtractor:
    """Vision-model collaborator.

    Sends a card image plus an extraction instruction and returns the
    free-form reply, which should (but may not) contain the JSON shape.
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize the vision extractor.

        Args:
            settings: Settings to use; defaults to the cached settings
        """
        self.settings = settings or get_settings()
        self.provider = self.settings.vision_provider
        self._client: Any = None

    async def _get_client(self) -> Any:
        """Get or create the provider client."""
        if self._client is not None:
            return self._client

        if self.provider == "anthropic":
            try:
                import anthropic
            except ImportError:
                raise CollaboratorError("anthropic package not installed")
            self._client = anthropic.AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        elif self.provider == "openai":
            try:
                import openai
            except ImportError:
                raise CollaboratorError("openai package not installed")
            self._client = openai.AsyncOpenAI(api_key=self.settings.openai_api_key)
        else:
            raise CollaboratorError(f"Unknown vision provider: {self.provider}")

        return self._client

    async def extract(self, image: bytes, media_type: str, multi: bool = False) -> str:
        """Ask the vision model to read a card image.

        Args:
            image: Raw image bytes
            media_type: MIME type of the image
            multi: Ask for a JSON array covering every card in the image

        Returns:
            The model's raw reply text

        Raises:
            CollaboratorError: If the provider is not configured or replies empty
        """
        if not self.settings.vision_configured:
            raise CollaboratorError(f"No API key configured for {self.provider}")

        client = await self._get_client()
        prompt = VISION_MULTI_PROMPT if multi else VISION_PROMPT
        encoded = base64.b64encode(image).decode("ascii")

        if self.provider == "anthropic":
            reply = await self._extract_anthropic(client, encoded, media_type, prompt)
        else:
            reply = await self._extract_openai(client, encoded, media_type, prompt)

        if not reply or not reply.strip():
            raise CollaboratorError("Vision model returned an empty reply")
        return reply

    async def _extract_anthropic(
        self, client: Any, encoded: str, media_type: str, prompt: str
    ) -> str:
        """Extract using Anthropic."""
        response = await client.messages.create(
            model=self.settings.vision_model,
            max_tokens=1024,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {"type": "base64", "media_type": media_type, "data": encoded},
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    async def _extract_openai(
        self, client: Any, encoded: str, media_type: str, prompt: str
    ) -> str:
        """Extract using OpenAI."""
        response = await client.chat.completions.create(
            model=self.settings.vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{media_type};base64,{encoded}"},
                        },
                    ],
                }
            ],
            temperature=0.1,
            max_tokens=1024,
        )
        return response.choices[0].message.content or ""


class TextModelExtractor:
    """Text-completion collaborator that structures OCR text."""

    def __init__(self, settings: Settings | None = None):
        """Initialize the text extractor.

        Args:
            settings: Settings to use; defaults to the cached settings
        """
        self.settings = settings or get_settings()
        self.provider = self.settings.text_provider
        self._client: Any = None

    async def _get_client(self) -> Any:
        """Get or create the SDK client (OpenAI/Anthropic only)."""
        if self._client is not None:
            return self._client

        if self.provider == "openai":
            try:
                import openai
            except ImportError:
                raise CollaboratorError("openai package not installed")
            self._client = openai.AsyncOpenAI(api_key=self.settings.openai_api_key)
        elif self.provider == "anthropic":
            try:
                import anthropic
            except ImportError:
                raise CollaboratorError("anthropic package not installed")
            self._client = anthropic.AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        else:
            raise CollaboratorError(f"Unknown text provider: {self.provider}")

        return self._client

    async def extract(self, raw_text: str) -> str:
        """Ask the text model to structure OCR text.

        Args:
            raw_text: Recognized card text

        Returns:
            The model's raw reply text

        Raises:
            CollaboratorError: If there is no text to send or the reply is empty
        """
        if not raw_text or not raw_text.strip():
            raise CollaboratorError("No OCR text to structure")

        max_chars = self.settings.max_text_chars
        if len(raw_text) > max_chars:
            raw_text = raw_text[:max_chars] + "\n...[truncated]..."

        prompt = TEXT_PROMPT + raw_text

        if self.provider == "ollama":
            reply = await self._extract_ollama(prompt)
        elif self.provider == "openai":
            reply = await self._extract_openai(await self._get_client(), prompt)
        else:
            reply = await self._extract_anthropic(await self._get_client(), prompt)

        if not reply or not reply.strip():
            raise CollaboratorError("Text model returned an empty reply")
        return reply

    async def _extract_ollama(self, prompt: str) -> str:
        """Extract using a local Ollama server."""
        async with httpx.AsyncClient(timeout=self.settings.text_timeout_seconds) as client:
            response = await client.post(
                f"{self.settings.ollama_url.rstrip('/')}/api/generate",
                json={
                    "model": self.settings.text_model,
                    "prompt": prompt,
                    "stream": False,
                    "options": {"temperature": 0.1},
                },
            )
        if response.status_code != 200:
            raise CollaboratorError(f"Ollama returned {response.status_code}")
        return response.json().get("response", "")

    async def _extract_openai(self, client: Any, prompt: str) -> str:
        """Extract using OpenAI."""
        response = await client.chat.completions.create(
            model=self.settings.text_model,
            messages=[
                {
                    "role": "system",
                    "content": "You are a contact extraction assistant. Return only valid JSON.",
                },
                {"role": "user", "content": prompt},
            ],
            temperature=0.1,
            max_tokens=1000,
        )
        return response.choices[0].message.content or ""

    async def _extract_anthropic(self, client: Any, prompt: str) -> str:
        """Extract using Anthropic."""
        response = await client.messages.create(
            model=self.settings.text_model,
            max_tokens=1000,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    async def check_status(self) -> tuple[bool, list[str]]:
        """Report whether the text model is reachable and which models it has.

        Never raises; an unreachable service reports ``(False, [])``.
        """
        if self.provider != "ollama":
            configured = bool(
                self.settings.openai_api_key
                if self.provider == "openai"
                else self.settings.anthropic_api_key
            )
            return configured, [self.settings.text_model] if configured else []

        try:
            async with httpx.AsyncClient(timeout=self.settings.status_timeout_seconds) as client:
                response = await client.get(f"{self.settings.ollama_url.rstrip('/')}/api/tags")
            if response.status_code != 200:
                return False, []
            models = [m.get("name", "") for m in response.json().get("models", [])]
            return True, [m for m in models if m]
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Ollama status check failed: {e}")
            return False, []


# Factory functions
def get_vision_extractor(settings: Settings | None = None) -> VisionExtractor:
    """Get a vision extractor for the configured provider."""
    return VisionExtractor(settings=settings)


def get_text_extractor(settings: Settings | None = None) -> TextModelExtractor:
    """Get a text extractor for the configured provider."""
    return TextModelExtractor(settings=settings)
