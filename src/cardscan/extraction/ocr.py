"""OCR engine and its pooled owner.

The Tesseract engine is expensive enough to keep around between requests
but should not linger forever. ``OCREnginePool`` runs a single owner task
that holds the engine, creates it lazily on the first lease, hands it out
to concurrent callers, and closes it after an idle period with no active
leases.
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytesseract
from PIL import Image, ImageOps

from ..config import Settings, get_settings
from ..errors import CollaboratorError

logger = logging.getLogger(__name__)


class OCREngine(ABC):
    """Abstract OCR engine: image bytes in, best-effort plain text out."""

    @abstractmethod
    def recognize(self, image: bytes) -> str:
        """Return the recognized text of an image."""
        ...

    def close(self) -> None:
        """Release engine resources."""
        pass


class TesseractEngine(OCREngine):
    """OCR engine backed by the Tesseract binary via pytesseract."""

    def __init__(self, language: str = "eng", config: str = "--oem 3 --psm 3"):
        try:
            self.version = str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as e:
            raise CollaboratorError(f"Tesseract is not installed: {e}") from e
        self.language = language
        self.config = config
        logger.info(f"Tesseract {self.version} engine ready ({language})")

    def recognize(self, image: bytes) -> str:
        with Image.open(io.BytesIO(image)) as opened:
            prepared = ImageOps.exif_transpose(opened)
            if prepared.mode not in ("RGB", "L"):
                prepared = prepared.convert("RGB")
            return pytesseract.image_to_string(prepared, lang=self.language, config=self.config)

    def close(self) -> None:
        logger.info("Tesseract engine closed (idle)")


def tesseract_factory(settings: Settings | None = None) -> Callable[[], OCREngine]:
    settings = settings or get_settings()
    return lambda: TesseractEngine(language=settings.ocr_language, config=settings.ocr_config)


class OCREnginePool:
    """Single-owner manager for a lazily created, idle-closing OCR engine.

    Callers never touch the engine handle directly outside a lease. All
    state lives in the owner task; callers talk to it through a queue:

    - ``acquire``: served immediately when the engine exists; otherwise the
      owner creates it, and every caller that queued while creation was in
      flight receives the same engine or the same exception.
    - ``release``: ends a lease. The idle timer only runs with no leases out.
    - ``shutdown``: closes the engine and stops the owner.
    """

    def __init__(self, factory: Callable[[], OCREngine], idle_timeout: float = 600.0):
        """Initialize the pool.

        Args:
            factory: Creates an engine; runs in a worker thread and may raise
            idle_timeout: Seconds without leases before the engine is closed
        """
        self._factory = factory
        self._idle_timeout = idle_timeout
        self._inbox: asyncio.Queue[tuple[str, asyncio.Future[Any] | None]] | None = None
        self._owner: asyncio.Task[None] | None = None
        self.initializations = 0

    @property
    def running(self) -> bool:
        return self._owner is not None and not self._owner.done()

    def _ensure_owner(self) -> asyncio.Queue:
        if not self.running:
            self._inbox = asyncio.Queue()
            self._owner = asyncio.create_task(self._run(self._inbox), name="ocr-engine-owner")
        assert self._inbox is not None
        return self._inbox

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[OCREngine]:
        """Borrow the engine for the duration of the ``async with`` block."""
        inbox = self._ensure_owner()
        future: asyncio.Future[OCREngine] = asyncio.get_running_loop().create_future()
        inbox.put_nowait(("acquire", future))
        try:
            engine = await future
        except asyncio.CancelledError:
            # The owner may have granted the lease just before we were cancelled
            if future.done() and not future.cancelled() and future.exception() is None:
                inbox.put_nowait(("release", None))
            raise
        try:
            yield engine
        finally:
            inbox.put_nowait(("release", None))

    async def recognize(self, image: bytes) -> str:
        """Run OCR on an image with a leased engine, off the event loop."""
        async with self.lease() as engine:
            return await asyncio.to_thread(engine.recognize, image)

    async def aclose(self) -> None:
        """Close the engine and stop the owner task."""
        if not self.running or self._inbox is None:
            return
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(("shutdown", done))
        await done
        if self._owner is not None:
            await self._owner

    async def _run(self, inbox: asyncio.Queue) -> None:
        engine: OCREngine | None = None
        active = 0

        def close_engine() -> None:
            nonlocal engine
            if engine is not None:
                try:
                    engine.close()
                except Exception as e:
                    logger.warning(f"OCR engine close failed: {e}")
                engine = None

        getter: asyncio.Future[Any] | None = None
        try:
            while True:
                timeout = self._idle_timeout if engine is not None and active == 0 else None
                if getter is None:
                    getter = asyncio.ensure_future(inbox.get())
                done, _ = await asyncio.wait({getter}, timeout=timeout)
                if not done:
                    close_engine()
                    continue
                kind, future = getter.result()
                getter = None

                if kind == "release":
                    active = max(0, active - 1)
                    continue

                if kind == "shutdown":
                    close_engine()
                    if future is not None and not future.done():
                        future.set_result(None)
                    return

                waiters = [future]
                if engine is None:
                    self.initializations += 1
                    try:
                        engine = await asyncio.to_thread(self._factory)
                    except Exception as e:
                        logger.warning(f"OCR engine initialization failed: {e}")
                        waiters.extend(self._drain_acquires(inbox))
                        for waiter in waiters:
                            if waiter is not None and not waiter.done():
                                waiter.set_exception(e)
                        continue
                    waiters.extend(self._drain_acquires(inbox))

                for waiter in waiters:
                    if waiter is not None and not waiter.done():
                        waiter.set_result(engine)
                        active += 1
        finally:
            if getter is not None:
                getter.cancel()

    @staticmethod
    def _drain_acquires(inbox: asyncio.Queue) -> list[asyncio.Future[Any] | None]:
        """Collect acquire requests queued during initialization.

        Anything else in the queue is put back in order.
        """
        acquires: list[asyncio.Future[Any] | None] = []
        others: list[tuple[str, asyncio.Future[Any] | None]] = []
        while not inbox.empty():
            kind, future = inbox.get_nowait()
            if kind == "acquire":
                acquires.append(future)
            else:
                others.append((kind, future))
        for message in others:
            inbox.put_nowait(message)
        return acquires


def tesseract_version() -> str | None:
    """Installed Tesseract version, or None when the binary is missing."""
    try:
        return str(pytesseract.get_tesseract_version())
    except (pytesseract.TesseractNotFoundError, OSError) as e:
        logger.debug(f"Tesseract version check failed: {e}")
        return None
