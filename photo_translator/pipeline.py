"""Recognition and translation passes driven through an explicit context."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List

from .grouping import group_text_blocks
from .ocr import OCREngine, VisionOCREngine, recognize_image
from .progress import ProgressFeed
from .session_store import OverlaySession, SessionStore
from .translate import SOURCE_LANGUAGE, Translator, build_translator, translate_blocks
from .types import ProcessedImage, ProgressEvent, TranslationRecord

logger = logging.getLogger(__name__)


def _log_progress(event: ProgressEvent) -> None:
    logger.debug("OCR %s %.0f%% %s", event["stage"], event["progress"] * 100, event["message"])


@dataclass(frozen=True)
class TranslationPass:
    """Outcome of one translation pass.

    ``committed`` is false when a newer pass started before this one finished;
    its records were then discarded and the session shows the newer ones.
    """

    records: List[TranslationRecord]
    target_language: str
    committed: bool


class PipelineContext:
    """Owns the collaborators shared by every request.

    The OCR engine is built on first use by ``ocr_factory`` and reused for
    every later image.
    """

    def __init__(
        self,
        *,
        ocr_factory: Callable[[], OCREngine] = VisionOCREngine,
        translator: Translator | None = None,
        store: SessionStore | None = None,
    ) -> None:
        self._ocr_factory = ocr_factory
        self._ocr_engine: OCREngine | None = None
        self._ocr_lock = threading.Lock()
        self.translator: Translator = translator or build_translator()
        self.store = store or SessionStore()
        self.progress = ProgressFeed()
        self.progress.subscribe(_log_progress)

    @property
    def ocr_engine(self) -> OCREngine:
        with self._ocr_lock:
            if self._ocr_engine is None:
                self.progress.publish("loading", 0.0, "Loading OCR engine...")
                self._ocr_engine = self._ocr_factory()
            return self._ocr_engine

    def recognize(self, image_bytes: bytes) -> ProcessedImage:
        return recognize_image(self.ocr_engine, image_bytes, progress=self.progress)

    def open_session(self, image_bytes: bytes) -> OverlaySession:
        """Recognize ``image_bytes`` and register a session for it."""
        processed = self.recognize(image_bytes)
        session = self.store.create(processed)
        logger.info(
            "Session %s created with %s words",
            session.session_id,
            len(processed["extracted_texts"]),
        )
        return session

    async def run_translation_pass(
        self,
        session: OverlaySession,
        target_language: str,
    ) -> TranslationPass:
        """Group, translate and commit; stale passes leave the session untouched."""
        generation = session.begin_pass()
        processed = session.processed
        blocks = group_text_blocks(processed["extracted_texts"])
        records = await translate_blocks(
            blocks,
            SOURCE_LANGUAGE,
            target_language,
            translator=self.translator,
            from_language=processed["detected_language"],
        )
        committed = session.commit_records(generation, records, target_language)
        return TranslationPass(records=records, target_language=target_language, committed=committed)


__all__ = ["PipelineContext", "TranslationPass"]
