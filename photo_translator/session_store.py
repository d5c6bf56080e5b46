"""In-memory per-session state for recognized images and their translations."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .style import DEFAULT_STYLE, OVERLAY_STYLES
from .types import ProcessedImage, TranslationRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlaySnapshot:
    """Consistent view of what a render should draw."""

    records: Tuple[TranslationRecord, ...]
    style: str
    visible: bool
    generation: int
    target_language: str | None


class OverlaySession:
    """State for one uploaded image.

    The record list is swapped as a whole under the lock and never mutated in
    place. Each translation pass takes a generation number from
    ``begin_pass``; ``commit_records`` ignores results from any pass that is
    no longer the newest.
    """

    def __init__(self, session_id: str, processed: ProcessedImage) -> None:
        self.session_id = session_id
        self.processed = processed
        self.created_at = time.time()
        self._lock = threading.Lock()
        self._records: Tuple[TranslationRecord, ...] = ()
        self._style = DEFAULT_STYLE
        self._visible = True
        self._generation = 0
        self._committed_generation = 0
        self._target_language: str | None = None

    def begin_pass(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def commit_records(
        self,
        generation: int,
        records: Sequence[TranslationRecord],
        target_language: str,
    ) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.info(
                    "Discarding stale translation pass %s for session %s (current %s)",
                    generation,
                    self.session_id,
                    self._generation,
                )
                return False
            self._records = tuple(records)
            self._committed_generation = generation
            self._target_language = target_language
            return True

    def set_overlay(self, *, style: str | None = None, visible: bool | None = None) -> None:
        if style is not None and style not in OVERLAY_STYLES:
            raise ValueError(f"Unknown overlay style '{style}'")
        with self._lock:
            if style is not None:
                self._style = style
            if visible is not None:
                self._visible = visible

    def snapshot(self) -> OverlaySnapshot:
        with self._lock:
            return OverlaySnapshot(
                records=self._records,
                style=self._style,
                visible=self._visible,
                generation=self._committed_generation,
                target_language=self._target_language,
            )


class SessionStore:
    def __init__(self, max_sessions: int = 64) -> None:
        self._max_sessions = max_sessions
        self._lock = threading.Lock()
        self._data: Dict[str, OverlaySession] = {}

    def create(self, processed: ProcessedImage) -> OverlaySession:
        session = OverlaySession(uuid.uuid4().hex, processed)
        with self._lock:
            self._data[session.session_id] = session
            if len(self._data) > self._max_sessions:
                oldest = sorted(self._data.values(), key=lambda s: s.created_at)
                for stale in oldest[: len(self._data) - self._max_sessions]:
                    del self._data[stale.session_id]
                    logger.info("Evicted session %s", stale.session_id)
        return session

    def get(self, session_id: str) -> OverlaySession | None:
        with self._lock:
            return self._data.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._data.pop(session_id, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._data)


__all__ = ["OverlaySession", "OverlaySnapshot", "SessionStore"]
