"""Incremental per-session diff totals."""

import logging
from typing import Optional

from ..core import DiffResult, Resolved
from ..core.exceptions import TranscriptError
from ..state import DiffCache
from .transcript_diff import TranscriptDiffExtractor

logger = logging.getLogger(__name__)


class SessionDiffCalculator:
    """Combine the diff cache and the transcript extractor."""

    def __init__(self, cache: DiffCache, extractor: TranscriptDiffExtractor):
        self.cache = cache
        self.extractor = extractor

    def compute(self, session_id: Optional[str], transcript_path: Optional[str]) -> Resolved[DiffResult]:
        """
        Get cumulative +/- line counts for a session.

        Without a session id the whole transcript is scanned and nothing
        is cached. If the transcript cannot be read, the last cached
        totals (or zero) are returned as a fallback.
        """
        cached = self.cache.lookup(session_id) if session_id else None

        if not transcript_path:
            fallback = cached.diff if cached else DiffResult()
            return Resolved.fallback(fallback, "no transcript path in session context")

        try:
            entry = self.extractor.scan(transcript_path, cached)
        except TranscriptError as e:
            logger.warning(str(e))
            fallback = cached.diff if cached else DiffResult()
            return Resolved.fallback(fallback, str(e))

        if session_id:
            self.cache.store(session_id, entry, previous=cached)
        return Resolved.ok(entry.diff)
