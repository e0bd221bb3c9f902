"""Extract line diffs from file-edit entries in a JSONL transcript."""

import difflib
import json
import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Tuple, BinaryIO

from ..core import CacheEntry, EditRecord
from ..core.exceptions import TranscriptError

logger = logging.getLogger(__name__)


def line_delta(old: str, new: str) -> Tuple[int, int]:
    """
    Count lines added and removed going from ``old`` to ``new``.

    Replaced lines count on both sides, as in a unified diff.
    """
    matcher = difflib.SequenceMatcher(
        None, old.splitlines(), new.splitlines(), autojunk=False
    )
    added = removed = 0
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in ("replace", "delete"):
            removed += i2 - i1
        if tag in ("replace", "insert"):
            added += j2 - j1
    return added, removed


class TranscriptDiffExtractor:
    """
    Scan a transcript forward from a byte offset and total its edits.

    Only newline-terminated lines are consumed, so an entry the host is
    still writing is picked up on the next scan. Edits under the
    excluded prefix (plan-mode files) contribute nothing.
    """

    def __init__(self, excluded_prefix: Optional[str] = None, skip_missing_writes: bool = True):
        self.excluded_prefix = (
            os.path.normpath(os.path.expanduser(excluded_prefix)) if excluded_prefix else None
        )
        self.skip_missing_writes = skip_missing_writes

    def is_excluded(self, file_path: str) -> bool:
        """Prefix match on normalized paths, bounded by a path separator."""
        if not self.excluded_prefix:
            return False
        normalized = os.path.normpath(os.path.expanduser(file_path))
        return (
            normalized == self.excluded_prefix
            or normalized.startswith(self.excluded_prefix.rstrip(os.sep) + os.sep)
        )

    def iter_records(self, transcript_path: str, offset: int = 0) -> Iterator[EditRecord]:
        """
        Lazily yield edit records appended after ``offset``.

        The scan is bounded by the file size at call time. Excluded
        records are yielded too; callers decide what to count.

        Raises:
            TranscriptError: If the transcript cannot be opened
        """
        size = self._size(transcript_path)
        for records, _ in self._records_by_line(transcript_path, min(offset, size), size):
            yield from records

    def scan(self, transcript_path: str, entry: Optional[CacheEntry] = None) -> CacheEntry:
        """
        Advance ``entry`` over everything appended since its offset.

        A cached offset past the end of the file means the transcript was
        truncated or rotated: the entry is discarded and the whole file
        is rescanned.

        Returns:
            New CacheEntry positioned after the last complete line

        Raises:
            TranscriptError: If the transcript cannot be read
        """
        entry = entry or CacheEntry()
        size = self._size(transcript_path)

        if entry.offset > size:
            logger.info(
                f"Transcript {transcript_path} shrank below cached offset "
                f"({size} < {entry.offset}), rescanning from the start"
            )
            entry = CacheEntry()

        added = removed = 0
        offset = entry.offset
        skipped = 0

        for records, end in self._records_by_line(transcript_path, entry.offset, size):
            offset = end
            for record in records:
                if self.is_excluded(record.file_path):
                    skipped += 1
                    continue
                added += record.added
                removed += record.removed

        if skipped:
            logger.debug(f"Skipped {skipped} edits under {self.excluded_prefix}")
        logger.debug(
            f"Scanned {transcript_path} bytes {entry.offset}-{offset}: +{added} -{removed}"
        )
        return entry.advance(offset, added, removed)

    def _size(self, transcript_path: str) -> int:
        try:
            return os.path.getsize(transcript_path)
        except OSError as e:
            raise TranscriptError(transcript_path, reason=str(e))

    def _open(self, transcript_path: str) -> BinaryIO:
        try:
            return open(transcript_path, "rb")
        except OSError as e:
            raise TranscriptError(transcript_path, reason=str(e))

    def _records_by_line(
        self, transcript_path: str, start: int, end: int
    ) -> Iterator[Tuple[List[EditRecord], int]]:
        """Yield (records, offset after line) for each complete line in [start, end)."""
        with self._open(transcript_path) as handle:
            for line, position in self._complete_lines(handle, start, end):
                yield self._parse_line(line, transcript_path, position), position

    def _complete_lines(self, handle: BinaryIO, start: int, end: int) -> Iterator[Tuple[bytes, int]]:
        """Yield (line, offset after line) for complete lines in [start, end)."""
        handle.seek(start)
        position = start
        while position < end:
            line = handle.readline(end - position)
            if not line or not line.endswith(b"\n"):
                break
            position += len(line)
            yield line, position

    def _parse_line(self, line: bytes, transcript_path: str, offset: int) -> List[EditRecord]:
        """Parse one transcript line; malformed lines yield no records."""
        if not line.strip():
            return []
        try:
            data = json.loads(line)
        except ValueError as e:
            # Also covers UnicodeDecodeError
            logger.debug(str(TranscriptError(transcript_path, offset, f"invalid JSON: {e}")))
            return []

        if not isinstance(data, dict):
            return []
        result = data.get("toolUseResult")
        if not isinstance(result, dict):
            return []

        try:
            record = self._edit_record(result)
        except (TypeError, AttributeError, KeyError) as e:
            logger.debug(str(TranscriptError(transcript_path, offset, f"malformed edit: {e}")))
            return []
        return [record] if record else []

    def _edit_record(self, result: Dict[str, Any]) -> Optional[EditRecord]:
        file_path = result.get("filePath")
        if not isinstance(file_path, str) or not file_path:
            return None

        # MultiEdit
        edits = result.get("edits")
        if isinstance(edits, list):
            added = removed = 0
            for edit in edits:
                a, r = line_delta(edit["old_string"], edit["new_string"])
                added += a
                removed += r
            return EditRecord(file_path, added, removed)

        # Edit
        old_string = result.get("oldString")
        new_string = result.get("newString")
        if isinstance(old_string, str) and isinstance(new_string, str):
            added, removed = line_delta(old_string, new_string)
            return EditRecord(file_path, added, removed)

        # Write
        content = result.get("content")
        if isinstance(content, str):
            if self.skip_missing_writes and not os.path.exists(file_path):
                logger.debug(f"Write target {file_path} no longer exists, not counted")
                return None
            added, removed = line_delta(result.get("originalFile") or "", content)
            return EditRecord(file_path, added, removed)

        patch = result.get("structuredPatch")
        if isinstance(patch, list):
            added = removed = 0
            for hunk in patch:
                for patch_line in hunk.get("lines", []):
                    if patch_line.startswith("+"):
                        added += 1
                    elif patch_line.startswith("-"):
                        removed += 1
            return EditRecord(file_path, added, removed)

        return None
