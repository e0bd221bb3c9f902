"""Tests for transcript diff extraction."""

import json

import pytest

from statusline.core import CacheEntry
from statusline.core.exceptions import TranscriptError
from statusline.processors import TranscriptDiffExtractor, line_delta

from conftest import edit_entry, write_entry


class TestLineDelta:
    def test_insertions(self):
        assert line_delta("line2\n", "line2\nline3\nline4\nline5\n") == (3, 0)

    def test_deletions(self):
        assert line_delta("line1\nline2\nline3\n", "line1\n") == (0, 2)

    def test_replacement_counts_both_sides(self):
        assert line_delta("old1\nold2\nold3\n", "new1\nnew2\nnew3\n") == (3, 3)

    def test_empty_to_content(self):
        assert line_delta("", "a\nb\nc\n") == (3, 0)

    def test_identical(self):
        assert line_delta("same\n", "same\n") == (0, 0)


class TestTranscriptDiffExtractor:
    @pytest.fixture
    def extractor(self, plans_dir):
        return TranscriptDiffExtractor(excluded_prefix=str(plans_dir))

    def test_write_new_file(self, extractor, transcript, workdir):
        target = workdir / "new.txt"
        content = "line1\nline2\nline3\nline4\nline5\n"
        target.write_text(content)
        transcript.append(write_entry(target, "", content))

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (5, 0)

    def test_write_then_delete_is_zero(self, extractor, transcript, workdir):
        target = workdir / "deleted.txt"
        transcript.append(write_entry(target, "", "line1\nline2\nline3\n"))

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (0, 0)

    def test_write_and_edit_combined(self, extractor, transcript, workdir):
        target = workdir / "combined.txt"
        target.write_text("a\nb\nc\nd\ne\n")
        transcript.append(
            write_entry(target, "", "a\nb\nc\n"),
            edit_entry(target, "c\n", "c\nd\ne\n"),
        )

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (5, 0)

    def test_edit_existing_file(self, extractor, transcript, workdir):
        target = workdir / "existing.txt"
        transcript.append(
            edit_entry(
                target,
                "pre-existing content\n",
                "pre-existing content\nadded line1\nadded line2\n",
            )
        )

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (2, 0)

    def test_multiedit(self, extractor, transcript, workdir):
        transcript.append({
            "toolUseResult": {
                "filePath": str(workdir / "multi.py"),
                "edits": [
                    {"old_string": "a\n", "new_string": "a\nb\n"},
                    {"old_string": "x\ny\n", "new_string": "z\n"},
                ],
            }
        })

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (2, 2)

    def test_structured_patch_fallback(self, extractor, transcript, workdir):
        transcript.append({
            "toolUseResult": {
                "filePath": str(workdir / "patched.py"),
                "structuredPatch": [
                    {"oldStart": 1, "lines": [" keep", "-gone", "+new", "+newer"]},
                ],
            }
        })

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (2, 1)

    def test_excluded_path_edits_never_count(self, extractor, transcript, plans_dir):
        plan = plans_dir / "plan.md"
        plan.write_text("step 1\nstep 2\n")
        transcript.append(
            write_entry(plan, "", "step 1\nstep 2\n"),
            edit_entry(plan, "step 2\n", "step 2\nstep 3\n"),
            edit_entry(plans_dir / "nested" / "other.md", "a\n", "b\nc\n"),
        )

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (0, 0)
        assert entry.offset == transcript.path.stat().st_size

    def test_exclusion_respects_path_boundary(self, extractor, plans_dir):
        assert extractor.is_excluded(str(plans_dir / "plan.md"))
        assert extractor.is_excluded(str(plans_dir) + "/sub/../plan.md")
        assert not extractor.is_excluded(str(plans_dir) + "-archive/plan.md")
        assert not extractor.is_excluded("/tmp/project/plans/plan.md")

    def test_malformed_records_are_skipped(self, extractor, transcript, workdir):
        target = workdir / "ok.txt"
        transcript.append(
            "not json at all",
            "[1, 2, 3]",
            {"toolUseResult": "Error: file not found"},
            {"toolUseResult": {"filePath": str(target), "oldString": 5, "newString": None}},
            {"toolUseResult": {"filePath": str(target), "edits": [{"old_string": "x"}]}},
            {"type": "user", "message": {"content": "hello"}},
            edit_entry(target, "a\n", "a\nb\n"),
        )

        entry = extractor.scan(str(transcript))
        assert (entry.added, entry.removed) == (1, 0)

    def test_partial_trailing_line_is_left_for_next_scan(self, extractor, transcript, workdir):
        target = workdir / "partial.txt"
        transcript.append(edit_entry(target, "a\n", "a\nb\n"))
        complete = transcript.path.stat().st_size
        partial = json.dumps(edit_entry(target, "c\n", "c\nd\ne\n"))
        transcript.append_raw(partial[:20])

        first = extractor.scan(str(transcript))
        assert first.offset == complete
        assert (first.added, first.removed) == (1, 0)

        transcript.append_raw(partial[20:] + "\n")
        second = extractor.scan(str(transcript), first)
        assert second.offset == transcript.path.stat().st_size
        assert (second.added, second.removed) == (3, 0)

    def test_rescan_without_new_content_is_idempotent(self, extractor, transcript, workdir):
        transcript.append(edit_entry(workdir / "f.txt", "a\n", "a\nb\nc\n"))

        first = extractor.scan(str(transcript))
        second = extractor.scan(str(transcript), first)
        assert second.offset == first.offset
        assert (second.added, second.removed) == (first.added, first.removed)

    def test_incremental_scan_only_reads_new_entries(self, extractor, transcript, workdir):
        target = workdir / "f.txt"
        transcript.append(edit_entry(target, "a\n", "a\nb\n"))
        first = extractor.scan(str(transcript))

        transcript.append(edit_entry(target, "b\n", "c\n"))
        second = extractor.scan(str(transcript), first)
        assert (second.added, second.removed) == (2, 1)
        assert second.offset > first.offset

    def test_offset_beyond_file_rescans_from_start(self, extractor, transcript, workdir):
        transcript.append(edit_entry(workdir / "f.txt", "a\n", "a\nb\n"))
        stale = CacheEntry(offset=10_000, added=40, removed=7)

        entry = extractor.scan(str(transcript), stale)
        assert (entry.added, entry.removed) == (1, 0)
        assert entry.offset == transcript.path.stat().st_size

    def test_iter_records_is_lazy_and_bounded(self, extractor, transcript, workdir, plans_dir):
        transcript.append(
            edit_entry(workdir / "a.txt", "a\n", "b\n"),
            edit_entry(plans_dir / "plan.md", "", "x\n"),
        )
        records = extractor.iter_records(str(transcript))
        first = next(records)
        assert first.file_path == str(workdir / "a.txt")
        assert (first.added, first.removed) == (1, 1)
        assert [r.file_path for r in records] == [str(plans_dir / "plan.md")]

    def test_scan_totals_match_counted_records(self, extractor, transcript, workdir, plans_dir):
        transcript.append(
            edit_entry(workdir / "a.txt", "a\n", "b\nc\n"),
            "not json",
            edit_entry(plans_dir / "plan.md", "", "x\n"),
            edit_entry(workdir / "b.txt", "1\n2\n3\n", "1\n"),
        )
        counted = [
            r for r in extractor.iter_records(str(transcript))
            if not extractor.is_excluded(r.file_path)
        ]
        entry = extractor.scan(str(transcript))

        assert entry.added == sum(r.added for r in counted)
        assert entry.removed == sum(r.removed for r in counted)
        assert entry.offset == transcript.path.stat().st_size

    def test_missing_transcript_raises(self, extractor, tmp_path):
        with pytest.raises(TranscriptError):
            extractor.scan(str(tmp_path / "missing.jsonl"))
