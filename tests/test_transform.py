"""Tests for the streaming edit engine (apply_edit)."""

import os
from pathlib import Path

import pytest

from lineedit_mcp.engine import (
    EditIOError,
    EditKind,
    EditSpec,
    EncodingUpgradeWarning,
    FileMetadata,
    LineOutOfBoundsError,
    LineRange,
    MatchCriterion,
    NoMatchWarning,
    RangeClampedWarning,
    TargetNotFoundError,
    apply_edit,
)
from lineedit_mcp.engine.transform import LineSink


def insert(content: list[str], at: int | None = None) -> EditSpec:
    return EditSpec(
        kind=EditKind.INSERT,
        target_range=LineRange.parse(at) if at is not None else None,
        content=content,
    )


def replace(values, content: list[str] | None) -> EditSpec:
    target = LineRange.parse(values) if values is not None else None
    return EditSpec(kind=EditKind.REPLACE, target_range=target, content=content)


def delete(values=None, literal: str | None = None, pattern: str | None = None) -> EditSpec:
    match = MatchCriterion(literal=literal, pattern=pattern) if literal or pattern else None
    target = LineRange.parse(values) if values is not None else None
    return EditSpec(kind=EditKind.DELETE, target_range=target, match=match)


def substitute(replacement: str, literal: str | None = None, pattern: str | None = None, values=None):
    target = LineRange.parse(values) if values is not None else None
    return EditSpec(
        kind=EditKind.SUBSTITUTE,
        target_range=target,
        match=MatchCriterion(literal=literal, pattern=pattern, replacement=replacement),
    )


def leftover_temp_files(directory: Path) -> list[Path]:
    return [p for p in directory.iterdir() if p.name.endswith(".tmp")]


# =============================================================================
# Concrete scenarios
# =============================================================================


class TestScenarios:
    def test_delete_middle_line_keeps_trailing_newline(self, make_file, config) -> None:
        path = make_file("a.txt", "a\nb\nc\n")

        result = apply_edit(path, None, delete([2]), config=config, display_path="a.txt")

        assert path.read_bytes() == b"a\nc\n"
        assert result.lines_removed == 1
        assert result.net == -1
        assert result.committed
        assert result.report is not None
        assert result.report.summary == "Removed 1 line(s) from a.txt (net: -1)"

    def test_insert_before_line_without_trailing_newline(self, make_file, config) -> None:
        path = make_file("x.txt", "x\ny")

        result = apply_edit(path, None, insert(["z"], at=2), config=config, display_path="x.txt")

        assert path.read_bytes() == b"x\nz\ny"
        assert result.net == 1
        assert result.report.summary == "Added 1 line(s) to x.txt at line 2 (net: +1)"

    def test_append_to_empty_file(self, make_file, config) -> None:
        path = make_file("empty.txt", "")

        result = apply_edit(path, None, insert(["p", "q"]), config=config, display_path="empty.txt")

        assert path.read_bytes() == b"p\nq"
        assert result.lines_inserted == 2
        assert result.report.summary == "Added 2 line(s) to empty.txt at end (net: +2)"


# =============================================================================
# Newline and encoding preservation
# =============================================================================


class TestNewlinePreservation:
    @pytest.mark.parametrize(
        "spec",
        [
            insert(["new"], at=1),
            insert(["new"]),
            replace([2], ["B"]),
            replace([3], None),
            delete([1]),
            substitute("Q", literal="b"),
            replace(None, ["only"]),
        ],
        ids=["insert-first", "append", "replace", "delete-last", "delete-first", "substitute", "whole"],
    )
    @pytest.mark.parametrize("trailing", [True, False])
    def test_trailing_newline_state_is_kept(self, make_file, config, spec, trailing: bool) -> None:
        path = make_file("f.txt", "a\nb\nc" + ("\n" if trailing else ""))

        apply_edit(path, None, spec, config=config)

        data = path.read_bytes()
        assert data.endswith(b"\n") is trailing

    def test_crlf_is_used_for_inserted_lines(self, make_file, config) -> None:
        path = make_file("w.txt", "a\r\nb\r\n")

        apply_edit(path, None, insert(["x", "y"], at=2), config=config)

        assert path.read_bytes() == b"a\r\nx\r\ny\r\nb\r\n"

    def test_round_trip_same_content_is_byte_identical(self, make_file, config) -> None:
        original = "one\r\ntwo\r\nthree"
        path = make_file("r.txt", original)

        apply_edit(path, None, replace([2, 3], ["two", "three"]), config=config)

        assert path.read_bytes() == original.encode()

    def test_utf16_bom_preserved(self, make_file, config) -> None:
        path = make_file("u.txt", "a\r\nb\r\n", encoding="utf-16-le", bom=True)

        apply_edit(path, None, replace([2], ["β"]), config=config)

        assert path.read_bytes() == "\ufeffa\r\nβ\r\n".encode("utf-16-le")

    def test_ascii_upgraded_to_utf8(self, make_file, config) -> None:
        path = make_file("a.txt", "plain\n")

        result = apply_edit(path, None, insert(["café"]), config=config)

        assert path.read_bytes() == "plain\ncafé\n".encode()
        assert any(isinstance(w, EncodingUpgradeWarning) for w in result.warnings)

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            (substitute("wörld", literal="world"), "hello wörld\n"),
            (substitute("é", pattern=r"w\w+"), "hello é\n"),
        ],
        ids=["literal", "regex"],
    )
    def test_ascii_upgraded_for_substitution(self, make_file, config, spec, expected) -> None:
        path = make_file("a.txt", "hello world\n")

        result = apply_edit(path, None, spec, config=config)

        assert result.committed
        assert path.read_bytes() == expected.encode("utf-8")
        assert any(isinstance(w, EncodingUpgradeWarning) for w in result.warnings)

    def test_explicit_ascii_substitution_is_not_upgraded(self, make_file, config) -> None:
        path = make_file("a.txt", "hello world\n")
        metadata = FileMetadata(encoding="ascii", has_trailing_newline=True)

        with pytest.raises(EditIOError, match="transcode"):
            apply_edit(
                path,
                metadata,
                substitute("wörld", literal="world"),
                config=config,
                explicit_encoding=True,
            )

        assert path.read_bytes() == b"hello world\n"


# =============================================================================
# Ranges
# =============================================================================


class TestRanges:
    def test_delete_last_n_lines(self, make_file, config) -> None:
        path = make_file("t.txt", "1\n2\n3\n4\n5\n")

        result = apply_edit(path, None, delete([-2]), config=config)

        assert path.read_bytes() == b"1\n2\n3\n"
        assert result.lines_removed == 2

    def test_delete_negative_range(self, make_file, config) -> None:
        path = make_file("t.txt", "1\n2\n3\n4\n5")

        apply_edit(path, None, delete([-4, -3]), config=config)

        assert path.read_bytes() == b"1\n4\n5"

    def test_replace_open_range(self, make_file, config) -> None:
        path = make_file("t.txt", "1\n2\n3\n4\n")

        apply_edit(path, None, replace([3, 0], ["end"]), config=config)

        assert path.read_bytes() == b"1\n2\nend\n"

    def test_end_past_eof_is_clamped_with_warning(self, make_file, config) -> None:
        path = make_file("t.txt", "1\n2\n3\n")

        result = apply_edit(path, None, delete([2, 10]), config=config)

        assert path.read_bytes() == b"1\n"
        assert result.committed
        assert any(isinstance(w, RangeClampedWarning) for w in result.warnings)

    def test_start_past_eof_is_fatal_and_leaves_file(self, make_file, config, tmp_path) -> None:
        path = make_file("t.txt", "1\n2\n")

        with pytest.raises(LineOutOfBoundsError):
            apply_edit(path, None, replace([5], ["x"]), config=config)

        assert path.read_bytes() == b"1\n2\n"
        assert leftover_temp_files(tmp_path) == []

    def test_insert_beyond_eof_appends_with_warning(self, make_file, config) -> None:
        path = make_file("t.txt", "1\n")

        result = apply_edit(path, None, insert(["x"], at=9), config=config)

        assert path.read_bytes() == b"1\nx\n"
        assert any("Appending at end" in str(w) for w in result.warnings)

    def test_insert_at_line_after_last_appends_silently(self, make_file, config) -> None:
        path = make_file("t.txt", "1\n2")

        result = apply_edit(path, None, insert(["3"], at=3), config=config)

        assert path.read_bytes() == b"1\n2\n3"
        assert result.warnings == []


# =============================================================================
# Match-based edits
# =============================================================================


class TestMatching:
    def test_delete_by_literal(self, make_file, config) -> None:
        path = make_file("m.txt", "keep\ndrop me\nkeep too\ndrop\n")

        result = apply_edit(path, None, delete(literal="drop"), config=config)

        assert path.read_bytes() == b"keep\nkeep too\n"
        assert result.lines_removed == 2

    def test_range_and_match_combine_with_and(self, make_file, config) -> None:
        path = make_file("m.txt", "x1\nx2\nx3\nx4\n")

        apply_edit(path, None, delete([2, 3], pattern=r"x[34]"), config=config)

        assert path.read_bytes() == b"x1\nx2\nx4\n"

    def test_no_match_leaves_file_untouched(self, make_file, config, tmp_path) -> None:
        path = make_file("m.txt", "a\nb\n")
        mtime = os.stat(path).st_mtime_ns

        result = apply_edit(path, None, delete(literal="zzz"), config=config)

        assert not result.committed
        assert os.stat(path).st_mtime_ns == mtime
        assert [str(w) for w in result.warnings] == ["No lines matched. File not modified."]
        assert isinstance(result.warnings[0], NoMatchWarning)
        assert leftover_temp_files(tmp_path) == []

    def test_delete_from_empty_file(self, make_file, config) -> None:
        path = make_file("e.txt", "")

        result = apply_edit(path, None, delete([1]), config=config)

        assert not result.committed
        assert str(result.warnings[0]) == "File is empty. Nothing to remove."

    def test_substitute_regex(self, make_file, config) -> None:
        path = make_file("s.txt", "version=1\nname=x\nversion=22\n")

        result = apply_edit(
            path, None, substitute(r"\1=3", pattern=r"(version)=\d+"), config=config, display_path="s"
        )

        assert path.read_bytes() == b"version=3\nname=x\nversion=3\n"
        assert result.replacements == 2
        assert result.report.summary == "Updated s: 2 replacement(s) made"

    def test_substitute_within_range(self, make_file, config) -> None:
        path = make_file("s.txt", "a\na\na\n")

        apply_edit(path, None, substitute("b", literal="a", values=[2]), config=config)

        assert path.read_bytes() == b"a\nb\na\n"

    def test_substitute_no_match(self, make_file, config) -> None:
        path = make_file("s.txt", "a\n")

        result = apply_edit(path, None, substitute("b", literal="q"), config=config)

        assert not result.committed
        assert path.read_bytes() == b"a\n"


# =============================================================================
# Read-only edits
# =============================================================================


class TestReadOnly:
    def test_test_stops_at_first_match(self, make_file, config) -> None:
        path = make_file("t.txt", "a\nneedle\nb\nneedle\n")
        spec = EditSpec(kind=EditKind.TEST, match=MatchCriterion(literal="needle"))

        result = apply_edit(path, None, spec, config=config)

        assert result.matched
        assert not result.committed
        assert result.report.lines[-1] == "  2: needle"

    def test_show_range(self, make_file, config) -> None:
        path = make_file("t.txt", "\n".join(f"l{n}" for n in range(1, 11)))
        spec = EditSpec(kind=EditKind.SHOW, target_range=LineRange.parse([4, 6]))

        result = apply_edit(path, None, spec, config=config)

        assert result.report.lines == ["  4: l4", "  5: l5", "  6: l6"]
        assert result.report.summary is None

    def test_show_matches_with_context(self, make_file, config) -> None:
        path = make_file("t.txt", "\n".join(f"l{n}" for n in range(1, 11)))
        spec = EditSpec(kind=EditKind.SHOW, match=MatchCriterion(pattern=r"^l5$"))

        result = apply_edit(path, None, spec, config=config)

        assert result.report.lines == ["  3- l3", "  4- l4", "  5: l5", "  6- l6", "  7- l7"]

    def test_missing_file(self, tmp_path, config) -> None:
        spec = EditSpec(kind=EditKind.SHOW)
        with pytest.raises(TargetNotFoundError):
            apply_edit(tmp_path / "nope.txt", None, spec, config=config)


# =============================================================================
# Reports
# =============================================================================


class TestReports:
    def test_insert_report_uses_output_numbering(self, make_file, config) -> None:
        path = make_file("r.txt", "a\nb\nc\nd\n")

        result = apply_edit(path, None, insert(["X", "Y"], at=3), config=config, display_path="r.txt")

        assert result.report.render().splitlines() == [
            "==> r.txt <==",
            "  1- a",
            "  2- b",
            "  3: X",
            "  4: Y",
            "  5- c",
            "  6- d",
            "Added 2 line(s) to r.txt at line 3 (net: +2)",
        ]

    def test_delete_report_shows_removed_lines_with_input_numbers(self, make_file, config) -> None:
        path = make_file("r.txt", "a\nb\nc\nd\ne\n")

        result = apply_edit(path, None, delete([2, 3]), config=config)

        assert result.report.lines == ["  1- a", "  2: b", "  3: c", "  4- d", "  5- e"]

    def test_range_replace_without_content_uses_input_numbering(self, make_file, config) -> None:
        path = make_file("r.txt", "a\nb\nc\nd\n")

        result = apply_edit(path, None, replace([2], None), config=config)

        assert path.read_bytes() == b"a\nc\nd\n"
        assert result.report.lines == ["  1- a", "  2: b", "  3- c", "  4- d"]

    def test_range_replace_with_content_uses_output_numbering(self, make_file, config) -> None:
        path = make_file("r.txt", "a\nb\nc\nd\n")

        result = apply_edit(path, None, replace([2, 3], ["X"]), config=config)

        assert result.report.lines == ["  1- a", "  2: X", "  3- d"]

    def test_insert_six_lines_is_abbreviated(self, make_file, config) -> None:
        path = make_file("r.txt", "")

        result = apply_edit(path, None, insert([f"n{i}" for i in range(1, 7)]), config=config)

        assert result.report.lines == [
            "  1: n1",
            "  2: n2",
            "   : ... (2 lines omitted) ...",
            "  5: n5",
            "  6: n6",
        ]

    def test_insert_five_lines_shown_in_full(self, make_file, config) -> None:
        path = make_file("r.txt", "")

        result = apply_edit(path, None, insert([f"n{i}" for i in range(1, 6)]), config=config)

        assert len(result.report.lines) == 5

    def test_replace_summary(self, make_file, config) -> None:
        path = make_file("r.txt", "a\nb\nc\n")

        result = apply_edit(path, None, replace([1, 2], ["x"]), config=config, display_path="r")

        assert result.report.summary == "Updated r: Replaced 2 line(s) with 1 line(s) (net: -1)"


# =============================================================================
# Creation, dry runs and backups
# =============================================================================


class TestLifecycle:
    def test_creates_missing_file_with_trailing_newline(self, tmp_path, config) -> None:
        path = tmp_path / "new.txt"

        result = apply_edit(path, None, replace(None, ["a", "b"]), config=config, display_path="new.txt")

        assert path.read_bytes() == b"a\nb\n"
        assert result.created
        assert result.report.summary == "Created new.txt: 2 line(s) (net: +2)"

    def test_range_replace_requires_existing_file(self, tmp_path, config) -> None:
        with pytest.raises(TargetNotFoundError):
            apply_edit(tmp_path / "new.txt", None, replace([1], ["a"]), config=config)

    def test_dry_run_leaves_file_and_reports(self, make_file, config, tmp_path) -> None:
        path = make_file("d.txt", "a\nb\n")

        result = apply_edit(path, None, delete([1]), config=config, dry_run=True, display_path="d")

        assert path.read_bytes() == b"a\nb\n"
        assert not result.committed
        assert result.lines_removed == 1
        assert result.report.summary == "What if: Would remove 1 line(s) from d (net: -1)"
        assert leftover_temp_files(tmp_path) == []

    def test_backup(self, make_file, config, tmp_path) -> None:
        path = make_file("b.txt", "a\n")

        result = apply_edit(path, None, insert(["b"]), config=config, backup=True)

        assert result.backup_path is not None
        assert result.backup_path.read_bytes() == b"a\n"
        assert result.backup_path.name.startswith("b.txt.")
        assert result.backup_path.suffix == ".bak"
        assert path.read_bytes() == b"a\nb\n"


# =============================================================================
# Failure injection
# =============================================================================


class TestAtomicity:
    def test_write_failure_mid_pass_leaves_original(
        self, make_file, config, tmp_path, monkeypatch
    ) -> None:
        path = make_file("f.txt", "1\n2\n3\n4\n")
        mtime = os.stat(path).st_mtime_ns
        original_write = LineSink.write

        def failing_write(self, line: str) -> None:
            if self.count == 2:
                raise OSError(28, "No space left on device")
            original_write(self, line)

        monkeypatch.setattr(LineSink, "write", failing_write)

        with pytest.raises(EditIOError, match="No space left"):
            apply_edit(path, None, replace([2], ["x"]), config=config)

        assert path.read_bytes() == b"1\n2\n3\n4\n"
        assert os.stat(path).st_mtime_ns == mtime
        assert leftover_temp_files(tmp_path) == []

    def test_replace_failure_leaves_original(self, make_file, config, tmp_path, monkeypatch) -> None:
        path = make_file("f.txt", "1\n2\n")

        def failing_replace(target, temp) -> None:
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr("lineedit_mcp.engine.transform.atomic_replace", failing_replace)

        with pytest.raises(EditIOError, match="Permission denied"):
            apply_edit(path, None, delete([1]), config=config)

        assert path.read_bytes() == b"1\n2\n"
        assert leftover_temp_files(tmp_path) == []

    def test_encode_failure_is_io_error(self, make_file, config, tmp_path) -> None:
        path = make_file("f.txt", "abc\n")
        metadata = FileMetadata(encoding="ascii", has_trailing_newline=True)

        with pytest.raises(EditIOError, match="transcode"):
            apply_edit(path, metadata, insert(["\u65e5\u672c"]), config=config, explicit_encoding=True)

        assert path.read_bytes() == b"abc\n"
        assert leftover_temp_files(tmp_path) == []
