from __future__ import annotations

import pytest
from lsprotocol.types import DiagnosticSeverity, Position

from gomodfix.exceptions import ManifestParseError, NoDiagnosticError, PositionError
from gomodfix.mod import extract_module_version, locate_tool_error
from gomodfix.mod.tool_errors import match_module_at_version, split_segments
from gomodfix.modfile import ModuleVersion
from gomodfix.source import ParsedModule
from tests.snapshot_helpers import (
    MOD_URI,
    SAMPLE_GO_MOD,
    FakeSnapshot,
    FixedMapper,
    parsed_module,
    rng,
)

MISSING_MOD = "go: example.com@v1.2.2: reading example.com/@v/v1.2.2.mod: no such file or directory"


def test_extracts_token_from_first_valid_segment() -> None:
    assert extract_module_version(MISSING_MOD) == ModuleVersion("example.com", "v1.2.2")


def test_extracts_major_version_suffix_module() -> None:
    text = (
        "exit status 1: go: github.com/cockroachdb/apd/v2@v2.0.72: reading "
        "github.com/cockroachdb/apd/go.mod at revision v2.0.72: unknown revision v2.0.72"
    )
    assert extract_module_version(text) == ModuleVersion("github.com/cockroachdb/apd/v2", "v2.0.72")


def test_last_at_sign_separates_module_from_version() -> None:
    assert match_module_at_version("example.com/m@v1@v1.2.3") == ModuleVersion("example.com/m@v1", "v1.2.3")


def test_segments_are_trimmed() -> None:
    assert split_segments(" go :  a@v1 :") == ["go", "a@v1", ""]


def test_malformed_candidates_are_skipped() -> None:
    text = "go: tool@latest: example.com/m@v2.0.0: example.com/m@v1.4.0: not found"
    assert extract_module_version(text) == ModuleVersion("example.com/m", "v1.4.0")


@pytest.mark.parametrize(
    "text",
    [
        "exit status 1",
        "go: updates to go.mod needed; to update it: go mod tidy",
        "go: example.com: version v1.2.2 not found",
        "go: someone@example: permission denied",
    ],
)
def test_no_valid_token_yields_zero_value(text: str) -> None:
    assert extract_module_version(text).is_zero()


def test_custom_matchers_extend_the_pipeline() -> None:
    def _spaced(segment: str):
        parts = segment.split()
        if len(parts) == 3 and parts[1] == "version":
            return ModuleVersion(parts[0], parts[2])
        return None

    text = "go: example.com version v1.2.2: not found"
    assert extract_module_version(text).is_zero()
    assert extract_module_version(text, matchers=[_spaced]) == ModuleVersion("example.com", "v1.2.2")


def _snapshot(parsed) -> FakeSnapshot:
    return FakeSnapshot(parsed=parsed)


def test_anchors_at_require_statement(mod_file, sample_parsed) -> None:
    diagnostic = locate_tool_error(_snapshot(sample_parsed), mod_file, MISSING_MOD)
    assert diagnostic.range == rng(5, 1, 5, 19)
    assert diagnostic.severity == DiagnosticSeverity.Error
    assert diagnostic.message == MISSING_MOD


def test_accepts_exception_and_keeps_its_text(mod_file, sample_parsed) -> None:
    load_error = RuntimeError(f"err: exit status 1: stderr: {MISSING_MOD}")
    diagnostic = locate_tool_error(_snapshot(sample_parsed), mod_file, load_error)
    assert diagnostic.message == str(load_error)
    assert diagnostic.range == rng(5, 1, 5, 19)


def test_anchors_at_exclude_statement(mod_file, sample_parsed) -> None:
    diagnostic = locate_tool_error(
        _snapshot(sample_parsed), mod_file, "go: golang.org/x/mod@v0.2.0: unknown revision v0.2.0"
    )
    assert diagnostic.range == rng(9, 0, 9, 31)


def test_anchors_at_replace_by_new_module(mod_file, sample_parsed) -> None:
    diagnostic = locate_tool_error(
        _snapshot(sample_parsed), mod_file, "go: golang.org/x/mod@v0.4.0: invalid version"
    )
    assert diagnostic.range == rng(11, 0, 11, 58)


def test_require_wins_over_replace_of_same_module(mod_file, sample_parsed) -> None:
    diagnostic = locate_tool_error(
        _snapshot(sample_parsed), mod_file, "go: golang.org/x/mod@v0.3.0: unknown revision"
    )
    assert diagnostic.range == rng(6, 1, 6, 24)


def test_replace_matches_old_module_version(mod_file) -> None:
    parsed = parsed_module("module example.com/app\n\nreplace example.com/old v1.0.0 => ../old\n")
    diagnostic = locate_tool_error(_snapshot(parsed), mod_file, "go: example.com/old@v1.0.0: bad")
    assert diagnostic.range == rng(2, 0, 2, 40)


def test_no_token_is_no_derivable_result(mod_file, sample_parsed) -> None:
    with pytest.raises(NoDiagnosticError) as exc:
        locate_tool_error(_snapshot(sample_parsed), mod_file, "exit status 1")
    assert exc.value.load_error == "exit status 1"
    assert str(exc.value) == "no diagnostics for exit status 1"


def test_unknown_module_is_no_derivable_result(mod_file, sample_parsed) -> None:
    with pytest.raises(NoDiagnosticError):
        locate_tool_error(_snapshot(sample_parsed), mod_file, "go: example.org/other@v1.0.0: gone")


def test_parse_failure_is_a_hard_error(mod_file) -> None:
    snapshot = _snapshot(ManifestParseError(MOD_URI, []))
    with pytest.raises(ManifestParseError):
        locate_tool_error(snapshot, mod_file, MISSING_MOD)


def test_position_failure_is_a_hard_error(mod_file, sample_parsed) -> None:
    broken = ParsedModule(file=sample_parsed.file, mapper=FixedMapper(MOD_URI, {}))
    with pytest.raises(PositionError):
        locate_tool_error(_snapshot(broken), mod_file, MISSING_MOD)


def test_uses_injected_offset_table(mod_file, sample_parsed) -> None:
    (req, _) = sample_parsed.file.require
    table = {
        req.syntax.start.byte: Position(line=40, character=2),
        req.syntax.end.byte: Position(line=40, character=9),
    }
    fixed = ParsedModule(file=sample_parsed.file, mapper=FixedMapper(MOD_URI, table))
    diagnostic = locate_tool_error(_snapshot(fixed), mod_file, MISSING_MOD)
    assert diagnostic.range == rng(40, 2, 40, 9)


def test_sample_text_matches_fixture(sample_parsed) -> None:
    assert sample_parsed.file.module.mod.path == "example.com/app"
    assert SAMPLE_GO_MOD.splitlines()[5] == "\texample.com v1.2.2"
