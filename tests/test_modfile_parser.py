from __future__ import annotations

import pytest

from gomodfix.exceptions import ManifestParseError
from gomodfix.modfile import FilePosition, ModuleVersion, parse
from tests.snapshot_helpers import MOD_URI, SAMPLE_GO_MOD


def _parse(text: str):
    return parse(MOD_URI, text.encode("utf-8"))


def _issues(text: str) -> list[str]:
    with pytest.raises(ManifestParseError) as exc:
        _parse(text)
    return [issue.message for issue in exc.value.issues]


def test_sample_statements() -> None:
    mod = _parse(SAMPLE_GO_MOD)
    assert mod.module.mod == ModuleVersion("example.com/app")
    assert mod.go.version == "1.21"
    assert [r.mod for r in mod.require] == [
        ModuleVersion("example.com", "v1.2.2"),
        ModuleVersion("golang.org/x/mod", "v0.3.0"),
    ]
    assert [e.mod for e in mod.exclude] == [ModuleVersion("golang.org/x/mod", "v0.2.0")]
    (rep,) = mod.replace
    assert rep.old == ModuleVersion("golang.org/x/mod", "v0.3.0")
    assert rep.new == ModuleVersion("golang.org/x/mod", "v0.4.0")


def test_block_entry_positions_start_at_first_token() -> None:
    req = _parse(SAMPLE_GO_MOD).require[0]
    assert req.syntax.start == FilePosition(byte=44, line=6, line_rune=2)
    assert req.syntax.end == FilePosition(byte=62, line=6, line_rune=20)
    assert req.syntax.tokens == ("example.com", "v1.2.2")


def test_single_line_statement_starts_at_verb() -> None:
    (ex,) = _parse(SAMPLE_GO_MOD).exclude
    assert ex.syntax.tokens[0] == "exclude"
    assert ex.syntax.start.line_rune == 1
    assert ex.syntax.end.line_rune - ex.syntax.start.line_rune == 31


def test_trailing_comment_is_excluded_from_extent() -> None:
    mod = _parse("module example.com/app\n\nrequire (\n\tgolang.org/x/mod v0.3.0 // indirect\n)\n")
    (req,) = mod.require
    assert req.indirect
    assert req.syntax.comment == "// indirect"
    assert req.syntax.end.line_rune == 25


def test_direct_require_is_not_indirect() -> None:
    mod = _parse("module example.com/app\nrequire golang.org/x/mod v0.3.0 // pinned\n")
    assert not mod.require[0].indirect


def test_quoted_paths_are_unquoted() -> None:
    mod = _parse('module "example.com/app"\nrequire `example.com/m` "v1.0.0"\n')
    assert mod.module.mod.path == "example.com/app"
    assert mod.require[0].mod == ModuleVersion("example.com/m", "v1.0.0")


def test_replace_forms() -> None:
    mod = _parse(
        "module example.com/app\n"
        "replace example.com/a => example.com/b v1.0.0\n"
        "replace example.com/c v1.1.0 => ../c\n"
    )
    assert [(r.old, r.new) for r in mod.replace] == [
        (ModuleVersion("example.com/a"), ModuleVersion("example.com/b", "v1.0.0")),
        (ModuleVersion("example.com/c", "v1.1.0"), ModuleVersion("../c")),
    ]


def test_incompatible_versions_are_accepted() -> None:
    mod = _parse("module example.com/app\nrequire github.com/x/y v2.0.0+incompatible\n")
    assert mod.require[0].mod.version == "v2.0.0+incompatible"


def test_skipped_directives() -> None:
    mod = _parse(
        "module example.com/app\n"
        "go 1.21.0\n"
        "toolchain go1.21.3\n"
        "retract (\n\tv1.0.0 // published by mistake\n)\n"
    )
    assert mod.go.version == "1.21.0"
    assert mod.require == ()


@pytest.mark.parametrize(
    ("text", "message"),
    [
        (
            "module example.com/app\nrequire example.com/m v1.2\n",
            "example.com/m@v1.2: version must be of the form v1.2.3",
        ),
        (
            "module example.com/app\nreplace example.com/a => example.com/b\n",
            "replacement module without version must be directory path (rooted or starting with ./ or ../)",
        ),
        ("module example.com/app\nrequire (\n\texample.com/m v1.0.0\n", "missing closing parenthesis"),
        ("module example.com/app\nfrobnicate now\n", "unknown directive: frobnicate"),
        ("module example.com/app\nrequire example.com/m\n", "usage: require module/path v1.2.3"),
        ("module example.com/app\ngo 1.x\n", "invalid go version: must match format 1.23"),
        ("module example.com/app\nmodule example.com/other\n", "repeated module statement"),
        ("module example.com/app\nrequire example/m v1.0.0\n",
         "malformed module path 'example/m': missing dot in first path element"),
    ],
)
def test_syntax_issues(text: str, message: str) -> None:
    assert message in _issues(text)


def test_unterminated_string() -> None:
    assert "unterminated quoted string" in _issues('module "example.com/app\n')


def test_error_message_lists_issue_lines() -> None:
    with pytest.raises(ManifestParseError) as exc:
        _parse("module example.com/app\n\nfrobnicate now\n")
    assert str(exc.value) == f"{MOD_URI}:3: unknown directive: frobnicate"
    assert exc.value.uri == MOD_URI


def test_invalid_utf8() -> None:
    with pytest.raises(ManifestParseError) as exc:
        parse(MOD_URI, b"module example.com/\xff\n")
    (issue,) = exc.value.issues
    assert issue.message == "invalid UTF-8 encoding"
    assert issue.start.byte == 19


def test_empty_file_parses() -> None:
    mod = _parse("")
    assert mod.module is None
    assert mod.require == ()


def test_empty_single_line_blocks() -> None:
    mod = _parse("module example.com/app\nrequire ()\nexclude ()\nreplace ()\nrequire golang.org/x/mod v0.3.0\n")
    assert [r.mod for r in mod.require] == [ModuleVersion("golang.org/x/mod", "v0.3.0")]
    assert mod.exclude == ()
    assert mod.replace == ()


def test_stray_parenthesis_is_still_an_error() -> None:
    assert "unexpected parenthesis" in _issues("module example.com/app\nrequire ) (\n")
