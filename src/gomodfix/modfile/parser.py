"""A go.mod parser that keeps byte-accurate statement positions.

Only the statement kinds the diagnostics engine needs are modelled in
detail: ``module``, ``go``, ``require``, ``exclude`` and ``replace``.
``retract``, ``toolchain`` and ``godebug`` statements are accepted and skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from gomodfix.exceptions import ManifestParseError
from gomodfix.invariants import never
from gomodfix.modfile import module, semver
from gomodfix.modfile.module import ModuleVersion

logger = logging.getLogger(__name__)

_GO_VERSION_RE = re.compile(
    r"^([1-9][0-9]*)\.(0|[1-9][0-9]*)(\.(0|[1-9][0-9]*))?([a-z]+[0-9]+)?$"
)
_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "r": "\r"}

IDENT = "ident"
STRING = "string"
LPAREN = "("
RPAREN = ")"
ARROW = "=>"
COMMENT = "comment"
NEWLINE = "newline"


@dataclass(frozen=True, order=True)
class FilePosition:
    """A location in a go.mod file.

    ``line`` and ``line_rune`` are 1-based; ``byte`` is a 0-based offset into
    the UTF-8 encoded content.
    """

    byte: int
    line: int = 1
    line_rune: int = 1


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: FilePosition
    end: FilePosition


@dataclass(frozen=True)
class Line:
    tokens: tuple[str, ...]
    start: FilePosition
    end: FilePosition
    comment: str = ""


@dataclass(frozen=True)
class ModuleStmt:
    mod: ModuleVersion
    syntax: Line


@dataclass(frozen=True)
class GoStmt:
    version: str
    syntax: Line


@dataclass(frozen=True)
class Require:
    mod: ModuleVersion
    syntax: Line
    indirect: bool = False


@dataclass(frozen=True)
class Exclude:
    mod: ModuleVersion
    syntax: Line


@dataclass(frozen=True)
class Replace:
    old: ModuleVersion
    new: ModuleVersion
    syntax: Line


@dataclass(frozen=True)
class ParseIssue:
    message: str
    start: FilePosition
    end: FilePosition


@dataclass(frozen=True)
class ModFile:
    module: ModuleStmt | None = None
    go: GoStmt | None = None
    require: tuple[Require, ...] = ()
    exclude: tuple[Exclude, ...] = ()
    replace: tuple[Replace, ...] = ()


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.index = 0
        self.pos = FilePosition(byte=0)
        self.issues: list[ParseIssue] = []

    def _peek(self, n: int = 0) -> str:
        i = self.index + n
        return self.text[i] if i < len(self.text) else ""

    def _advance(self) -> str:
        c = self.text[self.index]
        self.index += 1
        size = len(c.encode("utf-8", "surrogatepass"))
        if c == "\n":
            self.pos = FilePosition(byte=self.pos.byte + size, line=self.pos.line + 1)
        else:
            self.pos = FilePosition(
                byte=self.pos.byte + size,
                line=self.pos.line,
                line_rune=self.pos.line_rune + 1,
            )
        return c

    def _starts_ident_break(self) -> bool:
        c = self._peek()
        if c in ("", " ", "\t", "\r", "\n", "(", ")", '"', "`"):
            return True
        return (c == "/" and self._peek(1) == "/") or (c == "=" and self._peek(1) == ">")

    def tokens(self) -> list[Token]:
        out: list[Token] = []
        while self.index < len(self.text):
            c = self._peek()
            if c in (" ", "\t", "\r"):
                self._advance()
                continue
            start = self.pos
            if c == "\n":
                self._advance()
                out.append(Token(NEWLINE, "\n", start, self.pos))
            elif c == "/" and self._peek(1) == "/":
                text = []
                while self._peek() not in ("", "\n"):
                    text.append(self._advance())
                out.append(Token(COMMENT, "".join(text), start, self.pos))
            elif c in (LPAREN, RPAREN):
                self._advance()
                out.append(Token(c, c, start, self.pos))
            elif c == "=" and self._peek(1) == ">":
                self._advance()
                self._advance()
                out.append(Token(ARROW, ARROW, start, self.pos))
            elif c in ('"', "`"):
                out.append(self._string(c, start))
            else:
                text = []
                while not self._starts_ident_break():
                    text.append(self._advance())
                out.append(Token(IDENT, "".join(text), start, self.pos))
        return out

    def _string(self, quote: str, start: FilePosition) -> Token:
        raw = [self._advance()]
        while True:
            c = self._peek()
            if c in ("", "\n"):
                self.issues.append(ParseIssue("unterminated quoted string", start, self.pos))
                return Token(STRING, "".join(raw), start, self.pos)
            raw.append(self._advance())
            if c == quote:
                return Token(STRING, "".join(raw), start, self.pos)
            if c == "\\" and quote == '"' and self._peek() not in ("", "\n"):
                raw.append(self._advance())


def _unquote(token: Token) -> str | None:
    if token.kind != STRING:
        return token.text
    body = token.text[1:-1]
    quote = token.text[0]
    if quote == "`":
        return body
    if quote != '"':
        never("string token without opening quote", token=token.text, start=token.start)
    out = []
    chars = iter(body)
    for c in chars:
        if c != "\\":
            out.append(c)
            continue
        escaped = _ESCAPES.get(next(chars, ""))
        if escaped is None:
            return None
        out.append(escaped)
    return "".join(out)


def _split_lines(tokens: list[Token]) -> list[tuple[list[Token], str]]:
    lines: list[tuple[list[Token], str]] = []
    current: list[Token] = []
    comment = ""
    for token in tokens:
        if token.kind == NEWLINE:
            if current or comment:
                lines.append((current, comment))
            current, comment = [], ""
        elif token.kind == COMMENT:
            comment = token.text
        else:
            current.append(token)
    if current or comment:
        lines.append((current, comment))
    return lines


def _is_directory_path(path: str) -> bool:
    return (
        path.startswith(("./", "../", "/", ".\\", "..\\"))
        or path in (".", "..")
        or (len(path) >= 3 and path[1] == ":" and path[2] in "/\\")
    )


@dataclass
class _Builder:
    uri: str
    issues: list[ParseIssue] = field(default_factory=list)
    module: ModuleStmt | None = None
    go: GoStmt | None = None
    require: list[Require] = field(default_factory=list)
    exclude: list[Exclude] = field(default_factory=list)
    replace: list[Replace] = field(default_factory=list)

    def error(self, tokens: list[Token], message: str) -> None:
        self.issues.append(ParseIssue(message, tokens[0].start, tokens[-1].end))

    def _args(self, tokens: list[Token]) -> list[str] | None:
        args: list[str] = []
        for token in tokens:
            value = _unquote(token)
            if value is None:
                self.error([token], f"invalid quoted string {token.text}")
                return None
            args.append(value)
        return args

    def _version(self, tokens: list[Token], path: str, version: str) -> bool:
        if not semver.is_valid(version) or module.canonical_version(version) != version:
            self.error(tokens, f"{path}@{version}: version must be of the form v1.2.3")
            return False
        return True

    def _path(self, tokens: list[Token], path: str) -> bool:
        try:
            module.check_path(path)
        except module.ModuleError as exc:
            self.error(tokens, str(exc))
            return False
        return True

    def add(self, verb: str, tokens: list[Token], comment: str, line: Line) -> None:
        args = self._args(tokens)
        if args is None:
            return
        if verb == "module":
            if len(args) != 1:
                self.error(tokens or [_line_token(line)], "usage: module module/path")
                return
            if self.module is not None:
                self.error(tokens, "repeated module statement")
                return
            self.module = ModuleStmt(ModuleVersion(args[0]), line)
        elif verb == "go":
            if len(args) != 1 or not _GO_VERSION_RE.match(args[0]):
                self.error(tokens or [_line_token(line)], "invalid go version: must match format 1.23")
                return
            if self.go is not None:
                self.error(tokens, "repeated go statement")
                return
            self.go = GoStmt(args[0], line)
        elif verb in ("require", "exclude"):
            if len(args) != 2:
                self.error(tokens or [_line_token(line)], f"usage: {verb} module/path v1.2.3")
                return
            path, version = args
            if not self._path(tokens, path) or not self._version(tokens, path, version):
                return
            mod = ModuleVersion(path, version)
            if verb == "require":
                indirect = comment.removeprefix("//").strip().split(";")[0].strip() == "indirect"
                self.require.append(Require(mod, line, indirect=indirect))
            else:
                self.exclude.append(Exclude(mod, line))
        elif verb == "replace":
            self._replace(tokens, args, line)
        elif verb in ("retract", "toolchain", "godebug"):
            logger.debug("%s: skipping %s at line %d", self.uri, verb, line.start.line)
        else:
            self.error(tokens or [_line_token(line)], f"unknown directive: {verb}")

    def _replace(self, tokens: list[Token], args: list[str], line: Line) -> None:
        usage = "usage: replace module/path [v1.2.3] => other/module v1.4\n\t or replace module/path [v1.2.3] => ../local/directory"
        arrow = next((i for i, token in enumerate(tokens) if token.kind == ARROW), -1)
        if arrow not in (1, 2) or len(args) not in (arrow + 2, arrow + 3):
            self.error(tokens or [_line_token(line)], usage)
            return
        old_path = args[0]
        old_version = args[1] if arrow == 2 else ""
        if not self._path(tokens, old_path):
            return
        if old_version and not self._version(tokens, old_path, old_version):
            return
        new_path = args[arrow + 1]
        new_version = args[arrow + 2] if len(args) == arrow + 3 else ""
        if new_version:
            if not self._path(tokens, new_path) or not self._version(tokens, new_path, new_version):
                return
        elif not _is_directory_path(new_path):
            self.error(
                tokens,
                "replacement module without version must be directory path (rooted or starting with ./ or ../)",
            )
            return
        self.replace.append(
            Replace(
                old=ModuleVersion(old_path, old_version),
                new=ModuleVersion(new_path, new_version),
                syntax=line,
            )
        )


def _line_token(line: Line) -> Token:
    return Token(IDENT, " ".join(line.tokens), line.start, line.end)


def _make_line(tokens: list[Token], comment: str) -> Line:
    return Line(
        tokens=tuple(token.text for token in tokens),
        start=tokens[0].start,
        end=tokens[-1].end,
        comment=comment,
    )


def parse(uri: str, data: bytes) -> ModFile:
    """Parse go.mod content, raising ManifestParseError on any syntax issue."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        at = FilePosition(byte=exc.start)
        raise ManifestParseError(uri, [ParseIssue("invalid UTF-8 encoding", at, at)]) from exc
    lexer = _Lexer(text)
    tokens = lexer.tokens()
    builder = _Builder(uri, issues=list(lexer.issues))
    block_verb: str | None = None
    block_open: list[Token] = []
    for line_tokens, comment in _split_lines(tokens):
        if not line_tokens:
            continue
        kinds = [token.kind for token in line_tokens]
        if block_verb is not None:
            if kinds == [RPAREN]:
                block_verb = None
                continue
            if RPAREN in kinds or LPAREN in kinds:
                builder.error(line_tokens, "unexpected parenthesis in block")
                continue
            builder.add(block_verb, line_tokens, comment, _make_line(line_tokens, comment))
            continue
        if kinds[0] != IDENT:
            builder.error(line_tokens, f"unexpected {line_tokens[0].text!r}")
            continue
        verb = line_tokens[0].text
        if kinds[1:] == [LPAREN]:
            block_verb = verb
            block_open = line_tokens
            continue
        if kinds[1:] == [LPAREN, RPAREN]:
            logger.debug("%s: empty %s block at line %d", uri, verb, line_tokens[0].start.line)
            continue
        if RPAREN in kinds or LPAREN in kinds:
            builder.error(line_tokens, "unexpected parenthesis")
            continue
        builder.add(verb, line_tokens[1:], comment, _make_line(line_tokens, comment))
    if block_verb is not None:
        builder.error(block_open, "missing closing parenthesis")
    if builder.issues:
        raise ManifestParseError(uri, builder.issues)
    logger.debug(
        "%s: parsed %d require, %d exclude, %d replace",
        uri,
        len(builder.require),
        len(builder.exclude),
        len(builder.replace),
    )
    return ModFile(
        module=builder.module,
        go=builder.go,
        require=tuple(builder.require),
        exclude=tuple(builder.exclude),
        replace=tuple(builder.replace),
    )
