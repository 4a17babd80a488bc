"""Semantic version parsing with Go module conventions.

Versions carry a leading ``v`` and may use the shorthands ``vMAJOR`` and
``vMAJOR.MINOR`` (equivalent to ``.0.0`` and ``.0``). Prerelease and build
suffixes are only allowed on the full ``vMAJOR.MINOR.PATCH`` form.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Parsed:
    major: str
    minor: str
    patch: str
    short: str = ""
    prerelease: str = ""
    build: str = ""


def _is_ident_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == "-")


def _is_bad_num(v: str) -> bool:
    return len(v) > 1 and v.isascii() and v.isdigit() and v[0] == "0"


def _parse_int(v: str) -> tuple[str, str] | None:
    i = 0
    while i < len(v) and "0" <= v[i] <= "9":
        i += 1
    if i == 0 or _is_bad_num(v[:i]):
        return None
    return v[:i], v[i:]


def _parse_suffix(v: str, *, numeric_check: bool) -> tuple[str, str] | None:
    # v starts with "-" (prerelease) or "+" (build).
    i = 1
    start = 1
    while i < len(v) and (not numeric_check or v[i] != "+"):
        if not _is_ident_char(v[i]) and v[i] != ".":
            return None
        if v[i] == ".":
            if start == i or (numeric_check and _is_bad_num(v[start:i])):
                return None
            start = i + 1
        i += 1
    if start == i or (numeric_check and _is_bad_num(v[start:i])):
        return None
    return v[:i], v[i:]


def parse(v: str) -> Parsed | None:
    if not v or v[0] != "v":
        return None
    parsed = _parse_int(v[1:])
    if parsed is None:
        return None
    major, rest = parsed
    if not rest:
        return Parsed(major=major, minor="0", patch="0", short=".0.0")
    if rest[0] != ".":
        return None
    parsed = _parse_int(rest[1:])
    if parsed is None:
        return None
    minor, rest = parsed
    if not rest:
        return Parsed(major=major, minor=minor, patch="0", short=".0")
    if rest[0] != ".":
        return None
    parsed = _parse_int(rest[1:])
    if parsed is None:
        return None
    patch, rest = parsed
    prerelease = ""
    build = ""
    if rest.startswith("-"):
        suffix = _parse_suffix(rest, numeric_check=True)
        if suffix is None:
            return None
        prerelease, rest = suffix
    if rest.startswith("+"):
        suffix = _parse_suffix(rest, numeric_check=False)
        if suffix is None:
            return None
        build, rest = suffix
    if rest:
        return None
    return Parsed(
        major=major,
        minor=minor,
        patch=patch,
        prerelease=prerelease,
        build=build,
    )


def is_valid(v: str) -> bool:
    return parse(v) is not None


def major(v: str) -> str:
    """Return the major version prefix (``v2`` for ``v2.1.0``), or ``""``."""
    parsed = parse(v)
    if parsed is None:
        return ""
    return v[: 1 + len(parsed.major)]


def build(v: str) -> str:
    parsed = parse(v)
    if parsed is None:
        return ""
    return parsed.build


def prerelease(v: str) -> str:
    parsed = parse(v)
    if parsed is None:
        return ""
    return parsed.prerelease


def canonical(v: str) -> str:
    """Return the canonical form of v: shorthands expanded, build metadata dropped."""
    parsed = parse(v)
    if parsed is None:
        return ""
    if parsed.build:
        return v[: len(v) - len(parsed.build)]
    return v + parsed.short
