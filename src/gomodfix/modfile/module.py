"""Module path and version validation."""

from __future__ import annotations

from dataclasses import dataclass

from gomodfix.exceptions import GomodfixError
from gomodfix.modfile import semver

_WINDOWS_RESERVED = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{n}" for n in range(1, 10)}
    | {f"LPT{n}" for n in range(1, 10)}
)


@dataclass(frozen=True, order=True)
class ModuleVersion:
    path: str = ""
    version: str = ""

    def __str__(self) -> str:
        if not self.version:
            return self.path
        return f"{self.path}@{self.version}"

    def is_zero(self) -> bool:
        return not self.path and not self.version


class ModuleError(GomodfixError):
    pass


class InvalidModulePathError(ModuleError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"malformed module path {path!r}: {reason}")
        self.path = path
        self.reason = reason


class InvalidVersionError(ModuleError):
    def __init__(self, path: str, version: str, reason: str):
        super().__init__(f"{path}@{version}: invalid version: {reason}")
        self.path = path
        self.version = version
        self.reason = reason


def _mod_path_ok(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c in "-._~")


def _first_path_ok(c: str) -> bool:
    return c in "-." or "0" <= c <= "9" or "a" <= c <= "z"


def _check_elem(elem: str) -> str | None:
    if not elem:
        return "empty path element"
    if elem.count(".") == len(elem):
        return f"invalid path element {elem!r}"
    if elem[0] == ".":
        return "leading dot in path element"
    if elem[-1] == ".":
        return "trailing dot in path element"
    for c in elem:
        if not _mod_path_ok(c):
            return f"invalid char {c!r}"
    short = elem.split(".", 1)[0]
    if short.upper() in _WINDOWS_RESERVED:
        return f"{short!r} disallowed as path element component on Windows"
    tilde = short.rfind("~")
    if 0 <= tilde < len(short) - 1 and short[tilde + 1 :].isdigit():
        return "trailing tilde and digits in path element"
    return None


def _split_gopkg_in(path: str) -> tuple[str, str, bool]:
    if not path.startswith("gopkg.in/"):
        return path, "", False
    i = len(path)
    if path.endswith("-unstable"):
        i -= len("-unstable")
    while i > 0 and "0" <= path[i - 1] <= "9":
        i -= 1
    if i <= 1 or path[i - 1] != "v" or path[i - 2] != ".":
        return path, "", False
    prefix, path_major = path[: i - 2], path[i - 2 :]
    if len(path_major) <= 2 or (path_major[2] == "0" and path_major != ".v0"):
        return path, "", False
    return prefix, path_major, True


def split_path_version(path: str) -> tuple[str, str, bool]:
    """Split path into (prefix, path_major, ok).

    ``example.com/m/v2`` splits into ``example.com/m`` and ``/v2``; a path
    without a major suffix keeps the whole path as prefix.
    """
    if path.startswith("gopkg.in/"):
        return _split_gopkg_in(path)
    i = len(path)
    dot = False
    while i > 0 and ("0" <= path[i - 1] <= "9" or path[i - 1] == "."):
        if path[i - 1] == ".":
            dot = True
        i -= 1
    if i <= 1 or i == len(path) or path[i - 1] != "v" or path[i - 2] != "/":
        return path, "", True
    prefix, path_major = path[: i - 2], path[i - 2 :]
    if dot or len(path_major) <= 2 or path_major[2] == "0" or path_major == "/v1":
        return path, "", False
    return prefix, path_major, True


def check_path(path: str) -> None:
    """Raise InvalidModulePathError unless path is a valid module path."""
    reason = _check_path_reason(path)
    if reason is not None:
        raise InvalidModulePathError(path, reason)


def _check_path_reason(path: str) -> str | None:
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return "invalid UTF-8"
    if not path:
        return "empty string"
    if path[0] == "-":
        return "leading dash"
    if "//" in path:
        return "double slash"
    if path[-1] == "/":
        return "trailing slash"
    for elem in path.split("/"):
        reason = _check_elem(elem)
        if reason is not None:
            return reason
    first = path.split("/", 1)[0]
    if not first:
        return "leading slash"
    if "." not in first:
        return "missing dot in first path element"
    for c in first:
        if not _first_path_ok(c):
            return f"invalid char {c!r} in first path element"
    _, _, ok = split_path_version(path)
    if not ok:
        return "invalid version"
    return None


def check_path_major(path: str, version: str, path_major: str) -> None:
    if path_major.startswith(".v") and path_major.endswith("-unstable"):
        path_major = path_major[: -len("-unstable")]
    if version.startswith("v0.0.0-") and path_major == ".v1":
        # gopkg.in/...v1 accepts pseudo-versions at v0.
        return
    major = semver.major(version)
    if not path_major:
        if major in ("v0", "v1") or semver.build(version) == "+incompatible":
            return
        expected = "v0 or v1"
    else:
        if major == path_major[1:]:
            return
        expected = path_major[1:]
    raise InvalidVersionError(path, version, f"should be {expected}, not {major}")


def check(path: str, version: str) -> None:
    """Raise ModuleError unless path@version is a well-formed module version."""
    check_path(path)
    if not semver.is_valid(version):
        raise InvalidVersionError(path, version, "not a semantic version")
    _, path_major, _ = split_path_version(path)
    check_path_major(path, version, path_major)


def is_valid(path: str, version: str) -> bool:
    try:
        check(path, version)
    except ModuleError:
        return False
    return True


def canonical_version(version: str) -> str:
    """Like semver.canonical but keeps a ``+incompatible`` suffix."""
    cv = semver.canonical(version)
    if semver.build(version) == "+incompatible":
        cv += "+incompatible"
    return cv
