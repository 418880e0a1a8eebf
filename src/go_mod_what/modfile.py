"""
Parser for go.mod manifests.

Handles every directive the go command writes (single-line and
parenthesised block forms), quoted tokens and `//` comments. Only the
`module`, `go` and `require` directives carry data into the result; the
others are syntax-checked and skipped.
"""

import json
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .dependency import ModFile, Requirement

BLOCK_DIRECTIVES = {"require", "exclude", "replace", "retract", "godebug", "ignore", "tool"}
SINGLE_DIRECTIVES = {"module", "go", "toolchain"}

_IDENT = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER_RE = re.compile(
    r"v(?P<major>0|[1-9]\d*)"
    r"(?:\.(?P<minor>0|[1-9]\d*)"
    r"(?:\.(?P<patch>0|[1-9]\d*)"
    r"(?P<prerelease>-" + _IDENT + r"(?:\." + _IDENT + r")*)?"
    r"(?P<build>\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r")?)?"
)
_PATH_MAJOR_RE = re.compile(r"/v([0-9.]+)\Z")
_GOPKG_IN_MAJOR_RE = re.compile(r"\.v(0|[1-9]\d*)(-unstable)?\Z")
_GO_VERSION_RE = re.compile(r"^[1-9][0-9]*\.(0|[1-9][0-9]*)(\.(0|[1-9][0-9]*))?((rc|beta)[1-9][0-9]*)?$")
_PATH_CHARS_RE = re.compile(r"^[A-Za-z0-9\-._~+/]*$")


class ModfileSyntaxError(ValueError):
    """A go.mod syntax error tied to a file and line."""

    def __init__(self, filename: str, line: int, message: str):
        super().__init__(f"{filename}:{line}: {message}")
        self.filename = filename
        self.line = line
        self.message = message


@dataclass
class _Line:
    number: int
    tokens: List[str]
    comment: str


def _tokenize(text: str) -> Tuple[List[str], str]:
    """Split one line into tokens and its trailing `//` comment."""
    tokens: List[str] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif text.startswith("//", i):
            return tokens, text[i + 2 :].strip()
        elif ch in "()":
            tokens.append(ch)
            i += 1
        elif ch == '"':
            j = i + 1
            while j < n and text[j] != '"':
                j += 2 if text[j] == "\\" else 1
            if j >= n:
                raise ValueError("unterminated quoted string")
            tokens.append(text[i : j + 1])
            i = j + 1
        elif ch == "`":
            j = text.find("`", i + 1)
            if j < 0:
                raise ValueError("unterminated raw string")
            tokens.append(text[i : j + 1])
            i = j + 1
        else:
            j = i
            while j < n and not text[j].isspace() and text[j] not in "()\"`":
                if text.startswith("//", j):
                    break
                j += 1
            tokens.append(text[i:j])
            i = j

    return tokens, ""


def _unquote(token: str) -> str:
    if token.startswith("`"):
        return token[1:-1]
    if token.startswith('"'):
        try:
            value = json.loads(token)
        except ValueError:
            raise ValueError(f"invalid quoted string {token}")
        return value
    return token


def check_module_path(path: str) -> Optional[str]:
    """
    Validate a module path.

    Returns:
        Optional[str]: Reason the path is malformed, or None if it is valid
    """
    if not path:
        return "empty string"
    if not _PATH_CHARS_RE.match(path):
        bad = next(c for c in path if not _PATH_CHARS_RE.match(c))
        return f"invalid char {bad!r}"
    if path.startswith("/"):
        return "leading slash"
    if path.startswith("-"):
        return "leading dash"
    if path.endswith("/"):
        return "trailing slash"
    if "//" in path:
        return "double slash"
    for element in path.split("/"):
        if element.startswith(".") or element.endswith("."):
            return f"path element {element!r} begins or ends with a dot"
    return None


def canonical_version(version: str) -> Optional[str]:
    """
    Normalize a semantic version the way the go command records it.

    Shorthands are completed (``v1`` and ``v1.2`` become ``v1.0.0`` and
    ``v1.2.0``) and build metadata is dropped, except ``+incompatible``.

    Returns:
        Optional[str]: The canonical version, or None if it has no canonical form
    """
    match = _SEMVER_RE.fullmatch(version)
    if not match:
        return None

    canonical = "v{}.{}.{}{}".format(
        match.group("major"),
        match.group("minor") or "0",
        match.group("patch") or "0",
        match.group("prerelease") or "",
    )
    if match.group("build") == "+incompatible":
        canonical += "+incompatible"
    return canonical


def split_path_major(path: str) -> Tuple[str, bool]:
    """
    Extract the major-version suffix of a module path.

    Returns:
        Tuple[str, bool]: The suffix (``/v2``, ``.v3`` or empty) and whether
        the path is well formed
    """
    if path.startswith("gopkg.in/"):
        match = _GOPKG_IN_MAJOR_RE.search(path)
        if not match:
            return "", False
        return match.group(0), True

    match = _PATH_MAJOR_RE.search(path)
    if not match:
        return "", True

    digits = match.group(1)
    if "." in digits or digits.startswith("0") or digits == "1":
        return "", False
    return "/v" + digits, True


def check_path_major(version: str, path_major: str) -> Optional[str]:
    """Reason a canonical version does not fit a path's major suffix, or None."""
    if path_major.startswith(".v") and path_major.endswith("-unstable"):
        path_major = path_major[: -len("-unstable")]
    # gopkg.in/x.v1 accepts v0 pseudo-versions
    if version.startswith("v0.0.0-") and path_major == ".v1":
        return None

    major = version.split(".", 1)[0]
    if not path_major:
        if major in ("v0", "v1") or version.endswith("+incompatible"):
            return None
        expected = "v0 or v1"
    else:
        if major == path_major[1:]:
            return None
        expected = path_major[1:]
    return f"should be {expected}, not {major}"


def _module_version(verb: str, args: List[str]) -> Tuple[str, str]:
    """Validate a `path version` pair and return it with the version canonicalized."""
    if len(args) != 2:
        raise ValueError(f"usage: {verb} module/path v1.2.3")

    path, version = (_unquote(arg) for arg in args)
    reason = check_module_path(path)
    if reason:
        raise ValueError(f'malformed module path "{path}": {reason}')

    canonical = canonical_version(version)
    if canonical is None:
        raise ValueError(
            f'{verb} {path}: version "{version}" invalid: must be of the form v1.2.3'
        )

    path_major, ok = split_path_major(path)
    if not ok:
        raise ValueError(f"{verb} {path}: invalid module path")
    reason = check_path_major(canonical, path_major)
    if reason:
        raise ValueError(f'{verb} {path}: version "{canonical}" invalid: {reason}')

    return path, canonical


def _require_entry(args: List[str], comment: str) -> Requirement:
    path, version = _module_version("require", args)
    indirect = comment == "indirect" or comment.startswith("indirect;")
    return Requirement(path=path, version=version, indirect=indirect)


def _check_exclude(args: List[str]) -> None:
    _module_version("exclude", args)


def _check_replace(args: List[str]) -> None:
    usage = "usage: replace module/path [v1.2.3] => other/module v1.4 or replace module/path [v1.2.3] => ../local/directory"
    if "=>" not in args:
        raise ValueError(usage)
    arrow = args.index("=>")
    if arrow not in (1, 2) or len(args) - arrow - 1 not in (1, 2):
        raise ValueError(usage)


def _check_single(verb: str) -> Callable[[List[str]], None]:
    def check(args: List[str]) -> None:
        if len(args) != 1:
            raise ValueError(f"usage: {verb} {_USAGE_ARG[verb]}")

    return check


_USAGE_ARG: Dict[str, str] = {
    "module": "module/path",
    "go": "1.23",
    "toolchain": "go1.23.0",
    "ignore": "./path",
    "tool": "module/path/tool",
}


def _check_godebug(args: List[str]) -> None:
    if len(args) != 1 or "=" not in args[0]:
        raise ValueError("usage: godebug key=value")


def _check_retract(args: List[str]) -> None:
    if not args:
        raise ValueError("usage: retract v1.2.3 or retract [v1.0.0, v1.1.0]")


_CHECKERS: Dict[str, Callable[[List[str]], None]] = {
    "exclude": _check_exclude,
    "replace": _check_replace,
    "retract": _check_retract,
    "godebug": _check_godebug,
    "toolchain": _check_single("toolchain"),
    "ignore": _check_single("ignore"),
    "tool": _check_single("tool"),
}


def _apply(result: ModFile, verb: str, args: List[str], comment: str) -> None:
    """Apply one directive entry to the parse result."""
    if verb == "require":
        result.requires.append(_require_entry(args, comment))
    elif verb == "module":
        _check_single("module")(args)
        if result.module is not None:
            raise ValueError("repeated module statement")
        result.module = _unquote(args[0])
    elif verb == "go":
        _check_single("go")(args)
        if not _GO_VERSION_RE.match(args[0]):
            raise ValueError(f"invalid go version '{args[0]}': must match format 1.23.0")
        result.go_version = args[0]
    else:
        _CHECKERS[verb](args)


def _split_lines(filename: str, data: bytes) -> List[_Line]:
    lines = []
    for number, raw in enumerate(data.split(b"\n"), 1):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise ModfileSyntaxError(filename, number, "invalid UTF-8 encoding")
        try:
            tokens, comment = _tokenize(text.rstrip("\r"))
        except ValueError as e:
            raise ModfileSyntaxError(filename, number, str(e))
        lines.append(_Line(number, tokens, comment))
    return lines


def parse(filename: str, data: bytes) -> ModFile:
    """
    Parse go.mod content.

    Args:
        filename: Name used in error messages
        data: Raw file contents

    Returns:
        ModFile: Module path, go version and requirements in file order

    Raises:
        ModfileSyntaxError: If the content is not valid go.mod syntax
    """
    result = ModFile()
    block: Optional[str] = None
    block_start = 0

    for line in _split_lines(filename, data):
        tokens = line.tokens
        if not tokens:
            continue

        try:
            if block is not None:
                if tokens == [")"]:
                    block = None
                    continue
                if "(" in tokens or ")" in tokens:
                    raise ValueError("unexpected parenthesis in block")
                _apply(result, block, tokens, line.comment)
                continue

            verb = tokens[0]
            if verb in ("(", ")"):
                raise ValueError(f"unexpected {verb}")
            if verb not in BLOCK_DIRECTIVES and verb not in SINGLE_DIRECTIVES:
                raise ValueError(f"unknown directive: {verb}")

            args = tokens[1:]
            if args == ["("]:
                if verb not in BLOCK_DIRECTIVES:
                    raise ValueError(f"{verb} directive cannot be a block")
                block = verb
                block_start = line.number
                continue
            if "(" in args or ")" in args:
                raise ValueError("unexpected parenthesis")

            _apply(result, verb, args, line.comment)
        except ModfileSyntaxError:
            raise
        except ValueError as e:
            raise ModfileSyntaxError(filename, line.number, str(e))

    if block is not None:
        raise ModfileSyntaxError(
            filename, block_start, f"unexpected end of file in {block} block"
        )

    return result
