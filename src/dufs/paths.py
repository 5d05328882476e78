# Request path resolution.
# Created: 2026-10-16
#
# Maps a request URI onto the served root. The containment check is purely
# lexical and runs before the filesystem is touched, so targets that do not
# exist yet (PUT) are handled the same way as existing ones.

from __future__ import annotations

import os
import re
from pathlib import Path, PurePath
from urllib.parse import unquote_to_bytes

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class BadRequest(ValueError):
    """The request path could not be decoded."""


def percent_decode(raw: str) -> str:
    """Strict percent-decoding into UTF-8."""
    if _BAD_ESCAPE.search(raw):
        raise BadRequest(f"invalid percent-encoding in {raw!r}")
    try:
        return unquote_to_bytes(raw).decode("utf-8")
    except UnicodeDecodeError as e:
        raise BadRequest(f"path is not valid UTF-8: {raw!r}") from e


def is_within(root: str, candidate: str) -> bool:
    """True if *candidate* equals *root* or lies beneath it (lexically)."""
    try:
        return os.path.commonpath([root, candidate]) == root
    except ValueError:
        # Different drives on Windows, or mixed absolute/relative paths.
        return False


def resolve_request_path(root: Path, uri_path: str) -> Path | None:
    """Translate a percent-encoded request path into a path under *root*.

    Returns ``None`` when the decoded path escapes the root; raises
    :class:`BadRequest` when it cannot be decoded.
    """
    relative = percent_decode(uri_path[1:] if uri_path.startswith("/") else uri_path)
    if os.sep != "/":
        relative = relative.replace("/", os.sep)

    root_str = os.fspath(root)
    joined = os.path.normpath(os.path.join(root_str, relative))
    if not is_within(root_str, joined):
        return None
    return Path(joined)


def normalize_path(path: PurePath | str) -> str:
    """Render a relative OS path with forward slashes."""
    text = os.fspath(path)
    if text == ".":
        return ""
    if os.sep != "/":
        text = text.replace(os.sep, "/")
    return text


def breadcrumb(root: Path, path: Path) -> str:
    """*path* relative to the root's parent (or the root itself at ``/``)."""
    base = root.parent if root.parent != root else root
    try:
        return normalize_path(path.relative_to(base))
    except ValueError:
        return normalize_path(path)
