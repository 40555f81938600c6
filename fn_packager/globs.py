"""Include/exclude glob selection.

Exclude lists always start with DEFAULT_EXCLUDES, followed by the service
list and then the function list. Include lists are the service list followed
by the function list. Nothing is deduplicated; order is what the archiver
evaluates.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Sequence

DEFAULT_EXCLUDES: tuple[str, ...] = (
    ".git/**",
    ".gitignore",
    ".DS_Store",
    "npm-debug.log",
    "serverless.yaml",
    "serverless.yml",
    ".serverless/**",
)


def get_includes(
    service_includes: Sequence[str] | None = None,
    function_includes: Sequence[str] | None = None,
) -> list[str]:
    return [*(service_includes or ()), *(function_includes or ())]


def get_excludes(
    service_excludes: Sequence[str] | None = None,
    function_excludes: Sequence[str] | None = None,
) -> list[str]:
    return [*DEFAULT_EXCLUDES, *(service_excludes or ()), *(function_excludes or ())]


def _parents(relpath: str) -> list[str]:
    parts = relpath.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


def _globstar_forms(pattern: str) -> set[str]:
    """*pattern* plus every form where a `**/` segment matches zero directories."""
    forms = {pattern}
    pending = [pattern]
    while pending:
        pat = pending.pop()
        start = pat.find("**/")
        while start != -1:
            if start == 0 or pat[start - 1] == "/":
                alt = pat[:start] + pat[start + 3 :]
                if alt not in forms:
                    forms.add(alt)
                    pending.append(alt)
            start = pat.find("**/", start + 1)
    return forms


def matches(relpath: str, pattern: str) -> bool:
    """True if *relpath* (POSIX, relative) matches *pattern* or lives under a match."""
    candidates = [relpath, *_parents(relpath)]
    for form in _globstar_forms(pattern.rstrip("/")):
        if any(fnmatch.fnmatchcase(path, form) for path in candidates):
            return True
    return False


def _matches_any(relpath: str, patterns: Iterable[str]) -> bool:
    return any(matches(relpath, pat) for pat in patterns)


def is_packaged(relpath: str, excludes: Sequence[str], includes: Sequence[str]) -> bool:
    """Apply excludes first, then let includes re-admit excluded paths."""
    if not _matches_any(relpath, excludes):
        return True
    return _matches_any(relpath, includes)
