"""Include/exclude glob filtering for recursive operations."""

import logging
import re
from collections.abc import Iterable
from typing import Optional

from .exceptions import BucketInvalidPatternError

logger = logging.getLogger(__name__)


def _validate_pattern(pattern: str) -> None:
    """Reject globs with unclosed character classes or stray ``**``.

    Raises:
        BucketInvalidPatternError: If the pattern is malformed
    """
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "[":
            j = i + 1
            if j < n and pattern[j] == "!":
                j += 1
            # A ']' directly after the opening bracket is a literal member
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise BucketInvalidPatternError(
                    f"Invalid pattern '{pattern}': unclosed character class "
                    f"at position {i}"
                )
            i = j + 1
            continue
        if char == "*" and pattern.startswith("**", i):
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            starts_component = i == 0 or pattern[i - 1] == "/"
            ends_component = j == n or pattern[j] == "/"
            if j - i > 2 or not (starts_component and ends_component):
                raise BucketInvalidPatternError(
                    f"Invalid pattern '{pattern}': recursive wildcards must "
                    f"form a path component on their own (position {i})"
                )
            i = j
            continue
        i += 1


_re_setops_sub = re.compile(r"([&~|])").sub


def _translate_component(part: str) -> str:
    """Translate one path component; ``*`` and ``?`` also match ``/``."""
    res = []
    i, n = 0, len(part)
    while i < n:
        char = part[i]
        i += 1
        if char == "*":
            res.append(".*")
        elif char == "?":
            res.append(".")
        elif char == "[":
            j = i
            if j < n and part[j] == "!":
                j += 1
            if j < n and part[j] == "]":
                j += 1
            while j < n and part[j] != "]":
                j += 1
            if j >= n:
                # A class split by "/" cannot match
                res.append(re.escape(char))
                continue
            stuff = _re_setops_sub(r"\\\1", part[i:j].replace("\\", "\\\\"))
            i = j + 1
            if stuff[0] == "!":
                stuff = "^" + stuff[1:]
            elif stuff[0] in ("^", "["):
                stuff = "\\" + stuff
            res.append(f"[{stuff}]")
        else:
            res.append(re.escape(char))
    return "".join(res)


def _translate(pattern: str) -> str:
    """Translate a validated glob into a regular expression.

    A ``**`` component matches zero or more whole path components, so
    ``**/*.tmp`` also matches a top-level ``x.tmp`` and ``logs/**`` matches
    ``logs`` itself.
    """
    parts = pattern.split("/")
    last = len(parts) - 1
    results = []
    for idx, part in enumerate(parts):
        if part == "**":
            if idx == last:
                results.append(".*")
            elif parts[idx + 1] != "**":
                results.append("(?:.*/)?")
            continue
        results.append(_translate_component(part))
        if idx < last:
            if idx + 1 == last and parts[last] == "**":
                results.append("(?:/.*)?")
                break
            results.append("/")
    return rf"(?s:{''.join(results)})\Z"


def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Validate a glob and compile it to a regular expression."""
    _validate_pattern(pattern)
    try:
        return re.compile(_translate(pattern))
    except re.error as e:
        raise BucketInvalidPatternError(f"Invalid pattern '{pattern}': {e}") from e


class FileFilter:
    """Decides whether a relative path takes part in a recursive operation.

    Exclude patterns always win. When include patterns are given, a path
    must match at least one of them. Without patterns everything matches.

    Examples:
        >>> f = FileFilter(include=["*.txt"], exclude=["secret*.txt"])
        >>> f.matches("file.txt")
        True
        >>> f.matches("secret.txt")
        False
        >>> f.matches("file.rs")
        False
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ):
        """Initialize the filter.

        Args:
            include: Glob patterns a path must match (any of them)
            exclude: Glob patterns that reject a path

        Raises:
            BucketInvalidPatternError: If any pattern is malformed
        """
        self.include = list(include or [])
        self.exclude = list(exclude or [])
        self._include = [compile_pattern(p) for p in self.include]
        self._exclude = [compile_pattern(p) for p in self.exclude]

    def matches(self, path: str) -> bool:
        """Return True if the relative path passes the filter."""
        for regex in self._exclude:
            if regex.match(path):
                logger.debug(f"Excluded by pattern: {path}")
                return False

        if self._include:
            return any(regex.match(path) for regex in self._include)

        return True

    def has_filters(self) -> bool:
        """Return True if any include or exclude pattern is set."""
        return bool(self._include or self._exclude)

    def __repr__(self) -> str:
        return f"FileFilter(include={self.include!r}, exclude={self.exclude!r})"
