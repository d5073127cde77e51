"""
Semantic version matching for the `=~` operator.

    VERSION =~ RANGE

VERSION is `major.minor.patch`, optionally followed by a `-pre` or `+build`
suffix that takes no part in the comparison. RANGE is a VERSION with an
optional prefix:

    (none), =     exact match
    <, <=, >, >=  ordered comparison on (major, minor, patch)
    ~             same major and minor
    ^             same major
"""

from __future__ import annotations
from typing import Tuple
import re

from .errors import VersionFormatError

_VERSION_RE = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+)(?:[-+].*)?")

# longest-first so that "<=" wins over "<"
RANGE_OPS = ("<=", ">=", "<", ">", "=", "~", "^")

Version = Tuple[int, int, int]


def parse_version(text: str, loc=None) -> Version:
    m = _VERSION_RE.fullmatch(text)
    if m is None:
        raise VersionFormatError(loc, text)
    return (int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_range(text: str, loc=None) -> Tuple[str, Version]:
    """"^1.3.0" -> ("^", (1, 3, 0)); no prefix means "="."""
    if not text:
        raise VersionFormatError(loc, text, "empty version range")
    op = "="
    for prefix in RANGE_OPS:
        if text.startswith(prefix):
            op = prefix
            text = text[len(prefix):]
            break
    return op, parse_version(text, loc)


def satisfies(version: str, range_spec: str, loc=None) -> bool:
    """True if `version` is inside `range_spec`."""
    op, want = parse_range(range_spec, loc)
    have = parse_version(version, loc)

    if op == "=":
        return have == want
    if op == "<":
        return have < want
    if op == "<=":
        return have <= want
    if op == ">":
        return have > want
    if op == ">=":
        return have >= want
    if op == "~":
        return have[:2] == want[:2]
    if op == "^":
        return have[0] == want[0]
    raise AssertionError(f"unhandled range operator {op!r}")
