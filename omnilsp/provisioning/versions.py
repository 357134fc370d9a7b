"""Version tag parsing and ordering.

Tags look like ``v1.37.10``. Ordering compares dot-separated segments
numerically where both sides are integers and lexically otherwise, so the
comparator never fails on odd input.
"""

import functools
from typing import Iterable, List, Optional

VERSION_PREFIX = "v"


def is_version_tag(name: str) -> bool:
    """Return True if ``name`` looks like a version tag (starts with ``v``)."""
    return name.startswith(VERSION_PREFIX)


def _segments(tag: str) -> List[str]:
    if tag.startswith(VERSION_PREFIX):
        tag = tag[len(VERSION_PREFIX):]
    return tag.split(".")


def _compare_segment(left: str, right: str) -> int:
    try:
        a, b = int(left), int(right)
    except ValueError:
        a, b = left, right  # type: ignore[assignment]
    return (a > b) - (a < b)


def compare_versions(left: str, right: str) -> int:
    """Compare two version tags.

    Args:
        left: First tag.
        right: Second tag.

    Returns:
        A negative number, zero or a positive number when ``left`` is older
        than, equal to or newer than ``right``.
    """
    left_parts = _segments(left)
    right_parts = _segments(right)

    for a, b in zip(left_parts, right_parts):
        result = _compare_segment(a, b)
        if result:
            return result

    # "1.2" sorts before "1.2.1"
    return (len(left_parts) > len(right_parts)) - (len(left_parts) < len(right_parts))


version_key = functools.cmp_to_key(compare_versions)


def latest(tags: Iterable[str]) -> Optional[str]:
    """Return the newest tag, or None when there are no tags."""
    ordered = sorted(tags, key=version_key, reverse=True)
    return ordered[0] if ordered else None
