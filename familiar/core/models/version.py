"""
Version model — ordering over arbitrary version strings.

Package managers report versions in whatever shape they like
("1.2.3", "2023.10.01", "1.0-beta_2", "v3"). None of them are
guaranteed to be semver, so ordering is purely lexical-structural:

    1. Split into maximal runs of letters/digits. Everything else
       is an interchangeable separator ("1.2-3" == "1~2_3").
    2. Pad the shorter side with "0" segments ("1.0" == "1.0.0").
    3. Compare pairwise: numerically if both segments are all
       digits ("9" < "10"), otherwise as text ("9a" > "10a").
"""

from __future__ import annotations

import re
from typing import Union

_SEGMENT_RE = re.compile(r"[^\W_]+")
_NUMERIC_RE = re.compile(r"[0-9]+")

_PAD_SEGMENT = "0"


def split_version(version_string: str) -> list[str]:
    """Split a version string into its alphanumeric segments."""
    return _SEGMENT_RE.findall(version_string)


def _is_numeric(segment: str) -> bool:
    return _NUMERIC_RE.fullmatch(segment) is not None


def _compare_segments(left: str, right: str) -> int:
    if _is_numeric(left) and _is_numeric(right):
        left_value, right_value = int(left), int(right)
    else:
        left_value, right_value = left, right  # type: ignore[assignment]

    if left_value < right_value:
        return -1
    if left_value > right_value:
        return 1
    return 0


def compare_version_strings(version_string1: str, version_string2: str) -> int:
    """Three-way compare two version strings.

    Returns:
        -1 if the first is lower, 0 if equal, 1 if the first is higher.
    """
    parts1 = split_version(version_string1)
    parts2 = split_version(version_string2)

    for i in range(max(len(parts1), len(parts2))):
        part1 = parts1[i] if i < len(parts1) else _PAD_SEGMENT
        part2 = parts2[i] if i < len(parts2) else _PAD_SEGMENT

        result = _compare_segments(part1, part2)
        if result != 0:
            return result

    return 0


class Version:
    """An immutable package or package-manager version."""

    __slots__ = ("_version_string",)

    def __init__(self, version_string: str = "") -> None:
        object.__setattr__(self, "_version_string", str(version_string))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Version is immutable")

    @property
    def version_string(self) -> str:
        return self._version_string

    def compare(self, other: VersionLike) -> int:
        """Three-way comparison against another version (or string)."""
        return compare_version_strings(self._version_string, _as_string(other))

    def is_equal_to(self, other: VersionLike) -> bool:
        return self.compare(other) == 0

    def is_less_than(self, other: VersionLike) -> bool:
        return self.compare(other) < 0

    def is_greater_than(self, other: VersionLike) -> bool:
        return self.compare(other) > 0

    # ── Python comparison protocol ──────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Version, str)):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: VersionLike) -> bool:
        if not isinstance(other, (Version, str)):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: VersionLike) -> bool:
        if not isinstance(other, (Version, str)):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: VersionLike) -> bool:
        if not isinstance(other, (Version, str)):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: VersionLike) -> bool:
        if not isinstance(other, (Version, str)):
            return NotImplemented
        return self.compare(other) >= 0

    def __hash__(self) -> int:
        # Equal versions must hash equal: drop trailing zero padding and
        # normalize numeric segments ("1.00" == "1.0.0").
        key: list[int | str] = [
            int(part) if _is_numeric(part) else part
            for part in split_version(self._version_string)
        ]
        while key and key[-1] == 0:
            key.pop()
        return hash(tuple(key))

    def __str__(self) -> str:
        return self._version_string

    def __repr__(self) -> str:
        return f"Version({self._version_string!r})"

    def __bool__(self) -> bool:
        return bool(self._version_string)


VersionLike = Union[Version, str]


def _as_string(value: VersionLike) -> str:
    if isinstance(value, Version):
        return value.version_string
    return str(value)
