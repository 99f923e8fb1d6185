"""Dotted version parsing and ordering.

Versions are compared segment by segment as integers, with missing trailing
segments treated as zero, so ``1.6`` == ``1.6.0`` and ``1.6.4`` < ``1.6.11.0``.
"""

import re
from typing import Optional, Tuple

from .exceptions import VersionFormatError

_LEADING_NUMERIC = re.compile(r'^\d+(\.\d+)*')


class Version:
    """Ordered tuple of non-negative integers of any length."""

    __slots__ = ('segments',)

    def __init__(self, segments: Tuple[int, ...]):
        if not segments:
            raise VersionFormatError('', 'version has no segments')
        self.segments = tuple(segments)

    @classmethod
    def parse(cls, text: str) -> 'Version':
        """Parse ``"1.6.4"`` into ``Version((1, 6, 4))``.

        Raises:
            VersionFormatError: On empty input or a non-numeric segment
        """
        if text is None:
            raise VersionFormatError('None', 'version is missing')
        text = str(text).strip()
        if not text:
            raise VersionFormatError(text, 'version is empty')

        segments = []
        for part in text.split('.'):
            if not (part.isascii() and part.isdigit()):
                raise VersionFormatError(text, f"segment '{part}' is not a non-negative integer")
            segments.append(int(part))
        return cls(tuple(segments))

    @classmethod
    def from_product_version(cls, text: str) -> Optional['Version']:
        """Parse the leading numeric part of an appliance product_version.

        ``"1.6.4-build.2"`` -> ``Version((1, 6, 4))``. Returns None when the
        string does not start with a number.
        """
        match = _LEADING_NUMERIC.match(str(text or ''))
        if not match:
            return None
        return cls.parse(match.group(0))

    def _key(self) -> Tuple[int, ...]:
        # Strip trailing zeros so padding never changes ordering or hashing
        key = self.segments
        while len(key) > 1 and key[-1] == 0:
            key = key[:-1]
        return key

    def compare(self, other: 'Version') -> int:
        """Return -1, 0 or 1 as self is less than, equal to or greater than other."""
        width = max(len(self.segments), len(other.segments))
        left = self.segments + (0,) * (width - len(self.segments))
        right = other.segments + (0,) * (width - len(other.segments))
        if left < right:
            return -1
        if left > right:
            return 1
        return 0

    def __eq__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __ne__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) != 0

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) >= 0

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        return '.'.join(str(s) for s in self.segments)

    def __repr__(self):
        return f"Version('{self}')"


def parse_version(text: str) -> Version:
    """Parse a dotted version string."""
    return Version.parse(text)


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings.

    Returns:
        -1 if a < b, 0 if a == b, 1 if a > b

    Raises:
        VersionFormatError: If either string is not a valid version
    """
    return Version.parse(a).compare(Version.parse(b))
