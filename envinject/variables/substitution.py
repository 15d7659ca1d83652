"""
Placeholder substitution implementation.

Every environment variable whose name starts with the configured prefix
becomes a (key, value) pair. The key is searched for literally in file
content and replaced with the value. There is no escaping grammar: keys
are not regular expressions and values are not templates.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class SubstitutionPair:
    """A single key/value replacement taken from the environment."""
    key: str
    value: str

    @property
    def key_bytes(self) -> bytes:
        return os.fsencode(self.key)

    @property
    def value_bytes(self) -> bytes:
        return os.fsencode(self.value)


def collect_pairs(prefix: str, environ: Mapping[str, str]) -> List[SubstitutionPair]:
    """
    Select environment variables whose names start with prefix.

    The match is a case-sensitive literal prefix match. Pairs are sorted by
    key so that the application order is reproducible between runs.

    Args:
        prefix: Required, non-empty prefix
        environ: Environment mapping to scan

    Returns:
        Sorted list of pairs (empty when nothing matches)
    """
    if not prefix:
        raise ValueError("prefix must be a non-empty string")

    return [
        SubstitutionPair(key=name, value=value)
        for name, value in sorted(environ.items())
        if name.startswith(prefix)
    ]


def find_overlapping_keys(pairs: List[SubstitutionPair]) -> List[Tuple[str, str]]:
    """
    Find keys that are substrings of other keys.

    With such keys the outcome depends on the order replacements are
    applied in, which is unsupported.

    Returns:
        (shorter, longer) tuples
    """
    keys = [pair.key for pair in pairs]
    overlaps = []
    for short in keys:
        for long in keys:
            if short != long and short in long:
                overlaps.append((short, long))
    return overlaps


class PlaceholderSubstitutor:
    """
    Applies a fixed set of substitution pairs to raw file content.

    Content is handled as bytes so any file, text or binary, can be passed
    through; only literal occurrences of a key are touched.
    """

    def __init__(self, pairs: List[SubstitutionPair]):
        self.pairs = list(pairs)
        self._encoded = [(pair.key, pair.key_bytes, pair.value_bytes) for pair in self.pairs]

    def substitute(self, content: bytes) -> Tuple[bytes, Dict[str, int]]:
        """
        Replace every occurrence of every key in content.

        Args:
            content: Raw file content

        Returns:
            Tuple of (new content, {key: number of occurrences replaced}).
            Keys that did not occur are omitted from the counts.
        """
        counts: Dict[str, int] = {}
        for key, key_bytes, value_bytes in self._encoded:
            occurrences = content.count(key_bytes)
            if occurrences:
                content = content.replace(key_bytes, value_bytes)
                counts[key] = occurrences
        return content, counts

    def contains_any(self, content: bytes) -> List[str]:
        """Return the keys that still occur in content."""
        return [key for key, key_bytes, _ in self._encoded if key_bytes in content]
