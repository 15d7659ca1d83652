"""
Masking of substitution values in log output.

Values are logged in clear text by default; the tool is not secret-safe.
When masking is enabled every known value is replaced with '***' in log
records on a best-effort basis.
"""

import logging
import re
from typing import Any, Dict, Iterable, Set


class ValueMasker:
    """Tracks values to mask and masks them in text."""

    MASK = '***'

    def __init__(self, values: Iterable[str] = ()):
        self._masked_values: Set[str] = set()
        self.add_values(values)

    def add_values(self, values: Iterable[str]):
        """Register values for masking. Empty strings are never masked."""
        for value in values:
            if value:
                self._masked_values.add(value)

    def mask_text(self, text: str) -> str:
        """
        Mask known values in text.

        Best-effort: a value is masked wherever it occurs, including inside
        key names and paths, so short values can hide unrelated text.

        Args:
            text: Text potentially containing values

        Returns:
            Text with values masked
        """
        if not text or not self._masked_values:
            return text

        masked = text
        # Longer values first so a value containing another is masked whole
        for value in sorted(self._masked_values, key=len, reverse=True):
            if value in masked:
                masked = re.sub(re.escape(value), self.MASK, masked)

        return masked

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask values in the string members of a mapping."""
        if not data or not self._masked_values:
            return data

        return {
            key: self.mask_text(value) if isinstance(value, str) else value
            for key, value in data.items()
        }

    def clear(self):
        """Forget all values (useful for testing)."""
        self._masked_values.clear()


class MaskingFilter(logging.Filter):
    """
    Logging filter that masks known values in log records.

    Attach to handlers so records are masked before formatting.
    """

    def __init__(self, masker: ValueMasker):
        super().__init__()
        self.masker = masker

    def filter(self, record):
        """Mask the message and its arguments; always passes the record."""
        if isinstance(record.msg, str):
            record.msg = self.masker.mask_text(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = self.masker.mask_dict(record.args)
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self.masker.mask_text(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True
