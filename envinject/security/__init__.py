"""Security module for masking substitution values in diagnostics."""

from .secrets import ValueMasker, MaskingFilter

__all__ = ['ValueMasker', 'MaskingFilter']
