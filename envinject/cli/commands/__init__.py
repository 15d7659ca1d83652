"""CLI command handlers."""

from .run import run_substitution
from .check import check_placeholders

__all__ = ['run_substitution', 'check_placeholders']
