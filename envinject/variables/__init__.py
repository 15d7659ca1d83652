"""
Placeholder substitution module.
Selects substitution pairs from the environment and applies them to content.
"""

from .substitution import (
    SubstitutionPair,
    PlaceholderSubstitutor,
    collect_pairs,
    find_overlapping_keys,
)

__all__ = ['SubstitutionPair', 'PlaceholderSubstitutor', 'collect_pairs', 'find_overlapping_keys']
