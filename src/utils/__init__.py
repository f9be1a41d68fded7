"""Utilities package - Flat structure (no nested directories)"""

# Hash utilities
from .hash_utils import canonical_json, generate_run_signature, hash_string

# Duration parsing
from .duration import format_duration, parse_iso8601_duration

# Text utilities
from .text_utils import (
    blocked_keys,
    clean_terms,
    contains_any,
    language_matches,
    looks_latin,
    matches_channel,
    matching_term,
    normalize_block_list,
    normalize_channel_key,
    parse_block_entry,
    slugify,
)

__all__ = [
    # hash
    "hash_string",
    "canonical_json",
    "generate_run_signature",
    # duration
    "parse_iso8601_duration",
    "format_duration",
    # text
    "blocked_keys",
    "clean_terms",
    "contains_any",
    "language_matches",
    "looks_latin",
    "matches_channel",
    "matching_term",
    "normalize_block_list",
    "normalize_channel_key",
    "parse_block_entry",
    "slugify",
]
