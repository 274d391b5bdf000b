"""Owner name normalization and fuzzy matching."""

from lib.names.normalize import normalize_name, strip_accents
from lib.names.matcher import names_match, significant_words, STOP_WORDS

__all__ = [
    "normalize_name",
    "strip_accents",
    "names_match",
    "significant_words",
    "STOP_WORDS",
]
