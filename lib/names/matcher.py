"""Fuzzy name matching.

Decides whether two owner names denote the same entity. Used by the dealer
registry, the ownership chain walker and the duplicate lead detector.

Rules, first hit wins:
  1. Equal after normalization
  2. One contains the other
  3. Same first word (longer than 3 chars)
  4. First words differ by at most 2 chars and one is a prefix of the other
     ("arnes" / "arne")
  5. At least half (and at least 2) of the significant words overlap
     ("Hedin Bil Göteborg" / "Göteborg Hedin Automotive")
"""

import math

from lib.names.normalize import normalize_name

# Legal suffixes and generic trade words that say nothing about identity
STOP_WORDS = frozenset({
    "ab", "hb", "kb", "aktiebolag", "handelsbolag", "kommanditbolag",
    "i", "och", "the", "of",
    "bil", "bilar", "motor", "service",
})

MIN_FIRST_WORD_LENGTH = 3
MAX_PREFIX_LENGTH_DIFF = 2
MIN_WORD_OVERLAP = 2
WORD_OVERLAP_RATIO = 0.5


def significant_words(normalized: str) -> set[str]:
    """Words longer than one character that are not stop words."""
    return {
        w for w in normalized.split(" ")
        if len(w) > 1 and w not in STOP_WORDS
    }


def _first_words_match(w1: str, w2: str) -> bool:
    if len(w1) <= MIN_FIRST_WORD_LENGTH or len(w2) <= MIN_FIRST_WORD_LENGTH:
        return False
    if w1 == w2:
        return True
    if abs(len(w1) - len(w2)) > MAX_PREFIX_LENGTH_DIFF:
        return False
    return w1.startswith(w2) or w2.startswith(w1)


def _words_overlap(n1: str, n2: str) -> bool:
    sig1 = significant_words(n1)
    sig2 = significant_words(n2)
    if len(sig1) < 2 or len(sig2) < 2:
        return False
    overlap = len(sig1 & sig2)
    needed = math.ceil(min(len(sig1), len(sig2)) * WORD_OVERLAP_RATIO)
    return overlap >= needed and overlap >= MIN_WORD_OVERLAP


def names_match(name1, name2) -> bool:
    """True if the two names most likely refer to the same owner.

    Inputs may be raw or already normalized (normalization is idempotent).
    Symmetric: names_match(a, b) == names_match(b, a).
    """
    n1 = normalize_name(name1)
    n2 = normalize_name(name2)
    if not n1 or not n2:
        return False

    if n1 == n2:
        return True
    if n1 in n2 or n2 in n1:
        return True
    if _first_words_match(n1.split(" ")[0], n2.split(" ")[0]):
        return True
    return _words_overlap(n1, n2)
