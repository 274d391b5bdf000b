"""Name normalization for owner/dealer matching.

Biluppgifter, Blocket and imported lead files all spell the same company
differently ("Bilcenter i Norr AB", "BILCENTER I NORR", "Bilcenter-i-Norr").
Everything that compares names goes through normalize_name() first.
"""

import re

# Accented letters seen in Swedish/Nordic/European owner names -> base letter
_ACCENT_MAP = {
    "é": "e", "è": "e", "ê": "e", "ë": "e",
    "É": "E", "È": "E", "Ê": "E", "Ë": "E",
    "å": "a", "ä": "a", "á": "a", "à": "a", "â": "a",
    "Å": "A", "Ä": "A", "Á": "A", "À": "A", "Â": "A",
    "ö": "o", "ø": "o", "ó": "o", "ò": "o", "ô": "o",
    "Ö": "O", "Ø": "O", "Ó": "O", "Ò": "O", "Ô": "O",
    "ü": "u", "ú": "u", "ù": "u", "û": "u",
    "Ü": "U", "Ú": "U", "Ù": "U", "Û": "U",
    "ï": "i", "í": "i", "ì": "i", "î": "i",
    "Ï": "I", "Í": "I", "Ì": "I", "Î": "I",
    "ñ": "n", "Ñ": "N",
    "ç": "c", "Ç": "C",
}
_ACCENT_TABLE = str.maketrans(_ACCENT_MAP)

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[.,\-&]")


def strip_accents(text: str) -> str:
    """Replace known diacritic letters with their base Latin letter."""
    return text.translate(_ACCENT_TABLE)


def normalize_name(name) -> str:
    """Canonical form of a free-text name.

    "Kalles Bil- & Däckservice AB" -> "kalles bil dackservice ab"

    Never raises; None or empty input gives "".
    """
    if not name:
        return ""
    text = strip_accents(str(name)).lower()
    text = _WHITESPACE_RE.sub(" ", text)
    text = _PUNCTUATION_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()
