"""Unit tests for name normalization."""

import pytest

from lib.names.normalize import normalize_name, strip_accents


@pytest.mark.no_db
class TestStripAccents:

    def test_swedish_letters(self):
        assert strip_accents("Åke Östlund Ängelholm") == "Ake Ostlund Angelholm"

    def test_other_diacritics(self):
        assert strip_accents("José Müller Niño") == "Jose Muller Nino"

    def test_plain_text_unchanged(self):
        assert strip_accents("Svensson") == "Svensson"


@pytest.mark.no_db
class TestNormalizeName:

    def test_lowercases_and_strips_accents(self):
        assert normalize_name("Bilhandel i Göteborg AB") == "bilhandel i goteborg ab"

    def test_collapses_whitespace(self):
        assert normalize_name("  Kalles    Bil\tAB  ") == "kalles bil ab"

    def test_removes_punctuation(self):
        assert normalize_name("Bil- & Däck-Center, Umeå A.B.") == "bil dack center umea a b"

    def test_empty_and_none(self):
        assert normalize_name("") == ""
        assert normalize_name(None) == ""
        assert normalize_name("  -&-  ") == ""

    @pytest.mark.parametrize("raw", [
        "Riddermark Bil AB",
        "ÖSTERMALMS BILCENTER",
        "Bil-Center & Co., Ängby",
        "  Ñandú   Motors ",
        "",
    ])
    def test_idempotent(self, raw):
        once = normalize_name(raw)
        assert normalize_name(once) == once
