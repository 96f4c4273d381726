"""Tests for imtrans.language"""

import pytest

from conftest import FakeRunner, make_result
from imtrans.language import (LOW_CONFIDENCE_THRESHOLD, fallback_language, is_likely_vertical,
                              primary_language, quick_detect)
from imtrans.models import LanguageCode, RegionRequest


class TestIsLikelyVertical:
    def test_tall_region(self):
        assert is_likely_vertical(100, 121)

    def test_margin_is_exclusive(self):
        assert not is_likely_vertical(100, 120)

    def test_wide_region(self):
        assert not is_likely_vertical(300, 100)


class TestPrimaryLanguage:
    def test_explicit_language_untouched(self):
        assert primary_language(LanguageCode.KOR, 100, 500) == LanguageCode.KOR

    def test_auto_tall_uses_vertical_japanese(self):
        assert primary_language(LanguageCode.AUTO, 100, 300) == LanguageCode.JPN_VERT

    def test_auto_wide_uses_chinese(self):
        assert primary_language(LanguageCode.AUTO, 300, 100) == LanguageCode.CHI_SIM


class TestFallbackLanguage:
    @pytest.mark.parametrize("primary, expected", [
        (LanguageCode.JPN_VERT, LanguageCode.JPN),
        (LanguageCode.JPN, LanguageCode.JPN_VERT),
        (LanguageCode.CHI_SIM, LanguageCode.JPN),
        (LanguageCode.KOR, LanguageCode.CHI_SIM),
        (LanguageCode.ENG, LanguageCode.CHI_SIM),
    ])
    def test_table(self, primary, expected):
        assert fallback_language(primary) == expected

    def test_japanese_orientations_are_inverse(self):
        for code in (LanguageCode.JPN, LanguageCode.JPN_VERT):
            assert fallback_language(fallback_language(code)) == code

    def test_never_auto(self):
        for code in LanguageCode:
            if code != LanguageCode.AUTO:
                assert fallback_language(code) != LanguageCode.AUTO


def test_quick_detect_uses_chinese_pass_and_script_counts():
    runner = FakeRunner({LanguageCode.CHI_SIM: make_result(full_text="こんにちは")})
    detected = quick_detect(runner, RegionRequest(b"img", 200, 100))
    assert detected == LanguageCode.JPN
    assert runner.calls == [LanguageCode.CHI_SIM]


def test_threshold_default():
    assert LOW_CONFIDENCE_THRESHOLD == 40.0
