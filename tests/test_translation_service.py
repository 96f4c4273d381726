"""Tests for imtrans.translation_service - TransformersTranslator (no model download)"""

from unittest.mock import MagicMock

import pytest

pytest.importorskip("torch")
pytest.importorskip("transformers")

from imtrans.errors import TranslationError  # noqa: E402
from imtrans.translation_service import TransformersTranslator  # noqa: E402


def test_detects_model_family():
    translator = TransformersTranslator()
    assert translator._detect_family() == "nllb"
    assert translator._detect_family("facebook/m2m100_418M") == "m2m100"


def test_cache_hit_skips_model():
    translator = TransformersTranslator()
    translator._cache_set((translator.model_name, "你好", "zh", "en"), "Hello")
    translator.ensure_loaded = MagicMock()

    assert translator.translate("你好", "en", "zh") == "Hello"
    translator.ensure_loaded.assert_not_called()


def test_cache_evicts_oldest():
    translator = TransformersTranslator()
    translator.cache_max_items = 2
    for i in range(3):
        translator._cache_set(i, str(i))
    assert list(translator.cache.keys()) == [1, 2]


def test_load_failure_raises_translation_error():
    translator = TransformersTranslator()

    def fail_load():
        translator.last_error = "model not found"
        return False

    translator.ensure_loaded = fail_load
    with pytest.raises(TranslationError, match="model not found"):
        translator.translate("你好", "en")


def test_unsupported_target_language():
    translator = TransformersTranslator()
    translator.ensure_loaded = MagicMock(return_value=True)
    with pytest.raises(TranslationError, match="Unsupported target language"):
        translator.translate("你好", "tlh")
