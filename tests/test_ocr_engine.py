"""Tests for imtrans.ocr_engine"""

from io import BytesIO
from unittest.mock import patch

import pytest
from PIL import Image

from imtrans.errors import RecognitionError
from imtrans.models import BoundingBox, LanguageCode, RecognitionResult
from imtrans.ocr_engine import (OcrEngine, RecognitionRunner, TesseractEngine,
                                regions_from_tesseract_data)


def _tesseract_data(rows):
    """rows: (block, par, line, text, conf, left, top, width, height)"""
    keys = ["block_num", "par_num", "line_num", "text", "conf", "left", "top", "width", "height"]
    data = {k: [] for k in keys}
    for row in rows:
        for key, value in zip(keys, row):
            data[key].append(value)
    return data


def _png(width=60, height=30):
    buffer = BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


class TestRegionsFromTesseractData:
    def test_groups_words_into_lines_and_paragraphs(self):
        data = _tesseract_data([
            (1, 1, 1, "", -1, 0, 0, 100, 100),
            (1, 1, 1, "Hello", 90, 10, 10, 40, 10),
            (1, 1, 1, "world", 80, 55, 12, 40, 10),
            (1, 1, 2, "again", 70, 10, 30, 40, 10),
            (2, 1, 1, "Other", 60, 10, 80, 40, 10),
        ])

        paragraphs, lines, confidence = regions_from_tesseract_data(data, LanguageCode.ENG)

        assert [line.text for line in lines] == ["Hello world", "again", "Other"]
        assert lines[0].bbox == BoundingBox(10, 10, 95, 22)
        assert [p.text for p in paragraphs] == ["Hello world\nagain", "Other"]
        assert paragraphs[0].bbox == BoundingBox(10, 10, 95, 40)
        assert confidence == pytest.approx(75)

    def test_cjk_words_join_without_spaces(self):
        data = _tesseract_data([
            (1, 1, 1, "你", 90, 0, 0, 10, 10),
            (1, 1, 1, "好", 90, 10, 0, 10, 10),
        ])
        _, lines, _ = regions_from_tesseract_data(data, LanguageCode.CHI_SIM)
        assert lines[0].text == "你好"

    def test_no_words_means_zero_confidence(self):
        paragraphs, lines, confidence = regions_from_tesseract_data(_tesseract_data([]), LanguageCode.JPN)
        assert (paragraphs, lines, confidence) == ([], [], 0.0)


class TestTesseractEngine:
    def test_recognize_reports_image_size_and_progress(self):
        data = _tesseract_data([(1, 1, 1, "テスト", 88, 5, 5, 30, 10)])
        progress = []

        with patch("imtrans.ocr_engine.pytesseract.image_to_data", return_value=data) as image_to_data:
            result = TesseractEngine().recognize(_png(), LanguageCode.JPN_VERT, progress.append)

        assert image_to_data.call_args.kwargs["lang"] == "jpn_vert"
        assert result.full_text == "テスト"
        assert result.language == LanguageCode.JPN_VERT
        assert (result.image_size.width, result.image_size.height) == (60, 30)
        assert progress == [0.0, 1.0]

    def test_undecodable_image(self):
        with pytest.raises(RecognitionError, match="Could not decode image"):
            TesseractEngine().recognize(b"not an image", LanguageCode.ENG)


class _BrokenEngine(OcrEngine):
    name = "broken"

    def recognize(self, image_data, language, on_progress=None):
        raise OSError("traineddata missing")


class _NoisyEngine(OcrEngine):
    name = "noisy"

    def recognize(self, image_data, language, on_progress=None):
        on_progress(-0.5)
        on_progress(0.5)
        on_progress(3.0)
        return RecognitionResult(full_text="", confidence=0, language=language)


class TestRecognitionRunner:
    def test_rejects_auto(self):
        with pytest.raises(ValueError):
            RecognitionRunner(_NoisyEngine()).run(b"img", LanguageCode.AUTO)

    def test_wraps_engine_errors(self):
        with pytest.raises(RecognitionError, match="traineddata missing"):
            RecognitionRunner(_BrokenEngine()).run(b"img", LanguageCode.KOR)

    def test_clamps_progress(self):
        seen = []
        RecognitionRunner(_NoisyEngine()).run(b"img", LanguageCode.ENG, seen.append)
        assert seen == [0.0, 0.5, 1.0]
