"""Tests for imtrans.pipeline - TranslationPipeline"""

from conftest import FakeAcquirer, FakeRunner, FakeTranslator, make_result
from imtrans.config import PipelineConfig
from imtrans.errors import AcquisitionError, ErrorKind, TranslationError
from imtrans.models import DisplayRect, ImageSize, LanguageCode, TranslationMode
from imtrans.pipeline import RunStatus, TranslationPipeline

RECT = DisplayRect(100, 200, 400, 200)
CHINESE = PipelineConfig(ocr_language=LanguageCode.CHI_SIM)


def _pipeline(result=None, translator=None, acquirer=None, status=None, errors=None):
    runner = FakeRunner({LanguageCode.CHI_SIM: result} if result else {}, errors=errors)
    return TranslationPipeline(acquirer or FakeAcquirer(), runner, translator or FakeTranslator(), status)


class TestSelection:
    def test_translates_selection_as_one_unit(self, status):
        result = make_result(lines=[("你好", (0, 0, 10, 10)), ("世界", (0, 10, 10, 20))])
        translator = FakeTranslator()

        outcome = _pipeline(result, translator, status=status).run_selection(RECT, CHINESE)

        assert outcome.ok
        assert outcome.mode == TranslationMode.REGION_SELECT
        assert outcome.source_text == "你好\n世界"
        assert translator.calls == [("你好\n世界", "en", "zh")]
        assert len(outcome.overlays) == 1
        placement = outcome.overlays[0].placement
        assert (placement.left, placement.top, placement.width, placement.height) == (100, 200, 400, 200)
        assert outcome.message == "Translation complete!"
        assert status.events[-1][:2] == ("Translation complete!", 100)

    def test_short_text_is_no_text(self):
        result = make_result(lines=[("x", (0, 0, 1, 1))])
        outcome = _pipeline(result).run_selection(RECT, CHINESE)
        assert outcome.status == RunStatus.FAILED
        assert outcome.error_kind == ErrorKind.NO_TEXT
        assert outcome.message == "No text detected in selection"

    def test_translation_failure_fails_run(self, status):
        result = make_result(lines=[("你好", (0, 0, 10, 10))])
        translator = FakeTranslator(fail_on={"你好"}, error=TranslationError("Translation API error (500)"))

        outcome = _pipeline(result, translator, status=status).run_selection(RECT, CHINESE)

        assert not outcome.ok
        assert outcome.error_kind == ErrorKind.TRANSLATION
        assert status.events[-1][:2] == ("Error: Translation API error (500)", 100)

    def test_capture_failure(self):
        acquirer = FakeAcquirer(error=AcquisitionError("Region not visible"))
        outcome = _pipeline(acquirer=acquirer).run_selection(RECT, CHINESE)
        assert outcome.error_kind == ErrorKind.ACQUISITION
        assert outcome.message == "Region not visible"

    def test_recognition_failure(self):
        outcome = _pipeline(errors={LanguageCode.CHI_SIM: "boom"}).run_selection(RECT, CHINESE)
        assert outcome.error_kind == ErrorKind.RECOGNITION

    def test_unexpected_translator_error_fails_run(self, status):
        result = make_result(lines=[("你好", (0, 0, 10, 10))])
        translator = FakeTranslator(fail_on={"你好"}, error=RuntimeError("CUDA out of memory"))

        outcome = _pipeline(result, translator, status=status).run_selection(RECT, CHINESE)

        assert outcome.status == RunStatus.FAILED
        assert outcome.error_kind == ErrorKind.INTERNAL
        assert outcome.message == "Unexpected error: CUDA out of memory"
        assert status.events[-1][:2] == ("Error: Unexpected error: CUDA out of memory", 100)


class TestScan:
    def test_one_overlay_per_block(self):
        result = make_result(
            paragraphs=[("第一段", (0, 0, 200, 100)), ("第二段", (200, 100, 400, 200))],
            image_size=ImageSize(800, 400),
        )

        outcome = _pipeline(result).run_scan(RECT, CHINESE)

        assert outcome.ok
        assert outcome.mode == TranslationMode.SCAN
        assert [o.translated_text for o in outcome.overlays] == ["[en] 第一段", "[en] 第二段"]
        second = outcome.overlays[1].placement
        assert (second.left, second.top, second.width, second.height) == (200, 250, 100, 50)
        assert outcome.message == "Translated 2 text blocks!"

    def test_failed_block_still_gets_overlay(self):
        result = make_result(lines=[("甲乙", (0, 0, 10, 10)), ("丙丁", (0, 10, 10, 20))])
        translator = FakeTranslator(fail_on={"甲乙"}, error=TranslationError("down"))

        outcome = _pipeline(result, translator).run_scan(RECT, CHINESE)

        assert outcome.ok
        assert outcome.failed_blocks == 1
        assert outcome.overlays[0].translated_text == "甲乙"
        assert outcome.overlays[0].failed
        assert "1 kept original text" in outcome.message

    def test_no_candidates(self):
        outcome = _pipeline(make_result(full_text="")).run_scan(RECT, CHINESE)
        assert outcome.error_kind == ErrorKind.NO_TEXT
        assert outcome.message == "No text detected in image"

    def test_only_noise(self):
        result = make_result(lines=[("a", (0, 0, 1, 1)), (" ", (0, 0, 1, 1))])
        outcome = _pipeline(result).run_scan(RECT, CHINESE)
        assert outcome.message == "No readable text found"

    def test_missing_image_size_uses_display_size(self):
        result = make_result(lines=[("hello", (10, 20, 110, 70))])
        outcome = _pipeline(result).run_image(b"img", DisplayRect(0, 0, 400, 200), CHINESE)
        p = outcome.overlays[0].placement
        assert (p.left, p.top, p.width, p.height) == (10, 20, 100, 50)

    def test_progress_never_goes_backwards(self, status):
        result = make_result(confidence=20, lines=[("你好", (0, 0, 10, 10)), ("再见", (0, 10, 10, 20))])
        runner = FakeRunner({LanguageCode.CHI_SIM: result, LanguageCode.JPN: make_result(confidence=10)})
        pipeline = TranslationPipeline(FakeAcquirer(), runner, FakeTranslator(), status)

        outcome = pipeline.run_scan(RECT, PipelineConfig(quick_detect=False))

        assert outcome.ok
        assert status.percents == sorted(status.percents)
        assert status.percents[0] == 5
        assert status.percents[-1] == 100

    def test_unexpected_translator_error_keeps_original_text(self):
        result = make_result(lines=[("三四", (0, 0, 10, 10)), ("五六", (0, 10, 10, 20))])
        translator = FakeTranslator(fail_on={"三四"}, error=IndexError("index out of range in self"))

        outcome = _pipeline(result, translator).run_scan(RECT, CHINESE)

        assert outcome.ok
        assert len(outcome.translations) == 2
        assert outcome.failed_blocks == 1
        assert outcome.translations[0].error == "index out of range in self"
        assert [o.translated_text for o in outcome.overlays] == ["三四", "[en] 五六"]

    def test_unexpected_recognition_error_fails_run(self, status):
        class BrokenRunner:
            def run(self, image_data, language, on_progress=None):
                raise KeyError("chi_sim")

        pipeline = TranslationPipeline(FakeAcquirer(), BrokenRunner(), FakeTranslator(), status)

        outcome = pipeline.run_scan(RECT, CHINESE)

        assert outcome.status == RunStatus.FAILED
        assert outcome.mode == TranslationMode.SCAN
        assert outcome.error_kind == ErrorKind.INTERNAL
        assert status.percents[-1] == 100

    def test_unexpected_capture_error_fails_run(self):
        acquirer = FakeAcquirer(error=OSError("display went away"))
        outcome = _pipeline(acquirer=acquirer).run_scan(RECT, CHINESE)
        assert outcome.error_kind == ErrorKind.INTERNAL
        assert outcome.message == "Unexpected error: display went away"


class TestImageFile:
    def test_translates_loaded_file(self):
        result = make_result(paragraphs=[("看板", (0, 0, 400, 200))], image_size=ImageSize(800, 400))
        acquirer = FakeAcquirer(image=b"file-bytes")

        outcome = _pipeline(result, acquirer=acquirer).run_file("/tmp/page.png", RECT, CHINESE)

        assert outcome.ok
        assert acquirer.paths == ["/tmp/page.png"]
        assert acquirer.rects == []
        p = outcome.overlays[0].placement
        assert (p.left, p.top, p.width, p.height) == (100, 200, 200, 100)

    def test_unreadable_file(self, status):
        acquirer = FakeAcquirer(error=AcquisitionError("Could not load image: /tmp/missing.png"))

        outcome = _pipeline(acquirer=acquirer, status=status).run_file("/tmp/missing.png", RECT, CHINESE)

        assert outcome.error_kind == ErrorKind.ACQUISITION
        assert outcome.mode == TranslationMode.SCAN
        assert status.events[-1][:2] == ("Error: Could not load image: /tmp/missing.png", 100)
