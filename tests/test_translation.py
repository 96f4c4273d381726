"""Tests for imtrans.translation - TranslationOrchestrator"""

from conftest import FakeTranslator
from imtrans.errors import TransportError
from imtrans.models import BoundingBox, TextBlock
from imtrans.translation import TranslationOrchestrator


def _blocks(*texts):
    return [TextBlock(t, BoundingBox(0, i * 10, 10, i * 10 + 5)) for i, t in enumerate(texts)]


def test_failed_block_keeps_original_text():
    translator = FakeTranslator(fail_on={"二"}, error=TransportError("server down"))
    orchestrator = TranslationOrchestrator(translator)

    outcomes = orchestrator.translate_all(_blocks("一", "二", "三"), "en", "zh")

    assert [o.translated_text for o in outcomes] == ["[en] 一", "二", "[en] 三"]
    assert [o.failed for o in outcomes] == [False, True, False]
    assert outcomes[1].error == "server down"


def test_unexpected_error_on_one_block_does_not_stop_batch():
    translator = FakeTranslator(fail_on={"二"}, error=RuntimeError("CUDA out of memory"))
    orchestrator = TranslationOrchestrator(translator)

    outcomes = orchestrator.translate_all(_blocks("一", "二", "三"), "en", "zh")

    assert len(outcomes) == 3
    assert [o.failed for o in outcomes] == [False, True, False]
    assert outcomes[1].translated_text == "二"
    assert outcomes[1].error == "CUDA out of memory"
    assert outcomes[2].translated_text == "[en] 三"


def test_order_and_length_preserved():
    blocks = _blocks("a1", "b2", "c3", "d4")
    outcomes = TranslationOrchestrator(FakeTranslator()).translate_all(blocks, "fr")
    assert [o.block for o in outcomes] == blocks


def test_translates_sequentially_with_source_hint():
    translator = FakeTranslator()
    TranslationOrchestrator(translator).translate_all(_blocks("a1", "b2"), "en", "ja")
    assert translator.calls == [("a1", "en", "ja"), ("b2", "en", "ja")]


def test_progress_per_block(status):
    TranslationOrchestrator(FakeTranslator(), status).translate_all(_blocks("a1", "b2"), "en")
    assert status.messages == ["Translating block 1/2...", "Translating block 2/2..."]
    assert status.percents == [75, 85]


def test_empty_batch():
    assert TranslationOrchestrator(FakeTranslator()).translate_all([], "en") == []
