"""Tests for imtrans.blocks"""

from conftest import make_result
from imtrans.blocks import extract_blocks, extract_raw_text
from imtrans.models import BoundingBox, RecognitionResult


def test_falls_back_to_lines_and_drops_short_text():
    result = make_result(lines=[("Hi", (0, 0, 10, 10)), ("x", (0, 20, 5, 30))])

    blocks = extract_blocks(result)

    assert [b.text for b in blocks] == ["Hi"]
    assert blocks[0].bbox == BoundingBox(0, 0, 10, 10)


def test_prefers_paragraphs_over_lines():
    result = make_result(
        paragraphs=[("first paragraph", (0, 0, 100, 40))],
        lines=[("first", (0, 0, 50, 20)), ("paragraph", (0, 20, 100, 40))],
    )
    assert [b.text for b in extract_blocks(result)] == ["first paragraph"]


def test_trims_and_keeps_order():
    result = make_result(lines=[("  bb ", (0, 0, 1, 1)), (" ", (0, 0, 1, 1)), ("aa", (0, 0, 1, 1))])
    assert [b.text for b in extract_blocks(result)] == ["bb", "aa"]


def test_empty_result_has_no_blocks():
    assert extract_blocks(RecognitionResult(full_text="", confidence=0)) == []


def test_extraction_is_idempotent():
    result = make_result(lines=[("one", (0, 0, 1, 1)), ("two", (0, 2, 1, 3))])
    assert extract_blocks(result) == extract_blocks(result)


def test_raw_text_joins_lines():
    result = make_result(lines=[("上", (0, 0, 1, 1)), ("下 ", (0, 2, 1, 3))])
    assert extract_raw_text(result) == "上\n下"


def test_raw_text_falls_back_to_full_text():
    assert extract_raw_text(RecognitionResult(full_text="  hello  ", confidence=50)) == "hello"
    assert extract_raw_text(RecognitionResult(full_text="   ", confidence=50)) == ""
