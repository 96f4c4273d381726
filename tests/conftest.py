import sys
from pathlib import Path

import pytest

# Ensure the project root is importable when running `pytest` via its entrypoint,
# where `sys.path[0]` may not be the repo root.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from imtrans.errors import RecognitionError  # noqa: E402
from imtrans.models import BoundingBox, LanguageCode, RecognitionResult, TextRegion  # noqa: E402


def make_result(confidence=90.0, lines=(), paragraphs=(), full_text=None, language=None, image_size=None):
    """RecognitionResult from (text, (x0, y0, x1, y1)) tuples"""
    line_regions = [TextRegion(t, BoundingBox(*box)) for t, box in lines]
    par_regions = [TextRegion(t, BoundingBox(*box)) for t, box in paragraphs]
    if full_text is None:
        full_text = "\n".join(r.text for r in (par_regions or line_regions))
    return RecognitionResult(
        full_text=full_text,
        confidence=confidence,
        paragraphs=par_regions,
        lines=line_regions,
        language=language,
        image_size=image_size,
    )


class FakeRunner:
    """RecognitionRunner stand-in returning canned results per language"""

    def __init__(self, results=None, errors=None):
        self.results = dict(results or {})
        self.errors = dict(errors or {})
        self.calls = []

    def run(self, image_data, language, on_progress=None):
        if language == LanguageCode.AUTO:
            raise ValueError("auto must be resolved before recognition")
        self.calls.append(language)
        if language in self.errors:
            raise RecognitionError(self.errors[language])
        if on_progress:
            on_progress(0.0)
            on_progress(1.0)
        result = self.results.get(language)
        if result is None:
            result = make_result(confidence=0.0, full_text="")
        if result.language is None:
            result.language = language
        return result


class FakeTranslator:
    """Prefixes text with the target language; raises for texts listed in fail_on"""

    def __init__(self, fail_on=(), error=None):
        self.fail_on = set(fail_on)
        self.error = error
        self.calls = []

    def translate(self, text, target_language="en", source_language=None):
        self.calls.append((text, target_language, source_language))
        if text in self.fail_on:
            raise self.error
        return f"[{target_language}] {text}"


class FakeAcquirer:
    def __init__(self, image=b"png-bytes", error=None):
        self.image = image
        self.error = error
        self.rects = []
        self.paths = []

    def capture_region(self, rect):
        self.rects.append(rect)
        if self.error:
            raise self.error
        return self.image

    def load_image_file(self, path):
        self.paths.append(path)
        if self.error:
            raise self.error
        return self.image


class StatusRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, message, percent, detail=None):
        self.events.append((message, percent, detail))

    @property
    def messages(self):
        return [m for m, _, _ in self.events]

    @property
    def percents(self):
        return [p for _, p, _ in self.events]


@pytest.fixture
def status():
    return StatusRecorder()
