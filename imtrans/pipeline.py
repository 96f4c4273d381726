"""Stage glue between acquisition, recognition, translation and layout.

Two entry modes are kept deliberately separate:

* ``run_selection`` treats a user-dragged selection as one unit. Its text is
  the line-joined raw OCR text, translated in one call, and shown as a single
  overlay covering the selection.
* ``run_scan`` / ``run_file`` / ``run_image`` split the recognized image into blocks,
  translate each block and place one overlay per block.

Every run returns a :class:`PipelineOutcome`; stage failures never escape as
exceptions.
"""
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .blocks import MIN_BLOCK_CHARS, extract_blocks, extract_raw_text
from .config import PipelineConfig
from .errors import ErrorKind, ImtransError, NoTextDetectedError, UnexpectedError
from .layout import BLOCK_FONT_BOUNDS, placement, region_placement
from .models import (DisplayRect, ImageSize, OverlayItem, RecognitionResult, RegionRequest,
                     TranslationMode, TranslationOutcome)
from .ocr_engine import RecognitionRunner
from .progress import StatusFn, notify
from .recognizer import AdaptiveRecognizer
from .translation import TranslationOrchestrator

logger = logging.getLogger(__name__)

class RunStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"

@dataclass
class PipelineOutcome:
    """Tagged result of one run"""
    status: RunStatus
    mode: TranslationMode
    message: str = ""
    error_kind: Optional[ErrorKind] = None
    recognition: Optional[RecognitionResult] = None
    source_text: str = ""
    translations: List[TranslationOutcome] = field(default_factory=list)
    overlays: List[OverlayItem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.SUCCESS

    @property
    def failed_blocks(self) -> int:
        return sum(1 for t in self.translations if t.failed)

class TranslationPipeline:
    def __init__(self, acquirer, runner: RecognitionRunner, translator,
                 status: Optional[StatusFn] = None):
        self.acquirer = acquirer
        self.runner = runner
        self.translator = translator
        self.status = status

    def _fail(self, outcome: PipelineOutcome, error: ImtransError) -> PipelineOutcome:
        outcome.status = RunStatus.FAILED
        outcome.error_kind = error.kind
        outcome.message = error.message
        logger.error(f"{outcome.mode.value} run failed ({error.kind.value}): {error.message}")
        notify(self.status, f"Error: {error.message}", 100)
        return outcome

    def _fail_unexpected(self, outcome: PipelineOutcome, error: Exception) -> PipelineOutcome:
        logger.exception(f"Unexpected error during {outcome.mode.value} run")
        return self._fail(outcome, UnexpectedError(f"Unexpected error: {error}"))

    def _recognize(self, image: bytes, rect: DisplayRect, config: PipelineConfig) -> RecognitionResult:
        recognizer = AdaptiveRecognizer(self.runner, self.status)
        return recognizer.recognize(RegionRequest(image, rect.width, rect.height), config)

    def run_selection(self, rect: DisplayRect, config: PipelineConfig) -> PipelineOutcome:
        """Translate a dragged selection as one unit"""
        outcome = PipelineOutcome(RunStatus.SUCCESS, TranslationMode.REGION_SELECT)
        start_time = time.time()
        try:
            notify(self.status, "Capturing selected area...", 5)
            image = self.acquirer.capture_region(rect)
            logger.debug(f"Captured region, {len(image)} bytes")

            result = self._recognize(image, rect, config)
            outcome.recognition = result

            text = extract_raw_text(result)
            if len(text) < MIN_BLOCK_CHARS:
                raise NoTextDetectedError("No text detected in selection")
            outcome.source_text = text
            logger.info(f"Detected text: {text[:80]!r}")

            notify(self.status, "Translating...", 80)
            orchestrator = TranslationOrchestrator(self.translator, self.status)
            source = result.language.iso_code if result.language else None
            translated = orchestrator.translate_text(text, config.target_language, source)
        except ImtransError as e:
            return self._fail(outcome, e)
        except Exception as e:
            return self._fail_unexpected(outcome, e)

        outcome.overlays.append(OverlayItem(text, translated, region_placement(rect, translated)))
        outcome.message = "Translation complete!"
        logger.info(f"Selection translated in {time.time() - start_time:.2f}s")
        notify(self.status, outcome.message, 100)
        return outcome

    def run_scan(self, rect: DisplayRect, config: PipelineConfig) -> PipelineOutcome:
        """Capture a screen region and translate it block by block"""
        try:
            notify(self.status, "Capturing image...", 5)
            image = self.acquirer.capture_region(rect)
        except ImtransError as e:
            return self._fail(PipelineOutcome(RunStatus.FAILED, TranslationMode.SCAN), e)
        except Exception as e:
            return self._fail_unexpected(PipelineOutcome(RunStatus.FAILED, TranslationMode.SCAN), e)
        return self.run_image(image, rect, config)

    def run_file(self, path: str, display_rect: DisplayRect, config: PipelineConfig) -> PipelineOutcome:
        """Translate an image file from disk that is shown at display_rect"""
        try:
            notify(self.status, "Loading image...", 5)
            image = self.acquirer.load_image_file(path)
        except ImtransError as e:
            return self._fail(PipelineOutcome(RunStatus.FAILED, TranslationMode.SCAN), e)
        except Exception as e:
            return self._fail_unexpected(PipelineOutcome(RunStatus.FAILED, TranslationMode.SCAN), e)
        return self.run_image(image, display_rect, config)

    def run_image(self, image: bytes, display_rect: DisplayRect, config: PipelineConfig) -> PipelineOutcome:
        """Translate an already-acquired image shown at display_rect"""
        outcome = PipelineOutcome(RunStatus.SUCCESS, TranslationMode.SCAN)
        start_time = time.time()
        try:
            result = self._recognize(image, display_rect, config)
            outcome.recognition = result
            logger.info(f"OCR result: {len(result.paragraphs)} paragraphs, {len(result.lines)} lines, "
                        f"confidence {result.confidence:.1f}")

            blocks = extract_blocks(result)
            if not blocks:
                if result.paragraphs or result.lines:
                    raise NoTextDetectedError("No readable text found")
                raise NoTextDetectedError("No text detected in image")

            logger.info(f"Found {len(blocks)} text blocks to translate")
            notify(self.status, f"Translating {len(blocks)} text blocks...", 75)
            orchestrator = TranslationOrchestrator(self.translator, self.status)
            source = result.language.iso_code if result.language else None
            outcome.translations = orchestrator.translate_all(blocks, config.target_language, source)
        except ImtransError as e:
            return self._fail(outcome, e)
        except Exception as e:
            return self._fail_unexpected(outcome, e)

        natural = result.image_size or ImageSize(display_rect.width, display_rect.height)
        for translation in outcome.translations:
            text = translation.translated_text
            if not text or not text.strip():
                continue
            outcome.overlays.append(OverlayItem(
                original_text=translation.block.text,
                translated_text=text,
                placement=placement(translation.block.bbox, text, display_rect, natural,
                                    font_bounds=BLOCK_FONT_BOUNDS),
                failed=translation.failed,
            ))

        outcome.source_text = "\n".join(t.block.text for t in outcome.translations)
        outcome.message = f"Translated {len(outcome.translations)} text blocks!"
        if outcome.failed_blocks:
            outcome.message += f" ({outcome.failed_blocks} kept original text)"
        logger.info(f"Scan finished in {time.time() - start_time:.2f}s: {outcome.message}")
        notify(self.status, outcome.message, 100)
        return outcome
