"""Adaptive recognition: language choice, one primary pass, one optional fallback.

The flow is a fixed two-branch state machine::

    IDLE -> RUNNING_PRIMARY -> CONFIDENCE_CHECK -> [RUNNING_FALLBACK] -> DONE
                            \\-> FAILED

Only auto mode reaches the confidence check. An explicitly chosen language is
trusted and never retried.
"""
import logging
from enum import Enum
from typing import Optional

from .config import PipelineConfig
from .errors import RecognitionError
from .language import fallback_language, is_likely_vertical, primary_language, quick_detect
from .models import LanguageCode, RecognitionResult, RegionRequest
from .ocr_engine import RecognitionRunner
from .progress import StatusFn, notify

logger = logging.getLogger(__name__)

# Progress milestones (percent of the whole run)
QUICK_DETECT_PERCENT = 10
PRIMARY_START_PERCENT = 20
PRIMARY_SPAN = 25
FALLBACK_START_PERCENT = 50
FALLBACK_SPAN = 20
RECOGNITION_DONE_PERCENT = 75

class RecognizerState(Enum):
    IDLE = "idle"
    RUNNING_PRIMARY = "running_primary"
    CONFIDENCE_CHECK = "confidence_check"
    RUNNING_FALLBACK = "running_fallback"
    DONE = "done"
    FAILED = "failed"

class AdaptiveRecognizer:
    def __init__(self, runner: RecognitionRunner, status: Optional[StatusFn] = None):
        self.runner = runner
        self.status = status
        self.state = RecognizerState.IDLE
        self.primary_language: Optional[LanguageCode] = None
        self.fallback_language: Optional[LanguageCode] = None

    def resolve_primary(self, request: RegionRequest, config: PipelineConfig) -> LanguageCode:
        if config.ocr_language != LanguageCode.AUTO:
            return config.ocr_language

        if not config.quick_detect:
            return primary_language(config.ocr_language, request.width, request.height)

        notify(self.status, "Detecting language...", QUICK_DETECT_PERCENT)
        detected = quick_detect(self.runner, request)
        if detected == LanguageCode.JPN and is_likely_vertical(request.width, request.height):
            detected = LanguageCode.JPN_VERT
        return detected

    def _pass(self, request: RegionRequest, language: LanguageCode, start: float, span: float):
        def on_progress(fraction: float):
            percent = round(fraction * 100)
            notify(self.status, f"Recognizing ({language.value})...", start + fraction * span, f"{percent}%")

        return self.runner.run(request.image, language, on_progress)

    def recognize(self, request: RegionRequest, config: PipelineConfig) -> RecognitionResult:
        self.state = RecognizerState.RUNNING_PRIMARY
        self.primary_language = None
        self.fallback_language = None
        try:
            primary = self.resolve_primary(request, config)
            self.primary_language = primary
            notify(self.status, f"Running OCR ({primary.value})...", PRIMARY_START_PERCENT,
                   "Loading language data...")
            result = self._pass(request, primary, PRIMARY_START_PERCENT, PRIMARY_SPAN)

            if config.ocr_language == LanguageCode.AUTO:
                self.state = RecognizerState.CONFIDENCE_CHECK
                if result.confidence < config.confidence_threshold:
                    result = self._retry(request, primary, result)
        except RecognitionError:
            self.state = RecognizerState.FAILED
            raise

        self.state = RecognizerState.DONE
        logger.info(f"OCR complete, confidence: {result.confidence:.1f}")
        notify(self.status, "OCR Complete!", RECOGNITION_DONE_PERCENT,
               f"Confidence: {round(result.confidence)}%")
        return result

    def _retry(self, request: RegionRequest, primary: LanguageCode,
               primary_result: RecognitionResult) -> RecognitionResult:
        self.state = RecognizerState.RUNNING_FALLBACK
        alternate = fallback_language(primary)
        self.fallback_language = alternate
        logger.info(f"Low confidence ({primary_result.confidence:.1f}), trying {alternate.value}...")
        notify(self.status, f"Low confidence, trying {alternate.value}...", FALLBACK_START_PERCENT)

        alt_result = self._pass(request, alternate, FALLBACK_START_PERCENT, FALLBACK_SPAN)
        if alt_result.confidence > primary_result.confidence:
            logger.info(f"Using {alternate.value} (confidence: {alt_result.confidence:.1f} "
                        f"vs {primary_result.confidence:.1f})")
            return alt_result
        return primary_result
