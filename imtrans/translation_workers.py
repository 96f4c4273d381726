import logging
import time
from typing import List, Optional

from PyQt6.QtCore import QThread, pyqtSignal

from .config import PipelineConfig
from .models import DisplayRect, TranslationMode
from .pipeline import PipelineOutcome, TranslationPipeline

logger = logging.getLogger(__name__)

class PipelineWorker(QThread):
    """Worker thread running one Select, Scan or Open Image action"""

    progress = pyqtSignal(str, float, str)  # message, percent, detail
    outcome_ready = pyqtSignal(object)  # PipelineOutcome for one region
    run_finished = pyqtSignal(list)  # all outcomes of this action

    def __init__(self, pipeline: TranslationPipeline, mode: TranslationMode,
                 rects: List[DisplayRect], config: PipelineConfig, image_path: Optional[str] = None):
        super().__init__()
        self.pipeline = pipeline
        self.mode = mode
        self.rects = list(rects)
        self.config = config
        self.image_path = image_path
        self.pipeline.status = self._emit_progress

    def _emit_progress(self, message: str, percent: float, detail=None):
        self.progress.emit(message, float(percent), detail or "")

    def run(self):
        start_time = time.time()
        outcomes: List[PipelineOutcome] = []
        total = len(self.rects)
        for index, rect in enumerate(self.rects, start=1):
            if total > 1:
                logger.info(f"Processing region {index}/{total}")
            if self.image_path:
                outcome = self.pipeline.run_file(self.image_path, rect, self.config)
            elif self.mode == TranslationMode.REGION_SELECT:
                outcome = self.pipeline.run_selection(rect, self.config)
            else:
                outcome = self.pipeline.run_scan(rect, self.config)
            outcomes.append(outcome)
            self.outcome_ready.emit(outcome)

        logger.info(f"{self.mode.value} finished: {len(outcomes)} run(s) in {time.time() - start_time:.2f}s")
        self.run_finished.emit(outcomes)

class TranslatorStatusWorker(QThread):
    """Worker thread for checking translator status and fetching models"""
    status_changed = pyqtSignal(bool, list)

    def __init__(self, translator):
        super().__init__()
        self.translator = translator

    def run(self):
        is_available = self.translator.is_available()
        models = []
        if is_available and hasattr(self.translator, "get_available_models"):
            models = self.translator.get_available_models()
        self.status_changed.emit(is_available, models)

class ModelWarmupWorker(QThread):
    """Worker thread to preload the transformers model/tokenizer before the first run."""

    warmup_finished = pyqtSignal(bool, str)

    def __init__(self, translator):
        super().__init__()
        self.translator = translator

    def run(self):
        ok = self.translator.ensure_loaded()
        err = "" if ok else (self.translator.last_error or "Model warmup failed")
        if not ok:
            logger.error(f"Model warmup error: {err}")
        self.warmup_finished.emit(ok, err)
