import logging
from typing import List, Optional

from .errors import TranslationError
from .models import TextBlock, TranslationOutcome
from .progress import StatusFn, notify

logger = logging.getLogger(__name__)

TRANSLATION_START_PERCENT = 75
TRANSLATION_SPAN = 20

class TranslationOrchestrator:
    """Translates blocks one at a time, keeping the input order.

    A failed block keeps its original text so it still gets an overlay; the
    batch always completes.
    """

    def __init__(self, translator, status: Optional[StatusFn] = None):
        self.translator = translator
        self.status = status

    def translate_text(self, text: str, target_language: str,
                       source_language: Optional[str] = None) -> str:
        return self.translator.translate(text, target_language, source_language)

    def translate_all(self, blocks: List[TextBlock], target_language: str,
                      source_language: Optional[str] = None) -> List[TranslationOutcome]:
        outcomes = []
        total = len(blocks)
        for i, block in enumerate(blocks):
            notify(self.status, f"Translating block {i + 1}/{total}...",
                   TRANSLATION_START_PERCENT + (i / total) * TRANSLATION_SPAN)
            try:
                translated = self.translate_text(block.text, target_language, source_language)
                outcomes.append(TranslationOutcome(block, translated))
            except TranslationError as e:
                logger.warning(f"Failed to translate block {i}: {e.message}")
                outcomes.append(TranslationOutcome(block, block.text, failed=True, error=e.message))
            except Exception as e:
                logger.error(f"Unexpected error translating block {i}: {e}", exc_info=True)
                outcomes.append(TranslationOutcome(block, block.text, failed=True, error=str(e)))

        failed = sum(1 for o in outcomes if o.failed)
        if failed:
            logger.info(f"{failed} of {total} blocks kept their original text")
        return outcomes
