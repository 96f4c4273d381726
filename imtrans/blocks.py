import logging
from typing import List

from .models import RecognitionResult, TextBlock

logger = logging.getLogger(__name__)

MIN_BLOCK_CHARS = 2

def extract_blocks(result: RecognitionResult) -> List[TextBlock]:
    """Turn an OCR result into translatable blocks.

    Paragraphs are preferred because they group multi-line utterances; lines
    are used when the engine reports no paragraphs. Candidates shorter than
    two characters after trimming are noise. Recognizer order is kept.
    """
    candidates = result.paragraphs if result.paragraphs else result.lines
    blocks = []
    for region in candidates:
        text = (region.text or "").strip()
        if len(text) < MIN_BLOCK_CHARS:
            continue
        blocks.append(TextBlock(text, region.bbox))

    logger.debug(f"Extracted {len(blocks)} of {len(candidates)} candidate blocks")
    return blocks

def extract_raw_text(result: RecognitionResult) -> str:
    """Line-joined text for single-selection mode"""
    if result.lines:
        return "\n".join(line.text for line in result.lines).strip()
    if result.full_text and result.full_text.strip():
        logger.debug("Using raw text instead of lines")
        return result.full_text.strip()
    return ""
