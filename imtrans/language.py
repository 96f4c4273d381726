import logging

from .models import LanguageCode, RegionRequest
from .script_detection import detect_language

logger = logging.getLogger(__name__)

# Height must exceed width by this factor to count as a vertical layout.
VERTICAL_ASPECT_MARGIN = 1.2
# Auto mode retries with the fallback language below this confidence.
LOW_CONFIDENCE_THRESHOLD = 40.0
QUICK_DETECT_LANGUAGE = LanguageCode.CHI_SIM
WIDE_LAYOUT_DEFAULT = LanguageCode.CHI_SIM

_FALLBACKS = {
    LanguageCode.JPN_VERT: LanguageCode.JPN,
    LanguageCode.JPN: LanguageCode.JPN_VERT,
    LanguageCode.CHI_SIM: LanguageCode.JPN,
}

def is_likely_vertical(width: float, height: float) -> bool:
    return height > width * VERTICAL_ASPECT_MARGIN

def primary_language(config_language: LanguageCode, width: float, height: float) -> LanguageCode:
    """Recognition language from configuration and selection geometry.

    An explicit language is returned untouched; auto mode picks the vertical
    Japanese model for tall regions and simplified Chinese otherwise.
    """
    if config_language != LanguageCode.AUTO:
        return config_language

    if is_likely_vertical(width, height):
        logger.info("Auto-detect: selection is tall - using jpn_vert")
        return LanguageCode.JPN_VERT
    logger.info("Auto-detect: selection is wide - using chi_sim")
    return WIDE_LAYOUT_DEFAULT

def quick_detect(runner, request: RegionRequest) -> LanguageCode:
    """Throwaway chi_sim pass used only for its script signal"""
    result = runner.run(request.image, QUICK_DETECT_LANGUAGE)
    detected = detect_language(result.full_text)
    logger.info(f"Detected language: {detected.value} from text: {result.full_text[:50]!r}")
    return detected

def fallback_language(primary: LanguageCode) -> LanguageCode:
    """Retry language for a low-confidence auto pass.

    Retries pivot between the East-Asian options rather than towards English.
    """
    return _FALLBACKS.get(primary, LanguageCode.CHI_SIM)
