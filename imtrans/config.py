import json
import logging
from dataclasses import dataclass
from typing import List

from .language import LOW_CONFIDENCE_THRESHOLD
from .models import DisplayRect, LanguageCode, TranslationRegion

logger = logging.getLogger(__name__)

SETTINGS_ORG = "Imtrans"
SETTINGS_APP = "ImageTranslator"

DEFAULT_SERVER_URL = "http://localhost:3000"
DEFAULT_MODEL_NAME = "facebook/nllb-200-distilled-600M"

# Drag selections below this size (either side) are ignored
MIN_SELECTION_SIZE = 20
# Saved scan regions smaller than this are skipped
MIN_SCAN_WIDTH = 80
MIN_SCAN_HEIGHT = 40

@dataclass(frozen=True)
class PipelineConfig:
    """Settings snapshot taken at the start of each run"""
    ocr_language: LanguageCode = LanguageCode.AUTO
    target_language: str = "en"
    quick_detect: bool = True
    confidence_threshold: float = LOW_CONFIDENCE_THRESHOLD

def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"

def parse_language(value) -> LanguageCode:
    try:
        return LanguageCode(value)
    except ValueError:
        logger.warning(f"Unknown OCR language {value!r}, using auto")
        return LanguageCode.AUTO

def load_pipeline_config(settings) -> PipelineConfig:
    """Build a PipelineConfig from a QSettings-like store (anything with value(key, default))"""
    return PipelineConfig(
        ocr_language=parse_language(settings.value("ocr_language", LanguageCode.AUTO.value)),
        target_language=settings.value("target_language", "en") or "en",
        quick_detect=_as_bool(settings.value("quick_detect", "true"), True),
        confidence_threshold=float(settings.value("confidence_threshold", LOW_CONFIDENCE_THRESHOLD)),
    )

def load_regions(settings) -> List[TranslationRegion]:
    regions_json = settings.value("regions", "")
    if not regions_json:
        return []
    try:
        return [TranslationRegion(**r) for r in json.loads(regions_json)]
    except (ValueError, TypeError) as e:
        logger.error(f"Error loading regions: {e}")
        return []

def save_regions(settings, regions: List[TranslationRegion]):
    regions_data = [
        {
            "x": r.x,
            "y": r.y,
            "width": r.width,
            "height": r.height,
            "name": r.name,
            "enabled": r.enabled
        }
        for r in regions
    ]
    settings.setValue("regions", json.dumps(regions_data))

def scan_targets(regions: List[TranslationRegion], screen: DisplayRect) -> List[DisplayRect]:
    """Rectangles processed by Scan: enabled saved regions, or the whole screen when none are saved"""
    if not regions:
        return [screen]
    targets = []
    for region in regions:
        if not region.enabled:
            continue
        if region.width < MIN_SCAN_WIDTH or region.height < MIN_SCAN_HEIGHT:
            logger.info(f"Skipping region '{region.name}': smaller than {MIN_SCAN_WIDTH}x{MIN_SCAN_HEIGHT}")
            continue
        targets.append(region.as_display_rect())
    return targets
