from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

class TranslationMode(Enum):
    REGION_SELECT = "region_select"
    SCAN = "scan"

class LanguageCode(Enum):
    """Recognition language codes understood by the OCR engines"""
    AUTO = "auto"
    CHI_SIM = "chi_sim"
    CHI_TRA = "chi_tra"
    JPN = "jpn"
    JPN_VERT = "jpn_vert"
    KOR = "kor"
    ENG = "eng"

    @property
    def iso_code(self) -> Optional[str]:
        """Source-language hint passed along to translators"""
        return _ISO_CODES.get(self)

    @property
    def label(self) -> str:
        return _LABELS[self]

_ISO_CODES = {
    LanguageCode.CHI_SIM: "zh",
    LanguageCode.CHI_TRA: "zh-Hant",
    LanguageCode.JPN: "ja",
    LanguageCode.JPN_VERT: "ja",
    LanguageCode.KOR: "ko",
    LanguageCode.ENG: "en",
}

_LABELS = {
    LanguageCode.AUTO: "Auto-detect",
    LanguageCode.CHI_SIM: "Chinese (Simplified)",
    LanguageCode.CHI_TRA: "Chinese (Traditional)",
    LanguageCode.JPN: "Japanese (Horizontal)",
    LanguageCode.JPN_VERT: "Japanese (Vertical)",
    LanguageCode.KOR: "Korean",
    LanguageCode.ENG: "English",
}

@dataclass(frozen=True)
class BoundingBox:
    """Box in the recognized image's own pixel space"""
    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self):
        if self.x1 < self.x0 or self.y1 < self.y0:
            raise ValueError(f"Inverted bounding box: {self}")

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.x0, other.x0), min(self.y0, other.y0),
            max(self.x1, other.x1), max(self.y1, other.y1),
        )

@dataclass(frozen=True)
class TextRegion:
    """A paragraph or line reported by the OCR engine"""
    text: str
    bbox: BoundingBox

@dataclass(frozen=True)
class ImageSize:
    width: float
    height: float

@dataclass(frozen=True)
class DisplayRect:
    """Where an image is shown, in display (logical screen) coordinates"""
    left: float
    top: float
    width: float
    height: float

@dataclass
class RegionRequest:
    """Encoded image plus the selection size used for aspect heuristics"""
    image: bytes
    width: float
    height: float

@dataclass
class RecognitionResult:
    """Normalized output of one OCR pass"""
    full_text: str
    confidence: float
    paragraphs: List[TextRegion] = field(default_factory=list)
    lines: List[TextRegion] = field(default_factory=list)
    language: Optional[LanguageCode] = None
    image_size: Optional[ImageSize] = None

@dataclass(frozen=True)
class TextBlock:
    """Translatable unit: trimmed text of at least two characters"""
    text: str
    bbox: BoundingBox

@dataclass(frozen=True)
class TranslationOutcome:
    block: TextBlock
    translated_text: str
    failed: bool = False
    error: Optional[str] = None

@dataclass(frozen=True)
class OverlayPlacement:
    left: float
    top: float
    width: float
    height: float
    font_size: float

@dataclass
class OverlayItem:
    """Translated text ready to be painted over its source region"""
    original_text: str
    translated_text: str
    placement: OverlayPlacement
    failed: bool = False

@dataclass
class TranslationRegion:
    """Represents a saved screen region processed by Scan"""
    x: int
    y: int
    width: int
    height: int
    name: str = ""
    enabled: bool = True

    def as_display_rect(self) -> DisplayRect:
        return DisplayRect(self.x, self.y, self.width, self.height)

FontBounds = Tuple[float, float]
