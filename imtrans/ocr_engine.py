import logging
import time
from io import BytesIO
from typing import Callable, Dict, List, Optional, Tuple

import pytesseract
from PIL import Image, UnidentifiedImageError

from .errors import RecognitionError
from .models import BoundingBox, ImageSize, LanguageCode, RecognitionResult, TextRegion

logger = logging.getLogger(__name__)

try:
    import easyocr
except ImportError:
    easyocr = None

ProgressFn = Callable[[float], None]

# Scripts written without spaces between words
_UNSPACED = (LanguageCode.CHI_SIM, LanguageCode.CHI_TRA, LanguageCode.JPN, LanguageCode.JPN_VERT)

def _open_image(image_data: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(image_data))
        image.load()
        return image
    except (UnidentifiedImageError, OSError) as e:
        raise RecognitionError(f"Could not decode image: {e}") from e

class OcrEngine:
    """Recognition backend interface"""

    name = "base"

    def is_available(self) -> bool:
        return True

    def recognize(self, image_data: bytes, language: LanguageCode,
                  on_progress: Optional[ProgressFn] = None) -> RecognitionResult:
        raise NotImplementedError

def regions_from_tesseract_data(data: Dict[str, list], language: LanguageCode
                                ) -> Tuple[List[TextRegion], List[TextRegion], float]:
    """Group pytesseract word rows into paragraphs and lines.

    Returns (paragraphs, lines, confidence). Rows are keyed by block/par/line
    numbers in the order tesseract reports them, which is reading order.
    """
    joiner = "" if language in _UNSPACED else " "
    line_groups: Dict[tuple, dict] = {}
    word_confs = []

    texts = data.get("text") or []
    for i, raw in enumerate(texts):
        word = (raw or "").strip()
        if not word:
            continue
        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            conf = -1.0
        if conf >= 0:
            word_confs.append(conf)

        left = float(data["left"][i])
        top = float(data["top"][i])
        box = BoundingBox(left, top, left + float(data["width"][i]), top + float(data["height"][i]))

        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        group = line_groups.get(key)
        if group is None:
            line_groups[key] = {"words": [word], "bbox": box}
        else:
            group["words"].append(word)
            group["bbox"] = group["bbox"].union(box)

    lines = []
    par_groups: Dict[tuple, dict] = {}
    for (block_num, par_num, _), group in line_groups.items():
        line = TextRegion(joiner.join(group["words"]), group["bbox"])
        lines.append(line)
        par = par_groups.get((block_num, par_num))
        if par is None:
            par_groups[(block_num, par_num)] = {"lines": [line.text], "bbox": line.bbox}
        else:
            par["lines"].append(line.text)
            par["bbox"] = par["bbox"].union(line.bbox)

    paragraphs = [TextRegion("\n".join(p["lines"]), p["bbox"]) for p in par_groups.values()]
    confidence = sum(word_confs) / len(word_confs) if word_confs else 0.0
    return paragraphs, lines, confidence

class TesseractEngine(OcrEngine):
    """Tesseract through pytesseract; supports every LanguageCode including jpn_vert"""

    name = "tesseract"

    def __init__(self, tesseract_cmd: Optional[str] = None, config: str = ""):
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.config = config

    def is_available(self) -> bool:
        try:
            pytesseract.get_tesseract_version()
            return True
        except pytesseract.TesseractNotFoundError:
            return False

    def recognize(self, image_data: bytes, language: LanguageCode,
                  on_progress: Optional[ProgressFn] = None) -> RecognitionResult:
        image = _open_image(image_data)
        if on_progress:
            on_progress(0.0)

        data = pytesseract.image_to_data(
            image,
            lang=language.value,
            config=self.config,
            output_type=pytesseract.Output.DICT,
        )
        paragraphs, lines, confidence = regions_from_tesseract_data(data, language)

        if on_progress:
            on_progress(1.0)

        return RecognitionResult(
            full_text="\n".join(p.text for p in paragraphs),
            confidence=confidence,
            paragraphs=paragraphs,
            lines=lines,
            language=language,
            image_size=ImageSize(*image.size),
        )

class EasyOcrEngine(OcrEngine):
    """EasyOCR backend. Detections become lines; there is no paragraph level."""

    name = "easyocr"

    # Map recognition codes to EasyOCR language lists
    lang_map = {
        LanguageCode.CHI_SIM: ["ch_sim", "en"],
        LanguageCode.CHI_TRA: ["ch_tra", "en"],
        LanguageCode.JPN: ["ja", "en"],
        LanguageCode.JPN_VERT: ["ja", "en"],
        LanguageCode.KOR: ["ko", "en"],
        LanguageCode.ENG: ["en"],
    }
    min_detection_prob = 0.2

    def __init__(self, gpu: bool = False):
        self.gpu = gpu
        self.readers = {}

    def is_available(self) -> bool:
        return easyocr is not None

    def _get_reader(self, language: LanguageCode):
        langs = self.lang_map[language]
        key = tuple(langs)
        reader = self.readers.get(key)
        if reader is None:
            logger.info(f"Initializing EasyOCR with {langs}...")
            start_time = time.time()
            reader = easyocr.Reader(langs, gpu=self.gpu)
            self.readers[key] = reader
            logger.info(f"EasyOCR initialized in {time.time() - start_time:.2f}s")
        return reader

    def recognize(self, image_data: bytes, language: LanguageCode,
                  on_progress: Optional[ProgressFn] = None) -> RecognitionResult:
        if easyocr is None:
            raise RecognitionError("EasyOCR is not installed")

        image = _open_image(image_data)
        if on_progress:
            on_progress(0.0)

        results = self._get_reader(language).readtext(image_data)
        if on_progress:
            on_progress(1.0)

        lines = []
        probs = []
        for (bbox, text, prob) in results:
            probs.append(float(prob))
            if prob < self.min_detection_prob:
                continue
            # bbox is [[x0, y0], [x1, y1], [x2, y2], [x3, y3]]
            x0 = min(p[0] for p in bbox)
            y0 = min(p[1] for p in bbox)
            x1 = max(p[0] for p in bbox)
            y1 = max(p[1] for p in bbox)
            lines.append(TextRegion(text, BoundingBox(float(x0), float(y0), float(x1), float(y1))))

        confidence = sum(probs) / len(probs) * 100 if probs else 0.0
        return RecognitionResult(
            full_text="\n".join(line.text for line in lines),
            confidence=confidence,
            lines=lines,
            language=language,
            image_size=ImageSize(*image.size),
        )

class RecognitionRunner:
    """Runs one OCR pass and normalizes failures and progress"""

    def __init__(self, engine: OcrEngine):
        self.engine = engine

    def run(self, image_data: bytes, language: LanguageCode,
            on_progress: Optional[ProgressFn] = None) -> RecognitionResult:
        if language == LanguageCode.AUTO:
            raise ValueError("auto must be resolved before recognition")

        def forward(fraction: float):
            if on_progress:
                on_progress(max(0.0, min(1.0, fraction)))

        logger.info(f"Running OCR with {language.value} ({self.engine.name})...")
        start_time = time.time()
        try:
            result = self.engine.recognize(image_data, language, forward)
        except RecognitionError:
            raise
        except Exception as e:
            logger.error(f"OCR error ({language.value}): {e}")
            raise RecognitionError(f"OCR failed ({language.value}): {e}") from e

        logger.info(f"OCR {language.value} finished in {time.time() - start_time:.2f}s, "
                    f"confidence {result.confidence:.1f}, {len(result.lines)} lines")
        return result

def create_engine(name: str) -> OcrEngine:
    if name == EasyOcrEngine.name:
        return EasyOcrEngine()
    return TesseractEngine()
