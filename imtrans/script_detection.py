import logging
import re
from dataclasses import dataclass

from .models import LanguageCode

logger = logging.getLogger(__name__)

_CHINESE_RE = re.compile("[\u4e00-\u9fff]")
# Hiragana + Katakana
_JAPANESE_RE = re.compile("[\u3040-\u309f\u30a0-\u30ff]")
# Hangul syllables + Jamo
_KOREAN_RE = re.compile("[\uac00-\ud7af\u1100-\u11ff]")

@dataclass(frozen=True)
class ScriptCounts:
    chinese: int = 0
    japanese: int = 0
    korean: int = 0

def classify(text: str) -> ScriptCounts:
    """Count CJK-family characters in recognized text"""
    if not text:
        return ScriptCounts()
    return ScriptCounts(
        chinese=len(_CHINESE_RE.findall(text)),
        japanese=len(_JAPANESE_RE.findall(text)),
        korean=len(_KOREAN_RE.findall(text)),
    )

def resolve(counts: ScriptCounts) -> LanguageCode:
    """Pick a recognition language from script counts.

    Kana is a reliable Japanese signal even next to kanji, so it wins first.
    Hangul must outnumber Han to count as Korean; any remaining Han means
    Chinese, and English is the residual default.
    """
    if counts.japanese > 0:
        return LanguageCode.JPN
    if counts.korean > counts.chinese:
        return LanguageCode.KOR
    if counts.chinese > 0:
        return LanguageCode.CHI_SIM
    return LanguageCode.ENG

def detect_language(text: str) -> LanguageCode:
    counts = classify(text)
    logger.debug(f"Script counts - Chinese={counts.chinese}, Japanese={counts.japanese}, Korean={counts.korean}")
    return resolve(counts)
