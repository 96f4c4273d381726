import logging
import time
from collections import OrderedDict
from typing import List, Optional

import torch
from transformers import AutoModelForSeq2SeqLM, AutoTokenizer

from .errors import TranslationError

logger = logging.getLogger(__name__)

class TransformersTranslator:
    """Local Transformers model translator: NLLB and M2M100 checkpoints."""

    def __init__(self, model_name: str = "facebook/nllb-200-distilled-600M", max_length: int = 256):
        self.model_name = model_name
        self.max_length = max_length
        self.device = "cuda" if torch.cuda.is_available() else "cpu"
        self.model = None
        self.tokenizer = None
        self._loaded_model_name = None
        # Last error detail (for UI)
        self.last_error: Optional[str] = None
        # Language codes for NLLB, keyed by ISO code
        self.lang_map_nllb = {
            "en": "eng_Latn",
            "ja": "jpn_Jpan",
            "ko": "kor_Hang",
            "zh": "zho_Hans",
            "zh-Hant": "zho_Hant",
            "es": "spa_Latn",
            "fr": "fra_Latn",
            "de": "deu_Latn",
        }
        # Language codes for M2M100 (418M)
        self.lang_map_m2m = {
            "en": "en",
            "ja": "ja",
            "ko": "ko",
            "zh": "zh",
            "zh-Hant": "zh",
            "es": "es",
            "fr": "fr",
            "de": "de",
        }
        self.cache = OrderedDict()
        self.cache_max_items = 500

    def _cache_get(self, key):
        val = self.cache.get(key)
        if val is not None:
            # Move to end to mark as recently used
            self.cache.move_to_end(key)
        return val

    def _cache_set(self, key, value):
        self.cache[key] = value
        self.cache.move_to_end(key)

        evicted = 0
        while len(self.cache) > self.cache_max_items:
            self.cache.popitem(last=False)
            evicted += 1

        if evicted:
            logger.debug("Translation cache evicted %d item(s); max=%d", evicted, self.cache_max_items)

    def _detect_family(self, name: str = None) -> str:
        """Return model family: 'nllb' or 'm2m100'."""
        nm = (name or self.model_name or "").lower()
        if "m2m100" in nm:
            return "m2m100"
        return "nllb"

    def _load_model(self):
        """Lazy load the model and tokenizer"""
        if self.model is not None and self._loaded_model_name == self.model_name:
            return

        if self.model is not None:
            logger.info(
                "Model name changed (%s -> %s); reloading model/tokenizer...",
                self._loaded_model_name,
                self.model_name,
            )
            self.model = None
            self.tokenizer = None
            self._loaded_model_name = None

        logger.info(f"Loading model {self.model_name} on {self.device}...")
        start_time = time.time()
        try:
            self.model = AutoModelForSeq2SeqLM.from_pretrained(self.model_name).to(self.device)
            self.tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            self._loaded_model_name = self.model_name
            logger.info(f"Model loaded successfully in {time.time() - start_time:.2f}s")
        except (OSError, ValueError, RuntimeError) as e:
            self.model = None
            self.tokenizer = None
            logger.error(f"Error loading model: {e}")
            self.last_error = str(e)

    def ensure_loaded(self) -> bool:
        """Eagerly load model/tokenizer (warmup before the first run)."""
        self.last_error = None
        self._load_model()
        ok = self.model is not None and self.tokenizer is not None
        if not ok and not self.last_error:
            self.last_error = "Failed to load model. Check model name and environment."
        return ok

    def _resolve_forced_bos_token_id(self, tgt_lang_code: str):
        """Resolve the target language token id across tokenizer variants/versions."""
        tok = self.tokenizer

        get_lang_id = getattr(tok, "get_lang_id", None)
        if callable(get_lang_id):
            try:
                return int(get_lang_id(tgt_lang_code))
            except (KeyError, ValueError, TypeError):
                pass

        lang_code_to_id = getattr(tok, "lang_code_to_id", None)
        if isinstance(lang_code_to_id, dict) and tgt_lang_code in lang_code_to_id:
            return int(lang_code_to_id[tgt_lang_code])

        # Language codes are plain tokens in the NLLB vocab
        token_id = tok.convert_tokens_to_ids(tgt_lang_code)
        if isinstance(token_id, int) and token_id != getattr(tok, "unk_token_id", None):
            return token_id
        return None

    def is_available(self) -> bool:
        """Check if transformers backend is ready"""
        return True

    def get_available_models(self) -> List[str]:
        """Return suggested models to pick from"""
        models = OrderedDict()
        models[self.model_name] = True
        models["facebook/nllb-200-distilled-600M"] = True
        models["facebook/nllb-200-distilled-1.3B"] = True
        models["facebook/m2m100_418M"] = True
        return list(models.keys())

    def translate(self, text: str, target_language: str = "en",
                  source_language: Optional[str] = None) -> str:
        """Translate one text unit, raising TranslationError on failure"""
        cache_key = (self.model_name, text, source_language, target_language)
        cached_value = self._cache_get(cache_key)
        if cached_value is not None:
            logger.debug(f"Cache hit for: {text[:30]}...")
            return cached_value

        if not self.ensure_loaded():
            raise TranslationError(self.last_error)

        family = self._detect_family()
        lang_map = self.lang_map_nllb if family == "nllb" else self.lang_map_m2m
        tgt_lang_code = lang_map.get(target_language)
        if tgt_lang_code is None:
            raise TranslationError(f"Unsupported target language: {target_language}")
        src_lang_code = lang_map.get(source_language) if source_language else None

        start_time = time.time()
        try:
            if src_lang_code and hasattr(self.tokenizer, "src_lang"):
                self.tokenizer.src_lang = src_lang_code

            inputs = self.tokenizer(text, return_tensors="pt").to(self.device)
            forced_bos_token_id = self._resolve_forced_bos_token_id(tgt_lang_code)
            if forced_bos_token_id is None:
                raise TranslationError(f"Unable to resolve target language token for {tgt_lang_code}")

            translated_tokens = self.model.generate(
                **inputs,
                forced_bos_token_id=forced_bos_token_id,
                max_length=self.max_length,
            )
            translated_text = self.tokenizer.batch_decode(translated_tokens, skip_special_tokens=True)[0]
        except (RuntimeError, ValueError, KeyError) as e:
            logger.error(f"Translation error for '{text[:30]}': {e}")
            raise TranslationError(f"Local model translation failed: {e}") from e

        logger.debug(f"Translated in {time.time() - start_time:.2f}s: {text[:30]}")
        self._cache_set(cache_key, translated_text)
        return translated_text
