"""HTTP translation server backed by a local Ollama chat model.

Run with ``imtrans-server``; the desktop client talks to ``POST /translate``.
"""
import logging
from functools import lru_cache
from typing import Optional

import requests
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import TranslationError, TransportError
from .logging_config import setup_logger

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert manga and comic translator. Your job is to:

1. UNDERSTAND the context: This is dialogue or narration from a manga/comic. The text may be fragmented, have unusual line breaks, or contain sound effects.

2. RECONSTRUCT meaning: Piece together fragments into coherent sentences. If text appears broken or out of order (common in OCR), infer the intended reading order.

3. TRANSLATE naturally: Convert to natural, conversational {target} that sounds like how people actually speak. For dialogue, make it sound like real conversation. For narration, make it flow smoothly.

4. PRESERVE tone: Keep emotional tone (angry, sad, excited, sarcastic) and speaking style (formal, casual, childish, dramatic).

5. HANDLE special elements:
   - Sound effects: Translate or transliterate appropriately (e.g., ドキドキ → *thump thump* or *heart pounding*)
   - Emphasis: Preserve emphasis using caps, italics notation, or punctuation
   - Incomplete sentences: Complete them naturally if meaning is clear

OUTPUT: Only the final natural translation. No explanations, notes, or alternatives."""

USER_PROMPT = """Translate this manga/comic text to natural {target}:

{text}

Provide only the translation, making it sound natural as dialogue or narration."""

class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IMTRANS_", env_file=".env",
                                      env_file_encoding="utf-8", extra="ignore")

    host: str = "127.0.0.1"
    port: int = 3000
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "aya:8b"
    temperature: float = 0.3
    request_timeout_sec: float = 120.0

@lru_cache(maxsize=1)
def get_settings() -> ServerSettings:
    return ServerSettings()

class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    source_lang: Optional[str] = Field(default=None, alias="sourceLang")
    target_lang: Optional[str] = Field(default=None, alias="targetLang")

def translate_with_ollama(text: str, target_lang: str, source_lang: Optional[str] = None,
                          settings: Optional[ServerSettings] = None) -> str:
    settings = settings or get_settings()
    payload = {
        "model": settings.ollama_model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT.format(target=target_lang)},
            {"role": "user", "content": USER_PROMPT.format(target=target_lang, text=text)},
        ],
        "stream": False,
        "options": {"temperature": settings.temperature},
    }
    url = settings.ollama_url.rstrip('/') + "/api/chat"
    try:
        response = requests.post(url, json=payload, timeout=settings.request_timeout_sec)
    except requests.RequestException as e:
        raise TransportError(f"Ollama unreachable: {e}") from e

    if response.status_code == 404:
        raise TranslationError(f"Model '{settings.ollama_model}' not found. "
                               f"Try running: ollama pull {settings.ollama_model}")
    if response.status_code != 200:
        raise TranslationError(f"Ollama API error: {response.status_code}")

    try:
        content = response.json()["message"]["content"]
    except (ValueError, KeyError, TypeError) as e:
        raise TranslationError("Malformed Ollama response") from e
    return content.strip()

app = FastAPI(title="imtrans translation server")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health() -> dict:
    return {"status": "ok"}

@app.post("/translate")
def translate(request: TranslateRequest):
    if not request.text or not request.target_lang:
        return JSONResponse(status_code=400, content={"error": "text and targetLang are required"})

    try:
        translated = translate_with_ollama(request.text, request.target_lang, request.source_lang)
    except TranslationError as e:
        logger.error(f"Translation error: {e.message}")
        return JSONResponse(status_code=500, content={"error": "translation_failed"})

    return {"translated": translated}

def main():
    setup_logger()
    settings = get_settings()
    logger.info(f"Translation server running at http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)

if __name__ == "__main__":
    main()
