import logging
from typing import Optional

import requests

from .errors import TranslationError, TransportError

logger = logging.getLogger(__name__)

class TranslationServerClient:
    """Interface to the local /translate HTTP server"""

    def __init__(self, base_url: str = "http://localhost:3000", timeout: Optional[float] = None):
        self.base_url = base_url
        # None waits for the server indefinitely
        self.timeout = timeout
        self.session = requests.Session()

    def _url(self, path: str) -> str:
        # Ensure base_url doesn't have a trailing slash to avoid double slashes
        return self.base_url.rstrip('/') + path

    def is_available(self) -> bool:
        """Check if the translation server answers its health check"""
        try:
            response = self.session.get(self._url("/health"), timeout=5)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def translate(self, text: str, target_language: str = "en",
                  source_language: Optional[str] = None) -> str:
        payload = {"text": text, "targetLang": target_language}
        if source_language:
            payload["sourceLang"] = source_language

        try:
            response = self.session.post(self._url("/translate"), json=payload, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error(f"Translation server unreachable at {self.base_url}: {e}")
            raise TransportError("Translation failed - is the server running?") from e
        except requests.RequestException as e:
            raise TransportError(f"Translation request failed: {e}") from e

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            detail = body.get("error", "") if isinstance(body, dict) else str(body)[:200]
            logger.error(f"Translation API error: {response.status_code} {detail}")
            raise TranslationError(f"Translation API error ({response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            raise TranslationError("Malformed response from translation server") from e

        if not isinstance(data, dict) or data.get("error"):
            raise TranslationError(f"Translation failed: {data.get('error') if isinstance(data, dict) else data}")

        translated = data.get("translated")
        if not isinstance(translated, str):
            raise TranslationError("Malformed response from translation server")

        logger.debug(f"Translated: {translated[:50]}")
        return translated
