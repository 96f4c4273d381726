"""Tests for imtrans.translate_server"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from imtrans import translate_server
from imtrans.translate_server import ServerSettings, app, translate_with_ollama


@pytest.fixture
def client():
    return TestClient(app)


def _ollama_response(status_code=200, content="Hello there"):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = {"message": {"role": "assistant", "content": content}}
    return response


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("body", [{}, {"text": "你好"}, {"targetLang": "en"}, {"text": "", "targetLang": "en"}])
def test_missing_fields(client, body):
    response = client.post("/translate", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "text and targetLang are required"}


def test_translate_success(client):
    with patch.object(translate_server, "translate_with_ollama", return_value="Hello") as translate:
        response = client.post("/translate", json={"text": "你好", "targetLang": "English", "sourceLang": "zh"})

    assert response.status_code == 200
    assert response.json() == {"translated": "Hello"}
    translate.assert_called_once_with("你好", "English", "zh")


def test_translate_failure_is_500(client):
    with patch.object(translate_server.requests, "post", side_effect=requests.ConnectionError("refused")):
        response = client.post("/translate", json={"text": "你好", "targetLang": "en"})

    assert response.status_code == 500
    assert response.json() == {"error": "translation_failed"}


def test_ollama_request_shape():
    settings = ServerSettings(ollama_url="http://ollama:11434/", ollama_model="aya:8b", temperature=0.3)
    with patch.object(translate_server.requests, "post", return_value=_ollama_response(content="  Hi!  ")) as post:
        assert translate_with_ollama("こんにちは", "English", "ja", settings) == "Hi!"

    url = post.call_args.args[0]
    payload = post.call_args.kwargs["json"]
    assert url == "http://ollama:11434/api/chat"
    assert payload["model"] == "aya:8b"
    assert payload["stream"] is False
    assert payload["options"] == {"temperature": 0.3}
    assert payload["messages"][0]["role"] == "system"
    assert "こんにちは" in payload["messages"][1]["content"]


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("IMTRANS_PORT", "3100")
    monkeypatch.setenv("IMTRANS_OLLAMA_MODEL", "qwen2.5:7b")
    settings = ServerSettings()
    assert settings.port == 3100
    assert settings.ollama_model == "qwen2.5:7b"
