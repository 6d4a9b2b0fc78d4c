# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import AppConfig
from conversation.engine import KeywordEngine
from conversation.llm_engine import LLMConversationEngine
from server.app import build_engine


def test_defaults_from_empty_env(monkeypatch: pytest.MonkeyPatch):
    for name in ("PORT", "PUBLIC_WS_BASE_URL", "CONVERSATION_ENGINE", "CORS_ORIGINS", "ENABLE_JSON_LOGS"):
        monkeypatch.delenv(name, raising=False)

    config = AppConfig.load_from_env()

    assert config.port == 3001
    assert config.public_ws_base_url == "ws://localhost:3001"
    assert config.conversation_engine == "keyword"
    assert config.cors_origins == ("*",)
    assert config.enable_json_logs is True


def test_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("PUBLIC_WS_BASE_URL", "wss://voice.example.com/")
    monkeypatch.setenv("CONVERSATION_ENGINE", "LLM")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("LLM_TIMEOUT_S", "2.5")
    monkeypatch.setenv("ENABLE_JSON_LOGS", "0")

    config = AppConfig.load_from_env()

    assert config.port == 8080
    assert config.conversation_engine == "llm"
    assert config.cors_origins == ("https://a.example", "https://b.example")
    assert config.llm_timeout_s == 2.5
    assert config.enable_json_logs is False
    assert config.channel_address("abc") == "wss://voice.example.com/ws/voice/abc"


def test_build_engine_keyword():
    assert isinstance(build_engine(AppConfig()), KeywordEngine)


def test_build_engine_llm_with_groq_key():
    config = AppConfig(conversation_engine="llm", llm_provider="groq", groq_api_key="gsk-test")

    assert isinstance(build_engine(config), LLMConversationEngine)


def test_build_engine_llm_without_key_fails():
    with pytest.raises(RuntimeError, match="GROQ_API_KEY"):
        build_engine(AppConfig(conversation_engine="llm", groq_api_key=None))


def test_build_engine_unknown():
    with pytest.raises(RuntimeError, match="Unknown CONVERSATION_ENGINE"):
        build_engine(AppConfig(conversation_engine="rules"))
