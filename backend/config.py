"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No conversation logic
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import CHANNEL_PATH_PREFIX, LLM_TIMEOUT_S_DEFAULT


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and stored on app.state.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001

    # Base URL handed to clients for the per-session channel
    public_ws_base_url: str = "ws://localhost:3001"
    cors_origins: tuple[str, ...] = ("*",)

    # ------------------------------------------------------------------
    # Conversation engine
    # ------------------------------------------------------------------

    # "keyword" (deterministic state machine) or "llm"
    conversation_engine: str = "keyword"

    # ------------------------------------------------------------------
    # LLM configuration (only read when conversation_engine == "llm")
    # ------------------------------------------------------------------

    llm_provider: str = "groq"
    llm_model: str = "llama-3.3-70b-versatile"
    openai_api_key: str | None = None
    groq_api_key: str | None = None
    llm_timeout_s: float = LLM_TIMEOUT_S_DEFAULT

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    def channel_address(self, session_id: str) -> str:
        """Return the WebSocket URL a client uses to attach to a session."""
        base = self.public_ws_base_url.rstrip("/")
        return f"{base}{CHANNEL_PATH_PREFIX}/{session_id}"

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if PORT or LLM_TIMEOUT_S are not numeric.
        """
        port = int(os.environ.get("PORT", "3001"))
        origins = os.environ.get("CORS_ORIGINS", "*")

        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=port,
            public_ws_base_url=os.environ.get(
                "PUBLIC_WS_BASE_URL", f"ws://localhost:{port}"
            ),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),

            conversation_engine=os.environ.get("CONVERSATION_ENGINE", "keyword").lower(),

            llm_provider=os.environ.get("LLM_PROVIDER", "groq"),
            llm_model=os.environ.get("LLM_MODEL", "llama-3.3-70b-versatile"),
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            groq_api_key=os.environ.get("GROQ_API_KEY"),
            llm_timeout_s=float(os.environ.get("LLM_TIMEOUT_S", str(LLM_TIMEOUT_S_DEFAULT))),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",
        )
