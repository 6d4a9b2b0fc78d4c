"""
FastAPI app factory.

Responsibilities:
- Create and configure the FastAPI application
- Set up middleware and error mapping
- Build shared, app-scoped resources (session store, conversation engine)
- Register routes
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI

from config import AppConfig
from conversation.engine import ConversationEngine, KeywordEngine
from conversation.llm_engine import LLMConversationEngine
from errors import SessionNotFound, UpstreamFailure
from observability import logger
from server.routes import register_routes
from session.store import SessionStore


def create_app(
    config: AppConfig | None = None,
    *,
    store: SessionStore | None = None,
    engine: ConversationEngine | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    store and engine can be injected (tests); otherwise they are built
    from config. Both live on app.state for the life of the app.
    """
    config = config or AppConfig.load_from_env()
    logger.configure(enabled=config.enable_json_logs)

    app = FastAPI(title="Voice Ticket Intake API")

    app.state.config = config
    app.state.store = store or SessionStore(channel_address=config.channel_address)
    app.state.engine = engine or build_engine(config)

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    register_routes(app)

    logger.log_event({
        "event_type": "APP_CREATED",
        "env": config.env,
        "engine": config.conversation_engine,
    })

    return app


def build_engine(config: AppConfig) -> ConversationEngine:
    """Select the conversation engine named by CONVERSATION_ENGINE."""
    if config.conversation_engine == "keyword":
        return KeywordEngine()

    if config.conversation_engine == "llm":
        return LLMConversationEngine(
            client=build_llm_client(config),
            model=config.llm_model,
            timeout_s=config.llm_timeout_s,
        )

    raise RuntimeError(f"Unknown CONVERSATION_ENGINE: {config.conversation_engine}")


def build_llm_client(config: AppConfig) -> AsyncOpenAI:
    """Build an LLM client with the provider selected by environment variables."""
    if config.llm_provider.lower() == "groq":
        if not config.groq_api_key:
            raise RuntimeError("GROQ_API_KEY environment variable not set")
        return AsyncOpenAI(
            api_key=config.groq_api_key,
            base_url="https://api.groq.com/openai/v1",
        )

    if not config.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable not set")
    return AsyncOpenAI(api_key=config.openai_api_key)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SessionNotFound)
    async def session_not_found(_: Request, exc: SessionNotFound) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        logger.log_event({
            "event_type": "SESSION_NOT_FOUND",
            "session_id": exc.session_id,
        })
        return JSONResponse(status_code=404, content={"error": "Session not found"})

    @app.exception_handler(UpstreamFailure)
    async def upstream_failure(_: Request, exc: UpstreamFailure) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        return JSONResponse(status_code=502, content={"error": str(exc)})
