from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.logging_config import configure_logging, get_logger
from rag_services.embeddings import EmbeddingService
from rag_services.llm import LLMService
from rag_services.session import SessionRegistry
from schemas.session import HealthResponse
from services.chat_store import ChatStore

logger = get_logger("main")


def build_registry() -> SessionRegistry:
    embedding_service = EmbeddingService(
        settings.EMBEDDING_MODEL,
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
    )
    llm_service = LLMService(
        settings.CHAT_MODEL,
        temperature=settings.TEMPERATURE,
        max_tokens=settings.MAX_TOKENS,
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
    )
    return SessionRegistry(
        embedding_service,
        llm_service,
        top_k=settings.TOP_K_RESULTS,
        max_history_pairs=settings.MAX_HISTORY_PAIRS,
        refresh_enabled=settings.INDEX_REFRESH_ENABLED,
        refresh_time=settings.INDEX_REFRESH_TIME,
    )


def create_app(
    registry: Optional[SessionRegistry] = None,
    chat_store: Optional[ChatStore] = None,
) -> FastAPI:
    configure_logging(settings.log_level, settings.json_logs)

    application = FastAPI(
        title=settings.app_name,
        description="Chat with your PDFs: upload documents, index them and ask questions",
        version="1.0.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if registry is None:
        registry = build_registry()
    if chat_store is None:
        chat_store = ChatStore(settings.CHATS_DIR, settings.CHATS_ARCHIVE_DIR)
    application.state.registry = registry
    application.state.chat_store = chat_store

    @application.on_event("startup")
    async def startup_event():
        logger.info("application_started", environment=settings.environment)

    @application.on_event("shutdown")
    async def shutdown_event():
        # Cancels every scheduled refresh
        await application.state.registry.close_all()
        logger.info("application_stopped")

    @application.get("/health", response_model=HealthResponse, tags=["health"])
    async def health():
        return HealthResponse(
            status="ok",
            sessions=len(application.state.registry),
            environment=settings.environment,
        )

    # Routers are imported lazily to avoid circular deps during app creation
    from routers.ui import router as ui_router
    from routers.sessions import router as sessions_router
    from routers.documents import router as documents_router
    from routers.chat import router as chat_router

    application.include_router(ui_router)
    application.include_router(sessions_router, tags=["sessions"])
    application.include_router(documents_router, tags=["documents"])
    application.include_router(chat_router, tags=["chat"])

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
