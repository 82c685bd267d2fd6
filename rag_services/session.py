"""
Per-session RAG state.

Each ChatSession owns its index, retriever, chat engine, uploaded files and
refresh task, so concurrent users never overwrite each other's handles.
Work on one session is serialized by its lock.
"""
import asyncio
import time
import uuid
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from core.logging_config import get_logger
from models.chat import ChatMessage
from models.document import RawPage
from rag_services.chat_engine import ChatResult, ContextChatEngine
from rag_services.errors import (
    ChatEngineNotInitializedError,
    DocumentValidationError,
    EmptyResponseError,
    IndexNotInitializedError,
    SessionClosedError,
)
from rag_services.index import VectorStoreIndex
from rag_services.pipeline import (
    log_document_processing,
    optimize_index_parameters,
    preprocess_documents,
    summarize_documents,
    validate_documents,
)
from rag_services.scheduler import IndexRefreshTask

logger = get_logger("session")

ENGINE_RUNNING = "Chat engine is running."
ENGINE_NOT_INITIALIZED = "Chat engine is not initialized."


class UploadedFile(NamedTuple):
    name: str
    media_type: str
    data: bytes
    page_count: int


class ProcessingReport(NamedTuple):
    documents_count: int
    chunks_count: int
    chunk_size: int
    chunk_overlap: int
    processing_time_ms: float
    summaries: List[str]


class ChatSession:

    def __init__(
        self,
        session_id: str,
        embedding_service,
        llm_service,
        top_k: int = 2,
        max_history_pairs: int = 5,
        refresh_enabled: bool = True,
        refresh_time: str = "00:00",
    ):
        self.id = session_id
        self.embedding_service = embedding_service
        self.llm_service = llm_service
        self.top_k = top_k
        self.max_history_pairs = max_history_pairs
        self.refresh_enabled = refresh_enabled
        self.refresh_time = refresh_time
        self.created_at = datetime.now(timezone.utc)

        self.index: Optional[VectorStoreIndex] = None
        self.retriever = None
        self.chat_engine: Optional[ContextChatEngine] = None

        self.messages: List[ChatMessage] = []
        self.files: List[UploadedFile] = []
        self.pages: List[RawPage] = []

        self.lock = asyncio.Lock()
        self.closed = False
        self.refresh_task: Optional[IndexRefreshTask] = None

    async def process_documents(self, pages: List[RawPage], schedule_refresh: bool = True) -> ProcessingReport:
        """Rebuild index, retriever and chat engine from ``pages``.

        The batch is all-or-nothing: on any failure the previous handles stay in place.
        """
        async with self.lock:
            self._ensure_open()
            start_time = time.perf_counter()

            docs = preprocess_documents(pages)
            if not validate_documents(docs):
                logger.error("Document validation failed.", session_id=self.id, documents=len(docs))
                raise DocumentValidationError("Document validation failed.")

            log_document_processing(docs)
            params = optimize_index_parameters(docs)

            loop = asyncio.get_running_loop()
            index = await loop.run_in_executor(None, partial(
                VectorStoreIndex.from_documents,
                docs,
                self.embedding_service,
                params.chunk_size,
                params.chunk_overlap,
            ))
            # close() may have been requested while the index was being built
            if self.closed:
                index.reset()
                self._ensure_open()
            retriever = index.as_retriever(similarity_top_k=self.top_k)

            if self.chat_engine is not None:
                self.chat_engine.reset()
            previous_index = self.index

            self.index = index
            self.retriever = retriever
            self.chat_engine = ContextChatEngine(retriever, self.llm_service, self.max_history_pairs)
            self.pages = list(pages)

            if previous_index is not None:
                previous_index.reset()

            logger.info("Asynchronous document processing completed.", session_id=self.id, chunks=len(index))

            summaries = summarize_documents(pages)
            for i, summary in enumerate(summaries):
                logger.info(f"Summary of Document {i + 1}", summary=summary)

            processing_time_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"Processing time: {processing_time_ms:.2f} ms", session_id=self.id)

            if schedule_refresh:
                self.schedule_refresh(self.pages)

        return ProcessingReport(
            documents_count=len(docs),
            chunks_count=len(index),
            chunk_size=params.chunk_size,
            chunk_overlap=params.chunk_overlap,
            processing_time_ms=round(processing_time_ms, 2),
            summaries=summaries,
        )

    async def reload_documents(self) -> ProcessingReport:
        if not self.pages:
            raise DocumentValidationError("No documents to reload.")
        logger.info("Reloading documents and refreshing index...", session_id=self.id)
        report = await self.process_documents(self.pages)
        logger.info("Documents reloaded and index refreshed.", session_id=self.id)
        return report

    def schedule_refresh(self, pages: List[RawPage]) -> None:
        self.cancel_refresh()
        if not self.refresh_enabled:
            return

        snapshot = list(pages)

        async def refresh():
            await self.process_documents(snapshot, schedule_refresh=False)

        self.refresh_task = IndexRefreshTask(refresh, self.refresh_time, name=f"index-refresh-{self.id}")
        self.refresh_task.start()

    def cancel_refresh(self) -> None:
        if self.refresh_task is not None:
            self.refresh_task.cancel()
            self.refresh_task = None

    async def chat(self, query: str) -> ChatResult:
        async with self.lock:
            if self.chat_engine is None:
                logger.warning(ENGINE_NOT_INITIALIZED, session_id=self.id)
                raise ChatEngineNotInitializedError(ENGINE_NOT_INITIALIZED)

            self.messages.append(ChatMessage(role="human", statement=query))
            logger.info("Querying chat engine", session_id=self.id, query=query)

            loop = asyncio.get_running_loop()
            try:
                result = await loop.run_in_executor(None, self.chat_engine.chat, query)
            except EmptyResponseError:
                logger.error("Chat response is empty.", session_id=self.id)
                raise

            self.messages.append(ChatMessage(role="ai", statement=result.response))
            return result

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError("Session is closed.")

    def _reset(self) -> None:
        self.messages = []
        if self.chat_engine is not None:
            self.chat_engine.reset()
            logger.info("Chat engine reset.", session_id=self.id)
        else:
            logger.warning(ENGINE_NOT_INITIALIZED, session_id=self.id)

    async def reset(self) -> None:
        async with self.lock:
            self._reset()

    async def close(self) -> None:
        # Flag first so an in-flight build discards its result instead of committing
        self.closed = True
        async with self.lock:
            self._close()

    def _close(self) -> None:
        self._reset()
        self.cancel_refresh()
        if self.index is not None:
            self.index.reset()
        self.index = None
        self.retriever = None
        self.chat_engine = None
        self.files = []
        self.pages = []
        logger.info("session_closed", session_id=self.id)

    def status(self) -> str:
        if self.chat_engine is None:
            logger.warning(ENGINE_NOT_INITIALIZED, session_id=self.id)
            return ENGINE_NOT_INITIALIZED
        logger.info(ENGINE_RUNNING, session_id=self.id)
        return ENGINE_RUNNING

    def export_index(self, file_path: Path) -> Path:
        if self.index is None:
            raise IndexNotInitializedError("Index is not initialized.")
        path = self.index.export(file_path)
        logger.info(f"Index exported to {path}", session_id=self.id)
        return path


class SessionRegistry:
    """Owns every live ChatSession; lives on the FastAPI app state."""

    def __init__(self, embedding_service, llm_service, **session_options):
        self.embedding_service = embedding_service
        self.llm_service = llm_service
        self.session_options = session_options
        self._sessions: Dict[str, ChatSession] = {}

    def create(self) -> ChatSession:
        session = ChatSession(
            uuid.uuid4().hex,
            self.embedding_service,
            self.llm_service,
            **self.session_options,
        )
        self._sessions[session.id] = session
        logger.info("session_created", session_id=session.id)
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)
