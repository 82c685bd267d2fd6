import json
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from core.logging_config import get_logger, log_error, log_query_execution
from dependencies.session import get_chat_store, get_session
from models.chat import ChatMessage
from rag_services.errors import ChatEngineNotInitializedError, EmptyResponseError
from rag_services.session import ChatSession
from schemas.chat import (
    ArchiveResponse,
    ChatFileListItem,
    ChatRequest,
    ChatResponse,
    MessagesResponse,
    SavedChatResponse,
)
from services.chat_store import ChatStore

router = APIRouter()
logger = get_logger("chat")


@router.post("/sessions/{session_id}/chat", response_model=ChatResponse)
async def chat(payload: ChatRequest, session: ChatSession = Depends(get_session)):
    """
    Ask a question about the uploaded PDFs.

    Request body:
    ```json
    {
        "message": "What does the report conclude?"
    }
    ```

    Response:
    ```json
    {
        "response": "The report concludes that...",
        "metadata": [{"source": "report.pdf", "page_number": 4, "word_count": 312, "chunk_index": 2}],
        "page": 4,
        "status": "Got response from AI."
    }
    ```
    """
    user_input = payload.message.strip()
    if not user_input:
        raise HTTPException(status_code=400, detail="'message' is required")

    try:
        result = await session.chat(user_input)
    except ChatEngineNotInitializedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except EmptyResponseError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        log_error(logger, e, f"chat in session {session.id}")
        raise HTTPException(status_code=500, detail="Error generating response.")

    metadata = result.metadata
    log_query_execution(logger, user_input, result.response, metadata)

    page = None
    if metadata:
        page = metadata[0].get("page_number")

    return ChatResponse(response=result.response, metadata=metadata, page=page)


@router.get("/sessions/{session_id}/messages", response_model=MessagesResponse)
async def get_messages(session: ChatSession = Depends(get_session)):
    return MessagesResponse(session_id=session.id, messages=session.messages)


@router.post("/sessions/{session_id}/chats/save", response_model=SavedChatResponse)
async def save_chat(
    session: ChatSession = Depends(get_session),
    store: ChatStore = Depends(get_chat_store),
):
    """Save the conversation as JSON under the chats directory."""
    try:
        path = store.save_chat(session.messages)
    except OSError as e:
        log_error(logger, e, "saving chat")
        raise HTTPException(status_code=500, detail="Failed to save chat.")
    return SavedChatResponse(path=str(path), message_count=len(session.messages))


@router.post("/sessions/{session_id}/chats/export", response_model=SavedChatResponse)
async def export_chat(
    session: ChatSession = Depends(get_session),
    store: ChatStore = Depends(get_chat_store),
):
    """Export the conversation as plain text, one "Human: ..." / "AI: ..." line per message."""
    try:
        path = store.export_chat(session.messages)
    except OSError as e:
        log_error(logger, e, "exporting chat")
        raise HTTPException(status_code=500, detail="Failed to export chat.")
    return SavedChatResponse(path=str(path), message_count=len(session.messages))


@router.get("/chats", response_model=List[ChatFileListItem])
async def list_chats(store: ChatStore = Depends(get_chat_store)):
    return [
        ChatFileListItem(filename=p.name, size=p.stat().st_size)
        for p in store.list_chats()
    ]


@router.get("/chats/{filename}", response_model=List[ChatMessage])
async def load_chat(filename: str, store: ChatStore = Depends(get_chat_store)):
    """Load a saved JSON chat. Unknown files yield an empty list."""
    # Only plain file names inside the chats directory
    safe_name = Path(filename).name
    if not safe_name.endswith(".json"):
        raise HTTPException(status_code=400, detail="Only saved .json chats can be loaded")
    try:
        return store.load_chat_history(store.chats_dir / safe_name)
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        log_error(logger, e, f"loading chat {safe_name}")
        raise HTTPException(status_code=400, detail="Invalid chat file")


@router.post("/chats/archive", response_model=ArchiveResponse)
async def archive_chats(store: ChatStore = Depends(get_chat_store)):
    archived = store.archive_chats()
    return ArchiveResponse(archived=archived, archive_dir=str(store.archive_dir))
