from fastapi import Depends, HTTPException, Request, status

from rag_services.session import ChatSession, SessionRegistry
from services.chat_store import ChatStore


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store


async def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> ChatSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session
