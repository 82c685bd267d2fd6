from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from dependencies.session import get_registry, get_session
from rag_services.session import ChatSession, SessionRegistry
from schemas.session import FileInfo, MessageResponse, SessionResponse, StatusResponse

router = APIRouter()


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(registry: SessionRegistry = Depends(get_registry)):
    """
    Open a new chat session. Every other session endpoint is keyed by the returned id.

    Response:
    ```json
    {
        "session_id": "3f0c9b6a1e8d4c3fa0c2b7d9e5f41a20",
        "created_at": "2026-10-17T10:44:00Z",
        "status": "Chat engine is not initialized."
    }
    ```
    """
    session = registry.create()
    return SessionResponse(
        session_id=session.id,
        created_at=session.created_at,
        status=session.status(),
    )


@router.delete("/sessions/{session_id}", response_model=MessageResponse)
async def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Close the session: reset the chat, cancel the scheduled refresh and drop the files."""
    if not await registry.close(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return MessageResponse(message="Session closed")


@router.get("/sessions/{session_id}/status", response_model=StatusResponse)
async def get_status(session: ChatSession = Depends(get_session)):
    return StatusResponse(
        session_id=session.id,
        status=session.status(),
        has_index=session.index is not None,
        files_count=len(session.files),
        chunks_count=len(session.index) if session.index is not None else 0,
        refresh_scheduled=session.refresh_task is not None and session.refresh_task.running,
    )


@router.post("/sessions/{session_id}/reset", response_model=MessageResponse)
async def reset_chat(session: ChatSession = Depends(get_session)):
    """Clear the conversation; the index stays loaded."""
    await session.reset()
    return MessageResponse(message="Chat reset")


@router.get("/sessions/{session_id}/files", response_model=List[FileInfo])
async def list_files(session: ChatSession = Depends(get_session)):
    return [
        FileInfo(
            index=i,
            name=f.name,
            size=len(f.data),
            page_count=f.page_count,
            preview_url=f"/sessions/{session.id}/files/{i}",
        )
        for i, f in enumerate(session.files)
    ]


@router.get("/sessions/{session_id}/files/{file_index}")
async def preview_file(file_index: int, session: ChatSession = Depends(get_session)):
    """
    Get an uploaded PDF for inline preview. Files only live in memory for the session.
    """
    if file_index < 0 or file_index >= len(session.files):
        raise HTTPException(status_code=404, detail="File not found")

    uploaded = session.files[file_index]
    return Response(
        content=uploaded.data,
        media_type=uploaded.media_type,
        headers={"Content-Disposition": f'inline; filename="{uploaded.name}"'},
    )
