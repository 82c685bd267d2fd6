from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class SessionResponse(BaseModel):
    session_id: str
    created_at: datetime
    status: str


class StatusResponse(BaseModel):
    session_id: str
    status: str
    has_index: bool
    files_count: int
    chunks_count: int
    refresh_scheduled: bool


class MessageResponse(BaseModel):
    message: str


class FileInfo(BaseModel):
    index: int
    name: str
    size: int
    page_count: int
    preview_url: str


class UploadResponse(BaseModel):
    message: str
    files: List[str]
    skipped_files: List[str] = []
    documents_count: int
    chunks_count: int
    chunk_size: int
    chunk_overlap: int
    processing_time_ms: float
    summaries: List[str]


class IndexExportResponse(BaseModel):
    path: str
    chunks_count: int


class HealthResponse(BaseModel):
    status: str
    sessions: int
    environment: Optional[str] = None
