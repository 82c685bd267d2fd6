import asyncio
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from core.config import settings
from core.logging_config import get_logger, log_error
from dependencies.session import get_session
from rag_services.errors import (
    DocumentValidationError,
    IndexNotInitializedError,
    PDFExtractionError,
    SessionClosedError,
)
from rag_services.pdf_processor import PDFProcessor
from rag_services.session import ChatSession, ProcessingReport, UploadedFile
from schemas.session import IndexExportResponse, UploadResponse
from services.chat_store import file_timestamp

router = APIRouter()
logger = get_logger("documents")

pdf_processor = PDFProcessor()


def _is_pdf(file: UploadFile) -> bool:
    if not file.filename:
        return False
    return file.filename.lower().endswith(tuple(settings.ALLOWED_EXTENSIONS))


async def _build_index(session: ChatSession, coro) -> ProcessingReport:
    try:
        return await coro
    except DocumentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionClosedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        log_error(logger, e, f"creating index for session {session.id}")
        raise HTTPException(status_code=500, detail="Error while creating index")


@router.post("/sessions/{session_id}/documents", response_model=UploadResponse)
async def upload_documents(
    files: List[UploadFile] = File(...),
    session: ChatSession = Depends(get_session),
):
    """
    Upload one or more PDFs and build the session's index from their pages.

    Non-PDF files are skipped. The whole batch is rejected if any page has no text.

    Response:
    ```json
    {
        "message": "Done creating Index from the PDFs.",
        "files": ["report.pdf"],
        "skipped_files": [],
        "documents_count": 12,
        "chunks_count": 48,
        "chunk_size": 300,
        "chunk_overlap": 20,
        "processing_time_ms": 812.4,
        "summaries": ["..."]
    }
    ```
    """
    pdf_files = [f for f in files if _is_pdf(f)]
    skipped = [f.filename or "" for f in files if not _is_pdf(f)]
    if not pdf_files:
        raise HTTPException(status_code=400, detail="Drop PDFs only")

    loop = asyncio.get_running_loop()
    uploads = []
    pages = []
    for file in pdf_files:
        pdf_bytes = await file.read()
        if len(pdf_bytes) > settings.MAX_FILE_SIZE_MB * 1024 * 1024:
            raise HTTPException(status_code=400, detail="File size limit exceeded")

        try:
            file_pages = await loop.run_in_executor(None, pdf_processor.load_pages, pdf_bytes, file.filename)
        except PDFExtractionError as e:
            raise HTTPException(status_code=400, detail=str(e))

        uploads.append(UploadedFile(
            name=file.filename,
            media_type=file.content_type or "application/pdf",
            data=pdf_bytes,
            page_count=len(file_pages),
        ))
        pages.extend(file_pages)

    logger.info("Creating Index from the PDFs...", session_id=session.id, files=len(uploads), pages=len(pages))
    report = await _build_index(session, session.process_documents(pages))
    session.files = uploads

    return UploadResponse(
        message="Done creating Index from the PDFs.",
        files=[u.name for u in uploads],
        skipped_files=skipped,
        **report._asdict(),
    )


@router.post("/sessions/{session_id}/documents/reload", response_model=UploadResponse)
async def reload_documents(session: ChatSession = Depends(get_session)):
    """Re-run the whole pipeline over the pages from the last upload."""
    report = await _build_index(session, session.reload_documents())
    return UploadResponse(
        message="Documents reloaded and index refreshed.",
        files=[f.name for f in session.files],
        **report._asdict(),
    )


@router.post("/sessions/{session_id}/index/export", response_model=IndexExportResponse)
async def export_index(session: ChatSession = Depends(get_session)):
    file_path = Path(settings.INDEX_EXPORT_DIR) / f"index-{file_timestamp()}.json"
    try:
        path = session.export_index(file_path)
    except IndexNotInitializedError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return IndexExportResponse(path=str(path), chunks_count=len(session.index))
