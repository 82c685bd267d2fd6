"""
PDF page extraction and chunking
"""
import io
import re
from typing import List
from pypdf import PdfReader

from models.document import RawPage
from rag_services.errors import PDFExtractionError


class PDFProcessor:
    """Handles PDF page extraction and chunking."""

    @staticmethod
    def load_pages(pdf_bytes: bytes, filename: str) -> List[RawPage]:
        """Extract one RawPage per PDF page, tagged with the source name and 1-based page number."""
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            total_pages = len(reader.pages)

            pages = []
            for i, page in enumerate(reader.pages):
                text = page.extract_text() or ""
                pages.append(RawPage(
                    page_content=text,
                    metadata={
                        "source": filename,
                        "page_number": i + 1,
                        "total_pages": total_pages,
                    },
                ))
            return pages

        except Exception as e:
            raise PDFExtractionError(f"Failed to extract text from PDF: {str(e)}") from e

    @staticmethod
    def normalize_whitespace(text: str) -> str:
        """Collapse every whitespace run to a single space."""
        return re.sub(r"\s+", " ", text).strip()

    @staticmethod
    def create_chunks(text: str, chunk_size: int, overlap: int) -> List[str]:
        if not text:
            return []

        if overlap >= chunk_size:
            raise ValueError("overlap must be smaller than chunk_size")

        chunks = []
        start = 0
        text_len = len(text)

        while start < text_len:
            end = min(start + chunk_size, text_len)
            chunks.append(text[start:end])

            if end == text_len:
                break

            start = end - overlap

        return chunks
