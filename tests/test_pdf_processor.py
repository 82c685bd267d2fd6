import pytest

from rag_services.errors import PDFExtractionError
from rag_services.pdf_processor import PDFProcessor


def test_load_pages_returns_one_page_per_pdf_page(pdf_factory):
    pdf_bytes = pdf_factory(["First page text", "Second page text"])

    pages = PDFProcessor.load_pages(pdf_bytes, "doc.pdf")

    assert len(pages) == 2
    assert "First page text" in pages[0].page_content
    assert "Second page text" in pages[1].page_content
    assert pages[0].metadata == {"source": "doc.pdf", "page_number": 1, "total_pages": 2}
    assert pages[1].metadata["page_number"] == 2


def test_load_pages_rejects_garbage():
    with pytest.raises(PDFExtractionError) as exc_info:
        PDFProcessor.load_pages(b"definitely not a pdf", "bad.pdf")

    assert str(exc_info.value).startswith("Failed to extract text from PDF")


def test_normalize_whitespace():
    assert PDFProcessor.normalize_whitespace("\n a \t\t b\n\nc  ") == "a b c"


def test_create_chunks_overlap():
    text = "abcdefghij"

    chunks = PDFProcessor.create_chunks(text, chunk_size=4, overlap=1)

    assert chunks == ["abcd", "defg", "ghij"]


def test_create_chunks_short_text_is_single_chunk():
    assert PDFProcessor.create_chunks("short", chunk_size=300, overlap=20) == ["short"]
    assert PDFProcessor.create_chunks("", chunk_size=300, overlap=20) == []


def test_create_chunks_rejects_overlap_not_smaller_than_size():
    with pytest.raises(ValueError):
        PDFProcessor.create_chunks("text", chunk_size=10, overlap=10)
