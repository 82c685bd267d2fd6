"""
Document preprocessing, validation and index parameter selection
"""
from typing import List, NamedTuple

from core.logging_config import get_logger
from models.document import Document, RawPage
from rag_services.pdf_processor import PDFProcessor

logger = get_logger("pipeline")

# Mean page length (characters) above which the larger chunk parameters are used
LONG_DOCUMENT_THRESHOLD = 1000
LONG_DOCUMENT_PARAMS = (500, 50)
SHORT_DOCUMENT_PARAMS = (300, 20)


class IndexParameters(NamedTuple):
    chunk_size: int
    chunk_overlap: int


def preprocess_documents(pages: List[RawPage]) -> List[Document]:
    """Normalize whitespace and enrich metadata with a word count."""
    docs = []
    for page in pages:
        text = PDFProcessor.normalize_whitespace(page.page_content)
        metadata = None
        if page.metadata is not None:
            metadata = {**page.metadata, "word_count": len(text.split())}
        docs.append(Document(text=text, metadata=metadata))
    return docs


def validate_documents(docs: List[Document]) -> bool:
    if not docs:
        return False
    return all(len(doc.text) > 0 and doc.metadata is not None for doc in docs)


def optimize_index_parameters(docs: List[Document]) -> IndexParameters:
    avg_doc_length = sum(len(doc.text) for doc in docs) / len(docs)

    if avg_doc_length > LONG_DOCUMENT_THRESHOLD:
        params = IndexParameters(*LONG_DOCUMENT_PARAMS)
    else:
        params = IndexParameters(*SHORT_DOCUMENT_PARAMS)

    logger.info(
        "index_parameters_selected",
        avg_doc_length=round(avg_doc_length, 2),
        chunk_size=params.chunk_size,
        chunk_overlap=params.chunk_overlap,
    )
    return params


def summarize_documents(pages: List[RawPage]) -> List[str]:
    """Naive summary: the first three sentences of every page."""
    summaries = []
    for page in pages:
        sentences = page.page_content.split(". ")
        summaries.append(". ".join(sentences[:3]) + "...")
    return summaries


def log_document_processing(docs: List[Document]) -> None:
    for i, doc in enumerate(docs):
        logger.info(
            f"Processing Document {i + 1}",
            doc_index=i,
            word_count=doc.metadata.get("word_count") if doc.metadata else None,
        )
