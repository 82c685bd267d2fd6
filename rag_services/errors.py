"""
Exceptions raised by the RAG services and translated to HTTP errors by the routers
"""


class RAGError(RuntimeError):
    """Base class for document pipeline and chat failures."""


class PDFExtractionError(RAGError):
    pass


class DocumentValidationError(RAGError):
    pass


class IndexNotInitializedError(RAGError):
    pass


class ChatEngineNotInitializedError(RAGError):
    pass


class EmptyResponseError(RAGError):
    pass


class SessionClosedError(RAGError):
    pass
