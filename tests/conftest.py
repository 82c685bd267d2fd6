import hashlib
import threading
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from main import create_app
from rag_services.session import SessionRegistry
from services.chat_store import ChatStore

EMBEDDING_DIM = 32

_UNSET = object()


class FakeEmbeddingService:
    """Bag-of-words hashing embeddings, no network."""

    def __init__(self):
        self.calls = 0
        self.fail = False
        # When set, get_embeddings blocks until the gate opens
        self.gate: Optional[threading.Event] = None
        self.started = threading.Event()

    def _embed(self, text: str) -> List[float]:
        vector = [0.0] * EMBEDDING_DIM
        vector[0] = 1.0
        for token in text.lower().split():
            bucket = hashlib.md5(token.encode("utf-8")).digest()[0] % (EMBEDDING_DIM - 1)
            vector[bucket + 1] += 1.0
        return vector

    def get_embeddings(self, texts: List[str]) -> List[List[float]]:
        self.calls += 1
        if self.gate is not None:
            self.started.set()
            self.gate.wait(5)
        if self.fail:
            raise RuntimeError("embedding backend unavailable")
        return [self._embed(t) for t in texts]

    def get_query_embedding(self, query: str) -> List[float]:
        return self.get_embeddings([query])[0]


class FakeLLMService:
    """Echoes the question unless ``response`` is set, and remembers what it was asked."""

    def __init__(self):
        self.response = _UNSET
        self.calls: List[Dict] = []
        self.gate: Optional[threading.Event] = None
        self.started = threading.Event()

    def generate_answer(self, query: str, context: str, history: List[Dict]) -> str:
        self.calls.append({"query": query, "context": context, "history": list(history)})
        if self.gate is not None:
            self.started.set()
            self.gate.wait(5)
        if self.response is not _UNSET:
            return self.response
        return f"Answer to: {query}"


def make_pdf(page_texts: List[str]) -> bytes:
    """Build a minimal single-font PDF with one line of text per page."""
    page_ids = [4 + 2 * i for i in range(len(page_texts))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(page_texts)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for i, text in enumerate(page_texts):
        content_id = page_ids[i] + 1
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_id} 0 R >>"
            ).encode()
        )
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def llm_service():
    return FakeLLMService()


@pytest.fixture
def registry(embedding_service, llm_service):
    return SessionRegistry(
        embedding_service,
        llm_service,
        top_k=2,
        max_history_pairs=5,
        refresh_enabled=True,
        refresh_time="00:00",
    )


@pytest.fixture
def chat_store(tmp_path):
    return ChatStore(str(tmp_path / "chats"), str(tmp_path / "archive"))


@pytest.fixture
def client(registry, chat_store):
    app = create_app(registry=registry, chat_store=chat_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_pdf():
    return make_pdf([
        "Solar panels convert sunlight into electricity. They are installed on roofs. Maintenance is low.",
        "Wind turbines generate power from moving air. Offshore farms are larger.",
    ])


@pytest.fixture
def pdf_factory():
    return make_pdf
