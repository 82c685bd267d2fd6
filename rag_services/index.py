"""
In-memory vector index over document chunks (FAISS dense + BM25 sparse)
"""
import json
from pathlib import Path
from typing import Any, Dict, List

import faiss
import numpy as np
from rank_bm25 import BM25Okapi

from models.document import Document, TextNode
from rag_services.pdf_processor import PDFProcessor
from rag_services.retrieval import HybridRetriever


class VectorStoreIndex:
    """Chunks documents, embeds the chunks and keeps both search indices."""

    def __init__(
        self,
        nodes: List[TextNode],
        embeddings: List[List[float]],
        embedding_service,
        chunk_size: int,
        chunk_overlap: int,
    ):
        if not nodes:
            raise ValueError("Cannot build an index without nodes")

        self.nodes = nodes
        self.embedding_service = embedding_service
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

        self.embeddings = np.array(embeddings).astype("float32")
        self.dense_index = faiss.IndexFlatL2(self.embeddings.shape[1])
        self.dense_index.add(self.embeddings)

        tokenized_chunks = [node.text.lower().split() for node in nodes]
        self.bm25_index = BM25Okapi(tokenized_chunks)

    @classmethod
    def from_documents(
        cls,
        documents: List[Document],
        embedding_service,
        chunk_size: int,
        chunk_overlap: int,
    ) -> "VectorStoreIndex":
        nodes = []
        for doc in documents:
            chunks = PDFProcessor.create_chunks(doc.text, chunk_size, chunk_overlap)
            for chunk_index, chunk in enumerate(chunks):
                nodes.append(TextNode(
                    text=chunk,
                    metadata={**(doc.metadata or {}), "chunk_index": chunk_index},
                ))

        embeddings = embedding_service.get_embeddings([node.text for node in nodes])
        return cls(nodes, embeddings, embedding_service, chunk_size, chunk_overlap)

    def as_retriever(self, similarity_top_k: int = 2):
        return HybridRetriever(self, top_k=similarity_top_k)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_size": self.chunk_size,
            "chunk_overlap": self.chunk_overlap,
            "nodes": [
                {
                    "text": node.text,
                    "metadata": node.metadata,
                    "embedding": self.embeddings[i].tolist(),
                }
                for i, node in enumerate(self.nodes)
            ],
        }

    def export(self, file_path: Path) -> Path:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return file_path

    def reset(self) -> None:
        self.dense_index.reset()

    def __len__(self) -> int:
        return len(self.nodes)
