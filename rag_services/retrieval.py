"""
Hybrid search retrieval using FAISS and BM25
"""
from typing import Dict, List

import numpy as np

from models.document import NodeWithScore


class HybridRetriever:
    """Handles hybrid search over a VectorStoreIndex."""

    def __init__(self, index, top_k: int = 2):
        self.index = index
        self.top_k = top_k

    def retrieve(self, query: str) -> List[NodeWithScore]:
        """Perform hybrid search combining dense and sparse retrieval."""
        top_k = min(self.top_k, len(self.index))
        if top_k <= 0:
            return []
        dense_results = self._dense_search(query, top_k)
        sparse_results = self._sparse_search(query, top_k)
        return self._combine_results(dense_results, sparse_results, top_k)

    def _dense_search(self, query: str, top_k: int) -> Dict[int, float]:
        """Perform dense vector search using FAISS."""
        q_emb = np.array(
            self.index.embedding_service.get_query_embedding(query),
            dtype="float32"
        )
        scores, indices = self.index.dense_index.search(np.array([q_emb]), top_k)

        # FAISS pads missing results with -1
        return {
            int(indices[0][i]): 1.0 / (1.0 + float(scores[0][i]))
            for i in range(len(indices[0]))
            if indices[0][i] >= 0
        }

    def _sparse_search(self, query: str, top_k: int) -> Dict[int, float]:
        """Perform sparse keyword search using BM25."""
        tokens = query.lower().split()
        if not tokens:
            return {}
        scores = self.index.bm25_index.get_scores(tokens)
        top_indices = np.argsort(scores)[-top_k:][::-1]

        return {
            int(i): float(scores[i])
            for i in top_indices
            if scores[i] > 0
        }

    def _combine_results(self, dense: dict, sparse: dict, top_k: int) -> List[NodeWithScore]:
        """Combine and rank results from both searches."""
        all_indices = set(dense.keys()) | set(sparse.keys())

        combined = [
            NodeWithScore(node=self.index.nodes[i], score=dense.get(i, 0.0) + sparse.get(i, 0.0))
            for i in all_indices
        ]

        combined.sort(key=lambda x: x.score, reverse=True)
        return combined[:top_k]
