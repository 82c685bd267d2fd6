"""
Embedding generation service using an OpenAI-compatible API
"""
from typing import List, Optional
from openai import OpenAI


class EmbeddingService:
    """Handles embedding generation using OpenAI."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        batch_size: int = 100,
    ):
        # Delay OpenAI client construction until first use so importing
        # modules does not fail when OPENAI_API_KEY is not set.
        self._client = None
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.batch_size = batch_size

    def _ensure_client(self):
        if self._client is None:
            try:
                self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
            except Exception as e:
                raise RuntimeError(
                    "OpenAI client could not be initialized. "
                    "Set the OPENAI_API_KEY environment variable or configure OPENAI_BASE_URL. "
                    f"Original error: {e}"
                ) from e

    def get_embeddings(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for a list of texts in batches to avoid token limits."""
        self._ensure_client()

        all_embeddings = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            response = self._client.embeddings.create(
                model=self.model,
                input=batch
            )
            all_embeddings.extend([d.embedding for d in response.data])

        return all_embeddings

    def get_query_embedding(self, query: str) -> List[float]:
        return self.get_embeddings([query])[0]
