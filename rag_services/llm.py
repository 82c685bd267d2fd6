"""
LLM service for answer generation
"""
from openai import OpenAI
from typing import List, Dict, Optional


class LLMService:
    """Handles answer generation using an OpenAI-compatible chat model."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        max_tokens: int = 500,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self._client = None
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = api_key
        self.base_url = base_url

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def generate_answer(self, query: str, context: str, history: List[Dict]) -> str:
        """Generate an answer using the context and conversation history."""
        response = self.client.chat.completions.create(
            model=self.model,
            messages=self._build_messages(query, context, history),
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )

        return response.choices[0].message.content or ""

    def _build_messages(self, query: str, context: str, history: List[Dict]) -> List[Dict]:
        """Build the chat messages: system prompt with context, history, then the question."""
        messages = [{"role": "system", "content": self._system_prompt(context)}]
        for h in history:
            messages.append({"role": "user", "content": h["user"]})
            messages.append({"role": "assistant", "content": h["assistant"]})
        messages.append({"role": "user", "content": query})
        return messages

    @staticmethod
    def _system_prompt(context: str) -> str:
        return f"""You are a helpful assistant answering questions about the user's PDF documents. Use the context provided to give accurate, concise answers. If the answer isn't in the context, say so politely.

Context information is below.
---------------------
{context}
---------------------"""
