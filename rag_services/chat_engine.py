"""
Context chat engine: retrieve relevant chunks, then ask the LLM
"""
from typing import Any, Dict, List, NamedTuple

from models.document import NodeWithScore
from rag_services.errors import EmptyResponseError


class ChatResult(NamedTuple):
    response: str
    source_nodes: List[NodeWithScore]

    @property
    def metadata(self) -> List[Dict[str, Any]]:
        return [node.metadata for node in self.source_nodes]


class ContextChatEngine:
    """Answers each message with the retrieved context and a bounded history."""

    def __init__(self, retriever, llm, max_history_pairs: int = 5):
        self.retriever = retriever
        self.llm = llm
        self.max_history_pairs = max_history_pairs
        self.history: List[Dict[str, str]] = []

    def chat(self, message: str) -> ChatResult:
        source_nodes = self.retriever.retrieve(message)
        context = "\n\n".join(n.node.text for n in source_nodes)

        response = self.llm.generate_answer(message, context, self.history)
        if not response or not response.strip():
            raise EmptyResponseError("No response from the chat engine.")

        self.history.append({"user": message, "assistant": response})
        if len(self.history) > self.max_history_pairs:
            self.history = self.history[-self.max_history_pairs:]

        return ChatResult(response=response, source_nodes=source_nodes)

    def reset(self) -> None:
        self.history = []
