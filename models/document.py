from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RawPage(BaseModel):
    """One page of text as returned by the PDF loader."""
    page_content: str
    metadata: Optional[Dict[str, Any]] = Field(default_factory=dict)


class Document(BaseModel):
    text: str
    metadata: Optional[Dict[str, Any]] = None

    model_config = {"frozen": True}


class TextNode(BaseModel):
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NodeWithScore(BaseModel):
    node: TextNode
    score: float = 0.0

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.node.metadata
