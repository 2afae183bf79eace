"""Data models for comment input."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Comment(BaseModel):
    """A submitted comment as seen by the clustering engine."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable, unique comment identifier")
    content: str = Field("", description="Comment body plus extracted attachment text")
    document_id: Optional[str] = Field(None, description="Docket document the comment was filed on")

    @property
    def length(self) -> int:
        """Content length, used to pick the cluster representative."""
        return len(self.content)

    @classmethod
    def from_parts(
        cls,
        comment_id: str,
        body: Optional[str],
        attachment_text: Optional[str] = None,
        document_id: Optional[str] = None,
    ) -> "Comment":
        """Build a comment from its body and attachment text."""
        parts = [p.strip() for p in (body, attachment_text) if p and p.strip()]
        return cls(id=comment_id, content="\n\n".join(parts), document_id=document_id)
