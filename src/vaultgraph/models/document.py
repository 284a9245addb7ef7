"""Document model - entries supplied by the host document collaborator."""

from dataclasses import dataclass, field
from typing import Any

AI_TAGS_FIELD = "ai-tags"


@dataclass
class Document:
    """
    A document as listed by the host application.

    Only metadata is carried here; the text body is fetched on demand through
    ``DocumentSource.read_text`` when embeddings are generated.
    """

    id: str  # Stable path, e.g. "notes/docker.md"
    display_name: str

    # Metadata cache from the host
    tags: list[str] = field(default_factory=list)  # Structured tags, e.g. "#docker"
    outbound_references: list[str] = field(default_factory=list)  # Raw link targets
    frontmatter: dict[str, Any] = field(default_factory=dict)

    # Flags used by view filters
    is_attachment: bool = False
    exists: bool = True

    # Optional inline body (JSON collections used by scripts/tests)
    content: str | None = None

    @property
    def ai_tags_field(self) -> Any:
        """Raw value of the AI-tags frontmatter field (list, string or None)."""
        return self.frontmatter.get(AI_TAGS_FIELD)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON storage."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "tags": self.tags,
            "outbound_references": self.outbound_references,
            "frontmatter": self.frontmatter,
            "is_attachment": self.is_attachment,
            "exists": self.exists,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        """Create from dictionary (JSON record)."""
        doc_id = data["id"]
        return cls(
            id=doc_id,
            display_name=data.get("display_name") or _basename(doc_id),
            tags=list(data.get("tags") or []),
            outbound_references=list(data.get("outbound_references") or []),
            frontmatter=dict(data.get("frontmatter") or {}),
            is_attachment=data.get("is_attachment", False),
            exists=data.get("exists", True),
            content=data.get("content"),
        )


def _basename(path: str) -> str:
    """File name without directories and extension."""
    name = path.rsplit("/", 1)[-1]
    if "." in name:
        name = name.rsplit(".", 1)[0]
    return name
