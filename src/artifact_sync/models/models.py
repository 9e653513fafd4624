"""Data models for the artifact synchronization engine."""

import json
import re
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArtifactKind(str, Enum):
    """Kinds of project documents that can be synchronized."""

    # Versioned kinds: every version is a new remote record, one local file
    REQUIREMENT = "requirement"
    HLD = "hld"
    LLD = "lld"
    FLOW_DIAGRAM = "flow_diagram"
    ER_DIAGRAM = "er_diagram"
    WIREFRAME_FILES = "wireframe_files"

    # Non-versioned kinds: local file is overwritten in place
    CONTEXT = "context"
    CODE_GUIDELINE = "code_guideline"
    TASKS = "tasks"

    @property
    def is_versioned(self) -> bool:
        """Whether artifacts of this kind are tracked by a root identifier."""
        return self in VERSIONED_KINDS


VERSIONED_KINDS = frozenset(
    {
        ArtifactKind.REQUIREMENT,
        ArtifactKind.HLD,
        ArtifactKind.LLD,
        ArtifactKind.FLOW_DIAGRAM,
        ArtifactKind.ER_DIAGRAM,
        ArtifactKind.WIREFRAME_FILES,
    }
)


class ArtifactIdentity(BaseModel):
    """Identifies one artifact: (collection, kind, name-or-id).

    ``artifact_id`` is the server-issued id of a specific record and
    ``root_id`` the id shared by all versions of a versioned artifact.
    """

    collection: str
    kind: ArtifactKind
    name: str
    artifact_id: Optional[str] = None
    root_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("collection", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty collection or artifact names."""
        if not v or not v.strip():
            raise ValueError("collection and name must not be empty")
        return v

    @property
    def file_key(self) -> str:
        """The name-or-id used in the local filename."""
        if self.kind.is_versioned and self.root_id:
            return self.root_id
        return self.artifact_id or self.name

    @property
    def version_key(self) -> str:
        """Key under which version metadata is stored."""
        return self.root_id or self.artifact_id or f"{self.kind.value}:{self.name}"

    def __str__(self) -> str:
        """Render as collection/kind/name."""
        return f"{self.collection}/{self.kind.value}/{self.file_key}"


class ArtifactFilters(BaseModel):
    """Optional filters applied when enumerating artifacts."""

    collection: Optional[str] = None
    kind: Optional[ArtifactKind] = None
    name: Optional[str] = None

    def matches(self, collection: str, kind: ArtifactKind, name: str) -> bool:
        """Check whether an artifact passes every set filter."""
        if self.collection and collection != self.collection:
            return False
        if self.kind and kind != self.kind:
            return False
        if self.name and name != self.name:
            return False
        return True


class ServerArtifact(BaseModel):
    """An artifact record as held by the remote backend."""

    artifact_id: str
    collection: str
    kind: ArtifactKind
    name: str
    content: str = ""
    version: int = 1
    root_id: Optional[str] = None
    content_hash: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def identity(self) -> ArtifactIdentity:
        """Identity of the local file this record maps to."""
        return ArtifactIdentity(
            collection=self.collection,
            kind=self.kind,
            name=self.name,
            artifact_id=self.artifact_id,
            root_id=self.root_id,
        )


class LocalArtifact(BaseModel):
    """An artifact file found under the local artifacts root."""

    collection: str
    kind: ArtifactKind
    name: str
    content: str
    file_path: Path
    last_modified: datetime

    @field_validator("file_path", mode="before")
    @classmethod
    def validate_file_path(cls, v: Union[str, Path]) -> Path:
        """Convert input to Path object."""
        return Path(v)

    @property
    def identity(self) -> ArtifactIdentity:
        """Identity derived from the filename."""
        return ArtifactIdentity(
            collection=self.collection, kind=self.kind, name=self.name
        )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class MarkdownContent(BaseModel):
    """Plain markdown body, used by most artifact kinds."""

    kind: Literal["markdown"] = "markdown"
    text: str = ""

    def render(self) -> str:
        """Text written to disk."""
        return self.text


_WIREFRAME_BLOCK = re.compile(r"```json\s*\n(.*?)\n```", re.DOTALL)


class WireframeContent(BaseModel):
    """Structured wireframe: a viewport and its positioned elements."""

    kind: Literal["wireframe"] = "wireframe"
    title: str = "Wireframe"
    viewport: Dict[str, Any] = Field(default_factory=dict)
    elements: List[Dict[str, Any]] = Field(default_factory=list)

    def render(self) -> str:
        """Render as markdown holding a single fenced JSON block."""
        body = json.dumps(
            {"viewport": self.viewport, "elements": self.elements}, indent=2
        )
        return f"# {self.title}\n\n```json\n{body}\n```\n"

    @classmethod
    def parse(cls, text: str) -> Optional["WireframeContent"]:
        """Parse rendered wireframe text, or None if it is not one."""
        match = _WIREFRAME_BLOCK.search(text or "")
        if not match:
            return None
        try:
            data = json.loads(match.group(1))
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict) or "elements" not in data:
            return None

        title_match = re.match(r"#\s+(.+)", text.strip())
        return cls(
            title=title_match.group(1).strip() if title_match else "Wireframe",
            viewport=data.get("viewport") or {},
            elements=data.get("elements") or [],
        )


ArtifactContent = Annotated[
    Union[MarkdownContent, WireframeContent], Field(discriminator="kind")
]


def content_for(
    kind: ArtifactKind, text: str
) -> Union[MarkdownContent, WireframeContent]:
    """Build the typed content variant for an artifact kind.

    Wireframe sets that do not carry a structured block fall back to
    markdown so hand-written notes survive a round trip.
    """
    if kind == ArtifactKind.WIREFRAME_FILES:
        wireframe = WireframeContent.parse(text)
        if wireframe is not None:
            return wireframe
    return MarkdownContent(text=text or "")


class TaskStatus(str, Enum):
    """Status markers used in task lists."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    QUEUED = "queued"
    BLOCKED = "blocked"


class Task(BaseModel):
    """A single task item; identified only by its description."""

    description: str
    status: TaskStatus = TaskStatus.NOT_STARTED
    id: Optional[str] = None
    order: int = 0
    is_optional: bool = False
