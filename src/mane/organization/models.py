"""Organization plan data models."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mane.store.models import MediaClass


class ActionValidationError(ValueError):
    """Raised when a file action is missing the paths its kind requires."""


class ActionKind(str, Enum):
    """Filesystem operations a plan may propose."""

    MOVE = "move"
    COPY = "copy"
    RENAME = "rename"
    DELETE = "delete"
    CREATE_FOLDER = "createFolder"
    DELETE_FOLDER = "deleteFolder"


_NEEDS_SOURCE = {
    ActionKind.MOVE,
    ActionKind.COPY,
    ActionKind.RENAME,
    ActionKind.DELETE,
    ActionKind.DELETE_FOLDER,
}
_NEEDS_DESTINATION = {
    ActionKind.MOVE,
    ActionKind.COPY,
    ActionKind.RENAME,
    ActionKind.CREATE_FOLDER,
}


def new_action_id(prefix: str = "action") -> str:
    """Return a unique identifier for a file action."""

    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class FileAction(BaseModel):
    """A proposed filesystem operation.

    Attributes:
        id: Unique action identifier.
        kind: Operation to perform.
        source_path: Path the operation reads from or removes.
        destination_path: Path the operation creates or writes to.
        permission_scope: Directory that must be writable for the action.
        description: Human-readable summary shown before approval.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_action_id)
    kind: ActionKind
    source_path: Optional[str] = None
    destination_path: Optional[str] = None
    permission_scope: str = ""
    description: str = ""

    @model_validator(mode="after")
    def _check_paths(self) -> "FileAction":
        if self.kind in _NEEDS_SOURCE and not self.source_path:
            raise ActionValidationError(f"{self.kind.value} actions require a source path.")
        if self.kind in _NEEDS_DESTINATION and not self.destination_path:
            raise ActionValidationError(f"{self.kind.value} actions require a destination path.")
        return self


class ExecutionResult(BaseModel):
    """Outcome reported by a filesystem executor for one action.

    Attributes:
        action_id: Identifier of the executed action.
        success: Whether the action completed.
        error: Failure description when ``success`` is false.
    """

    action_id: str
    success: bool
    error: Optional[str] = None


class ClusterMember(BaseModel):
    """A record assigned to a cluster."""

    record_id: str
    source_path: str
    display_name: str
    media_class: MediaClass = MediaClass.TEXT


class ClusterSample(BaseModel):
    """Name and content preview handed to a cluster labeler."""

    display_name: str
    preview: str = ""


class ClusterLabel(BaseModel):
    """Human-facing name of a cluster.

    Attributes:
        label: Short descriptive label.
        folder_name: Filesystem-safe folder slug.
        keywords: A handful of themes describing the cluster.
    """

    label: str
    folder_name: str
    keywords: List[str] = Field(default_factory=list)


class ClusterResult(BaseModel):
    """A labeled group of related records.

    Attributes:
        cluster_id: Zero-based cluster index from k-means.
        label: Descriptive label.
        folder_name: Folder slug used for the plan.
        keywords: Themes describing the cluster.
        members: Records assigned to the cluster.
        folder_path: Destination folder, or ``None`` when the cluster is too small to move.
    """

    cluster_id: int
    label: str
    folder_name: str
    keywords: List[str] = Field(default_factory=list)
    members: List[ClusterMember] = Field(default_factory=list)
    folder_path: Optional[str] = None

    @property
    def size(self) -> int:
        """Return the number of members in the cluster."""
        return len(self.members)

    @property
    def planned(self) -> bool:
        """Return whether the cluster contributes actions to the plan."""
        return self.folder_path is not None


class OrganizePlan(BaseModel):
    """Clusters and the file actions that materialize them."""

    target_folder: str
    clusters: List[ClusterResult] = Field(default_factory=list)
    actions: List[FileAction] = Field(default_factory=list)
    iterations: int = 0
    converged: bool = False
    notes: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Return whether there is nothing to organize."""
        return not self.actions


__all__ = [
    "ActionKind",
    "ActionValidationError",
    "ClusterLabel",
    "ClusterMember",
    "ClusterResult",
    "ClusterSample",
    "ExecutionResult",
    "FileAction",
    "OrganizePlan",
    "new_action_id",
]
