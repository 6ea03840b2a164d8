"""Clustering, planning, and execution of file organization."""

from .dedup import DuplicateFile, DuplicateFinder, DuplicateGroup, find_duplicate_groups
from .executor import LocalFileExecutor
from .kmeans import KMeansResult, choose_k, kmeans, seed_centroids
from .labeler import CompletionClusterLabeler, fallback_label, parse_label_response
from .models import (
    ActionKind,
    ActionValidationError,
    ClusterLabel,
    ClusterMember,
    ClusterResult,
    ClusterSample,
    ExecutionResult,
    FileAction,
    OrganizePlan,
    new_action_id,
)
from .paths import resolve_actual_destination, slugify_folder_name
from .planner import ClusterOrganizer

__all__ = [
    "ActionKind",
    "ActionValidationError",
    "ClusterLabel",
    "ClusterMember",
    "ClusterOrganizer",
    "ClusterResult",
    "ClusterSample",
    "CompletionClusterLabeler",
    "DuplicateFile",
    "DuplicateFinder",
    "DuplicateGroup",
    "ExecutionResult",
    "FileAction",
    "KMeansResult",
    "LocalFileExecutor",
    "OrganizePlan",
    "choose_k",
    "fallback_label",
    "find_duplicate_groups",
    "kmeans",
    "new_action_id",
    "parse_label_response",
    "resolve_actual_destination",
    "seed_centroids",
    "slugify_folder_name",
]
