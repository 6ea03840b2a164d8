"""Near-duplicate detection over stored embeddings."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
from pydantic import BaseModel, Field

from mane.store import CollectionName, MediaClass, Record, VectorRecordStore

from .models import ActionKind, FileAction, new_action_id
from .paths import parent_directory

LOGGER = logging.getLogger(__name__)


class DuplicateFile(BaseModel):
    """A member of a duplicate group."""

    record_id: str
    source_path: str
    display_name: str
    media_class: MediaClass
    similarity: float = 1.0


class DuplicateGroup(BaseModel):
    """Records whose embeddings are near-identical.

    Attributes:
        primary: Member kept when resolving the group (the first one found).
        duplicates: Remaining members with their similarity to the primary.
        average_similarity: Mean of the duplicates' similarities.
    """

    primary: DuplicateFile
    duplicates: List[DuplicateFile] = Field(default_factory=list)
    average_similarity: float = 1.0


class DuplicateFinder:
    """Group records of one collection whose cosine similarity meets a threshold."""

    def __init__(
        self,
        store: VectorRecordStore,
        *,
        threshold: float = 0.95,
        scan_limit: int = 1_000,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1.")
        self._store = store
        self._threshold = threshold
        self._scan_limit = scan_limit

    def find(
        self,
        media_filter: Optional[MediaClass] = None,
        threshold: Optional[float] = None,
    ) -> list[DuplicateGroup]:
        """Return duplicate groups, largest first.

        Records are only compared within their own collection since the two
        embedding spaces are not comparable.

        Args:
            media_filter: Only consider records of this media class.
            threshold: Override of the configured similarity threshold.

        Returns:
            list[DuplicateGroup]: Groups of two or more records.
        """

        cutoff = self._threshold if threshold is None else threshold
        groups: list[DuplicateGroup] = []
        for collection in CollectionName:
            records = [
                record
                for record in self._store.scan(collection, self._scan_limit)
                if record.embedding and (media_filter is None or record.media_class == media_filter)
            ]
            groups.extend(find_duplicate_groups(records, cutoff))

        groups.sort(key=lambda group: len(group.duplicates), reverse=True)
        LOGGER.info("Found %d duplicate group(s) at threshold %.3f", len(groups), cutoff)
        return groups

    @staticmethod
    def generate_actions(groups: List[DuplicateGroup]) -> list[FileAction]:
        """Return ``delete`` actions removing every non-primary duplicate."""

        actions: list[FileAction] = []
        for group in groups:
            for duplicate in group.duplicates:
                actions.append(
                    FileAction(
                        id=new_action_id("dedup"),
                        kind=ActionKind.DELETE,
                        source_path=duplicate.source_path,
                        permission_scope=parent_directory(duplicate.source_path),
                        description=(
                            f'Delete duplicate "{duplicate.display_name}" '
                            f"({duplicate.similarity:.1%} similar to {group.primary.display_name})"
                        ),
                    )
                )
        return actions


def find_duplicate_groups(records: List[Record], threshold: float) -> list[DuplicateGroup]:
    """Group ``records`` whose pairwise cosine similarity is at least ``threshold``.

    Similarity is transitive through union-find: ``a~b`` and ``b~c`` put all
    three in one group even when ``a`` and ``c`` fall below the threshold.
    """

    if len(records) < 2:
        return []

    matrix = np.asarray([record.embedding for record in records], dtype=float)
    norms = np.linalg.norm(matrix, axis=1)
    safe = np.where(norms == 0, 1.0, norms)
    unit = matrix / safe[:, None]
    similarity = unit @ unit.T
    similarity[norms == 0, :] = 0.0
    similarity[:, norms == 0] = 0.0

    parent = list(range(len(records)))
    rank = [0] * len(records)

    def find(index: int) -> int:
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    def union(left: int, right: int) -> None:
        root_left, root_right = find(left), find(right)
        if root_left == root_right:
            return
        if rank[root_left] < rank[root_right]:
            root_left, root_right = root_right, root_left
        parent[root_right] = root_left
        if rank[root_left] == rank[root_right]:
            rank[root_left] += 1

    rows, cols = np.where(np.triu(similarity >= threshold, k=1))
    for left, right in zip(rows.tolist(), cols.tolist()):
        union(left, right)

    members: dict[int, list[int]] = {}
    for index in range(len(records)):
        members.setdefault(find(index), []).append(index)

    groups: list[DuplicateGroup] = []
    for indices in members.values():
        if len(indices) < 2:
            continue
        primary_index = indices[0]
        # Several records for one file are not duplicates of each other.
        seen = {records[primary_index].source_path}
        duplicates: list[DuplicateFile] = []
        for index in indices[1:]:
            if records[index].source_path in seen:
                continue
            seen.add(records[index].source_path)
            duplicates.append(
                _duplicate_file(records[index], round(float(similarity[primary_index, index]), 3))
            )
        if not duplicates:
            continue
        average = sum(item.similarity for item in duplicates) / len(duplicates)
        groups.append(
            DuplicateGroup(
                primary=_duplicate_file(records[primary_index], 1.0),
                duplicates=duplicates,
                average_similarity=round(average, 3),
            )
        )
    return groups


def _duplicate_file(record: Record, similarity: float) -> DuplicateFile:
    return DuplicateFile(
        record_id=record.id,
        source_path=record.source_path,
        display_name=record.display_name,
        media_class=record.media_class,
        similarity=similarity,
    )


__all__ = ["DuplicateFile", "DuplicateFinder", "DuplicateGroup", "find_duplicate_groups"]
