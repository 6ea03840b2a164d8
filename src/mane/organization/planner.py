"""Cluster-based organization planning."""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Optional, Sequence

from mane.collaborators import ClusterLabeler, TextEmbedder
from mane.config import expand_path
from mane.config.models import OrganizationSettings
from mane.search.text import preview_text
from mane.store import CollectionName, Record, VectorRecordStore

from .kmeans import KMeansResult, choose_k, kmeans
from .labeler import fallback_label
from .models import (
    ActionKind,
    ClusterLabel,
    ClusterMember,
    ClusterResult,
    ClusterSample,
    FileAction,
    OrganizePlan,
    new_action_id,
)
from .paths import numbered_name, slugify_folder_name

LOGGER = logging.getLogger(__name__)


class ClusterOrganizer:
    """Group stored records by similarity and plan folders for them."""

    def __init__(
        self,
        store: VectorRecordStore,
        *,
        text_embedder: Optional[TextEmbedder] = None,
        labeler: Optional[ClusterLabeler] = None,
        settings: Optional[OrganizationSettings] = None,
        scan_limit: int = 1_000,
    ) -> None:
        """Initialise the organizer.

        Args:
            store: Store providing the records to cluster.
            text_embedder: Embeds visual records' content into the text space so
                every record can be clustered together; visual records are
                skipped without one.
            labeler: Names clusters; fallback labels are used when absent.
            settings: Organization settings.
            scan_limit: Maximum number of records read from the store.
        """

        self._store = store
        self._text_embedder = text_embedder
        self._labeler = labeler
        self._settings = settings or OrganizationSettings()
        self._scan_limit = scan_limit

    def organize(self, max_clusters: Optional[int] = None) -> list[ClusterResult]:
        """Cluster the stored records and label every cluster.

        Args:
            max_clusters: Upper bound on ``k``; defaults to ``organization.max_clusters``.

        Returns:
            list[ClusterResult]: Labeled clusters sorted by descending size, or an
            empty list when fewer than ``organization.min_records`` records are embedded.
        """

        clusters, _ = self._cluster(max_clusters)
        return clusters

    def plan(
        self,
        max_clusters: Optional[int] = None,
        target_folder: Optional[str] = None,
    ) -> OrganizePlan:
        """Cluster the stored records and return the resulting file actions."""

        clusters, run = self._cluster(max_clusters)
        plan = self.build_plan(clusters, target_folder)
        if run is not None:
            plan.iterations = run.iterations
            plan.converged = run.converged
        else:
            plan.notes.append("Not enough embedded records to organize.")
        return plan

    def build_plan(
        self,
        clusters: Sequence[ClusterResult],
        target_folder: Optional[str] = None,
    ) -> OrganizePlan:
        """Materialize ``clusters`` into ``createFolder`` and ``move`` actions.

        Clusters smaller than ``organization.min_cluster_size`` are kept in the
        plan's cluster list but receive no folder. Folder slugs that collide get
        ``_2``, ``_3`` suffixes and same-named members get ``-1``, ``-2`` suffixes.

        Args:
            clusters: Labeled clusters, typically from :meth:`organize`.
            target_folder: Base directory; defaults to ``organization.target_folder``.

        Returns:
            OrganizePlan: Clusters with their folder paths and the ordered actions.
        """

        base = str(expand_path(target_folder or self._settings.target_folder))
        plan = OrganizePlan(target_folder=base)
        used_slugs: set[str] = set()

        for cluster in clusters:
            if cluster.size < self._settings.min_cluster_size:
                plan.clusters.append(cluster.model_copy(update={"folder_path": None}))
                continue

            slug = _unique_slug(cluster.folder_name, used_slugs)
            folder_path = str(PurePath(base) / slug)
            plan.actions.append(
                FileAction(
                    id=new_action_id("create"),
                    kind=ActionKind.CREATE_FOLDER,
                    destination_path=folder_path,
                    permission_scope=base,
                    description=f'Create folder "{slug}" for {cluster.label}',
                )
            )

            occupied: set[str] = set()
            for member in cluster.members:
                name = _unique_member_name(member.display_name, occupied)
                destination = str(PurePath(folder_path) / name)
                if destination == member.source_path:
                    continue
                plan.actions.append(
                    FileAction(
                        id=new_action_id("move"),
                        kind=ActionKind.MOVE,
                        source_path=member.source_path,
                        destination_path=destination,
                        permission_scope=folder_path,
                        description=f'Move "{member.display_name}" to {slug}',
                    )
                )
            plan.clusters.append(
                cluster.model_copy(update={"folder_name": slug, "folder_path": folder_path})
            )

        LOGGER.info(
            "Planned %d action(s) across %d cluster(s) under %s",
            len(plan.actions),
            sum(1 for cluster in plan.clusters if cluster.planned),
            base,
        )
        return plan

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _cluster(
        self, max_clusters: Optional[int]
    ) -> tuple[list[ClusterResult], Optional[KMeansResult]]:
        limit = self._settings.max_clusters if max_clusters is None else max_clusters
        if limit < 1:
            raise ValueError("max_clusters must be at least 1.")

        records, vectors = self._embedded_records()
        if len(records) < self._settings.min_records:
            LOGGER.info(
                "Only %d embedded record(s); at least %d are needed to organize",
                len(records),
                self._settings.min_records,
            )
            return [], None

        k = choose_k(len(records), limit)
        LOGGER.info("Clustering %d record(s) into %d cluster(s)", len(records), k)
        run = kmeans(
            vectors,
            k,
            max_iterations=self._settings.max_iterations,
            seed=self._settings.seed,
        )

        clusters: list[ClusterResult] = []
        for cluster_id, indices in run.groups().items():
            members = [records[index] for index in indices]
            label = self._label(cluster_id, members)
            clusters.append(
                ClusterResult(
                    cluster_id=cluster_id,
                    label=label.label,
                    folder_name=label.folder_name,
                    keywords=label.keywords,
                    members=[
                        ClusterMember(
                            record_id=record.id,
                            source_path=record.source_path,
                            display_name=record.display_name,
                            media_class=record.media_class,
                        )
                        for record in members
                    ],
                )
            )

        clusters.sort(key=lambda cluster: cluster.size, reverse=True)
        return clusters, run

    def _embedded_records(self) -> tuple[list[Record], list[list[float]]]:
        text_dimension = self._store.dimension(CollectionName.TEXT)
        records: list[Record] = []
        vectors: list[list[float]] = []
        seen: set[str] = set()
        for record in self._store.scan_all(self._scan_limit):
            if record.source_path in seen:
                LOGGER.debug("Skipping %s; %s is already planned", record.id, record.source_path)
                continue
            seen.add(record.source_path)
            if record.collection == CollectionName.TEXT and len(record.embedding) == text_dimension:
                records.append(record)
                vectors.append(record.embedding)
                continue
            if self._text_embedder is None or not record.content.strip():
                LOGGER.debug("Skipping %s; no text-space embedding available", record.id)
                continue
            try:
                vector = self._text_embedder.embed_text(record.content)
            except Exception as exc:
                LOGGER.warning("Failed to embed %s for clustering: %s", record.display_name, exc)
                continue
            if len(vector) != text_dimension:
                LOGGER.warning(
                    "Skipping %s; embedder returned %d dimensions", record.display_name, len(vector)
                )
                continue
            records.append(record)
            vectors.append(list(vector))
        return records, vectors

    def _label(self, cluster_id: int, members: Sequence[Record]) -> ClusterLabel:
        fallback = fallback_label(cluster_id)
        if self._labeler is None:
            return fallback

        samples = [
            ClusterSample(
                display_name=record.display_name,
                preview=preview_text(record.content, self._settings.preview_chars),
            )
            for record in members[: self._settings.sample_size]
        ]
        try:
            label = self._labeler.label_cluster(samples)
        except Exception as exc:
            LOGGER.warning("Failed to label cluster %d: %s", cluster_id, exc)
            return fallback

        folder_name = slugify_folder_name(label.folder_name) or fallback.folder_name
        return ClusterLabel(
            label=label.label.strip() or fallback.label,
            folder_name=folder_name,
            keywords=list(label.keywords),
        )


def _unique_slug(slug: str, used: set[str]) -> str:
    candidate = slug
    counter = 2
    while candidate in used:
        candidate = f"{slug}_{counter}"
        counter += 1
    used.add(candidate)
    return candidate


def _unique_member_name(name: str, occupied: set[str]) -> str:
    candidate = name
    counter = 1
    while candidate in occupied:
        candidate = numbered_name(name, counter)
        counter += 1
    occupied.add(candidate)
    return candidate


__all__ = ["ClusterOrganizer"]
