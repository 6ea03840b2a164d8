"""k-means clustering with k-means++ seeding."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class KMeansResult:
    """Outcome of a k-means run.

    Attributes:
        assignments: Cluster index in ``[0, k)`` for each input point.
        centroids: Final centroid matrix of shape ``(k, dim)``.
        iterations: Number of assignment passes performed.
        converged: Whether assignments reached a fixed point before the cap.
    """

    assignments: list[int]
    centroids: np.ndarray
    iterations: int
    converged: bool

    def groups(self) -> dict[int, list[int]]:
        """Return point indices grouped by cluster, in first-seen cluster order."""

        grouped: dict[int, list[int]] = {}
        for index, cluster in enumerate(self.assignments):
            grouped.setdefault(cluster, []).append(index)
        return grouped


def choose_k(n: int, max_clusters: int) -> int:
    """Return the cluster count for ``n`` points: ``round(sqrt(n / 2))`` clamped to ``[2, max]``.

    Raises:
        ValueError: If ``max_clusters`` is less than one.
    """

    if max_clusters < 1:
        raise ValueError("max_clusters must be at least 1.")
    k = min(max(2, round(math.sqrt(n / 2))), max_clusters)
    return max(1, min(k, n))


def seed_centroids(points: np.ndarray, k: int, rng: np.random.Generator) -> np.ndarray:
    """Pick ``k`` initial centroids from ``points`` using k-means++.

    The first centroid is uniform; each later one is drawn with probability
    proportional to its squared distance from the nearest chosen centroid.
    When that distribution is degenerate the pick falls back to uniform.
    """

    n = points.shape[0]
    centroids = [points[int(rng.integers(n))].copy()]
    for _ in range(1, k):
        chosen = np.asarray(centroids)
        distances = np.linalg.norm(points[:, None, :] - chosen[None, :, :], axis=2).min(axis=1)
        weights = distances**2
        total = float(weights.sum())

        index: Optional[int] = None
        if total > 0 and math.isfinite(total):
            target = rng.random() * total
            candidate = int(np.searchsorted(np.cumsum(weights), target, side="right"))
            if candidate < n:
                index = candidate
        if index is None:
            LOGGER.debug("Weighted seeding failed; choosing a centroid uniformly")
            index = int(rng.integers(n))
        centroids.append(points[index].copy())
    return np.asarray(centroids)


def kmeans(
    vectors: Sequence[Sequence[float]] | np.ndarray,
    k: int,
    *,
    max_iterations: int = 100,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> KMeansResult:
    """Cluster ``vectors`` into ``k`` groups by Euclidean distance.

    Args:
        vectors: Points to cluster; all must share one dimensionality.
        k: Number of clusters.
        max_iterations: Cap on assignment passes.
        seed: Seed for a fresh random generator; ignored when ``rng`` is given.
        rng: Random generator used for seeding.

    Returns:
        KMeansResult: Assignments, centroids, and convergence details.

    Raises:
        ValueError: If there are no points, ``k`` is not positive, or ``k`` exceeds the point count.
    """

    points = np.asarray(vectors, dtype=float)
    if points.ndim != 2 or points.shape[0] == 0:
        raise ValueError("kmeans requires a non-empty two-dimensional set of points.")
    n = points.shape[0]
    if k < 1 or k > n:
        raise ValueError(f"k must be between 1 and {n}, got {k}.")

    generator = rng if rng is not None else np.random.default_rng(seed)
    centroids = seed_centroids(points, k, generator)
    assignments = np.full(n, -1, dtype=int)
    iterations = 0
    converged = False

    for _ in range(max_iterations):
        iterations += 1
        distances = np.linalg.norm(points[:, None, :] - centroids[None, :, :], axis=2)
        updated = distances.argmin(axis=1)
        if np.array_equal(updated, assignments):
            converged = True
            break
        assignments = updated
        for cluster in range(k):
            members = points[assignments == cluster]
            # Empty clusters keep their previous centroid.
            if len(members):
                centroids[cluster] = members.mean(axis=0)

    LOGGER.debug(
        "k-means finished after %d iteration(s) (k=%d, converged=%s)", iterations, k, converged
    )
    return KMeansResult(
        assignments=[int(value) for value in assignments],
        centroids=centroids,
        iterations=iterations,
        converged=converged,
    )


__all__ = ["KMeansResult", "choose_k", "kmeans", "seed_centroids"]
