"""k-means clustering tests."""

from __future__ import annotations

import numpy as np
import pytest

from mane.organization import choose_k, kmeans, seed_centroids

TWO_GROUPS = [
    [0.0, 0.0],
    [0.1, 0.0],
    [0.0, 0.1],
    [10.0, 10.0],
    [10.1, 10.0],
    [10.0, 10.1],
]


@pytest.mark.parametrize(
    ("n", "max_clusters", "expected"),
    [
        (3, 10, 2),
        (8, 10, 2),
        (18, 10, 3),
        (50, 10, 5),
        (800, 10, 10),
        (50, 3, 3),
        (2, 10, 2),
        (1, 10, 1),
        (10, 1, 1),
    ],
)
def test_choose_k(n: int, max_clusters: int, expected: int) -> None:
    assert choose_k(n, max_clusters) == expected


def test_choose_k_rejects_non_positive_bound() -> None:
    with pytest.raises(ValueError):
        choose_k(10, 0)


def test_kmeans_separates_two_groups() -> None:
    result = kmeans(TWO_GROUPS, 2, seed=7)

    assert result.converged
    assert len(set(result.assignments[:3])) == 1
    assert len(set(result.assignments[3:])) == 1
    assert result.assignments[0] != result.assignments[3]
    assert sorted(len(indices) for indices in result.groups().values()) == [3, 3]


def test_kmeans_assignments_cover_every_point() -> None:
    rng = np.random.default_rng(3)
    points = rng.normal(size=(40, 8))

    result = kmeans(points, 4, max_iterations=50, rng=rng)

    assert len(result.assignments) == 40
    assert all(0 <= cluster < 4 for cluster in result.assignments)
    assert result.centroids.shape == (4, 8)
    assert 1 <= result.iterations <= 50


def test_kmeans_respects_iteration_cap() -> None:
    rng = np.random.default_rng(11)
    points = rng.normal(size=(60, 4))

    result = kmeans(points, 6, max_iterations=1, seed=1)

    assert result.iterations == 1
    assert not result.converged


def test_kmeans_is_deterministic_for_a_seed() -> None:
    first = kmeans(TWO_GROUPS, 2, seed=42)
    second = kmeans(TWO_GROUPS, 2, seed=42)

    assert first.assignments == second.assignments


def test_kmeans_rejects_invalid_k() -> None:
    with pytest.raises(ValueError):
        kmeans(TWO_GROUPS, 0)
    with pytest.raises(ValueError):
        kmeans(TWO_GROUPS, 7)
    with pytest.raises(ValueError):
        kmeans([], 1)


def test_seed_centroids_handles_identical_points() -> None:
    points = np.ones((5, 3))

    centroids = seed_centroids(points, 3, np.random.default_rng(0))

    assert centroids.shape == (3, 3)
    assert np.allclose(centroids, 1.0)
