"""Cluster organizer tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mane.config.models import OrganizationSettings
from mane.organization import ActionKind, ClusterLabel, ClusterOrganizer, ClusterResult
from mane.organization.models import ClusterMember
from mane.store import MediaClass, VectorRecordStore

TAX_DOCS = [
    ("tax_2021.txt", "tax return deductions income statement 2021"),
    ("tax_2022.txt", "tax return deductions income statement 2022"),
    ("tax_2023.txt", "tax return deductions income statement 2023"),
]
RECIPES = [
    ("cake.txt", "recipe flour sugar butter oven bake cake"),
    ("bread.txt", "recipe flour sugar butter oven bake bread"),
    ("cookies.txt", "recipe flour sugar butter oven bake cookies"),
]


class _StaticLabeler:
    def __init__(self) -> None:
        self.calls = 0

    def label_cluster(self, samples):
        self.calls += 1
        names = " ".join(sample.display_name for sample in samples)
        if "tax" in names:
            return ClusterLabel(label="Tax Returns", folder_name="Tax Returns!", keywords=["tax"])
        return ClusterLabel(label="Recipes", folder_name="recipes", keywords=["baking"])


class _BrokenLabeler:
    def label_cluster(self, samples):
        raise RuntimeError("model offline")


def _populate(store: VectorRecordStore, make_record, root: Path) -> None:
    for name, content in [*TAX_DOCS, *RECIPES]:
        store.insert(make_record(str(root / name), content))


def _settings(tmp_path: Path, **overrides) -> OrganizationSettings:
    return OrganizationSettings(target_folder=str(tmp_path / "Organized"), seed=3, **overrides)


def test_organize_groups_similar_records(
    tmp_path: Path, store: VectorRecordStore, make_record
) -> None:
    _populate(store, make_record, tmp_path / "inbox")
    labeler = _StaticLabeler()
    organizer = ClusterOrganizer(store, labeler=labeler, settings=_settings(tmp_path))

    clusters = organizer.organize()

    assert len(clusters) == 2
    groups = sorted(sorted(member.display_name for member in c.members) for c in clusters)
    assert groups == [
        ["bread.txt", "cake.txt", "cookies.txt"],
        ["tax_2021.txt", "tax_2022.txt", "tax_2023.txt"],
    ]
    assert labeler.calls == 2
    folder_names = {cluster.folder_name for cluster in clusters}
    assert folder_names == {"tax_returns_", "recipes"}


def test_organize_requires_minimum_records(
    tmp_path: Path, store: VectorRecordStore, make_record
) -> None:
    store.insert(make_record(str(tmp_path / "a.txt"), "alpha"))
    store.insert(make_record(str(tmp_path / "b.txt"), "beta"))
    organizer = ClusterOrganizer(store, settings=_settings(tmp_path))

    assert organizer.organize() == []
    plan = organizer.plan()
    assert plan.is_empty
    assert plan.notes == ["Not enough embedded records to organize."]


def test_organize_uses_fallback_labels_when_labeler_fails(
    tmp_path: Path, store: VectorRecordStore, make_record
) -> None:
    _populate(store, make_record, tmp_path / "inbox")
    organizer = ClusterOrganizer(store, labeler=_BrokenLabeler(), settings=_settings(tmp_path))

    clusters = organizer.organize()

    assert {cluster.folder_name for cluster in clusters} <= {"cluster_1", "cluster_2"}
    assert all(cluster.label.startswith("Cluster ") for cluster in clusters)


def test_organize_embeds_visual_records_in_text_space(
    tmp_path: Path, store: VectorRecordStore, make_record, text_embedder
) -> None:
    _populate(store, make_record, tmp_path / "inbox")
    store.insert(
        make_record(
            str(tmp_path / "inbox" / "pie.png"),
            "photo of a recipe card for apple pie with flour and sugar",
            MediaClass.IMAGE,
        )
    )
    organizer = ClusterOrganizer(store, text_embedder=text_embedder, settings=_settings(tmp_path))

    clusters = organizer.organize()

    members = [member.display_name for cluster in clusters for member in cluster.members]
    assert "pie.png" in members
    assert len(members) == 7


def test_organize_skips_visual_records_without_text_embedder(
    tmp_path: Path, store: VectorRecordStore, make_record
) -> None:
    _populate(store, make_record, tmp_path / "inbox")
    store.insert(make_record(str(tmp_path / "pie.png"), "apple pie", MediaClass.IMAGE))
    organizer = ClusterOrganizer(store, settings=_settings(tmp_path))

    members = [m.display_name for cluster in organizer.organize() for m in cluster.members]

    assert "pie.png" not in members


def test_organize_rejects_invalid_cluster_bound(store: VectorRecordStore) -> None:
    with pytest.raises(ValueError):
        ClusterOrganizer(store).organize(max_clusters=0)


def test_plan_creates_folders_then_moves(
    tmp_path: Path, store: VectorRecordStore, make_record
) -> None:
    _populate(store, make_record, tmp_path / "inbox")
    organizer = ClusterOrganizer(store, labeler=_StaticLabeler(), settings=_settings(tmp_path))

    plan = organizer.plan()

    base = str(tmp_path / "Organized")
    assert plan.target_folder == base
    assert plan.iterations >= 1
    kinds = [action.kind for action in plan.actions]
    assert kinds.count(ActionKind.CREATE_FOLDER) == 2
    assert kinds.count(ActionKind.MOVE) == 6

    created = {}
    for action in plan.actions:
        if action.kind is ActionKind.CREATE_FOLDER:
            created[action.destination_path] = action
            assert action.permission_scope == base
        else:
            folder = str(Path(action.destination_path).parent)
            assert folder in created, "folder must be created before moving into it"
            assert action.permission_scope == folder
            assert Path(action.destination_path).name == Path(action.source_path).name
    assert set(created) == {f"{base}/tax_returns_", f"{base}/recipes"}


def _cluster(cluster_id: int, folder: str, names: list[str], root: str = "/in") -> ClusterResult:
    return ClusterResult(
        cluster_id=cluster_id,
        label=folder.title(),
        folder_name=folder,
        members=[
            ClusterMember(
                record_id=f"doc_{cluster_id}_{index}",
                source_path=f"{root}/{index}/{name}",
                display_name=name,
            )
            for index, name in enumerate(names)
        ],
    )


def test_build_plan_deduplicates_slugs_and_names(
    tmp_path: Path, store: VectorRecordStore
) -> None:
    organizer = ClusterOrganizer(store, settings=_settings(tmp_path))
    clusters = [
        _cluster(0, "notes", ["a.txt", "a.txt", "a.txt"]),
        _cluster(1, "notes", ["b.txt", "c.txt"]),
    ]

    plan = organizer.build_plan(clusters, str(tmp_path / "out"))

    folders = [cluster.folder_path for cluster in plan.clusters]
    assert folders == [str(tmp_path / "out" / "notes"), str(tmp_path / "out" / "notes_2")]
    destinations = [
        Path(action.destination_path).name
        for action in plan.actions
        if action.kind is ActionKind.MOVE
    ]
    assert destinations[:3] == ["a.txt", "a-1.txt", "a-2.txt"]


def test_build_plan_leaves_small_clusters_in_place(
    tmp_path: Path, store: VectorRecordStore
) -> None:
    organizer = ClusterOrganizer(store, settings=_settings(tmp_path, min_cluster_size=2))
    clusters = [_cluster(0, "big", ["a.txt", "b.txt"]), _cluster(1, "lonely", ["c.txt"])]

    plan = organizer.build_plan(clusters)

    assert [cluster.planned for cluster in plan.clusters] == [True, False]
    assert all("lonely" not in (action.destination_path or "") for action in plan.actions)
    assert len(plan.actions) == 3


def test_plan_moves_each_file_once_when_records_repeat(
    tmp_path: Path, store: VectorRecordStore, make_record
) -> None:
    root = tmp_path / "inbox"
    _populate(store, make_record, root)
    _populate(store, make_record, root)
    organizer = ClusterOrganizer(store, labeler=_StaticLabeler(), settings=_settings(tmp_path))

    plan = organizer.plan()

    sources = [action.source_path for action in plan.actions if action.kind is ActionKind.MOVE]
    assert len(sources) == 6
    assert len(set(sources)) == 6
