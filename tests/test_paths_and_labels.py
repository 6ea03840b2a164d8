"""Folder naming, destination rules, and cluster label parsing."""

from __future__ import annotations

import pytest

from mane.organization import (
    ClusterSample,
    CompletionClusterLabeler,
    fallback_label,
    parse_label_response,
    resolve_actual_destination,
    slugify_folder_name,
)
from mane.organization.labeler import format_samples
from mane.organization.paths import numbered_name, parent_directory


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Tax Documents 2023!", "tax_documents_2023_"),
        ("  Photos  ", "photos"),
        ("résumé-drafts", "r_sum__drafts"),
        ("already_fine", "already_fine"),
    ],
)
def test_slugify_folder_name(label: str, expected: str) -> None:
    assert slugify_folder_name(label) == expected


def test_resolve_actual_destination_treats_extensionless_target_as_folder() -> None:
    assert resolve_actual_destination("/x/a.txt", "/y") == "/y/a.txt"
    assert resolve_actual_destination("/x/a.txt", "/y/b.txt") == "/y/b.txt"
    assert resolve_actual_destination("/x/folder", "/y/other") == "/y/other"


def test_path_helpers() -> None:
    assert parent_directory("/x/y/a.txt") == "/x/y"
    assert numbered_name("report.pdf", 2) == "report-2.pdf"
    assert numbered_name("README", 1) == "README-1"


def test_fallback_label_is_one_based() -> None:
    label = fallback_label(0)

    assert label.label == "Cluster 1"
    assert label.folder_name == "cluster_1"
    assert label.keywords == []


def test_parse_label_response_extracts_fields() -> None:
    label = parse_label_response(
        "Sure!\nLabel: Tax Paperwork\nFolder: Tax Docs\nKeywords: [taxes, receipts, 2023]\n"
    )

    assert label.label == "Tax Paperwork"
    assert label.folder_name == "tax"
    assert label.keywords == ["taxes", "receipts", "2023"]


def test_parse_label_response_falls_back_to_label_for_folder() -> None:
    label = parse_label_response("Label: [Holiday Photos]")

    assert label.label == "Holiday Photos"
    assert label.folder_name == "holiday_photos"
    assert label.keywords == []


def test_parse_label_response_requires_label() -> None:
    with pytest.raises(ValueError):
        parse_label_response("Folder: something")


class _RecordingCompletion:
    def __init__(self, response: str) -> None:
        self.response = response
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


def test_completion_labeler_sends_samples() -> None:
    client = _RecordingCompletion("Label: Recipes\nFolder: recipes\nKeywords: food, baking")
    samples = [
        ClusterSample(display_name="cake.txt", preview="chocolate cake"),
        ClusterSample(display_name="bread.txt", preview="sourdough"),
    ]

    label = CompletionClusterLabeler(client).label_cluster(samples)

    assert label.folder_name == "recipes"
    assert label.keywords == ["food", "baking"]
    assert format_samples(samples) in client.prompts[0]
    assert "- cake.txt: chocolate cake" in client.prompts[0]
