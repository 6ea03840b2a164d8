"""Configuration models describing Mane settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ManeBaseModel(BaseModel):
    """Shared configuration for Mane Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StoreSettings(ManeBaseModel):
    """Vector store configuration.

    Attributes:
        path: Directory holding the embedded vector index.
        text_dimension: Embedding width of the text-space collection.
        visual_dimension: Embedding width of the visual-space collection.
        scan_limit: Maximum number of records returned by full scans.
    """

    path: str = "~/.mane/index"
    text_dimension: int = Field(default=384, gt=0)
    visual_dimension: int = Field(default=512, gt=0)
    scan_limit: int = Field(default=1_000, gt=0)


class SearchSettings(ManeBaseModel):
    """Hybrid search tuning.

    Attributes:
        default_limit: Number of results returned when the caller gives no limit.
        candidate_multiplier: Over-fetch factor applied before re-ranking.
        content_boost: Score added per query token found in record content.
        filename_boost: Score added per query token found in the file name.
        min_token_length: Minimum length of a query token used for keyword boosts.
        cross_modal: Whether searches also query the visual-space collection.
    """

    default_limit: int = Field(default=10, gt=0)
    candidate_multiplier: int = Field(default=2, ge=1)
    content_boost: float = 0.1
    filename_boost: float = 0.2
    min_token_length: int = Field(default=3, ge=1)
    cross_modal: bool = False


class OrganizationSettings(ManeBaseModel):
    """Settings that govern clustering-based organization.

    Attributes:
        max_clusters: Upper bound on the number of clusters.
        max_iterations: Iteration cap for k-means refinement.
        min_records: Minimum embedded records required before clustering.
        min_cluster_size: Smallest cluster that receives its own folder.
        sample_size: Number of members sent to the labeler per cluster.
        preview_chars: Characters of content included per labeling sample.
        target_folder: Base directory receiving the cluster folders.
        seed: Optional seed making centroid selection reproducible.
    """

    max_clusters: int = Field(default=10, ge=1)
    max_iterations: int = Field(default=100, ge=1)
    min_records: int = Field(default=3, ge=1)
    min_cluster_size: int = Field(default=2, ge=1)
    sample_size: int = Field(default=5, ge=1)
    preview_chars: int = Field(default=200, ge=1)
    target_folder: str = "~/Organized"
    seed: Optional[int] = None


class DedupSettings(ManeBaseModel):
    """Duplicate detection configuration."""

    threshold: float = Field(default=0.95, ge=0.0, le=1.0)


class HistorySettings(ManeBaseModel):
    """Undo history configuration.

    Attributes:
        max_sessions: Number of sessions retained before the oldest is evicted.
        path: JSON file persisting history between CLI invocations.
    """

    max_sessions: int = Field(default=50, ge=1)
    path: str = "~/.mane/history.json"


class EmbeddingSettings(ManeBaseModel):
    """Embedding collaborator overrides.

    Attributes:
        text_function: Dotted path to a callable returning a text embedder.
        visual_function: Dotted path to a callable returning a visual embedder.
    """

    text_function: Optional[str] = None
    visual_function: Optional[str] = None


class LLMSettings(ManeBaseModel):
    """LLM configuration options.

    Attributes:
        enabled: Whether cluster labeling and captioning call the language model.
        provider: Identifier for the language-model provider.
        model: Model name to target when issuing requests.
        temperature: Sampling temperature for generative calls.
        max_tokens: Maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional base URL for self-hosted endpoints.
    """

    enabled: bool = False
    provider: str = "ollama"
    model: str = "llama3.2"
    temperature: float = 0.3
    max_tokens: int = 1_000
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None


class ProcessingOptions(ManeBaseModel):
    """Processing options governing ingestion behavior.

    Attributes:
        recurse_directories: Whether to recurse into subdirectories.
        process_hidden_files: Whether hidden files should be included.
        follow_symlinks: Whether to traverse symbolic links.
        max_file_size_mb: Files larger than this are skipped.
        text_sample_chars: Characters of text content kept per record.
        process_images: Whether images are embedded into the visual collection.
        process_audio: Whether audio is transcribed and indexed.
    """

    recurse_directories: bool = False
    process_hidden_files: bool = False
    follow_symlinks: bool = False
    max_file_size_mb: int = 100
    text_sample_chars: int = 8_192
    process_images: bool = True
    process_audio: bool = False


class LoggingSettings(ManeBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path enabling rotation.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 100
    backup_count: int = 5


class CLIOptions(ManeBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        history_limit: Default number of history sessions to display.
    """

    quiet_default: bool = False
    summary_default: bool = False
    history_limit: int = 10


class ManeConfig(ManeBaseModel):
    """Top-level configuration struct for Mane."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    organization: OrganizationSettings = Field(default_factory=OrganizationSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    embeddings: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ManeBaseModel",
    "StoreSettings",
    "SearchSettings",
    "OrganizationSettings",
    "DedupSettings",
    "HistorySettings",
    "EmbeddingSettings",
    "LLMSettings",
    "ProcessingOptions",
    "LoggingSettings",
    "CLIOptions",
    "ManeConfig",
]
