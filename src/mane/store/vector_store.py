"""Dual-collection vector store backed by Chromadb."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Any, Mapping, Sequence

import chromadb
from chromadb.config import Settings

from .errors import InvalidDimensionError, StoreError
from .locks import ReadWriteLock
from .models import CollectionName, MediaClass, Record

LOGGER = logging.getLogger(__name__)

_RECORD_FIELDS = ["documents", "metadatas", "embeddings"]


def open_client(path: str | Path) -> Any:
    """Return a persistent Chromadb client rooted at ``path``.

    Args:
        path: Directory holding the index; created when missing.

    Returns:
        Any: Chromadb client API instance.
    """

    directory = Path(path).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    return chromadb.PersistentClient(
        path=str(directory),
        settings=Settings(anonymized_telemetry=False),
    )


class VectorRecordStore:
    """Persist records in a text-space and a visual-space collection.

    Each collection is created on first use with cosine distance and its
    dimensionality recorded in the collection metadata. Writes to a collection
    are serialized while reads proceed concurrently.
    """

    def __init__(
        self,
        client: Any,
        *,
        text_dimension: int = 384,
        visual_dimension: int = 512,
    ) -> None:
        """Initialise the store around an existing Chromadb client.

        Args:
            client: Chromadb client (persistent or ephemeral).
            text_dimension: Vector width of the text-space collection.
            visual_dimension: Vector width of the visual-space collection.
        """

        self._client = client
        self._dimensions = {
            CollectionName.TEXT: text_dimension,
            CollectionName.VISUAL: visual_dimension,
        }
        self._collections: dict[CollectionName, Any] = {}
        self._locks = {name: ReadWriteLock() for name in CollectionName}
        self._init_lock = threading.Lock()

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        text_dimension: int = 384,
        visual_dimension: int = 512,
    ) -> "VectorRecordStore":
        """Open (or create) a persistent store at ``path``."""

        return cls(
            open_client(path),
            text_dimension=text_dimension,
            visual_dimension=visual_dimension,
        )

    def dimension(self, collection: CollectionName) -> int:
        """Return the fixed dimensionality of ``collection``."""
        return self._dimensions[CollectionName(collection)]

    # ------------------------------------------------------------------ #
    # Writes                                                             #
    # ------------------------------------------------------------------ #

    def insert(self, record: Record) -> str:
        """Store ``record`` in the collection selected by its media class.

        Args:
            record: Fully embedded record.

        Returns:
            str: Identifier of the stored record.

        Raises:
            InvalidDimensionError: If the embedding width does not match the collection.
        """

        name = record.collection
        self._check_dimension(name, record.embedding)
        collection = self._collection(name)
        with self._locks[name].write():
            collection.add(
                ids=[record.id],
                embeddings=[list(record.embedding)],
                documents=[record.content],
                metadatas=[_record_metadata(record)],
            )
        LOGGER.info(
            "Stored %s record %s (%s)", record.media_class.value, record.id, record.display_name
        )
        return record.id

    def replace(self, record: Record) -> str:
        """Store ``record`` and drop any older records indexed from the same file.

        The new record is written before the old ones are removed, so a failed
        insert leaves the previous index entry in place.

        Returns:
            str: Identifier of the stored record.
        """

        stale = [
            record_id
            for record_id in self._ids_for_source(record.source_path)
            if record_id != record.id
        ]
        self.insert(record)
        for record_id in stale:
            self.delete_by_id(record_id)
        if stale:
            LOGGER.debug("Replaced %d earlier record(s) for %s", len(stale), record.source_path)
        return record.id

    def delete_by_source_path(self, source_path: str) -> list[str]:
        """Remove every record indexed from ``source_path`` and return their ids."""

        removed: list[str] = []
        for name in CollectionName:
            collection = self._collection(name)
            with self._locks[name].write():
                existing = collection.get(where={"source_path": source_path}, include=["metadatas"])
                ids = list(existing["ids"])
                if ids:
                    collection.delete(ids=ids)
                    removed.extend(ids)
        if removed:
            LOGGER.info("Deleted %d record(s) for %s", len(removed), source_path)
        return removed

    def relocate(self, source_path: str, new_path: str) -> int:
        """Point records indexed from ``source_path`` at ``new_path``.

        Embeddings and content are kept; only the path and display name change.

        Returns:
            int: Number of records updated.
        """

        updated = 0
        for name in CollectionName:
            collection = self._collection(name)
            with self._locks[name].write():
                existing = collection.get(where={"source_path": source_path}, include=["metadatas"])
                ids = list(existing["ids"])
                if not ids:
                    continue
                metadatas = []
                for metadata in existing["metadatas"] or [{}] * len(ids):
                    moved = dict(metadata or {})
                    moved["source_path"] = new_path
                    moved["display_name"] = PurePath(new_path).name
                    metadatas.append(moved)
                collection.update(ids=ids, metadatas=metadatas)
                updated += len(ids)
        if updated:
            LOGGER.info("Relocated %d record(s) from %s to %s", updated, source_path, new_path)
        return updated

    def delete_by_id(self, record_id: str) -> None:
        """Remove ``record_id`` from whichever collection holds it.

        Deleting an unknown identifier is a no-op.
        """

        removed = False
        for name in CollectionName:
            collection = self._collection(name)
            with self._locks[name].write():
                existing = collection.get(ids=[record_id], include=["metadatas"])
                if existing["ids"]:
                    collection.delete(ids=[record_id])
                    removed = True
        if removed:
            LOGGER.info("Deleted record %s", record_id)
        else:
            LOGGER.debug("Record %s not present; nothing to delete", record_id)

    # ------------------------------------------------------------------ #
    # Reads                                                              #
    # ------------------------------------------------------------------ #

    def count(self, collection: CollectionName | None = None) -> int:
        """Return the number of stored records, optionally for one collection."""

        names = [CollectionName(collection)] if collection is not None else list(CollectionName)
        total = 0
        for name in names:
            store = self._collection(name)
            with self._locks[name].read():
                total += store.count()
        return total

    def scan(self, collection: CollectionName, limit: int | None = None) -> list[Record]:
        """Return up to ``limit`` records from a single collection."""

        name = CollectionName(collection)
        if limit is not None and limit <= 0:
            return []
        store = self._collection(name)
        with self._locks[name].read():
            payload = store.get(limit=limit, include=_RECORD_FIELDS)
        return _records_from_get(payload)

    def scan_all(self, limit: int | None = 1_000) -> list[Record]:
        """Return up to ``limit`` records, text-space records first."""

        records: list[Record] = []
        for name in CollectionName:
            remaining = None if limit is None else limit - len(records)
            if remaining is not None and remaining <= 0:
                break
            records.extend(self.scan(name, remaining))
        return records

    def nearest_neighbors(
        self,
        collection: CollectionName,
        query_vector: Sequence[float],
        k: int,
    ) -> list[tuple[Record, float]]:
        """Return the ``k`` records closest to ``query_vector`` with their distances.

        Distances are cosine distances (``1 - cosine similarity``) in ``[0, 2]``,
        ordered nearest first.

        Raises:
            InvalidDimensionError: If the query width does not match the collection.
        """

        name = CollectionName(collection)
        self._check_dimension(name, query_vector)
        if k <= 0:
            return []
        store = self._collection(name)
        with self._locks[name].read():
            total = store.count()
            if total == 0:
                return []
            payload = store.query(
                query_embeddings=[[float(value) for value in query_vector]],
                n_results=min(k, total),
                include=[*_RECORD_FIELDS, "distances"],
            )

        ids = payload["ids"][0]
        documents = _first_row(payload.get("documents"), len(ids))
        metadatas = _first_row(payload.get("metadatas"), len(ids))
        embeddings = _first_row(payload.get("embeddings"), len(ids))
        distances = payload["distances"][0]
        return [
            (_to_record(ids[i], documents[i], metadatas[i], embeddings[i]), float(distances[i]))
            for i in range(len(ids))
        ]

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _check_dimension(self, name: CollectionName, vector: Sequence[float]) -> None:
        expected = self._dimensions[name]
        if len(vector) != expected:
            raise InvalidDimensionError(name.value, expected, len(vector))

    def _ids_for_source(self, source_path: str) -> list[str]:
        ids: list[str] = []
        for name in CollectionName:
            collection = self._collection(name)
            with self._locks[name].read():
                existing = collection.get(where={"source_path": source_path}, include=["metadatas"])
            ids.extend(existing["ids"])
        return ids

    def _collection(self, name: CollectionName) -> Any:
        cached = self._collections.get(name)
        if cached is not None:
            return cached

        with self._init_lock:
            cached = self._collections.get(name)
            if cached is not None:
                return cached

            dimension = self._dimensions[name]
            existing = {getattr(item, "name", item) for item in self._client.list_collections()}
            if name.value in existing:
                collection = self._client.get_collection(name=name.value, embedding_function=None)
                stored = (collection.metadata or {}).get("dimension")
                if stored is not None and int(stored) != dimension:
                    raise StoreError(
                        f"Collection {name.value!r} was created with {stored}-dimensional "
                        f"vectors but {dimension} are configured."
                    )
                LOGGER.debug("Opened collection %s", name.value)
            else:
                collection = self._client.create_collection(
                    name=name.value,
                    metadata={"hnsw:space": "cosine", "dimension": dimension},
                    embedding_function=None,
                )
                LOGGER.info("Created collection %s (%d dimensions)", name.value, dimension)
            self._collections[name] = collection
            return collection


def _record_metadata(record: Record) -> dict[str, Any]:
    return {
        "source_path": record.source_path,
        "display_name": record.display_name,
        "media_class": record.media_class.value,
        "auxiliary_path": record.auxiliary_path or "",
        "attributes": json.dumps(record.attributes, default=str),
        "created_at": record.created_at.isoformat(),
    }


def _first_row(values: Any, size: int) -> list[Any]:
    if values is None:
        return [None] * size
    return list(values[0])


def _records_from_get(payload: Mapping[str, Any]) -> list[Record]:
    ids = list(payload["ids"])
    documents = payload.get("documents")
    metadatas = payload.get("metadatas")
    embeddings = payload.get("embeddings")
    return [
        _to_record(
            ids[i],
            documents[i] if documents is not None else None,
            metadatas[i] if metadatas is not None else None,
            embeddings[i] if embeddings is not None else None,
        )
        for i in range(len(ids))
    ]


def _to_record(
    record_id: str,
    document: str | None,
    metadata: Mapping[str, Any] | None,
    embedding: Sequence[float] | None,
) -> Record:
    metadata = metadata or {}
    try:
        attributes = json.loads(metadata.get("attributes") or "{}")
    except json.JSONDecodeError:
        LOGGER.warning("Discarding unreadable attributes on record %s", record_id)
        attributes = {}

    created_raw = metadata.get("created_at")
    created_at = datetime.fromisoformat(created_raw) if created_raw else datetime.now(timezone.utc)

    return Record(
        id=record_id,
        content=document or "",
        source_path=metadata.get("source_path", ""),
        display_name=metadata.get("display_name", ""),
        media_class=MediaClass(metadata.get("media_class", MediaClass.TEXT.value)),
        embedding=[float(value) for value in embedding] if embedding is not None else [],
        auxiliary_path=metadata.get("auxiliary_path") or None,
        attributes=attributes if isinstance(attributes, dict) else {},
        created_at=created_at,
    )


__all__ = ["VectorRecordStore", "open_client"]
