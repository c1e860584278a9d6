"""
History snapshots.

Stages hand immutable snapshot records to a SnapshotRepository. The
repository is injected; InMemorySnapshotRepository is the one used by the
API process and the tests (single server, single user).
"""

import random
import string
import time
from typing import Optional, Protocol

import structlog

from exceptions import SnapshotNotFoundError
from models.feed import ParsedDataset
from models.history import (
    SNAPSHOT_TYPES,
    FileInfo,
    MappingSnapshot,
    SchemaSnapshot,
    Snapshot,
    SnapshotKind,
    UploadSnapshot,
    snapshot_kind,
)

logger = structlog.get_logger(__name__)


_ID_ALPHABET = string.digits + string.ascii_lowercase


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_snapshot_id() -> str:
    """'<epoch ms>-<7 base36 chars>'."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{now_ms()}-{suffix}"


class SnapshotRepository(Protocol):
    """Where snapshots go. Implementations must store copies."""

    def add(self, snapshot: Snapshot) -> str: ...

    def get(self, kind: SnapshotKind, snapshot_id: str) -> Optional[Snapshot]: ...

    def list(self, kind: SnapshotKind) -> list[Snapshot]: ...

    def clear(self, kind: Optional[SnapshotKind] = None) -> None: ...


class InMemorySnapshotRepository:
    """Snapshots kept in process memory, newest first per kind."""

    def __init__(self):
        self._records: dict[SnapshotKind, list[Snapshot]] = {kind: [] for kind in SnapshotKind}

    def add(self, snapshot: Snapshot) -> str:
        kind = snapshot_kind(snapshot)
        self._records[kind].insert(0, snapshot.model_copy(deep=True))
        logger.info("snapshot_recorded", kind=kind.value, snapshot_id=snapshot.id, name=snapshot.name)
        return snapshot.id

    def get(self, kind: SnapshotKind, snapshot_id: str) -> Optional[Snapshot]:
        for record in self._records[kind]:
            if record.id == snapshot_id:
                return record.model_copy(deep=True)
        return None

    def list(self, kind: SnapshotKind) -> list[Snapshot]:
        return [record.model_copy(deep=True) for record in self._records[kind]]

    def clear(self, kind: Optional[SnapshotKind] = None) -> None:
        kinds = [kind] if kind else list(SnapshotKind)
        for k in kinds:
            self._records[k] = []
        logger.info("history_cleared", kinds=[k.value for k in kinds])


class HistoryService:
    """Builds snapshot records and hands them to the repository."""

    def __init__(self, repository: SnapshotRepository):
        self.repository = repository

    def record_upload(
        self,
        dataset: ParsedDataset,
        preview_count: int,
        include_full_rows: bool = True,
        last_modified: Optional[int] = None,
    ) -> UploadSnapshot:
        snapshot = UploadSnapshot(
            id=generate_snapshot_id(),
            timestamp=now_ms(),
            name=dataset.file_name,
            file_info=FileInfo(
                name=dataset.file_name,
                size=dataset.file_size_bytes,
                type=dataset.file_type.value,
                last_modified=last_modified,
            ),
            record_count=dataset.record_count,
            file_type=dataset.file_type,
            headers=list(dataset.headers),
            preview_rows=dataset.preview(preview_count),
            full_rows=[dict(row) for row in dataset.rows] if include_full_rows else None,
        )
        self.repository.add(snapshot)
        return snapshot

    def record_mapping(self, name: str, fields: dict) -> MappingSnapshot:
        snapshot = MappingSnapshot(id=generate_snapshot_id(), timestamp=now_ms(), name=name, **fields)
        self.repository.add(snapshot)
        return snapshot

    def record_schema(self, name: str, fields: dict) -> SchemaSnapshot:
        snapshot = SchemaSnapshot(id=generate_snapshot_id(), timestamp=now_ms(), name=name, **fields)
        self.repository.add(snapshot)
        return snapshot

    def get(self, kind: SnapshotKind, snapshot_id: str) -> Snapshot:
        """
        Raises:
            SnapshotNotFoundError: If the repository has no such record
        """
        snapshot = self.repository.get(kind, snapshot_id)
        if snapshot is None or not isinstance(snapshot, SNAPSHOT_TYPES[kind]):
            raise SnapshotNotFoundError(kind.value, snapshot_id)
        return snapshot

    def list(self, kind: SnapshotKind) -> list[Snapshot]:
        return self.repository.list(kind)

    def clear(self, kind: Optional[SnapshotKind] = None) -> None:
        self.repository.clear(kind)


def dataset_from_upload_snapshot(snapshot: UploadSnapshot) -> ParsedDataset:
    """
    Rebuild the dataset an upload snapshot was taken from.

    Without full rows only the preview rows come back.
    """
    rows = snapshot.full_rows if snapshot.full_rows is not None else snapshot.preview_rows
    headers = list(snapshot.headers) or (list(rows[0].keys()) if rows else [])
    return ParsedDataset(
        headers=headers,
        rows=[{header: row.get(header, "") for header in headers} for row in rows],
        file_type=snapshot.file_type,
        file_name=snapshot.file_info.name,
        file_size_bytes=snapshot.file_info.size,
    )


_repository: Optional[InMemorySnapshotRepository] = None


def get_snapshot_repository() -> InMemorySnapshotRepository:
    global _repository
    if _repository is None:
        _repository = InMemorySnapshotRepository()
    return _repository


def get_history_service() -> HistoryService:
    """History over the process-wide repository."""
    return HistoryService(get_snapshot_repository())
