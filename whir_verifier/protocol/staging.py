"""
Staging store for proofs too large for a single transport message.

A record is created by an owner with the evaluation point and value, grows by
appending proof chunks in arrival order, can be verified any number of times by
anyone, and is destroyed by its owner. Each record has its own lock, so
operations on one record are atomic and records never contend with each other
beyond the id map.

    INITIALIZED --append (non-empty)--> ACCEPTING --append--> ACCEPTING
         |                               |
         +-------------close-------------+-----> CLOSED (record removed)
"""

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, Optional

from whir_verifier.errors import (
    AlreadyInitialized,
    ChunkTooLarge,
    NotOwner,
    RecordNotFound,
    StagingError,
    VerifyError,
)
from whir_verifier.protocol.artifact import ProofArtifact
from whir_verifier.protocol.codec import field_size_bytes
from whir_verifier.protocol.config import ProtocolConfig
from whir_verifier.protocol.verifier import verify_artifact

logger = logging.getLogger(__name__)

# Bytes per append when splitting a proof for upload
DEFAULT_CHUNK_SIZE = 800


class RecordState(enum.Enum):
    INITIALIZED = "initialized"
    ACCEPTING = "accepting"
    CLOSED = "closed"


@dataclass
class StagingRecord:
    owner: Hashable
    eval_point: bytes
    eval_value: bytes
    proof: bytearray = field(default_factory=bytearray)
    state: RecordState = RecordState.INITIALIZED
    chunk_count: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass(frozen=True)
class RecordView:
    """Immutable snapshot of a record."""
    owner: Hashable
    proof: bytes
    eval_point: bytes
    eval_value: bytes
    state: RecordState
    chunk_count: int

    @property
    def num_variables(self) -> int:
        return len(self.eval_point) // field_size_bytes()


def _snapshot(record: StagingRecord) -> RecordView:
    return RecordView(
        owner=record.owner,
        proof=bytes(record.proof),
        eval_point=record.eval_point,
        eval_value=record.eval_value,
        state=record.state,
        chunk_count=record.chunk_count,
    )


class ProofStore:
    """In-memory ledger of staging records keyed by record id."""

    def __init__(self, max_chunk_size: Optional[int] = None):
        if max_chunk_size is not None and max_chunk_size < 1:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        self.max_chunk_size = max_chunk_size
        self._records: Dict[Hashable, StagingRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: Hashable) -> bool:
        with self._lock:
            return record_id in self._records

    def _lookup(self, record_id: Hashable) -> StagingRecord:
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound(f"no record {record_id!r}")
        return record

    # --- Lifecycle ---

    def initialize(self, record_id: Hashable, eval_point: bytes, eval_value: bytes,
                   caller: Hashable) -> RecordView:
        """Create an empty record owned by `caller` and return a snapshot of it."""
        with self._lock:
            if record_id in self._records:
                raise AlreadyInitialized(f"record {record_id!r} already initialized")
            record = StagingRecord(owner=caller, eval_point=bytes(eval_point),
                                   eval_value=bytes(eval_value))
            self._records[record_id] = record
            view = _snapshot(record)
        logger.info("initialized record %r for %r", record_id, caller)
        return view

    def append_chunk(self, record_id: Hashable, chunk: bytes, caller: Hashable) -> None:
        """Append `chunk` to the record's proof. Only the owner may append.

        An empty chunk is checked like any other but leaves the record unchanged.
        """
        record = self._lookup(record_id)
        with record.lock:
            if record.state is RecordState.CLOSED:
                raise RecordNotFound(f"record {record_id!r} is closed")
            if caller != record.owner:
                raise NotOwner(f"{caller!r} does not own record {record_id!r}")
            if self.max_chunk_size is not None and len(chunk) > self.max_chunk_size:
                raise ChunkTooLarge(
                    f"chunk of {len(chunk)} bytes exceeds limit {self.max_chunk_size}"
                )
            if not chunk:
                return
            record.proof.extend(chunk)
            record.chunk_count += 1
            record.state = RecordState.ACCEPTING
            logger.debug("record %r: chunk %d, %d bytes (total %d)",
                         record_id, record.chunk_count, len(chunk), len(record.proof))

    def verify(self, record_id: Hashable, config: ProtocolConfig) -> None:
        """Verify the staged proof. Read-only; callable by anyone."""
        record = self._lookup(record_id)
        with record.lock:
            if record.state is RecordState.CLOSED:
                raise RecordNotFound(f"record {record_id!r} is closed")
            artifact = ProofArtifact(
                proof_bytes=bytes(record.proof),
                eval_point=record.eval_point,
                eval_value=record.eval_value,
                num_variables=config.num_variables,
            )
        logger.info("verifying record %r (%d bytes)", record_id, len(artifact.proof_bytes))
        verify_artifact(config, artifact)

    def close(self, record_id: Hashable, caller: Hashable) -> None:
        """Destroy the record. Only the owner may close."""
        record = self._lookup(record_id)
        with record.lock:
            if record.state is RecordState.CLOSED:
                raise RecordNotFound(f"record {record_id!r} is closed")
            if caller != record.owner:
                raise NotOwner(f"{caller!r} does not own record {record_id!r}")
            record.state = RecordState.CLOSED
            with self._lock:
                del self._records[record_id]
        logger.info("closed record %r", record_id)

    def get(self, record_id: Hashable) -> RecordView:
        record = self._lookup(record_id)
        with record.lock:
            if record.state is RecordState.CLOSED:
                raise RecordNotFound(f"record {record_id!r} is closed")
            return _snapshot(record)


# --- Client Helpers ---

def iter_chunks(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]


def _upload(store: ProofStore, record_id: Hashable, data: bytes, caller: Hashable,
            chunk_size: int) -> int:
    count = 0
    for chunk in iter_chunks(data, chunk_size):
        store.append_chunk(record_id, chunk, caller)
        count += 1
    return count


def stage_proof(store: ProofStore, record_id: Hashable, artifact: ProofArtifact,
                caller: Hashable, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Initialize a record and upload the artifact's proof. Returns the chunk count."""
    store.initialize(record_id, artifact.eval_point, artifact.eval_value, caller)
    return _upload(store, record_id, artifact.proof_bytes, caller, chunk_size)


def stage_and_verify(store: ProofStore, record_id: Hashable, artifact: ProofArtifact,
                     config: ProtocolConfig, caller: Hashable,
                     chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """Full staged workflow. Once initialized, the record is always closed."""
    store.initialize(record_id, artifact.eval_point, artifact.eval_value, caller)
    try:
        _upload(store, record_id, artifact.proof_bytes, caller, chunk_size)
        store.verify(record_id, config)
    except (VerifyError, StagingError):
        logger.info("staged verification of %r failed", record_id)
        raise
    finally:
        store.close(record_id, caller)
