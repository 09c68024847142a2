"""
Content-addressed proof cache.

A proof is reusable only while both of its inputs are unchanged: the
serialized witness and the circuit source it was proven against. The cache
keeps one artifact per ``(circuit kind, test case)`` and an index mapping
that key to the content hash the artifact was generated for.

Layout under ``cache_dir``::

    index.json                    {"init/planet-1": "<sha256 hex>", ...}
    <kind>/<test_case>.cbor       CBOR artifact record

Writes go artifact first, index last, each through a temporary file and an
atomic rename, so a reader never sees an index hash whose artifact is
missing or half written. Concurrent writers are not coordinated.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional

import cbor2

from .constants import (
    CACHE_ARTIFACT_SUFFIX,
    CACHE_INDEX_NAME,
    CACHE_RECORD_V,
    CircuitKind,
)
from .errors import CacheReadError, CacheWriteError

logger = logging.getLogger(__name__)

_TEST_CASE_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


def compute_content_hash(serialized_witness: bytes, circuit_source: bytes) -> str:
    """Return ``sha256(serialized_witness || circuit_source)`` as hex."""
    digest = hashlib.sha256()
    digest.update(serialized_witness)
    digest.update(circuit_source)
    return digest.hexdigest()


@dataclass(frozen=True)
class ProofArtifact:
    """Proof bytes and the inputs they were generated for. Immutable."""

    circuit_kind: CircuitKind
    content_hash: str
    proof: bytes
    generated_at: float = field(default_factory=time.time)

    @property
    def hex(self) -> str:
        return "0x" + self.proof.hex()

    def to_record(self) -> dict:
        return {
            "v": CACHE_RECORD_V,
            "kind": self.circuit_kind.value,
            "content_hash": self.content_hash,
            "generated_at": self.generated_at,
            "proof": self.proof,
        }

    @classmethod
    def from_record(cls, record: dict) -> "ProofArtifact":
        if not isinstance(record, dict) or record.get("v") != CACHE_RECORD_V:
            raise CacheReadError("unsupported artifact record")
        try:
            kind = CircuitKind(record["kind"])
            content_hash = record["content_hash"]
            proof = record["proof"]
            generated_at = float(record["generated_at"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CacheReadError(f"malformed artifact record: {exc}") from exc
        if not isinstance(content_hash, str) or not isinstance(proof, bytes):
            raise CacheReadError("malformed artifact record")
        return cls(
            circuit_kind=kind,
            content_hash=content_hash,
            proof=proof,
            generated_at=generated_at,
        )


@dataclass(frozen=True)
class CacheEntry:
    circuit_kind: CircuitKind
    test_case: str
    content_hash: str
    artifact_path: Path


def _index_key(kind: CircuitKind, test_case: str) -> str:
    return f"{kind.value}/{test_case}"


def validate_test_case(test_case: str) -> str:
    """Return ``test_case`` if it is usable as a cache file name, else raise ValueError."""
    if not isinstance(test_case, str) or not _TEST_CASE_RE.match(test_case):
        raise ValueError(f"invalid test case identifier: {test_case!r}")
    return test_case


def _write_atomic(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ProofCache:
    """Durable proof cache keyed by circuit kind and test case."""

    def __init__(self, cache_dir: Path | str) -> None:
        self._cache_dir = Path(cache_dir)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def index_path(self) -> Path:
        return self._cache_dir / CACHE_INDEX_NAME

    def artifact_path(self, kind: CircuitKind, test_case: str) -> Path:
        validate_test_case(test_case)
        return self._cache_dir / kind.value / f"{test_case}{CACHE_ARTIFACT_SUFFIX}"

    def lookup(self, kind: CircuitKind, test_case: str) -> Optional[CacheEntry]:
        """Return the indexed entry, or None on absence or unreadable index."""
        validate_test_case(test_case)
        try:
            index = self._read_index()
        except CacheReadError as exc:
            logger.warning("Proof cache index unreadable, treating as miss: %s", exc)
            return None
        content_hash = index.get(_index_key(kind, test_case))
        if not isinstance(content_hash, str):
            logger.debug("Cache miss for %s/%s: no entry", kind.value, test_case)
            return None
        return CacheEntry(
            circuit_kind=kind,
            test_case=test_case,
            content_hash=content_hash,
            artifact_path=self.artifact_path(kind, test_case),
        )

    def is_valid(self, entry: CacheEntry, current_hash: str) -> bool:
        """True iff the hash matches and the artifact is present and readable."""
        return self._valid_artifact(entry, current_hash) is not None

    def load_artifact(self, entry: CacheEntry) -> ProofArtifact:
        try:
            raw = entry.artifact_path.read_bytes()
        except OSError as exc:
            raise CacheReadError(f"cannot read {entry.artifact_path}: {exc}") from exc
        try:
            record = cbor2.loads(raw)
        except (cbor2.CBORDecodeError, ValueError, EOFError) as exc:
            raise CacheReadError(f"corrupt artifact {entry.artifact_path}") from exc
        artifact = ProofArtifact.from_record(record)
        if artifact.circuit_kind is not entry.circuit_kind:
            raise CacheReadError(f"artifact kind mismatch in {entry.artifact_path}")
        return artifact

    def fetch(
        self, kind: CircuitKind, test_case: str, current_hash: str
    ) -> Optional[ProofArtifact]:
        """Return the cached artifact if it is valid for ``current_hash``."""
        entry = self.lookup(kind, test_case)
        if entry is None:
            return None
        return self._valid_artifact(entry, current_hash)

    def _valid_artifact(
        self, entry: CacheEntry, current_hash: str
    ) -> Optional[ProofArtifact]:
        if entry.content_hash != current_hash:
            logger.debug(
                "Cache stale for %s/%s: %s != %s",
                entry.circuit_kind.value,
                entry.test_case,
                entry.content_hash,
                current_hash,
            )
            return None
        try:
            artifact = self.load_artifact(entry)
        except CacheReadError as exc:
            logger.warning(
                "Cached proof for %s/%s unreadable: %s",
                entry.circuit_kind.value,
                entry.test_case,
                exc,
            )
            return None
        if artifact.content_hash != current_hash or not artifact.proof:
            return None
        return artifact

    def store(
        self,
        kind: CircuitKind,
        test_case: str,
        content_hash: str,
        proof: bytes,
    ) -> ProofArtifact:
        """
        Persist a proof, replacing any previous entry for the key.

        Raises:
            CacheWriteError: If the artifact or the index cannot be written.
        """
        artifact = ProofArtifact(
            circuit_kind=kind, content_hash=content_hash, proof=bytes(proof)
        )
        path = self.artifact_path(kind, test_case)
        try:
            _write_atomic(path, cbor2.dumps(artifact.to_record()))
        except OSError as exc:
            raise CacheWriteError(f"cannot write proof artifact {path}: {exc}") from exc

        with self.index_transaction() as index:
            index[_index_key(kind, test_case)] = content_hash
        logger.debug("Stored proof for %s/%s (%s)", kind.value, test_case, content_hash)
        return artifact

    def evict(self, kind: CircuitKind, test_case: str) -> bool:
        """Remove an entry. Returns False if nothing was cached for the key."""
        path = self.artifact_path(kind, test_case)
        with self.index_transaction() as index:
            existed = index.pop(_index_key(kind, test_case), None) is not None
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise CacheWriteError(f"cannot remove proof artifact {path}: {exc}") from exc
        return existed

    def entries(self) -> Dict[str, str]:
        return dict(self._read_index())

    @contextmanager
    def index_transaction(self) -> Iterator[Dict[str, str]]:
        """
        Read-modify-write the index.

        The mutable mapping yielded to the block is flushed atomically when
        the block exits normally. If the block raises, nothing is written.
        An unreadable index is replaced rather than blocking writes.
        """
        try:
            index = self._read_index()
        except CacheReadError as exc:
            logger.warning("Replacing unreadable proof cache index: %s", exc)
            index = {}
        yield index
        payload = json.dumps(index, sort_keys=True, indent=2).encode("utf-8")
        try:
            _write_atomic(self.index_path, payload)
        except OSError as exc:
            raise CacheWriteError(f"cannot write cache index {self.index_path}: {exc}") from exc

    def _read_index(self) -> Dict[str, str]:
        try:
            raw = self.index_path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise CacheReadError(f"cannot read {self.index_path}: {exc}") from exc
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise CacheReadError(f"corrupt cache index {self.index_path}") from exc
        if not isinstance(data, dict):
            raise CacheReadError(f"corrupt cache index {self.index_path}")
        return data
