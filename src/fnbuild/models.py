"""Core typed dataclasses for file references, build requests and artifacts."""

from __future__ import annotations

import hashlib
import io
import json
import zipfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

import cbor2

DEFAULT_FILE_MODE = 0o100644
# DOS epoch; zip entries cannot represent earlier timestamps.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


@runtime_checkable
class FileRef(Protocol):
    """Immutable handle to file bytes plus permission metadata."""

    @property
    def mode(self) -> int:
        """Full st_mode style value, including file type bits."""

    @property
    def size(self) -> int:
        """Content length in bytes."""

    def read_bytes(self) -> bytes:
        """Return the referenced content."""


@dataclass(frozen=True, slots=True)
class FileBlob:
    data: bytes
    mode: int = DEFAULT_FILE_MODE

    @classmethod
    def from_text(cls, text: str, *, mode: int = DEFAULT_FILE_MODE) -> FileBlob:
        return cls(data=text.encode("utf-8"), mode=mode)

    @property
    def size(self) -> int:
        return len(self.data)

    def read_bytes(self) -> bytes:
        return self.data


@dataclass(frozen=True, slots=True)
class FileFsRef:
    fs_path: Path
    mode: int = DEFAULT_FILE_MODE

    @classmethod
    def from_fs_path(cls, path: str | Path) -> FileFsRef:
        fs_path = Path(path)
        return cls(fs_path=fs_path, mode=fs_path.stat().st_mode)

    @property
    def size(self) -> int:
        return self.fs_path.stat().st_size

    def read_bytes(self) -> bytes:
        return self.fs_path.read_bytes()


FileSet = Mapping[str, FileRef]
CacheManifest = dict[str, FileFsRef]


@dataclass(frozen=True, slots=True)
class BuildRequest:
    files: FileSet
    entrypoint: str
    work_path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "work_path", Path(self.work_path))


@dataclass(frozen=True, slots=True)
class StagingResult:
    files_on_disk: Mapping[str, Path]
    ncc_path: Path
    entrypoint_dir: Path


@dataclass(frozen=True, slots=True)
class ArtifactDescriptor:
    """Sealed, deployable output of one build.

    ``files`` is copied into a read-only mapping on construction, so the
    descriptor cannot be changed after it is handed to the orchestrator.
    """

    files: FileSet
    handler: str
    runtime: str
    environment: Mapping[str, str] = field(default_factory=dict)
    schema_version: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))
        object.__setattr__(self, "environment", MappingProxyType(dict(self.environment)))

    def zip_bytes(self) -> bytes:
        """Return a deterministic zip archive of ``files``."""
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name in sorted(self.files):
                ref = self.files[name]
                info = zipfile.ZipInfo(name, date_time=_ZIP_EPOCH)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = (ref.mode & 0xFFFF) << 16
                zf.writestr(info, ref.read_bytes())
        return buf.getvalue()

    @property
    def size(self) -> int:
        return len(self.zip_bytes())

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, Any]:
        files: dict[str, Any] = {}
        for name in sorted(self.files):
            ref = self.files[name]
            data = ref.read_bytes()
            files[name] = {
                "mode": ref.mode,
                "size": len(data),
                "sha256": hashlib.sha256(data).hexdigest(),
            }
        return {
            "schema_version": self.schema_version,
            "handler": self.handler,
            "runtime": self.runtime,
            "environment": dict(sorted(self.environment.items())),
            "files": files,
        }


__all__ = [
    "ArtifactDescriptor",
    "BuildRequest",
    "CacheManifest",
    "DEFAULT_FILE_MODE",
    "FileBlob",
    "FileFsRef",
    "FileRef",
    "FileSet",
    "StagingResult",
]
