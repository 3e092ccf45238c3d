"""Stage user files and install user and bundler dependencies.

Staging runs four steps strictly in order, each reading disk state written
by the one before:

1. ``materialize-user``: write the request files under ``<work>/user``.
2. ``install-user``: install dependencies next to the entrypoint.
3. ``materialize-bundler-manifest``: write a package.json pinning ncc under
   ``<work>/ncc``.
4. ``install-bundler``: install that manifest.

A failing step raises :class:`StagingError` tagged with its phase. Whatever
earlier steps wrote stays on disk.
"""

from __future__ import annotations

import json
import posixpath
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TypeVar

from fnbuild.config import DEFAULT_CONFIG, BuilderConfig
from fnbuild.errors import FnBuildError, StagePhase, StagingError
from fnbuild.fs.download import download
from fnbuild.install import Installer
from fnbuild.models import BuildRequest, FileBlob, FileSet, StagingResult
from fnbuild.observability import StructuredLogger

T = TypeVar("T")

Materializer = Callable[[FileSet, Path], dict[str, Path]]


def normalize_entrypoint(entrypoint: str) -> str:
    """Collapse `.` segments and repeated slashes in a POSIX entrypoint path."""
    return posixpath.normpath(entrypoint)


def bundler_manifest(config: BuilderConfig = DEFAULT_CONFIG) -> FileSet:
    """Return the synthetic package.json that pins the bundler version."""
    payload = {"dependencies": {config.ncc_package: config.ncc_version}}
    return {"package.json": FileBlob.from_text(json.dumps(payload))}


def stage(
    request: BuildRequest,
    installer_args: Sequence[str] = (),
    *,
    installer: Installer,
    materializer: Materializer = download,
    logger: StructuredLogger | None = None,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> StagingResult:
    logger = logger or StructuredLogger()
    entrypoint = request.entrypoint
    if entrypoint not in request.files:
        raise StagingError(
            "Entrypoint is not part of the input files.",
            phase="materialize-user",
            hint="Pass an entrypoint that is a key of the files mapping.",
            context={"entrypoint": entrypoint},
        )

    user_path = request.work_path / config.user_dir
    ncc_path = request.work_path / config.ncc_dir
    args = list(installer_args)

    def _progress(phase: StagePhase, message: str) -> None:
        logger.log(operation="stage", phase=phase, entrypoint=entrypoint, message=message)

    _progress("materialize-user", "downloading user files...")
    files_on_disk = _step(
        "materialize-user",
        lambda: materializer(request.files, user_path),
    )
    if entrypoint not in files_on_disk:
        raise StagingError(
            "Materializer did not write the entrypoint.",
            phase="materialize-user",
            context={"entrypoint": entrypoint, "dest": str(user_path)},
        )

    entrypoint_dir = user_path / posixpath.dirname(normalize_entrypoint(entrypoint))
    _progress("install-user", "running npm install for user...")
    if _step("install-user", lambda: installer.install(entrypoint_dir, args)) is False:
        _progress("install-user", f"no package.json in {entrypoint_dir}, skipping install")

    _progress("materialize-bundler-manifest", "writing ncc package.json...")
    _step(
        "materialize-bundler-manifest",
        lambda: materializer(bundler_manifest(config), ncc_path),
    )

    _progress("install-bundler", "running npm install for ncc...")
    if _step("install-bundler", lambda: installer.install(ncc_path, args)) is False:
        _progress("install-bundler", f"no package.json in {ncc_path}, skipping install")

    return StagingResult(
        files_on_disk=files_on_disk,
        ncc_path=ncc_path,
        entrypoint_dir=entrypoint_dir,
    )


def _step(phase: StagePhase, action: Callable[[], T]) -> T:
    try:
        return action()
    except (FnBuildError, OSError) as exc:
        raise StagingError(
            f"Staging failed during {phase}.",
            phase=phase,
            cause=exc,
        ) from exc
