"""Warm a persistent dependency cache."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from fnbuild.config import DEFAULT_CONFIG, BuilderConfig
from fnbuild.fs.download import download
from fnbuild.fs.glob import glob
from fnbuild.install import Installer
from fnbuild.models import BuildRequest, CacheManifest
from fnbuild.observability import StructuredLogger
from fnbuild.stage import Materializer, stage

_CACHED_ENTRIES = ("node_modules/**", "package-lock.json", "yarn.lock")


def cache_patterns(config: BuilderConfig = DEFAULT_CONFIG) -> tuple[str, ...]:
    return tuple(
        f"{namespace}/{entry}"
        for namespace in (config.user_dir, config.ncc_dir)
        for entry in _CACHED_ENTRIES
    )


def prepare_cache(
    request: BuildRequest,
    cache_path: str | Path,
    *,
    installer: Installer,
    installer_args: Sequence[str] = (),
    materializer: Materializer = download,
    logger: StructuredLogger | None = None,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> CacheManifest:
    """Stage *request* into *cache_path* and return dependency trees and lockfiles.

    The request's own work path is replaced by *cache_path*. Other staged
    files stay on disk but are not part of the manifest.
    """
    logger = logger or StructuredLogger()
    request = replace(request, work_path=Path(cache_path))
    stage(
        request,
        installer_args,
        installer=installer,
        materializer=materializer,
        logger=logger,
        config=config,
    )

    manifest: CacheManifest = {}
    for pattern in cache_patterns(config):
        manifest.update(glob(pattern, request.work_path))
    logger.log(
        operation="prepare_cache",
        phase="select",
        entrypoint=request.entrypoint,
        message=f"selected {len(manifest)} cache files",
    )
    return manifest
