"""Builder entrypoint used by the orchestrator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from fnbuild.assemble import ScriptRunner, assemble
from fnbuild.bundle import Bundler, NccBundler
from fnbuild.cache import prepare_cache
from fnbuild.config import DEFAULT_CONFIG, BuilderConfig, parse_size
from fnbuild.errors import SizeExceeded
from fnbuild.fs.download import download
from fnbuild.install import Installer, NpmInstaller, run_package_json_script
from fnbuild.models import ArtifactDescriptor, BuildRequest, CacheManifest, FileSet
from fnbuild.observability import StructuredLogger
from fnbuild.stage import Materializer, stage

BundlerFactory = Callable[[Path], Bundler]


@dataclass(slots=True)
class NodeBuilder:
    """Builds one Node.js entrypoint into a deployable function artifact."""

    config: BuilderConfig = field(default_factory=BuilderConfig)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    installer: Installer | None = None
    bundler_factory: BundlerFactory | None = None
    script_runner: ScriptRunner | None = None
    materializer: Materializer = download

    def __post_init__(self) -> None:
        if self.installer is None:
            self.installer = NpmInstaller(timeout=self.config.timeout, logger=self.logger)
        if self.bundler_factory is None:
            self.bundler_factory = partial(
                NccBundler.from_install,
                package=self.config.ncc_package,
                timeout=self.config.timeout,
            )
        if self.script_runner is None:
            self.script_runner = partial(run_package_json_script, timeout=self.config.timeout)

    @property
    def capabilities(self) -> dict[str, str]:
        return self.config.capabilities()

    def build(
        self,
        files: FileSet,
        entrypoint: str,
        work_path: str | Path,
    ) -> dict[str, ArtifactDescriptor]:
        request = BuildRequest(files=files, entrypoint=entrypoint, work_path=Path(work_path))
        staging = stage(
            request,
            self.config.build_installer_args,
            installer=self.installer,
            materializer=self.materializer,
            logger=self.logger,
            config=self.config,
        )
        bundler = self.bundler_factory(staging.ncc_path)
        descriptor = assemble(
            staging,
            entrypoint,
            bundler=bundler,
            script_runner=self.script_runner,
            logger=self.logger,
            config=self.config,
        )
        return {entrypoint: descriptor}

    def prepare_cache(
        self,
        files: FileSet,
        entrypoint: str,
        cache_path: str | Path,
    ) -> CacheManifest:
        request = BuildRequest(files=files, entrypoint=entrypoint, work_path=Path(cache_path))
        return prepare_cache(
            request,
            cache_path,
            installer=self.installer,
            materializer=self.materializer,
            logger=self.logger,
            config=self.config,
        )


def ensure_within_size_limit(
    descriptor: ArtifactDescriptor,
    max_size: str | int = DEFAULT_CONFIG.max_lambda_size,
) -> int:
    """Raise :class:`SizeExceeded` if the zipped artifact is over *max_size*."""
    limit = parse_size(max_size) if isinstance(max_size, str) else max_size
    size = descriptor.size
    if size > limit:
        raise SizeExceeded(
            "Assembled artifact exceeds the maximum size.",
            hint="Remove unused dependencies or split the function.",
            context={
                "operation": "size_check",
                "size": str(size),
                "limit": str(limit),
            },
        )
    return size
