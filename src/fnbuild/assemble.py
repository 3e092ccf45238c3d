"""Compile the staged entrypoint and assemble the deployable artifact."""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from pathlib import Path

from fnbuild.bundle import Bundler
from fnbuild.config import DEFAULT_CONFIG, BuilderConfig
from fnbuild.errors import BundleFailed, ValidationError
from fnbuild.install import run_package_json_script
from fnbuild.models import ArtifactDescriptor, FileBlob, FileFsRef, FileRef, StagingResult
from fnbuild.observability import StructuredLogger
from fnbuild.stage import normalize_entrypoint
from fnbuild.template import LauncherTemplate, resource_path

ScriptRunner = Callable[[Path, str], bool]

BRIDGE_NAME = "bridge.js"


def launcher_statements(entrypoint: str, config: BuilderConfig = DEFAULT_CONFIG) -> str:
    """Return the code injected in place of the launcher placeholder."""
    compiled_path = posixpath.join(config.user_dir, normalize_entrypoint(entrypoint))
    return " ".join(
        [
            f'process.chdir("./{config.user_dir}");',
            f'listener = require("./{compiled_path}");',
        ]
    )


def assemble(
    staging: StagingResult,
    entrypoint: str,
    *,
    bundler: Bundler,
    script_runner: ScriptRunner = run_package_json_script,
    template: LauncherTemplate | None = None,
    logger: StructuredLogger | None = None,
    config: BuilderConfig = DEFAULT_CONFIG,
) -> ArtifactDescriptor:
    logger = logger or StructuredLogger()
    entrypoint_fs_path = staging.files_on_disk.get(entrypoint)
    if entrypoint_fs_path is None:
        raise ValidationError(
            "Entrypoint was not staged.",
            context={"operation": "assemble", "entrypoint": entrypoint},
        )

    logger.log(
        operation="assemble",
        phase="user-script",
        entrypoint=entrypoint,
        message="running user script...",
    )
    ran = script_runner(staging.entrypoint_dir, config.build_script)
    if ran:
        logger.log(
            operation="assemble",
            phase="user-script",
            entrypoint=entrypoint,
            message=f"ran `{config.build_script}`",
        )

    logger.log(
        operation="assemble",
        phase="compile",
        entrypoint=entrypoint,
        message="compiling entrypoint with ncc...",
    )
    data = bundler.bundle(entrypoint_fs_path)
    if not data:
        raise BundleFailed(
            "Bundler returned an empty result.",
            context={"operation": "assemble", "entrypoint": entrypoint},
        )

    logger.log(
        operation="assemble",
        phase="package",
        entrypoint=entrypoint,
        message="preparing lambda files...",
    )
    if template is None:
        template = LauncherTemplate.from_resource(
            config.launcher_name,
            placeholder=config.placeholder,
        )
    launcher_source = template.render(launcher_statements(entrypoint, config))

    # Bundled code keeps the entrypoint's original name under the user dir.
    files: dict[str, FileRef] = {
        posixpath.join(config.user_dir, normalize_entrypoint(entrypoint)): FileBlob(data=data),
        config.launcher_name: FileBlob.from_text(launcher_source),
        BRIDGE_NAME: FileFsRef.from_fs_path(resource_path(BRIDGE_NAME)),
    }
    return ArtifactDescriptor(files=files, handler=config.handler, runtime=config.runtime)
