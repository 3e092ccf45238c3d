"""Public package entrypoint for the Node.js function builder."""

from .assemble import assemble, launcher_statements
from .builder import NodeBuilder, ensure_within_size_limit
from .bundle import Bundler, NccBundler
from .cache import cache_patterns, prepare_cache
from .config import BuilderConfig, parse_size
from .errors import (
    BundleFailed,
    CompileError,
    FnBuildError,
    InstallationFailed,
    SizeExceeded,
    StagingError,
    TemplateError,
    UserScriptError,
    ValidationError,
)
from .install import Installer, NpmInstaller, run_package_json_script
from .models import (
    ArtifactDescriptor,
    BuildRequest,
    CacheManifest,
    FileBlob,
    FileFsRef,
    FileRef,
    FileSet,
    StagingResult,
)
from .observability import StructuredLogger
from .stage import bundler_manifest, normalize_entrypoint, stage
from .template import LauncherTemplate

__all__ = [
    "ArtifactDescriptor",
    "BuildRequest",
    "BuilderConfig",
    "BundleFailed",
    "Bundler",
    "CacheManifest",
    "CompileError",
    "FileBlob",
    "FileFsRef",
    "FileRef",
    "FileSet",
    "FnBuildError",
    "InstallationFailed",
    "Installer",
    "LauncherTemplate",
    "NccBundler",
    "NodeBuilder",
    "NpmInstaller",
    "SizeExceeded",
    "StagingError",
    "StagingResult",
    "StructuredLogger",
    "TemplateError",
    "UserScriptError",
    "ValidationError",
    "assemble",
    "bundler_manifest",
    "cache_patterns",
    "ensure_within_size_limit",
    "launcher_statements",
    "normalize_entrypoint",
    "parse_size",
    "prepare_cache",
    "run_package_json_script",
    "stage",
]
