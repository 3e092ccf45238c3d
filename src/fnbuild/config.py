"""Builder configuration and size helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass

from fnbuild.errors import ValidationError

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"b": 1, "kb": 1024, "mb": 1024**2, "gb": 1024**3}


@dataclass(frozen=True, slots=True)
class BuilderConfig:
    ncc_package: str = "@zeit/ncc"
    ncc_version: str = "0.1.3-webpack"
    runtime: str = "nodejs8.10"
    handler: str = "launcher.launcher"
    build_script: str = "now-build"
    max_lambda_size: str = "5mb"
    build_installer_args: tuple[str, ...] = ("--prefer-offline",)
    user_dir: str = "user"
    ncc_dir: str = "ncc"
    placeholder: str = "// PLACEHOLDER"
    timeout: float | None = None

    @property
    def launcher_name(self) -> str:
        return f"{self.handler.split('.', 1)[0]}.js"

    @property
    def max_lambda_bytes(self) -> int:
        return parse_size(self.max_lambda_size)

    def capabilities(self) -> dict[str, str]:
        return {"maxLambdaSize": self.max_lambda_size}


def parse_size(value: str) -> int:
    """Convert a human size such as ``5mb`` into a byte count."""
    match = _SIZE_PATTERN.fullmatch(value)
    if match is None:
        raise ValidationError(
            f"Unsupported size value: {value!r}",
            hint="Use a number with an optional b/kb/mb/gb suffix, e.g. '5mb'.",
        )
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "b").lower()])


DEFAULT_CONFIG = BuilderConfig()
