"""Typed build error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Literal

StagePhase = Literal[
    "materialize-user",
    "install-user",
    "materialize-bundler-manifest",
    "install-bundler",
]


class ErrorCode(StrEnum):
    """Stable error identifiers surfaced to the orchestrator."""

    VALIDATION = "E_VALIDATION"
    STAGING = "E_STAGING"
    INSTALLATION = "E_INSTALLATION"
    USER_SCRIPT = "E_USER_SCRIPT"
    COMPILE = "E_COMPILE"
    TEMPLATE = "E_TEMPLATE"
    SIZE_EXCEEDED = "E_SIZE_EXCEEDED"


class FnBuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(FnBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class StagingError(FnBuildError):
    """Materialization or installation failed during staging.

    ``phase`` names the step that failed so the caller can attribute the
    failure without parsing the message. ``cause`` is the underlying error,
    also available as ``__cause__``.
    """

    phase: StagePhase
    cause: BaseException | None

    def __init__(
        self,
        message: str,
        *,
        phase: StagePhase,
        cause: BaseException | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = {"phase": phase, **dict(context or {})}
        if cause is not None:
            merged.setdefault("cause", str(cause))
        super().__init__(message, code=ErrorCode.STAGING, hint=hint, context=merged)
        self.phase = phase
        self.cause = cause

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["phase"] = self.phase
        return payload


class InstallationFailed(FnBuildError):
    returncode: int | None

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INSTALLATION, hint=hint, context=context)
        self.returncode = returncode


class UserScriptError(FnBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.USER_SCRIPT, hint=hint, context=context)


class CompileError(FnBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.COMPILE, hint=hint, context=context)


class BundleFailed(CompileError):
    """The bundler reported a failure or produced no output."""


class TemplateError(FnBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.TEMPLATE, hint=hint, context=context)


class SizeExceeded(FnBuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SIZE_EXCEEDED, hint=hint, context=context)


__all__ = [
    "BundleFailed",
    "CompileError",
    "ErrorCode",
    "FnBuildError",
    "InstallationFailed",
    "SizeExceeded",
    "StagePhase",
    "StagingError",
    "TemplateError",
    "UserScriptError",
    "ValidationError",
]
