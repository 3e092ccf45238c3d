import dataclasses
import hashlib
import io
import json
import zipfile
from pathlib import Path

import cbor2
import pytest

from fnbuild.config import BuilderConfig, parse_size
from fnbuild.errors import (
    BundleFailed,
    CompileError,
    ErrorCode,
    InstallationFailed,
    SizeExceeded,
    StagingError,
    TemplateError,
    UserScriptError,
    ValidationError,
)
from fnbuild.models import ArtifactDescriptor, BuildRequest, FileBlob, FileFsRef, FileRef
from fnbuild.observability import StructuredLogger


def _descriptor() -> ArtifactDescriptor:
    return ArtifactDescriptor(
        files={
            "user/index.js": FileBlob(data=b"bundled"),
            "launcher.js": FileBlob.from_text("exports.launcher = 1;\n", mode=0o100755),
        },
        handler="launcher.launcher",
        runtime="nodejs8.10",
    )


def test_file_refs_are_interchangeable(tmp_path: Path) -> None:
    path = tmp_path / "a.js"
    path.write_bytes(b"on disk")
    refs: list[FileRef] = [FileBlob(data=b"in memory"), FileFsRef.from_fs_path(path)]

    assert all(isinstance(ref, FileRef) for ref in refs)
    assert [ref.size for ref in refs] == [9, 7]
    assert refs[1].read_bytes() == b"on disk"


def test_file_blob_is_immutable() -> None:
    blob = FileBlob(data=b"x")

    with pytest.raises(dataclasses.FrozenInstanceError):
        blob.data = b"y"  # type: ignore[misc]


def test_build_request_normalizes_work_path() -> None:
    request = BuildRequest(files={}, entrypoint="index.js", work_path="/tmp/work")  # type: ignore[arg-type]

    assert request.work_path == Path("/tmp/work")


def test_zip_bytes_are_deterministic_and_keep_modes() -> None:
    first = _descriptor().zip_bytes()
    second = _descriptor().zip_bytes()

    assert first == second
    with zipfile.ZipFile(io.BytesIO(first)) as zf:
        assert zf.namelist() == ["launcher.js", "user/index.js"]
        assert zf.read("user/index.js") == b"bundled"
        assert (zf.getinfo("launcher.js").external_attr >> 16) & 0o777 == 0o755


def test_descriptor_json_export(tmp_path: Path) -> None:
    output = tmp_path / "lambda.json"

    encoded = _descriptor().to_json(output)
    payload = json.loads(output.read_text(encoding="utf-8"))

    assert encoded == output.read_text(encoding="utf-8")
    assert payload["handler"] == "launcher.launcher"
    assert payload["files"]["user/index.js"]["sha256"] == hashlib.sha256(b"bundled").hexdigest()


def test_descriptor_cbor_export_is_canonical() -> None:
    encoded = _descriptor().to_cbor()

    assert cbor2.loads(encoded)["runtime"] == "nodejs8.10"
    assert encoded == _descriptor().to_cbor()


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        StagingError("staging failed", phase="install-user"),
        InstallationFailed("npm failed", returncode=1),
        UserScriptError("script failed"),
        CompileError("compile failed"),
        BundleFailed("ncc failed"),
        TemplateError("placeholder missing"),
        SizeExceeded("too big"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.STAGING.value,
        ErrorCode.INSTALLATION.value,
        ErrorCode.USER_SCRIPT.value,
        ErrorCode.COMPILE.value,
        ErrorCode.COMPILE.value,
        ErrorCode.TEMPLATE.value,
        ErrorCode.SIZE_EXCEEDED.value,
    ]


def test_staging_error_payload_includes_phase_and_cause() -> None:
    cause = InstallationFailed("npm install failed.", returncode=1)
    error = StagingError("Staging failed.", phase="install-bundler", cause=cause, hint="retry")

    payload = error.to_dict()

    assert payload["phase"] == "install-bundler"
    assert payload["hint"] == "retry"
    assert payload["context"] == {"phase": "install-bundler", "cause": "npm install failed."}
    assert "Hint: retry" in str(error)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("5mb", 5 * 1024 * 1024), ("512", 512), ("1.5kb", 1536), ("2 GB", 2 * 1024**3)],
)
def test_parse_size(value: str, expected: int) -> None:
    assert parse_size(value) == expected


def test_parse_size_rejects_garbage() -> None:
    with pytest.raises(ValidationError):
        parse_size("five megs")


def test_config_derives_launcher_name_and_limit() -> None:
    config = BuilderConfig()

    assert config.launcher_name == "launcher.js"
    assert config.max_lambda_bytes == 5 * 1024 * 1024


def test_structured_logger_writes_json_lines(tmp_path: Path) -> None:
    logger = StructuredLogger()
    logger.log(operation="stage", phase="install-user", entrypoint="index.js", message="installing")

    path = logger.to_json_lines(tmp_path / "logs" / "build.jsonl")

    record = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
    assert record["phase"] == "install-user"
    assert logger.records_for_phase("install-user") == [record]
