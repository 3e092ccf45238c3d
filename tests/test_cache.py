from pathlib import Path

import pytest

from fnbuild.cache import cache_patterns, prepare_cache
from fnbuild.errors import StagingError
from fnbuild.models import BuildRequest, FileFsRef, FileSet

from conftest import FakeInstaller


def _request(files: FileSet, tmp_path: Path) -> BuildRequest:
    return BuildRequest(files=files, entrypoint="index.js", work_path=tmp_path / "unused")


def test_cache_patterns_cover_both_namespaces() -> None:
    assert cache_patterns() == (
        "user/node_modules/**",
        "user/package-lock.json",
        "user/yarn.lock",
        "ncc/node_modules/**",
        "ncc/package-lock.json",
        "ncc/yarn.lock",
    )


def test_prepare_cache_selects_dependency_trees_and_lockfiles(
    tmp_path: Path,
    installer: FakeInstaller,
    user_files: FileSet,
) -> None:
    cache_path = tmp_path / "cache"

    manifest = prepare_cache(_request(user_files, tmp_path), cache_path, installer=installer)

    assert set(manifest) == {
        "user/node_modules/dep/index.js",
        "user/package-lock.json",
        "ncc/node_modules/dep/index.js",
        "ncc/package-lock.json",
    }
    assert all(isinstance(ref, FileFsRef) for ref in manifest.values())
    assert manifest["user/package-lock.json"].fs_path == cache_path / "user" / "package-lock.json"


def test_prepare_cache_leaves_other_files_out_of_manifest(
    tmp_path: Path,
    installer: FakeInstaller,
    user_files: FileSet,
) -> None:
    cache_path = tmp_path / "cache"

    manifest = prepare_cache(_request(user_files, tmp_path), cache_path, installer=installer)

    assert (cache_path / "user" / "index.js").exists()
    assert (cache_path / "ncc" / "package.json").exists()
    assert "user/index.js" not in manifest
    assert "ncc/package.json" not in manifest
    assert not (tmp_path / "unused").exists()


def test_prepare_cache_is_idempotent(
    tmp_path: Path,
    installer: FakeInstaller,
    user_files: FileSet,
) -> None:
    cache_path = tmp_path / "cache"
    request = _request(user_files, tmp_path)

    first = prepare_cache(request, cache_path, installer=installer)
    second = prepare_cache(request, cache_path, installer=installer)

    assert set(first) == set(second)


def test_prepare_cache_picks_up_yarn_lock(tmp_path: Path, user_files: FileSet) -> None:
    class YarnInstaller(FakeInstaller):
        def install(self, directory: Path, extra_args: tuple[str, ...]) -> bool:
            (Path(directory) / "yarn.lock").write_text("# yarn\n", encoding="utf-8")
            return True

    manifest = prepare_cache(
        _request(user_files, tmp_path),
        tmp_path / "cache",
        installer=YarnInstaller(),
    )

    assert set(manifest) == {"user/yarn.lock", "ncc/yarn.lock"}


def test_prepare_cache_propagates_staging_errors(tmp_path: Path, user_files: FileSet) -> None:
    with pytest.raises(StagingError) as excinfo:
        prepare_cache(
            _request(user_files, tmp_path),
            tmp_path / "cache",
            installer=FakeInstaller(fail_in="ncc"),
        )

    assert excinfo.value.phase == "install-bundler"
