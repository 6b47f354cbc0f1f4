"""
Tests for release artifact download, extraction and atomic install.
"""

import os
import stat
from pathlib import Path

import pytest

from hostboot.core.errors import DownloadError, EmptyArchiveError, ExtractError
from hostboot.core.services.bootstrap.execution.artifact import ArtifactInstaller

from tests.helpers import make_tarball

URL = "https://example.invalid/releases/tool-linux-amd64.tar.gz"


class TestArtifactInstaller:
    def test_install(self, fake_env, config, release_archive):
        fake_env.set_payload(URL, release_archive)
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"

        artifact = ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))

        assert artifact.install_path == str(dest)
        assert artifact.size_bytes == len(release_archive)
        assert dest.read_bytes() == b"#!/bin/sh\necho v1\n"
        assert stat.S_IMODE(dest.stat().st_mode) == 0o755

    def test_scratch_removed_on_success(self, fake_env, config, release_archive):
        fake_env.set_payload(URL, release_archive)
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))
        assert os.listdir(config.artifact.scratch_dir) == []

    def test_reinstall_replaces_binary(self, fake_env, config, release_archive):
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        installer = ArtifactInstaller(fake_env, config.artifact)

        fake_env.set_payload(URL, release_archive)
        installer.install(URL, "tool.tar.gz", str(dest))

        fake_env.set_payload(URL, make_tarball({"bloodhound-cli": b"#!/bin/sh\necho v2\n"}))
        installer.install(URL, "tool.tar.gz", str(dest))

        assert dest.read_bytes() == b"#!/bin/sh\necho v2\n"
        leftovers = [p.name for p in dest.parent.iterdir() if p.name != dest.name]
        assert leftovers == []

    def test_install_release_uses_arch_template(self, fake_env, config, release_archive):
        url = config.artifact.url_for("arm64")
        assert "linux-arm64" in url
        fake_env.set_payload(url, release_archive)

        artifact = ArtifactInstaller(fake_env, config.artifact).install_release("arm64")
        assert artifact.download_url == url
        assert artifact.install_path == config.artifact.install_path

    def test_empty_archive(self, fake_env, config):
        fake_env.set_payload(URL, b"")
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        with pytest.raises(EmptyArchiveError) as exc:
            ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))
        assert isinstance(exc.value, DownloadError)
        assert exc.value.stage == "artifact"
        assert not dest.exists()

    def test_download_failure(self, fake_env, config):
        fake_env.set_fetch_error(URL, "HTTP 404 Not Found", status=404)
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        with pytest.raises(DownloadError) as exc:
            ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))
        assert not isinstance(exc.value, EmptyArchiveError)
        assert "404" in str(exc.value)

    def test_not_an_archive(self, fake_env, config):
        fake_env.set_payload(URL, b"<html>rate limited</html>")
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        with pytest.raises(ExtractError):
            ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))

    def test_binary_missing_from_archive(self, fake_env, config):
        fake_env.set_payload(URL, make_tarball({"README.md": b"hello"}))
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        with pytest.raises(ExtractError) as exc:
            ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))
        assert "README.md" in str(exc.value)

    def test_scratch_kept_on_failure(self, fake_env, config):
        fake_env.set_payload(URL, make_tarball({"README.md": b"hello"}))
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        with pytest.raises(ExtractError):
            ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))
        assert len(os.listdir(config.artifact.scratch_dir)) == 1

    def test_missing_scratch_dir(self, fake_env, config, tmp_path):
        settings = config.artifact.model_copy(update={"scratch_dir": str(tmp_path / "absent")})
        dest = Path(settings.install_dir) / "bloodhound-cli"
        with pytest.raises(DownloadError) as exc:
            ArtifactInstaller(fake_env, settings).install(URL, "tool.tar.gz", str(dest))
        assert exc.value.stage == "artifact"
        assert "scratch directory" in str(exc.value)
        assert fake_env.fetches == []

    def test_failed_copy_leaves_no_temp_file(self, fake_env, config, release_archive, monkeypatch):
        fake_env.set_payload(URL, release_archive)
        dest = Path(config.artifact.install_dir) / "bloodhound-cli"
        dest.parent.mkdir(parents=True)
        dest.write_bytes(b"old binary")

        def no_space(src, dst, **kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("hostboot.core.services.bootstrap.execution.artifact.shutil.copyfile", no_space)

        with pytest.raises(ExtractError, match="No space left"):
            ArtifactInstaller(fake_env, config.artifact).install(URL, "tool.tar.gz", str(dest))
        assert sorted(p.name for p in dest.parent.iterdir()) == ["bloodhound-cli"]
        assert dest.read_bytes() == b"old binary"
