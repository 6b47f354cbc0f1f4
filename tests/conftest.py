"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from hostboot.adapters.mock import FakeEnvironment
from hostboot.core.models.config import (
    ArtifactSettings,
    BootstrapConfig,
    RepositorySettings,
    RuntimeSettings,
)
from hostboot.core.models.host import UserRecord

from tests.helpers import SIGNING_KEY, make_tarball


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Home directory of the invoking (pre-sudo) user."""
    home = tmp_path / "home" / "alice"
    home.mkdir(parents=True)
    return home


@pytest.fixture
def fake_env(tmp_path: Path, home_dir: Path) -> FakeEnvironment:
    """Root on Debian bookworm/amd64, invoked via sudo by ``alice``."""
    env = FakeEnvironment(
        euid=0,
        effective="root",
        invoking="alice",
        users={
            "alice": UserRecord(name="alice", uid=1000, gid=1000, home=str(home_dir)),
            "root": UserRecord(name="root", uid=0, gid=0, home=str(tmp_path / "root")),
        },
        os_release={"ID": "debian", "VERSION_CODENAME": "bookworm"},
        executables=["python3"],
    )
    env.set_result("/usr/bin/python3", "--version", stdout="Python 3.11.2\n")
    env.set_result("dpkg", "--print-architecture", stdout="amd64\n")
    return env


@pytest.fixture
def config(tmp_path: Path) -> BootstrapConfig:
    """Default configuration with every host path redirected under tmp_path."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return BootstrapConfig(
        repository=RepositorySettings(
            keyring_dir=str(tmp_path / "etc" / "apt" / "keyrings"),
            sources_path=str(tmp_path / "etc" / "apt" / "sources.list.d" / "docker.list"),
        ),
        runtime=RuntimeSettings(probe_delay=0),
        artifact=ArtifactSettings(
            install_dir=str(tmp_path / "usr" / "local" / "bin"),
            scratch_dir=str(scratch),
        ),
    )


@pytest.fixture
def release_archive() -> bytes:
    """A release tarball holding the CLI binary inside a versioned folder."""
    return make_tarball({
        "bloodhound-cli-linux-amd64/bloodhound-cli": b"#!/bin/sh\necho v1\n",
        "bloodhound-cli-linux-amd64/LICENSE": b"license text\n",
    })


@pytest.fixture
def online_env(fake_env: FakeEnvironment, config: BootstrapConfig, release_archive: bytes) -> FakeEnvironment:
    """fake_env with the signing key and release archive downloadable."""
    fake_env.set_payload(config.repository.families["debian"].signing_key_url, SIGNING_KEY)
    fake_env.set_payload(config.artifact.url_for("amd64"), release_archive)
    return fake_env
