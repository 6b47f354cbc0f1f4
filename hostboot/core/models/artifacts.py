"""
Artifact models — values handed from one stage to the next.

Each of these is written by exactly one stage and consumed read-only
afterwards:

    RepositoryDescriptor   ← repository configurator
    ReleaseArtifact        ← artifact installer
    InstallRun             ← process runner (read by the credential extractor)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RepositoryDescriptor(BaseModel):
    """A configured, signed third-party apt repository."""

    model_config = ConfigDict(frozen=True)

    signing_key_url: str
    keyring_path: str
    family: str = "debian"
    base_url: str
    codename: str          # post-remapping, always inside the allow-list
    architecture: str
    component: str = "stable"
    sources_path: str = ""

    @property
    def source_line(self) -> str:
        """The single-line ``deb`` entry, with explicit arch and signed-by."""
        return (
            f"deb [arch={self.architecture} signed-by={self.keyring_path}] "
            f"{self.base_url} {self.codename} {self.component}"
        )


class ReleaseArtifact(BaseModel):
    """A downloaded release archive and where its binary ended up."""

    download_url: str
    archive_path: str
    extracted_path: str = ""
    install_path: str = ""
    size_bytes: int = 0


class InstallRun(BaseModel):
    """Outcome of running the wrapped tool's install command.

    ``log_path`` is closed and fully flushed by the time this object
    exists; readers may open it freely.
    """

    model_config = ConfigDict(frozen=True)

    argv: list[str]
    exit_status: int
    log_path: str
    bytes_captured: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_status == 0
