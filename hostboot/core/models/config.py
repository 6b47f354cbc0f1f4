"""
BootstrapConfig — the validated shape of hostboot.yml.

Every field has a default taken from the upstream install procedure,
so an empty (or missing) config file yields a working configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hostboot.core.models.package import PackageSpec

DEFAULT_PREREQUISITES: list[str] = [
    "apt-transport-https",
    "ca-certificates",
    "curl",
    "gnupg2",
    "software-properties-common",
    "wget",
    "tar",
]


class RepositoryFamily(BaseModel):
    """The vendor repository as published for one distribution family."""

    model_config = ConfigDict(extra="forbid")

    base_url: str
    signing_key_url: str
    # Codenames the upstream repository actually publishes.
    allowed_codenames: list[str]
    # Rolling / derivative / interim codenames → nearest published codename.
    codename_map: dict[str, str] = Field(default_factory=dict)
    default_codename: str

    @model_validator(mode="after")
    def _targets_in_allow_list(self) -> RepositoryFamily:
        allowed = set(self.allowed_codenames)
        if self.default_codename not in allowed:
            raise ValueError(
                f"default_codename {self.default_codename!r} is not in allowed_codenames"
            )
        bad = sorted(t for t in self.codename_map.values() if t not in allowed)
        if bad:
            raise ValueError(f"codename_map targets not in allowed_codenames: {', '.join(bad)}")
        return self


def _default_families() -> dict[str, RepositoryFamily]:
    return {
        "debian": RepositoryFamily(
            base_url="https://download.docker.com/linux/debian",
            signing_key_url="https://download.docker.com/linux/debian/gpg",
            allowed_codenames=["bullseye", "bookworm", "trixie"],
            codename_map={
                "kali-rolling": "bookworm",
                "parrot": "bookworm",
                "sid": "trixie",
                "forky": "trixie",
            },
            default_codename="bookworm",
        ),
        "ubuntu": RepositoryFamily(
            base_url="https://download.docker.com/linux/ubuntu",
            signing_key_url="https://download.docker.com/linux/ubuntu/gpg",
            allowed_codenames=["focal", "jammy", "noble"],
            codename_map={"oracular": "noble", "plucky": "noble"},
            default_codename="noble",
        ),
    }


class RepositorySettings(BaseModel):
    """Signed third-party apt repository for the container runtime.

    ``families`` is keyed by os-release ``ID`` / ``ID_LIKE`` values. A host
    whose identifiers match no key uses ``default_family``. Overriding
    ``families`` in hostboot.yml replaces the whole table.
    """

    model_config = ConfigDict(extra="forbid")

    keyring_dir: str = "/etc/apt/keyrings"
    keyring_name: str = "docker.asc"
    sources_path: str = "/etc/apt/sources.list.d/docker.list"
    component: str = "stable"

    families: dict[str, RepositoryFamily] = Field(default_factory=_default_families)
    default_family: str = "debian"

    @model_validator(mode="after")
    def _default_family_known(self) -> RepositorySettings:
        if self.default_family not in self.families:
            raise ValueError(f"default_family {self.default_family!r} is not in families")
        return self

    @property
    def keyring_path(self) -> str:
        return f"{self.keyring_dir.rstrip('/')}/{self.keyring_name}"


class RuntimeSettings(BaseModel):
    """Container runtime packages and the service that backs them."""

    model_config = ConfigDict(extra="forbid")

    preferred_packages: list[str] = Field(
        default_factory=lambda: ["docker-ce", "docker-compose-plugin"],
    )
    fallback_packages: list[str] = Field(default_factory=lambda: ["docker.io"])
    service: str = "docker"
    probe: list[str] = Field(default_factory=lambda: ["docker", "info"])
    probe_retries: int = Field(default=10, ge=1)
    probe_delay: float = Field(default=2.0, ge=0)
    probe_timeout: int = Field(default=15, ge=1)
    grant_group: str | None = "docker"


class ArtifactSettings(BaseModel):
    """Release archive of the third-party install CLI."""

    model_config = ConfigDict(extra="forbid")

    url_template: str = (
        "https://github.com/SpecterOps/bloodhound-cli/releases/latest/download/"
        "bloodhound-cli-linux-{arch}.tar.gz"
    )
    binary_name: str = "bloodhound-cli"
    install_dir: str = "/usr/local/bin"
    scratch_dir: str = "/tmp"
    timeout: int = Field(default=120, ge=1)

    def url_for(self, architecture: str) -> str:
        return self.url_template.replace("{arch}", architecture)

    @property
    def install_path(self) -> str:
        return f"{self.install_dir.rstrip('/')}/{self.binary_name}"


class ToolSettings(BaseModel):
    """How the installed CLI is driven."""

    model_config = ConfigDict(extra="forbid")

    install_args: list[str] = Field(default_factory=lambda: ["install"])
    fallback_query: list[str] = Field(
        default_factory=lambda: ["config", "get", "default_password"],
    )
    reset_args: list[str] = Field(default_factory=lambda: ["resetpwd"])
    fallback_timeout: int = Field(default=60, ge=1)
    ui_url: str = "http://localhost:8080/ui/login"


class OutputSettings(BaseModel):
    """Where the captured credential lands, relative to the invoking home."""

    model_config = ConfigDict(extra="forbid")

    subdir: str = "bloodhound-ce"
    filename: str = "admin-password.txt"


class BootstrapConfig(BaseModel):
    """Root of hostboot.yml."""

    model_config = ConfigDict(extra="forbid")

    prerequisites: list[str] = Field(default_factory=lambda: list(DEFAULT_PREREQUISITES))
    interpreter: PackageSpec = Field(
        default_factory=lambda: PackageSpec(name="python3", min_version="3.10.0"),
    )
    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    artifact: ArtifactSettings = Field(default_factory=ArtifactSettings)
    tool: ToolSettings = Field(default_factory=ToolSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
