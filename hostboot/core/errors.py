"""
Error taxonomy — one exception class per failure mode.

Every fatal failure carries the label of the pipeline stage that
raised it, so the CLI can print ``[stage] ErrorClass: message``
without knowing anything about the stage internals.

Non-fatal classes (``SubprocessError``) are never raised out of the
pipeline; they are recorded as warnings on the report.
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for every orchestrator failure."""

    stage: str = "bootstrap"

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def describe(self) -> str:
        """Human-readable, stage-labeled one-liner."""
        return f"[{self.stage}] {self.__class__.__name__}: {self}"


class ConfigError(BootstrapError):
    """Raised when hostboot.yml is unreadable or invalid."""

    stage = "config"


# ── Preflight ───────────────────────────────────────────────────


class PrivilegeError(BootstrapError):
    stage = "preflight"


class PackageStateError(BootstrapError):
    """The package manager could not repair its dependency state."""

    stage = "preflight"


class PackageInstallError(BootstrapError):
    stage = "preflight"

    def __init__(self, name: str, message: str = "", *, stage: str | None = None):
        self.name = name
        super().__init__(message or f"Failed to install package '{name}'", stage=stage)


class InterpreterVersionError(BootstrapError):
    """Interpreter missing (``have is None``) or older than ``want``."""

    stage = "preflight"

    def __init__(self, have: str | None, want: str, *, binary: str = ""):
        self.have = have
        self.want = want
        if have is None:
            message = f"Interpreter '{binary}' not found (need >= {want})"
        else:
            message = f"Interpreter version {have!r} does not satisfy >= {want}"
        super().__init__(message)


# ── Repository / runtime / service ──────────────────────────────


class RepositoryConfigError(BootstrapError):
    stage = "repository"

    KEY_FETCH_FAILED = "key_fetch_failed"
    UNWRITABLE_KEYRING = "unwritable_keyring"

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)


class ServiceStartError(BootstrapError):
    stage = "service"


# ── Artifact ────────────────────────────────────────────────────


class DownloadError(BootstrapError):
    stage = "artifact"


class EmptyArchiveError(DownloadError):
    """The server answered but the downloaded artifact has zero bytes."""


class ExtractError(BootstrapError):
    stage = "artifact"


# ── Install run / credential ────────────────────────────────────


class SubprocessError(BootstrapError):
    """The wrapped tool exited non-zero. Recorded, never fatal on its own."""

    stage = "install"

    def __init__(self, argv: list[str], returncode: int):
        self.argv = argv
        self.returncode = returncode
        super().__init__(f"{argv[0]} exited with status {returncode}")


class CredentialNotFoundError(BootstrapError):
    stage = "output"


class OutputWriteError(BootstrapError):
    """The credential file (or its directory) could not be written or handed over."""

    stage = "output"
