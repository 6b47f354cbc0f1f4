"""
SystemEnvironment — the capability contract between stages and the host.

Every stage that touches global host state (package manager, service
manager, network, identity database) does so through this interface.
The real implementation lives in ``host.py``; tests substitute
``FakeEnvironment`` from ``mock.py``, which records intended mutations
instead of performing them.

Like the command runner it wraps, an environment NEVER raises for an
ordinary failure (non-zero exit, HTTP error, missing binary). Failures
come back as data; the stage decides whether they are fatal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Mapping, Protocol, Sequence

from hostboot.core.models.host import Identity, UserRecord


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    error: str = ""          # set when the command could not run at all
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.error

    def describe(self) -> str:
        """Short failure description for log lines and error messages."""
        if self.error:
            return self.error
        tail = (self.stderr or self.stdout).strip().splitlines()
        reason = tail[-1] if tail else ""
        return f"exit {self.returncode}" + (f": {reason}" if reason else "")


@dataclass(frozen=True)
class FetchResult:
    """Outcome of an HTTPS download to a local file."""

    url: str
    dest: str
    ok: bool
    size_bytes: int = 0
    status: int | None = None   # HTTP status when the server answered
    error: str = ""
    final_url: str = ""         # after redirects


class SpawnedProcess(Protocol):
    """The slice of ``subprocess.Popen`` the process runner relies on."""

    stdout: BinaryIO | None

    def wait(self) -> int:
        ...


class SystemEnvironment(ABC):
    """Abstract access to the host being bootstrapped."""

    # ── Identity ────────────────────────────────────────────────

    @abstractmethod
    def effective_uid(self) -> int:
        """Effective user id of this process."""

    @abstractmethod
    def identity(self) -> Identity:
        """Effective and invoking (pre-escalation) identity."""

    @abstractmethod
    def lookup_user(self, name: str) -> UserRecord | None:
        """Look a user up in the system identity database."""

    # ── Platform facts ──────────────────────────────────────────

    @abstractmethod
    def os_release(self) -> dict[str, str]:
        """Key/value pairs from /etc/os-release (empty if unavailable)."""

    @abstractmethod
    def machine(self) -> str:
        """Raw CPU architecture as reported by the kernel (e.g. x86_64)."""

    @abstractmethod
    def which(self, name: str) -> str | None:
        """Resolve an executable on PATH."""

    # ── Processes ───────────────────────────────────────────────

    @abstractmethod
    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: int = 300,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a command to completion, capturing its output."""

    @abstractmethod
    def spawn(self, argv: Sequence[str]) -> SpawnedProcess:
        """Start a command with stderr merged into a binary stdout pipe.

        Stdin is inherited so an interactive tool can still prompt.

        Raises:
            OSError: If the executable cannot be started.
        """

    # ── Network ─────────────────────────────────────────────────

    @abstractmethod
    def fetch(self, url: str, dest: str, *, timeout: int = 60) -> FetchResult:
        """HTTPS GET ``url`` into ``dest``, following redirects."""

    # ── Misc side effects ───────────────────────────────────────

    @abstractmethod
    def chown(self, path: str, uid: int, gid: int) -> None:
        """Change ownership of a path."""

    @abstractmethod
    def sleep(self, seconds: float) -> None:
        """Block for ``seconds`` (fakes return immediately)."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
