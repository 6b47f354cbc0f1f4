"""
Fake environment — in-memory test double for SystemEnvironment.

Used by the test-suite to drive every stage without touching the host.
Commands are answered from scripted results keyed by argv prefix, and
every intended mutation (command, download, chown, sleep) is recorded
so tests can assert on what WOULD have happened.

Unscripted commands succeed with empty output.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Mapping, Sequence

from hostboot.adapters.base import CommandResult, FetchResult, SystemEnvironment
from hostboot.core.models.host import Identity, UserRecord


class FakeProcess:
    """A finished process whose combined output is already known."""

    def __init__(self, output: bytes, returncode: int = 0):
        self.stdout = io.BytesIO(output)
        self.returncode = returncode

    def wait(self) -> int:
        return self.returncode


class FakeEnvironment(SystemEnvironment):
    """Scriptable, recording SystemEnvironment."""

    def __init__(
        self,
        *,
        euid: int = 0,
        effective: str = "root",
        invoking: str | None = None,
        users: Mapping[str, UserRecord] | None = None,
        os_release: Mapping[str, str] | None = None,
        machine: str = "x86_64",
        executables: Sequence[str] = (),
    ):
        self._euid = euid
        self._effective = effective
        self._invoking = invoking or effective
        self._users: dict[str, UserRecord] = dict(users or {})
        self._os_release: dict[str, str] = dict(os_release or {})
        self._machine = machine
        self._executables: set[str] = set(executables)

        self._results: dict[tuple[str, ...], list[CommandResult]] = {}
        self._spawns: dict[tuple[str, ...], tuple[bytes, int]] = {}
        self._payloads: dict[str, bytes] = {}
        self._fetch_errors: dict[str, FetchResult] = {}

        self.calls: list[list[str]] = []
        self.call_envs: list[dict[str, str]] = []
        self.spawned: list[list[str]] = []
        self.fetches: list[tuple[str, str]] = []
        self.chowns: list[tuple[str, int, int]] = []
        self.sleeps: list[float] = []

    # ── Scripting ───────────────────────────────────────────────

    def add_user(self, record: UserRecord) -> None:
        self._users[record.name] = record

    def add_executable(self, name: str) -> None:
        self._executables.add(name)

    def set_result(
        self,
        *argv_prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        error: str = "",
    ) -> None:
        """Answer every command starting with ``argv_prefix`` the same way."""
        self._results[tuple(argv_prefix)] = [
            CommandResult(
                argv=list(argv_prefix),
                returncode=returncode,
                stdout=stdout,
                stderr=stderr,
                error=error,
            )
        ]

    def push_result(self, *argv_prefix: str, returncode: int = 0, stdout: str = "") -> None:
        """Queue a one-shot answer; the last queued answer then repeats."""
        self._results.setdefault(tuple(argv_prefix), []).append(
            CommandResult(argv=list(argv_prefix), returncode=returncode, stdout=stdout)
        )

    def set_spawn(self, *argv_prefix: str, output: bytes, returncode: int = 0) -> None:
        self._spawns[tuple(argv_prefix)] = (output, returncode)

    def set_payload(self, url: str, data: bytes) -> None:
        self._payloads[url] = data

    def set_fetch_error(self, url: str, error: str, status: int | None = None) -> None:
        self._fetch_errors[url] = FetchResult(url=url, dest="", ok=False, status=status, error=error)

    # ── Queries for tests ───────────────────────────────────────

    def ran(self, *argv_prefix: str) -> bool:
        """Whether any recorded command starts with ``argv_prefix``."""
        n = len(argv_prefix)
        return any(tuple(c[:n]) == argv_prefix for c in self.calls)

    def count(self, *argv_prefix: str) -> int:
        n = len(argv_prefix)
        return sum(1 for c in self.calls if tuple(c[:n]) == argv_prefix)

    # ── SystemEnvironment ───────────────────────────────────────

    def effective_uid(self) -> int:
        return self._euid

    def identity(self) -> Identity:
        return Identity(
            effective=self._effective,
            invoking=self._invoking,
            effective_uid=self._euid,
        )

    def lookup_user(self, name: str) -> UserRecord | None:
        return self._users.get(name)

    def os_release(self) -> dict[str, str]:
        return dict(self._os_release)

    def machine(self) -> str:
        return self._machine

    def which(self, name: str) -> str | None:
        if name in self._executables:
            return f"/usr/bin/{name}"
        return None

    def _match(self, table: Mapping[tuple[str, ...], object], argv: list[str]) -> tuple[str, ...] | None:
        for key in sorted(table, key=len, reverse=True):
            if tuple(argv[: len(key)]) == key:
                return key
        return None

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: int = 300,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv_list = list(argv)
        self.calls.append(argv_list)
        self.call_envs.append(dict(env or {}))

        key = self._match(self._results, argv_list)
        if key is None:
            return CommandResult(argv=argv_list, returncode=0)

        queue = self._results[key]
        scripted = queue.pop(0) if len(queue) > 1 else queue[0]
        return CommandResult(
            argv=argv_list,
            returncode=scripted.returncode,
            stdout=scripted.stdout,
            stderr=scripted.stderr,
            error=scripted.error,
        )

    def spawn(self, argv: Sequence[str]) -> FakeProcess:
        argv_list = list(argv)
        self.spawned.append(argv_list)

        key = self._match(self._spawns, argv_list)
        if key is None:
            raise FileNotFoundError(argv_list[0])
        output, returncode = self._spawns[key]
        return FakeProcess(output, returncode)

    def fetch(self, url: str, dest: str, *, timeout: int = 60) -> FetchResult:
        self.fetches.append((url, dest))

        if url in self._fetch_errors:
            err = self._fetch_errors[url]
            return FetchResult(url=url, dest=dest, ok=False, status=err.status, error=err.error)
        if url not in self._payloads:
            return FetchResult(url=url, dest=dest, ok=False, error="Connection failed: unreachable")

        data = self._payloads[url]
        Path(dest).write_bytes(data)
        return FetchResult(url=url, dest=dest, ok=True, size_bytes=len(data), status=200, final_url=url)

    def chown(self, path: str, uid: int, gid: int) -> None:
        self.chowns.append((path, uid, gid))

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
