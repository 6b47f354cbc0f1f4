"""
HostEnvironment — the real SystemEnvironment.

The SINGLE PLACE where ``subprocess``, ``urllib`` and ``pwd`` are used
by the orchestrator. All logging of commands happens here.
"""

from __future__ import annotations

import logging
import os
import platform
import pwd
import shlex
import shutil
import subprocess
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Mapping, Sequence

from hostboot import __version__
from hostboot.adapters.base import CommandResult, FetchResult, SpawnedProcess, SystemEnvironment
from hostboot.core.models.host import Identity, UserRecord

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines, unquoting values."""
    info: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        info[key.strip()] = value.strip().strip('"').strip("'")
    return info


class HostEnvironment(SystemEnvironment):
    """Talks to the machine we are running on."""

    def effective_uid(self) -> int:
        return os.geteuid()

    def identity(self) -> Identity:
        """Resolve effective and invoking users.

        The invoking user is taken from what ``sudo`` records about the
        caller (uid first, then name) and confirmed against the identity
        database. Without escalation both identities are the same.
        """
        euid = os.geteuid()
        effective = self._name_for_uid(euid) or str(euid)

        invoking = effective
        sudo_uid = os.environ.get("SUDO_UID", "")
        sudo_user = os.environ.get("SUDO_USER", "")
        if sudo_uid.isdigit():
            invoking = self._name_for_uid(int(sudo_uid)) or sudo_user or effective
        elif sudo_user and self.lookup_user(sudo_user) is not None:
            invoking = sudo_user

        return Identity(effective=effective, invoking=invoking, effective_uid=euid)

    def lookup_user(self, name: str) -> UserRecord | None:
        try:
            entry = pwd.getpwnam(name)
        except KeyError:
            return None
        return UserRecord(
            name=entry.pw_name,
            uid=entry.pw_uid,
            gid=entry.pw_gid,
            home=entry.pw_dir,
        )

    @staticmethod
    def _name_for_uid(uid: int) -> str | None:
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            return None

    def os_release(self) -> dict[str, str]:
        try:
            return parse_os_release(OS_RELEASE_PATH.read_text(encoding="utf-8"))
        except OSError:
            return {}

    def machine(self) -> str:
        return platform.machine()

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: int = 300,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv_list = list(argv)
        logger.debug("CMD %s", _fmt_argv(argv_list))

        start = time.monotonic()
        try:
            p = subprocess.run(
                argv_list,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=dict(os.environ, **(env or {})),
            )
        except FileNotFoundError:
            return CommandResult(argv=argv_list, returncode=127, error=f"Command not found: {argv_list[0]}")
        except subprocess.TimeoutExpired:
            return CommandResult(argv=argv_list, returncode=124, error=f"Command timed out ({timeout}s)")
        except OSError as e:
            return CommandResult(argv=argv_list, returncode=126, error=str(e))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if p.stderr:
            logger.debug("STDERR %s", p.stderr.strip()[-2000:])

        return CommandResult(
            argv=argv_list,
            returncode=p.returncode,
            stdout=p.stdout,
            stderr=p.stderr,
            elapsed_ms=elapsed_ms,
        )

    def spawn(self, argv: Sequence[str]) -> SpawnedProcess:
        argv_list = list(argv)
        logger.debug("SPAWN %s", _fmt_argv(argv_list))
        # Unbuffered so bytes reach the console as soon as the tool writes them.
        return subprocess.Popen(
            argv_list,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            bufsize=0,
        )

    def fetch(self, url: str, dest: str, *, timeout: int = 60) -> FetchResult:
        if not url.startswith("https://"):
            return FetchResult(url=url, dest=dest, ok=False, error=f"Refusing non-HTTPS URL: {url}")

        logger.debug("GET %s -> %s", url, dest)
        req = urllib.request.Request(
            url,
            headers={"User-Agent": f"hostboot/{__version__}"},
        )
        try:
            # urlopen follows redirects (GitHub release assets always redirect).
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                with open(dest, "wb") as out:
                    shutil.copyfileobj(resp, out)
                status = resp.status
                final_url = resp.geturl()
        except urllib.error.HTTPError as e:
            return FetchResult(url=url, dest=dest, ok=False, status=e.code, error=f"HTTP {e.code} {e.reason}")
        except urllib.error.URLError as e:
            return FetchResult(url=url, dest=dest, ok=False, error=f"Connection failed: {e.reason}")
        except OSError as e:
            return FetchResult(url=url, dest=dest, ok=False, error=str(e))

        size = os.path.getsize(dest)
        return FetchResult(
            url=url,
            dest=dest,
            ok=True,
            size_bytes=size,
            status=status,
            final_url=final_url,
        )

    def chown(self, path: str, uid: int, gid: int) -> None:
        os.chown(path, uid, gid)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)
