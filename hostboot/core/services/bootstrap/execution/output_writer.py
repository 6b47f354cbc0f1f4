"""
L4 Execution — Credential output.

Writes the credential to ``<invoking home>/<subdir>/<filename>``. Under
sudo the effective home is root's, so the target is resolved from the
invoking identity through the system identity database. If that lookup
fails the file goes to the current working directory instead, and the
degraded location is reported.

The file is written atomically: it is either absent or complete.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import CredentialNotFoundError, OutputWriteError
from hostboot.core.models.config import OutputSettings
from hostboot.core.models.host import HostContext, UserRecord

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


class OutputWriter:
    def __init__(self, env: SystemEnvironment, settings: OutputSettings):
        self.env = env
        self.settings = settings
        self.degraded = False

    def resolve_target(self, ctx: HostContext) -> tuple[Path, UserRecord | None]:
        """Credential file path plus the owner record (None when degraded)."""
        record = self.env.lookup_user(ctx.identity.invoking)
        if record is not None and record.home:
            base = Path(record.home)
            self.degraded = False
        else:
            base = Path.cwd()
            self.degraded = True
            logger.warning(
                "No home directory for %r in the identity database; writing under %s instead",
                ctx.identity.invoking, base,
            )
        return base / self.settings.subdir / self.settings.filename, record

    def write(self, credential: str | None, ctx: HostContext) -> Path:
        """Persist ``credential`` and return where it went.

        Raises:
            CredentialNotFoundError: If ``credential`` is None/empty.
                No file or directory is created in that case.
            OutputWriteError: The directory or file could not be created,
                or ownership could not be handed to the invoking user.
        """
        if not credential:
            raise CredentialNotFoundError(
                "No credential found in installer output or via fallback query; "
                "nothing was written"
            )

        target, record = self.resolve_target(ctx)
        directory = target.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            os.chmod(directory, DIR_MODE)
            self._write_atomically(target, credential)
            if ctx.is_root and record is not None and record.uid != 0:
                self.env.chown(str(directory), record.uid, record.gid)
                self.env.chown(str(target), record.uid, record.gid)
        except OSError as e:
            raise OutputWriteError(f"Cannot write credential file {target}: {e}") from e

        logger.info("Credential written to %s", target)
        return target

    @staticmethod
    def _write_atomically(target: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
