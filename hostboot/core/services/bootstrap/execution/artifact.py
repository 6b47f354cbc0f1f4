"""
L4 Execution — Release artifact installation.

Download a versioned release archive, verify it is non-empty, extract
it, and move the binary into place atomically. Re-running with the
same inputs replaces the previous binary at the same path.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import DownloadError, EmptyArchiveError, ExtractError
from hostboot.core.models.artifacts import ReleaseArtifact
from hostboot.core.models.config import ArtifactSettings

logger = logging.getLogger(__name__)

BINARY_MODE = 0o755


class ArtifactInstaller:
    def __init__(self, env: SystemEnvironment, settings: ArtifactSettings):
        self.env = env
        self.settings = settings

    def install(self, release_url: str, archive_name: str, dest_path: str) -> ReleaseArtifact:
        """Download ``release_url`` and install its binary at ``dest_path``.

        The scratch directory is removed after a successful install and
        left in place on failure for inspection.

        Raises:
            DownloadError: Network/HTTP failure, or no scratch directory.
            EmptyArchiveError: Server answered but the artifact is 0 bytes.
            ExtractError: Archive unreadable or binary missing from it.
        """
        dest = Path(dest_path)
        binary_name = dest.name

        try:
            scratch = Path(tempfile.mkdtemp(prefix="hostboot-artifact-", dir=self.settings.scratch_dir))
        except OSError as e:
            raise DownloadError(
                f"Cannot create scratch directory under {self.settings.scratch_dir}: {e}"
            ) from e
        archive = scratch / archive_name
        artifact = ReleaseArtifact(download_url=release_url, archive_path=str(archive))

        logger.info("Downloading %s", release_url)
        result = self.env.fetch(release_url, str(archive), timeout=self.settings.timeout)
        if not result.ok:
            raise DownloadError(f"Download of {release_url} failed: {result.error}")
        if result.size_bytes == 0 or not archive.is_file() or archive.stat().st_size == 0:
            raise EmptyArchiveError(
                f"Server answered {result.status or '?'} for {release_url} but the archive is empty "
                "(release asset missing?)"
            )
        artifact.size_bytes = result.size_bytes

        found = self._extract(archive, scratch / "extracted", binary_name)
        artifact.extracted_path = str(found)

        self._replace_atomically(found, dest)
        artifact.install_path = str(dest)
        logger.info("Installed %s (%d byte archive)", dest, artifact.size_bytes)

        shutil.rmtree(scratch, ignore_errors=True)
        return artifact

    def install_release(self, architecture: str) -> ReleaseArtifact:
        """Install the configured release for ``architecture``."""
        s = self.settings
        url = s.url_for(architecture)
        archive_name = url.rsplit("/", 1)[-1] or f"{s.binary_name}.tar.gz"
        return self.install(url, archive_name, s.install_path)

    def _extract(self, archive: Path, extract_dir: Path, binary_name: str) -> Path:
        extract_dir.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive, "r:*") as tf:
                tf.extractall(extract_dir, filter="data")
        except (tarfile.TarError, OSError) as e:
            raise ExtractError(f"Cannot extract {archive.name}: {e}") from e

        for p in sorted(extract_dir.rglob(binary_name)):
            if p.is_file():
                return p

        available = sorted(p.name for p in extract_dir.rglob("*") if p.is_file())[:10]
        raise ExtractError(
            f"Binary '{binary_name}' not found in {archive.name} "
            f"(contains: {', '.join(available) or 'nothing'})"
        )

    def _replace_atomically(self, source: Path, dest: Path) -> None:
        """Copy next to ``dest`` then rename over it.

        The rename is atomic on one filesystem, so ``dest`` is always
        either the old binary or the complete new one. A failed attempt
        leaves no temporary file behind.
        """
        tmp_name: str | None = None
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
            os.close(fd)
            shutil.copyfile(source, tmp_name)
            os.chmod(tmp_name, BINARY_MODE)
            os.replace(tmp_name, dest)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise ExtractError(f"Cannot install {dest}: {e}") from e
