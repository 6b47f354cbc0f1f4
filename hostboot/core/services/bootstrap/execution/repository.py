"""
L4 Execution — Signed apt repository configuration.

Picks the repository family (Debian or Ubuntu) from os-release, fetches
that family's signing key into the keyring directory, remaps the host
codename onto a suite the family publishes, writes a single-line sources
entry with explicit ``arch=`` and ``signed-by=``, and refreshes the
package index (best-effort).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import RepositoryConfigError
from hostboot.core.models.artifacts import RepositoryDescriptor
from hostboot.core.models.config import RepositoryFamily, RepositorySettings
from hostboot.core.models.host import HostContext
from hostboot.core.services.bootstrap.domain.platform_names import remap_codename, select_family
from hostboot.core.services.bootstrap.execution.package_manager import AptPackageManager

logger = logging.getLogger(__name__)

# apt drops privileges to the _apt user when reading keyrings.
KEYRING_DIR_MODE = 0o755
KEYRING_FILE_MODE = 0o644
SOURCES_FILE_MODE = 0o644


class RepositoryConfigurator:
    def __init__(
        self,
        env: SystemEnvironment,
        packages: AptPackageManager,
        settings: RepositorySettings,
        *,
        key_timeout: int = 60,
    ):
        self.env = env
        self.packages = packages
        self.settings = settings
        self.key_timeout = key_timeout

    def family_for(self, ctx: HostContext) -> tuple[str, RepositoryFamily]:
        s = self.settings
        name = select_family(ctx.distro_ids, s.families, default=s.default_family)
        return name, s.families[name]

    def resolve_codename(self, detected: str, family: RepositoryFamily) -> str:
        return remap_codename(
            detected,
            allowed=family.allowed_codenames,
            mapping=family.codename_map,
            default=family.default_codename,
        )

    def configure(self, ctx: HostContext) -> RepositoryDescriptor:
        """Install the keyring and sources entry for the repository.

        Raises:
            RepositoryConfigError: ``unwritable_keyring`` or ``key_fetch_failed``.
        """
        s = self.settings
        family_name, family = self.family_for(ctx)
        codename = self.resolve_codename(ctx.codename, family)
        if codename != ctx.codename:
            logger.info(
                "Codename %r is not published for %s; using %r",
                ctx.codename, family_name, codename,
            )

        keyring = Path(s.keyring_path)
        self._prepare_keyring_dir(keyring.parent)
        self._fetch_key(family.signing_key_url, keyring)

        descriptor = RepositoryDescriptor(
            family=family_name,
            signing_key_url=family.signing_key_url,
            keyring_path=str(keyring),
            base_url=family.base_url,
            codename=codename,
            architecture=ctx.architecture,
            component=s.component,
            sources_path=s.sources_path,
        )
        self._write_sources(descriptor)

        # A stale but reachable base mirror can still fail here; the real
        # error surfaces when the runtime package cannot be found.
        if not self.packages.update_index():
            logger.warning("Package index refresh failed after adding %s; continuing", family.base_url)

        return descriptor

    def _prepare_keyring_dir(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
            os.chmod(directory, KEYRING_DIR_MODE)
        except OSError as e:
            raise RepositoryConfigError(
                RepositoryConfigError.UNWRITABLE_KEYRING,
                f"Cannot create keyring directory {directory}: {e}",
            ) from e
        if not os.access(directory, os.W_OK):
            raise RepositoryConfigError(
                RepositoryConfigError.UNWRITABLE_KEYRING,
                f"Keyring directory {directory} is not writable",
            )

    def _fetch_key(self, url: str, keyring: Path) -> None:
        partial = keyring.with_name(keyring.name + ".part")
        result = self.env.fetch(url, str(partial), timeout=self.key_timeout)
        if not result.ok or result.size_bytes == 0:
            partial.unlink(missing_ok=True)
            reason = result.error or "empty response"
            raise RepositoryConfigError(
                RepositoryConfigError.KEY_FETCH_FAILED,
                f"Could not fetch signing key from {url}: {reason}",
            )
        try:
            os.chmod(partial, KEYRING_FILE_MODE)
            os.replace(partial, keyring)
        except OSError as e:
            raise RepositoryConfigError(
                RepositoryConfigError.UNWRITABLE_KEYRING,
                f"Cannot install keyring {keyring}: {e}",
            ) from e
        logger.info("Installed signing key %s (%d bytes)", keyring, result.size_bytes)

    def _write_sources(self, descriptor: RepositoryDescriptor) -> None:
        path = Path(descriptor.sources_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(descriptor.source_line + "\n", encoding="utf-8")
            os.chmod(path, SOURCES_FILE_MODE)
        except OSError as e:
            raise RepositoryConfigError(
                RepositoryConfigError.UNWRITABLE_KEYRING,
                f"Cannot write sources entry {path}: {e}",
            ) from e
        logger.info("Wrote %s: %s", path, descriptor.source_line)
