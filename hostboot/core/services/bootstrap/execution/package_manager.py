"""
L4 Execution — apt package manager adapter.

Wraps apt-get / dpkg for the four operations the pipeline needs:
query-installed, install, cache-clean and repair-broken-state. Keeps a
per-run ``status`` map (package → PackageStatus) that nothing else
mutates.
"""

from __future__ import annotations

import logging
from typing import Sequence

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import PackageInstallError, PackageStateError
from hostboot.core.models.package import PackageStatus
from hostboot.core.services.bootstrap.detection.system_deps import is_pkg_installed

logger = logging.getLogger(__name__)

APT_ENV: dict[str, str] = {"DEBIAN_FRONTEND": "noninteractive"}
APT_TIMEOUT = 1800


class AptPackageManager:
    """apt-get operations with fail-fast error translation."""

    def __init__(self, env: SystemEnvironment):
        self.env = env
        self.status: dict[str, PackageStatus] = {}

    def is_installed(self, name: str) -> bool:
        installed = is_pkg_installed(self.env, name)
        self.status[name] = PackageStatus.INSTALLED if installed else PackageStatus.ABSENT
        return installed

    def install(self, names: Sequence[str], *, no_recommends: bool = False) -> None:
        """Install ``names`` in one transaction.

        Raises:
            PackageInstallError: Naming the first package that did not end
                up installed (or the first requested one if apt failed
                before touching any of them).
        """
        names = list(names)
        if not names:
            return

        argv = ["apt-get", "install", "-y"]
        if no_recommends:
            argv.append("--no-install-recommends")
        argv += names

        logger.info("Installing %s", " ".join(names))
        r = self.env.run(argv, timeout=APT_TIMEOUT, env=APT_ENV)
        if r.ok:
            for name in names:
                self.status[name] = PackageStatus.INSTALLED
            return

        failed = names[0]
        if len(names) > 1:
            for name in names:
                if not self.is_installed(name):
                    failed = name
                    break
        for name in names:
            if self.status.get(name) != PackageStatus.INSTALLED:
                self.status[name] = PackageStatus.INSTALL_FAILED
        raise PackageInstallError(failed, f"apt-get install failed for '{failed}' ({r.describe()})")

    def install_first_available(
        self,
        preferred: Sequence[str],
        fallback: Sequence[str],
        *,
        no_recommends: bool = True,
    ) -> list[str]:
        """Install the preferred package set, or the fallback set if that fails.

        Returns the set that was installed.

        Raises:
            PackageInstallError: When both sets fail; carries the fallback's
                failing package name.
        """
        try:
            self.install(preferred, no_recommends=no_recommends)
            return list(preferred)
        except PackageInstallError as e:
            if not fallback:
                raise
            logger.warning("Preferred packages unavailable (%s); falling back to %s", e, " ".join(fallback))

        self.install(fallback, no_recommends=no_recommends)
        return list(fallback)

    def update_index(self) -> bool:
        """``apt-get update``. Returns False on failure instead of raising."""
        r = self.env.run(["apt-get", "update"], timeout=APT_TIMEOUT, env=APT_ENV)
        if not r.ok:
            logger.warning("apt-get update failed: %s", r.describe())
        return r.ok

    def clean_cache(self) -> None:
        r = self.env.run(["apt-get", "clean"], timeout=300, env=APT_ENV)
        if not r.ok:
            logger.warning("apt-get clean failed: %s", r.describe())

    def fix_broken(self) -> None:
        """``apt-get install -f``: repair half-installed dependency state.

        Raises:
            PackageStateError: If apt cannot repair the state. Not retried.
        """
        r = self.env.run(["apt-get", "install", "-f", "-y"], timeout=APT_TIMEOUT, env=APT_ENV)
        if not r.ok:
            raise PackageStateError(f"Could not repair broken package state ({r.describe()})")
