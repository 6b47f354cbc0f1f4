"""
L3 Detection — System package checking.

Read-only probes for package availability through dpkg.
"""

from __future__ import annotations

import logging

from hostboot.adapters.base import SystemEnvironment

logger = logging.getLogger(__name__)


def is_pkg_installed(env: SystemEnvironment, pkg: str) -> bool:
    """Check if a single Debian package is installed.

    ``dpkg-query -W -f='${Status}' PKG`` prints
    ``install ok installed`` for a fully configured package. A package
    that is known but half-configured or removed is NOT installed.
    """
    r = env.run(["dpkg-query", "-W", "-f=${Status}", pkg], timeout=10)
    if r.error:
        logger.warning("Package check failed for %s: %s", pkg, r.error)
        return False
    return r.returncode == 0 and "install ok installed" in r.stdout


def check_system_deps(env: SystemEnvironment, packages: list[str]) -> dict[str, list[str]]:
    """Split ``packages`` into installed and missing.

    Returns:
        ``{"missing": [...], "installed": [...]}``
    """
    missing: list[str] = []
    installed: list[str] = []
    for pkg in packages:
        if is_pkg_installed(env, pkg):
            installed.append(pkg)
        else:
            missing.append(pkg)
    return {"missing": missing, "installed": installed}
