"""
L4 Execution — Preflight checker.

Gates the whole pipeline. Nothing after this stage may run unless:

    1. we are root
    2. the package manager's dependency state is repaired
    3. every prerequisite package is installed (after an index refresh,
       when anything is missing)
    4. the interpreter exists and meets its minimum version
"""

from __future__ import annotations

import logging
from typing import Sequence

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import InterpreterVersionError, PrivilegeError
from hostboot.core.models.host import HostContext
from hostboot.core.models.package import PackageSpec
from hostboot.core.services.bootstrap.detection.tool_version import get_tool_version
from hostboot.core.services.bootstrap.domain.version_constraint import check_minimum_version
from hostboot.core.services.bootstrap.execution.package_manager import AptPackageManager

logger = logging.getLogger(__name__)


class PreflightChecker:
    def __init__(
        self,
        env: SystemEnvironment,
        packages: AptPackageManager,
        *,
        prerequisites: Sequence[str],
        interpreter: PackageSpec,
    ):
        self.env = env
        self.packages = packages
        self.prerequisites = list(prerequisites)
        self.interpreter = interpreter

    def check(self, ctx: HostContext) -> dict:
        """Run every gate in order; the first failure raises.

        Returns a summary dict for the stage report.

        Raises:
            PrivilegeError, PackageStateError, PackageInstallError,
            InterpreterVersionError
        """
        if not ctx.is_root:
            raise PrivilegeError(
                f"Must run as root (effective user is {ctx.identity.effective!r}); "
                "re-run with sudo"
            )

        self.packages.fix_broken()

        missing = [n for n in self.prerequisites if not self.packages.is_installed(n)]
        if missing:
            # Failure is logged by the package manager; the cached index may still do.
            self.packages.update_index()

        installed_now: list[str] = []
        for name in missing:
            self.packages.install([name])
            installed_now.append(name)
        if installed_now:
            logger.info("Installed prerequisites: %s", ", ".join(installed_now))

        version = self.check_interpreter()
        return {"installed": installed_now, "interpreter_version": version}

    def check_interpreter(self) -> str:
        """Verify the interpreter's version against its minimum.

        Raises:
            InterpreterVersionError: Missing binary, unparsable version,
                or version below the minimum.
        """
        spec = self.interpreter
        want = spec.min_version or "0.0.0"

        info = get_tool_version(self.env, spec.name)
        if not info["found"]:
            raise InterpreterVersionError(None, want, binary=spec.name)

        have = info.get("version")
        verdict = check_minimum_version(have, want)
        if not verdict["valid"]:
            logger.error("%s: %s", spec.name, verdict["message"])
            raise InterpreterVersionError(have or info.get("raw") or "", want, binary=spec.name)

        logger.info("%s %s satisfies >= %s", spec.name, have, want)
        return have
