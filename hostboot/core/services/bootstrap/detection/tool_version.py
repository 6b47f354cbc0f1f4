"""
L3 Detection — Tool version checking.

Read-only probes: resolves a binary on PATH, runs ``--version`` and
parses the output.
"""

from __future__ import annotations

import logging

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.services.bootstrap.domain.version_constraint import extract_version

logger = logging.getLogger(__name__)


def get_tool_version(env: SystemEnvironment, binary: str) -> dict:
    """Locate ``binary`` and report its version.

    Returns::

        {"found": False}
        {"found": True, "path": "/usr/bin/python3", "version": "3.11.2", "raw": "Python 3.11.2"}

    ``version`` is None when the binary runs but prints nothing that
    looks like a version.
    """
    path = env.which(binary)
    if not path:
        return {"found": False}

    r = env.run([path, "--version"], timeout=10)
    # Older interpreters print --version on stderr.
    raw = (r.stdout or r.stderr).strip()
    version = extract_version(raw) if r.ok else None
    logger.debug("%s --version → %r (parsed %s)", path, raw, version)
    return {"found": True, "path": path, "version": version, "raw": raw}
