"""
L3 Detection — Host context.

Read-only probes that produce the immutable HostContext: who we are,
who invoked us, which distribution (and its parents), codename and
CPU architecture the host reports.
"""

from __future__ import annotations

import logging

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.models.host import HostContext
from hostboot.core.services.bootstrap.domain.platform_names import normalize_arch

logger = logging.getLogger(__name__)


def detect_codename(env: SystemEnvironment) -> str:
    """Distribution codename, lower-cased.

    ``/etc/os-release`` first, then ``lsb_release -cs``. ``UBUNTU_CODENAME``
    beats ``VERSION_CODENAME``: on Ubuntu they agree, and on derivatives
    (Mint, Pop!_OS, ...) only the former names a suite upstream publishes.
    """
    info = env.os_release()
    for key in ("UBUNTU_CODENAME", "VERSION_CODENAME"):
        value = info.get(key, "").strip()
        if value:
            return value.lower().split()[0]

    r = env.run(["lsb_release", "-cs"], timeout=10)
    if r.ok and r.stdout.strip():
        return r.stdout.strip().lower().split()[0]

    return "unknown"


def detect_distro_ids(env: SystemEnvironment) -> tuple[str, ...]:
    """os-release ``ID`` followed by its ``ID_LIKE`` parents, lower-cased."""
    info = env.os_release()
    ids = [info.get("ID", "")] + info.get("ID_LIKE", "").split()
    return tuple(dict.fromkeys(i.lower() for i in ids if i))


def detect_architecture(env: SystemEnvironment) -> str:
    """Debian architecture name (``amd64``, ``arm64``, ...)."""
    r = env.run(["dpkg", "--print-architecture"], timeout=10)
    if r.ok and r.stdout.strip():
        return r.stdout.strip().split()[0]
    return normalize_arch(env.machine())


def detect_host_context(env: SystemEnvironment) -> HostContext:
    """Gather every host fact the pipeline needs, once."""
    identity = env.identity()
    record = env.lookup_user(identity.invoking)

    ctx = HostContext(
        identity=identity,
        is_root=env.effective_uid() == 0,
        invoking_home=record.home if record else None,
        distro_ids=detect_distro_ids(env),
        codename=detect_codename(env),
        architecture=detect_architecture(env),
    )
    logger.info(
        "Host: distro=%s codename=%s arch=%s effective=%s invoking=%s",
        "/".join(ctx.distro_ids) or "unknown", ctx.codename, ctx.architecture,
        identity.effective, identity.invoking,
    )
    return ctx
