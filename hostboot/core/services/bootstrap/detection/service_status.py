"""
L3 Detection — Service status.

Read-only probes against systemd and the service itself.
"""

from __future__ import annotations

from hostboot.adapters.base import SystemEnvironment


def is_service_active(env: SystemEnvironment, service: str) -> bool:
    """``systemctl is-active --quiet SERVICE`` exits 0 only when active."""
    return env.run(["systemctl", "is-active", "--quiet", service], timeout=10).ok


def is_service_enabled(env: SystemEnvironment, service: str) -> bool:
    return env.run(["systemctl", "is-enabled", "--quiet", service], timeout=10).ok


def probe_service(env: SystemEnvironment, probe: list[str], *, timeout: int = 15) -> bool:
    """Run a liveness probe once (e.g. ``docker info``)."""
    return env.run(probe, timeout=timeout).ok


def get_service_status(env: SystemEnvironment, service: str, probe: list[str] | None = None) -> dict:
    """Summarise a service for status reports.

    Returns::

        {"service": "docker", "active": True, "enabled": True, "responsive": True}
    """
    result: dict = {
        "service": service,
        "active": is_service_active(env, service),
        "enabled": is_service_enabled(env, service),
    }
    if probe:
        result["responsive"] = probe_service(env, probe) if result["active"] else False
    return result
