"""
L4 Execution — Service activation.

Makes sure the container runtime daemon is enabled, started and
actually answering before anything tries to use it.
"""

from __future__ import annotations

import logging

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.errors import ServiceStartError
from hostboot.core.models.config import RuntimeSettings
from hostboot.core.services.bootstrap.detection.service_status import (
    is_service_active,
    probe_service,
)

logger = logging.getLogger(__name__)


class ServiceActivator:
    def __init__(self, env: SystemEnvironment, settings: RuntimeSettings):
        self.env = env
        self.settings = settings

    def ensure_running(self, service: str | None = None) -> dict:
        """Enable + start the service if needed, then wait for liveness.

        The wait is a fixed number of probes with a fixed delay between
        them; local daemons come up quickly or not at all.

        Raises:
            ServiceStartError: If enable/start fails or the probe never passes.
        """
        s = self.settings
        service = service or s.service
        started = False

        if not is_service_active(self.env, service):
            logger.info("Service %s inactive; enabling and starting", service)
            for verb in ("enable", "start"):
                r = self.env.run(["systemctl", verb, service], timeout=120)
                if not r.ok:
                    raise ServiceStartError(f"systemctl {verb} {service} failed ({r.describe()})")
            started = True

        for attempt in range(1, s.probe_retries + 1):
            if probe_service(self.env, s.probe, timeout=s.probe_timeout):
                logger.info("Service %s responsive (attempt %d)", service, attempt)
                return {"service": service, "started": started, "attempts": attempt}
            if attempt < s.probe_retries:
                logger.debug("Service %s not responsive yet (%d/%d)", service, attempt, s.probe_retries)
                self.env.sleep(s.probe_delay)

        raise ServiceStartError(
            f"Service {service} did not respond to '{' '.join(s.probe)}' "
            f"after {s.probe_retries} attempts"
        )

    def grant_access(self, user: str) -> bool:
        """Add ``user`` to the runtime's access group. Never fatal.

        Group membership takes effect at the user's next login.
        """
        group = self.settings.grant_group
        if not group or user == "root":
            return False
        r = self.env.run(["usermod", "-aG", group, user], timeout=30)
        if not r.ok:
            logger.warning("Could not add %s to group %s: %s", user, group, r.describe())
            return False
        logger.info("Added %s to group %s (log out and back in to apply)", user, group)
        return True
