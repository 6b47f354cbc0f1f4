"""
L4 Execution — Credential extraction.

Primary: parse the capture file (last "password" line wins).
Fallback: ask the installed tool for its stored default credential.
Both empty is an expected outcome, reported as ``None``.

The credential value is never logged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from hostboot.adapters.base import SystemEnvironment
from hostboot.core.services.bootstrap.domain.credential_parse import parse_credential

logger = logging.getLogger(__name__)


class CredentialExtractor:
    def __init__(self, env: SystemEnvironment, *, fallback_timeout: int = 60):
        self.env = env
        self.fallback_timeout = fallback_timeout
        self.source: str | None = None   # "log", "query" or None after extract()

    def extract(self, log_path: str, fallback_query: Sequence[str]) -> str | None:
        self.source = None

        credential = self.from_log(log_path)
        if credential:
            self.source = "log"
            logger.info("Credential found in captured output")
            return credential

        credential = self.from_query(fallback_query)
        if credential:
            self.source = "query"
            logger.info("Credential retrieved via fallback query")
            return credential

        logger.warning("No credential in captured output and fallback query returned nothing")
        return None

    def from_log(self, log_path: str) -> str | None:
        try:
            text = Path(log_path).read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read capture file %s: %s", log_path, e)
            return None
        return parse_credential(text.splitlines())

    def from_query(self, fallback_query: Sequence[str]) -> str | None:
        if not fallback_query:
            return None
        r = self.env.run(list(fallback_query), timeout=self.fallback_timeout)
        if not r.ok:
            logger.warning("Fallback credential query failed: %s", r.error or f"exit {r.returncode}")
            return None
        value = r.stdout.strip("\r\n")
        return value or None
