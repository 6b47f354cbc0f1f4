"""
Package models — what we want installed and what actually is.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PackageStatus(str, Enum):
    ABSENT = "absent"
    INSTALLED = "installed"
    INSTALL_FAILED = "install-failed"


class PackageSpec(BaseModel):
    """A named package or binary, optionally with a minimum version."""

    model_config = ConfigDict(frozen=True)

    name: str
    min_version: str | None = None
