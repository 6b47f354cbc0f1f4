"""
Adapters — everything that touches the host goes through here.
"""

from hostboot.adapters.base import CommandResult, FetchResult, SystemEnvironment
from hostboot.adapters.host import HostEnvironment
from hostboot.adapters.mock import FakeEnvironment

__all__ = [
    "CommandResult",
    "FakeEnvironment",
    "FetchResult",
    "HostEnvironment",
    "SystemEnvironment",
]
