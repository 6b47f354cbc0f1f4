"""
Host models — who is running us, and on what.

``HostContext`` is computed once at startup by the preflight checker
and never mutated afterwards. Every later stage reads it; none of them
re-derive identity or platform facts on their own.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UserRecord(BaseModel):
    """One entry from the system identity database."""

    model_config = ConfigDict(frozen=True)

    name: str
    uid: int
    gid: int
    home: str


class Identity(BaseModel):
    """Effective vs. invoking identity.

    Under ``sudo`` the effective user is root while the invoking user
    is whoever typed the command. Outside escalation both are equal.
    """

    model_config = ConfigDict(frozen=True)

    effective: str
    invoking: str
    effective_uid: int = 0

    @property
    def escalated(self) -> bool:
        return self.effective != self.invoking


class HostContext(BaseModel):
    """Immutable facts about the host, gathered before any mutation."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    is_root: bool
    invoking_home: str | None = None   # None when the identity db has no entry
    distro_ids: tuple[str, ...] = ()   # os-release ID, then ID_LIKE
    codename: str = "unknown"          # detected, pre-remapping
    architecture: str = "amd64"

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["escalated"] = self.identity.escalated
        return data
