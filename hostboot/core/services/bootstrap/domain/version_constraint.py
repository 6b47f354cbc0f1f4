"""
L1 Domain — Version constraint validation (pure).

Validates an installed version against a minimum. No I/O, no subprocess.

Parsing is strict and comparison is numeric per component, so
``3.9.0 < 3.10.0``. Anything that does not parse fails closed: an
unparsable version is treated as too old, never as a pass.
"""

from __future__ import annotations

import re

_SEMVER_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?(?:[-+.a-zA-Z0-9]*)?$")
_SEMVER_SEARCH_RE = re.compile(r"(?<![\d.])v?(\d+\.\d+(?:\.\d+)?)")


def parse_semver(version: str) -> tuple[int, int, int] | None:
    """Parse ``major.minor[.patch]`` into an int triple.

    A trailing pre-release/build suffix (``3.13.0rc1``) is tolerated and
    ignored. A missing patch component counts as ``0``.

    Returns:
        ``(major, minor, patch)`` or ``None`` when the string is not a version.
    """
    if not isinstance(version, str):
        return None
    m = _SEMVER_RE.match(version.strip())
    if not m:
        return None
    major, minor, patch = m.group(1), m.group(2), m.group(3)
    return int(major), int(minor), int(patch or 0)


def extract_version(output: str) -> str | None:
    """Pull the first version-looking token out of ``--version`` output.

    ``"Python 3.11.2"`` → ``"3.11.2"``.
    """
    m = _SEMVER_SEARCH_RE.search(output or "")
    return m.group(1) if m else None


def check_minimum_version(have: str | None, want: str) -> dict:
    """Validate ``have`` against the minimum ``want``.

    Args:
        have: Installed version string, or None when nothing was detected.
        want: Minimum acceptable version.

    Returns:
        ``{"valid": True}`` or ``{"valid": False, "message": "..."}``.
        ``parse_error`` is set when either side could not be parsed.
    """
    want_parts = parse_semver(want)
    if want_parts is None:
        return {
            "valid": False,
            "parse_error": True,
            "message": f"Minimum version {want!r} is not a valid version.",
        }

    have_parts = parse_semver(have) if have is not None else None
    if have_parts is None:
        return {
            "valid": False,
            "parse_error": True,
            "message": f"Cannot parse installed version {have!r}; treating as older than {want}.",
        }

    if have_parts >= want_parts:
        return {"valid": True}
    return {
        "valid": False,
        "message": f"Version {have} < {want}. Minimum required: {want}.",
    }
