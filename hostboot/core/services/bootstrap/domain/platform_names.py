"""
L1 Domain — Distribution codename and architecture naming (pure).

Third-party apt repositories only publish a handful of suites. Rolling
or derivative codenames (kali-rolling, sid, ...) must be translated to a
suite the repository actually serves, and anything unknown collapses to
a fixed default. The result is always a member of the allow-list.

Which allow-list applies depends on the distribution family: a
derivative names its parents in os-release ``ID_LIKE``, and the first
identifier with a known family wins.
"""

from __future__ import annotations

from typing import Collection, Iterable, Mapping, Sequence

# Kernel machine name → Debian architecture name.
ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "armv6l": "armel",
    "i686": "i386",
    "i386": "i386",
    "ppc64le": "ppc64el",
    "s390x": "s390x",
}


def select_family(
    distro_ids: Sequence[str],
    families: Collection[str],
    *,
    default: str,
) -> str:
    """Pick the repository family for a host.

    ``distro_ids`` is ``ID`` followed by the ``ID_LIKE`` entries, most
    specific first. The first one naming a known family wins; otherwise
    ``default``.

    Raises:
        ValueError: If ``default`` itself is not a known family.
    """
    if default not in families:
        raise ValueError(f"Default family {default!r} is not known")
    for distro_id in distro_ids:
        key = (distro_id or "").strip().lower()
        if key in families:
            return key
    return default


def remap_codename(
    detected: str | None,
    *,
    allowed: Iterable[str],
    mapping: Mapping[str, str],
    default: str,
) -> str:
    """Resolve a detected codename to a published repository suite.

    Order: an allowed codename passes through; a mapped codename takes its
    mapped target (if that target is allowed); everything else, including
    an empty detection, becomes ``default``.

    Raises:
        ValueError: If ``default`` itself is not allowed.
    """
    allowed_set = set(allowed)
    if default not in allowed_set:
        raise ValueError(f"Default codename {default!r} is not in the allow-list")

    codename = (detected or "").strip().lower()
    if codename in allowed_set:
        return codename

    target = mapping.get(codename)
    if target in allowed_set:
        return target  # type: ignore[return-value]

    return default


def normalize_arch(machine: str) -> str:
    """Translate a kernel machine name into a Debian architecture name.

    Unknown names are returned lower-cased so the caller still has
    something to put in the log.
    """
    key = (machine or "").strip()
    return ARCH_MAP.get(key, ARCH_MAP.get(key.lower(), key.lower()))
