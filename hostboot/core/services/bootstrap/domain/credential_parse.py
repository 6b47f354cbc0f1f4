"""
L1 Domain — Credential parsing from captured tool output (pure).

The wrapped installer prints its generated admin password somewhere in
a long, human-oriented log. The rule is deliberately simple:

    - a line is a candidate if it contains "password" (any case)
    - the LAST candidate wins; later output supersedes earlier mentions
    - the credential is whatever follows the marker, minus the
      separator punctuation and surrounding whitespace/quotes

No I/O. ``credentials.py`` in the execution layer reads the file.
"""

from __future__ import annotations

import re
from typing import Iterable

PASSWORD_MARKER = re.compile(r"password", re.IGNORECASE)

# CSI / OSC colour and cursor sequences emitted by TTY-aware tools.
_ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07]*\x07")

# Separators allowed between the marker and the value.
_LEADING = " \t:=-\"'`>"
_TRAILING = " \t\"'`"


def strip_ansi(line: str) -> str:
    return _ANSI_RE.sub("", line)


def value_after_marker(line: str) -> str | None:
    """Return the text after the first "password" marker in ``line``.

    ``"Initial password: Xk9"`` → ``"Xk9"``. Returns None when the line
    has no marker or nothing usable follows it.
    """
    clean = strip_ansi(line).rstrip("\r\n")
    m = PASSWORD_MARKER.search(clean)
    if m is None:
        return None
    value = clean[m.end():].lstrip(_LEADING).rstrip(_TRAILING)
    return value or None


def last_password_line(lines: Iterable[str]) -> str | None:
    """The last line containing the marker, or None."""
    found: str | None = None
    for line in lines:
        if PASSWORD_MARKER.search(strip_ansi(line)):
            found = line
    return found


def parse_credential(lines: Iterable[str]) -> str | None:
    """Apply the primary rule to a sequence of log lines.

    Only the last marker line is consulted. If it carries no value
    (e.g. a bare ``"Enter password:"`` prompt), the result is None and
    the caller moves on to its fallback.
    """
    line = last_password_line(lines)
    if line is None:
        return None
    return value_after_marker(line)
