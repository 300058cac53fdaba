"""Extract test file paths from jest's console output."""

from __future__ import annotations

import re

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_FAILURE_RE = re.compile(r"^\s*FAIL\s+(.*)")
_SUCCESS_RE = re.compile(r"^\s*PASS\s+(.*)")


def strip_colors(text: str) -> str:
    """Remove ANSI color escape sequences from ``text``."""

    return _ANSI_ESCAPE_RE.sub("", text)


def scan_targets(output: str, *, record_all: bool = False) -> list[str]:
    """Return the test files reported in ``output``, in first-seen order.

    Files reported as failing are always included. Passing files are only
    included when ``record_all`` is set.
    """

    patterns = [_FAILURE_RE]
    if record_all:
        patterns.append(_SUCCESS_RE)

    targets: dict[str, None] = {}
    for line in strip_colors(output).splitlines():
        for pattern in patterns:
            match = pattern.match(line)
            if match:
                target = match.group(1).rstrip()
                if target:
                    targets.setdefault(target, None)
                break
    return list(targets)
