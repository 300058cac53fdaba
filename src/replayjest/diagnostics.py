"""Console diagnostics emitted while recording test files."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import Any, MutableMapping, TextIO

TOOL_NAME = "replay-jest"
LOG_LEVEL_ENV = "REPLAY_JEST_LOG_LEVEL"


class SessionLog(logging.LoggerAdapter):
    """Prefix every message with the tool name and the test file it concerns.

    Lines take the form ``replay-jest <target>[ <status>]: <message>``.
    """

    def __init__(self, logger: logging.Logger, target: str) -> None:
        super().__init__(logger, {"target": target})
        self.target = target

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        status = kwargs.pop("status", None)
        prefix = f"{TOOL_NAME} {self.target}"
        if status:
            prefix = f"{prefix} {status}"
        kwargs.setdefault("extra", {}).update(target=self.target, status=status)
        return f"{prefix}: {msg}", kwargs

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        # Interpolate before the prefix is added; targets may contain "%".
        if args:
            msg = msg % args
        super().log(level, msg, **kwargs)

    def failure(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a session step that could not be completed."""

        kwargs["status"] = "failed"
        self.warning(msg, *args, **kwargs)


def configure_logging(
    environ: Mapping[str, str] | None = None, *, stream: TextIO | None = None
) -> None:
    """Send replay-jest diagnostics to stdout as bare message lines."""

    env = os.environ if environ is None else environ
    level_name = (env.get(LOG_LEVEL_ENV) or "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger("replayjest")
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False
