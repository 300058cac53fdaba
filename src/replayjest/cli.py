"""Command-line entry point for ``replay-jest``."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence

from .config import load_configuration
from .diagnostics import TOOL_NAME, configure_logging
from .runtime import ReplayOrchestrator
from .storage import CliRecordingStore

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    """Run jest with ``argv`` and record the failing test files.

    Every argument is forwarded to jest unchanged.
    """

    args = list(sys.argv[1:] if argv is None else argv)
    configure_logging()
    config = load_configuration()
    orchestrator = ReplayOrchestrator(CliRecordingStore(), config)
    try:
        return asyncio.run(orchestrator.run(args))
    except OSError as exc:
        logger.error("%s: Could not run jest: %s", TOOL_NAME, exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
