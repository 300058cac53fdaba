"""Pick which scanned test files get recorded."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from .config import Configuration
from .diagnostics import TOOL_NAME

logger = logging.getLogger(__name__)


def select_targets(
    targets: Sequence[str],
    config: Configuration,
    *,
    rng: random.Random | None = None,
) -> list[str]:
    """Return the worklist of test files to record.

    When ``config.randomize`` is set the order is shuffled before the list is
    capped at ``config.max_recordings``; pass ``rng`` for a reproducible order.
    """

    selected = list(targets)
    if config.randomize:
        (rng or random.Random()).shuffle(selected)

    if len(selected) > config.max_recordings:
        logger.info(
            "%s: Found %d test files, only recording %d (maxRecordings)",
            TOOL_NAME,
            len(selected),
            config.max_recordings,
        )
        selected = selected[: config.max_recordings]
    return selected
