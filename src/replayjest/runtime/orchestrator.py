"""Run jest and record the test files it reports."""

from __future__ import annotations

import asyncio
import logging
import os
import random
import shutil
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TextIO

from ..config import Configuration
from ..diagnostics import TOOL_NAME
from ..process import ProcessResult, run_process
from ..scanner import scan_targets
from ..selection import select_targets
from ..storage import RecordingStore
from ..storage.pipeline import DEFAULT_VIEWER_HOST
from .session import RecordingSession, make_recordings_directory

logger = logging.getLogger(__name__)


class ReplayOrchestrator:
    """Manage the primary jest run and the recording sessions that follow it."""

    def __init__(
        self,
        store: RecordingStore,
        config: Configuration | None = None,
        *,
        runner: str = "jest",
        environ: Mapping[str, str] | None = None,
        scratch_root: Path | None = None,
        viewer_host: str = DEFAULT_VIEWER_HOST,
        rng: random.Random | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._store = store
        self._config = config or Configuration()
        self._runner = runner
        self._environ = dict(os.environ if environ is None else environ)
        self._scratch_root = scratch_root
        self._viewer_host = viewer_host
        self._rng = rng
        self._stdout = stdout
        self._stderr = stderr
        self._tasks: list[asyncio.Task[str | None]] = []
        self._directories: list[Path] = []
        self.sessions: list[RecordingSession] = []

    async def run(self, args: Sequence[str]) -> int:
        """Run jest with ``args``, record the selected files and return the exit code."""

        primary = await self._run_primary(args)

        targets = scan_targets(primary.output, record_all=self._config.record_all)
        worklist = select_targets(targets, self._config, rng=self._rng)

        try:
            for target in worklist:
                await self._record(target)
        finally:
            await self.shutdown()

        if primary.termination_signal is not None:
            logger.debug(
                "%s: %s was terminated by %s",
                TOOL_NAME,
                self._runner,
                primary.termination_signal.name,
            )
        return primary.exit_code

    async def _run_primary(self, args: Sequence[str]) -> ProcessResult:
        return await run_process(
            [self._runner, "--colors", *args],
            env=self._environ,
            stdout=self._stdout or sys.stdout,
            stderr=self._stderr or sys.stderr,
        )

    async def _record(self, target: str) -> None:
        directory = make_recordings_directory(self._scratch_root)
        self._directories.append(directory)
        session = RecordingSession(
            target,
            directory,
            store=self._store,
            config=self._config,
            runner=self._runner,
            environ=self._environ,
            viewer_host=self._viewer_host,
        )
        self.sessions.append(session)
        try:
            task = await session.record()
        except Exception:
            logger.exception("%s: Recording session for %s failed", TOOL_NAME, target)
            return
        if task is not None:
            self._tasks.append(task)

    async def shutdown(self) -> None:
        """Wait for every upload/processing task, then remove scratch directories."""

        tasks, self._tasks = self._tasks, []
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if isinstance(result, BaseException):
                logger.error(
                    "%s: Recording pipeline %s terminated with an error",
                    TOOL_NAME,
                    task.get_name(),
                    exc_info=result,
                )

        directories, self._directories = self._directories, []
        for directory in directories:
            shutil.rmtree(directory, ignore_errors=True)
