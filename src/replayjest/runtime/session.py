"""Re-run a single test file under the instrumented runtime."""

from __future__ import annotations

import asyncio
import logging
import os
import random
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path

from ..config import Configuration
from ..diagnostics import SessionLog
from ..exceptions import RecordingStoreError, SessionSetupError
from ..process import run_process
from ..scanner import scan_targets
from ..storage import (
    RecordingOptions,
    RecordingStore,
    locate_recording,
    upload_and_process,
)
from ..storage.pipeline import DEFAULT_VIEWER_HOST

logger = logging.getLogger(__name__)

API_KEY_ENV = "RECORD_REPLAY_API_KEY"
DIRECTORY_ENV = "RECORD_REPLAY_DIRECTORY"
RUNTIME_EXECUTABLE = "replay-node"


def replay_base_directory(environ: Mapping[str, str]) -> Path:
    """Return the Replay install directory honoring ``RECORD_REPLAY_DIRECTORY``."""

    override = environ.get(DIRECTORY_ENV)
    if override:
        return Path(override).expanduser()
    home = environ.get("HOME")
    return (Path(home) if home else Path.home()) / ".replay"


def resolve_runtime(environ: Mapping[str, str]) -> str | None:
    """Locate the ``replay-node`` executable.

    The runtime installed under the Replay directory wins over one on ``PATH``.
    """

    installed = replay_base_directory(environ) / "runtimes" / RUNTIME_EXECUTABLE
    if installed.is_file() and os.access(installed, os.X_OK):
        return str(installed)
    return shutil.which(RUNTIME_EXECUTABLE, path=environ.get("PATH"))


def resolve_runner(runner: str, environ: Mapping[str, str]) -> str | None:
    """Return the absolute path of the test runner entry point."""

    return shutil.which(runner, path=environ.get("PATH"))


def make_recordings_directory(root: Path | None = None) -> Path:
    """Create an empty, uniquely named scratch directory for one session."""

    base = Path(root) if root is not None else Path(tempfile.gettempdir())
    while True:
        directory = base / f"replay-jest-{random.randrange(10**9)}"
        try:
            directory.mkdir(parents=True)
        except FileExistsError:
            continue
        return directory


class RecordingSession:
    """Record one test file and hand the recording to the upload pipeline."""

    def __init__(
        self,
        target: str,
        directory: Path,
        *,
        store: RecordingStore,
        config: Configuration,
        runner: str = "jest",
        environ: Mapping[str, str] | None = None,
        viewer_host: str = DEFAULT_VIEWER_HOST,
    ) -> None:
        self.target = target
        self.directory = directory
        self._store = store
        self._config = config
        self._runner = runner
        self._environ = dict(os.environ if environ is None else environ)
        self._viewer_host = viewer_host
        self.log = SessionLog(logger, target)
        self.output = ""

    def _prepare(self) -> tuple[str, str, RecordingOptions]:
        runtime_path = resolve_runtime(self._environ)
        if not runtime_path:
            raise SessionSetupError(
                f'{RUNTIME_EXECUTABLE} not installed, try "npm i {RUNTIME_EXECUTABLE} -g"'
            )

        runner_path = resolve_runner(self._runner, self._environ)
        if not runner_path:
            raise SessionSetupError(f"Could not find {self._runner} path")

        api_key = self._environ.get(API_KEY_ENV)
        if not api_key:
            raise SessionSetupError(f"{API_KEY_ENV} not set")

        return runtime_path, runner_path, RecordingOptions(self.directory, api_key)

    async def _update_runtime(self) -> None:
        updater = getattr(self._store, "update_runtime", None)
        if not callable(updater):
            return
        try:
            await updater()
        except (RecordingStoreError, OSError) as exc:
            logger.debug("Runtime update for %s failed: %s", self.target, exc)

    async def record(self) -> asyncio.Task[str | None] | None:
        """Run the target under the instrumented runtime.

        Returns the background upload/processing task, or ``None`` when this
        session could not produce a recording.
        """

        self.log.info("Creating recording...")

        try:
            runtime_path, runner_path, options = self._prepare()
        except SessionSetupError as exc:
            self.log.failure(str(exc))
            return None

        if self._config.update_runtime:
            await self._update_runtime()

        env = dict(self._environ)
        env[DIRECTORY_ENV] = str(self.directory)
        try:
            result = await run_process([runtime_path, runner_path, self.target], env=env)
        except OSError as exc:
            self.log.failure(f"Could not start {RUNTIME_EXECUTABLE}: {exc}")
            return None
        self.output = result.output

        if not scan_targets(result.output, record_all=self._config.record_all):
            if not scan_targets(result.output, record_all=True):
                self.log.failure("Recording process did not run any tests")
            else:
                self.log.failure("Recording process did not have test failures")
            self.log.info("Recording process output:\n%s", result.output, status="output")
            return None

        try:
            recordings = await self._store.list_all_recordings(options)
        except (RecordingStoreError, OSError) as exc:
            logger.debug("Listing recordings for %s failed: %s", self.target, exc)
            recordings = []
        recording = locate_recording(recordings, runner_path)
        if recording is None:
            self.log.failure(f"Could not find {self._runner} recording")
            return None

        self.log.info("Uploading and processing recording...")
        return asyncio.create_task(
            upload_and_process(
                self._store,
                recording,
                options,
                self.log,
                viewer_host=self._viewer_host,
            ),
            name=f"replay-pipeline-{recording.id}",
        )
