"""Access to recordings produced by the instrumented runtime."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import RecordingStoreError
from ..process import run_process

logger = logging.getLogger(__name__)

DEFAULT_REPLAY_CLI = "replay"


class RecordingMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    argv: list[str] = Field(default_factory=list)


class Recording(BaseModel):
    """A recording known to the store, as reported by ``replay ls``."""

    model_config = ConfigDict(extra="allow")

    id: str
    metadata: RecordingMetadata = Field(default_factory=RecordingMetadata)


@dataclass(frozen=True, slots=True)
class RecordingOptions:
    """Where a session's recordings live and how to authenticate uploads."""

    directory: Path
    api_key: str


class RecordingStore(Protocol):
    """Protocol describing the recording store used by recording sessions."""

    async def list_all_recordings(self, options: RecordingOptions) -> list[Recording]:
        """Return every recording found in ``options.directory``."""

    async def upload_recording(
        self, recording_id: str, options: RecordingOptions
    ) -> str | None:
        """Upload a recording and return its new identifier, or ``None``."""

    async def process_recording(
        self, recording_id: str, options: RecordingOptions
    ) -> bool:
        """Ask the service to process a recording; return whether it succeeded."""


def locate_recording(
    recordings: Iterable[Recording], runner_path: str
) -> Recording | None:
    """Return the first recording whose process was launched with ``runner_path``."""

    for recording in recordings:
        if runner_path in recording.metadata.argv:
            return recording
    return None


class CliRecordingStore:
    """Recording store backed by the ``replay`` command line tool."""

    def __init__(
        self,
        executable: str = DEFAULT_REPLAY_CLI,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._executable = executable
        self._env = env

    def _common_args(self, options: RecordingOptions) -> list[str]:
        return ["--directory", str(options.directory), "--api-key", options.api_key]

    async def _run(self, *args: str) -> str:
        try:
            result = await run_process([self._executable, *args], env=self._env)
        except OSError as exc:
            raise RecordingStoreError(f"could not run {self._executable}: {exc}") from exc
        if result.returncode != 0:
            raise RecordingStoreError(
                f"{self._executable} {args[0]} exited with {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    async def list_all_recordings(self, options: RecordingOptions) -> list[Recording]:
        stdout = await self._run(
            "ls", "--all", "--json", "--directory", str(options.directory)
        )
        try:
            payload: Any = json.loads(stdout or "[]")
        except json.JSONDecodeError as exc:
            raise RecordingStoreError(f"unreadable recording listing: {exc}") from exc
        if not isinstance(payload, list):
            raise RecordingStoreError("recording listing is not a JSON array")

        recordings: list[Recording] = []
        for entry in payload:
            try:
                recordings.append(Recording.model_validate(entry))
            except ValidationError:
                logger.debug("Skipping malformed recording entry: %r", entry)
        return recordings

    async def upload_recording(
        self, recording_id: str, options: RecordingOptions
    ) -> str | None:
        """Upload ``recording_id`` and return the id the service assigned.

        ``replay upload`` may print progress lines first; the new id is the
        last non-empty line it writes to stdout. A failed upload or empty
        output yields ``None``.
        """

        try:
            stdout = await self._run("upload", recording_id, *self._common_args(options))
        except RecordingStoreError as exc:
            logger.debug("Upload of %s failed: %s", recording_id, exc)
            return None
        lines = [line.strip() for line in stdout.splitlines() if line.strip()]
        return lines[-1] if lines else None

    async def process_recording(
        self, recording_id: str, options: RecordingOptions
    ) -> bool:
        try:
            await self._run("process", recording_id, *self._common_args(options))
        except RecordingStoreError as exc:
            logger.debug("Processing of %s failed: %s", recording_id, exc)
            return False
        return True

    async def update_runtime(self) -> None:
        """Download the latest instrumented runtime."""

        await self._run("update-browsers")
