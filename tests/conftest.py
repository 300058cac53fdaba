"""Shared pytest fixtures for replay-jest tests."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from replayjest.storage import Recording, RecordingOptions


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


def write_script(path: Path, body: str) -> Path:
    """Write an executable ``/bin/sh`` script standing in for a real tool."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@dataclass
class FakeRecordingStore:
    """In-memory recording store that hands back canned recordings."""

    recordings: list[Recording] = field(default_factory=list)
    upload_result: str | None = "uploaded-1"
    process_result: bool = True
    listed: list[RecordingOptions] = field(default_factory=list)
    uploaded: list[str] = field(default_factory=list)
    processed: list[str] = field(default_factory=list)
    updates: int = 0

    async def list_all_recordings(self, options: RecordingOptions) -> list[Recording]:
        self.listed.append(options)
        return list(self.recordings)

    async def upload_recording(
        self, recording_id: str, options: RecordingOptions
    ) -> str | None:
        self.uploaded.append(recording_id)
        return self.upload_result

    async def process_recording(
        self, recording_id: str, options: RecordingOptions
    ) -> bool:
        self.processed.append(recording_id)
        return self.process_result

    async def update_runtime(self) -> None:
        self.updates += 1


@pytest.fixture()
def fake_store() -> FakeRecordingStore:
    return FakeRecordingStore()


@dataclass
class Toolchain:
    """Stand-in ``jest`` and ``replay-node`` executables on a private PATH."""

    bin_dir: Path
    environ: dict[str, str]

    @property
    def jest_path(self) -> str:
        return str(self.bin_dir / "jest")

    def jest(self, body: str) -> Path:
        return write_script(self.bin_dir / "jest", body)

    def runtime(self, body: str) -> Path:
        return write_script(self.bin_dir / "replay-node", body)


@pytest.fixture()
def toolchain(tmp_path: Path) -> Toolchain:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    environ = {
        "PATH": os.pathsep.join([str(bin_dir), "/usr/bin", "/bin"]),
        "HOME": str(tmp_path / "home"),
        "RECORD_REPLAY_API_KEY": "test-key",
    }
    return Toolchain(bin_dir=bin_dir, environ=environ)
