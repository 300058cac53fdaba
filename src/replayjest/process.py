"""Async subprocess execution with captured (and optionally mirrored) output."""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TextIO

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


@dataclass(slots=True)
class ProcessResult:
    """Exit status and accumulated output of a finished subprocess."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    output: str = ""

    @property
    def termination_signal(self) -> signal.Signals | None:
        """Return the signal that killed the process, if any."""

        if self.returncode >= 0:
            return None
        try:
            return signal.Signals(-self.returncode)
        except ValueError:
            return None

    @property
    def exit_code(self) -> int:
        """Return a shell-style exit code: non-zero whenever a signal ended the run."""

        if self.returncode < 0:
            return 1
        return self.returncode


@dataclass(slots=True)
class _OutputBuffer:
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    combined: list[str] = field(default_factory=list)


async def _pump(
    reader: asyncio.StreamReader,
    chunks: list[str],
    combined: list[str],
    mirror: TextIO | None,
) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await reader.read(_READ_CHUNK)
        text = decoder.decode(data, final=not data)
        if text:
            chunks.append(text)
            combined.append(text)
            if mirror is not None:
                mirror.write(text)
                mirror.flush()
        if not data:
            break


async def run_process(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> ProcessResult:
    """Run ``argv`` to completion and return its exit status and output.

    Output is always accumulated. When ``stdout``/``stderr`` streams are given
    the corresponding output is also written to them as it arrives.
    """

    logger.debug("Spawning %s", " ".join(argv))
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=dict(os.environ if env is None else env),
    )
    if process.stdout is None or process.stderr is None:
        raise RuntimeError(f"{argv[0]} was started without output pipes")

    buffer = _OutputBuffer()
    await asyncio.gather(
        _pump(process.stdout, buffer.stdout, buffer.combined, stdout),
        _pump(process.stderr, buffer.stderr, buffer.combined, stderr),
    )
    returncode = await process.wait()
    logger.debug("%s exited with %d", argv[0], returncode)

    return ProcessResult(
        returncode=returncode,
        stdout="".join(buffer.stdout),
        stderr="".join(buffer.stderr),
        output="".join(buffer.combined),
    )
