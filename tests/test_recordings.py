"""Tests for recording lookup, the replay CLI store and the upload pipeline."""

from __future__ import annotations

import json
import logging

import pytest

from replayjest.diagnostics import SessionLog
from replayjest.exceptions import RecordingStoreError
from replayjest.storage import (
    CliRecordingStore,
    Recording,
    RecordingOptions,
    locate_recording,
    upload_and_process,
    viewer_url,
)

from conftest import write_script


def _recording(recording_id: str, *argv: str) -> Recording:
    return Recording(id=recording_id, metadata={"argv": list(argv)})


def test_locate_recording_matches_runner_argument() -> None:
    recordings = [
        _recording("other", "/usr/bin/replay-node", "/usr/bin/mocha", "a.js"),
        _recording("mine", "/usr/bin/replay-node", "/opt/bin/jest", "a.test.js"),
        _recording("later", "/usr/bin/replay-node", "/opt/bin/jest", "b.test.js"),
    ]

    assert locate_recording(recordings, "/opt/bin/jest").id == "mine"
    assert locate_recording(recordings, "/opt/bin/jes") is None
    assert locate_recording([], "/opt/bin/jest") is None


def test_recording_tolerates_missing_metadata() -> None:
    recording = Recording.model_validate({"id": "abc", "status": "onDisk"})

    assert recording.metadata.argv == []


@pytest.mark.anyio
async def test_upload_failure_still_processes(fake_store, tmp_path, caplog) -> None:
    fake_store.upload_result = None
    options = RecordingOptions(tmp_path, "key")
    log = SessionLog(logging.getLogger("replayjest.test"), "a.test.js")

    with caplog.at_level(logging.INFO, logger="replayjest"):
        uploaded = await upload_and_process(
            fake_store, _recording("rec-1"), options, log
        )

    assert uploaded is None
    assert fake_store.processed == ["rec-1"]
    assert caplog.messages == [
        "replay-jest a.test.js failed: Upload failed",
        "replay-jest a.test.js recording: https://app.replay.io/recording/",
    ]


@pytest.mark.anyio
async def test_processing_failure_is_reported(fake_store, tmp_path, caplog) -> None:
    fake_store.process_result = False
    log = SessionLog(logging.getLogger("replayjest.test"), "a.test.js")

    with caplog.at_level(logging.INFO, logger="replayjest"):
        uploaded = await upload_and_process(
            fake_store,
            _recording("rec-2"),
            RecordingOptions(tmp_path, "key"),
            log,
            viewer_host="replay.example",
        )

    assert uploaded == "uploaded-1"
    assert caplog.messages == [
        "replay-jest a.test.js failed: Processing failed",
        "replay-jest a.test.js recording: https://replay.example/recording/uploaded-1",
    ]


@pytest.mark.anyio
async def test_store_errors_become_diagnostics(tmp_path, caplog) -> None:
    class BrokenStore:
        async def upload_recording(self, recording_id, options):
            raise RecordingStoreError("offline")

        async def process_recording(self, recording_id, options):
            raise OSError("no such file")

    log = SessionLog(logging.getLogger("replayjest.test"), "a.test.js")

    with caplog.at_level(logging.INFO, logger="replayjest"):
        uploaded = await upload_and_process(
            BrokenStore(), _recording("rec-3"), RecordingOptions(tmp_path, "k"), log
        )

    assert uploaded is None
    assert "replay-jest a.test.js failed: Upload failed" in caplog.messages
    assert "replay-jest a.test.js failed: Processing failed" in caplog.messages


def test_viewer_url() -> None:
    assert viewer_url("abc") == "https://app.replay.io/recording/abc"
    assert viewer_url(None, host="h") == "https://h/recording/"


@pytest.mark.anyio
async def test_cli_store_round_trip(tmp_path) -> None:
    calls = tmp_path / "calls.log"
    listing = [
        {"id": "rec-1", "metadata": {"argv": ["/bin/replay-node", "/bin/jest", "t.js"]}},
        "garbage",
    ]
    listing_file = tmp_path / "listing.json"
    listing_file.write_text(json.dumps(listing), encoding="utf-8")
    cli = write_script(
        tmp_path / "replay",
        f'echo "$@" >> "{calls}"\n'
        'case "$1" in\n'
        f'  ls) cat "{listing_file}" ;;\n'
        '  upload) echo "Uploading..."; echo "new-id" ;;\n'
        '  process) exit 3 ;;\n'
        "esac\n",
    )
    store = CliRecordingStore(str(cli))
    options = RecordingOptions(tmp_path / "recordings", "secret")

    recordings = await store.list_all_recordings(options)
    uploaded = await store.upload_recording("rec-1", options)
    processed = await store.process_recording("rec-1", options)

    assert [r.id for r in recordings] == ["rec-1"]
    assert recordings[0].metadata.argv[1] == "/bin/jest"
    assert uploaded == "new-id"
    assert processed is False
    logged = calls.read_text(encoding="utf-8").splitlines()
    assert logged[0] == f"ls --all --json --directory {tmp_path / 'recordings'}"
    assert logged[1] == (
        f"upload rec-1 --directory {tmp_path / 'recordings'} --api-key secret"
    )


@pytest.mark.anyio
async def test_cli_store_rejects_unreadable_listing(tmp_path) -> None:
    cli = write_script(tmp_path / "replay", 'echo "not json"\n')
    store = CliRecordingStore(str(cli))

    with pytest.raises(RecordingStoreError):
        await store.list_all_recordings(RecordingOptions(tmp_path, "k"))


@pytest.mark.anyio
async def test_cli_store_missing_executable(tmp_path) -> None:
    store = CliRecordingStore(str(tmp_path / "missing-replay"))
    options = RecordingOptions(tmp_path, "k")

    with pytest.raises(RecordingStoreError):
        await store.list_all_recordings(options)
    assert await store.upload_recording("rec", options) is None
    assert await store.process_recording("rec", options) is False
