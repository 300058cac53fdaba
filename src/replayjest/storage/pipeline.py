"""Background upload and processing of located recordings."""

from __future__ import annotations

import logging

from ..diagnostics import SessionLog
from ..exceptions import RecordingStoreError
from .recordings import Recording, RecordingOptions, RecordingStore

logger = logging.getLogger(__name__)

DEFAULT_VIEWER_HOST = "app.replay.io"


def viewer_url(recording_id: str | None, *, host: str = DEFAULT_VIEWER_HOST) -> str:
    """Return the URL at which an uploaded recording can be viewed."""

    return f"https://{host}/recording/{recording_id or ''}"


async def upload_and_process(
    store: RecordingStore,
    recording: Recording,
    options: RecordingOptions,
    log: SessionLog,
    *,
    viewer_host: str = DEFAULT_VIEWER_HOST,
) -> str | None:
    """Upload ``recording`` and request its processing.

    A failed upload does not prevent the processing request. Failures are
    reported through ``log`` and never raised; the uploaded identifier (or
    ``None``) is returned.
    """

    uploaded_id: str | None = None
    try:
        uploaded_id = await store.upload_recording(recording.id, options)
    except (RecordingStoreError, OSError) as exc:
        logger.debug("Upload of %s raised: %s", recording.id, exc)
    if not uploaded_id:
        log.failure("Upload failed")

    processed = False
    try:
        processed = await store.process_recording(recording.id, options)
    except (RecordingStoreError, OSError) as exc:
        logger.debug("Processing of %s raised: %s", recording.id, exc)
    if not processed:
        log.failure("Processing failed")

    log.info(viewer_url(uploaded_id, host=viewer_host), status="recording")
    return uploaded_id
