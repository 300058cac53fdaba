"""Recording store access and the upload/processing pipeline."""

from .pipeline import upload_and_process, viewer_url
from .recordings import (
    CliRecordingStore,
    Recording,
    RecordingMetadata,
    RecordingOptions,
    RecordingStore,
    locate_recording,
)

__all__ = [
    "CliRecordingStore",
    "Recording",
    "RecordingMetadata",
    "RecordingOptions",
    "RecordingStore",
    "locate_recording",
    "upload_and_process",
    "viewer_url",
]
