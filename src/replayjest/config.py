"""Run configuration for replay-jest."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV = "REPLAY_JEST_CONFIG"
CONFIG_FILE_ENV = "REPLAY_JEST_CONFIG_FILE"


class Configuration(BaseModel):
    """Recording policy applied to a single wrapped jest run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    record_all: bool = Field(default=False, alias="recordAll")
    randomize: bool = False
    max_recordings: int = Field(default=10, alias="maxRecordings", ge=0)
    update_runtime: bool = Field(default=False, alias="updateRuntime")


def parse_configuration(raw: str) -> Configuration:
    """Parse a JSON object into a :class:`Configuration`."""

    try:
        return Configuration.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def _read_raw_configuration(environ: Mapping[str, str]) -> str | None:
    payload = environ.get(CONFIG_ENV)
    if payload:
        return payload

    config_file = environ.get(CONFIG_FILE_ENV)
    if not config_file:
        return None
    try:
        return Path(config_file).expanduser().read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"could not read {config_file}: {exc}") from exc


def load_configuration(environ: Mapping[str, str] | None = None) -> Configuration:
    """Return the configuration for this run, falling back to defaults.

    ``REPLAY_JEST_CONFIG`` holds a JSON payload and takes precedence over the
    file named by ``REPLAY_JEST_CONFIG_FILE``. Problems with either source are
    logged and never fatal.
    """

    env = os.environ if environ is None else environ
    try:
        raw = _read_raw_configuration(env)
        if raw is None:
            return Configuration()
        return parse_configuration(raw)
    except ConfigurationError as exc:
        logger.warning("replay-jest: Ignoring invalid configuration: %s", exc)
        return Configuration()
