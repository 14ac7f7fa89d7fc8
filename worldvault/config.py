"""
worldvault/config.py -- User-adjustable options.

Options come from, in increasing priority: built-in defaults, the per-user
config file (``<user config dir>/worldvault/config.json``, or a file given
with ``--config``), then command-line flags.  A missing or unreadable
config file means defaults.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from platformdirs import user_config_dir
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from worldvault.utils import safe_read_json

logger = logging.getLogger(__name__)

_APP_NAME = "worldvault"


class VaultOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    world_directory: str = "1. World"
    assets_directory: str = "z_Assets"
    map_directory: str = "z_Map"
    deadline_seconds: Optional[float] = Field(default=None, gt=0)
    copy_sources: bool = True
    log_level: str = "INFO"


def default_config_path() -> str:
    """Return the per-user config file location."""
    return os.path.join(user_config_dir(_APP_NAME), "config.json")


def load_options(path: Optional[str] = None, **overrides: Any) -> VaultOptions:
    """Load options from *path* (or the per-user file) and apply *overrides*.

    ``None`` overrides are ignored so unset command-line flags keep the
    file's values.

    Raises
    ------
    pydantic.ValidationError
        If an override is itself invalid.  An invalid file only logs a
        warning.
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}
    VaultOptions.model_validate(overrides)
    config_path = path or default_config_path()
    data = safe_read_json(config_path, default={})
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", config_path)
        data = {}
    data.update(overrides)
    try:
        return VaultOptions.model_validate(data)
    except ValidationError as exc:
        logger.warning("Ignoring invalid options from %s: %s", config_path, exc)
        return VaultOptions.model_validate(overrides)
