"""Configuration resolution for the spec source and server identity.

The engine itself only needs a parsed document; this module decides where
that document comes from. :func:`resolve_config` merges, from highest to
lowest precedence:

1. CLI flags (``--mode``, ``--base-url``, ``--spec-path``, ``--spec-file``)
2. Environment variables (``API_MODE``, ``API_BASE_URL``, ``API_SPEC_PATH``,
   ``API_SPEC_FILE``, ``API_TIMEOUT``)
3. Project config (``./specmcp.json``)
4. Defaults declared on :class:`~specmcp.models.ServerConfig`

The result is validated into a :class:`~specmcp.models.ServerConfig`;
anything that does not validate is reported as a
:class:`~specmcp.exceptions.ConfigError`.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specmcp.exceptions import ConfigError
from specmcp.models import ServerConfig

_PROJECT_CONFIG_FILENAME = "specmcp.json"

ENV_VARS: dict[str, str] = {
    "mode": "API_MODE",
    "base_url": "API_BASE_URL",
    "spec_path": "API_SPEC_PATH",
    "spec_file": "API_SPEC_FILE",
    "timeout": "API_TIMEOUT",
}
"""Maps :class:`ServerConfig` fields to the environment variables that set them."""


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``specmcp.json``.

    Args:
        directory: Where to look. Defaults to the current working directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _env_overrides() -> dict[str, str]:
    """Collect non-empty ``API_*`` environment variables keyed by config field."""
    overrides: dict[str, str] = {}
    for field_name, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            overrides[field_name] = value
    return overrides


def resolve_config(
    cli_mode: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_spec_path: Optional[str] = None,
    cli_spec_file: Optional[str] = None,
) -> ServerConfig:
    """Resolve the effective :class:`~specmcp.models.ServerConfig`.

    Passing ``--spec-file`` without ``--mode`` implies file mode, so a
    single flag is enough to point the server at a local document.

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the project file is invalid or a merged value fails
            validation (for example an unknown mode).
    """
    # 4. Defaults come from the model; 3. project config
    merged: dict[str, Any] = dict(load_project_config() or {})

    # 2. Environment variables
    merged.update(_env_overrides())

    # 1. CLI flags (highest precedence)
    cli_values = {
        "mode": cli_mode,
        "base_url": cli_base_url,
        "spec_path": cli_spec_path,
        "spec_file": cli_spec_file,
    }
    merged.update({key: value for key, value in cli_values.items() if value is not None})
    if cli_spec_file is not None and cli_mode is None:
        merged["mode"] = "file"

    try:
        return ServerConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
