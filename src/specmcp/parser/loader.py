"""Load OpenAPI documents from a URL, local file, or stdin.

This module is the acquisition collaborator of the engine: it handles all
I/O for fetching raw OpenAPI documents and turning them into a
:class:`~specmcp.models.SpecDocument`. Both JSON and YAML are accepted with
automatic format detection, and only OpenAPI 3.x documents are let through.

Public functions:

* :func:`load_spec` -- Load and parse a raw mapping from any supported source.
* :func:`validate_openapi_version` -- Check and return the ``openapi``
  version string, rejecting Swagger 2.x and unsupported versions.
* :func:`parse_document` -- Validate a raw mapping into a ``SpecDocument``.
* :func:`fetch_spec` -- Acquire the document selected by a
  :class:`~specmcp.models.ServerConfig`.

Nothing here retries or caches: every call goes back to the source.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from specmcp.exceptions import ConfigError, SpecParseError
from specmcp.models import ServerConfig, SpecDocument


def load_spec(source: str, timeout: float = 30.0) -> dict[str, Any]:
    """Load an OpenAPI spec from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https), file path, or '-' for stdin.
        timeout: HTTP timeout in seconds, used for URLs only.

    Returns:
        The parsed spec as a dictionary.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source, timeout)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    """Read spec from stdin.

    Raises:
        SpecParseError: If stdin is empty or content cannot be parsed.
    """
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str, timeout: float = 30.0) -> dict[str, Any]:
    """Fetch spec from URL. Supports JSON and YAML responses.

    Raises:
        SpecParseError: If the URL cannot be fetched, answers with a non-2xx
            status, or the content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load spec from local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        SpecParseError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Raises:
        SpecParseError: If the content cannot be parsed as either format,
            or does not contain a mapping at the top level.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
        else:
            if not isinstance(result, dict):
                raise SpecParseError(
                    f"Spec must be a JSON/YAML object (got {type(result).__name__})"
                )
            return result

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        if not isinstance(result, dict):
            raise SpecParseError(
                "Spec must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result

    msg = "Failed to parse spec as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise SpecParseError(msg)


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Accepts any 3.x version. Raises for Swagger 2.x, a missing version
    field, or other major versions.

    Raises:
        SpecParseError: If the version is missing, unsupported, or indicates Swagger 2.x.
    """
    if "swagger" in spec:
        swagger_ver = str(spec["swagger"])
        raise SpecParseError(
            f"Swagger {swagger_ver} is not supported. "
            "Only OpenAPI 3.x documents are supported. "
            "Consider converting with https://converter.swagger.io"
        )

    openapi_version = spec.get("openapi")
    if openapi_version is None:
        raise SpecParseError(
            "Missing 'openapi' field. Is this an OpenAPI 3.x document?"
        )

    version_str = str(openapi_version)
    if version_str.startswith("3."):
        return version_str

    raise SpecParseError(
        f"Unsupported OpenAPI version: {version_str}. "
        "Only OpenAPI 3.x documents are supported."
    )


def parse_document(raw: dict[str, Any]) -> SpecDocument:
    """Check the version of *raw* and validate it into a :class:`SpecDocument`.

    Raises:
        SpecParseError: If the version is unsupported or the document does
            not have the shape of an OpenAPI 3.x description.
    """
    validate_openapi_version(raw)
    try:
        return SpecDocument.from_raw(raw)
    except ValidationError as exc:
        raise SpecParseError(
            f"Malformed OpenAPI document ({exc.error_count()} problem(s)):\n{exc}"
        ) from exc


def fetch_spec(config: ServerConfig) -> SpecDocument:
    """Acquire the document selected by *config*.

    In ``http`` mode the spec is fetched from :attr:`ServerConfig.spec_url`;
    in ``file`` mode it is read from :attr:`ServerConfig.spec_file`.

    Raises:
        ConfigError: If ``file`` mode is selected without a spec file.
        SpecParseError: If the document cannot be acquired or parsed.
    """
    if config.mode == "file":
        if not config.spec_file:
            raise ConfigError(
                "API_SPEC_FILE must be set when API_MODE is 'file'"
            )
        raw = load_spec(config.spec_file)
    else:
        raw = load_spec(config.spec_url, timeout=config.timeout)
    return parse_document(raw)
